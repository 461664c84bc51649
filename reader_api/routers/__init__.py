"""
HTTP routers: book reads, like/save flags and authentication.
"""
