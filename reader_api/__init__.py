"""
FastAPI REST API for the Reading Book application.

This module provides:
- Book listing, ranking, search and detail projections
- Chapter traversal and chapter pages
- Per-user like and save toggles with a maintained like counter
- Email/password registration and login
"""
