"""
Request dependencies resolving the services built at start-up.

Services live on ``app.state``; tests swap them through
``app.dependency_overrides``.
"""

from fastapi import Request

from reader_api.auth import AuthService
from reader_api.catalog import CatalogService
from reader_api.database import LibraryDatabase
from reader_api.interactions import InteractionService


def get_library_database(request: Request) -> LibraryDatabase:
    return request.app.state.library_db


def get_catalog_service(request: Request) -> CatalogService:
    return request.app.state.catalog_service


def get_interaction_service(request: Request) -> InteractionService:
    return request.app.state.interaction_service


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service
