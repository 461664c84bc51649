"""
Pytest configuration and shared fixtures.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock
from bson import ObjectId
from fastapi.testclient import TestClient

from reader_api.auth import AuthService
from reader_api.catalog import CatalogService
from reader_api.database import LibraryDatabase
from reader_api.dependencies import (
    get_auth_service, get_catalog_service, get_interaction_service, get_library_database,
)
from reader_api.interactions import InteractionService
from reader_api.main import app


@pytest.fixture
def book_id():
    """A well-formed book identifier."""
    return "65f1c0ffee0000000000beef"


@pytest.fixture
def mock_catalog_service():
    """Create a mock catalog service for testing."""
    return AsyncMock(spec=CatalogService)


@pytest.fixture
def mock_interaction_service():
    """Create a mock interaction service for testing."""
    return AsyncMock(spec=InteractionService)


@pytest.fixture
def mock_auth_service():
    """Create a mock auth service for testing."""
    return AsyncMock(spec=AuthService)


@pytest.fixture
def mock_library_db():
    """Create a mock database manager for testing."""
    manager = AsyncMock(spec=LibraryDatabase)
    manager.health_check.return_value = {"status": "healthy"}
    return manager


@pytest.fixture
def client(mock_catalog_service, mock_interaction_service, mock_auth_service, mock_library_db):
    """Test client with every service dependency swapped for a mock."""
    app.dependency_overrides[get_catalog_service] = lambda: mock_catalog_service
    app.dependency_overrides[get_interaction_service] = lambda: mock_interaction_service
    app.dependency_overrides[get_auth_service] = lambda: mock_auth_service
    app.dependency_overrides[get_library_database] = lambda: mock_library_db
    yield TestClient(app)
    app.dependency_overrides.clear()


class FakeDatabase:
    """
    Stand-in for an AsyncIOMotorDatabase: ``db[name]`` hands out one mock
    collection per name.
    """

    def __init__(self):
        self.collections = {}

    def __getitem__(self, name):
        if name not in self.collections:
            collection = AsyncMock()
            # find() and aggregate() return cursors synchronously in Motor
            collection.find = MagicMock()
            collection.aggregate = MagicMock()
            self.collections[name] = collection
        return self.collections[name]

    async def command(self, name):
        return {"ok": 1}


@pytest.fixture
def fake_database():
    return FakeDatabase()


def make_cursor(docs):
    """Motor-like cursor: chainable sort/limit and an awaitable to_list."""
    cursor = MagicMock()
    cursor.sort.return_value = cursor
    cursor.limit.return_value = cursor
    cursor.to_list = AsyncMock(return_value=docs)
    return cursor


@pytest.fixture
def cursor_factory():
    return make_cursor


@pytest.fixture
def sample_book_doc():
    """Aggregated book document as returned by the genre join."""
    return {
        "_id": ObjectId("65f1c0ffee0000000000beef"),
        "title": "The Hobbit",
        "author": "J. R. R. Tolkien",
        "views_count": 120,
        "total_likes": 7,
        "total_chapters": 19,
        "cover_image": "https://example.com/hobbit.jpg",
        "description": "There and back again.",
        "book_genres": [{"book_id": ObjectId("65f1c0ffee0000000000beef"), "genre_id": ObjectId("65f1c0ffee00000000000001")}],
        "genres": [{"_id": ObjectId("65f1c0ffee00000000000001"), "name": "Fantasy"}],
    }
