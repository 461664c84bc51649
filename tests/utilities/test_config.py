"""
Tests for environment-driven configuration.
"""

import pytest
from pydantic import ValidationError

from reader_api.config import APIConfig
from utilities.config import LibraryConfig


def test_defaults():
    config = LibraryConfig(_env_file=None)
    assert config.top_books_limit == 10
    assert config.latest_books_limit == 10
    assert config.log_format == "json"
    assert config.get_log_file_path() is None


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("MONGODB_DATABASE", "reading_books_test")
    monkeypatch.setenv("TOP_BOOKS_LIMIT", "5")
    monkeypatch.setenv("LOG_FILE", "logs/api.log")

    config = LibraryConfig(_env_file=None)

    assert config.mongodb_database == "reading_books_test"
    assert config.top_books_limit == 5
    assert config.get_log_file_path().name == "api.log"


def test_log_level_is_normalised():
    assert LibraryConfig(_env_file=None, log_level="debug").log_level == "DEBUG"


@pytest.mark.parametrize("overrides", [
    {"log_level": "verbose"},
    {"log_format": "xml"},
    {"top_books_limit": 0},
    {"latest_books_limit": 1000},
])
def test_invalid_values(overrides):
    with pytest.raises(ValidationError):
        LibraryConfig(_env_file=None, **overrides)


def test_api_config_password_schemes(monkeypatch):
    monkeypatch.setenv("PASSWORD_SCHEMES", '["pbkdf2_sha256", "bcrypt"]')
    monkeypatch.setenv("BCRYPT_ROUNDS", "12")

    config = APIConfig(_env_file=None)

    assert config.password_schemes == ["pbkdf2_sha256", "bcrypt"]
    assert config.bcrypt_rounds == 12


def test_api_description_reaches_openapi():
    from reader_api.main import app

    assert app.description == APIConfig(_env_file=None).api_description
    assert app.openapi()["info"]["description"] == app.description
