"""
Tests for registration and login endpoints.
"""

import pytest

from reader_api.auth import EmailAlreadyRegistered
from reader_api.models import UserResponse


@pytest.fixture
def user():
    return UserResponse(id="65f1c0ffee00000000000abc", email="a@x.com", username="a")


def test_register(client, mock_auth_service, user):
    mock_auth_service.register.return_value = user

    response = client.post("/auth/register", json={"username": "a", "email": "a@x.com", "password": "pw"})

    assert response.status_code == 201
    data = response.json()
    assert data["message"] == "User registered successfully"
    assert data["user"] == {"id": user.id, "email": "a@x.com", "username": "a"}
    mock_auth_service.register.assert_awaited_once_with("a", "a@x.com", "pw")


def test_register_duplicate_email(client, mock_auth_service):
    mock_auth_service.register.side_effect = EmailAlreadyRegistered("a@x.com")

    response = client.post("/auth/register", json={"username": "a", "email": "a@x.com", "password": "pw"})

    assert response.status_code == 400
    assert response.json()["error"] == "Email already registered"


@pytest.mark.parametrize("body", [
    {"email": "a@x.com", "password": "pw"},
    {"username": "a", "password": "pw"},
    {"username": "a", "email": "a@x.com"},
    {"username": "", "email": "a@x.com", "password": "pw"},
])
def test_register_missing_fields(client, mock_auth_service, body):
    response = client.post("/auth/register", json=body)

    assert response.status_code == 400
    assert response.json()["error"] == "Missing fields"
    mock_auth_service.register.assert_not_called()


def test_register_store_failure(client, mock_auth_service):
    mock_auth_service.register.side_effect = RuntimeError("not primary")

    response = client.post("/auth/register", json={"username": "a", "email": "a@x.com", "password": "pw"})

    assert response.status_code == 500
    assert response.json()["error"] == "Failed to register: not primary"


def test_login(client, mock_auth_service, user):
    mock_auth_service.authenticate.return_value = user

    response = client.post("/auth/login", json={"email": "a@x.com", "password": "pw"})

    assert response.status_code == 200
    data = response.json()
    assert data["message"] == "Login successful"
    assert data["user"]["email"] == "a@x.com"
    assert "password" not in data["user"]


def test_login_wrong_password_is_bad_request(client, mock_auth_service):
    """Invalid credentials answer 400, not 401."""
    mock_auth_service.authenticate.return_value = None

    response = client.post("/auth/login", json={"email": "a@x.com", "password": "nope"})

    assert response.status_code == 400
    assert response.json()["error"] == "Invalid credentials"


def test_login_missing_password(client, mock_auth_service):
    response = client.post("/auth/login", json={"email": "a@x.com"})

    assert response.status_code == 400
    assert response.json()["error"] == "Missing email or password"
    mock_auth_service.authenticate.assert_not_called()


def test_login_without_body(client, mock_auth_service):
    response = client.post("/auth/login")

    assert response.status_code == 400
    mock_auth_service.authenticate.assert_not_called()


def test_login_store_failure(client, mock_auth_service):
    mock_auth_service.authenticate.side_effect = RuntimeError("timeout")

    response = client.post("/auth/login", json={"email": "a@x.com", "password": "pw"})

    assert response.status_code == 500
    assert response.json()["error"] == "Login failed: timeout"
