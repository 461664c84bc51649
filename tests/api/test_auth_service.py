"""
Unit tests for registration and credential checks.
"""

import pytest
from unittest.mock import MagicMock
from bson import ObjectId
from pymongo.errors import DuplicateKeyError

from reader_api.auth import AuthService, EmailAlreadyRegistered, build_password_context


@pytest.fixture
def pwd_context():
    # pbkdf2 keeps the suite fast; bcrypt is covered separately
    return build_password_context(["pbkdf2_sha256"])


@pytest.fixture
def auth(fake_database, pwd_context):
    return AuthService(fake_database, pwd_context)


@pytest.mark.asyncio
async def test_register_hashes_password(auth, fake_database, pwd_context):
    users = fake_database["users"]
    users.find_one.return_value = None
    inserted_id = ObjectId()
    users.insert_one.return_value = MagicMock(inserted_id=inserted_id)

    user = await auth.register("a", "a@x.com", "pw")

    assert user.id == str(inserted_id)
    assert user.email == "a@x.com"
    assert user.username == "a"
    stored = users.insert_one.call_args.args[0]
    assert stored["password"] != "pw"
    assert pwd_context.verify("pw", stored["password"])


@pytest.mark.asyncio
async def test_register_existing_email(auth, fake_database):
    fake_database["users"].find_one.return_value = {"_id": ObjectId()}

    with pytest.raises(EmailAlreadyRegistered):
        await auth.register("a", "a@x.com", "pw")

    fake_database["users"].insert_one.assert_not_called()


@pytest.mark.asyncio
async def test_register_race_on_unique_index(auth, fake_database):
    users = fake_database["users"]
    users.find_one.return_value = None
    users.insert_one.side_effect = DuplicateKeyError("E11000 duplicate key error")

    with pytest.raises(EmailAlreadyRegistered):
        await auth.register("a", "a@x.com", "pw")


@pytest.mark.asyncio
async def test_authenticate(auth, fake_database, pwd_context):
    user_id = ObjectId()
    fake_database["users"].find_one.return_value = {
        "_id": user_id, "email": "a@x.com", "username": "a", "password": pwd_context.hash("pw"),
    }

    user = await auth.authenticate("a@x.com", "pw")

    assert user.id == str(user_id)
    assert user.username == "a"


@pytest.mark.asyncio
async def test_authenticate_wrong_password(auth, fake_database, pwd_context):
    fake_database["users"].find_one.return_value = {
        "_id": ObjectId(), "email": "a@x.com", "username": "a", "password": pwd_context.hash("pw"),
    }

    assert await auth.authenticate("a@x.com", "wrong") is None


@pytest.mark.asyncio
async def test_authenticate_unknown_email(auth, fake_database):
    fake_database["users"].find_one.return_value = None

    assert await auth.authenticate("b@x.com", "pw") is None


def test_bcrypt_context_uses_configured_rounds():
    context = build_password_context(["bcrypt"], bcrypt_rounds=4)

    password_hash = context.hash("pw")

    assert password_hash.startswith("$2b$04$")
    assert context.verify("pw", password_hash)
