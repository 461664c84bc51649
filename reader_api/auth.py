"""
Email/password registration and login.

Identity is verified against the stored bcrypt hash; no token or session is
issued, callers get the public user fields back.
"""

from typing import Dict, List, Optional

import structlog
from fastapi.concurrency import run_in_threadpool
from motor.motor_asyncio import AsyncIOMotorDatabase
from passlib.context import CryptContext
from pymongo.errors import DuplicateKeyError

from reader_api.database import USERS, utcnow
from reader_api.models import UserResponse

logger = structlog.get_logger(__name__)


class EmailAlreadyRegistered(Exception):
    """Raised when registering an email that already has an account."""


def build_password_context(schemes: List[str], bcrypt_rounds: Optional[int] = None) -> CryptContext:
    """
    Build the password hashing context.

    Args:
        schemes: passlib scheme names, the first one hashes new passwords
        bcrypt_rounds: Optional bcrypt cost factor override
    """
    settings = {}
    if bcrypt_rounds and "bcrypt" in schemes:
        settings["bcrypt__rounds"] = bcrypt_rounds
    return CryptContext(schemes=schemes, deprecated="auto", **settings)


def _user(doc: Dict) -> UserResponse:
    return UserResponse(id=str(doc["_id"]), email=doc["email"], username=doc["username"])


class AuthService:
    """Registers users and verifies their credentials."""

    def __init__(self, database: AsyncIOMotorDatabase, pwd_context: CryptContext):
        self.users_collection = database[USERS]
        self.pwd_context = pwd_context

    async def register(self, username: str, email: str, password: str) -> UserResponse:
        """
        Create a user with a hashed password.

        Raises:
            EmailAlreadyRegistered: If the email is taken
        """
        existing = await self.users_collection.find_one({"email": email}, {"_id": 1})
        if existing:
            raise EmailAlreadyRegistered(email)

        password_hash = await run_in_threadpool(self.pwd_context.hash, password)
        user_doc = {
            "username": username,
            "email": email,
            "password": password_hash,
            "created_at": utcnow(),
        }

        try:
            result = await self.users_collection.insert_one(user_doc)
        except DuplicateKeyError:
            # Lost a race with a concurrent registration
            raise EmailAlreadyRegistered(email)

        user_doc["_id"] = result.inserted_id
        logger.info("User registered", user_id=str(result.inserted_id))
        return _user(user_doc)

    async def authenticate(self, email: str, password: str) -> Optional[UserResponse]:
        """
        Verify credentials.

        Returns:
            The user when the password matches, None for an unknown email or a wrong password
        """
        user_doc = await self.users_collection.find_one(
            {"email": email}, {"email": 1, "username": 1, "password": 1}
        )
        if not user_doc:
            return None

        matches = await run_in_threadpool(self.pwd_context.verify, password, user_doc["password"])
        if not matches:
            logger.info("Rejected login", user_id=str(user_doc["_id"]))
            return None

        return _user(user_doc)
