"""
User service for accounts and profiles.

Handles registration, credential login, and profile reads and updates.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError

from common.auth import AuthProvider
from common.utils.exceptions import (
    ConflictException,
    NotFoundException,
    UnauthorizedException,
)
from rndvx.database.collections import USERS
from rndvx.services.access import parse_object_id
from rndvx.services.serializers import format_profile, format_user

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().lower()


class UserService:
    """
    Manages user accounts.
    """

    def __init__(self, db: AsyncIOMotorDatabase, auth_provider: AuthProvider):
        """
        Initialize UserService.

        Args:
            db: MongoDB database connection
            auth_provider: Password hashing and token issuance
        """
        self._db = db
        self._auth = auth_provider
        self._users_collection = db[USERS]

    async def register(self, email: str, password: str, name: str) -> Dict[str, Any]:
        """
        Create an account and issue a token.

        Returns:
            dict with user and token

        Raises:
            ConflictException: Email already registered
        """
        email = normalize_email(email)

        existing = await self._users_collection.find_one({"email": email})
        if existing:
            raise ConflictException(
                message="Email already registered",
                code="EMAIL_TAKEN"
            )

        now = datetime.now(timezone.utc)
        user_doc = {
            "email": email,
            "name": name.strip(),
            "passwordHash": self._auth.hash_password(password),
            "createdAt": now,
            "updatedAt": now,
        }

        try:
            result = await self._users_collection.insert_one(user_doc)
        except DuplicateKeyError:
            raise ConflictException(
                message="Email already registered",
                code="EMAIL_TAKEN"
            )
        user_doc["_id"] = result.inserted_id

        token = await self._auth.create_token(str(result.inserted_id))

        logger.info(f"User registered: {result.inserted_id}")
        return {"user": format_user(user_doc), "token": token}

    async def login(self, email: str, password: str) -> Dict[str, Any]:
        """
        Verify credentials and issue a token.

        Raises:
            UnauthorizedException: Unknown email or wrong password
        """
        user = await self._users_collection.find_one({"email": normalize_email(email)})
        if not user or not self._auth.verify_password(password, user.get("passwordHash", "")):
            raise UnauthorizedException(
                message="Invalid email or password",
                code="INVALID_CREDENTIALS"
            )

        token = await self._auth.create_token(str(user["_id"]))
        return {"user": format_user(user), "token": token}

    async def get_user(self, user_id: str) -> Optional[Dict[str, Any]]:
        """Raw user document, or None."""
        if not ObjectId.is_valid(str(user_id)):
            return None
        return await self._users_collection.find_one({"_id": ObjectId(str(user_id))})

    async def get_profile(self, user_id: str) -> Dict[str, Any]:
        user = await self.get_user(user_id)
        if not user:
            raise NotFoundException(message="User not found", code="USER_NOT_FOUND")
        return format_profile(user)

    async def update_profile(
        self,
        user_id: str,
        name: Optional[str] = None,
        email: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Update name and/or email.

        Raises:
            NotFoundException: User does not exist
            ConflictException: Email belongs to another account
        """
        user_oid = parse_object_id(user_id, "User not found", "USER_NOT_FOUND")
        user = await self._users_collection.find_one({"_id": user_oid})
        if not user:
            raise NotFoundException(message="User not found", code="USER_NOT_FOUND")

        updates: Dict[str, Any] = {}
        if name is not None:
            updates["name"] = name.strip()

        if email is not None:
            email = normalize_email(email)
            if email != user.get("email"):
                taken = await self._users_collection.find_one(
                    {"email": email, "_id": {"$ne": user_oid}}
                )
                if taken:
                    raise ConflictException(
                        message="Email already in use",
                        code="EMAIL_TAKEN"
                    )
                updates["email"] = email

        if not updates:
            return format_profile(user)

        updates["updatedAt"] = datetime.now(timezone.utc)
        try:
            await self._users_collection.update_one({"_id": user_oid}, {"$set": updates})
        except DuplicateKeyError:
            raise ConflictException(message="Email already in use", code="EMAIL_TAKEN")

        user.update(updates)
        logger.info(f"Profile updated for user {user_id}")
        return format_profile(user)
