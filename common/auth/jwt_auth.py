"""
JWT access tokens and bcrypt password hashes.

Example:
    auth = JWTAuth(secret="change-me", access_token_expire_minutes=60)

    password_hash = auth.hash_password("password123")
    token = await auth.create_token(user_id)
    claims = await auth.verify_token(token)   # claims["sub"] == user_id
"""

import base64
import hashlib
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import bcrypt as bcrypt_lib
from jose import jwt, JWTError

from common.auth.base import AuthProvider


class JWTAuth(AuthProvider):
    """
    Signs and verifies HS256 access tokens; hashes passwords with bcrypt.

    Tokens carry ``sub`` (user id), ``iat``, ``exp`` and ``iss``. A token
    signed with the right secret but a different issuer is rejected.
    """

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        access_token_expire_minutes: int = 60 * 24 * 7,
        bcrypt_rounds: int = 12,
        issuer: str = "rndvx",
    ):
        if not secret:
            raise ValueError("JWT secret must not be empty")
        self.secret = secret
        self.algorithm = algorithm
        self.access_token_expire = timedelta(minutes=access_token_expire_minutes)
        self.bcrypt_rounds = bcrypt_rounds
        self.issuer = issuer

    @staticmethod
    def _prehash(password: str) -> bytes:
        # SHA-256 first so passwords longer than bcrypt's 72 bytes still count in full
        digest = hashlib.sha256(password.encode("utf-8")).digest()
        return base64.b64encode(digest)

    def hash_password(self, password: str) -> str:
        salt = bcrypt_lib.gensalt(rounds=self.bcrypt_rounds)
        return bcrypt_lib.hashpw(self._prehash(password), salt).decode("utf-8")

    def verify_password(self, password: str, hashed: str) -> bool:
        if not hashed:
            return False
        try:
            return bcrypt_lib.checkpw(self._prehash(password), hashed.encode("utf-8"))
        except ValueError:
            # Not a bcrypt hash
            return False

    async def create_token(self, user_id: str, **claims: Any) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            **claims,
            "sub": user_id,
            "iat": now,
            "exp": now + self.access_token_expire,
            "iss": self.issuer,
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    async def verify_token(self, token: str) -> Dict[str, Any]:
        try:
            return jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                issuer=self.issuer,
            )
        except JWTError as e:
            raise ValueError(f"Invalid token: {e}")
