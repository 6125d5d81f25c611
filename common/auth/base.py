"""
Interface the API uses for passwords and bearer tokens.

Services and the auth dependency only see AuthProvider, so the signing
backend can change without touching them.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict


class AuthProvider(ABC):

    @abstractmethod
    def hash_password(self, password: str) -> str:
        ...

    @abstractmethod
    def verify_password(self, password: str, hashed: str) -> bool:
        """False for a wrong password or a malformed hash; never raises."""

    @abstractmethod
    async def create_token(self, user_id: str, **claims: Any) -> str:
        ...

    @abstractmethod
    async def verify_token(self, token: str) -> Dict[str, Any]:
        """
        Decode a token issued by create_token.

        Returns:
            Claims, including "sub" with the user id

        Raises:
            ValueError: Bad signature, wrong issuer, or expired
        """
