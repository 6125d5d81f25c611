"""
Async MongoDB connection holder.

One instance is created per process. The API lifespan and the job CLI
connect it at startup and hand ``db`` to the services.

Example:
    from common.database import MongoDB

    mongo = MongoDB()
    await mongo.connect("mongodb://localhost:27017", "rndvx")
    meetings = mongo.db["meetings"]
"""

import logging
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

logger = logging.getLogger(__name__)


def _mask(uri: str) -> str:
    """Drop credentials from a connection string before logging it."""
    return uri.split("@")[-1] if "@" in uri else uri


class MongoDB:
    """Owns the Motor client for the lifetime of the process."""

    def __init__(self, app_name: str = "rndvx", server_selection_timeout_ms: int = 5000):
        self._app_name = app_name
        self._timeout_ms = server_selection_timeout_ms
        self._client: Optional[AsyncIOMotorClient] = None
        self._database_name: Optional[str] = None

    async def connect(self, uri: str, database_name: str) -> None:
        """
        Open the client and ping the server.

        Datetimes come back timezone-aware (UTC) so they compare cleanly
        against ``datetime.now(timezone.utc)``.

        Raises:
            PyMongoError: Server unreachable within the selection timeout
        """
        logger.info(f"Connecting to MongoDB: {_mask(uri)}")

        client = AsyncIOMotorClient(
            uri,
            tz_aware=True,
            appname=self._app_name,
            serverSelectionTimeoutMS=self._timeout_ms,
        )
        try:
            await client.admin.command("ping")
        except PyMongoError as e:
            logger.error(f"Failed to connect to MongoDB: {e}")
            client.close()
            raise

        self._client = client
        self._database_name = database_name
        logger.info(f"Connected to MongoDB database: {database_name}")

    async def disconnect(self) -> None:
        if self._client:
            logger.info(f"Disconnecting from MongoDB database: {self._database_name}")
            self._client.close()
            self._client = None
            self._database_name = None

    @property
    def is_connected(self) -> bool:
        return self._client is not None

    async def ping(self) -> bool:
        """True if the server answers right now. Never raises."""
        if self._client is None:
            return False
        try:
            await self._client.admin.command("ping")
            return True
        except PyMongoError as e:
            logger.warning(f"MongoDB ping failed: {e}")
            return False

    @property
    def db(self) -> AsyncIOMotorDatabase:
        if self._client is None or self._database_name is None:
            raise RuntimeError("Database not connected")
        return self._client[self._database_name]
