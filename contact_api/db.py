# contact_api/db.py
import asyncio
import logging
import time
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import urlparse

import motor.motor_asyncio
from beanie import init_beanie

from .config import Settings
from .models.contact import Contact

logger = logging.getLogger(__name__)

ClientFactory = Callable[..., Any]

STATUS_CONNECTED = "connected"
STATUS_DISCONNECTED = "disconnected"
STATUS_PING_FAILED = "ping_failed"


class DatabaseUnavailableError(Exception):
    """Raised when no healthy database handle can be obtained"""


def _default_client_factory(uri: str, **options) -> motor.motor_asyncio.AsyncIOMotorClient:
    return motor.motor_asyncio.AsyncIOMotorClient(uri, **options)


def database_name_from_uri(uri: str, default: str) -> str:
    parsed = urlparse(uri)
    return parsed.path.lstrip("/") or default


class ConnectionCache:
    """
    Lazily opened, process-wide MongoDB handle.

    The first caller opens the client, pings it and registers the Beanie
    models. Callers that arrive while that is in flight wait on the same
    lock and reuse the result. A failed attempt leaves the cache empty so
    the next call starts over.
    """

    def __init__(self, settings: Settings, client_factory: Optional[ClientFactory] = None):
        self.settings = settings
        self._client_factory = client_factory or _default_client_factory
        self._client = None
        self._database = None
        self._lock = asyncio.Lock()
        self.connect_count = 0
        self.last_ping_error: Optional[str] = None

    @property
    def client(self):
        return self._client

    @property
    def database(self):
        return self._database

    @property
    def is_connected(self) -> bool:
        return self._database is not None

    def _client_options(self) -> Dict[str, Any]:
        return {
            "maxPoolSize": self.settings.MONGO_MAX_POOL_SIZE,
            "serverSelectionTimeoutMS": self.settings.MONGO_SERVER_SELECTION_TIMEOUT_MS,
            "socketTimeoutMS": self.settings.MONGO_SOCKET_TIMEOUT_MS,
            "tz_aware": True,
        }

    async def get_connection(self):
        """Return the cached database handle, connecting on first use."""
        # Fast path - already connected
        if self._database is not None:
            logger.debug("♻️ Reusing cached database connection")
            return self._database

        async with self._lock:
            # Double-check after acquiring lock
            if self._database is not None:
                return self._database
            return await self._connect()

    async def _connect(self):
        uri = self.settings.MONGODB_URI
        if not uri:
            logger.error("❌ MONGODB_URI is not set")
            raise DatabaseUnavailableError("MONGODB_URI is not set")

        start_time = time.time()
        client = None
        try:
            logger.info("🔌 Opening new MongoDB connection...")
            self.connect_count += 1
            client = self._client_factory(uri, **self._client_options())
            await client.admin.command("ping")

            database = client.get_database(
                database_name_from_uri(uri, self.settings.MONGODB_DB_NAME)
            )
            await init_beanie(database=database, document_models=[Contact])
        except Exception as e:
            logger.error(f"❌ MongoDB connection failed: {str(e)}")
            if client is not None:
                client.close()
            self.reset()
            raise DatabaseUnavailableError(str(e)) from e

        self._client = client
        self._database = database
        elapsed = time.time() - start_time
        logger.info(f"✅ MongoDB connected and tested in {elapsed:.2f}s")
        return database

    async def status(self) -> str:
        """Ping the current handle; never opens a connection."""
        if self._client is None:
            return STATUS_DISCONNECTED
        try:
            await self._client.admin.command("ping")
        except Exception as e:
            logger.warning(f"⚠️ Database ping failed: {str(e)}")
            self.last_ping_error = str(e)
            return STATUS_PING_FAILED
        self.last_ping_error = None
        return STATUS_CONNECTED

    async def stats(self) -> Dict[str, Any]:
        if self._database is None:
            return {}
        stats = await self._database.command("dbstats")
        return {
            "collections": stats.get("collections"),
            "objects": stats.get("objects"),
            "dataSize": stats.get("dataSize"),
        }

    async def list_database_names(self) -> List[str]:
        await self.get_connection()
        return await self._client.list_database_names()

    def reset(self) -> None:
        self._client = None
        self._database = None

    async def close(self) -> None:
        """Close and drop the client (shutdown hook)."""
        if self._client is not None:
            logger.info("🛑 Closing MongoDB connection")
            self._client.close()
        self.reset()
