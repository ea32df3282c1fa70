"""Database connection and transaction management."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from motor.motor_asyncio import (
    AsyncIOMotorClient,
    AsyncIOMotorClientSession,
    AsyncIOMotorDatabase,
)
from pymongo.errors import PyMongoError

from app.core.config import settings
from app.core.exceptions import PersistenceError
from app.core.logging import get_logger

logger = get_logger()

# Lazy database initialization - don't create the client at import time
client: AsyncIOMotorClient | None = None


def _initialize_database() -> None:
    """Initialize the database client."""
    global client

    if client is not None:
        return  # Already initialized

    client = AsyncIOMotorClient(
        settings.MONGODB_URI,
        serverSelectionTimeoutMS=settings.MONGODB_SERVER_SELECTION_TIMEOUT_MS,
        tz_aware=True,
    )
    logger.info("database_client_created", database=settings.MONGODB_DATABASE)


def get_client() -> AsyncIOMotorClient:
    """Get the shared database client, creating it on first use."""
    _initialize_database()

    if client is None:
        raise RuntimeError("Database not initialized - cannot create client")

    return client


def get_database() -> AsyncIOMotorDatabase:
    """Get the application database."""
    return get_client()[settings.MONGODB_DATABASE]


async def ping_database() -> bool:
    """Check that the database answers a ping."""
    try:
        await get_database().command("ping")
        return True
    except PyMongoError as e:
        logger.warning("database_ping_failed", error=str(e))
        return False


def close_database() -> None:
    """Close the shared client; the next use reconnects."""
    global client

    if client is not None:
        client.close()
        client = None
        logger.info("database_client_closed")


class MongoTransactionManager:
    """Open multi-document transactions on a replica set deployment.

    When transactions are disabled (standalone servers), ``transaction()``
    yields None and callers fall back to compensating writes.
    """

    def __init__(self, client: AsyncIOMotorClient, enabled: bool = True):
        self.client = client
        self.enabled = enabled

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncIOMotorClientSession | None]:
        if not self.enabled:
            yield None
            return

        try:
            async with await self.client.start_session() as session:
                async with session.start_transaction():
                    yield session
        except PyMongoError as e:
            logger.error("transaction_failed", error=str(e))
            raise PersistenceError(f"Transaction failed: {e}") from e
