"""
MongoDB connection handling.
One motor client is acquired per run and closed on exit, success or failure.
"""
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo.errors import ConfigurationError

from mongo_audit.config import Settings
from mongo_audit.errors import DatabaseConfigError

logger = logging.getLogger(__name__)


def create_client(settings: Settings) -> AsyncIOMotorClient:
    return AsyncIOMotorClient(settings.db_uri)


@asynccontextmanager
async def open_database(settings: Settings) -> AsyncIterator[AsyncIOMotorDatabase]:
    """
    Yield the configured database and always close the client afterwards.
    Raises DatabaseConfigError when the driver rejects the connection parameters.
    """
    try:
        client = create_client(settings)
        database = client[settings.db_name]
    except (ConfigurationError, ValueError, TypeError) as exc:
        raise DatabaseConfigError(
            f"Invalid connection settings for database {settings.db_name!r}: {exc}"
        ) from exc

    logger.info("Connected to %s (database=%s)", settings.db_uri, settings.db_name)
    try:
        yield database
    finally:
        client.close()
        logger.info("Database connection closed")
