from __future__ import annotations

import logging
import re

from pymongo import AsyncMongoClient
from pymongo.asynchronous.database import AsyncDatabase

from onupdate.utils.exceptions import NotConnected

logger = logging.getLogger(__name__)

_clients: dict[str, AsyncMongoClient] = {}
_databases: dict[str, AsyncDatabase] = {}

_DB_NAME = re.compile(r"^[a-zA-Z0-9_-]+$")


async def connect(uri: str, *, alias: str = "default") -> AsyncDatabase:
    """Connect to a MongoDB instance and register it under ``alias``.

    The client connects lazily, so no round trip happens here.

    Args:
        uri: MongoDB connection URI (must include database name).
        alias: Connection alias for multi-database setups.

    Returns:
        The AsyncDatabase instance.

    Raises:
        ValueError: If URI format is invalid
    """
    db_name = _extract_db_name(uri)
    if alias in _clients:
        logger.warning("Replacing existing MongoDB connection '%s'", alias)
        await disconnect(alias)

    client = AsyncMongoClient(uri)
    db = client[db_name]
    _clients[alias] = client
    _databases[alias] = db
    logger.info("Connected to database '%s' with alias '%s'", db_name, alias)
    return db


async def disconnect(alias: str = "default") -> None:
    """Close and forget a registered connection. Unknown aliases are ignored."""
    client = _clients.pop(alias, None)
    _databases.pop(alias, None)
    if client is not None:
        await client.close()
        logger.info("Disconnected from MongoDB (alias: '%s')", alias)


def get_database(alias: str = "default") -> AsyncDatabase:
    """Retrieve a registered database or raise NotConnected."""
    try:
        return _databases[alias]
    except KeyError:
        raise NotConnected(
            f"No connection registered for alias '{alias}'. Call connect() first."
        ) from None


def get_client(alias: str = "default") -> AsyncMongoClient:
    """Retrieve a registered client or raise NotConnected."""
    try:
        return _clients[alias]
    except KeyError:
        raise NotConnected(
            f"No client registered for alias '{alias}'. Call connect() first."
        ) from None


def _extract_db_name(uri: str) -> str:
    """Extract and validate the database name from a MongoDB URI.

    Raises:
        ValueError: If the URI is empty, has no database path or the name
            contains characters MongoDB does not allow.
    """
    if not uri:
        raise ValueError("MongoDB URI cannot be empty")

    path = uri.split("?")[0]
    if "://" in path:
        path = path.split("://", 1)[1]
    if "/" not in path:
        raise ValueError(
            "Cannot extract database name from URI. "
            "Expected format: mongodb://host:port/database"
        )

    db_name = path.rsplit("/", 1)[-1]
    if not db_name:
        raise ValueError(
            "Cannot extract database name from URI. "
            "Expected format: mongodb://host:port/database"
        )
    if not _DB_NAME.match(db_name):
        raise ValueError(
            f"Invalid database name '{db_name}'. "
            f"Database names can only contain letters, numbers, underscores, and hyphens."
        )

    logger.debug("Extracted database name: %s", db_name)
    return db_name
