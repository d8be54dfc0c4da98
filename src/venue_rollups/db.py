"""MongoDB client helpers.

Centralizes creation of Mongo clients so the CLI, the weekly record store and
the Gold export share the same TLS and timeout settings.
"""

from __future__ import annotations

from typing import Any
from pymongo import MongoClient
from pymongo.database import Database

import certifi


def get_client(uri: str) -> MongoClient[dict[str, Any]]:
    """Return a configured PyMongo MongoClient for the provided URI.

    Args:
        uri: MongoDB connection URI.

    Returns:
        Configured MongoClient instance.
    """
    return MongoClient(
        uri,
        tls=True,
        tlsCAFile=certifi.where(),
        serverSelectionTimeoutMS=30000,
        socketTimeoutMS=30000,
        connectTimeoutMS=30000,
    )


def get_db(
    client: MongoClient[dict[str, Any]],
    db_name: str,
) -> Database[dict[str, Any]]:
    """Return the named Database instance from a MongoClient."""
    return client[db_name]
