"""MongoDB helpers.

Centralizes creation of Mongo clients for the report sources and the Gold
builder.
"""

from __future__ import annotations

from typing import Any
from pymongo import MongoClient
from pymongo.database import Database

import certifi

from contact_snapshot.config import Settings


def get_client(uri: str, tls: bool = True) -> MongoClient:
    """Return a configured PyMongo MongoClient for the provided URI.

    Args:
        uri: MongoDB connection URI.
        tls: Connect over TLS using the certifi CA bundle.

    Returns:
        Configured MongoClient instance.
    """
    options: dict[str, Any] = {
        "serverSelectionTimeoutMS": 30000,
        "socketTimeoutMS": 30000,
        "connectTimeoutMS": 30000,
    }
    if tls:
        options["tls"] = True
        options["tlsCAFile"] = certifi.where()
    return MongoClient(uri, **options)


def get_db(
    client: MongoClient[dict[str, Any]],
    db_name: str,
) -> Database[dict[str, Any]]:
    """Return the named Database instance from a MongoClient.

    Args:
        client: PyMongo MongoClient.
        db_name: Database name.

    Returns:
        A Database object.
    """
    return client[db_name]


def connect(settings: Settings) -> Database[dict[str, Any]]:
    """Open a client from `settings` and return its configured database."""
    client = get_client(settings.mongo_uri, tls=settings.mongo_tls)
    return get_db(client, settings.mongo_db)
