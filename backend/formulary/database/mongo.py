from __future__ import annotations

"""
MongoDB connection helpers.
"""

import logging

from pymongo import MongoClient
from pymongo.database import Database

logger = logging.getLogger(__name__)

_client: MongoClient | None = None


def get_client() -> MongoClient:
    global _client
    if _client is None:
        # Import settings lazily to ensure env vars are loaded
        from formulary.config import settings

        logger.info(f"Initializing MongoClient for database {settings.MONGODB_DB_NAME}")
        _client = MongoClient(settings.MONGODB_URI)
    return _client


def get_database() -> Database:
    from formulary.config import settings

    client = get_client()
    return client[settings.MONGODB_DB_NAME]
