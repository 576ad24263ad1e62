"""MongoDB connection helpers."""

import logging

from pymongo import MongoClient
from pymongo.errors import PyMongoError

logger = logging.getLogger(__name__)


def create_mongo_client(uri: str, timeout_ms: int = 5000) -> MongoClient:
    """Create a client. Connecting is lazy; use ``ping`` to check reachability."""
    return MongoClient(uri, serverSelectionTimeoutMS=timeout_ms)


def ping(client: MongoClient) -> bool:
    """Check MongoDB connection status."""
    try:
        client.admin.command("ping")
        return True
    except PyMongoError as e:
        logger.warning(f"MongoDB connection failed: {e}")
        return False
