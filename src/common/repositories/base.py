"""
Shared MongoDB connection handling for Atlas repositories.

Every Atlas repository reuses one MongoClient per process; PyMongo pools
connections internally, so a single client serves all collections.
"""

import logging
from typing import Any, Optional

from bson import ObjectId
from pymongo import MongoClient
from pymongo.collection import Collection

from src.common.config import Config

logger = logging.getLogger(__name__)


class AtlasConnection:
    """
    Process-wide MongoClient holder.

    Connection Management:
    - Client is created lazily on first collection access
    - Reused across repositories and requests
    - reset() closes it (tests, connection recovery)
    """

    _client: Optional[MongoClient] = None

    def __init__(self, mongodb_uri: Optional[str] = None, database: Optional[str] = None):
        """
        Args:
            mongodb_uri: MongoDB connection string (defaults to MONGODB_URI)
            database: Database name (defaults to MONGODB_DATABASE)
        """
        self._mongodb_uri = mongodb_uri or Config.MONGODB_URI
        self._database = database or Config.MONGODB_DATABASE

        if not self._mongodb_uri:
            raise ValueError("MongoDB URI is required")

    def collection(self, name: str) -> Collection:
        """Get a collection, creating the client if needed."""
        if AtlasConnection._client is None:
            AtlasConnection._client = MongoClient(self._mongodb_uri)
            logger.info(f"Created MongoDB client for database {self._database}")
        return AtlasConnection._client[self._database][name]

    @classmethod
    def reset(cls) -> None:
        """Close and drop the shared client."""
        if cls._client is not None:
            cls._client.close()
            cls._client = None
            logger.info("MongoDB connection reset")


def to_object_id(value: Any) -> Any:
    """ObjectId for 24-hex strings, the value unchanged otherwise."""
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    return value


def stringify_id(document: Optional[dict]) -> Optional[dict]:
    """Copy of a document with _id (and id) as strings."""
    if document is None:
        return None
    doc = dict(document)
    if "_id" in doc:
        doc["_id"] = str(doc["_id"])
        doc.setdefault("id", doc["_id"])
    return doc
