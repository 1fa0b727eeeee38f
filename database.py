import logging
from enum import Enum
from typing import Optional

import pymongo
from pymongo import MongoClient
from pymongo.collection import Collection
from pymongo.errors import ConnectionFailure, PyMongoError

from config import settings

logger = logging.getLogger(__name__)


class StoreErrorKind(str, Enum):
    TIMEOUT = "timeout"
    CONNECTION_FAILURE = "connection_failure"
    DRIVER = "driver"


class StoreError(Exception):
    """Raised when the document store cannot complete an operation."""

    def __init__(self, kind: StoreErrorKind, message: str = "") -> None:
        super().__init__(message or kind.value)
        self.kind = kind

    @classmethod
    def from_exception(cls, exc: Exception) -> "StoreError":
        """Classify a driver exception.

        pymongo marks every error caused by an expired deadline (client side
        operation timeout, server selection, socket timeouts) with a `timeout`
        flag, so that check comes before the transport check.
        """
        if getattr(exc, "timeout", False):
            kind = StoreErrorKind.TIMEOUT
        elif isinstance(exc, ConnectionFailure):
            kind = StoreErrorKind.CONNECTION_FAILURE
        else:
            kind = StoreErrorKind.DRIVER
        return cls(kind, str(exc))


def connect(uri: Optional[str] = None, timeout: Optional[float] = None) -> MongoClient:
    """Create the process-wide client and make sure the server answers.

    MongoClient connects lazily, so a ping is issued within `timeout`
    seconds to surface an unreachable server at startup.
    """
    uri = uri or settings.mongo_uri
    timeout = timeout if timeout is not None else settings.mongo_timeout
    timeout_ms = int(timeout * 1000)

    client = MongoClient(
        uri,
        serverSelectionTimeoutMS=timeout_ms,
        connectTimeoutMS=timeout_ms,
    )
    try:
        with pymongo.timeout(timeout):
            client.admin.command("ping")
    except PyMongoError as exc:
        client.close()
        raise StoreError.from_exception(exc) from exc

    logger.info("Connected to MongoDB")
    return client


def get_collection(client: MongoClient, db_name: Optional[str] = None,
                   collection_name: Optional[str] = None) -> Collection:
    db_name = db_name or settings.mongo_db
    collection_name = collection_name or settings.mongo_collection
    return client[db_name][collection_name]
