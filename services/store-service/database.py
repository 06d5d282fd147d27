"""Database connection and handle management."""
import logging
from typing import Optional

from fastapi import Request
from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.database import Database

from config import MONGO_URI, DATABASE_NAME, MONGO_SERVER_SELECTION_TIMEOUT_MS
from models import PRODUCTS_COLLECTION, ORDERS_COLLECTION

logger = logging.getLogger(__name__)


class MongoStore:
    """
    Owns the MongoDB client for the lifetime of the application.

    The client is created explicitly at startup and closed at shutdown; request
    handlers only ever see the ``Database`` handle it exposes.
    """

    def __init__(self, uri: str = MONGO_URI, database_name: str = DATABASE_NAME):
        self.uri = uri
        self.database_name = database_name
        self.client: Optional[MongoClient] = None

    def connect(self) -> Database:
        """
        Create the client and return the database handle.

        Returns:
            Database handle for the configured database
        """
        self.client = MongoClient(
            self.uri,
            serverSelectionTimeoutMS=MONGO_SERVER_SELECTION_TIMEOUT_MS,
        )
        logger.info("MongoDB client created", extra={"database": self.database_name})
        return self.client[self.database_name]

    def close(self) -> None:
        """Close the client and release pooled connections."""
        if self.client is not None:
            self.client.close()
            self.client = None
            logger.info("MongoDB client closed")


def get_db(request: Request) -> Database:
    """Dependency for getting the database handle from app state."""
    return request.app.state.db


def init_db(db: Database) -> None:
    """Create the indexes used by listing and reporting queries."""
    db[PRODUCTS_COLLECTION].create_index([("created_at", ASCENDING)])
    db[PRODUCTS_COLLECTION].create_index([("category", ASCENDING)])
    db[ORDERS_COLLECTION].create_index([("created_at", DESCENDING)])
    db[ORDERS_COLLECTION].create_index([("payment_method", ASCENDING)])
    logger.info("Database indexes ensured")
