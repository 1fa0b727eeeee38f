import logging
from typing import List, Optional

import pymongo
from bson import ObjectId
from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from book import Book, BookFields
from config import settings
from database import StoreError

logger = logging.getLogger(__name__)


class Library:
    """Book inventory backed by a single MongoDB collection.

    Every operation runs under its own deadline (`timeout` seconds, defaulting
    to `settings.mongo_timeout`). The collection handle comes from one shared
    MongoClient, which pools connections and is safe to use from many
    request threads at once.
    """

    def __init__(self, collection: Collection, timeout: Optional[float] = None) -> None:
        self.collection = collection
        self.timeout = timeout if timeout is not None else settings.mongo_timeout

    # ------------------------- Core operations ------------------------- #
    def list_books(self, timeout: Optional[float] = None) -> List[Book]:
        """Return every book in the order the store yields them."""
        try:
            with pymongo.timeout(self._deadline(timeout)):
                return [Book.from_document(doc) for doc in self.collection.find({})]
        except PyMongoError as exc:
            raise self._store_error("list books", exc) from exc

    def add_book(self, fields: BookFields, timeout: Optional[float] = None) -> str:
        """Insert a new book and return the id the store assigned to it."""
        doc = Book.from_fields(fields).to_document()
        try:
            with pymongo.timeout(self._deadline(timeout)):
                result = self.collection.insert_one(doc)
        except PyMongoError as exc:
            raise self._store_error("insert book", exc) from exc

        book_id = str(result.inserted_id)
        logger.info(f"Book added: id={book_id}")
        return book_id

    def update_book(self, book_id: str, fields: BookFields, timeout: Optional[float] = None) -> int:
        """Overwrite name, author and cost of a book. Returns the matched count (0 = not found)."""
        update = {"$set": {"name": fields.name, "author": fields.author, "cost": float(fields.cost)}}
        try:
            with pymongo.timeout(self._deadline(timeout)):
                result = self.collection.update_one({"_id": ObjectId(book_id)}, update)
        except PyMongoError as exc:
            raise self._store_error("update book", exc) from exc

        if result.matched_count == 0:
            logger.warning(f"Book to update not found: id={book_id}")
        else:
            logger.info(f"Book updated: id={book_id}")
        return result.matched_count

    def remove_book(self, book_id: str, timeout: Optional[float] = None) -> int:
        """Delete a book by id. Returns the deleted count (0 = not found)."""
        try:
            with pymongo.timeout(self._deadline(timeout)):
                result = self.collection.delete_one({"_id": ObjectId(book_id)})
        except PyMongoError as exc:
            raise self._store_error("delete book", exc) from exc

        if result.deleted_count == 0:
            logger.warning(f"Book to delete not found: id={book_id}")
        else:
            logger.info(f"Book deleted: id={book_id}")
        return result.deleted_count

    def ping(self, timeout: Optional[float] = None) -> None:
        try:
            with pymongo.timeout(self._deadline(timeout)):
                self.collection.database.command("ping")
        except PyMongoError as exc:
            raise self._store_error("ping store", exc) from exc

    # ------------------------- Utilities ------------------------- #
    def _deadline(self, timeout: Optional[float]) -> float:
        return timeout if timeout is not None else self.timeout

    @staticmethod
    def _store_error(action: str, exc: PyMongoError) -> StoreError:
        error = StoreError.from_exception(exc)
        logger.error(f"Failed to {action} ({error.kind.value}): {exc}")
        return error

    def close(self) -> None:
        """Close the client behind the collection."""
        self.collection.database.client.close()
