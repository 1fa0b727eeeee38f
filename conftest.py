import threading
from typing import Dict, List, Optional

import mongomock
import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

from api import create_app
from book import Book, BookFields
from database import StoreError, StoreErrorKind
from library import Library
from pages import PageRenderer


class InMemoryLibrary:
    """Test double with the same interface as library.Library."""

    def __init__(self) -> None:
        self.docs: Dict[str, dict] = {}
        self.calls: List[str] = []
        self.fail_with: Optional[StoreErrorKind] = None
        self._lock = threading.Lock()

    def _record(self, name: str) -> None:
        self.calls.append(name)
        if self.fail_with is not None:
            raise StoreError(self.fail_with, "server selection timed out after 5000 ms")

    def list_books(self, timeout=None) -> List[Book]:
        with self._lock:
            self._record("list_books")
            return [Book.from_document(doc) for doc in self.docs.values()]

    def add_book(self, fields: BookFields, timeout=None) -> str:
        with self._lock:
            self._record("add_book")
            oid = ObjectId()
            self.docs[str(oid)] = {"_id": oid, **fields.model_dump()}
            return str(oid)

    def update_book(self, book_id: str, fields: BookFields, timeout=None) -> int:
        with self._lock:
            self._record("update_book")
            if book_id not in self.docs:
                return 0
            self.docs[book_id].update(fields.model_dump())
            return 1

    def remove_book(self, book_id: str, timeout=None) -> int:
        with self._lock:
            self._record("remove_book")
            return 1 if self.docs.pop(book_id, None) is not None else 0

    def ping(self, timeout=None) -> None:
        self._record("ping")

    def close(self) -> None:
        pass


@pytest.fixture
def store():
    return InMemoryLibrary()


@pytest.fixture
def renderer():
    return PageRenderer()


@pytest.fixture
def client(store, renderer):
    # Dependencies are injected, so no MongoDB is needed
    with TestClient(create_app(library=store, renderer=renderer)) as test_client:
        yield test_client


@pytest.fixture
def books_collection():
    # Each test gets its own in-process MongoDB
    return mongomock.MongoClient()["bookstore"]["books"]


@pytest.fixture
def lib(books_collection):
    lib = Library(books_collection, timeout=5)
    yield lib
    lib.close()


@pytest.fixture
def lib_client(lib, renderer):
    with TestClient(create_app(library=lib, renderer=renderer)) as test_client:
        yield test_client
