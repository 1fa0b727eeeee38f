from unittest.mock import MagicMock

import pytest
from bson import ObjectId
from pymongo.errors import AutoReconnect, ExecutionTimeout, OperationFailure, ServerSelectionTimeoutError

import database
from book import Book, BookFields
from database import StoreError, StoreErrorKind
from library import Library


@pytest.fixture
def collection():
    return MagicMock()


@pytest.fixture
def lib(collection):
    return Library(collection, timeout=5)


def test_list_books_empty(lib, collection):
    collection.find.return_value = []
    assert lib.list_books() == []
    collection.find.assert_called_once_with({})


def test_list_books_decodes_documents(lib, collection):
    oid = ObjectId()
    collection.find.return_value = [{"_id": oid, "name": "Ulysses", "author": "James Joyce", "cost": 15}]
    books = lib.list_books()
    assert books == [Book("Ulysses", "James Joyce", 15.0, id=str(oid))]
    assert isinstance(books[0].cost, float)


def test_add_book_returns_generated_id(lib, collection):
    oid = ObjectId()
    collection.insert_one.return_value = MagicMock(inserted_id=oid)

    book_id = lib.add_book(BookFields(name="Sapiens", author="Yuval Noah Harari", cost=20.0))

    assert book_id == str(oid)
    doc = collection.insert_one.call_args[0][0]
    assert doc == {"name": "Sapiens", "author": "Yuval Noah Harari", "cost": 20.0}
    assert "_id" not in doc


def test_update_book_overwrites_all_fields(lib, collection):
    oid = ObjectId()
    collection.update_one.return_value = MagicMock(matched_count=1)

    matched = lib.update_book(str(oid), BookFields(name="New", author="Someone", cost=1.5))

    assert matched == 1
    collection.update_one.assert_called_once_with(
        {"_id": oid},
        {"$set": {"name": "New", "author": "Someone", "cost": 1.5}},
    )


def test_update_book_not_found(lib, collection):
    collection.update_one.return_value = MagicMock(matched_count=0)
    assert lib.update_book(str(ObjectId()), BookFields(name="A", author="B", cost=0)) == 0


def test_remove_book(lib, collection):
    oid = ObjectId()
    collection.delete_one.return_value = MagicMock(deleted_count=1)
    assert lib.remove_book(str(oid)) == 1
    collection.delete_one.assert_called_once_with({"_id": oid})


def test_remove_book_not_found(lib, collection):
    collection.delete_one.return_value = MagicMock(deleted_count=0)
    assert lib.remove_book(str(ObjectId())) == 0


@pytest.mark.parametrize(
    "exc, kind",
    [
        (ServerSelectionTimeoutError("No servers found yet"), StoreErrorKind.TIMEOUT),
        (ExecutionTimeout("operation exceeded time limit", code=50), StoreErrorKind.TIMEOUT),
        (AutoReconnect("connection closed"), StoreErrorKind.CONNECTION_FAILURE),
        (OperationFailure("not authorized", code=13), StoreErrorKind.DRIVER),
    ],
)
def test_driver_errors_become_store_errors(lib, collection, exc, kind):
    collection.find.side_effect = exc
    with pytest.raises(StoreError) as info:
        lib.list_books()
    assert info.value.kind == kind


def test_each_call_runs_under_its_own_deadline(lib, collection, monkeypatch):
    seen = []
    real_timeout = database.pymongo.timeout

    def recording_timeout(seconds):
        seen.append(seconds)
        return real_timeout(seconds)

    monkeypatch.setattr("library.pymongo.timeout", recording_timeout)
    collection.find.return_value = []
    collection.delete_one.return_value = MagicMock(deleted_count=0)

    lib.list_books()
    lib.remove_book(str(ObjectId()), timeout=0.5)

    assert seen == [5, 0.5]


def test_connect_fails_fast(monkeypatch):
    client = MagicMock()
    client.admin.command.side_effect = ServerSelectionTimeoutError("localhost:27017: connection refused")
    monkeypatch.setattr(database, "MongoClient", MagicMock(return_value=client))

    with pytest.raises(StoreError) as info:
        database.connect("mongodb://localhost:27017", timeout=0.1)

    assert info.value.kind == StoreErrorKind.TIMEOUT
    client.close.assert_called_once()


def test_connect_pings_server(monkeypatch):
    client = MagicMock()
    factory = MagicMock(return_value=client)
    monkeypatch.setattr(database, "MongoClient", factory)

    assert database.connect("mongodb://db:27017", timeout=2) is client
    client.admin.command.assert_called_once_with("ping")
    assert factory.call_args.kwargs["serverSelectionTimeoutMS"] == 2000
