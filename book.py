from __future__ import annotations

from typing import Optional

from bson import ObjectId
from pydantic import BaseModel, Field


class BookFields(BaseModel):
    """The editable part of a book: everything except its id."""

    name: str = ""
    author: str = ""
    cost: float = Field(ge=0)


class Book:
    """Represents a single book stored in the inventory."""

    def __init__(self, name: str, author: str, cost: float, id: Optional[str] = None) -> None:
        self.id = id
        self.name = name
        self.author = author
        self.cost = cost

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Book):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "author": self.author, "cost": self.cost}

    def to_document(self) -> dict:
        """Document shape stored in MongoDB. `_id` is left out until the store assigns one."""
        doc = {"name": self.name, "author": self.author, "cost": float(self.cost)}
        if self.id:
            doc["_id"] = ObjectId(self.id)
        return doc

    @staticmethod
    def from_fields(fields: BookFields, id: Optional[str] = None) -> "Book":
        return Book(name=fields.name, author=fields.author, cost=fields.cost, id=id)

    @staticmethod
    def from_document(doc: dict) -> "Book":
        return Book(
            name=doc.get("name", ""),
            author=doc.get("author", ""),
            cost=float(doc.get("cost", 0.0)),
            id=str(doc["_id"]),
        )
