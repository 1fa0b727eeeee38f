import math
import re
from enum import Enum
from typing import Mapping, Optional

from bson import ObjectId

from book import BookFields

# Plain base-10 notation only: no "inf"/"nan", hex floats or digit separators.
_DECIMAL_RE = re.compile(r"[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?")


class ValidationReason(str, Enum):
    INVALID_COST = "invalid_cost"
    INVALID_ID = "invalid_id"
    MISSING_ID = "missing_id"


_MESSAGES = {
    ValidationReason.INVALID_COST: "Invalid cost",
    ValidationReason.INVALID_ID: "Invalid book ID",
    ValidationReason.MISSING_ID: "Invalid book ID",
}


class BookFormError(ValueError):
    """A submitted form could not be decoded into a book."""

    def __init__(self, reason: ValidationReason) -> None:
        super().__init__(_MESSAGES[reason])
        self.reason = reason


class CostValidator:
    """Parses the cost field of a book form."""

    @staticmethod
    def parse_cost(raw: Optional[str]) -> float:
        if raw is None or not _DECIMAL_RE.fullmatch(raw):
            raise BookFormError(ValidationReason.INVALID_COST)
        cost = float(raw)
        # Exponents can overflow to inf. Cost is never negative.
        if not math.isfinite(cost) or cost < 0:
            raise BookFormError(ValidationReason.INVALID_COST)
        # "-0" parses to -0.0; adding 0.0 yields +0.0
        return cost + 0.0


class BookIdValidator:
    """Checks book ids against the store's ObjectId format."""

    @staticmethod
    def is_valid_id(raw: str) -> bool:
        return isinstance(raw, str) and ObjectId.is_valid(raw)

    @staticmethod
    def parse_id(raw: Optional[str]) -> str:
        if not raw:
            raise BookFormError(ValidationReason.MISSING_ID)
        if not BookIdValidator.is_valid_id(raw):
            raise BookFormError(ValidationReason.INVALID_ID)
        return raw.lower()


def decode_book_fields(form: Mapping[str, str]) -> BookFields:
    """Build the editable fields of a book from raw form values.

    Name and author are taken as-is (an absent field is an empty string);
    only the cost is checked.
    """
    cost = CostValidator.parse_cost(form.get("cost"))
    return BookFields(name=form.get("name", ""), author=form.get("author", ""), cost=cost)


def decode_book_id(form: Mapping[str, str]) -> str:
    return BookIdValidator.parse_id(form.get("id"))
