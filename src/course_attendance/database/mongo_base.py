from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

from bson import ObjectId
from bson.errors import InvalidId
from pymongo.errors import DuplicateKeyError

from ..core.exceptions import ConflictError


def to_object_id(value: Any) -> Optional[ObjectId]:
    """Parse a document id; None when the value is not a valid ObjectId."""

    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(str(value))
    except (InvalidId, TypeError):
        return None


def doc_id(doc: Dict[str, Any]) -> str:
    return str(doc["_id"])


@contextmanager
def unique_guard(message: str) -> Iterator[None]:
    """Turn a unique-index violation into a ConflictError."""

    try:
        yield
    except DuplicateKeyError:
        raise ConflictError(message)
