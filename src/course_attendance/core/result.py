"""Tagged result returned at the operation boundary.

Services raise ``DomainError`` subclasses. Controllers call them through
``run_operation`` so every request ends in an ``Ok`` or an ``Err`` and no
exception escapes past the handler.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Generic, TypeVar, Union

from .exceptions import DomainError, ErrorKind

logger = logging.getLogger(__name__)

T = TypeVar("T")

INTERNAL_ERROR_MESSAGE = "Internal server error"


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err:
    kind: ErrorKind
    message: str

    @property
    def ok(self) -> bool:
        return False


Result = Union[Ok[T], Err]


def run_operation(fn: Callable[[], T], *, name: str = "operation") -> Result[T]:
    try:
        return Ok(fn())
    except DomainError as e:
        return Err(e.kind, str(e))
    except Exception:
        logger.exception("%s failed", name)
        return Err(ErrorKind.INTERNAL, INTERNAL_ERROR_MESSAGE)
