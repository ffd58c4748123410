from __future__ import annotations

from typing import Iterable, Optional, Protocol, Sequence

from .model import Student


class StudentRepository(Protocol):
    """Student directory port.

    Note (DIP): services depend on this interface, not on a concrete database.
    """

    def get_by_id(self, ref: str) -> Optional[Student]:
        raise NotImplementedError

    def get_by_student_id(self, student_id: str) -> Optional[Student]:
        raise NotImplementedError

    def get_by_name(self, name: str) -> Optional[Student]:
        raise NotImplementedError

    def list_by_ids(self, refs: Iterable[str]) -> Sequence[Student]:
        raise NotImplementedError

    def list_by_student_ids(self, student_ids: Iterable[str]) -> Sequence[Student]:
        raise NotImplementedError

    def list_all(self) -> Sequence[Student]:
        raise NotImplementedError

    def create(
        self,
        *,
        student_id: str,
        name: str,
        department: str,
        class_name: str,
        email: str,
    ) -> Student:
        raise NotImplementedError
