from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from ..students.model import Student


@dataclass(frozen=True)
class Enrollment:
    """Domain entity: one student enrolled in one course."""

    enrollment_id: str
    course_id: str
    student_ref: str
    enrolled_at: datetime

    def to_dict(self) -> dict:
        return {
            "_id": self.enrollment_id,
            "courseId": self.course_id,
            "studentId": self.student_ref,
            "enrolledAt": self.enrolled_at.isoformat(),
        }


@dataclass(frozen=True)
class EnrolledStudent:
    """Read-model: an enrollment joined with its directory record."""

    enrollment: Enrollment
    student: Optional[Student]

    def to_dict(self) -> dict:
        data = self.enrollment.to_dict()
        data["studentInfo"] = self.student.to_dict() if self.student else None
        return data


@dataclass
class ImportSummary:
    enrolled: list[str] = field(default_factory=list)
    already_enrolled: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)

    @property
    def message(self) -> str:
        parts = []
        if self.enrolled:
            parts.append(f"{len(self.enrolled)} students enrolled")
        if self.already_enrolled:
            parts.append(f"{len(self.already_enrolled)} already enrolled")
        if self.failed:
            parts.append(f"{len(self.failed)} failed")
        return ", ".join(parts)

    def to_dict(self) -> dict:
        return {
            "success": True,
            "message": self.message,
            "enrolledCount": len(self.enrolled),
            "alreadyEnrolledCount": len(self.already_enrolled),
            "failedCount": len(self.failed),
            "details": {
                "enrolled": self.enrolled,
                "alreadyEnrolled": self.already_enrolled,
                "failed": self.failed,
            },
        }


@dataclass
class CsvImportSummary:
    success_count: int = 0
    failure_count: int = 0
    errors: list[str] = field(default_factory=list)

    def fail(self, message: str) -> None:
        self.failure_count += 1
        self.errors.append(message)

    @property
    def message(self) -> str:
        return f"Imported {self.success_count} students, {self.failure_count} failed"

    def to_dict(self) -> dict:
        return {
            "successCount": self.success_count,
            "failureCount": self.failure_count,
            "errors": self.errors,
            "message": self.message,
        }
