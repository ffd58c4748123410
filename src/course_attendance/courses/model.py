from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class CourseSchedule:
    day_of_week: int  # 0-6, Sunday first
    start_time: str  # HH:MM
    end_time: str  # HH:MM

    def to_dict(self) -> dict:
        return {"dayOfWeek": self.day_of_week, "startTime": self.start_time, "endTime": self.end_time}


@dataclass(frozen=True)
class Course:
    """Domain entity: a course that attendance sessions are taken for."""

    course_id: str
    course_name: str
    course_code: str
    teacher: str
    semester: str
    schedule: CourseSchedule
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "_id": self.course_id,
            "courseName": self.course_name,
            "courseCode": self.course_code,
            "teacher": self.teacher,
            "semester": self.semester,
            "schedule": self.schedule.to_dict(),
            "isActive": self.is_active,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }
