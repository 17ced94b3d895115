from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import AttendanceStatus


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one student's attendance for one lesson."""

    attendance_id: int
    lesson_id: int
    student_id: int
    status: AttendanceStatus
    marked_at: datetime
    marked_by: Optional[int] = None
    note: Optional[str] = None


@dataclass(frozen=True)
class AttendanceRow:
    """Read-model for listings/exports (record joined with lesson, class and people)."""

    attendance_id: int
    lesson_id: int
    student_id: int
    student_name: str
    username: str
    class_id: int
    class_name: Optional[str]
    subject: str
    teacher_id: int
    teacher_name: Optional[str]
    day_of_week: int
    start_time_minutes: int
    status: AttendanceStatus
    marked_at: datetime
    note: Optional[str] = None


@dataclass(frozen=True)
class RecordFilter:
    """Optional filters for attendance listings; `None` means no filter."""

    class_id: Optional[int] = None
    lesson_id: Optional[int] = None
    student_id: Optional[int] = None
    teacher_id: Optional[int] = None
    status: Optional[AttendanceStatus] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    search: Optional[str] = None
    limit: Optional[int] = None
