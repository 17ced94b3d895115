from __future__ import annotations

from datetime import datetime
from typing import Mapping, Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus
from .model import AttendanceRecord, AttendanceRow, RecordFilter


class AttendanceRepository(Protocol):
    def get_for_lesson_and_student(self, lesson_id: int, student_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def list_for_lesson(self, lesson_id: int) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def list_for_student(self, student_id: int) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def create(
        self,
        *,
        lesson_id: int,
        student_id: int,
        status: AttendanceStatus,
        marked_at: datetime,
        marked_by: Optional[int],
        note: Optional[str] = None,
    ) -> int:
        raise NotImplementedError

    def update(
        self,
        *,
        attendance_id: int,
        status: AttendanceStatus,
        marked_at: datetime,
        marked_by: Optional[int],
        note: Optional[str] = None,
    ) -> None:
        raise NotImplementedError

    def list_rows(self, filters: RecordFilter) -> Sequence[AttendanceRow]:
        """Joined rows, newest first."""

        raise NotImplementedError

    def count_by_status(
        self,
        *,
        student_id: Optional[int] = None,
        teacher_id: Optional[int] = None,
    ) -> Mapping[AttendanceStatus, int]:
        raise NotImplementedError
