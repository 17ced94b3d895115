from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable, Mapping, Optional, Protocol, Sequence

from .model import Lesson

UPDATABLE_LESSON_COLUMNS = frozenset(
    {
        "class_id",
        "teacher_id",
        "subject",
        "day_of_week",
        "start_time_minutes",
        "duration_minutes",
        "location",
        "attendance_window_minutes",
        "is_active",
    }
)


class LessonRepository(Protocol):
    def get_by_id(self, lesson_id: int) -> Optional[Lesson]:
        raise NotImplementedError

    def list(
        self,
        *,
        class_id: Optional[int] = None,
        teacher_id: Optional[int] = None,
        class_ids: Optional[Iterable[int]] = None,
        active_only: bool = False,
    ) -> Sequence[Lesson]:
        raise NotImplementedError

    def create(
        self,
        *,
        class_id: int,
        teacher_id: int,
        subject: str,
        day_of_week: int,
        start_time_minutes: int,
        duration_minutes: int,
        attendance_window_minutes: int,
        location: Optional[str],
        is_active: bool,
        is_instant: bool,
        created_at: datetime,
    ) -> int:
        raise NotImplementedError

    def update(self, lesson_id: int, changes: Mapping[str, Any]) -> None:
        raise NotImplementedError

    def delete(self, lesson_id: int) -> bool:
        raise NotImplementedError

    def count(self) -> int:
        raise NotImplementedError
