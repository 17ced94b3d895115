from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..common.datetime_utils import day_name, minutes_to_label


@dataclass(frozen=True)
class Lesson:
    """A weekly (or one-off instant) lesson of a class.

    `day_of_week` uses Sunday=0 ... Saturday=6 and `start_time_minutes` counts
    minutes since midnight. Instant lessons happen once, on `created_at`'s date.
    """

    lesson_id: int
    class_id: int
    teacher_id: int
    subject: str
    day_of_week: int
    start_time_minutes: int
    duration_minutes: int
    attendance_window_minutes: int
    location: Optional[str] = None
    is_active: bool = True
    is_instant: bool = False
    created_at: Optional[datetime] = None
    class_name: Optional[str] = None
    teacher_name: Optional[str] = None

    @property
    def end_time_minutes(self) -> int:
        return self.start_time_minutes + self.duration_minutes

    @property
    def day_name(self) -> str:
        return day_name(self.day_of_week)

    @property
    def time_label(self) -> str:
        return f"{minutes_to_label(self.start_time_minutes)} - {minutes_to_label(self.end_time_minutes)}"
