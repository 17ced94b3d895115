from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Optional

from ..core.constants import (
    DEFAULT_ATTENDANCE_WINDOW_MINUTES,
    DEFAULT_LESSON_DURATION_MINUTES,
    DEFAULT_LOW_ATTENDANCE_THRESHOLD,
)


@dataclass(frozen=True)
class SystemSettings:
    """School-wide settings (single row)."""

    default_attendance_window: int = DEFAULT_ATTENDANCE_WINDOW_MINUTES
    default_lesson_duration: int = DEFAULT_LESSON_DURATION_MINUTES
    auto_disable_attendance: bool = True
    allow_teacher_override: bool = True
    email_notifications: bool = True
    attendance_reminders: bool = True
    low_attendance_alerts: bool = True
    low_attendance_threshold: int = DEFAULT_LOW_ATTENDANCE_THRESHOLD
    school_name: Optional[str] = None
    school_logo: Optional[str] = None
    letterhead: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
