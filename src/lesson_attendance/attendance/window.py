"""Attendance-window eligibility.

Every place that needs to know whether a student may mark attendance
(self-marking, staff marking, lesson listings, dashboards) calls
`evaluate_window`.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Optional

from ..common.datetime_utils import (
    at_minutes,
    iso_or_none,
    js_day_of_week,
    minutes_since_midnight,
    truncate_to_minute,
)
from ..core.constants import DEFAULT_ATTENDANCE_WINDOW_MINUTES
from ..lessons.model import Lesson


class WindowStatus(str, Enum):
    INACTIVE = "inactive"
    NOT_TODAY = "not_today"
    NOT_STARTED = "not_started"
    OPEN = "open"
    CLOSED = "closed"
    ALREADY_MARKED = "already_marked"


class LessonTiming(str, Enum):
    UPCOMING = "upcoming"
    ONGOING = "ongoing"
    PAST = "past"


_LABELS = {
    WindowStatus.INACTIVE: "Lesson is inactive",
    WindowStatus.NOT_TODAY: "Lesson is not scheduled today",
    WindowStatus.NOT_STARTED: "Attendance window has not opened yet",
    WindowStatus.CLOSED: "Attendance window has closed",
    WindowStatus.ALREADY_MARKED: "Attendance already marked",
}


@dataclass(frozen=True)
class WindowState:
    status: WindowStatus
    opens_at: Optional[datetime] = None
    closes_at: Optional[datetime] = None
    remaining_minutes: int = 0

    @property
    def can_mark(self) -> bool:
        return self.status == WindowStatus.OPEN

    @property
    def label(self) -> str:
        if self.status == WindowStatus.OPEN:
            unit = "minute" if self.remaining_minutes == 1 else "minutes"
            return f"Open ({self.remaining_minutes} {unit} left)"
        return _LABELS[self.status]

    def to_dict(self) -> dict:
        return {
            "status": self.status.value,
            "can_mark": self.can_mark,
            "label": self.label,
            "opens_at": iso_or_none(self.opens_at),
            "closes_at": iso_or_none(self.closes_at),
            "remaining_minutes": self.remaining_minutes,
        }


def occurrence_starts(lesson: Lesson, now: datetime) -> list[datetime]:
    """Start datetimes of the occurrences relevant to `now`, oldest first.

    Weekly lessons look at yesterday as well as today so a window that runs
    past midnight is still found.
    """

    if lesson.is_instant:
        if lesson.created_at is None:
            return []
        created = truncate_to_minute(lesson.created_at)
        scheduled = at_minutes(created.date(), lesson.start_time_minutes)
        return [max(created, scheduled)]

    today = now.date()
    days: tuple[date, ...] = (today - timedelta(days=1), today)
    return [at_minutes(d, lesson.start_time_minutes) for d in days if js_day_of_week(d) == lesson.day_of_week]


def window_closes_at(
    lesson: Lesson,
    start: datetime,
    *,
    auto_disable: bool = True,
    default_window_minutes: int = DEFAULT_ATTENDANCE_WINDOW_MINUTES,
) -> datetime:
    window = lesson.attendance_window_minutes or default_window_minutes
    closes_at = start + timedelta(minutes=int(window))
    if not auto_disable:
        closes_at = max(closes_at, start + timedelta(minutes=lesson.duration_minutes))
    return closes_at


def evaluate_window(
    lesson: Lesson,
    now: datetime,
    *,
    already_marked: bool = False,
    auto_disable: bool = True,
    default_window_minutes: int = DEFAULT_ATTENDANCE_WINDOW_MINUTES,
) -> WindowState:
    """Decide whether attendance can be marked for `lesson` at `now`.

    The window is `[start, start + window]` with both ends inclusive, evaluated
    at minute resolution. With `auto_disable` off the window stays open until the
    lesson ends when that is later.
    """

    if not lesson.is_active:
        return WindowState(WindowStatus.INACTIVE)
    if already_marked:
        return WindowState(WindowStatus.ALREADY_MARKED)

    now = truncate_to_minute(now)
    starts = occurrence_starts(lesson, now)

    def closes(start: datetime) -> datetime:
        return window_closes_at(
            lesson, start, auto_disable=auto_disable, default_window_minutes=default_window_minutes
        )

    started = [s for s in starts if s <= now]
    if started:
        start = started[-1]
        closes_at = closes(start)
        if now <= closes_at:
            remaining = int((closes_at - now).total_seconds() // 60)
            return WindowState(WindowStatus.OPEN, start, closes_at, remaining)

    pending = [s for s in starts if s > now]
    if pending and (lesson.is_instant or pending[0].date() == now.date()):
        return WindowState(WindowStatus.NOT_STARTED, pending[0], closes(pending[0]))

    if started and (lesson.is_instant or started[-1].date() == now.date()):
        return WindowState(WindowStatus.CLOSED, started[-1], closes(started[-1]))

    if lesson.is_instant and not starts:
        return WindowState(WindowStatus.CLOSED)
    return WindowState(WindowStatus.NOT_TODAY)


def lesson_timing(lesson: Lesson, now: datetime) -> LessonTiming:
    """Where the lesson sits relative to `now` within the current week (Sunday first).

    A weekly occurrence that started yesterday and has not ended yet is ongoing.
    """

    now = truncate_to_minute(now)
    now_minutes = minutes_since_midnight(now)

    if lesson.is_instant and lesson.created_at is not None:
        start = occurrence_starts(lesson, now)[0]
        end = start + timedelta(minutes=lesson.duration_minutes)
        if now < start:
            return LessonTiming.UPCOMING
        return LessonTiming.ONGOING if now <= end else LessonTiming.PAST

    for start in occurrence_starts(lesson, now):
        if start <= now <= start + timedelta(minutes=lesson.duration_minutes):
            return LessonTiming.ONGOING

    today = js_day_of_week(now.date())
    if lesson.day_of_week > today:
        return LessonTiming.UPCOMING
    if lesson.day_of_week < today:
        return LessonTiming.PAST
    if now_minutes < lesson.start_time_minutes:
        return LessonTiming.UPCOMING
    return LessonTiming.PAST
