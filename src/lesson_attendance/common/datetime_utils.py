from __future__ import annotations

from datetime import date, datetime, time, timedelta

DAY_NAMES = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def truncate_to_minute(value: datetime) -> datetime:
    return value.replace(second=0, microsecond=0)


def js_day_of_week(value: date) -> int:
    """Day of week with Sunday=0 ... Saturday=6 (lessons are stored this way)."""
    return (value.weekday() + 1) % 7


def day_name(day_of_week: int) -> str:
    return DAY_NAMES[int(day_of_week) % 7]


def at_minutes(day: date, minutes: int) -> datetime:
    """Datetime for `minutes` past midnight on `day`."""
    return datetime.combine(day, time()) + timedelta(minutes=int(minutes))


def minutes_since_midnight(value: datetime) -> int:
    return value.hour * 60 + value.minute


def minutes_to_label(minutes: int) -> str:
    """Format minutes since midnight as a 12-hour clock label, e.g. 570 -> '9:30 AM'."""
    minutes = int(minutes) % (24 * 60)
    hours, mins = divmod(minutes, 60)
    suffix = "AM" if hours < 12 else "PM"
    display = hours % 12 or 12
    return f"{display}:{mins:02d} {suffix}"


def iso_or_none(value: datetime | date | None) -> str | None:
    return value.isoformat() if value is not None else None
