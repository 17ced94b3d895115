from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User roles used for authorization."""

    ADMIN = "admin"
    TEACHER = "teacher"
    STUDENT = "student"


class AttendanceStatus(str, Enum):
    """Attendance status stored in the database."""

    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"


STAFF_ROLES = frozenset({Role.ADMIN, Role.TEACHER})
