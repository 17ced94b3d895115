from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, Mapping, Optional, Sequence

from ..academics.model import SchoolClass
from ..academics.repository import ClassRepository
from ..attendance.repository import AttendanceRepository
from ..attendance.service import AttendanceService
from ..attendance.window import LessonTiming, WindowState, WindowStatus, evaluate_window, lesson_timing
from ..common.datetime_utils import js_day_of_week, minutes_since_midnight, minutes_to_label, now_local
from ..common.validators import require_int_range, require_min_length
from ..core.constants import (
    MAX_ATTENDANCE_WINDOW_MINUTES,
    MAX_LESSON_DURATION_MINUTES,
    MIN_ATTENDANCE_WINDOW_MINUTES,
    MIN_LESSON_DURATION_MINUTES,
    MIN_SUBJECT_LENGTH,
    MINUTES_PER_DAY,
)
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..settings.repository import SettingsRepository
from ..users.repository import TeacherDepartmentRepository, UserRepository
from ..users.teacher_scope import teacher_department_ids
from .model import Lesson
from .repository import LessonRepository

logger = logging.getLogger(__name__)


def _subject(value: Any) -> str:
    subject = (value or "").strip() if isinstance(value, str) else ""
    require_min_length(subject, "Subject", MIN_SUBJECT_LENGTH)
    return subject


def _location(value: Any) -> Optional[str]:
    text = str(value).strip() if value is not None else ""
    return text or None


def _bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)


# field -> validator for lesson updates
_FIELD_RULES: dict[str, Callable[[Any], Any]] = {
    "subject": _subject,
    "day_of_week": lambda v: require_int_range(v, "Day of week", 0, 6),
    "start_time_minutes": lambda v: require_int_range(v, "Start time", 0, MINUTES_PER_DAY - 1),
    "duration_minutes": lambda v: require_int_range(
        v, "Duration", MIN_LESSON_DURATION_MINUTES, MAX_LESSON_DURATION_MINUTES
    ),
    "attendance_window_minutes": lambda v: require_int_range(
        v, "Attendance window", MIN_ATTENDANCE_WINDOW_MINUTES, MAX_ATTENDANCE_WINDOW_MINUTES
    ),
    "location": _location,
    "is_active": _bool,
}


def lesson_to_dict(
    lesson: Lesson,
    *,
    window: Optional[WindowState] = None,
    record=None,
    timing: Optional[LessonTiming] = None,
) -> dict:
    out = {
        "lesson_id": lesson.lesson_id,
        "class_id": lesson.class_id,
        "class_name": lesson.class_name,
        "teacher_id": lesson.teacher_id,
        "teacher_name": lesson.teacher_name,
        "subject": lesson.subject,
        "day_of_week": lesson.day_of_week,
        "day_name": lesson.day_name,
        "start_time_minutes": lesson.start_time_minutes,
        "duration_minutes": lesson.duration_minutes,
        "start_time": minutes_to_label(lesson.start_time_minutes),
        "end_time": minutes_to_label(lesson.end_time_minutes),
        "location": lesson.location,
        "attendance_window_minutes": lesson.attendance_window_minutes,
        "is_active": lesson.is_active,
        "is_instant": lesson.is_instant,
        "created_at": lesson.created_at.isoformat() if lesson.created_at else None,
    }
    if window is not None:
        out["window"] = window.to_dict()
    if timing is not None:
        out["timing"] = timing.value
    if record is not None or window is not None:
        out["attendance"] = (
            {"status": record.status.value, "marked_at": record.marked_at.isoformat(), "note": record.note}
            if record
            else None
        )
    return out


def _is_today(lesson: Lesson, now: datetime, window: WindowState, timing: LessonTiming) -> bool:
    """Scheduled today, or an occurrence from yesterday still running past midnight."""

    if window.status in (WindowStatus.OPEN, WindowStatus.NOT_STARTED) or timing == LessonTiming.ONGOING:
        return True
    if lesson.is_instant:
        return lesson.created_at is not None and lesson.created_at.date() == now.date()
    return lesson.day_of_week == js_day_of_week(now.date())


def _sort_key(lesson: Lesson):
    return lesson.day_of_week, lesson.start_time_minutes, lesson.lesson_id


class LessonService:
    def __init__(
        self,
        lessons: LessonRepository,
        classes: ClassRepository,
        users: UserRepository,
        teacher_departments: TeacherDepartmentRepository,
        settings: SettingsRepository,
        attendance: AttendanceRepository,
        attendance_service: AttendanceService,
        *,
        clock: Callable[[], datetime] = now_local,
    ):
        self._lessons = lessons
        self._classes = classes
        self._users = users
        self._teacher_departments = teacher_departments
        self._settings = settings
        self._attendance = attendance
        self._attendance_service = attendance_service
        self._clock = clock

    def get_lesson(self, lesson_id: int) -> Lesson:
        lesson = self._lessons.get_by_id(int(lesson_id))
        if not lesson:
            raise NotFoundError("Lesson not found")
        return lesson

    def _get_class(self, class_id) -> SchoolClass:
        school_class = self._classes.get_by_id(require_int_range(class_id, "Class", 1))
        if not school_class:
            raise NotFoundError("Class not found")
        return school_class

    def _resolve_teacher(self, *, current_role: Role, current_user_id: int, teacher_id) -> int:
        if current_role == Role.TEACHER:
            return int(current_user_id)
        if current_role != Role.ADMIN:
            raise AuthorizationError("Only teachers and administrators can manage lessons")
        if teacher_id in (None, ""):
            raise ValidationError("Teacher is required")
        teacher = self._users.get_by_id(require_int_range(teacher_id, "Teacher", 1))
        if not teacher or teacher.role != Role.TEACHER:
            raise NotFoundError("Teacher not found")
        return teacher.user_id

    def _ensure_teaches_class(self, teacher_id: int, school_class: SchoolClass) -> None:
        if school_class.dept_id not in teacher_department_ids(self._users, self._teacher_departments, teacher_id):
            raise AuthorizationError("Teacher does not teach in this class's department")

    @staticmethod
    def _ensure_can_manage(lesson: Lesson, *, current_role: Role, current_user_id: int) -> None:
        if current_role == Role.ADMIN:
            return
        if current_role == Role.TEACHER and lesson.teacher_id == int(current_user_id):
            return
        raise AuthorizationError("You can only manage your own lessons")

    def create_lesson(
        self,
        *,
        current_role: Role,
        current_user_id: int,
        class_id,
        subject: str,
        day_of_week,
        start_time_minutes,
        duration_minutes=None,
        attendance_window_minutes=None,
        location: Optional[str] = None,
        is_active: bool = True,
        teacher_id=None,
    ) -> int:
        settings = self._settings.get()
        teacher_id = self._resolve_teacher(current_role=current_role, current_user_id=current_user_id, teacher_id=teacher_id)
        school_class = self._get_class(class_id)
        self._ensure_teaches_class(teacher_id, school_class)

        lesson_id = self._lessons.create(
            class_id=school_class.class_id,
            teacher_id=teacher_id,
            subject=_FIELD_RULES["subject"](subject),
            day_of_week=_FIELD_RULES["day_of_week"](day_of_week),
            start_time_minutes=_FIELD_RULES["start_time_minutes"](start_time_minutes),
            duration_minutes=_FIELD_RULES["duration_minutes"](
                settings.default_lesson_duration if duration_minutes in (None, "") else duration_minutes
            ),
            attendance_window_minutes=_FIELD_RULES["attendance_window_minutes"](
                settings.default_attendance_window
                if attendance_window_minutes in (None, "")
                else attendance_window_minutes
            ),
            location=_location(location),
            is_active=_bool(is_active),
            is_instant=False,
            created_at=self._clock(),
        )
        logger.info("Lesson created: %s for class %s by teacher %s", lesson_id, school_class.class_id, teacher_id)
        return lesson_id

    def create_instant_lesson(
        self,
        *,
        current_role: Role,
        current_user_id: int,
        class_id,
        subject: str,
        location: Optional[str] = None,
        duration_minutes=None,
        attendance_window_minutes=None,
        teacher_id=None,
        now: datetime | None = None,
    ) -> int:
        """Ad-hoc lesson starting now; attendance opens immediately."""

        now = now or self._clock()
        settings = self._settings.get()
        teacher_id = self._resolve_teacher(current_role=current_role, current_user_id=current_user_id, teacher_id=teacher_id)
        school_class = self._get_class(class_id)
        self._ensure_teaches_class(teacher_id, school_class)

        lesson_id = self._lessons.create(
            class_id=school_class.class_id,
            teacher_id=teacher_id,
            subject=_FIELD_RULES["subject"](subject),
            day_of_week=js_day_of_week(now.date()),
            start_time_minutes=minutes_since_midnight(now),
            duration_minutes=_FIELD_RULES["duration_minutes"](
                settings.default_lesson_duration if duration_minutes in (None, "") else duration_minutes
            ),
            attendance_window_minutes=_FIELD_RULES["attendance_window_minutes"](
                settings.default_attendance_window
                if attendance_window_minutes in (None, "")
                else attendance_window_minutes
            ),
            location=_location(location),
            is_active=True,
            is_instant=True,
            created_at=now,
        )
        logger.info("Instant lesson created: %s for class %s", lesson_id, school_class.class_id)
        return lesson_id

    def update_lesson(
        self,
        *,
        current_role: Role,
        current_user_id: int,
        lesson_id: int,
        changes: Mapping[str, Any],
    ) -> Lesson:
        lesson = self.get_lesson(lesson_id)
        self._ensure_can_manage(lesson, current_role=current_role, current_user_id=current_user_id)

        allowed = set(_FIELD_RULES) | {"class_id"}
        unknown = sorted(set(changes) - allowed)
        if unknown:
            raise ValidationError(f"Unknown lesson fields: {', '.join(unknown)}")

        cleaned = {name: _FIELD_RULES[name](value) for name, value in changes.items() if name in _FIELD_RULES}
        if "class_id" in changes:
            school_class = self._get_class(changes["class_id"])
            self._ensure_teaches_class(lesson.teacher_id, school_class)
            cleaned["class_id"] = school_class.class_id

        self._lessons.update(lesson.lesson_id, cleaned)
        logger.info("Lesson %s updated: %s", lesson.lesson_id, ", ".join(sorted(cleaned)))
        return self.get_lesson(lesson.lesson_id)

    def set_active(self, *, current_role: Role, current_user_id: int, lesson_id: int, is_active: bool) -> Lesson:
        return self.update_lesson(
            current_role=current_role,
            current_user_id=current_user_id,
            lesson_id=lesson_id,
            changes={"is_active": is_active},
        )

    def delete_lesson(self, *, current_role: Role, current_user_id: int, lesson_id: int) -> None:
        lesson = self.get_lesson(lesson_id)
        self._ensure_can_manage(lesson, current_role=current_role, current_user_id=current_user_id)
        self._lessons.delete(lesson.lesson_id)
        logger.info("Lesson deleted: %s", lesson.lesson_id)

    # Listings

    def all_lessons(self) -> Sequence[Lesson]:
        return self._lessons.list()

    def lessons_for_teacher(self, teacher_id: int) -> Sequence[Lesson]:
        return self._lessons.list(teacher_id=int(teacher_id))

    def lessons_for_class(self, class_id: int) -> Sequence[Lesson]:
        return self._lessons.list(class_id=int(class_id))

    def _student_class_id(self, student_id: int) -> Optional[int]:
        student = self._users.get_by_id(int(student_id))
        if not student or student.role != Role.STUDENT:
            raise NotFoundError("Student not found")
        return student.class_id

    def _student_entries(self, student_id: int, now: datetime) -> list[tuple[dict, bool]]:
        class_id = self._student_class_id(student_id)
        if class_id is None:
            return []

        settings = self._settings.get()
        records = {r.lesson_id: r for r in self._attendance.list_for_student(int(student_id))}
        out = []
        for lesson in sorted(self._lessons.list(class_id=class_id, active_only=True), key=_sort_key):
            window = evaluate_window(
                lesson,
                now,
                already_marked=lesson.lesson_id in records,
                auto_disable=settings.auto_disable_attendance,
                default_window_minutes=settings.default_attendance_window,
            )
            timing = lesson_timing(lesson, now)
            item = lesson_to_dict(lesson, window=window, record=records.get(lesson.lesson_id), timing=timing)
            out.append((item, _is_today(lesson, now, window, timing)))
        return out

    def lessons_for_student(self, student_id: int, *, now: datetime | None = None) -> list[dict]:
        """Active lessons of the student's class with their record and window state."""

        return [item for item, _ in self._student_entries(student_id, now or self._clock())]

    def todays_lessons(self, *, current_role: Role, current_user_id: int, now: datetime | None = None) -> list[dict]:
        now = now or self._clock()
        if current_role == Role.STUDENT:
            return [item for item, today in self._student_entries(current_user_id, now) if today]

        if current_role == Role.TEACHER:
            lessons = self._lessons.list(teacher_id=int(current_user_id))
        else:
            lessons = self._lessons.list()

        settings = self._settings.get()
        out = []
        for lesson in sorted(lessons, key=_sort_key):
            window = self._attendance_service.window_for(lesson, now=now, settings=settings)
            timing = lesson_timing(lesson, now)
            if _is_today(lesson, now, window, timing):
                out.append(lesson_to_dict(lesson, window=window, timing=timing))
        return out

    def categorise_for_student(self, student_id: int, *, now: datetime | None = None) -> dict[str, list[dict]]:
        groups: dict[str, list[dict]] = {"today": [], "upcoming": [], "past": []}
        for item, today in self._student_entries(student_id, now or self._clock()):
            if today:
                groups["today"].append(item)
            elif item["timing"] == LessonTiming.UPCOMING.value:
                groups["upcoming"].append(item)
            else:
                groups["past"].append(item)
        return groups
