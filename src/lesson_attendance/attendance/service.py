from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Callable, Iterable, Optional

from ..common.datetime_utils import now_local
from ..core.enums import AttendanceStatus, Role
from ..core.exceptions import AuthorizationError, DomainError, NotFoundError, ValidationError
from ..lessons.model import Lesson
from ..lessons.repository import LessonRepository
from ..settings.model import SystemSettings
from ..settings.repository import SettingsRepository
from ..users.model import User
from ..users.repository import UserRepository
from .factory import MarkingStrategyFactory
from .model import AttendanceRecord, AttendanceRow, RecordFilter
from .repository import AttendanceRepository
from .window import WindowState, evaluate_window

logger = logging.getLogger(__name__)


def parse_status(value: object) -> AttendanceStatus:
    if isinstance(value, AttendanceStatus):
        return value
    try:
        return AttendanceStatus(str(value).strip().lower())
    except ValueError:
        allowed = ", ".join(s.value for s in AttendanceStatus)
        raise ValidationError(f"Invalid attendance status {value!r} (expected one of: {allowed})") from None


@dataclass
class BulkResult:
    successful: int = 0
    failed: int = 0
    errors: dict[int, str] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "successful": self.successful,
            "failed": self.failed,
            "errors": [{"student_id": sid, "message": msg} for sid, msg in self.errors.items()],
        }


class AttendanceService:
    def __init__(
        self,
        attendance: AttendanceRepository,
        lessons: LessonRepository,
        users: UserRepository,
        settings: SettingsRepository,
        *,
        strategy_factory: MarkingStrategyFactory | None = None,
        clock: Callable[[], datetime] = now_local,
    ):
        self._attendance = attendance
        self._lessons = lessons
        self._users = users
        self._settings = settings
        self._factory = strategy_factory or MarkingStrategyFactory()
        self._clock = clock

    def _get_lesson(self, lesson_id: int) -> Lesson:
        lesson = self._lessons.get_by_id(int(lesson_id))
        if not lesson:
            raise NotFoundError("Lesson not found")
        return lesson

    def _get_student(self, student_id: int) -> User:
        student = self._users.get_by_id(int(student_id))
        if not student or student.role != Role.STUDENT:
            raise NotFoundError("Student not found")
        return student

    @staticmethod
    def _ensure_staff_access(lesson: Lesson, *, current_role: Role, current_user_id: int) -> None:
        if current_role == Role.ADMIN:
            return
        if current_role == Role.TEACHER and lesson.teacher_id == int(current_user_id):
            return
        raise AuthorizationError("You can only manage attendance for your own lessons")

    def window_for(
        self,
        lesson: Lesson,
        *,
        student_id: Optional[int] = None,
        now: datetime | None = None,
        settings: SystemSettings | None = None,
    ) -> WindowState:
        """Eligibility of `lesson` right now (for `student_id` when given)."""

        settings = settings or self._settings.get()
        already_marked = False
        if student_id is not None:
            already_marked = self._attendance.get_for_lesson_and_student(lesson.lesson_id, int(student_id)) is not None
        return evaluate_window(
            lesson,
            now or self._clock(),
            already_marked=already_marked,
            auto_disable=settings.auto_disable_attendance,
            default_window_minutes=settings.default_attendance_window,
        )

    def status_for(self, *, student_id: int, lesson_id: int, now: datetime | None = None) -> WindowState:
        return self.window_for(self._get_lesson(lesson_id), student_id=student_id, now=now)

    def mark(
        self,
        *,
        current_role: Role,
        current_user_id: int,
        lesson_id: int,
        student_id: int,
        status: AttendanceStatus | str = AttendanceStatus.PRESENT,
        force: bool = False,
        note: Optional[str] = None,
        now: datetime | None = None,
    ) -> AttendanceRecord:
        requested = parse_status(status)
        lesson = self._get_lesson(lesson_id)
        student = self._get_student(student_id)
        return self._mark_one(
            lesson,
            student,
            current_role=current_role,
            current_user_id=int(current_user_id),
            requested=requested,
            force=force,
            note=note,
            now=now or self._clock(),
            settings=self._settings.get(),
        )

    def _mark_one(
        self,
        lesson: Lesson,
        student: User,
        *,
        current_role: Role,
        current_user_id: int,
        requested: AttendanceStatus,
        force: bool,
        note: Optional[str],
        now: datetime,
        settings: SystemSettings,
    ) -> AttendanceRecord:
        if current_role == Role.STUDENT:
            if student.user_id != current_user_id:
                raise AuthorizationError("Students can only mark their own attendance")
        else:
            self._ensure_staff_access(lesson, current_role=current_role, current_user_id=current_user_id)

        if student.class_id != lesson.class_id:
            raise ValidationError("Student is not enrolled in this lesson's class")

        existing = self._attendance.get_for_lesson_and_student(lesson.lesson_id, student.user_id)
        window = evaluate_window(
            lesson,
            now,
            already_marked=existing is not None and current_role == Role.STUDENT,
            auto_disable=settings.auto_disable_attendance,
            default_window_minutes=settings.default_attendance_window,
        )
        strategy = self._factory.for_actor(role=current_role, force=force)
        decision = strategy.decide(window=window, requested=requested, settings=settings)
        final_note = (note or "").strip() or decision.note

        if existing:
            self._attendance.update(
                attendance_id=existing.attendance_id,
                status=decision.status,
                marked_at=now,
                marked_by=current_user_id,
                note=final_note,
            )
            attendance_id = existing.attendance_id
        else:
            attendance_id = self._attendance.create(
                lesson_id=lesson.lesson_id,
                student_id=student.user_id,
                status=decision.status,
                marked_at=now,
                marked_by=current_user_id,
                note=final_note,
            )

        logger.info(
            "Attendance %s: lesson=%s student=%s status=%s by=%s(%s)%s",
            "updated" if existing else "marked",
            lesson.lesson_id,
            student.user_id,
            decision.status.value,
            current_user_id,
            current_role.value,
            " [override]" if force else "",
        )
        return AttendanceRecord(
            attendance_id=attendance_id,
            lesson_id=lesson.lesson_id,
            student_id=student.user_id,
            status=decision.status,
            marked_at=now,
            marked_by=current_user_id,
            note=final_note,
        )

    def bulk_mark(
        self,
        *,
        current_role: Role,
        current_user_id: int,
        lesson_id: int,
        entries: Iterable[tuple[int, AttendanceStatus | str]],
        force: bool = False,
        now: datetime | None = None,
    ) -> BulkResult:
        """Mark many students of one lesson; each entry succeeds or fails on its own."""

        if current_role == Role.STUDENT:
            raise AuthorizationError("Students cannot mark attendance in bulk")
        lesson = self._get_lesson(lesson_id)
        self._ensure_staff_access(lesson, current_role=current_role, current_user_id=int(current_user_id))
        settings = self._settings.get()
        now = now or self._clock()

        result = BulkResult()
        for student_id, status in entries:
            try:
                self._mark_one(
                    lesson,
                    self._get_student(student_id),
                    current_role=current_role,
                    current_user_id=int(current_user_id),
                    requested=parse_status(status),
                    force=force,
                    note=None,
                    now=now,
                    settings=settings,
                )
                result.successful += 1
            except DomainError as e:
                result.failed += 1
                result.errors[int(student_id)] = str(e)

        logger.info(
            "Bulk attendance for lesson=%s: %d ok, %d failed", lesson.lesson_id, result.successful, result.failed
        )
        return result

    def lesson_attendance(self, *, current_role: Role, current_user_id: int, lesson_id: int) -> dict:
        """Students of the lesson's class grouped by status (plus `unmarked`)."""

        lesson = self._get_lesson(lesson_id)
        self._ensure_staff_access(lesson, current_role=current_role, current_user_id=int(current_user_id))

        records = {r.student_id: r for r in self._attendance.list_for_lesson(lesson.lesson_id)}
        groups: dict[str, list[dict]] = {s.value: [] for s in AttendanceStatus}
        groups["unmarked"] = []

        for student in self._users.list_users(role=Role.STUDENT, class_id=lesson.class_id):
            record = records.get(student.user_id)
            entry = {
                "student_id": student.user_id,
                "full_name": student.full_name,
                "username": student.username,
                "status": record.status.value if record else None,
                "marked_at": record.marked_at.isoformat() if record else None,
                "note": record.note if record else None,
            }
            groups[record.status.value if record else "unmarked"].append(entry)

        return {"lesson": lesson, "window": self.window_for(lesson), **groups}

    def list_records(self, *, current_role: Role, current_user_id: int, filters: RecordFilter) -> list[AttendanceRow]:
        if current_role == Role.TEACHER:
            filters = replace(filters, teacher_id=int(current_user_id))
        elif current_role == Role.STUDENT:
            filters = replace(filters, student_id=int(current_user_id))
        return list(self._attendance.list_rows(filters))

    def history(self, student_id: int, *, limit: Optional[int] = None) -> list[AttendanceRow]:
        return list(self._attendance.list_rows(RecordFilter(student_id=int(student_id), limit=limit)))
