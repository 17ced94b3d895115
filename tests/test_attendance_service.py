from __future__ import annotations

from datetime import datetime

import pytest

from fakes import make_lesson
from lesson_attendance.attendance.model import RecordFilter
from lesson_attendance.attendance.service import parse_status
from lesson_attendance.attendance.strategies.forced_mark_strategy import OVERRIDE_NOTE
from lesson_attendance.attendance.window import WindowStatus
from lesson_attendance.core.enums import AttendanceStatus, Role
from lesson_attendance.core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from lesson_attendance.settings.model import SystemSettings


def test_parse_status_accepts_case_insensitive_values():
    assert parse_status("Late") == AttendanceStatus.LATE
    assert parse_status(AttendanceStatus.ABSENT) == AttendanceStatus.ABSENT
    with pytest.raises(ValidationError):
        parse_status("excused")


def test_student_marks_self_present_inside_window(container, repos, fixed_now):
    record = container.attendance_service.mark(
        current_role=Role.STUDENT, current_user_id=10, lesson_id=1, student_id=10
    )

    assert record.status == AttendanceStatus.PRESENT
    assert record.marked_at == fixed_now
    assert record.marked_by == 10
    stored = repos["attendance_repo"].get_for_lesson_and_student(1, 10)
    assert stored.attendance_id == record.attendance_id


def test_student_cannot_mark_twice(container):
    svc = container.attendance_service
    svc.mark(current_role=Role.STUDENT, current_user_id=10, lesson_id=1, student_id=10)

    with pytest.raises(ConflictError):
        svc.mark(current_role=Role.STUDENT, current_user_id=10, lesson_id=1, student_id=10)


def test_student_cannot_mark_for_someone_else(container):
    with pytest.raises(AuthorizationError):
        container.attendance_service.mark(current_role=Role.STUDENT, current_user_id=10, lesson_id=1, student_id=11)


def test_student_outside_window_is_rejected(container, clock):
    clock.state["now"] = datetime(2024, 1, 15, 9, 45)

    with pytest.raises(ValidationError, match="closed"):
        container.attendance_service.mark(current_role=Role.STUDENT, current_user_id=10, lesson_id=1, student_id=10)


def test_student_of_other_class_is_rejected(container):
    with pytest.raises(ValidationError, match="not enrolled"):
        container.attendance_service.mark(current_role=Role.STUDENT, current_user_id=12, lesson_id=1, student_id=12)


def test_unknown_lesson_or_student(container):
    svc = container.attendance_service
    with pytest.raises(NotFoundError):
        svc.mark(current_role=Role.ADMIN, current_user_id=1, lesson_id=99, student_id=10)
    with pytest.raises(NotFoundError):
        svc.mark(current_role=Role.ADMIN, current_user_id=1, lesson_id=1, student_id=2)


def test_teacher_marks_and_updates_existing_record(container, repos):
    svc = container.attendance_service
    first = svc.mark(current_role=Role.TEACHER, current_user_id=2, lesson_id=1, student_id=10, status="late")
    second = svc.mark(current_role=Role.TEACHER, current_user_id=2, lesson_id=1, student_id=10, status="present")

    assert second.attendance_id == first.attendance_id
    assert repos["attendance_repo"].get_for_lesson_and_student(1, 10).status == AttendanceStatus.PRESENT
    assert len(repos["attendance_repo"].list_for_lesson(1)) == 1


def test_teacher_cannot_mark_other_teachers_lesson(container):
    with pytest.raises(AuthorizationError):
        container.attendance_service.mark(current_role=Role.TEACHER, current_user_id=3, lesson_id=1, student_id=10)


def test_teacher_needs_override_outside_window(container, clock):
    svc = container.attendance_service
    clock.state["now"] = datetime(2024, 1, 15, 11, 0)

    with pytest.raises(ValidationError):
        svc.mark(current_role=Role.TEACHER, current_user_id=2, lesson_id=1, student_id=10)

    record = svc.mark(current_role=Role.TEACHER, current_user_id=2, lesson_id=1, student_id=10, force=True)
    assert record.note == OVERRIDE_NOTE


def test_override_disabled_for_teachers_but_not_admins(container, repos, clock):
    repos["settings_repo"].settings = SystemSettings(allow_teacher_override=False)
    clock.state["now"] = datetime(2024, 1, 15, 11, 0)
    svc = container.attendance_service

    with pytest.raises(AuthorizationError):
        svc.mark(current_role=Role.TEACHER, current_user_id=2, lesson_id=1, student_id=10, force=True)
    record = svc.mark(
        current_role=Role.ADMIN, current_user_id=1, lesson_id=1, student_id=10, status="absent", force=True
    )
    assert record.status == AttendanceStatus.ABSENT


def test_bulk_mark_collects_per_student_failures(container, repos):
    result = container.attendance_service.bulk_mark(
        current_role=Role.TEACHER,
        current_user_id=2,
        lesson_id=1,
        entries=[(10, "present"), (11, "late"), (12, "present"), (99, "absent"), (10, "bogus")],
    )

    assert result.successful == 2
    assert result.failed == 3
    assert set(result.errors) == {12, 99, 10}
    assert repos["attendance_repo"].get_for_lesson_and_student(1, 11).status == AttendanceStatus.LATE
    payload = result.to_dict()
    assert payload["successful"] == 2
    assert {"student_id": 99, "message": "Student not found"} in payload["errors"]


def test_bulk_mark_is_staff_only(container):
    with pytest.raises(AuthorizationError):
        container.attendance_service.bulk_mark(
            current_role=Role.STUDENT, current_user_id=10, lesson_id=1, entries=[(10, "present")]
        )


def test_lesson_attendance_groups_students(container):
    svc = container.attendance_service
    svc.mark(current_role=Role.TEACHER, current_user_id=2, lesson_id=1, student_id=10, status="late")

    data = svc.lesson_attendance(current_role=Role.TEACHER, current_user_id=2, lesson_id=1)

    assert [e["student_id"] for e in data["late"]] == [10]
    assert [e["student_id"] for e in data["unmarked"]] == [11]
    assert data["present"] == [] and data["absent"] == []
    assert data["window"].status == WindowStatus.OPEN
    assert data["lesson"].lesson_id == 1


def test_status_for_reports_already_marked(container):
    svc = container.attendance_service
    assert svc.status_for(student_id=10, lesson_id=1).status == WindowStatus.OPEN

    svc.mark(current_role=Role.STUDENT, current_user_id=10, lesson_id=1, student_id=10)

    assert svc.status_for(student_id=10, lesson_id=1).status == WindowStatus.ALREADY_MARKED


def test_list_records_is_scoped_by_role(container, repos, fixed_now):
    repos["lessons_repo"].by_id[2] = make_lesson(2, class_id=2, teacher_id=3, subject="Painting")
    attendance = repos["attendance_repo"]
    attendance.add(1, 10, AttendanceStatus.PRESENT, fixed_now)
    attendance.add(1, 11, AttendanceStatus.ABSENT, fixed_now)
    attendance.add(2, 12, AttendanceStatus.LATE, fixed_now)
    svc = container.attendance_service

    assert len(svc.list_records(current_role=Role.ADMIN, current_user_id=1, filters=RecordFilter())) == 3
    teacher_rows = svc.list_records(current_role=Role.TEACHER, current_user_id=3, filters=RecordFilter())
    assert [r.student_id for r in teacher_rows] == [12]
    student_rows = svc.list_records(current_role=Role.STUDENT, current_user_id=11, filters=RecordFilter(student_id=10))
    assert [r.student_id for r in student_rows] == [11]
    absent = svc.list_records(
        current_role=Role.ADMIN, current_user_id=1, filters=RecordFilter(status=AttendanceStatus.ABSENT)
    )
    assert [r.student_id for r in absent] == [11]
