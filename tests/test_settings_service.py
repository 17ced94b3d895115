from __future__ import annotations

import pytest

from lesson_attendance.core.enums import Role
from lesson_attendance.core.exceptions import AuthorizationError, ValidationError
from lesson_attendance.settings.model import SystemSettings


def test_defaults():
    settings = SystemSettings()

    assert settings.default_attendance_window == 30
    assert settings.default_lesson_duration == 60
    assert settings.auto_disable_attendance is True
    assert settings.allow_teacher_override is True
    assert settings.low_attendance_threshold == 75
    assert settings.to_dict()["school_name"] is None


def test_update_coerces_values(container, repos):
    updated = container.settings_service.update(
        current_role=Role.ADMIN,
        changes={
            "default_attendance_window": "15",
            "auto_disable_attendance": "false",
            "allow_teacher_override": 0,
            "school_name": "  Hill School ",
            "school_logo": "",
        },
    )

    assert updated.default_attendance_window == 15
    assert updated.auto_disable_attendance is False
    assert updated.allow_teacher_override is False
    assert updated.school_name == "Hill School"
    assert updated.school_logo is None
    assert repos["settings_repo"].get() == updated
    assert repos["settings_repo"].saved == 1


@pytest.mark.parametrize(
    "changes",
    [
        {"unknown_flag": True},
        {"default_lesson_duration": 10},
        {"low_attendance_threshold": 101},
        {"auto_disable_attendance": "maybe"},
        {"default_attendance_window": "abc"},
    ],
)
def test_update_rejects_invalid_values(container, changes):
    with pytest.raises(ValidationError):
        container.settings_service.update(current_role=Role.ADMIN, changes=changes)


def test_only_admins_update_settings(container):
    with pytest.raises(AuthorizationError):
        container.settings_service.update(current_role=Role.TEACHER, changes={"school_name": "X"})


def test_new_lessons_use_updated_defaults(container, repos):
    container.settings_service.update(
        current_role=Role.ADMIN, changes={"default_attendance_window": 10, "default_lesson_duration": 45}
    )

    lesson_id = container.lesson_service.create_lesson(
        current_role=Role.TEACHER, current_user_id=2, class_id=1, subject="Physics", day_of_week=2, start_time_minutes=600
    )

    lesson = repos["lessons_repo"].get_by_id(lesson_id)
    assert lesson.attendance_window_minutes == 10
    assert lesson.duration_minutes == 45
