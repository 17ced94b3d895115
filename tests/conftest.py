from __future__ import annotations

import os
from datetime import datetime

import pytest

os.environ["APP_ENV"] = "testing"

from fakes import (  # noqa: E402
    InMemoryAttendance,
    InMemoryClasses,
    InMemoryDepartments,
    InMemoryLessons,
    InMemoryLevels,
    InMemorySettings,
    InMemorySnapshots,
    InMemoryTeacherDepartments,
    InMemoryUsers,
    make_lesson,
    make_user,
)
from lesson_attendance.academics.model import Department, Level, SchoolClass  # noqa: E402
from lesson_attendance.container import wire_container  # noqa: E402
from lesson_attendance.core.enums import Role  # noqa: E402
from lesson_attendance.main import create_app  # noqa: E402

# Monday 2024-01-15 09:10, ten minutes into lesson 1.
FIXED_NOW = datetime(2024, 1, 15, 9, 10)


@pytest.fixture
def fixed_now():
    return FIXED_NOW


@pytest.fixture
def clock():
    state = {"now": FIXED_NOW}

    def now():
        return state["now"]

    now.state = state
    return now


@pytest.fixture
def repos():
    users = InMemoryUsers(
        [
            make_user(1, Role.ADMIN, username="admin", full_name="Admin User", password="admin123"),
            make_user(2, Role.TEACHER, username="teacher", full_name="Tom Teacher", password="teacher123", dept_id=1),
            make_user(3, Role.TEACHER, username="arts", full_name="Ann Arts", password="teacher123", dept_id=2),
            make_user(10, Role.STUDENT, username="ADM010", full_name="Alice Student", password="student123", class_id=1),
            make_user(11, Role.STUDENT, username="ADM011", full_name="Bob Student", password="student123", class_id=1),
            make_user(12, Role.STUDENT, username="ADM012", full_name="Cara Student", password="student123", class_id=2),
        ]
    )
    classes = InMemoryClasses(
        [
            SchoolClass(class_id=1, class_name="Science 1A", dept_id=1, level_id=1),
            SchoolClass(class_id=2, class_name="Arts 1B", dept_id=2, level_id=1),
        ]
    )
    lessons = InMemoryLessons([make_lesson(1)])
    return {
        "users_repo": users,
        "teacher_departments_repo": InMemoryTeacherDepartments(),
        "departments_repo": InMemoryDepartments(
            [Department(dept_id=1, dept_name="Science"), Department(dept_id=2, dept_name="Arts")]
        ),
        "levels_repo": InMemoryLevels([Level(level_id=1, level_number=1, level_name="Form 1")]),
        "classes_repo": classes,
        "lessons_repo": lessons,
        "attendance_repo": InMemoryAttendance(lessons, users, classes),
        "settings_repo": InMemorySettings(),
        "snapshots_repo": InMemorySnapshots(),
    }


@pytest.fixture
def container(repos, tmp_path, clock):
    return wire_container(conn=None, backup_dir=tmp_path / "backups", clock=clock, **repos)


@pytest.fixture
def app(container):
    return create_app(container=container)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def login(client):
    def _login(username: str, password: str):
        resp = client.post("/api/login", json={"username": username, "password": password})
        assert resp.status_code == 200, resp.get_json()
        return resp

    return _login
