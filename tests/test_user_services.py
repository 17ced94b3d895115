from __future__ import annotations

import pytest

from lesson_attendance.core.enums import Role
from lesson_attendance.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from lesson_attendance.users.service import verify_password


def test_authenticate_success_and_failures(container, repos):
    auth = container.auth_service

    s_user = auth.authenticate("teacher", "teacher123")
    assert s_user.user_id == 2
    assert s_user.role == Role.TEACHER
    assert s_user.dept_id == 1

    with pytest.raises(AuthenticationError):
        auth.authenticate("teacher", "wrong")
    with pytest.raises(AuthenticationError):
        auth.authenticate("nobody", "teacher123")

    repos["users_repo"].update_user(2, {"is_active": False})
    with pytest.raises(AuthenticationError):
        auth.authenticate("teacher", "teacher123")


def test_register_student(container, repos):
    user_id = container.auth_service.register_student(
        full_name="New Student",
        username="ADM100",
        password="secret1",
        confirm_password="secret1",
        dept_id=1,
        level_id=1,
        class_id=1,
    )

    user = repos["users_repo"].get_by_id(user_id)
    assert user.role == Role.STUDENT
    assert user.class_id == 1
    assert verify_password(user, "secret1")


@pytest.mark.parametrize(
    "overrides,error",
    [
        ({"password": "short", "confirm_password": "short"}, ValidationError),
        ({"confirm_password": "different"}, ValidationError),
        ({"dept_id": 2}, ValidationError),
        ({"class_id": 42}, NotFoundError),
        ({"username": "ADM010"}, ConflictError),
        ({"full_name": "  "}, ValidationError),
    ],
)
def test_register_student_rejects_bad_input(container, overrides, error):
    fields = dict(
        full_name="New Student",
        username="ADM100",
        password="secret1",
        confirm_password="secret1",
        dept_id=1,
        level_id=1,
        class_id=1,
    )
    fields.update(overrides)

    with pytest.raises(error):
        container.auth_service.register_student(**fields)


def test_update_profile_name_and_password(container, repos):
    auth = container.auth_service

    user = auth.update_profile(user_id=10, full_name="Alice Renamed")
    assert user.full_name == "Alice Renamed"

    with pytest.raises(ValidationError, match="all required"):
        auth.update_profile(user_id=10, full_name="Alice", new_password="newpassword")
    with pytest.raises(ValidationError, match="at least 8"):
        auth.update_profile(
            user_id=10, full_name="Alice", current_password="student123", new_password="short", confirm_password="short"
        )
    with pytest.raises(ValidationError, match="incorrect"):
        auth.update_profile(
            user_id=10,
            full_name="Alice",
            current_password="nope",
            new_password="newpassword",
            confirm_password="newpassword",
        )

    auth.update_profile(
        user_id=10,
        full_name="Alice",
        current_password="student123",
        new_password="newpassword",
        confirm_password="newpassword",
    )
    assert auth.authenticate("ADM010", "newpassword").user_id == 10


def test_student_admin_crud(container, repos):
    svc = container.student_service

    student_id = svc.create_student(
        current_role=Role.ADMIN, full_name="Dan Student", username="ADM200", password="secret1", class_id=2
    )
    assert [s.user_id for s in svc.list_students(class_id=2)] == [12, student_id]

    with pytest.raises(ConflictError):
        svc.update_student(current_role=Role.ADMIN, student_id=student_id, username="ADM010")
    updated = svc.update_student(current_role=Role.ADMIN, student_id=student_id, class_id=1)
    assert updated.class_id == 1

    with pytest.raises(AuthorizationError):
        svc.delete_student(current_role=Role.TEACHER, student_id=student_id)
    svc.delete_student(current_role=Role.ADMIN, student_id=student_id)
    with pytest.raises(NotFoundError):
        svc.get_student(student_id)


def test_create_teacher_with_additional_departments(container, repos):
    svc = container.teacher_service

    teacher_id = svc.create_teacher(
        current_role=Role.ADMIN,
        full_name="Nina New",
        username="nina",
        password="secret1",
        dept_id=1,
        additional_dept_ids=[2, 1],
    )

    assert repos["teacher_departments_repo"].list_for_teacher(teacher_id) == [2]
    listed = {t["user_id"]: t for t in svc.list_teachers()}
    assert listed[teacher_id]["dept_name"] == "Science"
    assert listed[teacher_id]["additional_departments"] == [{"dept_id": 2, "dept_name": "Arts"}]


def test_create_teacher_checks_departments_before_creating(container, repos):
    with pytest.raises(NotFoundError):
        container.teacher_service.create_teacher(
            current_role=Role.ADMIN,
            full_name="Nina New",
            username="nina",
            password="secret1",
            dept_id=1,
            additional_dept_ids=[99],
        )
    assert repos["users_repo"].get_by_username("nina") is None


def test_sync_and_remove_departments(container, repos):
    svc = container.teacher_service

    assert svc.sync_departments(current_role=Role.ADMIN, teacher_id=2, dept_ids=[2]) == ([2], [])
    assert svc.sync_departments(current_role=Role.ADMIN, teacher_id=2, dept_ids=[2]) == ([], [])
    assert [d.dept_id for d in svc.list_departments(2)] == [2]

    with pytest.raises(ConflictError):
        svc.add_department(current_role=Role.ADMIN, teacher_id=2, dept_id=2)
    with pytest.raises(ValidationError):
        svc.add_department(current_role=Role.ADMIN, teacher_id=2, dept_id=1)

    svc.remove_department(current_role=Role.ADMIN, teacher_id=2, dept_id=2)
    with pytest.raises(NotFoundError):
        svc.remove_department(current_role=Role.ADMIN, teacher_id=2, dept_id=2)
    with pytest.raises(AuthorizationError):
        svc.sync_departments(current_role=Role.TEACHER, teacher_id=2, dept_ids=[])


def test_delete_teacher_refused_while_owning_lessons(container, repos):
    svc = container.teacher_service

    with pytest.raises(ValidationError):
        svc.delete_teacher(current_role=Role.ADMIN, teacher_id=2)
    svc.delete_teacher(current_role=Role.ADMIN, teacher_id=3)
    with pytest.raises(NotFoundError):
        svc.get_teacher(3)


def test_teacher_registers_student_to_class_in_own_department(container, repos):
    svc = container.teacher_service
    repos["users_repo"].update_user(12, {"class_id": None})

    student = svc.register_student_to_class(current_role=Role.TEACHER, current_user_id=2, class_id=1, username="ADM012")
    assert student.class_id == 1

    with pytest.raises(ConflictError):
        svc.register_student_to_class(current_role=Role.TEACHER, current_user_id=2, class_id=1, student_id=12)
    with pytest.raises(AuthorizationError):
        svc.register_student_to_class(current_role=Role.TEACHER, current_user_id=2, class_id=2, student_id=12)
    with pytest.raises(NotFoundError):
        svc.register_student_to_class(current_role=Role.TEACHER, current_user_id=2, class_id=1, student_id=3)


def test_deregister_student(container, repos):
    svc = container.teacher_service

    with pytest.raises(AuthorizationError):
        svc.deregister_student(current_role=Role.TEACHER, current_user_id=3, student_id=10)
    svc.deregister_student(current_role=Role.TEACHER, current_user_id=2, student_id=10)
    assert repos["users_repo"].get_by_id(10).class_id is None

    with pytest.raises(ValidationError):
        svc.deregister_student(current_role=Role.TEACHER, current_user_id=2, student_id=10)
    with pytest.raises(ValidationError, match="Student is required"):
        svc.deregister_student(current_role=Role.ADMIN, current_user_id=1)


def test_list_teachers_sorted_by_name(container):
    assert [t["user_id"] for t in container.teacher_service.list_teachers()] == [3, 2]
