from __future__ import annotations

import logging

from flask import Flask, session

from ..common.web import (
    arg_int,
    current_role,
    current_user_id,
    json_api,
    json_body,
    login_required,
    ok,
    parse_bool,
    roles_required,
)
from ..container import Container
from ..core.enums import Role
from .service import user_to_dict

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    @app.route("/api/login", methods=["POST"], endpoint="api_login")
    @json_api
    def login():
        data = json_body()
        s_user = container.auth_service.authenticate(data.get("username", ""), data.get("password", ""))

        session.clear()
        session.permanent = parse_bool(data.get("remember_me", True))
        session["user_id"] = s_user.user_id
        session["name"] = s_user.full_name
        session["role"] = s_user.role.value
        session["dept_id"] = s_user.dept_id
        session["class_id"] = s_user.class_id

        logger.info("User %s logged in as %s", s_user.username, s_user.role.value)
        return ok(
            message="Login successful",
            user=user_to_dict(container.auth_service.get_user(s_user.user_id)),
        )

    @app.route("/api/logout", methods=["POST"], endpoint="api_logout")
    @json_api
    def logout():
        session.clear()
        return ok(message="Logged out")

    @app.route("/api/register", methods=["POST"], endpoint="api_register")
    @json_api
    def register_student():
        data = json_body()
        user_id = container.auth_service.register_student(
            full_name=data.get("full_name", ""),
            username=data.get("username", ""),
            password=data.get("password", ""),
            confirm_password=data.get("confirm_password", ""),
            dept_id=data.get("dept_id"),
            level_id=data.get("level_id"),
            class_id=data.get("class_id"),
        )
        return ok(201, message="Registration successful", user_id=user_id)

    @app.route("/api/user", methods=["GET"], endpoint="api_user")
    @json_api
    @login_required
    def me():
        return ok(user=user_to_dict(container.auth_service.get_user(current_user_id())))

    @app.route("/api/user/profile", methods=["PUT"], endpoint="api_user_profile")
    @json_api
    @login_required
    def update_profile():
        data = json_body()
        user = container.auth_service.update_profile(
            user_id=current_user_id(),
            full_name=data.get("full_name", ""),
            current_password=data.get("current_password"),
            new_password=data.get("new_password"),
            confirm_password=data.get("confirm_password"),
        )
        session["name"] = user.full_name
        return ok(message="Profile updated", user=user_to_dict(user))

    # Teachers (admin)

    @app.route("/api/teachers", methods=["GET"], endpoint="api_teachers")
    @json_api
    @roles_required(Role.ADMIN)
    def list_teachers():
        return ok(teachers=container.teacher_service.list_teachers())

    @app.route("/api/teachers", methods=["POST"], endpoint="api_teachers_create")
    @json_api
    @roles_required(Role.ADMIN)
    def create_teacher():
        data = json_body()
        teacher_id = container.teacher_service.create_teacher(
            current_role=current_role(),
            full_name=data.get("full_name", ""),
            username=data.get("username", ""),
            password=data.get("password", ""),
            dept_id=data.get("dept_id"),
            additional_dept_ids=data.get("additional_departments") or [],
        )
        return ok(201, message="Teacher created", user_id=teacher_id)

    @app.route("/api/teachers/<int:teacher_id>", methods=["PUT"], endpoint="api_teachers_update")
    @json_api
    @roles_required(Role.ADMIN)
    def update_teacher(teacher_id: int):
        data = json_body()
        teacher = container.teacher_service.update_teacher(
            current_role=current_role(),
            teacher_id=teacher_id,
            full_name=data.get("full_name"),
            username=data.get("username"),
            password=data.get("password"),
            dept_id=data.get("dept_id"),
            additional_dept_ids=data.get("additional_departments"),
        )
        return ok(message="Teacher updated", user=user_to_dict(teacher))

    @app.route("/api/teachers/<int:teacher_id>", methods=["DELETE"], endpoint="api_teachers_delete")
    @json_api
    @roles_required(Role.ADMIN)
    def delete_teacher(teacher_id: int):
        container.teacher_service.delete_teacher(current_role=current_role(), teacher_id=teacher_id)
        return ok(message="Teacher deleted")

    @app.route("/api/teachers/<int:teacher_id>/departments", methods=["GET"], endpoint="api_teacher_departments")
    @json_api
    @roles_required(Role.ADMIN, Role.TEACHER)
    def teacher_departments(teacher_id: int):
        depts = container.teacher_service.list_departments(teacher_id)
        return ok(departments=[{"dept_id": d.dept_id, "dept_name": d.dept_name} for d in depts])

    @app.route(
        "/api/teachers/<int:teacher_id>/departments", methods=["POST"], endpoint="api_teacher_departments_add"
    )
    @json_api
    @roles_required(Role.ADMIN)
    def add_teacher_department(teacher_id: int):
        container.teacher_service.add_department(
            current_role=current_role(), teacher_id=teacher_id, dept_id=json_body().get("dept_id")
        )
        return ok(201, message="Department added")

    @app.route(
        "/api/teachers/<int:teacher_id>/departments", methods=["PUT"], endpoint="api_teacher_departments_sync"
    )
    @json_api
    @roles_required(Role.ADMIN)
    def sync_teacher_departments(teacher_id: int):
        added, removed = container.teacher_service.sync_departments(
            current_role=current_role(), teacher_id=teacher_id, dept_ids=json_body().get("dept_ids") or []
        )
        return ok(message="Departments updated", added=added, removed=removed)

    @app.route(
        "/api/teachers/<int:teacher_id>/departments/<int:dept_id>",
        methods=["DELETE"],
        endpoint="api_teacher_departments_remove",
    )
    @json_api
    @roles_required(Role.ADMIN)
    def remove_teacher_department(teacher_id: int, dept_id: int):
        container.teacher_service.remove_department(current_role=current_role(), teacher_id=teacher_id, dept_id=dept_id)
        return ok(message="Department removed")

    # Students

    @app.route("/api/students", methods=["GET"], endpoint="api_students")
    @json_api
    @roles_required(Role.ADMIN, Role.TEACHER)
    def list_students():
        students = container.student_service.list_students(class_id=arg_int("class_id"))
        return ok(students=[user_to_dict(s) for s in students])

    @app.route("/api/students", methods=["POST"], endpoint="api_students_create")
    @json_api
    @roles_required(Role.ADMIN)
    def create_student():
        data = json_body()
        student_id = container.student_service.create_student(
            current_role=current_role(),
            full_name=data.get("full_name", ""),
            username=data.get("username", ""),
            password=data.get("password", ""),
            class_id=data.get("class_id"),
        )
        return ok(201, message="Student created", user_id=student_id)

    @app.route("/api/students/<int:student_id>", methods=["PUT"], endpoint="api_students_update")
    @json_api
    @roles_required(Role.ADMIN)
    def update_student(student_id: int):
        data = json_body()
        student = container.student_service.update_student(
            current_role=current_role(),
            student_id=student_id,
            full_name=data.get("full_name"),
            username=data.get("username"),
            password=data.get("password"),
            class_id=data.get("class_id"),
        )
        return ok(message="Student updated", user=user_to_dict(student))

    @app.route("/api/students/<int:student_id>", methods=["DELETE"], endpoint="api_students_delete")
    @json_api
    @roles_required(Role.ADMIN)
    def delete_student(student_id: int):
        container.student_service.delete_student(current_role=current_role(), student_id=student_id)
        return ok(message="Student deleted")

    @app.route("/api/teacher/register-student", methods=["POST"], endpoint="api_teacher_register_student")
    @json_api
    @roles_required(Role.ADMIN, Role.TEACHER)
    def register_student_to_class():
        data = json_body()
        student = container.teacher_service.register_student_to_class(
            current_role=current_role(),
            current_user_id=current_user_id(),
            class_id=data.get("class_id"),
            student_id=data.get("student_id"),
            username=data.get("username"),
        )
        return ok(message="Student registered to class", user=user_to_dict(student))

    @app.route("/api/teacher/deregister-student", methods=["POST"], endpoint="api_teacher_deregister_student")
    @json_api
    @roles_required(Role.ADMIN, Role.TEACHER)
    def deregister_student():
        data = json_body()
        container.teacher_service.deregister_student(
            current_role=current_role(),
            current_user_id=current_user_id(),
            student_id=data.get("student_id"),
            username=data.get("username"),
        )
        return ok(message="Student removed from class")
