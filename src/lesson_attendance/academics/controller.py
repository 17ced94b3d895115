from __future__ import annotations

from flask import Flask, request, session

from ..common.web import arg_int, current_role, current_user_id, json_api, json_body, ok, parse_bool, roles_required
from ..container import Container
from ..core.enums import Role
from .model import Department, Level, SchoolClass


def _department_json(d: Department) -> dict:
    return {"dept_id": d.dept_id, "dept_name": d.dept_name}


def _level_json(lv: Level) -> dict:
    return {"level_id": lv.level_id, "level_number": lv.level_number, "level_name": lv.level_name}


def _class_json(c: SchoolClass) -> dict:
    return {
        "class_id": c.class_id,
        "class_name": c.class_name,
        "dept_id": c.dept_id,
        "dept_name": c.dept_name,
        "level_id": c.level_id,
        "level_name": c.level_name,
    }


def register(app: Flask, container: Container) -> None:
    svc = container.academic_service

    # Read endpoints are public: the registration form needs them.

    @app.route("/api/departments", methods=["GET"], endpoint="api_departments")
    @json_api
    def list_departments():
        return ok(departments=[_department_json(d) for d in svc.list_departments()])

    @app.route("/api/departments", methods=["POST"], endpoint="api_departments_create")
    @json_api
    @roles_required(Role.ADMIN)
    def create_department():
        dept_id = svc.create_department(current_role=current_role(), dept_name=json_body().get("dept_name", ""))
        return ok(201, message="Department created", dept_id=dept_id)

    @app.route("/api/departments/<int:dept_id>", methods=["PUT"], endpoint="api_departments_update")
    @json_api
    @roles_required(Role.ADMIN)
    def update_department(dept_id: int):
        svc.update_department(current_role=current_role(), dept_id=dept_id, dept_name=json_body().get("dept_name", ""))
        return ok(message="Department updated")

    @app.route("/api/departments/<int:dept_id>", methods=["DELETE"], endpoint="api_departments_delete")
    @json_api
    @roles_required(Role.ADMIN)
    def delete_department(dept_id: int):
        svc.delete_department(current_role=current_role(), dept_id=dept_id)
        return ok(message="Department deleted")

    @app.route("/api/levels", methods=["GET"], endpoint="api_levels")
    @json_api
    def list_levels():
        return ok(levels=[_level_json(lv) for lv in svc.list_levels()])

    @app.route("/api/levels", methods=["POST"], endpoint="api_levels_create")
    @json_api
    @roles_required(Role.ADMIN)
    def create_level():
        data = json_body()
        level_id = svc.create_level(
            current_role=current_role(),
            level_number=data.get("level_number"),
            level_name=data.get("level_name", ""),
        )
        return ok(201, message="Level created", level_id=level_id)

    @app.route("/api/levels/<int:level_id>", methods=["PUT"], endpoint="api_levels_update")
    @json_api
    @roles_required(Role.ADMIN)
    def update_level(level_id: int):
        data = json_body()
        svc.update_level(
            current_role=current_role(),
            level_id=level_id,
            level_number=data.get("level_number"),
            level_name=data.get("level_name", ""),
        )
        return ok(message="Level updated")

    @app.route("/api/levels/<int:level_id>", methods=["DELETE"], endpoint="api_levels_delete")
    @json_api
    @roles_required(Role.ADMIN)
    def delete_level(level_id: int):
        svc.delete_level(current_role=current_role(), level_id=level_id)
        return ok(message="Level deleted")

    @app.route("/api/classes", methods=["GET"], endpoint="api_classes")
    @json_api
    def list_classes():
        teacher_id = arg_int("teacher_id")
        if teacher_id is None and parse_bool(request.args.get("mine")) and session.get("role") == Role.TEACHER.value:
            teacher_id = current_user_id()
        classes = svc.list_classes(dept_id=arg_int("dept_id"), level_id=arg_int("level_id"), teacher_id=teacher_id)
        return ok(classes=[_class_json(c) for c in classes])

    @app.route("/api/classes/<int:class_id>", methods=["GET"], endpoint="api_classes_get")
    @json_api
    def get_class(class_id: int):
        return ok(school_class=_class_json(svc.get_class(class_id)))

    @app.route("/api/classes", methods=["POST"], endpoint="api_classes_create")
    @json_api
    @roles_required(Role.ADMIN)
    def create_class():
        data = json_body()
        class_id = svc.create_class(
            current_role=current_role(),
            class_name=data.get("class_name", ""),
            dept_id=data.get("dept_id"),
            level_id=data.get("level_id"),
        )
        return ok(201, message="Class created", class_id=class_id)

    @app.route("/api/classes/<int:class_id>", methods=["PUT"], endpoint="api_classes_update")
    @json_api
    @roles_required(Role.ADMIN)
    def update_class(class_id: int):
        data = json_body()
        svc.update_class(
            current_role=current_role(),
            class_id=class_id,
            class_name=data.get("class_name", ""),
            dept_id=data.get("dept_id"),
            level_id=data.get("level_id"),
        )
        return ok(message="Class updated")

    @app.route("/api/classes/<int:class_id>", methods=["DELETE"], endpoint="api_classes_delete")
    @json_api
    @roles_required(Role.ADMIN)
    def delete_class(class_id: int):
        svc.delete_class(current_role=current_role(), class_id=class_id)
        return ok(message="Class deleted")
