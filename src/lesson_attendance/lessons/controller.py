from __future__ import annotations

from flask import Flask

from ..common.web import arg_int, current_role, current_user_id, json_api, json_body, login_required, ok, roles_required
from ..container import Container
from ..core.enums import Role
from .service import lesson_to_dict

_UPDATABLE = (
    "class_id",
    "subject",
    "day_of_week",
    "start_time_minutes",
    "duration_minutes",
    "attendance_window_minutes",
    "location",
    "is_active",
)


def register(app: Flask, container: Container) -> None:
    svc = container.lesson_service

    @app.route("/api/lessons", methods=["GET"], endpoint="api_lessons")
    @json_api
    @login_required
    def list_lessons():
        role = current_role()
        if role == Role.STUDENT:
            return ok(lessons=svc.lessons_for_student(current_user_id()))

        class_id = arg_int("class_id")
        teacher_id = current_user_id() if role == Role.TEACHER else arg_int("teacher_id")
        if class_id is not None:
            lessons = [ls for ls in svc.lessons_for_class(class_id) if teacher_id is None or ls.teacher_id == teacher_id]
        elif teacher_id is not None:
            lessons = svc.lessons_for_teacher(teacher_id)
        else:
            lessons = svc.all_lessons()
        return ok(lessons=[lesson_to_dict(ls) for ls in lessons])

    @app.route("/api/lessons", methods=["POST"], endpoint="api_lessons_create")
    @json_api
    @roles_required(Role.ADMIN, Role.TEACHER)
    def create_lesson():
        data = json_body()
        lesson_id = svc.create_lesson(
            current_role=current_role(),
            current_user_id=current_user_id(),
            class_id=data.get("class_id"),
            subject=data.get("subject", ""),
            day_of_week=data.get("day_of_week"),
            start_time_minutes=data.get("start_time_minutes"),
            duration_minutes=data.get("duration_minutes"),
            attendance_window_minutes=data.get("attendance_window_minutes"),
            location=data.get("location"),
            is_active=data.get("is_active", True),
            teacher_id=data.get("teacher_id"),
        )
        return ok(201, message="Lesson created", lesson=lesson_to_dict(svc.get_lesson(lesson_id)))

    @app.route("/api/instant-lesson", methods=["POST"], endpoint="api_instant_lesson")
    @json_api
    @roles_required(Role.ADMIN, Role.TEACHER)
    def create_instant_lesson():
        data = json_body()
        lesson_id = svc.create_instant_lesson(
            current_role=current_role(),
            current_user_id=current_user_id(),
            class_id=data.get("class_id"),
            subject=data.get("subject", ""),
            location=data.get("location"),
            duration_minutes=data.get("duration_minutes"),
            attendance_window_minutes=data.get("attendance_window_minutes"),
            teacher_id=data.get("teacher_id"),
        )
        lesson = svc.get_lesson(lesson_id)
        window = container.attendance_service.window_for(lesson)
        return ok(201, message="Instant lesson started", lesson=lesson_to_dict(lesson, window=window))

    @app.route("/api/lessons/today", methods=["GET"], endpoint="api_lessons_today")
    @json_api
    @login_required
    def todays_lessons():
        return ok(lessons=svc.todays_lessons(current_role=current_role(), current_user_id=current_user_id()))

    @app.route("/api/lessons/student", methods=["GET"], endpoint="api_lessons_student")
    @json_api
    @roles_required(Role.STUDENT)
    def student_lessons():
        return ok(**svc.categorise_for_student(current_user_id()))

    @app.route("/api/lessons/<int:lesson_id>", methods=["GET"], endpoint="api_lessons_get")
    @json_api
    @login_required
    def get_lesson(lesson_id: int):
        lesson = svc.get_lesson(lesson_id)
        student_id = current_user_id() if current_role() == Role.STUDENT else None
        window = container.attendance_service.window_for(lesson, student_id=student_id)
        return ok(lesson=lesson_to_dict(lesson, window=window))

    @app.route("/api/lessons/<int:lesson_id>", methods=["PUT", "PATCH"], endpoint="api_lessons_update")
    @json_api
    @roles_required(Role.ADMIN, Role.TEACHER)
    def update_lesson(lesson_id: int):
        data = json_body()
        lesson = svc.update_lesson(
            current_role=current_role(),
            current_user_id=current_user_id(),
            lesson_id=lesson_id,
            changes={k: data[k] for k in _UPDATABLE if k in data},
        )
        return ok(message="Lesson updated", lesson=lesson_to_dict(lesson))

    @app.route("/api/lessons/<int:lesson_id>", methods=["DELETE"], endpoint="api_lessons_delete")
    @json_api
    @roles_required(Role.ADMIN, Role.TEACHER)
    def delete_lesson(lesson_id: int):
        svc.delete_lesson(current_role=current_role(), current_user_id=current_user_id(), lesson_id=lesson_id)
        return ok(message="Lesson deleted")
