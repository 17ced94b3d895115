from __future__ import annotations

from flask import Flask, request

from ..common.datetime_utils import parse_iso_date
from ..common.validators import require_int
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
from ..core.exceptions import ValidationError
from ..lessons.service import lesson_to_dict
from ..reports.service import attendance_row_to_dict
from .model import RecordFilter
from .service import parse_status


def _arg_date(name: str):
    value = request.args.get(name)
    if not value:
        return None
    try:
        return parse_iso_date(value)
    except ValueError:
        raise ValidationError(f"{name} must be a date in YYYY-MM-DD format") from None


def record_filter_from_request() -> RecordFilter:
    status = request.args.get("status")
    return RecordFilter(
        class_id=arg_int("class_id"),
        lesson_id=arg_int("lesson_id"),
        student_id=arg_int("student_id"),
        teacher_id=arg_int("teacher_id"),
        status=parse_status(status) if status else None,
        start_date=_arg_date("start_date"),
        end_date=_arg_date("end_date"),
        search=(request.args.get("search") or "").strip() or None,
        limit=arg_int("limit"),
    )


def register(app: Flask, container: Container) -> None:
    svc = container.attendance_service

    @app.route("/api/attendance", methods=["GET"], endpoint="api_attendance")
    @json_api
    @login_required
    def list_records():
        rows = svc.list_records(
            current_role=current_role(), current_user_id=current_user_id(), filters=record_filter_from_request()
        )
        return ok(records=[attendance_row_to_dict(r) for r in rows])

    @app.route("/api/attendance", methods=["POST"], endpoint="api_attendance_mark")
    @json_api
    @login_required
    def mark():
        data = json_body()
        role = current_role()
        student_id = current_user_id() if role == Role.STUDENT else data.get("student_id")
        if student_id in (None, ""):
            raise ValidationError("student_id is required")
        if data.get("lesson_id") in (None, ""):
            raise ValidationError("lesson_id is required")

        record = svc.mark(
            current_role=role,
            current_user_id=current_user_id(),
            lesson_id=require_int(data["lesson_id"], "lesson_id"),
            student_id=require_int(student_id, "student_id"),
            status=data.get("status", "present"),
            force=parse_bool(request.args.get("force")) or parse_bool(data.get("force")),
            note=data.get("note"),
        )
        return ok(
            201,
            message="Attendance marked",
            record={
                "attendance_id": record.attendance_id,
                "lesson_id": record.lesson_id,
                "student_id": record.student_id,
                "status": record.status.value,
                "marked_at": record.marked_at.isoformat(),
                "note": record.note,
            },
        )

    @app.route("/api/attendance/bulk", methods=["POST"], endpoint="api_attendance_bulk")
    @json_api
    @roles_required(Role.ADMIN, Role.TEACHER)
    def bulk_mark():
        data = json_body()
        entries = data.get("entries")
        if data.get("lesson_id") in (None, "") or not isinstance(entries, list):
            raise ValidationError("lesson_id and a list of entries are required")
        try:
            pairs = [(int(e["student_id"]), e.get("status", "present")) for e in entries]
        except (KeyError, TypeError, ValueError):
            raise ValidationError("Each entry needs a numeric student_id") from None

        result = svc.bulk_mark(
            current_role=current_role(),
            current_user_id=current_user_id(),
            lesson_id=require_int(data["lesson_id"], "lesson_id"),
            entries=pairs,
            force=parse_bool(request.args.get("force")) or parse_bool(data.get("force")),
        )
        return ok(message=f"{result.successful} marked, {result.failed} failed", **result.to_dict())

    @app.route("/api/attendance/lesson/<int:lesson_id>", methods=["GET"], endpoint="api_attendance_lesson")
    @json_api
    @roles_required(Role.ADMIN, Role.TEACHER)
    def lesson_attendance(lesson_id: int):
        data = svc.lesson_attendance(current_role=current_role(), current_user_id=current_user_id(), lesson_id=lesson_id)
        lesson, window = data.pop("lesson"), data.pop("window")
        return ok(lesson=lesson_to_dict(lesson, window=window), **data)

    @app.route("/api/attendance/history", methods=["GET"], endpoint="api_attendance_history")
    @json_api
    @login_required
    def history():
        role = current_role()
        student_id = current_user_id() if role == Role.STUDENT else arg_int("student_id")
        if student_id is None:
            raise ValidationError("student_id is required")
        rows = svc.history(student_id, limit=arg_int("limit"))
        if role == Role.TEACHER:
            rows = [r for r in rows if r.teacher_id == current_user_id()]
        return ok(records=[attendance_row_to_dict(r) for r in rows])
