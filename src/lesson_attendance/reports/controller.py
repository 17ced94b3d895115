from __future__ import annotations

from flask import Flask, request

from ..attendance.controller import record_filter_from_request
from ..common.datetime_utils import now_local
from ..common.web import arg_int, current_role, current_user_id, json_api, login_required, ok, roles_required
from ..container import Container
from ..core.constants import RECENT_ATTENDANCE_LIMIT
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, ValidationError
from .exporters import (
    EXPORT_FORMATS,
    ExportTable,
    export_filename,
    render_print_html,
    to_csv_bytes,
    to_excel_bytes,
    to_pdf_bytes,
)


def register(app: Flask, container: Container) -> None:
    reports = container.report_service
    attendance = container.attendance_service

    def _send(table: ExportTable, fmt: str):
        generated_at = now_local()
        if fmt == "print":
            html = render_print_html(table, generated_at=generated_at, letterhead=reports.branding().letterhead)
            return app.response_class(html, mimetype="text/html")

        if fmt not in EXPORT_FORMATS:
            raise ValidationError(f"Unsupported export format: {fmt}")
        mimetype, extension = EXPORT_FORMATS[fmt]
        if extension == "csv":
            body = to_csv_bytes(table)
        elif extension == "xlsx":
            body = to_excel_bytes(table, generated_at=generated_at)
        else:
            body = to_pdf_bytes(table, generated_at=generated_at)

        filename = export_filename(table, extension, generated_at=generated_at)
        return app.response_class(
            body,
            mimetype=mimetype,
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )

    @app.route("/api/attendance/stats", methods=["GET"], endpoint="api_attendance_stats")
    @json_api
    @login_required
    def stats():
        role = current_role()
        if role == Role.STUDENT:
            return ok(stats=reports.student_stats(current_user_id()))
        if role == Role.TEACHER:
            return ok(stats=reports.teacher_stats(current_user_id()))
        return ok(stats=reports.system_stats())

    @app.route("/api/admin/stats", methods=["GET"], endpoint="api_admin_stats")
    @json_api
    @roles_required(Role.ADMIN)
    def admin_stats():
        return ok(stats=reports.system_stats())

    @app.route("/api/admin/recent-attendance", methods=["GET"], endpoint="api_admin_recent_attendance")
    @json_api
    @roles_required(Role.ADMIN)
    def recent_attendance():
        limit = arg_int("limit") or RECENT_ATTENDANCE_LIMIT
        return ok(records=reports.recent_attendance(limit))

    @app.route(
        "/api/students/<int:student_id>/attendance-report", methods=["GET"], endpoint="api_student_attendance_report"
    )
    @json_api
    @login_required
    def student_report(student_id: int):
        if current_role() == Role.STUDENT and student_id != current_user_id():
            raise AuthorizationError("You can only view your own attendance report")
        report = reports.student_report(student_id)

        fmt = (request.args.get("format") or "json").lower()
        if fmt == "json":
            return ok(**report)
        rows = attendance.history(student_id)
        title = f"Attendance Report - {report['student']['full_name']}"
        return _send(reports.records_table(rows, title=title), fmt)

    @app.route("/api/attendance/export", methods=["GET"], endpoint="api_attendance_export")
    @json_api
    @login_required
    def export():
        role = current_role()
        fmt = (request.args.get("format") or "csv").lower()
        lesson_id = arg_int("lesson_id")
        default_scope = "history" if role == Role.STUDENT else ("lesson" if lesson_id else "records")
        scope = (request.args.get("scope") or default_scope).lower()

        if scope == "lesson":
            if role == Role.STUDENT:
                raise AuthorizationError("Students cannot export lesson attendance")
            if lesson_id is None:
                raise ValidationError("lesson_id is required")
            data = attendance.lesson_attendance(current_role=role, current_user_id=current_user_id(), lesson_id=lesson_id)
            table = reports.lesson_table(data.pop("lesson"), data)
        elif scope == "history":
            student_id = current_user_id() if role == Role.STUDENT else arg_int("student_id")
            if student_id is None:
                raise ValidationError("student_id is required")
            rows = attendance.history(student_id)
            if role == Role.TEACHER:
                rows = [r for r in rows if r.teacher_id == current_user_id()]
            table = reports.records_table(rows, title="Attendance History")
        elif scope == "records":
            rows = attendance.list_records(
                current_role=role, current_user_id=current_user_id(), filters=record_filter_from_request()
            )
            table = reports.records_table(rows)
        else:
            raise ValidationError(f"Unknown export scope: {scope}")

        return _send(table, fmt)
