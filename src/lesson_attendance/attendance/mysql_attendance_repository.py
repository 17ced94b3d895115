from __future__ import annotations

from datetime import datetime, timedelta
from typing import Mapping, Optional, Sequence

from ..core.enums import AttendanceStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import AttendanceRecord, AttendanceRow, RecordFilter
from .repository import AttendanceRepository

_RECORD_COLUMNS = "attendance_id, lesson_id, student_id, status, marked_at, marked_by, note"


def _row_to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        lesson_id=int(r["lesson_id"]),
        student_id=int(r["student_id"]),
        status=AttendanceStatus(r["status"]),
        marked_at=r["marked_at"],
        marked_by=r.get("marked_by"),
        note=r.get("note"),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_for_lesson_and_student(self, lesson_id: int, student_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_RECORD_COLUMNS} FROM attendance_records WHERE lesson_id=%s AND student_id=%s",
                (int(lesson_id), int(student_id)),
            )
            row = fetchone(cur)
            return _row_to_record(row) if row else None

    def list_for_lesson(self, lesson_id: int) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_RECORD_COLUMNS} FROM attendance_records WHERE lesson_id=%s ORDER BY marked_at",
                (int(lesson_id),),
            )
            return [_row_to_record(r) for r in fetchall(cur)]

    def list_for_student(self, student_id: int) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_RECORD_COLUMNS} FROM attendance_records WHERE student_id=%s ORDER BY marked_at DESC",
                (int(student_id),),
            )
            return [_row_to_record(r) for r in fetchall(cur)]

    def create(
        self,
        *,
        lesson_id: int,
        student_id: int,
        status: AttendanceStatus,
        marked_at: datetime,
        marked_by: Optional[int],
        note: Optional[str] = None,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance_records(lesson_id, student_id, status, marked_at, marked_by, note)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (int(lesson_id), int(student_id), status.value, marked_at, marked_by, note),
            )
            return int(cur.lastrowid)

    def update(
        self,
        *,
        attendance_id: int,
        status: AttendanceStatus,
        marked_at: datetime,
        marked_by: Optional[int],
        note: Optional[str] = None,
    ) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_records
                SET status=%s, marked_at=%s, marked_by=%s, note=%s
                WHERE attendance_id=%s
                """,
                (status.value, marked_at, marked_by, note, int(attendance_id)),
            )

    def list_rows(self, filters: RecordFilter) -> Sequence[AttendanceRow]:
        clauses: list[str] = []
        params: list[object] = []

        if filters.class_id is not None:
            clauses.append("ls.class_id=%s")
            params.append(int(filters.class_id))
        if filters.lesson_id is not None:
            clauses.append("ar.lesson_id=%s")
            params.append(int(filters.lesson_id))
        if filters.student_id is not None:
            clauses.append("ar.student_id=%s")
            params.append(int(filters.student_id))
        if filters.teacher_id is not None:
            clauses.append("ls.teacher_id=%s")
            params.append(int(filters.teacher_id))
        if filters.status is not None:
            clauses.append("ar.status=%s")
            params.append(filters.status.value)
        if filters.start_date is not None:
            clauses.append("ar.marked_at >= %s")
            params.append(datetime.combine(filters.start_date, datetime.min.time()))
        if filters.end_date is not None:
            clauses.append("ar.marked_at < %s")
            params.append(datetime.combine(filters.end_date + timedelta(days=1), datetime.min.time()))
        if filters.search:
            clauses.append("(s.full_name LIKE %s OR s.username LIKE %s OR ls.subject LIKE %s)")
            like = f"%{filters.search.strip()}%"
            params.extend([like, like, like])

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        limit = ""
        if filters.limit is not None:
            limit = "LIMIT %s"
            params.append(int(filters.limit))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT
                    ar.attendance_id, ar.lesson_id, ar.student_id, ar.status, ar.marked_at, ar.note,
                    s.full_name AS student_name, s.username,
                    ls.class_id, c.class_name, ls.subject, ls.teacher_id, t.full_name AS teacher_name,
                    ls.day_of_week, ls.start_time_minutes
                FROM attendance_records ar
                JOIN users s ON s.user_id = ar.student_id
                JOIN lessons ls ON ls.lesson_id = ar.lesson_id
                LEFT JOIN classes c ON c.class_id = ls.class_id
                LEFT JOIN users t ON t.user_id = ls.teacher_id
                {where}
                ORDER BY ar.marked_at DESC, ar.attendance_id DESC
                {limit}
                """,
                tuple(params),
            )
            return [
                AttendanceRow(
                    attendance_id=int(r["attendance_id"]),
                    lesson_id=int(r["lesson_id"]),
                    student_id=int(r["student_id"]),
                    student_name=r["student_name"],
                    username=r["username"],
                    class_id=int(r["class_id"]),
                    class_name=r.get("class_name"),
                    subject=r["subject"],
                    teacher_id=int(r["teacher_id"]),
                    teacher_name=r.get("teacher_name"),
                    day_of_week=int(r["day_of_week"]),
                    start_time_minutes=int(r["start_time_minutes"]),
                    status=AttendanceStatus(r["status"]),
                    marked_at=r["marked_at"],
                    note=r.get("note"),
                )
                for r in fetchall(cur)
            ]

    def count_by_status(
        self,
        *,
        student_id: Optional[int] = None,
        teacher_id: Optional[int] = None,
    ) -> Mapping[AttendanceStatus, int]:
        clauses: list[str] = []
        params: list[object] = []
        if student_id is not None:
            clauses.append("ar.student_id=%s")
            params.append(int(student_id))
        if teacher_id is not None:
            clauses.append("ls.teacher_id=%s")
            params.append(int(teacher_id))
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT ar.status, COUNT(*) AS total
                FROM attendance_records ar
                JOIN lessons ls ON ls.lesson_id = ar.lesson_id
                {where}
                GROUP BY ar.status
                """,
                tuple(params),
            )
            counts = {status: 0 for status in AttendanceStatus}
            for r in fetchall(cur):
                counts[AttendanceStatus(r["status"])] = int(r["total"])
            return counts
