from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable, Mapping, Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import build_update, db_cursor, fetchall, fetchone, in_clause
from .model import Lesson
from .repository import UPDATABLE_LESSON_COLUMNS, LessonRepository

_SELECT = """
    SELECT ls.lesson_id, ls.class_id, ls.teacher_id, ls.subject, ls.day_of_week,
           ls.start_time_minutes, ls.duration_minutes, ls.location,
           ls.attendance_window_minutes, ls.is_active, ls.is_instant, ls.created_at,
           c.class_name, t.full_name AS teacher_name
    FROM lessons ls
    LEFT JOIN classes c ON c.class_id = ls.class_id
    LEFT JOIN users t ON t.user_id = ls.teacher_id
"""


def _row_to_lesson(r: dict) -> Lesson:
    return Lesson(
        lesson_id=int(r["lesson_id"]),
        class_id=int(r["class_id"]),
        teacher_id=int(r["teacher_id"]),
        subject=r["subject"],
        day_of_week=int(r["day_of_week"]),
        start_time_minutes=int(r["start_time_minutes"]),
        duration_minutes=int(r["duration_minutes"]),
        attendance_window_minutes=int(r["attendance_window_minutes"]),
        location=r.get("location"),
        is_active=bool(r.get("is_active", True)),
        is_instant=bool(r.get("is_instant", False)),
        created_at=r.get("created_at"),
        class_name=r.get("class_name"),
        teacher_name=r.get("teacher_name"),
    )


class MySQLLessonRepository(LessonRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, lesson_id: int) -> Optional[Lesson]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE ls.lesson_id=%s", (int(lesson_id),))
            row = fetchone(cur)
            return _row_to_lesson(row) if row else None

    def list(
        self,
        *,
        class_id: Optional[int] = None,
        teacher_id: Optional[int] = None,
        class_ids: Optional[Iterable[int]] = None,
        active_only: bool = False,
    ) -> Sequence[Lesson]:
        clauses: list[str] = []
        params: list[object] = []
        if class_id is not None:
            clauses.append("ls.class_id=%s")
            params.append(int(class_id))
        if teacher_id is not None:
            clauses.append("ls.teacher_id=%s")
            params.append(int(teacher_id))
        if class_ids is not None:
            ids = [int(i) for i in class_ids]
            if not ids:
                return []
            clauses.append(f"ls.class_id IN ({in_clause(ids)})")
            params.extend(ids)
        if active_only:
            clauses.append("ls.is_active=1")

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"{_SELECT} {where} ORDER BY ls.day_of_week, ls.start_time_minutes, ls.lesson_id",
                tuple(params),
            )
            return [_row_to_lesson(r) for r in fetchall(cur)]

    def create(
        self,
        *,
        class_id: int,
        teacher_id: int,
        subject: str,
        day_of_week: int,
        start_time_minutes: int,
        duration_minutes: int,
        attendance_window_minutes: int,
        location: Optional[str],
        is_active: bool,
        is_instant: bool,
        created_at: datetime,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO lessons(
                    class_id, teacher_id, subject, day_of_week, start_time_minutes,
                    duration_minutes, location, attendance_window_minutes,
                    is_active, is_instant, created_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(class_id),
                    int(teacher_id),
                    subject,
                    int(day_of_week),
                    int(start_time_minutes),
                    int(duration_minutes),
                    location,
                    int(attendance_window_minutes),
                    1 if is_active else 0,
                    1 if is_instant else 0,
                    created_at,
                ),
            )
            return int(cur.lastrowid)

    def update(self, lesson_id: int, changes: Mapping[str, Any]) -> None:
        unknown = set(changes) - UPDATABLE_LESSON_COLUMNS
        if unknown:
            raise ValueError(f"Unsupported lesson columns: {sorted(unknown)}")
        if not changes:
            return
        assignments, params = build_update(changes.items())
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"UPDATE lessons SET {assignments} WHERE lesson_id=%s", (*params, int(lesson_id)))

    def delete(self, lesson_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM lessons WHERE lesson_id=%s", (int(lesson_id),))
            return cur.rowcount > 0

    def count(self) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COUNT(*) AS total FROM lessons")
            row = fetchone(cur)
            return int(row["total"]) if row else 0
