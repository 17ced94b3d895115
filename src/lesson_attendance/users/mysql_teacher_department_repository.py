from __future__ import annotations

from typing import Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall
from .repository import TeacherDepartmentRepository


class MySQLTeacherDepartmentRepository(TeacherDepartmentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_for_teacher(self, teacher_id: int) -> Sequence[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT dept_id FROM teacher_departments WHERE teacher_id=%s ORDER BY dept_id",
                (int(teacher_id),),
            )
            return [int(r["dept_id"]) for r in fetchall(cur)]

    def add(self, *, teacher_id: int, dept_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT IGNORE INTO teacher_departments(teacher_id, dept_id) VALUES(%s,%s)",
                (int(teacher_id), int(dept_id)),
            )
            return cur.rowcount > 0

    def remove(self, *, teacher_id: int, dept_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "DELETE FROM teacher_departments WHERE teacher_id=%s AND dept_id=%s",
                (int(teacher_id), int(dept_id)),
            )
            return cur.rowcount > 0
