from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Department
from .repository import DepartmentRepository


def _row_to_department(row: dict) -> Department:
    return Department(dept_id=int(row["dept_id"]), dept_name=row["dept_name"])


class MySQLDepartmentRepository(DepartmentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_all(self) -> Sequence[Department]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT dept_id, dept_name FROM departments ORDER BY dept_name")
            return [_row_to_department(r) for r in fetchall(cur)]

    def get_by_id(self, dept_id: int) -> Optional[Department]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT dept_id, dept_name FROM departments WHERE dept_id=%s", (int(dept_id),))
            row = fetchone(cur)
            return _row_to_department(row) if row else None

    def get_by_name(self, dept_name: str) -> Optional[Department]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT dept_id, dept_name FROM departments WHERE dept_name=%s", (dept_name,))
            row = fetchone(cur)
            return _row_to_department(row) if row else None

    def create(self, *, dept_name: str) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("INSERT INTO departments(dept_name) VALUES(%s)", (dept_name,))
            return int(cur.lastrowid)

    def update(self, *, dept_id: int, dept_name: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE departments SET dept_name=%s WHERE dept_id=%s", (dept_name, int(dept_id)))
            return cur.rowcount > 0

    def delete(self, dept_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM departments WHERE dept_id=%s", (int(dept_id),))
            return cur.rowcount > 0
