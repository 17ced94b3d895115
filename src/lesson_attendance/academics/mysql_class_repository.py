from __future__ import annotations

from typing import Iterable, Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause
from .model import SchoolClass
from .repository import ClassRepository

_SELECT = """
    SELECT c.class_id, c.class_name, c.dept_id, c.level_id, d.dept_name, l.level_name
    FROM classes c
    LEFT JOIN departments d ON d.dept_id = c.dept_id
    LEFT JOIN levels l ON l.level_id = c.level_id
"""


def _row_to_class(r: dict) -> SchoolClass:
    return SchoolClass(
        class_id=int(r["class_id"]),
        class_name=r["class_name"],
        dept_id=int(r["dept_id"]),
        level_id=int(r["level_id"]),
        dept_name=r.get("dept_name"),
        level_name=r.get("level_name"),
    )


class MySQLClassRepository(ClassRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list(
        self,
        *,
        dept_id: Optional[int] = None,
        level_id: Optional[int] = None,
        dept_ids: Optional[Iterable[int]] = None,
    ) -> Sequence[SchoolClass]:
        clauses: list[str] = []
        params: list[object] = []

        if dept_id is not None:
            clauses.append("c.dept_id=%s")
            params.append(int(dept_id))
        if level_id is not None:
            clauses.append("c.level_id=%s")
            params.append(int(level_id))
        if dept_ids is not None:
            ids = [int(i) for i in dept_ids]
            if not ids:
                return []
            clauses.append(f"c.dept_id IN ({in_clause(ids)})")
            params.extend(ids)

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} {where} ORDER BY l.level_number, c.class_name", tuple(params))
            return [_row_to_class(r) for r in fetchall(cur)]

    def get_by_id(self, class_id: int) -> Optional[SchoolClass]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE c.class_id=%s", (int(class_id),))
            row = fetchone(cur)
            return _row_to_class(row) if row else None

    def create(self, *, class_name: str, dept_id: int, level_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO classes(class_name, dept_id, level_id) VALUES(%s,%s,%s)",
                (class_name, int(dept_id), int(level_id)),
            )
            return int(cur.lastrowid)

    def update(self, *, class_id: int, class_name: str, dept_id: int, level_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE classes SET class_name=%s, dept_id=%s, level_id=%s WHERE class_id=%s",
                (class_name, int(dept_id), int(level_id), int(class_id)),
            )
            return cur.rowcount > 0

    def delete(self, class_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM classes WHERE class_id=%s", (int(class_id),))
            return cur.rowcount > 0
