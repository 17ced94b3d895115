from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Collection, Mapping, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall
from .repository import SNAPSHOT_TABLES, SnapshotRepository


def _jsonable(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%d %H:%M:%S")
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, (bytes, bytearray)):
        return value.decode("utf-8")
    return value


def checked_columns(table: str, row: Mapping[str, Any], known: Collection[str]) -> list[str]:
    """Column names of a snapshot row, refused unless they all exist on `table`."""

    if not isinstance(row, Mapping) or not row:
        raise ValueError(f"Snapshot rows for {table} must be non-empty objects")
    columns = list(row)
    unknown = [c for c in columns if c not in known]
    if unknown:
        raise ValueError(f"Snapshot row for {table} has unknown columns: {sorted(unknown)}")
    return columns


class MySQLSnapshotRepository(SnapshotRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def dump(self) -> dict[str, list[dict[str, Any]]]:
        out: dict[str, list[dict[str, Any]]] = {}
        with db_cursor(self._conn_factory) as (_, cur):
            for table in SNAPSHOT_TABLES:
                cur.execute(f"SELECT * FROM `{table}`")
                out[table] = [{k: _jsonable(v) for k, v in row.items()} for row in fetchall(cur)]
        return out

    def restore(self, tables: Mapping[str, Sequence[Mapping[str, Any]]]) -> dict[str, int]:
        unknown = set(tables) - set(SNAPSHOT_TABLES)
        if unknown:
            raise ValueError(f"Unknown tables in snapshot: {sorted(unknown)}")

        inserted: dict[str, int] = {}
        with db_cursor(self._conn_factory) as (_, cur):
            statements: list[tuple[str, tuple]] = []
            for table in SNAPSHOT_TABLES:
                rows = tables.get(table)
                if rows is None:
                    continue
                cur.execute(f"SHOW COLUMNS FROM `{table}`")
                known = {col["Field"] for col in fetchall(cur)}
                for row in rows:
                    columns = checked_columns(table, row, known)
                    names = ", ".join(f"`{c}`" for c in columns)
                    placeholders = ", ".join(["%s"] * len(columns))
                    sql = f"INSERT INTO `{table}` ({names}) VALUES ({placeholders})"
                    statements.append((sql, tuple(row[c] for c in columns)))
                inserted[table] = len(rows)

            cur.execute("SET FOREIGN_KEY_CHECKS=0")
            try:
                for table in reversed(SNAPSHOT_TABLES):
                    if table in tables:
                        cur.execute(f"DELETE FROM `{table}`")
                for sql, params in statements:
                    cur.execute(sql, params)
            finally:
                cur.execute("SET FOREIGN_KEY_CHECKS=1")
        return inserted

    def clear(self) -> dict[str, int]:
        deleted: dict[str, int] = {}
        with db_cursor(self._conn_factory) as (_, cur):
            for table in ("attendance_records", "lessons", "teacher_departments"):
                cur.execute(f"DELETE FROM `{table}`")
                deleted[table] = cur.rowcount
            cur.execute("DELETE FROM users WHERE role <> 'admin'")
            deleted["users"] = cur.rowcount
            cur.execute("UPDATE users SET dept_id=NULL, class_id=NULL")
            for table in ("classes", "levels", "departments"):
                cur.execute(f"DELETE FROM `{table}`")
                deleted[table] = cur.rowcount
        return deleted
