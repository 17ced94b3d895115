from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional, Sequence

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import build_update, db_cursor, fetchall, fetchone, in_clause
from .model import User
from .repository import UPDATABLE_USER_COLUMNS, UserRepository

_COLUMNS = "user_id, full_name, username, password_hash, role, dept_id, class_id, is_active, created_at"


def _row_to_user(row: dict) -> User:
    return User(
        user_id=int(row["user_id"]),
        full_name=row["full_name"],
        username=row["username"],
        password_hash=row["password_hash"],
        role=Role(row["role"]),
        dept_id=row.get("dept_id"),
        class_id=row.get("class_id"),
        is_active=bool(row.get("is_active", True)),
        created_at=row.get("created_at"),
    )


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, user_id: int) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE user_id=%s", (int(user_id),))
            row = fetchone(cur)
            return _row_to_user(row) if row else None

    def get_by_username(self, username: str) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE username=%s", (username,))
            row = fetchone(cur)
            return _row_to_user(row) if row else None

    def create_user(
        self,
        *,
        full_name: str,
        username: str,
        password_hash: str,
        role: Role,
        dept_id: Optional[int] = None,
        class_id: Optional[int] = None,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO users(full_name, username, password_hash, role, dept_id, class_id, is_active)
                VALUES(%s,%s,%s,%s,%s,%s,1)
                """,
                (full_name, username, password_hash, role.value, dept_id, class_id),
            )
            return int(cur.lastrowid)

    def update_user(self, user_id: int, changes: Mapping[str, Any]) -> None:
        unknown = set(changes) - UPDATABLE_USER_COLUMNS
        if unknown:
            raise ValueError(f"Unsupported user columns: {sorted(unknown)}")
        if not changes:
            return
        assignments, params = build_update(changes.items())
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"UPDATE users SET {assignments} WHERE user_id=%s", (*params, int(user_id)))

    def delete_by_id(self, user_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM users WHERE user_id=%s", (int(user_id),))
            return cur.rowcount > 0

    def list_users(
        self,
        *,
        role: Optional[Role] = None,
        class_id: Optional[int] = None,
        class_ids: Optional[Iterable[int]] = None,
        dept_id: Optional[int] = None,
    ) -> Sequence[User]:
        clauses: list[str] = []
        params: list[object] = []
        if role is not None:
            clauses.append("role=%s")
            params.append(role.value)
        if class_id is not None:
            clauses.append("class_id=%s")
            params.append(int(class_id))
        if class_ids is not None:
            ids = [int(i) for i in class_ids]
            if not ids:
                return []
            clauses.append(f"class_id IN ({in_clause(ids)})")
            params.extend(ids)
        if dept_id is not None:
            clauses.append("dept_id=%s")
            params.append(int(dept_id))

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users {where} ORDER BY full_name", tuple(params))
            return [_row_to_user(r) for r in fetchall(cur)]

    def count_by_role(self, role: Role) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COUNT(*) AS total FROM users WHERE role=%s", (role.value,))
            row = fetchone(cur)
            return int(row["total"]) if row else 0
