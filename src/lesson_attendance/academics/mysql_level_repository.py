from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Level
from .repository import LevelRepository


class MySQLLevelRepository(LevelRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_all(self) -> Sequence[Level]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT level_id, level_number, level_name FROM levels ORDER BY level_number, level_name")
            return [
                Level(level_id=int(r["level_id"]), level_number=int(r["level_number"]), level_name=r["level_name"])
                for r in fetchall(cur)
            ]

    def get_by_id(self, level_id: int) -> Optional[Level]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT level_id, level_number, level_name FROM levels WHERE level_id=%s",
                (int(level_id),),
            )
            r = fetchone(cur)
            if not r:
                return None
            return Level(level_id=int(r["level_id"]), level_number=int(r["level_number"]), level_name=r["level_name"])

    def create(self, *, level_number: int, level_name: str) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO levels(level_number, level_name) VALUES(%s,%s)",
                (int(level_number), level_name),
            )
            return int(cur.lastrowid)

    def update(self, *, level_id: int, level_number: int, level_name: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE levels SET level_number=%s, level_name=%s WHERE level_id=%s",
                (int(level_number), level_name, int(level_id)),
            )
            return cur.rowcount > 0

    def delete(self, level_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM levels WHERE level_id=%s", (int(level_id),))
            return cur.rowcount > 0
