from __future__ import annotations

from dataclasses import fields

from ..database.connection import DatabaseConnection
from ..database.mysql_base import build_update, db_cursor, fetchone
from .model import SystemSettings
from .repository import SettingsRepository

_SETTINGS_ROW_ID = 1
_FIELD_NAMES = tuple(f.name for f in fields(SystemSettings))
_BOOL_FIELDS = frozenset(f.name for f in fields(SystemSettings) if f.type in ("bool", bool))


class MySQLSettingsRepository(SettingsRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self) -> SystemSettings:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {', '.join(_FIELD_NAMES)} FROM system_settings WHERE settings_id=%s",
                (_SETTINGS_ROW_ID,),
            )
            row = fetchone(cur)
            if not row:
                return SystemSettings()
            values = {}
            for name in _FIELD_NAMES:
                value = row.get(name)
                values[name] = bool(value) if name in _BOOL_FIELDS else value
            return SystemSettings(**values)

    def save(self, settings: SystemSettings) -> None:
        values = settings.to_dict()
        params = [int(v) if isinstance(v, bool) else v for v in values.values()]
        assignments, _ = build_update(values.items())
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                INSERT INTO system_settings(settings_id, {', '.join(values)})
                VALUES(%s, {', '.join(['%s'] * len(values))})
                ON DUPLICATE KEY UPDATE {assignments}
                """,
                (_SETTINGS_ROW_ID, *params, *params),
            )
