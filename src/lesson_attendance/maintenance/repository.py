from __future__ import annotations

from typing import Any, Mapping, Protocol, Sequence

# Insert order (parents first); deletes run in reverse.
SNAPSHOT_TABLES = (
    "departments",
    "levels",
    "classes",
    "users",
    "teacher_departments",
    "lessons",
    "attendance_records",
    "system_settings",
)


class SnapshotRepository(Protocol):
    def dump(self) -> dict[str, list[dict[str, Any]]]:
        raise NotImplementedError

    def restore(self, tables: Mapping[str, Sequence[Mapping[str, Any]]]) -> dict[str, int]:
        """Replace table contents; returns rows inserted per table."""

        raise NotImplementedError

    def clear(self) -> dict[str, int]:
        """Delete everything except admin accounts and system settings; returns rows deleted per table."""

        raise NotImplementedError
