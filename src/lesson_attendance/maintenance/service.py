from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

from ..common.datetime_utils import now_local
from ..core.constants import CLEAR_DATA_CONFIRM_TOKEN, DEFAULT_BACKUP_NAME, RESTORE_CONFIRM_TOKEN
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from .repository import SnapshotRepository

logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = 1
_FILENAME_RE = re.compile(r"^[A-Za-z0-9_.-]+\.json$")


def format_file_size(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    value = float(size)
    for unit in ("KB", "MB", "GB"):
        value /= 1024
        if value < 1024 or unit == "GB":
            return f"{value:.1f} {unit}"
    return f"{size} B"


def slugify(name: Optional[str]) -> str:
    slug = re.sub(r"[^A-Za-z0-9_-]+", "-", (name or "").strip()).strip("-").lower()
    return slug or DEFAULT_BACKUP_NAME


@dataclass(frozen=True)
class BackupInfo:
    filename: str
    size: int
    created_at: datetime

    @property
    def size_label(self) -> str:
        return format_file_size(self.size)

    def to_dict(self) -> dict:
        return {
            "filename": self.filename,
            "size": self.size,
            "size_label": self.size_label,
            "created_at": self.created_at.isoformat(),
        }


def _require_admin(current_role: Role) -> None:
    if current_role != Role.ADMIN:
        raise AuthorizationError("Only administrators can manage backups and data")


class BackupService:
    """JSON snapshot backups stored as files in `backup_dir`, plus data reset."""

    def __init__(
        self,
        snapshots: SnapshotRepository,
        backup_dir: Path,
        *,
        clock: Callable[[], datetime] = now_local,
    ):
        self._snapshots = snapshots
        self._backup_dir = Path(backup_dir)
        self._clock = clock

    @property
    def backup_dir(self) -> Path:
        return self._backup_dir

    def _resolve(self, filename: str) -> Path:
        if not filename or not _FILENAME_RE.match(filename) or Path(filename).name != filename:
            raise ValidationError("Invalid backup filename")
        path = self._backup_dir / filename
        if not path.is_file():
            raise NotFoundError("Backup not found")
        return path

    def create_backup(self, *, current_role: Role, name: Optional[str] = None) -> BackupInfo:
        _require_admin(current_role)
        now = self._clock()
        self._backup_dir.mkdir(parents=True, exist_ok=True)

        filename = f"{slugify(name)}-{now.strftime('%Y%m%d-%H%M%S')}.json"
        path = self._backup_dir / filename
        if path.exists():
            raise ValidationError("A backup with this name was just created; try again in a second")

        payload = {
            "version": SNAPSHOT_VERSION,
            "name": (name or DEFAULT_BACKUP_NAME).strip() or DEFAULT_BACKUP_NAME,
            "created_at": now.isoformat(),
            "tables": self._snapshots.dump(),
        }
        path.write_text(json.dumps(payload, ensure_ascii=False, indent=2, default=str), encoding="utf-8")
        logger.info("Backup created: %s", path)
        return BackupInfo(filename=filename, size=path.stat().st_size, created_at=now)

    def list_backups(self, *, current_role: Role) -> list[BackupInfo]:
        _require_admin(current_role)
        if not self._backup_dir.is_dir():
            return []
        items = [
            BackupInfo(
                filename=p.name,
                size=p.stat().st_size,
                created_at=datetime.fromtimestamp(p.stat().st_mtime),
            )
            for p in self._backup_dir.glob("*.json")
            if p.is_file()
        ]
        items.sort(key=lambda b: (b.created_at, b.filename), reverse=True)
        return items

    def restore_backup(self, *, current_role: Role, filename: str, confirm: Optional[str]) -> dict[str, int]:
        _require_admin(current_role)
        if confirm != RESTORE_CONFIRM_TOKEN:
            raise ValidationError(f"Type '{RESTORE_CONFIRM_TOKEN}' to confirm restoring data")
        path = self._resolve(filename)

        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise ValidationError(f"Backup file is not valid JSON: {e.msg}") from e
        tables = payload.get("tables") if isinstance(payload, dict) else None
        if not isinstance(tables, dict):
            raise ValidationError("Backup file has no table data")

        try:
            counts = self._snapshots.restore(tables)
        except ValueError as e:
            raise ValidationError(str(e)) from e
        logger.warning("Data restored from backup %s (%s)", filename, counts)
        return counts

    def delete_backup(self, *, current_role: Role, filename: str) -> None:
        _require_admin(current_role)
        path = self._resolve(filename)
        path.unlink()
        logger.info("Backup deleted: %s", filename)

    def clear_data(self, *, current_role: Role, confirm: Optional[str]) -> dict[str, int]:
        _require_admin(current_role)
        if confirm != CLEAR_DATA_CONFIRM_TOKEN:
            raise ValidationError(f"Type '{CLEAR_DATA_CONFIRM_TOKEN}' to confirm deleting all data")
        counts = self._snapshots.clear()
        logger.warning("All non-admin data cleared (%s)", counts)
        return counts
