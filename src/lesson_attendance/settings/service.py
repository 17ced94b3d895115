from __future__ import annotations

import logging
from dataclasses import fields, replace
from typing import Any, Mapping

from ..common.validators import require_int_range
from ..core.constants import MAX_LESSON_DURATION_MINUTES, MIN_LESSON_DURATION_MINUTES
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, ValidationError
from .model import SystemSettings
from .repository import SettingsRepository

logger = logging.getLogger(__name__)

_BOOL_FIELDS = frozenset(f.name for f in fields(SystemSettings) if f.type in ("bool", bool))
_TEXT_FIELDS = frozenset({"school_name", "school_logo", "letterhead"})


def _as_bool(value: Any, name: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in {"1", "true", "yes", "on"}:
        return True
    if isinstance(value, str) and value.strip().lower() in {"0", "false", "no", "off"}:
        return False
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    raise ValidationError(f"{name} must be true or false")


def _as_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


class SettingsService:
    """Use case: read and update system settings (admin)."""

    def __init__(self, settings: SettingsRepository):
        self._settings = settings

    def get(self) -> SystemSettings:
        return self._settings.get()

    def update(self, *, current_role: Role, changes: Mapping[str, Any]) -> SystemSettings:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Only administrators can change system settings")

        known = {f.name for f in fields(SystemSettings)}
        unknown = sorted(set(changes) - known)
        if unknown:
            raise ValidationError(f"Unknown settings: {', '.join(unknown)}")

        cleaned: dict[str, Any] = {}
        for name, value in changes.items():
            if name in _BOOL_FIELDS:
                cleaned[name] = _as_bool(value, name)
            elif name in _TEXT_FIELDS:
                cleaned[name] = _as_text(value)
            elif name == "default_attendance_window":
                cleaned[name] = require_int_range(value, "Default attendance window", 1)
            elif name == "default_lesson_duration":
                cleaned[name] = require_int_range(
                    value, "Default lesson duration", MIN_LESSON_DURATION_MINUTES, MAX_LESSON_DURATION_MINUTES
                )
            elif name == "low_attendance_threshold":
                cleaned[name] = require_int_range(value, "Low attendance threshold", 0, 100)

        updated = replace(self._settings.get(), **cleaned)
        self._settings.save(updated)
        logger.info("System settings updated: %s", ", ".join(sorted(cleaned)) or "no changes")
        return updated
