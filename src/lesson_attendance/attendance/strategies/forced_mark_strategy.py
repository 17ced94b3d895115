from __future__ import annotations

from ...core.enums import AttendanceStatus, Role
from ...core.exceptions import AuthorizationError
from ...settings.model import SystemSettings
from ..window import WindowState
from .base import MarkDecision, MarkingStrategy

OVERRIDE_NOTE = "Marked outside the attendance window"


class ForcedMarkStrategy(MarkingStrategy):
    """Staff override: ignores the window. Teachers need `allow_teacher_override`."""

    def __init__(self, actor_role: Role):
        self._actor_role = actor_role

    def decide(self, *, window: WindowState, requested: AttendanceStatus, settings: SystemSettings) -> MarkDecision:
        if self._actor_role == Role.TEACHER and not settings.allow_teacher_override:
            raise AuthorizationError("Teacher override is disabled in system settings")
        note = None if window.can_mark else OVERRIDE_NOTE
        return MarkDecision(status=requested, note=note)
