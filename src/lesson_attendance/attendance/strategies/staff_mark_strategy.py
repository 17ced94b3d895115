from __future__ import annotations

from ...core.enums import AttendanceStatus
from ...core.exceptions import ValidationError
from ...settings.model import SystemSettings
from ..window import WindowState
from .base import MarkDecision, MarkingStrategy


class StaffMarkStrategy(MarkingStrategy):
    """Teacher/admin marking inside the window: any status."""

    def decide(self, *, window: WindowState, requested: AttendanceStatus, settings: SystemSettings) -> MarkDecision:
        if not window.can_mark:
            raise ValidationError(f"{window.label}; use override to mark outside the attendance window")
        return MarkDecision(status=requested)
