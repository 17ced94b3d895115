from __future__ import annotations

from ...core.enums import AttendanceStatus
from ...core.exceptions import ConflictError, ValidationError
from ...settings.model import SystemSettings
from ..window import WindowState, WindowStatus
from .base import MarkDecision, MarkingStrategy


class SelfMarkStrategy(MarkingStrategy):
    """A student marking themselves: only `present`, only while the window is open."""

    def decide(self, *, window: WindowState, requested: AttendanceStatus, settings: SystemSettings) -> MarkDecision:
        if window.status == WindowStatus.ALREADY_MARKED:
            raise ConflictError("Attendance already marked for this lesson")
        if not window.can_mark:
            raise ValidationError(window.label)
        if requested != AttendanceStatus.PRESENT:
            raise ValidationError("Students can only mark themselves present")
        return MarkDecision(status=AttendanceStatus.PRESENT)
