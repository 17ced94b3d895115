from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from ...core.enums import AttendanceStatus
from ...settings.model import SystemSettings
from ..window import WindowState


@dataclass(frozen=True)
class MarkDecision:
    status: AttendanceStatus
    note: Optional[str] = None


class MarkingStrategy(ABC):
    """Strategy Pattern: decide what gets recorded when someone marks attendance."""

    @abstractmethod
    def decide(
        self,
        *,
        window: WindowState,
        requested: AttendanceStatus,
        settings: SystemSettings,
    ) -> MarkDecision:
        raise NotImplementedError
