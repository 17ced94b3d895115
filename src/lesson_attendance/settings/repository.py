from __future__ import annotations

from typing import Protocol

from .model import SystemSettings


class SettingsRepository(Protocol):
    def get(self) -> SystemSettings:
        """Return stored settings, or defaults when the row is missing."""

        raise NotImplementedError

    def save(self, settings: SystemSettings) -> None:
        raise NotImplementedError
