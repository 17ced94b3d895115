from __future__ import annotations

from ..core.enums import Role
from ..core.exceptions import AuthorizationError
from .strategies.base import MarkingStrategy
from .strategies.forced_mark_strategy import ForcedMarkStrategy
from .strategies.self_mark_strategy import SelfMarkStrategy
from .strategies.staff_mark_strategy import StaffMarkStrategy


class MarkingStrategyFactory:
    """Factory Pattern: pick the marking strategy for an actor."""

    def for_actor(self, *, role: Role, force: bool = False) -> MarkingStrategy:
        if role == Role.STUDENT:
            if force:
                raise AuthorizationError("Students cannot override the attendance window")
            return SelfMarkStrategy()

        if force:
            return ForcedMarkStrategy(role)
        return StaffMarkStrategy()
