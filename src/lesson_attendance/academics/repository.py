from __future__ import annotations

from typing import Iterable, Optional, Protocol, Sequence

from .model import Department, Level, SchoolClass


class DepartmentRepository(Protocol):
    def list_all(self) -> Sequence[Department]:
        raise NotImplementedError

    def get_by_id(self, dept_id: int) -> Optional[Department]:
        raise NotImplementedError

    def get_by_name(self, dept_name: str) -> Optional[Department]:
        raise NotImplementedError

    def create(self, *, dept_name: str) -> int:
        raise NotImplementedError

    def update(self, *, dept_id: int, dept_name: str) -> bool:
        raise NotImplementedError

    def delete(self, dept_id: int) -> bool:
        raise NotImplementedError


class LevelRepository(Protocol):
    def list_all(self) -> Sequence[Level]:
        raise NotImplementedError

    def get_by_id(self, level_id: int) -> Optional[Level]:
        raise NotImplementedError

    def create(self, *, level_number: int, level_name: str) -> int:
        raise NotImplementedError

    def update(self, *, level_id: int, level_number: int, level_name: str) -> bool:
        raise NotImplementedError

    def delete(self, level_id: int) -> bool:
        raise NotImplementedError


class ClassRepository(Protocol):
    def list(
        self,
        *,
        dept_id: Optional[int] = None,
        level_id: Optional[int] = None,
        dept_ids: Optional[Iterable[int]] = None,
    ) -> Sequence[SchoolClass]:
        raise NotImplementedError

    def get_by_id(self, class_id: int) -> Optional[SchoolClass]:
        raise NotImplementedError

    def create(self, *, class_name: str, dept_id: int, level_id: int) -> int:
        raise NotImplementedError

    def update(self, *, class_id: int, class_name: str, dept_id: int, level_id: int) -> bool:
        raise NotImplementedError

    def delete(self, class_id: int) -> bool:
        raise NotImplementedError
