from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional, Protocol, Sequence

from ..core.enums import Role
from .model import User

# Columns `update_user` accepts; anything else is a programming error.
UPDATABLE_USER_COLUMNS = frozenset({"full_name", "username", "password_hash", "dept_id", "class_id", "is_active"})


class UserRepository(Protocol):
    def get_by_id(self, user_id: int) -> Optional[User]:
        raise NotImplementedError

    def get_by_username(self, username: str) -> Optional[User]:
        raise NotImplementedError

    def create_user(
        self,
        *,
        full_name: str,
        username: str,
        password_hash: str,
        role: Role,
        dept_id: Optional[int] = None,
        class_id: Optional[int] = None,
    ) -> int:
        raise NotImplementedError

    def update_user(self, user_id: int, changes: Mapping[str, Any]) -> None:
        raise NotImplementedError

    def delete_by_id(self, user_id: int) -> bool:
        raise NotImplementedError

    def list_users(
        self,
        *,
        role: Optional[Role] = None,
        class_id: Optional[int] = None,
        class_ids: Optional[Iterable[int]] = None,
        dept_id: Optional[int] = None,
    ) -> Sequence[User]:
        raise NotImplementedError

    def count_by_role(self, role: Role) -> int:
        raise NotImplementedError


class TeacherDepartmentRepository(Protocol):
    """Additional departments a teacher works in (besides `User.dept_id`)."""

    def list_for_teacher(self, teacher_id: int) -> Sequence[int]:
        raise NotImplementedError

    def add(self, *, teacher_id: int, dept_id: int) -> bool:
        raise NotImplementedError

    def remove(self, *, teacher_id: int, dept_id: int) -> bool:
        raise NotImplementedError
