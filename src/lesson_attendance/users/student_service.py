from __future__ import annotations

import logging
from typing import Optional, Sequence

from werkzeug.security import generate_password_hash

from ..academics.repository import ClassRepository
from ..common.validators import require_int_range, require_min_length, require_non_empty
from ..core.constants import MIN_PASSWORD_LENGTH
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError
from .model import User
from .repository import UserRepository

logger = logging.getLogger(__name__)


class StudentService:
    """Use case: manage student accounts (admin)."""

    def __init__(self, users: UserRepository, classes: ClassRepository):
        self._users = users
        self._classes = classes

    def list_students(self, *, class_id: Optional[int] = None) -> Sequence[User]:
        return self._users.list_users(role=Role.STUDENT, class_id=class_id)

    def get_student(self, student_id: int) -> User:
        student = self._users.get_by_id(int(student_id))
        if not student or student.role != Role.STUDENT:
            raise NotFoundError("Student not found")
        return student

    def _require_class(self, class_id) -> int:
        school_class = self._classes.get_by_id(require_int_range(class_id, "Class", 1))
        if not school_class:
            raise NotFoundError("Class not found")
        return school_class.class_id

    def create_student(self, *, current_role: Role, full_name: str, username: str, password: str, class_id) -> int:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Only administrators can create students")
        full_name = require_non_empty(full_name, "Full name")
        username = require_non_empty(username, "Admission number")
        require_min_length(password, "Password", MIN_PASSWORD_LENGTH)
        class_id = self._require_class(class_id)
        if self._users.get_by_username(username):
            raise ConflictError("Username already exists")

        student_id = self._users.create_user(
            full_name=full_name,
            username=username,
            password_hash=generate_password_hash(password),
            role=Role.STUDENT,
            class_id=class_id,
        )
        logger.info("Student created: %s (%s)", username, student_id)
        return student_id

    def update_student(
        self,
        *,
        current_role: Role,
        student_id: int,
        full_name: Optional[str] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        class_id=None,
    ) -> User:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Only administrators can edit students")
        student = self.get_student(student_id)

        changes: dict = {}
        if full_name is not None:
            changes["full_name"] = require_non_empty(full_name, "Full name")
        if username is not None:
            username = require_non_empty(username, "Admission number")
            other = self._users.get_by_username(username)
            if other and other.user_id != student.user_id:
                raise ConflictError("Username already exists")
            changes["username"] = username
        if password:
            require_min_length(password, "Password", MIN_PASSWORD_LENGTH)
            changes["password_hash"] = generate_password_hash(password)
        if class_id is not None:
            changes["class_id"] = self._require_class(class_id)

        self._users.update_user(student.user_id, changes)
        return self.get_student(student.user_id)

    def delete_student(self, *, current_role: Role, student_id: int) -> None:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Only administrators can delete students")
        student = self.get_student(student_id)
        self._users.delete_by_id(student.user_id)
        logger.info("Student deleted: %s", student.user_id)
