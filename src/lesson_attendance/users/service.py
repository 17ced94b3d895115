from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from werkzeug.security import check_password_hash, generate_password_hash

from ..academics.repository import ClassRepository
from ..common.validators import require_int_range, require_min_length, require_non_empty
from ..core.constants import MIN_PASSWORD_LENGTH, MIN_PROFILE_PASSWORD_LENGTH
from ..core.enums import Role
from ..core.exceptions import AuthenticationError, ConflictError, NotFoundError, ValidationError
from .model import User
from .repository import UserRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionUser:
    """What we store into Flask session after login."""

    user_id: int
    full_name: str
    username: str
    role: Role
    dept_id: Optional[int]
    class_id: Optional[int]


def verify_password(user: User, password: str) -> bool:
    try:
        return check_password_hash(user.password_hash, password or "")
    except ValueError:
        # e.g. placeholder hashes like 'CHANGE_ME' or corrupted values
        return False


def user_to_dict(user: User) -> dict:
    return {
        "user_id": user.user_id,
        "full_name": user.full_name,
        "username": user.username,
        "role": user.role.value,
        "dept_id": user.dept_id,
        "class_id": user.class_id,
        "is_active": user.is_active,
        "created_at": user.created_at.isoformat() if user.created_at else None,
    }


class AuthService:
    """Use cases: login, student self-registration, own profile."""

    def __init__(self, users: UserRepository, classes: ClassRepository):
        self._users = users
        self._classes = classes

    def authenticate(self, username: str, password: str) -> SessionUser:
        user = self._users.get_by_username((username or "").strip())
        if not user or not user.is_active or not verify_password(user, password):
            logger.info("Failed login for %r", username)
            raise AuthenticationError("Invalid username or password")

        return SessionUser(
            user_id=user.user_id,
            full_name=user.full_name,
            username=user.username,
            role=user.role,
            dept_id=user.dept_id,
            class_id=user.class_id,
        )

    def get_user(self, user_id: int) -> User:
        user = self._users.get_by_id(int(user_id))
        if not user:
            raise NotFoundError("User not found")
        return user

    def register_student(
        self,
        *,
        full_name: str,
        username: str,
        password: str,
        confirm_password: str,
        dept_id,
        level_id,
        class_id,
    ) -> int:
        full_name = require_non_empty(full_name, "Full name")
        username = require_non_empty(username, "Admission number")
        require_min_length(password, "Password", MIN_PASSWORD_LENGTH)
        if password != confirm_password:
            raise ValidationError("Passwords do not match")

        dept_id = require_int_range(dept_id, "Department", 1)
        level_id = require_int_range(level_id, "Level", 1)
        school_class = self._classes.get_by_id(require_int_range(class_id, "Class", 1))
        if not school_class:
            raise NotFoundError("Class not found")
        if school_class.dept_id != dept_id or school_class.level_id != level_id:
            raise ValidationError("Selected class does not belong to the chosen department and level")

        if self._users.get_by_username(username):
            raise ConflictError("An account with this admission number already exists")

        user_id = self._users.create_user(
            full_name=full_name,
            username=username,
            password_hash=generate_password_hash(password),
            role=Role.STUDENT,
            class_id=school_class.class_id,
        )
        logger.info("Student self-registered: %s (%s)", username, user_id)
        return user_id

    def update_profile(
        self,
        *,
        user_id: int,
        full_name: str,
        current_password: Optional[str] = None,
        new_password: Optional[str] = None,
        confirm_password: Optional[str] = None,
    ) -> User:
        user = self.get_user(user_id)
        changes: dict = {"full_name": require_non_empty(full_name, "Full name")}

        if current_password or new_password or confirm_password:
            if not (current_password and new_password and confirm_password):
                raise ValidationError("Current, new and confirm password are all required to change password")
            require_min_length(new_password, "New password", MIN_PROFILE_PASSWORD_LENGTH)
            if new_password != confirm_password:
                raise ValidationError("New passwords do not match")
            if not verify_password(user, current_password):
                raise ValidationError("Current password is incorrect")
            changes["password_hash"] = generate_password_hash(new_password)

        self._users.update_user(user.user_id, changes)
        logger.info("Profile updated for user %s%s", user.user_id, " (password changed)" if "password_hash" in changes else "")
        return self.get_user(user.user_id)
