from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class User:
    """Domain entity: an account (admin, teacher or student).

    Plain data object; no DB access here. `dept_id` is a teacher's primary
    department, `class_id` a student's class. For students `username` is the
    admission number.
    """

    user_id: int
    full_name: str
    username: str
    password_hash: str
    role: Role
    dept_id: Optional[int] = None
    class_id: Optional[int] = None
    is_active: bool = True
    created_at: Optional[datetime] = None
