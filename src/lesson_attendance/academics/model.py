from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Department:
    dept_id: int
    dept_name: str


@dataclass(frozen=True)
class Level:
    level_id: int
    level_number: int
    level_name: str


@dataclass(frozen=True)
class SchoolClass:
    """A class (form/stream) students belong to.

    `dept_name`/`level_name` are filled by the joined queries used for listings.
    """

    class_id: int
    class_name: str
    dept_id: int
    level_id: int
    dept_name: Optional[str] = None
    level_name: Optional[str] = None
