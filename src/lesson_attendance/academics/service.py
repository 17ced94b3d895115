from __future__ import annotations

import logging
from typing import Optional, Sequence

from ..common.validators import require_int_range, require_non_empty
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..lessons.repository import LessonRepository
from ..users.repository import TeacherDepartmentRepository, UserRepository
from ..users.teacher_scope import teacher_department_ids
from .model import Department, Level, SchoolClass
from .repository import ClassRepository, DepartmentRepository, LevelRepository

logger = logging.getLogger(__name__)


def _require_admin(current_role: Role) -> None:
    if current_role != Role.ADMIN:
        raise AuthorizationError("Only administrators can manage the academic structure")


class AcademicService:
    """Use case: departments, levels and classes (admin writes, everyone reads)."""

    def __init__(
        self,
        departments: DepartmentRepository,
        levels: LevelRepository,
        classes: ClassRepository,
        users: UserRepository,
        teacher_departments: TeacherDepartmentRepository,
        lessons: LessonRepository,
    ):
        self._departments = departments
        self._levels = levels
        self._classes = classes
        self._users = users
        self._teacher_departments = teacher_departments
        self._lessons = lessons

    # Departments

    def list_departments(self) -> Sequence[Department]:
        return self._departments.list_all()

    def get_department(self, dept_id: int) -> Department:
        dept = self._departments.get_by_id(int(dept_id))
        if not dept:
            raise NotFoundError("Department not found")
        return dept

    def create_department(self, *, current_role: Role, dept_name: str) -> int:
        _require_admin(current_role)
        dept_name = require_non_empty(dept_name, "Department name")
        if self._departments.get_by_name(dept_name):
            raise ConflictError("Department name already exists")
        dept_id = self._departments.create(dept_name=dept_name)
        logger.info("Department created: %s (%s)", dept_name, dept_id)
        return dept_id

    def update_department(self, *, current_role: Role, dept_id: int, dept_name: str) -> None:
        _require_admin(current_role)
        dept = self.get_department(dept_id)
        dept_name = require_non_empty(dept_name, "Department name")
        other = self._departments.get_by_name(dept_name)
        if other and other.dept_id != dept.dept_id:
            raise ConflictError("Department name already exists")
        self._departments.update(dept_id=dept.dept_id, dept_name=dept_name)

    def delete_department(self, *, current_role: Role, dept_id: int) -> None:
        _require_admin(current_role)
        dept = self.get_department(dept_id)
        if self._classes.list(dept_id=dept.dept_id):
            raise ValidationError("Department still has classes; delete or move them first")
        self._departments.delete(dept.dept_id)
        logger.info("Department deleted: %s", dept.dept_id)

    # Levels

    def list_levels(self) -> Sequence[Level]:
        return self._levels.list_all()

    def get_level(self, level_id: int) -> Level:
        level = self._levels.get_by_id(int(level_id))
        if not level:
            raise NotFoundError("Level not found")
        return level

    def create_level(self, *, current_role: Role, level_number, level_name: str) -> int:
        _require_admin(current_role)
        number = require_int_range(level_number, "Level number", 1)
        level_name = require_non_empty(level_name, "Level name")
        return self._levels.create(level_number=number, level_name=level_name)

    def update_level(self, *, current_role: Role, level_id: int, level_number, level_name: str) -> None:
        _require_admin(current_role)
        level = self.get_level(level_id)
        number = require_int_range(level_number, "Level number", 1)
        level_name = require_non_empty(level_name, "Level name")
        self._levels.update(level_id=level.level_id, level_number=number, level_name=level_name)

    def delete_level(self, *, current_role: Role, level_id: int) -> None:
        _require_admin(current_role)
        level = self.get_level(level_id)
        if self._classes.list(level_id=level.level_id):
            raise ValidationError("Level still has classes; delete or move them first")
        self._levels.delete(level.level_id)

    # Classes

    def list_classes(
        self,
        *,
        dept_id: Optional[int] = None,
        level_id: Optional[int] = None,
        teacher_id: Optional[int] = None,
    ) -> Sequence[SchoolClass]:
        dept_ids = None
        if teacher_id is not None:
            dept_ids = teacher_department_ids(self._users, self._teacher_departments, teacher_id)
        return self._classes.list(dept_id=dept_id, level_id=level_id, dept_ids=dept_ids)

    def get_class(self, class_id: int) -> SchoolClass:
        school_class = self._classes.get_by_id(int(class_id))
        if not school_class:
            raise NotFoundError("Class not found")
        return school_class

    def _validate_class(self, class_name: str, dept_id, level_id) -> tuple[str, int, int]:
        class_name = require_non_empty(class_name, "Class name")
        dept = self.get_department(require_int_range(dept_id, "Department", 1))
        level = self.get_level(require_int_range(level_id, "Level", 1))
        return class_name, dept.dept_id, level.level_id

    def create_class(self, *, current_role: Role, class_name: str, dept_id, level_id) -> int:
        _require_admin(current_role)
        class_name, dept_id, level_id = self._validate_class(class_name, dept_id, level_id)
        class_id = self._classes.create(class_name=class_name, dept_id=dept_id, level_id=level_id)
        logger.info("Class created: %s (%s)", class_name, class_id)
        return class_id

    def update_class(self, *, current_role: Role, class_id: int, class_name: str, dept_id, level_id) -> None:
        _require_admin(current_role)
        school_class = self.get_class(class_id)
        class_name, dept_id, level_id = self._validate_class(class_name, dept_id, level_id)
        self._classes.update(class_id=school_class.class_id, class_name=class_name, dept_id=dept_id, level_id=level_id)

    def delete_class(self, *, current_role: Role, class_id: int) -> None:
        _require_admin(current_role)
        school_class = self.get_class(class_id)
        if self._users.list_users(role=Role.STUDENT, class_id=school_class.class_id):
            raise ValidationError("Class still has students; move them first")
        if self._lessons.list(class_id=school_class.class_id):
            raise ValidationError("Class still has lessons; delete them first")
        self._classes.delete(school_class.class_id)
        logger.info("Class deleted: %s", school_class.class_id)
