from __future__ import annotations

import logging
from typing import Iterable, Optional, Sequence

from werkzeug.security import generate_password_hash

from ..academics.model import Department
from ..academics.repository import ClassRepository, DepartmentRepository
from ..common.validators import require_int, require_int_range, require_min_length, require_non_empty
from ..core.constants import MIN_PASSWORD_LENGTH
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..lessons.repository import LessonRepository
from .model import User
from .repository import TeacherDepartmentRepository, UserRepository
from .teacher_scope import teacher_department_ids

logger = logging.getLogger(__name__)


def _require_admin(current_role: Role) -> None:
    if current_role != Role.ADMIN:
        raise AuthorizationError("Only administrators can manage teachers")


class TeacherService:
    """Use cases: teacher accounts, their departments, and class registration of students."""

    def __init__(
        self,
        users: UserRepository,
        teacher_departments: TeacherDepartmentRepository,
        departments: DepartmentRepository,
        classes: ClassRepository,
        lessons: LessonRepository,
    ):
        self._users = users
        self._teacher_departments = teacher_departments
        self._departments = departments
        self._classes = classes
        self._lessons = lessons

    def get_teacher(self, teacher_id: int) -> User:
        teacher = self._users.get_by_id(int(teacher_id))
        if not teacher or teacher.role != Role.TEACHER:
            raise NotFoundError("Teacher not found")
        return teacher

    def _require_department(self, dept_id) -> Department:
        dept = self._departments.get_by_id(require_int_range(dept_id, "Department", 1))
        if not dept:
            raise NotFoundError("Department not found")
        return dept

    def list_teachers(self) -> list[dict]:
        names = {d.dept_id: d.dept_name for d in self._departments.list_all()}
        out: list[dict] = []
        for t in self._users.list_users(role=Role.TEACHER):
            extra = [i for i in self._teacher_departments.list_for_teacher(t.user_id) if i != t.dept_id]
            out.append(
                {
                    "user_id": t.user_id,
                    "full_name": t.full_name,
                    "username": t.username,
                    "dept_id": t.dept_id,
                    "dept_name": names.get(t.dept_id) if t.dept_id else None,
                    "additional_departments": [{"dept_id": i, "dept_name": names.get(i)} for i in extra],
                    "is_active": t.is_active,
                }
            )
        return out

    def create_teacher(
        self,
        *,
        current_role: Role,
        full_name: str,
        username: str,
        password: str,
        dept_id,
        additional_dept_ids: Iterable = (),
    ) -> int:
        _require_admin(current_role)
        full_name = require_non_empty(full_name, "Full name")
        username = require_non_empty(username, "Username")
        require_min_length(password, "Password", MIN_PASSWORD_LENGTH)
        dept = self._require_department(dept_id)
        extra = [self._require_department(d).dept_id for d in additional_dept_ids]
        if self._users.get_by_username(username):
            raise ConflictError("Username already exists")

        teacher_id = self._users.create_user(
            full_name=full_name,
            username=username,
            password_hash=generate_password_hash(password),
            role=Role.TEACHER,
            dept_id=dept.dept_id,
        )
        self.sync_departments(current_role=current_role, teacher_id=teacher_id, dept_ids=extra)
        logger.info("Teacher created: %s (%s)", username, teacher_id)
        return teacher_id

    def update_teacher(
        self,
        *,
        current_role: Role,
        teacher_id: int,
        full_name: Optional[str] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        dept_id=None,
        additional_dept_ids: Optional[Iterable] = None,
    ) -> User:
        _require_admin(current_role)
        teacher = self.get_teacher(teacher_id)

        changes: dict = {}
        if full_name is not None:
            changes["full_name"] = require_non_empty(full_name, "Full name")
        if username is not None:
            username = require_non_empty(username, "Username")
            other = self._users.get_by_username(username)
            if other and other.user_id != teacher.user_id:
                raise ConflictError("Username already exists")
            changes["username"] = username
        if password:
            require_min_length(password, "Password", MIN_PASSWORD_LENGTH)
            changes["password_hash"] = generate_password_hash(password)
        if dept_id is not None:
            changes["dept_id"] = self._require_department(dept_id).dept_id

        self._users.update_user(teacher.user_id, changes)
        if additional_dept_ids is not None:
            self.sync_departments(current_role=current_role, teacher_id=teacher.user_id, dept_ids=additional_dept_ids)
        return self.get_teacher(teacher.user_id)

    def delete_teacher(self, *, current_role: Role, teacher_id: int) -> None:
        _require_admin(current_role)
        teacher = self.get_teacher(teacher_id)
        if self._lessons.list(teacher_id=teacher.user_id):
            raise ValidationError("Teacher still owns lessons; reassign or delete them first")
        self._users.delete_by_id(teacher.user_id)
        logger.info("Teacher deleted: %s", teacher.user_id)

    # Additional departments

    def list_departments(self, teacher_id: int) -> Sequence[Department]:
        teacher = self.get_teacher(teacher_id)
        ids = set(self._teacher_departments.list_for_teacher(teacher.user_id))
        return [d for d in self._departments.list_all() if d.dept_id in ids]

    def add_department(self, *, current_role: Role, teacher_id: int, dept_id) -> None:
        _require_admin(current_role)
        teacher = self.get_teacher(teacher_id)
        dept = self._require_department(dept_id)
        if dept.dept_id == teacher.dept_id:
            raise ValidationError("Department is already the teacher's primary department")
        if not self._teacher_departments.add(teacher_id=teacher.user_id, dept_id=dept.dept_id):
            raise ConflictError("Teacher is already assigned to this department")

    def remove_department(self, *, current_role: Role, teacher_id: int, dept_id) -> None:
        _require_admin(current_role)
        teacher = self.get_teacher(teacher_id)
        if not self._teacher_departments.remove(teacher_id=teacher.user_id, dept_id=require_int(dept_id, "Department")):
            raise NotFoundError("Teacher is not assigned to this department")

    def sync_departments(self, *, current_role: Role, teacher_id: int, dept_ids: Iterable) -> tuple[list[int], list[int]]:
        """Make the additional departments equal `dept_ids`; returns (added, removed)."""

        _require_admin(current_role)
        teacher = self.get_teacher(teacher_id)
        target = {self._require_department(d).dept_id for d in dept_ids}
        target.discard(teacher.dept_id)
        current = set(self._teacher_departments.list_for_teacher(teacher.user_id))

        added = sorted(target - current)
        removed = sorted(current - target)
        for dept_id in added:
            self._teacher_departments.add(teacher_id=teacher.user_id, dept_id=dept_id)
        for dept_id in removed:
            self._teacher_departments.remove(teacher_id=teacher.user_id, dept_id=dept_id)
        return added, removed

    # Class registration

    def _resolve_student(self, *, student_id=None, username: Optional[str] = None) -> User:
        if student_id not in (None, ""):
            student = self._users.get_by_id(require_int(student_id, "Student"))
        elif username:
            student = self._users.get_by_username(username.strip())
        else:
            raise ValidationError("Student is required")
        if not student or student.role != Role.STUDENT:
            raise NotFoundError("Student not found")
        return student

    def _ensure_teaches_department(self, *, current_role: Role, current_user_id: int, dept_id: int) -> None:
        if current_role == Role.ADMIN:
            return
        if current_role != Role.TEACHER:
            raise AuthorizationError("Only teachers can register students to classes")
        if dept_id not in teacher_department_ids(self._users, self._teacher_departments, current_user_id):
            raise AuthorizationError("You do not teach in this class's department")

    def register_student_to_class(
        self,
        *,
        current_role: Role,
        current_user_id: int,
        class_id,
        student_id=None,
        username: Optional[str] = None,
    ) -> User:
        school_class = self._classes.get_by_id(require_int_range(class_id, "Class", 1))
        if not school_class:
            raise NotFoundError("Class not found")
        self._ensure_teaches_department(
            current_role=current_role, current_user_id=current_user_id, dept_id=school_class.dept_id
        )
        student = self._resolve_student(student_id=student_id, username=username)
        if student.class_id == school_class.class_id:
            raise ConflictError("Student is already in this class")

        self._users.update_user(student.user_id, {"class_id": school_class.class_id})
        logger.info("Student %s registered to class %s by %s", student.user_id, school_class.class_id, current_user_id)
        return self._users.get_by_id(student.user_id) or student

    def deregister_student(
        self,
        *,
        current_role: Role,
        current_user_id: int,
        student_id=None,
        username: Optional[str] = None,
    ) -> None:
        student = self._resolve_student(student_id=student_id, username=username)
        if student.class_id is None:
            raise ValidationError("Student is not registered to any class")
        school_class = self._classes.get_by_id(student.class_id)
        if school_class:
            self._ensure_teaches_department(
                current_role=current_role, current_user_id=current_user_id, dept_id=school_class.dept_id
            )
        elif current_role != Role.ADMIN:
            raise AuthorizationError("Only administrators can change this student's class")

        self._users.update_user(student.user_id, {"class_id": None})
        logger.info("Student %s deregistered from class %s by %s", student.user_id, student.class_id, current_user_id)
