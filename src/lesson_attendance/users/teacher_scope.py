from __future__ import annotations

from ..core.enums import Role
from ..core.exceptions import NotFoundError
from .repository import TeacherDepartmentRepository, UserRepository


def teacher_department_ids(
    users: UserRepository,
    teacher_departments: TeacherDepartmentRepository,
    teacher_id: int,
) -> set[int]:
    """Primary department plus additional ones."""

    teacher = users.get_by_id(int(teacher_id))
    if not teacher or teacher.role != Role.TEACHER:
        raise NotFoundError("Teacher not found")
    ids = set(teacher_departments.list_for_teacher(teacher.user_id))
    if teacher.dept_id is not None:
        ids.add(int(teacher.dept_id))
    return ids
