from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

from .academics.mysql_class_repository import MySQLClassRepository
from .academics.mysql_department_repository import MySQLDepartmentRepository
from .academics.mysql_level_repository import MySQLLevelRepository
from .academics.repository import ClassRepository, DepartmentRepository, LevelRepository
from .academics.service import AcademicService
from .attendance.factory import MarkingStrategyFactory
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .common.datetime_utils import now_local
from .database.connection import DatabaseConnection, DBConfig
from .lessons.mysql_lesson_repository import MySQLLessonRepository
from .lessons.repository import LessonRepository
from .lessons.service import LessonService
from .maintenance.mysql_snapshot_repository import MySQLSnapshotRepository
from .maintenance.repository import SnapshotRepository
from .maintenance.service import BackupService
from .reports.service import ReportService
from .settings.mysql_settings_repository import MySQLSettingsRepository
from .settings.repository import SettingsRepository
from .settings.service import SettingsService
from .users.mysql_teacher_department_repository import MySQLTeacherDepartmentRepository
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import TeacherDepartmentRepository, UserRepository
from .users.service import AuthService
from .users.student_service import StudentService
from .users.teacher_service import TeacherService


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    users_repo: UserRepository
    teacher_departments_repo: TeacherDepartmentRepository
    departments_repo: DepartmentRepository
    levels_repo: LevelRepository
    classes_repo: ClassRepository
    lessons_repo: LessonRepository
    attendance_repo: AttendanceRepository
    settings_repo: SettingsRepository
    snapshots_repo: SnapshotRepository

    auth_service: AuthService
    teacher_service: TeacherService
    student_service: StudentService
    academic_service: AcademicService
    settings_service: SettingsService
    attendance_service: AttendanceService
    lesson_service: LessonService
    report_service: ReportService
    backup_service: BackupService


def wire_container(
    *,
    conn: Optional[DatabaseConnection],
    users_repo: UserRepository,
    teacher_departments_repo: TeacherDepartmentRepository,
    departments_repo: DepartmentRepository,
    levels_repo: LevelRepository,
    classes_repo: ClassRepository,
    lessons_repo: LessonRepository,
    attendance_repo: AttendanceRepository,
    settings_repo: SettingsRepository,
    snapshots_repo: SnapshotRepository,
    backup_dir: Path,
    clock: Callable[[], datetime] = now_local,
) -> Container:
    """Build services on top of the given repositories (MySQL in production, fakes in tests)."""

    attendance_service = AttendanceService(
        attendance_repo,
        lessons_repo,
        users_repo,
        settings_repo,
        strategy_factory=MarkingStrategyFactory(),
        clock=clock,
    )

    return Container(
        conn=conn,
        users_repo=users_repo,
        teacher_departments_repo=teacher_departments_repo,
        departments_repo=departments_repo,
        levels_repo=levels_repo,
        classes_repo=classes_repo,
        lessons_repo=lessons_repo,
        attendance_repo=attendance_repo,
        settings_repo=settings_repo,
        snapshots_repo=snapshots_repo,
        auth_service=AuthService(users_repo, classes_repo),
        teacher_service=TeacherService(
            users_repo, teacher_departments_repo, departments_repo, classes_repo, lessons_repo
        ),
        student_service=StudentService(users_repo, classes_repo),
        academic_service=AcademicService(
            departments_repo, levels_repo, classes_repo, users_repo, teacher_departments_repo, lessons_repo
        ),
        settings_service=SettingsService(settings_repo),
        attendance_service=attendance_service,
        lesson_service=LessonService(
            lessons_repo,
            classes_repo,
            users_repo,
            teacher_departments_repo,
            settings_repo,
            attendance_repo,
            attendance_service,
            clock=clock,
        ),
        report_service=ReportService(attendance_repo, users_repo, lessons_repo, classes_repo, settings_repo),
        backup_service=BackupService(snapshots_repo, backup_dir, clock=clock),
    )


def build_container(*, db_config: dict, backup_dir: str | Path) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_mapping(db_config))
    return wire_container(
        conn=conn,
        users_repo=MySQLUserRepository(conn),
        teacher_departments_repo=MySQLTeacherDepartmentRepository(conn),
        departments_repo=MySQLDepartmentRepository(conn),
        levels_repo=MySQLLevelRepository(conn),
        classes_repo=MySQLClassRepository(conn),
        lessons_repo=MySQLLessonRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        settings_repo=MySQLSettingsRepository(conn),
        snapshots_repo=MySQLSnapshotRepository(conn),
        backup_dir=Path(backup_dir),
    )
