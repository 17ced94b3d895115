from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional, Sequence

from ..academics.repository import ClassRepository
from ..attendance.model import AttendanceRow, RecordFilter
from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import day_name, minutes_to_label
from ..core.constants import RECENT_ATTENDANCE_LIMIT
from ..core.enums import AttendanceStatus, Role
from ..core.exceptions import NotFoundError
from ..lessons.model import Lesson
from ..lessons.repository import LessonRepository
from ..settings.repository import SettingsRepository
from ..users.repository import UserRepository
from .exporters import ExportTable

RECORD_HEADERS = ("Date", "Time", "Student", "Admission No.", "Class", "Subject", "Teacher", "Status", "Note")


def _percentage(part: int, total: int) -> int:
    return round(part * 100 / total) if total else 0


def summarize_counts(counts: Mapping[AttendanceStatus, int]) -> dict:
    """Totals and percentages; late counts as attended in `attendance_rate`."""

    present = int(counts.get(AttendanceStatus.PRESENT, 0))
    absent = int(counts.get(AttendanceStatus.ABSENT, 0))
    late = int(counts.get(AttendanceStatus.LATE, 0))
    total = present + absent + late
    return {
        "total_sessions": total,
        "present_count": present,
        "absent_count": absent,
        "late_count": late,
        "present_percentage": _percentage(present, total),
        "absent_percentage": _percentage(absent, total),
        "late_percentage": _percentage(late, total),
        "attendance_rate": round((present + late) * 100 / total, 1) if total else 0.0,
    }


def present_streak(rows: Sequence[AttendanceRow]) -> int:
    """Consecutive `present` records counting back from the newest."""

    streak = 0
    for row in sorted(rows, key=lambda r: r.marked_at, reverse=True):
        if row.status != AttendanceStatus.PRESENT:
            break
        streak += 1
    return streak


def attendance_row_to_dict(row: AttendanceRow) -> dict:
    return {
        "attendance_id": row.attendance_id,
        "lesson_id": row.lesson_id,
        "student_id": row.student_id,
        "student_name": row.student_name,
        "username": row.username,
        "class_id": row.class_id,
        "class_name": row.class_name,
        "subject": row.subject,
        "teacher_id": row.teacher_id,
        "teacher_name": row.teacher_name,
        "day_of_week": row.day_of_week,
        "day_name": day_name(row.day_of_week),
        "start_time": minutes_to_label(row.start_time_minutes),
        "status": row.status.value,
        "marked_at": row.marked_at.isoformat(),
        "note": row.note,
    }


@dataclass(frozen=True)
class Branding:
    school_name: Optional[str]
    school_logo: Optional[str]
    letterhead: Optional[str]


class ReportService:
    """Statistics, dashboards and export tables built from attendance data."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        users: UserRepository,
        lessons: LessonRepository,
        classes: ClassRepository,
        settings: SettingsRepository,
    ):
        self._attendance = attendance
        self._users = users
        self._lessons = lessons
        self._classes = classes
        self._settings = settings

    def student_stats(self, student_id: int) -> dict:
        stats = summarize_counts(self._attendance.count_by_status(student_id=int(student_id)))
        rows = self._attendance.list_rows(RecordFilter(student_id=int(student_id)))
        stats["streak"] = present_streak(rows)

        settings = self._settings.get()
        stats["low_attendance"] = bool(
            settings.low_attendance_alerts
            and stats["total_sessions"] > 0
            and stats["attendance_rate"] < settings.low_attendance_threshold
        )
        return stats

    def teacher_stats(self, teacher_id: int) -> dict:
        lessons = self._lessons.list(teacher_id=int(teacher_id))
        class_ids = sorted({ls.class_id for ls in lessons})
        students = self._users.list_users(role=Role.STUDENT, class_ids=class_ids)

        stats = summarize_counts(self._attendance.count_by_status(teacher_id=int(teacher_id)))
        stats.update(
            total_students=len(students),
            total_classes=len(class_ids),
            total_lessons=len(lessons),
            active_lessons=sum(1 for ls in lessons if ls.is_active),
        )
        return stats

    def system_stats(self) -> dict:
        stats = summarize_counts(self._attendance.count_by_status())
        stats.update(
            total_students=self._users.count_by_role(Role.STUDENT),
            total_teachers=self._users.count_by_role(Role.TEACHER),
            total_classes=len(self._classes.list()),
            total_lessons=self._lessons.count(),
        )
        return stats

    def recent_attendance(self, limit: int = RECENT_ATTENDANCE_LIMIT) -> list[dict]:
        rows = self._attendance.list_rows(RecordFilter(limit=int(limit)))
        return [attendance_row_to_dict(r) for r in rows]

    def student_report(self, student_id: int) -> dict:
        student = self._users.get_by_id(int(student_id))
        if not student or student.role != Role.STUDENT:
            raise NotFoundError("Student not found")
        school_class = self._classes.get_by_id(student.class_id) if student.class_id else None
        rows = self._attendance.list_rows(RecordFilter(student_id=student.user_id))

        return {
            "student": {
                "user_id": student.user_id,
                "full_name": student.full_name,
                "username": student.username,
                "class_id": student.class_id,
                "class_name": school_class.class_name if school_class else None,
                "dept_name": school_class.dept_name if school_class else None,
                "level_name": school_class.level_name if school_class else None,
            },
            "stats": self.student_stats(student.user_id),
            "records": [attendance_row_to_dict(r) for r in rows],
        }

    def branding(self) -> Branding:
        s = self._settings.get()
        return Branding(school_name=s.school_name, school_logo=s.school_logo, letterhead=s.letterhead)

    def records_table(self, rows: Sequence[AttendanceRow], *, title: str = "Attendance Records") -> ExportTable:
        brand = self.branding()
        return ExportTable(
            title=title,
            headers=RECORD_HEADERS,
            rows=[
                [
                    r.marked_at.strftime("%Y-%m-%d"),
                    r.marked_at.strftime("%H:%M"),
                    r.student_name,
                    r.username,
                    r.class_name or "-",
                    r.subject,
                    r.teacher_name or "-",
                    r.status.value.capitalize(),
                    r.note or "",
                ]
                for r in rows
            ],
            school_name=brand.school_name,
            logo_url=brand.school_logo,
        )

    def lesson_table(self, lesson: Lesson, groups: Mapping[str, Sequence[dict]]) -> ExportTable:
        """Export of one lesson's attendance, including students not marked yet."""

        brand = self.branding()
        rows = []
        for key in (*(s.value for s in AttendanceStatus), "unmarked"):
            for entry in groups.get(key, []):
                rows.append(
                    [
                        entry["full_name"],
                        entry["username"],
                        key.capitalize() if key != "unmarked" else "Not Marked",
                        (entry.get("marked_at") or "").replace("T", " ")[:16],
                        entry.get("note") or "",
                    ]
                )
        rows.sort(key=lambda r: r[0].lower())
        title = f"{lesson.subject} - {lesson.class_name or 'Class'} ({lesson.day_name} {minutes_to_label(lesson.start_time_minutes)})"
        return ExportTable(
            title=title,
            headers=("Student", "Admission No.", "Status", "Marked At", "Note"),
            rows=rows,
            school_name=brand.school_name,
            logo_url=brand.school_logo,
        )
