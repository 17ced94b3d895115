from __future__ import annotations

import json
from datetime import datetime

import pytest

from lesson_attendance.core.constants import CLEAR_DATA_CONFIRM_TOKEN, RESTORE_CONFIRM_TOKEN
from lesson_attendance.core.enums import Role
from lesson_attendance.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from lesson_attendance.maintenance.mysql_snapshot_repository import MySQLSnapshotRepository, checked_columns
from lesson_attendance.maintenance.service import BackupService, format_file_size, slugify


def test_format_file_size_and_slugify():
    assert format_file_size(512) == "512 B"
    assert format_file_size(2048) == "2.0 KB"
    assert format_file_size(5 * 1024 * 1024) == "5.0 MB"
    assert slugify("End of Term 1!") == "end-of-term-1"
    assert slugify("  ") == "manual-backup"


def test_create_and_list_backups(container):
    svc = container.backup_service

    info = svc.create_backup(current_role=Role.ADMIN, name="Before exams")

    assert info.filename == "before-exams-20240115-091000.json"
    payload = json.loads((svc.backup_dir / info.filename).read_text(encoding="utf-8"))
    assert payload["name"] == "Before exams"
    assert payload["tables"]["departments"] == [{"dept_id": 1, "dept_name": "Science"}]
    assert [b.filename for b in svc.list_backups(current_role=Role.ADMIN)] == [info.filename]


def test_same_second_backup_is_rejected(container):
    svc = container.backup_service
    svc.create_backup(current_role=Role.ADMIN)

    with pytest.raises(ValidationError):
        svc.create_backup(current_role=Role.ADMIN)


def test_restore_requires_confirmation_and_replaces_data(container, repos, clock):
    svc = container.backup_service
    info = svc.create_backup(current_role=Role.ADMIN)
    repos["snapshots_repo"].tables["departments"] = []

    with pytest.raises(ValidationError, match=RESTORE_CONFIRM_TOKEN):
        svc.restore_backup(current_role=Role.ADMIN, filename=info.filename, confirm="yes")

    counts = svc.restore_backup(current_role=Role.ADMIN, filename=info.filename, confirm=RESTORE_CONFIRM_TOKEN)
    assert counts["departments"] == 1
    assert repos["snapshots_repo"].tables["departments"] == [{"dept_id": 1, "dept_name": "Science"}]


def test_restore_rejects_bad_files(container, tmp_path):
    svc = container.backup_service
    svc.backup_dir.mkdir(parents=True, exist_ok=True)
    (svc.backup_dir / "broken.json").write_text("{not json", encoding="utf-8")
    (svc.backup_dir / "empty.json").write_text(json.dumps({"version": 1}), encoding="utf-8")

    with pytest.raises(ValidationError, match="not valid JSON"):
        svc.restore_backup(current_role=Role.ADMIN, filename="broken.json", confirm=RESTORE_CONFIRM_TOKEN)
    with pytest.raises(ValidationError, match="no table data"):
        svc.restore_backup(current_role=Role.ADMIN, filename="empty.json", confirm=RESTORE_CONFIRM_TOKEN)
    with pytest.raises(ValidationError, match="Invalid backup filename"):
        svc.restore_backup(current_role=Role.ADMIN, filename="../secrets.json", confirm=RESTORE_CONFIRM_TOKEN)
    with pytest.raises(NotFoundError):
        svc.delete_backup(current_role=Role.ADMIN, filename="missing.json")


def test_delete_backup(container, clock):
    svc = container.backup_service
    first = svc.create_backup(current_role=Role.ADMIN)
    clock.state["now"] = datetime(2024, 1, 15, 9, 11)
    second = svc.create_backup(current_role=Role.ADMIN)

    svc.delete_backup(current_role=Role.ADMIN, filename=first.filename)

    assert [b.filename for b in svc.list_backups(current_role=Role.ADMIN)] == [second.filename]


def test_clear_data_keeps_admins(container, repos):
    svc = container.backup_service

    with pytest.raises(ValidationError):
        svc.clear_data(current_role=Role.ADMIN, confirm="")
    counts = svc.clear_data(current_role=Role.ADMIN, confirm=CLEAR_DATA_CONFIRM_TOKEN)

    assert counts["users"] == 1
    assert repos["snapshots_repo"].tables["users"] == [{"user_id": 1, "username": "admin", "role": "admin"}]


def test_backups_are_admin_only(container):
    with pytest.raises(AuthorizationError):
        container.backup_service.list_backups(current_role=Role.TEACHER)


class _RecordingCursor:
    def __init__(self, columns):
        self.columns = columns
        self.executed = []
        self._result = []
        self.rowcount = 0

    def execute(self, sql, params=None):
        self.executed.append(sql)
        if sql.startswith("SHOW COLUMNS FROM"):
            table = sql.split("`")[1]
            self._result = [{"Field": name} for name in self.columns[table]]

    def fetchall(self):
        return self._result

    def close(self):
        pass


class _RecordingConnection:
    def __init__(self, cursor):
        self._cursor = cursor
        self.committed = False
        self.rolled_back = False

    def cursor(self, dictionary=False):
        return self._cursor

    def commit(self):
        self.committed = True

    def rollback(self):
        self.rolled_back = True

    def close(self):
        pass


class _ConnectionFactory:
    def __init__(self, connection):
        self.connection = connection

    def connect(self):
        return self.connection


def _snapshot_repo(columns):
    cursor = _RecordingCursor(columns)
    conn = _RecordingConnection(cursor)
    return MySQLSnapshotRepository(_ConnectionFactory(conn)), cursor, conn


def test_checked_columns_rejects_names_not_on_the_table():
    known = {"dept_id", "dept_name"}

    assert checked_columns("departments", {"dept_id": 1, "dept_name": "Science"}, known) == ["dept_id", "dept_name"]
    with pytest.raises(ValueError, match="unknown columns"):
        checked_columns("departments", {"dept_id": 1, "x`) VALUES (1); DROP TABLE users; --": 1}, known)
    with pytest.raises(ValueError):
        checked_columns("departments", {}, known)
    with pytest.raises(ValueError):
        checked_columns("departments", ["dept_id"], known)


def test_restore_refuses_unknown_columns_before_deleting():
    repo, cursor, conn = _snapshot_repo({"departments": ["dept_id", "dept_name"]})

    with pytest.raises(ValueError, match="unknown columns"):
        repo.restore({"departments": [{"dept_id": 1, "dept_name": "Science", "`evil`": 1}]})

    assert not any(sql.startswith(("DELETE", "INSERT")) for sql in cursor.executed)
    assert conn.rolled_back and not conn.committed


def test_restore_inserts_known_columns():
    repo, cursor, conn = _snapshot_repo({"departments": ["dept_id", "dept_name"]})

    counts = repo.restore({"departments": [{"dept_id": 1, "dept_name": "Science"}]})

    assert counts == {"departments": 1}
    assert "DELETE FROM `departments`" in cursor.executed
    assert "INSERT INTO `departments` (`dept_id`, `dept_name`) VALUES (%s, %s)" in cursor.executed
    assert conn.committed


def test_restore_backup_with_unknown_column_is_validation_error(tmp_path):
    repo, _, _ = _snapshot_repo({"departments": ["dept_id", "dept_name"]})
    svc = BackupService(repo, tmp_path)
    (tmp_path / "tampered.json").write_text(
        json.dumps({"name": "x", "tables": {"departments": [{"dept_id": 1, "nope": 2}]}}), encoding="utf-8"
    )

    with pytest.raises(ValidationError, match="unknown columns"):
        svc.restore_backup(current_role=Role.ADMIN, filename="tampered.json", confirm=RESTORE_CONFIRM_TOKEN)
