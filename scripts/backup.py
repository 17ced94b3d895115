"""Backup / restore the database as JSON snapshots from the command line.

Uses the same BackupService as the admin API, so files land in BACKUP_DIR and
show up in the admin backup list.

    python scripts/backup.py create [--name NAME]
    python scripts/backup.py list
    python scripts/backup.py restore FILENAME --confirm yes-restore-data
"""

from __future__ import annotations

import argparse
import importlib
import logging

from dotenv import load_dotenv

from config import get_settings_module
from lesson_attendance.container import build_container
from lesson_attendance.core.enums import Role
from lesson_attendance.core.exceptions import DomainError


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    sub = parser.add_subparsers(dest="command", required=True)
    create = sub.add_parser("create", help="write a new snapshot")
    create.add_argument("--name", default=None)
    sub.add_parser("list", help="list existing snapshots")
    restore = sub.add_parser("restore", help="replace all data with a snapshot")
    restore.add_argument("filename")
    restore.add_argument("--confirm", default=None)
    args = parser.parse_args(argv)

    load_dotenv(override=False)
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    settings = importlib.import_module(get_settings_module())
    container = build_container(db_config=dict(settings.DB_CONFIG), backup_dir=settings.BACKUP_DIR)
    svc = container.backup_service

    try:
        if args.command == "create":
            info = svc.create_backup(current_role=Role.ADMIN, name=args.name)
            print(f"OK: Backup created: {svc.backup_dir / info.filename} ({info.size_label})")
        elif args.command == "list":
            for info in svc.list_backups(current_role=Role.ADMIN):
                print(f"{info.created_at:%Y-%m-%d %H:%M:%S}  {info.size_label:>10}  {info.filename}")
        else:
            counts = svc.restore_backup(current_role=Role.ADMIN, filename=args.filename, confirm=args.confirm)
            print(f"OK: Restored {sum(counts.values())} rows from {args.filename}")
    except DomainError as e:
        raise SystemExit(f"Error: {e}")


if __name__ == "__main__":
    main()
