from __future__ import annotations

from flask import Flask

from ..common.web import current_role, json_api, json_body, ok, roles_required
from ..container import Container
from ..core.enums import Role


def register(app: Flask, container: Container) -> None:
    svc = container.backup_service

    @app.route("/api/system/backups", methods=["GET"], endpoint="api_backups")
    @json_api
    @roles_required(Role.ADMIN)
    def list_backups():
        return ok(backups=[b.to_dict() for b in svc.list_backups(current_role=current_role())])

    @app.route("/api/system/backups", methods=["POST"], endpoint="api_backups_create")
    @json_api
    @roles_required(Role.ADMIN)
    def create_backup():
        info = svc.create_backup(current_role=current_role(), name=json_body().get("name"))
        return ok(201, message="Backup created", backup=info.to_dict())

    @app.route("/api/system/backups/restore", methods=["POST"], endpoint="api_backups_restore")
    @json_api
    @roles_required(Role.ADMIN)
    def restore_backup():
        data = json_body()
        counts = svc.restore_backup(
            current_role=current_role(), filename=data.get("filename", ""), confirm=data.get("confirm")
        )
        return ok(message="Backup restored", restored=counts)

    @app.route("/api/system/backups/<filename>", methods=["DELETE"], endpoint="api_backups_delete")
    @json_api
    @roles_required(Role.ADMIN)
    def delete_backup(filename: str):
        svc.delete_backup(current_role=current_role(), filename=filename)
        return ok(message="Backup deleted")

    @app.route("/api/system/clear-data", methods=["POST"], endpoint="api_clear_data")
    @json_api
    @roles_required(Role.ADMIN)
    def clear_data():
        counts = svc.clear_data(current_role=current_role(), confirm=json_body().get("confirm"))
        return ok(message="All data cleared", deleted=counts)
