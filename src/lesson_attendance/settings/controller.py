from __future__ import annotations

from flask import Flask

from ..common.web import current_role, json_api, json_body, login_required, ok, roles_required
from ..container import Container
from ..core.enums import Role


def register(app: Flask, container: Container) -> None:
    @app.route("/api/system-settings", methods=["GET"], endpoint="api_system_settings")
    @json_api
    @login_required
    def get_settings():
        return ok(settings=container.settings_service.get().to_dict())

    @app.route("/api/system-settings", methods=["PUT", "PATCH"], endpoint="api_system_settings_update")
    @json_api
    @roles_required(Role.ADMIN)
    def update_settings():
        updated = container.settings_service.update(current_role=current_role(), changes=json_body())
        return ok(message="Settings saved", settings=updated.to_dict())
