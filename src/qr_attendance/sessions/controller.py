from __future__ import annotations

from flask import Flask, jsonify

from ..api.auth import auth_required, current_user
from ..api.payload import json_body, optional_int
from ..container import Container
from ..core.enums import CleanupType, Role
from ..core.exceptions import ValidationError


def register(app: Flask, container: Container) -> None:
    admin_required = auth_required(container.token_verifier, container.users_repo, Role.ADMIN)

    @app.route("/api/qr/generate", methods=["POST"], endpoint="qr_generate")
    @admin_required
    def qr_generate():
        data = json_body()
        created = container.session_service.create_session(
            class_id=data.get("classId"),
            location=data.get("location"),
            created_by=current_user().user_id,
        )
        return jsonify({"success": True, **created.to_dict()})

    @app.route("/api/qr/cleanup", methods=["POST"], endpoint="qr_cleanup")
    @admin_required
    def qr_cleanup():
        data = json_body()
        try:
            cleanup_type = CleanupType(str(data.get("cleanupType") or "all").lower())
        except ValueError:
            raise ValidationError("cleanupType must be one of all, expired, old")

        days_old = optional_int(data.get("daysOld"), "daysOld")
        if days_old is None:
            days_old = container.settings.cleanup_default_days

        report = container.cleanup_service.sweep(cleanup_type, days_old=days_old)
        return jsonify(
            {
                "success": True,
                "message": f"Cleanup completed successfully. Processed {report.total_deleted} items.",
                "results": report.to_dict(),
                "totalDeleted": report.total_deleted,
                "cleanupType": cleanup_type.value,
                "warnings": report.warnings,
            }
        )

    @app.route("/api/qr/cleanup", methods=["GET"], endpoint="qr_cleanup_stats")
    @admin_required
    def qr_cleanup_stats():
        return jsonify({"success": True, "stats": container.cleanup_service.stats()})
