from __future__ import annotations

from flask import Flask, jsonify

from ..api.auth import auth_required
from ..api.payload import json_body, optional_int
from ..common.validators import optional_str
from ..container import Container
from ..core.enums import Role
from .factory import IdStrategyFactory
from .model import IdRequest


def register(app: Flask, container: Container) -> None:
    admin_required = auth_required(container.token_verifier, container.users_repo, Role.ADMIN)

    @app.route("/api/students/id-options", methods=["POST"], endpoint="student_id_options")
    @admin_required
    def student_id_options():
        data = json_body()
        options = container.student_id_service.preview(
            IdRequest(
                strategy=IdStrategyFactory.parse(data.get("strategy")),
                university=data.get("university"),
                student_name=data.get("studentName"),
                admission_year=optional_int(data.get("admissionYear"), "admissionYear"),
                roll_number=optional_str(data.get("rollNumber")),
            )
        )
        return jsonify({"success": True, "options": [o.to_dict() for o in options]})

    @app.route("/api/students/<uid>/student-id", methods=["POST"], endpoint="assign_student_id")
    @admin_required
    def assign_student_id(uid: str):
        data = json_body()
        outcome = container.student_id_service.assign(
            uid,
            strategy=IdStrategyFactory.parse(data.get("strategy")),
            admission_year=optional_int(data.get("admissionYear"), "admissionYear"),
            roll_number=optional_str(data.get("rollNumber")),
        )
        return jsonify(
            {
                "success": True,
                "stored": outcome.ok,
                "result": outcome.value.to_dict(),
                "warnings": outcome.warnings,
            }
        )

    @app.route("/api/students/bulk-generate-ids", methods=["POST"], endpoint="bulk_generate_ids")
    @admin_required
    def bulk_generate_ids():
        data = json_body()
        outcome = container.student_id_service.bulk_assign(
            data.get("university"),
            admission_year=optional_int(data.get("admissionYear"), "admissionYear"),
        )
        return jsonify({"success": True, **outcome.value, "warnings": outcome.warnings})
