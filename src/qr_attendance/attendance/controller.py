from __future__ import annotations

import json

from flask import Flask, jsonify, request

from ..api.auth import auth_required, current_user
from ..api.payload import json_body
from ..container import Container
from ..core.enums import Role
from ..core.exceptions import ValidationError


def _form_location() -> dict:
    """Location for multipart uploads: a JSON ``location`` field or lat/lon fields."""

    raw = request.form.get("location")
    if raw:
        try:
            return json.loads(raw)
        except ValueError:
            raise ValidationError("location must be a JSON object")

    def number(name: str):
        value = request.form.get(name)
        try:
            return float(value) if value is not None else None
        except ValueError:
            raise ValidationError(f"location.{name} must be a number")

    return {"latitude": number("latitude"), "longitude": number("longitude")}


def register(app: Flask, container: Container) -> None:
    admin_required = auth_required(container.token_verifier, container.users_repo, Role.ADMIN)
    student_required = auth_required(container.token_verifier, container.users_repo, Role.STUDENT)

    @app.route("/api/attendance/export", methods=["POST"], endpoint="attendance_export")
    @admin_required
    def attendance_export():
        data = json_body()
        result = container.export_service.export(
            data.get("classId"),
            start_date=data.get("startDate"),
            end_date=data.get("endDate"),
            status=data.get("status"),
        )
        return jsonify({"success": True, **result.to_dict()})

    @app.route("/api/attendance/mark", methods=["POST"], endpoint="attendance_mark")
    @student_required
    def attendance_mark():
        data = json_body()
        qr_data = data.get("qrData")
        if not isinstance(qr_data, str) or not qr_data.strip():
            raise ValidationError("qrData is required")

        outcome = container.attendance_service.mark_attendance(
            current_user(),
            qr_data,
            location=data.get("location"),
            device_info=data.get("deviceInfo") or {"userAgent": request.headers.get("User-Agent")},
        )
        return jsonify({"success": True, "attendance": outcome.value.to_dict(), "warnings": outcome.warnings}), 201

    @app.route("/api/attendance/mark/image", methods=["POST"], endpoint="attendance_mark_image")
    @student_required
    def attendance_mark_image():
        file = request.files.get("image")
        if file is None or not file.filename:
            raise ValidationError("image file is required")

        outcome = container.attendance_service.mark_attendance_from_image(
            current_user(),
            file.stream,
            location=_form_location(),
            device_info={"userAgent": request.headers.get("User-Agent")},
        )
        return jsonify({"success": True, "attendance": outcome.value.to_dict(), "warnings": outcome.warnings}), 201
