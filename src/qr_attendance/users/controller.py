from __future__ import annotations

from flask import Flask, jsonify

from ..api.auth import auth_required, current_user
from ..api.payload import json_body
from ..container import Container
from ..core.enums import Role
from ..core.exceptions import ValidationError


def register(app: Flask, container: Container) -> None:
    admin_required = auth_required(container.token_verifier, container.users_repo, Role.ADMIN)
    login_required = auth_required(container.token_verifier, container.users_repo)

    @app.route("/api/auth/approve-student", methods=["POST"], endpoint="approve_student")
    @admin_required
    def approve_student():
        data = json_body()
        approved = data.get("approved")
        if not isinstance(approved, bool):
            raise ValidationError("approved must be a boolean")

        outcome = container.approval_service.set_approval(
            admin_id=current_user().user_id,
            student_id=data.get("studentId"),
            approved=approved,
        )
        student = outcome.value
        return jsonify(
            {
                "success": True,
                "message": f"Student {'approved' if approved else 'rejected'} successfully",
                "studentId": student.user_id,
                "isApproved": student.is_approved,
                "emailSent": outcome.ok,
                "warnings": outcome.warnings,
            }
        )

    @app.route("/api/profile/complete", methods=["POST"], endpoint="profile_complete")
    @login_required
    def profile_complete():
        data = json_body()
        user = container.profile_service.complete_profile(
            current_user().user_id,
            student_id=data.get("studentId"),
            roll_number=data.get("rollNumber"),
            profile_photo=data.get("profilePhoto"),
        )
        return jsonify(
            {
                "success": True,
                "user": {
                    "id": user.user_id,
                    "studentId": user.student_id,
                    "rollNumber": user.roll_number,
                    "profilePhoto": user.profile_photo,
                    "profileComplete": user.profile_complete,
                },
            }
        )
