from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import Optional, Protocol

from ..common.datetime_utils import now_utc
from ..common.validators import optional_str, require_identifier, require_non_empty
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..core.result import Outcome
from .model import User
from .repository import UserRepository

logger = logging.getLogger(__name__)


class ApprovalNotifier(Protocol):
    def send_approval(self, user: User, approved: bool) -> Optional[str]:
        """Return ``None`` on success, a warning message otherwise."""

        raise NotImplementedError


class ApprovalService:
    """Approve or reject student accounts.

    Every call writes, so repeated calls converge on the latest value. Exactly
    one notification is attempted per call; a failed notification becomes a
    warning and never rolls back the approval.
    """

    def __init__(self, users: UserRepository, notifier: ApprovalNotifier):
        self._users = users
        self._notifier = notifier

    def set_approval(
        self,
        *,
        admin_id: str,
        student_id: str,
        approved: bool,
        now: Optional[datetime] = None,
    ) -> Outcome[User]:
        now = now or now_utc()
        student_id = require_non_empty(student_id, "studentId")
        if not isinstance(approved, bool):
            raise ValidationError("approved must be a boolean")

        admin = self._users.get_by_id(admin_id)
        if not admin or not admin.is_admin:
            raise AuthorizationError("Forbidden")

        student = self._users.get_by_id(student_id)
        if not student:
            raise NotFoundError("Student not found")
        if not student.is_student:
            raise ValidationError("User is not a student")
        if approved and not (optional_str(student.name) and optional_str(student.email)):
            raise ValidationError("Student profile is incomplete. Name and email are required.")

        approved_at = now if approved else None
        self._users.set_approval(
            student_id,
            is_approved=approved,
            approved_by=admin_id,
            approved_at=approved_at,
            updated_at=now,
        )
        logger.info("Student %s %s by %s", student_id, "approved" if approved else "rejected", admin_id)

        updated = replace(
            student,
            is_approved=approved,
            approved_by=admin_id,
            approved_at=approved_at,
            updated_at=now,
        )

        warnings: list[str] = []
        try:
            warning = self._notifier.send_approval(updated, approved)
        except Exception as e:
            logger.error("Approval notification raised for %s", student_id, exc_info=True)
            warning = f"Email notification failed: {e}"
        if warning:
            warnings.append(warning)

        return Outcome(updated, warnings)


class ProfileService:
    def __init__(self, users: UserRepository):
        self._users = users

    def complete_profile(
        self,
        user_id: str,
        *,
        student_id: str,
        roll_number: Optional[str] = None,
        profile_photo: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> User:
        """Set the caller's student id (and optionally roll number / photo).

        Both identifiers must be unused by other students of the same
        university.
        """

        now = now or now_utc()
        user = self._users.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")

        student_id = require_identifier(student_id, "Student ID")
        roll_number = optional_str(roll_number)
        if roll_number is not None:
            roll_number = require_identifier(roll_number, "Roll number")
        profile_photo = optional_str(profile_photo)

        university = user.university or ""
        owner = self._users.find_student_by_student_id(student_id, university)
        if owner and owner.user_id != user_id:
            raise ConflictError("Student ID is already taken")
        if roll_number is not None:
            owner = self._users.find_student_by_roll_number(roll_number, university)
            if owner and owner.user_id != user_id:
                raise ConflictError("Roll number is already taken")

        self._users.complete_profile(
            user_id,
            student_id=student_id,
            roll_number=roll_number,
            profile_photo=profile_photo,
            updated_at=now,
        )
        logger.info("Profile completed for %s (student id %s)", user_id, student_id)

        return replace(
            user,
            student_id=student_id,
            roll_number=roll_number if roll_number is not None else user.roll_number,
            profile_photo=profile_photo if profile_photo is not None else user.profile_photo,
            profile_complete=True,
            updated_at=now,
        )
