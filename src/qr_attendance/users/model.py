from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class User:
    """Domain entity: User.

    Plain data object; no store access lives here. ``user_id`` is the document
    id issued by the identity provider.
    """

    user_id: str
    email: Optional[str]
    name: Optional[str]
    role: Role
    university: Optional[str] = None
    is_approved: bool = False
    student_id: Optional[str] = None
    roll_number: Optional[str] = None
    profile_photo: Optional[str] = None
    profile_complete: bool = False
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @property
    def is_student(self) -> bool:
        return self.role == Role.STUDENT
