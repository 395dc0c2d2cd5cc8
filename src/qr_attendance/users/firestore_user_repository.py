from __future__ import annotations

from datetime import datetime
from typing import Any, Optional, Sequence

from google.api_core.exceptions import NotFound
from google.cloud.firestore_v1.base_query import FieldFilter

from ..common.datetime_utils import coerce_datetime
from ..core.enums import Role
from ..database.firestore import FirestoreConnection, store_errors
from .model import User
from .repository import UserRepository

USERS = "users"


def _role(value: Any) -> Role:
    try:
        return Role(value)
    except ValueError:
        return Role.STUDENT


def user_from_doc(doc_id: str, data: dict) -> User:
    return User(
        user_id=doc_id,
        email=data.get("email"),
        name=data.get("name"),
        role=_role(data.get("role")),
        university=data.get("university"),
        is_approved=bool(data.get("isApproved", False)),
        student_id=data.get("studentId"),
        roll_number=data.get("rollNumber"),
        profile_photo=data.get("profilePhoto"),
        profile_complete=bool(data.get("profileComplete", False)),
        approved_by=data.get("approvedBy"),
        approved_at=coerce_datetime(data.get("approvedAt")),
        created_at=coerce_datetime(data.get("createdAt")),
        updated_at=coerce_datetime(data.get("updatedAt")),
    )


class FirestoreUserRepository(UserRepository):
    def __init__(self, conn: FirestoreConnection):
        self._conn = conn

    def _students(self, university: str):
        return (
            self._conn.collection(USERS)
            .where(filter=FieldFilter("role", "==", Role.STUDENT.value))
            .where(filter=FieldFilter("university", "==", university))
        )

    def _first(self, query) -> Optional[User]:
        for snap in query.limit(1).stream():
            return user_from_doc(snap.id, snap.to_dict() or {})
        return None

    def _update(self, user_id: str, fields: dict) -> bool:
        with store_errors("User update"):
            try:
                self._conn.collection(USERS).document(user_id).update(fields)
            except NotFound:
                return False
        return True

    def get_by_id(self, user_id: str) -> Optional[User]:
        with store_errors("User lookup"):
            snap = self._conn.collection(USERS).document(user_id).get()
        if not snap.exists:
            return None
        return user_from_doc(snap.id, snap.to_dict() or {})

    def find_student_by_student_id(self, student_id: str, university: str) -> Optional[User]:
        with store_errors("Student id lookup"):
            return self._first(self._students(university).where(filter=FieldFilter("studentId", "==", student_id)))

    def find_student_by_roll_number(self, roll_number: str, university: str) -> Optional[User]:
        with store_errors("Roll number lookup"):
            return self._first(self._students(university).where(filter=FieldFilter("rollNumber", "==", roll_number)))

    def count_students(self, university: str) -> int:
        with store_errors("Student count"):
            result = self._students(university).count().get()
        return int(result[0][0].value)

    def list_students(self, university: str) -> Sequence[User]:
        with store_errors("Student listing"):
            return [user_from_doc(s.id, s.to_dict() or {}) for s in self._students(university).stream()]

    def set_approval(
        self,
        user_id: str,
        *,
        is_approved: bool,
        approved_by: str,
        approved_at: Optional[datetime],
        updated_at: datetime,
    ) -> bool:
        return self._update(
            user_id,
            {
                "isApproved": is_approved,
                "approvedBy": approved_by,
                "approvedAt": approved_at,
                "updatedAt": updated_at,
            },
        )

    def set_student_id(self, user_id: str, *, student_id: str, updated_at: datetime) -> bool:
        return self._update(user_id, {"studentId": student_id, "updatedAt": updated_at})

    def complete_profile(
        self,
        user_id: str,
        *,
        student_id: str,
        roll_number: Optional[str],
        profile_photo: Optional[str],
        updated_at: datetime,
    ) -> bool:
        fields: dict[str, Any] = {"studentId": student_id, "profileComplete": True, "updatedAt": updated_at}
        if roll_number is not None:
            fields["rollNumber"] = roll_number
        if profile_photo is not None:
            fields["profilePhoto"] = profile_photo
        return self._update(user_id, fields)
