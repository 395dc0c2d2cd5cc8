from __future__ import annotations

from datetime import datetime
from typing import Any, Optional, Sequence

from ..common.datetime_utils import coerce_datetime
from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, to_db_datetime
from .model import User
from .repository import UserRepository

_COLUMNS = """
    user_id, email, name, role, university, is_approved, student_id, roll_number,
    profile_photo, profile_complete, approved_by, approved_at, created_at, updated_at
"""


def _to_user(row: dict) -> User:
    return User(
        user_id=str(row["user_id"]),
        email=row.get("email"),
        name=row.get("name"),
        role=Role(row["role"]),
        university=row.get("university"),
        is_approved=bool(row.get("is_approved")),
        student_id=row.get("student_id"),
        roll_number=row.get("roll_number"),
        profile_photo=row.get("profile_photo"),
        profile_complete=bool(row.get("profile_complete")),
        approved_by=row.get("approved_by"),
        approved_at=coerce_datetime(row.get("approved_at")),
        created_at=coerce_datetime(row.get("created_at")),
        updated_at=coerce_datetime(row.get("updated_at")),
    )


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _one(self, where: str, params: tuple) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE {where} LIMIT 1", params)
            row = fetchone(cur)
            return _to_user(row) if row else None

    def _update(self, user_id: str, fields: dict[str, Any]) -> bool:
        assignments = ", ".join(f"{col}=%s" for col in fields)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"UPDATE users SET {assignments} WHERE user_id=%s", (*fields.values(), user_id))
            return cur.rowcount > 0

    def get_by_id(self, user_id: str) -> Optional[User]:
        return self._one("user_id=%s", (user_id,))

    def find_student_by_student_id(self, student_id: str, university: str) -> Optional[User]:
        return self._one("role='student' AND university=%s AND student_id=%s", (university, student_id))

    def find_student_by_roll_number(self, roll_number: str, university: str) -> Optional[User]:
        return self._one("role='student' AND university=%s AND roll_number=%s", (university, roll_number))

    def count_students(self, university: str) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT COUNT(*) AS n FROM users WHERE role='student' AND university=%s",
                (university,),
            )
            row = fetchone(cur)
            return int(row["n"]) if row else 0

    def list_students(self, university: str) -> Sequence[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM users WHERE role='student' AND university=%s ORDER BY created_at, user_id",
                (university,),
            )
            return [_to_user(r) for r in fetchall(cur)]

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
                "is_approved": 1 if is_approved else 0,
                "approved_by": approved_by,
                "approved_at": to_db_datetime(approved_at),
                "updated_at": to_db_datetime(updated_at),
            },
        )

    def set_student_id(self, user_id: str, *, student_id: str, updated_at: datetime) -> bool:
        return self._update(user_id, {"student_id": student_id, "updated_at": to_db_datetime(updated_at)})

    def complete_profile(
        self,
        user_id: str,
        *,
        student_id: str,
        roll_number: Optional[str],
        profile_photo: Optional[str],
        updated_at: datetime,
    ) -> bool:
        fields: dict[str, Any] = {
            "student_id": student_id,
            "profile_complete": 1,
            "updated_at": to_db_datetime(updated_at),
        }
        if roll_number is not None:
            fields["roll_number"] = roll_number
        if profile_photo is not None:
            fields["profile_photo"] = profile_photo
        return self._update(user_id, fields)
