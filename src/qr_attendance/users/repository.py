from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from .model import User


class UserRepository(Protocol):
    """Repository interface for User.

    Note (DIP): services depend on this interface, never on a concrete store.
    Implementations raise ``StoreError`` when the store fails.
    """

    def get_by_id(self, user_id: str) -> Optional[User]:
        raise NotImplementedError

    def find_student_by_student_id(self, student_id: str, university: str) -> Optional[User]:
        raise NotImplementedError

    def find_student_by_roll_number(self, roll_number: str, university: str) -> Optional[User]:
        raise NotImplementedError

    def count_students(self, university: str) -> int:
        raise NotImplementedError

    def list_students(self, university: str) -> Sequence[User]:
        raise NotImplementedError

    def set_approval(
        self,
        user_id: str,
        *,
        is_approved: bool,
        approved_by: str,
        approved_at: Optional[datetime],
        updated_at: datetime,
    ) -> bool:
        raise NotImplementedError

    def set_student_id(self, user_id: str, *, student_id: str, updated_at: datetime) -> bool:
        raise NotImplementedError

    def complete_profile(
        self,
        user_id: str,
        *,
        student_id: str,
        roll_number: Optional[str],
        profile_photo: Optional[str],
        updated_at: datetime,
    ) -> bool:
        raise NotImplementedError
