from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from .model import AttendanceRecord, NewAttendance


class AttendanceRepository(Protocol):
    def list_for_class(
        self,
        class_id: str,
        *,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> Sequence[AttendanceRecord]:
        """Records of one class, newest first, within inclusive bounds."""

        raise NotImplementedError

    def find_for_session(self, *, session_id: str, student_id: str) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def list_for_student_since(self, *, class_id: str, student_id: str, since: datetime) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def create(self, record: NewAttendance) -> str:
        raise NotImplementedError
