from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one scan event. Immutable once written.

    ``timestamp`` and ``status`` are kept as stored (``Any``) because the
    export has to cope with legacy or corrupt documents.
    """

    record_id: str
    class_id: str
    student_id: Optional[str]
    session_id: Optional[str]
    timestamp: Any
    status: Optional[str]
    device_info: Any = None
    student_name: Optional[str] = None
    student_email: Optional[str] = None
    class_name: Optional[str] = None
    location: Optional[dict] = None
    minutes_late: Optional[int] = None


@dataclass(frozen=True)
class NewAttendance:
    """Write-model for a redeemed QR code."""

    class_id: str
    class_name: Optional[str]
    student_id: str
    student_name: Optional[str]
    student_email: Optional[str]
    session_id: str
    timestamp: datetime
    status: str
    location: dict
    qr_timestamp: datetime
    minutes_late: int
    device_info: Any = None
