from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, BinaryIO, Optional, Protocol

from ..classes.repository import ClassRepository
from ..common.datetime_utils import coerce_datetime, from_epoch_ms, now_utc, start_of_day
from ..common.geo import haversine_meters
from ..common.validators import require_location
from ..core.constants import (
    DEFAULT_DUPLICATE_WINDOW_MINUTES,
    DEFAULT_LATE_THRESHOLD_MINUTES,
    DEFAULT_QR_SCAN_GRACE_SECONDS,
    DEFAULT_QR_TTL_SECONDS,
)
from ..core.enums import AttendanceStatus
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..core.result import Outcome
from ..sessions.model import QRPayload
from ..sessions.qr_image import decode_image
from ..users.model import User
from .model import NewAttendance
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


class ConfirmationNotifier(Protocol):
    def send_attendance_confirmation(
        self,
        *,
        to: Optional[str],
        student_name: Optional[str],
        class_name: Optional[str],
        timestamp: datetime,
        status: str,
    ) -> Optional[str]:
        raise NotImplementedError


@dataclass(frozen=True)
class MarkedAttendance:
    record_id: str
    class_id: str
    class_name: Optional[str]
    session_id: str
    status: str
    minutes_late: int
    timestamp: datetime

    def to_dict(self) -> dict:
        return {
            "attendanceId": self.record_id,
            "classId": self.class_id,
            "className": self.class_name,
            "sessionId": self.session_id,
            "status": self.status,
            "minutesLate": self.minutes_late,
            "timestamp": self.timestamp.isoformat(),
        }


def _format_time(value: Any) -> str:
    ts = coerce_datetime(value)
    return ts.strftime("%H:%M:%S") if ts else "an earlier time"


class AttendanceService:
    """Redeem scanned QR payloads into attendance records."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        classes: ClassRepository,
        notifier: ConfirmationNotifier,
        *,
        qr_ttl: timedelta = timedelta(seconds=DEFAULT_QR_TTL_SECONDS),
        scan_grace: timedelta = timedelta(seconds=DEFAULT_QR_SCAN_GRACE_SECONDS),
        late_threshold_minutes: int = DEFAULT_LATE_THRESHOLD_MINUTES,
        duplicate_window: timedelta = timedelta(minutes=DEFAULT_DUPLICATE_WINDOW_MINUTES),
    ):
        self._attendance = attendance
        self._classes = classes
        self._notifier = notifier
        self._qr_ttl = qr_ttl
        self._scan_grace = scan_grace
        self._late_threshold = int(late_threshold_minutes)
        self._duplicate_window = duplicate_window

    @staticmethod
    def _require_approved_student(user: Optional[User]) -> User:
        if not user or not user.is_student:
            raise AuthorizationError("Only students can mark attendance")
        if not user.is_approved:
            raise AuthorizationError("Your account is pending approval")
        return user

    def _check_duplicates(self, *, user_id: str, class_id: str, session_id: str, now: datetime) -> None:
        if self._attendance.find_for_session(session_id=session_id, student_id=user_id):
            raise ConflictError("Attendance has already been marked for this session.")

        recent = self._attendance.list_for_student_since(
            class_id=class_id, student_id=user_id, since=now - self._duplicate_window
        )
        if recent:
            raise ConflictError(
                f"Attendance was already marked for this class at {_format_time(recent[0].timestamp)}. "
                "Please wait before marking again."
            )

        today = self._attendance.list_for_student_since(class_id=class_id, student_id=user_id, since=start_of_day(now))
        if today:
            raise ConflictError(f"Attendance already marked today for this class at {_format_time(today[0].timestamp)}.")

    def mark_attendance(
        self,
        user: Optional[User],
        qr_text: str,
        *,
        location: Any,
        device_info: Any = None,
        now: Optional[datetime] = None,
    ) -> Outcome[MarkedAttendance]:
        now = now or now_utc()

        user = self._require_approved_student(user)

        payload = QRPayload.from_json(qr_text)
        if payload is None:
            raise ValidationError("Invalid QR code")

        student_loc = require_location(location)

        issued_at = from_epoch_ms(payload.timestamp)
        if now > issued_at + self._qr_ttl + self._scan_grace:
            raise ValidationError("This QR code has expired. Please ask your instructor for a new one.")

        info = self._classes.get_by_id(payload.class_id)
        if not info:
            raise NotFoundError("Class not found")
        if not info.location or not info.location.radius:
            raise ValidationError("Class location data is incomplete. Please contact your instructor.")

        distance = haversine_meters(
            student_loc["latitude"], student_loc["longitude"], payload.latitude, payload.longitude
        )
        if distance > info.location.radius:
            logger.info(
                "Geofence rejected %s for class %s (%.1fm > %.1fm)", user.user_id, info.class_id, distance, info.location.radius
            )
            raise ValidationError("You are not within the required location to mark attendance.")

        self._check_duplicates(user_id=user.user_id, class_id=payload.class_id, session_id=payload.session_id, now=now)

        minutes_late = max(0, int((now - issued_at).total_seconds() // 60))
        status = AttendanceStatus.LATE if minutes_late > self._late_threshold else AttendanceStatus.PRESENT

        record_id = self._attendance.create(
            NewAttendance(
                class_id=payload.class_id,
                class_name=info.name,
                student_id=user.user_id,
                student_name=user.name,
                student_email=user.email,
                session_id=payload.session_id,
                timestamp=now,
                status=status.value,
                location=student_loc,
                qr_timestamp=issued_at,
                minutes_late=minutes_late,
                device_info=device_info,
            )
        )
        logger.info("Attendance %s marked for %s in session %s (%s)", record_id, user.user_id, payload.session_id, status.value)

        warnings: list[str] = []
        try:
            warning = self._notifier.send_attendance_confirmation(
                to=user.email,
                student_name=user.name,
                class_name=info.name,
                timestamp=now,
                status=status.value,
            )
        except Exception as e:
            logger.error("Attendance confirmation raised for %s", record_id, exc_info=True)
            warning = f"Email notification failed: {e}"
        if warning:
            warnings.append(warning)

        marked = MarkedAttendance(
            record_id=record_id,
            class_id=payload.class_id,
            class_name=info.name,
            session_id=payload.session_id,
            status=status.value,
            minutes_late=minutes_late,
            timestamp=now,
        )
        return Outcome(marked, warnings)

    def mark_attendance_from_image(
        self,
        user: Optional[User],
        image: BinaryIO,
        *,
        location: Any,
        device_info: Any = None,
        now: Optional[datetime] = None,
    ) -> Outcome[MarkedAttendance]:
        self._require_approved_student(user)
        qr_text = decode_image(image)
        if not qr_text:
            raise ValidationError("No QR code found in the image")
        return self.mark_attendance(user, qr_text, location=location, device_info=device_info, now=now)
