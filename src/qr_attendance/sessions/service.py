from __future__ import annotations

import logging
import secrets
import string
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable, Optional

from ..classes.repository import ClassRepository
from ..common.datetime_utils import now_utc, to_epoch_ms
from ..common.validators import require_location, require_non_empty
from ..core.exceptions import NotFoundError, SessionCreationError
from .model import QRCodeRecord, QRPayload, Session
from .qr_image import render_data_url
from .repository import QRCodeRepository, SessionRepository

logger = logging.getLogger(__name__)

_BASE36 = string.digits + string.ascii_lowercase


def new_session_id(now: datetime) -> str:
    suffix = "".join(secrets.choice(_BASE36) for _ in range(9))
    return f"session_{to_epoch_ms(now)}_{suffix}"


@dataclass(frozen=True)
class CreatedSession:
    session: Session
    qr_code: QRCodeRecord
    payload: QRPayload
    qr_image: str

    def to_dict(self) -> dict:
        return {
            "sessionId": self.session.session_id,
            "qrCode": self.qr_image,
            "expiresAt": self.qr_code.expires_at.isoformat(),
            "sessionEndsAt": self.session.end_time.isoformat(),
        }


class SessionService:
    """Mint a Session + QRCode pair for a class.

    The pair is written in two phases without a transaction: session first,
    then the QR record. When the second write fails the session is deleted
    again (compensating delete) and ``SessionCreationError`` is raised; there
    is no silent retry.
    """

    def __init__(
        self,
        sessions: SessionRepository,
        qr_codes: QRCodeRepository,
        classes: ClassRepository,
        *,
        session_duration: timedelta,
        qr_ttl: timedelta,
        renderer: Callable[[str], str] = render_data_url,
        id_factory: Callable[[datetime], str] = new_session_id,
    ):
        if qr_ttl <= timedelta(0):
            raise ValueError("QR TTL must be positive")
        if qr_ttl >= session_duration:
            raise ValueError("QR TTL must be shorter than the session duration")

        self._sessions = sessions
        self._qr_codes = qr_codes
        self._classes = classes
        self._session_duration = session_duration
        self._qr_ttl = qr_ttl
        self._render = renderer
        self._new_id = id_factory

    def create_session(
        self,
        *,
        class_id: str,
        location: Any,
        created_by: Optional[str],
        now: Optional[datetime] = None,
    ) -> CreatedSession:
        now = now or now_utc()
        class_id = require_non_empty(class_id, "classId")
        loc = require_location(location)

        if not self._classes.get_by_id(class_id):
            raise NotFoundError("Class not found")

        session_id = self._new_id(now)
        payload = QRPayload(
            class_id=class_id,
            session_id=session_id,
            timestamp=to_epoch_ms(now),
            latitude=loc["latitude"],
            longitude=loc["longitude"],
        )
        qr_image = self._render(payload.to_json())

        session = Session(
            session_id=session_id,
            class_id=class_id,
            date=now.date().isoformat(),
            start_time=now,
            end_time=now + self._session_duration,
            created_by=created_by,
            is_active=True,
        )
        qr_code = QRCodeRecord(
            qr_id=session_id,
            class_id=class_id,
            session_id=session_id,
            data=payload.to_json(),
            location=loc,
            expires_at=now + self._qr_ttl,
            created_at=now,
            is_active=True,
        )

        self._sessions.create(session)
        try:
            self._qr_codes.create(qr_code)
        except Exception as e:
            logger.error("QR write failed for session %s; compensating", session_id, exc_info=True)
            compensated = self._compensate(session_id)
            state = "session removed" if compensated else "session left behind"
            raise SessionCreationError(
                f"QR code could not be stored ({state}): {e}",
                session_id=session_id,
                compensated=compensated,
            ) from e

        logger.info("Created session %s for class %s (QR expires %s)", session_id, class_id, qr_code.expires_at)
        return CreatedSession(session=session, qr_code=qr_code, payload=payload, qr_image=qr_image)

    def _compensate(self, session_id: str) -> bool:
        try:
            self._sessions.delete(session_id)
            return True
        except Exception:
            logger.error("Compensating delete failed for session %s", session_id, exc_info=True)
            return False
