from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from .model import QRCodeRecord, Session


class SessionRepository(Protocol):
    def create(self, session: Session) -> None:
        raise NotImplementedError

    def get_by_id(self, session_id: str) -> Optional[Session]:
        raise NotImplementedError

    def delete(self, session_id: str) -> bool:
        raise NotImplementedError

    def list_expired_active(self, now: datetime) -> Sequence[Session]:
        """Active sessions whose ``end_time`` is at or before ``now``."""

        raise NotImplementedError

    def list_all(self) -> Sequence[Session]:
        raise NotImplementedError


class QRCodeRepository(Protocol):
    def create(self, qr: QRCodeRecord) -> None:
        raise NotImplementedError

    def delete(self, qr_id: str) -> bool:
        raise NotImplementedError

    def list_expired(self, now: datetime) -> Sequence[QRCodeRecord]:
        """QR records whose ``expires_at`` is at or before ``now``."""

        raise NotImplementedError

    def list_created_before(self, cutoff: datetime) -> Sequence[QRCodeRecord]:
        raise NotImplementedError

    def list_all(self) -> Sequence[QRCodeRecord]:
        raise NotImplementedError
