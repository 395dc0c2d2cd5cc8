from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from google.cloud.firestore_v1.base_query import FieldFilter

from ..common.datetime_utils import coerce_datetime
from ..database.firestore import FirestoreConnection, store_errors
from .model import QRCodeRecord, Session
from .repository import QRCodeRepository, SessionRepository

SESSIONS = "sessions"
QR_CODES = "qrcodes"


def session_from_doc(doc_id: str, data: dict) -> Session:
    return Session(
        session_id=doc_id,
        class_id=data.get("classId", ""),
        date=data.get("date", ""),
        start_time=coerce_datetime(data.get("startTime")),
        end_time=coerce_datetime(data.get("endTime")),
        created_by=data.get("createdBy"),
        is_active=bool(data.get("isActive", False)),
    )


def qr_code_from_doc(doc_id: str, data: dict) -> QRCodeRecord:
    return QRCodeRecord(
        qr_id=doc_id,
        class_id=data.get("classId", ""),
        session_id=data.get("sessionId", doc_id),
        data=data.get("data", ""),
        location=data.get("location") or {},
        expires_at=coerce_datetime(data.get("expiresAt")),
        created_at=coerce_datetime(data.get("createdAt")),
        is_active=bool(data.get("isActive", False)),
    )


class FirestoreSessionRepository(SessionRepository):
    def __init__(self, conn: FirestoreConnection):
        self._conn = conn

    def create(self, session: Session) -> None:
        with store_errors("Session write"):
            self._conn.collection(SESSIONS).document(session.session_id).set(
                {
                    "classId": session.class_id,
                    "date": session.date,
                    "startTime": session.start_time,
                    "endTime": session.end_time,
                    "qrCodeId": session.qr_code_id,
                    "createdBy": session.created_by,
                    "isActive": session.is_active,
                }
            )

    def get_by_id(self, session_id: str) -> Optional[Session]:
        with store_errors("Session lookup"):
            snap = self._conn.collection(SESSIONS).document(session_id).get()
        if not snap.exists:
            return None
        return session_from_doc(snap.id, snap.to_dict() or {})

    def delete(self, session_id: str) -> bool:
        with store_errors("Session delete"):
            self._conn.collection(SESSIONS).document(session_id).delete()
        return True

    def list_expired_active(self, now: datetime) -> Sequence[Session]:
        query = (
            self._conn.collection(SESSIONS)
            .where(filter=FieldFilter("endTime", "<=", now))
            .where(filter=FieldFilter("isActive", "==", True))
        )
        with store_errors("Expired session query"):
            return [session_from_doc(s.id, s.to_dict() or {}) for s in query.stream()]

    def list_all(self) -> Sequence[Session]:
        with store_errors("Session listing"):
            return [session_from_doc(s.id, s.to_dict() or {}) for s in self._conn.collection(SESSIONS).stream()]


class FirestoreQRCodeRepository(QRCodeRepository):
    def __init__(self, conn: FirestoreConnection):
        self._conn = conn

    def create(self, qr_code: QRCodeRecord) -> None:
        with store_errors("QR code write"):
            self._conn.collection(QR_CODES).document(qr_code.qr_id).set(
                {
                    "classId": qr_code.class_id,
                    "sessionId": qr_code.session_id,
                    "data": qr_code.data,
                    "location": dict(qr_code.location),
                    "expiresAt": qr_code.expires_at,
                    "isActive": qr_code.is_active,
                    "createdAt": qr_code.created_at,
                }
            )

    def delete(self, qr_id: str) -> bool:
        with store_errors("QR code delete"):
            self._conn.collection(QR_CODES).document(qr_id).delete()
        return True

    def _query(self, field: str, op: str, value: datetime) -> Sequence[QRCodeRecord]:
        query = self._conn.collection(QR_CODES).where(filter=FieldFilter(field, op, value))
        with store_errors("QR code query"):
            return [qr_code_from_doc(s.id, s.to_dict() or {}) for s in query.stream()]

    def list_expired(self, now: datetime) -> Sequence[QRCodeRecord]:
        return self._query("expiresAt", "<=", now)

    def list_created_before(self, cutoff: datetime) -> Sequence[QRCodeRecord]:
        return self._query("createdAt", "<", cutoff)

    def list_all(self) -> Sequence[QRCodeRecord]:
        with store_errors("QR code listing"):
            return [qr_code_from_doc(s.id, s.to_dict() or {}) for s in self._conn.collection(QR_CODES).stream()]
