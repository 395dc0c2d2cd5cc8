from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..common.datetime_utils import coerce_datetime
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, from_db_json, to_db_datetime, to_db_json
from .model import QRCodeRecord, Session
from .repository import QRCodeRepository, SessionRepository

_SESSION_COLUMNS = "session_id, class_id, session_date, start_time, end_time, created_by, is_active"
_QR_COLUMNS = "qr_id, class_id, session_id, data, location, expires_at, created_at, is_active"


def _to_session(row: dict) -> Session:
    return Session(
        session_id=str(row["session_id"]),
        class_id=str(row["class_id"]),
        date=str(row["session_date"]),
        start_time=coerce_datetime(row["start_time"]),
        end_time=coerce_datetime(row["end_time"]),
        created_by=row.get("created_by"),
        is_active=bool(row.get("is_active")),
    )


def _to_qr_code(row: dict) -> QRCodeRecord:
    return QRCodeRecord(
        qr_id=str(row["qr_id"]),
        class_id=str(row["class_id"]),
        session_id=str(row["session_id"]),
        data=row["data"],
        location=from_db_json(row.get("location")) or {},
        expires_at=coerce_datetime(row["expires_at"]),
        created_at=coerce_datetime(row["created_at"]),
        is_active=bool(row.get("is_active")),
    )


class MySQLSessionRepository(SessionRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(self, session: Session) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO sessions(session_id, class_id, session_date, start_time, end_time, qr_code_id, created_by, is_active)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    session.session_id,
                    session.class_id,
                    session.date,
                    to_db_datetime(session.start_time),
                    to_db_datetime(session.end_time),
                    session.qr_code_id,
                    session.created_by,
                    1 if session.is_active else 0,
                ),
            )

    def get_by_id(self, session_id: str) -> Optional[Session]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_SESSION_COLUMNS} FROM sessions WHERE session_id=%s", (session_id,))
            row = fetchone(cur)
            return _to_session(row) if row else None

    def delete(self, session_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM sessions WHERE session_id=%s", (session_id,))
            return cur.rowcount > 0

    def list_expired_active(self, now: datetime) -> Sequence[Session]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_SESSION_COLUMNS} FROM sessions WHERE end_time <= %s AND is_active = 1",
                (to_db_datetime(now),),
            )
            return [_to_session(r) for r in fetchall(cur)]

    def list_all(self) -> Sequence[Session]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_SESSION_COLUMNS} FROM sessions")
            return [_to_session(r) for r in fetchall(cur)]


class MySQLQRCodeRepository(QRCodeRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(self, qr: QRCodeRecord) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO qr_codes(qr_id, class_id, session_id, data, location, expires_at, created_at, is_active)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    qr.qr_id,
                    qr.class_id,
                    qr.session_id,
                    qr.data,
                    to_db_json(qr.location),
                    to_db_datetime(qr.expires_at),
                    to_db_datetime(qr.created_at),
                    1 if qr.is_active else 0,
                ),
            )

    def delete(self, qr_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM qr_codes WHERE qr_id=%s", (qr_id,))
            return cur.rowcount > 0

    def list_expired(self, now: datetime) -> Sequence[QRCodeRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_QR_COLUMNS} FROM qr_codes WHERE expires_at <= %s", (to_db_datetime(now),))
            return [_to_qr_code(r) for r in fetchall(cur)]

    def list_created_before(self, cutoff: datetime) -> Sequence[QRCodeRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_QR_COLUMNS} FROM qr_codes WHERE created_at < %s", (to_db_datetime(cutoff),))
            return [_to_qr_code(r) for r in fetchall(cur)]

    def list_all(self) -> Sequence[QRCodeRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_QR_COLUMNS} FROM qr_codes")
            return [_to_qr_code(r) for r in fetchall(cur)]
