from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, from_db_json, to_db_datetime, to_db_json
from .model import AttendanceRecord, NewAttendance
from .repository import AttendanceRepository

_COLUMNS = """
    attendance_id, class_id, class_name, student_id, student_name, student_email,
    session_id, timestamp, status, location, minutes_late, device_info
"""


def _to_record(row: dict) -> AttendanceRecord:
    return AttendanceRecord(
        record_id=str(row["attendance_id"]),
        class_id=str(row["class_id"]),
        student_id=row.get("student_id"),
        session_id=row.get("session_id"),
        timestamp=row.get("timestamp"),
        status=row.get("status"),
        device_info=from_db_json(row.get("device_info")),
        student_name=row.get("student_name"),
        student_email=row.get("student_email"),
        class_name=row.get("class_name"),
        location=from_db_json(row.get("location")),
        minutes_late=row.get("minutes_late"),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_for_class(
        self,
        class_id: str,
        *,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> Sequence[AttendanceRecord]:
        where = ["class_id=%s"]
        params: list = [class_id]
        if start is not None:
            where.append("timestamp >= %s")
            params.append(to_db_datetime(start))
        if end is not None:
            where.append("timestamp <= %s")
            params.append(to_db_datetime(end))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance WHERE {' AND '.join(where)} ORDER BY timestamp DESC",
                tuple(params),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def find_for_session(self, *, session_id: str, student_id: str) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance WHERE session_id=%s AND student_id=%s LIMIT 1",
                (session_id, student_id),
            )
            row = fetchone(cur)
            return _to_record(row) if row else None

    def list_for_student_since(self, *, class_id: str, student_id: str, since: datetime) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM attendance
                WHERE class_id=%s AND student_id=%s AND timestamp >= %s
                ORDER BY timestamp DESC
                """,
                (class_id, student_id, to_db_datetime(since)),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def create(self, record: NewAttendance) -> str:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance(
                    class_id, class_name, student_id, student_name, student_email, session_id,
                    timestamp, status, location, qr_timestamp, minutes_late, device_info
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    record.class_id,
                    record.class_name,
                    record.student_id,
                    record.student_name,
                    record.student_email,
                    record.session_id,
                    to_db_datetime(record.timestamp),
                    record.status,
                    to_db_json(record.location),
                    to_db_datetime(record.qr_timestamp),
                    record.minutes_late,
                    to_db_json(record.device_info),
                ),
            )
            return str(cur.lastrowid)
