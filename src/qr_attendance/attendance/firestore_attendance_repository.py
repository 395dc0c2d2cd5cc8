from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from google.cloud import firestore as gcf
from google.cloud.firestore_v1.base_query import FieldFilter

from ..database.firestore import FirestoreConnection, store_errors
from .model import AttendanceRecord, NewAttendance
from .repository import AttendanceRepository

ATTENDANCE = "attendance"


def record_from_doc(doc_id: str, data: dict) -> AttendanceRecord:
    # timestamp and status stay raw; the export copes with bad values
    return AttendanceRecord(
        record_id=doc_id,
        class_id=data.get("classId", ""),
        student_id=data.get("studentId"),
        session_id=data.get("sessionId"),
        timestamp=data.get("timestamp"),
        status=data.get("status"),
        device_info=data.get("deviceInfo"),
        student_name=data.get("studentName"),
        student_email=data.get("studentEmail"),
        class_name=data.get("className"),
        location=data.get("location"),
        minutes_late=data.get("minutesLate"),
    )


class FirestoreAttendanceRepository(AttendanceRepository):
    def __init__(self, conn: FirestoreConnection):
        self._conn = conn

    def _by_student(self, class_id: str, student_id: str):
        return (
            self._conn.collection(ATTENDANCE)
            .where(filter=FieldFilter("classId", "==", class_id))
            .where(filter=FieldFilter("studentId", "==", student_id))
        )

    def list_for_class(
        self,
        class_id: str,
        *,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> Sequence[AttendanceRecord]:
        query = self._conn.collection(ATTENDANCE).where(filter=FieldFilter("classId", "==", class_id))
        if start is not None:
            query = query.where(filter=FieldFilter("timestamp", ">=", start))
        if end is not None:
            query = query.where(filter=FieldFilter("timestamp", "<=", end))
        query = query.order_by("timestamp", direction=gcf.Query.DESCENDING)

        with store_errors("Attendance query"):
            return [record_from_doc(s.id, s.to_dict() or {}) for s in query.stream()]

    def find_for_session(self, *, session_id: str, student_id: str) -> Optional[AttendanceRecord]:
        query = (
            self._conn.collection(ATTENDANCE)
            .where(filter=FieldFilter("sessionId", "==", session_id))
            .where(filter=FieldFilter("studentId", "==", student_id))
            .limit(1)
        )
        with store_errors("Attendance lookup"):
            for snap in query.stream():
                return record_from_doc(snap.id, snap.to_dict() or {})
        return None

    def list_for_student_since(self, *, class_id: str, student_id: str, since: datetime) -> Sequence[AttendanceRecord]:
        query = (
            self._by_student(class_id, student_id)
            .where(filter=FieldFilter("timestamp", ">=", since))
            .order_by("timestamp", direction=gcf.Query.DESCENDING)
        )
        with store_errors("Attendance query"):
            return [record_from_doc(s.id, s.to_dict() or {}) for s in query.stream()]

    def create(self, record: NewAttendance) -> str:
        doc = {
            "classId": record.class_id,
            "className": record.class_name,
            "studentId": record.student_id,
            "studentName": record.student_name,
            "studentEmail": record.student_email,
            "sessionId": record.session_id,
            "timestamp": record.timestamp,
            "scannedAt": record.timestamp,
            "status": record.status,
            "location": dict(record.location),
            "qrTimestamp": record.qr_timestamp,
            "minutesLate": record.minutes_late,
            "deviceInfo": record.device_info,
            "uniqueKey": f"{record.student_id}_{record.session_id}_{record.timestamp.date().isoformat()}",
        }
        with store_errors("Attendance write"):
            _, ref = self._conn.collection(ATTENDANCE).add(doc)
        return ref.id
