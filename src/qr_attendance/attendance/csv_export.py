from __future__ import annotations

import csv
import io
import json
from dataclasses import astuple, dataclass
from typing import Any, Iterable, Optional

from ..common.datetime_utils import coerce_datetime
from ..core.constants import NOT_AVAILABLE, UNKNOWN_STUDENT
from ..core.enums import AttendanceStatus
from ..users.model import User
from .model import AttendanceRecord

HEADERS = ("Student Name", "Roll Number", "Email", "Date", "Time", "Status", "Session ID", "Device Info")


@dataclass(frozen=True)
class ExportRow:
    student_name: str
    roll_number: str
    email: str
    date: str
    time: str
    status: str
    session_id: str
    device_info: str


def _text(value: Any, default: str = NOT_AVAILABLE) -> str:
    if value is None:
        return default
    s = str(value).strip()
    return s or default


def _device_info(value: Any) -> str:
    if value is None or value == "" or value == {}:
        return NOT_AVAILABLE
    if isinstance(value, (dict, list)):
        return json.dumps(value, separators=(",", ":"), sort_keys=True, default=str)
    return _text(value)


def to_row(record: AttendanceRecord, student: Optional[User]) -> ExportRow:
    """Flatten one record; every field falls back independently."""

    ts = coerce_datetime(record.timestamp)
    if ts is None:
        date_s = time_s = NOT_AVAILABLE
    else:
        date_s = ts.strftime("%Y-%m-%d")
        time_s = ts.strftime("%H:%M:%S")

    if student is not None:
        name = _text(student.name, UNKNOWN_STUDENT)
        roll = _text(student.roll_number or student.student_id)
        email = _text(student.email)
    else:
        name, roll, email = UNKNOWN_STUDENT, NOT_AVAILABLE, NOT_AVAILABLE

    return ExportRow(
        student_name=name,
        roll_number=roll,
        email=email,
        date=date_s,
        time=time_s,
        status=_text(record.status, AttendanceStatus.ABSENT.value),
        session_id=_text(record.session_id),
        device_info=_device_info(record.device_info),
    )


def render_csv(rows: Iterable[ExportRow]) -> bytes:
    buf = io.StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(HEADERS)
    for row in rows:
        writer.writerow(astuple(row))
    return buf.getvalue().encode("utf-8")
