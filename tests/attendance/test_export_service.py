from __future__ import annotations

import csv
import io
from datetime import timedelta

import pytest

from fakes import NOW, FakeAttendanceRepo, FakeClassesRepo, FakeStorage, FakeUsersRepo, make_class, make_student
from qr_attendance.attendance.export_service import ExportService
from qr_attendance.attendance.model import AttendanceRecord
from qr_attendance.core.exceptions import NotFoundError, StoreError, ValidationError


def _record(rid, student_id, ts, status="present", **kwargs):
    return AttendanceRecord(
        record_id=rid,
        class_id="cls-1",
        student_id=student_id,
        session_id=kwargs.pop("session_id", f"session-{rid}"),
        timestamp=ts,
        status=status,
        **kwargs,
    )


def _rows(storage):
    filename, data, content_type = storage.uploads[-1]
    assert content_type == "text/csv"
    return list(csv.reader(io.StringIO(data.decode("utf-8"))))


@pytest.fixture()
def users():
    return FakeUsersRepo(
        [
            make_student("u1", name="Ana Lee", roll_number="R-1", email="ana@example.edu"),
            make_student("u2", name="Bo Kim", student_id="BOK001", email="bo@example.edu"),
        ]
    )


def _service(records, users, storage, classes=None):
    return ExportService(
        FakeAttendanceRepo(records),
        users,
        classes or FakeClassesRepo([make_class()]),
        storage,
        lookup_workers=4,
    )


def test_export_renders_one_row_per_record(users):
    storage = FakeStorage()
    records = [
        _record("a1", "u1", NOW - timedelta(days=1), device_info={"userAgent": "UA"}),
        _record("a2", "u2", NOW, status="late"),
        _record("a3", "ghost", NOW - timedelta(days=2)),
    ]
    result = _service(records, users, storage).export("cls-1", now=NOW)

    rows = _rows(storage)
    assert rows[0] == ["Student Name", "Roll Number", "Email", "Date", "Time", "Status", "Session ID", "Device Info"]
    assert result.record_count == len(rows) - 1 == 3

    # newest first
    assert rows[1] == ["Bo Kim", "BOK001", "bo@example.edu", "2026-03-02", "09:00:00", "late", "session-a2", "N/A"]
    assert rows[2][:3] == ["Ana Lee", "R-1", "ana@example.edu"]
    assert rows[2][7] == '{"userAgent":"UA"}'
    assert rows[3][:3] == ["Unknown Student", "N/A", "N/A"]


def test_every_field_is_quoted(users):
    storage = FakeStorage()
    _service([_record("a1", "u1", NOW)], users, storage).export("cls-1", now=NOW)

    text = storage.uploads[-1][1].decode("utf-8")
    first_data_line = text.splitlines()[1]
    assert first_data_line.startswith('"Ana Lee","R-1"')


@pytest.mark.parametrize("bad_ts", [None, "not-a-date", {"seconds": "x"}, True])
def test_missing_or_corrupt_timestamp_renders_na(users, bad_ts):
    storage = FakeStorage()
    _service([_record("a1", "u1", bad_ts, status=None, session_id=None)], users, storage).export("cls-1", now=NOW)

    row = _rows(storage)[1]
    assert row[3:5] == ["N/A", "N/A"]
    assert row[5] == "absent"
    assert row[6] == "N/A"


def test_omitted_bounds_report_all_time(users):
    result = _service([], users, FakeStorage()).export("cls-1", now=NOW)

    assert result.date_range == {"start": "All time", "end": "All time"}
    assert result.status_filter == "all"
    assert result.class_name == "Algorithms"
    assert result.filename == "attendance_CS101_20260302_090000.csv"
    assert result.url.endswith(result.filename)


def test_date_range_is_inclusive_by_day(users):
    storage = FakeStorage()
    records = [
        _record("early", "u1", NOW.replace(day=1, hour=0, minute=0)),
        _record("late-night", "u1", NOW.replace(day=1, hour=23, minute=59, second=59)),
        _record("next-day", "u1", NOW),
        _record("before", "u1", NOW.replace(day=1, hour=0, minute=0) - timedelta(seconds=1)),
    ]
    result = _service(records, users, storage).export(
        "cls-1", start_date="2026-03-01", end_date="2026-03-01", now=NOW
    )

    assert result.record_count == 2
    assert result.date_range == {"start": "2026-03-01", "end": "2026-03-01"}
    assert {r[6] for r in _rows(storage)[1:]} == {"session-early", "session-late-night"}


def test_status_filter(users):
    storage = FakeStorage()
    records = [_record("a1", "u1", NOW, status="late"), _record("a2", "u2", NOW, status="present")]
    result = _service(records, users, storage).export("cls-1", status="late", now=NOW)

    assert result.record_count == 1
    assert result.status_filter == "late"


def test_invalid_inputs(users):
    service = _service([], users, FakeStorage())

    with pytest.raises(ValidationError):
        service.export("cls-1", start_date="03/01/2026")
    with pytest.raises(ValidationError):
        service.export("cls-1", status="sleeping")
    with pytest.raises(NotFoundError):
        service.export("missing")


def test_failed_profile_lookup_fails_the_export():
    class FlakyUsers(FakeUsersRepo):
        def get_by_id(self, user_id):
            raise StoreError("lookup failed")

    storage = FakeStorage()
    with pytest.raises(StoreError):
        _service([_record("a1", "u1", NOW)], FlakyUsers(), storage).export("cls-1", now=NOW)

    assert storage.uploads == []


def test_missing_profile_renders_unknown_student():
    storage = FakeStorage()
    _service([_record("a1", "ghost", NOW)], FakeUsersRepo(), storage).export("cls-1", now=NOW)

    assert _rows(storage)[1][0] == "Unknown Student"
