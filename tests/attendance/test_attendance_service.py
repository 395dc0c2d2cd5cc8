from __future__ import annotations

import io
from dataclasses import replace
from datetime import timedelta

import pytest

from fakes import NOW, FakeAttendanceRepo, FakeClassesRepo, RecordingNotifier, make_admin, make_class, make_student
from qr_attendance.attendance import service as attendance_service_module
from qr_attendance.attendance.model import AttendanceRecord
from qr_attendance.attendance.service import AttendanceService
from qr_attendance.common.datetime_utils import to_epoch_ms
from qr_attendance.core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from qr_attendance.sessions.model import QRPayload

HERE = {"latitude": 12.9716, "longitude": 77.5946}
FAR_AWAY = {"latitude": 12.9900, "longitude": 77.5946}
ISSUED = NOW


def _qr_text(*, class_id="cls-1", session_id="sess-1", issued=ISSUED):
    return QRPayload(
        class_id=class_id,
        session_id=session_id,
        timestamp=to_epoch_ms(issued),
        latitude=HERE["latitude"],
        longitude=HERE["longitude"],
    ).to_json()


def _service(attendance=None, notifier=None, classes=None, **kwargs):
    return AttendanceService(
        attendance if attendance is not None else FakeAttendanceRepo(),
        classes or FakeClassesRepo([make_class()]),
        notifier or RecordingNotifier(),
        **kwargs,
    )


def _existing(session_id, ts, student_id="s1"):
    return AttendanceRecord(
        record_id=f"old-{session_id}",
        class_id="cls-1",
        student_id=student_id,
        session_id=session_id,
        timestamp=ts,
        status="present",
    )


def test_mark_attendance_writes_present_record_and_confirms():
    attendance, notifier = FakeAttendanceRepo(), RecordingNotifier()
    student = make_student("s1")

    outcome = _service(attendance, notifier).mark_attendance(
        student, _qr_text(), location=HERE, device_info={"userAgent": "pytest"}, now=ISSUED + timedelta(seconds=20)
    )

    assert outcome.ok
    assert outcome.value.status == "present"
    assert outcome.value.minutes_late == 0
    [record] = attendance.records
    assert record.student_id == "s1"
    assert record.session_id == "sess-1"
    assert record.class_name == "Algorithms"
    assert record.device_info == {"userAgent": "pytest"}
    assert len(notifier.confirmation_calls) == 1
    assert notifier.confirmation_calls[0]["to"] == student.email


def test_scan_grace_is_honoured():
    service = _service()
    student = make_student("s1")

    service.mark_attendance(student, _qr_text(), location=HERE, now=ISSUED + timedelta(seconds=90))
    with pytest.raises(ValidationError, match="expired"):
        _service().mark_attendance(student, _qr_text(), location=HERE, now=ISSUED + timedelta(seconds=91))


@pytest.mark.parametrize("elapsed_minutes, status", [(15, "present"), (16, "late")])
def test_late_after_threshold(elapsed_minutes, status):
    service = _service(qr_ttl=timedelta(minutes=30))
    outcome = service.mark_attendance(
        make_student("s1"), _qr_text(), location=HERE, now=ISSUED + timedelta(minutes=elapsed_minutes)
    )
    assert outcome.value.status == status
    assert outcome.value.minutes_late == elapsed_minutes


@pytest.mark.parametrize("user", [None, make_admin(), make_student("s1", is_approved=False)])
def test_only_approved_students_can_mark(user):
    with pytest.raises(AuthorizationError):
        _service().mark_attendance(user, _qr_text(), location=HERE, now=ISSUED)


@pytest.mark.parametrize(
    "text",
    [
        "",
        "hello",
        "[]",
        '{"classId":"c","sessionId":"s","timestamp":"x","location":{}}',
        '{"classId":"c","sessionId":"s","timestamp":100000000000000000000,"location":{"latitude":1,"longitude":2}}',
        '{"classId":"c","sessionId":"s","timestamp":Infinity,"location":{"latitude":1,"longitude":2}}',
    ],
)
def test_invalid_payload(text):
    with pytest.raises(ValidationError, match="Invalid QR code"):
        _service().mark_attendance(make_student("s1"), text, location=HERE, now=ISSUED)


def test_outside_geofence_is_rejected():
    attendance = FakeAttendanceRepo()
    with pytest.raises(ValidationError, match="location"):
        _service(attendance).mark_attendance(make_student("s1"), _qr_text(), location=FAR_AWAY, now=ISSUED)
    assert attendance.records == []


def test_unknown_class_and_missing_geofence():
    with pytest.raises(NotFoundError):
        _service().mark_attendance(make_student("s1"), _qr_text(class_id="zzz"), location=HERE, now=ISSUED)

    no_fence = replace(make_class(), location=None)
    with pytest.raises(ValidationError):
        _service(classes=FakeClassesRepo([no_fence])).mark_attendance(
            make_student("s1"), _qr_text(), location=HERE, now=ISSUED
        )


@pytest.mark.parametrize(
    "existing",
    [
        _existing("sess-1", NOW - timedelta(days=3)),
        _existing("sess-0", NOW - timedelta(minutes=5)),
        _existing("sess-0", NOW.replace(hour=1)),
    ],
    ids=["same-session", "within-window", "same-day"],
)
def test_duplicates_conflict(existing):
    attendance = FakeAttendanceRepo([existing])
    with pytest.raises(ConflictError):
        _service(attendance).mark_attendance(make_student("s1"), _qr_text(), location=HERE, now=ISSUED)
    assert len(attendance.records) == 1


def test_other_students_records_do_not_conflict():
    attendance = FakeAttendanceRepo([_existing("sess-1", NOW, student_id="s2")])
    outcome = _service(attendance).mark_attendance(make_student("s1"), _qr_text(), location=HERE, now=ISSUED)
    assert outcome.value.status == "present"


@pytest.mark.parametrize("notifier", [RecordingNotifier(result="Email notification failed: smtp down"), RecordingNotifier(raises=True)])
def test_failed_confirmation_becomes_warning(notifier):
    attendance = FakeAttendanceRepo()
    outcome = _service(attendance, notifier).mark_attendance(make_student("s1"), _qr_text(), location=HERE, now=ISSUED)

    assert len(attendance.records) == 1
    assert not outcome.ok
    assert outcome.warnings[0].startswith("Email notification failed")


def test_image_variant_decodes_and_marks(monkeypatch):
    monkeypatch.setattr(attendance_service_module, "decode_image", lambda stream: _qr_text())
    outcome = _service().mark_attendance_from_image(make_student("s1"), io.BytesIO(b"png"), location=HERE, now=ISSUED)
    assert outcome.value.session_id == "sess-1"


def test_image_without_qr_is_rejected(monkeypatch):
    monkeypatch.setattr(attendance_service_module, "decode_image", lambda stream: None)
    with pytest.raises(ValidationError, match="No QR code"):
        _service().mark_attendance_from_image(make_student("s1"), io.BytesIO(b"png"), location=HERE, now=ISSUED)
