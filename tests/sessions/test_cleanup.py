from __future__ import annotations

from datetime import timedelta

import pytest

from fakes import NOW, FakeQRCodesRepo, FakeSessionsRepo
from qr_attendance.core.enums import CleanupType
from qr_attendance.core.exceptions import ValidationError
from qr_attendance.sessions.cleanup import CleanupService
from qr_attendance.sessions.model import QRCodeRecord, Session


def _session(sid, *, ends_in, active=True):
    start = NOW + ends_in - timedelta(hours=1)
    return Session(
        session_id=sid,
        class_id="cls-1",
        date=start.date().isoformat(),
        start_time=start,
        end_time=NOW + ends_in,
        is_active=active,
    )


def _qr(qid, *, expires_in, created_ago=timedelta(minutes=1)):
    return QRCodeRecord(
        qr_id=qid,
        class_id="cls-1",
        session_id=qid,
        data="{}",
        location={"latitude": 0.0, "longitude": 0.0},
        expires_at=NOW + expires_in,
        created_at=NOW - created_ago,
    )


@pytest.fixture()
def repos():
    sessions, qr_codes = FakeSessionsRepo(), FakeQRCodesRepo()
    for s in (
        _session("s-expired", ends_in=-timedelta(minutes=5)),
        _session("s-boundary", ends_in=timedelta(0)),
        _session("s-live", ends_in=timedelta(minutes=30)),
        _session("s-inactive", ends_in=-timedelta(hours=2), active=False),
    ):
        sessions.create(s)
    for q in (
        _qr("q-expired", expires_in=-timedelta(seconds=1)),
        _qr("q-boundary", expires_in=timedelta(0)),
        _qr("q-live", expires_in=timedelta(seconds=30)),
        _qr("q-old-live", expires_in=timedelta(days=30), created_ago=timedelta(days=8)),
    ):
        qr_codes.create(q)
    return sessions, qr_codes


def test_expired_sweep_removes_expired_records_only(repos):
    sessions, qr_codes = repos
    report = CleanupService(sessions, qr_codes).sweep(CleanupType.EXPIRED, now=NOW)

    assert report.expired_qr_codes.deleted_count == 2
    assert report.expired_sessions.deleted_count == 2
    assert report.old_qr_codes.deleted_count == 0
    assert set(qr_codes.qr_codes) == {"q-live", "q-old-live"}
    assert set(sessions.sessions) == {"s-live", "s-inactive"}


def test_old_sweep_ignores_expiry(repos):
    sessions, qr_codes = repos
    report = CleanupService(sessions, qr_codes).sweep(CleanupType.OLD, days_old=7, now=NOW)

    assert report.old_qr_codes.deleted_count == 1
    assert "q-old-live" not in qr_codes.qr_codes
    assert report.total_deleted == 1


def test_sweep_is_idempotent(repos):
    service = CleanupService(*repos)

    first = service.sweep(CleanupType.ALL, now=NOW)
    second = service.sweep(CleanupType.ALL, now=NOW)

    assert first.total_deleted == 5
    assert second.total_deleted == 0
    assert second.to_dict() == {
        "expiredQRCodes": {"deletedCount": 0, "failedIds": []},
        "expiredSessions": {"deletedCount": 0, "failedIds": []},
        "oldQRCodes": {"deletedCount": 0, "failedIds": []},
    }


def test_single_delete_failure_does_not_stop_sweep(repos):
    sessions, qr_codes = repos
    qr_codes.fail_delete_ids.add("q-expired")

    report = CleanupService(sessions, qr_codes).sweep(CleanupType.EXPIRED, now=NOW)

    assert report.expired_qr_codes.deleted_count == 1
    assert report.expired_qr_codes.failed_ids == ["q-expired"]
    assert report.expired_sessions.deleted_count == 2
    assert report.warnings == ["Failed to delete q-expired"]


def test_negative_days_old_is_rejected(repos):
    with pytest.raises(ValidationError):
        CleanupService(*repos).sweep(CleanupType.OLD, days_old=-1, now=NOW)


def test_stats_is_read_only(repos):
    sessions, qr_codes = repos
    stats = CleanupService(sessions, qr_codes).stats(now=NOW)

    assert stats["qrCodes"] == {"total": 4, "active": 2, "expired": 2}
    assert stats["sessions"] == {"total": 4, "active": 1, "expired": 2}
    assert len(qr_codes.qr_codes) == 4
    assert len(sessions.sessions) == 4
