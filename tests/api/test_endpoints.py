from __future__ import annotations

import json

import pytest

from fakes import (
    FakeAttendanceRepo,
    FakeClassesRepo,
    FakeEmailSender,
    FakeQRCodesRepo,
    FakeSessionsRepo,
    FakeStorage,
    FakeUsersRepo,
    FakeVerifier,
    make_admin,
    make_class,
    make_student,
)
from qr_attendance.attendance.model import AttendanceRecord
from qr_attendance.common.datetime_utils import now_utc, to_epoch_ms
from qr_attendance.container import wire
from qr_attendance.core.exceptions import StoreError
from qr_attendance.main import create_app
from qr_attendance.sessions.model import QRPayload

ADMIN = {"Authorization": "Bearer token-admin-1"}
STUDENT = {"Authorization": "Bearer token-s1"}


@pytest.fixture()
def env():
    users = FakeUsersRepo(
        [
            make_admin("admin-1"),
            make_student("s1"),
            make_student("s2", name="Bo Chan", is_approved=False),
        ]
    )
    container = wire(
        users_repo=users,
        classes_repo=FakeClassesRepo([make_class()]),
        sessions_repo=FakeSessionsRepo(),
        qr_codes_repo=FakeQRCodesRepo(),
        attendance_repo=FakeAttendanceRepo(),
        token_verifier=FakeVerifier(),
        storage=FakeStorage(),
        email_sender=FakeEmailSender(),
    )
    app = create_app(container=container, settings_module="qr_attendance.config.testing")
    return app.test_client(), container


def _payload(class_id="cls-1") -> str:
    return QRPayload(
        class_id=class_id,
        session_id="session_1_abc",
        timestamp=to_epoch_ms(now_utc()),
        latitude=12.9716,
        longitude=77.5946,
    ).to_json()


def test_health(env):
    client, _ = env
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.get_json() == {"status": "ok"}


def test_missing_or_bad_token_is_401(env):
    client, _ = env
    assert client.post("/api/qr/generate", json={}).status_code == 401
    resp = client.post("/api/qr/generate", json={}, headers={"Authorization": "Bearer nope"})
    assert resp.status_code == 401
    assert resp.get_json() == {"success": False, "error": "Unauthorized"}


def test_student_on_admin_route_is_403(env):
    client, _ = env
    resp = client.post("/api/qr/generate", json={}, headers=STUDENT)
    assert resp.status_code == 403
    assert resp.get_json()["error"] == "Forbidden"


def test_unknown_user_is_403(env):
    client, _ = env
    resp = client.post("/api/qr/generate", json={}, headers={"Authorization": "Bearer token-ghost"})
    assert resp.status_code == 403


def test_generate_qr_creates_session_pair(env):
    client, container = env
    resp = client.post(
        "/api/qr/generate",
        json={"classId": "cls-1", "location": {"latitude": 12.97, "longitude": 77.59}},
        headers=ADMIN,
    )

    assert resp.status_code == 200
    body = resp.get_json()
    assert body["success"] is True
    assert body["qrCode"].startswith("data:image/png;base64,")
    session_id = body["sessionId"]
    assert container.sessions_repo.get_by_id(session_id).created_by == "admin-1"
    assert session_id in container.qr_codes_repo.qr_codes


def test_generate_qr_validates_input(env):
    client, _ = env
    resp = client.post("/api/qr/generate", json={"classId": "cls-1"}, headers=ADMIN)
    assert resp.status_code == 400
    resp = client.post(
        "/api/qr/generate",
        json={"classId": "missing", "location": {"latitude": 1, "longitude": 2}},
        headers=ADMIN,
    )
    assert resp.status_code == 404


def test_cleanup_and_stats(env):
    client, _ = env
    resp = client.post("/api/qr/cleanup", json={"cleanupType": "expired"}, headers=ADMIN)
    assert resp.status_code == 200
    assert resp.get_json()["totalDeleted"] == 0
    assert resp.get_json()["cleanupType"] == "expired"

    assert client.post("/api/qr/cleanup", json={"cleanupType": "weekly"}, headers=ADMIN).status_code == 400
    assert client.post("/api/qr/cleanup", json={"daysOld": "x"}, headers=ADMIN).status_code == 400

    stats = client.get("/api/qr/cleanup", headers=ADMIN).get_json()["stats"]
    assert stats["qrCodes"]["total"] == 0


def test_mark_attendance_then_duplicate_is_409(env):
    client, container = env
    body = {"qrData": _payload(), "location": {"latitude": 12.9716, "longitude": 77.5946}}

    resp = client.post("/api/attendance/mark", json=body, headers=STUDENT)
    assert resp.status_code == 201
    attendance = resp.get_json()["attendance"]
    assert attendance["status"] == "present"
    assert attendance["className"] == "Algorithms"
    assert len(container.attendance_repo.records) == 1

    resp = client.post("/api/attendance/mark", json=body, headers=STUDENT)
    assert resp.status_code == 409
    assert len(container.attendance_repo.records) == 1


def test_mark_attendance_rejections(env):
    client, _ = env
    far = {"qrData": _payload(), "location": {"latitude": 13.5, "longitude": 77.5946}}
    assert client.post("/api/attendance/mark", json=far, headers=STUDENT).status_code == 400

    garbage = {"qrData": "hello", "location": {"latitude": 12.9716, "longitude": 77.5946}}
    assert client.post("/api/attendance/mark", json=garbage, headers=STUDENT).status_code == 400

    unapproved = {"Authorization": "Bearer token-s2"}
    body = {"qrData": _payload(), "location": {"latitude": 12.9716, "longitude": 77.5946}}
    assert client.post("/api/attendance/mark", json=body, headers=unapproved).status_code == 403

    assert client.post("/api/attendance/mark", json=body, headers=ADMIN).status_code == 403


def test_mark_from_image_requires_file(env):
    client, _ = env
    resp = client.post("/api/attendance/mark/image", data={}, headers=STUDENT, content_type="multipart/form-data")
    assert resp.status_code == 400


def test_export(env):
    client, container = env
    client.post(
        "/api/attendance/mark",
        json={"qrData": _payload(), "location": {"latitude": 12.9716, "longitude": 77.5946}},
        headers=STUDENT,
    )

    resp = client.post("/api/attendance/export", json={"classId": "cls-1"}, headers=ADMIN)
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["recordCount"] == 1
    assert body["filename"].startswith("attendance_CS101_")
    filename, data, content_type = container.storage.uploads[0]
    assert filename == body["filename"]
    assert content_type.startswith("text/csv")
    assert b"Ana Lee" in data

    bad = client.post("/api/attendance/export", json={"classId": "cls-1", "status": "maybe"}, headers=ADMIN)
    assert bad.status_code == 400


def test_approve_student(env):
    client, container = env
    resp = client.post("/api/auth/approve-student", json={"studentId": "s2", "approved": True}, headers=ADMIN)

    assert resp.status_code == 200
    body = resp.get_json()
    assert body["isApproved"] is True
    assert body["emailSent"] is True
    assert container.users_repo.get_by_id("s2").approved_by == "admin-1"

    resp = client.post("/api/auth/approve-student", json={"studentId": "s2", "approved": "yes"}, headers=ADMIN)
    assert resp.status_code == 400
    resp = client.post("/api/auth/approve-student", json={"studentId": "nobody", "approved": True}, headers=ADMIN)
    assert resp.status_code == 404


def test_profile_complete(env):
    client, container = env
    resp = client.post("/api/profile/complete", json={"studentId": "ANL001", "rollNumber": "R-1"}, headers=STUDENT)

    assert resp.status_code == 200
    assert resp.get_json()["user"]["profileComplete"] is True
    assert container.users_repo.get_by_id("s1").student_id == "ANL001"

    other = {"Authorization": "Bearer token-s2"}
    resp = client.post("/api/profile/complete", json={"studentId": "ANL001"}, headers=other)
    assert resp.status_code == 409


def test_id_options_and_assignment(env):
    client, container = env
    resp = client.post(
        "/api/students/id-options",
        json={"university": "X", "studentName": "Ana Lee", "admissionYear": 2024},
        headers=ADMIN,
    )
    assert resp.status_code == 200
    options = resp.get_json()["options"]
    assert len(options) >= 3

    resp = client.post("/api/students/s1/student-id", json={"strategy": "name-based"}, headers=ADMIN)
    assert resp.status_code == 200
    assert resp.get_json()["stored"] is True
    assert container.users_repo.get_by_id("s1").student_id == resp.get_json()["result"]["studentId"]

    assert client.post("/api/students/nobody/student-id", json={}, headers=ADMIN).status_code == 404


def test_bulk_generate(env):
    client, container = env
    resp = client.post("/api/students/bulk-generate-ids", json={"university": "X"}, headers=ADMIN)

    assert resp.status_code == 200
    body = resp.get_json()
    assert body["total"] == 2
    assert body["assigned"] == 2
    ids = {container.users_repo.get_by_id(uid).student_id for uid in ("s1", "s2")}
    assert len(ids) == 2 and None not in ids


def test_non_object_body_is_400(env):
    client, _ = env
    resp = client.post(
        "/api/qr/generate", data=json.dumps([1, 2]), content_type="application/json", headers=ADMIN
    )
    assert resp.status_code == 400


def test_export_fails_when_a_profile_lookup_fails():
    class BrokenProfileRepo(FakeUsersRepo):
        fail_for: set = set()

        def get_by_id(self, user_id):
            if user_id in self.fail_for:
                raise StoreError("profile read failed")
            return super().get_by_id(user_id)

    users = BrokenProfileRepo([make_admin("admin-1"), make_student("s1")])
    attendance = FakeAttendanceRepo(
        [AttendanceRecord(record_id="a1", class_id="cls-1", student_id="s1", session_id="x", timestamp=now_utc(), status="present")]
    )
    storage = FakeStorage()
    container = wire(
        users_repo=users,
        classes_repo=FakeClassesRepo([make_class()]),
        sessions_repo=FakeSessionsRepo(),
        qr_codes_repo=FakeQRCodesRepo(),
        attendance_repo=attendance,
        token_verifier=FakeVerifier(),
        storage=storage,
        email_sender=FakeEmailSender(),
    )
    client = create_app(container=container, settings_module="qr_attendance.config.testing").test_client()
    users.fail_for = {"s1"}

    resp = client.post("/api/attendance/export", json={"classId": "cls-1"}, headers=ADMIN)

    assert resp.status_code == 500
    assert resp.get_json()["error"] == "Internal server error"
    assert storage.uploads == []
