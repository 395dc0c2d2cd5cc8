from __future__ import annotations

import random

import pytest

from fakes import NOW, FakeUsersRepo, make_admin, make_student
from qr_attendance.core.enums import IdStrategy
from qr_attendance.core.exceptions import NotFoundError, ValidationError
from qr_attendance.student_ids.generator import StudentIdGenerator
from qr_attendance.student_ids.service import StudentIdService


def _service(users, **kwargs):
    gen = StudentIdGenerator(users, rng=random.Random(1), clock=lambda: NOW, **kwargs)
    return StudentIdService(users, gen)


def test_assign_stores_unique_id():
    users = FakeUsersRepo([make_student("s1", name="Ana Lee")])
    outcome = _service(users).assign("s1", strategy=IdStrategy.NAME_BASED, now=NOW)

    assert outcome.ok
    assert outcome.value.student_id == "ANL002"
    assert users.get_by_id("s1").student_id == "ANL002"
    assert users.get_by_id("s1").updated_at == NOW


def test_assign_uses_stored_roll_number():
    users = FakeUsersRepo([make_student("s1", roll_number="CS-0042")])
    outcome = _service(users).assign("s1", strategy=IdStrategy.ROLL_BASED, now=NOW)

    assert outcome.value.student_id == "AL0042"


def test_assign_rejects_unknown_and_non_students():
    users = FakeUsersRepo([make_admin("a1")])
    service = _service(users)

    with pytest.raises(NotFoundError):
        service.assign("missing", strategy=IdStrategy.NAME_BASED)
    with pytest.raises(ValidationError):
        service.assign("a1", strategy=IdStrategy.NAME_BASED)


def test_assign_does_not_store_fallback_id():
    class AlwaysTaken(FakeUsersRepo):
        def find_student_by_student_id(self, student_id, university):
            return make_student("other", student_id=student_id)

    users = AlwaysTaken([make_student("s1")])
    outcome = _service(users, max_attempts=3).assign("s1", strategy=IdStrategy.NAME_BASED, now=NOW)

    assert not outcome.ok
    assert outcome.value.strategy == "fallback"
    assert users.get_by_id("s1").student_id is None
    assert users.writes == []


def test_bulk_assign_gives_every_student_without_id_a_hybrid_id():
    users = FakeUsersRepo(
        [
            make_student("s1", name="Ana Lee"),
            make_student("s2", name="Bo Kim"),
            make_student("s3", name="Cy Day", student_id="KEEP01"),
            make_student("s4", name="Di Eve", university="Other"),
        ]
    )
    outcome = _service(users).bulk_assign("X", admission_year=2026, now=NOW)

    assert outcome.value == {"total": 2, "assigned": 2}
    assert outcome.ok
    ids = {users.get_by_id("s1").student_id, users.get_by_id("s2").student_id}
    assert all(i.startswith("26") and len(i) == 6 for i in ids)
    assert len(ids) == 2
    assert users.get_by_id("s3").student_id == "KEEP01"
    assert users.get_by_id("s4").student_id is None


def test_bulk_assign_reports_students_without_name():
    users = FakeUsersRepo([make_student("s1", name=None)])
    outcome = _service(users).bulk_assign("X", now=NOW)

    assert outcome.value == {"total": 1, "assigned": 0}
    assert outcome.warnings == ["s1: name missing, skipped"]


def test_bulk_assign_requires_university():
    with pytest.raises(ValidationError):
        _service(FakeUsersRepo()).bulk_assign("")
