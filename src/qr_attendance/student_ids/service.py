from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from ..common.datetime_utils import now_utc
from ..common.validators import require_non_empty
from ..core.enums import IdStrategy
from ..core.exceptions import NotFoundError, ValidationError
from ..core.result import Outcome
from ..users.repository import UserRepository
from .generator import StudentIdGenerator
from .model import GenerationResult, IdRequest

logger = logging.getLogger(__name__)


class StudentIdService:
    """Use case: assign generated ids to student records."""

    def __init__(self, users: UserRepository, generator: StudentIdGenerator):
        self._users = users
        self._generator = generator

    def preview(self, request: IdRequest) -> list[GenerationResult]:
        return self._generator.generate_options(request)

    def assign(
        self,
        user_id: str,
        *,
        strategy: IdStrategy,
        admission_year: Optional[int] = None,
        roll_number: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Outcome[GenerationResult]:
        now = now or now_utc()
        user = self._users.get_by_id(user_id)
        if not user:
            raise NotFoundError("Student not found")
        if not user.is_student:
            raise ValidationError("The specified user is not a student")

        result = self._generator.generate(
            IdRequest(
                strategy=strategy,
                university=require_non_empty(user.university, "University"),
                student_name=require_non_empty(user.name, "Student name"),
                admission_year=admission_year,
                roll_number=roll_number or user.roll_number,
            )
        )
        if not result.is_unique:
            return Outcome(result, [f"Generated id {result.student_id} is not verified unique and was not stored"])

        self._users.set_student_id(user_id, student_id=result.student_id, updated_at=now)
        logger.info("Assigned student id %s to %s (%s)", result.student_id, user_id, result.strategy)
        return Outcome(result)

    def bulk_assign(
        self,
        university: str,
        *,
        admission_year: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> Outcome[dict]:
        """Give a hybrid id to every student of ``university`` that has none.

        Ids are written one by one so each uniqueness check sees the previous
        assignments.
        """

        now = now or now_utc()
        university = require_non_empty(university, "University")
        pending = [u for u in self._users.list_students(university) if not u.student_id]

        assigned = 0
        warnings: list[str] = []
        for student in pending:
            if not student.name:
                warnings.append(f"{student.user_id}: name missing, skipped")
                continue
            try:
                result = self._generator.generate(
                    IdRequest(
                        strategy=IdStrategy.HYBRID,
                        university=university,
                        student_name=student.name,
                        admission_year=admission_year,
                    )
                )
                if not result.is_unique:
                    warnings.append(f"{student.user_id}: no unique id found")
                    continue
                self._users.set_student_id(student.user_id, student_id=result.student_id, updated_at=now)
                assigned += 1
            except Exception as e:
                logger.warning("Failed to generate id for %s", student.user_id, exc_info=True)
                warnings.append(f"{student.user_id}: {e}")

        logger.info("Bulk id generation for %s: %d/%d assigned", university, assigned, len(pending))
        return Outcome({"total": len(pending), "assigned": assigned}, warnings)
