from __future__ import annotations

import logging
import random
from dataclasses import replace
from datetime import datetime
from typing import Callable, Optional

from ..common.datetime_utils import now_utc, to_epoch_ms
from ..common.validators import require_non_empty
from ..core.constants import FALLBACK_ID_PREFIX, MAX_ID_ATTEMPTS
from ..core.exceptions import ValidationError
from ..users.repository import UserRepository
from .factory import PRIMARY_STRATEGIES, IdStrategyFactory
from .model import GenerationResult, IdRequest

logger = logging.getLogger(__name__)


class StudentIdGenerator:
    """Generate student ids that are unique within a university.

    Each attempt formats a candidate with the requested strategy and checks it
    against the store. A taken candidate gets its last two characters replaced
    by a random 2-digit suffix and is checked once more. When every attempt
    fails, a timestamp-derived id is returned with ``is_unique=False``; callers
    must treat that case explicitly.
    """

    def __init__(
        self,
        users: UserRepository,
        *,
        factory: Optional[IdStrategyFactory] = None,
        max_attempts: int = MAX_ID_ATTEMPTS,
        rng: Optional[random.Random] = None,
        clock: Callable[[], datetime] = now_utc,
    ):
        self._users = users
        self._factory = factory or IdStrategyFactory()
        self._max_attempts = int(max_attempts)
        self._rng = rng or random.Random()
        self._clock = clock

    def is_unique(self, student_id: str, university: str) -> bool:
        try:
            return self._users.find_student_by_student_id(student_id, university) is None
        except Exception:
            # a failed read must never let a duplicate through
            logger.warning("Uniqueness check failed for %s at %s", student_id, university, exc_info=True)
            return False

    def _random_suffix(self) -> str:
        return f"{self._rng.randint(0, 98):02d}"

    def _normalize(self, request: IdRequest) -> IdRequest:
        university = require_non_empty(request.university, "University")
        name = require_non_empty(request.student_name, "Student name")
        year = request.admission_year or self._clock().year
        return replace(request, university=university, student_name=name, admission_year=int(year))

    def generate(self, request: IdRequest) -> GenerationResult:
        request = self._normalize(request)
        strategy = self._factory.for_strategy(request.strategy)
        label = strategy.strategy.value

        attempts = 0
        while attempts < self._max_attempts:
            attempts += 1
            try:
                candidate = strategy.generate(request, self._users)
            except ValidationError:
                raise
            except Exception:
                logger.warning("Strategy %s failed on attempt %d", label, attempts, exc_info=True)
                continue

            if self.is_unique(candidate, request.university):
                return GenerationResult(student_id=candidate, is_unique=True, strategy=label, attempts=attempts)

            if attempts < self._max_attempts:
                modified = candidate[:-2] + self._random_suffix()
                if self.is_unique(modified, request.university):
                    return GenerationResult(
                        student_id=modified,
                        is_unique=True,
                        strategy=f"{label}-modified",
                        attempts=attempts,
                    )

        fallback = f"{FALLBACK_ID_PREFIX}{str(to_epoch_ms(self._clock()))[-6:]}"
        logger.error(
            "Could not generate a unique %s id for %r at %s after %d attempts; falling back to %s",
            label,
            request.student_name,
            request.university,
            attempts,
            fallback,
        )
        return GenerationResult(student_id=fallback, is_unique=False, strategy="fallback", attempts=attempts)

    def generate_options(self, request: IdRequest) -> list[GenerationResult]:
        """Run every primary strategy once so the caller can compare results."""

        request = self._normalize(request)
        results: list[GenerationResult] = []
        for strategy in PRIMARY_STRATEGIES:
            try:
                results.append(self.generate(replace(request, strategy=strategy)))
            except Exception:
                logger.warning("Error generating %s id", strategy.value, exc_info=True)
        return results
