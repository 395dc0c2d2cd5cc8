from __future__ import annotations

from ...core.enums import IdStrategy
from ...users.repository import UserRepository
from ..model import IdRequest
from ..naming import name_prefix, year_suffix
from .base import IdGenerationStrategy


class HybridStrategy(IdGenerationStrategy):
    """Year + 2-letter name prefix + 2-digit sequence, e.g. 26AL07."""

    strategy = IdStrategy.HYBRID

    def generate(self, request: IdRequest, users: UserRepository) -> str:
        seq = users.count_students(request.university) + 1
        return f"{year_suffix(request.admission_year)}{name_prefix(request.student_name, 2)}{seq:02d}"
