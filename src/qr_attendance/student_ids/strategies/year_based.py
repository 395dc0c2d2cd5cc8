from __future__ import annotations

from ...core.enums import IdStrategy
from ...users.repository import UserRepository
from ..model import IdRequest
from ..naming import name_prefix, year_suffix
from .base import IdGenerationStrategy


class YearBasedStrategy(IdGenerationStrategy):
    """Year + 2-letter name prefix + 3-digit count of ids from that year, e.g. 26AL001."""

    strategy = IdStrategy.YEAR_BASED

    def generate(self, request: IdRequest, users: UserRepository) -> str:
        yy = year_suffix(request.admission_year)
        # the store cannot filter on substrings; count client-side
        same_year = sum(1 for u in users.list_students(request.university) if u.student_id and yy in u.student_id)
        return f"{yy}{name_prefix(request.student_name, 2)}{same_year + 1:03d}"
