from __future__ import annotations

from ...core.enums import IdStrategy
from ...users.repository import UserRepository
from ..model import IdRequest
from ..naming import university_prefix
from .base import IdGenerationStrategy


class SequentialStrategy(IdGenerationStrategy):
    """University prefix + 4-digit sequence, e.g. GLA0042."""

    strategy = IdStrategy.SEQUENTIAL

    def generate(self, request: IdRequest, users: UserRepository) -> str:
        seq = users.count_students(request.university) + 1
        return f"{university_prefix(request.university)}{seq:04d}"
