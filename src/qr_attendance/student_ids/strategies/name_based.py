from __future__ import annotations

from ...core.enums import IdStrategy
from ...users.repository import UserRepository
from ..model import IdRequest
from ..naming import name_prefix
from .base import IdGenerationStrategy


class NameBasedStrategy(IdGenerationStrategy):
    """3-letter name prefix + 3-digit sequence, e.g. ANL001."""

    strategy = IdStrategy.NAME_BASED

    def generate(self, request: IdRequest, users: UserRepository) -> str:
        seq = users.count_students(request.university) + 1
        return f"{name_prefix(request.student_name, 3)}{seq:03d}"
