from __future__ import annotations

from ...core.enums import IdStrategy
from ...core.exceptions import ValidationError
from ...users.repository import UserRepository
from ..model import IdRequest
from ..naming import name_prefix, roll_digits
from .base import IdGenerationStrategy


class RollBasedStrategy(IdGenerationStrategy):
    """2-letter name prefix + last 4 roll number digits, e.g. AL0042."""

    strategy = IdStrategy.ROLL_BASED

    def generate(self, request: IdRequest, users: UserRepository) -> str:
        roll = (request.roll_number or "").strip()
        if not roll:
            raise ValidationError("Roll number required for roll-based ID generation")
        if not any(ch.isdigit() for ch in roll):
            raise ValidationError("Roll number must contain digits for roll-based ID generation")
        return f"{name_prefix(request.student_name, 2)}{roll_digits(roll)}"
