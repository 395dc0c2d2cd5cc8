from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import IdStrategy


@dataclass(frozen=True)
class IdRequest:
    strategy: IdStrategy
    university: str
    student_name: str
    admission_year: Optional[int] = None
    roll_number: Optional[str] = None


@dataclass(frozen=True)
class GenerationResult:
    """``is_unique`` is False only for the fallback id, which is never checked."""

    student_id: str
    is_unique: bool
    strategy: str
    attempts: int

    def to_dict(self) -> dict:
        return {
            "studentId": self.student_id,
            "isUnique": self.is_unique,
            "strategy": self.strategy,
            "attempts": self.attempts,
        }
