from __future__ import annotations

from abc import ABC, abstractmethod

from ...core.enums import IdStrategy
from ...users.repository import UserRepository
from ..model import IdRequest


class IdGenerationStrategy(ABC):
    """Strategy Pattern: encapsulate how a candidate student id is formatted.

    Strategies may read counts from the store; store errors propagate so the
    generator can move on to its next attempt.
    """

    strategy: IdStrategy

    @abstractmethod
    def generate(self, request: IdRequest, users: UserRepository) -> str:
        raise NotImplementedError
