from __future__ import annotations

from dataclasses import dataclass, field

from ..core.enums import IdStrategy
from ..core.exceptions import ValidationError
from .strategies.base import IdGenerationStrategy
from .strategies.hybrid import HybridStrategy
from .strategies.name_based import NameBasedStrategy
from .strategies.roll_based import RollBasedStrategy
from .strategies.sequential import SequentialStrategy
from .strategies.year_based import YearBasedStrategy

PRIMARY_STRATEGIES = (
    IdStrategy.NAME_BASED,
    IdStrategy.YEAR_BASED,
    IdStrategy.SEQUENTIAL,
    IdStrategy.HYBRID,
)


@dataclass
class IdStrategyFactory:
    """Factory Pattern: map an ``IdStrategy`` to its implementation."""

    _strategies: dict[IdStrategy, IdGenerationStrategy] = field(
        default_factory=lambda: {
            s.strategy: s
            for s in (
                NameBasedStrategy(),
                YearBasedStrategy(),
                SequentialStrategy(),
                HybridStrategy(),
                RollBasedStrategy(),
            )
        }
    )

    def for_strategy(self, strategy: IdStrategy) -> IdGenerationStrategy:
        return self._strategies.get(strategy, self._strategies[IdStrategy.NAME_BASED])

    @staticmethod
    def parse(value: str | None) -> IdStrategy:
        if not value:
            return IdStrategy.NAME_BASED
        try:
            return IdStrategy(str(value).strip().lower())
        except ValueError:
            allowed = ", ".join(s.value for s in IdStrategy)
            raise ValidationError(f"Unknown strategy '{value}' (expected one of: {allowed})")
