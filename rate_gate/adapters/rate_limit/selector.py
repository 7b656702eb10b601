"""Strategy selection by configured name."""

from __future__ import annotations

from enum import Enum

from rate_gate.adapters.rate_limit.base import RateLimitStrategy


class StrategyName(str, Enum):
    """Known strategies. Anything that is not FIXED resolves to LOCAL."""

    FIXED = "FIXED"
    LOCAL = "LOCAL"

    @classmethod
    def parse(cls, name: str | None) -> "StrategyName":
        """Map a configured name to a strategy.

        Matching is case-insensitive and exact; unknown or empty names are
        not an error and yield LOCAL.

        Examples:
            >>> StrategyName.parse("fixed")
            <StrategyName.FIXED: 'FIXED'>
            >>> StrategyName.parse("SLIDING")
            <StrategyName.LOCAL: 'LOCAL'>
        """
        if name is not None and name.upper() == cls.FIXED.value:
            return cls.FIXED
        return cls.LOCAL


class StrategySelector:
    """Resolve a strategy name to one of the configured strategy instances."""

    def __init__(self, *, fixed: RateLimitStrategy, fallback: RateLimitStrategy) -> None:
        self._strategies: dict[StrategyName, RateLimitStrategy] = {
            StrategyName.FIXED: fixed,
            StrategyName.LOCAL: fallback,
        }

    def select(self, strategy_name: str | None) -> RateLimitStrategy:
        return self._strategies[StrategyName.parse(strategy_name)]
