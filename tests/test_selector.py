"""Unit tests for strategy selection by name."""

from unittest.mock import Mock

import pytest

from rate_gate.adapters.rate_limit.base import RateLimitStrategy
from rate_gate.adapters.rate_limit.selector import StrategyName, StrategySelector


@pytest.fixture
def strategies() -> tuple[Mock, Mock]:
    return Mock(spec=RateLimitStrategy), Mock(spec=RateLimitStrategy)


@pytest.mark.parametrize("name", ["FIXED", "fixed", "Fixed", "fIxEd"])
def test_fixed_is_case_insensitive(strategies, name: str) -> None:
    fixed, fallback = strategies
    selector = StrategySelector(fixed=fixed, fallback=fallback)

    assert selector.select(name) is fixed


@pytest.mark.parametrize("name", ["UNKNOWN", "LOCAL", "", " FIXED", "FIXED_WINDOW", "sliding", None])
def test_everything_else_falls_back(strategies, name) -> None:
    fixed, fallback = strategies
    selector = StrategySelector(fixed=fixed, fallback=fallback)

    assert selector.select(name) is fallback


def test_parse_returns_closed_variants() -> None:
    assert StrategyName.parse("fixed") is StrategyName.FIXED
    assert StrategyName.parse("whatever") is StrategyName.LOCAL
    assert {member.value for member in StrategyName} == {"FIXED", "LOCAL"}
