from __future__ import annotations

import pytest

from longscript.config import CreditPolicy
from longscript.models import ModelTier
from longscript.planning import CreditCalculator


def test_scenario_a_credits():
    cost = CreditCalculator().estimate(300, ModelTier.BALANCED)
    assert cost.minutes == 5
    assert cost.credits == 2
    assert not cost.chunked


def test_chunk_overhead_applies_past_thirty_minutes():
    calculator = CreditCalculator()
    assert calculator.estimate(1800, ModelTier.FAST).credits == 10
    cost = calculator.estimate(1860, ModelTier.FAST)
    assert cost.chunked
    # 31 * 0.33 * 1.0 * 1.2 = 12.276
    assert cost.credits == 12


def test_scenario_b_premium_credits():
    # 35 * 0.33 * 3.5 * 1.2 = 48.51
    assert CreditCalculator().estimate(2100, ModelTier.PREMIUM).credits == 49


def test_minimum_one_credit():
    assert CreditCalculator().estimate(60, ModelTier.FAST).credits == 1


@pytest.mark.parametrize("tier", list(ModelTier))
def test_credits_monotonic_in_duration(tier):
    calculator = CreditCalculator()
    costs = [calculator.estimate(seconds, tier).credits for seconds in range(60, 7200, 30)]
    assert costs == sorted(costs)


def test_credits_are_deterministic():
    calculator = CreditCalculator()
    assert calculator.estimate(2400, ModelTier.BALANCED) == calculator.estimate(2400, ModelTier.BALANCED)


def test_credit_policy_requires_every_tier():
    with pytest.raises(ValueError):
        CreditPolicy(model_multipliers={ModelTier.FAST: 1.0})
