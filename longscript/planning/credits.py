"""Credit calculator.

Cost depends only on the requested duration and model tier, so it can be checked
against a balance before any generation call and is never re-derived from usage.
"""

import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from ..config.models import CreditPolicy, GenerationPolicy
from ..models import CreditCost, ModelTier


class CreditCalculator:
    """Derive the credit cost of a request."""

    def __init__(
        self,
        policy: Optional[CreditPolicy] = None,
        generation: Optional[GenerationPolicy] = None,
    ) -> None:
        self.policy = policy or CreditPolicy()
        self.generation = generation or GenerationPolicy()

    def estimate(self, duration_seconds: Optional[int], tier: ModelTier) -> CreditCost:
        """``max(1, round(minutes * base_rate * multiplier * overhead))``, rounding half up."""
        if not duration_seconds:
            duration_seconds = self.generation.default_duration_seconds
        minutes = max(1, math.ceil(duration_seconds / 60))
        chunked = minutes > self.generation.chunking_threshold_minutes

        amount = (
            Decimal(minutes)
            * Decimal(str(self.policy.base_rate))
            * Decimal(str(self.policy.model_multipliers[tier]))
        )
        if chunked:
            amount *= Decimal(str(self.policy.chunk_overhead))

        credits = int(amount.quantize(Decimal(1), rounding=ROUND_HALF_UP))
        return CreditCost(credits=max(1, credits), minutes=minutes, tier=tier, chunked=chunked)
