"""Tier evaluator.

Walks the tiers in ascending `order`, each tier taking its amount from a
shared pool of remaining proceeds:

1. Return of capital: min(remaining, threshold or invested capital)
2. Preferred return: min(remaining, invested * hurdle_rate / 100)
3. GP catch-up: enough for the GP to hold its target share of profit
4. Carry: everything that is left, split GP/LP
5. Custom: min(remaining, threshold), or everything when uncapped

Within each tier lp_share = amount - gp_share, so every tier conserves
exactly. Once the pool is empty later tiers still appear, with zero amounts.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Sequence, Tuple

from ..errors import WaterfallValidationError
from ..schemas.base import ZERO, points_to_fraction
from ..schemas.results import TierResult
from ..schemas.tiers import (
    CarryTier,
    CatchUpTier,
    CustomTier,
    PreferredReturnTier,
    ReturnOfCapitalTier,
    WaterfallTier,
)
from .constants import DEFAULT_CATCH_UP_TARGET

logger = logging.getLogger(__name__)


# =============================================================================
# Evaluation Output
# =============================================================================

@dataclass(frozen=True)
class TierEvaluation:
    """Per-tier results plus whatever is left in the pool."""

    tier_results: Dict[str, TierResult] = field(default_factory=dict)
    remaining: Decimal = ZERO

    @property
    def total_distributed(self) -> Decimal:
        return sum((tr.total for tr in self.tier_results.values()), ZERO)


@dataclass
class _ProfitTracker:
    """Running totals of proceeds paid beyond return of capital."""

    total: Decimal = ZERO
    gp: Decimal = ZERO


# =============================================================================
# Evaluator
# =============================================================================

def evaluate_tiers(
    tiers: Sequence[WaterfallTier],
    exit_value: Decimal,
    total_invested: Decimal,
) -> TierEvaluation:
    """Distribute exit proceeds through the tiers.

    Args:
        tiers: Tiers in any list order; processed by ascending `order`
        exit_value: Proceeds to distribute
        total_invested: Invested capital (ROC fallback and hurdle basis)

    Returns:
        TierEvaluation keyed by tier id in processing order

    Raises:
        WaterfallValidationError: On negative amounts or duplicate tier order

    Example:
        Invested $10M, exit $15M, ROC / 8% pref / 20% catch-up / 20% carry
        → ROC 10M LP, pref 800K LP, catch-up 200K GP, carry 3.2M LP + 800K GP
    """
    exit_value = Decimal(exit_value)
    total_invested = Decimal(total_invested)
    if exit_value < 0:
        raise WaterfallValidationError(f"exit_value must be non-negative, got {exit_value}")
    if total_invested < 0:
        raise WaterfallValidationError(f"total_invested must be non-negative, got {total_invested}")

    ordered = sorted(tiers, key=lambda tier: tier.order)
    collisions = sorted(order for order, count in Counter(t.order for t in ordered).items() if count > 1)
    if collisions:
        raise WaterfallValidationError(f"Tier order values must be unique; duplicated: {collisions}")

    remaining = exit_value
    profit = _ProfitTracker()
    results: Dict[str, TierResult] = {}

    for index, tier in enumerate(ordered):
        amount, gp_share = _take(tier, remaining, total_invested, profit, ordered, index)
        lp_share = amount - gp_share
        remaining -= amount

        if not isinstance(tier, ReturnOfCapitalTier):
            profit.total += amount
            profit.gp += gp_share

        results[tier.id] = TierResult(
            tier_id=tier.id,
            tier_name=tier.name,
            tier_type=tier.type,
            order=tier.order,
            gp_share=gp_share,
            lp_share=lp_share,
            cumulative_remaining_after=remaining,
        )
        logger.debug(
            "tier %s (%s): amount=%s gp=%s lp=%s remaining=%s",
            tier.id, tier.type, amount, gp_share, lp_share, remaining,
        )

    return TierEvaluation(tier_results=results, remaining=remaining)


def _take(
    tier: WaterfallTier,
    remaining: Decimal,
    total_invested: Decimal,
    profit: _ProfitTracker,
    ordered: Sequence[WaterfallTier],
    index: int,
) -> Tuple[Decimal, Decimal]:
    """Return (amount, gp_share) this tier takes from the pool."""
    if remaining <= 0:
        return ZERO, ZERO

    if isinstance(tier, ReturnOfCapitalTier):
        capital = tier.threshold if tier.threshold is not None else total_invested
        amount = min(remaining, capital)

    elif isinstance(tier, PreferredReturnTier):
        hurdle = total_invested * points_to_fraction(tier.hurdle_rate)
        amount = min(remaining, hurdle)

    elif isinstance(tier, CatchUpTier):
        target = points_to_fraction(catch_up_target(tier, ordered, index))
        amount = _catch_up_amount(remaining, target, tier.gp_fraction, profit)

    elif isinstance(tier, CarryTier):
        amount = remaining

    elif isinstance(tier, CustomTier):
        amount = remaining if tier.threshold is None else min(remaining, tier.threshold)

    else:
        raise WaterfallValidationError(f"Unsupported tier type: {type(tier).__name__}")

    return amount, amount * tier.gp_fraction


def _catch_up_amount(
    remaining: Decimal,
    target: Decimal,
    gp_fraction: Decimal,
    profit: _ProfitTracker,
) -> Decimal:
    """Amount needed for the GP to hold `target` of profit distributed so far.

    Solves (G + g*d) / (P + d) = t for d, where P/G are prior profit and the
    GP part of it, and g is the tier's GP fraction:

        d = (t*P - G) / (g - t)

    For a 100% catch-up with no prior GP profit this is t*P / (1 - t).
    If g <= t the target is never reached and the tier takes everything.
    """
    shortfall = target * profit.total - profit.gp
    if shortfall <= 0:
        return ZERO
    if gp_fraction <= target:
        return remaining
    return min(remaining, shortfall / (gp_fraction - target))


def catch_up_target(tier: CatchUpTier, ordered: Sequence[WaterfallTier], index: int) -> Decimal:
    """Catch-up target in points.

    Resolution order: the tier's own target, the next carry tier's GP
    percentage, any carry tier's GP percentage, then 20.
    """
    if tier.catch_up_target_percentage is not None:
        return tier.catch_up_target_percentage

    carry_tiers = [t for t in ordered[index + 1:] if isinstance(t, CarryTier)]
    if not carry_tiers:
        carry_tiers = [t for t in ordered if isinstance(t, CarryTier)]
    if carry_tiers:
        return carry_tiers[0].resolved_gp_percentage

    return DEFAULT_CATCH_UP_TARGET
