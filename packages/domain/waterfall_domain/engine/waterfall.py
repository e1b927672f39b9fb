"""Waterfall distribution pipeline.

Scenario → Model Policy → Tier Evaluator (per cohort) → Investor Allocation
→ WaterfallDistributionResult.

The pipeline reads only its inputs and returns a fresh result; a repeated
call with the same scenario returns an identical result.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Sequence, Tuple, Union

from ..errors import WaterfallValidationError
from ..schemas.base import HUNDRED, ZERO
from ..schemas.investors import InvestorClass
from ..schemas.results import (
    AllocationWarning,
    InvestorClassResult,
    TierAllocation,
    TierResult,
    WaterfallDistributionResult,
)
from ..schemas.scenario import WaterfallScenario
from ..schemas.tiers import ReturnOfCapitalTier, WaterfallTier
from .allocation import allocate
from .constants import EPSILON
from .model_policy import EvaluationPlan, ModelPolicy, resolve_policy, scale_thresholds
from .provisions import build_clawback_summary, build_lookback_summary
from .tier_evaluator import evaluate_tiers

logger = logging.getLogger(__name__)

ScenarioInput = Union[WaterfallScenario, Mapping[str, Any]]


# =============================================================================
# Accumulator
# =============================================================================

@dataclass
class _Distribution:
    """Tier and class amounts accumulated over cohorts and blended plans."""

    tier_gp: Dict[str, Decimal] = field(default_factory=dict)
    tier_lp: Dict[str, Decimal] = field(default_factory=dict)
    tier_remaining: Dict[str, Decimal] = field(default_factory=dict)
    class_amounts: Dict[str, Dict[str, Decimal]] = field(default_factory=dict)
    class_invested: Dict[str, Decimal] = field(default_factory=dict)
    warnings: Dict[Tuple[str, str], AllocationWarning] = field(default_factory=dict)
    unallocated: Decimal = ZERO
    remaining: Decimal = ZERO

    def credit_class(self, class_id: str, tier_id: str, amount: Decimal) -> None:
        by_tier = self.class_amounts.setdefault(class_id, {})
        by_tier[tier_id] = by_tier.get(tier_id, ZERO) + amount

    def add_warning(self, warning: AllocationWarning, weight: Decimal = Decimal("1")) -> None:
        key = (warning.tier_id, warning.side)
        amount = warning.amount * weight
        existing = self.warnings.get(key)
        if existing is not None:
            amount += existing.amount
        self.warnings[key] = warning.model_copy(update={"amount": amount})

    def absorb(self, other: "_Distribution", weight: Decimal) -> None:
        """Add `other` scaled by `weight` into this distribution."""
        for target, source in (
            (self.tier_gp, other.tier_gp),
            (self.tier_lp, other.tier_lp),
            (self.tier_remaining, other.tier_remaining),
            (self.class_invested, other.class_invested),
        ):
            for key, value in source.items():
                target[key] = target.get(key, ZERO) + value * weight

        for class_id, by_tier in other.class_amounts.items():
            for tier_id, amount in by_tier.items():
                self.credit_class(class_id, tier_id, amount * weight)

        for warning in other.warnings.values():
            self.add_warning(warning, weight)

        self.unallocated += other.unallocated * weight
        self.remaining += other.remaining * weight


# =============================================================================
# Public API
# =============================================================================

def as_scenario(scenario: ScenarioInput) -> WaterfallScenario:
    """Accept a WaterfallScenario or a plain mapping (e.g. from a scenario store).

    Raises:
        pydantic.ValidationError: If the mapping is not a valid scenario
        WaterfallValidationError: If the input is neither
    """
    if isinstance(scenario, WaterfallScenario):
        return scenario
    if isinstance(scenario, Mapping):
        return WaterfallScenario.model_validate(dict(scenario))
    raise WaterfallValidationError(
        f"Expected WaterfallScenario or mapping, got {type(scenario).__name__}"
    )


def evaluate_waterfall(scenario: ScenarioInput) -> WaterfallDistributionResult:
    """Distribute the scenario's exit value through its waterfall.

    Args:
        scenario: WaterfallScenario (or a mapping validated into one)

    Returns:
        WaterfallDistributionResult with per-tier, per-class and summary figures

    Raises:
        ValueError: pydantic ValidationError or WaterfallValidationError on
            malformed input, before any computation

    Example:
        result = evaluate_waterfall(scenario)
        result.tier_result("carry").gp_share
        result.gp_carry_percentage
    """
    scenario = as_scenario(scenario)
    policy = resolve_policy(scenario)
    tiers = scenario.sorted_tiers()

    combined = _Distribution()
    for plan in policy.plans:
        combined.absorb(_run_plan(plan, tiers, scenario.investor_classes), plan.weight)

    return _build_result(scenario, policy, tiers, combined)


# =============================================================================
# Plan Execution
# =============================================================================

def _run_plan(
    plan: EvaluationPlan,
    tiers: Sequence[WaterfallTier],
    investor_classes: Sequence[InvestorClass],
) -> _Distribution:
    dist = _Distribution()
    for ic in investor_classes:
        dist.class_invested[ic.id] = ic.invested_amount(plan.invested_basis)

    for cohort in plan.cohorts:
        evaluation = evaluate_tiers(
            scale_thresholds(tiers, cohort.threshold_scale),
            cohort.exit_value,
            cohort.total_invested,
        )
        dist.remaining += evaluation.remaining

        for tier in tiers:
            tier_result = evaluation.tier_results[tier.id]
            dist.tier_gp[tier.id] = dist.tier_gp.get(tier.id, ZERO) + tier_result.gp_share
            dist.tier_lp[tier.id] = dist.tier_lp.get(tier.id, ZERO) + tier_result.lp_share
            dist.tier_remaining[tier.id] = (
                dist.tier_remaining.get(tier.id, ZERO) + tier_result.cumulative_remaining_after
            )

            # A cohort owns its LP share outright; only the GP side is split.
            lp_to_split = ZERO if cohort.lp_class_id else tier_result.lp_share
            outcome = allocate(
                tier_result.gp_share,
                lp_to_split,
                investor_classes,
                split_type=tier.split_type,
                custom_weights=tier.custom_weights,
                tier_id=tier.id,
                tier_name=tier.name,
            )
            if cohort.lp_class_id and tier_result.lp_share > 0:
                dist.credit_class(cohort.lp_class_id, tier.id, tier_result.lp_share)

            for class_id, amount in outcome.amounts.items():
                dist.credit_class(class_id, tier.id, amount)
            for warning in outcome.warnings:
                dist.add_warning(warning)
            dist.unallocated += outcome.unallocated

    return dist


# =============================================================================
# Result Assembly
# =============================================================================

def _build_result(
    scenario: WaterfallScenario,
    policy: ModelPolicy,
    tiers: Sequence[WaterfallTier],
    dist: _Distribution,
) -> WaterfallDistributionResult:
    tier_results: Dict[str, TierResult] = {}
    for tier in tiers:
        tier_results[tier.id] = TierResult(
            tier_id=tier.id,
            tier_name=tier.name,
            tier_type=tier.type,
            order=tier.order,
            gp_share=dist.tier_gp.get(tier.id, ZERO),
            lp_share=dist.tier_lp.get(tier.id, ZERO),
            cumulative_remaining_after=dist.tier_remaining.get(tier.id, scenario.exit_value),
        )

    roc_tier_ids = {tier.id for tier in tiers if isinstance(tier, ReturnOfCapitalTier)}
    class_results = _class_results(scenario, tiers, tier_results, roc_tier_ids, dist)

    total_gp = sum((tr.gp_share for tr in tier_results.values()), ZERO)
    total_lp = sum((tr.lp_share for tr in tier_results.values()), ZERO)
    roc_paid = sum((tier_results[tier_id].total for tier_id in roc_tier_ids), ZERO)
    total_invested = policy.total_invested
    exit_value = scenario.exit_value

    result = WaterfallDistributionResult(
        scenario_id=scenario.id,
        model=scenario.model,
        exit_value=exit_value,
        total_invested=total_invested,
        tier_results=tier_results,
        investor_class_results=class_results,
        allocation_warnings=list(dist.warnings.values()),
        unallocated_amount=dist.unallocated,
        undistributed_proceeds=dist.remaining,
        total_gp_carry=total_gp,
        total_lp_return=total_lp,
        gp_carry_percentage=HUNDRED * total_gp / max(exit_value, EPSILON),
        gp_carry_percentage_of_profit=HUNDRED * total_gp / max(exit_value - roc_paid, EPSILON),
        lp_multiple=total_lp / max(total_invested, EPSILON),
        total_multiple=exit_value / total_invested if total_invested > 0 else ZERO,
        gp_management_fees=scenario.management_fees,
        clawback=build_clawback_summary(scenario.clawback_provision, total_invested, total_gp, total_lp),
        lookback=build_lookback_summary(scenario.lookback_provision, total_gp),
        blend_weights=policy.blend_weights,
    )

    logger.debug(
        "scenario %s (%s): exit=%s gp=%s lp=%s undistributed=%s unallocated=%s",
        scenario.id, scenario.model, exit_value, total_gp, total_lp,
        dist.remaining, dist.unallocated,
    )
    return result


def _class_results(
    scenario: WaterfallScenario,
    tiers: Sequence[WaterfallTier],
    tier_results: Dict[str, TierResult],
    roc_tier_ids: set,
    dist: _Distribution,
) -> Dict[str, InvestorClassResult]:
    indexed = sorted(enumerate(scenario.investor_classes), key=lambda pair: (pair[1].order, pair[0]))

    results: Dict[str, InvestorClassResult] = {}
    for _, ic in indexed:
        by_tier = dist.class_amounts.get(ic.id, {})
        allocations: List[TierAllocation] = []
        for tier in tiers:
            amount = by_tier.get(tier.id, ZERO)
            if amount <= 0:
                continue
            tier_total = tier_results[tier.id].total
            allocations.append(TierAllocation(
                tier_id=tier.id,
                tier_name=tier.name,
                investor_class_id=ic.id,
                investor_class_name=ic.name,
                amount=amount,
                percentage=HUNDRED * amount / tier_total if tier_total > 0 else ZERO,
            ))

        returned = sum((a.amount for a in allocations), ZERO)
        carry = ZERO
        if ic.is_gp:
            carry = sum((a.amount for a in allocations if a.tier_id not in roc_tier_ids), ZERO)
        invested = dist.class_invested.get(ic.id, ZERO)

        results[ic.id] = InvestorClassResult(
            investor_class_id=ic.id,
            investor_class_name=ic.name,
            type=ic.type,
            invested=invested,
            returned=returned,
            carry=carry,
            multiple=returned / invested if invested > 0 else ZERO,
            net_return=returned - invested,
            allocations=allocations,
        )

    return results
