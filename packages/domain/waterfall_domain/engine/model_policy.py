"""Model policy: European / American / Blended evaluation plans.

The policy is resolved once per run and decides how the tier evaluator is
applied:

- european: one evaluation for the whole fund on the scenario's exit value and
  invested capital. GP sees no carry until the entire fund's capital and
  preferred return are paid. Class multiples use commitments.

- american: the same evaluator applied per LP investor-class cohort. Each
  cohort gets its ownership share of the exit value and is measured against
  its own called capital, so GP carry can accrue on one cohort before the
  whole fund is paid back (clawback is reported separately, not netted).
  Class multiples use capital called.

- blended: weighted average of the european and american results, weights
  from the scenario's blended_config (default 50/50).

The american and blended rules are product decisions pending stakeholder
confirmation; european is the reference behaviour.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional, Sequence, Tuple

from ..errors import WaterfallValidationError
from ..schemas.base import ZERO
from ..schemas.investors import InvestedBasis
from ..schemas.scenario import BlendedWaterfallConfig, WaterfallScenario
from ..schemas.tiers import CustomTier, ReturnOfCapitalTier, WaterfallTier

logger = logging.getLogger(__name__)

ONE = Decimal("1")


# =============================================================================
# Plan Types
# =============================================================================

@dataclass(frozen=True)
class Cohort:
    """One application of the tier evaluator.

    When lp_class_id is set, the cohort's LP shares belong to that class
    outright; otherwise they are allocated by each tier's split policy.
    """

    exit_value: Decimal
    total_invested: Decimal
    threshold_scale: Decimal = ONE
    lp_class_id: Optional[str] = None


@dataclass(frozen=True)
class EvaluationPlan:
    """A set of cohorts evaluated under one basis, with its blend weight."""

    basis: str
    weight: Decimal
    invested_basis: InvestedBasis
    cohorts: Tuple[Cohort, ...]

    @property
    def total_invested(self) -> Decimal:
        return sum((c.total_invested for c in self.cohorts), ZERO)


@dataclass(frozen=True)
class ModelPolicy:
    """Resolved evaluation plans for a scenario's model."""

    model: str
    plans: Tuple[EvaluationPlan, ...]
    blend_weights: Optional[BlendedWaterfallConfig] = None

    @property
    def total_invested(self) -> Decimal:
        return sum((plan.weight * plan.total_invested for plan in self.plans), ZERO)


# =============================================================================
# Resolution
# =============================================================================

def resolve_policy(scenario: WaterfallScenario) -> ModelPolicy:
    """Build the evaluation plans for the scenario's model.

    Raises:
        WaterfallValidationError: If the model is not european/american/blended
    """
    if scenario.model == "european":
        policy = ModelPolicy(model="european", plans=(european_plan(scenario, ONE),))
    elif scenario.model == "american":
        policy = ModelPolicy(model="american", plans=(american_plan(scenario, ONE),))
    elif scenario.model == "blended":
        config = scenario.blended_config or BlendedWaterfallConfig()
        european_weight, american_weight = config.normalized()
        policy = ModelPolicy(
            model="blended",
            plans=(
                european_plan(scenario, european_weight),
                american_plan(scenario, american_weight),
            ),
            blend_weights=config,
        )
    else:
        raise WaterfallValidationError(f"Unsupported waterfall model: {scenario.model}")

    logger.debug(
        "scenario %s: %s policy with %s",
        scenario.id,
        policy.model,
        [(plan.basis, str(plan.weight), len(plan.cohorts)) for plan in policy.plans],
    )
    return policy


def european_plan(scenario: WaterfallScenario, weight: Decimal) -> EvaluationPlan:
    """Whole-fund evaluation on aggregate exit value and invested capital."""
    return EvaluationPlan(
        basis="european",
        weight=weight,
        invested_basis="commitment",
        cohorts=(Cohort(exit_value=scenario.exit_value, total_invested=scenario.total_invested),),
    )


def american_plan(scenario: WaterfallScenario, weight: Decimal) -> EvaluationPlan:
    """Per-cohort evaluation, one cohort per LP investor class.

    Cohort i:
        share_i     = ownership_i / sum(LP ownership)
        exit_i      = exit_value * share_i
        invested_i  = capital_called_i, or total_invested * share_i when no
                      LP capital has been called
        thresholds scaled by invested_i / sum(invested)

    Without LP classes (or with zero LP ownership) the plan degrades to a
    single whole-fund cohort.
    """
    lp_classes = [ic for ic in scenario.investor_classes if ic.type == "lp"]
    total_ownership = sum((ic.ownership_percentage for ic in lp_classes), ZERO)

    if not lp_classes or total_ownership <= 0:
        logger.debug("scenario %s: no weighted LP cohorts, using whole-fund evaluation", scenario.id)
        return EvaluationPlan(
            basis="american",
            weight=weight,
            invested_basis="capital_called",
            cohorts=(Cohort(exit_value=scenario.exit_value, total_invested=scenario.total_invested),),
        )

    shares = [ic.ownership_percentage / total_ownership for ic in lp_classes]
    called = [ic.capital_called for ic in lp_classes]
    use_called = sum(called, ZERO) > 0
    invested = called if use_called else [scenario.total_invested * share for share in shares]
    invested_total = sum(invested, ZERO)

    # Last cohort takes the rounding remainder so cohort exits sum exactly.
    exits = [scenario.exit_value * share for share in shares[:-1]]
    exits.append(max(ZERO, scenario.exit_value - sum(exits, ZERO)))

    cohorts: List[Cohort] = []
    for ic, share, cohort_exit, cohort_invested in zip(lp_classes, shares, exits, invested):
        scale = cohort_invested / invested_total if invested_total > 0 else share
        cohorts.append(Cohort(
            exit_value=cohort_exit,
            total_invested=cohort_invested,
            threshold_scale=scale,
            lp_class_id=ic.id,
        ))

    return EvaluationPlan(
        basis="american",
        weight=weight,
        invested_basis="capital_called" if use_called else "commitment",
        cohorts=tuple(cohorts),
    )


def scale_thresholds(tiers: Sequence[WaterfallTier], scale: Decimal) -> List[WaterfallTier]:
    """Copies of the tiers with explicit thresholds multiplied by `scale`."""
    if scale == ONE:
        return list(tiers)

    scaled: List[WaterfallTier] = []
    for tier in tiers:
        if isinstance(tier, (ReturnOfCapitalTier, CustomTier)) and tier.threshold is not None:
            tier = tier.model_copy(update={"threshold": tier.threshold * scale})
        scaled.append(tier)
    return scaled
