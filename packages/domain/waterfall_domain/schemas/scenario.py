"""Waterfall scenario models.

A scenario is the input to one engine run: the waterfall model, the exit
value, invested capital, the ordered tiers and the investor classes. The
engine treats it as an immutable snapshot.

This module handles:
- The scenario itself and its cross-field validation
- Blended model weights
- Clawback and lookback provisions
"""

from typing import Dict, List, Literal, Optional, Union
from collections import Counter
from decimal import Decimal
from pydantic import Field, model_validator

from .base import DomainModel, MoneyAmount, ScenarioId, ZERO
from .investors import InvestorClass, InvestorType
from .tiers import CarryTier, WaterfallTier
from ..errors import WaterfallValidationError


WaterfallModel = Literal["european", "american", "blended"]


# =============================================================================
# Blended Model Configuration
# =============================================================================

class BlendedWaterfallConfig(DomainModel):
    """Weights for the blended model.

    The blended result is a weighted average of the European and American
    results. Weights are normalised, so 70/30 and 7/3 are equivalent. If both
    weights are zero the blend falls back to 50/50.
    """

    european_weight: Decimal = Field(
        default=Decimal("50"),
        ge=0,
        description="Relative weight of the European (whole-fund) result"
    )

    american_weight: Decimal = Field(
        default=Decimal("50"),
        ge=0,
        description="Relative weight of the American (per-cohort) result"
    )

    def normalized(self) -> tuple[Decimal, Decimal]:
        """Return (european, american) fractions summing to 1."""
        total = self.european_weight + self.american_weight
        if total == 0:
            return Decimal("0.5"), Decimal("0.5")
        return self.european_weight / total, self.american_weight / total


# =============================================================================
# Provisions
# =============================================================================

class ClawbackProvision(DomainModel):
    """GP clawback terms.

    If LPs end below their required return, the GP returns carry up to
    `clawback_rate` percent of the shortfall.

    Example:
        Invested $100M, hurdle 8%, 4 years
        Required LP return: 100M * (1 + 0.08 * 4) = $132M
        LPs received $124M -> shortfall $8M
        clawback_rate 100% -> GP returns min(carry, $8M)
    """

    enabled: bool = Field(
        default=True,
        description="Whether the clawback summary is computed"
    )

    hurdle_rate: Decimal = Field(
        ge=0,
        description="Annual hurdle rate in points (simple interest)"
    )

    clawback_rate: Decimal = Field(
        default=Decimal("100"),
        ge=0,
        le=100,
        description="Percent of the shortfall recaptured from GP carry"
    )

    distribution_life_years: Decimal = Field(
        ge=0,
        description="Years over which the hurdle accrues"
    )


class LookbackProvision(DomainModel):
    """Carry lookback terms.

    A percentage of GP carry is held back while earlier losses remain to be
    recovered.
    """

    enabled: bool = Field(
        default=True,
        description="Whether the lookback summary is computed"
    )

    lookback_years: int = Field(
        ge=0,
        description="Lookback window in years (reported, not used in the arithmetic)"
    )

    loss_carry_forward: Decimal = Field(
        default=Decimal("0"),
        description="Prior losses still to be recovered (negative values count as zero)"
    )

    carry_at_risk_rate: Decimal = Field(
        ge=0,
        le=100,
        description="Percent of GP carry held back"
    )


# =============================================================================
# Waterfall Scenario
# =============================================================================

class WaterfallScenario(DomainModel):
    """Input snapshot for one waterfall computation.

    Validation (fail-fast, before any computation):
        - Tier `order` values are unique
        - Tier ids and investor class ids are unique
        - custom_weights only name investor classes in the scenario

    Example:
        WaterfallScenario(
            id="base_case",
            name="Base Case",
            model="european",
            exit_value=Decimal("15000000"),
            total_invested=Decimal("10000000"),
            tiers=[
                ReturnOfCapitalTier(id="roc", name="Return of Capital", order=1),
                PreferredReturnTier(id="pref", name="Preferred Return", order=2,
                                    hurdle_rate=Decimal("8")),
                CatchUpTier(id="catch_up", name="GP Catch-up", order=3),
                CarryTier(id="carry", name="Carry", order=4),
            ],
            investor_classes=[...],
        )
    """

    id: ScenarioId = Field(
        default="scenario",
        description="Scenario identifier (owned by the scenario store)"
    )

    name: str = Field(
        default="Scenario",
        description="Human-readable scenario name"
    )

    model: WaterfallModel = Field(
        default="european",
        description="Waterfall model: european (whole fund), american (per cohort), blended"
    )

    exit_value: MoneyAmount = Field(
        description="Total proceeds to distribute"
    )

    total_invested: MoneyAmount = Field(
        description="Invested capital. Basis for ROC and preferred return."
    )

    management_fees: MoneyAmount = Field(
        default=Decimal("0"),
        description="GP management fees (reported alongside results, not distributed)"
    )

    tiers: List[WaterfallTier] = Field(
        default_factory=list,
        description="Waterfall tiers. Processed by ascending `order`, not list position."
    )

    investor_classes: List[InvestorClass] = Field(
        default_factory=list,
        description="GP and LP cohorts receiving allocations"
    )

    blended_config: Optional[BlendedWaterfallConfig] = Field(
        default=None,
        description="Weights for the blended model (default 50/50)"
    )

    clawback_provision: Optional[ClawbackProvision] = Field(
        default=None,
        description="Clawback terms. Summary computed only when enabled."
    )

    lookback_provision: Optional[LookbackProvision] = Field(
        default=None,
        description="Lookback terms. Summary computed only when enabled."
    )

    @model_validator(mode='after')
    def validate_tiers_and_classes(self):
        """Validate tier ordering and identifiers."""
        order_counts = Counter(tier.order for tier in self.tiers)
        collisions = sorted(order for order, count in order_counts.items() if count > 1)
        if collisions:
            raise ValueError(f"Tier order values must be unique; duplicated: {collisions}")

        tier_ids = Counter(tier.id for tier in self.tiers)
        duplicate_tiers = sorted(tier_id for tier_id, count in tier_ids.items() if count > 1)
        if duplicate_tiers:
            raise ValueError(f"Tier ids must be unique; duplicated: {duplicate_tiers}")

        class_ids = Counter(ic.id for ic in self.investor_classes)
        duplicate_classes = sorted(class_id for class_id, count in class_ids.items() if count > 1)
        if duplicate_classes:
            raise ValueError(f"Investor class ids must be unique; duplicated: {duplicate_classes}")

        known_classes = set(class_ids)
        for tier in self.tiers:
            if tier.custom_weights:
                unknown = sorted(set(tier.custom_weights) - known_classes)
                if unknown:
                    raise ValueError(
                        f"Tier '{tier.id}': custom_weights reference unknown investor classes {unknown}"
                    )

        return self

    def sorted_tiers(self) -> List[WaterfallTier]:
        """Tiers in processing order."""
        return sorted(self.tiers, key=lambda tier: tier.order)

    def classes_of_type(self, investor_type: InvestorType) -> List[InvestorClass]:
        return [ic for ic in self.investor_classes if ic.type == investor_type]

    def ownership_total_by_side(self) -> Dict[str, Decimal]:
        """Sum of ownership percentages per side.

        A total other than 100 is a data-quality signal for the caller; the
        engine normalises within each side either way.
        """
        totals = {"gp": ZERO, "lp": ZERO}
        for ic in self.investor_classes:
            totals[ic.type] += ic.ownership_percentage
        return totals

    def carry_tier(self) -> Optional[CarryTier]:
        """First carry tier in processing order, if any."""
        for tier in self.sorted_tiers():
            if isinstance(tier, CarryTier):
                return tier
        return None

    def with_exit_value(self, exit_value: Union[Decimal, int, str]) -> "WaterfallScenario":
        """Copy of this scenario with only the exit value substituted.

        Raises:
            WaterfallValidationError: If exit_value is negative
        """
        value = Decimal(str(exit_value))
        if value < 0:
            raise WaterfallValidationError(f"exit_value must be non-negative, got {value}")
        return self.model_copy(update={"exit_value": value})
