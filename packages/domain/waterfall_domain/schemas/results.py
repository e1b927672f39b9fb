"""Waterfall and sensitivity result models.

Results are produced by the engine and never mutated afterwards. Amounts are
Decimal; percentages are in points (20 = 20%).

This module handles:
- Per-tier and per-investor-class distribution results
- Allocation warnings (money with no eligible investor class)
- Clawback and lookback summaries
- Sensitivity curves and break-even points
- Scenario comparison
"""

from typing import Dict, List, Literal, Optional
from decimal import Decimal
from pydantic import Field

from .base import DomainModel, InvestorClassId, Multiple, ScenarioId, TierId, ZERO
from .investors import InvestorType
from .scenario import BlendedWaterfallConfig, WaterfallModel
from .tiers import TierType


# =============================================================================
# Tier Results
# =============================================================================

class TierResult(DomainModel):
    """Amount one tier took from the pool, split into GP and LP shares."""

    tier_id: TierId
    tier_name: str
    tier_type: TierType
    order: int

    gp_share: Decimal = Field(
        default=ZERO,
        description="Amount of this tier going to the GP side"
    )

    lp_share: Decimal = Field(
        default=ZERO,
        description="Amount of this tier going to the LP side"
    )

    cumulative_remaining_after: Decimal = Field(
        default=ZERO,
        description="Proceeds still undistributed after this tier"
    )

    @property
    def total(self) -> Decimal:
        return self.gp_share + self.lp_share

    @property
    def is_active(self) -> bool:
        """True if the tier received any proceeds."""
        return self.total > 0


# =============================================================================
# Investor Class Results
# =============================================================================

class TierAllocation(DomainModel):
    """Amount a single investor class received from a single tier."""

    tier_id: TierId
    tier_name: str
    investor_class_id: InvestorClassId
    investor_class_name: str
    amount: Decimal

    percentage: Decimal = Field(
        default=ZERO,
        description="Share of the tier's total amount, in points"
    )


class AllocationWarning(DomainModel):
    """Non-fatal: a tier side had money but no eligible investor class.

    The amount stays unallocated and is reported on the result instead of
    raising, so drafts with missing classes can still be evaluated.
    """

    tier_id: TierId
    tier_name: str
    side: InvestorType
    amount: Decimal
    reason: str


class InvestorClassResult(DomainModel):
    """Totals for one investor class across all tiers.

    Metrics:
        - returned: everything allocated to the class
        - carry: GP amounts from profit tiers (everything except ROC)
        - multiple: returned / invested (MOIC), 0 when nothing was invested
        - net_return: returned - invested
    """

    investor_class_id: InvestorClassId
    investor_class_name: str
    type: InvestorType

    invested: Decimal = ZERO
    returned: Decimal = ZERO
    carry: Decimal = ZERO
    multiple: Multiple = ZERO
    net_return: Decimal = ZERO

    allocations: List[TierAllocation] = Field(default_factory=list)

    def amount_from_tier(self, tier_id: str) -> Decimal:
        return sum((a.amount for a in self.allocations if a.tier_id == tier_id), ZERO)


# =============================================================================
# Provisions
# =============================================================================

class ClawbackSummary(DomainModel):
    """Outcome of applying a clawback provision to a result."""

    total_carry_paid: Decimal
    required_return: Decimal
    shortfall: Decimal
    clawback_due: Decimal
    net_carry_after_clawback: Decimal
    status: Literal["clear", "at-risk", "triggered"]


class LookbackSummary(DomainModel):
    """Outcome of applying a lookback provision to a result."""

    lookback_years: int
    losses_to_recover: Decimal
    carry_at_risk: Decimal
    carry_released: Decimal
    status: Literal["monitor", "at-risk", "cleared"]


# =============================================================================
# Distribution Result
# =============================================================================

class WaterfallDistributionResult(DomainModel):
    """Full output of one waterfall evaluation.

    Conservation:
        sum(tier gp_share + lp_share) + undistributed_proceeds == exit_value
        undistributed_proceeds is zero whenever the last tier consumes the
        remaining pool (carry, or custom without threshold).

    Summary ratios use max(denominator, EPSILON), so an exit of zero gives
    0% rather than a division error.
    """

    scenario_id: ScenarioId
    model: WaterfallModel
    exit_value: Decimal
    total_invested: Decimal

    tier_results: Dict[TierId, TierResult] = Field(
        default_factory=dict,
        description="Per-tier results keyed by tier id, in processing order"
    )

    investor_class_results: Dict[InvestorClassId, InvestorClassResult] = Field(
        default_factory=dict,
        description="Per-class results keyed by class id"
    )

    allocation_warnings: List[AllocationWarning] = Field(default_factory=list)

    unallocated_amount: Decimal = Field(
        default=ZERO,
        description="Tier amounts that could not be assigned to any investor class"
    )

    undistributed_proceeds: Decimal = Field(
        default=ZERO,
        description="Proceeds left in the pool after the last tier"
    )

    total_gp_carry: Decimal = ZERO
    total_lp_return: Decimal = ZERO

    gp_carry_percentage: Decimal = Field(
        default=ZERO,
        description="100 * total_gp_carry / exit_value"
    )

    gp_carry_percentage_of_profit: Decimal = Field(
        default=ZERO,
        description="100 * total_gp_carry / (exit_value - return of capital paid)"
    )

    lp_multiple: Multiple = Field(
        default=ZERO,
        description="total_lp_return / total_invested"
    )

    total_multiple: Multiple = Field(
        default=ZERO,
        description="exit_value / total_invested"
    )

    gp_management_fees: Decimal = ZERO

    clawback: Optional[ClawbackSummary] = None
    lookback: Optional[LookbackSummary] = None
    blend_weights: Optional[BlendedWaterfallConfig] = None

    @property
    def total_distributed(self) -> Decimal:
        return sum((tr.total for tr in self.tier_results.values()), ZERO)

    def tier_result(self, tier_id: str) -> TierResult:
        """Look up a tier's result.

        Raises:
            KeyError: If the tier id is not part of the result
        """
        if tier_id not in self.tier_results:
            raise KeyError(f"Tier '{tier_id}' not found. Available tiers: {list(self.tier_results)}")
        return self.tier_results[tier_id]


# =============================================================================
# Sensitivity Analysis
# =============================================================================

class SensitivityDataPoint(DomainModel):
    """Summary metrics at one sampled exit value."""

    exit_value: Decimal
    gp_carry: Decimal
    gp_carry_percentage: Decimal
    lp_return: Decimal
    lp_multiple: Multiple
    total_multiple: Multiple


class BreakEvenPoint(DomainModel):
    """First sampled exit value at which a tier receives proceeds."""

    tier_id: TierId
    tier_name: str
    exit_value: Decimal


class SensitivityAnalysisResult(DomainModel):
    """GP carry / LP multiple curves across a swept exit-value range."""

    scenario_id: ScenarioId
    min_exit_value: Decimal
    max_exit_value: Decimal
    steps: int
    step_size: Decimal

    data_points: List[SensitivityDataPoint] = Field(
        default_factory=list,
        description="One point per sampled exit value, ascending"
    )

    break_even_points: List[BreakEvenPoint] = Field(
        default_factory=list,
        description="Tiers that activate within the range, in tier order"
    )

    def break_even_for(self, tier_id: str) -> Optional[BreakEvenPoint]:
        for point in self.break_even_points:
            if point.tier_id == tier_id:
                return point
        return None


# =============================================================================
# Scenario Comparison
# =============================================================================

class ScenarioComparisonEntry(DomainModel):
    scenario_id: ScenarioId
    scenario_name: str
    gp_carry: Decimal
    lp_return: Decimal
    total_multiple: Multiple


class ScenarioComparison(DomainModel):
    """Headline metrics for several scenarios side by side."""

    entries: List[ScenarioComparisonEntry] = Field(default_factory=list)
