"""Waterfall tier types using discriminated unions for type safety.

A waterfall is an ordered sequence of tiers. Each tier consumes part of the
remaining exit proceeds and splits what it takes between GP and LP:
- Return of capital: pays invested capital back (LP by default)
- Preferred return: pays the hurdle on invested capital (LP by default)
- GP catch-up: pays GP until it holds its target share of profit
- Carry: splits everything that is left (20/80 GP/LP by default)
- Custom: optional capped tier with a caller-defined split

Using a discriminated union means each tier kind carries only the fields it
needs, and malformed tiers are rejected when the scenario is built.
"""

from typing import Annotated, ClassVar, Dict, Literal, Optional, Union
from decimal import Decimal
from pydantic import Field, model_validator

from .base import (
    DomainModel,
    HUNDRED,
    InvestorClassId,
    MoneyAmount,
    PercentagePoints,
    TierId,
    Weight,
    points_to_fraction,
)


SplitType = Literal["pro-rata", "equal", "custom"]
TierType = Literal["roc", "preferred-return", "catch-up", "carry", "custom"]


# =============================================================================
# Tier Base
# =============================================================================

class TierBase(DomainModel):
    """Fields shared by every tier kind.

    GP/LP split:
        Either percentage may be given on its own and the other is its
        complement. If both are given they must add up to 100. If neither is
        given the tier kind's default applies (see DEFAULT_GP_PERCENTAGE).

    Ordering:
        `order` is the processing sequence. Gaps are fine, ties are not
        (checked at scenario level).
    """

    DEFAULT_GP_PERCENTAGE: ClassVar[Decimal] = Decimal("0")

    id: TierId = Field(
        description="Unique identifier for this tier"
    )

    name: str = Field(
        description="Human-readable label (e.g., 'Return of Capital', 'Carry Split')"
    )

    order: int = Field(
        description="Processing sequence (ascending). Must be unique within a scenario."
    )

    gp_carry_percentage: Optional[PercentagePoints] = Field(
        default=None,
        description="GP share of this tier's amount, in points (e.g., 20 = 20%)"
    )

    lp_percentage: Optional[PercentagePoints] = Field(
        default=None,
        description="LP share of this tier's amount, in points"
    )

    split_type: SplitType = Field(
        default="pro-rata",
        description="How each side's share is allocated across investor classes"
    )

    custom_weights: Optional[Dict[InvestorClassId, Weight]] = Field(
        default=None,
        description="Per-class weights for split_type='custom' (class id -> weight)"
    )

    description: Optional[str] = Field(
        default=None,
        description="Free-text notes shown alongside the tier"
    )

    @model_validator(mode='after')
    def validate_split(self):
        """Validate GP/LP percentages and custom split configuration."""
        if self.gp_carry_percentage is not None and self.lp_percentage is not None:
            if self.gp_carry_percentage + self.lp_percentage != HUNDRED:
                raise ValueError(
                    f"Tier '{self.id}': gp_carry_percentage ({self.gp_carry_percentage}) and "
                    f"lp_percentage ({self.lp_percentage}) must sum to 100"
                )

        if self.split_type == "custom" and not self.custom_weights:
            raise ValueError(f"Tier '{self.id}': split_type='custom' requires custom_weights")

        return self

    @property
    def resolved_gp_percentage(self) -> Decimal:
        """GP share in points after applying complements and defaults."""
        if self.gp_carry_percentage is not None:
            return self.gp_carry_percentage
        if self.lp_percentage is not None:
            return HUNDRED - self.lp_percentage
        return self.DEFAULT_GP_PERCENTAGE

    @property
    def gp_fraction(self) -> Decimal:
        return points_to_fraction(self.resolved_gp_percentage)


# =============================================================================
# Return of Capital
# =============================================================================

class ReturnOfCapitalTier(TierBase):
    """Return of capital (ROC).

    Pays back invested principal before any profit is split. Conventionally
    flows entirely to LPs.

    Example:
        threshold: $10M (or unset to use the scenario's invested capital)
        Exit $15M -> ROC pays $10M, leaves $5M for later tiers
        Exit $6M  -> ROC pays $6M, later tiers receive nothing
    """

    type: Literal["roc"] = "roc"

    threshold: Optional[MoneyAmount] = Field(
        default=None,
        description="Capital to return. None = the scenario's invested capital."
    )


# =============================================================================
# Preferred Return
# =============================================================================

class PreferredReturnTier(TierBase):
    """Preferred return (hurdle).

    Pays LPs `invested * hurdle_rate / 100` before the GP earns carry.

    Example:
        Invested $10M, hurdle 8% -> preferred return of $800K
    """

    type: Literal["preferred-return"] = "preferred-return"

    hurdle_rate: Optional[Decimal] = Field(
        default=None,
        ge=0,
        description="Hurdle rate in points (e.g., 8 = 8% of invested capital)"
    )

    @model_validator(mode='after')
    def validate_hurdle_rate(self):
        """Preferred return cannot be evaluated without a hurdle."""
        if self.hurdle_rate is None:
            raise ValueError(f"Tier '{self.id}': preferred-return tier requires hurdle_rate")
        return self


# =============================================================================
# GP Catch-up
# =============================================================================

class CatchUpTier(TierBase):
    """GP catch-up.

    Gives the GP an accelerated share of proceeds until the GP holds
    `catch_up_target_percentage` of all profit distributed so far (profit =
    everything beyond return of capital).

    With a 100% catch-up and nothing paid to the GP before it:
        x = target * prior_profit / (1 - target)

    Example:
        Preferred return paid $800K to LPs, target 20%
        x = 0.2 * 800K / 0.8 = $200K to GP
        GP now holds 200K / 1M = 20% of profit
    """

    DEFAULT_GP_PERCENTAGE: ClassVar[Decimal] = HUNDRED

    type: Literal["catch-up"] = "catch-up"

    catch_up_target_percentage: Optional[Decimal] = Field(
        default=None,
        ge=0,
        lt=100,
        description="GP share of profit to catch up to. None = the carry tier's GP percentage."
    )


# =============================================================================
# Carry
# =============================================================================

class CarryTier(TierBase):
    """Carried interest split.

    Splits everything that remains between GP and LP. Always consumes the
    whole remaining pool.
    """

    DEFAULT_GP_PERCENTAGE: ClassVar[Decimal] = Decimal("20")

    type: Literal["carry"] = "carry"


# =============================================================================
# Custom
# =============================================================================

class CustomTier(TierBase):
    """Custom tier with a caller-defined split.

    Takes up to `threshold` from the remaining pool (or all of it when no
    threshold is set) and splits it by the tier's percentages.
    """

    type: Literal["custom"] = "custom"

    threshold: Optional[MoneyAmount] = Field(
        default=None,
        description="Maximum amount this tier takes. None = all remaining proceeds."
    )


# =============================================================================
# Discriminated Union
# =============================================================================

WaterfallTier = Annotated[
    Union[
        ReturnOfCapitalTier,
        PreferredReturnTier,
        CatchUpTier,
        CarryTier,
        CustomTier,
    ],
    Field(discriminator='type')
]
"""Discriminated union of all tier types.

The 'type' field serves as the discriminator, allowing Pydantic to:
1. Validate the correct tier schema based on type
2. Provide proper type narrowing in static analysis
3. Enforce per-kind requirements (e.g. hurdle_rate on preferred-return)

Usage:
    WaterfallScenario.model_validate({
        ...,
        "tiers": [
            {"type": "roc", "id": "roc", "name": "Return of Capital", "order": 1},
            {"type": "preferred-return", "id": "pref", "name": "Pref", "order": 2,
             "hurdle_rate": "8"},
        ],
    })
"""
