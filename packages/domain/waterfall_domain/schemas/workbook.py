"""Run configuration - sensitivity sweeps and workbook export.

The WaterfallWorkbookCFG is the root configuration object handed to the
Excel renderer. It ties together:
- The scenario to evaluate
- The sensitivity sweep (optional)
- Which sheets to include
"""

from typing import Optional
from decimal import Decimal, ROUND_HALF_UP
from pydantic import Field, model_validator

from .base import DomainModel, MoneyAmount
from .scenario import WaterfallScenario


# =============================================================================
# Sensitivity Configuration
# =============================================================================

DEFAULT_SENSITIVITY_STEPS = 20
MIN_SENSITIVITY_SPAN = Decimal("10000000")


class SensitivityCFG(DomainModel):
    """Exit-value sweep for sensitivity analysis.

    `steps` is the number of sampled exit values, both bounds included.

    Example:
        SensitivityCFG(min_exit_value=0, max_exit_value=30_000_000, steps=31)
        -> samples 0, 1M, 2M, ..., 30M
    """

    min_exit_value: MoneyAmount = Field(
        description="Lowest exit value sampled (inclusive)"
    )

    max_exit_value: MoneyAmount = Field(
        description="Highest exit value sampled (inclusive)"
    )

    steps: int = Field(
        default=DEFAULT_SENSITIVITY_STEPS,
        ge=2,
        description="Number of evenly spaced samples"
    )

    @model_validator(mode='after')
    def validate_range(self):
        if self.max_exit_value <= self.min_exit_value:
            raise ValueError(
                f"max_exit_value ({self.max_exit_value}) must exceed "
                f"min_exit_value ({self.min_exit_value})"
            )
        return self

    @classmethod
    def default_for(cls, scenario: WaterfallScenario, steps: int = DEFAULT_SENSITIVITY_STEPS) -> "SensitivityCFG":
        """Sweep from 50% to 150% of the scenario's exit value.

        The range is widened to at least $10M so small or zero exit values
        still produce a usable curve.
        """
        min_exit = max(Decimal("0"), (scenario.exit_value * Decimal("0.5")).quantize(Decimal("1"), ROUND_HALF_UP))
        max_exit = max(
            min_exit + MIN_SENSITIVITY_SPAN,
            (scenario.exit_value * Decimal("1.5")).quantize(Decimal("1"), ROUND_HALF_UP),
        )
        return cls(min_exit_value=min_exit, max_exit_value=max_exit, steps=steps)


# =============================================================================
# Workbook Configuration
# =============================================================================

class WaterfallWorkbookCFG(DomainModel):
    """Root configuration for waterfall workbook export.

    Sheets:
        1. Summary - Headline metrics (GP carry, LP multiple, provisions)
        2. Tiers - Tier-by-tier GP/LP amounts
        3. Investor Classes - Per-class returns and multiples
        4. Sensitivity - Curve across exit values (if sensitivity is set)
        5. Break-even - Tier activation exit values (if sensitivity is set)

    Example:
        WaterfallWorkbookCFG(
            scenario=scenario,
            sensitivity=SensitivityCFG.default_for(scenario),
        )
    """

    scenario: WaterfallScenario = Field(
        description="Scenario to evaluate and render"
    )

    sensitivity: Optional[SensitivityCFG] = Field(
        default=None,
        description="Sensitivity sweep. None = no sensitivity sheets."
    )

    title: Optional[str] = Field(
        default=None,
        description="Title shown on the summary sheet (default: scenario name)"
    )

    include_investor_classes: bool = Field(
        default=True,
        description="Include the per-investor-class sheet"
    )

    include_break_even: bool = Field(
        default=True,
        description="Include the break-even sheet (requires sensitivity)"
    )
