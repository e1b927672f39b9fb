"""Investor class models.

An investor class is a GP or LP cohort that receives allocations from the
waterfall. Allocation math uses `ownership_percentage` within each side
(GP classes share GP amounts, LP classes share LP amounts).
"""

from typing import Literal, Optional
from decimal import Decimal
from pydantic import Field

from .base import DomainModel, InvestorClassId, MoneyAmount


InvestorType = Literal["lp", "gp"]
InvestedBasis = Literal["commitment", "capital_called"]


# =============================================================================
# Investor Class
# =============================================================================

class InvestorClass(DomainModel):
    """A GP or LP cohort participating in the waterfall.

    Ownership:
        `ownership_percentage` is read relative to the other classes on the
        same side. Percentages are not required to add up to 100; a different
        total is a data-quality signal for callers, not an error.

    Examples:
        Institutional LPs:
            id="lp-1", type="lp", ownership_percentage=80,
            commitment=80_000_000, capital_called=60_000_000

        General partner:
            id="gp", type="gp", ownership_percentage=100,
            commitment=1_000_000
    """

    id: InvestorClassId = Field(
        description="Unique identifier for this investor class"
    )

    name: str = Field(
        description="Human-readable name (e.g., 'Class A LPs', 'Sponsor GP')"
    )

    type: InvestorType = Field(
        description="Side of the waterfall this class sits on"
    )

    ownership_percentage: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        le=100,
        description="Ownership within its side, in points (used for pro-rata splits)"
    )

    commitment: MoneyAmount = Field(
        default=Decimal("0"),
        description="Total capital committed by the class"
    )

    capital_called: MoneyAmount = Field(
        default=Decimal("0"),
        description="Capital drawn down from the class so far"
    )

    capital_returned: MoneyAmount = Field(
        default=Decimal("0"),
        description="Capital already returned to the class before this exit"
    )

    order: int = Field(
        default=0,
        description="Display/tie-break order only. Does not affect allocation."
    )

    notes: Optional[str] = Field(
        default=None,
        description="Free-text notes"
    )

    @property
    def is_gp(self) -> bool:
        return self.type == "gp"

    def invested_amount(self, basis: InvestedBasis) -> Decimal:
        """Capital counted as invested for multiple calculations.

        Args:
            basis: "commitment" or "capital_called"

        Returns:
            The class's commitment or capital called
        """
        if basis == "capital_called":
            return self.capital_called
        return self.commitment
