"""Base classes and type system for waterfall domain models.

This module provides the foundational types, validators, and base classes
used throughout the waterfall schema system.
"""

from decimal import Decimal
from typing import Annotated
from pydantic import BaseModel, Field, ConfigDict

# =============================================================================
# Base Model
# =============================================================================

class DomainModel(BaseModel):
    """Base class for all domain models.

    Provides common configuration for all Pydantic models in the domain layer:
    - Frozen instances: scenarios and results are immutable snapshots
    - Support for Decimal types
    - Enum value serialization
    """

    model_config = ConfigDict(
        frozen=True,  # Snapshots are never mutated during a computation
        use_enum_values=True,  # Use enum values in JSON
        arbitrary_types_allowed=True,  # Allow Decimal, etc.
    )


# =============================================================================
# Type Aliases - Numeric
# =============================================================================

MoneyAmount = Annotated[
    Decimal,
    Field(ge=0, description="Currency amount (non-negative)")
]

PercentagePoints = Annotated[
    Decimal,
    Field(ge=0, le=100, description="Percentage in points (0 to 100, e.g. 20 = 20%)")
]

Multiple = Annotated[
    Decimal,
    Field(ge=0, description="Multiplier value (e.g., 2x = 2.0)")
]

Weight = Annotated[
    Decimal,
    Field(ge=0, description="Relative allocation weight (normalised per side)")
]


# =============================================================================
# ID Conventions
# =============================================================================

TierId = Annotated[
    str,
    Field(
        min_length=1,
        description="Identifier for a waterfall tier (e.g., 'tier-1', 'roc')"
    )
]

InvestorClassId = Annotated[
    str,
    Field(
        min_length=1,
        description="Identifier for an investor class (e.g., 'lp-1', 'gp')"
    )
]

ScenarioId = Annotated[
    str,
    Field(
        min_length=1,
        description="Identifier for a waterfall scenario"
    )
]


# =============================================================================
# Helpers
# =============================================================================

ZERO = Decimal("0")
HUNDRED = Decimal("100")


def points_to_fraction(value: Decimal) -> Decimal:
    """Convert percentage points (20) to a fraction (0.2)."""
    return value / HUNDRED


# =============================================================================
# ID Examples and Conventions
# =============================================================================
#
# Tier IDs:
#   - "roc" / "tier-1" - Return of capital
#   - "pref" / "tier-2" - Preferred return
#   - "catch_up" - GP catch-up
#   - "carry" - Carried interest split
#
# Investor Class IDs:
#   - "lp-1" - Institutional LP cohort
#   - "gp" - General partner entity
#
# =============================================================================
