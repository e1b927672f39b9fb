"""Numeric constants shared by the engine."""

from decimal import Decimal

# Floor for ratio denominators, so a zero exit value or invested capital
# never divides by zero.
EPSILON = Decimal("1e-9")

# Relative tolerance for conservation checks (allocated vs. tier amount).
RELATIVE_TOLERANCE = Decimal("1e-6")

# Catch-up target when neither the tier nor a carry tier specifies one.
DEFAULT_CATCH_UP_TARGET = Decimal("20")


def within_tolerance(actual: Decimal, expected: Decimal) -> bool:
    """True if actual matches expected within RELATIVE_TOLERANCE (absolute near zero)."""
    scale = max(abs(expected), Decimal("1"))
    return abs(actual - expected) <= RELATIVE_TOLERANCE * scale
