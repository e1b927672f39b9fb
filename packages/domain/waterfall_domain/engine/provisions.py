"""Clawback and lookback summaries.

Both are derived from a finished distribution (GP carry, LP return, invested
capital). Neither changes the distribution itself.
"""

from decimal import Decimal
from typing import Optional

from ..schemas.base import ZERO, points_to_fraction
from ..schemas.results import ClawbackSummary, LookbackSummary
from ..schemas.scenario import ClawbackProvision, LookbackProvision


def build_clawback_summary(
    provision: Optional[ClawbackProvision],
    total_invested: Decimal,
    total_gp_carry: Decimal,
    total_lp_return: Decimal,
) -> Optional[ClawbackSummary]:
    """Compute GP clawback exposure.

    required_return = invested * (1 + hurdle * years)  (simple interest)
    shortfall       = max(0, required_return - LP return)
    clawback_due    = min(GP carry, shortfall * clawback_rate)

    Returns:
        None when there is no provision or it is disabled
    """
    if provision is None or not provision.enabled:
        return None

    required_return = total_invested * (
        1 + points_to_fraction(provision.hurdle_rate) * provision.distribution_life_years
    )
    shortfall = max(ZERO, required_return - total_lp_return)
    clawback_due = min(total_gp_carry, shortfall * points_to_fraction(provision.clawback_rate))
    net_carry = max(ZERO, total_gp_carry - clawback_due)

    if clawback_due > 0:
        status = "triggered"
    elif shortfall > 0:
        status = "at-risk"
    else:
        status = "clear"

    return ClawbackSummary(
        total_carry_paid=total_gp_carry,
        required_return=required_return,
        shortfall=shortfall,
        clawback_due=clawback_due,
        net_carry_after_clawback=net_carry,
        status=status,
    )


def build_lookback_summary(
    provision: Optional[LookbackProvision],
    total_gp_carry: Decimal,
) -> Optional[LookbackSummary]:
    """Compute carry held back pending recovery of prior losses."""
    if provision is None or not provision.enabled:
        return None

    losses = max(ZERO, provision.loss_carry_forward)
    carry_at_risk = total_gp_carry * points_to_fraction(provision.carry_at_risk_rate)
    carry_released = max(ZERO, total_gp_carry - carry_at_risk)

    if losses > 0:
        status = "at-risk" if carry_at_risk > 0 else "monitor"
    else:
        status = "cleared"

    return LookbackSummary(
        lookback_years=provision.lookback_years,
        losses_to_recover=losses,
        carry_at_risk=carry_at_risk,
        carry_released=carry_released,
        status=status,
    )
