"""Investor allocation engine.

Expands a tier's aggregate GP/LP shares into per-investor-class amounts.
GP shares go to `gp` classes, LP shares to `lp` classes, using the tier's
split policy:

- pro-rata: weighted by ownership_percentage within the side
- equal: the same amount to every class on the side
- custom: weighted by the tier's custom_weights (classes not listed get 0)

When a side has money but no class can take it (no classes on that side, or
all weights zero) the money stays unallocated and an AllocationWarning is
returned with the outcome.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List, Mapping, Optional, Sequence

from ..schemas.base import ZERO
from ..schemas.investors import InvestorClass
from ..schemas.results import AllocationWarning
from ..schemas.tiers import SplitType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TierAllocationOutcome:
    """Class-level amounts for one tier.

    allocated + unallocated == gp_share + lp_share
    """

    amounts: Dict[str, Decimal] = field(default_factory=dict)
    unallocated: Decimal = ZERO
    warnings: List[AllocationWarning] = field(default_factory=list)

    @property
    def allocated(self) -> Decimal:
        return sum(self.amounts.values(), ZERO)


def allocate(
    gp_share: Decimal,
    lp_share: Decimal,
    investor_classes: Sequence[InvestorClass],
    split_type: SplitType = "pro-rata",
    custom_weights: Optional[Mapping[str, Decimal]] = None,
    tier_id: str = "",
    tier_name: str = "",
) -> TierAllocationOutcome:
    """Allocate one tier's GP and LP shares across investor classes.

    Args:
        gp_share: Tier amount for the GP side
        lp_share: Tier amount for the LP side
        investor_classes: All classes in the scenario
        split_type: "pro-rata", "equal" or "custom"
        custom_weights: Class id -> weight, used when split_type="custom"
        tier_id: Tier identifier for warnings
        tier_name: Tier name for warnings

    Returns:
        TierAllocationOutcome with amounts keyed by class id
    """
    amounts: Dict[str, Decimal] = {}
    warnings: List[AllocationWarning] = []
    unallocated = ZERO

    for side, share in (("gp", gp_share), ("lp", lp_share)):
        classes = [ic for ic in investor_classes if ic.type == side]
        side_amounts, reason = split_side(share, classes, split_type, custom_weights)

        if side_amounts is None:
            if share > 0:
                unallocated += share
                warnings.append(AllocationWarning(
                    tier_id=tier_id or "unknown",
                    tier_name=tier_name or tier_id or "unknown",
                    side=side,
                    amount=share,
                    reason=f"{side} side: {reason}",
                ))
                logger.warning(
                    "tier %s: %s share of %s left unallocated (%s)", tier_id, side, share, reason
                )
            continue

        for class_id, amount in side_amounts.items():
            amounts[class_id] = amounts.get(class_id, ZERO) + amount

    return TierAllocationOutcome(amounts=amounts, unallocated=unallocated, warnings=warnings)


def split_side(
    share: Decimal,
    classes: Sequence[InvestorClass],
    split_type: SplitType,
    custom_weights: Optional[Mapping[str, Decimal]] = None,
) -> tuple[Optional[Dict[str, Decimal]], str]:
    """Split one side's share across that side's classes.

    Returns:
        (amounts by class id, "") or (None, reason) when nothing can be allocated

    The last class with a positive weight takes the rounding remainder, so the
    amounts always add up to `share` exactly.
    """
    if not classes:
        return None, "no investor classes on this side"

    weights = _weights(classes, split_type, custom_weights)
    total_weight = sum(weights.values(), ZERO)
    if total_weight <= 0:
        return None, f"{split_type} weights sum to zero"

    amounts: Dict[str, Decimal] = {}
    weighted_ids = [class_id for class_id, weight in weights.items() if weight > 0]
    running = ZERO
    for class_id, weight in weights.items():
        if weight <= 0:
            amounts[class_id] = ZERO
        elif class_id == weighted_ids[-1]:
            amounts[class_id] = share - running
        else:
            amount = share * weight / total_weight
            amounts[class_id] = amount
            running += amount

    return amounts, ""


def _weights(
    classes: Sequence[InvestorClass],
    split_type: SplitType,
    custom_weights: Optional[Mapping[str, Decimal]],
) -> Dict[str, Decimal]:
    if split_type == "equal":
        return {ic.id: Decimal("1") for ic in classes}
    if split_type == "custom":
        weights = custom_weights or {}
        return {ic.id: Decimal(weights.get(ic.id, ZERO)) for ic in classes}
    return {ic.id: ic.ownership_percentage for ic in classes}
