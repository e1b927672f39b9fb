"""Tests for investor class allocation within a tier.

Tests cover:
1. Pro-rata, equal and custom splits
2. Rounding remainder handling
3. Warnings when a side has money but no eligible class
4. Allocation warnings surfaced on the full waterfall result
"""

from decimal import Decimal

import pytest

from waterfall_domain.engine import allocate, evaluate_waterfall
from waterfall_domain.engine.allocation import split_side
from waterfall_domain.schemas import (
    CarryTier,
    InvestorClass,
    ReturnOfCapitalTier,
    WaterfallScenario,
)


def lp(class_id, ownership="0", **fields):
    return InvestorClass(id=class_id, name=class_id.upper(), type="lp",
                         ownership_percentage=Decimal(ownership), **fields)


def gp(class_id, ownership="0", **fields):
    return InvestorClass(id=class_id, name=class_id.upper(), type="gp",
                         ownership_percentage=Decimal(ownership), **fields)


# =============================================================================
# Split Policies
# =============================================================================

class TestSplitPolicies:
    """Each side is split only among classes on that side."""

    def test_pro_rata_by_ownership(self):
        classes = [lp("a", "70"), lp("b", "30"), gp("sponsor", "100")]
        outcome = allocate(Decimal("200"), Decimal("1000"), classes, tier_id="carry")

        assert outcome.amounts == {"a": Decimal("700"), "b": Decimal("300"), "sponsor": Decimal("200")}
        assert outcome.unallocated == Decimal("0")
        assert outcome.warnings == []
        assert outcome.allocated == Decimal("1200")

    def test_pro_rata_normalises_within_side(self):
        """Ownership 20/20 is treated as 50/50."""
        classes = [lp("a", "20"), lp("b", "20")]
        outcome = allocate(Decimal("0"), Decimal("1000"), classes)

        assert outcome.amounts == {"a": Decimal("500"), "b": Decimal("500")}

    def test_equal_split_ignores_ownership(self):
        classes = [lp("a", "90"), lp("b", "5"), lp("c", "5")]
        outcome = allocate(Decimal("0"), Decimal("900"), classes, split_type="equal")

        assert outcome.amounts == {"a": Decimal("300"), "b": Decimal("300"), "c": Decimal("300")}

    def test_custom_weights(self):
        classes = [lp("a", "50"), lp("b", "50"), gp("sponsor", "100")]
        outcome = allocate(
            Decimal("100"), Decimal("1000"), classes,
            split_type="custom",
            custom_weights={"a": Decimal("3"), "b": Decimal("1"), "sponsor": Decimal("1")},
        )

        assert outcome.amounts["a"] == Decimal("750")
        assert outcome.amounts["b"] == Decimal("250")
        assert outcome.amounts["sponsor"] == Decimal("100")

    def test_custom_weights_missing_class_gets_zero(self):
        classes = [lp("a"), lp("b")]
        outcome = allocate(
            Decimal("0"), Decimal("1000"), classes,
            split_type="custom", custom_weights={"a": Decimal("1")},
        )

        assert outcome.amounts == {"a": Decimal("1000"), "b": Decimal("0")}

    def test_remainder_goes_to_last_weighted_class(self):
        """Thirds do not divide exactly; the last class absorbs the remainder."""
        amounts, reason = split_side(Decimal("100"), [lp("a"), lp("b"), lp("c")], "equal")

        assert reason == ""
        assert sum(amounts.values(), Decimal("0")) == Decimal("100")
        assert amounts["c"] == Decimal("100") - amounts["a"] - amounts["b"]


# =============================================================================
# Warnings
# =============================================================================

class TestUnallocatableShares:
    """Money with no eligible class stays unallocated and is reported."""

    def test_no_gp_class(self):
        classes = [lp("a", "100")]
        outcome = allocate(Decimal("200"), Decimal("800"), classes, tier_id="carry", tier_name="Carry")

        assert outcome.amounts == {"a": Decimal("800")}
        assert outcome.unallocated == Decimal("200")
        assert len(outcome.warnings) == 1

        warning = outcome.warnings[0]
        assert warning.tier_id == "carry"
        assert warning.tier_name == "Carry"
        assert warning.side == "gp"
        assert warning.amount == Decimal("200")
        assert "no investor classes" in warning.reason

    def test_zero_ownership_on_side(self):
        classes = [lp("a", "0"), lp("b", "0")]
        outcome = allocate(Decimal("0"), Decimal("500"), classes, tier_id="roc")

        assert outcome.unallocated == Decimal("500")
        assert outcome.warnings[0].side == "lp"
        assert "sum to zero" in outcome.warnings[0].reason

    def test_empty_side_with_zero_share_is_silent(self):
        outcome = allocate(Decimal("0"), Decimal("500"), [lp("a", "100")])

        assert outcome.warnings == []
        assert outcome.unallocated == Decimal("0")

    def test_warning_is_logged(self, caplog):
        with caplog.at_level("WARNING", logger="waterfall_domain.engine.allocation"):
            allocate(Decimal("10"), Decimal("0"), [lp("a", "100")], tier_id="carry")

        assert "unallocated" in caplog.text


def test_waterfall_reports_unallocated_gp_carry():
    """A scenario with no GP class still evaluates; carry is flagged, not lost."""
    scenario = WaterfallScenario(
        exit_value=Decimal("15000000"),
        total_invested=Decimal("10000000"),
        tiers=[
            ReturnOfCapitalTier(id="roc", name="ROC", order=1),
            CarryTier(id="carry", name="Carry", order=2),
        ],
        investor_classes=[lp("lps", "100")],
    )
    result = evaluate_waterfall(scenario)

    assert result.tier_result("carry").gp_share == Decimal("1000000")
    assert result.total_gp_carry == Decimal("1000000")
    assert result.unallocated_amount == Decimal("1000000")
    assert [(w.tier_id, w.side) for w in result.allocation_warnings] == [("carry", "gp")]
    assert result.investor_class_results["lps"].returned == Decimal("14000000")


def test_classes_reported_in_display_order():
    scenario = WaterfallScenario(
        exit_value=Decimal("100"),
        total_invested=Decimal("100"),
        tiers=[ReturnOfCapitalTier(id="roc", name="ROC", order=1)],
        investor_classes=[
            lp("late", "50", order=2),
            gp("sponsor", "100", order=0),
            lp("early", "50", order=1),
        ],
    )
    result = evaluate_waterfall(scenario)

    assert list(result.investor_class_results) == ["sponsor", "early", "late"]


@pytest.mark.parametrize("split_type", ["pro-rata", "equal"])
def test_split_conserves_share(split_type):
    classes = [lp("a", "33.3"), lp("b", "33.3"), lp("c", "33.4")]
    amounts, _ = split_side(Decimal("1000000.01"), classes, split_type)

    assert sum(amounts.values(), Decimal("0")) == Decimal("1000000.01")
