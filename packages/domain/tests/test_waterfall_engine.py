"""Tests for the waterfall distribution pipeline.

Tests cover:
1. The standard four-tier European waterfall (golden figures)
2. Conservation of proceeds across tiers and investor classes
3. Tier boundaries (exit exactly at ROC, inside pref, inside catch-up)
4. Ordering, idempotence and monotonicity of GP carry and LP return
5. Degenerate scenarios (no tiers, no consuming final tier, zero exit)
6. Input validation before computation
"""

from decimal import Decimal

import pytest

from waterfall_domain.engine import evaluate_waterfall, within_tolerance
from waterfall_domain.errors import WaterfallValidationError
from waterfall_domain.schemas import (
    CarryTier,
    CatchUpTier,
    CustomTier,
    InvestorClass,
    PreferredReturnTier,
    ReturnOfCapitalTier,
    WaterfallScenario,
)


# =============================================================================
# Test Data Builders
# =============================================================================

def standard_tiers():
    """ROC($10M) → 8% pref → 100% catch-up to 20% → 20/80 carry."""
    return [
        ReturnOfCapitalTier(id="roc", name="Return of Capital", order=1,
                            threshold=Decimal("10000000")),
        PreferredReturnTier(id="pref", name="Preferred Return", order=2,
                            hurdle_rate=Decimal("8")),
        CatchUpTier(id="catch_up", name="GP Catch-up", order=3,
                    catch_up_target_percentage=Decimal("20")),
        CarryTier(id="carry", name="Carried Interest", order=4,
                  gp_carry_percentage=Decimal("20"), lp_percentage=Decimal("80")),
    ]


def standard_classes():
    """Two LP cohorts (60/40) and one GP entity."""
    return [
        InvestorClass(id="lp_a", name="LP Fund A", type="lp", ownership_percentage=Decimal("60"),
                      commitment=Decimal("6000000"), capital_called=Decimal("6000000"), order=1),
        InvestorClass(id="lp_b", name="LP Fund B", type="lp", ownership_percentage=Decimal("40"),
                      commitment=Decimal("4000000"), capital_called=Decimal("4000000"), order=2),
        InvestorClass(id="gp", name="General Partner", type="gp", ownership_percentage=Decimal("100"),
                      order=3),
    ]


def build_scenario(exit_value="15000000", **overrides) -> WaterfallScenario:
    fields = dict(
        id="base_case",
        name="Base Case",
        model="european",
        exit_value=Decimal(exit_value),
        total_invested=Decimal("10000000"),
        tiers=standard_tiers(),
        investor_classes=standard_classes(),
    )
    fields.update(overrides)
    return WaterfallScenario(**fields)


# =============================================================================
# Golden Scenario
# =============================================================================

class TestStandardEuropeanWaterfall:
    """Invested $10M, exit $15M through ROC / 8% pref / catch-up / 20% carry.

    Expected:
    - ROC: $10M to LP
    - Pref: $800K to LP (8% of $10M)
    - Catch-up: $200K to GP (0.2 * 800K / 0.8)
    - Carry: $4M remaining → $800K GP, $3.2M LP

    GP total $1M (6.67% of exit, 20% of profit), LP total $14M (1.4x).
    """

    def test_tier_amounts(self):
        result = evaluate_waterfall(build_scenario())

        roc = result.tier_result("roc")
        assert roc.lp_share == Decimal("10000000")
        assert roc.gp_share == Decimal("0")
        assert roc.cumulative_remaining_after == Decimal("5000000")

        pref = result.tier_result("pref")
        assert pref.lp_share == Decimal("800000")
        assert pref.gp_share == Decimal("0")

        catch_up = result.tier_result("catch_up")
        assert catch_up.gp_share == Decimal("200000")
        assert catch_up.lp_share == Decimal("0")

        carry = result.tier_result("carry")
        assert carry.gp_share == Decimal("800000")
        assert carry.lp_share == Decimal("3200000")
        assert carry.cumulative_remaining_after == Decimal("0")

    def test_summary_metrics(self):
        result = evaluate_waterfall(build_scenario())

        assert result.total_gp_carry == Decimal("1000000")
        assert result.total_lp_return == Decimal("14000000")
        assert within_tolerance(result.gp_carry_percentage, Decimal("6.666666667"))
        assert within_tolerance(result.gp_carry_percentage_of_profit, Decimal("20"))
        assert within_tolerance(result.lp_multiple, Decimal("1.4"))
        assert result.total_multiple == Decimal("1.5")
        assert result.undistributed_proceeds == Decimal("0")
        assert result.unallocated_amount == Decimal("0")
        assert result.allocation_warnings == []

    def test_tier_results_follow_processing_order(self):
        result = evaluate_waterfall(build_scenario())
        assert list(result.tier_results) == ["roc", "pref", "catch_up", "carry"]

    def test_investor_class_allocations(self):
        """LP shares split 60/40 by ownership, all GP shares to the GP class."""
        result = evaluate_waterfall(build_scenario())

        lp_a = result.investor_class_results["lp_a"]
        assert lp_a.amount_from_tier("roc") == Decimal("6000000")
        assert lp_a.amount_from_tier("pref") == Decimal("480000")
        assert lp_a.amount_from_tier("carry") == Decimal("1920000")
        assert lp_a.amount_from_tier("catch_up") == Decimal("0")
        assert lp_a.returned == Decimal("8400000")
        assert lp_a.invested == Decimal("6000000")
        assert lp_a.multiple == Decimal("1.4")
        assert lp_a.net_return == Decimal("2400000")
        assert lp_a.carry == Decimal("0")

        lp_b = result.investor_class_results["lp_b"]
        assert lp_b.returned == Decimal("5600000")

        gp = result.investor_class_results["gp"]
        assert gp.returned == Decimal("1000000")
        assert gp.carry == Decimal("1000000")
        assert gp.amount_from_tier("catch_up") == Decimal("200000")
        assert gp.multiple == Decimal("0")

    def test_allocation_percentages_of_tier(self):
        result = evaluate_waterfall(build_scenario())

        roc_allocations = {
            a.investor_class_id: a.percentage
            for a in result.investor_class_results["lp_a"].allocations
            if a.tier_id == "roc"
        }
        assert roc_allocations == {"lp_a": Decimal("60")}

        carry_gp = [a for a in result.investor_class_results["gp"].allocations if a.tier_id == "carry"]
        assert carry_gp[0].percentage == Decimal("20")

    def test_zero_amount_allocations_are_omitted(self):
        result = evaluate_waterfall(build_scenario())
        gp_tiers = [a.tier_id for a in result.investor_class_results["gp"].allocations]
        assert gp_tiers == ["catch_up", "carry"]


# =============================================================================
# Conservation
# =============================================================================

@pytest.mark.parametrize("exit_value", [
    "0", "1", "5000000", "10000000", "10500000", "10900000", "15000000", "123456789.37",
])
def test_tiers_conserve_exit_value(exit_value):
    """Every dollar of exit value lands in exactly one tier."""
    result = evaluate_waterfall(build_scenario(exit_value))

    assert result.total_distributed + result.undistributed_proceeds == Decimal(exit_value)
    for tier_result in result.tier_results.values():
        assert tier_result.gp_share >= 0
        assert tier_result.lp_share >= 0


@pytest.mark.parametrize("exit_value", ["2500000", "10900000", "15000000", "98765432.10"])
def test_class_allocations_conserve_tier_amounts(exit_value):
    """Per tier, class allocations add up to the tier's GP + LP shares."""
    result = evaluate_waterfall(build_scenario(exit_value))

    for tier_id, tier_result in result.tier_results.items():
        allocated = sum(
            (cr.amount_from_tier(tier_id) for cr in result.investor_class_results.values()),
            Decimal("0"),
        )
        assert within_tolerance(allocated, tier_result.total)


def test_gp_and_lp_totals_add_up_to_distributed():
    result = evaluate_waterfall(build_scenario("42000000"))
    assert result.total_gp_carry + result.total_lp_return == result.total_distributed


# =============================================================================
# Tier Boundaries
# =============================================================================

class TestTierBoundaries:
    """Exits landing exactly on, or inside, each tier."""

    def test_exit_below_invested_capital(self):
        """Exit $6M: ROC takes everything, later tiers are zero."""
        result = evaluate_waterfall(build_scenario("6000000"))

        assert result.tier_result("roc").lp_share == Decimal("6000000")
        for tier_id in ("pref", "catch_up", "carry"):
            assert result.tier_result(tier_id).total == Decimal("0")
        assert result.total_gp_carry == Decimal("0")
        assert result.gp_carry_percentage == Decimal("0")

    def test_exit_exactly_at_invested_capital(self):
        result = evaluate_waterfall(build_scenario("10000000"))

        assert result.tier_result("roc").total == Decimal("10000000")
        assert result.tier_result("pref").total == Decimal("0")
        assert result.tier_result("roc").cumulative_remaining_after == Decimal("0")

    def test_exit_exactly_covers_preferred_return(self):
        """Exit $10.8M: pref fully paid, catch-up receives nothing."""
        result = evaluate_waterfall(build_scenario("10800000"))

        assert result.tier_result("pref").lp_share == Decimal("800000")
        assert result.tier_result("catch_up").total == Decimal("0")
        assert result.tier_result("carry").total == Decimal("0")

    def test_exit_inside_catch_up(self):
        """Exit $10.9M: catch-up gets the remaining $100K of its $200K."""
        result = evaluate_waterfall(build_scenario("10900000"))

        assert result.tier_result("catch_up").gp_share == Decimal("100000")
        assert result.tier_result("carry").total == Decimal("0")
        assert result.total_gp_carry == Decimal("100000")

    def test_zero_exit(self):
        result = evaluate_waterfall(build_scenario("0"))

        assert result.total_distributed == Decimal("0")
        assert result.gp_carry_percentage == Decimal("0")
        assert result.lp_multiple == Decimal("0")
        assert all(tr.total == 0 for tr in result.tier_results.values())


# =============================================================================
# Ordering, Idempotence, Monotonicity
# =============================================================================

def test_tiers_processed_by_order_not_list_position():
    shuffled = list(reversed(standard_tiers()))
    in_order = evaluate_waterfall(build_scenario())
    reordered = evaluate_waterfall(build_scenario(tiers=shuffled))

    assert list(reordered.tier_results) == ["roc", "pref", "catch_up", "carry"]
    assert reordered.tier_results == in_order.tier_results


def test_order_gaps_are_allowed():
    tiers = [
        ReturnOfCapitalTier(id="roc", name="ROC", order=10),
        CarryTier(id="carry", name="Carry", order=50),
    ]
    result = evaluate_waterfall(build_scenario("12000000", tiers=tiers))

    assert result.tier_result("roc").lp_share == Decimal("10000000")
    assert result.tier_result("carry").gp_share == Decimal("400000")


def test_evaluation_is_idempotent():
    scenario = build_scenario("27500000")
    assert evaluate_waterfall(scenario) == evaluate_waterfall(scenario)


def test_evaluation_does_not_mutate_scenario():
    scenario = build_scenario("27500000")
    before = scenario.model_dump()
    evaluate_waterfall(scenario)
    assert scenario.model_dump() == before


def test_gp_carry_and_lp_return_are_non_decreasing_in_exit_value():
    exits = [Decimal(v) * 500000 for v in range(0, 81)]
    results = [evaluate_waterfall(build_scenario(str(e))) for e in exits]

    for lower, higher in zip(results, results[1:]):
        assert higher.total_gp_carry >= lower.total_gp_carry
        assert higher.total_lp_return >= lower.total_lp_return


# =============================================================================
# Degenerate Scenarios
# =============================================================================

class TestDegenerateScenarios:
    """Scenarios where part of the exit value is never distributed."""

    def test_no_tiers(self):
        result = evaluate_waterfall(build_scenario("5000000", tiers=[]))

        assert result.tier_results == {}
        assert result.total_distributed == Decimal("0")
        assert result.undistributed_proceeds == Decimal("5000000")
        assert result.total_gp_carry == Decimal("0")

    def test_final_tier_does_not_consume_pool(self):
        """Only a ROC tier: proceeds above invested capital stay undistributed."""
        tiers = [ReturnOfCapitalTier(id="roc", name="ROC", order=1)]
        result = evaluate_waterfall(build_scenario("15000000", tiers=tiers))

        assert result.tier_result("roc").lp_share == Decimal("10000000")
        assert result.undistributed_proceeds == Decimal("5000000")

    def test_roc_without_threshold_uses_total_invested(self):
        tiers = [
            ReturnOfCapitalTier(id="roc", name="ROC", order=1),
            CarryTier(id="carry", name="Carry", order=2),
        ]
        result = evaluate_waterfall(build_scenario("14000000", tiers=tiers))

        assert result.tier_result("roc").lp_share == Decimal("10000000")
        assert result.tier_result("carry").gp_share == Decimal("800000")

    def test_uncapped_custom_tier_consumes_pool(self):
        tiers = [
            ReturnOfCapitalTier(id="roc", name="ROC", order=1),
            CustomTier(id="bonus", name="Bonus Split", order=2, gp_carry_percentage=Decimal("50")),
        ]
        result = evaluate_waterfall(build_scenario("12000000", tiers=tiers))

        assert result.tier_result("bonus").gp_share == Decimal("1000000")
        assert result.tier_result("bonus").lp_share == Decimal("1000000")
        assert result.undistributed_proceeds == Decimal("0")


def test_management_fees_are_reported_not_distributed():
    result = evaluate_waterfall(build_scenario(management_fees=Decimal("250000")))

    assert result.gp_management_fees == Decimal("250000")
    assert result.total_distributed == Decimal("15000000")


# =============================================================================
# Input Handling and Validation
# =============================================================================

def test_accepts_plain_mapping():
    """A scenario loaded as JSON-like data is validated on the way in."""
    data = {
        "id": "from_store",
        "exit_value": "15000000",
        "total_invested": "10000000",
        "tiers": [
            {"type": "roc", "id": "roc", "name": "ROC", "order": 1},
            {"type": "preferred-return", "id": "pref", "name": "Pref", "order": 2, "hurdle_rate": "8"},
            {"type": "catch-up", "id": "catch_up", "name": "Catch-up", "order": 3},
            {"type": "carry", "id": "carry", "name": "Carry", "order": 4},
        ],
        "investor_classes": [
            {"id": "lp", "name": "LPs", "type": "lp", "ownership_percentage": "100"},
            {"id": "gp", "name": "GP", "type": "gp", "ownership_percentage": "100"},
        ],
    }
    result = evaluate_waterfall(data)

    assert result.scenario_id == "from_store"
    assert result.tier_result("catch_up").gp_share == Decimal("200000")
    assert result.total_gp_carry == Decimal("1000000")


def test_rejects_non_scenario_input():
    with pytest.raises(WaterfallValidationError):
        evaluate_waterfall(["not", "a", "scenario"])


class TestValidation:
    """Malformed scenarios are rejected before anything is computed."""

    def test_negative_exit_value(self):
        with pytest.raises(ValueError):
            build_scenario("-1")

    def test_negative_total_invested(self):
        with pytest.raises(ValueError):
            build_scenario(total_invested=Decimal("-10"))

    def test_duplicate_tier_order(self):
        tiers = [
            ReturnOfCapitalTier(id="roc", name="ROC", order=1),
            CarryTier(id="carry", name="Carry", order=1),
        ]
        with pytest.raises(ValueError, match="order"):
            build_scenario(tiers=tiers)

    def test_duplicate_tier_id(self):
        tiers = [
            ReturnOfCapitalTier(id="t", name="ROC", order=1),
            CarryTier(id="t", name="Carry", order=2),
        ]
        with pytest.raises(ValueError, match="Tier ids"):
            build_scenario(tiers=tiers)

    def test_preferred_return_requires_hurdle(self):
        with pytest.raises(ValueError, match="hurdle_rate"):
            PreferredReturnTier(id="pref", name="Pref", order=2)

    def test_split_percentages_must_sum_to_100(self):
        with pytest.raises(ValueError, match="sum to 100"):
            CarryTier(id="carry", name="Carry", order=4,
                      gp_carry_percentage=Decimal("20"), lp_percentage=Decimal("70"))

    def test_percentage_above_100(self):
        with pytest.raises(ValueError):
            CarryTier(id="carry", name="Carry", order=4, gp_carry_percentage=Decimal("120"))

    def test_unknown_tier_type(self):
        with pytest.raises(ValueError):
            WaterfallScenario.model_validate({
                "exit_value": "1",
                "total_invested": "1",
                "tiers": [{"type": "bonus", "id": "x", "name": "X", "order": 1}],
            })

    def test_unknown_model(self):
        with pytest.raises(ValueError):
            build_scenario(model="asian")

    def test_custom_weights_must_name_known_classes(self):
        tiers = [
            CarryTier(id="carry", name="Carry", order=1, split_type="custom",
                      custom_weights={"lp_a": Decimal("1"), "ghost": Decimal("1")}),
        ]
        with pytest.raises(ValueError, match="ghost"):
            build_scenario(tiers=tiers)

    def test_scenarios_are_immutable(self):
        scenario = build_scenario()
        with pytest.raises(ValueError):
            scenario.exit_value = Decimal("1")
