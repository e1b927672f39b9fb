"""Waterfall computation block.

Runs the distribution pipeline for a scenario and lays the result out as
DataFrames: one row per tier, one row per (class, tier) allocation, a
class-by-tier matrix and a single-row summary.
"""

from typing import List

import pandas as pd

from .base import Block, BlockContext
from ..engine import evaluate_waterfall
from ..schemas import WaterfallDistributionResult, WaterfallScenario

TIER_COLUMNS = [
    "order",
    "tier_id",
    "tier_name",
    "tier_type",
    "gp_share",
    "lp_share",
    "total",
    "cumulative_remaining_after",
]

ALLOCATION_COLUMNS = [
    "tier_id",
    "tier_name",
    "investor_class_id",
    "investor_class_name",
    "amount",
    "percentage_of_tier",
]


class WaterfallBlock(Block):
    """Computes the tier-by-tier waterfall for a scenario.

    Inputs (from context):
        - waterfall_scenario: WaterfallScenario to evaluate

    Outputs (to context):
        - waterfall_result: WaterfallDistributionResult (for downstream blocks)

        - waterfall_tiers: one row per tier in processing order:
            * order, tier_id, tier_name, tier_type
            * gp_share, lp_share, total
            * cumulative_remaining_after: pool left after the tier

        - waterfall_allocations: one row per class receiving money from a tier:
            * tier_id, tier_name, investor_class_id, investor_class_name
            * amount
            * percentage_of_tier: share of the tier's total (points)

        - waterfall_by_class: class x tier matrix of amounts, one column per
          tier id plus a `total` column, indexed by investor_class_id

        - waterfall_summary: single row of headline metrics

    Example:
        context = BlockContext()
        context.set("waterfall_scenario", scenario)

        WaterfallBlock().execute(context)
        context.get("waterfall_tiers")
    """

    def __init__(self, scenario_key: str = "waterfall_scenario"):
        self.scenario_key = scenario_key

    def inputs(self) -> List[str]:
        return [self.scenario_key]

    def outputs(self) -> List[str]:
        return [
            "waterfall_result",
            "waterfall_tiers",
            "waterfall_allocations",
            "waterfall_by_class",
            "waterfall_summary",
        ]

    def execute(self, context: BlockContext) -> None:
        scenario: WaterfallScenario = context.get(self.scenario_key)
        result = evaluate_waterfall(scenario)

        allocations_df = self._allocations_frame(result)

        context.set("waterfall_result", result)
        context.set("waterfall_tiers", self._tiers_frame(result))
        context.set("waterfall_allocations", allocations_df)
        context.set("waterfall_by_class", self._by_class_frame(result, allocations_df))
        context.set("waterfall_summary", self._summary_frame(result))

    def _tiers_frame(self, result: WaterfallDistributionResult) -> pd.DataFrame:
        rows = [
            {
                "order": tr.order,
                "tier_id": tr.tier_id,
                "tier_name": tr.tier_name,
                "tier_type": tr.tier_type,
                "gp_share": float(tr.gp_share),
                "lp_share": float(tr.lp_share),
                "total": float(tr.total),
                "cumulative_remaining_after": float(tr.cumulative_remaining_after),
            }
            for tr in result.tier_results.values()
        ]
        return pd.DataFrame(rows, columns=TIER_COLUMNS)

    def _allocations_frame(self, result: WaterfallDistributionResult) -> pd.DataFrame:
        rows = []
        for class_result in result.investor_class_results.values():
            for allocation in class_result.allocations:
                rows.append({
                    "tier_id": allocation.tier_id,
                    "tier_name": allocation.tier_name,
                    "investor_class_id": allocation.investor_class_id,
                    "investor_class_name": allocation.investor_class_name,
                    "amount": float(allocation.amount),
                    "percentage_of_tier": float(allocation.percentage),
                })
        return pd.DataFrame(rows, columns=ALLOCATION_COLUMNS)

    def _by_class_frame(
        self,
        result: WaterfallDistributionResult,
        allocations_df: pd.DataFrame,
    ) -> pd.DataFrame:
        """Pivot allocations to classes (rows) x tiers (columns)."""
        class_ids = list(result.investor_class_results.keys())
        tier_ids = list(result.tier_results.keys())

        if allocations_df.empty:
            matrix = pd.DataFrame(0.0, index=class_ids, columns=tier_ids)
        else:
            matrix = allocations_df.pivot_table(
                index="investor_class_id",
                columns="tier_id",
                values="amount",
                aggfunc="sum",
                fill_value=0.0,
            ).reindex(index=class_ids, columns=tier_ids, fill_value=0.0)

        matrix.index.name = "investor_class_id"
        matrix.columns.name = None
        matrix["total"] = matrix[tier_ids].sum(axis=1) if tier_ids else 0.0
        return matrix

    def _summary_frame(self, result: WaterfallDistributionResult) -> pd.DataFrame:
        return pd.DataFrame([{
            "scenario_id": result.scenario_id,
            "model": result.model,
            "exit_value": float(result.exit_value),
            "total_invested": float(result.total_invested),
            "total_gp_carry": float(result.total_gp_carry),
            "total_lp_return": float(result.total_lp_return),
            "gp_carry_percentage": float(result.gp_carry_percentage),
            "gp_carry_percentage_of_profit": float(result.gp_carry_percentage_of_profit),
            "lp_multiple": float(result.lp_multiple),
            "total_multiple": float(result.total_multiple),
            "undistributed_proceeds": float(result.undistributed_proceeds),
            "unallocated_amount": float(result.unallocated_amount),
            "allocation_warnings": len(result.allocation_warnings),
            "gp_management_fees": float(result.gp_management_fees),
        }])
