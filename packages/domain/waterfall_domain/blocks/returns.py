"""Returns computation block.

Return metrics per investor class and per side (GP / LP) from a waterfall
result.

Metrics:
- MOIC (Multiple on Invested Capital): returned / invested
- Net return: returned - invested
- Carry: GP amounts from profit tiers
"""

from typing import List

import pandas as pd

from .base import Block, BlockContext
from ..schemas import WaterfallDistributionResult

CLASS_COLUMNS = [
    "investor_class_id",
    "investor_class_name",
    "type",
    "invested",
    "returned",
    "net_return",
    "moic",
    "carry",
]


class ReturnsBlock(Block):
    """Computes return metrics from a waterfall result.

    Inputs (from context):
        - waterfall_result: WaterfallDistributionResult (from WaterfallBlock)

    Outputs (to context):
        - returns_by_class: one row per investor class:
            * investor_class_id, investor_class_name, type
            * invested, returned, net_return
            * moic: None when nothing was invested
            * carry

        - returns_by_side: one row per side ("gp", "lp") with summed
          invested / returned and the side's MOIC

        - returns_summary: single row:
            * total_invested, total_distributed
            * aggregate_moic
            * lp_multiple, gp_carry_percentage

    Example:
        executor = BlockExecutor([WaterfallBlock(), ReturnsBlock()])
        executor.execute(context)

        context.get("returns_by_class")
    """

    def __init__(self, result_key: str = "waterfall_result"):
        self.result_key = result_key

    def inputs(self) -> List[str]:
        return [self.result_key]

    def outputs(self) -> List[str]:
        return [
            "returns_by_class",
            "returns_by_side",
            "returns_summary",
        ]

    def execute(self, context: BlockContext) -> None:
        result: WaterfallDistributionResult = context.get(self.result_key)

        by_class_df = self._compute_by_class(result)
        context.set("returns_by_class", by_class_df)
        context.set("returns_by_side", self._compute_by_side(by_class_df))
        context.set("returns_summary", self._compute_summary(result))

    def _compute_by_class(self, result: WaterfallDistributionResult) -> pd.DataFrame:
        rows = []
        for class_result in result.investor_class_results.values():
            invested = class_result.invested
            rows.append({
                "investor_class_id": class_result.investor_class_id,
                "investor_class_name": class_result.investor_class_name,
                "type": class_result.type,
                "invested": float(invested),
                "returned": float(class_result.returned),
                "net_return": float(class_result.net_return),
                "moic": float(class_result.multiple) if invested > 0 else None,
                "carry": float(class_result.carry),
            })
        return pd.DataFrame(rows, columns=CLASS_COLUMNS)

    def _compute_by_side(self, by_class_df: pd.DataFrame) -> pd.DataFrame:
        if by_class_df.empty:
            return pd.DataFrame(columns=["type", "invested", "returned", "moic"])

        by_side = by_class_df.groupby("type").agg({
            "invested": "sum",
            "returned": "sum",
        }).reset_index()

        by_side["moic"] = by_side.apply(
            lambda row: row["returned"] / row["invested"] if row["invested"] > 0 else None,
            axis=1,
        )
        return by_side

    def _compute_summary(self, result: WaterfallDistributionResult) -> pd.DataFrame:
        total_invested = float(result.total_invested)
        total_distributed = float(result.total_distributed)

        return pd.DataFrame([{
            "total_invested": total_invested,
            "total_distributed": total_distributed,
            "aggregate_moic": total_distributed / total_invested if total_invested > 0 else None,
            "lp_multiple": float(result.lp_multiple),
            "gp_carry_percentage": float(result.gp_carry_percentage),
        }])
