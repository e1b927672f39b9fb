"""Sensitivity computation block."""

from typing import List

import pandas as pd

from .base import Block, BlockContext
from ..engine import analyze_with_cfg
from ..schemas import SensitivityCFG, WaterfallScenario

CURVE_COLUMNS = [
    "exit_value",
    "gp_carry",
    "gp_carry_percentage",
    "lp_return",
    "lp_multiple",
    "total_multiple",
]

BREAK_EVEN_COLUMNS = ["tier_id", "tier_name", "exit_value"]


class SensitivityBlock(Block):
    """Sweeps the scenario's exit value.

    Inputs (from context):
        - waterfall_scenario: WaterfallScenario
        - sensitivity_cfg: SensitivityCFG with the sweep range and steps

    Outputs (to context):
        - sensitivity_result: SensitivityAnalysisResult
        - sensitivity_curve: one row per sampled exit value (ascending)
        - break_even_points: one row per tier activated within the range,
          in tier order
    """

    def __init__(
        self,
        scenario_key: str = "waterfall_scenario",
        config_key: str = "sensitivity_cfg",
    ):
        self.scenario_key = scenario_key
        self.config_key = config_key

    def inputs(self) -> List[str]:
        return [self.scenario_key, self.config_key]

    def outputs(self) -> List[str]:
        return [
            "sensitivity_result",
            "sensitivity_curve",
            "break_even_points",
        ]

    def execute(self, context: BlockContext) -> None:
        scenario: WaterfallScenario = context.get(self.scenario_key)
        cfg: SensitivityCFG = context.get(self.config_key)

        analysis = analyze_with_cfg(scenario, cfg)

        curve_df = pd.DataFrame(
            [
                {column: float(getattr(point, column)) for column in CURVE_COLUMNS}
                for point in analysis.data_points
            ],
            columns=CURVE_COLUMNS,
        )
        break_even_df = pd.DataFrame(
            [
                {
                    "tier_id": point.tier_id,
                    "tier_name": point.tier_name,
                    "exit_value": float(point.exit_value),
                }
                for point in analysis.break_even_points
            ],
            columns=BREAK_EVEN_COLUMNS,
        )

        context.set("sensitivity_result", analysis)
        context.set("sensitivity_curve", curve_df)
        context.set("break_even_points", break_even_df)
