"""Sensitivity analysis across exit values.

Re-runs the full waterfall pipeline at evenly spaced exit values and records
GP carry / LP multiple at each sample, plus the first sampled exit value at
which each tier starts receiving proceeds (break-even).

Samples are independent of each other; each one evaluates a copy of the
scenario with only exit_value substituted.
"""

import logging
from decimal import Decimal
from typing import Dict, List

from ..errors import SensitivityValidationError
from ..schemas.results import (
    BreakEvenPoint,
    SensitivityAnalysisResult,
    SensitivityDataPoint,
    WaterfallDistributionResult,
)
from ..schemas.workbook import DEFAULT_SENSITIVITY_STEPS, SensitivityCFG
from .waterfall import ScenarioInput, as_scenario, evaluate_waterfall

logger = logging.getLogger(__name__)


def sample_exit_values(min_exit_value, max_exit_value, steps: int) -> List[Decimal]:
    """Evenly spaced exit values, both bounds included.

    The last sample is exactly max_exit_value.

    Raises:
        SensitivityValidationError: On a negative minimum, an empty range or
            fewer than two steps
    """
    if isinstance(steps, bool) or not isinstance(steps, int):
        raise SensitivityValidationError(f"steps must be an integer, got {steps!r}")
    if steps < 2:
        raise SensitivityValidationError(f"steps must be at least 2, got {steps}")

    low = Decimal(str(min_exit_value))
    high = Decimal(str(max_exit_value))
    if low < 0:
        raise SensitivityValidationError(f"min_exit_value must be non-negative, got {low}")
    if high <= low:
        raise SensitivityValidationError(
            f"max_exit_value ({high}) must exceed min_exit_value ({low})"
        )

    step_size = (high - low) / (steps - 1)
    values = [low + step_size * i for i in range(steps - 1)]
    values.append(high)
    return values


def analyze(
    scenario: ScenarioInput,
    min_exit_value,
    max_exit_value,
    steps: int = DEFAULT_SENSITIVITY_STEPS,
) -> SensitivityAnalysisResult:
    """Sweep the scenario's exit value from min to max.

    Args:
        scenario: Scenario whose exit_value is replaced at each sample
        min_exit_value: First sample (inclusive)
        max_exit_value: Last sample (inclusive)
        steps: Number of samples (>= 2)

    Returns:
        SensitivityAnalysisResult with one data point per sample and
        break-even points for tiers activated within the range

    Example:
        analyze(scenario, 0, 30_000_000, steps=31)
        → data points at 0, 1M, ..., 30M; ROC breaks even at 1M
    """
    exit_values = sample_exit_values(min_exit_value, max_exit_value, steps)
    scenario = as_scenario(scenario)
    tiers = scenario.sorted_tiers()

    data_points: List[SensitivityDataPoint] = []
    first_active: Dict[str, Decimal] = {}

    for exit_value in exit_values:
        result = evaluate_waterfall(scenario.with_exit_value(exit_value))
        data_points.append(_data_point(result))
        for tier in tiers:
            if tier.id not in first_active and result.tier_results[tier.id].total > 0:
                first_active[tier.id] = exit_value

    break_even_points = [
        BreakEvenPoint(tier_id=tier.id, tier_name=tier.name, exit_value=first_active[tier.id])
        for tier in tiers
        if tier.id in first_active
    ]

    analysis = SensitivityAnalysisResult(
        scenario_id=scenario.id,
        min_exit_value=exit_values[0],
        max_exit_value=exit_values[-1],
        steps=steps,
        step_size=(exit_values[-1] - exit_values[0]) / (steps - 1),
        data_points=data_points,
        break_even_points=break_even_points,
    )

    logger.info(
        "sensitivity for scenario %s: %d samples from %s to %s, %d/%d tiers break even",
        scenario.id, steps, exit_values[0], exit_values[-1],
        len(break_even_points), len(tiers),
    )
    return analysis


def analyze_with_cfg(scenario: ScenarioInput, cfg: SensitivityCFG) -> SensitivityAnalysisResult:
    """Run analyze() with the range and steps from a SensitivityCFG."""
    return analyze(scenario, cfg.min_exit_value, cfg.max_exit_value, cfg.steps)


def _data_point(result: WaterfallDistributionResult) -> SensitivityDataPoint:
    return SensitivityDataPoint(
        exit_value=result.exit_value,
        gp_carry=result.total_gp_carry,
        gp_carry_percentage=result.gp_carry_percentage,
        lp_return=result.total_lp_return,
        lp_multiple=result.lp_multiple,
        total_multiple=result.total_multiple,
    )
