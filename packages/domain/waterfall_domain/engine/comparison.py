"""Side-by-side comparison of scenarios."""

from typing import Iterable

from ..schemas.results import ScenarioComparison, ScenarioComparisonEntry
from .waterfall import ScenarioInput, as_scenario, evaluate_waterfall


def compare_scenarios(scenarios: Iterable[ScenarioInput]) -> ScenarioComparison:
    """Evaluate each scenario and collect its headline metrics, in input order."""
    entries = []
    for item in scenarios:
        scenario = as_scenario(item)
        result = evaluate_waterfall(scenario)
        entries.append(ScenarioComparisonEntry(
            scenario_id=scenario.id,
            scenario_name=scenario.name or scenario.id,
            gp_carry=result.total_gp_carry,
            lp_return=result.total_lp_return,
            total_multiple=result.total_multiple,
        ))
    return ScenarioComparison(entries=entries)
