"""Waterfall distribution and sensitivity engine.

Pipeline:
    WaterfallScenario → Model Policy → Tier Evaluator → Investor Allocation
    → WaterfallDistributionResult

Entry points:
- evaluate_waterfall: one distribution at the scenario's exit value
- run_sensitivity_analysis: the same pipeline across a range of exit values
- compare_scenarios: headline metrics for several scenarios

Usage:
    from waterfall_domain.engine import evaluate_waterfall, run_sensitivity_analysis

    result = evaluate_waterfall(scenario)
    curve = run_sensitivity_analysis(scenario, 0, 30_000_000, steps=31)
"""

from .allocation import TierAllocationOutcome, allocate
from .comparison import compare_scenarios
from .constants import EPSILON, RELATIVE_TOLERANCE, within_tolerance
from .model_policy import ModelPolicy, resolve_policy
from .provisions import build_clawback_summary, build_lookback_summary
from .sensitivity import analyze, analyze_with_cfg, sample_exit_values
from .tier_evaluator import TierEvaluation, evaluate_tiers
from .waterfall import as_scenario, evaluate_waterfall

run_sensitivity_analysis = analyze

__all__ = [
    "evaluate_waterfall",
    "run_sensitivity_analysis",
    "analyze",
    "analyze_with_cfg",
    "sample_exit_values",
    "compare_scenarios",
    "as_scenario",
    "evaluate_tiers",
    "TierEvaluation",
    "allocate",
    "TierAllocationOutcome",
    "resolve_policy",
    "ModelPolicy",
    "build_clawback_summary",
    "build_lookback_summary",
    "EPSILON",
    "RELATIVE_TOLERANCE",
    "within_tolerance",
]
