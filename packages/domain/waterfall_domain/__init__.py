"""Fund Waterfall Domain Engine - Core domain models and distribution logic.

This package provides the foundational layer for fund waterfall modeling:
- Ordered distribution tiers (return of capital, preferred return, catch-up, carry)
- GP and LP investor classes with pro-rata, equal or custom splits
- European, American and blended waterfall models
- Sensitivity analysis and break-even points across exit values
- Clawback and lookback summaries

The domain layer is designed to be:
- Framework-agnostic (no web dependencies)
- Deterministic (pure functions over immutable Pydantic snapshots)
- Testable (pure Python with Pydantic validation)
"""

from .schemas import *  # noqa: F403, F401
from .errors import WaterfallValidationError, SensitivityValidationError  # noqa: F401
from .engine import evaluate_waterfall, run_sensitivity_analysis, compare_scenarios  # noqa: F401

__version__ = "0.1.0"
