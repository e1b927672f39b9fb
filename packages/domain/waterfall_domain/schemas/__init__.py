"""Waterfall domain schemas.

This package contains all Pydantic models for the waterfall domain layer:
- Base types and conventions
- Waterfall tiers (discriminated union)
- Investor classes
- Scenarios, blended weights, clawback and lookback provisions
- Distribution, sensitivity and comparison results
- Sensitivity and workbook configuration

Usage:
    from waterfall_domain.schemas import (
        WaterfallScenario, InvestorClass,
        ReturnOfCapitalTier, PreferredReturnTier, CatchUpTier, CarryTier,
        SensitivityCFG, WaterfallWorkbookCFG,
    )
"""

# Base types
from .base import (
    DomainModel,
    MoneyAmount,
    PercentagePoints,
    Multiple,
    Weight,
    TierId,
    InvestorClassId,
    ScenarioId,
)

# Tiers
from .tiers import (
    TierBase,
    ReturnOfCapitalTier,
    PreferredReturnTier,
    CatchUpTier,
    CarryTier,
    CustomTier,
    WaterfallTier,
    SplitType,
    TierType,
)

# Investor classes
from .investors import (
    InvestorClass,
    InvestorType,
    InvestedBasis,
)

# Scenario
from .scenario import (
    WaterfallScenario,
    WaterfallModel,
    BlendedWaterfallConfig,
    ClawbackProvision,
    LookbackProvision,
)

# Results
from .results import (
    TierResult,
    TierAllocation,
    AllocationWarning,
    InvestorClassResult,
    ClawbackSummary,
    LookbackSummary,
    WaterfallDistributionResult,
    SensitivityDataPoint,
    BreakEvenPoint,
    SensitivityAnalysisResult,
    ScenarioComparisonEntry,
    ScenarioComparison,
)

# Configuration
from .workbook import (
    SensitivityCFG,
    WaterfallWorkbookCFG,
)

__all__ = [
    # Base types
    "DomainModel",
    "MoneyAmount",
    "PercentagePoints",
    "Multiple",
    "Weight",
    "TierId",
    "InvestorClassId",
    "ScenarioId",
    # Tiers
    "TierBase",
    "ReturnOfCapitalTier",
    "PreferredReturnTier",
    "CatchUpTier",
    "CarryTier",
    "CustomTier",
    "WaterfallTier",
    "SplitType",
    "TierType",
    # Investor classes
    "InvestorClass",
    "InvestorType",
    "InvestedBasis",
    # Scenario
    "WaterfallScenario",
    "WaterfallModel",
    "BlendedWaterfallConfig",
    "ClawbackProvision",
    "LookbackProvision",
    # Results
    "TierResult",
    "TierAllocation",
    "AllocationWarning",
    "InvestorClassResult",
    "ClawbackSummary",
    "LookbackSummary",
    "WaterfallDistributionResult",
    "SensitivityDataPoint",
    "BreakEvenPoint",
    "SensitivityAnalysisResult",
    "ScenarioComparisonEntry",
    "ScenarioComparison",
    # Configuration
    "SensitivityCFG",
    "WaterfallWorkbookCFG",
]
