"""Computation blocks for waterfall analysis.

This package turns engine results into DataFrames suitable for Excel
rendering or other consumption.

Architecture:
    Schemas (data models) → Engine (distribution) → Blocks → DataFrames

Key concepts:
- Each block declares the context keys it reads and writes
- BlockExecutor runs blocks in dependency order
- All tabular outputs are pandas DataFrames

Available blocks:
- WaterfallBlock: tier-by-tier distribution and class allocations
- ReturnsBlock: MOIC / net return per investor class and side
- SensitivityBlock: GP carry curve and break-even points across exit values

Usage:
    from waterfall_domain.blocks import BlockContext, BlockExecutor, WaterfallBlock, ReturnsBlock

    context = BlockContext()
    context.set("waterfall_scenario", scenario)

    BlockExecutor([WaterfallBlock(), ReturnsBlock()]).execute(context)

    tiers_df = context.get("waterfall_tiers")
    returns_df = context.get("returns_by_class")
"""

from .base import Block, BlockExecutor, BlockContext, CircularDependencyError, topological_sort
from .waterfall import WaterfallBlock
from .returns import ReturnsBlock
from .sensitivity import SensitivityBlock

__all__ = [
    "Block",
    "BlockExecutor",
    "BlockContext",
    "CircularDependencyError",
    "topological_sort",
    "WaterfallBlock",
    "ReturnsBlock",
    "SensitivityBlock",
]
