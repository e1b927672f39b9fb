"""Base classes for computation blocks.

Blocks turn engine results into DataFrames for the workbook renderer or any
other consumer:
- Block: unit of computation declaring the context keys it reads and writes
- BlockContext: key/value store shared by the blocks of one run
- BlockExecutor: orders blocks by their dependencies and runs them
"""

import logging
from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


# =============================================================================
# Block Context
# =============================================================================

@dataclass
class BlockContext:
    """Data passed between blocks.

    Example:
        context = BlockContext()
        context.set("waterfall_scenario", scenario)

        WaterfallBlock().execute(context)
        tiers_df = context.get("waterfall_tiers")
    """

    _data: Dict[str, Any] = field(default_factory=dict)

    def get(self, key: str) -> Any:
        """Get value from context.

        Raises:
            KeyError: If key not found in context
        """
        if key not in self._data:
            raise KeyError(f"Key '{key}' not found in context. Available keys: {list(self._data.keys())}")
        return self._data[key]

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    def has(self, key: str) -> bool:
        return key in self._data

    def keys(self) -> List[str]:
        return list(self._data.keys())


# =============================================================================
# Block Base Class
# =============================================================================

class Block(ABC):
    """Abstract base class for computation blocks.

    A block declares its inputs (context keys it reads) and outputs (context
    keys it writes) so the executor can order it after the blocks producing
    its inputs.

    Subclass example:
        class TierTotalsBlock(Block):
            def inputs(self) -> List[str]:
                return ["waterfall_result"]

            def outputs(self) -> List[str]:
                return ["tier_totals"]

            def execute(self, context: BlockContext) -> None:
                result = context.get("waterfall_result")
                context.set("tier_totals", totals_frame(result))
    """

    @abstractmethod
    def inputs(self) -> List[str]:
        """Context keys this block reads."""
        pass

    @abstractmethod
    def outputs(self) -> List[str]:
        """Context keys this block writes."""
        pass

    @abstractmethod
    def execute(self, context: BlockContext) -> None:
        """Read inputs from context, compute, write outputs to context.

        Raises:
            KeyError: If required inputs not available in context
        """
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(inputs={self.inputs()}, outputs={self.outputs()})"


# =============================================================================
# Dependency Resolution
# =============================================================================

class CircularDependencyError(Exception):
    """Raised when blocks have circular dependencies."""
    pass


def topological_sort(blocks: List[Block]) -> List[Block]:
    """Sort blocks so every block runs after the producers of its inputs.

    Kahn's algorithm; blocks without dependencies keep their list order.
    Inputs no block produces must be supplied by the initial context.

    Raises:
        ValueError: If two blocks produce the same output key
        CircularDependencyError: If blocks depend on each other in a cycle

    Example:
        WaterfallBlock.outputs()  = ["waterfall_result", ...]
        ReturnsBlock.inputs()     = ["waterfall_result"]

        topological_sort([returns_block, waterfall_block])
        → [waterfall_block, returns_block]
    """
    producers: Dict[str, Block] = {}
    for block in blocks:
        for output_key in block.outputs():
            if output_key in producers:
                raise ValueError(
                    f"Multiple blocks produce '{output_key}': "
                    f"{producers[output_key]} and {block}"
                )
            producers[output_key] = block

    in_degree: Dict[Block, int] = {block: 0 for block in blocks}
    dependents: Dict[Block, List[Block]] = {block: [] for block in blocks}
    for block in blocks:
        for input_key in block.inputs():
            producer = producers.get(input_key)
            if producer is not None:
                dependents[producer].append(block)
                in_degree[block] += 1

    queue = deque(block for block in blocks if in_degree[block] == 0)
    ordered: List[Block] = []
    while queue:
        current = queue.popleft()
        ordered.append(current)
        for dependent in dependents[current]:
            in_degree[dependent] -= 1
            if in_degree[dependent] == 0:
                queue.append(dependent)

    if len(ordered) != len(blocks):
        stuck = [block for block in blocks if in_degree[block] > 0]
        raise CircularDependencyError(f"Circular dependency detected among blocks: {stuck}")

    return ordered


# =============================================================================
# Block Executor
# =============================================================================

class BlockExecutor:
    """Executes blocks in dependency order.

    Example:
        context = BlockContext()
        context.set("waterfall_scenario", scenario)
        context.set("sensitivity_cfg", SensitivityCFG.default_for(scenario))

        executor = BlockExecutor([ReturnsBlock(), SensitivityBlock(), WaterfallBlock()])
        executor.execute(context)

        context.get("returns_by_class")
        context.get("break_even_points")
    """

    def __init__(self, blocks: List[Block]):
        self.blocks = blocks
        self._sorted_blocks: Optional[List[Block]] = None

    def execute(self, context: BlockContext) -> BlockContext:
        """Run all blocks against the context and return it.

        Raises:
            CircularDependencyError: If blocks have circular dependencies
            KeyError: If a required input is missing from context
            ValueError: If a block does not write a declared output
        """
        if self._sorted_blocks is None:
            self._sorted_blocks = topological_sort(self.blocks)

        for block in self._sorted_blocks:
            self._validate_inputs(block, context)
            logger.debug("executing %r", block)
            block.execute(context)
            self._validate_outputs(block, context)

        return context

    def _validate_inputs(self, block: Block, context: BlockContext) -> None:
        for input_key in block.inputs():
            if not context.has(input_key):
                raise KeyError(
                    f"Block {block} requires input '{input_key}' but it's not in context. "
                    f"Available keys: {context.keys()}"
                )

    def _validate_outputs(self, block: Block, context: BlockContext) -> None:
        for output_key in block.outputs():
            if not context.has(output_key):
                raise ValueError(
                    f"Block {block} declared output '{output_key}' but didn't write it to context"
                )
