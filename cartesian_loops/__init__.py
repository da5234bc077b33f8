"""Flatten nested loops into one Cartesian-product loop.

    from cartesian_loops import cartesian

    for x, y, z in cartesian(range(10), range(10), range(10)):
        grid[x][y][z] = x * y + z

``break`` leaves all levels at once; ``continue`` advances the innermost one.
``expand_cartesian`` rewrites such loops into real nested loops instead.
"""
from __future__ import annotations

from cartesian_loops.core.errors import (
    CartesianError,
    CartesianLoadError,
    CartesianUsageError,
    CartesianValidationError,
)
from cartesian_loops.core.expand.expand_loops import (
    CartesianLoopExpander,
    ExpansionResult,
    expand_cartesian,
    expand_source,
    expand_tree,
)
from cartesian_loops.core.model import ExpandConfig
from cartesian_loops.core.product.cartesian_product import cartesian

__all__ = [
    "CartesianError",
    "CartesianLoadError",
    "CartesianLoopExpander",
    "CartesianUsageError",
    "CartesianValidationError",
    "ExpandConfig",
    "ExpansionResult",
    "cartesian",
    "expand_cartesian",
    "expand_source",
    "expand_tree",
]
