from __future__ import annotations

from itertools import islice
from typing import Any, Iterator, Optional

from cartesian_loops.core.model import AxesSpec
from cartesian_loops.core.product.cartesian_product import cartesian


def product_rows(spec: AxesSpec, *, limit: Optional[int] = None) -> Iterator[dict[str, Any]]:
    """Yield one ``{axis name: value}`` row per point of the axes product.

    Rows follow product order (first axis slowest). ``limit`` stops the
    traversal early; nothing past the limit is evaluated.
    """

    if not spec.axes:
        return

    levels = [axis.values for axis in spec.axes]
    if len(levels) == 1:
        combos: Iterator[tuple[Any, ...]] = ((v,) for v in levels[0])
    else:
        combos = cartesian(*levels)

    names = spec.names
    for combo in islice(combos, limit):
        yield dict(zip(names, combo))
