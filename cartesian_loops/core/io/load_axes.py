from __future__ import annotations

from typing import Any

from cartesian_loops.core.errors import CartesianLoadError
from cartesian_loops.core.io.read_document import read_document


def load_axes(path: str) -> dict[str, Any]:
    """Load an axes file and return {"axes": <name -> values>, "__file__": path}.

      axes:
        size: [S, M, L]
        color: [red, blue]

    Axis order is document order. Names and value lists are checked by
    validate_axes; this only guarantees an ``axes`` mapping exists.
    """

    doc = read_document(path)
    if not isinstance(doc, dict) or "axes" not in doc:
        raise CartesianLoadError(
            code="E_AXES_MISSING",
            message="expected a mapping with a top-level 'axes' key",
            file=path,
        )

    axes = doc["axes"]
    if not isinstance(axes, dict):
        raise CartesianLoadError(
            code="E_AXES_NOT_MAPPING",
            message=f"'axes' must map names to value lists, got {type(axes).__name__}",
            file=path,
            path="axes",
        )
    return {"axes": axes, "__file__": path}
