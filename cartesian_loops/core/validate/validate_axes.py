from __future__ import annotations

from typing import Any, Optional, cast

from cartesian_loops.core.errors import CartesianValidationError
from cartesian_loops.core.model import AxesSpec, Axis


def validate_axes(doc: dict[str, Any]) -> tuple[Optional[AxesSpec], list[CartesianValidationError]]:
    """Check the shape of a loaded axes document.

    Returns (spec, errors). Spec is None when errors exist. Axis order is the
    document order; an empty value list is valid and yields no rows.
    """

    file = cast(Optional[str], doc.get("__file__"))
    errors: list[CartesianValidationError] = []

    axes = doc.get("axes")
    if not isinstance(axes, dict) or not axes:
        errors.append(
            CartesianValidationError(
                code="E_REQUIRED_FIELD",
                message="axes is required and must be a non-empty mapping of name -> list",
                file=file,
                path="axes",
            )
        )
        return None, errors

    out: list[Axis] = []
    seen: set[str] = set()
    for name, values in axes.items():
        if not isinstance(name, str) or not name.strip():
            errors.append(
                CartesianValidationError(
                    code="E_INVALID_TYPE",
                    message="axis names must be non-empty strings",
                    file=file,
                    path=f"axes.{name}",
                )
            )
            continue
        if not isinstance(values, list):
            errors.append(
                CartesianValidationError(
                    code="E_INVALID_TYPE",
                    message=f"axis '{name}' must be a list of values",
                    file=file,
                    path=f"axes.{name}",
                )
            )
            continue
        if name.strip() in seen:
            errors.append(
                CartesianValidationError(
                    code="E_DUPLICATE_AXIS",
                    message=f"duplicate axis name: {name.strip()}",
                    file=file,
                    path=f"axes.{name.strip()}",
                )
            )
            continue
        seen.add(name.strip())
        out.append(Axis(name=name.strip(), values=list(values)))

    if errors:
        return None, _sorted(errors)
    return AxesSpec(axes=out, file=file), []


def _sorted(errors: list[CartesianValidationError]) -> list[CartesianValidationError]:
    return sorted(errors, key=lambda e: (e.path or "", e.code))
