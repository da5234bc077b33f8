from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional


DEFAULT_CALL_NAMES: tuple[str, ...] = ("cartesian",)


@dataclass(frozen=True)
class ExpandConfig:
    call_names: tuple[str, ...] = DEFAULT_CALL_NAMES
    # A single iterable expands to a plain loop over it when True.
    allow_single: bool = True


@dataclass(frozen=True)
class Axis:
    name: str
    values: list[Any]


@dataclass(frozen=True)
class AxesSpec:
    axes: list[Axis] = field(default_factory=list)
    file: Optional[str] = None

    @property
    def names(self) -> list[str]:
        return [a.name for a in self.axes]

    @property
    def size(self) -> int:
        total = 1
        for a in self.axes:
            total *= len(a.values)
        return total
