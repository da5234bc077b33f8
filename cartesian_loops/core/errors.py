from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class CartesianError(Exception):
    """Base error envelope. The CLI prints these; the library raises them."""

    code: str
    message: str
    file: Optional[str] = None
    line: Optional[int] = None
    path: Optional[str] = None

    def __str__(self) -> str:
        parts: list[str] = []
        if self.file:
            parts.append(self.file)
        if self.line is not None:
            parts.append(str(self.line))
        if self.path:
            parts.append(self.path)
        loc = ":".join(parts) if parts else "<cartesian>"
        return f"{loc}: {self.code}: {self.message}"


class CartesianUsageError(CartesianError):
    """Malformed product invocation, detected before any iteration step."""


class CartesianLoadError(CartesianError):
    pass


class CartesianValidationError(CartesianError):
    pass
