from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable

import yaml

from cartesian_loops.core.errors import CartesianLoadError


_PARSERS: dict[str, tuple[str, Callable[[str], Any]]] = {
    ".yaml": ("E_YAML_PARSE", yaml.safe_load),
    ".yml": ("E_YAML_PARSE", yaml.safe_load),
    ".json": ("E_JSON_PARSE", json.loads),
}


def read_document(path: str | Path) -> Any:
    """Parse a .yaml/.yml/.json file by suffix; shape checks belong to the caller."""
    p = Path(path)
    suffix = p.suffix.lower()
    if suffix not in _PARSERS:
        raise CartesianLoadError(
            code="E_UNSUPPORTED_FORMAT",
            message=f"unsupported suffix {suffix or '(none)'!r}; use one of {', '.join(sorted(_PARSERS))}",
            file=str(p),
        )
    parse_code, parse = _PARSERS[suffix]

    try:
        text = p.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise CartesianLoadError(code="E_FILE_NOT_FOUND", message="file does not exist", file=str(p)) from e

    try:
        return parse(text)
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise CartesianLoadError(code=parse_code, message=str(e), file=str(p)) from e
