from __future__ import annotations

from pathlib import Path
from typing import Any

from cartesian_loops.core.io.read_document import read_document
from cartesian_loops.core.model import ExpandConfig


DEFAULT_CONFIG = ExpandConfig()

_KNOWN_KEYS = ("call_names", "allow_single")


class ExpandConfigError(ValueError):
    pass


def load_config_file(path: str | Path) -> dict[str, Any]:
    """Load expansion overrides from a YAML (or JSON) file.

    Format:
      call_names: ["cartesian", "nested"]   # names recognized as the product call
      allow_single: false                   # reject single-iterable calls

    Both keys are optional. Returns only the keys present in the file.
    Unreadable or unparsable files raise CartesianLoadError.
    """
    raw = read_document(path)
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ExpandConfigError("config file must be a mapping")

    unknown = sorted(str(k) for k in raw if k not in _KNOWN_KEYS)
    if unknown:
        raise ExpandConfigError(f"unknown config keys: {', '.join(unknown)}")

    out: dict[str, Any] = {}
    if "call_names" in raw:
        names = raw["call_names"]
        if not isinstance(names, list) or not names:
            raise ExpandConfigError("call_names must be a non-empty list")
        cleaned: list[str] = []
        for item in names:
            if not isinstance(item, str) or not item.strip().isidentifier():
                raise ExpandConfigError(f"call_names items must be identifiers, got {item!r}")
            if item.strip() not in cleaned:
                cleaned.append(item.strip())
        out["call_names"] = tuple(cleaned)

    if "allow_single" in raw:
        if not isinstance(raw["allow_single"], bool):
            raise ExpandConfigError("allow_single must be true or false")
        out["allow_single"] = raw["allow_single"]

    return out


def merged_config(overrides: dict[str, Any] | None = None) -> ExpandConfig:
    """Return DEFAULT_CONFIG with the given keys replaced."""
    if not overrides:
        return DEFAULT_CONFIG
    return ExpandConfig(
        call_names=tuple(overrides.get("call_names", DEFAULT_CONFIG.call_names)),
        allow_single=bool(overrides.get("allow_single", DEFAULT_CONFIG.allow_single)),
    )


def load_and_merge(config_file: str | None) -> ExpandConfig:
    if not config_file:
        return merged_config()
    overrides = load_config_file(config_file)
    return merged_config(overrides)
