from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

import typer
import yaml
from rich.console import Console
from rich.table import Table

from cartesian_loops.core.errors import (
    CartesianError,
    CartesianLoadError,
    CartesianUsageError,
    CartesianValidationError,
)
from cartesian_loops.core.expand.expand_config import ExpandConfigError, load_and_merge
from cartesian_loops.core.expand.expand_loops import expand_source
from cartesian_loops.core.io.load_axes import load_axes
from cartesian_loops.core.model import ExpandConfig
from cartesian_loops.core.product.product_rows import product_rows
from cartesian_loops.core.validate.validate_axes import validate_axes

app = typer.Typer(add_completion=False, no_args_is_help=True)
console = Console()

CONFIG_ENVVAR = "CARTESIAN_LOOPS_CONFIG"
PRODUCT_FORMATS = ("text", "json", "yaml", "table")


@app.callback()
def _callback() -> None:
    """cartesian-loops: flatten nested loops into one product loop."""
    return


@app.command("expand")
def expand(
    path: str = typer.Argument(..., help="Path to a Python source file"),
    out: Optional[str] = typer.Option(None, "--out", help="Write the expanded source here instead of stdout"),
    config_file: Optional[str] = typer.Option(
        None,
        "--config",
        envvar=CONFIG_ENVVAR,
        help="Optional YAML file overriding call_names / allow_single",
    ),
    check: bool = typer.Option(False, "--check", help="Only check product loops; print nothing on stdout"),
) -> None:
    """Rewrite product loops in a Python file into nested loops with a unified break."""
    config = _load_config_or_exit(config_file)

    p = Path(path)
    if not p.exists():
        _print_errors([CartesianLoadError(code="E_FILE_NOT_FOUND", message="file does not exist", file=str(p))])
        raise typer.Exit(code=1)

    try:
        result = expand_source(p.read_text(encoding="utf-8"), filename=str(p), config=config)
    except CartesianLoadError as e:
        _print_errors([e])
        raise typer.Exit(code=1)
    except CartesianUsageError as e:
        _print_errors([e])
        raise typer.Exit(code=2)

    typer.echo(f"expanded {result.expanded} loop(s) in {p}", err=True)
    if check:
        return

    if out is None:
        typer.echo(result.source)
        return

    _write_text(out, result.source + "\n")
    typer.echo(f"OK: wrote expanded source to {out}")


@app.command("product")
def product(
    path: str = typer.Argument(..., help="Path to an axes file (.yaml/.yml/.json)"),
    format: str = typer.Option("text", "--format", help="Output format: text|json|yaml|table"),
    limit: Optional[int] = typer.Option(None, "--limit", min=0, help="Stop after this many rows"),
) -> None:
    """Print every combination of the axes in an axes file, first axis slowest."""
    if format not in PRODUCT_FORMATS:
        err = CartesianValidationError(
            code="E_PRODUCT_UNKNOWN_FORMAT",
            message=f"unknown format: {format} (choose one of: {', '.join(PRODUCT_FORMATS)})",
            file=None,
            path="format",
        )
        _print_errors([err])
        raise typer.Exit(code=2)

    try:
        doc = load_axes(path)
    except CartesianLoadError as e:
        _print_errors([e])
        raise typer.Exit(code=1)

    spec, errors = validate_axes(doc)
    if errors or spec is None:
        _print_errors(list(errors))
        raise typer.Exit(code=2)

    rows = list(product_rows(spec, limit=limit))

    if format == "json":
        payload = {
            "tool": "cartesian-loops",
            "command": "product",
            "axes": spec.names,
            "count": len(rows),
            "total": spec.size,
            "rows": rows,
        }
        typer.echo(json.dumps(payload, indent=2, default=str))
        return

    if format == "yaml":
        typer.echo(
            yaml.safe_dump(
                {"axes": spec.names, "rows": rows},
                sort_keys=False,
                default_flow_style=False,
                allow_unicode=True,
            ),
            nl=False,
        )
        return

    if format == "table":
        table = Table(title=f"{' x '.join(spec.names)} ({len(rows)} of {spec.size})")
        for name in spec.names:
            table.add_column(name)
        for row in rows:
            table.add_row(*[str(row[name]) for name in spec.names])
        console.print(table)
        return

    for row in rows:
        typer.echo(" ".join(f"{name}={_scalar(row[name])}" for name in spec.names))


@app.command("config")
def config(
    config_file: Optional[str] = typer.Option(
        None,
        "--config",
        envvar=CONFIG_ENVVAR,
        help="Optional YAML file overriding call_names / allow_single",
    ),
) -> None:
    """Show the effective expansion configuration (as YAML)."""
    cfg = _load_config_or_exit(config_file)
    typer.echo(
        yaml.safe_dump(
            {"call_names": list(cfg.call_names), "allow_single": cfg.allow_single},
            sort_keys=False,
            default_flow_style=False,
        ),
        nl=False,
    )


def _load_config_or_exit(config_file: Optional[str]) -> ExpandConfig:
    try:
        return load_and_merge(config_file)
    except CartesianLoadError as e:
        if e.code == "E_FILE_NOT_FOUND":
            e = CartesianLoadError(
                code="E_CONFIG_FILE_NOT_FOUND",
                message=f"config file not found: {config_file}",
                file=None,
                path="config",
            )
        _print_errors([e])
        raise typer.Exit(code=1)
    except ExpandConfigError as e:
        _print_errors(
            [
                CartesianValidationError(
                    code="E_CONFIG_FILE_INVALID",
                    message=str(e),
                    file=config_file,
                    path="config",
                )
            ]
        )
        raise typer.Exit(code=2)


def _scalar(value: Any) -> str:
    if isinstance(value, (dict, list)):
        return json.dumps(value, sort_keys=True, default=str)
    return str(value)


def _write_text(path: str, text: str) -> None:
    p = Path(path)
    if str(p.parent) not in (".", ""):
        p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(text, encoding="utf-8")


def _print_errors(errors: list[CartesianError]) -> None:
    errors_sorted = sorted(errors, key=lambda e: (e.file or "", e.line or 0, e.path or "", e.code))
    for e in errors_sorted:
        typer.echo(str(e), err=True)


def main() -> None:
    app(prog_name="cartesian-loops")


if __name__ == "__main__":
    main()
