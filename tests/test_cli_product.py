import json
from pathlib import Path

import yaml
from typer.testing import CliRunner

from cartesian_loops.cli import app

runner = CliRunner()


def _axes(tmp_path: Path, text: str = "axes:\n  size: [S, M]\n  color: [red, blue]\n") -> str:
    p = tmp_path / "axes.yaml"
    p.write_text(text, encoding="utf-8")
    return str(p)


def test_product_text(tmp_path: Path):
    r = runner.invoke(app, ["product", _axes(tmp_path)])
    assert r.exit_code == 0, r.output
    assert r.stdout.splitlines() == [
        "size=S color=red",
        "size=S color=blue",
        "size=M color=red",
        "size=M color=blue",
    ]


def test_product_json(tmp_path: Path):
    r = runner.invoke(app, ["product", _axes(tmp_path), "--format", "json", "--limit", "3"])
    assert r.exit_code == 0, r.output
    payload = json.loads(r.stdout)
    assert payload["command"] == "product"
    assert payload["axes"] == ["size", "color"]
    assert payload["count"] == 3
    assert payload["total"] == 4
    assert payload["rows"][2] == {"size": "M", "color": "red"}


def test_product_yaml(tmp_path: Path):
    r = runner.invoke(app, ["product", _axes(tmp_path), "--format", "yaml"])
    assert r.exit_code == 0, r.output
    data = yaml.safe_load(r.stdout)
    assert data["axes"] == ["size", "color"]
    assert len(data["rows"]) == 4


def test_product_table(tmp_path: Path):
    r = runner.invoke(app, ["product", _axes(tmp_path), "--format", "table"])
    assert r.exit_code == 0, r.output
    assert "size" in r.output
    assert "blue" in r.output


def test_product_empty_axis(tmp_path: Path):
    r = runner.invoke(app, ["product", _axes(tmp_path, "axes:\n  a: [1, 2]\n  b: []\n"), "--format", "json"])
    assert r.exit_code == 0
    assert json.loads(r.stdout)["rows"] == []


def test_product_unknown_format(tmp_path: Path):
    r = runner.invoke(app, ["product", _axes(tmp_path), "--format", "csv"])
    assert r.exit_code == 2
    assert "E_PRODUCT_UNKNOWN_FORMAT" in r.output


def test_product_invalid_axes(tmp_path: Path):
    r = runner.invoke(app, ["product", _axes(tmp_path, "axes:\n  a: 1\n")])
    assert r.exit_code == 2
    assert "E_INVALID_TYPE" in r.output


def test_product_missing_file(tmp_path: Path):
    r = runner.invoke(app, ["product", str(tmp_path / "missing.yaml")])
    assert r.exit_code == 1
    assert "E_FILE_NOT_FOUND" in r.output


def test_product_date_values(tmp_path: Path):
    path = _axes(tmp_path, "axes:\n  day: [2024-01-01, 2024-01-02]\n  n: [1]\n")

    r = runner.invoke(app, ["product", path, "--format", "json"])
    assert r.exit_code == 0, r.output
    payload = json.loads(r.stdout)
    assert payload["rows"] == [{"day": "2024-01-01", "n": 1}, {"day": "2024-01-02", "n": 1}]

    r = runner.invoke(app, ["product", path])
    assert r.exit_code == 0, r.output
    assert r.stdout.splitlines() == ["day=2024-01-01 n=1", "day=2024-01-02 n=1"]


def test_product_nested_values_with_dates(tmp_path: Path):
    path = _axes(tmp_path, "axes:\n  window: [{start: 2024-01-01}]\n  n: [1]\n")
    r = runner.invoke(app, ["product", path])
    assert r.exit_code == 0, r.output
    assert r.stdout.splitlines() == ['window={"start": "2024-01-01"} n=1']


def test_product_duplicate_axis_names(tmp_path: Path):
    r = runner.invoke(app, ["product", _axes(tmp_path, "axes:\n  a: [1, 2]\n  'a ': [x, y]\n")])
    assert r.exit_code == 2
    assert "E_DUPLICATE_AXIS" in r.output


def test_product_missing_axes_key(tmp_path: Path):
    r = runner.invoke(app, ["product", _axes(tmp_path, "dims:\n  a: [1]\n")])
    assert r.exit_code == 1
    assert "E_AXES_MISSING" in r.output
