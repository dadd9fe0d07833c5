from __future__ import annotations

import json
from pathlib import Path

import pytest

from conftest import ccw_box, cw_box, feature, multipolygon_geometry, polygon_geometry
from countrymap.boundaries import BoundaryCache
from countrymap.cli import main
from countrymap.config import load_config
from countrymap.prerender import format_prerender_lines, output_file_name, run_prerender

CONFIG_TEXT = """
paths:
  boundaries: data/hi.json
  fallback_boundaries: data/lo.json
  neighbor_boundaries: data/lo.json
  overrides: data/country_overrides.yaml
  capitals: data/capitals.yaml
  output_dir: build/maps
  logs_dir: build/logs
prerender:
  mode: quiz
  variants: [default, zoomed-out]
  sizes:
    - [400, 300]
    - [160, 120]
  formats: [svg, json, png]
  dpi: 50
"""

DATASETS = {
    "hi.json": [
        feature("250", polygon_geometry(cw_box(0.0, 42.0, 8.0, 51.0))),
        feature(
            "901",
            multipolygon_geometry([cw_box(0.0, 0.0, 20.0, 20.0)], [cw_box(45.0, 8.0, 48.0, 11.0)]),
        ),
        feature("666", polygon_geometry(ccw_box(0.0, 0.0, 10.0, 10.0))),
    ],
    "lo.json": [
        feature("250", polygon_geometry(cw_box(0.0, 42.0, 8.0, 51.0))),
        feature("276", polygon_geometry(cw_box(6.0, 47.0, 15.0, 55.0))),
    ],
}


@pytest.fixture()
def cfg(tmp_path: Path):
    path = tmp_path / "config.yaml"
    path.write_text(CONFIG_TEXT, encoding="utf-8")
    return load_config(path)


@pytest.fixture()
def cache() -> BoundaryCache:
    return BoundaryCache(lambda path: DATASETS[path.name])


def test_prerender_writes_every_size_variant_and_format(cfg, cache) -> None:
    report = run_prerender(cfg, country_filter=["250", "901"], cache=cache)
    assert report.ok, report.errors
    assert report.summary["files_written"] == 2 * 2 * 2 * 3
    expected = cfg.paths.output_dir / output_file_name("901", "zoomed-out", 160, 120, "json")
    assert expected.name == "map_901_zoomed-out_160x120.json"
    payload = json.loads(expected.read_text(encoding="utf-8"))
    assert payload["variant"] == "zoomed-out"
    assert payload["width"] == 160.0
    svg = (cfg.paths.output_dir / "map_901_default_400x300.svg").read_text(encoding="utf-8")
    assert "inset-clip-0" in svg
    png = (cfg.paths.output_dir / "map_250_default_400x300.png").read_bytes()
    assert png[:8] == b"\x89PNG\r\n\x1a\n"


def test_prerender_reports_unrenderable_and_unknown_countries(cfg, cache) -> None:
    report = run_prerender(cfg, country_filter=["666", "404"], cache=cache)
    assert report.ok
    assert report.summary == {
        "countries_total": 1,
        "files_written": 0,
        "countries_failed": 0,
        "countries_empty": 1,
    }
    assert any("404" in line for line in report.warnings)
    assert any("666" in line for line in report.warnings)
    assert format_prerender_lines(report)[-1].startswith("[OK]")


def test_prerender_limit(cfg, cache) -> None:
    report = run_prerender(cfg, limit_countries=1, cache=cache)
    assert report.summary["countries_total"] == 1
    assert (cfg.paths.output_dir / "map_250_default_160x120.svg").exists()
    assert run_prerender(cfg, limit_countries=0, cache=cache).errors


def test_prerender_collects_dataset_failures(cfg) -> None:
    def broken(path: Path):
        raise OSError(f"cannot read {path.name}")

    report = run_prerender(cfg, cache=BoundaryCache(broken))
    assert not report.ok
    assert "cannot read hi.json" in report.errors[0]


def test_cli_rejects_unknown_output_suffix(tmp_path: Path) -> None:
    config_path = tmp_path / "config.yaml"
    config_path.write_text(CONFIG_TEXT, encoding="utf-8")
    code = main(
        ["render", "--config", str(config_path), "--country", "250", "--output", str(tmp_path / "x.gif")]
    )
    assert code == 2


def test_prerender_marks_listed_capitals(cfg, cache) -> None:
    capitals_path = cfg.paths.capitals
    capitals_path.parent.mkdir(parents=True, exist_ok=True)
    capitals_path.write_text('"250": [2.35, 48.86]\n', encoding="utf-8")
    report = run_prerender(cfg, country_filter=["250", "901"], cache=cache)
    assert report.ok, report.errors

    marked = json.loads((cfg.paths.output_dir / "map_250_default_400x300.json").read_text(encoding="utf-8"))
    assert marked["capital"] is not None
    assert 0.0 < marked["capital"]["x"] < marked["width"]
    assert 0.0 < marked["capital"]["y"] < marked["height"]
    svg = (cfg.paths.output_dir / "map_250_default_400x300.svg").read_text(encoding="utf-8")
    assert 'fill="#ef4444"' in svg

    unmarked = json.loads((cfg.paths.output_dir / "map_901_default_400x300.json").read_text(encoding="utf-8"))
    assert unmarked["capital"] is None


def test_prerender_rejects_malformed_capitals(cfg, cache) -> None:
    capitals_path = cfg.paths.capitals
    capitals_path.parent.mkdir(parents=True, exist_ok=True)
    capitals_path.write_text('"250": [2.35]\n', encoding="utf-8")
    report = run_prerender(cfg, country_filter=["250"], cache=cache)
    assert not report.ok
    assert "Failed loading capitals" in report.errors[0]
