from __future__ import annotations

from pathlib import Path

import pytest

from countrymap.config import StyleConfig, load_config

CONFIG_TEXT = """
paths:
  boundaries: data/countries-10m.json
  fallback_boundaries: data/countries-50m.json
  neighbor_boundaries: null
  overrides: data/country_overrides.yaml
  output_dir: build/maps
  logs_dir: build/logs
prerender:
  mode: quiz
  variants: [default, zoomed-out]
  sizes:
    - [400, 300]
  scale_factor: 2
  formats: [svg, json]
"""


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(text, encoding="utf-8")
    return path


def test_load_config_resolves_paths_relative_to_file(tmp_path: Path) -> None:
    cfg = load_config(_write(tmp_path, CONFIG_TEXT))
    root = tmp_path.resolve()
    assert cfg.paths.boundaries == root / "data" / "countries-10m.json"
    assert cfg.paths.neighbor_boundaries is None
    assert cfg.paths.capitals is None
    assert cfg.paths.effective_neighbor_boundaries == root / "data" / "countries-50m.json"
    assert cfg.prerender.sizes == ((400, 300),)
    assert cfg.prerender.variants == ("default", "zoomed-out")
    assert cfg.prerender.formats == ("svg", "json")
    assert cfg.prerender.scale_factor == 2.0
    assert cfg.prerender.dpi == 100
    assert cfg.style == StyleConfig.default()


def test_missing_config_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "missing.yaml")


@pytest.mark.parametrize(
    ("old", "new"),
    [
        ("formats: [svg, json]", "formats: [gif]"),
        ("mode: quiz", "mode: poster"),
        ("- [400, 300]", "- [400]"),
        ("scale_factor: 2", "scale_factor: 0.5"),
        ("  boundaries: data/countries-10m.json\n", ""),
    ],
)
def test_invalid_config_values(tmp_path: Path, old: str, new: str) -> None:
    assert old in CONFIG_TEXT
    with pytest.raises(ValueError):
        load_config(_write(tmp_path, CONFIG_TEXT.replace(old, new)))


def test_capitals_path_and_color(tmp_path: Path) -> None:
    text = CONFIG_TEXT.replace(
        "  logs_dir: build/logs\n", "  logs_dir: build/logs\n  capitals: data/capitals.yaml\n"
    )
    text += 'style:\n  ocean_color: "#000"\n  neighbor_color: "#111"\n  country_color: "#0f0"\n'
    cfg = load_config(_write(tmp_path, text))
    assert cfg.paths.capitals == tmp_path.resolve() / "data" / "capitals.yaml"
    assert cfg.style.capital_color == "#ef4444"

    cfg = load_config(_write(tmp_path, text + '  capital_color: "#f00"\n'))
    assert cfg.style.capital_color == "#f00"
    with pytest.raises(ValueError):
        load_config(_write(tmp_path, text + '  capital_color: ""\n'))


def test_top_level_must_be_mapping(tmp_path: Path) -> None:
    with pytest.raises(ValueError):
        load_config(_write(tmp_path, "- just\n- a list\n"))
