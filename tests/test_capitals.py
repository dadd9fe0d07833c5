from __future__ import annotations

from pathlib import Path

import pytest

from countrymap.capitals import load_capital_coordinates


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "capitals.yaml"
    path.write_text(text, encoding="utf-8")
    return path


def test_capitals_load_as_lon_lat_pairs(tmp_path: Path) -> None:
    capitals = load_capital_coordinates(_write(tmp_path, '"250": [2.35, 48.86]\n" 578 ": [10, 60]\n'))
    assert dict(capitals) == {"250": (2.35, 48.86), "578": (10.0, 60.0)}


def test_missing_or_empty_capitals_file_means_no_markers(tmp_path: Path) -> None:
    assert dict(load_capital_coordinates(None)) == {}
    assert dict(load_capital_coordinates(tmp_path / "absent.yaml")) == {}
    assert dict(load_capital_coordinates(_write(tmp_path, ""))) == {}


@pytest.mark.parametrize(
    "text",
    [
        "- [2.35, 48.86]\n",
        "250: [2.35, 48.86]\n",
        '"250": [2.35]\n',
        '"250": ["east", 48.86]\n',
        '"250": [true, 48.86]\n',
        '"250": [190.0, 48.86]\n',
        '"250": [2.35, 91.0]\n',
        '"250": [2.35, 48.86]\n" 250": [2.35, 48.86]\n',
    ],
)
def test_malformed_capitals_fail_fast(tmp_path: Path, text: str) -> None:
    with pytest.raises(ValueError):
        load_capital_coordinates(_write(tmp_path, text))
