"""Capital coordinates keyed by feature identifier."""

from __future__ import annotations

import math
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping

import yaml

Capital = tuple[float, float]


def load_capital_coordinates(path: Path | None) -> Mapping[str, Capital]:
    """Load `"id": [lon, lat]` entries. No path or a missing file means no capital markers."""
    if path is None or not path.exists():
        return MappingProxyType({})
    with path.open("r", encoding="utf-8") as fh:
        raw = yaml.safe_load(fh)
    if raw is None:
        return MappingProxyType({})
    if not isinstance(raw, dict):
        raise ValueError(f"Expected mapping in {path}")

    capitals: dict[str, Capital] = {}
    for key_raw, value in raw.items():
        if not isinstance(key_raw, str) or not key_raw.strip():
            raise ValueError(f"Capital key must be a quoted identifier string in {path}: {key_raw!r}")
        key = key_raw.strip()
        if key in capitals:
            raise ValueError(f"Duplicate capital key '{key}' in {path}")
        capitals[key] = _lon_lat(value, f"{path}:{key}")
    return MappingProxyType(capitals)


def _lon_lat(value: Any, where: str) -> Capital:
    if not isinstance(value, (list, tuple)) or len(value) != 2:
        raise ValueError(f"Expected [lon, lat] for {where}")
    lon, lat = value
    if any(isinstance(item, bool) or not isinstance(item, (int, float)) for item in (lon, lat)):
        raise ValueError(f"Expected numeric [lon, lat] for {where}")
    lon, lat = float(lon), float(lat)
    if not (math.isfinite(lon) and math.isfinite(lat)) or abs(lon) > 180.0 or abs(lat) > 90.0:
        raise ValueError(f"Capital out of range for {where}: [{lon}, {lat}]")
    return (lon, lat)
