"""Per-country render override tables."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping

import yaml

# world-atlas numeric identifiers.
_DEFAULT_NO_INSETS = (
    "044",  # Bahamas
    "124",  # Canada
    "208",  # Denmark
    "090",  # Solomon Islands
    "584",  # Marshall Islands
    "296",  # Kiribati
)
_DEFAULT_ZOOM_MULTIPLIERS = {
    "585": 3.0,  # Palau
    "296": 6.0,  # Kiribati
    "798": 4.0,  # Tuvalu
    "584": 4.0,  # Marshall Islands
    "462": 5.0,  # Maldives
}
# Kazakhstan: the Aral Sea hole reads as a rendering glitch.
_DEFAULT_STRIP_HOLES = ("398",)


@dataclass(frozen=True, slots=True)
class CountryOverride:
    """Override directives for one country; None leaves the default in place."""

    zoom: float | None = None
    insets: bool | None = None
    strip_holes: bool | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> CountryOverride:
        unknown = sorted(set(data) - {"zoom", "insets", "strip_holes"})
        if unknown:
            raise ValueError("Unknown override fields: " + ", ".join(str(key) for key in unknown))

        zoom_raw = data.get("zoom")
        zoom: float | None
        if zoom_raw is None:
            zoom = None
        elif isinstance(zoom_raw, (int, float)) and not isinstance(zoom_raw, bool) and zoom_raw > 0:
            zoom = float(zoom_raw)
        else:
            raise ValueError("Expected positive number for override field 'zoom'")

        def _optional_bool(field_name: str) -> bool | None:
            raw = data.get(field_name)
            if raw is None:
                return None
            if not isinstance(raw, bool):
                raise ValueError(f"Expected bool for override field '{field_name}'")
            return raw

        return cls(
            zoom=zoom,
            insets=_optional_bool("insets"),
            strip_holes=_optional_bool("strip_holes"),
        )


@dataclass(frozen=True, slots=True)
class CountryOverrides:
    """Immutable lookup tables injected into the engine at construction."""

    zoom_multipliers: Mapping[str, float] = field(default_factory=lambda: MappingProxyType({}))
    no_insets: frozenset[str] = frozenset()
    strip_holes: frozenset[str] = frozenset()

    @classmethod
    def default(cls) -> CountryOverrides:
        return cls(
            zoom_multipliers=MappingProxyType(dict(_DEFAULT_ZOOM_MULTIPLIERS)),
            no_insets=frozenset(_DEFAULT_NO_INSETS),
            strip_holes=frozenset(_DEFAULT_STRIP_HOLES),
        )

    @classmethod
    def from_entries(cls, entries: Mapping[str, CountryOverride]) -> CountryOverrides:
        return cls(
            zoom_multipliers=MappingProxyType(
                {key: entry.zoom for key, entry in entries.items() if entry.zoom is not None}
            ),
            no_insets=frozenset(key for key, entry in entries.items() if entry.insets is False),
            strip_holes=frozenset(key for key, entry in entries.items() if entry.strip_holes),
        )

    def zoom_multiplier(self, identifier: str) -> float:
        return float(self.zoom_multipliers.get(identifier, 1.0))

    def allows_insets(self, identifier: str) -> bool:
        return identifier not in self.no_insets

    def strips_holes(self, identifier: str) -> bool:
        return identifier in self.strip_holes


def load_country_overrides(path: Path) -> CountryOverrides:
    """Load optional per-country overrides keyed by feature identifier.

    A missing file yields the built-in defaults; a present file replaces them entirely.
    """
    if not path.exists():
        return CountryOverrides.default()
    with path.open("r", encoding="utf-8") as fh:
        raw = yaml.safe_load(fh)
    if raw is None:
        return CountryOverrides()
    if not isinstance(raw, dict):
        raise ValueError(f"Expected mapping in {path}")

    entries: dict[str, CountryOverride] = {}
    for key_raw, value in raw.items():
        if not isinstance(key_raw, str) or not key_raw.strip():
            raise ValueError(f"Override key must be a quoted identifier string in {path}: {key_raw!r}")
        key = key_raw.strip()
        if key in entries:
            raise ValueError(f"Duplicate override key '{key}' in {path}")
        if not isinstance(value, dict):
            raise ValueError(f"Override value for {key} must be a mapping in {path}")
        entries[key] = CountryOverride.from_mapping(value)
    return CountryOverrides.from_entries(entries)
