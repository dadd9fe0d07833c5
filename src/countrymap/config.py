"""Typed configuration loader for `config.yaml`."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, cast

import yaml

from .models import MODE_OVERVIEW, RENDER_MODES, RENDER_VARIANTS, VARIANT_DEFAULT


_ALLOWED_FORMATS = ("svg", "png", "json")


def _mapping(value: Any, field_name: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ValueError(f"Expected mapping for '{field_name}'")
    return cast(Mapping[str, Any], value)


def _str(value: Any, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Expected non-empty string for '{field_name}'")
    return value.strip()


def _int(value: Any, field_name: str) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValueError(f"Expected integer for '{field_name}'")
    return value


def _float(value: Any, field_name: str) -> float:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    raise ValueError(f"Expected float for '{field_name}'")


def _str_list(value: Any, field_name: str) -> tuple[str, ...]:
    if not isinstance(value, list):
        raise ValueError(f"Expected list for '{field_name}'")
    out: list[str] = []
    for idx, item in enumerate(value):
        out.append(_str(item, f"{field_name}[{idx}]"))
    return tuple(out)


def _choice(value: Any, field_name: str, allowed: tuple[str, ...]) -> str:
    chosen = _str(value, field_name).casefold()
    if chosen not in allowed:
        raise ValueError(f"{field_name} must be one of: " + ", ".join(allowed))
    return chosen


def _path_from_cfg(value: Any, field_name: str, root_dir: Path) -> Path:
    raw = _str(value, field_name)
    p = Path(raw)
    return p if p.is_absolute() else root_dir / p


def _optional_path(value: Any, field_name: str, root_dir: Path) -> Path | None:
    if value is None:
        return None
    return _path_from_cfg(value, field_name, root_dir)


@dataclass(frozen=True, slots=True)
class PathsConfig:
    boundaries: Path
    fallback_boundaries: Path | None
    neighbor_boundaries: Path | None
    overrides: Path
    output_dir: Path
    logs_dir: Path
    capitals: Path | None = None

    @property
    def build_directories(self) -> tuple[Path, ...]:
        return (self.output_dir, self.logs_dir)

    @property
    def effective_neighbor_boundaries(self) -> Path:
        return self.neighbor_boundaries or self.fallback_boundaries or self.boundaries

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any], root_dir: Path) -> PathsConfig:
        return cls(
            boundaries=_path_from_cfg(raw.get("boundaries"), "paths.boundaries", root_dir),
            fallback_boundaries=_optional_path(
                raw.get("fallback_boundaries"), "paths.fallback_boundaries", root_dir
            ),
            neighbor_boundaries=_optional_path(
                raw.get("neighbor_boundaries"), "paths.neighbor_boundaries", root_dir
            ),
            overrides=_path_from_cfg(raw.get("overrides"), "paths.overrides", root_dir),
            output_dir=_path_from_cfg(raw.get("output_dir"), "paths.output_dir", root_dir),
            logs_dir=_path_from_cfg(raw.get("logs_dir"), "paths.logs_dir", root_dir),
            capitals=_optional_path(raw.get("capitals"), "paths.capitals", root_dir),
        )


@dataclass(frozen=True, slots=True)
class PrerenderConfig:
    sizes: tuple[tuple[int, int], ...]
    scale_factor: float
    mode: str
    variants: tuple[str, ...]
    formats: tuple[str, ...]
    dpi: int

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> PrerenderConfig:
        sizes_raw = raw.get("sizes")
        if not isinstance(sizes_raw, list) or not sizes_raw:
            raise ValueError("Expected non-empty list for 'prerender.sizes'")
        sizes: list[tuple[int, int]] = []
        for idx, item in enumerate(sizes_raw):
            if not isinstance(item, list) or len(item) != 2:
                raise ValueError(f"Invalid prerender.sizes[{idx}]")
            width = _int(item[0], f"prerender.sizes[{idx}][0]")
            height = _int(item[1], f"prerender.sizes[{idx}][1]")
            if width < 1 or height < 1:
                raise ValueError(f"prerender.sizes[{idx}] must be positive")
            sizes.append((width, height))

        scale_factor = _float(raw.get("scale_factor", 1.0), "prerender.scale_factor")
        if scale_factor < 1.0:
            raise ValueError("prerender.scale_factor must be >= 1")
        dpi = _int(raw.get("dpi", 100), "prerender.dpi")
        if dpi < 1:
            raise ValueError("prerender.dpi must be positive")

        variants = tuple(
            _choice(item, f"prerender.variants[{idx}]", RENDER_VARIANTS)
            for idx, item in enumerate(_str_list(raw.get("variants", [VARIANT_DEFAULT]), "prerender.variants"))
        )
        formats = tuple(
            _choice(item, f"prerender.formats[{idx}]", _ALLOWED_FORMATS)
            for idx, item in enumerate(_str_list(raw.get("formats", ["svg"]), "prerender.formats"))
        )
        if not variants or not formats:
            raise ValueError("prerender.variants and prerender.formats must not be empty")
        return cls(
            sizes=tuple(sizes),
            scale_factor=scale_factor,
            mode=_choice(raw.get("mode", MODE_OVERVIEW), "prerender.mode", RENDER_MODES),
            variants=variants,
            formats=formats,
            dpi=dpi,
        )


_DEFAULT_CAPITAL_COLOR = "#ef4444"


@dataclass(frozen=True, slots=True)
class StyleConfig:
    ocean_color: str
    neighbor_color: str
    country_color: str
    capital_color: str = _DEFAULT_CAPITAL_COLOR

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> StyleConfig:
        capital_raw = raw.get("capital_color")
        return cls(
            ocean_color=_str(raw.get("ocean_color"), "style.ocean_color"),
            neighbor_color=_str(raw.get("neighbor_color"), "style.neighbor_color"),
            country_color=_str(raw.get("country_color"), "style.country_color"),
            capital_color=(
                _DEFAULT_CAPITAL_COLOR if capital_raw is None else _str(capital_raw, "style.capital_color")
            ),
        )

    @classmethod
    def default(cls) -> StyleConfig:
        return cls(ocean_color="#1a3a5c", neighbor_color="#2d2d44", country_color="#4ade80")


@dataclass(frozen=True, slots=True)
class AppConfig:
    source_path: Path
    paths: PathsConfig
    prerender: PrerenderConfig
    style: StyleConfig

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any], source_path: Path) -> AppConfig:
        root_dir = source_path.parent.resolve()
        style_raw = raw.get("style")
        return cls(
            source_path=source_path.resolve(),
            paths=PathsConfig.from_mapping(_mapping(raw.get("paths"), "paths"), root_dir),
            prerender=PrerenderConfig.from_mapping(_mapping(raw.get("prerender"), "prerender")),
            style=(
                StyleConfig.default()
                if style_raw is None
                else StyleConfig.from_mapping(_mapping(style_raw, "style"))
            ),
        )


def load_config(path: str | Path) -> AppConfig:
    """Load and validate the YAML config file into typed settings."""
    cfg_path = Path(path).resolve()
    if not cfg_path.exists():
        raise FileNotFoundError(f"Config file not found: {cfg_path}")
    with cfg_path.open("r", encoding="utf-8") as fh:
        raw = yaml.safe_load(fh)
    if not isinstance(raw, Mapping):
        raise ValueError("Top-level config must be a YAML mapping")
    return AppConfig.from_mapping(cast(Mapping[str, Any], raw), cfg_path)
