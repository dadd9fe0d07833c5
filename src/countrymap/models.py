"""Domain models shared across the map composition pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

MODE_QUIZ = "quiz"
MODE_OVERVIEW = "overview"
VARIANT_DEFAULT = "default"
VARIANT_ZOOMED_OUT = "zoomed-out"

RENDER_MODES = (MODE_QUIZ, MODE_OVERVIEW)
RENDER_VARIANTS = (VARIANT_DEFAULT, VARIANT_ZOOMED_OUT)

_POLYGONAL_TYPES = ("Polygon", "MultiPolygon")


def _require_positive_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValueError(f"Expected positive integer for '{field_name}'")
    return value


@dataclass(frozen=True, slots=True)
class CountryFeature:
    """Immutable boundary input: a GeoJSON Polygon/MultiPolygon plus its identifier."""

    identifier: str
    geometry: Mapping[str, Any] | None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> CountryFeature:
        """Build from a GeoJSON Feature; `id` may live at the top level or in properties."""
        raw_id = data.get("id")
        if raw_id is None:
            properties = data.get("properties") or {}
            raw_id = properties.get("id") if isinstance(properties, Mapping) else None
        if raw_id is None:
            raise ValueError("GeoJSON feature has no 'id'")
        geometry = data.get("geometry")
        if geometry is not None and not isinstance(geometry, Mapping):
            raise ValueError("Expected mapping for 'geometry'")
        return cls(identifier=str(raw_id).strip(), geometry=geometry)

    @property
    def geometry_type(self) -> str:
        if self.geometry is None:
            return ""
        return str(self.geometry.get("type", ""))

    @property
    def is_polygonal(self) -> bool:
        return self.geometry_type in _POLYGONAL_TYPES


@dataclass(frozen=True, slots=True)
class RenderConfig:
    """Caller-supplied render settings; width/height are in unscaled CSS pixels."""

    width: int
    height: int
    mode: str = MODE_QUIZ
    variant: str = VARIANT_DEFAULT
    scale_factor: float = 1.0

    def __post_init__(self) -> None:
        _require_positive_int(self.width, "width")
        _require_positive_int(self.height, "height")
        if self.mode not in RENDER_MODES:
            raise ValueError("mode must be one of: " + ", ".join(RENDER_MODES))
        if self.variant not in RENDER_VARIANTS:
            raise ValueError("variant must be one of: " + ", ".join(RENDER_VARIANTS))
        if isinstance(self.scale_factor, bool) or not isinstance(self.scale_factor, (int, float)):
            raise ValueError("Expected number for 'scale_factor'")
        if self.scale_factor < 1.0:
            raise ValueError("scale_factor must be >= 1")

    @property
    def pixel_width(self) -> float:
        return self.width * self.scale_factor

    @property
    def pixel_height(self) -> float:
        return self.height * self.scale_factor


@dataclass(frozen=True, slots=True)
class Viewport:
    width: float
    height: float
    scale_factor: float = 1.0

    @classmethod
    def from_config(cls, config: RenderConfig) -> Viewport:
        return cls(
            width=config.pixel_width,
            height=config.pixel_height,
            scale_factor=float(config.scale_factor),
        )


@dataclass(frozen=True, slots=True)
class ClassifiedParts:
    """Decomposition of one country boundary into render roles.

    Polygons are shapely `Polygon` objects in lon/lat degrees. Every polygon of the source that
    is not in `discarded` sits in exactly one of `nearby`, `tiny_distant` or `inset_candidates`.
    """

    main_for_rendering: Any
    main_for_projection: Any
    main_area: float
    nearby: tuple[Any, ...]
    tiny_distant: tuple[Any, ...]
    inset_candidates: tuple[Any, ...]
    inset_groups: tuple[tuple[Any, ...], ...]
    discarded: tuple[Any, ...] = ()
    spans_antimeridian: bool = False

    @property
    def has_inset_candidates(self) -> bool:
        return bool(self.inset_candidates)


@dataclass(frozen=True, slots=True)
class RenderPolicy:
    """Per-call decisions derived from the config and the injected override tables."""

    show_insets: bool
    use_global_zoom: bool
    zoom_multiplier: float = 1.0

    @property
    def needs_extra_zoom(self) -> bool:
        return self.zoom_multiplier > 1.0


@dataclass(frozen=True, slots=True)
class ProjectionState:
    """Rotation center (lon, lat), scale, and screen translation of a projection."""

    center: tuple[float, float]
    scale: float
    translate: tuple[float, float]

    def to_dict(self) -> dict[str, Any]:
        return {
            "center": list(self.center),
            "scale": self.scale,
            "translate": list(self.translate),
        }


@dataclass(frozen=True, slots=True)
class EdgeFlags:
    """Which box edges sit flush with the viewport border (drawn without stroke)."""

    left: bool = False
    top: bool = False
    right: bool = False
    bottom: bool = False

    def to_dict(self) -> dict[str, bool]:
        return {
            "left": self.left,
            "top": self.top,
            "right": self.right,
            "bottom": self.bottom,
        }


@dataclass(frozen=True, slots=True)
class InsetBox:
    x: float
    y: float
    w: float
    h: float
    paths: tuple[str, ...]
    edges: EdgeFlags
    projection: ProjectionState

    def to_dict(self) -> dict[str, Any]:
        return {
            "x": self.x,
            "y": self.y,
            "w": self.w,
            "h": self.h,
            "paths": list(self.paths),
            "edges": self.edges.to_dict(),
            "projection": self.projection.to_dict(),
        }


@dataclass(frozen=True, slots=True)
class CapitalMarker:
    """Projected capital dot in device pixels."""

    x: float
    y: float
    radius: float

    def to_dict(self) -> dict[str, float]:
        return {"x": self.x, "y": self.y, "radius": self.radius}


@dataclass(frozen=True, slots=True)
class Scene:
    """Renderer-agnostic output: projected paths plus inset geometry, in device pixels."""

    width: float
    height: float
    neighbor_paths: tuple[str, ...]
    target_paths: tuple[str, ...]
    inset_boxes: tuple[InsetBox, ...]
    projection: ProjectionState
    stroke_width: float
    mode: str = MODE_QUIZ
    variant: str = VARIANT_DEFAULT
    capital: CapitalMarker | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "width": self.width,
            "height": self.height,
            "mode": self.mode,
            "variant": self.variant,
            "neighbor_paths": list(self.neighbor_paths),
            "target_paths": list(self.target_paths),
            "inset_boxes": [box.to_dict() for box in self.inset_boxes],
            "projection": self.projection.to_dict(),
            "stroke_width": self.stroke_width,
            "capital": None if self.capital is None else self.capital.to_dict(),
        }
