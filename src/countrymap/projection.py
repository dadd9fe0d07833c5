"""Country-centered azimuthal equal-area projections and SVG path generation."""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from typing import Any, Sequence

from .geo import laea_transformer, spherical_area, spherical_centroid
from .models import (
    MODE_OVERVIEW,
    ClassifiedParts,
    ProjectionState,
    RenderConfig,
    RenderPolicy,
    Viewport,
)

_ScreenBounds = tuple[float, float, float, float]
_Extent = tuple[tuple[float, float], tuple[float, float]]


@dataclass(frozen=True, slots=True)
class _FitPolicy:
    significant_area_share: float
    quiz_padding_px: float
    overview_padding_px: float
    quiz_zoom: float
    overview_zoom: float
    global_context_scale: float
    path_digits: int


# Calibrated against world-atlas boundaries; keep in sync with pre-rendered assets.
_FIT_POLICY = _FitPolicy(
    significant_area_share=0.01,
    quiz_padding_px=10.0,
    overview_padding_px=4.0,
    quiz_zoom=0.5,
    overview_zoom=0.85,
    global_context_scale=250.0,
    path_digits=3,
)


@dataclass(frozen=True, slots=True)
class AzimuthalProjection:
    """Lambert azimuthal equal-area projection rotated onto `center`.

    Screen coordinates follow the SVG convention: `x = tx + k * X`, `y = ty - k * Y`, where
    (X, Y) are unit-sphere LAEA coordinates.
    """

    center: tuple[float, float]
    scale: float = 1.0
    translate: tuple[float, float] = (0.0, 0.0)
    transformer: Any = field(default=None, compare=False, repr=False)

    @classmethod
    def centered_on(cls, center: tuple[float, float]) -> AzimuthalProjection:
        return cls(center=center, transformer=laea_transformer(center))

    @property
    def state(self) -> ProjectionState:
        return ProjectionState(center=self.center, scale=self.scale, translate=self.translate)

    def with_scale(self, scale: float) -> AzimuthalProjection:
        return replace(self, scale=float(scale))

    def with_translate(self, tx: float, ty: float) -> AzimuthalProjection:
        return replace(self, translate=(float(tx), float(ty)))

    def project(self, lon: float, lat: float) -> tuple[float, float] | None:
        ring = self._project_raw([(lon, lat)])
        if ring is None:
            return None
        return self._to_screen(ring[0])

    def bounds(self, polygons: Sequence[Any]) -> _ScreenBounds | None:
        """Screen-space bounds of every drawable exterior vertex."""
        xs: list[float] = []
        ys: list[float] = []
        for polygon in polygons:
            raw = self._project_exterior(polygon)
            if raw is None:
                continue
            ring = [self._to_screen(point) for point in raw]
            xs.extend(x for x, _ in ring)
            ys.extend(y for _, y in ring)
        if not xs:
            return None
        return (min(xs), min(ys), max(xs), max(ys))

    def path(self, polygons: Sequence[Any]) -> str | None:
        """SVG path data for the polygons, or None when nothing projects."""
        parts: list[str] = []
        for polygon in polygons:
            exterior = self._project_exterior(polygon)
            if exterior is None:
                continue
            rings = [exterior, *(self._project_raw(list(interior.coords)) for interior in polygon.interiors)]
            for raw in rings:
                if raw is None or len(raw) < 3:
                    continue
                ring = [self._to_screen(point) for point in raw]
                if ring[0] == ring[-1]:
                    ring = ring[:-1]
                head, *tail = ring
                segment = "M" + _format_point(head)
                if tail:
                    segment += "L" + "L".join(_format_point(point) for point in tail)
                parts.append(segment + "Z")
        if not parts:
            return None
        return "".join(parts)

    def _project_exterior(self, polygon: Any) -> list[tuple[float, float]] | None:
        raw = self._project_raw(list(polygon.exterior.coords))
        if raw is None or len(raw) < 3 or _encloses_antipode(raw):
            return None
        return raw

    def _project_raw(self, coords: Sequence[Sequence[float]]) -> list[tuple[float, float]] | None:
        if not coords:
            return None
        transformer = self.transformer
        if transformer is None:
            transformer = laea_transformer(self.center)
        xs, ys = transformer.transform([float(p[0]) for p in coords], [float(p[1]) for p in coords])
        out = [(float(x), float(y)) for x, y in zip(xs, ys)]
        if not all(math.isfinite(x) and math.isfinite(y) for x, y in out):
            return None
        return out

    def _to_screen(self, point: tuple[float, float]) -> tuple[float, float]:
        tx, ty = self.translate
        return (tx + self.scale * point[0], ty - self.scale * point[1])


def fit_extent(
    projection: AzimuthalProjection,
    extent: _Extent,
    polygons: Sequence[Any],
) -> AzimuthalProjection:
    """Scale and translate so the polygons fill the extent, keeping the rotation."""
    unit = replace(projection, scale=1.0, translate=(0.0, 0.0))
    raw = unit.bounds(polygons)
    if raw is None:
        return projection
    (x0, y0), (x1, y1) = extent
    width = x1 - x0
    height = y1 - y0
    span_x = raw[2] - raw[0]
    span_y = raw[3] - raw[1]
    k = min(
        width / span_x if span_x > 0.0 else math.inf,
        height / span_y if span_y > 0.0 else math.inf,
    )
    if not math.isfinite(k) or k <= 0.0:
        k = projection.scale
    tx = x0 + (width - k * (raw[2] + raw[0])) / 2.0
    ty = y0 + (height - k * (raw[3] + raw[1])) / 2.0
    return replace(projection, scale=k, translate=(tx, ty))


def fit_size(
    projection: AzimuthalProjection,
    size: tuple[float, float],
    polygons: Sequence[Any],
) -> AzimuthalProjection:
    return fit_extent(projection, ((0.0, 0.0), size), polygons)


def build_projection(
    parts: ClassifiedParts,
    config: RenderConfig,
    policy: RenderPolicy,
) -> AzimuthalProjection:
    """Build the main-view projection for one (mode, variant, zoom) combination."""
    viewport = Viewport.from_config(config)
    fit_polygons = fitting_polygons(parts, config=config, policy=policy)
    center_polygons = [parts.main_for_projection] if policy.needs_extra_zoom else fit_polygons
    center = spherical_centroid(center_polygons)

    padding = _padding_px(config) * viewport.scale_factor
    projection = fit_extent(
        AzimuthalProjection.centered_on(center),
        ((padding, padding), (viewport.width - padding, viewport.height - padding)),
        fit_polygons,
    )
    if policy.use_global_zoom:
        final_scale = global_context_scale(viewport.scale_factor)
    else:
        final_scale = projection.scale * zoom_factor(config, policy)
    return projection.with_scale(final_scale).with_translate(viewport.width / 2.0, viewport.height / 2.0)


def fitting_polygons(
    parts: ClassifiedParts,
    *,
    config: RenderConfig,
    policy: RenderPolicy,
) -> list[Any]:
    """Significant polygons the main view is centered on and fitted to."""
    pool: list[Any] = list(parts.nearby)
    if not policy.show_insets and config.mode != MODE_OVERVIEW:
        pool.extend(parts.inset_candidates)
    threshold = parts.main_area * _FIT_POLICY.significant_area_share
    significant = [polygon for polygon in pool if spherical_area(polygon) >= threshold]
    return significant or [parts.main_for_projection]


def zoom_factor(config: RenderConfig, policy: RenderPolicy) -> float:
    base = _FIT_POLICY.overview_zoom if config.mode == MODE_OVERVIEW else _FIT_POLICY.quiz_zoom
    return base * policy.zoom_multiplier


def global_context_scale(scale_factor: float = 1.0) -> float:
    return _FIT_POLICY.global_context_scale * scale_factor


def _padding_px(config: RenderConfig) -> float:
    if config.mode == MODE_OVERVIEW:
        return _FIT_POLICY.overview_padding_px
    return _FIT_POLICY.quiz_padding_px


def _format_point(point: tuple[float, float]) -> str:
    return f"{format_number(point[0])},{format_number(point[1])}"


def format_number(value: float) -> str:
    text = f"{round(value, _FIT_POLICY.path_digits):.{_FIT_POLICY.path_digits}f}"
    text = text.rstrip("0").rstrip(".")
    if text in ("-0", ""):
        return "0"
    return text


def _encloses_antipode(raw: Sequence[tuple[float, float]]) -> bool:
    """True when a clockwise exterior ring projects counter-clockwise.

    The map keeps orientation everywhere except across the antipode, so a reversed image means the
    ring surrounds the antipode and its planar interior is the rest of the globe.
    """
    twice_area = 0.0
    for (x0, y0), (x1, y1) in zip(raw, [*raw[1:], raw[0]]):
        twice_area += x0 * y1 - x1 * y0
    return twice_area > 0.0
