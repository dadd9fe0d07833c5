"""Assemble projected neighbor, target and inset paths into a Scene."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Sequence

from .geo import polygons_from_geometry
from .models import (
    MODE_OVERVIEW,
    CapitalMarker,
    ClassifiedParts,
    CountryFeature,
    InsetBox,
    RenderConfig,
    RenderPolicy,
    Scene,
)
from .projection import AzimuthalProjection

_LOGGER = logging.getLogger("countrymap.compose")


@dataclass(frozen=True, slots=True)
class _StrokePolicy:
    quiz_base: float
    overview_base: float
    reference_scale: float
    min_width: float


_STROKE_POLICY = _StrokePolicy(
    quiz_base=2.5,
    overview_base=3.0,
    reference_scale=3000.0,
    min_width=0.8,
)


@dataclass(frozen=True, slots=True)
class _CapitalPolicy:
    base_radius: float
    reference_scale: float
    min_radius: float
    max_radius: float
    view_margin: float


_CAPITAL_POLICY = _CapitalPolicy(
    base_radius=3.0,
    reference_scale=1500.0,
    min_radius=2.0,
    max_radius=4.0,
    view_margin=10.0,
)


def compose(
    parts: ClassifiedParts,
    neighbors: Sequence[CountryFeature],
    projection: AzimuthalProjection,
    inset_boxes: Sequence[InsetBox],
    config: RenderConfig,
    policy: RenderPolicy,
    *,
    target_id: str | None = None,
    capital: tuple[float, float] | None = None,
) -> Scene:
    neighbor_paths = tuple(
        path
        for path in (
            _feature_path(feature, projection)
            for feature in neighbors
            if target_id is None or feature.identifier != target_id
        )
        if path
    )

    polygons: list[Any] = [*parts.nearby, *parts.tiny_distant]
    if not policy.show_insets:
        polygons.extend(parts.inset_candidates)
    target_paths = tuple(path for path in (projection.path([polygon]) for polygon in polygons) if path)

    _LOGGER.debug(
        "scene: %d neighbor paths, %d target paths, %d insets",
        len(neighbor_paths),
        len(target_paths),
        len(inset_boxes),
    )
    return Scene(
        width=config.pixel_width,
        height=config.pixel_height,
        neighbor_paths=neighbor_paths,
        target_paths=target_paths,
        inset_boxes=tuple(inset_boxes),
        projection=projection.state,
        stroke_width=stroke_width(projection.scale, config),
        mode=config.mode,
        variant=config.variant,
        capital=None if capital is None else capital_marker(projection, capital, config),
    )


def stroke_width(scale: float, config: RenderConfig) -> float:
    """Neighbor border width: thinner as the map zooms out, never below the floor."""
    base = _STROKE_POLICY.overview_base if config.mode == MODE_OVERVIEW else _STROKE_POLICY.quiz_base
    width = base * (scale / _STROKE_POLICY.reference_scale)
    return max(_STROKE_POLICY.min_width, min(base, width)) * config.scale_factor


def _feature_path(feature: CountryFeature, projection: AzimuthalProjection) -> str | None:
    if not feature.is_polygonal:
        return None
    polygons = polygons_from_geometry(feature.geometry)
    if not polygons:
        return None
    return projection.path(polygons)


def capital_marker(
    projection: AzimuthalProjection,
    capital: tuple[float, float],
    config: RenderConfig,
) -> CapitalMarker | None:
    """Project a capital `(lon, lat)` to a dot, or None when it falls outside the view."""
    point = projection.project(*capital)
    if point is None:
        return None
    x, y = point
    margin = _CAPITAL_POLICY.view_margin * config.scale_factor
    if not (-margin <= x <= config.pixel_width + margin and -margin <= y <= config.pixel_height + margin):
        return None
    css_scale = projection.scale / config.scale_factor
    radius = _CAPITAL_POLICY.base_radius * (css_scale / _CAPITAL_POLICY.reference_scale)
    radius = max(_CAPITAL_POLICY.min_radius, min(_CAPITAL_POLICY.max_radius, radius))
    return CapitalMarker(x=x, y=y, radius=radius * config.scale_factor)
