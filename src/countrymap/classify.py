"""Split a country boundary into main landmass, nearby islands, dots, and inset candidates."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from .geo import (
    clip_to_eastern_hemisphere,
    exterior_lon_range,
    polygons_from_geometry,
    spherical_area,
    spherical_bounds,
    spherical_centroid,
    strip_holes as _strip_holes,
)
from .grouping import group
from .models import ClassifiedParts, CountryFeature

_LOGGER = logging.getLogger("countrymap.classify")


@dataclass(frozen=True, slots=True)
class _ClassifyPolicy:
    corrupt_area_sr: float
    bbox_padding_deg: float
    inset_area_share: float
    tiny_area_share: float
    antimeridian_lon: float


# Empirically calibrated (Svalbard, Kiribati, Tonga); changing these moves islands between
# boxes, dots and the main view.
_CLASSIFY_POLICY = _ClassifyPolicy(
    corrupt_area_sr=1.0,
    bbox_padding_deg=5.0,
    inset_area_share=0.001,
    tiny_area_share=0.0002,
    antimeridian_lon=90.0,
)


@dataclass(frozen=True, slots=True)
class _PaddedBounds:
    west: float
    south: float
    east: float
    north: float

    def excludes(self, bounds: tuple[float, float, float, float]) -> bool:
        west, south, east, north = bounds
        return east < self.west or west > self.east or north < self.south or south > self.north


def classify(feature: CountryFeature, *, strip_holes: bool = False) -> ClassifiedParts | None:
    """Classify every sub-polygon of the feature; None when no usable polygon remains."""
    if not feature.is_polygonal:
        return None
    polygons = polygons_from_geometry(feature.geometry)
    if not polygons:
        return None
    if strip_holes:
        polygons = [_strip_holes(polygon) for polygon in polygons]

    if feature.geometry_type == "Polygon":
        return _classify_single(polygons[0])
    return _classify_multi(polygons)


def _classify_single(polygon: Any) -> ClassifiedParts | None:
    area = spherical_area(polygon)
    if area > _CLASSIFY_POLICY.corrupt_area_sr:
        return None
    return ClassifiedParts(
        main_for_rendering=polygon,
        main_for_projection=polygon,
        main_area=area,
        nearby=(polygon,),
        tiny_distant=(),
        inset_candidates=(),
        inset_groups=(),
    )


def _classify_multi(polygons: list[Any]) -> ClassifiedParts | None:
    discarded: list[Any] = []
    measured: list[tuple[int, Any, float]] = []
    for idx, polygon in enumerate(polygons):
        area = spherical_area(polygon)
        if area > _CLASSIFY_POLICY.corrupt_area_sr:
            discarded.append(polygon)
            continue
        measured.append((idx, polygon, area))
    if not measured:
        return None
    measured.sort(key=lambda item: (-item[2], item[0]))

    _, main_for_rendering, main_area = measured[0]
    min_lon, max_lon = exterior_lon_range(main_for_rendering)
    spans_antimeridian = (
        min_lon < -_CLASSIFY_POLICY.antimeridian_lon and max_lon > _CLASSIFY_POLICY.antimeridian_lon
    )
    main_for_projection = (
        clip_to_eastern_hemisphere(main_for_rendering) if spans_antimeridian else main_for_rendering
    )

    main_bounds = spherical_bounds(main_for_projection)
    pad = _CLASSIFY_POLICY.bbox_padding_deg
    padded = _PaddedBounds(
        west=main_bounds[0] - pad,
        south=main_bounds[1] - pad,
        east=main_bounds[2] + pad,
        north=main_bounds[3] + pad,
    )
    main_lon = spherical_centroid([main_for_projection])[0]

    nearby: list[Any] = [main_for_rendering]
    tiny_distant: list[Any] = []
    inset_candidates: list[Any] = []
    for _, polygon, area in measured[1:]:
        polygon_lon = spherical_centroid([polygon])[0]
        if _across_antimeridian(main_lon, polygon_lon):
            nearby.append(polygon)
            continue
        if not padded.excludes(spherical_bounds(polygon)):
            nearby.append(polygon)
            continue
        if area >= main_area * _CLASSIFY_POLICY.inset_area_share:
            inset_candidates.append(polygon)
        elif area >= main_area * _CLASSIFY_POLICY.tiny_area_share:
            tiny_distant.append(polygon)
        else:
            discarded.append(polygon)

    inset_groups = tuple(group(inset_candidates))
    _LOGGER.debug(
        "classified %d polygons: nearby=%d tiny=%d insets=%d groups=%d discarded=%d",
        len(polygons),
        len(nearby),
        len(tiny_distant),
        len(inset_candidates),
        len(inset_groups),
        len(discarded),
    )
    return ClassifiedParts(
        main_for_rendering=main_for_rendering,
        main_for_projection=main_for_projection,
        main_area=main_area,
        nearby=tuple(nearby),
        tiny_distant=tuple(tiny_distant),
        inset_candidates=tuple(inset_candidates),
        inset_groups=inset_groups,
        discarded=tuple(discarded),
        spans_antimeridian=spans_antimeridian,
    )


def _across_antimeridian(main_lon: float, polygon_lon: float) -> bool:
    # The rotated projection draws these next to the mainland instead of the far map edge.
    limit = _CLASSIFY_POLICY.antimeridian_lon
    return (main_lon > 0.0 and polygon_lon < -limit) or (main_lon < 0.0 and polygon_lon > limit)
