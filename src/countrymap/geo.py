"""Spherical geometry helpers over shapely polygons in lon/lat degrees."""

from __future__ import annotations

import math
from functools import lru_cache
from typing import Any, Iterable, Mapping, Sequence

# Rings follow the d3/world-atlas convention: exterior rings run clockwise.
_FULL_SPHERE_SR = 4.0 * math.pi

_LONLAT_SPHERE = "+proj=longlat +R=1 +no_defs"

Bounds = tuple[float, float, float, float]


def polygons_from_geometry(geometry: Mapping[str, Any] | Any) -> list[Any]:
    """Explode a GeoJSON mapping or shapely geometry into single polygons."""
    if geometry is None:
        return []
    if isinstance(geometry, Mapping):
        if not geometry.get("coordinates"):
            return []
        geometry = _require_shapely_shape()(geometry)
    geom_type = getattr(geometry, "geom_type", "")
    if geom_type == "Polygon":
        return [] if geometry.is_empty else [geometry]
    if geom_type == "MultiPolygon":
        return [part for part in geometry.geoms if not part.is_empty]
    if geom_type == "GeometryCollection":
        out: list[Any] = []
        for part in geometry.geoms:
            out.extend(polygons_from_geometry(part))
        return out
    return []


def spherical_area(polygon: Any) -> float:
    """Area in steradians; a counter-clockwise exterior covers the rest of the sphere."""
    geod = _require_unit_sphere_geod()
    total = 0.0
    for ring in _rings(polygon):
        if len(ring) < 3:
            continue
        lons = [point[0] for point in ring]
        lats = [point[1] for point in ring]
        signed, _ = geod.polygon_area_perimeter(lons, lats)
        total -= float(signed)
    if total < 0.0:
        total += _FULL_SPHERE_SR
    return total


def spherical_bounds(polygon: Any) -> Bounds:
    """Return (west, south, east, north); west > east when crossing the antimeridian."""
    coords = list(polygon.exterior.coords)
    lats = [float(lat) for _, lat in coords]
    lons = sorted({_normalize_lon(float(lon)) for lon, _ in coords})
    if not lons:
        return (0.0, 0.0, 0.0, 0.0)
    west, east = lons[0], lons[-1]
    widest_gap = 360.0 - (east - west)
    for left, right in zip(lons, lons[1:]):
        gap = right - left
        if gap > widest_gap:
            widest_gap = gap
            west, east = right, left
    return (west, min(lats), east, max(lats))


def spherical_centroid(polygons: Sequence[Any]) -> tuple[float, float]:
    """Area-weighted centroid computed in an equal-area plane around the vertex mean."""
    anchor = _vertex_mean(polygons)
    transformer = laea_transformer(anchor)
    shapely_polygon = _require_shapely_polygon_factory()

    weighted_x = 0.0
    weighted_y = 0.0
    total_area = 0.0
    fallback: list[tuple[float, float]] = []
    for polygon in polygons:
        exterior = _project_ring(transformer, polygon.exterior.coords)
        if exterior is None:
            continue
        fallback.extend(exterior)
        holes = [
            ring
            for ring in (_project_ring(transformer, interior.coords) for interior in polygon.interiors)
            if ring is not None
        ]
        if len(exterior) < 3:
            continue
        projected = shapely_polygon(exterior, holes)
        area = float(projected.area)
        if area <= 0.0:
            continue
        centroid = projected.centroid
        weighted_x += float(centroid.x) * area
        weighted_y += float(centroid.y) * area
        total_area += area

    if total_area > 0.0:
        x, y = weighted_x / total_area, weighted_y / total_area
    elif fallback:
        x = sum(point[0] for point in fallback) / len(fallback)
        y = sum(point[1] for point in fallback) / len(fallback)
    else:
        return anchor
    lon, lat = transformer.transform(x, y, direction="INVERSE")
    return (_normalize_lon(float(lon)), float(lat))


def clip_to_eastern_hemisphere(polygon: Any) -> Any:
    """Keep exterior points with positive longitude and re-close the ring."""
    kept = [(float(lon), float(lat)) for lon, lat in polygon.exterior.coords if lon > 0.0]
    if len(kept) < 4:
        return polygon
    if kept[0] != kept[-1]:
        kept.append(kept[0])
    return _require_shapely_polygon_factory()(kept)


def strip_holes(polygon: Any) -> Any:
    if not polygon.interiors:
        return polygon
    return _require_shapely_polygon_factory()(polygon.exterior.coords)


def exterior_lon_range(polygon: Any) -> tuple[float, float]:
    lons = [float(lon) for lon, _ in polygon.exterior.coords]
    return (min(lons), max(lons))


def laea_transformer(center: tuple[float, float]) -> Any:
    """Oblique Lambert azimuthal equal-area on the unit sphere, centered on (lon, lat)."""
    transformer_cls = _require_pyproj_transformer_cls()
    lon, lat = center
    target = f"+proj=laea +lat_0={lat!r} +lon_0={lon!r} +R=1 +units=m +no_defs"
    return transformer_cls.from_crs(_LONLAT_SPHERE, target, always_xy=True)


def _project_ring(transformer: Any, coords: Iterable[Sequence[float]]) -> list[tuple[float, float]] | None:
    points = list(coords)
    if not points:
        return None
    xs, ys = transformer.transform([p[0] for p in points], [p[1] for p in points])
    out = [(float(x), float(y)) for x, y in zip(xs, ys)]
    if not all(math.isfinite(x) and math.isfinite(y) for x, y in out):
        return None
    return out


def _vertex_mean(polygons: Sequence[Any]) -> tuple[float, float]:
    sx = sy = sz = 0.0
    first: tuple[float, float] | None = None
    for polygon in polygons:
        for lon, lat in polygon.exterior.coords:
            if first is None:
                first = (float(lon), float(lat))
            lam = math.radians(lon)
            phi = math.radians(lat)
            sx += math.cos(phi) * math.cos(lam)
            sy += math.cos(phi) * math.sin(lam)
            sz += math.sin(phi)
    norm = math.sqrt(sx * sx + sy * sy + sz * sz)
    if norm < 1e-12:
        return first if first is not None else (0.0, 0.0)
    lon = math.degrees(math.atan2(sy, sx))
    lat = math.degrees(math.asin(max(-1.0, min(1.0, sz / norm))))
    return (lon, lat)


def _rings(polygon: Any) -> list[list[tuple[float, float]]]:
    rings = [[(float(x), float(y)) for x, y in polygon.exterior.coords]]
    for interior in polygon.interiors:
        rings.append([(float(x), float(y)) for x, y in interior.coords])
    return rings


def _normalize_lon(lon: float) -> float:
    if -180.0 <= lon <= 180.0:
        return lon
    return ((lon + 180.0) % 360.0) - 180.0


@lru_cache(maxsize=1)
def _require_unit_sphere_geod() -> Any:
    try:
        from pyproj import Geod
    except ImportError as exc:  # pragma: no cover
        raise RuntimeError("pyproj is required for spherical area computation") from exc
    return Geod(a=1.0, f=0.0)


def _require_pyproj_transformer_cls() -> Any:
    try:
        from pyproj import Transformer
    except ImportError as exc:  # pragma: no cover
        raise RuntimeError("pyproj is required for azimuthal projection") from exc
    return Transformer


def _require_shapely_shape() -> Any:
    try:
        from shapely.geometry import shape
    except ImportError as exc:  # pragma: no cover
        raise RuntimeError("shapely is required for GeoJSON geometry parsing") from exc
    return shape


def _require_shapely_polygon_factory() -> Any:
    try:
        from shapely.geometry import Polygon
    except ImportError as exc:  # pragma: no cover
        raise RuntimeError("shapely is required for polygon construction") from exc
    return Polygon
