from __future__ import annotations

from typing import Any

import pytest

from countrymap.models import CountryFeature


def cw_box(west: float, south: float, east: float, north: float) -> list[list[float]]:
    """Clockwise exterior ring, matching world-atlas winding."""
    return [[west, south], [west, north], [east, north], [east, south], [west, south]]


def ccw_box(west: float, south: float, east: float, north: float) -> list[list[float]]:
    return [[west, south], [east, south], [east, north], [west, north], [west, south]]


def polygon_geometry(*rings: list[list[float]]) -> dict[str, Any]:
    return {"type": "Polygon", "coordinates": [list(ring) for ring in rings]}


def multipolygon_geometry(*polygons: list[list[list[float]]]) -> dict[str, Any]:
    return {"type": "MultiPolygon", "coordinates": [list(polygon) for polygon in polygons]}


def feature(identifier: str, geometry: dict[str, Any] | None) -> CountryFeature:
    return CountryFeature(identifier=identifier, geometry=geometry)


@pytest.fixture()
def mainland_feature() -> CountryFeature:
    return feature("900", polygon_geometry(cw_box(0.0, 0.0, 20.0, 20.0)))


@pytest.fixture()
def island_nation_feature() -> CountryFeature:
    """Mainland with one remote island 20 degrees east of its padded bounds."""
    return feature(
        "901",
        multipolygon_geometry(
            [cw_box(0.0, 0.0, 20.0, 20.0)],
            [cw_box(45.0, 8.0, 48.0, 11.0)],
        ),
    )


@pytest.fixture()
def scattered_feature() -> CountryFeature:
    """Mainland plus nearby, remote, tiny-remote and noise-sized polygons."""
    return feature(
        "902",
        multipolygon_geometry(
            [cw_box(0.0, 0.0, 20.0, 20.0)],
            [cw_box(21.0, 5.0, 22.0, 6.0)],
            [cw_box(60.0, 0.0, 61.0, 1.0)],
            [cw_box(100.0, 0.0, 100.35, 0.35)],
            [cw_box(120.0, 0.0, 120.1, 0.1)],
        ),
    )


@pytest.fixture()
def three_direction_feature() -> CountryFeature:
    """Mainland with remote territories to the east, west and south, in descending area."""
    return feature(
        "903",
        multipolygon_geometry(
            [cw_box(0.0, 0.0, 20.0, 20.0)],
            [cw_box(60.0, 9.0, 62.0, 11.0)],
            [cw_box(-42.0, 9.1, -40.0, 10.9)],
            [cw_box(9.25, -40.75, 10.75, -39.25)],
        ),
    )
