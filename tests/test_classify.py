from __future__ import annotations

from conftest import ccw_box, cw_box, feature, multipolygon_geometry, polygon_geometry
from countrymap.classify import classify
from countrymap.geo import polygons_from_geometry, spherical_area


def _ids(polygons) -> set[int]:
    return {id(polygon) for polygon in polygons}


def test_single_polygon_is_its_own_main(mainland_feature) -> None:
    parts = classify(mainland_feature)
    assert parts is not None
    assert parts.nearby == (parts.main_for_rendering,)
    assert parts.main_for_projection is parts.main_for_rendering
    assert parts.inset_candidates == ()
    assert parts.inset_groups == ()
    assert parts.tiny_distant == ()


def test_every_polygon_lands_in_exactly_one_role(scattered_feature) -> None:
    parts = classify(scattered_feature)
    assert parts is not None
    roles = [parts.nearby, parts.tiny_distant, parts.inset_candidates, parts.discarded]
    total = sum(len(role) for role in roles)
    assert total == len(polygons_from_geometry(scattered_feature.geometry))
    seen: set[int] = set()
    for role in roles:
        ids = _ids(role)
        assert not (seen & ids)
        seen |= ids
    assert parts.main_for_rendering in parts.nearby


def test_scattered_roles(scattered_feature) -> None:
    parts = classify(scattered_feature)
    assert parts is not None
    assert len(parts.nearby) == 2
    assert [p.bounds[0] for p in parts.inset_candidates] == [60.0]
    assert [p.bounds[0] for p in parts.tiny_distant] == [100.0]
    assert [p.bounds[0] for p in parts.discarded] == [120.0]


def test_main_is_largest(scattered_feature) -> None:
    parts = classify(scattered_feature)
    assert parts is not None
    others = [*parts.nearby, *parts.tiny_distant, *parts.inset_candidates]
    assert all(spherical_area(polygon) <= parts.main_area for polygon in others)


def test_main_selection_does_not_depend_on_order() -> None:
    small = [cw_box(0.0, 0.0, 2.0, 2.0)]
    large = [cw_box(1.0, 3.0, 11.0, 13.0)]
    first = classify(feature("1", multipolygon_geometry(small, large)))
    second = classify(feature("1", multipolygon_geometry(large, small)))
    assert first is not None and second is not None
    assert first.main_for_rendering.equals(second.main_for_rendering)


def test_remote_island_becomes_single_inset_group(island_nation_feature) -> None:
    parts = classify(island_nation_feature)
    assert parts is not None
    assert len(parts.inset_candidates) == 1
    assert len(parts.inset_groups) == 1
    assert parts.inset_groups[0] == parts.inset_candidates
    assert parts.tiny_distant == ()


def test_antimeridian_main_is_clipped_for_projection() -> None:
    main_ring = [
        [-170.0, 60.0],
        [170.0, 60.0],
        [160.0, 60.0],
        [160.0, 70.0],
        [170.0, 70.0],
        [-170.0, 70.0],
        [-170.0, 60.0],
    ]
    parts = classify(
        feature("643", multipolygon_geometry([main_ring], [cw_box(165.0, 55.0, 166.0, 56.0)]))
    )
    assert parts is not None
    assert parts.spans_antimeridian
    coords = list(parts.main_for_projection.exterior.coords)
    assert coords[0] == coords[-1]
    assert all(lon > 0.0 for lon, _ in coords)
    assert parts.main_for_rendering in parts.nearby


def test_polygon_across_antimeridian_from_main_stays_nearby() -> None:
    parts = classify(
        feature(
            "242",
            multipolygon_geometry(
                [cw_box(170.0, -20.0, 179.0, -15.0)],
                [cw_box(-179.5, -17.0, -178.5, -16.0)],
            ),
        )
    )
    assert parts is not None
    assert len(parts.nearby) == 2
    assert parts.inset_candidates == ()


def test_corrupted_single_polygon_yields_none() -> None:
    assert classify(feature("1", polygon_geometry(ccw_box(0.0, 0.0, 10.0, 10.0)))) is None


def test_corrupted_part_is_discarded() -> None:
    parts = classify(
        feature(
            "1",
            multipolygon_geometry([ccw_box(0.0, 0.0, 10.0, 10.0)], [cw_box(0.0, 0.0, 5.0, 5.0)]),
        )
    )
    assert parts is not None
    assert len(parts.discarded) == 1
    assert parts.main_for_rendering.bounds == (0.0, 0.0, 5.0, 5.0)


def test_strip_holes_drops_interiors() -> None:
    geometry = polygon_geometry(cw_box(0.0, 0.0, 10.0, 10.0), ccw_box(2.0, 2.0, 4.0, 4.0))
    kept = classify(feature("398", geometry))
    stripped = classify(feature("398", geometry), strip_holes=True)
    assert kept is not None and stripped is not None
    assert len(kept.main_for_rendering.interiors) == 1
    assert len(stripped.main_for_rendering.interiors) == 0


def test_non_polygonal_feature_yields_none() -> None:
    assert classify(feature("1", {"type": "Point", "coordinates": [0.0, 0.0]})) is None
    assert classify(feature("1", None)) is None


def _far_square(lon: float, side: float) -> list:
    return [cw_box(lon, 0.0, lon + side, side)]


def test_area_share_thresholds_split_inset_tiny_and_discarded() -> None:
    main = [cw_box(0.0, 0.0, 20.0, 20.0)]
    # Shares of the main area: ~0.105%, ~0.098%, ~0.0207%, ~0.0193%.
    geometry = multipolygon_geometry(
        main,
        _far_square(60.0, 0.64),
        _far_square(80.0, 0.62),
        _far_square(100.0, 0.285),
        _far_square(120.0, 0.275),
    )
    parts = classify(feature("1", geometry))
    assert parts is not None

    def share(polygon) -> float:
        return spherical_area(polygon) / parts.main_area

    (inset,) = parts.inset_candidates
    assert inset.bounds[0] == 60.0
    assert 0.001 < share(inset) < 0.0011
    assert sorted(p.bounds[0] for p in parts.tiny_distant) == [80.0, 100.0]
    below_inset, above_tiny = sorted(parts.tiny_distant, key=lambda p: p.bounds[0])
    assert 0.00095 < share(below_inset) < 0.001
    assert 0.0002 < share(above_tiny) < 0.00021
    (dropped,) = parts.discarded
    assert dropped.bounds[0] == 120.0
    assert 0.00019 < share(dropped) < 0.0002
