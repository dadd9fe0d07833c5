from __future__ import annotations

import pytest
from shapely.geometry import Polygon

from conftest import cw_box, feature, polygon_geometry
from countrymap.classify import classify
from countrymap.geo import spherical_centroid
from countrymap.models import MODE_OVERVIEW, VARIANT_ZOOMED_OUT, RenderConfig, RenderPolicy
from countrymap.projection import (
    AzimuthalProjection,
    build_projection,
    fit_extent,
    fitting_polygons,
    format_number,
    global_context_scale,
)


def test_fit_extent_fills_one_dimension_and_stays_inside() -> None:
    polygon = Polygon(cw_box(0.0, 0.0, 20.0, 10.0))
    projection = fit_extent(
        AzimuthalProjection.centered_on(spherical_centroid([polygon])),
        ((10.0, 10.0), (390.0, 290.0)),
        [polygon],
    )
    x0, y0, x1, y1 = projection.bounds([polygon])
    assert x0 >= 10.0 - 1e-6 and y0 >= 10.0 - 1e-6
    assert x1 <= 390.0 + 1e-6 and y1 <= 290.0 + 1e-6
    assert x1 - x0 == pytest.approx(380.0, rel=1e-6) or y1 - y0 == pytest.approx(280.0, rel=1e-6)


def test_projection_center_maps_to_translate() -> None:
    projection = AzimuthalProjection.centered_on((10.0, 20.0)).with_scale(100.0).with_translate(50.0, 60.0)
    x, y = projection.project(10.0, 20.0)
    assert x == pytest.approx(50.0)
    assert y == pytest.approx(60.0)


def test_north_is_up_on_screen() -> None:
    projection = AzimuthalProjection.centered_on((0.0, 0.0)).with_scale(100.0)
    _, y_north = projection.project(0.0, 10.0)
    _, y_south = projection.project(0.0, -10.0)
    assert y_north < y_south


def test_path_format() -> None:
    projection = AzimuthalProjection.centered_on((0.0, 0.0)).with_scale(1000.0).with_translate(200.0, 150.0)
    d = projection.path([Polygon(cw_box(-1.0, -1.0, 1.0, 1.0))])
    assert d is not None
    assert d.startswith("M") and d.endswith("Z")
    assert d.count("M") == 1
    assert d.count("L") == 3


def test_single_polygon_projection_is_centered_on_its_centroid(mainland_feature) -> None:
    parts = classify(mainland_feature)
    assert parts is not None
    config = RenderConfig(width=400, height=300)
    projection = build_projection(parts, config, RenderPolicy(show_insets=False, use_global_zoom=False))
    assert projection.center == spherical_centroid([parts.main_for_rendering])
    assert projection.translate == (200.0, 150.0)


def test_global_zoom_ignores_country_size() -> None:
    config = RenderConfig(width=400, height=300, variant=VARIANT_ZOOMED_OUT, scale_factor=2.0)
    policy = RenderPolicy(show_insets=False, use_global_zoom=True)
    scales = []
    for box in (cw_box(0.0, 0.0, 1.0, 1.0), cw_box(0.0, 0.0, 40.0, 40.0)):
        parts = classify(feature("1", polygon_geometry(box)))
        assert parts is not None
        scales.append(build_projection(parts, config, policy).scale)
    assert scales == [global_context_scale(2.0), global_context_scale(2.0)]
    assert scales[0] == pytest.approx(500.0)


def test_zoom_multiplier_scales_fitted_projection(mainland_feature) -> None:
    parts = classify(mainland_feature)
    assert parts is not None
    config = RenderConfig(width=400, height=300)
    base = build_projection(parts, config, RenderPolicy(show_insets=False, use_global_zoom=False))
    zoomed = build_projection(
        parts, config, RenderPolicy(show_insets=False, use_global_zoom=False, zoom_multiplier=4.0)
    )
    assert zoomed.scale == pytest.approx(base.scale * 4.0)


def test_overview_fits_without_inset_candidates(island_nation_feature) -> None:
    parts = classify(island_nation_feature)
    assert parts is not None
    policy = RenderPolicy(show_insets=False, use_global_zoom=False)
    quiz = fitting_polygons(parts, config=RenderConfig(width=400, height=300), policy=policy)
    overview = fitting_polygons(
        parts, config=RenderConfig(width=400, height=300, mode=MODE_OVERVIEW), policy=policy
    )
    assert len(quiz) == 2
    assert overview == [parts.main_for_rendering]


def test_insignificant_polygons_do_not_drive_the_fit(scattered_feature) -> None:
    parts = classify(scattered_feature)
    assert parts is not None
    polygons = fitting_polygons(
        parts,
        config=RenderConfig(width=400, height=300),
        policy=RenderPolicy(show_insets=False, use_global_zoom=False),
    )
    # The nearby islet and the remote one are both under 1% of the mainland.
    assert polygons == [parts.main_for_rendering]


def test_format_number() -> None:
    assert format_number(1.23456) == "1.235"
    assert format_number(2.0) == "2"
    assert format_number(-0.0001) == "0"


def test_ring_around_the_antipode_is_not_drawn() -> None:
    # Antipode of (-65, -35) is (115, 35).
    projection = AzimuthalProjection.centered_on((-65.0, -35.0)).with_scale(100.0).with_translate(200.0, 150.0)
    around_antipode = Polygon(cw_box(105.0, 25.0, 125.0, 45.0))
    far_side = Polygon(cw_box(60.0, 10.0, 80.0, 30.0))
    assert projection.path([around_antipode]) is None
    assert projection.bounds([around_antipode]) is None
    assert projection.path([far_side]) is not None
