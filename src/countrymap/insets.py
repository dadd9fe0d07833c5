"""Placement of inset boxes for distant territory groups around the viewport edge."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Sequence

from .geo import spherical_centroid
from .models import EdgeFlags, InsetBox, Viewport
from .projection import AzimuthalProjection, fit_extent, fit_size

_LOGGER = logging.getLogger("countrymap.insets")


@dataclass(frozen=True, slots=True)
class _InsetPolicy:
    min_box_px: float
    max_box_px: float
    content_padding_px: float
    box_gap_px: float
    edge_padding_px: float
    max_scale_ratio: float
    edge_touch_tolerance_px: float
    min_direction: float


_INSET_POLICY = _InsetPolicy(
    min_box_px=30.0,
    max_box_px=60.0,
    content_padding_px=4.0,
    box_gap_px=4.0,
    edge_padding_px=0.0,
    max_scale_ratio=2.0,
    edge_touch_tolerance_px=1.0,
    min_direction=0.001,
)


@dataclass(frozen=True, slots=True)
class _Rect:
    x: float
    y: float
    w: float
    h: float

    def conflicts(self, x: float, y: float, w: float, h: float, gap: float) -> bool:
        """True when a w x h box at (x, y) comes closer than `gap` to this rect."""
        return (
            x < self.x + self.w + gap
            and self.x < x + w + gap
            and y < self.y + self.h + gap
            and self.y < y + h + gap
        )


@dataclass(frozen=True, slots=True)
class _EdgeHit:
    x: float
    y: float
    t: float


def layout_insets(
    groups: Sequence[Sequence[Any]],
    main_centroid: tuple[float, float],
    projection: AzimuthalProjection,
    viewport: Viewport,
) -> list[InsetBox]:
    """Return one box per group, in group order, pushed to the edge facing the group."""
    if not groups:
        return []
    main_screen = projection.project(*main_centroid)
    placed: list[_Rect] = []
    boxes: list[InsetBox] = []
    for members in groups:
        box = _layout_group(
            members=list(members),
            main_centroid=main_centroid,
            main_screen=main_screen,
            projection=projection,
            viewport=viewport,
            placed=placed,
        )
        placed.append(_Rect(box.x, box.y, box.w, box.h))
        boxes.append(box)
    return boxes


def _layout_group(
    *,
    members: list[Any],
    main_centroid: tuple[float, float],
    main_screen: tuple[float, float] | None,
    projection: AzimuthalProjection,
    viewport: Viewport,
    placed: Sequence[_Rect],
) -> InsetBox:
    group_centroid = spherical_centroid(members)
    dx, dy = _direction(
        main_centroid=main_centroid,
        group_centroid=group_centroid,
        main_screen=main_screen,
        group_screen=projection.project(*group_centroid),
    )
    group_projection = AzimuthalProjection.centered_on(group_centroid)
    box_w, box_h = _box_size(members, group_projection, viewport)
    x, y = _edge_position(dx=dx, dy=dy, box_w=box_w, box_h=box_h, viewport=viewport)
    x, y = _resolve_overlap(x=x, y=y, box_w=box_w, box_h=box_h, viewport=viewport, placed=placed)

    inset_projection = _fit_into_box(
        members,
        group_projection,
        box_w=box_w,
        box_h=box_h,
        max_scale=projection.scale * _INSET_POLICY.max_scale_ratio,
        scale_factor=viewport.scale_factor,
    )
    paths = tuple(
        path for path in (inset_projection.path([member]) for member in members) if path
    )
    tolerance = _INSET_POLICY.edge_touch_tolerance_px
    edges = EdgeFlags(
        left=x <= tolerance,
        top=y <= tolerance,
        right=x + box_w >= viewport.width - tolerance,
        bottom=y + box_h >= viewport.height - tolerance,
    )
    _LOGGER.debug(
        "inset at (%.1f, %.1f) size %.1fx%.1f for %d polygons, dir=(%.3f, %.3f)",
        x,
        y,
        box_w,
        box_h,
        len(members),
        dx,
        dy,
    )
    return InsetBox(
        x=x,
        y=y,
        w=box_w,
        h=box_h,
        paths=paths,
        edges=edges,
        projection=inset_projection.state,
    )


def _direction(
    *,
    main_centroid: tuple[float, float],
    group_centroid: tuple[float, float],
    main_screen: tuple[float, float] | None,
    group_screen: tuple[float, float] | None,
) -> tuple[float, float]:
    if main_screen is not None and group_screen is not None:
        dx = group_screen[0] - main_screen[0]
        dy = group_screen[1] - main_screen[1]
    else:
        # Screen y grows downward.
        dx = group_centroid[0] - main_centroid[0]
        dy = -(group_centroid[1] - main_centroid[1])
    length = math.hypot(dx, dy)
    if length > 0.0:
        dx /= length
        dy /= length
    return (dx, dy)


def _box_size(
    members: Sequence[Any],
    group_projection: AzimuthalProjection,
    viewport: Viewport,
) -> tuple[float, float]:
    scale_factor = viewport.scale_factor
    # Never larger than the viewport itself.
    max_box = min(_INSET_POLICY.max_box_px * scale_factor, viewport.width, viewport.height)
    min_box = min(_INSET_POLICY.min_box_px * scale_factor, max_box)
    padding = min(_INSET_POLICY.content_padding_px * scale_factor, max_box / 4.0)

    inner = max_box - padding * 2.0
    trial = fit_size(group_projection, (inner, inner), members)
    bounds = trial.bounds(members)
    if bounds is None:
        natural_w = natural_h = inner
    else:
        natural_w = max(1.0, bounds[2] - bounds[0])
        natural_h = max(1.0, bounds[3] - bounds[1])
    aspect = natural_w / natural_h

    if aspect > 1.0:
        box_w = min(max_box, natural_w + padding * 2.0)
        box_h = box_w / aspect
        if box_h < min_box:
            box_h = min_box
            box_w = box_h * aspect
    else:
        box_h = min(max_box, natural_h + padding * 2.0)
        box_w = box_h * aspect
        if box_w < min_box:
            box_w = min_box
            box_h = box_w / aspect

    if box_w > max_box:
        box_w = max_box
        box_h = box_w / aspect
    if box_h > max_box:
        box_h = max_box
        box_w = box_h * aspect
    return (box_w, box_h)


def _edge_position(
    *,
    dx: float,
    dy: float,
    box_w: float,
    box_h: float,
    viewport: Viewport,
) -> tuple[float, float]:
    pad = _INSET_POLICY.edge_padding_px
    width = viewport.width
    height = viewport.height
    max_x = width - pad - box_w
    max_y = height - pad - box_h
    if abs(dx) < _INSET_POLICY.min_direction and abs(dy) < _INSET_POLICY.min_direction:
        return (pad, pad)

    center_x = width / 2.0
    center_y = height / 2.0
    hits: list[_EdgeHit] = []
    if dx != 0.0:
        # Left or right edge, whichever the ray heads toward.
        target_x = pad + box_w / 2.0 if dx < 0.0 else width - pad - box_w / 2.0
        t = (target_x - center_x) / dx
        iy = center_y + t * dy
        if pad <= iy <= max_y:
            hits.append(_EdgeHit(x=pad if dx < 0.0 else max_x, y=iy - box_h / 2.0, t=abs(t)))
    if dy != 0.0:
        target_y = pad + box_h / 2.0 if dy < 0.0 else height - pad - box_h / 2.0
        t = (target_y - center_y) / dy
        ix = center_x + t * dx
        if pad <= ix <= max_x:
            hits.append(_EdgeHit(x=ix - box_w / 2.0, y=pad if dy < 0.0 else max_y, t=abs(t)))

    if not hits:
        # Corner fallback.
        return (
            _clamp(pad if dx < 0.0 else max_x, pad, max_x),
            _clamp(pad if dy < 0.0 else max_y, pad, max_y),
        )
    nearest = min(hits, key=lambda hit: hit.t)
    return (_clamp(nearest.x, pad, max_x), _clamp(nearest.y, pad, max_y))


def _resolve_overlap(
    *,
    x: float,
    y: float,
    box_w: float,
    box_h: float,
    viewport: Viewport,
    placed: Sequence[_Rect],
) -> tuple[float, float]:
    """Slide the box along its edge to the first slot clear of every placed box.

    Slots are tried forward from the current position, then from the start of the edge. When the
    edge has no free slot the box stays where it was, clamped into the viewport.
    """
    pad = _INSET_POLICY.edge_padding_px
    gap = _INSET_POLICY.box_gap_px * viewport.scale_factor
    max_x = viewport.width - pad - box_w
    max_y = viewport.height - pad - box_h
    if not any(rect.conflicts(x, y, box_w, box_h, gap) for rect in placed):
        return (x, y)

    along_x = y <= pad + 1.0 or y >= max_y - 1.0
    start, limit = (x, max_x) if along_x else (y, max_y)
    # A free slot, if any, starts at the edge start, the edge end or just past a placed box.
    stops = sorted({(rect.x + rect.w if along_x else rect.y + rect.h) + gap for rect in placed})
    ahead = [*(stop for stop in stops if start < stop <= limit), limit]
    behind = [pad, *(stop for stop in stops if pad < stop < start)]
    for slot in (*ahead, *behind):
        cx, cy = (slot, y) if along_x else (x, slot)
        if not any(rect.conflicts(cx, cy, box_w, box_h, gap) for rect in placed):
            return (_clamp(cx, 0.0, max(max_x, 0.0)), _clamp(cy, 0.0, max(max_y, 0.0)))
    return (_clamp(x, 0.0, max(max_x, 0.0)), _clamp(y, 0.0, max(max_y, 0.0)))


def _fit_into_box(
    members: Sequence[Any],
    group_projection: AzimuthalProjection,
    *,
    box_w: float,
    box_h: float,
    max_scale: float,
    scale_factor: float,
) -> AzimuthalProjection:
    padding = _INSET_POLICY.content_padding_px * scale_factor
    fitted = fit_extent(
        group_projection,
        ((padding, padding), (box_w - padding, box_h - padding)),
        members,
    )
    if fitted.scale <= max_scale:
        return fitted
    # Tiny islets near the mainland would otherwise fill the whole box.
    capped = fitted.with_scale(max_scale)
    bounds = capped.bounds(members)
    if bounds is None:
        return capped.with_translate(box_w / 2.0, box_h / 2.0)
    cx = (bounds[0] + bounds[2]) / 2.0
    cy = (bounds[1] + bounds[3]) / 2.0
    tx, ty = capped.translate
    return capped.with_translate(box_w / 2.0 - cx + tx, box_h / 2.0 - cy + ty)


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))
