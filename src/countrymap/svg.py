"""SVG emission for composed scenes."""

from __future__ import annotations

from html import escape

from .config import StyleConfig
from .models import InsetBox, Scene
from .projection import format_number

_INSET_FRAME_WIDTH = 1
_INSET_CLIP_RADIUS = 2


def render_scene_svg(scene: Scene, style: StyleConfig | None = None) -> str:
    """Serialize a Scene to a standalone SVG document."""
    style = style or StyleConfig.default()
    width = format_number(scene.width)
    height = format_number(scene.height)
    ocean = escape(style.ocean_color)
    neighbor = escape(style.neighbor_color)
    country = escape(style.country_color)
    stroke = format_number(scene.stroke_width)

    lines = [
        f'<svg xmlns="http://www.w3.org/2000/svg" width="{width}" height="{height}" '
        f'viewBox="0 0 {width} {height}">',
        f'  <rect width="{width}" height="{height}" fill="{ocean}"/>',
    ]
    lines.extend(
        f'  <path d="{d}" fill="{neighbor}" stroke="{ocean}" stroke-width="{stroke}"/>'
        for d in scene.neighbor_paths
    )
    lines.extend(f'  <path d="{d}" fill="{country}"/>' for d in scene.target_paths)
    if scene.capital is not None:
        lines.append(
            f'  <circle cx="{format_number(scene.capital.x)}" cy="{format_number(scene.capital.y)}" '
            f'r="{format_number(scene.capital.radius)}" fill="{escape(style.capital_color)}"/>'
        )
    for idx, box in enumerate(scene.inset_boxes):
        lines.extend(_inset_lines(box, idx, ocean=ocean, country=country))
    lines.append("</svg>")
    return "\n".join(lines) + "\n"


def inset_frame_path(box: InsetBox) -> str:
    """Frame strokes for the edges that do not sit on the viewport border."""
    w = format_number(box.w)
    h = format_number(box.h)
    segments: list[str] = []
    if not box.edges.top:
        segments.append(f"M0,0 L{w},0")
    if not box.edges.right:
        segments.append(f"M{w},0 L{w},{h}")
    if not box.edges.bottom:
        segments.append(f"M{w},{h} L0,{h}")
    if not box.edges.left:
        segments.append(f"M0,{h} L0,0")
    return " ".join(segments)


def _inset_lines(box: InsetBox, idx: int, *, ocean: str, country: str) -> list[str]:
    w = format_number(box.w)
    h = format_number(box.h)
    clip_id = f"inset-clip-{idx}"
    lines = [
        f'  <g transform="translate({format_number(box.x)}, {format_number(box.y)})">',
        f'    <rect width="{w}" height="{h}" fill="{ocean}"/>',
        f'    <defs><clipPath id="{clip_id}"><rect width="{w}" height="{h}" '
        f'rx="{_INSET_CLIP_RADIUS}"/></clipPath></defs>',
    ]
    lines.extend(
        f'    <path d="{d}" clip-path="url(#{clip_id})" fill="{country}"/>' for d in box.paths
    )
    frame = inset_frame_path(box)
    if frame:
        lines.append(
            f'    <path d="{frame}" stroke="{country}" stroke-width="{_INSET_FRAME_WIDTH}" fill="none"/>'
        )
    lines.append("  </g>")
    return lines
