"""PNG rasterization of composed scenes through matplotlib's Agg backend."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Sequence

from .config import StyleConfig
from .models import InsetBox, Scene

_PATH_TOKEN = re.compile(r"([MLZ])([^MLZ]*)")

_Ring = list[tuple[float, float]]


def parse_path_data(d: str) -> list[_Ring]:
    """Split `M x,yLx,y...Z` path data into closed rings."""
    rings: list[_Ring] = []
    current: _Ring = []
    for command, args in _PATH_TOKEN.findall(d):
        if command == "Z":
            if len(current) >= 3:
                rings.append(current)
            current = []
            continue
        x_text, _, y_text = args.strip().partition(",")
        point = (float(x_text), float(y_text))
        if command == "M":
            if len(current) >= 3:
                rings.append(current)
            current = [point]
        else:
            current.append(point)
    if len(current) >= 3:
        rings.append(current)
    return rings


def write_scene_png(
    scene: Scene,
    output_path: Path,
    style: StyleConfig | None = None,
    *,
    dpi: int = 100,
) -> Path:
    plt, mpath, patches = _require_matplotlib()
    style = style or StyleConfig.default()
    fig = plt.figure(figsize=(scene.width / dpi, scene.height / dpi), dpi=dpi)
    try:
        fig.patch.set_facecolor(style.ocean_color)
        ax = fig.add_axes([0.0, 0.0, 1.0, 1.0])
        _configure_axes(ax, scene.width, scene.height, style.ocean_color)
        for d in scene.neighbor_paths:
            _fill_path(
                ax,
                mpath,
                patches,
                d,
                facecolor=style.neighbor_color,
                edgecolor=style.ocean_color,
                line_width=_points(scene.stroke_width, dpi),
                zorder=1,
            )
        for d in scene.target_paths:
            _fill_path(ax, mpath, patches, d, facecolor=style.country_color, zorder=2)
        if scene.capital is not None:
            ax.add_patch(
                patches.Circle(
                    (scene.capital.x, scene.capital.y),
                    scene.capital.radius,
                    facecolor=style.capital_color,
                    edgecolor="none",
                    zorder=3,
                )
            )

        for idx, box in enumerate(scene.inset_boxes):
            _draw_inset(fig, mpath, patches, box, scene=scene, style=style, dpi=dpi, zorder=20 + idx)

        output_path.parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(output_path, dpi=dpi, format="png", facecolor=fig.get_facecolor())
        return output_path
    finally:
        plt.close(fig)


def _draw_inset(
    fig: Any,
    mpath: Any,
    patches: Any,
    box: InsetBox,
    *,
    scene: Scene,
    style: StyleConfig,
    dpi: int,
    zorder: int,
) -> None:
    left = box.x / scene.width
    bottom = 1.0 - (box.y + box.h) / scene.height
    ax = fig.add_axes([left, bottom, box.w / scene.width, box.h / scene.height], zorder=zorder)
    _configure_axes(ax, box.w, box.h, style.ocean_color)
    for d in box.paths:
        _fill_path(ax, mpath, patches, d, facecolor=style.country_color, zorder=2)

    # Edges flush with the viewport border stay unframed.
    frame = (
        (box.edges.top, ((0.0, box.w), (0.0, 0.0))),
        (box.edges.right, ((box.w, box.w), (0.0, box.h))),
        (box.edges.bottom, ((box.w, 0.0), (box.h, box.h))),
        (box.edges.left, ((0.0, 0.0), (box.h, 0.0))),
    )
    for flush, (xs, ys) in frame:
        if flush:
            continue
        ax.plot(
            xs,
            ys,
            color=style.country_color,
            linewidth=_points(1.0, dpi),
            zorder=3,
            clip_on=False,
            solid_capstyle="projecting",
        )


def _configure_axes(ax: Any, width: float, height: float, background: str) -> None:
    ax.set_xlim(0.0, width)
    # Screen coordinates grow downwards.
    ax.set_ylim(height, 0.0)
    ax.set_facecolor(background)
    ax.set_xticks([])
    ax.set_yticks([])
    for spine in ax.spines.values():
        spine.set_visible(False)


def _fill_path(
    ax: Any,
    mpath: Any,
    patches: Any,
    d: str,
    *,
    facecolor: str,
    edgecolor: str = "none",
    line_width: float = 0.0,
    zorder: int = 1,
) -> None:
    rings = parse_path_data(d)
    if not rings:
        return
    vertices, codes = _path_arrays(rings, mpath)
    patch = patches.PathPatch(
        mpath.Path(vertices, codes),
        facecolor=facecolor,
        edgecolor=edgecolor,
        linewidth=line_width,
        joinstyle="round",
        zorder=zorder,
    )
    ax.add_patch(patch)


def _path_arrays(rings: Sequence[_Ring], mpath: Any) -> tuple[list[tuple[float, float]], list[int]]:
    vertices: list[tuple[float, float]] = []
    codes: list[int] = []
    for ring in rings:
        vertices.extend(ring)
        vertices.append(ring[0])
        codes.append(mpath.Path.MOVETO)
        codes.extend([mpath.Path.LINETO] * (len(ring) - 1))
        codes.append(mpath.Path.CLOSEPOLY)
    return vertices, codes


def _points(pixels: float, dpi: int) -> float:
    return pixels * 72.0 / dpi


def _require_matplotlib() -> tuple[Any, Any, Any]:
    try:
        import matplotlib

        matplotlib.use("Agg", force=False)
        import matplotlib.patches as patches
        import matplotlib.path as mpath
        import matplotlib.pyplot as plt
    except ImportError as exc:  # pragma: no cover
        raise RuntimeError("matplotlib is required for PNG output") from exc
    return (plt, mpath, patches)
