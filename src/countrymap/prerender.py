"""Batch pre-rendering of every country map in a boundary dataset."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Sequence

from .boundaries import BoundaryCache, resolve_target_feature
from .capitals import load_capital_coordinates
from .config import AppConfig
from .engine import MapEngine
from .models import RenderConfig, Scene
from .overrides import load_country_overrides
from .raster import write_scene_png
from .svg import render_scene_svg
from .util import format_code_list, safe_file_stem, write_json, write_text

_LOGGER = logging.getLogger("countrymap.prerender")


@dataclass(slots=True)
class PrerenderReport:
    output_dir: Path | None = None
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    infos: list[str] = field(default_factory=list)
    summary: dict[str, int] = field(default_factory=dict)
    written: list[Path] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def add_error(self, msg: str) -> None:
        self.errors.append(msg)

    def add_warning(self, msg: str) -> None:
        self.warnings.append(msg)

    def add_info(self, msg: str) -> None:
        self.infos.append(msg)


def output_file_name(identifier: str, variant: str, width: int, height: int, fmt: str) -> str:
    return f"map_{safe_file_stem(identifier)}_{variant}_{width}x{height}.{fmt}"


def run_prerender(
    cfg: AppConfig,
    *,
    country_filter: Sequence[str] | None = None,
    limit_countries: int | None = None,
    cache: BoundaryCache | None = None,
    engine: MapEngine | None = None,
) -> PrerenderReport:
    """Render every configured size and variant for each country of the primary dataset."""
    report = PrerenderReport(output_dir=cfg.paths.output_dir)
    if limit_countries is not None and limit_countries < 1:
        report.add_error("limit_countries must be >= 1 when provided.")
        return report

    cache = cache if cache is not None else BoundaryCache()
    if engine is None:
        try:
            overrides = load_country_overrides(cfg.paths.overrides)
        except Exception as exc:
            report.add_error(f"Failed loading country overrides '{cfg.paths.overrides}': {exc}")
            return report
        engine = MapEngine(overrides)

    try:
        capitals = load_capital_coordinates(cfg.paths.capitals)
    except Exception as exc:
        report.add_error(f"Failed loading capitals '{cfg.paths.capitals}': {exc}")
        return report

    try:
        primary = cache.get(cfg.paths.boundaries)
        neighbor_dataset = cache.get(cfg.paths.effective_neighbor_boundaries)
    except Exception as exc:
        report.add_error(f"Failed loading boundary datasets: {exc}")
        return report
    report.add_info(f"Loaded {len(primary.features)} boundary features from {primary.source}")

    identifiers = list(primary.identifiers)
    if country_filter:
        requested = {item.strip() for item in country_filter if item and item.strip()}
        if requested:
            identifiers = [identifier for identifier in identifiers if identifier in requested]
            report.add_info(
                f"Country filter enabled: {len(identifiers)} selected from {len(requested)} requested ids."
            )
            missing_requested = sorted(requested - set(identifiers))
            if missing_requested:
                report.add_warning(
                    "Requested ids not present in boundary dataset: "
                    + format_code_list(missing_requested)
                )
    if limit_countries is not None:
        identifiers = identifiers[:limit_countries]
        report.add_info(f"Country limit enabled: first {len(identifiers)} countries.")
    if not identifiers:
        report.add_error("No countries selected for pre-rendering after filters/limits.")
        return report

    sources = (cfg.paths.boundaries, cfg.paths.fallback_boundaries)
    neighbors = neighbor_dataset.features
    failures: list[str] = []
    empty: list[str] = []
    files_written = 0

    for idx, identifier in enumerate(identifiers, start=1):
        country_t0 = time.perf_counter()
        try:
            feature = resolve_target_feature(cache, identifier, sources)
            country_files = 0
            for width, height in cfg.prerender.sizes:
                for variant in cfg.prerender.variants:
                    config = RenderConfig(
                        width=width,
                        height=height,
                        mode=cfg.prerender.mode,
                        variant=variant,
                        scale_factor=cfg.prerender.scale_factor,
                    )
                    scene = engine.render(
                        feature, neighbors, config, capital=capitals.get(identifier)
                    )
                    if scene is None:
                        continue
                    for fmt in cfg.prerender.formats:
                        path = cfg.paths.output_dir / output_file_name(
                            identifier, variant, width, height, fmt
                        )
                        write_scene(scene, path, fmt=fmt, cfg=cfg)
                        report.written.append(path)
                        country_files += 1
        except Exception as exc:
            failures.append(f"{identifier}({exc})")
            _LOGGER.exception("[prerender] %s failed", identifier)
            continue

        if country_files == 0:
            empty.append(identifier)
        files_written += country_files
        _LOGGER.info(
            "[prerender] (%d/%d) %s: %d files in %.2fs",
            idx,
            len(identifiers),
            identifier,
            country_files,
            time.perf_counter() - country_t0,
        )

    report.summary = {
        "countries_total": len(identifiers),
        "files_written": files_written,
        "countries_failed": len(failures),
        "countries_empty": len(empty),
    }
    if empty:
        report.add_warning("Countries without renderable geometry: " + format_code_list(sorted(empty)))
    if failures:
        report.add_error("Pre-render failures: " + format_code_list(sorted(failures)))
    report.add_info(
        "Pre-render summary: "
        f"countries_total={len(identifiers)}, "
        f"files_written={files_written}, "
        f"failed={len(failures)}, "
        f"empty={len(empty)}"
    )
    if report.ok:
        report.add_info(f"Map files written to {cfg.paths.output_dir}")
    return report


def write_scene(scene: Scene, path: Path, *, fmt: str, cfg: AppConfig) -> None:
    if fmt == "svg":
        write_text(path, render_scene_svg(scene, cfg.style))
    elif fmt == "png":
        write_scene_png(scene, path, cfg.style, dpi=cfg.prerender.dpi)
    elif fmt == "json":
        write_json(path, scene.to_dict())
    else:
        raise ValueError(f"Unsupported output format: {fmt}")


def format_prerender_lines(report: PrerenderReport) -> Sequence[str]:
    lines: list[str] = []
    lines.extend(f"[INFO] {msg}" for msg in report.infos)
    lines.extend(f"[WARN] {msg}" for msg in report.warnings)
    lines.extend(f"[ERROR] {msg}" for msg in report.errors)
    if report.ok:
        lines.append("[OK] Pre-render completed with no errors.")
    return lines
