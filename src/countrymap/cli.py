"""CLI entrypoint for countrymap."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Sequence

from .boundaries import BoundaryCache, resolve_target_feature
from .capitals import load_capital_coordinates
from .config import AppConfig, load_config
from .engine import MapEngine
from .models import MODE_QUIZ, RENDER_MODES, RENDER_VARIANTS, VARIANT_DEFAULT, RenderConfig
from .overrides import load_country_overrides
from .prerender import format_prerender_lines, run_prerender, write_scene
from .util import ensure_directories, setup_logging

LOGGER = logging.getLogger("countrymap.cli")

_OUTPUT_FORMATS = {".svg": "svg", ".png": "png", ".json": "json"}


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="countrymap",
        description="Country-centered quiz and overview map renderer.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_common(p: argparse.ArgumentParser) -> None:
        p.add_argument("--config", default="config.yaml", help="Path to YAML config.")
        p.add_argument("--verbose", action="store_true", help="Enable debug logs.")

    prerender_p = subparsers.add_parser(
        "prerender",
        help="Render every configured size and variant for each country.",
    )
    add_common(prerender_p)
    prerender_p.add_argument(
        "--country",
        action="append",
        default=[],
        help="Feature id filter (e.g. 250). Can be repeated.",
    )
    prerender_p.add_argument(
        "--limit-countries",
        type=int,
        default=None,
        help="Render only first N id-sorted countries.",
    )

    render_p = subparsers.add_parser("render", help="Render one country map to a file.")
    add_common(render_p)
    render_p.add_argument("--country", required=True, help="Feature id of the target country.")
    render_p.add_argument("--mode", choices=RENDER_MODES, default=MODE_QUIZ)
    render_p.add_argument("--variant", choices=RENDER_VARIANTS, default=VARIANT_DEFAULT)
    render_p.add_argument("--width", type=int, default=400, help="Viewport width in CSS pixels.")
    render_p.add_argument("--height", type=int, default=300, help="Viewport height in CSS pixels.")
    render_p.add_argument("--scale-factor", type=float, default=1.0)
    render_p.add_argument(
        "--capital",
        nargs=2,
        type=float,
        metavar=("LON", "LAT"),
        default=None,
        help="Capital coordinates to mark; defaults to the configured capitals file.",
    )
    render_p.add_argument(
        "--output",
        required=True,
        help="Output file; the suffix (.svg, .png, .json) selects the format.",
    )
    return parser


def _load_and_setup(args: argparse.Namespace) -> AppConfig:
    cfg = load_config(args.config)
    log_path = cfg.paths.logs_dir / "countrymap.log"
    setup_logging(log_path, verbose=args.verbose)
    ensure_directories(cfg.paths.build_directories)
    return cfg


def _run_prerender(
    cfg: AppConfig,
    *,
    countries: Sequence[str],
    limit_countries: int | None,
) -> int:
    report = run_prerender(cfg, country_filter=countries, limit_countries=limit_countries)
    for line in format_prerender_lines(report):
        LOGGER.info(line)
    return 0 if report.ok else 1


def _run_render(cfg: AppConfig, args: argparse.Namespace) -> int:
    output = Path(args.output)
    fmt = _OUTPUT_FORMATS.get(output.suffix.casefold())
    if fmt is None:
        LOGGER.error("Unsupported output suffix '%s'; use one of: %s", output.suffix, ", ".join(_OUTPUT_FORMATS))
        return 2
    try:
        config = RenderConfig(
            width=args.width,
            height=args.height,
            mode=args.mode,
            variant=args.variant,
            scale_factor=args.scale_factor,
        )
    except ValueError as exc:
        LOGGER.error("Invalid render settings: %s", exc)
        return 2

    identifier = str(args.country).strip()
    cache = BoundaryCache()
    engine = MapEngine(load_country_overrides(cfg.paths.overrides))
    feature = resolve_target_feature(
        cache,
        identifier,
        (cfg.paths.boundaries, cfg.paths.fallback_boundaries),
    )
    if feature is None:
        LOGGER.error("Country id %s not found in configured boundary datasets.", identifier)
        return 1
    neighbors = cache.get(cfg.paths.effective_neighbor_boundaries).features
    if args.capital is not None:
        capital = (args.capital[0], args.capital[1])
    else:
        capital = load_capital_coordinates(cfg.paths.capitals).get(identifier)
    scene = engine.render(feature, neighbors, config, capital=capital)
    if scene is None:
        LOGGER.error("Country id %s has no renderable geometry.", identifier)
        return 1
    write_scene(scene, output, fmt=fmt, cfg=cfg)
    LOGGER.info("Map for %s written to %s", identifier, output)
    return 0


def _dispatch(args: argparse.Namespace) -> int:
    cfg = _load_and_setup(args)
    command = str(args.command)
    if command == "prerender":
        countries = [str(item) for item in args.country]
        return _run_prerender(cfg, countries=countries, limit_countries=args.limit_countries)
    if command == "render":
        return _run_render(cfg, args)
    raise ValueError(f"Unknown command: {command}")


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    return _dispatch(args)


if __name__ == "__main__":
    raise SystemExit(main())
