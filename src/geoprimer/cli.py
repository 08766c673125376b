"""Command-line interface for geoprimer."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path

from geoprimer import __version__
from geoprimer.config import TutorialConfig, load_config
from geoprimer.crs import describe_crs
from geoprimer.errors import GeoPrimerError
from geoprimer.logging_utils import LogOptions, configure_logging
from geoprimer.tutorial import run_tutorial

LOGGER = logging.getLogger("geoprimer.cli")


def _add_run_parser(subparsers: argparse._SubParsersAction) -> None:
    """Register the run subcommand and its arguments."""
    run = subparsers.add_parser("run", help="Run the spatial data walkthrough.")
    run.add_argument("--config", help="Path to a JSON walkthrough config.")
    run.add_argument("--output", help="Directory for PNG figures.")
    run.add_argument("--seed", type=int, help="Seed for all random draws.")


def _add_crs_parser(subparsers: argparse._SubParsersAction) -> None:
    crs = subparsers.add_parser("crs", help="Describe a coordinate reference system.")
    crs.add_argument("crs", help='CRS string, e.g. "EPSG:5070" or "+proj=longlat +datum=WGS84".')


def _add_version_parser(subparsers: argparse._SubParsersAction) -> None:
    subparsers.add_parser("version", help="Print the current version.")


def _resolve_run_config(args: argparse.Namespace) -> TutorialConfig:
    """Load the config file (if any) and apply CLI overrides."""
    config_path = getattr(args, "config", None)
    config = load_config(Path(config_path)) if config_path else TutorialConfig()
    output = getattr(args, "output", None)
    return config.with_overrides(
        seed=getattr(args, "seed", None),
        output_dir=Path(output) if output else None,
    )


def main(argv: list[str] | None = None) -> int:
    """Run the CLI entrypoint and return an exit code."""
    parser = argparse.ArgumentParser(
        prog="geoprimer",
        description="GeoPrimer: points, lines, polygons, CRSs and rasters from scratch",
    )
    parser.add_argument("--version", action="version", version=__version__)
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase log verbosity (repeatable).",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Reduce log output to warnings and errors.",
    )
    parser.add_argument(
        "--log-json",
        action="store_true",
        help="Emit logs as JSON on stderr.",
    )
    parser.add_argument(
        "--log-file",
        help="Optional path for JSON log output.",
    )

    subparsers = parser.add_subparsers(dest="command")
    _add_run_parser(subparsers)
    _add_crs_parser(subparsers)
    _add_version_parser(subparsers)

    args = parser.parse_args(argv)
    log_file_value = getattr(args, "log_file", None)
    log_options = LogOptions(
        verbose=getattr(args, "verbose", 0) or 0,
        quiet=bool(getattr(args, "quiet", False)),
        log_file=Path(log_file_value) if log_file_value else None,
        json_console=bool(getattr(args, "log_json", False)),
    )
    configure_logging(log_options)

    command = args.command or "run"
    if command == "version":
        print(__version__)
        return 0
    try:
        if command == "crs":
            print(json.dumps(describe_crs(args.crs).as_dict(), indent=2))
            return 0
        if command == "run":
            config = _resolve_run_config(args)
            result = run_tutorial(config)
            if result.figures:
                LOGGER.info("Figures: %s", ", ".join(str(path) for path in result.figures.values()))
            return 0
    except GeoPrimerError as exc:
        LOGGER.error("%s", exc)
        return 1
    except FileNotFoundError as exc:
        LOGGER.error("File not found: %s", exc.filename)
        return 1

    parser.error("Unknown command")
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
