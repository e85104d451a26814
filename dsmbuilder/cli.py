"""
dsmbuilder/cli.py -- Command line entry point.

Usage::

    dsmbuilder run Daemons            # full pipeline for a named spreadsheet
    dsmbuilder run all                # every configured spreadsheet, in order
    dsmbuilder run --skip-download --skip-copy
    dsmbuilder convert
    dsmbuilder resolve --workers 4
    dsmbuilder validate --daemons
    dsmbuilder build
    dsmbuilder copy

Exit status is 0 on success and 1 when a stage fails.
"""

from __future__ import annotations

import argparse
import logging
import sys

from dsmbuilder import __version__
from dsmbuilder.config import PipelineConfig, load_config, select_spreadsheets
from dsmbuilder.errors import PipelineError
from dsmbuilder.pipeline import Pipeline

logger = logging.getLogger("dsmbuilder")


def _setup_logging(verbose: bool = False, quiet: bool = False) -> None:
    """Configure logging for command line runs."""
    level = logging.INFO
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dsmbuilder",
        description="Convert spreadsheet CSV exports into a packaged .dsm dataset.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--root", default=None, help="Project root (default: current directory)")
    parser.add_argument("--input", dest="input_dir", default=None, help="CSV input directory")
    parser.add_argument("--output", dest="output_dir", default=None, help="JSON output directory")
    parser.add_argument("--build", dest="build_dir", default=None, help="Archive output directory")
    parser.add_argument("--workers", type=int, default=None, help="Threads used to resolve daemon rows")
    noise = parser.add_mutually_exclusive_group()
    noise.add_argument("-v", "--verbose", action="store_true", help="Log debug output")
    noise.add_argument("-q", "--quiet", action="store_true", help="Only log warnings and errors")

    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("download", help="Download spreadsheet tabs as CSV")
    p.add_argument("spreadsheet", nargs="?", default=None, help="Configured spreadsheet name")

    sub.add_parser("convert", help="Convert flat CSV tables to JSON")
    sub.add_parser("resolve", help="Resolve the daemon CSV against the converted tables")

    p = sub.add_parser("validate", help="Check that every output JSON file parses")
    p.add_argument("--daemons", action="store_true", help="Also check daemon records against the schema")

    sub.add_parser("build", help="Package the output directory into a .dsm archive")
    sub.add_parser("copy", help="Copy artifacts to the configured deployment folders")

    p = sub.add_parser("run", help="Run the full pipeline")
    p.add_argument("spreadsheet", nargs="?", default=None, help="Configured spreadsheet name, or 'all'")
    p.add_argument("--skip-download", action="store_true", help="Use the CSVs already in the input directory")
    p.add_argument("--skip-copy", action="store_true", help="Do not copy artifacts after building")

    return parser


def _spreadsheet_ids(config: PipelineConfig, name: str | None) -> list[tuple[str, str]]:
    """Return ``(label, spreadsheet_id)`` pairs for *name*."""
    if not name:
        return [("default", config.spreadsheet_id)]
    return [(option.name, option.id) for option in select_spreadsheets(name, config.spreadsheets)]


def _dispatch(args: argparse.Namespace) -> None:
    config = load_config(
        args.root,
        input_dir=args.input_dir,
        output_dir=args.output_dir,
        build_dir=args.build_dir,
        workers=args.workers,
    )
    pipeline = Pipeline(config)

    if args.command == "download":
        for label, sheet_id in _spreadsheet_ids(config, args.spreadsheet):
            logger.info("Downloading spreadsheet '%s'", label)
            pipeline.download(sheet_id)
    elif args.command == "convert":
        pipeline.convert()
    elif args.command == "resolve":
        pipeline.resolve()
        logger.info("Daemons written to %s", config.composite_output)
    elif args.command == "validate":
        pipeline.validate(check_daemons=args.daemons)
    elif args.command == "build":
        pipeline.build()
    elif args.command == "copy":
        pipeline.copy()
    elif args.command == "run":
        if args.skip_download:
            archive = pipeline.run(download=False, copy=not args.skip_copy)
            logger.info("Archive: %s", archive)
            return
        for label, sheet_id in _spreadsheet_ids(config, args.spreadsheet):
            logger.info("Running pipeline with spreadsheet '%s'", label)
            archive = pipeline.run(sheet_id, copy=not args.skip_copy)
            logger.info("Archive: %s", archive)


def main(argv: list[str] | None = None) -> int:
    """Parse *argv*, run the requested stage and return an exit status."""
    args = build_parser().parse_args(argv)
    _setup_logging(verbose=args.verbose, quiet=args.quiet)

    try:
        _dispatch(args)
    except PipelineError as exc:
        logger.error("%s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
