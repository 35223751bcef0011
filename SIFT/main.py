#!/usr/bin/env python3
"""
SIFT - Main Entry Point
Open a JSON-per-line log file in the interactive viewer
"""
import argparse
import logging
import sys
from typing import List, Optional

from pydantic import ValidationError

from SIFT import __version__
from SIFT.config import StartupOptions, ViewerSettings
from SIFT.errors import SiftError
from SIFT.log_analysis.logger import configure_logging
from SIFT.UI import run_app
from SIFT.UI.views.log_viewer import LogFileReader, LogSession

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sift",
        description="Interactive viewer for JSON-per-line log files",
    )
    parser.add_argument("path", help="log file to open")
    parser.add_argument(
        "-f", "--filter", dest="filters", action="append", default=[],
        metavar="EXPR", help="jq filter applied on startup (repeatable)",
    )
    parser.add_argument(
        "-V", "--view", dest="view_expression", metavar="EXPR",
        help="jq expression transforming how lines are displayed",
    )
    parser.add_argument(
        "-t", "--tail", action="store_true",
        help="load the whole file and follow appended lines",
    )
    parser.add_argument(
        "-v", "--version", action="version", version=f"sift {__version__}",
    )
    return parser


def parse_args(argv: Optional[List[str]] = None) -> StartupOptions:
    """Parse the command line; argparse exits with code 2 on bad usage"""
    args = build_parser().parse_args(argv)
    return StartupOptions(
        path=args.path,
        filters=args.filters,
        view_expression=args.view_expression,
        tail=args.tail,
    )


def open_session(options: StartupOptions, settings: ViewerSettings) -> LogSession:
    """
    Load the file and build a configured LogSession

    Raises:
        SourceAccessError: If the file cannot be read
        ExpressionError: If a startup filter or view does not compile
    """
    reader = LogFileReader(options.path)
    if options.tail:
        reader.load_all()
        estimated_total = len(reader.store)
    else:
        reader.load_initial(settings.initial_chunk_size)
        estimated_total = reader.estimate_total(settings.estimate_sample_size)

    session = LogSession(reader, settings, estimated_total)
    try:
        session.configure(options.filters, options.view_expression, options.tail)
    except SiftError:
        reader.close()
        raise
    return session


def main(argv: Optional[List[str]] = None) -> int:
    options = parse_args(argv)

    try:
        settings = ViewerSettings.from_env()
    except ValidationError as e:
        print(f"Error: invalid SIFT_* setting\n{e}", file=sys.stderr)
        return 1

    configure_logging(settings.log_dir, settings.log_level)
    logger.info("Starting SIFT %s on %s", __version__, options.path)

    try:
        session = open_session(options, settings)
    except SiftError as e:
        logger.error("Startup failed: %s", e)
        print(f"Error: {e}", file=sys.stderr)
        return 1

    try:
        return run_app(session, settings)
    except KeyboardInterrupt:
        return 0
    finally:
        session.reader.close()
        logger.info("SIFT exited")


if __name__ == "__main__":
    sys.exit(main())
