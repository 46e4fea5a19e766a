"""smokecrawl CLI — smoke-test every public method of the classes in a module.

Usage::

    python -m smokecrawl package.module [package.other ...] [options]

Options::

    --recursive / -r      Also crawl submodules of packages
    --exclude PATTERN     Skip ``Type`` or ``Type.member`` (fnmatch, repeatable)
    --include-inherited   Also exercise inherited public methods
    --no-async            Skip ``async def`` methods
    --json-output PATH    Write structured JSON report to PATH
    --verbose / -v        Enable verbose logging

Exit codes: 0 = no faults, 1 = faults recorded, 2 = nothing could be loaded.
"""

import argparse
import json
import logging
import signal
import sys
from pathlib import Path

from smokecrawl.catalog import ModuleCatalog
from smokecrawl.crawler import CancellationToken, CrawlConfig, Crawler

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="smokecrawl",
        description=(
            "smokecrawl — reflective smoke tests for Python classes.\n\n"
            "Constructs each public class with no arguments, calls every "
            "public method with structural default arguments, checks the "
            "declared return type, and reports every failure."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "modules",
        nargs="+",
        help="Dotted module names to crawl",
    )
    parser.add_argument(
        "--recursive", "-r",
        action="store_true",
        default=False,
        help="Also crawl submodules of packages",
    )
    parser.add_argument(
        "--exclude",
        action="append",
        default=[],
        metavar="PATTERN",
        help="Skip types or Type.member names matching PATTERN (repeatable)",
    )
    parser.add_argument(
        "--include-inherited",
        action="store_true",
        default=False,
        help="Also exercise public methods inherited from base classes",
    )
    parser.add_argument(
        "--no-async",
        action="store_true",
        default=False,
        help="Skip async def methods instead of running them",
    )
    parser.add_argument(
        "--json-output",
        type=Path,
        default=None,
        metavar="PATH",
        help="Write structured JSON report to PATH",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        default=False,
        help="Enable verbose logging",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entry point.  Returns exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    level = logging.DEBUG if args.verbose else logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")

    config = CrawlConfig(
        include_inherited=args.include_inherited,
        exclude=tuple(args.exclude),
        run_coroutines=not args.no_async,
    )

    catalog, load_errors = ModuleCatalog.from_names(
        args.modules,
        recursive=args.recursive,
        include_inherited=config.include_inherited,
    )
    if not catalog.modules:
        for err in load_errors:
            print(f"Error: {err}", file=sys.stderr)
        return 2

    cancel = CancellationToken()
    original_sigint = signal.getsignal(signal.SIGINT)

    def _on_sigint(signum, frame):
        logger.warning("Interrupted, finishing current member...")
        cancel.cancel()

    signal.signal(signal.SIGINT, _on_sigint)
    try:
        report = Crawler(catalog, config=config).crawl_catalog(cancel=cancel)
    finally:
        signal.signal(signal.SIGINT, original_sigint)

    report.load_errors = [str(e) for e in load_errors]
    print(report.as_text(config.message_max))

    if args.json_output:
        try:
            args.json_output.write_text(
                json.dumps(
                    report.as_dict(config.message_max), indent=2, default=str,
                ) + "\n",
                encoding="utf-8",
            )
            print(f"\nJSON report written: {args.json_output}")
        except OSError as exc:
            print(
                f"\nWarning: Could not write JSON report: {exc}",
                file=sys.stderr,
            )

    return 0 if report.ok else 1
