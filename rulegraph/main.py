#!/usr/bin/env python3
"""rulegraph/main.py - CLI entry-point.

Usage examples
--------------
    # Count the attribute combinations routed to Accept
    python -m rulegraph count rules.txt

    # Same, over a different domain and entry workflow
    python -m rulegraph count rules.txt --domain-max 100 --start main

    # List every accepting region
    python -m rulegraph regions rules.txt --format json

    # Dump the rule graph for Graphviz
    python -m rulegraph graph rules.txt | dot -Tsvg > rules.svg

Exit codes
----------
    0   Success.
    1   The rule file is invalid (syntax, unknown destination, ...).
    2   Infrastructure failure (missing file, bad option, ...).
    3   Internal invariant violation (a defect in rulegraph itself).
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from . import __version__
from .analysis import analyze
from .config import VolumeConfig
from .errors import ConfigError, RulegraphError
from .graph import build_graph
from .grammar import parse_rules
from .reporter import Reporter
from .rules import RuleSet

_log = logging.getLogger("rulegraph")

EXIT_OK: int = 0
EXIT_INPUT: int = 1
EXIT_INFRA: int = 2
EXIT_INTERNAL: int = 3


# ===========================================================================
# Utility helpers
# ===========================================================================

def _configure_logging(verbosity: int) -> None:
    """Set up the ``rulegraph`` logger: 0 → WARNING, 1 → INFO, 2+ → DEBUG."""
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s [%(levelname)-5.5s] %(name)s: %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    root = logging.getLogger("rulegraph")
    root.setLevel(level)
    # main() may run more than once per process
    for old in list(root.handlers):
        root.removeHandler(old)
    root.addHandler(handler)


def _read_source(raw: str) -> List[str]:
    p = Path(raw).expanduser()
    if not p.is_file():
        _log.error("rule file not found: %s", p)
        raise SystemExit(EXIT_INFRA)
    try:
        return p.read_text(encoding="utf-8").splitlines()
    except (OSError, UnicodeDecodeError) as exc:
        _log.error("cannot read rule file %s: %s", p, exc)
        raise SystemExit(EXIT_INFRA) from exc


def _config_from_args(args: argparse.Namespace) -> VolumeConfig:
    attributes = None
    if args.attributes:
        attributes = [a.strip() for a in args.attributes.split(",") if a.strip()]
    return VolumeConfig.from_options(
        attributes=attributes,
        domain_min=args.domain_min,
        domain_max=args.domain_max,
        start_workflow=args.start,
    )


def _load(args: argparse.Namespace) -> RuleSet:
    args.source_lines = _read_source(args.file)
    return parse_rules("\n".join(args.source_lines), source=args.file)


# ===========================================================================
# Sub-command handlers
# ===========================================================================

def cmd_count(args: argparse.Namespace, reporter: Reporter) -> int:
    """Handle ``rulegraph count``."""
    rules = _load(args)
    result = analyze(rules, _config_from_args(args))
    elapsed = None
    if args.time:
        elapsed = round(sum(result.timings.values()) * 1e6)
    reporter.count(result.volume, elapsed)
    if result.overlap:
        _log.info("regions overlapped by %d combinations", result.overlap)
    return EXIT_OK


def cmd_regions(args: argparse.Namespace, reporter: Reporter) -> int:
    """Handle ``rulegraph regions``."""
    rules = _load(args)
    result = analyze(rules, _config_from_args(args))
    ordered = sorted(result.regions, key=lambda r: [(x.lo, x.hi) for x in r.ranges])
    reporter.regions(ordered, args.format)
    if args.format == "text":
        reporter.text(f"total: {result.volume} across {len(ordered)} regions")
    return EXIT_OK


def cmd_graph(args: argparse.Namespace, reporter: Reporter) -> int:
    """Handle ``rulegraph graph``."""
    rules = _load(args)
    build = build_graph(rules, _config_from_args(args))
    reporter.text(build.graph.to_dot(title=Path(args.file).stem))
    return EXIT_OK


# ===========================================================================
# Argument parser
# ===========================================================================

def _add_common(p: argparse.ArgumentParser) -> None:
    p.add_argument("file", help="Rule file (workflow lines; rating lines are ignored).")
    p.add_argument(
        "--attributes",
        default=None,
        metavar="A,B,...",
        help="Comma-separated attribute names (default: x,m,a,s).",
    )
    p.add_argument("--domain-min", type=int, default=None, metavar="N",
                   help="Smallest attribute value (default: 1).")
    p.add_argument("--domain-max", type=int, default=None, metavar="N",
                   help="Largest attribute value (default: 4000).")
    p.add_argument("--start", default=None, metavar="NAME",
                   help="Entry workflow (default: in).")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rulegraph",
        description="Count the attribute combinations a set of routing rules accepts.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="count", default=0,
                        help="Increase log verbosity (-v INFO, -vv DEBUG).")
    parser.add_argument("--no-color", action="store_true", help="Disable coloured output.")

    subparsers = parser.add_subparsers(title="commands")

    p_count = subparsers.add_parser("count", help="Print the number of accepted combinations.")
    _add_common(p_count)
    p_count.add_argument("-t", "--time", action="store_true",
                         help="Also print the elapsed computation time.")
    p_count.set_defaults(func=cmd_count)

    p_regions = subparsers.add_parser("regions", help="List every accepting region.")
    _add_common(p_regions)
    p_regions.add_argument("-f", "--format", choices=["text", "json"], default="text",
                           help="Output format (default: text).")
    p_regions.set_defaults(func=cmd_regions)

    p_graph = subparsers.add_parser("graph", help="Print the rule graph as Graphviz DOT.")
    _add_common(p_graph)
    p_graph.set_defaults(func=cmd_graph)

    return parser


# ===========================================================================
# Main entry point
# ===========================================================================

def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the CLI and return its exit code."""
    parser = _build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    if not hasattr(args, "func"):
        parser.print_help(sys.stderr)
        return EXIT_INFRA

    reporter = Reporter(no_color=args.no_color)
    try:
        return args.func(args, reporter)
    except ConfigError as exc:
        reporter.error(exc)
        return EXIT_INFRA
    except RulegraphError as exc:
        reporter.error(exc, getattr(args, "source_lines", ()))
        return EXIT_INTERNAL if exc.code.is_internal else EXIT_INPUT
    except KeyboardInterrupt:
        _log.info("Interrupted by user.")
        return 130
    except SystemExit as exc:
        return exc.code if isinstance(exc.code, int) else EXIT_INFRA


if __name__ == "__main__":
    raise SystemExit(main())
