#!/usr/bin/env python3
"""strictmemo/__main__.py — command-line entry point.

Usage examples
--------------
    # Report obsolete memoization in a project
    strictmemo app lib

    # Rewrite the offending files in place
    strictmemo -a app

    # Use a specific configuration and lockfile, emit JSON
    strictmemo --config .rubocop.yml --lockfile Gemfile.lock --format json app

    # List the available checkers
    strictmemo --list-checkers

Exit codes
----------
    0   No offenses left.
    1   One or more offenses remain.
    2   Infrastructure failure (bad configuration, lockfile, path, or a
        file that could not be parsed).

``python -m strictmemo`` runs the same :func:`main`.
"""

from __future__ import annotations

import argparse
import logging
import sys
import textwrap
from pathlib import Path
from typing import List, Optional, Sequence

from strictmemo import __version__
from strictmemo.checkers import CheckerRegistry, CheckerRunner, CheckerRunResults
from strictmemo.config import LintConfig, find_config, load_config
from strictmemo.errors import StrictMemoError
from strictmemo.lockfile import read_locked_packages
from strictmemo.reporter import JsonReporter, TextReporter

_log = logging.getLogger("strictmemo")

# Exit codes ----------------------------------------------------------------

EXIT_OK: int = 0
EXIT_ERROR: int = 1
EXIT_INFRA: int = 2


def _configure_logging(verbosity: int) -> None:
    """Set up the ``strictmemo`` logger.

    Parameters
    ----------
    verbosity:
        0 → WARNING, 1 → INFO, 2+ → DEBUG.
    """
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
    root = logging.getLogger("strictmemo")
    root.setLevel(level)
    root.addHandler(handler)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="strictmemo",
        description=(
            "Find and rewrite the obsolete two-statement Sorbet memoization\n"
            "idiom in Ruby sources."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""\
            examples:
              strictmemo app lib
              strictmemo -a app/models/user.rb
              strictmemo --format json --lockfile Gemfile.lock app
        """),
    )
    parser.add_argument(
        "paths",
        nargs="*",
        default=["."],
        help="Files or directories to inspect (default: current directory).",
    )
    parser.add_argument(
        "-a", "--autocorrect",
        action="store_true",
        help="Rewrite files with the corrected memoization.",
    )
    parser.add_argument(
        "-c", "--config",
        metavar="FILE",
        help="RuboCop-style YAML configuration (default: ./.rubocop.yml if present).",
    )
    parser.add_argument(
        "--lockfile",
        metavar="FILE",
        help="Bundler lockfile (default: found from the working directory).",
    )
    parser.add_argument(
        "-f", "--format",
        choices=("text", "json"),
        default="text",
        help="Output format (default: text).",
    )
    parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable coloured output.",
    )
    parser.add_argument(
        "--list-checkers",
        action="store_true",
        help="List available checkers and exit.",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v info, -vv debug).",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    return parser


def _load_config(path: Optional[str]) -> LintConfig:
    if path is not None:
        return load_config(path)
    found = find_config()
    if found is None:
        _log.debug("no configuration file; using defaults")
        return LintConfig()
    return load_config(found)


def _list_checkers(registry: CheckerRegistry) -> int:
    for name in registry.names:
        cls = registry.get_by_name(name)
        state = "enabled" if registry.is_enabled(name) else "disabled"
        description = cls.description if cls is not None else ""
        sys.stdout.write(f"{name} ({state}): {description}\n")
    return EXIT_OK


def _write_corrections(results: CheckerRunResults) -> List[str]:
    written: List[str] = []
    for result in results.files:
        if result.corrected_text is None:
            continue
        Path(result.path).write_text(result.corrected_text, encoding="utf-8")
        _log.info("wrote %s", result.path)
        written.append(result.path)
    return written


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the CLI and return the exit code."""
    parser = _build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    try:
        config = _load_config(args.config)
        if args.list_checkers:
            return _list_checkers(CheckerRunner(config).registry)
        runner = CheckerRunner(config, read_locked_packages(path=args.lockfile))
        results = runner.run_paths(args.paths, autocorrect=args.autocorrect)
        if args.autocorrect:
            _write_corrections(results)
    except StrictMemoError as exc:
        _log.error("%s", exc)
        sys.stderr.write(f"strictmemo: {exc}\n")
        return EXIT_INFRA
    except KeyboardInterrupt:
        _log.info("Interrupted by user.")
        return 130

    if args.format == "json":
        JsonReporter(sys.stdout, version=__version__).report(results)
    else:
        TextReporter(sys.stdout, colour=False if args.no_color else None).report(results)

    if results.parse_errors:
        return EXIT_INFRA
    return EXIT_ERROR if results.remaining_count else EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
