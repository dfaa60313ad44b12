#!/usr/bin/env python3
"""defermod/main.py — CLI entry-point.

Usage examples
--------------
    # Recursively lint every Go file under the current directory
    defermod .

    # Eight files at once, with timestamps and callers in log records
    defermod -v -t 8 ./pkg

Exit codes
----------
    0   Success.  Findings alone never fail the run.
    1   One or more files could not be opened, parsed or closed, or the
        directory walk failed.
    2   Usage error.

The module doubles as ``python -m defermod`` via the companion
``defermod/__main__.py`` which simply calls :func:`main`.
"""

from __future__ import annotations

import argparse
import logging
import os
import signal
import sys
import textwrap
import threading
from typing import Callable, Dict, Optional, Sequence

from defermod import __version__
from defermod.config import LintConfig, default_workers
from defermod.diagnostics import DiagnosticSink
from defermod.errors import ConfigError
from defermod.linter import CancellationToken, lint_directory

_log = logging.getLogger("defermod")

# Exit codes ----------------------------------------------------------------

EXIT_OK: int = 0
EXIT_ERROR: int = 1
EXIT_USAGE: int = 2


# ===========================================================================
# Utility helpers
# ===========================================================================

def _configure_logging(verbosity: int) -> None:
    """Set up the ``defermod`` logger.

    Parameters
    ----------
    verbosity:
        0 → bare messages, 1 → timestamp and caller, 2+ → also DEBUG.
    """
    if verbosity >= 1:
        fmt = logging.Formatter(
            fmt="%(asctime)s %(filename)s:%(lineno)d: %(message)s",
            datefmt="%H:%M:%S",
        )
    else:
        fmt = logging.Formatter(fmt="%(message)s")

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(fmt)
    root = logging.getLogger("defermod")
    root.setLevel(logging.DEBUG if verbosity >= 2 else logging.INFO)
    for old in list(root.handlers):
        root.removeHandler(old)
    root.addHandler(handler)
    root.propagate = False


def _install_signal_handlers(cancel: CancellationToken) -> Dict[int, Callable]:
    """Route SIGINT/SIGTERM to *cancel*; return the previous handlers."""

    def _handler(signum: int, frame: object) -> None:
        name = signal.Signals(signum).name
        _log.info("Cancelling operations due to (%s)", name)
        cancel.cancel(name)
        _log.info("operations cancelled")

    previous: Dict[int, Callable] = {}
    if threading.current_thread() is threading.main_thread():
        for sig in (signal.SIGINT, signal.SIGTERM):
            previous[sig] = signal.signal(sig, _handler)
    return previous


def _restore_signal_handlers(previous: Dict[int, Callable]) -> None:
    for sig, handler in previous.items():
        signal.signal(sig, handler)


# ===========================================================================
# Argument parser
# ===========================================================================

def _build_parser() -> argparse.ArgumentParser:
    prog = "defermod"
    parser = argparse.ArgumentParser(
        prog=prog,
        description=(
            f"{prog} detects uses of a defer that attempts to modify return "
            "values in a function without named returns"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent(f"""\
            examples:
              {prog} -v -t 8 .   recursively find all go files in current directory and scan for defers
        """),
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="be verbose about operations (-vv also logs debug records)",
    )
    parser.add_argument(
        "-t", "--workers",
        type=int,
        default=default_workers(),
        metavar="N",
        help="how many files to work on at once (default: %(default)s)",
    )
    parser.add_argument(
        "dir",
        help="directory to scan recursively",
    )
    return parser


# ===========================================================================
# Main entry point
# ===========================================================================

def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the defermod CLI.

    Parameters
    ----------
    argv:
        Command-line arguments.  ``None`` → ``sys.argv[1:]``.

    Returns
    -------
    int
        Exit code (see module docstring for semantics).
    """
    parser = _build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit as exc:
        return exc.code if isinstance(exc.code, int) else EXIT_USAGE

    _configure_logging(args.verbose)

    config = LintConfig(workers=args.workers, verbosity=args.verbose)
    try:
        config.check()
    except ConfigError as exc:
        _log.error("%s", exc)
        return EXIT_USAGE

    root = os.path.normpath(args.dir)
    cancel = CancellationToken()
    previous = _install_signal_handlers(cancel)
    try:
        report = lint_directory(
            root,
            cancel=cancel,
            sink=DiagnosticSink(sys.stdout),
            config=config,
        )
    finally:
        _restore_signal_handlers(previous)

    _log.debug(
        "linted %d file(s), %d finding(s), %d error(s)",
        len(report.files), len(report.diagnostics), len(report.errors),
    )
    err = report.error
    if err is not None:
        _log.error("could not lint directory (%s) error (%s)", args.dir, err)
        return EXIT_ERROR
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
