"""
defermod/linter.py
==================

File driver and directory walker.

``lint_file`` owns one file end to end: open, read, parse, analyse,
render to the diagnostic sink, close.  ``lint_directory`` walks a tree in
lexical order and fans ``lint_file`` out over a bounded pool of worker
threads.

Error policy
------------
* Lint findings are never errors.  They are returned and written to the
  sink.
* Open, read, parse and close failures belong to one file, as does
  anything else a single file raises.  They are collected into the
  :class:`LintReport` and never stop sibling files.
* A failure of the walk itself stops scheduling; files already scheduled
  still run to completion.
* Cancellation stops scheduling and is not an error.
"""

from __future__ import annotations

import logging
import os
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field, replace
from typing import Iterator, List, Optional

from defermod.analyzer import DeferCaptureAnalyzer
from defermod.config import LintConfig
from defermod.diagnostics import Diagnostic, DiagnosticSink
from defermod.errors import (
    CloseFailure,
    DefermodError,
    OpenFailure,
    ParseFailure,
    ParseIntegrityError,
    UnexpectedFailure,
    WalkFailure,
    join_errors,
)
from defermod.parser import parse_source

__all__ = [
    "CancellationToken",
    "LintReport",
    "check_source",
    "iter_source_files",
    "lint_bytes",
    "lint_directory",
    "lint_file",
]

logger = logging.getLogger(__name__)


# ===========================================================================
# Cancellation
# ===========================================================================

class CancellationToken:
    """Cooperative cancellation flag shared between a driver and a walk."""

    def __init__(self) -> None:
        self._event = threading.Event()
        self.reason: Optional[str] = None

    def cancel(self, reason: Optional[str] = None) -> None:
        if not self._event.is_set():
            self.reason = reason
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        return self._event.wait(timeout)


# ===========================================================================
# Single file
# ===========================================================================

def check_source(source: bytes, filename: str = "<source>") -> List[Diagnostic]:
    """Parse and analyse *source* without writing anything.

    Raises
    ------
    ParseFailure
        *source* is not valid Go, lowered to a malformed tree, or nests
        deeper than the interpreter's recursion limit.
    """
    try:
        tree = parse_source(source, filename)
        return DeferCaptureAnalyzer().analyze(tree)
    except (ParseIntegrityError, RecursionError) as exc:
        raise ParseFailure(filename, cause=exc) from exc


def lint_bytes(
    filename: str,
    source: bytes,
    sink: Optional[DiagnosticSink] = None,
) -> List[Diagnostic]:
    """Lint *source* and write the findings to *sink* (stdout by default)."""
    diagnostics = check_source(source, filename)
    (sink or DiagnosticSink()).emit(diagnostics)
    return diagnostics


def lint_file(path: str, sink: Optional[DiagnosticSink] = None) -> List[Diagnostic]:
    """Lint the file at *path*.

    Raises
    ------
    OpenFailure
        The file could not be opened or read.
    ParseFailure
        The file is not valid Go.
    CloseFailure
        Closing the file failed.  If an earlier failure happened too, both
        are raised together as an ``AggregateLintError``.
    """
    try:
        handle = open(os.path.normpath(path), "rb")
    except OSError as exc:
        raise OpenFailure(path, cause=exc) from exc

    diagnostics: List[Diagnostic] = []
    failure: Optional[DefermodError] = None
    try:
        source = handle.read()
        diagnostics = lint_bytes(path, source, sink)
    except OSError as exc:
        failure = OpenFailure(path, cause=exc, action="read")
    except ParseFailure as exc:
        failure = exc
    finally:
        try:
            handle.close()
        except OSError as exc:
            failure = join_errors(failure, CloseFailure(path, cause=exc))

    if failure is not None:
        raise failure
    return diagnostics


# ===========================================================================
# Directory
# ===========================================================================

@dataclass
class LintReport:
    """Outcome of :func:`lint_directory`."""
    diagnostics: List[Diagnostic] = field(default_factory=list)
    errors: List[DefermodError] = field(default_factory=list)
    files: List[str] = field(default_factory=list)
    cancelled: bool = False

    @property
    def error(self) -> Optional[DefermodError]:
        """All collected errors joined into one, or ``None``."""
        return join_errors(*self.errors)

    def raise_for_errors(self) -> None:
        err = self.error
        if err is not None:
            raise err


def iter_source_files(root: str, config: Optional[LintConfig] = None) -> Iterator[str]:
    """Yield source files under *root* in lexical order.

    A *root* that is itself a file is yielded when its extension matches.

    Raises
    ------
    WalkFailure
        A directory could not be listed.
    """
    config = config or LintConfig()
    if os.path.isfile(root):
        if config.is_source_file(root):
            yield root
        return

    def _fail(exc: OSError) -> None:
        raise WalkFailure(exc.filename or root, cause=exc)

    for dirpath, dirnames, filenames in os.walk(root, onerror=_fail):
        dirnames.sort()
        for name in sorted(filenames):
            path = os.path.join(dirpath, name)
            if config.is_source_file(path):
                yield path


def lint_directory(
    root: str,
    workers: Optional[int] = None,
    cancel: Optional[CancellationToken] = None,
    sink: Optional[DiagnosticSink] = None,
    config: Optional[LintConfig] = None,
) -> LintReport:
    """Lint every source file under *root*.

    At most ``workers`` files are in flight at once; the walk blocks until
    a slot frees up.  *cancel* is checked before each file is scheduled.
    """
    config = config or LintConfig()
    if workers is not None:
        config = replace(config, workers=workers)
    config.check()
    cancel = cancel or CancellationToken()
    sink = sink or DiagnosticSink()

    report = LintReport()
    if cancel.cancelled:
        report.cancelled = True
        return report

    lock = threading.Lock()
    slots = threading.BoundedSemaphore(config.workers)
    futures: List[Future] = []

    def _task(path: str) -> None:
        try:
            diagnostics = lint_file(path, sink)
        except DefermodError as exc:
            logger.debug("could not lint file (%s): %s", path, exc)
            with lock:
                report.errors.append(exc)
        except Exception as exc:
            logger.exception("unexpected failure linting %s", path)
            with lock:
                report.errors.append(UnexpectedFailure(path, cause=exc))
        else:
            with lock:
                report.diagnostics.extend(diagnostics)
        finally:
            slots.release()

    with ThreadPoolExecutor(max_workers=config.workers,
                            thread_name_prefix="defermod") as pool:
        try:
            for path in iter_source_files(root, config):
                if cancel.cancelled:
                    report.cancelled = True
                    break
                slots.acquire()
                if cancel.cancelled:
                    slots.release()
                    report.cancelled = True
                    break
                logger.debug("scheduling %s", path)
                report.files.append(path)
                futures.append(pool.submit(_task, path))
        except WalkFailure as exc:
            logger.debug("walk of %s failed: %s", root, exc)
            with lock:
                report.errors.append(exc)

    # only non-Exception errors such as KeyboardInterrupt surface here
    for future in futures:
        future.result()

    report.diagnostics.sort(key=lambda d: d.file)
    return report
