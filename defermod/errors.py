# defermod/errors.py
"""
defermod error types.

Error Hierarchy:
────────────────
┌──────────────────────────────────────────────────────────────────────┐
│  DefermodError (base)                                                │
│  ├── LintFileError         - failures tied to one source file        │
│  │   ├── OpenFailure       - file could not be opened or read        │
│  │   ├── ParseFailure      - source could not be parsed              │
│  │   ├── CloseFailure      - closing the handle failed               │
│  │   └── UnexpectedFailure - any other failure while linting a file  │
│  ├── WalkFailure           - directory traversal failed              │
│  ├── AggregateLintError    - several errors joined together          │
│  ├── ParseIntegrityError   - syntax tree holds an unknown node       │
│  └── ConfigError           - invalid LintConfig                      │
└──────────────────────────────────────────────────────────────────────┘

Error Codes:
────────────
  - DM-1xxx: per-file errors
  - DM-2xxx: directory-level errors
  - DM-3xxx: configuration errors
  - DM-9xxx: internal errors (should never happen on a well-formed tree)

Lint findings are *not* errors; they are ``Diagnostic`` values (see
:mod:`defermod.diagnostics`).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional


# ═══════════════════════════════════════════════════════════════════════════════
# ERROR CODES
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ErrorCode:
    """A unique, stable error code such as ``DM-1002``."""

    number: int
    name: str

    @property
    def code(self) -> str:
        return f"DM-{self.number:04d}"

    def __str__(self) -> str:
        return self.code


class ErrorCodes:
    OPEN_FAILURE = ErrorCode(1001, "open-failure")
    PARSE_FAILURE = ErrorCode(1002, "parse-failure")
    CLOSE_FAILURE = ErrorCode(1003, "close-failure")
    WALK_FAILURE = ErrorCode(2001, "walk-failure")
    AGGREGATE = ErrorCode(2002, "aggregate")
    INVALID_CONFIG = ErrorCode(3001, "invalid-config")
    PARSE_INTEGRITY = ErrorCode(9001, "parse-integrity")
    UNEXPECTED = ErrorCode(9002, "unexpected-failure")


# ═══════════════════════════════════════════════════════════════════════════════
# SOURCE LOCATION TYPES
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class SourceSpan:
    """
    A span of source code with start and end positions.

    Lines and columns are 1-based; columns count bytes, the way the Go
    toolchain reports them.  ``start_byte``/``end_byte`` are 0-based
    offsets into the file and are what containment tests compare.
    """

    line: int = 0
    column: int = 0
    end_line: int = 0
    end_column: int = 0
    start_byte: int = 0
    end_byte: int = 0

    def contains(self, offset: int) -> bool:
        """True if byte *offset* lies within this span (bounds inclusive)."""
        return self.start_byte <= offset <= self.end_byte

    def __str__(self) -> str:
        if self.line == 0:
            return "<unknown location>"
        return f"{self.line}:{self.column}"


# ═══════════════════════════════════════════════════════════════════════════════
# EXCEPTION CLASSES
# ═══════════════════════════════════════════════════════════════════════════════

class DefermodError(Exception):
    """
    Base exception for all defermod errors.

    Carries a structured :class:`ErrorCode` and, optionally, the lower
    level exception that caused it.
    """

    default_code: ErrorCode = ErrorCodes.AGGREGATE

    def __init__(
        self,
        message: str,
        code: Optional[ErrorCode] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.cause = cause

    def __str__(self) -> str:
        if self.cause is not None:
            return f"{self.message} ({self.cause})"
        return self.message


# ───────────────────────────────────────────────────────────────────────────────
# PER-FILE ERRORS
# ───────────────────────────────────────────────────────────────────────────────

class LintFileError(DefermodError):
    """An error that concerns a single source file."""

    def __init__(
        self,
        path: str,
        message: str,
        code: Optional[ErrorCode] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message, code=code, cause=cause)
        self.path = path


class OpenFailure(LintFileError):
    """The file could not be opened, or its bytes could not be read."""

    default_code = ErrorCodes.OPEN_FAILURE

    def __init__(self, path: str, cause: Optional[BaseException] = None,
                 action: str = "open") -> None:
        super().__init__(path, f"could not {action} file ({path})", cause=cause)


class ParseFailure(LintFileError):
    """The source could not be parsed into a syntax tree."""

    default_code = ErrorCodes.PARSE_FAILURE

    def __init__(
        self,
        path: str,
        span: Optional[SourceSpan] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        where = f"{path}:{span}" if span is not None else path
        super().__init__(path, f"could not parse file ({where})", cause=cause)
        self.span = span


class CloseFailure(LintFileError):
    """Closing the file handle failed after reading."""

    default_code = ErrorCodes.CLOSE_FAILURE

    def __init__(self, path: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(path, f"could not close file ({path})", cause=cause)


class UnexpectedFailure(LintFileError):
    """Linting one file raised something outside the defermod hierarchy."""

    default_code = ErrorCodes.UNEXPECTED

    def __init__(self, path: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(path, f"could not lint file ({path})", cause=cause)


# ───────────────────────────────────────────────────────────────────────────────
# DIRECTORY-LEVEL ERRORS
# ───────────────────────────────────────────────────────────────────────────────

class WalkFailure(DefermodError):
    """The directory traversal itself failed."""

    default_code = ErrorCodes.WALK_FAILURE

    def __init__(self, path: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(f"could not walk directory ({path})", cause=cause)
        self.path = path


class AggregateLintError(DefermodError):
    """Several errors joined into one, in the order they were collected."""

    default_code = ErrorCodes.AGGREGATE

    def __init__(self, errors: Iterable[DefermodError]) -> None:
        self.errors: List[DefermodError] = list(errors)
        super().__init__(f"{len(self.errors)} error(s) occurred")

    def __str__(self) -> str:
        return "\n".join(str(e) for e in self.errors)

    def __iter__(self):
        return iter(self.errors)

    def __len__(self) -> int:
        return len(self.errors)


# ───────────────────────────────────────────────────────────────────────────────
# INTERNAL / CONFIGURATION ERRORS
# ───────────────────────────────────────────────────────────────────────────────

class ParseIntegrityError(DefermodError):
    """A syntax tree node of an unknown kind reached the analysis."""

    default_code = ErrorCodes.PARSE_INTEGRITY

    def __init__(self, node: object) -> None:
        super().__init__(f"unexpected syntax node {type(node).__name__}")
        self.node = node


class ConfigError(DefermodError):
    """Invalid lint configuration."""

    default_code = ErrorCodes.INVALID_CONFIG


# ═══════════════════════════════════════════════════════════════════════════════
# AGGREGATION
# ═══════════════════════════════════════════════════════════════════════════════

def join_errors(*errors: Optional[DefermodError]) -> Optional[DefermodError]:
    """Combine zero or more errors into one.

    ``None`` entries are dropped.  Returns ``None`` when nothing is left,
    the error itself when exactly one is left, and an
    :class:`AggregateLintError` otherwise.  Nested aggregates are flattened.
    """
    flat: List[DefermodError] = []
    for err in errors:
        if err is None:
            continue
        if isinstance(err, AggregateLintError):
            flat.extend(err.errors)
        else:
            flat.append(err)
    if not flat:
        return None
    if len(flat) == 1:
        return flat[0]
    return AggregateLintError(flat)
