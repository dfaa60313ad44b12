"""
defermod/diagnostics.py
═══════════════════════

Diagnostic model, defer statement rendering and the text sink the file
driver writes findings to.

Each finding renders as one header line followed by the source of the
offending defer statement::

    bad.go:11:8 function literal in defer assigns to (err) a non-named return in parent function
    defer func() {
    	...
    }()
"""

from __future__ import annotations

import sys
import threading
from dataclasses import dataclass
from typing import Iterable, Optional, TextIO

from defermod.ast_nodes import SourceFile
from defermod.errors import SourceSpan

__all__ = [
    "Diagnostic",
    "DiagnosticSink",
    "format_diagnostic",
    "render_statement",
]

MESSAGE = "function literal in defer assigns to ({name}) a non-named return in parent function"


@dataclass(frozen=True)
class Diagnostic:
    """
    A single finding.

    Attributes
    ----------
    file      : Path of the analysed file, as given to the driver
    line      : 1-based line of the deferred function literal
    column    : 1-based byte column of the deferred function literal
    name      : The assigned identifier that is not a named result
    statement : Rendered source of the enclosing defer statement
    """
    file: str
    line: int
    column: int
    name: str
    statement: str

    @property
    def message(self) -> str:
        return MESSAGE.format(name=self.name)

    def __str__(self) -> str:
        return f"{self.file}:{self.line}:{self.column} {self.message}"


def render_statement(tree: SourceFile, span: SourceSpan) -> str:
    """Source text of *span* with its first line's indentation removed
    from every continuation line.

    This approximates a pretty-printed statement rather than reformatting
    it: for gofmt-formatted input the two agree, otherwise the author's
    own spacing and any comments inside the statement are kept verbatim.
    """
    lines = tree.text(span).split("\n")
    line_start = tree.source.rfind(b"\n", 0, span.start_byte) + 1
    prefix = tree.source[line_start:span.start_byte].decode("utf-8", "replace")
    indent = prefix[: len(prefix) - len(prefix.lstrip(" \t"))]
    if indent:
        lines = [lines[0]] + [
            ln[len(indent):] if ln.startswith(indent) else ln for ln in lines[1:]
        ]
    return "\n".join(lines)


def format_diagnostic(diag: Diagnostic) -> str:
    return f"{diag}\n{diag.statement}\n"


class DiagnosticSink:
    """Append-only, thread-safe text sink for formatted diagnostics.

    One call to :meth:`emit` writes its diagnostics contiguously, so the
    findings of a single file are never interleaved with another file's.
    """

    def __init__(self, stream: Optional[TextIO] = None) -> None:
        self._stream = stream
        self._lock = threading.Lock()
        self.count = 0

    @property
    def stream(self) -> TextIO:
        return self._stream if self._stream is not None else sys.stdout

    def emit(self, diagnostics: Iterable[Diagnostic]) -> None:
        batch = list(diagnostics)
        if not batch:
            return
        text = "".join(format_diagnostic(d) for d in batch)
        with self._lock:
            self.stream.write(text)
            self.stream.flush()
            self.count += len(batch)
