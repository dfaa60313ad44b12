"""defermod — find deferred closures that assign to unnamed results.

A Go function can hand a close error back to its caller from a deferred
closure only through a *named* result::

    func Copy(w io.WriteCloser, r io.Reader) (n int64, err error) {
        defer func() {
            if err2 := w.Close(); err2 != nil && err == nil {
                err = err2
            }
        }()
        ...
    }

With ``(int64, error)`` instead, the closure updates a local that the
caller never sees.  This package reports those closures.

Submodules
----------
ast_nodes
    Frozen syntax tree node kinds.
parser
    tree-sitter Go front-end lowering sources into ``ast_nodes``.
scope
    Scope-assignment extraction (escaping assignment targets of a block).
analyzer
    Defer-capture analysis producing ``Diagnostic`` values.
diagnostics
    Diagnostic model, statement rendering and the output sink.
linter
    File driver and bounded, cancellable directory walker.
config
    ``LintConfig`` tuning knobs.
errors
    Error hierarchy and ``join_errors``.
main
    CLI entry-point (``defermod`` / ``python -m defermod``).

Usage
-----
Command-line::

    defermod -v -t 8 .

Programmatic::

    from defermod import check_source

    for diag in check_source(open("copy.go", "rb").read(), "copy.go"):
        print(diag)
"""

from __future__ import annotations

from typing import List

__version__: str = "0.1.0"

from defermod.analyzer import DeferCaptureAnalyzer, analyze, named_results
from defermod.diagnostics import Diagnostic, DiagnosticSink
from defermod.errors import (
    AggregateLintError,
    CloseFailure,
    DefermodError,
    OpenFailure,
    ParseFailure,
    UnexpectedFailure,
    WalkFailure,
)
from defermod.linter import (
    CancellationToken,
    LintReport,
    check_source,
    lint_directory,
    lint_file,
)
from defermod.parser import parse_source
from defermod.scope import escaping_assignments

__all__: List[str] = [
    "__version__",
    "AggregateLintError",
    "CancellationToken",
    "CloseFailure",
    "DeferCaptureAnalyzer",
    "DefermodError",
    "Diagnostic",
    "DiagnosticSink",
    "LintReport",
    "OpenFailure",
    "ParseFailure",
    "UnexpectedFailure",
    "WalkFailure",
    "analyze",
    "check_source",
    "escaping_assignments",
    "lint_directory",
    "lint_file",
    "named_results",
    "parse_source",
]
