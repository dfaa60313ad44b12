"""
defermod/analyzer.py
════════════════════

Defer-capture analysis.

Finds function literals registered with ``defer`` that assign to an
identifier which is neither declared inside the literal nor a named
result of the enclosing function.  Without a named result the assignment
never reaches the caller::

    func Copy(w io.WriteCloser, r io.Reader) (int64, error) {
        var err error
        defer func() {
            if err2 := w.Close(); err2 != nil {
                err = err2          // lost: the result is unnamed
            }
        }()
        ...
    }

The traversal is a single depth-first, pre-order pass.  Its context is an
immutable :class:`TraversalState`; every visit returns the state the next
sibling continues from, so a later ``defer`` replaces an earlier one and
leaving a function declaration restores the state outside it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import FrozenSet, List, Optional

from defermod.ast_nodes import (
    AssignStmt,
    Block,
    DeclStmt,
    DeferStmt,
    FuncLit,
    FunctionDecl,
    Ident,
    Node,
    Other,
    SourceFile,
)
from defermod.diagnostics import Diagnostic, render_statement
from defermod.errors import ParseIntegrityError
from defermod.scope import escaping_assignments

__all__ = [
    "DeferCaptureAnalyzer",
    "TraversalState",
    "analyze",
    "has_named_results",
    "named_results",
]

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Named results
# ---------------------------------------------------------------------------

def has_named_results(decl: FunctionDecl) -> bool:
    """True if *decl* declares at least one named result."""
    return bool(named_results(decl))


def named_results(decl: FunctionDecl) -> FrozenSet[str]:
    """Names of *decl*'s named results.

    Empty both when there is no result list (``func f()``) and when the
    results are unnamed (``func f() (int, error)``).
    """
    if decl.results is None:
        return frozenset()
    return frozenset(ident.name for result in decl.results for ident in result.names)


# ---------------------------------------------------------------------------
# Traversal state
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TraversalState:
    """Where the traversal currently is.

    ``function`` is ``None`` outside any function declaration.
    ``outer_escapes`` holds the names the enclosing function body itself
    assigns without declaring; those bindings belong to package scope.
    """

    function: Optional[FunctionDecl] = None
    named: FrozenSet[str] = frozenset()
    outer_escapes: FrozenSet[str] = frozenset()
    last_defer: Optional[DeferStmt] = None

    @classmethod
    def entering(cls, decl: FunctionDecl) -> TraversalState:
        escapes: FrozenSet[str] = frozenset()
        if decl.body is not None:
            escapes = frozenset(i.name for i in escaping_assignments(decl.body))
        return cls(function=decl, named=named_results(decl), outer_escapes=escapes)


NO_FUNCTION = TraversalState()


# ---------------------------------------------------------------------------
# Analyzer
# ---------------------------------------------------------------------------

class DeferCaptureAnalyzer:
    """Runs the defer-capture analysis over one :class:`SourceFile`.

    An instance holds no state between :meth:`analyze` calls and may be
    reused; concurrent calls need separate instances.
    """

    def __init__(self) -> None:
        self._found: List[Diagnostic] = []

    def analyze(self, tree: SourceFile) -> List[Diagnostic]:
        """Return the diagnostics for *tree* in file order."""
        self._found = []
        state = NO_FUNCTION
        for decl in tree.decls:
            state = self._visit(tree, decl, state)
        return self._found

    def _visit(self, tree: SourceFile, node: Node, state: TraversalState) -> TraversalState:
        match node:
            case FunctionDecl(body=body):
                if body is not None:
                    self._visit(tree, body, TraversalState.entering(node))
                return NO_FUNCTION
            case DeferStmt(call=call):
                if state.function is not None:
                    state = replace(state, last_defer=node)
                return self._visit(tree, call, state)
            case FuncLit(body=body):
                defer = self._deferred_by(node, state)
                if defer is not None:
                    self._check_closure(tree, node, defer, state)
                return self._visit(tree, body, state)
            case Block(statements=children) | Other(children=children):
                for child in children:
                    state = self._visit(tree, child, state)
                return state
            case AssignStmt(targets=targets, values=values):
                for child in targets + values:
                    state = self._visit(tree, child, state)
                return state
            case DeclStmt(values=values):
                for child in values:
                    state = self._visit(tree, child, state)
                return state
            case Ident():
                return state
            case _:
                raise ParseIntegrityError(node)

    @staticmethod
    def _deferred_by(lit: FuncLit, state: TraversalState) -> Optional[DeferStmt]:
        """The pending defer whose span holds *lit*, if any."""
        defer = state.last_defer
        if defer is not None and defer.span.contains(lit.span.start_byte):
            return defer
        return None

    def _check_closure(
        self,
        tree: SourceFile,
        lit: FuncLit,
        defer: DeferStmt,
        state: TraversalState,
    ) -> None:
        statement: Optional[str] = None
        for target in escaping_assignments(lit.body):
            if target.name in state.named or target.name in state.outer_escapes:
                continue
            if statement is None:
                statement = render_statement(tree, defer.span)
            logger.debug(
                "%s:%s deferred closure in %s assigns to %s",
                tree.filename, lit.span, state.function.name if state.function else "?",
                target.name,
            )
            self._found.append(
                Diagnostic(
                    file=tree.filename,
                    line=lit.span.line,
                    column=lit.span.column,
                    name=target.name,
                    statement=statement,
                )
            )


def analyze(tree: SourceFile) -> List[Diagnostic]:
    """Convenience wrapper: ``DeferCaptureAnalyzer().analyze(tree)``."""
    return DeferCaptureAnalyzer().analyze(tree)
