# defermod/ast_nodes.py
"""
Syntax tree node definitions for analysed Go sources.

The tree is a closed union of frozen node kinds.  Only the syntax the
defer analysis cares about gets a dedicated kind; everything else is an
:class:`Other` that keeps just its structurally relevant descendants
(statements, blocks and closures) in source order.

Every node carries a :class:`~defermod.errors.SourceSpan`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple, Union

from defermod.errors import SourceSpan


# ── Leaves ───────────────────────────────────────────────────────

@dataclass(frozen=True)
class Ident:
    name: str
    span: SourceSpan = field(default_factory=SourceSpan)


@dataclass(frozen=True)
class Other:
    """Any syntax without a dedicated node kind."""
    kind: str
    children: Tuple[Node, ...] = ()
    span: SourceSpan = field(default_factory=SourceSpan)


# ── Statements ───────────────────────────────────────────────────

@dataclass(frozen=True)
class Block:
    statements: Tuple[Node, ...] = ()
    span: SourceSpan = field(default_factory=SourceSpan)


@dataclass(frozen=True)
class AssignStmt:
    """``a, b.c = x, y`` and the compound forms (``+=``, ``|=``, ...)."""
    targets: Tuple[Union[Ident, Other], ...]
    op: str = "="
    values: Tuple[Node, ...] = ()
    span: SourceSpan = field(default_factory=SourceSpan)


@dataclass(frozen=True)
class DeclStmt:
    """Any form that introduces names: ``var``, ``const``, ``:=``,
    ``range`` clauses with ``:=``, receive cases and type-switch aliases."""
    names: Tuple[Ident, ...]
    values: Tuple[Node, ...] = ()
    span: SourceSpan = field(default_factory=SourceSpan)


@dataclass(frozen=True)
class DeferStmt:
    call: Node
    span: SourceSpan = field(default_factory=SourceSpan)


# ── Functions ────────────────────────────────────────────────────

@dataclass(frozen=True)
class FuncLit:
    body: Block
    span: SourceSpan = field(default_factory=SourceSpan)


@dataclass(frozen=True)
class ResultField:
    """One entry of a result list; ``names`` is empty for an unnamed result."""
    names: Tuple[Ident, ...] = ()


@dataclass(frozen=True)
class FunctionDecl:
    """A top-level function or method declaration.

    ``results`` is ``None`` when the declaration has no result list at all.
    """
    name: str
    results: Optional[Tuple[ResultField, ...]] = None
    body: Optional[Block] = None
    span: SourceSpan = field(default_factory=SourceSpan)


Node = Union[
    FunctionDecl,
    DeferStmt,
    FuncLit,
    Block,
    AssignStmt,
    DeclStmt,
    Ident,
    Other,
]


# ── Tree root ────────────────────────────────────────────────────

@dataclass(frozen=True)
class SourceFile:
    """A parsed file: its name, raw bytes and top-level declarations."""
    filename: str
    source: bytes
    decls: Tuple[Node, ...] = ()

    def text(self, span: SourceSpan) -> str:
        return self.source[span.start_byte:span.end_byte].decode("utf-8", "replace")
