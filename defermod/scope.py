"""
defermod/scope.py
=================

Scope-assignment extraction.

Given a block, find the identifiers it assigns to without declaring them
first, i.e. the assignments that escape to a binding owned by an
enclosing scope.  The scan is a pure fold over the block's statements in
source order: an immutable :class:`ScopeRecord` goes in, an updated one
comes out, and nothing is shared between calls.

Shadowing is decided by declaration order alone.  A name declared
anywhere earlier in the scan, including inside an already finished nested
block, makes later assignments to that name local.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import FrozenSet, Iterable, Tuple

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
)
from defermod.errors import ParseIntegrityError

__all__ = ["ScopeRecord", "escaping_assignments", "scan"]

BLANK = "_"


@dataclass(frozen=True)
class ScopeRecord:
    """Names declared so far and escaping assignment targets found so far."""

    declared: FrozenSet[str] = frozenset()
    escaping: Tuple[Ident, ...] = ()

    def declare(self, names: Iterable[Ident]) -> ScopeRecord:
        return replace(self, declared=self.declared | {n.name for n in names})

    def assign(self, target: Ident) -> ScopeRecord:
        name = target.name
        if name == BLANK or name in self.declared or name in self.escaping_names:
            return self
        return replace(self, escaping=self.escaping + (target,))

    @property
    def escaping_names(self) -> FrozenSet[str]:
        return frozenset(i.name for i in self.escaping)


def scan(node: Node, scope: ScopeRecord) -> ScopeRecord:
    """Fold *node* into *scope* and return the updated record."""
    match node:
        case FuncLit() | DeferStmt() | FunctionDecl():
            # own scope, analysed separately
            return scope
        case DeclStmt(names=names):
            return scope.declare(names)
        case AssignStmt(targets=targets):
            for target in targets:
                if isinstance(target, Ident):
                    scope = scope.assign(target)
            return scope
        case Block(statements=children) | Other(children=children):
            for child in children:
                scope = scan(child, scope)
            return scope
        case Ident():
            return scope
        case _:
            raise ParseIntegrityError(node)


def escaping_assignments(block: Block) -> Tuple[Ident, ...]:
    """Identifiers assigned in *block* but not declared in it.

    Each name appears once, at its first escaping assignment, so the
    result is in source order.
    """
    return scan(block, ScopeRecord()).escaping
