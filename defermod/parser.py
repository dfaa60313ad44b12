"""defermod/parser.py – Go source → defermod syntax tree.

Parses Go source with the tree-sitter Go grammar and lowers the concrete
syntax tree into the node kinds of :mod:`defermod.ast_nodes`.

Design principles
-----------------
* **Fail-fast with location** – a source with syntax errors raises
  :class:`~defermod.errors.ParseFailure` carrying the span of the first
  erroneous node; tree-sitter's error recovery is never trusted for
  analysis.
* **Keep only what the analysis reads** – function declarations,
  closures, defers, blocks, assignments and declarations get dedicated
  nodes.  Every other construct is an ``Other`` holding the dedicated
  nodes found beneath it, so long expression chains never deepen the
  lowered tree.
* **One parser per call** – ``tree_sitter.Parser`` instances are not
  shared, so files can be parsed from several worker threads.

Public API
----------
``parse_source(source: bytes, filename: str) -> SourceFile``
    Parse one file's bytes.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, Iterator, List, Optional, Tuple, Union

import tree_sitter_go
from tree_sitter import Language, Node as TSNode, Parser

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
    ResultField,
    SourceFile,
)
from defermod.errors import ParseFailure, SourceSpan

__all__ = ["GO_LANGUAGE", "parse_source"]

logger = logging.getLogger(__name__)

GO_LANGUAGE = Language(tree_sitter_go.language())

_IDENTIFIER_TYPES = frozenset({"identifier", "blank_identifier"})
_SKIPPED_TYPES = frozenset({"comment"})


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _span(node: TSNode) -> SourceSpan:
    return SourceSpan(
        line=node.start_point[0] + 1,
        column=node.start_point[1] + 1,
        end_line=node.end_point[0] + 1,
        end_column=node.end_point[1] + 1,
        start_byte=node.start_byte,
        end_byte=node.end_byte,
    )


def _text(node: TSNode) -> str:
    return node.text.decode("utf-8", "replace") if node.text else ""


def _ident(node: TSNode) -> Ident:
    return Ident(name=_text(node), span=_span(node))


def _named(node: TSNode) -> Iterator[TSNode]:
    for child in node.named_children:
        if child.type not in _SKIPPED_TYPES:
            yield child


def _expressions(node: Optional[TSNode]) -> List[TSNode]:
    """Members of an ``expression_list`` (or the lone expression)."""
    if node is None:
        return []
    if node.type == "expression_list":
        return list(_named(node))
    return [node]


def _first_error(root: TSNode) -> Optional[TSNode]:
    stack = [root]
    while stack:
        node = stack.pop()
        if node.type == "ERROR" or node.is_missing:
            return node
        if node.has_error:
            stack.extend(reversed(node.children))
    return None


# ---------------------------------------------------------------------------
# Lowering
# ---------------------------------------------------------------------------

def _lower(node: TSNode) -> Node:
    lower = _LOWERERS.get(node.type)
    if lower is not None:
        return lower(node)
    return Other(kind=node.type, children=_lower_children(node), span=_span(node))


def _lower_children(node: TSNode) -> Tuple[Node, ...]:
    """Dedicated nodes found beneath *node*, in source order."""
    out: List[Node] = []
    stack = list(reversed(list(_named(node))))
    while stack:
        child = stack.pop()
        lower = _LOWERERS.get(child.type)
        if lower is not None:
            out.append(lower(child))
        else:
            stack.extend(reversed(list(_named(child))))
    return tuple(out)


def _lower_values(nodes: List[TSNode]) -> Tuple[Node, ...]:
    return tuple(_lower(n) for n in nodes)


def _lower_target(node: TSNode) -> Union[Ident, Other]:
    if node.type in _IDENTIFIER_TYPES:
        return _ident(node)
    return Other(kind=node.type, children=_lower_children(node), span=_span(node))


def _statements(node: TSNode) -> Iterator[TSNode]:
    for child in _named(node):
        if child.type == "statement_list":
            yield from _named(child)
        else:
            yield child


def _lower_block(node: Optional[TSNode]) -> Block:
    if node is None:
        return Block()
    return Block(
        statements=tuple(_lower(s) for s in _statements(node)),
        span=_span(node),
    )


def _lower_results(node: Optional[TSNode]) -> Optional[Tuple[ResultField, ...]]:
    if node is None:
        return None
    if node.type != "parameter_list":
        # single unnamed result, e.g. ``func f() error``
        return (ResultField(),)
    fields = []
    for param in _named(node):
        if param.type not in ("parameter_declaration", "variadic_parameter_declaration"):
            continue
        names = tuple(_ident(n) for n in param.children_by_field_name("name"))
        fields.append(ResultField(names=names))
    return tuple(fields)


def _lower_function(node: TSNode) -> FunctionDecl:
    name = node.child_by_field_name("name")
    body = node.child_by_field_name("body")
    return FunctionDecl(
        name=_text(name) if name is not None else "",
        results=_lower_results(node.child_by_field_name("result")),
        body=_lower_block(body) if body is not None else None,
        span=_span(node),
    )


def _lower_func_literal(node: TSNode) -> FuncLit:
    return FuncLit(body=_lower_block(node.child_by_field_name("body")), span=_span(node))


def _lower_defer(node: TSNode) -> DeferStmt:
    exprs = list(_named(node))
    call = _lower(exprs[0]) if exprs else Other(kind="missing", span=_span(node))
    return DeferStmt(call=call, span=_span(node))


def _lower_assignment(node: TSNode) -> AssignStmt:
    op = node.child_by_field_name("operator")
    return AssignStmt(
        targets=tuple(_lower_target(t) for t in _expressions(node.child_by_field_name("left"))),
        op=op.type if op is not None else "=",
        values=_lower_values(_expressions(node.child_by_field_name("right"))),
        span=_span(node),
    )


def _lower_short_var(node: TSNode) -> DeclStmt:
    left = _expressions(node.child_by_field_name("left"))
    return DeclStmt(
        names=tuple(_ident(n) for n in left if n.type in _IDENTIFIER_TYPES),
        values=_lower_values(_expressions(node.child_by_field_name("right"))),
        span=_span(node),
    )


def _lower_value_declaration(node: TSNode) -> DeclStmt:
    """``var``/``const`` declarations, grouped or not."""
    names: List[Ident] = []
    values: List[Node] = []
    stack = list(reversed(list(_named(node))))
    while stack:
        child = stack.pop()
        if child.type in ("var_spec", "const_spec"):
            names.extend(_ident(n) for n in child.children_by_field_name("name"))
            values.extend(_lower_values(_expressions(child.child_by_field_name("value"))))
        elif child.type in ("var_spec_list", "const_spec_list"):
            stack.extend(reversed(list(_named(child))))
    return DeclStmt(names=tuple(names), values=tuple(values), span=_span(node))


def _lower_binding_clause(node: TSNode) -> Node:
    """``range`` clauses and ``select`` receive cases: ``k, v := range x``."""
    left = node.child_by_field_name("left")
    right = _lower_values(_expressions(node.child_by_field_name("right")))
    if left is None:
        return Other(kind=node.type, children=right, span=_span(node))
    operators = {c.type for c in node.children if not c.is_named}
    if ":=" in operators:
        return DeclStmt(
            names=tuple(_ident(n) for n in _expressions(left) if n.type in _IDENTIFIER_TYPES),
            values=right,
            span=_span(node),
        )
    return AssignStmt(
        targets=tuple(_lower_target(t) for t in _expressions(left)),
        op="=",
        values=right,
        span=_span(node),
    )


def _lower_type_switch(node: TSNode) -> Other:
    children = _lower_children(node)
    alias = node.child_by_field_name("alias")
    if alias is not None:
        decl = DeclStmt(
            names=tuple(_ident(n) for n in _expressions(alias) if n.type in _IDENTIFIER_TYPES),
            span=_span(alias),
        )
        children = (decl,) + children
    return Other(kind=node.type, children=children, span=_span(node))


_LOWERERS: Dict[str, Callable[[TSNode], Node]] = {
    "function_declaration": _lower_function,
    "method_declaration": _lower_function,
    "func_literal": _lower_func_literal,
    "block": _lower_block,
    "defer_statement": _lower_defer,
    "assignment_statement": _lower_assignment,
    "short_var_declaration": _lower_short_var,
    "var_declaration": _lower_value_declaration,
    "const_declaration": _lower_value_declaration,
    "range_clause": _lower_binding_clause,
    "receive_statement": _lower_binding_clause,
    "type_switch_statement": _lower_type_switch,
}


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------

def parse_source(source: bytes, filename: str = "<source>") -> SourceFile:
    """Parse Go *source* into a :class:`SourceFile`.

    Raises
    ------
    ParseFailure
        The source contains syntax errors.
    """
    tree = Parser(GO_LANGUAGE).parse(source)
    root = tree.root_node
    if root.has_error:
        bad = _first_error(root)
        span = _span(bad) if bad is not None else None
        logger.debug("syntax error in %s at %s", filename, span)
        raise ParseFailure(filename, span=span)
    return SourceFile(
        filename=filename,
        source=source,
        decls=tuple(_lower(n) for n in _named(root)),
    )
