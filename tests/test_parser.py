# tests/test_parser.py
"""
Tests for the Go front-end: source bytes → lowered syntax tree.
"""

import pytest

from defermod.ast_nodes import (
    AssignStmt,
    Block,
    DeclStmt,
    DeferStmt,
    FuncLit,
    FunctionDecl,
    Ident,
    Other,
    ResultField,
    SourceFile,
)
from defermod.errors import ParseFailure
from defermod.parser import parse_source
from tests.conftest import BROKEN_SRC, find_all, function, go


class TestParseFile:

    def test_package_only(self):
        tree = parse_source(b"package p\n", "p.go")
        assert isinstance(tree, SourceFile)
        assert tree.filename == "p.go"
        assert find_all(tree, FunctionDecl) == []

    def test_keeps_source_bytes(self):
        src = b"package p\n\nfunc F() {}\n"
        assert parse_source(src).source == src

    def test_syntax_error_raises_parse_failure(self):
        with pytest.raises(ParseFailure) as info:
            go(BROKEN_SRC, name="broken.go")
        assert info.value.path == "broken.go"
        assert info.value.span is not None
        assert info.value.span.line >= 1

    def test_comments_are_ignored(self):
        tree = go("""
            // F does nothing.
            func F() {
            	// nothing here
            	x := 1 /* inline */
            	_ = x
            }
        """)
        body = function(tree, "F").body
        assert [type(s) for s in body.statements] == [DeclStmt, AssignStmt]


class TestFunctionResults:

    def test_no_result_list(self):
        decl = function(go("func F() {}"), "F")
        assert decl.results is None

    def test_single_unnamed_result(self):
        decl = function(go("func F() error { return nil }"), "F")
        assert decl.results == (ResultField(),)

    def test_unnamed_result_list(self):
        decl = function(go("func F() (int64, error) { return 0, nil }"), "F")
        assert decl.results is not None
        assert len(decl.results) == 2
        assert all(r.names == () for r in decl.results)

    def test_named_results(self):
        decl = function(go("func F() (n int64, err error) { return }"), "F")
        names = [i.name for r in decl.results for i in r.names]
        assert names == ["n", "err"]

    def test_grouped_named_results(self):
        decl = function(go("func F() (a, b int) { return }"), "F")
        assert len(decl.results) == 1
        assert [i.name for i in decl.results[0].names] == ["a", "b"]

    def test_method_is_function_decl(self):
        tree = go("""
            type T struct{}

            func (t *T) Close() (err error) { return nil }
        """)
        decl = function(tree, "Close")
        assert [i.name for r in decl.results for i in r.names] == ["err"]

    def test_function_without_body(self):
        decl = function(go("func asm() int"), "asm")
        assert decl.body is None


class TestStatements:

    def test_defer_with_closure(self):
        tree = go("""
            func F() {
            	defer func() {
            		x = 1
            	}()
            }
        """)
        (defer,) = find_all(tree, DeferStmt)
        assert isinstance(defer.call, Other)
        assert defer.call.kind == "call_expression"
        (lit,) = find_all(tree, FuncLit)
        assert lit.span.line == 4
        assert lit.span.column == 8
        assert defer.span.contains(lit.span.start_byte)

    def test_assignment_targets(self):
        tree = go("""
            func F() {
            	a, s.f, m[k] = 1, 2, 3
            }
        """)
        (stmt,) = find_all(tree, AssignStmt)
        assert isinstance(stmt.targets[0], Ident)
        assert stmt.targets[0].name == "a"
        assert [t.kind for t in stmt.targets[1:]] == ["selector_expression", "index_expression"]
        assert stmt.op == "="

    def test_compound_assignment_operator(self):
        tree = go("""
            func F() {
            	n += 2
            }
        """)
        (stmt,) = find_all(tree, AssignStmt)
        assert stmt.op == "+="

    def test_short_var_declaration(self):
        tree = go("""
            func F() {
            	a, b := 1, 2
            }
        """)
        (decl,) = find_all(tree, DeclStmt)
        assert [n.name for n in decl.names] == ["a", "b"]

    def test_var_group(self):
        tree = go("""
            func F() {
            	var (
            		a int
            		b, c = 1, 2
            	)
            	const d = 4
            }
        """)
        decls = find_all(tree, DeclStmt)
        assert [n.name for n in decls[0].names] == ["a", "b", "c"]
        assert [n.name for n in decls[1].names] == ["d"]

    def test_range_clause_define(self):
        tree = go("""
            func F(xs []int) {
            	for i, x := range xs {
            		_ = x
            	}
            }
        """)
        decl = find_all(tree, DeclStmt)[0]
        assert [n.name for n in decl.names] == ["i", "x"]

    def test_range_clause_assign(self):
        tree = go("""
            func F(xs []int) {
            	var i int
            	for i = range xs {
            	}
            }
        """)
        assigns = find_all(tree, AssignStmt)
        assert [t.name for t in assigns[0].targets] == ["i"]

    def test_if_initializer_and_body(self):
        tree = go("""
            func F() {
            	if err := g(); err != nil {
            		err = nil
            	}
            }
        """)
        stmt = function(tree, "F").body.statements[0]
        assert isinstance(stmt, Other)
        assert stmt.kind == "if_statement"
        assert isinstance(stmt.children[0], DeclStmt)
        assert isinstance(stmt.children[-1], Block)

    def test_type_switch_alias_declares(self):
        tree = go("""
            func F(v interface{}) {
            	switch x := v.(type) {
            	case int:
            		_ = x
            	}
            }
        """)
        names = [n.name for d in find_all(tree, DeclStmt) for n in d.names]
        assert "x" in names

    def test_closure_in_declaration_value(self):
        tree = go("""
            func F() {
            	f := func() { y = 2 }
            	f()
            }
        """)
        (decl,) = find_all(tree, DeclStmt)
        assert isinstance(decl.values[0], FuncLit)
