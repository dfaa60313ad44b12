# tests/conftest.py
"""
Shared fixtures and helpers for the defermod test suite.
"""

import io
import os
import textwrap
from pathlib import Path

import pytest

from defermod.ast_nodes import (
    AssignStmt,
    Block,
    DeclStmt,
    DeferStmt,
    FuncLit,
    FunctionDecl,
    Other,
)
from defermod.diagnostics import DiagnosticSink
from defermod.parser import parse_source

TESTDATA = Path(__file__).resolve().parent / "testdata"


def go(src: str, name: str = "x.go"):
    """Parse a Go snippet; a ``package`` clause is added when missing."""
    text = textwrap.dedent(src).lstrip("\n")
    if not text.startswith("package "):
        text = "package p\n\n" + text
    return parse_source(text.encode("utf-8"), name)


def walk(node):
    """Pre-order iteration over a lowered node and its descendants."""
    stack = [node]
    while stack:
        cur = stack.pop()
        yield cur
        if isinstance(cur, FunctionDecl):
            kids = [cur.body] if cur.body is not None else []
        elif isinstance(cur, FuncLit):
            kids = [cur.body]
        elif isinstance(cur, DeferStmt):
            kids = [cur.call]
        elif isinstance(cur, Block):
            kids = list(cur.statements)
        elif isinstance(cur, Other):
            kids = list(cur.children)
        elif isinstance(cur, AssignStmt):
            kids = list(cur.targets) + list(cur.values)
        elif isinstance(cur, DeclStmt):
            kids = list(cur.names) + list(cur.values)
        else:
            kids = []
        stack.extend(reversed(kids))


def find_all(tree, kind):
    out = []
    for decl in tree.decls:
        out.extend(n for n in walk(decl) if isinstance(n, kind))
    return out


def function(tree, name):
    for decl in tree.decls:
        if isinstance(decl, FunctionDecl) and decl.name == name:
            return decl
    raise LookupError(name)


def write_go(directory: Path, name: str, src: str) -> Path:
    path = directory / name
    path.parent.mkdir(parents=True, exist_ok=True)
    text = textwrap.dedent(src).lstrip("\n")
    if not text.startswith("package "):
        text = "package p\n\n" + text
    path.write_text(text, encoding="utf-8")
    return path


# ── Go sources ───────────────────────────────────────────────────

UNNAMED_CLOSE_SRC = """
    func F(w Closer, r Reader) (int64, error) {
    	defer func() {
    		err2 := w.Close()
    		if err2 != nil {
    			err = err2
    		}
    	}()
    	return 0, nil
    }
"""

NAMED_CLOSE_SRC = """
    func F(w Closer, r Reader) (n int64, err error) {
    	defer func() {
    		err2 := w.Close()
    		if err2 != nil {
    			err = err2
    		}
    	}()
    	return 0, nil
    }
"""

BROKEN_SRC = """
    func F( {
    	return
"""


# ── Fixtures ─────────────────────────────────────────────────────

@pytest.fixture
def testdata() -> Path:
    return TESTDATA


@pytest.fixture
def out():
    return io.StringIO()


@pytest.fixture
def sink(out):
    return DiagnosticSink(out)


@pytest.fixture
def go_tree(tmp_path):
    """A directory holding two findings, one clean file and a non-Go file."""
    write_go(tmp_path, "a/unnamed.go", UNNAMED_CLOSE_SRC)
    write_go(tmp_path, "b/named.go", NAMED_CLOSE_SRC)
    write_go(tmp_path, "b/c/deep.go", UNNAMED_CLOSE_SRC.replace("func F", "func G"))
    (tmp_path / "notes.txt").write_text("func F() { defer func() { x = 1 }() }\n")
    return tmp_path


@pytest.fixture
def dangling_go(tmp_path):
    """A ``.go`` symlink whose target does not exist; opening it fails."""
    link = tmp_path / "dangling.go"
    os.symlink(tmp_path / "missing-target.go", link)
    return link
