# tests/test_diagnostics.py
"""
Tests for diagnostic formatting, statement rendering and the sink.
"""

import dataclasses
import io
import threading

import pytest

from defermod.analyzer import analyze
from defermod.ast_nodes import DeferStmt
from defermod.diagnostics import (
    Diagnostic,
    DiagnosticSink,
    format_diagnostic,
    render_statement,
)
from defermod.parser import parse_source
from tests.conftest import find_all, go

BAD_STATEMENT = (
    "defer func() {\n"
    "\terr2 := w.Close()\n"
    "\tif err2 != nil && err != nil {\n"
    "\t\terr = err2\n"
    "\t}\n"
    "}()"
)


def _diag(name="err", line=3, column=8):
    return Diagnostic(file="x.go", line=line, column=column, name=name,
                      statement="defer func() { err = nil }()")


class TestDiagnostic:

    def test_header(self):
        assert str(_diag()) == (
            "x.go:3:8 function literal in defer assigns to (err) "
            "a non-named return in parent function"
        )

    def test_format_appends_statement(self):
        text = format_diagnostic(_diag())
        header, statement, tail = text.split("\n")
        assert header.startswith("x.go:3:8 ")
        assert statement == "defer func() { err = nil }()"
        assert tail == ""

    def test_is_immutable(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            _diag().name = "other"


class TestRenderStatement:

    def test_bad_testdata(self, testdata):
        tree = parse_source((testdata / "bad.go").read_bytes(), "bad.go")
        (defer,) = find_all(tree, DeferStmt)
        assert render_statement(tree, defer.span) == BAD_STATEMENT

    def test_single_line(self):
        tree = go("""
            func F() {
            	defer func() { x = 1 }()
            }
        """)
        (defer,) = find_all(tree, DeferStmt)
        assert render_statement(tree, defer.span) == "defer func() { x = 1 }()"

    def test_source_layout_kept(self):
        tree = go("""
            func F() {
            	defer func() {
            		// close quietly
            		x  =  1
            	}()
            }
        """)
        (defer,) = find_all(tree, DeferStmt)
        assert render_statement(tree, defer.span) == (
            "defer func() {\n"
            "\t// close quietly\n"
            "\tx  =  1\n"
            "}()"
        )

    def test_full_output_for_bad_testdata(self, testdata):
        tree = parse_source((testdata / "bad.go").read_bytes(), "testdata/bad.go")
        (diag,) = analyze(tree)
        assert format_diagnostic(diag) == (
            "testdata/bad.go:11:8 function literal in defer assigns to (err) "
            "a non-named return in parent function\n" + BAD_STATEMENT + "\n"
        )


class TestDiagnosticSink:

    def test_emit_writes_each(self):
        out = io.StringIO()
        sink = DiagnosticSink(out)
        sink.emit([_diag("a"), _diag("b")])
        text = out.getvalue()
        assert "(a)" in text and "(b)" in text
        assert text.index("(a)") < text.index("(b)")
        assert sink.count == 2

    def test_emit_nothing(self):
        out = io.StringIO()
        sink = DiagnosticSink(out)
        sink.emit([])
        assert out.getvalue() == ""
        assert sink.count == 0

    def test_defaults_to_stdout(self, capsys):
        DiagnosticSink().emit([_diag()])
        assert "function literal in defer" in capsys.readouterr().out

    def test_batches_not_interleaved(self):
        out = io.StringIO()
        sink = DiagnosticSink(out)
        batches = [[_diag(f"v{i}_{j}") for j in range(20)] for i in range(8)]
        threads = [threading.Thread(target=sink.emit, args=(b,)) for b in batches]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        headers = [ln for ln in out.getvalue().splitlines() if ln.startswith("x.go")]
        assert len(headers) == 160
        owners = [h.split("(v")[1].split("_")[0] for h in headers]
        # each batch appears as one contiguous run
        runs = [o for i, o in enumerate(owners) if i == 0 or owners[i - 1] != o]
        assert len(runs) == 8
