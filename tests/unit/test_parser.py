"""Tests for JavaScript call-site extraction."""

from __future__ import annotations

from kiln.parser import extract_call_sites


class TestExtractCallSites:
    """Tests for extract_call_sites."""

    def test_require_string(self) -> None:
        result = extract_call_sites("var a = require('a/b');")
        assert result.success
        assert len(result.call_sites) == 1
        call = result.call_sites[0]
        assert call.callee == "require"
        assert call.args[0].kind == "string"
        assert call.args[0].value == "a/b"
        assert call.line == 1

    def test_accepts_bytes(self) -> None:
        result = extract_call_sites(b'require("x");')
        assert result.call_sites[0].args[0].value == "x"

    def test_member_calls_ignored(self) -> None:
        result = extract_call_sites("loader.require('a'); require('b');")
        assert [c.args[0].value for c in result.call_sites] == ["b"]

    def test_names_filter(self) -> None:
        source = "foo('x'); require('a'); define(['b'], function(b) {});"
        result = extract_call_sites(source, names=("define", "require"))
        assert [c.callee for c in result.call_sites] == ["require", "define"]

    def test_source_order_with_nesting(self) -> None:
        source = """define(function(require, exports, module) {
  var a = require('a');
  var b = require('b');
});
"""
        result = extract_call_sites(source, names=("define", "require"))
        assert [c.callee for c in result.call_sites] == ["define", "require", "require"]
        assert [c.line for c in result.call_sites] == [1, 2, 3]

    def test_define_array_elements(self) -> None:
        result = extract_call_sites("define('name', ['a', x, \"b\"], function(a, x, b) {});")
        args = result.call_sites[0].args
        assert [a.kind for a in args] == ["string", "array", "function"]
        elements = args[1].value
        assert [e.kind for e in elements] == ["string", "other", "string"]
        assert elements[1].text == "x"
        assert args[2].value == 3

    def test_function_parameter_counts(self) -> None:
        result = extract_call_sites(
            "define(function() {}); define(function(require, exports, module) {});"
            " define((a, b) => a); define(x => x);"
        )
        assert [c.args[0].value for c in result.call_sites] == [0, 3, 2, 1]
        assert all(c.args[0].kind == "function" for c in result.call_sites)

    def test_string_escapes_decoded(self) -> None:
        result = extract_call_sites(r"require('it\'s');")
        assert result.call_sites[0].args[0].value == "it's"

    def test_empty_string(self) -> None:
        result = extract_call_sites("require('');")
        assert result.call_sites[0].args[0].kind == "string"
        assert result.call_sites[0].args[0].value == ""

    def test_comments_between_arguments(self) -> None:
        result = extract_call_sites("require(/* the util */ 'util');")
        args = result.call_sites[0].args
        assert len(args) == 1
        assert args[0].value == "util"

    def test_non_literal_argument(self) -> None:
        result = extract_call_sites("require(name);")
        assert result.call_sites[0].args[0].kind == "other"

    def test_syntax_error_reported(self) -> None:
        result = extract_call_sites("define(['a', function() {")
        assert not result.success
        assert result.error is not None
        assert result.error.startswith("syntax error")

    def test_empty_source(self) -> None:
        result = extract_call_sites("")
        assert result.success
        assert result.call_sites == []
