"""Call-site extraction for JavaScript sources.

Only call expressions whose callee is a bare identifier are reported;
``define(...)`` and ``require(...)`` are what the module resolver needs.
Member calls (``loader.require(...)``) are deliberately not matched.
"""

from __future__ import annotations

import codecs
from collections.abc import Collection

from tree_sitter import Node

from kiln.models import CallArgument, CallSite, ParsedScript
from kiln.parser.base import (
    find_descendants_by_type,
    first_error_line,
    get_node_text,
    named_children,
    parse_source,
)

FUNCTION_TYPES = {
    "function",
    "function_expression",
    "arrow_function",
    "generator_function",
}


class CallSiteExtractor:
    """Extract identifier call sites from a JavaScript AST."""

    def __init__(self, names: Collection[str] | None = None) -> None:
        self.names = set(names) if names is not None else None

    def extract(self, root: Node, source: bytes) -> list[CallSite]:
        call_sites = []
        for node in find_descendants_by_type(root, "call_expression"):
            func_node = node.child_by_field_name("function")
            if func_node is None or func_node.type != "identifier":
                continue
            callee = get_node_text(func_node, source)
            if self.names is not None and callee not in self.names:
                continue

            args_node = node.child_by_field_name("arguments")
            args = []
            if args_node is not None and args_node.type == "arguments":
                args = [self._argument(arg, source) for arg in named_children(args_node)]

            call_sites.append(
                CallSite(callee=callee, args=args, line=node.start_point[0] + 1)
            )
        return call_sites

    def _argument(self, node: Node, source: bytes) -> CallArgument:
        text = get_node_text(node, source)
        if node.type == "string":
            return CallArgument(kind="string", value=self._string_value(node, source), text=text)
        if node.type == "array":
            elements = [self._argument(e, source) for e in named_children(node)]
            return CallArgument(kind="array", value=elements, text=text)
        if node.type in FUNCTION_TYPES:
            return CallArgument(kind="function", value=self._param_count(node), text=text)
        return CallArgument(kind="other", text=text)

    def _string_value(self, node: Node, source: bytes) -> str:
        """Literal value of a string node, with escapes decoded."""
        parts = []
        for child in node.named_children:
            fragment = get_node_text(child, source)
            if child.type == "escape_sequence":
                try:
                    fragment = codecs.decode(fragment, "unicode_escape")
                except UnicodeDecodeError:
                    fragment = fragment[1:]
            parts.append(fragment)
        return "".join(parts)

    def _param_count(self, node: Node) -> int:
        params = node.child_by_field_name("parameters")
        if params is not None:
            return len(named_children(params))
        # Arrow function with a single bare parameter: x => ...
        if node.child_by_field_name("parameter") is not None:
            return 1
        return 0


def extract_call_sites(
    source: bytes | str,
    names: Collection[str] | None = None,
) -> ParsedScript:
    """Parse a script and list its identifier call sites.

    Unparsable input is reported through ``ParsedScript.error`` instead of
    raising; the call sites found in the parsable parts are still returned.

    Args:
        source: Script contents
        names: Only report calls to these identifiers (default: all)

    Returns:
        ParsedScript with call sites and an optional error description
    """
    if isinstance(source, str):
        source = source.encode("utf-8")

    root = parse_source(source)
    result = ParsedScript(call_sites=CallSiteExtractor(names).extract(root, source))
    if root.has_error:
        line = first_error_line(root)
        result.error = f"syntax error at line {line}" if line else "syntax error"
    return result
