"""Tree-sitter plumbing shared by the script extractors."""

from __future__ import annotations

from tree_sitter import Language, Node, Parser

# Language registry
_languages: dict[str, Language] = {}


def get_language(lang: str = "javascript") -> Language:
    """Get or create Tree-sitter Language instance."""
    if lang not in _languages:
        if lang == "javascript":
            import tree_sitter_javascript as tsjavascript

            _languages[lang] = Language(tsjavascript.language())
        else:
            raise ValueError(f"Unsupported language: {lang}")
    return _languages[lang]


def parse_source(source: bytes, lang: str = "javascript") -> Node:
    """Parse source bytes and return the root node."""
    parser = Parser(get_language(lang))
    return parser.parse(source).root_node


def get_node_text(node: Node, source: bytes) -> str:
    """Extract text content of a node."""
    return source[node.start_byte : node.end_byte].decode("utf-8", errors="replace")


def named_children(node: Node) -> list[Node]:
    """Named children, skipping comments tree-sitter attaches anywhere."""
    return [child for child in node.named_children if child.type != "comment"]


def find_descendants_by_type(node: Node, type_name: str) -> list[Node]:
    """Find all descendants with a specific type, in source order.

    Walks with an explicit stack so deeply nested (e.g. minified) code
    cannot exhaust the interpreter's recursion limit.
    """
    results = []
    stack = [node]
    while stack:
        current = stack.pop()
        if current.type == type_name:
            results.append(current)
        stack.extend(reversed(current.children))
    return results


def first_error_line(node: Node) -> int | None:
    """1-based line of the first ERROR or missing node, if any."""
    stack = [node]
    while stack:
        current = stack.pop()
        if current.type == "ERROR" or current.is_missing:
            return current.start_point[0] + 1
        if current.has_error:
            stack.extend(reversed(current.children))
    return None
