"""kiln parser - Tree-sitter based call-site extraction."""

from kiln.parser.javascript import CallSiteExtractor, extract_call_sites

__all__ = [
    "extract_call_sites",
    "CallSiteExtractor",
]
