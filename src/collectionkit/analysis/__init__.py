"""Static analysis of JS/TS modules and long-form text."""

from .closure import extract_export_closure
from .docs import ModuleSymbol, describe_symbol, get_symbol, parse_doc_metadata
from .literals import NonLiteralError, is_literal, resolve_literal
from .sections import build_section_tree, get_headings

__all__ = [
    "ModuleSymbol",
    "NonLiteralError",
    "build_section_tree",
    "describe_symbol",
    "extract_export_closure",
    "get_headings",
    "get_symbol",
    "is_literal",
    "parse_doc_metadata",
    "resolve_literal",
]
