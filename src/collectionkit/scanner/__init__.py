"""Directory and collection models."""

from .tree import SourceTreeScanner, build_source_tree
from .pathnames import compute_order_map, compute_pathname_map
from .public_paths import get_public_paths, resolve_public_paths

__all__ = [
    "SourceTreeScanner",
    "build_source_tree",
    "compute_order_map",
    "compute_pathname_map",
    "get_public_paths",
    "resolve_public_paths",
]
