"""collectionkit - Live source collections and static analysis."""

__version__ = "0.1.0"

from .config import Config
from .errors import (
    CollectionKitError,
    ConfigurationError,
    ExtractionError,
    NotFoundError,
    ValidationError,
)
from .models import CollectionConfiguration, CollectionOptions, SourceNode
from .project import Project
from .analysis import build_section_tree, describe_symbol, extract_export_closure, parse_doc_metadata
from .collections import (
    Collection,
    discover_collection_configurations,
    resolve_glob_import_string,
    write_collection_import_maps,
)
from .scanner import compute_order_map, compute_pathname_map

__all__ = [
    "Config",
    "CollectionKitError",
    "ConfigurationError",
    "ExtractionError",
    "NotFoundError",
    "ValidationError",
    "CollectionConfiguration",
    "CollectionOptions",
    "SourceNode",
    "Project",
    "build_section_tree",
    "describe_symbol",
    "extract_export_closure",
    "parse_doc_metadata",
    "Collection",
    "discover_collection_configurations",
    "resolve_glob_import_string",
    "write_collection_import_maps",
    "compute_order_map",
    "compute_pathname_map",
]
