"""Collection discovery, listing and generated import maps."""

from .collection import Collection, CollectionSource, validate_metadata
from .discovery import discover_collection_configurations
from .import_maps import ImportMapWriter, resolve_glob_import_string, write_collection_import_maps

__all__ = [
    "Collection",
    "CollectionSource",
    "ImportMapWriter",
    "discover_collection_configurations",
    "resolve_glob_import_string",
    "validate_metadata",
    "write_collection_import_maps",
]
