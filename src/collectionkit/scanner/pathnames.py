"""Pathname and order maps for a source tree."""

from __future__ import annotations

import unicodedata
from typing import Iterable, Optional

from ..models import CollectionOptions, SourceNode
from ..utils.paths import file_path_to_pathname


def collation_key(name: str) -> tuple[str, str]:
    """Sort key approximating locale-aware comparison of base names.

    Accents and case only break ties, so ``apple`` sorts before ``Banana``.
    """
    stripped = "".join(
        char
        for char in unicodedata.normalize("NFKD", name)
        if not unicodedata.combining(char)
    )
    return stripped.casefold(), name


def compute_pathname_map(
    root: SourceNode,
    options: Optional[CollectionOptions] = None,
    kebab_case: bool = True,
) -> dict[str, str]:
    """Map every node path under ``root`` (inclusive) to its pathname.

    Directories are included so index-style routes can be resolved.
    """
    options = options or CollectionOptions()
    base_directory = options.base_directory or root.path
    pathnames: dict[str, str] = {}

    for node in root.walk():
        pathnames[node.path] = file_path_to_pathname(
            node.path,
            base_directory=base_directory,
            base_pathname=options.base_path,
            package_name=options.package_name,
            kebab_case=kebab_case,
            directory=node.is_directory,
        )

    return pathnames


def compute_order_map(
    root: SourceNode, public_paths: Optional[Iterable[str]] = None
) -> dict[str, str]:
    """Map node paths to dot-separated, zero-padded order keys.

    Siblings are ordered alphabetically by base name at every level,
    independent of how entries are stored on disk. When ``public_paths`` is
    given only files in it receive keys; directories always do.
    """
    allowed = set(public_paths) if public_paths is not None else None
    order: dict[str, str] = {}
    _assign_order(root, "", allowed, order)
    return order


def _assign_order(
    directory: SourceNode,
    prefix: str,
    allowed: Optional[set[str]],
    order: dict[str, str],
) -> None:
    entries = [
        child
        for child in directory.children
        if child.is_directory or allowed is None or child.path in allowed
    ]
    entries.sort(key=lambda child: collation_key(child.name))

    for index, child in enumerate(entries, start=1):
        key = f"{prefix}.{index:02d}" if prefix else f"{index:02d}"
        order[child.path] = key
        if child.is_directory:
            _assign_order(child, key, allowed, order)
