"""Public source paths derived from package.json exports."""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Iterable, Optional

from ..utils.globs import match_files
from ..utils.paths import join_paths

logger = logging.getLogger(__name__)

EXTENSION_PATTERNS = [
    ".{js,jsx,ts,tsx}",
    ".{examples,test}.{js,jsx,ts,tsx}",
]


def read_package_metadata(package_dir: Path) -> Optional[dict]:
    """Read ``package.json`` from ``package_dir`` if it exists."""
    package_json = package_dir / "package.json"
    if not package_json.exists():
        return None
    try:
        return json.loads(package_json.read_text())
    except (OSError, json.JSONDecodeError) as error:
        logger.warning("Could not read %s: %s", package_json, error)
        return None


def get_public_paths(
    package_dir: Path | str,
    source_directory: str = "src",
    output_directory: str | Iterable[str] = "dist",
) -> list[str]:
    """Return glob patterns for the source files behind a package's exports.

    Each export in ``dist`` maps back to its source in ``src``; examples and
    tests next to it are excluded with ``!`` patterns.
    """
    package_dir = Path(package_dir).resolve()
    output_directories = (
        [output_directory] if isinstance(output_directory, str) else list(output_directory)
    )
    metadata = read_package_metadata(package_dir)
    exports = (metadata or {}).get("exports")

    if not isinstance(exports, dict):
        return []

    patterns: list[str] = []

    for export_value in exports.values():
        export_path = _resolve_export_path(export_value)
        if not isinstance(export_path, str):
            continue

        for index, extension_pattern in enumerate(EXTENSION_PATTERNS):
            for directory in output_directories:
                if directory not in export_path:
                    continue
                export_pattern = re.sub(
                    r"\.js$",
                    extension_pattern,
                    export_path.replace(directory, source_directory, 1),
                )
                source_pattern = join_paths(package_dir.as_posix(), export_pattern)
                patterns.append(source_pattern if index == 0 else f"!{source_pattern}")

    return patterns


def _resolve_export_path(export_value):
    if isinstance(export_value, dict):
        import_value = export_value.get("import", export_value.get("default"))
        if isinstance(import_value, dict):
            return import_value.get("default")
        return import_value
    return export_value


def resolve_public_paths(package_dir: Path | str, **kwargs) -> list[str]:
    """Expand ``get_public_paths`` patterns into absolute file paths."""
    return match_files(get_public_paths(package_dir, **kwargs), cwd=package_dir)
