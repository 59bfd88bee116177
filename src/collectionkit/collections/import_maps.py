"""Generated import-map module for discovered collections."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Iterable, Optional

from ..errors import NotFoundError
from ..models import CollectionConfiguration
from ..utils.globs import glob_parent, match_files
from ..utils.paths import ensure_relative_path, extension_name, relative_path
from .discovery import discover_collection_configurations
from .tsconfig import get_absolute_glob_pattern

if TYPE_CHECKING:
    from ..project import Project

logger = logging.getLogger(__name__)

IMPORT_MAP_FILENAME = "import-maps.js"

NOT_FOUND_MESSAGE = """No source files found for collection while attempting to generate import map for file pattern: {pattern}

You can fix this error by ensuring the following:

  - The file pattern is formatted correctly and targeting files that exist.
  - If using a relative path, ensure the "tsConfigFilePath" option is targeting the correct workspace.
  - If the files are not written yet, run outside of production to allow an empty collection.
"""

_HEADER = "// Generated by collectionkit. Do not edit by hand.\n"


def resolve_glob_import_string(
    pattern: str,
    ts_config_path: Optional[str] = None,
    *,
    root: Path | str,
    production: bool = False,
    relative_to: Optional[str] = None,
    ignored_dirs: Iterable[str] = (),
) -> dict[str, str]:
    """Import functions for every extension a collection pattern matches.

    Args:
        pattern: Collection glob, relative to the tsconfig directory.
        ts_config_path: tsconfig used for ``baseUrl``/``paths`` aliases.
        root: Project root; the default tsconfig location.
        production: Fail instead of returning nothing when no file matches.
        relative_to: Directory the import paths are written relative to;
            absolute paths when omitted.
        ignored_dirs: Directory names never descended into.

    Returns:
        Mapping of extension (``.mdx``) to ``(slug) => import(...)`` source,
        sorted by extension.

    Raises:
        NotFoundError: Nothing matched while ``production`` is set.
    """
    absolute_pattern = get_absolute_glob_pattern(pattern, root, ts_config_path)
    file_paths = match_files(absolute_pattern, cwd=root, ignored_dirs=ignored_dirs)

    if not file_paths:
        if production:
            raise NotFoundError(NOT_FOUND_MESSAGE.format(pattern=pattern))
        logger.debug("No files match %s yet", pattern)
        return {}

    parent = glob_parent(absolute_pattern)
    if relative_to is not None:
        parent = ensure_relative_path(relative_path(relative_to, parent))

    extensions = sorted({extension_name(file_path) for file_path in file_paths} - {""})
    return {
        extension: f"(slug) => import(`{parent}/${{slug}}{extension}`)"
        for extension in extensions
    }


def render_import_map_module(entries: Iterable[tuple[str, str]]) -> str:
    """JavaScript source for ``(key, import function)`` entries."""
    lines = [_HEADER, "export const importMaps = {"]
    for key, source in entries:
        lines.append(f"  {_quote(key)}: {source},")
    lines.append("}")
    lines.append("")
    lines.append("export function getImportMap(extension, pattern) {")
    lines.append("  return importMaps[`${extension}:${pattern}`]")
    lines.append("}")
    return "\n".join(lines) + "\n"


def _quote(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


class ImportMapWriter:
    """Keeps a project's import-map module in sync with its collections."""

    def __init__(self, project: "Project"):
        self.project = project
        self.config = project.config
        self.output_path = project.root / self.config.cache_dir / IMPORT_MAP_FILENAME
        self.configurations: dict[str, CollectionConfiguration] = {}

    def is_relevant(self, path: str) -> bool:
        """Whether a change to ``path`` can alter the generated module."""
        if not self.configurations:
            return True

        if any(configuration.file_path == path for configuration in self.configurations.values()):
            return True

        source_file = self.project.get_source_file(path)
        if source_file is not None and self.config.collection_module in source_file.text:
            return True

        for configuration in self.configurations.values():
            absolute = get_absolute_glob_pattern(
                configuration.pattern,
                self.project.root,
                configuration.options.ts_config_file_path,
            )
            parent = glob_parent(absolute)
            if path == parent or path.startswith(parent.rstrip("/") + "/"):
                return True

        return False

    def write(self, changed_path: Optional[str] = None) -> bool:
        """Regenerate the module; returns whether the file changed on disk.

        With ``changed_path`` regeneration is skipped when the change cannot
        affect any collection. Identical content is never rewritten.
        """
        if changed_path is not None and not self.is_relevant(changed_path):
            logger.debug("Skipping import maps for unrelated change %s", changed_path)
            return False

        self.configurations = discover_collection_configurations(self.project)
        output_directory = self.output_path.parent.as_posix()

        entries: list[tuple[str, str]] = []
        for pattern in sorted(self.configurations):
            configuration = self.configurations[pattern]
            imports = resolve_glob_import_string(
                pattern,
                configuration.options.ts_config_file_path,
                root=self.project.root,
                production=self.config.is_production,
                relative_to=output_directory,
                ignored_dirs=self.config.ignored_dirs,
            )
            for extension, source in imports.items():
                entries.append((f"{extension[1:]}:{pattern}", source))

        content = render_import_map_module(entries)

        if self.output_path.exists() and self.output_path.read_text(encoding="utf-8") == content:
            logger.debug("Import maps unchanged at %s", self.output_path)
            return False

        self.output_path.parent.mkdir(parents=True, exist_ok=True)
        self.output_path.write_text(content, encoding="utf-8")
        logger.info("Wrote %d import map(s) to %s", len(entries), self.output_path)
        return True


def write_collection_import_maps(project: "Project") -> bool:
    """Write the import-map module for every collection in ``project``."""
    return ImportMapWriter(project).write()
