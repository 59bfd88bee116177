"""Collections: the files one declaration matches, with their routes and metadata."""

from __future__ import annotations

import datetime
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional

from ..errors import ConfigurationError, ValidationError
from ..models import CollectionConfiguration, CollectionOptions, NodeKind, SourceExpression, SourceNode
from ..project.source_file import SourceFile
from ..scanner.pathnames import compute_order_map, compute_pathname_map
from ..utils.globs import glob_parent, match_files
from ..utils.paths import base_name, extension_name, get_editor_uri, relative_path
from .tsconfig import get_absolute_glob_pattern

if TYPE_CHECKING:
    from ..project import Project

logger = logging.getLogger(__name__)

_SCHEMA_TYPES: dict[str, tuple[type, ...]] = {
    "string": (str,),
    "number": (int, float),
    "boolean": (bool,),
    "array": (list, tuple),
    "object": (dict,),
    "date": (datetime.date, str),
}


@dataclass
class CollectionSource:
    """One file of a collection."""

    path: str
    pathname: str
    order: str
    depth: int
    extension: str
    metadata: Optional[dict[str, Any]] = None
    editor_uri: str = ""

    @property
    def name(self) -> str:
        return base_name(self.path, self.extension)

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "pathname": self.pathname,
            "order": self.order,
            "depth": self.depth,
            "extension": self.extension,
            "metadata": self.metadata,
            "editorUri": self.editor_uri,
        }


@dataclass
class _Listing:
    sources: list[CollectionSource] = field(default_factory=list)
    by_pathname: dict[str, CollectionSource] = field(default_factory=dict)


class Collection:
    """Files matched by a collection declaration, sorted for navigation."""

    def __init__(self, project: "Project", configuration: CollectionConfiguration):
        self.project = project
        self.configuration = configuration
        self._listing: Optional[_Listing] = None

    @property
    def pattern(self) -> str:
        return self.configuration.pattern

    @property
    def options(self) -> CollectionOptions:
        return self.configuration.options

    @property
    def absolute_pattern(self) -> str:
        return get_absolute_glob_pattern(self.pattern, self.project.root, self.options.ts_config_file_path)

    @property
    def base_directory(self) -> str:
        """Directory pathnames are computed from."""
        if self.options.base_directory:
            base = Path(self.options.base_directory)
            if not base.is_absolute():
                base = self.project.root / base
            return base.as_posix()
        return glob_parent(self.absolute_pattern)

    def file_paths(self) -> list[str]:
        return match_files(
            self.absolute_pattern,
            cwd=self.project.root,
            ignored_dirs=self.project.config.ignored_dirs,
        )

    def invalidate(self) -> None:
        self._listing = None

    def get_sources(self) -> list[CollectionSource]:
        """All sources, sorted by ``sort`` metadata or else by order key.

        Raises:
            ConfigurationError: ``sort`` is set and a file has no metadata.
            ValidationError: A file's metadata does not match ``schema``.
        """
        return list(self._load().sources)

    def get_source(self, pathname: str) -> Optional[CollectionSource]:
        normalized = "/" + pathname.strip("/")
        return self._load().by_pathname.get(normalized)

    def get_siblings(
        self, source: CollectionSource
    ) -> tuple[Optional[CollectionSource], Optional[CollectionSource]]:
        """Previous and next sources around ``source`` in collection order."""
        sources = self._load().sources
        index = next((i for i, entry in enumerate(sources) if entry.path == source.path), -1)
        if index == -1:
            return None, None
        previous = sources[index - 1] if index > 0 else None
        following = sources[index + 1] if index < len(sources) - 1 else None
        return previous, following

    def _load(self) -> _Listing:
        if self._listing is not None:
            return self._listing

        file_paths = self.file_paths()
        base_directory = self.base_directory
        tree = _tree_from_paths(base_directory, file_paths)
        pathnames = compute_pathname_map(
            tree,
            self.options.model_copy(update={"base_directory": base_directory}),
        )
        order = compute_order_map(tree, public_paths=file_paths)

        sources: list[CollectionSource] = []
        for file_path in file_paths:
            extension = extension_name(file_path)
            metadata = self._metadata(file_path)
            self._validate(file_path, extension, metadata)
            sources.append(
                CollectionSource(
                    path=file_path,
                    pathname=pathnames.get(file_path, ""),
                    order=order.get(file_path, ""),
                    depth=relative_path(base_directory, file_path).count("/"),
                    extension=extension,
                    metadata=metadata,
                    editor_uri=get_editor_uri(file_path, scheme=self.project.config.editor_scheme),
                )
            )

        if self.options.sort:
            sources = self._sort_by_metadata(sources, self.options.sort)
        else:
            sources.sort(key=lambda source: (source.order, source.pathname))

        self._listing = _Listing(
            sources=sources,
            by_pathname={source.pathname: source for source in sources},
        )
        logger.debug("Loaded %d sources for %s", len(sources), self.pattern)
        return self._listing

    def _metadata(self, file_path: str) -> Optional[dict[str, Any]]:
        source_file = self.project.get_source_file(file_path)
        if source_file is None:
            source_file = SourceFile(path=file_path, text=Path(file_path).read_text(encoding="utf-8"))
        return source_file.metadata()

    def _validate(self, file_path: str, extension: str, metadata: Optional[dict[str, Any]]) -> None:
        schema = self.options.schema_
        if schema is None:
            return
        if isinstance(schema, SourceExpression):
            logger.debug("Schema for %s is code, skipping validation", self.pattern)
            return
        shape = schema.get(extension[1:])
        if shape is None or isinstance(shape, SourceExpression):
            return
        if not isinstance(shape, dict):
            raise ConfigurationError(f'Schema for "{extension[1:]}" in {self.pattern} must be an object literal')
        validate_metadata(metadata or {}, shape, file_path)

    def _sort_by_metadata(self, sources: list[CollectionSource], sort: str) -> list[CollectionSource]:
        keyed = []
        for source in sources:
            if source.metadata is None:
                raise ConfigurationError(
                    f'Collection "{self.pattern}" sorts by "{sort}" but {source.path} exports no metadata'
                )
            keyed.append((_dotted_value(source.metadata, sort), source))

        def sort_key(entry):
            value, source = entry
            return (value is None, _comparable(value), source.order, source.pathname)

        return [source for _, source in sorted(keyed, key=sort_key)]


def validate_metadata(metadata: dict[str, Any], shape: dict[str, Any], file_path: str) -> None:
    """Check ``metadata`` against a literal schema shape.

    Shape values are type names (``string``, ``number``, ``boolean``,
    ``array``, ``object``, ``date``), optional with a trailing ``?``, or
    nested shapes.

    Raises:
        ValidationError: A field is missing or has the wrong type.
    """
    for key, expected in shape.items():
        value = metadata.get(key)
        if isinstance(expected, dict):
            if value is None:
                raise ValidationError(f'{file_path}: metadata field "{key}" is required')
            if not isinstance(value, dict):
                raise ValidationError(f'{file_path}: metadata field "{key}" must be an object')
            validate_metadata(value, expected, file_path)
            continue

        if not isinstance(expected, str):
            raise ValidationError(f'{file_path}: unsupported schema for "{key}": {expected!r}')

        optional = expected.endswith("?")
        type_name = expected.rstrip("?")
        if type_name not in _SCHEMA_TYPES:
            raise ValidationError(f'{file_path}: unknown schema type "{type_name}" for "{key}"')

        if value is None:
            if optional:
                continue
            raise ValidationError(f'{file_path}: metadata field "{key}" is required')

        if not _matches_type(value, type_name):
            raise ValidationError(
                f'{file_path}: metadata field "{key}" must be {type_name}, got {type(value).__name__}'
            )


def _matches_type(value: Any, type_name: str) -> bool:
    if type_name == "number" and isinstance(value, bool):
        return False
    if type_name == "date" and isinstance(value, str):
        try:
            datetime.date.fromisoformat(value[:10])
        except ValueError:
            return False
        return True
    return isinstance(value, _SCHEMA_TYPES[type_name])


def _dotted_value(metadata: dict[str, Any], path: str) -> Any:
    value: Any = metadata
    for part in path.split("."):
        if not isinstance(value, dict):
            return None
        value = value.get(part)
    return value


def _comparable(value: Any) -> tuple[int, Any]:
    if value is None:
        return (0, "")
    if isinstance(value, bool):
        return (1, int(value))
    if isinstance(value, (int, float)):
        return (1, value)
    if isinstance(value, datetime.date):
        return (2, value.isoformat())
    return (3, str(value))


def _tree_from_paths(base_directory: str, file_paths: list[str]) -> SourceNode:
    """Directory tree holding exactly ``file_paths`` below ``base_directory``."""
    root = SourceNode(path=base_directory, name=base_name(base_directory), kind=NodeKind.DIRECTORY)
    directories: dict[str, SourceNode] = {base_directory: root}

    for file_path in file_paths:
        relative = relative_path(base_directory, file_path)
        if relative.startswith(".."):
            continue
        parent = root
        parts = relative.split("/")
        current = base_directory
        for part in parts[:-1]:
            current = f"{current.rstrip('/')}/{part}"
            node = directories.get(current)
            if node is None:
                node = SourceNode(path=current, name=part, kind=NodeKind.DIRECTORY)
                directories[current] = node
                parent.children.append(node)
            parent = node
        parent.children.append(
            SourceNode(
                path=file_path,
                name=parts[-1],
                kind=NodeKind.FILE,
                extension=extension_name(file_path),
            )
        )

    return root
