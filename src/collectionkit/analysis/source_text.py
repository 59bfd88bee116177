"""Metadata for source text: the entry point the RPC server exposes."""

from __future__ import annotations

import hashlib
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional

from pydantic import BaseModel, Field, model_validator

from ..errors import NotFoundError
from ..parsers.ts_parser import SourceModule, TSParser, export_specifiers
from ..project.source_file import split_front_matter
from ..utils.paths import extension_name, get_editor_uri
from .closure import extract_export_closure
from .docs import describe_symbol, get_symbol, parse_doc_metadata
from .sections import build_section_tree, get_headings

if TYPE_CHECKING:
    from ..project import Project

logger = logging.getLogger(__name__)

SNIPPET_DIRECTORY = "_collectionkit"

SCRIPT_LANGUAGES = frozenset({"js", "jsx", "ts", "tsx", "mjs", "cjs", "mts", "cts"})
MARKDOWN_LANGUAGES = frozenset({"md", "mdx"})

_LANGUAGE_ALIASES = {
    "javascript": "js",
    "typescript": "ts",
    "markdown": "md",
    "text": "txt",
    "plaintext": "txt",
}


class SourceTextRequest(BaseModel):
    """Either a snippet ``value`` or a ``file_path`` to read from the project."""

    value: Optional[str] = None
    file_path: Optional[str] = Field(default=None, alias="filePath")
    language: Optional[str] = None
    export_name: Optional[str] = Field(default=None, alias="exportName")

    model_config = {"populate_by_name": True}

    @model_validator(mode="after")
    def _require_source(self) -> "SourceTextRequest":
        if self.value is None and self.file_path is None:
            raise ValueError("Either value or filePath is required")
        return self


def infer_language(file_path: Optional[str], language: Optional[str] = None) -> str:
    """Language of a source, from ``language`` or the file extension; default ``txt``."""
    if language:
        normalized = language.lower()
    elif file_path and extension_name(file_path):
        normalized = extension_name(file_path)[1:].lower()
    else:
        normalized = "txt"
    return _LANGUAGE_ALIASES.get(normalized, normalized)


async def analyze_source_text(
    request: SourceTextRequest | dict[str, Any], project: "Project"
) -> dict[str, Any]:
    """Analyze a snippet or project file once in-flight refreshes settle.

    Returns a JSON-ready mapping. Markdown sources carry headings, sections
    and front matter; JS/TS sources carry their exports and, when
    ``export_name`` is requested, that export's standalone source.

    Raises:
        NotFoundError: ``file_path`` is neither tracked nor on disk.
        ExtractionError: ``export_name`` is not exported by the module.
    """
    if not isinstance(request, SourceTextRequest):
        request = SourceTextRequest.model_validate(request)

    await project.barrier.wait()

    language = infer_language(request.file_path, request.language)
    value, file_path = _load_value(request, project, language)

    result: dict[str, Any] = {
        "id": request.file_path or hashlib.sha256(value.encode("utf-8")).hexdigest(),
        "value": value,
        "language": language,
        "filePath": file_path,
    }

    if language in MARKDOWN_LANGUAGES:
        result.update(_analyze_markdown(value))
    elif language in SCRIPT_LANGUAGES:
        module = _module_for(project, file_path, value)
        result["exports"] = describe_exports(module, project.config.editor_scheme)
        if request.export_name:
            result["closure"] = extract_export_closure(module, request.export_name)

    return result


def _load_value(request: SourceTextRequest, project: "Project", language: str) -> tuple[str, str]:
    if request.file_path is not None:
        path = request.file_path
        if not Path(path).is_absolute():
            path = (project.root / path).as_posix()
        source_file = project.get_source_file(path)
        if source_file is not None:
            return source_file.text, source_file.path
        if request.value is not None:
            return request.value, path
        if not Path(path).is_file():
            raise NotFoundError(f"No source file found at {path}")
        return Path(path).read_text(encoding="utf-8"), path

    digest = hashlib.sha256(request.value.encode("utf-8")).hexdigest()
    path = (project.root / SNIPPET_DIRECTORY / f"{digest}.{language}").as_posix()
    if language in SCRIPT_LANGUAGES:
        # tracked in memory only, most recent last
        project.remove_source_file(path)
        project.create_source_file(path, request.value)
        project.prune_in_memory((project.root / SNIPPET_DIRECTORY).as_posix(), project.config.max_snippets)
    return request.value, path


def _module_for(project: "Project", file_path: str, value: str) -> SourceModule:
    source_file = project.get_source_file(file_path)
    if source_file is not None and source_file.text == value:
        return source_file.module
    return TSParser().parse_module(value, file_path)


def _analyze_markdown(value: str) -> dict[str, Any]:
    front_matter, body = split_front_matter(value)
    headings = get_headings(body)
    return {
        "frontMatter": front_matter,
        "headings": [heading.to_dict() for heading in headings],
        "sections": [section.to_dict() for section in build_section_tree(headings)],
    }


def describe_exports(module: SourceModule, editor_scheme: str = "vscode") -> list[dict[str, Any]]:
    """Exported symbols of ``module`` in source order with their documentation."""
    exports: list[dict[str, Any]] = []
    seen: set[str] = set()

    for name, local in _exported_in_order(module):
        if name in seen:
            continue
        seen.add(name)

        symbol = get_symbol(module, local)
        if symbol is None:
            continue

        site = symbol.declarations[0]
        declaration = module.find_declarations(local)[0]
        metadata = parse_doc_metadata(site)
        line, column = site.start_point[0] + 1, site.start_point[1]
        exports.append(
            {
                "name": name,
                "kind": declaration.kind,
                "description": describe_symbol(symbol),
                "tags": [tag.to_dict() for tag in metadata.tags] if metadata else [],
                "line": line,
                "column": column,
                "editorUri": get_editor_uri(module.file_path, line, column, editor_scheme),
            }
        )

    logger.debug("Described %d exports of %s", len(exports), module.file_path)
    return exports


def _exported_in_order(module: SourceModule) -> list[tuple[str, str]]:
    """``(exported, local)`` name pairs in source order."""
    pairs: list[tuple[str, str]] = []
    for declaration in module.declarations:
        if declaration.re_export:
            continue
        if declaration.export_list:
            pairs.extend((exported, local) for local, exported in export_specifiers(declaration.node))
        elif declaration.exported:
            pairs.extend((name, name) for name in declaration.names)
    return pairs
