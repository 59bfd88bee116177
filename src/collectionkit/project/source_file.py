"""In-memory source files tracked by a project."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Optional

import yaml

from ..analysis.literals import NonLiteralError, resolve_literal
from ..errors import ConfigurationError
from ..parsers.ts_parser import SCRIPT_EXTENSIONS, SourceModule, TSParser, binding_names, variable_declarators
from ..utils.paths import extension_name

logger = logging.getLogger(__name__)

MARKDOWN_EXTENSIONS = frozenset({".md", ".mdx"})
TRACKED_EXTENSIONS = SCRIPT_EXTENSIONS | MARKDOWN_EXTENSIONS

_FRONT_MATTER = re.compile(r"\A---[ \t]*\r?\n(.*?)\r?\n---[ \t]*(?:\r?\n|\Z)", re.DOTALL)


def split_front_matter(text: str, strict: bool = False) -> tuple[Optional[dict[str, Any]], str]:
    """Split leading YAML front matter from ``text``.

    Malformed YAML is logged and treated as absent unless ``strict``.

    Returns:
        ``(front_matter, body)``; front matter is None when absent.

    Raises:
        yaml.YAMLError: Malformed front matter with ``strict`` set.
    """
    match = _FRONT_MATTER.match(text)
    if not match:
        return None, text

    try:
        data = yaml.safe_load(match.group(1)) or {}
    except yaml.YAMLError as error:
        if strict:
            raise
        logger.warning("Ignoring malformed front matter: %s", error)
        return None, text
    if not isinstance(data, dict):
        return None, text
    return data, text[match.end():]


@dataclass
class SourceFile:
    """Text of one project file, with its parsed module cached."""

    path: str
    text: str
    in_memory: bool = False
    _parsed: Optional[tuple[str, SourceModule]] = field(default=None, init=False, repr=False)

    @property
    def extension(self) -> str:
        return extension_name(self.path)

    @property
    def is_script(self) -> bool:
        return self.extension in SCRIPT_EXTENSIONS

    @property
    def is_markdown(self) -> bool:
        return self.extension in MARKDOWN_EXTENSIONS

    def set_text(self, text: str) -> None:
        self.text = text
        self._parsed = None

    @property
    def module(self) -> SourceModule:
        """Parsed JS/TS module, reparsed lazily after text changes."""
        text = self.text
        parsed = self._parsed
        # keyed by the text it was parsed from; parsing may run off the loop
        if parsed is None or parsed[0] is not text:
            parsed = (text, TSParser().parse_module(text, self.path))
            self._parsed = parsed
        return parsed[1]

    def front_matter(self) -> Optional[dict[str, Any]]:
        return split_front_matter(self.text)[0]

    def metadata(self) -> Optional[dict[str, Any]]:
        """Per-file metadata: YAML front matter or ``export const metadata``.

        Raises:
            ConfigurationError: The front matter is malformed or the metadata
                export is not a literal.
        """
        if self.is_markdown:
            try:
                return split_front_matter(self.text, strict=True)[0]
            except yaml.YAMLError as error:
                raise ConfigurationError(f"Malformed front matter in {self.path}: {error}") from error
        if not self.is_script:
            return None

        for declaration in self.module.find_declarations("metadata"):
            if not declaration.exported or declaration.declaration_node is None:
                continue
            for declarator in variable_declarators(declaration.declaration_node):
                if "metadata" not in binding_names(declarator.child_by_field_name("name")):
                    continue
                value = declarator.child_by_field_name("value")
                if value is None:
                    return None
                try:
                    result = resolve_literal(value)
                except NonLiteralError as error:
                    raise ConfigurationError(
                        f"Expected the metadata export in {self.path} to be a literal value"
                    ) from error
                return result if isinstance(result, dict) else None
        return None
