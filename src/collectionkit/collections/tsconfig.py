"""tsconfig.json loading and path alias resolution."""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any, Optional

from ..errors import ConfigurationError
from ..utils.paths import join_paths

logger = logging.getLogger(__name__)

DEFAULT_TS_CONFIG = "tsconfig.json"

_TRAILING_COMMA = re.compile(r",(\s*[}\]])")


def strip_json_comments(text: str) -> str:
    """Remove ``//`` and ``/* */`` comments outside of strings."""
    result: list[str] = []
    index = 0
    in_string = False
    length = len(text)

    while index < length:
        char = text[index]
        if in_string:
            result.append(char)
            if char == "\\" and index + 1 < length:
                result.append(text[index + 1])
                index += 2
                continue
            if char == '"':
                in_string = False
            index += 1
            continue

        if char == '"':
            in_string = True
            result.append(char)
            index += 1
        elif text.startswith("//", index):
            newline = text.find("\n", index)
            index = length if newline == -1 else newline
        elif text.startswith("/*", index):
            end = text.find("*/", index + 2)
            index = length if end == -1 else end + 2
        else:
            result.append(char)
            index += 1

    return "".join(result)


def load_ts_config(path: Path | str) -> dict[str, Any]:
    """Read a tsconfig file, tolerating comments and trailing commas.

    Raises:
        ConfigurationError: The file exists but is not valid JSON.
    """
    path = Path(path)
    if not path.is_file():
        return {}
    text = _TRAILING_COMMA.sub(r"\1", strip_json_comments(path.read_text(encoding="utf-8")))
    try:
        data = json.loads(text) if text.strip() else {}
    except json.JSONDecodeError as error:
        raise ConfigurationError(f"Could not parse {path}: {error}") from error
    return data if isinstance(data, dict) else {}


def resolve_ts_config_path(
    ts_config_directory: str,
    base_url: str,
    paths: dict[str, list[str]],
    pattern: str,
) -> str:
    """Resolve ``pattern`` through ``compilerOptions.paths`` aliases.

    ``@/posts/*.mdx`` with ``{"@/*": ["./src/*"]}`` resolves to
    ``<baseUrl>/src/posts/*.mdx``. Patterns no alias matches resolve against
    the base URL.
    """
    base = join_paths(ts_config_directory, base_url)

    for alias, targets in paths.items():
        if not targets:
            continue
        target = targets[0]
        if alias.endswith("*"):
            prefix = alias[:-1]
            if pattern.startswith(prefix):
                return join_paths(base, target.replace("*", pattern[len(prefix):], 1))
        elif pattern == alias:
            return join_paths(base, target)

    return join_paths(base, pattern)


def get_absolute_glob_pattern(
    pattern: str,
    root: Path | str,
    ts_config_file_path: Optional[str] = None,
) -> str:
    """Absolute glob for a collection pattern, honouring tsconfig aliases."""
    root = Path(root).resolve()
    ts_config_path = Path(ts_config_file_path or DEFAULT_TS_CONFIG)
    if not ts_config_path.is_absolute():
        ts_config_path = root / ts_config_path

    ts_config_directory = ts_config_path.parent.as_posix()
    compiler_options = load_ts_config(ts_config_path).get("compilerOptions") or {}
    base_url = compiler_options.get("baseUrl")
    paths = compiler_options.get("paths")

    if base_url and paths:
        resolved = resolve_ts_config_path(ts_config_directory, base_url, paths, pattern)
    elif pattern.startswith("/"):
        resolved = join_paths(pattern)
    else:
        resolved = join_paths(ts_config_directory, pattern)

    logger.debug("Resolved collection pattern %s to %s", pattern, resolved)
    return resolved
