"""Glob helpers built on pathspec."""

from __future__ import annotations

import os
import re
from functools import lru_cache
from pathlib import Path
from typing import Iterable, Sequence

from pathspec import PathSpec
from pathspec.patterns.gitwildmatch import GitWildMatchPattern

from .paths import directory_name, join_paths

_MAGIC = re.compile(r"[*?\[\]{}()!]|[+@]\(")


def has_magic(pattern: str) -> bool:
    """Whether ``pattern`` contains glob syntax."""
    return bool(_MAGIC.search(pattern))


def expand_braces(pattern: str) -> list[str]:
    """Expand ``{a,b}`` alternations e.g. ``*.{ts,tsx}`` -> ``*.ts``, ``*.tsx``."""
    depth = 0
    start = -1

    for index, char in enumerate(pattern):
        if char == "{":
            if depth == 0:
                start = index
            depth += 1
        elif char == "}" and depth:
            depth -= 1
            if depth == 0:
                body = pattern[start + 1 : index]
                options = _split_top_level(body)
                if len(options) < 2:
                    continue
                head, tail = pattern[:start], pattern[index + 1 :]
                expanded: list[str] = []
                for option in options:
                    for candidate in expand_braces(head + option + tail):
                        if candidate not in expanded:
                            expanded.append(candidate)
                return expanded

    return [pattern]


def _split_top_level(body: str) -> list[str]:
    parts: list[str] = []
    depth = 0
    current = ""
    for char in body:
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
        if char == "," and depth == 0:
            parts.append(current)
            current = ""
        else:
            current += char
    parts.append(current)
    return parts


def glob_parent(pattern: str) -> str:
    """The longest static directory prefix of a glob pattern.

    ``posts/**/*.mdx`` -> ``posts``; ``posts/intro.mdx`` -> ``posts``.
    """
    if not has_magic(pattern):
        if pattern.endswith("/"):
            return pattern.rstrip("/") or "/"
        return directory_name(pattern)

    static: list[str] = []
    for segment in pattern.split("/"):
        if has_magic(segment):
            break
        static.append(segment)

    if not static:
        return "."
    parent = "/".join(static)
    if parent == "":
        return "/"
    return parent


def match_files(
    patterns: str | Iterable[str],
    cwd: Path | str,
    ignored_dirs: Iterable[str] = (),
) -> list[str]:
    """List files matching glob ``patterns``.

    Relative patterns resolve against ``cwd``. Patterns starting with ``!``
    exclude files matched by the others. Returns sorted absolute POSIX paths.
    """
    if isinstance(patterns, str):
        patterns = [patterns]

    cwd = Path(cwd).resolve().as_posix()
    ignored = set(ignored_dirs)
    included: set[str] = set()
    excluded: set[str] = set()

    for raw_pattern in patterns:
        negated = raw_pattern.startswith("!")
        pattern = raw_pattern[1:] if negated else raw_pattern
        target = excluded if negated else included

        for expanded in expand_braces(pattern):
            absolute = expanded if expanded.startswith("/") else join_paths(cwd, expanded)
            target.update(_match_absolute(absolute, ignored))

    return sorted(included - excluded)


def _match_absolute(pattern: str, ignored: set[str]) -> list[str]:
    parent = glob_parent(pattern)

    if not has_magic(pattern):
        return [pattern] if os.path.isfile(pattern) else []

    if not os.path.isdir(parent):
        return []

    segments = tuple(segment for segment in pattern[len(parent) :].split("/") if segment)
    max_depth = None if "**" in segments else len(segments) - 1
    matches: list[str] = []

    for current, dirs, files in os.walk(parent):
        rel_dir = Path(current).relative_to(parent)
        depth = len(rel_dir.parts)
        if max_depth is not None and depth >= max_depth:
            dirs[:] = []
        else:
            dirs[:] = sorted(directory for directory in dirs if directory not in ignored)
        for filename in files:
            parts = (*rel_dir.parts, filename)
            if match_segments(segments, parts):
                matches.append(Path(current, filename).as_posix())

    return matches


@lru_cache(maxsize=256)
def _segment_spec(segment: str) -> PathSpec:
    return PathSpec.from_lines(GitWildMatchPattern, ["/" + segment])


def match_segments(pattern: Sequence[str], parts: Sequence[str]) -> bool:
    """Match path ``parts`` against glob ``pattern`` segments.

    ``*`` and ``?`` never cross a ``/``; only a ``**`` segment spans
    directories, including none at all.
    """
    if not pattern:
        return not parts
    head, rest = pattern[0], pattern[1:]
    if head == "**":
        return any(match_segments(rest, parts[index:]) for index in range(len(parts) + 1))
    if not parts:
        return False
    return _segment_spec(head).match_file(parts[0]) and match_segments(rest, parts[1:])
