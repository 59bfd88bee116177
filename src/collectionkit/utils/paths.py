"""Pure path and pathname helpers.

All helpers operate on POSIX-style strings and never touch the filesystem.
Malformed input is passed through rather than rejected.
"""

from __future__ import annotations

import re
import unicodedata

_ORDER_PREFIX = re.compile(r"^\d+[.-](?=.)")
_ZERO_WIDTH = re.compile("[\u200b-\u200d\ufeff]")
_CAMEL_BOUNDARY = re.compile(r"([a-z\d])([A-Z])")
_DASH_RUN = re.compile("[\\s_\\-\u2010-\u2015\u2212\ufe58\ufe63\uff0d]+")
_NON_SLUG = re.compile(r"[^\w-]+")
_REPEATED_DASH = re.compile(r"-+")


def base_name(path: str, extension: str = "") -> str:
    """Get the base name of a path e.g. /path/to/file.ts -> file.ts"""
    base = path[path.rfind("/") + 1 :]
    if extension and base.endswith(extension):
        return base[: -len(extension)]
    return base


def extension_name(path: str) -> str:
    """Get the extension of a path e.g. readme.md -> .md

    Empty when the last dot is not after the last separator.
    """
    dot_index = path.rfind(".")
    slash_index = path.rfind("/")
    if dot_index > slash_index + 1:
        return path[dot_index:]
    return ""


def directory_name(path: str) -> str:
    """Get the directory of a path e.g. /path/to/file.ts -> /path/to"""
    slash_index = path.rfind("/")
    if slash_index == -1:
        return "."
    if slash_index == 0:
        return "/"
    return path[:slash_index]


def remove_extension(path: str) -> str:
    """Remove the last extension e.g. Button.examples.tsx -> Button.examples"""
    extension = extension_name(path)
    return path[: -len(extension)] if extension else path


def remove_all_extensions(path: str) -> str:
    """Remove every extension e.g. Button.examples.tsx -> Button"""
    slash_index = path.rfind("/")
    name = path[slash_index + 1 :]
    first_dot = name.find(".", 1)
    if first_dot == -1:
        return path
    return path[: slash_index + 1 + first_dot]


def remove_order_prefix(segment: str) -> str:
    """Remove a numeric order prefix from one segment e.g. 01.intro -> intro"""
    return _ORDER_PREFIX.sub("", segment)


def remove_order_prefixes(path: str) -> str:
    """Remove numeric order prefixes from every segment of a path."""
    return "/".join(remove_order_prefix(segment) for segment in path.split("/"))


def join_paths(*paths: str | None) -> str:
    """Join paths, resolving ``.``/``..`` and collapsing repeated separators.

    A trailing separator is never kept.
    """
    present = [path for path in paths if path]
    if not present:
        return "."

    is_absolute = present[0].startswith("/")
    segments: list[str] = []

    for path in present:
        for segment in path.split("/"):
            if segment == "..":
                if segments and segments[-1] != "..":
                    segments.pop()
                elif not is_absolute:
                    segments.append("..")
            elif segment and segment != ".":
                segments.append(segment)

    joined = "/".join(segments)
    if is_absolute:
        return f"/{joined}"
    return joined or "."


def relative_path(from_path: str, to_path: str) -> str:
    """Get the relative path from one directory to another."""
    from_parts = [part for part in from_path.split("/") if part]
    to_parts = [part for part in to_path.split("/") if part]

    common = 0
    while (
        common < len(from_parts)
        and common < len(to_parts)
        and from_parts[common] == to_parts[common]
    ):
        common += 1

    return "/".join([".."] * (len(from_parts) - common) + to_parts[common:])


def ensure_relative_path(path: str = ".") -> str:
    """Prefix a path with ``./`` unless it already starts with a dot."""
    return path if path.startswith(".") else f"./{path}"


def create_slug(text: str) -> str:
    """Create a URL-friendly slug e.g. "ButtonGroup" -> "button-group"."""
    value = unicodedata.normalize("NFKD", text)
    value = "".join(char for char in value if not unicodedata.combining(char))
    value = _ZERO_WIDTH.sub("", value)
    value = _CAMEL_BOUNDARY.sub(r"\1-\2", value)
    value = _DASH_RUN.sub("-", value)
    value = _NON_SLUG.sub("", value)
    value = _REPEATED_DASH.sub("-", value).strip("-")
    return value.lower()


def _strip_base_directory(path: str, base_directory: str) -> str:
    base = join_paths(base_directory).strip("/")
    if base in ("", "."):
        return path.strip("/")

    haystack = "/" + path.strip("/") + "/"
    needle = "/" + base + "/"
    index = haystack.find(needle)

    if index == -1:
        return ""

    return haystack[index + len(needle) :].strip("/")


def file_path_to_pathname(
    file_path: str,
    base_directory: str | None = None,
    base_pathname: str | None = None,
    package_name: str | None = None,
    kebab_case: bool = True,
    directory: bool = False,
) -> str:
    """Convert a filesystem path into a URL-friendly pathname.

    Args:
        file_path: Path of the file or directory.
        base_directory: Directory removed from the front of the path.
        base_pathname: Pathname prepended to the result.
        package_name: Leading segment removed so it is not repeated.
        kebab_case: Slug every segment e.g. "ButtonGroup" -> "button-group".
        directory: The path names a directory, so no extension is removed.

    Returns:
        The pathname, always starting with ``/``. Paths inside
        ``node_modules`` map to the empty string.
    """
    if "node_modules" in file_path.split("/"):
        return ""

    path = file_path if directory else remove_extension(file_path)

    if base_directory:
        relative = _strip_base_directory(path, base_directory)
    else:
        relative = path.strip("/")

    segments = [remove_order_prefix(segment) for segment in relative.split("/") if segment]

    # "Button/Button.examples" -> "Button/examples"
    if segments and not directory and "." in segments[-1].strip("."):
        name, _, member = segments.pop().partition(".")
        segments.extend(part for part in (name, member) if part)

    collapsed: list[str] = []
    for segment in segments:
        if not collapsed or collapsed[-1] != segment:
            collapsed.append(segment)
    segments = collapsed

    for prefix in (base_pathname, package_name):
        if prefix and segments and create_slug(segments[0]) == create_slug(prefix):
            segments = segments[1:]

    if base_pathname:
        segments = [segment for segment in base_pathname.split("/") if segment] + segments

    if kebab_case:
        segments = [slug for slug in (create_slug(segment) for segment in segments) if slug]

    return "/" + "/".join(segments)


def get_editor_uri(
    path: str, line: int = 0, column: int = 0, scheme: str = "vscode"
) -> str:
    """Build a URI that opens ``path`` at a position in an editor."""
    return f"{scheme}://file//{path}:{line}:{column}"
