"""Heading and section trees for long-form text."""

from __future__ import annotations

import re
from typing import Iterable

from ..models import Heading, Section
from ..utils.paths import create_slug

_ATX_HEADING = re.compile(r"^ {0,3}(#{1,6})(?:[ \t]+(.*?))?(?:[ \t]+#+)?[ \t]*$")
_FENCE = re.compile(r"^ {0,3}(`{3,}|~{3,})")
_INLINE_CODE = re.compile(r"`([^`]*)`")
_LINK = re.compile(r"!?\[([^\]]*)\]\([^)]*\)")
_EMPHASIS = re.compile(r"(\*{1,3}|_{1,3})(\S(?:.*?\S)?)\1")
_HTML_TAG = re.compile(r"</?[A-Za-z][^>]*>")


class SlugCounter:
    """Disambiguates repeated slugs in document order: foo, foo-1, foo-2."""

    def __init__(self) -> None:
        self._counts: dict[str, int] = {}

    def unique(self, base_slug: str) -> str:
        if base_slug in self._counts:
            self._counts[base_slug] += 1
            return f"{base_slug}-{self._counts[base_slug]}"
        self._counts[base_slug] = 0
        return base_slug


def strip_inline_markup(text: str) -> str:
    """Plain text of a heading's inline Markdown."""
    text = _INLINE_CODE.sub(r"\1", text)
    text = _LINK.sub(r"\1", text)
    text = _HTML_TAG.sub("", text)
    previous = None
    while previous != text:
        previous = text
        text = _EMPHASIS.sub(r"\2", text)
    return text.strip()


def extract_headings(markdown: str) -> list[tuple[int, str]]:
    """ATX headings outside fenced code blocks as ``(depth, text)`` pairs."""
    headings: list[tuple[int, str]] = []
    fence: str | None = None

    for line in markdown.splitlines():
        fence_match = _FENCE.match(line)
        if fence_match:
            marker = fence_match.group(1)
            if fence is None:
                fence = marker[0] * 3
            elif marker.startswith(fence):
                fence = None
            continue
        if fence is not None:
            continue

        match = _ATX_HEADING.match(line)
        if match:
            headings.append((len(match.group(1)), strip_inline_markup(match.group(2) or "")))

    return headings


def get_headings(markdown: str) -> list[Heading]:
    """Headings of ``markdown`` with unique slug ids."""
    counter = SlugCounter()
    return [
        Heading(id=counter.unique(create_slug(text)), title=text, depth=depth)
        for depth, text in extract_headings(markdown)
    ]


def build_section_tree(headings: Iterable[tuple[int, str] | Heading]) -> list[Section]:
    """Nest a flat heading list into sections.

    A heading's children are the following headings of greater depth up to
    the next heading of equal or lesser depth. Plain ``(depth, title)`` pairs
    get slug ids here; ``Heading`` records keep theirs.
    """
    roots: list[Section] = []
    stack: list[tuple[Section, int]] = []
    counter = SlugCounter()

    for heading in headings:
        if isinstance(heading, Heading):
            section = Section(id=heading.id, title=heading.title, depth=heading.depth)
        else:
            depth, title = heading
            section = Section(id=counter.unique(create_slug(title)), title=title, depth=depth)

        while stack and stack[-1][1] >= section.depth:
            stack.pop()

        if stack:
            stack[-1][0].children.append(section)
        else:
            roots.append(section)

        stack.append((section, section.depth))

    return roots
