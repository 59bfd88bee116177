"""Documentation extraction from JS/TS declarations.

Two sources are read, in order of preference:

- a structured ``/** ... */`` block attached to the declaration, or for a
  bare variable declarator, to its nearest commented ancestor below the
  module itself;
- a plain ``//`` or ``/* */`` comment leading the declaration.

Malformed documentation never raises; whatever text can be recovered is
returned.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Optional

from tree_sitter import Node

from ..models import DocMetadata, DocTag
from ..parsers.ts_parser import Declaration, SourceModule, node_text, variable_declarators, binding_names

_INLINE_TAG = re.compile(r"\{@([a-zA-Z]+)(?:\s+((?:[^{}]|\{[^{}]*\})*))?\}")
_LINK_TAGS = ("link", "linkcode", "linkplain", "tutorial")
_TAG_LINE = re.compile(r"^@([A-Za-z][\w-]*)\s?(.*)$")
_STAR_PREFIX = re.compile(r"^\s*\*(?!/) ?")
_FENCE = re.compile(r"^\s*(```|~~~)")

# Nodes a declaration can sit inside of while still owning the comment above it.
_COMMENT_WRAPPERS = frozenset(
    {
        "variable_declarator",
        "lexical_declaration",
        "variable_declaration",
        "export_statement",
        "ambient_declaration",
    }
)


@dataclass
class ModuleSymbol:
    """A named symbol and the syntax nodes that declare it."""

    name: str
    declarations: list[Node] = field(default_factory=list)


def get_symbol(module: SourceModule, name: str) -> Optional[ModuleSymbol]:
    """Look up a top-level symbol of ``module`` by name."""
    nodes: list[Node] = []
    for declaration in module.find_declarations(name):
        nodes.append(_declaration_site(declaration, name))
    if not nodes:
        return None
    return ModuleSymbol(name=name, declarations=nodes)


def _declaration_site(declaration: Declaration, name: str) -> Node:
    inner = declaration.declaration_node
    if inner is None:
        return declaration.node
    if inner.type in ("lexical_declaration", "variable_declaration"):
        for declarator in variable_declarators(inner):
            if name in binding_names(declarator.child_by_field_name("name")):
                return declarator
    return inner


def leading_comments(node: Node) -> list[Node]:
    """Comments directly above ``node`` with no blank line in between."""
    comments: list[Node] = []
    anchor = node
    sibling = node.prev_sibling

    while sibling is not None and sibling.type == "comment":
        if anchor.start_point[0] - sibling.end_point[0] > 1:
            break
        comments.insert(0, sibling)
        anchor = sibling
        sibling = sibling.prev_sibling

    return comments


def _owned_comments(node: Node) -> list[Node]:
    """Leading comments of ``node`` or its nearest commented wrapper."""
    current: Optional[Node] = node
    while current is not None and current.type != "program":
        comments = leading_comments(current)
        if comments:
            return comments
        parent = current.parent
        if parent is None or parent.type == "program":
            break
        if current.type not in _COMMENT_WRAPPERS and parent.type not in _COMMENT_WRAPPERS:
            break
        current = parent
    return []


def _is_doc_block(comment: Node) -> bool:
    text = node_text(comment)
    return text.startswith("/**") and not text.startswith("/**/")


def parse_jsdoc(text: str) -> DocMetadata:
    """Parse the text of a ``/** ... */`` block into description and tags."""
    body = text.strip()
    if body.startswith("/**"):
        body = body[3:]
    if body.endswith("*/"):
        body = body[:-2]

    lines = []
    for line in body.splitlines():
        if _STAR_PREFIX.match(line):
            lines.append(_STAR_PREFIX.sub("", line, count=1).rstrip())
        else:
            lines.append(line.strip())

    description_lines: list[str] = []
    tags: list[DocTag] = []
    tag_lines: list[str] = []
    in_fence = False

    for line in lines:
        if _FENCE.match(line):
            in_fence = not in_fence

        match = None if in_fence else _TAG_LINE.match(line.strip())
        if match:
            if tags:
                tags[-1].text = _join_block(tag_lines)
            tags.append(DocTag(name=match.group(1)))
            tag_lines = [match.group(2)]
        elif tags:
            tag_lines.append(line)
        else:
            description_lines.append(line)

    if tags:
        tags[-1].text = _join_block(tag_lines)

    return DocMetadata(description=_join_block(description_lines), tags=tags)


def _join_block(lines: list[str]) -> str:
    return "\n".join(lines).strip()


def render_plain_text(text: str) -> str:
    """Replace inline tags such as ``{@link Target label}`` with their text."""

    def replace(match: re.Match) -> str:
        tag, body = match.group(1), (match.group(2) or "").strip()
        if not body:
            return match.group(0)
        if tag in _LINK_TAGS:
            if "|" in body:
                target, _, label = body.partition("|")
                return label.strip() or target.strip()
            target, _, label = body.partition(" ")
            return label.strip() or target
        return body

    return _INLINE_TAG.sub(replace, text)


def clean_comment(text: str) -> str:
    """Strip comment markers and per-line leading ``*`` from a comment."""
    text = text.strip()
    if text.startswith("//"):
        return text[2:].strip()
    if text.startswith("/*"):
        text = text[2:]
        if text.startswith("*"):
            text = text[1:]
    if text.endswith("*/"):
        text = text[:-2]

    lines = [_STAR_PREFIX.sub("", line, count=1).strip() for line in text.splitlines()]
    return "\n".join(lines).strip()


def parse_doc_metadata(declaration: Node) -> Optional[DocMetadata]:
    """Description and tags from the documentation block of ``declaration``.

    Returns None when the declaration has no ``/** */`` block.
    """
    doc_blocks = [comment for comment in _owned_comments(declaration) if _is_doc_block(comment)]
    if not doc_blocks:
        return None
    return parse_jsdoc(node_text(doc_blocks[-1]))


def describe_node(declaration: Node) -> Optional[str]:
    """Plain-text description of one declaration, or None."""
    comments = _owned_comments(declaration)
    if not comments:
        return None

    doc_blocks = [comment for comment in comments if _is_doc_block(comment)]
    if doc_blocks:
        description = render_plain_text(parse_jsdoc(node_text(doc_blocks[-1])).description)
        if description:
            return description

    text = "\n".join(
        cleaned
        for cleaned in (clean_comment(node_text(comment)) for comment in comments)
        if cleaned
    ).strip()
    return text or None


def describe_symbol(symbol: ModuleSymbol) -> Optional[str]:
    """Human-authored description of a symbol from its first documented declaration."""
    for declaration in symbol.declarations:
        description = describe_node(declaration)
        if description:
            return description
    return None
