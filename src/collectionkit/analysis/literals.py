"""Literal value evaluation over a restricted expression grammar.

Supported: string, no-substitution template, number, boolean, null and
undefined literals; array and object literals; parenthesized expressions;
unary ``-``/``+``/``!`` applied to literals. Nothing else is evaluated.
"""

from __future__ import annotations

import ast
from typing import Any, Callable, Optional

from tree_sitter import Node

from ..errors import ValidationError
from ..models import SourceExpression
from ..parsers.ts_parser import node_text

DISALLOWED_KEYS = frozenset({"__proto__", "constructor", "prototype"})


class NonLiteralError(Exception):
    """An expression falls outside the literal grammar."""

    def __init__(self, node: Node):
        super().__init__(f"Expression is not a literal: {node_text(node)!r}")
        self.node = node


def resolve_literal(node: Node, keep_source: Callable[[list[str]], bool] | None = None, _path: Optional[list[str]] = None) -> Any:
    """Evaluate ``node`` to a Python value.

    Args:
        node: Expression node.
        keep_source: Called with the key path of a non-literal value; when it
            returns True the value is kept as ``SourceExpression`` text
            instead of raising.

    Raises:
        NonLiteralError: The expression is not a literal.
        ValidationError: An object literal uses a disallowed key.
    """
    path = _path or []
    kind = node.type

    if kind == "parenthesized_expression":
        inner = node.named_children[0] if node.named_children else None
        if inner is None:
            raise NonLiteralError(node)
        return resolve_literal(inner, keep_source, path)

    if kind in ("string", "template_string"):
        return _string_literal(node)
    if kind == "number":
        return _number_literal(node)
    if kind == "true":
        return True
    if kind == "false":
        return False
    if kind == "null":
        return None
    if kind == "undefined" or (kind == "identifier" and node_text(node) == "undefined"):
        return None

    if kind == "unary_expression":
        return _unary(node, keep_source, path)

    if kind == "array":
        values = []
        for index, element in enumerate(node.named_children):
            if element.type == "comment":
                continue
            values.append(resolve_literal(element, keep_source, path + [str(index)]))
        return values

    if kind == "object":
        return _object(node, keep_source, path)

    if keep_source is not None and keep_source(path):
        return SourceExpression(text=node_text(node))

    raise NonLiteralError(node)


def is_literal(node: Node) -> bool:
    """Whether ``node`` evaluates under the literal grammar."""
    try:
        resolve_literal(node)
    except NonLiteralError:
        return False
    return True


def safe_assign(target: dict, key: str, value: Any) -> None:
    """Assign ``target[key] = value`` unless ``key`` is disallowed."""
    if key in DISALLOWED_KEYS:
        raise ValidationError(f"Disallowed object key {key!r} in literal value")
    target[key] = value


def _object(node: Node, keep_source, path: list[str]) -> dict:
    result: dict[str, Any] = {}
    for child in node.named_children:
        if child.type == "comment":
            continue
        if child.type != "pair":
            if keep_source is not None and keep_source(path):
                return SourceExpression(text=node_text(node))
            raise NonLiteralError(child)

        key = _property_key(child.child_by_field_name("key"))
        value_node = child.child_by_field_name("value")
        if key is None or value_node is None:
            raise NonLiteralError(child)
        safe_assign(result, key, resolve_literal(value_node, keep_source, path + [key]))
    return result


def _property_key(node: Optional[Node]) -> Optional[str]:
    if node is None:
        return None
    if node.type in ("property_identifier", "identifier"):
        return node_text(node)
    if node.type == "string":
        return _string_literal(node)
    if node.type == "number":
        value = _number_literal(node)
        return str(int(value)) if float(value).is_integer() else str(value)
    return None


def _unary(node: Node, keep_source, path: list[str]) -> Any:
    operator = node_text(node.child_by_field_name("operator"))
    argument = node.child_by_field_name("argument")
    if argument is None:
        raise NonLiteralError(node)

    try:
        value = resolve_literal(argument, None, path)
    except NonLiteralError:
        if keep_source is not None and keep_source(path):
            return SourceExpression(text=node_text(node))
        raise

    if operator == "-" and _is_number(value):
        return -value
    if operator == "+" and _is_number(value):
        return value
    if operator == "!" and isinstance(value, bool):
        return not value

    if keep_source is not None and keep_source(path):
        return SourceExpression(text=node_text(node))
    raise NonLiteralError(node)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _string_literal(node: Node) -> str:
    if node.type == "template_string":
        if any(child.type == "template_substitution" for child in node.named_children):
            raise NonLiteralError(node)
        return node_text(node)[1:-1]

    text = node_text(node)
    quote = text[:1]
    inner = text[1:-1] if len(text) >= 2 and text[-1] == quote else text[1:]
    if "\\" not in inner:
        return inner
    try:
        return ast.literal_eval(f'"{_escape_quotes(inner)}"')
    except (ValueError, SyntaxError):
        return inner


def _escape_quotes(text: str) -> str:
    escaped = []
    previous_backslash = False
    for char in text:
        if char == '"' and not previous_backslash:
            escaped.append('\\"')
        else:
            escaped.append(char)
        previous_backslash = char == "\\" and not previous_backslash
    return "".join(escaped)


def _number_literal(node: Node) -> int | float:
    text = node_text(node).replace("_", "")
    lowered = text.lower()
    try:
        if lowered.startswith("0x"):
            return int(lowered, 16)
        if lowered.startswith("0o"):
            return int(lowered[2:], 8)
        if lowered.startswith("0b"):
            return int(lowered[2:], 2)
        if lowered.endswith("n"):
            return int(lowered[:-1])
        value = float(text)
    except ValueError:
        raise NonLiteralError(node) from None
    return int(value) if value.is_integer() and "." not in text and "e" not in lowered else value
