"""Isolate one export and its local dependencies as standalone source."""

from __future__ import annotations

import logging
from collections import deque

from tree_sitter import Node

from ..errors import ExtractionError
from ..parsers.ts_parser import Declaration, SourceModule, export_specifiers, import_bindings, node_text

logger = logging.getLogger(__name__)


def extract_export_closure(module: SourceModule, identifier_name: str) -> str:
    """Source text for ``identifier_name`` and everything it needs from ``module``.

    Declarations reachable from the export are collected over the module's
    reference graph and emitted in source order; re-exports are dropped, other
    exported dependencies lose their ``export`` keyword and the export's own
    documentation block is removed. ``module`` is never modified.

    Raises:
        ExtractionError: The module does not export ``identifier_name`` from a
            local declaration, or declares it in a multi-declarator statement.
    """
    if identifier_name not in module.exported_names():
        raise ExtractionError(
            f'"{identifier_name}" is not exported by {module.file_path}'
        )

    target_name = _local_name(module, identifier_name)
    targets = [
        declaration
        for declaration in module.find_declarations(target_name)
        if declaration.kind != "import"
    ]
    if not targets:
        raise ExtractionError(
            f'"{identifier_name}" in {module.file_path} has no local declaration to extract'
        )

    for declaration in targets:
        if declaration.kind == "variable" and len(declaration.names) > 1:
            raise ExtractionError(
                f'Multiple declarations are not supported when extracting "{identifier_name}"'
            )

    reachable, used_names = _reachable(module, targets)
    target_nodes = {declaration.node.id for declaration in targets}
    exported_target = any(declaration.exported for declaration in targets)

    chunks: list[str] = []
    for declaration in module.declarations:
        if declaration.node.id not in reachable:
            continue
        is_target = declaration.node.id in target_nodes
        text = _emit(declaration, used_names, is_target, exported_target)
        if text:
            chunks.append(text)

    return "\n\n".join(chunks).strip()


def _local_name(module: SourceModule, identifier_name: str) -> str:
    """Resolve ``export { local as identifier_name }`` to ``local``."""
    for declaration in module.declarations:
        if declaration.export_list and not declaration.re_export:
            for local, exported in export_specifiers(declaration.node):
                if exported == identifier_name:
                    return local
    return identifier_name


def _reachable(module: SourceModule, targets: list[Declaration]) -> tuple[set[int], set[str]]:
    by_name: dict[str, list[Declaration]] = {}
    for declaration in module.declarations:
        if declaration.re_export or declaration.export_list:
            continue
        for name in declaration.names:
            by_name.setdefault(name, []).append(declaration)

    statements = [
        declaration
        for declaration in module.declarations
        if declaration.kind == "statement" and not declaration.names
    ]

    reachable: set[int] = set()
    used_names: set[str] = set()
    queue: deque[Declaration] = deque(targets)
    # side-effect imports such as `import "./styles.css"` always travel along
    queue.extend(
        declaration
        for declaration in module.declarations
        if declaration.kind == "import" and not declaration.names
    )

    while queue:
        declaration = queue.popleft()
        if declaration.node.id in reachable:
            continue
        reachable.add(declaration.node.id)

        for name in declaration.references:
            if name in used_names:
                continue
            used_names.add(name)
            queue.extend(by_name.get(name, []))

        # statements such as `Button.displayName = "Button"` follow what they touch
        for statement in statements:
            if statement.node.id not in reachable and statement.references & set(declaration.names):
                queue.append(statement)

    logger.debug("Export closure kept %d of %d declarations", len(reachable), len(module.declarations))
    return reachable, used_names


def _emit(declaration: Declaration, used_names: set[str], is_target: bool, exported_target: bool) -> str:
    if declaration.kind == "import":
        return _emit_import(declaration, used_names)

    text = declaration.text
    if declaration.exported and declaration.declaration_node is not None:
        keep_export = is_target and exported_target
        if not keep_export and not declaration.default:
            text = node_text(declaration.declaration_node)

    if is_target:
        return text

    comments = [node_text(comment) for comment in declaration.comments]
    return "\n".join(comments + [text])


def _emit_import(declaration: Declaration, used_names: set[str]) -> str:
    node = declaration.node
    bindings = import_bindings(node)
    if not bindings or all(name in used_names for name in bindings):
        return declaration.text

    clause = next(child for child in node.named_children if child.type == "import_clause")
    source = node_text(node.child_by_field_name("source"))
    type_only = any(child.type == "type" for child in node.children)

    parts: list[str] = []
    named: list[str] = []
    for child in clause.named_children:
        if child.type == "identifier" and node_text(child) in used_names:
            parts.append(node_text(child))
        elif child.type == "namespace_import" and set(_namespace_bindings(child)) & used_names:
            parts.append(node_text(child))
        elif child.type == "named_imports":
            for specifier in child.named_children:
                if specifier.type != "import_specifier":
                    continue
                local = specifier.child_by_field_name("alias") or specifier.child_by_field_name("name")
                if node_text(local) in used_names:
                    named.append(node_text(specifier))

    if named:
        parts.append("{ " + ", ".join(named) + " }")

    keyword = "import type" if type_only else "import"
    return f"{keyword} {', '.join(parts)} from {source};"


def _namespace_bindings(node: Node) -> list[str]:
    return [node_text(child) for child in node.named_children if child.type == "identifier"]
