"""JavaScript/TypeScript parser using tree-sitter."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import Iterator, Optional

import tree_sitter_javascript as tsjs
import tree_sitter_typescript as tsts
from tree_sitter import Language, Node, Parser, Tree

JS_LANGUAGE = Language(tsjs.language())
TS_LANGUAGE = Language(tsts.language_typescript())
TSX_LANGUAGE = Language(tsts.language_tsx())

# Map file extensions to tree-sitter languages
_LANG_MAP: dict[str, Language] = {
    ".js": JS_LANGUAGE,
    ".jsx": JS_LANGUAGE,
    ".mjs": JS_LANGUAGE,
    ".cjs": JS_LANGUAGE,
    ".ts": TS_LANGUAGE,
    ".mts": TS_LANGUAGE,
    ".cts": TS_LANGUAGE,
    ".tsx": TSX_LANGUAGE,
}

SCRIPT_EXTENSIONS = frozenset(_LANG_MAP)

_NAMED_DECLARATIONS = {
    "function_declaration": "function",
    "generator_function_declaration": "function",
    "function_signature": "function",
    "class_declaration": "class",
    "abstract_class_declaration": "class",
    "interface_declaration": "interface",
    "type_alias_declaration": "type",
    "enum_declaration": "enum",
    "internal_module": "namespace",
    "module": "namespace",
}

_VARIABLE_DECLARATIONS = ("lexical_declaration", "variable_declaration")

_REFERENCE_TYPES = frozenset(
    {"identifier", "type_identifier", "shorthand_property_identifier"}
)

_BINDING_TYPES = frozenset({"identifier", "shorthand_property_identifier_pattern"})


def node_text(node: Optional[Node]) -> str:
    if node is None or node.text is None:
        return ""
    return node.text.decode("utf-8", errors="replace")


@dataclass
class Declaration:
    """A top-level statement of a module and the names it binds."""

    node: Node
    kind: str
    names: list[str] = field(default_factory=list)
    references: set[str] = field(default_factory=set)
    exported: bool = False
    default: bool = False
    re_export: bool = False
    export_list: bool = False
    declaration_node: Optional[Node] = None
    comments: list[Node] = field(default_factory=list)

    @property
    def text(self) -> str:
        return node_text(self.node)

    @property
    def line(self) -> int:
        return self.node.start_point[0] + 1


@dataclass
class SourceModule:
    """A parsed JS/TS module."""

    file_path: str
    source: str
    tree: Tree
    declarations: list[Declaration] = field(default_factory=list)

    @property
    def root(self) -> Node:
        return self.tree.root_node

    def exported_names(self) -> set[str]:
        """Names this module exports from its own declarations."""
        names: set[str] = set()
        for declaration in self.declarations:
            if declaration.re_export:
                continue
            if declaration.export_list:
                names.update(_export_list_names(declaration.node, exported=True))
            elif declaration.exported:
                names.update(declaration.names)
                if declaration.default:
                    names.add("default")
        return names

    def find_declarations(self, name: str) -> list[Declaration]:
        return [
            declaration
            for declaration in self.declarations
            if name in declaration.names and declaration.kind != "export"
        ]


class TSParser:
    """Parse JS/TS source using tree-sitter."""

    def _get_language(self, file_path: str) -> Language:
        """Pick the right tree-sitter language from file extension."""
        ext = PurePosixPath(file_path).suffix.lower()
        return _LANG_MAP.get(ext, TSX_LANGUAGE)

    def parse(self, source: str, file_path: str = "module.tsx") -> Tree:
        """Parse source and return tree."""
        parser = Parser(self._get_language(file_path))
        return parser.parse(source.encode("utf-8"))

    def parse_module(self, source: str, file_path: str = "module.tsx") -> SourceModule:
        """Parse source into a ``SourceModule`` with its top-level declarations."""
        tree = self.parse(source, file_path)
        module = SourceModule(file_path=file_path, source=source, tree=tree)

        pending_comments: list[Node] = []
        for node in tree.root_node.children:
            if node.type == "comment":
                if pending_comments and not _adjacent(pending_comments[-1], node):
                    pending_comments = []
                pending_comments.append(node)
                continue

            comments = pending_comments if pending_comments and _adjacent(pending_comments[-1], node) else []
            pending_comments = []

            declaration = self._to_declaration(node)
            if declaration is None:
                continue
            declaration.comments = comments
            module.declarations.append(declaration)

        return module

    def get_imports(self, source: str, file_path: str = "module.tsx") -> list[str]:
        """Extract import module names from JS/TS source."""
        tree = self.parse(source, file_path)
        imports: list[str] = []

        for node in tree.root_node.children:
            if node.type == "import_statement":
                source_node = node.child_by_field_name("source")
                if source_node:
                    imports.append(string_value(source_node))

        return imports

    def _to_declaration(self, node: Node) -> Optional[Declaration]:
        if node.type == "import_statement":
            return Declaration(
                node=node,
                kind="import",
                names=import_bindings(node),
            )

        if node.type == "export_statement":
            return self._export_to_declaration(node)

        if node.type in ("expression_statement", "ambient_declaration"):
            inner = node.named_children[0] if node.named_children else None
            if inner is not None and (inner.type in _NAMED_DECLARATIONS or inner.type in _VARIABLE_DECLARATIONS):
                declaration = self._declaration_for(inner, node)
                if declaration is not None:
                    return declaration

        if node.type in _NAMED_DECLARATIONS or node.type in _VARIABLE_DECLARATIONS:
            return self._declaration_for(node, node)

        if node.is_named and node.type not in ("empty_statement", "hash_bang_line"):
            return Declaration(
                node=node,
                kind="statement",
                references=collect_references(node),
            )

        return None

    def _export_to_declaration(self, node: Node) -> Declaration:
        source_node = node.child_by_field_name("source")
        is_default = any(child.type == "default" for child in node.children)

        if source_node is not None:
            return Declaration(node=node, kind="export", re_export=True, exported=True)

        declaration_node = node.child_by_field_name("declaration")
        if declaration_node is not None:
            inner = self._declaration_for(declaration_node, node)
            if inner is None:
                inner = Declaration(node=node, kind="statement")
            inner.exported = True
            inner.default = is_default
            inner.declaration_node = declaration_node
            if is_default:
                inner.names.append("default")
            return inner

        value = node.child_by_field_name("value")
        if value is not None:
            return Declaration(
                node=node,
                kind="variable",
                names=["default"],
                references=collect_references(value),
                exported=True,
                default=True,
                declaration_node=value,
            )

        # export { a, b as c };
        return Declaration(
            node=node,
            kind="export",
            exported=True,
            export_list=True,
            references=set(_export_list_names(node, exported=False)),
        )

    def _declaration_for(self, inner: Node, outer: Node) -> Optional[Declaration]:
        if inner.type == "ambient_declaration":
            nested = inner.named_children[0] if inner.named_children else None
            if nested is None:
                return None
            return self._declaration_for(nested, outer)

        if inner.type in _NAMED_DECLARATIONS:
            name_node = inner.child_by_field_name("name")
            names = [node_text(name_node)] if name_node is not None else []
            return Declaration(
                node=outer,
                kind=_NAMED_DECLARATIONS[inner.type],
                names=names,
                references=collect_references(inner) - set(names),
                declaration_node=inner,
            )

        if inner.type in _VARIABLE_DECLARATIONS:
            names: list[str] = []
            for declarator in variable_declarators(inner):
                names.extend(binding_names(declarator.child_by_field_name("name")))
            return Declaration(
                node=outer,
                kind="variable",
                names=names,
                references=collect_references(inner) - set(names),
                declaration_node=inner,
            )

        return None


def _adjacent(comment: Node, following: Node) -> bool:
    """Whether ``comment`` ends on the line before (or the line of) ``following``."""
    return following.start_point[0] - comment.end_point[0] <= 1


def walk(node: Node) -> Iterator[Node]:
    """Yield ``node`` and its descendants in document order."""
    yield node
    for child in node.children:
        yield from walk(child)


def collect_references(node: Node) -> set[str]:
    """Identifier names used anywhere inside ``node``."""
    return {
        node_text(child)
        for child in walk(node)
        if child.type in _REFERENCE_TYPES
    }


def variable_declarators(node: Node) -> list[Node]:
    return [child for child in node.named_children if child.type == "variable_declarator"]


def binding_names(pattern: Optional[Node]) -> list[str]:
    """Names bound by an identifier or destructuring pattern."""
    if pattern is None:
        return []
    if pattern.type == "identifier":
        return [node_text(pattern)]

    names: list[str] = []
    for child in walk(pattern):
        if child.type in _BINDING_TYPES:
            parent = child.parent
            # `{ key: value }` binds value, not key
            if parent is not None and parent.type == "pair_pattern" and parent.child_by_field_name("key") == child:
                continue
            # default values are references
            if parent is not None and parent.type in ("assignment_pattern", "object_assignment_pattern"):
                if parent.child_by_field_name("right") == child:
                    continue
            names.append(node_text(child))
    return names


def import_bindings(node: Node) -> list[str]:
    """Local names bound by an import statement."""
    names: list[str] = []
    for clause in node.named_children:
        if clause.type != "import_clause":
            continue
        for child in clause.named_children:
            if child.type == "identifier":
                names.append(node_text(child))
            elif child.type == "namespace_import":
                names.extend(
                    node_text(grandchild)
                    for grandchild in child.named_children
                    if grandchild.type == "identifier"
                )
            elif child.type == "named_imports":
                for specifier in child.named_children:
                    if specifier.type != "import_specifier":
                        continue
                    local = specifier.child_by_field_name("alias") or specifier.child_by_field_name("name")
                    names.append(node_text(local))
    return names


def export_specifiers(node: Node) -> list[tuple[str, str]]:
    """``(local, exported)`` name pairs of an ``export { ... }`` statement."""
    pairs: list[tuple[str, str]] = []
    for clause in node.named_children:
        if clause.type != "export_clause":
            continue
        for specifier in clause.named_children:
            if specifier.type != "export_specifier":
                continue
            name = node_text(specifier.child_by_field_name("name"))
            alias = specifier.child_by_field_name("alias")
            pairs.append((name, node_text(alias) if alias is not None else name))
    return pairs


def _export_list_names(node: Node, exported: bool) -> list[str]:
    return [pair[1] if exported else pair[0] for pair in export_specifiers(node)]


def string_value(node: Node) -> str:
    """The value of a string literal node without quotes."""
    text = node_text(node)
    if len(text) >= 2 and text[0] in "'\"`" and text[-1] == text[0]:
        text = text[1:-1]
    return text
