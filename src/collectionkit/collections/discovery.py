"""Discovery of collection declarations across a project."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterator, Optional

from pydantic import ValidationError as PydanticValidationError
from tree_sitter import Node

from ..analysis.literals import NonLiteralError, resolve_literal
from ..errors import ConfigurationError
from ..models import CollectionConfiguration, CollectionOptions
from ..parsers.ts_parser import SourceModule, node_text, string_value, walk

if TYPE_CHECKING:
    from ..project import Project

logger = logging.getLogger(__name__)

# Options holding code rather than data, e.g. `loader: { mdx: (slug) => import(...) }`
SOURCE_OPTIONS = frozenset({"loader", "importMap", "schema"})


def discover_collection_configurations(project: "Project") -> dict[str, CollectionConfiguration]:
    """Find every collection declaration call in ``project``.

    A module participates when it imports ``config.collection_function`` from
    ``config.collection_module``, by name, alias or namespace. Each call of
    the bound function must pass a string literal pattern and, optionally,
    an object literal of options.

    Returns:
        Configurations keyed by pattern. A pattern declared twice keeps the
        last declaration.

    Raises:
        ConfigurationError: A call's pattern or options are not literals.
    """
    config = project.config
    configurations: dict[str, CollectionConfiguration] = {}

    for source_file in project.source_files():
        if not source_file.is_script:
            continue
        if config.collection_module not in source_file.text:
            continue

        module = source_file.module
        for call in find_collection_calls(module, config.collection_module, config.collection_function):
            configuration = read_collection_call(call, module.file_path)
            previous = configurations.get(configuration.pattern)
            if previous is not None:
                logger.warning(
                    'Collection pattern "%s" is declared at %s:%d and %s:%d; using the latter',
                    configuration.pattern,
                    previous.file_path,
                    previous.line,
                    configuration.file_path,
                    configuration.line,
                )
            configurations[configuration.pattern] = configuration

    logger.info("Discovered %d collection(s)", len(configurations))
    return configurations


def collection_bindings(module: SourceModule, module_name: str, function_name: str) -> tuple[set[str], set[str]]:
    """Local names bound to the declaration function.

    Returns:
        ``(direct, namespaces)``: identifiers called directly, and namespace
        objects whose ``function_name`` member is called.
    """
    direct: set[str] = set()
    namespaces: set[str] = set()

    for declaration in module.declarations:
        if declaration.kind != "import":
            continue
        node = declaration.node
        if string_value(node.child_by_field_name("source")) != module_name:
            continue
        for clause in node.named_children:
            if clause.type != "import_clause":
                continue
            for child in clause.named_children:
                if child.type == "namespace_import":
                    namespaces.update(
                        node_text(grandchild)
                        for grandchild in child.named_children
                        if grandchild.type == "identifier"
                    )
                elif child.type == "named_imports":
                    for specifier in child.named_children:
                        if specifier.type != "import_specifier":
                            continue
                        if node_text(specifier.child_by_field_name("name")) != function_name:
                            continue
                        local = specifier.child_by_field_name("alias") or specifier.child_by_field_name("name")
                        direct.add(node_text(local))

    return direct, namespaces


def find_collection_calls(module: SourceModule, module_name: str, function_name: str) -> Iterator[Node]:
    """Yield call expressions of the declaration function in ``module``."""
    direct, namespaces = collection_bindings(module, module_name, function_name)
    if not direct and not namespaces:
        return

    for node in walk(module.root):
        if node.type != "call_expression":
            continue
        callee = node.child_by_field_name("function")
        if callee is None:
            continue
        if callee.type == "identifier" and node_text(callee) in direct:
            yield node
        elif callee.type == "member_expression":
            target = callee.child_by_field_name("object")
            member = callee.child_by_field_name("property")
            if (
                target is not None
                and target.type == "identifier"
                and node_text(target) in namespaces
                and node_text(member) == function_name
            ):
                yield node


def read_collection_call(call: Node, file_path: str) -> CollectionConfiguration:
    """Read the literal pattern and options of one declaration call.

    Raises:
        ConfigurationError: Naming the call when an argument is not literal.
    """
    line = call.start_point[0] + 1
    location = f"{file_path}:{line}"
    arguments = _arguments(call)

    pattern_node = arguments[0] if arguments else None
    pattern = _string_argument(pattern_node)
    if pattern is None:
        raise ConfigurationError(
            f"Expected the first argument of {node_text(call)!r} at {location} to be a string literal"
        )

    options = CollectionOptions()
    options_node = arguments[1] if len(arguments) > 1 else None
    if options_node is not None:
        options = _read_options(options_node, call, location)

    return CollectionConfiguration(pattern=pattern, options=options, file_path=file_path, line=line)


def _arguments(call: Node) -> list[Node]:
    arguments = call.child_by_field_name("arguments")
    if arguments is None:
        return []
    return [child for child in arguments.named_children if child.type != "comment"]


def _string_argument(node: Optional[Node]) -> Optional[str]:
    if node is None:
        return None
    if node.type == "string":
        return string_value(node)
    if node.type == "template_string" and not any(
        child.type == "template_substitution" for child in node.named_children
    ):
        return string_value(node)
    return None


def _read_options(node: Node, call: Node, location: str) -> CollectionOptions:
    if node.type != "object":
        raise ConfigurationError(
            f"Expected the second argument of {node_text(call)!r} at {location} to be an object literal"
        )

    try:
        values = resolve_literal(node, keep_source=lambda path: bool(path) and path[0] in SOURCE_OPTIONS)
    except NonLiteralError as error:
        raise ConfigurationError(
            f"Expected the options of {node_text(call)!r} at {location} to be literal values, "
            f"found {node_text(error.node)!r}"
        ) from error

    try:
        return CollectionOptions.model_validate(values)
    except PydanticValidationError as error:
        raise ConfigurationError(f"Invalid collection options at {location}: {error}") from error
