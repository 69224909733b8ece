# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""JavaScript/TypeScript module analyzer: exports, names and weighted complexity."""

import logging
import math
from collections.abc import Callable
from dataclasses import dataclass, field

from tree_sitter import Node

from cas.analyzer import AnalyzerError, SourceFile
from cas.model import ModuleRecord, module_name
from cas.parsing import (
    identifier_name,
    iter_children,
    node_type,
    string_literal_value,
)

logger = logging.getLogger(__name__)

FUNCTION_BASE_WEIGHT: float = 1.0
DECISION_WEIGHT: float = 1.0
TERNARY_WEIGHT: float = 1.0
LOGICAL_WEIGHT: float = 0.5
AWAIT_WEIGHT: float = 0.5
CALLBACK_WEIGHT: float = 0.5
CLASS_WEIGHT: float = 2.0

FUNCTION_LITERAL_TYPES: frozenset[str] = frozenset(
    {"function_expression", "function", "generator_function", "arrow_function"}
)
FUNCTION_DECLARATION_TYPES: frozenset[str] = frozenset(
    {"function_declaration", "generator_function_declaration"}
)
FUNCTION_TYPES: frozenset[str] = (
    FUNCTION_LITERAL_TYPES | FUNCTION_DECLARATION_TYPES | {"method_definition"}
)
CLASS_DECLARATION_TYPES: frozenset[str] = frozenset(
    {"class_declaration", "abstract_class_declaration"}
)
TYPE_DECLARATION_TYPES: frozenset[str] = frozenset(
    {"interface_declaration", "type_alias_declaration", "enum_declaration"}
)
VARIABLE_DECLARATION_TYPES: frozenset[str] = frozenset(
    {"lexical_declaration", "variable_declaration"}
)
DECISION_TYPES: frozenset[str] = frozenset(
    {
        "if_statement",
        "while_statement",
        "do_statement",
        "for_statement",
        "for_in_statement",
        "catch_clause",
        "switch_case",
    }
)
_LOGICAL_OPERATORS: frozenset[str] = frozenset({"&&", "||"})


@dataclass
class _ModuleAccumulator:
    """Collect names for one file while its tree is traversed.

    Declarations claimed by an export are listed ahead of the rest and are
    skipped when the traversal reaches the declaration itself.
    """

    exports: list[str] = field(default_factory=list)
    exported_functions: list[str] = field(default_factory=list)
    functions: list[str] = field(default_factory=list)
    exported_classes: list[str] = field(default_factory=list)
    classes: list[str] = field(default_factory=list)
    claimed: set[int] = field(default_factory=set)

    def function_names(self) -> tuple[str, ...]:
        return (*self.exported_functions, *self.functions)

    def class_names(self) -> tuple[str, ...]:
        return (*self.exported_classes, *self.classes)

    def claim(self, node: Node) -> None:
        self.claimed.add(node.id)

    def is_claimed(self, node: Node) -> bool:
        return node.id in self.claimed


class JavaScriptAnalyzer:
    """Build module records from tree-sitter syntax trees."""

    def analyze(
        self,
        source: SourceFile,
        tree: Node | None,
        dependencies: frozenset[str] = frozenset(),
    ) -> tuple[ModuleRecord, AnalyzerError | None]:
        """Analyze one parsed file.

        Args:
            source: File being analyzed.
            tree: Root node of the parse, ``None`` when parsing failed.
            dependencies: Raw dependency specifiers of the file.

        Returns:
            The module record and a traversal error, if one occurred. A
            missing tree yields the empty record without an error; a
            traversal error keeps the names collected so far with a zero
            complexity score.
        """
        if tree is None:
            return ModuleRecord.empty(source.path, source.size, dependencies), None

        accumulator = _ModuleAccumulator()
        try:
            total = _walk(tree, accumulator)
        except (AttributeError, TypeError, UnicodeError) as exc:
            logger.warning(
                f"Traversal failed; keeping partial record (file_path={source.path} error={exc!r})"
            )
            return (
                self._build_record(source, dependencies, accumulator, complexity=0),
                AnalyzerError(file_path=source.path, message=f"traversal failed: {exc!r}"),
            )

        complexity = round_complexity(total)
        logger.debug(
            f"Module analyzed (file_path={source.path} complexity={complexity} "
            f"functions={len(accumulator.function_names())})"
        )
        return (
            self._build_record(source, dependencies, accumulator, complexity=complexity),
            None,
        )

    def _build_record(
        self,
        source: SourceFile,
        dependencies: frozenset[str],
        accumulator: _ModuleAccumulator,
        complexity: int,
    ) -> ModuleRecord:
        return ModuleRecord(
            path=source.path,
            name=module_name(source.path),
            dependencies=dependencies,
            exports=tuple(accumulator.exports),
            functions=accumulator.function_names(),
            classes=accumulator.class_names(),
            size=source.size,
            complexity=complexity,
        )


def score_complexity(node: Node) -> float:
    """Score a subtree with the complexity weights, without rounding.

    A function node scores its base weight plus the score of everything it
    contains, so a nested function adds its whole sub-score to the enclosing
    function. Sub-scores add up unchanged, which makes the score of any
    subtree the sum of its node weights.
    """
    return _walk(node, _ModuleAccumulator())


def round_complexity(total: float) -> int:
    """Round half up to the nearest integer and floor at zero."""
    return max(0, int(math.floor(total + 0.5)))


def node_weight(node: Node) -> float:
    """Return the weight a single node adds to the score."""
    kind = node.type
    if kind in FUNCTION_TYPES:
        return FUNCTION_BASE_WEIGHT
    if kind in DECISION_TYPES:
        return DECISION_WEIGHT
    if kind == "ternary_expression":
        return TERNARY_WEIGHT
    if kind == "binary_expression":
        operator = node.child_by_field_name("operator")
        return LOGICAL_WEIGHT if node_type(operator) in _LOGICAL_OPERATORS else 0.0
    if kind == "await_expression":
        return AWAIT_WEIGHT
    if kind == "call_expression":
        arguments = node.child_by_field_name("arguments")
        if arguments is not None and any(
            child.type in FUNCTION_LITERAL_TYPES for child in iter_children(arguments)
        ):
            return CALLBACK_WEIGHT
        return 0.0
    if kind in CLASS_DECLARATION_TYPES:
        return CLASS_WEIGHT
    return 0.0


def _walk(root: Node, accumulator: _ModuleAccumulator) -> float:
    # Pre-order with an explicit stack; minified chains nest thousands deep.
    total = 0.0
    stack = [root]
    while stack:
        node = stack.pop()
        collector = _COLLECTORS.get(node.type)
        if collector is not None:
            collector(node, accumulator)
        total += node_weight(node)
        stack.extend(reversed(list(iter_children(node))))
    return total


def _declared_name(node: Node | None) -> str | None:
    if node is None:
        return None
    return identifier_name(node.child_by_field_name("name"))


def _collect_export(node: Node, accumulator: _ModuleAccumulator) -> None:
    declaration = node.child_by_field_name("declaration")
    if any(child.type == "default" for child in node.children):
        _collect_default_export(declaration, accumulator)
    elif declaration is not None:
        _collect_exported_declaration(declaration, accumulator)

    for clause in iter_children(node):
        if clause.type != "export_clause":
            continue
        for specifier in iter_children(clause):
            exported = specifier.child_by_field_name(
                "alias"
            ) or specifier.child_by_field_name("name")
            name = identifier_name(exported) or string_literal_value(exported)
            if name:
                accumulator.exports.append(name)


def _collect_default_export(
    declaration: Node | None, accumulator: _ModuleAccumulator
) -> None:
    kind = node_type(declaration)
    name = None
    if kind in FUNCTION_DECLARATION_TYPES or kind in CLASS_DECLARATION_TYPES:
        name = _declared_name(declaration)
    if not name:
        accumulator.exports.append("default")
        return
    accumulator.exports.append(name)
    accumulator.claim(declaration)
    if kind in FUNCTION_DECLARATION_TYPES:
        accumulator.exported_functions.append(name)
    else:
        accumulator.exported_classes.append(name)


def _collect_exported_declaration(
    declaration: Node, accumulator: _ModuleAccumulator
) -> None:
    kind = declaration.type
    if kind in VARIABLE_DECLARATION_TYPES:
        for declarator in iter_children(declaration):
            if declarator.type != "variable_declarator":
                continue
            name = identifier_name(declarator.child_by_field_name("name"))
            if not name:
                continue
            accumulator.exports.append(name)
            if node_type(declarator.child_by_field_name("value")) in FUNCTION_LITERAL_TYPES:
                accumulator.exported_functions.append(name)
                accumulator.claim(declarator)
        return

    name = _declared_name(declaration)
    if not name:
        return
    if kind in FUNCTION_DECLARATION_TYPES:
        accumulator.exports.append(name)
        accumulator.exported_functions.append(name)
        accumulator.claim(declaration)
    elif kind in CLASS_DECLARATION_TYPES:
        accumulator.exports.append(name)
        accumulator.exported_classes.append(name)
        accumulator.claim(declaration)
    elif kind in TYPE_DECLARATION_TYPES:
        accumulator.exports.append(name)


def _collect_function_declaration(node: Node, accumulator: _ModuleAccumulator) -> None:
    if accumulator.is_claimed(node):
        return
    name = _declared_name(node)
    if name:
        accumulator.functions.append(name)


def _collect_variable_declarator(node: Node, accumulator: _ModuleAccumulator) -> None:
    if accumulator.is_claimed(node):
        return
    if node_type(node.child_by_field_name("value")) not in FUNCTION_LITERAL_TYPES:
        return
    name = identifier_name(node.child_by_field_name("name"))
    if name:
        accumulator.functions.append(name)


def _collect_object_method(node: Node, accumulator: _ModuleAccumulator) -> None:
    # Class methods share the node type but are not listed as functions.
    if node_type(node.parent) != "object":
        return
    key = node.child_by_field_name("name")
    name = identifier_name(key) or string_literal_value(key)
    if name:
        accumulator.functions.append(name)


def _collect_class_declaration(node: Node, accumulator: _ModuleAccumulator) -> None:
    if accumulator.is_claimed(node):
        return
    name = _declared_name(node)
    if name:
        accumulator.classes.append(name)


_COLLECTORS: dict[str, Callable[[Node, _ModuleAccumulator], None]] = {
    "export_statement": _collect_export,
    "function_declaration": _collect_function_declaration,
    "generator_function_declaration": _collect_function_declaration,
    "variable_declarator": _collect_variable_declarator,
    "method_definition": _collect_object_method,
    "class_declaration": _collect_class_declaration,
    "abstract_class_declaration": _collect_class_declaration,
}
