# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Dependency specifier extraction from script source text."""

import logging

from tree_sitter import Node

from cas.analyzer import file_kind
from cas.parsing import (
    identifier_name,
    iter_children,
    node_type,
    parse_with_fallback,
    string_literal_value,
)

logger = logging.getLogger(__name__)

LOADER_CALL_NAMES: frozenset[str] = frozenset({"require", "__webpack_require__"})

# ``import x = require("y")`` parses as an import_require_clause in TypeScript.
_SOURCE_NODES: frozenset[str] = frozenset(
    {"import_statement", "export_statement", "import_require_clause"}
)


def extract_dependencies(text: str, file_path: str) -> frozenset[str]:
    """Extract raw dependency specifiers from one file.

    Args:
        text: Raw source text.
        file_path: File path; its extension decides whether the file is
            supported and which grammar is tried first.

    Returns:
        Unique specifiers; empty for unsupported or unparsable files.
    """
    if file_kind(file_path) == "unsupported":
        logger.debug(f"Skipping unsupported file kind (file_path={file_path})")
        return frozenset()
    outcome = parse_with_fallback(text, file_path=file_path)
    if outcome is None:
        return frozenset()
    return collect_specifiers(outcome.tree, file_path=file_path)


def collect_specifiers(tree: Node, file_path: str = "<memory>") -> frozenset[str]:
    """Collect dependency specifiers from a parsed tree.

    Args:
        tree: Root node of a successful parse.
        file_path: Path used for log context only.

    Returns:
        Unique specifiers found in import, re-export and loader call shapes.
    """
    specifiers: set[str] = set()
    stack = [tree]
    try:
        while stack:
            node = stack.pop()
            specifier = _specifier_of(node)
            if specifier is not None:
                specifiers.add(specifier)
            stack.extend(iter_children(node))
    except (AttributeError, TypeError, UnicodeError) as exc:
        logger.warning(
            f"Dependency traversal failed (file_path={file_path} error={exc})"
        )
    logger.debug(
        f"Dependencies collected (file_path={file_path} count={len(specifiers)})"
    )
    return frozenset(specifiers)


def _specifier_of(node: Node) -> str | None:
    kind = node.type
    if kind in _SOURCE_NODES:
        # Exports without a from clause have no source field.
        return string_literal_value(node.child_by_field_name("source"))
    if kind != "call_expression":
        return None
    arguments = node.child_by_field_name("arguments")
    if node_type(arguments) != "arguments":
        return None
    values = list(iter_children(arguments))
    if len(values) != 1:
        return None
    callee = node.child_by_field_name("function")
    if identifier_name(callee) in LOADER_CALL_NAMES or node_type(callee) == "import":
        return string_literal_value(values[0])
    return None
