# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Syntax tree collaborator backed by tree-sitter with fallback parse strategies."""

import logging
import re
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Literal

import tree_sitter_javascript
import tree_sitter_typescript
from tree_sitter import Language, Node, Parser

logger = logging.getLogger(__name__)

Grammar = Literal["javascript", "typescript", "tsx"]
ParseMode = Literal["strict", "dialect", "tolerant"]

LANGUAGES: dict[Grammar, Language] = {
    "javascript": Language(tree_sitter_javascript.language()),
    "typescript": Language(tree_sitter_typescript.language_typescript()),
    "tsx": Language(tree_sitter_typescript.language_tsx()),
}

# Grammar preference per extension; the first entry is the file's own grammar.
GRAMMAR_PREFERENCE: dict[str, tuple[Grammar, ...]] = {
    ".ts": ("typescript", "tsx", "javascript"),
    ".tsx": ("tsx", "typescript", "javascript"),
}
DEFAULT_GRAMMARS: tuple[Grammar, ...] = ("javascript", "tsx", "typescript")

COMMENT_TYPES: frozenset[str] = frozenset({"comment", "html_comment"})
IDENTIFIER_TYPES: frozenset[str] = frozenset(
    {"identifier", "property_identifier", "type_identifier"}
)

_COMMENT_OR_LITERAL = re.compile(
    r"""(?P<literal>"(?:\\.|[^"\\\n])*"|'(?:\\.|[^'\\\n])*'|`(?:\\.|[^`\\])*`)"""
    r"""|(?P<block>/\*[\s\S]*?\*/)"""
    r"""|(?P<line>//[^\n]*)"""
)


class ParseError(RuntimeError):
    """Represent a parse failure under one parse mode."""


@dataclass(frozen=True)
class SyntaxProblems:
    """Represent the error-recovery nodes of one tree.

    Attributes:
        errors: Number of ``ERROR`` nodes (skipped or unrecognized input).
        missing: Number of ``MISSING`` nodes (tokens inserted by recovery).
        first_line: One-based line of the first problem, ``None`` when clean.
    """

    errors: int = 0
    missing: int = 0
    first_line: int | None = None


@dataclass(frozen=True)
class ParseOutcome:
    """Represent a successful parse.

    Attributes:
        tree: Root ``program`` node produced by tree-sitter.
        mode: Parse mode that accepted the tree.
        grammar: Grammar that produced the tree.
        stripped: Whether comments were stripped before parsing.
    """

    tree: Node
    mode: ParseMode
    grammar: Grammar
    stripped: bool = False


def grammars_for(file_path: str) -> tuple[Grammar, ...]:
    """Return the grammars to try for a path, the file's own grammar first."""
    suffix = PurePosixPath(file_path.replace("\\", "/")).suffix.lower()
    return GRAMMAR_PREFERENCE.get(suffix, DEFAULT_GRAMMARS)


def parse_tree(text: str, grammar: Grammar) -> Node:
    """Parse source text with one grammar, keeping error-recovery nodes.

    Raises:
        ParseError: If tree-sitter rejects the input outright.
    """
    try:
        tree = Parser(LANGUAGES[grammar]).parse(text.encode("utf-8"))
    except (TypeError, ValueError, RuntimeError) as exc:
        raise ParseError(f"{grammar}: {exc}") from exc
    return tree.root_node


def find_syntax_problems(root: Node) -> SyntaxProblems:
    """Count ``ERROR`` and ``MISSING`` nodes, descending only into damaged subtrees."""
    errors = 0
    missing = 0
    first_line: int | None = None
    stack = [root]
    while stack:
        node = stack.pop()
        if node.is_error or node.is_missing:
            if node.is_error:
                errors += 1
            else:
                missing += 1
            line = node.start_point[0] + 1
            first_line = line if first_line is None else min(first_line, line)
        if node.has_error:
            stack.extend(node.children)
    return SyntaxProblems(errors=errors, missing=missing, first_line=first_line)


def check_tree(root: Node, mode: ParseMode) -> None:
    """Accept or reject a tree under one strictness mode.

    ``strict`` and ``dialect`` accept only clean trees; ``tolerant`` also
    accepts tokens inserted by error recovery. A tree holding an ``ERROR``
    node is rejected in every mode.

    Raises:
        ParseError: If the tree is not acceptable under ``mode``.
    """
    problems = find_syntax_problems(root)
    if problems.errors or (mode != "tolerant" and problems.missing):
        raise ParseError(
            f"{mode}: errors={problems.errors} missing={problems.missing} "
            f"line={problems.first_line}"
        )


def parse_source(
    text: str, grammar: Grammar = "javascript", mode: ParseMode = "strict"
) -> Node:
    """Parse source text with one grammar under one strictness mode.

    Args:
        text: Raw source text.
        grammar: ``javascript``, ``typescript`` or ``tsx``.
        mode: ``strict``, ``dialect`` or ``tolerant``.

    Returns:
        The root ``program`` node.

    Raises:
        ParseError: If the grammar cannot produce an acceptable tree.
    """
    root = parse_tree(text, grammar)
    check_tree(root, mode)
    return root


def parse_with_fallback(text: str, file_path: str = "<memory>") -> ParseOutcome | None:
    """Parse source text through the strategy chain.

    The chain is the file's own grammar in ``strict`` mode, then the other
    grammars of the family in ``dialect`` mode, then every grammar in
    ``tolerant`` mode, and finally one ``tolerant`` pass over the
    comment-stripped text.

    Args:
        text: Raw source text.
        file_path: Path choosing the grammar order; also used for log context.

    Returns:
        The first successful parse, or ``None`` when every strategy failed.
    """
    grammars = grammars_for(file_path)
    strategies: list[tuple[ParseMode, Grammar]] = [("strict", grammars[0])]
    strategies.extend(("dialect", grammar) for grammar in grammars[1:])
    strategies.extend(("tolerant", grammar) for grammar in grammars)

    # A grammar yields the same tree in every mode; only acceptance differs.
    trees: dict[Grammar, Node] = {}
    for mode, grammar in strategies:
        try:
            if grammar not in trees:
                trees[grammar] = parse_tree(text, grammar)
            check_tree(trees[grammar], mode)
        except ParseError as exc:
            logger.debug(
                f"Parse attempt failed (file_path={file_path} grammar={grammar} error={exc})"
            )
            continue
        return ParseOutcome(tree=trees[grammar], mode=mode, grammar=grammar)

    stripped = strip_comments(text)
    last_error: ParseError | None = None
    for grammar in grammars:
        try:
            root = parse_tree(stripped, grammar)
            check_tree(root, "tolerant")
        except ParseError as exc:
            last_error = exc
            continue
        return ParseOutcome(tree=root, mode="tolerant", grammar=grammar, stripped=True)

    logger.warning(
        f"All parse strategies failed (file_path={file_path} error={last_error})"
    )
    return None


def strip_comments(text: str) -> str:
    """Remove block and line comments, keeping string and template literals.

    Block comments are replaced by their line breaks so line numbers are
    preserved.
    """

    def _replace(match: re.Match[str]) -> str:
        if match.group("literal") is not None:
            return match.group("literal")
        if match.group("block") is not None:
            return "\n" * match.group("block").count("\n")
        return ""

    return _COMMENT_OR_LITERAL.sub(_replace, text)


def node_type(node: Node | None) -> str:
    return node.type if node is not None else ""


def node_text(node: Node | None) -> str:
    if node is None or node.text is None:
        return ""
    return node.text.decode("utf-8", errors="replace")


def iter_children(node: Node) -> Iterator[Node]:
    """Yield named child nodes in source order, skipping comments."""
    for child in node.named_children:
        if child.type not in COMMENT_TYPES:
            yield child


def identifier_name(node: Node | None) -> str | None:
    """Return the name of an identifier-like node, ``None`` for anything else."""
    if node is None or node.type not in IDENTIFIER_TYPES:
        return None
    return node_text(node) or None


def string_literal_value(node: Node | None) -> str | None:
    """Return the value of a ``string`` node without its quotes."""
    if node is None or node.type != "string":
        return None
    return node_text(node)[1:-1]
