# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Gitignore-aware discovery and reading of script sources."""

import logging
import os
from pathlib import Path

import pathspec

from cas.analyzer import SCRIPT_EXTENSIONS, SourceFile

logger = logging.getLogger(__name__)

IGNORED_DIRECTORIES: frozenset[str] = frozenset({".git", "node_modules"})


class DiscoveryError(RuntimeError):
    """Represent a failure to enumerate the input file set."""


class IgnoreMatcher:
    """Match project paths against .gitignore patterns."""

    def __init__(self, spec: pathspec.GitIgnoreSpec) -> None:
        self._spec = spec

    @classmethod
    def from_project_root(cls, root: Path) -> "IgnoreMatcher":
        """Build a matcher from the root and nested .gitignore files.

        Args:
            root: Project root.

        Returns:
            Configured ignore matcher.

        Raises:
            OSError: If a .gitignore file cannot be read.
            UnicodeDecodeError: If a .gitignore file is not valid UTF-8.
        """
        patterns: list[str] = []
        for ignore_path in _find_ignore_files(root):
            base = ignore_path.parent.relative_to(root).as_posix()
            if base == ".":
                base = ""
            for line in ignore_path.read_text(encoding="utf-8").splitlines():
                patterns.append(translate_gitignore_line(line=line, base=base))
        return cls(spec=pathspec.GitIgnoreSpec.from_lines(patterns))

    def matches(self, relative_path: str, is_dir: bool) -> bool:
        """Check whether a project-relative path is ignored."""
        normalized = relative_path.replace(os.sep, "/").strip("/")
        if not normalized:
            return False
        if self._spec.match_file(normalized):
            return True
        return is_dir and self._spec.match_file(f"{normalized}/")


def discover_sources(root: Path) -> list[str]:
    """Enumerate supported script files under a project root.

    The walk is breadth-first with children sorted by name, so the result
    order is stable across runs.

    Args:
        root: Project root directory.

    Returns:
        Project-relative POSIX paths of supported files.

    Raises:
        DiscoveryError: If the root is missing, not a directory, or cannot
            be listed, or if its .gitignore files cannot be read.
    """
    if not root.exists():
        raise DiscoveryError(f"Input path does not exist: {root}")
    if not root.is_dir():
        raise DiscoveryError(f"Input path must be a directory: {root}")
    try:
        matcher = IgnoreMatcher.from_project_root(root)
    except (OSError, UnicodeDecodeError) as exc:
        raise DiscoveryError(f"Failed to read .gitignore files: {exc}") from exc

    discovered: list[str] = []
    skipped = 0
    queue: list[Path] = [root]
    while queue:
        current = queue.pop(0)
        try:
            children = sorted(current.iterdir(), key=lambda item: item.name)
        except OSError as exc:
            if current == root:
                raise DiscoveryError(f"Failed to list input path: {exc}") from exc
            logger.warning(f"Skipping unlistable directory (path={current} error={exc})")
            continue

        for child in children:
            relative = child.relative_to(root).as_posix()
            is_dir = child.is_dir()
            if is_dir and child.name in IGNORED_DIRECTORIES:
                skipped += 1
                continue
            if matcher.matches(relative_path=relative, is_dir=is_dir):
                skipped += 1
                continue
            if is_dir:
                if not child.is_symlink():
                    queue.append(child)
                continue
            if child.suffix.lower() in SCRIPT_EXTENSIONS:
                discovered.append(relative)

    logger.info(
        f"Discovery complete (root={root} files={len(discovered)} skipped={skipped})"
    )
    return discovered


def read_sources(root: Path, paths: list[str]) -> list[SourceFile]:
    """Read discovered files as UTF-8 text.

    An unreadable file becomes a placeholder carrying its read error; the
    rest of the batch is still read.

    Args:
        root: Project root directory.
        paths: Project-relative paths in enumeration order.

    Returns:
        Source files in the same order as ``paths``.
    """
    sources: list[SourceFile] = []
    for relative in paths:
        try:
            text = (root / relative).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning(f"Failed to read source file (file_path={relative} error={exc})")
            sources.append(SourceFile.unreadable(relative, str(exc)))
            continue
        sources.append(SourceFile.from_text(relative, text))
    return sources


def translate_gitignore_line(line: str, base: str) -> str:
    """Translate one .gitignore line to a root-relative pattern.

    Args:
        line: Original .gitignore line.
        base: Directory of the .gitignore file relative to the project root.

    Returns:
        Root-relative pattern line.
    """
    if not base or not line:
        return line
    if line.lstrip().startswith("#"):
        return line
    if line.startswith(r"\!") or line.startswith(r"\#"):
        return line
    is_negation = line.startswith("!")
    pattern = line[1:] if is_negation else line
    anchored = "/" in pattern.rstrip("/")
    normalized_pattern = pattern.lstrip("/")
    if anchored:
        prefixed = f"/{base}/{normalized_pattern}"
    else:
        prefixed = f"/{base}/**/{normalized_pattern}"
    return f"!{prefixed}" if is_negation else prefixed


def _find_ignore_files(root: Path) -> list[Path]:
    found: list[Path] = []
    for directory, subdirectories, filenames in os.walk(root):
        subdirectories[:] = sorted(
            name for name in subdirectories if name not in IGNORED_DIRECTORIES
        )
        if ".gitignore" in filenames:
            found.append(Path(directory) / ".gitignore")
    return found
