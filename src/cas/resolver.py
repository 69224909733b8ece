# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Best-effort mapping of raw specifiers to analyzed modules."""

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import PurePosixPath

from cas.analyzer import SCRIPT_EXTENSIONS
from cas.model import ModuleRecord, Resolution, ResolutionRule, ResolvedGraph

logger = logging.getLogger(__name__)

_RELATIVE_SEGMENTS: frozenset[str] = frozenset({".", "..", "~", "@"})


@dataclass(frozen=True)
class SpecifierParts:
    """Represent the pieces of a specifier used by the resolution rules.

    Attributes:
        basename: Final path segment as written.
        stem: Final path segment without a script extension.
        directories: Directory segments, relative markers removed.
    """

    basename: str
    stem: str
    directories: tuple[str, ...]


def split_specifier(specifier: str) -> SpecifierParts:
    """Split a specifier into basename, stem and directory segments."""
    cleaned = specifier.split("?", 1)[0].replace("\\", "/")
    segments = [segment for segment in cleaned.split("/") if segment]
    basename = segments[-1] if segments else ""
    return SpecifierParts(
        basename=basename,
        stem=strip_script_extension(basename),
        directories=tuple(
            segment for segment in segments[:-1] if segment not in _RELATIVE_SEGMENTS
        ),
    )


def strip_script_extension(name: str) -> str:
    suffix = PurePosixPath(name).suffix.lower()
    if suffix in SCRIPT_EXTENSIONS:
        return name[: -len(suffix)]
    return name


def _record_directories(record: ModuleRecord) -> tuple[str, ...]:
    return tuple(
        part
        for part in PurePosixPath(record.path.replace("\\", "/")).parent.parts
        if part not in {"", ".", "/"}
    )


def _is_suffix(shorter: tuple[str, ...], longer: tuple[str, ...]) -> bool:
    return len(shorter) <= len(longer) and longer[len(longer) - len(shorter) :] == shorter


def _match_basename(parts: SpecifierParts, record: ModuleRecord) -> bool:
    return bool(parts.stem) and parts.stem == record.name


def _match_filename(parts: SpecifierParts, record: ModuleRecord) -> bool:
    return bool(parts.basename) and parts.basename == PurePosixPath(record.path).name


def _match_directory(parts: SpecifierParts, record: ModuleRecord) -> bool:
    candidate = _record_directories(record)
    if not parts.directories or not candidate:
        return False
    return _is_suffix(candidate, parts.directories) or _is_suffix(parts.directories, candidate)


def _match_substring(parts: SpecifierParts, record: ModuleRecord) -> bool:
    if not parts.stem or not record.name:
        return False
    return parts.stem in record.name or record.name in parts.stem


RESOLUTION_RULES: tuple[tuple[ResolutionRule, Callable[[SpecifierParts, ModuleRecord], bool]], ...] = (
    ("basename", _match_basename),
    ("filename", _match_filename),
    ("directory", _match_directory),
    ("substring", _match_substring),
)


class DependencyResolver:
    """Resolve every raw specifier of a batch against the batch itself."""

    def resolve_specifier(
        self, specifier: str, records: Sequence[ModuleRecord]
    ) -> Resolution:
        """Resolve one specifier.

        Rules are tried in order; within a rule the earliest record in
        ``records`` wins.

        Args:
            specifier: Raw specifier as written in source.
            records: Candidate records in analyzed-file enumeration order.

        Returns:
            The resolution; ``target`` is ``None`` for external specifiers.
        """
        parts = split_specifier(specifier)
        for rule_name, matches in RESOLUTION_RULES:
            for record in records:
                if matches(parts, record):
                    return Resolution(specifier=specifier, target=record.path, rule=rule_name)
        return Resolution(specifier=specifier, target=None, rule=None)

    def resolve(self, records: Sequence[ModuleRecord]) -> ResolvedGraph:
        """Build the resolved graph for a complete batch.

        Args:
            records: All module records in analyzed-file enumeration order.

        Returns:
            Edges per source path, deduplicated in first-resolution order,
            self edges included, plus the outcome of every specifier.
        """
        edges: dict[str, tuple[str, ...]] = {}
        resolutions: dict[str, tuple[Resolution, ...]] = {}
        for record in records:
            outcomes = tuple(
                self.resolve_specifier(specifier, records)
                for specifier in sorted(record.dependencies)
            )
            targets: list[str] = []
            for outcome in outcomes:
                if outcome.target is not None and outcome.target not in targets:
                    targets.append(outcome.target)
            edges[record.path] = tuple(targets)
            resolutions[record.path] = outcomes
            logger.debug(
                f"Dependencies resolved (file_path={record.path} "
                f"resolved={len(targets)} external={sum(1 for o in outcomes if o.target is None)})"
            )
        graph = ResolvedGraph(edges=edges, resolutions=resolutions)
        logger.info(f"Resolution complete (modules={len(records)} edges={graph.edge_count})")
        return graph
