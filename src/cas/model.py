# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Domain models for the architecture model."""

from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import Literal

from cas.analyzer import AnalyzerError

ComplexityBand = Literal["low", "medium", "high", "critical"]
ResolutionRule = Literal["basename", "filename", "directory", "substring"]

COMPLEXITY_BANDS: tuple[ComplexityBand, ...] = ("low", "medium", "high", "critical")


@dataclass(frozen=True)
class ModuleRecord:
    """Represent the structural summary of one source file.

    Attributes:
        path: Project-relative POSIX path; the record identity.
        name: Display name (basename without extension).
        dependencies: Raw dependency specifiers as written in source.
        exports: Exported symbol names in discovery order.
        functions: Function names; exported declarations first.
        classes: Class names; exported declarations first.
        size: Byte size of the source file.
        complexity: Weighted complexity score, a non-negative integer.
    """

    path: str
    name: str
    dependencies: frozenset[str] = frozenset()
    exports: tuple[str, ...] = ()
    functions: tuple[str, ...] = ()
    classes: tuple[str, ...] = ()
    size: int = 0
    complexity: int = 0

    @classmethod
    def empty(
        cls, path: str, size: int, dependencies: frozenset[str] = frozenset()
    ) -> "ModuleRecord":
        """Build the empty-but-valid record used when analysis degrades."""
        return cls(
            path=path, name=module_name(path), dependencies=dependencies, size=size
        )


@dataclass(frozen=True)
class Resolution:
    """Represent the resolution outcome of one raw specifier.

    Attributes:
        specifier: Raw specifier as written in source.
        target: Path of the resolved record, ``None`` when external.
        rule: Resolution rule that matched, ``None`` when external.
    """

    specifier: str
    target: str | None
    rule: ResolutionRule | None


@dataclass(frozen=True)
class ResolvedGraph:
    """Represent intra-project dependency edges.

    Attributes:
        edges: Source path to target paths, first-resolution order, no
            duplicates. Self edges are kept.
        resolutions: Source path to the outcome of every raw specifier.
    """

    edges: dict[str, tuple[str, ...]] = field(default_factory=dict)
    resolutions: dict[str, tuple[Resolution, ...]] = field(default_factory=dict)

    def targets(self, path: str) -> tuple[str, ...]:
        return self.edges.get(path, ())

    def has_edge(self, source: str, target: str) -> bool:
        return target in self.edges.get(source, ())

    def unresolved(self, path: str) -> tuple[str, ...]:
        """Return the specifiers of ``path`` treated as external."""
        return tuple(
            item.specifier
            for item in self.resolutions.get(path, ())
            if item.target is None
        )

    @property
    def edge_count(self) -> int:
        return sum(len(targets) for targets in self.edges.values())


@dataclass(frozen=True)
class ArchitectureModel:
    """Represent the complete model of one run.

    Attributes:
        records: Module records in analyzed-file enumeration order.
        layers: Record path to its layer label.
        graph: Resolved intra-project dependency graph.
        errors: Recoverable per-file failures.
    """

    records: tuple[ModuleRecord, ...]
    layers: dict[str, str]
    graph: ResolvedGraph
    errors: tuple[AnalyzerError, ...] = ()

    def layer_of(self, record: ModuleRecord) -> str:
        return self.layers[record.path]


def module_name(path: str) -> str:
    """Return the display name of a path: its basename without extension."""
    return PurePosixPath(path.replace("\\", "/")).stem or "unknown"


def complexity_band(score: int) -> ComplexityBand:
    """Classify a complexity score into its reporting band.

    Args:
        score: Module complexity score.

    Returns:
        ``low`` up to 10, ``medium`` up to 20, ``high`` up to 30,
        ``critical`` above 30.
    """
    if score <= 10:
        return "low"
    if score <= 20:
        return "medium"
    if score <= 30:
        return "high"
    return "critical"
