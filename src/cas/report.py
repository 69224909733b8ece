# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Rendering of the architecture model into diagram, matrix and reports.

Every function here is pure over an ``ArchitectureModel``; writing the
documents is left to the caller.
"""

import logging
import re
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Any

from cas.layers import LAYER_COLORS, LAYER_ORDER
from cas.model import (
    COMPLEXITY_BANDS,
    ArchitectureModel,
    ComplexityBand,
    ModuleRecord,
    complexity_band,
)

logger = logging.getLogger(__name__)

DEFAULT_TOP_N = 10
DEFAULT_CRITICAL_LIMIT = 5

TIER_GLYPHS: dict[ComplexityBand, str] = {
    "low": "🟢",
    "medium": "🟡",
    "high": "🟠",
    "critical": "🔴",
}

BAND_TITLES: dict[ComplexityBand, str] = {
    "low": "Low Complexity (≤10)",
    "medium": "Medium Complexity (11-20)",
    "high": "High Complexity (21-30)",
    "critical": "Critical Complexity (>30)",
}

_NODE_ID_UNSAFE = re.compile(r"[^A-Za-z0-9]")


@dataclass(frozen=True)
class LayerSummary:
    """Represent the aggregate view of one layer.

    Attributes:
        label: Layer label.
        modules: Records assigned to the layer, enumeration order.
        average_complexity: Mean complexity of the layer's records.
        total_size: Sum of record byte sizes.
        critical_modules: Critical-band records, most complex first, bounded.
    """

    label: str
    modules: tuple[ModuleRecord, ...]
    average_complexity: float
    total_size: int
    critical_modules: tuple[ModuleRecord, ...]

    @property
    def module_count(self) -> int:
        return len(self.modules)


@dataclass(frozen=True)
class ReportBundle:
    """Represent every rendered document of one run."""

    architecture: str
    diagram: str
    matrix: str
    complexity: str


def tier_glyph(score: int) -> str:
    return TIER_GLYPHS[complexity_band(score)]


def group_by_layer(model: ArchitectureModel) -> list[tuple[str, list[ModuleRecord]]]:
    """Group records per layer in fixed layer order, skipping empty layers."""
    grouped: dict[str, list[ModuleRecord]] = {label: [] for label in LAYER_ORDER}
    for record in model.records:
        grouped.setdefault(model.layer_of(record), []).append(record)
    return [(label, members) for label, members in grouped.items() if members]


def node_ids(records: tuple[ModuleRecord, ...]) -> dict[str, str]:
    """Derive unique diagram node ids from record paths."""
    ids: dict[str, str] = {}
    used: set[str] = set()
    for record in records:
        base = _NODE_ID_UNSAFE.sub("_", record.path) or "module"
        if base[0].isdigit():
            base = f"m_{base}"
        candidate = base
        suffix = 2
        while candidate in used:
            candidate = f"{base}_{suffix}"
            suffix += 1
        used.add(candidate)
        ids[record.path] = candidate
    return ids


def render_mermaid(model: ArchitectureModel) -> str:
    """Render the layered Mermaid diagram.

    Nodes are clustered per layer and carry their tier glyph and score;
    edges come from the resolved graph only.
    """
    ids = node_ids(model.records)
    groups = group_by_layer(model)
    lines = ["graph TB"]
    for index, (label, members) in enumerate(groups):
        lines.append(f'  subgraph L{index}["{label}"]')
        for record in members:
            name = record.name.replace('"', "#quot;")
            lines.append(
                f'    {ids[record.path]}["{tier_glyph(record.complexity)} {name}'
                f'<br/>📊 {record.complexity}"]'
            )
        lines.append("  end")
    lines.append("")

    for record in model.records:
        for target in model.graph.targets(record.path):
            if target in ids:
                lines.append(f"  {ids[record.path]} --> {ids[target]}")
    lines.append("")

    for index, (label, members) in enumerate(groups):
        lines.append(
            f"  classDef layer{index} fill:{LAYER_COLORS.get(label, LAYER_COLORS['Unknown'])},"
            "stroke:#333,stroke-width:2px"
        )
        for record in members:
            lines.append(f"  class {ids[record.path]} layer{index}")
    return "\n".join(lines) + "\n"


def build_dependency_matrix(model: ArchitectureModel) -> list[list[bool]]:
    """Build the square dependency matrix over all records.

    Cell ``[i][j]`` is true when the resolved graph holds the edge i to j,
    or when record j's path, with or without its extension, is one of
    record i's raw specifiers.
    """
    matrix: list[list[bool]] = []
    for source in model.records:
        row = []
        for target in model.records:
            row.append(
                model.graph.has_edge(source.path, target.path)
                or target.path in source.dependencies
                or _strip_extension(target.path) in source.dependencies
            )
        matrix.append(row)
    return matrix


def render_dependency_matrix(model: ArchitectureModel) -> str:
    records = model.records
    matrix = build_dependency_matrix(model)
    lines = ["# Dependency Matrix", ""]
    lines.append("| Module | " + " | ".join(record.name for record in records) + " |")
    lines.append("|--------" + "|--------" * len(records) + "|")
    for record, row in zip(records, matrix):
        cells = " | ".join("✅" if cell else "❌" for cell in row)
        lines.append(f"| {record.name} | {cells} |")
    return "\n".join(lines) + "\n"


def render_complexity_report(model: ArchitectureModel, top_n: int = DEFAULT_TOP_N) -> str:
    """Render totals, the top-N table, band counts and recommendations.

    Args:
        model: Complete architecture model.
        top_n: Number of rows in the most-complex table.

    Returns:
        Markdown document.
    """
    ranked = sorted(model.records, key=lambda record: record.complexity, reverse=True)
    total = sum(record.complexity for record in ranked)
    average = total / len(ranked) if ranked else 0.0

    lines = ["# Complexity Analysis Report", "", "## Overview", ""]
    lines.append(f"- **Total Modules**: {len(ranked)}")
    lines.append(f"- **Total Complexity**: {total}")
    lines.append(f"- **Average Complexity**: {average:.2f}")
    lines.append("")

    lines.extend(["## Most Complex Modules", ""])
    lines.append("| Rank | Module | Complexity | Functions | Classes | Size (KB) |")
    lines.append("|------|--------|------------|-----------|---------|-----------|")
    for rank, record in enumerate(ranked[:top_n], start=1):
        lines.append(
            f"| {rank} | {record.name} | {record.complexity} | {len(record.functions)} "
            f"| {len(record.classes)} | {record.size / 1024:.1f} |"
        )
    lines.append("")

    counts = band_counts(model)
    lines.extend(["## Complexity Distribution", ""])
    for band in COMPLEXITY_BANDS:
        lines.append(f"- **{BAND_TITLES[band]}**: {counts[band]} modules")
    lines.append("")

    lines.extend(["## Recommendations", ""])
    flagged = recommended_modules(model)
    if not flagged:
        lines.append("✅ No modules exceed the medium complexity band.")
    else:
        lines.append(
            f"⚠️ **{len(flagged)} modules have high or critical complexity** "
            "- consider refactoring:"
        )
        lines.append("")
        for record in flagged:
            band = complexity_band(record.complexity)
            lines.append(
                f"- {TIER_GLYPHS[band]} `{record.name}` ({record.path}, "
                f"complexity: {record.complexity}, band: {band})"
            )
    return "\n".join(lines) + "\n"


def band_counts(model: ArchitectureModel) -> dict[ComplexityBand, int]:
    counts: dict[ComplexityBand, int] = {band: 0 for band in COMPLEXITY_BANDS}
    for record in model.records:
        counts[complexity_band(record.complexity)] += 1
    return counts


def recommended_modules(model: ArchitectureModel) -> list[ModuleRecord]:
    """Return high and critical records, critical first, most complex first."""
    critical = [r for r in model.records if complexity_band(r.complexity) == "critical"]
    high = [r for r in model.records if complexity_band(r.complexity) == "high"]
    return sorted(critical, key=lambda r: r.complexity, reverse=True) + sorted(
        high, key=lambda r: r.complexity, reverse=True
    )


def summarize_layers(
    model: ArchitectureModel, critical_limit: int = DEFAULT_CRITICAL_LIMIT
) -> list[LayerSummary]:
    """Summarize every non-empty layer.

    Args:
        model: Complete architecture model.
        critical_limit: Maximum number of critical modules listed per layer.

    Returns:
        One summary per non-empty layer in fixed layer order.
    """
    summaries: list[LayerSummary] = []
    for label, members in group_by_layer(model):
        critical = sorted(
            (r for r in members if complexity_band(r.complexity) == "critical"),
            key=lambda r: r.complexity,
            reverse=True,
        )
        summaries.append(
            LayerSummary(
                label=label,
                modules=tuple(members),
                average_complexity=sum(r.complexity for r in members) / len(members),
                total_size=sum(r.size for r in members),
                critical_modules=tuple(critical[:critical_limit]),
            )
        )
    return summaries


def render_layer_analysis(
    model: ArchitectureModel, critical_limit: int = DEFAULT_CRITICAL_LIMIT
) -> str:
    lines = ["## Layer Analysis", ""]
    for summary in summarize_layers(model, critical_limit=critical_limit):
        lines.append(f"### {summary.label} ({summary.module_count} modules)")
        lines.append("")
        lines.append(f"- **Average Complexity**: {summary.average_complexity:.2f}")
        lines.append(f"- **Total Size**: {summary.total_size / 1024:.1f} KB")
        if summary.critical_modules:
            lines.append("- **Critical Modules**:")
            for record in summary.critical_modules:
                lines.append(f"  - 🔴 `{record.name}` (complexity: {record.complexity})")
        lines.append("- **Modules**:")
        for record in summary.modules:
            lines.append(f"  - `{record.name}` (complexity: {record.complexity})")
        lines.append("")
    return "\n".join(lines) + "\n"


def render_architecture_report(
    model: ArchitectureModel,
    top_n: int = DEFAULT_TOP_N,
    critical_limit: int = DEFAULT_CRITICAL_LIMIT,
) -> str:
    """Render the combined report: diagram, layers, matrix and complexity."""
    parts = [
        "# Architecture Analysis Report",
        "",
        "## Architecture Diagram",
        "",
        "```mermaid",
        render_mermaid(model).rstrip("\n"),
        "```",
        "",
        render_layer_analysis(model, critical_limit=critical_limit),
        render_dependency_matrix(model),
        render_complexity_report(model, top_n=top_n),
    ]
    return "\n".join(parts)


def render_reports(
    model: ArchitectureModel,
    top_n: int = DEFAULT_TOP_N,
    critical_limit: int = DEFAULT_CRITICAL_LIMIT,
) -> ReportBundle:
    logger.debug(f"Rendering reports (modules={len(model.records)} top_n={top_n})")
    return ReportBundle(
        architecture=render_architecture_report(
            model, top_n=top_n, critical_limit=critical_limit
        ),
        diagram=render_mermaid(model),
        matrix=render_dependency_matrix(model),
        complexity=render_complexity_report(model, top_n=top_n),
    )


def model_to_payload(model: ArchitectureModel) -> dict[str, Any]:
    """Convert the model to a JSON-serializable mapping."""
    modules = []
    for record in model.records:
        modules.append(
            {
                "path": record.path,
                "name": record.name,
                "layer": model.layer_of(record),
                "complexity": record.complexity,
                "band": complexity_band(record.complexity),
                "size": record.size,
                "exports": list(record.exports),
                "functions": list(record.functions),
                "classes": list(record.classes),
                "dependencies": sorted(record.dependencies),
                "resolved": list(model.graph.targets(record.path)),
                "external": list(model.graph.unresolved(record.path)),
            }
        )
    layer_counts = {label: 0 for label in LAYER_ORDER}
    for record in model.records:
        layer_counts[model.layer_of(record)] = layer_counts.get(model.layer_of(record), 0) + 1
    return {
        "modules": modules,
        "edges": [
            {"source": record.path, "target": target}
            for record in model.records
            for target in model.graph.targets(record.path)
        ],
        "layers": layer_counts,
        "errors": [
            {"file_path": error.file_path, "message": error.message}
            for error in model.errors
        ],
    }


def _strip_extension(path: str) -> str:
    suffix = PurePosixPath(path).suffix
    return path[: -len(suffix)] if suffix else path
