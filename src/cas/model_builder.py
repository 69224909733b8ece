# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Model building from source files."""

import concurrent.futures
import logging
from collections.abc import Sequence
from dataclasses import dataclass

from cas.analyzer import AnalyzerError, SourceFile
from cas.analyzers import JavaScriptAnalyzer
from cas.dependencies import collect_specifiers
from cas.layers import assign_layers
from cas.model import ArchitectureModel, ModuleRecord
from cas.parsing import parse_with_fallback
from cas.resolver import DependencyResolver

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 4


@dataclass(frozen=True)
class _FileResult:
    record: ModuleRecord
    error: AnalyzerError | None = None


class ModelBuilder:
    """Build the architecture model for one batch of source files."""

    def __init__(
        self,
        max_workers: int = DEFAULT_MAX_WORKERS,
        analyzer: JavaScriptAnalyzer | None = None,
        resolver: DependencyResolver | None = None,
    ) -> None:
        """Initialize the builder.

        Args:
            max_workers: Maximum number of worker threads for per-file work.
            analyzer: Module analyzer; a default one is created when omitted.
            resolver: Dependency resolver; a default one is created when omitted.

        Raises:
            ValueError: If ``max_workers`` is not greater than zero.
        """
        if max_workers <= 0:
            raise ValueError("max_workers must be > 0")
        self._max_workers = max_workers
        self._analyzer = analyzer or JavaScriptAnalyzer()
        self._resolver = resolver or DependencyResolver()

    def build(self, files: Sequence[SourceFile]) -> ArchitectureModel:
        """Build records, layers and the resolved graph.

        Per-file extraction and analysis run on a bounded thread pool; each
        result lands in the slot of its file so enumeration order is kept.
        Resolution starts only once every file is done.

        Args:
            files: Source files in enumeration order.

        Returns:
            The complete architecture model, including soft errors.
        """
        slots: list[_FileResult | None] = [None] * len(files)
        with concurrent.futures.ThreadPoolExecutor(
            max_workers=self._max_workers
        ) as executor:
            future_to_index = {
                executor.submit(self._analyze_file, source): index
                for index, source in enumerate(files)
            }
            for future in concurrent.futures.as_completed(future_to_index):
                slots[future_to_index[future]] = future.result()

        results = [result for result in slots if result is not None]
        records = tuple(result.record for result in results)
        errors = tuple(result.error for result in results if result.error is not None)
        layers = assign_layers(records)
        graph = self._resolver.resolve(records)
        logger.info(
            f"Model built (modules={len(records)} edges={graph.edge_count} errors={len(errors)})"
        )
        return ArchitectureModel(records=records, layers=layers, graph=graph, errors=errors)

    def _analyze_file(self, source: SourceFile) -> _FileResult:
        if source.read_error is not None:
            return _FileResult(
                record=ModuleRecord.empty(source.path, source.size),
                error=AnalyzerError(
                    file_path=source.path, message=f"unreadable: {source.read_error}"
                ),
            )
        if source.kind == "unsupported":
            logger.debug(f"Skipping unsupported file kind (file_path={source.path})")
            return _FileResult(record=ModuleRecord.empty(source.path, source.size))

        outcome = parse_with_fallback(source.text, file_path=source.path)
        if outcome is None:
            return _FileResult(
                record=ModuleRecord.empty(source.path, source.size),
                error=AnalyzerError(
                    file_path=source.path, message="unparsable: all parse strategies failed"
                ),
            )

        dependencies = collect_specifiers(outcome.tree, file_path=source.path)
        record, error = self._analyzer.analyze(source, outcome.tree, dependencies)
        return _FileResult(record=record, error=error)
