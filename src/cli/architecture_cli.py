# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Command-line interface for architecture analysis and per-file documentation."""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import TextIO

from rich.console import Console
from rich.logging import RichHandler
from rich.style import Style
from rich.table import Table

from cas.analyzer import AnalyzerError, SourceFile
from cas.discovery import DiscoveryError, discover_sources, read_sources
from cas.documentation import (
    DEFAULT_CACHE_DIR,
    DEFAULT_LANGUAGE,
    DocumentationGenerator,
    ResponseCache,
)
from cas.llm import (
    DEFAULT_OLLAMA_HOST,
    OPENAI_DEFAULT_BASE_URL,
    OllamaClient,
    OpenAIClient,
)
from cas.llm_client import LLMClient
from cas.model import ArchitectureModel, complexity_band
from cas.model_builder import DEFAULT_MAX_WORKERS, ModelBuilder
from cas.report import (
    DEFAULT_TOP_N,
    ReportBundle,
    model_to_payload,
    render_reports,
    tier_glyph,
)

logger = logging.getLogger(__name__)

DEFAULT_ARCHITECTURE_OUTPUT = "docs/architecture"
DEFAULT_DOCUMENTATION_OUTPUT = "docs/files"

REPORT_FILENAMES: dict[str, str] = {
    "architecture": "architecture.md",
    "diagram": "diagram.mmd",
    "matrix": "dependency-matrix.md",
    "complexity": "complexity-report.md",
}

DEFAULT_PROVIDER_URLS: dict[str, str] = {
    "ollama": DEFAULT_OLLAMA_HOST,
    "openai": OPENAI_DEFAULT_BASE_URL,
}

TABLE_COLUMN_RATIOS: dict[str, int] = {
    "path": 4,
    "layer": 2,
    "complexity": 1,
    "functions": 1,
    "classes": 1,
    "dependencies": 1,
    "resolved": 1,
}


def configure_logging(level: int = logging.INFO) -> None:
    """Configure application logging with Rich handler.

    Args:
        level: Logging severity threshold.
    """
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
        force=True,
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser instance.
    """
    parser = argparse.ArgumentParser(prog="cas")
    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze_parser = subparsers.add_parser("analyze")
    analyze_parser.add_argument("--path", required=True, help="Root path to analyze.")
    analyze_parser.add_argument(
        "--output",
        default=DEFAULT_ARCHITECTURE_OUTPUT,
        help="Directory receiving the Markdown and Mermaid reports.",
    )
    analyze_parser.add_argument(
        "--format",
        choices=("markdown", "table", "json"),
        default="markdown",
        help="Output format.",
    )
    analyze_parser.add_argument(
        "--top",
        type=int,
        default=DEFAULT_TOP_N,
        help="Number of modules in the most-complex table.",
    )
    _add_common_arguments(analyze_parser)

    document_parser = subparsers.add_parser("document")
    document_parser.add_argument("--path", required=True, help="Root path to analyze.")
    document_parser.add_argument(
        "--provider",
        choices=("ollama", "openai"),
        default="ollama",
        help="LLM provider.",
    )
    document_parser.add_argument(
        "--provider-url",
        default=None,
        help="Provider API endpoint URL; defaults to the provider's own host.",
    )
    document_parser.add_argument("--model", required=True, help="Provider model name.")
    document_parser.add_argument(
        "--fallback-model",
        default=None,
        help="Ollama model tried once when the primary model fails.",
    )
    document_parser.add_argument(
        "--language", default=DEFAULT_LANGUAGE, help="Documentation language."
    )
    document_parser.add_argument(
        "--cache-dir", default=DEFAULT_CACHE_DIR, help="LLM response cache directory."
    )
    document_parser.add_argument(
        "--output",
        default=DEFAULT_DOCUMENTATION_OUTPUT,
        help="Directory receiving one Markdown document per source file.",
    )
    document_parser.add_argument(
        "--progress-batch-size",
        type=int,
        default=10,
        help="Emit progress line every N completed documents.",
    )
    _add_common_arguments(document_parser)
    return parser


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--workers",
        type=int,
        default=DEFAULT_MAX_WORKERS,
        help="Maximum number of worker threads.",
    )
    parser.add_argument(
        "--verbose", action="store_true", help="Enable debug logging."
    )


def run(argv: list[str], stdout: TextIO, stderr: TextIO) -> int:
    """Run CLI command.

    Args:
        argv: CLI arguments.
        stdout: Standard output stream.
        stderr: Standard error stream.

    Returns:
        Exit code.
    """
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit:
        logger.warning(f"Argument parsing failed (argv={argv})")
        return 2
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)
    if args.workers <= 0:
        logger.warning(f"Invalid worker count (workers={args.workers})")
        stderr.write("workers must be > 0\n")
        return 2
    if args.command == "analyze":
        return _run_analyze(args=args, stdout=stdout, stderr=stderr)
    if args.command == "document":
        return _run_document(args=args, stdout=stdout, stderr=stderr)

    logger.warning(f"Unsupported command (command={args.command})")
    stderr.write(f"Unsupported command: {args.command}\n")
    return 2


def _run_analyze(args: argparse.Namespace, stdout: TextIO, stderr: TextIO) -> int:
    """Run analyze command.

    Args:
        args: Parsed CLI arguments.
        stdout: Standard output stream.
        stderr: Standard error stream.

    Returns:
        Exit code.
    """
    if args.top <= 0:
        logger.warning(f"Invalid top count (top={args.top})")
        stderr.write("top must be > 0\n")
        return 2
    built = _build_model(Path(args.path), workers=args.workers, stderr=stderr)
    if built is None:
        return 2
    model, _ = built

    _write_errors(errors=model.errors, stderr=stderr)
    if args.format == "json":
        _write_json(model=model, stdout=stdout)
        return 0
    if args.format == "table":
        _write_table(model=model, stdout=stdout)
        return 0

    output_root = Path(args.output)
    try:
        written = _write_reports(
            bundle=render_reports(model, top_n=args.top), output_root=output_root
        )
    except OSError as exc:
        logger.warning(f"Failed to write reports (output_path={output_root} error={exc})")
        stderr.write(f"Failed to write reports: {output_root}\n")
        return 2
    console = Console(file=stdout, force_terminal=False, color_system="truecolor")
    for path in written:
        console.print(f"wrote={path}", markup=False, highlight=False, soft_wrap=True)
    console.print(
        f"modules={len(model.records)} edges={model.graph.edge_count} "
        f"errors={len(model.errors)}",
        markup=False,
        highlight=False,
        soft_wrap=True,
    )
    return 0


def _run_document(args: argparse.Namespace, stdout: TextIO, stderr: TextIO) -> int:
    """Run document command.

    Args:
        args: Parsed CLI arguments.
        stdout: Standard output stream.
        stderr: Standard error stream.

    Returns:
        Exit code.
    """
    if args.progress_batch_size <= 0:
        logger.warning(
            f"Invalid progress batch size (progress_batch_size={args.progress_batch_size})"
        )
        stderr.write("progress-batch-size must be > 0\n")
        return 2
    built = _build_model(Path(args.path), workers=args.workers, stderr=stderr)
    if built is None:
        return 2
    model, sources = built

    llm_client = build_llm_client(
        provider=args.provider,
        provider_url=args.provider_url or DEFAULT_PROVIDER_URLS[args.provider],
        model=args.model,
        fallback_model=args.fallback_model,
    )
    documents = DocumentationGenerator(
        llm_client=llm_client,
        cache=ResponseCache(Path(args.cache_dir)),
        language=args.language,
        max_workers=args.workers,
        progress_batch_size=args.progress_batch_size,
    ).generate(model=model, sources=sources)

    _write_errors(errors=model.errors, stderr=stderr)
    output_root = Path(args.output)
    try:
        for document in documents:
            target = output_root / f"{document.path}.md"
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(document.content, encoding="utf-8")
    except OSError as exc:
        logger.warning(f"Failed to write documentation (output_path={output_root} error={exc})")
        stderr.write(f"Failed to write documentation: {output_root}\n")
        return 2

    failed = sum(1 for document in documents if document.status == "failed")
    cached = sum(1 for document in documents if document.status == "cached")
    logger.info(
        f"Documentation completed (path={args.path} documents={len(documents)} "
        f"cached={cached} failed={failed})"
    )
    console = Console(file=stdout, force_terminal=False, color_system="truecolor")
    console.print(
        f"documents={len(documents)} cached={cached} failed={failed} output={output_root}",
        markup=False,
        highlight=False,
        soft_wrap=True,
    )
    return 0


def build_llm_client(
    provider: str, provider_url: str, model: str, fallback_model: str | None = None
) -> LLMClient:
    """Create the configured LLM client.

    Args:
        provider: ``ollama`` or ``openai``.
        provider_url: Provider endpoint URL.
        model: Model name.
        fallback_model: Ollama fallback model name.

    Returns:
        Configured LLM client.
    """
    if provider == "openai":
        return OpenAIClient(provider_url=provider_url, model=model)
    return OllamaClient(
        provider_url=provider_url, model=model, fallback_model=fallback_model
    )


def _build_model(
    root_path: Path, workers: int, stderr: TextIO
) -> tuple[ArchitectureModel, list[SourceFile]] | None:
    try:
        paths = discover_sources(root_path)
    except DiscoveryError as exc:
        logger.warning(f"Discovery failed (path={root_path} error={exc})")
        stderr.write(f"{exc}\n")
        return None
    sources = read_sources(root_path, paths)
    model = ModelBuilder(max_workers=workers).build(sources)
    logger.info(
        f"Model build completed (path={root_path} modules={len(model.records)} "
        f"errors={len(model.errors)})"
    )
    return model, sources


def _write_errors(errors: tuple[AnalyzerError, ...], stderr: TextIO) -> None:
    for error in errors:
        stderr.write(f"analyzer_error: {error}\n")


def _write_reports(bundle: ReportBundle, output_root: Path) -> list[Path]:
    """Write every rendered report into the output directory.

    Raises:
        OSError: If directory creation or file writing fails.
    """
    output_root.mkdir(parents=True, exist_ok=True)
    written: list[Path] = []
    for field_name, filename in REPORT_FILENAMES.items():
        target = output_root / filename
        target.write_text(getattr(bundle, field_name), encoding="utf-8")
        written.append(target)
    return written


def _write_json(model: ArchitectureModel, stdout: TextIO) -> None:
    console = Console(file=stdout, force_terminal=False, color_system="truecolor")
    console.print(
        json.dumps(model_to_payload(model), indent=2, sort_keys=True, ensure_ascii=False),
        markup=False,
        highlight=False,
        soft_wrap=True,
    )


def _write_table(model: ArchitectureModel, stdout: TextIO) -> None:
    """Write modules as a Rich table.

    Args:
        model: Complete architecture model.
        stdout: Standard output stream.
    """
    console = Console(file=stdout, force_terminal=False, color_system="truecolor")
    console.rule("modules", style=Style(color="cyan"), characters="-")
    table = Table(show_header=True, show_lines=True, expand=True)
    table.add_column("path", ratio=TABLE_COLUMN_RATIOS["path"], overflow="fold")
    table.add_column("layer", ratio=TABLE_COLUMN_RATIOS["layer"], overflow="fold")
    for name in ("complexity", "functions", "classes", "dependencies", "resolved"):
        table.add_column(name, ratio=TABLE_COLUMN_RATIOS[name], justify="right", overflow="fold")
    for record in model.records:
        table.add_row(
            record.path,
            model.layer_of(record),
            f"{tier_glyph(record.complexity)} {record.complexity} ({complexity_band(record.complexity)})",
            str(len(record.functions)),
            str(len(record.classes)),
            str(len(record.dependencies)),
            str(len(model.graph.targets(record.path))),
        )
    console.print(table)


def main() -> None:
    """Run the CLI application and exit."""
    configure_logging()
    exit_code = run(sys.argv[1:], stdout=sys.stdout, stderr=sys.stderr)
    raise SystemExit(exit_code)


if __name__ == "__main__":
    main()
