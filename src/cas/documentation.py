# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Per-module documentation generation with an LLM client and response cache."""

import concurrent.futures
import hashlib
import json
import logging
import time
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from cas.analyzer import SourceFile
from cas.llm_client import DocumentationError, LLMClient
from cas.model import ArchitectureModel, ModuleRecord, complexity_band

logger = logging.getLogger(__name__)

DocumentStatus = Literal["success", "cached", "failed"]

DEFAULT_LANGUAGE = "English"
DEFAULT_CACHE_DIR = ".cache"
CACHE_KEY_LENGTH = 32

_PROMPT_TEMPLATE = """\
You are a lead expert in reverse engineering and JavaScript/TypeScript source code analysis.
Examine the file `{path}` for auditing, documentation and architectural understanding.

Use the strictly structured template below:

1. **General Purpose and Architecture**
   - Describe the business logic or user scenario addressed by the file.
   - Name the main architectural patterns (modules, layers, async/await, generators).
2. **Input and Output Data**
   - List public functions with their signatures, expected arguments and return types.
3. **Dependencies**
   - Enumerate external packages and internal modules with their roles, as a table.
4. **Side Effects and Environment Interaction**
   - Network calls, storage access, globals, DOM manipulation, cookies.
   - If none: "No side effects present in this file."
5. **Key Algorithms and Logic**
   - For each non-trivial part: what it does, a step-by-step example with real
     variable names, and potential edge cases.
6. **Potential Reverse Engineering / Injection Points**
   - Places where data interception or logic substitution is possible.
7. **Code Structure Tree and Summary**
   - A hierarchical tree of modules, functions and exports with their children.

**Response Requirements:**
- Be concise and focused.
- Include exact code snippets where necessary.
- If a section is not applicable, state "No relevant content."
- Respond strictly in {language}, whatever the language of this message or the code.
  Do not explain the choice of language and do not offer a translation.

**Source code for analysis:**

```{fence}
{code}
```
"""


@dataclass(frozen=True)
class FileDocument:
    """Represent the generated documentation of one module.

    Attributes:
        path: Project-relative path of the documented module.
        content: Complete Markdown document, header included.
        status: ``success``, ``cached`` (served from cache) or ``failed``.
        error: Failure detail when ``status`` is ``failed``.
    """

    path: str
    content: str
    status: DocumentStatus
    error: str | None = None


def build_documentation_prompt(code: str, path: str, language: str = DEFAULT_LANGUAGE) -> str:
    """Build the reverse-engineering documentation prompt for one file.

    Args:
        code: Source text of the file.
        path: Project-relative path of the file.
        language: Language the answer must be written in.

    Returns:
        Prompt text.
    """
    fence = "ts" if path.endswith((".ts", ".tsx")) else "js"
    return _PROMPT_TEMPLATE.format(path=path, language=language, fence=fence, code=code)


def render_document_header(record: ModuleRecord, layer: str) -> str:
    """Render the Markdown header placed above the generated body."""
    dependencies = "\n".join(
        f"- `{dependency}`" for dependency in sorted(record.dependencies)
    ) or "_No dependencies_"
    return (
        f"# `{record.path}`\n\n"
        f"- **Layer**: {layer}\n"
        f"- **Complexity**: {record.complexity} ({complexity_band(record.complexity)})\n\n"
        f"## Dependencies\n\n{dependencies}\n\n"
        "## Documentation\n\n"
    )


class ResponseCache:
    """Store LLM responses as JSON files keyed by a prompt digest."""

    def __init__(self, cache_dir: Path) -> None:
        self._cache_dir = cache_dir

    @staticmethod
    def key_for(prompt: str) -> str:
        return hashlib.sha256(prompt.encode("utf-8")).hexdigest()[:CACHE_KEY_LENGTH]

    def path_for(self, prompt: str) -> Path:
        return self._cache_dir / f"{self.key_for(prompt)}.json"

    def get(self, prompt: str) -> str | None:
        """Return the cached response for a prompt.

        Missing, unreadable and corrupt entries are all treated as misses.
        """
        cache_file = self.path_for(prompt)
        if not cache_file.exists():
            logger.debug(f"Cache miss (key={cache_file.stem})")
            return None
        try:
            payload = json.loads(cache_file.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            logger.warning(f"Ignoring unreadable cache entry (path={cache_file} error={exc})")
            return None
        response = payload.get("response") if isinstance(payload, dict) else None
        if not isinstance(response, str):
            logger.warning(f"Ignoring malformed cache entry (path={cache_file})")
            return None
        logger.debug(f"Cache hit (key={cache_file.stem})")
        return response

    def put(self, prompt: str, response: str) -> None:
        """Store a response; write failures are logged and otherwise ignored."""
        cache_file = self.path_for(prompt)
        try:
            self._cache_dir.mkdir(parents=True, exist_ok=True)
            cache_file.write_text(
                json.dumps({"prompt": prompt, "response": response}), encoding="utf-8"
            )
        except OSError as exc:
            logger.warning(f"Failed to write cache entry (path={cache_file} error={exc})")


class DocumentationGenerator:
    """Generate one Markdown document per module using an LLM client."""

    def __init__(
        self,
        llm_client: LLMClient,
        cache: ResponseCache | None = None,
        language: str = DEFAULT_LANGUAGE,
        max_workers: int = 4,
        progress_batch_size: int = 10,
    ) -> None:
        """Initialize the generator.

        Args:
            llm_client: Provider client for documentation generation.
            cache: Response cache; every module calls the client when omitted.
            language: Language the documentation must be written in.
            max_workers: Maximum number of worker threads used for client calls.
            progress_batch_size: Emit progress log line every N completed modules.

        Raises:
            ValueError: If ``progress_batch_size`` or ``max_workers`` is not greater
                than zero.
        """
        if progress_batch_size <= 0:
            raise ValueError("progress_batch_size must be > 0")
        if max_workers <= 0:
            raise ValueError("max_workers must be > 0")
        self._llm_client = llm_client
        self._cache = cache
        self._language = language
        self._max_workers = max_workers
        self._progress_batch_size = progress_batch_size

    def generate(
        self, model: ArchitectureModel, sources: Sequence[SourceFile]
    ) -> list[FileDocument]:
        """Generate documentation for every module of a model.

        Args:
            model: Complete architecture model.
            sources: Source files the model was built from.

        Returns:
            Documents in model record order; failed modules get a document
            whose body reports the failure.
        """
        texts = {source.path: source.text for source in sources}
        records = model.records
        total = len(records)
        documents: list[FileDocument | None] = [None] * total
        if total == 0:
            self._log_progress(completed=0, total=0, failed=0, eta_seconds=0)
            return []

        completed = 0
        failed = 0
        started_at = time.monotonic()
        with concurrent.futures.ThreadPoolExecutor(
            max_workers=self._max_workers
        ) as executor:
            future_to_index = {
                executor.submit(
                    self._generate_body,
                    build_documentation_prompt(
                        texts.get(record.path, ""), record.path, self._language
                    ),
                ): index
                for index, record in enumerate(records)
            }
            for future in concurrent.futures.as_completed(future_to_index):
                index = future_to_index[future]
                record = records[index]
                header = render_document_header(record, model.layer_of(record))
                try:
                    body, status = future.result()
                    documents[index] = FileDocument(
                        path=record.path, content=f"{header}{body}\n", status=status
                    )
                except DocumentationError as exc:
                    failed += 1
                    logger.warning(
                        f"Documentation generation failed (file_path={record.path} error={exc})"
                    )
                    documents[index] = FileDocument(
                        path=record.path,
                        content=f"{header}_Failed to generate documentation: {exc}_\n",
                        status="failed",
                        error=str(exc),
                    )

                completed += 1
                if completed % self._progress_batch_size == 0 or completed == total:
                    seconds_per_module = (time.monotonic() - started_at) / completed
                    self._log_progress(
                        completed=completed,
                        total=total,
                        failed=failed,
                        eta_seconds=int(round((total - completed) * seconds_per_module)),
                    )

        return [document for document in documents if document is not None]

    def _generate_body(self, prompt: str) -> tuple[str, DocumentStatus]:
        if self._cache is not None:
            cached = self._cache.get(prompt)
            if cached is not None:
                return cached, "cached"
        body = self._llm_client.generate_documentation(prompt)
        if not body.strip():
            raise DocumentationError("LLM client returned empty documentation.")
        if self._cache is not None:
            self._cache.put(prompt, body)
        return body, "success"

    def _log_progress(
        self, completed: int, total: int, failed: int, eta_seconds: int
    ) -> None:
        percent = 100.0 if total == 0 else (completed / total) * 100.0
        logger.info(
            "documentation_progress completed=%s total=%s failed=%s percent=%.2f eta_seconds=%s",
            completed,
            total,
            failed,
            percent,
            eta_seconds,
        )
