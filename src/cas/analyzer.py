"""Analyzer interfaces and DTOs for source extraction."""

from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Literal


FileKind = Literal["javascript", "typescript", "unsupported"]

SCRIPT_EXTENSIONS: dict[str, FileKind] = {
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".ts": "typescript",
    ".tsx": "typescript",
}


@dataclass(frozen=True)
class SourceFile:
    """Represent one source file read for analysis.

    Attributes:
        path: Project-relative POSIX path; the file identity.
        text: Raw source text; empty when the read failed.
        size: Byte length of the UTF-8 encoded text.
        read_error: Read failure detail, ``None`` when the read succeeded.
    """

    path: str
    text: str
    size: int
    read_error: str | None = None

    @classmethod
    def from_text(cls, path: str, text: str) -> "SourceFile":
        """Build a source file from already-read text."""
        return cls(path=path, text=text, size=len(text.encode("utf-8")))

    @classmethod
    def unreadable(cls, path: str, error: str) -> "SourceFile":
        """Build the placeholder for a file whose read failed."""
        return cls(path=path, text="", size=0, read_error=error)

    @property
    def kind(self) -> FileKind:
        return file_kind(self.path)


@dataclass(frozen=True)
class AnalyzerError:
    """Represent an analyzer error for one file."""

    file_path: str
    message: str


def file_kind(path: str) -> FileKind:
    """Infer the file kind from the path extension.

    Args:
        path: File path in any form.

    Returns:
        The file kind, ``"unsupported"`` for unknown extensions.
    """
    suffix = PurePosixPath(path.replace("\\", "/")).suffix.lower()
    return SCRIPT_EXTENSIONS.get(suffix, "unsupported")
