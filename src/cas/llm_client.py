# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""LLM client abstractions."""

from typing import Protocol


class DocumentationError(RuntimeError):
    """Represent a documentation generation failure."""


class LLMClient(Protocol):
    """Define documentation generation behavior for a provider client."""

    def generate_documentation(self, prompt: str) -> str:
        """Generate Markdown documentation for a prompt.

        Args:
            prompt: Complete documentation prompt including the source code.

        Returns:
            Generated Markdown text.

        Raises:
            DocumentationError: If generation fails or response is malformed.
        """
