# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""LLM client OpenAI implementation."""

import logging
from urllib.parse import urlparse

from openai import OpenAI, OpenAIError

from cas.llm_client import DocumentationError

logger = logging.getLogger(__name__)

OPENAI_DEFAULT_MODEL: str = "gpt-4.1-mini"
OPENAI_DEFAULT_BASE_URL: str = "https://api.openai.com/v1"
OPENAI_HOSTS: frozenset[str] = frozenset(
    {"openai", "openai.com", "www.openai.com", "api.openai.com"}
)

DOCUMENTATION_INSTRUCTIONS = (
    "You document JavaScript and TypeScript source files for engineers who "
    "are new to the codebase. Answer in Markdown only."
)


class OpenAIClient:
    """Generate documentation using OpenAI's Responses API."""

    def __init__(self, provider_url: str, model: str = OPENAI_DEFAULT_MODEL) -> None:
        """Initialize client configuration.

        Args:
            provider_url: OpenAI-compatible endpoint base URL or ``openai``.
            model: Model identifier used for generation.
        """
        self._provider_url = provider_url
        self._model = model
        self._client: OpenAI | None = None

    def generate_documentation(self, prompt: str) -> str:
        """Generate documentation with the OpenAI Responses API.

        Args:
            prompt: Complete documentation prompt.

        Returns:
            Generated Markdown text.

        Raises:
            DocumentationError: If request fails or response has no content.
        """
        client = self._get_client()
        try:
            response = client.responses.create(
                model=self._model,
                instructions=DOCUMENTATION_INSTRUCTIONS,
                input=prompt,
            )
        except (OpenAIError, AttributeError, OSError, ValueError) as exc:
            logger.warning(
                f"OpenAI request failed (provider_url={self._provider_url} "
                f"model={self._model} error={exc})"
            )
            raise DocumentationError(str(exc)) from exc

        output_text = getattr(response, "output_text", None)
        if not isinstance(output_text, str) or not output_text.strip():
            logger.warning(
                f"OpenAI response did not contain documentation content "
                f"(provider_url={self._provider_url} model={self._model})"
            )
            raise DocumentationError(
                "OpenAI response does not contain generation content."
            )
        return output_text.strip()

    def _get_client(self) -> OpenAI:
        if self._client is not None:
            return self._client
        try:
            self._client = OpenAI(base_url=normalize_provider_url(self._provider_url))
        except (OpenAIError, OSError, ValueError) as exc:
            logger.warning(
                f"OpenAI client initialization failed (provider_url={self._provider_url} "
                f"error={exc})"
            )
            raise DocumentationError(str(exc)) from exc
        return self._client


def normalize_provider_url(provider_url: str) -> str:
    """Normalize an OpenAI provider URL or alias to a base URL.

    Args:
        provider_url: User-provided provider URL or alias.

    Returns:
        Base URL for the OpenAI Python client.

    Raises:
        ValueError: If the provider URL is empty or has no host.
    """
    raw = provider_url.strip()
    if not raw:
        raise ValueError("Invalid OpenAI provider URL: value is empty.")
    if raw.lower().rstrip("/") in OPENAI_HOSTS:
        return OPENAI_DEFAULT_BASE_URL

    candidate = raw if "://" in raw else f"https://{raw}"
    parsed = urlparse(candidate)
    if not parsed.scheme or not parsed.netloc:
        raise ValueError(
            f"Invalid OpenAI provider URL: expected host URL, got '{provider_url}'."
        )
    if parsed.netloc.lower() in OPENAI_HOSTS:
        return OPENAI_DEFAULT_BASE_URL
    return candidate.rstrip("/")
