# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""LLM client Ollama implementation."""

import logging

import ollama

from cas.llm_client import DocumentationError

logger = logging.getLogger(__name__)

DEFAULT_OLLAMA_HOST: str = "http://localhost:11434"


class OllamaClient:
    """Generate documentation using an Ollama provider endpoint."""

    def __init__(
        self, provider_url: str, model: str, fallback_model: str | None = None
    ) -> None:
        """Initialize client configuration.

        Args:
            provider_url: Ollama endpoint base URL.
            model: Model identifier passed to Ollama.
            fallback_model: Model tried once when the primary model fails.
        """
        self._provider_url = provider_url
        self._model = model
        self._fallback_model = fallback_model
        self._client = ollama.Client(host=provider_url)

    def generate_documentation(self, prompt: str) -> str:
        """Generate documentation with the Ollama generate API.

        Args:
            prompt: Complete documentation prompt.

        Returns:
            Generated Markdown text.

        Raises:
            DocumentationError: If both the primary and the fallback model fail.
        """
        try:
            return self._generate(self._model, prompt)
        except DocumentationError:
            if not self._fallback_model or self._fallback_model == self._model:
                raise
            logger.warning(
                f"Retrying with fallback model (provider_url={self._provider_url} "
                f"model={self._model} fallback_model={self._fallback_model})"
            )
            return self._generate(self._fallback_model, prompt)

    def _generate(self, model: str, prompt: str) -> str:
        try:
            response = self._client.generate(model=model, prompt=prompt, stream=False)
        except (ollama.RequestError, ollama.ResponseError, OSError, ValueError) as exc:
            logger.warning(
                f"Ollama request failed (provider_url={self._provider_url} "
                f"model={model} error={exc})"
            )
            raise DocumentationError(str(exc)) from exc

        content = _extract_response_content(response)
        if not content:
            logger.warning(
                f"Ollama response did not contain documentation content "
                f"(provider_url={self._provider_url} model={model} response={response!r})"
            )
            raise DocumentationError(
                "Ollama response does not contain generation content."
            )
        return content


def _extract_response_content(response: object) -> str:
    """Extract generation content from an Ollama response object.

    Args:
        response: Ollama response object, typically mapping-like.

    Returns:
        Response content string, or empty string if unavailable.
    """
    if isinstance(response, dict):
        content = response.get("response")
        if isinstance(content, str):
            return content.strip()
    content_obj = getattr(response, "response", None)
    if isinstance(content_obj, str):
        return content_obj.strip()
    return ""
