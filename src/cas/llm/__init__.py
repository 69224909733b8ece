# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""LLM client implementations for the code architecture scanner."""

from cas.llm.ollama_client import DEFAULT_OLLAMA_HOST, OllamaClient
from cas.llm.openai_client import OPENAI_DEFAULT_BASE_URL, OPENAI_DEFAULT_MODEL, OpenAIClient

__all__ = [
    "DEFAULT_OLLAMA_HOST",
    "OPENAI_DEFAULT_BASE_URL",
    "OPENAI_DEFAULT_MODEL",
    "OllamaClient",
    "OpenAIClient",
]
