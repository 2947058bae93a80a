# src/llm/base_client.py — v2
"""Abstract LLM client interface: one-shot and streaming completion."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import AsyncIterator

from repodoc.llm.models import LLMResponse, Message


class BaseLLMClient(ABC):
    """Unified interface for all LLM providers."""

    @abstractmethod
    async def complete(
        self,
        messages: list[Message],
        system: str | None = None,
        max_tokens: int = 2000,
        temperature: float = 0.3,
    ) -> LLMResponse:
        """Complete a prompt and return the finished text."""

    @abstractmethod
    def stream(
        self,
        messages: list[Message],
        system: str | None = None,
        max_tokens: int = 1000,
        temperature: float = 0.3,
    ) -> AsyncIterator[str]:
        """Complete a prompt and yield text fragments as they arrive.

        The returned iterator is finite and single-use; retrying requires
        a fresh call.
        """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Provider identifier (openai, groq, anthropic, ollama)."""
