# src/llm/adapters/ollama_adapter.py — v2
"""Ollama local LLM adapter implementing BaseLLMClient.

Uses the ollama Python SDK (``AsyncClient.chat`` with ``stream=True``).
"""

from __future__ import annotations

import time
from typing import Any, AsyncIterator

from repodoc.llm.base_client import BaseLLMClient
from repodoc.llm.models import LLMResponse, Message


class OllamaAdapter(BaseLLMClient):
    """Ollama local inference adapter."""

    def __init__(
        self,
        model: str = "llama3.1",
        base_url: str = "http://localhost:11434",
        timeout: float = 120.0,
        **kwargs: Any,
    ):
        self._model = model
        self._host = base_url
        self._timeout = timeout

    def _client(self):
        import ollama

        return ollama.AsyncClient(host=self._host, timeout=self._timeout)

    async def complete(
        self,
        messages: list[Message],
        system: str | None = None,
        max_tokens: int = 2000,
        temperature: float = 0.3,
    ) -> LLMResponse:
        t0 = time.monotonic()
        resp = await self._client().chat(
            model=self._model,
            messages=self._to_api_messages(messages, system),
            options={"num_predict": max_tokens, "temperature": temperature},
        )
        latency = int((time.monotonic() - t0) * 1000)

        return LLMResponse(
            content=resp["message"]["content"],
            input_tokens=resp.get("prompt_eval_count") or 0,
            output_tokens=resp.get("eval_count") or 0,
            model=self._model,
            provider="ollama",
            latency_ms=latency,
            raw_response=resp,
        )

    async def stream(
        self,
        messages: list[Message],
        system: str | None = None,
        max_tokens: int = 1000,
        temperature: float = 0.3,
    ) -> AsyncIterator[str]:
        parts = await self._client().chat(
            model=self._model,
            messages=self._to_api_messages(messages, system),
            options={"num_predict": max_tokens, "temperature": temperature},
            stream=True,
        )
        async for part in parts:
            text = part["message"]["content"]
            if text:
                yield text

    @property
    def provider_name(self) -> str:
        return "ollama"

    @staticmethod
    def _to_api_messages(messages: list[Message], system: str | None) -> list[dict[str, str]]:
        msgs: list[dict[str, str]] = []
        if system:
            msgs.append({"role": "system", "content": system})
        for m in messages:
            msgs.append({"role": m.role, "content": m.content})
        return msgs
