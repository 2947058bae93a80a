# src/llm/adapters/openai_adapter.py — v2
"""OpenAI chat-completions adapter implementing BaseLLMClient.

Uses the official openai SDK. Any OpenAI-compatible endpoint (Groq,
vLLM, LM Studio) works by passing ``base_url``.
"""

from __future__ import annotations

import time
from typing import Any, AsyncIterator

from repodoc.llm.base_client import BaseLLMClient
from repodoc.llm.models import LLMResponse, Message


class OpenAIAdapter(BaseLLMClient):
    """OpenAI (and OpenAI-compatible) adapter."""

    def __init__(
        self,
        model: str = "gpt-4o-mini",
        api_key: str = "",
        base_url: str | None = None,
        timeout: float = 120.0,
        provider: str = "openai",
        **kwargs: Any,
    ):
        self._model = model
        self._api_key = api_key
        self._base_url = base_url
        self._timeout = timeout
        self._provider = provider
        self.__client = None

    @property
    def _client(self):
        """Lazy-init the async client (only on first API call)."""
        if self.__client is None:
            import openai

            self.__client = openai.AsyncOpenAI(
                api_key=self._api_key or None,
                base_url=self._base_url,
                timeout=self._timeout,
            )
        return self.__client

    async def complete(
        self,
        messages: list[Message],
        system: str | None = None,
        max_tokens: int = 2000,
        temperature: float = 0.3,
    ) -> LLMResponse:
        t0 = time.monotonic()
        resp = await self._client.chat.completions.create(
            model=self._model,
            messages=self._to_api_messages(messages, system),
            max_tokens=max_tokens,
            temperature=temperature,
        )
        latency = int((time.monotonic() - t0) * 1000)

        choice = resp.choices[0]
        usage = resp.usage
        return LLMResponse(
            content=choice.message.content or "",
            input_tokens=usage.prompt_tokens if usage else 0,
            output_tokens=usage.completion_tokens if usage else 0,
            model=self._model,
            provider=self._provider,
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
        response = await self._client.chat.completions.create(
            model=self._model,
            messages=self._to_api_messages(messages, system),
            max_tokens=max_tokens,
            temperature=temperature,
            stream=True,
        )
        try:
            async for event in response:
                if not event.choices:
                    continue
                delta = event.choices[0].delta.content
                if delta:
                    yield delta
        finally:
            await response.close()

    @property
    def provider_name(self) -> str:
        return self._provider

    @staticmethod
    def _to_api_messages(messages: list[Message], system: str | None) -> list[dict[str, Any]]:
        api_messages: list[dict[str, Any]] = []
        if system:
            api_messages.append({"role": "system", "content": system})
        for m in messages:
            api_messages.append({"role": m.role, "content": m.content})
        return api_messages
