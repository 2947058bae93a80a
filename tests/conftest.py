# tests/conftest.py — v2
"""Shared test fixtures for all unit and integration tests.

Provides sample source files, chunk builders and a scripted fake LLM
client. No external dependencies: all backend I/O is faked.
"""

from __future__ import annotations

import asyncio
from typing import Any, AsyncIterator, Callable

import pytest

from repodoc.config.settings import Settings
from repodoc.core.models import FileChunk, SourceFile
from repodoc.llm.base_client import BaseLLMClient
from repodoc.llm.models import LLMResponse, Message


class FakeLLMClient(BaseLLMClient):
    """Scripted backend.

    ``stream_script[i]`` drives the i-th ``stream`` call: a list of
    fragments (an Exception item raises mid-stream) or an Exception
    raised before the first fragment. Unscripted calls yield one
    fragment naming the call. ``complete_result`` is a string, an
    Exception, or a callable receiving the user prompt.
    """

    def __init__(
        self,
        stream_script: list[Any] | None = None,
        complete_result: str | Exception | Callable[[str], str] = "# Project\n\nGenerated README.",
    ) -> None:
        self.stream_script = list(stream_script or [])
        self.complete_result = complete_result
        self.stream_calls: list[dict[str, Any]] = []
        self.complete_calls: list[dict[str, Any]] = []
        self.closed_streams = 0

    async def complete(
        self,
        messages: list[Message],
        system: str | None = None,
        max_tokens: int = 2000,
        temperature: float = 0.3,
    ) -> LLMResponse:
        prompt = messages[-1].content
        self.complete_calls.append(
            {"prompt": prompt, "system": system, "max_tokens": max_tokens, "temperature": temperature}
        )
        result = self.complete_result
        if isinstance(result, Exception):
            raise result
        if callable(result):
            result = result(prompt)
        return LLMResponse(content=result, model="fake-model", provider="fake")

    def stream(
        self,
        messages: list[Message],
        system: str | None = None,
        max_tokens: int = 1000,
        temperature: float = 0.3,
    ) -> AsyncIterator[str]:
        index = len(self.stream_calls)
        self.stream_calls.append(
            {"prompt": messages[-1].content, "system": system,
             "max_tokens": max_tokens, "temperature": temperature}
        )
        script = (
            self.stream_script[index]
            if index < len(self.stream_script)
            else [f"Analysis for call {index + 1}."]
        )
        return self._emit(script)

    async def _emit(self, script: Any) -> AsyncIterator[str]:
        items = [script] if isinstance(script, Exception) else script
        try:
            for item in items:
                await asyncio.sleep(0)
                if isinstance(item, Exception):
                    raise item
                yield item
        finally:
            self.closed_streams += 1

    @property
    def provider_name(self) -> str:
        return "fake"


def make_chunk(
    path: str,
    tokens: int = 10,
    kind: str = "code",
    part_index: int | None = None,
    part_count: int | None = None,
    original_path: str | None = None,
) -> FileChunk:
    """FileChunk with an explicit token estimate."""
    return FileChunk(
        path=path,
        original_path=original_path or path,
        content="x" * tokens * 4,
        kind=kind,
        estimated_tokens=tokens,
        part_index=part_index,
        part_count=part_count,
    )


# === FIXTURES: Settings ===


@pytest.fixture
def settings() -> Settings:
    """Default settings, isolated from any local .env."""
    return Settings(_env_file=None)


# === FIXTURES: Sample data ===


@pytest.fixture
def sample_files() -> list[SourceFile]:
    """Small repository listing: code, docs, config and a directory."""
    return [
        SourceFile(path="src", entry_type="dir"),
        SourceFile.from_path_content("src/app.py", "def main():\n    return 42\n"),
        SourceFile.from_path_content("src/util.py", "def helper(x):\n    return x * 2\n"),
        SourceFile.from_path_content("README.md", "# Demo\n\nA demo project.\n"),
        SourceFile.from_path_content("pyproject.toml", "[project]\nname = 'demo'\n"),
    ]


# === FIXTURES: Fake LLM ===


@pytest.fixture
def fake_llm() -> FakeLLMClient:
    """Fake backend with default scripts."""
    return FakeLLMClient()


@pytest.fixture
def llm_factory(fake_llm: FakeLLMClient) -> Callable[[str], BaseLLMClient]:
    """Factory returning the same fake client for every component."""
    return lambda component: fake_llm


@pytest.fixture
def fake_llm_cls() -> type[FakeLLMClient]:
    """The fake client class, for tests that script their own backend."""
    return FakeLLMClient


@pytest.fixture
def chunk_factory() -> Callable[..., FileChunk]:
    """Builder for FileChunks with explicit token estimates."""
    return make_chunk
