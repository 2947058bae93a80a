# tests/unit/pipeline/test_unit_stream_orchestrator.py — v1
"""Tests for pipeline/stream_orchestrator.py — BatchAnalyzer and BatchAnalysis."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from repodoc.config.settings import Settings
from repodoc.core.models import AnalysisBatch, FileChunk
from repodoc.pipeline.stream_orchestrator import (
    ANALYSIS_SYSTEM_PROMPT,
    BatchAnalysis,
    BatchAnalyzer,
)


async def _drain(analysis: BatchAnalysis) -> str:
    async for _ in analysis:
        pass
    return analysis.raw_text


@pytest.fixture
def batch() -> AnalysisBatch:
    chunk = FileChunk(
        path="src/app.py", original_path="src/app.py", content="x = 1",
        language="Python", estimated_tokens=2,
    )
    return AnalysisBatch(files=[chunk], total_estimated_tokens=2, max_tokens=3000)


class TestBatchAnalyzer:
    @pytest.mark.asyncio
    async def test_streams_cleaned_fragments(self, fake_llm_cls, batch, settings):
        llm = fake_llm_cls(stream_script=[['{"analysis": "Hel', "", 'lo"}']])
        analysis = BatchAnalyzer(llm, settings).analyze_batch(batch, 0, 1)

        fragments = [f async for f in analysis]

        assert fragments == ["Hel", "lo"]
        assert analysis.raw_text == "Hello"
        assert analysis.completed
        assert analysis.paths == ["src/app.py"]

    @pytest.mark.asyncio
    async def test_request_parameters(self, fake_llm, batch):
        settings = Settings(_env_file=None, analysis_temperature=0.7, analysis_max_tokens=321)
        await _drain(BatchAnalyzer(fake_llm, settings).analyze_batch(batch, 2, 4))

        call = fake_llm.stream_calls[0]
        assert call["system"] == ANALYSIS_SYSTEM_PROMPT
        assert call["temperature"] == 0.7
        assert call["max_tokens"] == 321
        assert call["prompt"].startswith("Analyzing repository chunk 3/4")

    @pytest.mark.asyncio
    async def test_error_mid_stream_propagates(self, fake_llm_cls, batch, settings):
        llm = fake_llm_cls(stream_script=[["part one ", RuntimeError("connection reset")]])
        analysis = BatchAnalyzer(llm, settings).analyze_batch(batch, 0, 1)

        with pytest.raises(RuntimeError, match="connection reset"):
            await _drain(analysis)

        assert analysis.raw_text == "part one "
        assert not analysis.completed
        assert llm.closed_streams == 1

    @pytest.mark.asyncio
    async def test_stream_is_single_use(self, fake_llm, batch, settings):
        analysis = BatchAnalyzer(fake_llm, settings).analyze_batch(batch, 0, 1)
        await _drain(analysis)

        with pytest.raises(RuntimeError, match="already consumed"):
            async for _ in analysis:
                pass
        assert len(fake_llm.stream_calls) == 1

    @pytest.mark.asyncio
    async def test_retry_requires_fresh_call(self, fake_llm_cls, batch, settings):
        llm = fake_llm_cls(stream_script=[RuntimeError("503"), ["second try"]])
        analyzer = BatchAnalyzer(llm, settings)

        with pytest.raises(RuntimeError):
            await _drain(analyzer.analyze_batch(batch, 0, 1))
        assert await _drain(analyzer.analyze_batch(batch, 0, 1)) == "second try"


class TestBatchAnalysis:
    @pytest.mark.asyncio
    async def test_aclose_before_iteration_releases_source(self):
        source = MagicMock()
        source.aclose = AsyncMock()
        analysis = BatchAnalysis(source, 0, 1, ["a.py"])

        await analysis.aclose()

        source.aclose.assert_awaited()

    @pytest.mark.asyncio
    async def test_aclose_mid_iteration(self, fake_llm_cls, batch, settings):
        llm = fake_llm_cls(stream_script=[["one", "two", "three"]])
        analysis = BatchAnalyzer(llm, settings).analyze_batch(batch, 0, 1)

        iterator = analysis.__aiter__()
        assert await iterator.__anext__() == "one"
        await analysis.aclose()

        assert llm.closed_streams == 1
        assert analysis.raw_text == "one"
        assert not analysis.completed
