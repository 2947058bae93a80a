# tests/unit/pipeline/test_unit_synthesizer.py — v1
"""Tests for pipeline/synthesizer.py."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from repodoc.config.settings import Settings
from repodoc.core.models import BatchResult
from repodoc.llm.models import LLMResponse
from repodoc.pipeline.synthesizer import (
    SYNTHESIS_SYSTEM_PROMPT,
    DocumentSynthesizer,
    assess_complexity,
    build_corpus,
    build_fallback_document,
)


def _result(i: int, text: str, degraded: bool = False) -> BatchResult:
    return BatchResult(
        batch_index=i, total_batches=3, raw_text=text, degraded=degraded,
        error="backend down" if degraded else None,
    )


class TestBuildCorpus:
    def test_skips_degraded_and_boilerplate(self):
        corpus = build_corpus([
            _result(0, "# Repository Analysis\nUses Flask."),
            _result(1, "", degraded=True),
            _result(2, "Ships a CLI."),
        ])
        assert corpus == "Uses Flask.\n\nShips a CLI."

    def test_empty(self):
        assert build_corpus([_result(0, "  ")]) == ""


class TestAssessComplexity:
    @pytest.mark.parametrize("corpus,batches,expected", [
        ("short", 1, "simple"),
        ("x" * 4000, 1, "moderate"),
        ("short", 3, "moderate"),
        ("short", 8, "complex"),
        ("x" * 12000, 1, "complex"),
    ])
    def test_tiers(self, corpus, batches, expected):
        assert assess_complexity(corpus, batches) == expected


class TestFallbackDocument:
    def test_structure(self):
        doc = build_fallback_document("quota exceeded")
        assert doc.startswith("# README Generation Error\n\n## Error Details\nquota exceeded\n")
        assert "## Manual Steps" in doc

    def test_empty_message(self):
        assert "An unknown error occurred" in build_fallback_document("")


class TestDocumentSynthesizer:
    @pytest.mark.asyncio
    async def test_synthesize_cleans_output(self, fake_llm_cls, settings):
        llm = fake_llm_cls(complete_result="```markdown\n# Demo\n\n\n\nA tool.\n```")
        doc = await DocumentSynthesizer(llm, settings).synthesize([_result(0, "Uses Flask.")])

        assert doc == "# Demo\n\nA tool."
        call = llm.complete_calls[0]
        assert call["system"] == SYNTHESIS_SYSTEM_PROMPT
        assert call["temperature"] == settings.synthesis_temperature
        assert "Uses Flask." in call["prompt"]
        assert "Apparent project complexity: simple" in call["prompt"]

    @pytest.mark.asyncio
    async def test_complex_prompt_requests_diagram(self, fake_llm, settings):
        results = [_result(i, f"Module {i} analysis.") for i in range(8)]
        await DocumentSynthesizer(fake_llm, settings).synthesize(results)
        prompt = fake_llm.complete_calls[0]["prompt"]
        assert "mermaid" in prompt
        assert "API Documentation" in prompt

    @pytest.mark.asyncio
    async def test_all_degraded_skips_backend(self, fake_llm, settings):
        doc = await DocumentSynthesizer(fake_llm, settings).synthesize(
            [_result(0, "", degraded=True), _result(1, "", degraded=True)]
        )
        assert doc.startswith("# README Generation Error")
        assert fake_llm.complete_calls == []

    @pytest.mark.asyncio
    async def test_backend_error_returns_fallback(self, fake_llm_cls, settings):
        llm = fake_llm_cls(complete_result=ValueError("invalid api key"))
        doc = await DocumentSynthesizer(llm, settings).synthesize([_result(0, "Uses Flask.")])
        assert doc.startswith("# README Generation Error")
        assert "invalid api key" in doc

    @pytest.mark.asyncio
    async def test_empty_response_returns_fallback(self, fake_llm_cls, settings):
        llm = fake_llm_cls(complete_result="   \n")
        doc = await DocumentSynthesizer(llm, settings).synthesize([_result(0, "Uses Flask.")])
        assert doc.startswith("# README Generation Error")

    @pytest.mark.asyncio
    @patch("repodoc.llm.retry.asyncio.sleep", new_callable=AsyncMock)
    async def test_transient_error_retried(self, mock_sleep, settings):
        llm = MagicMock()
        llm.complete = AsyncMock(side_effect=[
            RuntimeError("429 rate limit"),
            LLMResponse(content="# Retried", model="m", provider="p"),
        ])
        doc = await DocumentSynthesizer(llm, settings).synthesize([_result(0, "Uses Flask.")])
        assert doc == "# Retried"
        assert llm.complete.await_count == 2

    @pytest.mark.asyncio
    async def test_retries_disabled(self):
        settings = Settings(_env_file=None, synthesis_max_retries=0)
        llm = MagicMock()
        llm.complete = AsyncMock(side_effect=RuntimeError("429 rate limit"))
        doc = await DocumentSynthesizer(llm, settings).synthesize([_result(0, "Uses Flask.")])
        assert doc.startswith("# README Generation Error")
        assert llm.complete.await_count == 1
