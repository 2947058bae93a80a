# src/pipeline/stream_orchestrator.py — v1
"""Per-batch streaming analysis against the generation backend.

``BatchAnalyzer.analyze_batch`` issues one streaming request and returns
a ``BatchAnalysis``: a single-use async iterable of cleaned fragments
whose accumulated text becomes the batch's ``raw_text``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, AsyncIterator

from repodoc.config.settings import Settings
from repodoc.core.models import AnalysisBatch
from repodoc.llm.models import Message
from repodoc.pipeline.prompt_builder import build_prompt
from repodoc.pipeline.text_filters import clean_fragment

if TYPE_CHECKING:
    from repodoc.llm.base_client import BaseLLMClient

logger = logging.getLogger(__name__)

ANALYSIS_SYSTEM_PROMPT = (
    "You are a code analysis assistant. Describe the files you are given in "
    "plain descriptive prose and markdown lists. Do not wrap your answer in "
    "JSON, do not comment on the request itself, and do not open sections "
    "with 'Analysis' headings."
)


class BatchAnalysis:
    """Lazy, finite, single-use stream of analysis fragments for one batch.

    Iterate it once; afterwards ``raw_text`` holds every cleaned fragment
    and ``completed`` tells whether the backend finished normally.
    """

    def __init__(
        self,
        source: AsyncIterator[str],
        batch_index: int,
        total_batches: int,
        paths: list[str],
    ) -> None:
        self._source = source
        self._iterator: AsyncIterator[str] | None = None
        self._fragments: list[str] = []
        self._completed = False
        self.batch_index = batch_index
        self.total_batches = total_batches
        self.paths = paths

    @property
    def raw_text(self) -> str:
        return "".join(self._fragments)

    @property
    def completed(self) -> bool:
        return self._completed

    def __aiter__(self) -> AsyncIterator[str]:
        if self._iterator is not None:
            raise RuntimeError(
                f"Analysis stream for batch {self.batch_index + 1} was already "
                "consumed; call analyze_batch again to retry"
            )
        self._iterator = self._iterate()
        return self._iterator

    async def _iterate(self) -> AsyncIterator[str]:
        try:
            async for fragment in self._source:
                cleaned = clean_fragment(fragment)
                if not cleaned:
                    continue
                self._fragments.append(cleaned)
                yield cleaned
            self._completed = True
        except Exception as exc:
            logger.error(
                "Analysis of batch %d/%d failed after %d chars (%s): %s",
                self.batch_index + 1, self.total_batches,
                len(self.raw_text), ", ".join(self.paths), exc,
            )
            raise
        finally:
            await self._close_source()

    async def aclose(self) -> None:
        """Release the backend stream, whether or not iteration finished."""
        if self._iterator is not None:
            await self._iterator.aclose()  # type: ignore[attr-defined]
        await self._close_source()

    async def _close_source(self) -> None:
        aclose = getattr(self._source, "aclose", None)
        if aclose is not None:
            await aclose()


class BatchAnalyzer:
    """Dispatch analysis batches to a streaming LLM client."""

    def __init__(self, llm: BaseLLMClient, settings: Settings | None = None) -> None:
        settings = settings or Settings()
        self._llm = llm
        self._temperature = settings.analysis_temperature
        self._max_tokens = settings.analysis_max_tokens

    def analyze_batch(
        self,
        batch: AnalysisBatch,
        batch_index: int,
        total_batches: int,
    ) -> BatchAnalysis:
        """Start the backend request for one batch and wrap its token stream."""
        prompt = build_prompt(batch, batch_index, total_batches)
        logger.debug(
            "Dispatching batch %d/%d: %d files, ~%d tokens",
            batch_index + 1, total_batches,
            len(batch.files), batch.total_estimated_tokens,
        )
        source = self._llm.stream(
            messages=[Message(role="user", content=prompt)],
            system=ANALYSIS_SYSTEM_PROMPT,
            max_tokens=self._max_tokens,
            temperature=self._temperature,
        )
        return BatchAnalysis(source, batch_index, total_batches, batch.paths)
