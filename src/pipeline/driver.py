# src/pipeline/driver.py — v1
"""Pipeline driver — top-level coroutine from source files to README.

Stages (forward only):
  Packing       deduplicate by path, validate input, split + pack chunks
  Analyzing     one streaming backend call per batch, strictly sequential;
                a failing batch is recorded as degraded and the run goes on
  Synthesizing  one one-shot call merging every batch analysis
  Done          the document has been written to the output stream

The output is an async iterator of text fragments. Closing it early
(``aclose()``) or cancelling the consuming task abandons the run and
releases the in-flight backend stream.

Usage:
    driver = PipelineDriver(settings, llm_factory)
    async for fragment in driver.run(files):
        sink.write(fragment)
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import aclosing
from typing import Any, AsyncIterator, Callable, Iterable, Mapping

from pydantic import ValidationError

from repodoc.chunking.chunk_validator import validate_batches
from repodoc.chunking.file_splitter import chunk_files
from repodoc.chunking.packer import pack_chunks
from repodoc.config.settings import Settings
from repodoc.core.models import BatchResult, SourceFile
from repodoc.llm.base_client import BaseLLMClient
from repodoc.logging.context import clear_context, set_run_context, set_stage_context
from repodoc.pipeline.observer import PipelineObserver
from repodoc.pipeline.state import PipelineRun, RunStage
from repodoc.pipeline.stream_orchestrator import BatchAnalyzer
from repodoc.pipeline.synthesizer import DocumentSynthesizer

logger = logging.getLogger(__name__)

LLMFactory = Callable[[str], BaseLLMClient]


class PipelineError(Exception):
    """Base class for errors surfaced to the pipeline caller."""


class PipelineInputError(PipelineError):
    """The file list is empty, malformed, or carries nothing to analyze."""


class PackingError(PipelineError):
    """Chunking or batch packing produced an invalid partition."""


class SynthesisError(PipelineError):
    """The synthesis stage crashed instead of returning a document."""


class StreamTransportError(PipelineError):
    """The output transport stopped accepting writes."""


def deduplicate_files(files: Iterable[SourceFile]) -> list[SourceFile]:
    """Keep the first entry for each path, preserving order."""
    seen: set[str] = set()
    unique: list[SourceFile] = []
    for f in files:
        if f.path in seen:
            logger.debug("Dropping duplicate entry for %s", f.path)
            continue
        seen.add(f.path)
        unique.append(f)
    return unique


def coerce_files(files: Any) -> list[SourceFile]:
    """Validate the caller's input into SourceFile objects.

    Accepts SourceFile instances or listing records (mappings with
    ``path``, ``content`` and ``type``); see ``SourceFile.from_record``.

    Raises:
        PipelineInputError: If the input is not a non-empty sequence of files.
    """
    if files is None or isinstance(files, (str, bytes)) or not isinstance(files, Iterable):
        raise PipelineInputError("Invalid input: a list of files is required")

    coerced: list[SourceFile] = []
    for i, item in enumerate(files):
        if isinstance(item, SourceFile):
            coerced.append(item)
            continue
        if not isinstance(item, Mapping):
            raise PipelineInputError(
                f"Invalid file entry at index {i}: expected a mapping, got {type(item).__name__}"
            )
        try:
            coerced.append(SourceFile.from_record(item))
        except ValidationError as exc:
            raise PipelineInputError(f"Invalid file entry at index {i}: {exc}") from exc

    if not coerced:
        raise PipelineInputError("Invalid input: the file list is empty")
    return coerced


class PipelineDriver:
    """Wire packing, streaming analysis and synthesis into one output stream.

    Args:
        settings: Application settings (budgets, sampling, streaming).
        llm_factory: Callable(component) -> BaseLLMClient, called with
            "batch_analyzer" and "synthesizer".
        observer: Optional progress hooks.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        llm_factory: LLMFactory | None = None,
        observer: PipelineObserver | None = None,
    ) -> None:
        self._settings = settings or Settings()
        if llm_factory is None:
            from repodoc.llm.client_factory import client_factory_from_settings

            llm_factory = client_factory_from_settings(self._settings)
        self._llm_factory = llm_factory
        self._observer = observer or PipelineObserver()
        self.last_run: PipelineRun | None = None

    async def run(self, files: Any) -> AsyncIterator[str]:
        """Run the pipeline, yielding output fragments.

        Raises:
            PipelineInputError: Before any backend call, for unusable input.
            PackingError: If the batch partition fails validation.
            SynthesisError: If the synthesis stage itself crashes.
        """
        run = PipelineRun()
        self.last_run = run
        set_run_context(run.run_id)
        set_stage_context(RunStage.PACKING.value)
        try:
            run.files = deduplicate_files(coerce_files(files))
            self._pack(run)

            emitted = False
            async with aclosing(self._analyze_all(run)) as fragments:
                async for fragment in fragments:
                    emitted = True
                    yield fragment

            document = await self._synthesize(run)
            if emitted:
                yield "\n\n"
            size = self._settings.output_chunk_size
            for start in range(0, len(document), size):
                yield document[start:start + size]

            run.advance(RunStage.DONE)
            logger.info(
                "Run %s complete: %d batches, %d degraded, %d chars",
                run.run_id, run.total_batches, len(run.degraded_batches), len(document),
            )
        except (GeneratorExit, asyncio.CancelledError):
            logger.warning(
                "Output stream closed by consumer during %s; abandoning run %s",
                run.stage.value, run.run_id,
            )
            run.fail("consumer disconnected")
            raise
        except PipelineError as exc:
            logger.error("Run %s failed during %s: %s", run.run_id, run.stage.value, exc)
            run.fail(str(exc))
            raise
        except Exception as exc:
            logger.exception("Run %s aborted during %s", run.run_id, run.stage.value)
            run.fail(str(exc))
            raise
        finally:
            clear_context()

    # --- Stages ---

    def _pack(self, run: PipelineRun) -> None:
        with_content = [f for f in run.files if f.has_content]
        if not with_content:
            raise PipelineInputError(
                f"None of the {len(run.files)} file entries carry content to analyze"
            )

        max_tokens = self._settings.chunk_max_tokens
        try:
            run.chunks = chunk_files(
                with_content,
                max_tokens=max_tokens,
                chars_per_token=self._settings.chars_per_token,
            )
            if not run.chunks:
                raise PipelineInputError("Every file with content is empty")
            run.batches = pack_chunks(run.chunks, max_tokens=max_tokens)
        except PipelineError:
            raise
        except Exception as exc:
            raise PackingError(f"Packing failed: {exc}") from exc

        validation = validate_batches(run.chunks, run.batches, max_tokens)
        for warning in validation.warnings:
            logger.warning("Packing: %s", warning)
        if not validation.valid:
            raise PackingError("; ".join(validation.errors))

        logger.info(
            "Packed %d files into %d chunks and %d batches (budget %d tokens)",
            len(with_content), len(run.chunks), run.total_batches, max_tokens,
        )

    async def _analyze_all(self, run: PipelineRun) -> AsyncIterator[str]:
        analyzer = BatchAnalyzer(self._llm_factory("batch_analyzer"), self._settings)
        total = run.total_batches
        run.advance(RunStage.ANALYZING)

        for i, batch in enumerate(run.batches):
            run.current_batch = i
            set_stage_context(RunStage.ANALYZING.value, i, total)
            await self._observer.batch_started(i, total)

            result = BatchResult(batch_index=i, total_batches=total, paths=batch.paths)
            analysis = None
            try:
                analysis = analyzer.analyze_batch(batch, i, total)
                async for fragment in analysis:
                    if self._settings.stream_batch_analysis:
                        yield fragment
                result.raw_text = analysis.raw_text
            except Exception as exc:
                logger.warning(
                    "Batch %d/%d degraded (%s): %s",
                    i + 1, total, ", ".join(batch.paths), exc,
                )
                result = BatchResult(
                    batch_index=i,
                    total_batches=total,
                    paths=batch.paths,
                    degraded=True,
                    error=str(exc) or type(exc).__name__,
                )
            finally:
                if analysis is not None:
                    await analysis.aclose()

            run.record_result(result)
            await self._observer.batch_done(i, result)
            await self._observer.progress((i + 1) / total * 100)

    async def _synthesize(self, run: PipelineRun) -> str:
        run.advance(RunStage.SYNTHESIZING)
        set_stage_context(RunStage.SYNTHESIZING.value)
        synthesizer = DocumentSynthesizer(self._llm_factory("synthesizer"), self._settings)
        try:
            document = await synthesizer.synthesize(run.results)
        except Exception as exc:
            raise SynthesisError(f"README synthesis crashed: {exc}") from exc
        run.set_document(document)
        return document


def run_pipeline(
    files: Any,
    settings: Settings | None = None,
    llm_factory: LLMFactory | None = None,
    observer: PipelineObserver | None = None,
) -> AsyncIterator[str]:
    """Convenience wrapper: ``PipelineDriver(...).run(files)``."""
    driver = PipelineDriver(settings=settings, llm_factory=llm_factory, observer=observer)
    return driver.run(files)
