# src/pipeline/state.py — v2
"""Per-run pipeline state owned by the driver.

Holds the input files, the chunk/batch partition, the append-only list
of batch results and the final document. Stages only move forward:
packing → analyzing → synthesizing → done (or failed).
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field

from repodoc.core.models import AnalysisBatch, BatchResult, FileChunk, SourceFile


class RunStage(str, Enum):
    PACKING = "packing"
    ANALYZING = "analyzing"
    SYNTHESIZING = "synthesizing"
    DONE = "done"
    FAILED = "failed"


_STAGE_ORDER = [RunStage.PACKING, RunStage.ANALYZING, RunStage.SYNTHESIZING, RunStage.DONE]


class PipelineRun(BaseModel):
    """State of one end-to-end pipeline invocation; never shared across runs."""

    # === IDENTITY ===
    run_id: str = Field(default_factory=lambda: uuid.uuid4().hex[:12])
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    stage: RunStage = RunStage.PACKING
    current_batch: int | None = None

    # === INPUT / PACKING ===
    files: list[SourceFile] = Field(default_factory=list)
    chunks: list[FileChunk] = Field(default_factory=list)
    batches: list[AnalysisBatch] = Field(default_factory=list)

    # === ANALYSIS / SYNTHESIS ===
    results: list[BatchResult] = Field(default_factory=list)
    document: str | None = None
    error: str | None = None

    @property
    def total_batches(self) -> int:
        return len(self.batches)

    @property
    def degraded_batches(self) -> list[int]:
        return [r.batch_index for r in self.results if r.degraded]

    @property
    def progress(self) -> float:
        if not self.batches:
            return 0.0
        return len(self.results) / len(self.batches) * 100

    def advance(self, stage: RunStage) -> None:
        """Move to a later stage; FAILED is reachable from any unfinished stage."""
        if self.stage in (RunStage.DONE, RunStage.FAILED):
            raise ValueError(f"Run {self.run_id} already finished ({self.stage.value})")
        if stage is not RunStage.FAILED and _STAGE_ORDER.index(stage) <= _STAGE_ORDER.index(self.stage):
            raise ValueError(
                f"Illegal stage transition {self.stage.value} -> {stage.value}"
            )
        self.stage = stage
        if stage is not RunStage.ANALYZING:
            self.current_batch = None

    def fail(self, error: str) -> None:
        if self.stage not in (RunStage.DONE, RunStage.FAILED):
            self.error = error
            self.advance(RunStage.FAILED)

    def record_result(self, result: BatchResult) -> None:
        """Append the next batch result (results arrive strictly in batch order)."""
        if self.stage is not RunStage.ANALYZING:
            raise ValueError(f"Cannot record batch results while {self.stage.value}")
        if result.batch_index != len(self.results):
            raise ValueError(
                f"Expected result for batch {len(self.results)}, got {result.batch_index}"
            )
        self.results.append(result)

    def set_document(self, document: str) -> None:
        if self.document is not None:
            raise ValueError(f"Run {self.run_id} already has a document")
        self.document = document
