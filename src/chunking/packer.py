# src/chunking/packer.py — v1
"""Pack file chunks into token-bounded analysis batches.

Chunks are grouped by (directory, kind) in first-seen group order,
sorted within each group by original path then part index, and appended
to one open batch that is closed whenever the next chunk would exceed
the budget. A chunk larger than the budget gets a batch of its own.
"""

from __future__ import annotations

import logging

from repodoc.chunking.estimator import DEFAULT_MAX_TOKENS
from repodoc.core.models import AnalysisBatch, FileChunk

logger = logging.getLogger(__name__)


class _OpenBatch:
    """Batch under construction; frozen into an AnalysisBatch on close."""

    def __init__(self, max_tokens: int) -> None:
        self.max_tokens = max_tokens
        self.files: list[FileChunk] = []
        self.total_tokens = 0
        self.notes: list[str] = []

    def add(self, chunk: FileChunk) -> None:
        self.files.append(chunk)
        self.total_tokens += chunk.estimated_tokens
        for note in _context_lines(chunk):
            if note not in self.notes:
                self.notes.append(note)

    def close(self) -> AnalysisBatch:
        return AnalysisBatch(
            files=list(self.files),
            total_estimated_tokens=self.total_tokens,
            max_tokens=self.max_tokens,
            context_note="\n".join(self.notes),
        )


def group_chunks(chunks: list[FileChunk]) -> dict[tuple[str, str], list[FileChunk]]:
    """Group chunks by (directory, kind), groups in order of first arrival."""
    groups: dict[tuple[str, str], list[FileChunk]] = {}
    for chunk in chunks:
        groups.setdefault((chunk.directory, chunk.kind), []).append(chunk)
    return {key: sorted(members, key=_sort_key) for key, members in groups.items()}


def pack_chunks(
    chunks: list[FileChunk],
    max_tokens: int = DEFAULT_MAX_TOKENS,
) -> list[AnalysisBatch]:
    """Partition chunks into batches of at most ``max_tokens`` estimated tokens.

    Every input chunk lands in exactly one batch; identical input always
    yields an identical partition.
    """
    batches: list[AnalysisBatch] = []
    current = _OpenBatch(max_tokens)

    for members in group_chunks(chunks).values():
        for chunk in members:
            if current.files and current.total_tokens + chunk.estimated_tokens > max_tokens:
                batches.append(current.close())
                current = _OpenBatch(max_tokens)
            if chunk.estimated_tokens > max_tokens:
                logger.warning(
                    "Chunk %s exceeds the batch budget (%d > %d tokens)",
                    chunk.path, chunk.estimated_tokens, max_tokens,
                )
            current.add(chunk)

    if current.files:
        batches.append(current.close())

    logger.debug("Packed %d chunks into %d batches", len(chunks), len(batches))
    return batches


def _sort_key(chunk: FileChunk) -> tuple[str, int]:
    return (chunk.original_path, chunk.part_index or 0)


def _context_lines(chunk: FileChunk) -> list[str]:
    lines: list[str] = []
    if chunk.is_partial:
        lines.append(
            f"Part {(chunk.part_index or 0) + 1} of {chunk.part_count} of {chunk.original_path}"
        )
    if chunk.directory:
        lines.append(f"Directory: {chunk.directory}")
    return lines
