# src/chunking/chunk_validator.py — v2
"""Batch validation ensuring packing guarantees.

Validates:
- Every chunk appears in exactly one batch (no drops, no duplicates)
- Batch token totals match their members
- Budget respected, except a lone oversized chunk (warning only)
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field

from repodoc.core.models import AnalysisBatch, FileChunk


@dataclass
class ValidationResult:
    """Result of batch validation."""

    valid: bool = True
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


def validate_batches(
    chunks: list[FileChunk],
    batches: list[AnalysisBatch],
    max_tokens: int,
) -> ValidationResult:
    """Validate a batch partition against the chunks it was built from.

    Args:
        chunks: Input chunks handed to the packer.
        batches: Packer output.
        max_tokens: Per-batch token budget.

    Returns:
        ValidationResult with errors and warnings.
    """
    result = ValidationResult()

    if not batches:
        if chunks:
            result.valid = False
            result.errors.append(f"{len(chunks)} chunks but no batches")
        else:
            result.warnings.append("Empty batch list")
        return result

    packed = Counter(_chunk_key(c) for b in batches for c in b.files)
    expected = Counter(_chunk_key(c) for c in chunks)

    for key, count in packed.items():
        if count > 1:
            result.valid = False
            result.errors.append(f"Chunk {_describe(key)} packed {count} times")
    missing = expected - packed
    for key in sorted(missing, key=_describe):
        result.valid = False
        result.errors.append(f"Chunk {_describe(key)} missing from all batches")
    unexpected = packed - expected
    for key in sorted(unexpected, key=_describe):
        result.valid = False
        result.errors.append(f"Chunk {_describe(key)} not present in input")

    for i, batch in enumerate(batches):
        if not batch.files:
            result.valid = False
            result.errors.append(f"Batch {i} is empty")
            continue

        actual = sum(c.estimated_tokens for c in batch.files)
        if actual != batch.total_estimated_tokens:
            result.valid = False
            result.errors.append(
                f"Batch {i} total {batch.total_estimated_tokens} != sum of members {actual}"
            )

        if actual > max_tokens:
            if len(batch.files) == 1:
                result.warnings.append(
                    f"Batch {i} overflows budget with single chunk "
                    f"{batch.files[0].path}: {actual} > {max_tokens}"
                )
            else:
                result.valid = False
                result.errors.append(
                    f"Batch {i} exceeds budget: {actual} > {max_tokens} "
                    f"across {len(batch.files)} chunks"
                )

    return result


def _chunk_key(chunk: FileChunk) -> tuple[str, int | None]:
    # Split parts are renamed "<path>:chunkN", which a real file may share.
    return (chunk.original_path, chunk.part_index)


def _describe(key: tuple[str, int | None]) -> str:
    path, part_index = key
    return path if part_index is None else f"{path} part {part_index + 1}"
