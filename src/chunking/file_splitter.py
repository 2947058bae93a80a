# src/chunking/file_splitter.py — v1
"""Split oversized files into ordered parts at semantic boundaries.

Boundaries are tried in priority order (paragraph, line, sentence, word)
and accepted only when they keep the part at least 75% full; otherwise
the raw cut length is used.
"""

from __future__ import annotations

import logging
import math

from repodoc.chunking.estimator import (
    DEFAULT_CHARS_PER_TOKEN,
    DEFAULT_MAX_TOKENS,
    estimate_tokens,
)
from repodoc.core.models import FileChunk, SourceFile

logger = logging.getLogger(__name__)

# (separator, number of separator chars kept with the preceding part)
_BOUNDARIES: tuple[tuple[str, int], ...] = (
    ("\n\n", 0),
    ("\n", 0),
    (". ", 1),
    (" ", 0),
)
_MIN_FILL_RATIO = 0.75


def find_split_point(content: str, cut: int) -> int:
    """Return where to cut ``content`` so the prefix is at most ``cut`` chars."""
    if cut >= len(content):
        return len(content)

    threshold = cut * _MIN_FILL_RATIO
    for separator, keep in _BOUNDARIES:
        # Last occurrence whose kept part still ends at or before the cut.
        idx = content.rfind(separator, 0, cut - keep + len(separator))
        if idx < 0 or idx < threshold:
            continue
        point = idx + keep
        if 0 < point <= cut:
            return point
    return cut


def split_file(
    file: SourceFile,
    max_tokens: int = DEFAULT_MAX_TOKENS,
    chars_per_token: int = DEFAULT_CHARS_PER_TOKEN,
) -> list[FileChunk]:
    """Divide one file into FileChunks bounded by ``max_tokens`` each.

    Files within budget map to a single chunk without part metadata.
    Empty or absent content yields no chunks.

    Args:
        file: Source file to split.
        max_tokens: Per-request token budget.
        chars_per_token: Estimation ratio.

    Returns:
        Ordered list of chunks; concatenating their contents reproduces
        the original modulo whitespace trimmed at each split point.
    """
    content = file.content or ""
    if not content:
        return []

    total_tokens = estimate_tokens(content, chars_per_token)
    if total_tokens <= max_tokens:
        return [_make_chunk(file, content, chars_per_token)]

    part_count = math.ceil(total_tokens / max_tokens)
    max_chars = max_tokens * chars_per_token

    parts: list[str] = []
    remaining = content
    while remaining:
        point = find_split_point(remaining, min(max_chars, len(remaining)))
        parts.append(remaining[:point])
        remaining = remaining[point:].strip()

    if len(parts) != part_count:
        logger.debug(
            "Split %s into %d parts (estimated %d)",
            file.path, len(parts), part_count,
        )

    multi = part_count > 1
    return [
        _make_chunk(
            file,
            part,
            chars_per_token,
            part_index=i,
            part_count=part_count,
            path=f"{file.path}:chunk{i + 1}" if multi else file.path,
        )
        for i, part in enumerate(parts)
    ]


def chunk_files(
    files: list[SourceFile],
    max_tokens: int = DEFAULT_MAX_TOKENS,
    chars_per_token: int = DEFAULT_CHARS_PER_TOKEN,
) -> list[FileChunk]:
    """Map every file with content to its chunks, preserving input order."""
    chunks: list[FileChunk] = []
    for f in files:
        if not f.has_content:
            continue
        chunks.extend(split_file(f, max_tokens=max_tokens, chars_per_token=chars_per_token))
    return chunks


def _make_chunk(
    file: SourceFile,
    content: str,
    chars_per_token: int,
    part_index: int | None = None,
    part_count: int | None = None,
    path: str | None = None,
) -> FileChunk:
    return FileChunk(
        path=path or file.path,
        original_path=file.path,
        content=content,
        size_bytes=len(content.encode("utf-8")),
        language=file.language,
        kind=file.kind,
        estimated_tokens=estimate_tokens(content, chars_per_token),
        part_index=part_index,
        part_count=part_count,
    )
