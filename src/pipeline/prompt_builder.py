# src/pipeline/prompt_builder.py — v1
"""Render an AnalysisBatch into the per-batch analysis prompt."""

from __future__ import annotations

from pathlib import Path

from repodoc.core.models import AnalysisBatch, FileChunk

_PROMPT_PATH = Path(__file__).parent / "prompts" / "batch_analysis.txt"
_template: str | None = None


def _load_template() -> str:
    global _template
    if _template is None:
        _template = _PROMPT_PATH.read_text(encoding="utf-8")
    return _template


def _fence_for(content: str) -> str:
    """Pick a backtick fence longer than any run inside the content."""
    longest = run = 0
    for ch in content:
        run = run + 1 if ch == "`" else 0
        longest = max(longest, run)
    return "`" * max(3, longest + 1)


def render_file(chunk: FileChunk) -> str:
    """Render one chunk as a path/type/language header plus fenced content."""
    fence = _fence_for(chunk.content)
    return (
        f"Path: {chunk.path}\n"
        f"Type: {chunk.kind}\n"
        f"Language: {chunk.language or 'N/A'}\n"
        f"Content:\n"
        f"{fence}{chunk.language or ''}\n"
        f"{chunk.content}\n"
        f"{fence}\n"
    )


def build_prompt(batch: AnalysisBatch, batch_index: int, total_batches: int) -> str:
    """Render the analysis request for batch ``batch_index`` (0-based) of ``total_batches``."""
    context = f"Context:\n{batch.context_note}\n" if batch.context_note else ""
    return _load_template().format(
        position=batch_index + 1,
        total=total_batches,
        kinds=", ".join(batch.kinds),
        context=context,
        files="\n".join(render_file(chunk) for chunk in batch.files),
    )
