# src/pipeline/synthesizer.py — v1
"""Document synthesizer — merge every batch analysis into one README.

Operates AFTER all batches are analyzed. Issues a single one-shot
generation request whose requested structure scales with the apparent
complexity of the analysis corpus, then cleans the result. Generation
failures never propagate: a deterministic fallback document embedding
the error message is returned instead.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Literal

from repodoc.config.settings import Settings
from repodoc.core.models import BatchResult
from repodoc.llm.models import Message
from repodoc.llm.retry import with_retry
from repodoc.pipeline.text_filters import clean_document, strip_boilerplate

if TYPE_CHECKING:
    from repodoc.llm.base_client import BaseLLMClient

logger = logging.getLogger(__name__)

_PROMPT_PATH = Path(__file__).parent / "prompts" / "synthesis.txt"

SYNTHESIS_SYSTEM_PROMPT = (
    "You are a technical documentation expert specialized in writing "
    "README.md files. Produce one complete, professionally formatted "
    "markdown document. Output only the README itself: no analysis "
    "headers, no commentary about the input, no JSON wrapping."
)

Complexity = Literal["simple", "moderate", "complex"]

_SECTIONS: dict[str, list[str]] = {
    "simple": [
        "Project Overview",
        "Installation",
        "Usage",
        "License",
    ],
    "moderate": [
        "Project Overview",
        "Features",
        "Technical Architecture",
        "Installation",
        "Usage",
        "Dependencies",
        "Contributing",
        "License",
    ],
    "complex": [
        "Project Overview",
        "Features",
        "Technical Architecture",
        "Project Structure",
        "Installation",
        "Configuration",
        "Usage",
        "API Documentation",
        "Dependencies",
        "Testing",
        "Contributing",
        "Future Roadmap",
        "License",
    ],
}

# (min analyzed batches, min corpus chars) needed to reach each tier
_MODERATE_THRESHOLD = (3, 4_000)
_COMPLEX_THRESHOLD = (8, 12_000)


def build_fallback_document(message: str) -> str:
    """Deterministic README shown when synthesis cannot produce a document."""
    return (
        "# README Generation Error\n"
        "\n"
        "## Error Details\n"
        f"{message or 'An unknown error occurred'}\n"
        "\n"
        "## Manual Steps\n"
        "1. Review the batch analysis output in the logs\n"
        "2. Check the generation backend configuration (provider, model, API key)\n"
        "3. Re-run the generation once the backend is reachable\n"
    )


def build_corpus(results: list[BatchResult]) -> str:
    """Concatenate usable batch analyses, minus boilerplate banners."""
    parts: list[str] = []
    for result in results:
        if result.degraded:
            continue
        text = strip_boilerplate(result.raw_text).strip()
        if text:
            parts.append(text)
    return "\n\n".join(parts)


def assess_complexity(corpus: str, analyzed_batches: int) -> Complexity:
    """Classify the project from how much analysis material it produced."""
    batches, chars = _COMPLEX_THRESHOLD
    if analyzed_batches >= batches or len(corpus) >= chars:
        return "complex"
    batches, chars = _MODERATE_THRESHOLD
    if analyzed_batches >= batches or len(corpus) >= chars:
        return "moderate"
    return "simple"


class DocumentSynthesizer:
    """Turn the ordered batch results of a run into the final README."""

    def __init__(self, llm: BaseLLMClient, settings: Settings | None = None) -> None:
        settings = settings or Settings()
        self._llm = llm
        self._temperature = settings.synthesis_temperature
        self._max_tokens = settings.synthesis_max_tokens
        self._max_retries = settings.synthesis_max_retries
        self._prompt_template: str | None = None

    def _load_prompt(self) -> str:
        if self._prompt_template is None:
            self._prompt_template = _PROMPT_PATH.read_text(encoding="utf-8")
        return self._prompt_template

    def build_prompt(self, corpus: str, analyzed_batches: int) -> str:
        complexity = assess_complexity(corpus, analyzed_batches)
        sections = "\n".join(
            f"{i}. {name}" for i, name in enumerate(_SECTIONS[complexity], start=1)
        )
        diagram = (
            "Include a mermaid diagram of the main components in Technical Architecture."
            if complexity == "complex"
            else "Do not include diagrams."
        )
        return self._load_prompt().format(
            complexity=complexity,
            sections=sections,
            diagram_instruction=diagram,
            batch_count=analyzed_batches,
            corpus=corpus,
        )

    async def synthesize(self, results: list[BatchResult]) -> str:
        """Produce the README text; always returns a non-empty document."""
        corpus = build_corpus(results)
        analyzed = sum(1 for r in results if not r.degraded)
        if not corpus:
            logger.error(
                "No usable analysis in %d batch(es); returning fallback document",
                len(results),
            )
            return build_fallback_document(
                f"No analysis was produced for any of the {len(results)} batch(es) "
                "sent to the generation backend."
            )

        prompt = self.build_prompt(corpus, analyzed)
        logger.info(
            "Synthesizing README from %d/%d analyzed batches (%d chars)",
            analyzed, len(results), len(corpus),
        )
        try:
            response = await with_retry(
                self._llm.complete,
                messages=[Message(role="user", content=prompt)],
                system=SYNTHESIS_SYSTEM_PROMPT,
                max_tokens=self._max_tokens,
                temperature=self._temperature,
                operation="synthesizer",
                max_retries=self._max_retries,
            )
        except Exception as exc:
            logger.error("README synthesis failed: %s", exc)
            return build_fallback_document(str(exc))

        document = clean_document(response.content)
        if not document:
            logger.warning("Synthesis returned an empty document")
            return build_fallback_document(
                "The generation backend returned an empty document."
            )
        return document
