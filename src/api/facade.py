# src/api/facade.py — v2
"""Public API facade — generate a README from repository files.

Usage:
    from repodoc.api.facade import generate_readme
    readme = await generate_readme(files, settings)

    # or relay the stream to a writable text sink (file, HTTP body adapter)
    await stream_to(run_pipeline(files, settings), sys.stdout)
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any, AsyncIterator, TextIO

from repodoc.config.settings import Settings
from repodoc.pipeline.driver import PipelineDriver, StreamTransportError

if TYPE_CHECKING:
    from repodoc.core.models import SourceFile
    from repodoc.pipeline.driver import LLMFactory
    from repodoc.pipeline.observer import PipelineObserver

logger = logging.getLogger(__name__)


async def generate_readme(
    files: Any,
    settings: Settings | None = None,
    llm_factory: LLMFactory | None = None,
    observer: PipelineObserver | None = None,
) -> str:
    """Run the full pipeline and return the finished README text.

    Args:
        files: SourceFile objects (or equivalent mappings).
        settings: Global settings. Loaded from .env if None.
        llm_factory: Callable(component) -> BaseLLMClient. Built from
            settings if None.
        observer: Optional progress hooks.

    Raises:
        PipelineInputError: If the file list is empty or unusable.
    """
    driver = PipelineDriver(settings=settings, llm_factory=llm_factory, observer=observer)
    parts: list[str] = []
    async for fragment in driver.run(files):
        parts.append(fragment)

    run = driver.last_run
    if run is not None and run.document is not None:
        return run.document
    return "".join(parts)


async def stream_to(stream: AsyncIterator[str], sink: TextIO) -> int:
    """Relay pipeline output to ``sink``, returning the number of chars written.

    A sink that rejects a write aborts the run: the pipeline stream is
    closed (releasing any in-flight backend call) and StreamTransportError
    is raised.
    """
    written = 0
    try:
        async for fragment in stream:
            try:
                sink.write(fragment)
                sink.flush()
            except (OSError, ValueError) as exc:
                logger.error("Output sink rejected write after %d chars: %s", written, exc)
                raise StreamTransportError(f"Output stream closed: {exc}") from exc
            written += len(fragment)
    finally:
        aclose = getattr(stream, "aclose", None)
        if aclose is not None:
            await aclose()
    return written


async def generate_readme_for_directory(
    root: str | Path,
    settings: Settings | None = None,
    llm_factory: LLMFactory | None = None,
    observer: PipelineObserver | None = None,
) -> str:
    """Read a local checkout and generate its README."""
    from repodoc.readers.local_reader import LocalRepositoryReader

    settings = settings or Settings()
    files: list[SourceFile] = LocalRepositoryReader(settings).list_files(str(root))
    return await generate_readme(files, settings, llm_factory=llm_factory, observer=observer)
