# src/pipeline/observer.py — v1
"""Progress observer for pipeline runs.

Callbacks may be plain functions or coroutine functions. They are
invoked in strict batch order; a failing callback is logged and ignored.
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from typing import Any, Callable

from repodoc.core.models import BatchResult

logger = logging.getLogger(__name__)


@dataclass
class PipelineObserver:
    """Optional hooks: on_progress(pct), on_batch_start(i, total), on_batch_done(i, result)."""

    on_progress: Callable[[float], Any] | None = None
    on_batch_start: Callable[[int, int], Any] | None = None
    on_batch_done: Callable[[int, BatchResult], Any] | None = None

    async def progress(self, pct: float) -> None:
        await _notify("on_progress", self.on_progress, pct)

    async def batch_started(self, batch_index: int, total_batches: int) -> None:
        await _notify("on_batch_start", self.on_batch_start, batch_index, total_batches)

    async def batch_done(self, batch_index: int, result: BatchResult) -> None:
        await _notify("on_batch_done", self.on_batch_done, batch_index, result)


async def _notify(name: str, callback: Callable[..., Any] | None, *args: Any) -> None:
    if callback is None:
        return
    try:
        outcome = callback(*args)
        if inspect.isawaitable(outcome):
            await outcome
    except Exception:
        logger.warning("Observer callback %s raised; ignoring", name, exc_info=True)
