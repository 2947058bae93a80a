# src/llm/retry.py — v2
"""Retry policy with exponential backoff for one-shot LLM calls.

Only transient failures (rate limit, timeout, server, connection) are
retried; anything else surfaces immediately.
"""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

logger = logging.getLogger(__name__)


class LLMRetryExhausted(Exception):
    """A one-shot LLM call failed for good (not retryable, or out of attempts)."""

    def __init__(self, operation: str, error_type: str, attempts: int, last_error: Exception):
        self.operation = operation
        self.error_type = error_type
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f"{operation} failed after {attempts} attempt(s) ({error_type}): {last_error}"
        )


@dataclass(frozen=True)
class RetryConfig:
    """Backoff policy for one class of transient failure."""

    max_retries: int
    base_delay_s: float
    backoff_factor: float = 2.0
    jitter: bool = True


DEFAULT_RETRY_CONFIGS: dict[str, RetryConfig] = {
    "rate_limit": RetryConfig(max_retries=3, base_delay_s=2.0),
    "timeout": RetryConfig(max_retries=2, base_delay_s=1.0, backoff_factor=1.0),
    "server_error": RetryConfig(max_retries=3, base_delay_s=5.0),
    "connection": RetryConfig(max_retries=2, base_delay_s=1.0),
}


def classify_error(error: Exception) -> str:
    """Map an SDK exception to a retry policy key, or "unknown"."""
    msg = str(error).lower()
    name = type(error).__name__.lower()

    if "ratelimit" in name or "429" in msg or "rate limit" in msg:
        return "rate_limit"
    if "timeout" in name or "timed out" in msg or "timeout" in msg:
        return "timeout"
    if "internalserver" in name or any(c in msg for c in ("500", "502", "503", "504")):
        return "server_error"
    if "connection" in name or "connection" in msg:
        return "connection"
    return "unknown"


def _backoff_delay(config: RetryConfig, attempt: int) -> float:
    """Seconds to wait before retry number ``attempt`` (0-based)."""
    delay = config.base_delay_s * (config.backoff_factor ** attempt)
    if config.jitter:
        delay *= 0.5 + random.random()  # noqa: S311
    return delay


async def with_retry(
    fn: Callable[..., Awaitable[Any]],
    *args: Any,
    operation: str = "llm_call",
    max_retries: int | None = None,
    retry_configs: dict[str, RetryConfig] | None = None,
    **kwargs: Any,
) -> Any:
    """Await ``fn`` until it succeeds or the retry policy gives up.

    Args:
        fn: Coroutine function to call.
        operation: Name used in logs and in the final error.
        max_retries: Upper bound applied on top of the per-type limits.
        retry_configs: Per error type configuration.

    Raises:
        LLMRetryExhausted: If the error is not retryable or retries run out.
    """
    configs = retry_configs or DEFAULT_RETRY_CONFIGS
    attempts = 0

    while True:
        try:
            return await fn(*args, **kwargs)
        except Exception as e:
            error_type = classify_error(e)
            attempts += 1
            config = configs.get(error_type)
            limit = config.max_retries if config else 0
            if max_retries is not None:
                limit = min(limit, max_retries)

            if config is None or attempts > limit:
                raise LLMRetryExhausted(operation, error_type, attempts, e) from e

            delay = _backoff_delay(config, attempts - 1)
            logger.warning(
                "%s: %s (attempt %d/%d), retrying in %.1fs",
                operation, error_type, attempts, limit, delay,
            )
            await asyncio.sleep(delay)
