# tests/unit/llm/test_unit_retry.py — v1
"""Tests for llm/retry.py."""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import pytest

from repodoc.llm.retry import LLMRetryExhausted, RetryConfig, classify_error, with_retry


class TestClassifyError:
    @pytest.mark.parametrize("error,expected", [
        (RuntimeError("Error 429: rate limit reached"), "rate_limit"),
        (TimeoutError("request timed out"), "timeout"),
        (RuntimeError("502 Bad Gateway"), "server_error"),
        (ConnectionError("reset by peer"), "connection"),
        (ValueError("invalid prompt"), "unknown"),
    ])
    def test_classification(self, error, expected):
        assert classify_error(error) == expected


class TestWithRetry:
    @pytest.mark.asyncio
    async def test_success_first_try(self):
        fn = AsyncMock(return_value="ok")
        assert await with_retry(fn, 1, key="v") == "ok"
        fn.assert_awaited_once_with(1, key="v")

    @pytest.mark.asyncio
    @patch("repodoc.llm.retry.asyncio.sleep", new_callable=AsyncMock)
    async def test_retries_transient_error(self, mock_sleep):
        fn = AsyncMock(side_effect=[RuntimeError("429 rate limit"), "ok"])
        assert await with_retry(fn) == "ok"
        assert fn.await_count == 2
        mock_sleep.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_unknown_error_not_retried(self):
        fn = AsyncMock(side_effect=ValueError("bad request"))
        with pytest.raises(LLMRetryExhausted) as exc_info:
            await with_retry(fn, operation="synthesizer")
        assert fn.await_count == 1
        assert exc_info.value.error_type == "unknown"
        assert "synthesizer" in str(exc_info.value)

    @pytest.mark.asyncio
    @patch("repodoc.llm.retry.asyncio.sleep", new_callable=AsyncMock)
    async def test_max_retries_caps_attempts(self, mock_sleep):
        fn = AsyncMock(side_effect=RuntimeError("503 unavailable"))
        with pytest.raises(LLMRetryExhausted) as exc_info:
            await with_retry(fn, max_retries=1)
        assert fn.await_count == 2
        assert exc_info.value.attempts == 2

    @pytest.mark.asyncio
    @patch("repodoc.llm.retry.asyncio.sleep", new_callable=AsyncMock)
    async def test_custom_configs(self, mock_sleep):
        fn = AsyncMock(side_effect=ConnectionError("connection refused"))
        configs = {"connection": RetryConfig(max_retries=3, base_delay_s=0.1, jitter=False)}
        with pytest.raises(LLMRetryExhausted):
            await with_retry(fn, retry_configs=configs)
        assert fn.await_count == 4
        delays = [c.args[0] for c in mock_sleep.await_args_list]
        assert delays == pytest.approx([0.1, 0.2, 0.4])
