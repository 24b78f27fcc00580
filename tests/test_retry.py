"""
Tests for the rate-limit retry wrapper and error classification.
"""

from unittest.mock import AsyncMock

import pytest

from research_swarm.core.errors import (
    ErrorKind,
    GENERIC_MESSAGE,
    RATE_LIMIT_MESSAGE,
    classify_error,
    error_message,
    is_rate_limit_error,
)
from research_swarm.core.retry import MAX_RETRIES, with_retry


class TestRateLimitClassification:

    @pytest.mark.parametrize("message", [
        "Error code: 429 - too many requests",
        "RESOURCE_EXHAUSTED: quota used up",
        "rate_limit_error",
        "You hit a Rate Limit, slow down",
    ])
    def test_rate_limit_markers(self, message):
        assert is_rate_limit_error(RuntimeError(message))
        assert classify_error(RuntimeError(message)) is ErrorKind.RATE_LIMIT

    def test_other_failures_are_generic(self):
        error = ValueError("connection reset by peer")
        assert not is_rate_limit_error(error)
        assert classify_error(error) is ErrorKind.GENERIC

    def test_messages_per_kind(self):
        assert error_message(ErrorKind.RATE_LIMIT) == RATE_LIMIT_MESSAGE
        assert error_message(ErrorKind.GENERIC) == GENERIC_MESSAGE


class TestWithRetry:

    @pytest.mark.asyncio
    async def test_success_on_first_attempt(self, no_sleep):
        operation = AsyncMock(return_value="ok")

        assert await with_retry(operation, sleep=no_sleep) == "ok"
        assert operation.await_count == 1
        assert no_sleep.delays == []

    @pytest.mark.asyncio
    async def test_recovers_after_rate_limits(self, no_sleep):
        operation = AsyncMock(side_effect=[RuntimeError("429"), RuntimeError("429"), "done"])

        assert await with_retry(operation, sleep=no_sleep) == "done"
        assert operation.await_count == 3
        assert len(no_sleep.delays) == 2

    @pytest.mark.asyncio
    async def test_backoff_is_exponential_with_jitter(self, no_sleep):
        operation = AsyncMock(side_effect=RuntimeError("rate limit"))

        with pytest.raises(RuntimeError):
            await with_retry(operation, sleep=no_sleep)

        assert len(no_sleep.delays) == MAX_RETRIES - 1
        for attempt, delay in enumerate(no_sleep.delays):
            assert 2 ** attempt <= delay < 2 ** attempt + 1

    @pytest.mark.asyncio
    async def test_exhaustion_reraises_the_last_failure(self, no_sleep):
        failures = [RuntimeError(f"429 attempt {i}") for i in range(MAX_RETRIES)]
        operation = AsyncMock(side_effect=failures)

        with pytest.raises(RuntimeError) as exc_info:
            await with_retry(operation, sleep=no_sleep)

        assert exc_info.value is failures[-1]
        assert operation.await_count == MAX_RETRIES

    @pytest.mark.asyncio
    async def test_non_rate_limit_failure_is_not_retried(self, no_sleep):
        operation = AsyncMock(side_effect=ValueError("bad request"))

        with pytest.raises(ValueError):
            await with_retry(operation, sleep=no_sleep)

        assert operation.await_count == 1
        assert no_sleep.delays == []

    @pytest.mark.asyncio
    async def test_custom_attempt_bound(self, no_sleep):
        operation = AsyncMock(side_effect=RuntimeError("429"))

        with pytest.raises(RuntimeError):
            await with_retry(operation, max_attempts=2, sleep=no_sleep)

        assert operation.await_count == 2
