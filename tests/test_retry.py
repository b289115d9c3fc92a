"""Tests for retry module."""

import pytest

from amzwp_core.errors import NetworkError, WordPressAPIError
from amzwp_core.retry import (
    retry_network,
    RetryExhaustedError,
    RetryContext,
    backoff_delay,
    is_retryable_status,
)


class TestRetryDecorator:
    """Test the retry_network decorator."""

    @pytest.mark.asyncio
    async def test_success_on_first_attempt(self):
        """Function succeeds on first try - no retries needed."""
        call_count = 0

        @retry_network(max_attempts=3, initial_delay=0.01)
        async def succeeds():
            nonlocal call_count
            call_count += 1
            return "success"

        result = await succeeds()
        assert result == "success"
        assert call_count == 1

    @pytest.mark.asyncio
    async def test_success_after_retry(self):
        """Function fails once, then succeeds."""
        call_count = 0

        @retry_network(max_attempts=3, initial_delay=0.01)
        async def fails_once():
            nonlocal call_count
            call_count += 1
            if call_count == 1:
                raise NetworkError("Timeout after 15s")
            return "success"

        result = await fails_once()
        assert result == "success"
        assert call_count == 2

    @pytest.mark.asyncio
    async def test_exhausted_retries(self):
        """Function keeps failing - exhausts all retries."""
        call_count = 0

        @retry_network(max_attempts=3, initial_delay=0.01)
        async def always_fails():
            nonlocal call_count
            call_count += 1
            raise NetworkError("HTTP 503", 503)

        with pytest.raises(RetryExhaustedError) as exc_info:
            await always_fails()

        assert call_count == 3
        assert exc_info.value.status_code == 503
        assert "3 attempts" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_client_error_status_not_retried(self):
        """A 404 will not improve on retry."""
        call_count = 0

        @retry_network(max_attempts=3, initial_delay=0.01)
        async def not_found():
            nonlocal call_count
            call_count += 1
            raise NetworkError("HTTP 404", 404)

        with pytest.raises(NetworkError) as exc_info:
            await not_found()

        assert call_count == 1
        assert not isinstance(exc_info.value, RetryExhaustedError)

    @pytest.mark.asyncio
    async def test_non_retryable_exception(self):
        """Non-network errors propagate immediately."""
        call_count = 0

        @retry_network(max_attempts=3, initial_delay=0.01)
        async def bad_payload():
            nonlocal call_count
            call_count += 1
            raise ValueError("not json")

        with pytest.raises(ValueError):
            await bad_payload()

        assert call_count == 1


class TestRetryContext:
    """Test RetryContext context manager."""

    @pytest.mark.asyncio
    async def test_success(self):
        async with RetryContext(max_attempts=3, initial_delay=0.01) as ctx:
            while ctx.should_retry():
                ctx.success()

        assert ctx.attempt == 0

    @pytest.mark.asyncio
    async def test_retry_then_success(self):
        outcomes = [WordPressAPIError("Direct Error [502]"), None]

        async with RetryContext(max_attempts=3, initial_delay=0.01) as ctx:
            while ctx.should_retry():
                error = outcomes.pop(0)
                if error is None:
                    ctx.success()
                else:
                    await ctx.failed(error)

        assert ctx.attempt == 1
        assert isinstance(ctx.last_error, WordPressAPIError)

    @pytest.mark.asyncio
    async def test_raises_when_exhausted(self):
        with pytest.raises(RetryExhaustedError):
            async with RetryContext(max_attempts=2, initial_delay=0.01) as ctx:
                while ctx.should_retry():
                    await ctx.failed(WordPressAPIError("Upload Failed"))


class TestHelpers:
    """Test backoff and status helpers."""

    def test_backoff_delay(self):
        assert backoff_delay(1, 1.0, 30.0) == 1.0
        assert backoff_delay(3, 1.0, 30.0) == 4.0
        assert backoff_delay(10, 1.0, 30.0) == 30.0

    @pytest.mark.parametrize("status,expected", [
        (None, True), (408, True), (429, True), (500, True), (503, True),
        (400, False), (401, False), (404, False),
    ])
    def test_is_retryable_status(self, status, expected):
        assert is_retryable_status(status) is expected

    def test_retry_exhausted_error_is_network_error(self):
        error = RetryExhaustedError("Failed after 3 attempts", 502)
        assert isinstance(error, NetworkError)
        assert error.status_code == 502
