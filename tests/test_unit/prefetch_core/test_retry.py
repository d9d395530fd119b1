"""Tests for the retry engine."""

from unittest.mock import AsyncMock

import pytest

from prefetch_core.retry import RetryConfig, RetryEngine, create_retry_engine


class TestRetryConfig:
    """Test RetryConfig validation."""

    def test_defaults(self) -> None:
        config = RetryConfig()
        assert config.max_retries == 2
        assert config.base_delay == 0.5
        assert config.max_delay == 5.0

    def test_invalid_max_retries(self) -> None:
        with pytest.raises(ValueError, match="max_retries must be non-negative"):
            RetryConfig(max_retries=-1)

    def test_invalid_base_delay(self) -> None:
        with pytest.raises(ValueError, match="base_delay must be non-negative"):
            RetryConfig(base_delay=-0.1)

    def test_invalid_exponential_base(self) -> None:
        with pytest.raises(ValueError, match="exponential_base must be greater than 1"):
            RetryConfig(exponential_base=1.0)

    def test_invalid_jitter_range(self) -> None:
        with pytest.raises(ValueError, match="jitter_range must be"):
            RetryConfig(jitter_range=(1.0, 0.5))


class TestRetryEngine:
    """Test RetryEngine functionality."""

    def test_calculate_delay_no_jitter(self) -> None:
        engine = RetryEngine(RetryConfig(base_delay=1.0, max_delay=5.0, jitter=False))

        assert engine.calculate_delay(0) == 1.0
        assert engine.calculate_delay(1) == 2.0
        assert engine.calculate_delay(2) == 4.0
        assert engine.calculate_delay(3) == 5.0  # capped at max_delay

    def test_calculate_delay_with_jitter(self) -> None:
        engine = RetryEngine(RetryConfig(base_delay=1.0, jitter=True))

        for _ in range(20):
            assert 0.5 <= engine.calculate_delay(0) <= 1.5

    @pytest.mark.asyncio
    async def test_succeeds_after_failures(self) -> None:
        engine = create_retry_engine(max_retries=2, base_delay=0, jitter=False)
        func = AsyncMock(side_effect=[OSError("boom"), OSError("boom"), "ok"])

        assert await engine.execute_with_retry_async(func) == "ok"
        assert func.await_count == 3

    @pytest.mark.asyncio
    async def test_raises_last_error_when_exhausted(self) -> None:
        engine = create_retry_engine(max_retries=1, base_delay=0, jitter=False)
        func = AsyncMock(side_effect=[OSError("first"), OSError("second")])

        with pytest.raises(OSError, match="second"):
            await engine.execute_with_retry_async(func)
        assert func.await_count == 2

    @pytest.mark.asyncio
    async def test_should_retry_rejects_error(self) -> None:
        """Test that a permanent failure is raised without another attempt."""
        engine = create_retry_engine(max_retries=3, base_delay=0, jitter=False)
        func = AsyncMock(side_effect=ValueError("permanent"))

        with pytest.raises(ValueError, match="permanent"):
            await engine.execute_with_retry_async(
                func, should_retry=lambda e: not isinstance(e, ValueError)
            )
        assert func.await_count == 1

    @pytest.mark.asyncio
    async def test_zero_retries(self) -> None:
        engine = create_retry_engine(max_retries=0)
        func = AsyncMock(side_effect=OSError("once"))

        with pytest.raises(OSError):
            await engine.execute_with_retry_async(func)
        assert func.await_count == 1
