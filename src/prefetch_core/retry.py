"""Retry engine used by the fetch client.

This module provides exponential backoff with jitter for async operations,
retrying only the failures a predicate marks as transient.
"""

import asyncio
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

import structlog

# Get logger for this module
logger = structlog.get_logger(__name__)

T = TypeVar("T")


@dataclass
class RetryConfig:
    """Configuration for retry behavior."""

    max_retries: int = 2
    base_delay: float = 0.5
    max_delay: float = 5.0
    exponential_base: float = 2.0
    jitter: bool = True
    jitter_range: tuple[float, float] = (0.5, 1.5)

    def __post_init__(self) -> None:
        """Validate retry configuration."""
        if self.max_retries < 0:
            raise ValueError("max_retries must be non-negative")  # noqa: TRY003
        if self.base_delay < 0:
            raise ValueError("base_delay must be non-negative")  # noqa: TRY003
        if self.max_delay < 0:
            raise ValueError("max_delay must be non-negative")  # noqa: TRY003
        if self.exponential_base <= 1:
            raise ValueError("exponential_base must be greater than 1")  # noqa: TRY003
        if self.jitter_range[0] >= self.jitter_range[1]:
            raise ValueError(  # noqa: TRY003
                "jitter_range must be (min, max) where min < max"
            )


class RetryEngine:
    """Core retry engine that handles retry logic and backoff calculations."""

    def __init__(self, config: RetryConfig) -> None:
        self.config = config

    def calculate_delay(self, attempt: int) -> float:
        """Calculate delay for a specific retry attempt.

        Args:
            attempt: The retry attempt number (0-based).

        Returns:
            Delay in seconds before the next retry.
        """
        delay = min(
            self.config.base_delay * (self.config.exponential_base**attempt),
            self.config.max_delay,
        )

        if self.config.jitter:
            jitter_factor = random.uniform(*self.config.jitter_range)  # noqa: S311
            delay *= jitter_factor

        return delay

    async def execute_with_retry_async(
        self,
        func: Callable[[], Awaitable[T]],
        should_retry: Callable[[Exception], bool] = lambda _e: True,
    ) -> T:
        """Execute an async function with retry logic.

        Args:
            func: The async function to execute.
            should_retry: Predicate deciding whether a failure is transient.

        Returns:
            Result of the function execution.

        Raises:
            The last exception encountered if all retries fail, or the first
            exception ``should_retry`` rejects.
        """
        attempt = 0
        while True:
            try:
                return await func()
            except Exception as e:
                if attempt >= self.config.max_retries or not should_retry(e):
                    raise

                delay = self.calculate_delay(attempt)
                logger.debug(
                    "RETRYING_AFTER_FAILURE",
                    attempt=attempt + 1,
                    max_retries=self.config.max_retries,
                    delay=round(delay, 3),
                    error=str(e),
                )
                await asyncio.sleep(delay)
                attempt += 1


def create_retry_engine(
    max_retries: int = 2,
    base_delay: float = 0.5,
    max_delay: float = 5.0,
    exponential_base: float = 2.0,
    *,
    jitter: bool = True,
) -> RetryEngine:
    """Create a retry engine with the specified configuration.

    Args:
        max_retries: Maximum number of retry attempts.
        base_delay: Initial delay between retries in seconds.
        max_delay: Maximum delay between retries in seconds.
        exponential_base: Base for exponential backoff calculation.
        jitter: Whether to add random jitter to delays.

    Returns:
        Configured RetryEngine instance.
    """
    return RetryEngine(
        RetryConfig(
            max_retries=max_retries,
            base_delay=base_delay,
            max_delay=max_delay,
            exponential_base=exponential_base,
            jitter=jitter,
        )
    )
