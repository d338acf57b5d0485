"""
Retry utilities for provider transport calls.

Provides exponential backoff with jitter. Only transport failures are
retried: errors the provider reports itself (including session errors)
are returned to the caller on the first attempt.
"""

from __future__ import annotations

import asyncio
import random
from dataclasses import dataclass, field
from functools import wraps
from typing import (
    Awaitable,
    Callable,
    Optional,
    Tuple,
    Type,
    TypeVar,
)

from multichain_tx.errors import is_session_error
from multichain_tx.utils.logging import get_logger

T = TypeVar("T")

_logger = get_logger(__name__)


class RetryableError(Exception):
    """
    Base class for errors that should be retried.

    Subclass this to create custom retryable errors.
    """

    pass


class TransientError(RetryableError):
    """
    Transient error that may succeed on retry.

    Examples: rate limits, temporary node unavailability.
    """

    pass


class PermanentError(Exception):
    """
    Permanent error that is never retried, whatever ``retryable_errors`` says.

    Examples: rejected signatures, invalid parameters.
    """

    pass


@dataclass
class RetryConfig:
    """
    Configuration for retry behavior.

    Example:
        ```python
        config = RetryConfig(
            max_attempts=5,
            base_delay_ms=200,
            retryable_errors=(httpx.TransportError,),
        )
        ```
    """

    max_attempts: int = 3
    """Maximum number of attempts, including the first one."""

    base_delay_ms: int = 500
    """Base delay in milliseconds for exponential backoff."""

    max_delay_ms: int = 10000
    """Maximum delay in milliseconds (cap for exponential growth)."""

    jitter: bool = True
    """Whether to add random jitter to delays."""

    exponential_base: float = 2.0
    """Base for exponential backoff calculation."""

    retryable_errors: Tuple[Type[BaseException], ...] = field(
        default_factory=lambda: (ConnectionError, TimeoutError, RetryableError)
    )
    """Exception types that trigger a retry."""


def calculate_delay(attempt: int, config: RetryConfig) -> float:
    """
    Calculate delay with exponential backoff and optional jitter.

    Args:
        attempt: Zero-based attempt number (0 = first retry)
        config: Retry configuration

    Returns:
        Delay in seconds
    """
    delay_ms = config.base_delay_ms * (config.exponential_base ** attempt)
    delay_ms = min(delay_ms, config.max_delay_ms)

    if config.jitter:
        # Full jitter
        delay_ms = random.uniform(0, delay_ms)

    return delay_ms / 1000


async def retry_async(
    fn: Callable[[], Awaitable[T]],
    config: Optional[RetryConfig] = None,
    *,
    description: str = "operation",
) -> T:
    """
    Execute an async callable with retry logic.

    Session errors and PermanentError are never retried, even when their
    type is listed in ``retryable_errors``.

    Args:
        fn: Async callable to execute (no arguments)
        config: Retry configuration (uses defaults if None)
        description: Name used in log messages

    Returns:
        Result of the callable

    Raises:
        The last exception if all attempts fail
    """
    config = config or RetryConfig()
    attempts = max(1, config.max_attempts)

    for attempt in range(attempts):
        try:
            return await fn()
        except config.retryable_errors as e:
            if isinstance(e, PermanentError) or is_session_error(e) or attempt >= attempts - 1:
                raise
            delay = calculate_delay(attempt, config)
            _logger.debug(
                "%s failed (attempt %d/%d), retrying in %.3fs: %s",
                description,
                attempt + 1,
                attempts,
                delay,
                e,
            )
            await asyncio.sleep(delay)

    raise RuntimeError("Retry exhausted without error")


def with_retry(
    config: Optional[RetryConfig] = None,
) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """
    Decorator for adding retry logic to async functions.

    Example:
        ```python
        @with_retry(RetryConfig(max_attempts=5, retryable_errors=(httpx.TransportError,)))
        async def fetch_block(client: httpx.AsyncClient, url: str) -> dict:
            response = await client.post(url, json=payload)
            return response.json()
        ```
    """

    def decorator(fn: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @wraps(fn)
        async def wrapper(*args: object, **kwargs: object) -> T:
            return await retry_async(
                lambda: fn(*args, **kwargs),
                config,
                description=fn.__name__,
            )

        return wrapper

    return decorator


__all__ = [
    "RetryConfig",
    "RetryableError",
    "TransientError",
    "PermanentError",
    "calculate_delay",
    "retry_async",
    "with_retry",
]
