"""
Utilities for the multichain transaction engine.
"""

from multichain_tx.utils.ids import generate_id
from multichain_tx.utils.logging import (
    LogContext,
    configure_logging,
    disable_logging,
    enable_debug,
    get_logger,
    set_level,
)
from multichain_tx.utils.retry import (
    PermanentError,
    RetryableError,
    RetryConfig,
    TransientError,
    calculate_delay,
    retry_async,
    with_retry,
)

__all__ = [
    # Identifiers
    "generate_id",
    # Structured logging
    "get_logger",
    "configure_logging",
    "set_level",
    "disable_logging",
    "enable_debug",
    "LogContext",
    # Retry
    "RetryConfig",
    "calculate_delay",
    "retry_async",
    "with_retry",
    "RetryableError",
    "TransientError",
    "PermanentError",
]
