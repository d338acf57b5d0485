"""
Base exception class for the multichain transaction engine.

All engine exceptions inherit from TxEngineError, which provides
structured error information including error codes, transaction hashes,
and additional context details.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class TxEngineError(Exception):
    """
    Base exception for all transaction engine errors.

    Provides structured error information that can be serialized and logged.

    Attributes:
        message: Human-readable error description.
        code: Machine-readable error code (e.g., "transaction_reverted").
        tx_hash: Optional on-chain transaction hash related to the error.
        details: Optional dictionary with additional error context.

    Example:
        >>> raise TxEngineError(
        ...     "Transaction failed",
        ...     code="transaction_failed",
        ...     tx_hash="0x123...",
        ...     details={"gas_used": 21000}
        ... )
    """

    default_code = "tx_engine_error"

    def __init__(
        self,
        message: str,
        *,
        code: Optional[str] = None,
        tx_hash: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.tx_hash = tx_hash
        self.details = details or {}

    def __str__(self) -> str:
        """Return formatted error message."""
        parts = [f"[{self.code}] {self.message}"]
        if self.tx_hash:
            parts.append(f"(tx: {self.tx_hash[:10]}...)")
        return " ".join(parts)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"code={self.code!r}, "
            f"tx_hash={self.tx_hash!r}, "
            f"details={self.details!r})"
        )

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert exception to a dictionary for JSON serialization.

        Returns:
            Dictionary representation of the error.
        """
        return {
            "error": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "tx_hash": self.tx_hash,
            "details": self.details,
        }


class ValidationError(TxEngineError):
    """Raised when transaction parameters fail validation."""

    default_code = "validation_error"


class InvalidStateTransitionError(ValidationError):
    """Raised when a status change would break the transaction state machine."""

    default_code = "invalid_state_transition"

    def __init__(self, current: str, requested: str, *, transaction_id: Optional[str] = None) -> None:
        super().__init__(
            f"Cannot move transaction from '{current}' to '{requested}'",
            details={"current": current, "requested": requested, "transaction_id": transaction_id},
        )
        self.current = current
        self.requested = requested


class ConfigurationError(TxEngineError):
    """Raised for unknown chain types or unrecognized configuration keys."""

    default_code = "configuration_error"


class InvalidParamsError(TxEngineError):
    """Raised when an operation is called with unusable arguments."""

    default_code = "invalid_params"


class TransactionNotFoundError(TxEngineError):
    """Raised when a tracking id is not in the registry."""

    default_code = "not_found"

    def __init__(self, transaction_id: str) -> None:
        super().__init__(
            f"Transaction not found: {transaction_id}",
            details={"transaction_id": transaction_id},
        )
        self.transaction_id = transaction_id


class TransactionFailedError(TxEngineError):
    """Raised when the wallet or provider refuses or mangles a transaction."""

    default_code = "transaction_failed"


class TransactionRevertedError(TxEngineError):
    """Raised when a mined EVM transaction reports a zero status."""

    default_code = "transaction_reverted"


class RequestTimeoutError(TxEngineError):
    """Raised when no receipt arrives within the confirmation timeout."""

    default_code = "request_timeout"

    def __init__(self, message: str = "Transaction confirmation timeout", *, timeout_ms: Optional[int] = None, tx_hash: Optional[str] = None) -> None:
        details = {"timeout_ms": timeout_ms} if timeout_ms is not None else None
        super().__init__(message, tx_hash=tx_hash, details=details)
        self.timeout_ms = timeout_ms


class SimulationFailedError(TxEngineError):
    """Raised when a transaction simulation is rejected by the provider."""

    default_code = "simulation_failed"


class GasEstimationError(TxEngineError):
    """Raised when gas or fee estimation cannot be completed."""

    default_code = "gas_estimation_failed"


class ConnectionFailedError(TxEngineError):
    """Raised when the owning wallet session goes away."""

    default_code = "connection_failed"


class CleanupError(TxEngineError):
    """Delivered to outstanding waiters when the service is torn down."""

    default_code = "cleanup_failed"
