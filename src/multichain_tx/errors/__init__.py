"""
Exception hierarchy for the multichain transaction engine.

All exceptions inherit from TxEngineError. Errors recorded on a
transaction are wrapped in the stage-tagged TransactionError.
"""

from multichain_tx.errors.base import (
    CleanupError,
    ConfigurationError,
    ConnectionFailedError,
    GasEstimationError,
    InvalidParamsError,
    InvalidStateTransitionError,
    RequestTimeoutError,
    SimulationFailedError,
    TransactionFailedError,
    TransactionNotFoundError,
    TransactionRevertedError,
    TxEngineError,
    ValidationError,
)
from multichain_tx.errors.session import (
    SESSION_ERROR_CODE,
    ProviderError,
    SessionError,
    is_session_error,
    to_session_error,
)
from multichain_tx.errors.transaction import TransactionError, TransactionStage

__all__ = [
    "TxEngineError",
    "ValidationError",
    "InvalidStateTransitionError",
    "ConfigurationError",
    "InvalidParamsError",
    "TransactionNotFoundError",
    "TransactionFailedError",
    "TransactionRevertedError",
    "RequestTimeoutError",
    "SimulationFailedError",
    "GasEstimationError",
    "ConnectionFailedError",
    "CleanupError",
    # Provider / session
    "ProviderError",
    "SessionError",
    "SESSION_ERROR_CODE",
    "is_session_error",
    "to_session_error",
    # Stage-tagged
    "TransactionError",
    "TransactionStage",
]
