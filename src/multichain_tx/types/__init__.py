"""
Type definitions for the multichain transaction engine.
"""

from multichain_tx.types.chain import ChainType, SupportedChain
from multichain_tx.types.proof import (
    ProofTransactionResult,
    SentTransaction,
    SentTx,
    StageTiming,
    TransactionMode,
)
from multichain_tx.types.transaction import (
    ACTIVE_STATUSES,
    LOADING_STATUSES,
    NON_TERMINAL_STATUSES,
    TERMINAL_STATUSES,
    AztecFeeOptions,
    AztecTransactionParams,
    BaseTransactionParams,
    EVMTransactionParams,
    GasEstimationResult,
    SolanaSendOptions,
    SolanaTransactionParams,
    TransactionHistoryFilter,
    TransactionMetadata,
    TransactionReceipt,
    TransactionRequest,
    TransactionResult,
    TransactionStatus,
    TransactionValidationResult,
    can_transition,
    request_metadata,
)

__all__ = [
    # Chain
    "ChainType",
    "SupportedChain",
    # Status
    "TransactionStatus",
    "TERMINAL_STATUSES",
    "NON_TERMINAL_STATUSES",
    "ACTIVE_STATUSES",
    "LOADING_STATUSES",
    "can_transition",
    # Requests
    "TransactionMetadata",
    "BaseTransactionParams",
    "EVMTransactionParams",
    "SolanaSendOptions",
    "SolanaTransactionParams",
    "AztecFeeOptions",
    "AztecTransactionParams",
    "TransactionRequest",
    "request_metadata",
    # Results
    "TransactionReceipt",
    "TransactionResult",
    "GasEstimationResult",
    "TransactionValidationResult",
    "TransactionHistoryFilter",
    # Proof chain
    "TransactionMode",
    "StageTiming",
    "ProofTransactionResult",
    "SentTransaction",
    "SentTx",
]
