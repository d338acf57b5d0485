"""
Multichain transaction engine.

Sends transactions on EVM, Solana and Aztec chains through an injected
provider, then tracks each one to a terminal state.

Quick Start:
    >>> from multichain_tx import ChainType, EVMTransactionParams, TransactionService
    >>> import asyncio
    >>>
    >>> async def main(provider):
    ...     service = TransactionService({"confirmationTimeout": 30000})
    ...     result = await service.send_transaction(
    ...         EVMTransactionParams(
    ...             to="0x742d35Cc6634C0532925a3b844Bc9e7595f7F1eD",
    ...             value="1000000000000000000",
    ...         ),
    ...         provider,
    ...         ChainType.EVM,
    ...     )
    ...     receipt = await result.wait()
    ...     print(receipt.block_number)

Modules:
- `service`: TransactionService orchestrator and confirmation monitoring
- `proof`: AztecTransactionManager and the notification store
- `validation`: Per-chain parameter validation
- `formatting`: Provider call and receipt formatting
- `providers`: Provider contract and the HTTP JSON-RPC provider
- `errors`: Exception hierarchy, stage-tagged transaction errors
- `utils`: Logging, retry and id helpers
"""

from multichain_tx.version import __version__, __version_info__

# Configuration
from multichain_tx.config import JsonRpcProviderConfig, TransactionServiceConfig

# Errors
from multichain_tx.errors import (
    CleanupError,
    ConfigurationError,
    ConnectionFailedError,
    GasEstimationError,
    InvalidParamsError,
    InvalidStateTransitionError,
    ProviderError,
    RequestTimeoutError,
    SessionError,
    SimulationFailedError,
    TransactionError,
    TransactionFailedError,
    TransactionNotFoundError,
    TransactionRevertedError,
    TransactionStage,
    TxEngineError,
    ValidationError,
    is_session_error,
)

# Types
from multichain_tx.types import (
    AztecFeeOptions,
    AztecTransactionParams,
    ChainType,
    EVMTransactionParams,
    GasEstimationResult,
    ProofTransactionResult,
    SentTransaction,
    SentTx,
    SolanaSendOptions,
    SolanaTransactionParams,
    SupportedChain,
    TransactionHistoryFilter,
    TransactionMetadata,
    TransactionMode,
    TransactionReceipt,
    TransactionResult,
    TransactionStatus,
    TransactionValidationResult,
)

# Components
from multichain_tx.formatting import TransactionFormatter
from multichain_tx.proof import AsyncCallbacks, AztecTransactionManager, InMemoryTransactionStore
from multichain_tx.providers import BlockchainProvider, JsonRpcProvider
from multichain_tx.service import TransactionService
from multichain_tx.validation import TransactionValidator

# Logging
from multichain_tx.utils.logging import configure_logging, get_logger

__all__ = [
    "__version__",
    "__version_info__",
    # Configuration
    "TransactionServiceConfig",
    "JsonRpcProviderConfig",
    # Components
    "TransactionService",
    "TransactionValidator",
    "TransactionFormatter",
    "AztecTransactionManager",
    "AsyncCallbacks",
    "InMemoryTransactionStore",
    "BlockchainProvider",
    "JsonRpcProvider",
    # Types
    "ChainType",
    "SupportedChain",
    "TransactionStatus",
    "TransactionMetadata",
    "EVMTransactionParams",
    "SolanaSendOptions",
    "SolanaTransactionParams",
    "AztecFeeOptions",
    "AztecTransactionParams",
    "TransactionReceipt",
    "TransactionResult",
    "GasEstimationResult",
    "TransactionValidationResult",
    "TransactionHistoryFilter",
    "TransactionMode",
    "ProofTransactionResult",
    "SentTransaction",
    "SentTx",
    # Errors
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
    "ProviderError",
    "SessionError",
    "is_session_error",
    "TransactionError",
    "TransactionStage",
    # Logging
    "get_logger",
    "configure_logging",
]
