"""
Proof-chain (Aztec) transaction management.
"""

from multichain_tx.proof.manager import AsyncCallbacks, AztecTransactionManager, SendFunction
from multichain_tx.proof.store import (
    InMemoryTransactionStore,
    RecordFactory,
    TransactionNotificationSink,
)

__all__ = [
    "AztecTransactionManager",
    "AsyncCallbacks",
    "SendFunction",
    "TransactionNotificationSink",
    "InMemoryTransactionStore",
    "RecordFactory",
]
