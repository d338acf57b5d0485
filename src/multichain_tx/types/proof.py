"""
Records specific to the Aztec (proof-chain) family.

Aztec transactions carry a client-side proving stage and are driven by
status notifications pushed from the wallet, so their records also keep
per-stage timings and whether the dApp is blocking on them (sync) or
tracking them in the background (async).
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional, Protocol, runtime_checkable

from multichain_tx.types.transaction import TransactionResult, TransactionStatus


class TransactionMode(str, Enum):
    """How the dApp is tracking a proof-chain transaction."""

    SYNC = "sync"
    ASYNC = "async"


@dataclass
class StageTiming:
    """Start/end timestamps (seconds) of one lifecycle stage."""

    start: float = field(default_factory=time.time)
    end: Optional[float] = None

    @property
    def duration(self) -> Optional[float]:
        if self.end is None:
            return None
        return self.end - self.start


@dataclass
class ProofTransactionResult(TransactionResult):
    """
    Proof-chain transaction record.

    Attributes:
        mode: Sync (blocking overlay) or async (background)
        stages: Timing per status the record has passed through
        provisional: True while the record is keyed by a locally generated
            placeholder id that may still be replaced by a wallet id
    """

    mode: TransactionMode = TransactionMode.SYNC
    stages: Dict[TransactionStatus, StageTiming] = field(default_factory=dict)
    provisional: bool = False


@runtime_checkable
class SentTransaction(Protocol):
    """What the wallet send primitive hands back."""

    chain_hash: str
    status_tracking_id: Optional[str]

    async def wait(self) -> Any:
        ...


@dataclass
class SentTx:
    """Plain SentTransaction implementation for wallets that return raw values."""

    chain_hash: str
    wait_fn: Callable[[], Awaitable[Any]]
    status_tracking_id: Optional[str] = None

    async def wait(self) -> Any:
        return await self.wait_fn()


__all__ = [
    "TransactionMode",
    "StageTiming",
    "ProofTransactionResult",
    "SentTransaction",
    "SentTx",
]
