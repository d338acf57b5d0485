"""
Shared fixtures for multichain transaction engine tests.
"""

from typing import Any, Callable, Dict, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest

from multichain_tx.proof import InMemoryTransactionStore
from multichain_tx.service import TransactionService


# =============================================================================
# Test Constants
# =============================================================================

VALID_ADDRESS = "0x742d35Cc6634C0532925a3b844Bc9e7595f7F1eD"
VALID_SENDER = "0x1234567890123456789012345678901234567890"
VALID_CONTRACT = "0xabcdefABCDEFabcdefABCDEFabcdefABCDEFabcd"

TX_HASH = "0x" + "1234567890abcdef" * 4
BLOCK_HASH = "0x" + "b" * 64

# base64 of b"solana transaction bytes"
SOLANA_TX = "c29sYW5hIHRyYW5zYWN0aW9uIGJ5dGVz"
SOLANA_SIGNATURE = "5VERv8NMvzbJMEkV8xnrLkEaWRtSz9CosKDYjCJjBRnbJLgp8uirBgmQpjKhoR4tjF3ZpRzrFmBV6UjKdiSZkQUW"

ONE_ETH_WEI = "1000000000000000000"
ONE_ETH_HEX = "0xde0b6b3a7640000"

FAST_CONFIG = {"pollingInterval": 10, "confirmationTimeout": 1000}


def evm_receipt(status: str = "0x1", **overrides: Any) -> Dict[str, Any]:
    """Raw EVM receipt as returned by eth_getTransactionReceipt."""
    receipt = {
        "transactionHash": TX_HASH,
        "blockHash": BLOCK_HASH,
        "blockNumber": "0x10",
        "from": VALID_SENDER,
        "to": VALID_ADDRESS,
        "gasUsed": "21000",
        "effectiveGasPrice": "1000000000",
        "cumulativeGasUsed": "42000",
        "status": status,
        "logs": [],
    }
    receipt.update(overrides)
    return receipt


def solana_receipt(err: Any = None) -> Dict[str, Any]:
    """Raw Solana getTransaction response."""
    return {
        "slot": 250000000,
        "blockTime": 1700000000,
        "transaction": {"signatures": [SOLANA_SIGNATURE]},
        "meta": {"err": err, "fee": 5000},
    }


# =============================================================================
# Provider Helpers
# =============================================================================


def sequence(*items: Any) -> Callable[[Any], Any]:
    """
    Handler returning ``items`` one per call, repeating the last one.

    Exception instances are raised instead of returned.
    """
    remaining = list(items)

    def handler(params: Any) -> Any:
        item = remaining.pop(0) if len(remaining) > 1 else remaining[0]
        if isinstance(item, BaseException):
            raise item
        return item

    return handler


def make_provider(handlers: Dict[str, Any]) -> MagicMock:
    """
    Create a mock provider dispatching on the RPC method name.

    A handler may be a plain value, an exception instance (raised) or a
    callable taking the call's params.
    """

    async def request(call: Dict[str, Any]) -> Any:
        method = call["method"]
        if method not in handlers:
            raise AssertionError(f"Unexpected provider method: {method}")
        handler = handlers[method]
        if isinstance(handler, BaseException):
            raise handler
        if callable(handler):
            return handler(call.get("params"))
        return handler

    provider = MagicMock()
    provider.request = AsyncMock(side_effect=request)
    return provider


def calls_for(provider: MagicMock, method: str) -> list:
    """All call shapes the provider received for ``method``."""
    return [c.args[0] for c in provider.request.call_args_list if c.args[0]["method"] == method]


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
async def service():
    """TransactionService with millisecond-scale polling, torn down inside the event loop."""
    svc = TransactionService(FAST_CONFIG)
    yield svc
    svc.cleanup()


@pytest.fixture
def store() -> InMemoryTransactionStore:
    return InMemoryTransactionStore(chain_id="aztec:31337")


@pytest.fixture
def evm_params() -> Dict[str, Any]:
    return {"to": VALID_ADDRESS, "value": ONE_ETH_WEI}


@pytest.fixture
def evm_provider() -> MagicMock:
    """Provider that accepts a send and returns a successful receipt on the second poll."""
    return make_provider(
        {
            "eth_sendTransaction": TX_HASH,
            "eth_getTransactionReceipt": sequence(None, evm_receipt()),
        }
    )


class StatusRecorder:
    """Listener collecting ``(tx_id, previous, new)`` tuples."""

    def __init__(self) -> None:
        self.events: list = []

    def __call__(self, record: Any, previous: Any) -> None:
        self.events.append((record.status_tracking_id, previous, record.status))

    def path(self, tx_id: Optional[str] = None) -> list:
        return [new for (tid, _, new) in self.events if tx_id is None or tid == tx_id]
