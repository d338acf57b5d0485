#!/usr/bin/env python3
"""
Aztec Execute Example

Runs one blocking and one background contract interaction through the
AztecTransactionManager against a simulated wallet. The wallet pushes
status notifications under its own id before its send call returns,
the way a real Aztec wallet does during proof generation.

Run with: python examples/aztec_execute.py
"""

import asyncio
import itertools

from multichain_tx import (
    AsyncCallbacks,
    AztecTransactionManager,
    InMemoryTransactionStore,
    SentTx,
    TransactionStatus,
)

CHAIN_ID = "aztec:31337"
_counter = itertools.count(1)


class SimulatedWallet:
    """Pretends to prove, send and mine a transaction."""

    def __init__(self, store: InMemoryTransactionStore) -> None:
        self._store = store

    async def execute_tx(self, interaction: dict) -> SentTx:
        n = next(_counter)
        wallet_tx_id = f"wallet-tx-{n}"
        chain_hash = "0x" + f"{n:x}".rjust(64, "0")

        for status in (TransactionStatus.SIMULATING, TransactionStatus.PROVING):
            self._store.handle_notification(wallet_tx_id, status)
            await asyncio.sleep(0.2)
        self._store.handle_notification(wallet_tx_id, TransactionStatus.SENDING, chain_hash)

        async def wait() -> dict:
            await asyncio.sleep(0.3)
            self._store.handle_notification(wallet_tx_id, TransactionStatus.PENDING)
            return {"status": "success", "txHash": chain_hash}

        return SentTx(chain_hash=chain_hash, wait_fn=wait, status_tracking_id=wallet_tx_id)


def print_record(store: InMemoryTransactionStore, tx_id: str) -> None:
    record = store.get_transaction(tx_id)
    if record is None:
        print(f"  {tx_id}: <removed>")
        return
    stages = ", ".join(
        f"{status.value}={timing.duration or 0:.2f}s" for status, timing in record.stages.items()
    )
    print(f"  {tx_id}: {record.status.value} ({record.mode.value}) [{stages}]")


async def main() -> None:
    print("=" * 60)
    print("Multichain TX - Aztec execute")
    print("=" * 60)

    store = InMemoryTransactionStore(chain_id=CHAIN_ID)
    wallet = SimulatedWallet(store)
    manager = AztecTransactionManager(store, CHAIN_ID, wallet.execute_tx, wallet_id="simulated")

    interaction = {"contract": "0x" + "ab" * 20, "function": "transfer", "args": [1, 2]}

    receipt = await manager.execute_sync(interaction)
    print(f"Sync receipt: {receipt}")
    print_record(store, "wallet-tx-1")

    done = asyncio.Event()
    provisional_id = await manager.execute_async(
        interaction,
        AsyncCallbacks(
            on_success=lambda record: done.set(),
            on_error=lambda error: (print(f"Failed: {error}"), done.set()),
        ),
    )
    print(f"Async provisional id: {provisional_id}")
    print(f"Background: {store.get_background_transaction_ids()}")
    await done.wait()
    print_record(store, provisional_id)
    print_record(store, "wallet-tx-2")

    await manager.aclose()


if __name__ == "__main__":
    asyncio.run(main())
