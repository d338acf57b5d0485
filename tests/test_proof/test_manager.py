"""
Tests for AztecTransactionManager.

Tests cover:
- Reconciling the provisional record with the wallet's transaction id
- Coordination with wallet-pushed notifications
- Sync (active pointer) and async (background list) tracking
- Stage tagging of failures
- Background task callbacks and cancellation
"""

import asyncio
from typing import Any, List, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest

from multichain_tx.errors import TransactionError, TransactionStage
from multichain_tx.proof import AsyncCallbacks, AztecTransactionManager, InMemoryTransactionStore
from multichain_tx.types import (
    SentTx,
    TransactionMode,
    TransactionReceipt,
    TransactionStatus,
)
from tests.conftest import TX_HASH

CHAIN_ID = "aztec:31337"
INTERACTION = {"contract": "token", "method": "transfer", "args": [1]}


def make_receipt() -> TransactionReceipt:
    return TransactionReceipt(
        transaction_hash=TX_HASH,
        block_hash="0x" + "b" * 64,
        block_number=42,
        from_address="",
        gas_used="0",
        status="success",
    )


def sent_tx(
    tx_id: Optional[str] = "wallet-tx-1",
    chain_hash: str = TX_HASH,
    result: Any = "receipt",
    error: Optional[BaseException] = None,
) -> SentTx:
    async def wait() -> Any:
        if error is not None:
            raise error
        return result

    return SentTx(chain_hash, wait, tx_id)


def make_manager(store: InMemoryTransactionStore, send: Any) -> AztecTransactionManager:
    return AztecTransactionManager(
        store, CHAIN_ID, send, wallet_id="azguard", address="0xaztec-account"
    )


def completion() -> "tuple[AsyncCallbacks, asyncio.Future]":
    """Callbacks that resolve a future with ("success" | "error", value)."""
    future: asyncio.Future = asyncio.get_running_loop().create_future()
    callbacks = AsyncCallbacks(
        on_success=lambda record: future.set_result(("success", record)),
        on_error=lambda error: future.set_result(("error", error)),
    )
    return callbacks, future


# =============================================================================
# execute_sync
# =============================================================================


class TestExecuteSync:
    """Tests for blocking execution."""

    @pytest.mark.asyncio
    async def test_uses_wallet_transaction_id(self, store: InMemoryTransactionStore) -> None:
        """Test the wallet's id replaces the provisional one."""
        send = AsyncMock(return_value=sent_tx())
        manager = make_manager(store, send)

        result = await manager.execute_sync(INTERACTION)

        assert result == "receipt"
        send.assert_awaited_once_with(INTERACTION)
        record = store.get_transaction("wallet-tx-1")
        assert record.status is TransactionStatus.CONFIRMED
        assert record.chain_hash == TX_HASH
        assert record.request == INTERACTION
        assert record.wallet_id == "azguard"
        assert record.chain_id == CHAIN_ID
        assert record.provisional is False
        assert len(store) == 1

    @pytest.mark.asyncio
    async def test_generates_id_when_wallet_has_none(
        self, store: InMemoryTransactionStore
    ) -> None:
        """Test a fresh id is generated when the wallet returns no id."""
        manager = make_manager(store, AsyncMock(return_value=sent_tx(tx_id=None)))

        await manager.execute_sync(INTERACTION)

        records = store.get_all_transactions()
        assert len(records) == 1
        assert records[0].status_tracking_id.startswith("aztec_")
        assert records[0].status is TransactionStatus.CONFIRMED
        assert records[0].provisional is False

    @pytest.mark.asyncio
    async def test_applies_receipt(self, store: InMemoryTransactionStore) -> None:
        """Test a TransactionReceipt result fills the record's block fields."""
        receipt = make_receipt()
        manager = make_manager(store, AsyncMock(return_value=sent_tx(result=receipt)))

        assert await manager.execute_sync(INTERACTION) is receipt

        record = store.get_transaction("wallet-tx-1")
        assert record.receipt is receipt
        assert record.block_number == 42

    @pytest.mark.asyncio
    async def test_does_not_duplicate_notification_record(
        self, store: InMemoryTransactionStore
    ) -> None:
        """Test a record created by an early notification is reused."""

        async def send(interaction: Any) -> SentTx:
            store.handle_notification("wallet-tx-1", TransactionStatus.PROVING)
            return sent_tx()

        manager = make_manager(store, send)

        await manager.execute_sync(INTERACTION)

        assert len(store) == 1
        record = store.get_transaction("wallet-tx-1")
        assert record.status is TransactionStatus.CONFIRMED
        assert record.request == INTERACTION
        assert record.wallet_id == "azguard"
        assert TransactionStatus.PROVING in record.stages

    @pytest.mark.asyncio
    async def test_sets_active_transaction(self, store: InMemoryTransactionStore) -> None:
        """Test the sync record is the active transaction throughout."""
        seen: List[Optional[str]] = []

        async def send(interaction: Any) -> SentTx:
            seen.append(store.get_active_transaction_id())
            return sent_tx()

        manager = make_manager(store, send)

        await manager.execute_sync(INTERACTION)

        assert seen[0] is not None
        assert seen[0].startswith("aztec_")
        assert store.get_active_transaction_id() == "wallet-tx-1"
        assert store.get_background_transaction_ids() == []

    @pytest.mark.asyncio
    async def test_adopts_active_pointer_moved_by_notification(
        self, store: InMemoryTransactionStore
    ) -> None:
        """Test a wallet without return ids is matched through the active pointer."""

        async def send(interaction: Any) -> SentTx:
            store.handle_notification("wallet-tx-9", TransactionStatus.PROVING)
            return sent_tx(tx_id=None)

        manager = make_manager(store, send)

        await manager.execute_sync(INTERACTION)

        assert [r.status_tracking_id for r in store.get_all_transactions()] == ["wallet-tx-9"]
        assert store.get_transaction("wallet-tx-9").status is TransactionStatus.CONFIRMED

    @pytest.mark.asyncio
    async def test_notifications_drive_status_before_completion(
        self, store: InMemoryTransactionStore
    ) -> None:
        """Test wallet notifications update the record while the dApp waits."""
        observed: List[TransactionStatus] = []

        async def wait() -> str:
            store.handle_notification("wallet-tx-1", TransactionStatus.PENDING)
            observed.append(store.get_transaction("wallet-tx-1").status)
            return "receipt"

        async def send(interaction: Any) -> SentTx:
            store.handle_notification("wallet-tx-1", TransactionStatus.PROVING)
            store.handle_notification("wallet-tx-1", TransactionStatus.SENDING, chain_hash=TX_HASH)
            return SentTx(TX_HASH, wait, "wallet-tx-1")

        manager = make_manager(store, send)

        await manager.execute_sync(INTERACTION)

        record = store.get_transaction("wallet-tx-1")
        assert observed == [TransactionStatus.PENDING]
        assert record.status is TransactionStatus.CONFIRMED
        assert set(record.stages) >= {
            TransactionStatus.PROVING,
            TransactionStatus.SENDING,
            TransactionStatus.PENDING,
            TransactionStatus.CONFIRMED,
        }

    @pytest.mark.asyncio
    async def test_wallet_reported_confirmation_is_kept(
        self, store: InMemoryTransactionStore
    ) -> None:
        """Test a record the wallet already confirmed is left as is."""

        async def wait() -> str:
            store.handle_notification("wallet-tx-1", TransactionStatus.CONFIRMED)
            return "receipt"

        manager = make_manager(store, AsyncMock(return_value=SentTx(TX_HASH, wait, "wallet-tx-1")))

        await manager.execute_sync(INTERACTION)

        assert store.get_transaction("wallet-tx-1").status is TransactionStatus.CONFIRMED


# =============================================================================
# execute_async
# =============================================================================


class TestExecuteAsync:
    """Tests for background execution."""

    @pytest.mark.asyncio
    async def test_returns_provisional_id_then_replaces_it(
        self, store: InMemoryTransactionStore
    ) -> None:
        """Test the provisional record is swapped for the wallet's id."""
        manager = make_manager(store, AsyncMock(return_value=sent_tx()))
        callbacks, done = completion()

        tx_id = await manager.execute_async(INTERACTION, callbacks)

        provisional = store.get_transaction(tx_id)
        assert tx_id.startswith("aztec_")
        assert provisional.provisional is True
        assert provisional.mode is TransactionMode.ASYNC
        assert provisional.status is TransactionStatus.SIMULATING

        outcome, record = await asyncio.wait_for(done, 1.0)

        assert outcome == "success"
        assert record.status_tracking_id == "wallet-tx-1"
        assert record.status is TransactionStatus.CONFIRMED
        assert record.chain_hash == TX_HASH
        assert record.mode is TransactionMode.ASYNC
        assert tx_id not in store

    @pytest.mark.asyncio
    async def test_tracked_in_background_list(self, store: InMemoryTransactionStore) -> None:
        """Test async records never take the active pointer."""
        gate = asyncio.Event()

        async def send(interaction: Any) -> SentTx:
            await gate.wait()
            return sent_tx()

        manager = make_manager(store, send)
        callbacks, done = completion()

        tx_id = await manager.execute_async(INTERACTION, callbacks)

        assert store.get_background_transaction_ids() == [tx_id]
        assert store.get_active_transaction_id() is None

        gate.set()
        await asyncio.wait_for(done, 1.0)

        assert store.get_background_transaction_ids() == []
        assert store.get_active_transaction_id() is None

    @pytest.mark.asyncio
    async def test_does_not_adopt_active_sync_transaction(
        self, store: InMemoryTransactionStore
    ) -> None:
        """Test async reconciliation ignores another transaction's active pointer."""
        store.handle_notification("sync-tx", TransactionStatus.PROVING)
        manager = make_manager(store, AsyncMock(return_value=sent_tx(tx_id=None)))
        callbacks, done = completion()

        await manager.execute_async(INTERACTION, callbacks)
        _, record = await asyncio.wait_for(done, 1.0)

        assert record.status_tracking_id != "sync-tx"
        assert store.get_transaction("sync-tx").status is TransactionStatus.PROVING
        assert store.get_active_transaction_id() == "sync-tx"

    @pytest.mark.asyncio
    async def test_adopts_record_notified_during_send(
        self, store: InMemoryTransactionStore
    ) -> None:
        """Test an early notification and a wallet without return ids yield one record."""

        async def send(interaction: Any) -> SentTx:
            store.handle_notification("wallet-tx-1", TransactionStatus.PROVING)
            return sent_tx(tx_id=None)

        manager = make_manager(store, send)
        callbacks, done = completion()

        tx_id = await manager.execute_async(INTERACTION, callbacks)
        outcome, record = await asyncio.wait_for(done, 1.0)

        assert outcome == "success"
        assert [
            (r.status_tracking_id, r.status, r.mode) for r in store.get_all_transactions()
        ] == [("wallet-tx-1", TransactionStatus.CONFIRMED, TransactionMode.ASYNC)]
        assert record.request == INTERACTION
        assert record.chain_hash == TX_HASH
        assert tx_id not in store
        assert store.get_active_transaction_id() is None
        assert store.get_background_transaction_ids() == []

    @pytest.mark.asyncio
    async def test_adopts_record_by_chain_hash(self, store: InMemoryTransactionStore) -> None:
        """Test a notified record carrying the sent hash becomes the canonical one."""

        async def send(interaction: Any) -> SentTx:
            store.handle_notification("wallet-tx-7", TransactionStatus.SENDING, chain_hash=TX_HASH)
            return sent_tx(tx_id=None)

        manager = make_manager(store, send)
        callbacks, done = completion()

        await manager.execute_async(INTERACTION, callbacks)
        _, record = await asyncio.wait_for(done, 1.0)

        assert record.status_tracking_id == "wallet-tx-7"
        assert len(store) == 1

    @pytest.mark.asyncio
    async def test_coroutine_callbacks(self, store: InMemoryTransactionStore) -> None:
        """Test callbacks may be coroutine functions."""
        manager = make_manager(store, AsyncMock(return_value=sent_tx()))
        received = asyncio.get_running_loop().create_future()

        async def on_success(record: Any) -> None:
            received.set_result(record.status_tracking_id)

        await manager.execute_async(INTERACTION, AsyncCallbacks(on_success=on_success))

        assert await asyncio.wait_for(received, 1.0) == "wallet-tx-1"

    @pytest.mark.asyncio
    async def test_callback_errors_are_contained(self, store: InMemoryTransactionStore) -> None:
        """Test a raising callback does not break the background task."""
        manager = make_manager(store, AsyncMock(return_value=sent_tx()))
        on_success = MagicMock(side_effect=RuntimeError("ui bug"))

        await manager.execute_async(INTERACTION, AsyncCallbacks(on_success=on_success))
        await asyncio.gather(*manager._tasks)

        on_success.assert_called_once()
        assert manager.pending_tasks == 0
        assert store.get_transaction("wallet-tx-1").status is TransactionStatus.CONFIRMED


# =============================================================================
# Error Handling
# =============================================================================


class TestErrorHandling:
    """Tests for failure tagging and cleanup."""

    @pytest.mark.asyncio
    async def test_send_error_is_proving_stage(self, store: InMemoryTransactionStore) -> None:
        """Test a failure before any hash is tagged proving."""
        manager = make_manager(store, AsyncMock(side_effect=RuntimeError("User rejected")))

        with pytest.raises(TransactionError) as exc_info:
            await manager.execute_sync(INTERACTION)

        assert exc_info.value.stage is TransactionStage.PROVING
        assert exc_info.value.message == "User rejected"
        record = store.get_transaction(exc_info.value.transaction_id)
        assert record.status is TransactionStatus.FAILED
        assert record.error is exc_info.value

    @pytest.mark.asyncio
    async def test_wait_error_is_confirmation_stage(
        self, store: InMemoryTransactionStore
    ) -> None:
        """Test a failure after the hash is known is tagged confirmation."""
        manager = make_manager(
            store, AsyncMock(return_value=sent_tx(error=RuntimeError("Transaction dropped")))
        )

        with pytest.raises(TransactionError) as exc_info:
            await manager.execute_sync(INTERACTION)

        assert exc_info.value.stage is TransactionStage.CONFIRMATION
        assert exc_info.value.transaction_hash == TX_HASH
        assert exc_info.value.transaction_id == "wallet-tx-1"
        assert store.get_transaction("wallet-tx-1").status is TransactionStatus.FAILED

    @pytest.mark.asyncio
    async def test_async_failure_calls_on_error(self, store: InMemoryTransactionStore) -> None:
        """Test failed background transactions report through on_error and leave the background list."""
        manager = make_manager(store, AsyncMock(side_effect=RuntimeError("Proof generation failed")))
        callbacks, done = completion()

        tx_id = await manager.execute_async(INTERACTION, callbacks)
        outcome, error = await asyncio.wait_for(done, 1.0)

        assert outcome == "error"
        assert isinstance(error, TransactionError)
        assert error.stage is TransactionStage.PROVING
        assert store.get_transaction(tx_id).status is TransactionStatus.FAILED
        assert store.get_background_transaction_ids() == []

    @pytest.mark.asyncio
    async def test_aclose_cancels_background_work(self, store: InMemoryTransactionStore) -> None:
        """Test pending executions are cancelled and their records failed."""

        async def send(interaction: Any) -> SentTx:
            await asyncio.Event().wait()
            return sent_tx()

        manager = make_manager(store, send)
        tx_id = await manager.execute_async(INTERACTION)
        await asyncio.sleep(0)

        assert manager.pending_tasks == 1

        await manager.aclose()

        assert manager.pending_tasks == 0
        assert store.get_transaction(tx_id).status is TransactionStatus.FAILED
