"""
Proof-chain (Aztec) transaction manager.

Aztec transactions need a client-side proving stage before they are sent,
and the wallet pushes their status updates under its own transaction id.
The manager therefore creates a provisional record before invoking the
wallet (so a blocking overlay can show proof generation), then reconciles
it with the wallet's canonical id once the send call returns.
"""

from __future__ import annotations

import asyncio
import dataclasses
import inspect
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Set, Tuple

from multichain_tx.errors import TransactionError, TransactionFailedError, TransactionStage
from multichain_tx.proof.store import TransactionNotificationSink
from multichain_tx.types.chain import ChainType
from multichain_tx.types.proof import ProofTransactionResult, SentTransaction, TransactionMode
from multichain_tx.types.transaction import TransactionReceipt, TransactionStatus
from multichain_tx.utils.ids import generate_id
from multichain_tx.utils.logging import LogContext, get_logger

_logger = get_logger(__name__)

SendFunction = Callable[[Any], Awaitable[SentTransaction]]


@dataclass
class AsyncCallbacks:
    """
    Completion callbacks for :meth:`AztecTransactionManager.execute_async`.

    Either callback may be a plain function or a coroutine function.
    """

    on_success: Optional[Callable[[ProofTransactionResult], Any]] = None
    on_error: Optional[Callable[[BaseException], Any]] = None


class AztecTransactionManager:
    """
    Runs Aztec contract interactions and keeps their records in a sink.

    Example:
        ```python
        store = InMemoryTransactionStore(chain_id="aztec:31337")
        manager = AztecTransactionManager(store, "aztec:31337", wallet.execute_tx)

        # Blocking: the record is the active transaction until it completes
        receipt = await manager.execute_sync(interaction)

        # Background: returns a provisional id immediately
        tx_id = await manager.execute_async(
            interaction,
            AsyncCallbacks(on_success=lambda record: print(record.chain_hash)),
        )
        ```
    """

    def __init__(
        self,
        store: TransactionNotificationSink,
        chain_id: str,
        send: SendFunction,
        wallet_id: str = "",
        address: str = "",
        logger: Optional[logging.Logger] = None,
    ) -> None:
        """
        Initialize the manager.

        Args:
            store: Where records live and notifications land
            chain_id: Chain id stamped on new records
            send: Wallet send primitive; returns a SentTransaction
            wallet_id: Identifier of the wallet, stamped on new records
            address: Sender address, stamped on new records
            logger: Logger to use instead of the module logger
        """
        self._store = store
        self._chain_id = chain_id
        self._send = send
        self._wallet_id = wallet_id
        self._address = address
        self._logger = logger or _logger
        self._tasks: Set[asyncio.Task[None]] = set()

    @property
    def pending_tasks(self) -> int:
        """Number of background executions still running."""
        return sum(1 for task in self._tasks if not task.done())

    async def execute_sync(self, interaction: Any) -> Any:
        """
        Execute ``interaction`` and wait for its completion.

        Returns:
            Whatever the wallet's completion signal resolved with

        Raises:
            TransactionError: Tagged ``proving`` if the wallet never produced
                a hash, ``confirmation`` otherwise
        """
        provisional = self._create_provisional(interaction, TransactionMode.SYNC)
        _, receipt = await self._execute(provisional.status_tracking_id, interaction)
        return receipt

    async def execute_async(
        self,
        interaction: Any,
        callbacks: Optional[AsyncCallbacks] = None,
    ) -> str:
        """
        Start ``interaction`` in the background.

        Returns:
            The provisional id. The record may move to the wallet's id once
            the send call returns; ``on_success`` receives the final record.
        """
        provisional = self._create_provisional(interaction, TransactionMode.ASYNC)
        tx_id = provisional.status_tracking_id
        task = asyncio.get_running_loop().create_task(
            self._run_background(tx_id, interaction, callbacks or AsyncCallbacks()),
            name=f"aztec-execute-{tx_id}",
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return tx_id

    async def aclose(self) -> None:
        """Cancel background executions that are still running."""
        tasks = [task for task in self._tasks if not task.done()]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()

    # =========================================================================
    # Execution
    # =========================================================================

    async def _run_background(
        self, provisional_id: str, interaction: Any, callbacks: AsyncCallbacks
    ) -> None:
        try:
            record, _ = await self._execute(provisional_id, interaction)
        except TransactionError as e:
            self._logger.warning("Background transaction %s failed: %s", provisional_id, e)
            await self._invoke(callbacks.on_error, e)
            return
        await self._invoke(callbacks.on_success, record)

    async def _invoke(self, callback: Optional[Callable[[Any], Any]], arg: Any) -> None:
        if callback is None:
            return
        try:
            result = callback(arg)
            if inspect.isawaitable(result):
                await result
        except Exception:
            self._logger.exception("Transaction callback raised")

    async def _execute(
        self, provisional_id: str, interaction: Any
    ) -> Tuple[ProofTransactionResult, Any]:
        tx_id = provisional_id
        chain_hash = ""

        with LogContext(tx_id=provisional_id):
            try:
                known_background = set(self._store.get_background_transaction_ids())
                sent = await self._send(interaction)
                tx_id = self._reconcile(provisional_id, sent, known_background)
                record = self._adopt(provisional_id, tx_id)

                chain_hash = getattr(sent, "chain_hash", "") or ""
                if chain_hash:
                    self._store.update_transaction(tx_id, chain_hash=chain_hash)
                    self._logger.info("Aztec transaction %s sent: %s", tx_id, chain_hash)

                receipt = await sent.wait()
            except asyncio.CancelledError:
                self._fail(tx_id, TransactionFailedError("Execution was cancelled"), chain_hash)
                raise
            except Exception as e:
                raise self._fail(tx_id, e, chain_hash)

        if isinstance(receipt, TransactionReceipt):
            record.apply_receipt(receipt)
        if not record.is_terminal:
            self._store.update_status(tx_id, TransactionStatus.CONFIRMED)
        self._logger.info("Aztec transaction %s confirmed", tx_id)
        return self._store.get_transaction(tx_id) or record, receipt

    def _create_provisional(self, interaction: Any, mode: TransactionMode) -> ProofTransactionResult:
        tx_id = generate_id("aztec")
        record, _ = self._store.find_or_create(
            tx_id, lambda: self._new_record(tx_id, interaction, mode, provisional=True)
        )
        self._store.update_status(tx_id, TransactionStatus.SIMULATING)
        self._logger.debug("Created provisional %s transaction %s", mode.value, tx_id)
        return record

    def _new_record(
        self,
        tx_id: str,
        interaction: Any,
        mode: TransactionMode,
        provisional: bool = False,
    ) -> ProofTransactionResult:
        return ProofTransactionResult(
            status_tracking_id=tx_id,
            chain_type=ChainType.AZTEC,
            request=interaction,
            chain_id=self._chain_id,
            wallet_id=self._wallet_id,
            from_address=self._address,
            mode=mode,
            provisional=provisional,
        )

    def _reconcile(
        self,
        provisional_id: str,
        sent: SentTransaction,
        known_background: Set[str],
    ) -> str:
        """
        Pick the canonical id for a sent transaction.

        In order: the id the wallet returned, a record already holding the
        sent chain hash, a record a notification created while the send call
        was running, or a freshly generated id. Sync executions find that
        record through the active pointer; async ones find it among the
        background ids that were not there before the send.
        """
        wallet_tx_id = getattr(sent, "status_tracking_id", None)
        if wallet_tx_id:
            return wallet_tx_id

        chain_hash = getattr(sent, "chain_hash", "") or ""
        existing = self._store.get_transaction_by_hash(chain_hash)
        if existing is not None and existing.status_tracking_id != provisional_id:
            self._logger.debug("Adopting transaction %s by hash", existing.status_tracking_id)
            return existing.status_tracking_id

        provisional = self._store.get_transaction(provisional_id)
        mode = provisional.mode if provisional is not None else TransactionMode.SYNC
        if mode is TransactionMode.SYNC:
            active = self._store.get_active_transaction_id()
            if active and active != provisional_id:
                self._logger.debug("Adopting active transaction %s", active)
                return active
        else:
            for tx_id in self._store.get_background_transaction_ids():
                if tx_id == provisional_id or tx_id in known_background:
                    continue
                record = self._store.get_transaction(tx_id)
                if record is not None and not record.provisional and record.request is None:
                    self._logger.debug("Adopting notified transaction %s", tx_id)
                    return tx_id

        return generate_id("aztec")

    def _adopt(self, provisional_id: str, canonical_id: str) -> ProofTransactionResult:
        """
        Move the provisional record under ``canonical_id``.

        A record the wallet already created for ``canonical_id`` wins; the
        provisional data only fills its blanks. The provisional record is
        removed either way.
        """
        provisional = self._store.get_transaction(provisional_id)
        if canonical_id == provisional_id:
            if provisional is not None:
                provisional.provisional = False
                return provisional
            record, _ = self._store.find_or_create(
                canonical_id,
                lambda: self._new_record(canonical_id, None, TransactionMode.SYNC),
            )
            return record

        def factory() -> ProofTransactionResult:
            if provisional is None:
                return self._new_record(canonical_id, None, TransactionMode.SYNC)
            return dataclasses.replace(
                provisional,
                status_tracking_id=canonical_id,
                stages=dict(provisional.stages),
                provisional=False,
            )

        record, created = self._store.find_or_create(canonical_id, factory)
        if not created and provisional is not None:
            self._store.update_transaction(
                canonical_id,
                request=record.request if record.request is not None else provisional.request,
                wallet_id=record.wallet_id or provisional.wallet_id,
                from_address=record.from_address or provisional.from_address,
                chain_id=record.chain_id or provisional.chain_id,
                mode=provisional.mode,
            )
        self._store.remove_transaction(provisional_id)
        self._logger.debug(
            "Reconciled %s -> %s (%s)",
            provisional_id,
            canonical_id,
            "new" if created else "existing",
        )
        return record

    def _fail(self, tx_id: str, error: BaseException, chain_hash: str) -> TransactionError:
        stage = TransactionStage.CONFIRMATION if chain_hash else TransactionStage.PROVING
        tx_error = TransactionError.from_error(
            error,
            stage,
            transaction_id=tx_id,
            transaction_hash=chain_hash or None,
        )
        record = self._store.get_transaction(tx_id)
        if record is not None and not record.is_terminal:
            self._store.update_status(tx_id, TransactionStatus.FAILED, tx_error)
        self._logger.warning("Aztec transaction %s failed at %s: %s", tx_id, stage.value, error)
        return tx_error


__all__ = ["AztecTransactionManager", "AsyncCallbacks", "SendFunction"]
