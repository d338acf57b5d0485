"""
Notification sink for proof-chain transactions.

The wallet, not the local poller, is the primary source of lifecycle
updates for Aztec transactions: it pushes status notifications keyed by
its own transaction id, and they can arrive before the dApp's send call
has even returned. Everything the proof-chain manager needs from the
application's state lives behind TransactionNotificationSink, and every
write goes through a find-or-create on the canonical id so a notification
and the local call path can never produce two records for one transaction.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple, Union

from multichain_tx.errors import (
    ConnectionFailedError,
    InvalidParamsError,
    TransactionError,
    TransactionStage,
)
from multichain_tx.types.chain import ChainType
from multichain_tx.types.proof import ProofTransactionResult, StageTiming, TransactionMode
from multichain_tx.types.transaction import TransactionStatus, can_transition
from multichain_tx.utils.logging import get_logger

_logger = get_logger(__name__)

RecordFactory = Callable[[], ProofTransactionResult]


class TransactionNotificationSink(Protocol):
    """What the proof-chain manager reads from and writes to."""

    def get_transaction(self, tx_id: str) -> Optional[ProofTransactionResult]:
        ...

    def find_or_create(
        self, tx_id: str, factory: RecordFactory
    ) -> Tuple[ProofTransactionResult, bool]:
        ...

    def update_transaction(self, tx_id: str, **fields: Any) -> Optional[ProofTransactionResult]:
        ...

    def update_status(
        self,
        tx_id: str,
        status: TransactionStatus,
        error: Optional[TransactionError] = None,
    ) -> bool:
        ...

    def remove_transaction(self, tx_id: str) -> None:
        ...

    def get_transaction_by_hash(self, chain_hash: str) -> Optional[ProofTransactionResult]:
        ...

    def get_active_transaction_id(self) -> Optional[str]:
        ...

    def set_active_transaction_id(self, tx_id: Optional[str]) -> None:
        ...

    def get_background_transaction_ids(self) -> List[str]:
        ...


class InMemoryTransactionStore:
    """
    Dict-backed TransactionNotificationSink.

    Sync records become the active transaction (the one a blocking overlay
    shows); async records are tracked in the background list until they
    reach a terminal status. At most ``max_history_size`` records are kept,
    but records that are still in flight are never evicted.

    Example:
        ```python
        store = InMemoryTransactionStore()

        # Wallet pushed a notification before the send call returned
        store.handle_notification("wallet-tx-1", TransactionStatus.PROVING)

        record = store.get_transaction("wallet-tx-1")
        print(record.status, record.stages)
        ```
    """

    def __init__(
        self,
        max_history_size: int = 100,
        chain_id: str = "",
        logger: Optional[logging.Logger] = None,
    ) -> None:
        """
        Initialize the store.

        Args:
            max_history_size: Record count above which terminal records are evicted
            chain_id: Chain id given to records created by notifications
            logger: Logger to use instead of the module logger
        """
        self._max_history_size = max_history_size
        self._chain_id = chain_id
        self._logger = logger or _logger
        self._transactions: Dict[str, ProofTransactionResult] = {}
        self._active_transaction_id: Optional[str] = None
        self._background_ids: List[str] = []

    def __len__(self) -> int:
        return len(self._transactions)

    def __contains__(self, tx_id: object) -> bool:
        return tx_id in self._transactions

    # =========================================================================
    # Reads
    # =========================================================================

    def get_transaction(self, tx_id: str) -> Optional[ProofTransactionResult]:
        return self._transactions.get(tx_id)

    def get_all_transactions(self) -> List[ProofTransactionResult]:
        return list(self._transactions.values())

    def get_transaction_by_hash(self, chain_hash: str) -> Optional[ProofTransactionResult]:
        if not chain_hash:
            return None
        for record in self._transactions.values():
            if record.chain_hash == chain_hash:
                return record
        return None

    def get_active_transaction_id(self) -> Optional[str]:
        return self._active_transaction_id

    def set_active_transaction_id(self, tx_id: Optional[str]) -> None:
        self._active_transaction_id = tx_id

    def get_background_transaction_ids(self) -> List[str]:
        return list(self._background_ids)

    # =========================================================================
    # Writes
    # =========================================================================

    def find_or_create(
        self, tx_id: str, factory: RecordFactory
    ) -> Tuple[ProofTransactionResult, bool]:
        """
        Return the record for ``tx_id``, creating it with ``factory`` if absent.

        Returns:
            ``(record, created)``

        Raises:
            InvalidParamsError: If the factory builds a record under another id
        """
        existing = self._transactions.get(tx_id)
        if existing is not None:
            return existing, False

        record = factory()
        if record.status_tracking_id != tx_id:
            raise InvalidParamsError(
                "Record id does not match the requested id",
                details={"requested": tx_id, "record": record.status_tracking_id},
            )
        self._transactions[tx_id] = record
        self._track_mode(record)
        if record.status not in (TransactionStatus.IDLE, TransactionStatus.FAILED):
            record.stages.setdefault(record.status, StageTiming())

        self._logger.debug("Added %s transaction %s", record.mode.value, tx_id)
        self._prune()
        return record, True

    def update_transaction(self, tx_id: str, **fields: Any) -> Optional[ProofTransactionResult]:
        """
        Set fields on a record. Unknown ids are ignored.

        ``chain_hash`` is write-once and ``mode`` moves the record between the
        active pointer and the background list. Status changes must go through
        :meth:`update_status`.
        """
        record = self._transactions.get(tx_id)
        if record is None:
            return None
        if "status" in fields:
            raise InvalidParamsError("Use update_status to change a transaction's status")

        chain_hash = fields.pop("chain_hash", None)
        if chain_hash:
            record.set_chain_hash(chain_hash)

        mode = fields.pop("mode", None)
        for name, value in fields.items():
            if not hasattr(record, name):
                raise InvalidParamsError(f"Unknown transaction field: {name}")
            setattr(record, name, value)

        if mode is not None:
            record.mode = TransactionMode(mode)
            self._track_mode(record)
        return record

    def update_status(
        self,
        tx_id: str,
        status: TransactionStatus,
        error: Optional[TransactionError] = None,
    ) -> bool:
        """
        Move a record to ``status``, closing the previous stage's timing.

        Notifications can arrive out of order; a change that would regress
        the record is ignored.

        Returns:
            True if the status was applied
        """
        record = self._transactions.get(tx_id)
        if record is None:
            return False

        status = TransactionStatus(status)
        previous = record.status
        if not can_transition(previous, status):
            self._logger.info(
                "Ignoring out-of-order status for %s: %s -> %s",
                tx_id,
                previous.value,
                status.value,
            )
            return False

        if status is previous:
            return True

        now = time.time()
        timing = record.stages.get(previous)
        if timing is not None and timing.end is None:
            timing.end = now

        record.transition(status)
        if error is not None:
            record.error = error

        if status is TransactionStatus.CONFIRMED:
            record.stages[status] = StageTiming(start=now, end=now)
        elif status is not TransactionStatus.FAILED:
            record.stages[status] = StageTiming(start=now)

        if status.is_terminal:
            record.end_time = now
            if tx_id in self._background_ids:
                self._background_ids.remove(tx_id)
            self._prune()

        self._logger.debug("Transaction %s: %s -> %s", tx_id, previous.value, status.value)
        return True

    def remove_transaction(self, tx_id: str) -> None:
        self._transactions.pop(tx_id, None)
        if tx_id in self._background_ids:
            self._background_ids.remove(tx_id)
        if self._active_transaction_id == tx_id:
            self._active_transaction_id = None

    def handle_notification(
        self,
        tx_id: str,
        status: Union[TransactionStatus, str],
        chain_hash: Optional[str] = None,
        error: Optional[TransactionError] = None,
    ) -> ProofTransactionResult:
        """
        Apply a status notification pushed by the wallet.

        Creates the record under the wallet's id if the dApp has not seen it
        yet; the manager adopts it when its own send call returns. A new
        record takes the mode of the execution still waiting on its send
        call, so a background execution never moves the active pointer.
        """

        def factory() -> ProofTransactionResult:
            return ProofTransactionResult(
                status_tracking_id=tx_id,
                chain_type=ChainType.AZTEC,
                request=None,
                chain_id=self._chain_id,
                mode=self._notification_mode(),
            )

        record, created = self.find_or_create(tx_id, factory)
        if created:
            self._logger.debug("Notification created transaction %s", tx_id)

        if chain_hash:
            if record.chain_hash and record.chain_hash != chain_hash:
                self._logger.warning(
                    "Ignoring conflicting hash %s for %s (has %s)",
                    chain_hash,
                    tx_id,
                    record.chain_hash,
                )
            else:
                record.set_chain_hash(chain_hash)

        self.update_status(tx_id, TransactionStatus(status), error)
        return record

    def fail_all_active_transactions(self, reason: str = "Session disconnected") -> int:
        """
        Fail every non-terminal record with a ``connection_failed`` error.

        Returns:
            Number of records failed
        """
        failed = 0
        for tx_id, record in list(self._transactions.items()):
            if record.is_terminal:
                continue
            stage = (
                TransactionStage.CONFIRMATION if record.chain_hash else TransactionStage.PROVING
            )
            error = TransactionError.from_error(
                ConnectionFailedError(reason),
                stage,
                transaction_id=tx_id,
                transaction_hash=record.chain_hash or None,
            )
            self.update_status(tx_id, TransactionStatus.FAILED, error)
            if self._active_transaction_id == tx_id:
                self._active_transaction_id = None
            failed += 1
        return failed

    # =========================================================================
    # Internal
    # =========================================================================

    def _notification_mode(self) -> TransactionMode:
        """Mode for a record first seen through a notification."""
        active = self._transactions.get(self._active_transaction_id or "")
        if active is not None and active.provisional and not active.is_terminal:
            return TransactionMode.SYNC
        for tx_id in self._background_ids:
            record = self._transactions.get(tx_id)
            if record is not None and record.provisional:
                return TransactionMode.ASYNC
        return TransactionMode.SYNC

    def _track_mode(self, record: ProofTransactionResult) -> None:
        tx_id = record.status_tracking_id
        if record.mode is TransactionMode.ASYNC:
            if self._active_transaction_id == tx_id:
                self._active_transaction_id = None
            if not record.is_terminal and tx_id not in self._background_ids:
                self._background_ids.append(tx_id)
        else:
            if tx_id in self._background_ids:
                self._background_ids.remove(tx_id)
            self._active_transaction_id = tx_id

    def _prune(self) -> None:
        excess = len(self._transactions) - self._max_history_size
        if excess <= 0:
            return
        terminal = sorted(
            (r for r in self._transactions.values() if r.is_terminal),
            key=lambda r: r.start_time,
        )
        for record in terminal[:excess]:
            self.remove_transaction(record.status_tracking_id)


__all__ = ["TransactionNotificationSink", "InMemoryTransactionStore", "RecordFactory"]
