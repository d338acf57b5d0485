"""
Stage-tagged transaction errors.

Every failure recorded on a transaction is wrapped in a TransactionError
that says where in the pipeline it happened, so callers can tell
"never left my machine" (validation/preparation) apart from "wallet
rejected" (signing) and "on-chain failure" (confirmation).
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional

from multichain_tx.errors.base import TxEngineError


class TransactionStage(str, Enum):
    """Pipeline stage at which a transaction error occurred."""

    VALIDATION = "validation"
    PREPARATION = "preparation"
    PROVING = "proving"
    SIGNING = "signing"
    BROADCASTING = "broadcasting"
    CONFIRMATION = "confirmation"


class TransactionError(TxEngineError):
    """
    Error recorded on a transaction, tagged with its pipeline stage.

    The ``code`` is taken from the underlying cause, so a revert reads
    ``error.code == "transaction_reverted"`` with ``error.stage`` set to
    ``TransactionStage.CONFIRMATION``.

    Attributes:
        stage: Pipeline stage where the failure happened.
        transaction_id: Status tracking id of the affected transaction.
        transaction_hash: On-chain hash, when one was assigned.
        cause: The original exception.
    """

    default_code = "transaction_failed"

    def __init__(
        self,
        message: str,
        *,
        stage: TransactionStage,
        code: Optional[str] = None,
        transaction_id: Optional[str] = None,
        transaction_hash: Optional[str] = None,
        cause: Optional[BaseException] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(
            message,
            code=code,
            tx_hash=transaction_hash or None,
            details=details,
        )
        self.stage = TransactionStage(stage)
        self.transaction_id = transaction_id
        self.transaction_hash = transaction_hash or None
        self.cause = cause

    @classmethod
    def from_error(
        cls,
        error: BaseException,
        stage: TransactionStage,
        *,
        transaction_id: Optional[str] = None,
        transaction_hash: Optional[str] = None,
    ) -> "TransactionError":
        """
        Wrap any exception as a stage-tagged TransactionError.

        An error that is already a TransactionError keeps its original
        stage, only gaining the ids it was missing.
        """
        if isinstance(error, TransactionError):
            if error.transaction_id is None:
                error.transaction_id = transaction_id
            if error.transaction_hash is None and transaction_hash:
                error.transaction_hash = transaction_hash
                error.tx_hash = transaction_hash
            return error

        if isinstance(error, TxEngineError):
            wrapped = cls(
                error.message,
                stage=stage,
                code=error.code,
                transaction_id=transaction_id,
                transaction_hash=transaction_hash or error.tx_hash,
                cause=error,
                details=dict(error.details),
            )
        else:
            wrapped = cls(
                str(error) or error.__class__.__name__,
                stage=stage,
                transaction_id=transaction_id,
                transaction_hash=transaction_hash,
                cause=error,
            )
        wrapped.__cause__ = error
        return wrapped

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update(
            {
                "stage": self.stage.value,
                "transaction_id": self.transaction_id,
                "transaction_hash": self.transaction_hash,
            }
        )
        return data
