"""
Transaction orchestration and confirmation monitoring.
"""

from multichain_tx.service.monitor import ConfirmationWatch
from multichain_tx.service.transaction_service import (
    CheckResult,
    StatusListener,
    TransactionService,
)

__all__ = [
    "TransactionService",
    "ConfirmationWatch",
    "CheckResult",
    "StatusListener",
]
