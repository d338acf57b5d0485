"""
Transaction parameter validation.
"""

from multichain_tx.validation.validator import (
    ADDRESS_PATTERN,
    AZTEC_PAYMENT_METHODS,
    MAX_UINT256,
    SOLANA_COMMITMENTS,
    TransactionValidator,
    is_base64,
    is_uint256,
    is_valid_address,
)

__all__ = [
    "TransactionValidator",
    "ADDRESS_PATTERN",
    "MAX_UINT256",
    "SOLANA_COMMITMENTS",
    "AZTEC_PAYMENT_METHODS",
    "is_valid_address",
    "is_uint256",
    "is_base64",
]
