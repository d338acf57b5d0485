"""
Provider call and receipt formatting.
"""

from multichain_tx.formatting.formatter import (
    METHODS,
    ChainMethods,
    TransactionFormatter,
    parse_quantity,
    to_hex,
)

__all__ = [
    "TransactionFormatter",
    "ChainMethods",
    "METHODS",
    "to_hex",
    "parse_quantity",
]
