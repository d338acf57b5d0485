"""
Provider contract and the HTTP JSON-RPC implementation.
"""

from multichain_tx.providers.base import BlockchainProvider, ProviderCall
from multichain_tx.providers.jsonrpc import JsonRpcProvider

__all__ = [
    "BlockchainProvider",
    "ProviderCall",
    "JsonRpcProvider",
]
