"""Chain families supported by the engine."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union

from multichain_tx.errors import ConfigurationError

__all__ = ["ChainType", "SupportedChain"]


class ChainType(str, Enum):
    """Closed set of chain families. Every capability table is keyed by it."""

    EVM = "evm"
    SOLANA = "solana"
    AZTEC = "aztec"

    @classmethod
    def parse(cls, value: Union["ChainType", str]) -> "ChainType":
        """Coerce a member or its string value, rejecting anything else."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise ConfigurationError(
                f"Unsupported chain type: {value!r}",
                details={"chain_type": value},
            ) from None


@dataclass(frozen=True)
class SupportedChain:
    """
    Chain metadata passed alongside a transaction.

    Attributes:
        chain_id: CAIP-2 style identifier (e.g., "eip155:1")
        chain_type: Chain family
        name: Human-readable chain name
        required: Whether the dApp requires this chain
    """

    chain_id: str
    chain_type: ChainType
    name: str = ""
    required: bool = False
