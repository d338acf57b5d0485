"""
Provider call and receipt formatting.

Pure functions that turn chain-agnostic requests into provider call
shapes, pick RPC method names per chain family, normalize hashes and map
heterogeneous raw receipts onto TransactionReceipt.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from web3 import Web3

from multichain_tx.errors import ConfigurationError
from multichain_tx.types.chain import ChainType
from multichain_tx.types.transaction import TransactionReceipt

SOLANA_RECEIPT_COMMITMENT = "confirmed"


@dataclass(frozen=True)
class ChainMethods:
    """RPC method names for one chain family. None means unsupported."""

    send: str
    receipt: str
    estimate_gas: Optional[str] = None
    fee_history: Optional[str] = None
    simulate: Optional[str] = None
    # Solana passes the send payload as an object, the others as [payload]
    object_params: bool = False


METHODS: Dict[ChainType, ChainMethods] = {
    ChainType.EVM: ChainMethods(
        send="eth_sendTransaction",
        receipt="eth_getTransactionReceipt",
        estimate_gas="eth_estimateGas",
        fee_history="eth_feeHistory",
    ),
    ChainType.SOLANA: ChainMethods(
        send="sendTransaction",
        receipt="getTransaction",
        simulate="simulateTransaction",
        object_params=True,
    ),
    ChainType.AZTEC: ChainMethods(
        send="aztec_sendTransaction",
        receipt="aztec_getTransactionReceipt",
    ),
}


def _methods(chain_type: Any) -> ChainMethods:
    return METHODS[ChainType.parse(chain_type)]


def _as_mapping(params: Any) -> Mapping[str, Any]:
    to_dict = getattr(params, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    if isinstance(params, Mapping):
        return params
    raise ConfigurationError(
        "Transaction parameters must be an object",
        details={"type": type(params).__name__},
    )


def _get(raw: Mapping[str, Any], camel: str, snake: Optional[str] = None) -> Any:
    if camel in raw:
        return raw[camel]
    return raw.get(snake) if snake else None


def to_hex(value: Union[str, int]) -> str:
    """
    Convert a decimal string or int to 0x-prefixed hex.

    Values that are already 0x-prefixed are returned lower-cased.

    Example:
        >>> to_hex("1000000000000000000")
        '0xde0b6b3a7640000'
    """
    if isinstance(value, str):
        if value[:2].lower() == "0x":
            return value.lower()
        value = int(value, 10)
    return Web3.to_hex(int(value))


def parse_quantity(value: Any, default: int = 0) -> int:
    """Parse a hex or decimal quantity into an int."""
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    text = str(value)
    if text[:2].lower() == "0x":
        return Web3.to_int(hexstr=text)
    return int(text, 10)


# ============================================================================
# Provider call shapes
# ============================================================================


def _format_evm(raw: Mapping[str, Any]) -> Dict[str, Any]:
    formatted: Dict[str, Any] = {"to": raw.get("to")}
    sender = _get(raw, "from", "from_address")
    if sender is not None:
        formatted["from"] = sender
    for camel, snake in (
        ("value", None),
        ("gas", None),
        ("maxFeePerGas", "max_fee_per_gas"),
        ("maxPriorityFeePerGas", "max_priority_fee_per_gas"),
        ("nonce", None),
    ):
        value = _get(raw, camel, snake)
        if value is not None:
            formatted[camel] = to_hex(value)
    data = raw.get("data")
    if data is not None:
        formatted["data"] = data if data.startswith("0x") else "0x" + data
    return formatted


def _format_solana(raw: Mapping[str, Any]) -> Dict[str, Any]:
    formatted: Dict[str, Any] = {"transaction": raw.get("transaction")}
    if raw.get("options") is not None:
        formatted["options"] = raw["options"]
    return formatted


def _format_aztec(raw: Mapping[str, Any]) -> Dict[str, Any]:
    formatted: Dict[str, Any] = {
        "contractAddress": _get(raw, "contractAddress", "contract_address"),
        "functionName": _get(raw, "functionName", "function_name"),
        "args": raw.get("args", []),
    }
    if raw.get("fee") is not None:
        formatted["fee"] = raw["fee"]
    return formatted


_PROVIDER_FORMATTERS: Dict[ChainType, Callable[[Mapping[str, Any]], Dict[str, Any]]] = {
    ChainType.EVM: _format_evm,
    ChainType.SOLANA: _format_solana,
    ChainType.AZTEC: _format_aztec,
}


# ============================================================================
# Receipts
# ============================================================================


def _solana_signature(raw: Mapping[str, Any]) -> Optional[str]:
    transaction = raw.get("transaction")
    if isinstance(transaction, Mapping):
        signatures = transaction.get("signatures")
        if isinstance(signatures, (list, tuple)) and signatures:
            return signatures[0]
    return None


def _receipt_status(raw: Mapping[str, Any], chain_type: ChainType) -> Union[str, int]:
    status = raw.get("status")
    if status is not None:
        return status
    meta = raw.get("meta")
    if chain_type is ChainType.SOLANA and isinstance(meta, Mapping) and meta.get("err") is not None:
        return "0x0"
    return "0x1"


class TransactionFormatter:
    """
    Formats transactions and receipts for each chain family.

    Example:
        >>> TransactionFormatter.format_hash("1234", ChainType.EVM)
        '0x1234'
        >>> TransactionFormatter.get_receipt_method(ChainType.SOLANA)
        'getTransaction'
    """

    to_hex = staticmethod(to_hex)

    @staticmethod
    def format_for_provider(params: Any, chain_type: Any) -> Dict[str, Any]:
        """Convert a request into the provider's parameter object."""
        chain = ChainType.parse(chain_type)
        return _PROVIDER_FORMATTERS[chain](_as_mapping(params))

    @staticmethod
    def send_params(params: Any, chain_type: Any) -> Union[Dict[str, Any], List[Any]]:
        """Full ``params`` member of the send request."""
        formatted = TransactionFormatter.format_for_provider(params, chain_type)
        return formatted if _methods(chain_type).object_params else [formatted]

    @staticmethod
    def get_transaction_method(chain_type: Any) -> str:
        return _methods(chain_type).send

    @staticmethod
    def get_receipt_method(chain_type: Any) -> str:
        return _methods(chain_type).receipt

    @staticmethod
    def get_estimate_gas_method(chain_type: Any) -> str:
        method = _methods(chain_type).estimate_gas
        if method is None:
            raise ConfigurationError(f"Gas estimation is not supported for {chain_type}")
        return method

    @staticmethod
    def get_fee_history_method(chain_type: Any) -> str:
        method = _methods(chain_type).fee_history
        if method is None:
            raise ConfigurationError(f"Fee history is not supported for {chain_type}")
        return method

    @staticmethod
    def get_simulate_method(chain_type: Any) -> str:
        method = _methods(chain_type).simulate
        if method is None:
            raise ConfigurationError(f"Simulation is not supported for {chain_type}")
        return method

    @staticmethod
    def format_receipt_params(chain_hash: str, chain_type: Any) -> List[Any]:
        """Parameter list for the receipt method."""
        if ChainType.parse(chain_type) is ChainType.SOLANA:
            return [
                chain_hash,
                {"commitment": SOLANA_RECEIPT_COMMITMENT, "maxSupportedTransactionVersion": 0},
            ]
        return [chain_hash]

    @staticmethod
    def format_hash(chain_hash: str, chain_type: Any) -> str:
        """
        Canonical hash form: 0x-prefixed for EVM, unprefixed otherwise.

        Idempotent.
        """
        chain = ChainType.parse(chain_type)
        has_prefix = chain_hash[:2] in ("0x", "0X")
        if chain is ChainType.EVM:
            return chain_hash if has_prefix else "0x" + chain_hash
        return chain_hash[2:] if has_prefix else chain_hash

    @staticmethod
    def format_receipt(raw: Mapping[str, Any], chain_type: Any) -> TransactionReceipt:
        """Map a raw provider receipt onto the common receipt shape."""
        chain = ChainType.parse(chain_type)

        block_number = raw.get("blockNumber")
        if block_number is None:
            block_number = raw.get("slot")

        receipt = TransactionReceipt(
            transaction_hash=raw.get("transactionHash")
            or raw.get("hash")
            or _solana_signature(raw)
            or "",
            block_hash=raw.get("blockHash") or raw.get("blockhash") or "",
            block_number=parse_quantity(block_number),
            from_address=raw.get("from") or "",
            to=raw.get("to"),
            gas_used=str(raw["gasUsed"]) if raw.get("gasUsed") is not None else "0",
            status=_receipt_status(raw, chain),
            logs=list(raw.get("logs") or []),
        )

        if chain is ChainType.EVM:
            if raw.get("effectiveGasPrice") is not None:
                receipt.effective_gas_price = str(raw["effectiveGasPrice"])
            if raw.get("cumulativeGasUsed") is not None:
                receipt.cumulative_gas_used = str(raw["cumulativeGasUsed"])

        return receipt


__all__ = [
    "TransactionFormatter",
    "ChainMethods",
    "METHODS",
    "to_hex",
    "parse_quantity",
]
