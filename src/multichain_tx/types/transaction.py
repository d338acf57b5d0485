"""
Transaction data model.

Provides:
- TransactionStatus: lifecycle state machine
- Request variants for each chain family (EVM, Solana, Aztec)
- TransactionReceipt: normalized cross-chain receipt
- TransactionResult: the mutable record the engine owns per transaction
- GasEstimationResult, TransactionValidationResult, TransactionHistoryFilter

Numeric EVM fields are carried as decimal strings to avoid precision loss.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import (
    TYPE_CHECKING,
    Any,
    Awaitable,
    Callable,
    Dict,
    FrozenSet,
    List,
    Mapping,
    Optional,
    Sequence,
    Tuple,
    Union,
)

from multichain_tx.errors import (
    InvalidStateTransitionError,
    TransactionFailedError,
)
from multichain_tx.types.chain import ChainType

if TYPE_CHECKING:
    from multichain_tx.errors import TxEngineError


class TransactionStatus(str, Enum):
    """Transaction lifecycle status."""

    IDLE = "idle"
    SIMULATING = "simulating"
    PROVING = "proving"
    SENDING = "sending"
    PENDING = "pending"
    CONFIRMING = "confirming"
    CONFIRMED = "confirmed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


# Partial order of the forward path; FAILED sits outside it.
_STATUS_RANK: Dict[TransactionStatus, int] = {
    TransactionStatus.IDLE: 0,
    TransactionStatus.SIMULATING: 1,
    TransactionStatus.PROVING: 2,
    TransactionStatus.SENDING: 3,
    TransactionStatus.PENDING: 4,
    TransactionStatus.CONFIRMING: 5,
    TransactionStatus.CONFIRMED: 6,
}

TERMINAL_STATUSES: FrozenSet[TransactionStatus] = frozenset(
    {TransactionStatus.CONFIRMED, TransactionStatus.FAILED}
)
NON_TERMINAL_STATUSES: FrozenSet[TransactionStatus] = frozenset(
    set(TransactionStatus) - TERMINAL_STATUSES
)
# Statuses failed by session teardown: the ones with live polling.
ACTIVE_STATUSES: FrozenSet[TransactionStatus] = frozenset(
    {TransactionStatus.PENDING, TransactionStatus.SENDING, TransactionStatus.CONFIRMING}
)
LOADING_STATUSES: FrozenSet[TransactionStatus] = frozenset(
    {
        TransactionStatus.SIMULATING,
        TransactionStatus.PROVING,
        TransactionStatus.SENDING,
        TransactionStatus.PENDING,
    }
)


def can_transition(current: TransactionStatus, new: TransactionStatus) -> bool:
    """
    Check a status change against the state machine.

    Forward moves (and repeats) along
    idle -> simulating -> proving -> sending -> pending -> confirming -> confirmed
    are allowed, FAILED is reachable from any non-terminal status, and
    nothing leaves CONFIRMED or FAILED.
    """
    current = TransactionStatus(current)
    new = TransactionStatus(new)
    if current.is_terminal:
        return False
    if new is TransactionStatus.FAILED:
        return True
    return _STATUS_RANK[new] >= _STATUS_RANK[current]


# ============================================================================
# Requests
# ============================================================================


@dataclass
class TransactionMetadata:
    """UI/audit metadata. Never sent on-chain."""

    description: Optional[str] = None
    action: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, raw: Optional[Mapping[str, Any]]) -> Optional["TransactionMetadata"]:
        if raw is None:
            return None
        if isinstance(raw, cls):
            return raw
        return cls(
            description=raw.get("description"),
            action=raw.get("action"),
            data=dict(raw.get("data") or {}),
        )


def _pick(raw: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in raw:
            return raw[key]
    return None


def _compact(values: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in values.items() if v is not None}


@dataclass(kw_only=True)
class BaseTransactionParams:
    """Fields shared by every chain family's request."""

    chain_id: Optional[str] = None
    auto_switch_chain: Optional[bool] = None
    metadata: Optional[TransactionMetadata] = None

    def _base_dict(self) -> Dict[str, Any]:
        return _compact(
            {
                "chainId": self.chain_id,
                "autoSwitchChain": self.auto_switch_chain,
            }
        )

    @staticmethod
    def _base_kwargs(raw: Mapping[str, Any]) -> Dict[str, Any]:
        return {
            "chain_id": _pick(raw, "chainId", "chain_id"),
            "auto_switch_chain": _pick(raw, "autoSwitchChain", "auto_switch_chain"),
            "metadata": TransactionMetadata.from_dict(raw.get("metadata")),
        }


@dataclass
class EVMTransactionParams(BaseTransactionParams):
    """
    EVM transaction request.

    Attributes:
        to: Recipient address (required)
        value: Amount in wei, decimal string
        data: Call data, 0x-prefixed hex
        gas: Gas limit, decimal string
        max_fee_per_gas: EIP-1559 max fee, decimal string
        max_priority_fee_per_gas: EIP-1559 tip, decimal string
        nonce: Account nonce
        from_address: Sender address
    """

    to: str = ""
    value: Optional[str] = None
    data: Optional[str] = None
    gas: Optional[str] = None
    max_fee_per_gas: Optional[str] = None
    max_priority_fee_per_gas: Optional[str] = None
    nonce: Optional[int] = None
    from_address: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            **self._base_dict(),
            **_compact(
                {
                    "to": self.to,
                    "value": self.value,
                    "data": self.data,
                    "gas": self.gas,
                    "maxFeePerGas": self.max_fee_per_gas,
                    "maxPriorityFeePerGas": self.max_priority_fee_per_gas,
                    "nonce": self.nonce,
                    "from": self.from_address,
                }
            ),
        }

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "EVMTransactionParams":
        return cls(
            to=raw.get("to", ""),
            value=raw.get("value"),
            data=raw.get("data"),
            gas=raw.get("gas"),
            max_fee_per_gas=_pick(raw, "maxFeePerGas", "max_fee_per_gas"),
            max_priority_fee_per_gas=_pick(raw, "maxPriorityFeePerGas", "max_priority_fee_per_gas"),
            nonce=raw.get("nonce"),
            from_address=_pick(raw, "from", "from_address"),
            **cls._base_kwargs(raw),
        )


@dataclass
class SolanaSendOptions:
    """Send options for Solana transactions."""

    skip_preflight: Optional[bool] = None
    preflight_commitment: Optional[str] = None
    max_retries: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return _compact(
            {
                "skipPreflight": self.skip_preflight,
                "preflightCommitment": self.preflight_commitment,
                "maxRetries": self.max_retries,
            }
        )

    @classmethod
    def from_dict(cls, raw: Optional[Mapping[str, Any]]) -> Optional["SolanaSendOptions"]:
        if raw is None:
            return None
        if isinstance(raw, cls):
            return raw
        return cls(
            skip_preflight=_pick(raw, "skipPreflight", "skip_preflight"),
            preflight_commitment=_pick(raw, "preflightCommitment", "preflight_commitment"),
            max_retries=_pick(raw, "maxRetries", "max_retries"),
        )


@dataclass
class SolanaTransactionParams(BaseTransactionParams):
    """
    Solana transaction request.

    Attributes:
        transaction: Serialized transaction, base64 encoded
        options: Send options
    """

    transaction: str = ""
    options: Optional[SolanaSendOptions] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {**self._base_dict(), "transaction": self.transaction}
        if self.options is not None:
            data["options"] = self.options.to_dict()
        return data

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "SolanaTransactionParams":
        return cls(
            transaction=raw.get("transaction", ""),
            options=SolanaSendOptions.from_dict(raw.get("options")),
            **cls._base_kwargs(raw),
        )


@dataclass
class AztecFeeOptions:
    """Fee payment descriptor: "native" (self-paid) or "gasless" (sponsored)."""

    payment_method: str = "native"
    payer: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return _compact({"paymentMethod": self.payment_method, "payer": self.payer})

    @classmethod
    def from_dict(cls, raw: Optional[Mapping[str, Any]]) -> Optional["AztecFeeOptions"]:
        if raw is None:
            return None
        if isinstance(raw, cls):
            return raw
        return cls(
            payment_method=_pick(raw, "paymentMethod", "payment_method"),
            payer=raw.get("payer"),
        )


@dataclass
class AztecTransactionParams(BaseTransactionParams):
    """
    Aztec contract call request.

    Attributes:
        contract_address: Target contract
        function_name: Function to call
        args: Ordered argument list
        fee: Optional fee payment descriptor
    """

    contract_address: str = ""
    function_name: str = ""
    args: List[Any] = field(default_factory=list)
    fee: Optional[AztecFeeOptions] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            **self._base_dict(),
            "contractAddress": self.contract_address,
            "functionName": self.function_name,
            "args": self.args,
        }
        if self.fee is not None:
            data["fee"] = self.fee.to_dict()
        return data

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "AztecTransactionParams":
        return cls(
            contract_address=_pick(raw, "contractAddress", "contract_address") or "",
            function_name=_pick(raw, "functionName", "function_name") or "",
            args=raw.get("args", []),
            fee=AztecFeeOptions.from_dict(raw.get("fee")),
            **cls._base_kwargs(raw),
        )


TransactionRequest = Union[
    EVMTransactionParams,
    SolanaTransactionParams,
    AztecTransactionParams,
    Mapping[str, Any],
]


def request_metadata(request: TransactionRequest) -> Optional[TransactionMetadata]:
    """Extract the metadata block from a request of any shape."""
    if isinstance(request, BaseTransactionParams):
        return request.metadata
    if isinstance(request, Mapping):
        return TransactionMetadata.from_dict(request.get("metadata"))
    return None


# ============================================================================
# Receipts and results
# ============================================================================


@dataclass
class TransactionReceipt:
    """Normalized post-confirmation record shared by all chain families."""

    transaction_hash: str
    block_hash: str
    block_number: int
    from_address: str
    gas_used: str
    status: Union[str, int]
    to: Optional[str] = None
    logs: List[Any] = field(default_factory=list)
    effective_gas_price: Optional[str] = None
    cumulative_gas_used: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status not in ("0x0", 0)

    def to_dict(self) -> Dict[str, Any]:
        return _compact(
            {
                "transactionHash": self.transaction_hash,
                "blockHash": self.block_hash,
                "blockNumber": self.block_number,
                "from": self.from_address,
                "to": self.to,
                "gasUsed": self.gas_used,
                "status": self.status,
                "logs": self.logs,
                "effectiveGasPrice": self.effective_gas_price,
                "cumulativeGasUsed": self.cumulative_gas_used,
            }
        )


Waiter = Callable[[str, Optional[int]], Awaitable[TransactionReceipt]]


@dataclass
class TransactionResult:
    """
    Mutable record the engine owns per transaction.

    ``status_tracking_id`` is assigned before any network call and never
    reused. ``chain_hash`` stays empty until a broadcast succeeds and is
    permanent once set. ``status`` only moves forward (see
    :func:`can_transition`).
    """

    status_tracking_id: str
    chain_type: ChainType
    request: Any
    chain_id: str = ""
    wallet_id: str = ""
    from_address: str = ""
    chain_hash: str = ""
    status: TransactionStatus = TransactionStatus.IDLE
    start_time: float = field(default_factory=time.time)
    end_time: Optional[float] = None
    receipt: Optional[TransactionReceipt] = None
    error: Optional["TxEngineError"] = None
    block_number: Optional[int] = None
    block_hash: Optional[str] = None
    gas_used: Optional[str] = None
    effective_gas_price: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
    _waiter: Optional[Waiter] = field(default=None, repr=False, compare=False)

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def transition(self, status: TransactionStatus) -> TransactionStatus:
        """
        Move to ``status``, stamping ``end_time`` on terminal states.

        Returns:
            The previous status.

        Raises:
            InvalidStateTransitionError: If the move would regress.
        """
        status = TransactionStatus(status)
        previous = self.status
        if not can_transition(previous, status):
            raise InvalidStateTransitionError(
                previous.value, status.value, transaction_id=self.status_tracking_id
            )
        self.status = status
        if status.is_terminal and self.end_time is None:
            self.end_time = time.time()
        return previous

    def set_chain_hash(self, chain_hash: str) -> None:
        """Assign the on-chain hash. A different hash can never replace it."""
        if self.chain_hash and self.chain_hash != chain_hash:
            raise TransactionFailedError(
                "Chain hash is already assigned",
                tx_hash=self.chain_hash,
                details={"transaction_id": self.status_tracking_id, "new_hash": chain_hash},
            )
        self.chain_hash = chain_hash

    def apply_receipt(self, receipt: TransactionReceipt) -> None:
        self.receipt = receipt
        self.block_number = receipt.block_number
        self.block_hash = receipt.block_hash
        if self.chain_type is ChainType.EVM:
            self.gas_used = receipt.gas_used
            if receipt.effective_gas_price is not None:
                self.effective_gas_price = receipt.effective_gas_price

    async def wait(self, confirmations: Optional[int] = None) -> TransactionReceipt:
        """
        Wait for the transaction to be confirmed.

        A record that is already terminal settles from its own receipt or
        error, even after the service has pruned it from history.

        Raises:
            TransactionError: The stage-tagged failure, if the transaction fails.
        """
        if self.status is TransactionStatus.CONFIRMED and self.receipt is not None:
            return self.receipt
        if self.status is TransactionStatus.FAILED and self.error is not None:
            raise self.error
        if self._waiter is not None:
            return await self._waiter(self.status_tracking_id, confirmations)
        if self.error is not None:
            raise self.error
        raise TransactionFailedError(
            "Transaction is not attached to a service",
            details={"transaction_id": self.status_tracking_id},
        )


@dataclass
class GasEstimationResult:
    """EIP-1559 gas estimate. All values are decimal strings."""

    gas_limit: str
    estimated_cost: str
    max_fee_per_gas: Optional[str] = None
    max_priority_fee_per_gas: Optional[str] = None


@dataclass
class TransactionValidationResult:
    """Outcome of parameter validation. Validation never raises."""

    valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


@dataclass
class TransactionHistoryFilter:
    """
    Filter for transaction history queries.

    Attributes:
        chain_id: Only this chain
        chain_type: Only this chain family
        status: One status or several
        wallet_id: Only this wallet
        time_range: Inclusive (start, end) range on start_time, in seconds
        limit: Maximum number of results
        offset: Number of results to skip
    """

    chain_id: Optional[str] = None
    chain_type: Optional[ChainType] = None
    status: Optional[Union[TransactionStatus, Sequence[TransactionStatus]]] = None
    wallet_id: Optional[str] = None
    time_range: Optional[Tuple[float, float]] = None
    limit: Optional[int] = None
    offset: Optional[int] = None


__all__ = [
    "TransactionStatus",
    "TERMINAL_STATUSES",
    "NON_TERMINAL_STATUSES",
    "ACTIVE_STATUSES",
    "LOADING_STATUSES",
    "can_transition",
    "TransactionMetadata",
    "BaseTransactionParams",
    "EVMTransactionParams",
    "SolanaSendOptions",
    "SolanaTransactionParams",
    "AztecFeeOptions",
    "AztecTransactionParams",
    "TransactionRequest",
    "request_metadata",
    "TransactionReceipt",
    "TransactionResult",
    "GasEstimationResult",
    "TransactionValidationResult",
    "TransactionHistoryFilter",
]
