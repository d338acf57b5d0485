"""
Transaction orchestrator.

Drives a transaction from submission to a terminal state for every chain
family: validates, formats, sends through the injected provider, then
polls for a receipt until it is confirmed, reverted, timed out or the
wallet session dies. Each TransactionService instance owns its own
registry and timers; there is no module-level state.
"""

from __future__ import annotations

import asyncio
import logging
import math
from typing import (
    Any,
    Callable,
    Dict,
    List,
    Mapping,
    NamedTuple,
    Optional,
    Union,
)

from multichain_tx.config import TransactionServiceConfig
from multichain_tx.errors import (
    CleanupError,
    ConnectionFailedError,
    GasEstimationError,
    InvalidParamsError,
    RequestTimeoutError,
    SimulationFailedError,
    TransactionError,
    TransactionFailedError,
    TransactionNotFoundError,
    TransactionRevertedError,
    TransactionStage,
    TxEngineError,
    ValidationError,
    is_session_error,
    to_session_error,
)
from multichain_tx.formatting import TransactionFormatter, parse_quantity, to_hex
from multichain_tx.providers.base import BlockchainProvider
from multichain_tx.service.monitor import ConfirmationWatch
from multichain_tx.types.chain import ChainType, SupportedChain
from multichain_tx.types.transaction import (
    ACTIVE_STATUSES,
    LOADING_STATUSES,
    BaseTransactionParams,
    GasEstimationResult,
    TransactionHistoryFilter,
    TransactionReceipt,
    TransactionRequest,
    TransactionResult,
    TransactionStatus,
    request_metadata,
)
from multichain_tx.utils.ids import generate_id
from multichain_tx.utils.logging import LogContext, get_logger
from multichain_tx.validation import TransactionValidator

_logger = get_logger(__name__)

# 1 gwei, used when fee history carries no reward percentile
DEFAULT_PRIORITY_FEE = 1_000_000_000
FEE_HISTORY_PARAMS = [1, "latest", [50]]

StatusListener = Callable[[TransactionResult, TransactionStatus], None]


class CheckResult(NamedTuple):
    """Outcome of a pre-flight check."""

    is_valid: bool
    error: Optional[str] = None


def _as_mapping(params: Any) -> Mapping[str, Any]:
    to_dict = getattr(params, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    if isinstance(params, Mapping):
        return params
    return {}


class TransactionService:
    """
    Sends transactions and tracks them to confirmation.

    Status flow per transaction:
    ``idle -> simulating -> (proving |) sending -> pending -> confirming ->
    confirmed | failed``. ``proving`` is only entered by the Aztec family.

    Example:
        ```python
        service = TransactionService({"confirmationTimeout": 30000})

        result = await service.send_transaction(
            EVMTransactionParams(to="0x742d...", value="1000000000000000000"),
            provider,
            ChainType.EVM,
            SupportedChain("eip155:1", ChainType.EVM),
        )
        receipt = await result.wait()
        ```
    """

    def __init__(
        self,
        config: Optional[Union[TransactionServiceConfig, Mapping[str, Any]]] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        """
        Initialize the service.

        Args:
            config: Config model or mapping of options (camelCase or snake_case)
            logger: Logger to use instead of the module logger

        Raises:
            ConfigurationError: For unrecognized keys or invalid values
        """
        self._config = TransactionServiceConfig().merged(config)
        self._logger = logger or _logger
        self._transactions: Dict[str, TransactionResult] = {}
        self._watches: Dict[str, ConfirmationWatch] = {}
        self._listeners: List[StatusListener] = []

    @property
    def config(self) -> TransactionServiceConfig:
        """Current configuration."""
        return self._config

    def configure(
        self, options: Union[TransactionServiceConfig, Mapping[str, Any]]
    ) -> TransactionServiceConfig:
        """
        Merge ``options`` into the current configuration.

        Unspecified keys keep their previous values. New timing values apply
        to monitoring started after the call.

        Raises:
            ConfigurationError: For unrecognized keys or invalid values
        """
        self._config = self._config.merged(options)
        self._logger.debug("Transaction service configured: %s", self._config.model_dump())
        return self._config

    def subscribe(self, listener: StatusListener) -> Callable[[], None]:
        """
        Register a status listener.

        The listener is called with ``(record, previous_status)`` after every
        status change. Exceptions raised by listeners are logged and dropped.

        Returns:
            A function that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # =========================================================================
    # Sending
    # =========================================================================

    async def send_transaction(
        self,
        params: TransactionRequest,
        provider: BlockchainProvider,
        chain_type: Union[ChainType, str],
        chain: Optional[SupportedChain] = None,
        wallet_id: str = "",
        address: str = "",
    ) -> TransactionResult:
        """
        Validate, send and start monitoring a transaction.

        Args:
            params: Chain-specific request (dataclass or mapping)
            provider: Provider used for the send and for receipt polling
            chain_type: Chain family of the request
            chain: Target chain metadata
            wallet_id: Identifier of the sending wallet
            address: Sender address

        Returns:
            The live record. ``await result.wait()`` resolves with the receipt.

        Raises:
            TransactionError: Tagged ``validation`` when the parameters are
                rejected (no record is kept), ``preparation`` when they cannot
                be formatted, ``signing`` when the provider call fails or does
                not return a hash.
        """
        tx_id = generate_id("tx")

        with LogContext(tx_id=tx_id):
            validation = TransactionValidator.validate(params, chain_type)
            if not validation.valid:
                self._logger.warning("Transaction rejected: %s", "; ".join(validation.errors))
                raise TransactionError.from_error(
                    ValidationError(
                        ", ".join(validation.errors),
                        details={"errors": validation.errors},
                    ),
                    TransactionStage.VALIDATION,
                    transaction_id=tx_id,
                )
            for warning in validation.warnings:
                self._logger.warning("Transaction warning: %s", warning)

            family = ChainType.parse(chain_type)
            record = self._create_record(tx_id, params, family, chain, wallet_id, address)

            self._set_status(
                record,
                TransactionStatus.PROVING if family is ChainType.AZTEC else TransactionStatus.SENDING,
            )

            try:
                method = TransactionFormatter.get_transaction_method(family)
                call_params = TransactionFormatter.send_params(params, family)
            except (TxEngineError, ValueError, TypeError, AttributeError) as e:
                raise self._fail(record, e, TransactionStage.PREPARATION)

            try:
                response = await provider.request({"method": method, "params": call_params})
            except asyncio.CancelledError:
                self._fail(
                    record,
                    TransactionFailedError("Send was cancelled"),
                    TransactionStage.SIGNING,
                )
                raise
            except Exception as e:
                cause = to_session_error(e) if is_session_error(e) else e
                raise self._fail(record, cause, TransactionStage.SIGNING)

            if not isinstance(response, str):
                raise self._fail(
                    record,
                    TransactionFailedError(
                        "Invalid transaction hash returned from provider: "
                        f"expected string, got {type(response).__name__}",
                        details={"chain_type": family.value, "method": method},
                    ),
                    TransactionStage.SIGNING,
                )

            chain_hash = TransactionFormatter.format_hash(response, family)
            record.set_chain_hash(chain_hash)

            if record.is_terminal:
                # Failed by session teardown while the send was in flight
                self._logger.warning("Transaction %s ended before broadcast completed", tx_id)
                return record

            self._set_status(record, TransactionStatus.SENDING)
            self._logger.info("Transaction sent: %s", chain_hash)

            self._set_status(record, TransactionStatus.PENDING)
            self.start_confirmation_monitoring(tx_id, chain_hash, provider, family)

            self.prune_transaction_history()
            return record

    def _create_record(
        self,
        tx_id: str,
        params: TransactionRequest,
        family: ChainType,
        chain: Optional[SupportedChain],
        wallet_id: str,
        address: str,
    ) -> TransactionResult:
        chain_id = chain.chain_id if chain is not None else ""
        if not chain_id:
            if isinstance(params, BaseTransactionParams):
                chain_id = params.chain_id or ""
            else:
                chain_id = _as_mapping(params).get("chainId") or ""

        metadata = request_metadata(params)
        record = TransactionResult(
            status_tracking_id=tx_id,
            chain_type=family,
            request=params,
            chain_id=chain_id,
            wallet_id=wallet_id,
            from_address=address,
            metadata=dict(metadata.data) if metadata is not None and metadata.data else None,
        )
        record._waiter = self.wait_for_confirmation
        self._transactions[tx_id] = record
        self._set_status(record, TransactionStatus.SIMULATING)
        self._logger.debug("Simulating transaction")
        return record

    # =========================================================================
    # Confirmation monitoring
    # =========================================================================

    def start_confirmation_monitoring(
        self,
        tx_id: str,
        chain_hash: str,
        provider: BlockchainProvider,
        chain_type: Union[ChainType, str],
    ) -> ConfirmationWatch:
        """
        Arm the timeout and the receipt poller for ``chain_hash``.

        Waiters already registered on the hash are kept. Calling it again for
        the same hash replaces both timers.
        """
        family = ChainType.parse(chain_type)
        watch = self._watch_for(chain_hash)
        watch.arm(
            self._config.confirmation_timeout_seconds,
            self._config.polling_interval_seconds,
            on_timeout=lambda: self._handle_confirmation_timeout(tx_id, chain_hash),
            on_tick=lambda: self._check_transaction_receipt(tx_id, chain_hash, provider, family),
        )
        self._logger.debug(
            "Monitoring %s (timeout=%dms, interval=%dms)",
            chain_hash,
            self._config.confirmation_timeout,
            self._config.polling_interval,
        )
        return watch

    def _watch_for(self, chain_hash: str) -> ConfirmationWatch:
        watch = self._watches.get(chain_hash)
        if watch is None or watch.settled:
            watch = ConfirmationWatch(chain_hash)
            self._watches[chain_hash] = watch
        return watch

    def _take_watch(self, chain_hash: str) -> Optional[ConfirmationWatch]:
        """Remove the watch for ``chain_hash`` and stop its timers."""
        if not chain_hash:
            return None
        watch = self._watches.pop(chain_hash, None)
        if watch is not None:
            watch.close()
        return watch

    async def _check_transaction_receipt(
        self,
        tx_id: str,
        chain_hash: str,
        provider: BlockchainProvider,
        chain_type: ChainType,
    ) -> None:
        record = self._transactions.get(tx_id)
        if record is None or record.is_terminal:
            watch = self._take_watch(chain_hash)
            if watch is not None:
                self._settle_from_record(watch, tx_id, record)
            return

        if record.status is not TransactionStatus.CONFIRMING:
            self._set_status(record, TransactionStatus.CONFIRMING)

        try:
            raw = await provider.request(
                {
                    "method": TransactionFormatter.get_receipt_method(chain_type),
                    "params": TransactionFormatter.format_receipt_params(chain_hash, chain_type),
                }
            )
        except asyncio.CancelledError:
            raise
        except Exception as e:
            if is_session_error(e):
                self._logger.warning("Session error during receipt check for %s", chain_hash)
                watch = self._take_watch(chain_hash)
                error = self._fail(record, to_session_error(e), TransactionStage.CONFIRMATION)
                if watch is not None:
                    watch.reject(error)
                return
            self._logger.debug("Receipt not yet available for %s: %s", chain_hash, e)
            return

        if not raw:
            return
        if not isinstance(raw, Mapping):
            self._logger.warning("Ignoring receipt with unexpected type %s", type(raw).__name__)
            return
        if not any(key in raw for key in ("status", "transactionHash", "blockNumber", "slot")):
            self._logger.warning("Received receipt with unexpected structure: %s", sorted(raw))

        try:
            receipt = TransactionFormatter.format_receipt(raw, chain_type)
        except (ValueError, TypeError) as e:
            self._logger.warning("Could not parse receipt for %s: %s", chain_hash, e)
            return

        self._handle_transaction_confirmed(tx_id, chain_hash, receipt)

    def _handle_transaction_confirmed(
        self, tx_id: str, chain_hash: str, receipt: TransactionReceipt
    ) -> None:
        watch = self._take_watch(chain_hash)
        record = self._transactions.get(tx_id)
        if record is None or record.is_terminal:
            if watch is not None:
                self._settle_from_record(watch, tx_id, record)
            return

        record.apply_receipt(receipt)

        if record.chain_type is ChainType.EVM and not receipt.succeeded:
            error = self._fail(
                record,
                TransactionRevertedError(
                    "Transaction was reverted",
                    tx_hash=chain_hash,
                    details={"block_number": receipt.block_number},
                ),
                TransactionStage.CONFIRMATION,
            )
            self._logger.warning("Transaction reverted: %s", chain_hash)
            if watch is not None:
                watch.reject(error)
            return

        self._set_status(record, TransactionStatus.CONFIRMED)
        self._logger.info("Transaction confirmed: %s (block %d)", chain_hash, receipt.block_number)
        if watch is not None:
            watch.resolve(receipt)

    def _handle_confirmation_timeout(self, tx_id: str, chain_hash: str) -> None:
        watch = self._take_watch(chain_hash)
        record = self._transactions.get(tx_id)
        if record is not None and record.is_terminal:
            if watch is not None:
                self._settle_from_record(watch, tx_id, record)
            return

        timeout = RequestTimeoutError(
            timeout_ms=self._config.confirmation_timeout, tx_hash=chain_hash
        )
        if record is not None:
            error = self._fail(record, timeout, TransactionStage.CONFIRMATION)
        else:
            error = TransactionError.from_error(
                timeout,
                TransactionStage.CONFIRMATION,
                transaction_id=tx_id,
                transaction_hash=chain_hash,
            )
        self._logger.warning(
            "Transaction confirmation timeout after %dms: %s",
            self._config.confirmation_timeout,
            chain_hash,
        )
        if watch is not None:
            watch.reject(error)

    def _settle_from_record(
        self,
        watch: ConfirmationWatch,
        tx_id: str,
        record: Optional[TransactionResult],
    ) -> None:
        if record is None:
            watch.reject(TransactionNotFoundError(tx_id))
        elif record.status is TransactionStatus.CONFIRMED and record.receipt is not None:
            watch.resolve(record.receipt)
        else:
            watch.reject(record.error or self._generic_failure(record))

    async def wait_for_confirmation(
        self, tx_id: str, confirmations: Optional[int] = None
    ) -> TransactionReceipt:
        """
        Wait for a transaction to reach a terminal state.

        Any number of callers may wait on the same transaction; all of them
        receive the same outcome. ``confirmations`` is accepted for API
        compatibility and is currently advisory.

        Raises:
            TransactionNotFoundError: If ``tx_id`` is unknown
            TransactionError: The recorded failure
        """
        record = self._transactions.get(tx_id)
        if record is None:
            raise TransactionNotFoundError(tx_id)

        if record.status is TransactionStatus.CONFIRMED and record.receipt is not None:
            return record.receipt
        if record.status is TransactionStatus.FAILED:
            raise record.error or self._generic_failure(record)
        if not record.chain_hash:
            raise TransactionFailedError(
                "Transaction has not been broadcast",
                details={"transaction_id": tx_id, "status": record.status.value},
            )

        return await self._watch_for(record.chain_hash).add_waiter()

    @staticmethod
    def _generic_failure(record: TransactionResult) -> TransactionError:
        return TransactionError.from_error(
            TransactionFailedError("Transaction failed"),
            TransactionStage.CONFIRMATION,
            transaction_id=record.status_tracking_id,
            transaction_hash=record.chain_hash or None,
        )

    # =========================================================================
    # Gas estimation and simulation
    # =========================================================================

    async def estimate_gas(
        self,
        params: TransactionRequest,
        provider: BlockchainProvider,
        chain_type: Union[ChainType, str] = ChainType.EVM,
    ) -> GasEstimationResult:
        """
        Estimate gas and EIP-1559 fees for an EVM transaction.

        The gas limit is buffered by ``gas_multiplier``; ``max_fee_per_gas`` is
        ``2 * base_fee + priority_fee`` using the latest block's median reward.

        Raises:
            InvalidParamsError: If no recipient is given
            ConfigurationError: If the chain family has no gas estimation
            GasEstimationError: If estimation fails or the chain has no base fee
        """
        raw = _as_mapping(params)
        if not raw.get("to"):
            raise InvalidParamsError("To address is required for gas estimation")

        estimate_method = TransactionFormatter.get_estimate_gas_method(chain_type)
        fee_method = TransactionFormatter.get_fee_history_method(chain_type)

        try:
            call = {"to": raw["to"]}
            sender = raw.get("from", raw.get("from_address"))
            if sender:
                call["from"] = sender
            if raw.get("value"):
                call["value"] = to_hex(raw["value"])
            if raw.get("data"):
                call["data"] = raw["data"]

            estimate = await provider.request({"method": estimate_method, "params": [call]})
            if not isinstance(estimate, str):
                raise GasEstimationError(
                    "Invalid gas estimate returned: "
                    f"expected string, got {type(estimate).__name__}"
                )

            gas_limit = parse_quantity(estimate)
            buffered = gas_limit * math.floor(self._config.gas_multiplier * 100) // 100

            fee_data = await provider.request({"method": fee_method, "params": FEE_HISTORY_PARAMS})
            base_fees = fee_data.get("baseFeePerGas") if isinstance(fee_data, Mapping) else None
            if not base_fees or not base_fees[0]:
                raise GasEstimationError(
                    "Chain does not support EIP-1559. Please use a modern EVM chain."
                )

            base_fee = parse_quantity(base_fees[0])
            rewards = fee_data.get("reward") or []
            priority_fee = (
                parse_quantity(rewards[0][0]) if rewards and rewards[0] else DEFAULT_PRIORITY_FEE
            )
            max_fee = base_fee * 2 + priority_fee
        except (TxEngineError, ValueError, TypeError, KeyError, IndexError) as e:
            message = e.message if isinstance(e, TxEngineError) else str(e)
            raise GasEstimationError(f"Gas estimation failed: {message}") from e

        result = GasEstimationResult(
            gas_limit=str(buffered),
            estimated_cost=str(buffered * max_fee),
            max_fee_per_gas=str(max_fee),
            max_priority_fee_per_gas=str(priority_fee),
        )
        self._logger.debug("Gas estimate: %s", result)
        return result

    async def simulate_transaction(
        self,
        params: TransactionRequest,
        provider: BlockchainProvider,
        chain_type: Union[ChainType, str] = ChainType.SOLANA,
    ) -> Any:
        """
        Simulate a Solana transaction without submitting it.

        Returns:
            The provider's raw simulation result

        Raises:
            ConfigurationError: If the chain family has no simulation
            SimulationFailedError: If the provider call fails
        """
        method = TransactionFormatter.get_simulate_method(chain_type)
        raw = _as_mapping(params)
        try:
            return await provider.request(
                {
                    "method": method,
                    "params": {
                        "transaction": raw.get("transaction"),
                        "options": raw.get("options"),
                    },
                }
            )
        except asyncio.CancelledError:
            raise
        except Exception as e:
            raise SimulationFailedError(str(e) or "Unknown error") from e

    # =========================================================================
    # Session teardown and history
    # =========================================================================

    def fail_all_active_transactions(
        self,
        session_id: Optional[str] = None,
        reason: str = "Session disconnected",
    ) -> int:
        """
        Fail every transaction that is sending, pending or confirming.

        Their timers are stopped and their waiters rejected with a
        ``connection_failed`` error. ``session_id`` is recorded on the error.

        Returns:
            Number of transactions failed
        """
        self._logger.info("Failing all active transactions: %s (session=%s)", reason, session_id)

        details = {"session_id": session_id} if session_id else None
        failed = 0
        for record in list(self._transactions.values()):
            if record.status not in ACTIVE_STATUSES:
                continue
            watch = self._take_watch(record.chain_hash)
            stage = (
                TransactionStage.CONFIRMATION if record.chain_hash else TransactionStage.BROADCASTING
            )
            error = self._fail(record, ConnectionFailedError(reason, details=details), stage)
            if watch is not None:
                watch.reject(error)
            failed += 1
        return failed

    def prune_transaction_history(self) -> int:
        """
        Drop the oldest terminal records while the registry exceeds
        ``max_history_size``. Non-terminal records are never removed.

        Returns:
            Number of records removed
        """
        excess = len(self._transactions) - self._config.max_history_size
        if excess <= 0:
            return 0
        terminal = sorted(
            (r for r in self._transactions.values() if r.is_terminal),
            key=lambda r: r.start_time,
        )
        removed = terminal[:excess]
        for record in removed:
            del self._transactions[record.status_tracking_id]
        if removed:
            self._logger.debug("Pruned %d transactions from history", len(removed))
        return len(removed)

    def clear_history(self) -> int:
        """Remove every terminal record. Returns the number removed."""
        terminal = [tx_id for tx_id, r in self._transactions.items() if r.is_terminal]
        for tx_id in terminal:
            del self._transactions[tx_id]
        return len(terminal)

    def cleanup(self) -> None:
        """
        Tear the service down.

        Stops every timer, rejects every outstanding waiter with a
        ``cleanup_failed`` error and empties the registry.
        """
        watches = list(self._watches.values())
        self._watches.clear()
        for watch in watches:
            watch.reject(CleanupError("Service cleaned up", tx_hash=watch.chain_hash))
        self._transactions.clear()
        self._logger.debug("Transaction service cleaned up (%d watches)", len(watches))

    # =========================================================================
    # Queries
    # =========================================================================

    def get_transaction(self, tx_id: str) -> Optional[TransactionResult]:
        return self._transactions.get(tx_id)

    def get_transaction_by_hash(self, chain_hash: str) -> Optional[TransactionResult]:
        for record in self._transactions.values():
            if not record.chain_hash:
                continue
            if record.chain_hash == TransactionFormatter.format_hash(chain_hash, record.chain_type):
                return record
        return None

    def get_all_transactions(self) -> List[TransactionResult]:
        return list(self._transactions.values())

    def get_transaction_history(
        self, filter: Optional[TransactionHistoryFilter] = None
    ) -> List[TransactionResult]:
        """
        Query the registry, newest first.

        Example:
            ```python
            failed = service.get_transaction_history(
                TransactionHistoryFilter(status=TransactionStatus.FAILED, limit=10)
            )
            ```
        """
        records = sorted(self._transactions.values(), key=lambda r: r.start_time, reverse=True)
        if filter is None:
            return records

        if filter.chain_id is not None:
            records = [r for r in records if r.chain_id == filter.chain_id]
        if filter.chain_type is not None:
            family = ChainType.parse(filter.chain_type)
            records = [r for r in records if r.chain_type is family]
        if filter.wallet_id is not None:
            records = [r for r in records if r.wallet_id == filter.wallet_id]
        if filter.status is not None:
            if isinstance(filter.status, (TransactionStatus, str)):
                wanted = {TransactionStatus(filter.status)}
            else:
                wanted = {TransactionStatus(s) for s in filter.status}
            records = [r for r in records if r.status in wanted]
        if filter.time_range is not None:
            start, end = filter.time_range
            records = [r for r in records if start <= r.start_time <= end]

        offset = filter.offset or 0
        if filter.limit is not None:
            return records[offset : offset + filter.limit]
        return records[offset:]

    # =========================================================================
    # Pre-flight checks
    # =========================================================================

    def validate_connection_state(
        self,
        is_connected: bool,
        chain_id: Optional[str],
        chain_type: Optional[str],
        wallet: Any,
    ) -> CheckResult:
        if not is_connected:
            return CheckResult(False, "Wallet not connected")
        if not chain_id:
            return CheckResult(False, "No chain ID available")
        if not chain_type:
            return CheckResult(False, "No chain type available")
        if not wallet:
            return CheckResult(False, "No wallet available")
        return CheckResult(True)

    def validate_transaction_params(self, params: Any, chain_type: Optional[str]) -> CheckResult:
        """Shape check only; field rules live in TransactionValidator."""
        if not params or not isinstance(params, (Mapping, BaseTransactionParams)):
            return CheckResult(False, "Invalid transaction parameters")
        if not chain_type:
            return CheckResult(False, "Chain type required for validation")
        return CheckResult(True)

    def validate_chain_compatibility(
        self,
        target_chain_id: Optional[str],
        current_chain_id: Optional[str],
        wallet: Any,
    ) -> CheckResult:
        if not current_chain_id:
            return CheckResult(False, "No current chain ID available")
        if not wallet:
            return CheckResult(False, "No wallet available for chain validation")
        return CheckResult(True)

    def validate_gas_estimation_params(
        self, params: TransactionRequest, chain_type: Optional[str]
    ) -> CheckResult:
        if not _as_mapping(params).get("to"):
            return CheckResult(False, "To address required for gas estimation")
        if chain_type != ChainType.EVM.value:
            return CheckResult(False, "Gas estimation only supported for EVM chains")
        return CheckResult(True)

    def validate_simulation_params(
        self, params: TransactionRequest, chain_type: Optional[str]
    ) -> CheckResult:
        if not _as_mapping(params).get("transaction"):
            return CheckResult(False, "Transaction data required for simulation")
        if chain_type != ChainType.SOLANA.value:
            return CheckResult(False, "Transaction simulation only supported for Solana chains")
        return CheckResult(True)

    @staticmethod
    def compute_loading_state(status: Union[TransactionStatus, str]) -> bool:
        """True while the transaction is actively being processed. Confirming is a passive wait."""
        return TransactionStatus(status) in LOADING_STATUSES

    # =========================================================================
    # Internal state changes
    # =========================================================================

    def _set_status(
        self,
        record: TransactionResult,
        status: TransactionStatus,
        error: Optional[TransactionError] = None,
    ) -> None:
        previous = record.transition(status)
        if error is not None:
            record.error = error
        if previous is not status:
            self._logger.debug(
                "Transaction %s: %s -> %s",
                record.status_tracking_id,
                previous.value,
                status.value,
            )
            self._notify(record, previous)
        if status.is_terminal:
            self.prune_transaction_history()

    def _notify(self, record: TransactionResult, previous: TransactionStatus) -> None:
        for listener in list(self._listeners):
            try:
                listener(record, previous)
            except Exception:
                self._logger.exception(
                    "Status listener failed for %s", record.status_tracking_id
                )

    def _fail(
        self,
        record: TransactionResult,
        error: BaseException,
        stage: TransactionStage,
    ) -> TransactionError:
        """Record ``error`` on ``record`` and move it to failed, unless already terminal."""
        tx_error = TransactionError.from_error(
            error,
            stage,
            transaction_id=record.status_tracking_id,
            transaction_hash=record.chain_hash or None,
        )
        if not record.is_terminal:
            self._set_status(record, TransactionStatus.FAILED, tx_error)
        return tx_error


__all__ = ["TransactionService", "CheckResult", "StatusListener"]
