"""
Transaction parameter validation.

Pure, synchronous checks run before anything is sent. Validation never
raises: it always returns a TransactionValidationResult so callers can
surface warnings without failing.

Each chain family has one entry in the validator table; adding a chain
family means adding one function and one table row.
"""

from __future__ import annotations

import base64
import binascii
import re
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from multichain_tx.errors import ConfigurationError
from multichain_tx.types.chain import ChainType
from multichain_tx.types.transaction import TransactionValidationResult

# 20-byte hex address. Also used for Aztec addresses as an approximation.
ADDRESS_PATTERN = re.compile(r"0x[0-9a-fA-F]{40}")
HEX_DATA_PATTERN = re.compile(r"0x(?:[0-9a-fA-F]{2})*")
DECIMAL_PATTERN = re.compile(r"[0-9]+")

MAX_UINT256 = 2**256 - 1
SOLANA_COMMITMENTS = ("processed", "confirmed", "finalized")
AZTEC_PAYMENT_METHODS = ("native", "gasless")

EVM_NUMERIC_FIELDS = ("value", "gas", "maxFeePerGas", "maxPriorityFeePerGas")

Issues = Tuple[List[str], List[str]]


def _as_mapping(params: Any) -> Optional[Mapping[str, Any]]:
    to_dict = getattr(params, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    if isinstance(params, Mapping):
        return params
    return None


def _field(raw: Mapping[str, Any], camel: str, snake: Optional[str] = None) -> Any:
    if camel in raw:
        return raw[camel]
    if snake is not None:
        return raw.get(snake)
    return None


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def is_valid_address(value: Any) -> bool:
    """Check for a 0x-prefixed 20-byte hex address."""
    return isinstance(value, str) and bool(ADDRESS_PATTERN.fullmatch(value))


def is_uint256(value: Any) -> bool:
    """Check for a non-negative integer (int or decimal string) that fits in 256 bits."""
    if _is_int(value):
        number = value
    elif isinstance(value, str) and DECIMAL_PATTERN.fullmatch(value):
        number = int(value)
    else:
        return False
    return 0 <= number <= MAX_UINT256


def is_base64(value: Any) -> bool:
    if not isinstance(value, str) or not value:
        return False
    try:
        base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError):
        return False
    return True


# ============================================================================
# Per-family validators
# ============================================================================


def _validate_evm(raw: Mapping[str, Any]) -> Issues:
    errors: List[str] = []
    warnings: List[str] = []

    to = raw.get("to")
    if not to:
        errors.append("Recipient address (to) is required")
    elif not is_valid_address(to):
        errors.append(f"Invalid recipient address: {to}")

    sender = _field(raw, "from", "from_address")
    if sender is not None and not is_valid_address(sender):
        errors.append(f"Invalid sender address: {sender}")

    snake = {
        "maxFeePerGas": "max_fee_per_gas",
        "maxPriorityFeePerGas": "max_priority_fee_per_gas",
    }
    for name in EVM_NUMERIC_FIELDS:
        value = _field(raw, name, snake.get(name))
        if value is not None and not is_uint256(value):
            errors.append(f"{name} must be a non-negative integer string within uint256 range")

    nonce = raw.get("nonce")
    if nonce is not None and not (_is_int(nonce) and nonce >= 0):
        errors.append("nonce must be a non-negative integer")

    data = raw.get("data")
    if data is not None and not (isinstance(data, str) and HEX_DATA_PATTERN.fullmatch(data)):
        errors.append("data must be an even-length 0x-prefixed hex string")

    if not errors:
        value = raw.get("value")
        if (value is None or str(value) == "0") and (data is None or data == "0x"):
            warnings.append("Transaction has no value and no data")

        max_fee = _field(raw, "maxFeePerGas", "max_fee_per_gas")
        priority_fee = _field(raw, "maxPriorityFeePerGas", "max_priority_fee_per_gas")
        if max_fee is not None and priority_fee is not None and int(priority_fee) > int(max_fee):
            warnings.append("maxPriorityFeePerGas exceeds maxFeePerGas")
        if raw.get("gas") is not None and max_fee is None and priority_fee is None:
            warnings.append("Gas limit given without fee parameters; the wallet will choose fees")

    return errors, warnings


def _validate_solana(raw: Mapping[str, Any]) -> Issues:
    errors: List[str] = []
    warnings: List[str] = []

    transaction = raw.get("transaction")
    if transaction is None or transaction == "":
        errors.append("Serialized transaction is required")
    elif not isinstance(transaction, str):
        errors.append("Transaction must be a base64-encoded string")
    elif not is_base64(transaction):
        errors.append("Transaction is not valid base64")

    options = raw.get("options")
    if options is not None:
        if not isinstance(options, Mapping):
            errors.append("options must be an object")
        else:
            commitment = _field(options, "preflightCommitment", "preflight_commitment")
            if commitment is not None and commitment not in SOLANA_COMMITMENTS:
                errors.append(
                    f"preflightCommitment must be one of: {', '.join(SOLANA_COMMITMENTS)}"
                )
            retries = _field(options, "maxRetries", "max_retries")
            if retries is not None and not (_is_int(retries) and retries >= 0):
                errors.append("maxRetries must be a non-negative integer")
            skip = _field(options, "skipPreflight", "skip_preflight")
            if skip is not None and not isinstance(skip, bool):
                errors.append("skipPreflight must be a boolean")
            elif skip:
                warnings.append("Preflight checks are skipped; failures surface only on-chain")

    return errors, warnings


def _validate_aztec(raw: Mapping[str, Any]) -> Issues:
    errors: List[str] = []
    warnings: List[str] = []

    contract = _field(raw, "contractAddress", "contract_address")
    if not contract:
        errors.append("Contract address is required")
    elif not is_valid_address(contract):
        errors.append(f"Invalid contract address: {contract}")

    function_name = _field(raw, "functionName", "function_name")
    if not isinstance(function_name, str) or not function_name.strip():
        errors.append("Function name must be a non-empty string")

    args = raw.get("args")
    if not isinstance(args, (list, tuple)):
        errors.append("args must be an array")

    fee = raw.get("fee")
    if fee is not None:
        if not isinstance(fee, Mapping):
            errors.append("fee must be an object")
        else:
            method = _field(fee, "paymentMethod", "payment_method")
            if method not in AZTEC_PAYMENT_METHODS:
                errors.append(
                    f"fee.paymentMethod must be one of: {', '.join(AZTEC_PAYMENT_METHODS)}"
                )
            elif method == "gasless":
                payer = fee.get("payer")
                if not payer:
                    errors.append("fee.payer is required for gasless payment")
                elif not is_valid_address(payer):
                    errors.append(f"Invalid fee payer address: {payer}")

    return errors, warnings


_VALIDATORS: Dict[ChainType, Callable[[Mapping[str, Any]], Issues]] = {
    ChainType.EVM: _validate_evm,
    ChainType.SOLANA: _validate_solana,
    ChainType.AZTEC: _validate_aztec,
}


class TransactionValidator:
    """
    Validates chain-specific transaction parameters.

    Example:
        >>> result = TransactionValidator.validate({"to": "not-an-address"}, ChainType.EVM)
        >>> result.valid
        False
    """

    @staticmethod
    def validate(params: Any, chain_type: Any) -> TransactionValidationResult:
        """
        Validate ``params`` for ``chain_type``.

        Accepts the request dataclasses or plain mappings (camelCase or
        snake_case keys).
        """
        try:
            chain = ChainType.parse(chain_type)
        except ConfigurationError:
            return TransactionValidationResult(
                valid=False, errors=[f"Unsupported chain type: {chain_type}"]
            )

        raw = _as_mapping(params)
        if raw is None:
            return TransactionValidationResult(
                valid=False, errors=["Transaction parameters must be an object"]
            )

        errors, warnings = _VALIDATORS[chain](raw)

        auto_switch = _field(raw, "autoSwitchChain", "auto_switch_chain")
        if auto_switch and not _field(raw, "chainId", "chain_id"):
            warnings.append("autoSwitchChain is set but no chainId was given")

        return TransactionValidationResult(valid=not errors, errors=errors, warnings=warnings)


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
