"""
Tests for TransactionValidator.
"""

import pytest

from multichain_tx.types import ChainType, EVMTransactionParams
from multichain_tx.validation import TransactionValidator, is_base64, is_uint256
from tests.conftest import SOLANA_TX, VALID_ADDRESS, VALID_CONTRACT


def errors_for(params, chain_type) -> list:
    return TransactionValidator.validate(params, chain_type).errors


# =============================================================================
# EVM
# =============================================================================


class TestEvmValidation:
    """Tests for EVM parameter rules."""

    def test_valid_transfer(self) -> None:
        result = TransactionValidator.validate(
            {"to": VALID_ADDRESS, "value": "1000000000000000000"}, ChainType.EVM
        )

        assert result.valid
        assert result.errors == []
        assert result.warnings == []

    def test_dataclass_params(self) -> None:
        params = EVMTransactionParams(to=VALID_ADDRESS, data="0xa9059cbb")

        assert TransactionValidator.validate(params, "evm").valid

    @pytest.mark.parametrize(
        "params,message",
        [
            ({}, "Recipient address (to) is required"),
            ({"to": "not-an-address"}, "Invalid recipient address: not-an-address"),
            ({"to": VALID_ADDRESS, "from": "0x12"}, "Invalid sender address: 0x12"),
            ({"to": VALID_ADDRESS, "value": "-1"}, "value must be"),
            ({"to": VALID_ADDRESS, "gas": "0x5208"}, "gas must be"),
            ({"to": VALID_ADDRESS, "value": str(2**256)}, "value must be"),
            ({"to": VALID_ADDRESS, "nonce": -1}, "nonce must be"),
            ({"to": VALID_ADDRESS, "data": "0xabc"}, "data must be"),
            ({"to": VALID_ADDRESS + "\n"}, "Invalid recipient address"),
            ({"to": VALID_ADDRESS, "value": "1000\n"}, "value must be"),
            ({"to": VALID_ADDRESS, "value": "\u0661\u0662"}, "value must be"),
            ({"to": VALID_ADDRESS, "data": "0xa9059cbb\n"}, "data must be"),
        ],
    )
    def test_errors(self, params: dict, message: str) -> None:
        errors = errors_for(params, ChainType.EVM)

        assert any(e.startswith(message) for e in errors), errors

    def test_warnings_do_not_invalidate(self) -> None:
        result = TransactionValidator.validate(
            {
                "to": VALID_ADDRESS,
                "value": "1",
                "maxFeePerGas": "10",
                "maxPriorityFeePerGas": "20",
            },
            ChainType.EVM,
        )

        assert result.valid
        assert "maxPriorityFeePerGas exceeds maxFeePerGas" in result.warnings

    def test_empty_transaction_warns(self) -> None:
        result = TransactionValidator.validate({"to": VALID_ADDRESS}, ChainType.EVM)

        assert result.valid
        assert result.warnings == ["Transaction has no value and no data"]


# =============================================================================
# Solana and Aztec
# =============================================================================


class TestSolanaValidation:
    """Tests for Solana parameter rules."""

    def test_valid(self) -> None:
        assert TransactionValidator.validate({"transaction": SOLANA_TX}, "solana").valid

    def test_non_string_transaction(self) -> None:
        assert errors_for({"transaction": 123}, "solana") == [
            "Transaction must be a base64-encoded string"
        ]

    def test_bad_commitment(self) -> None:
        errors = errors_for(
            {"transaction": SOLANA_TX, "options": {"preflightCommitment": "soon"}}, "solana"
        )

        assert errors == ["preflightCommitment must be one of: processed, confirmed, finalized"]

    def test_skip_preflight_warns(self) -> None:
        result = TransactionValidator.validate(
            {"transaction": SOLANA_TX, "options": {"skipPreflight": True}}, "solana"
        )

        assert result.valid
        assert result.warnings


class TestAztecValidation:
    """Tests for Aztec parameter rules."""

    def test_valid(self) -> None:
        params = {"contractAddress": VALID_CONTRACT, "functionName": "transfer", "args": []}

        assert TransactionValidator.validate(params, "aztec").valid

    def test_gasless_requires_payer(self) -> None:
        params = {
            "contractAddress": VALID_CONTRACT,
            "functionName": "transfer",
            "args": [],
            "fee": {"paymentMethod": "gasless"},
        }

        assert errors_for(params, "aztec") == ["fee.payer is required for gasless payment"]

    def test_missing_fields(self) -> None:
        errors = errors_for({"args": "nope"}, "aztec")

        assert "Contract address is required" in errors
        assert "Function name must be a non-empty string" in errors
        assert "args must be an array" in errors


# =============================================================================
# General
# =============================================================================


class TestGeneralValidation:
    """Tests for cross-family behavior."""

    def test_unsupported_chain_type(self) -> None:
        assert errors_for({"to": VALID_ADDRESS}, "bitcoin") == ["Unsupported chain type: bitcoin"]

    def test_chain_type_is_case_insensitive(self) -> None:
        assert TransactionValidator.validate({"to": VALID_ADDRESS, "value": "1"}, "EVM").valid
        assert TransactionValidator.validate({"transaction": SOLANA_TX}, "Solana").valid

    def test_non_object_params(self) -> None:
        assert errors_for("0xdeadbeef", "evm") == ["Transaction parameters must be an object"]

    def test_auto_switch_without_chain_id_warns(self) -> None:
        result = TransactionValidator.validate(
            {"to": VALID_ADDRESS, "value": "1", "autoSwitchChain": True}, "evm"
        )

        assert result.valid
        assert "autoSwitchChain is set but no chainId was given" in result.warnings

    def test_helpers(self) -> None:
        assert is_uint256("0")
        assert is_uint256(2**256 - 1)
        assert not is_uint256(True)
        assert is_base64(SOLANA_TX)
        assert not is_base64("not base64!")
        assert not is_uint256("7\n")
        assert not is_uint256(" 7")
