"""
Tests for configuration models.
"""

import pytest

from multichain_tx.config import JsonRpcProviderConfig, TransactionServiceConfig
from multichain_tx.errors import ConfigurationError


class TestTransactionServiceConfig:
    """Tests for TransactionServiceConfig."""

    def test_defaults(self) -> None:
        config = TransactionServiceConfig()

        assert config.confirmations == 1
        assert config.confirmation_timeout == 60000
        assert config.polling_interval == 2000
        assert config.max_history_size == 100
        assert config.gas_multiplier == 1.1
        assert config.confirmation_timeout_seconds == 60.0
        assert config.polling_interval_seconds == 2.0

    def test_merge_accepts_both_key_styles(self) -> None:
        config = TransactionServiceConfig().merged(
            {"pollingInterval": 100, "max_history_size": 5}
        )

        assert config.polling_interval == 100
        assert config.max_history_size == 5
        assert config.confirmation_timeout == 60000

    def test_merge_returns_new_instance(self) -> None:
        base = TransactionServiceConfig()

        merged = base.merged({"confirmationTimeout": 10})

        assert base.confirmation_timeout == 60000
        assert merged.confirmation_timeout == 10
        assert base.merged(None) is base

    def test_merge_another_config_only_applies_set_keys(self) -> None:
        base = TransactionServiceConfig(pollingInterval=50)

        merged = base.merged(TransactionServiceConfig(gas_multiplier=1.5))

        assert merged.polling_interval == 50
        assert merged.gas_multiplier == 1.5

    def test_unknown_key(self) -> None:
        with pytest.raises(ConfigurationError, match="Unrecognized configuration key"):
            TransactionServiceConfig().merged({"timeout": 1})

    def test_invalid_value(self) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            TransactionServiceConfig().merged({"gasMultiplier": 0.5})

        assert exc_info.value.details["errors"]


class TestJsonRpcProviderConfig:
    """Tests for JsonRpcProviderConfig."""

    def test_defaults(self) -> None:
        config = JsonRpcProviderConfig(url="http://localhost:8545")

        assert config.timeout == 30000
        assert config.max_retries == 3
        assert config.headers == {}
