"""
Configuration models for the transaction engine.

Both models are immutable pydantic models; ``TransactionServiceConfig.merged``
produces a new config with only the given keys replaced, so unspecified
keys keep their previous values.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError as PydanticValidationError

from multichain_tx.errors import ConfigurationError

__all__ = ["TransactionServiceConfig", "JsonRpcProviderConfig"]


class TransactionServiceConfig(BaseModel):
    """
    Transaction monitoring configuration.

    Keys may be given in snake_case or in camelCase
    (``confirmationTimeout``, ``pollingInterval``, ...).
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="forbid")

    confirmations: int = Field(
        default=1,
        ge=1,
        description="Block confirmations to wait for (advisory)",
    )
    confirmation_timeout: int = Field(
        default=60000,
        ge=1,
        alias="confirmationTimeout",
        description="Time in ms before an unconfirmed transaction fails",
    )
    polling_interval: int = Field(
        default=2000,
        ge=1,
        alias="pollingInterval",
        description="Interval in ms between receipt polls",
    )
    max_history_size: int = Field(
        default=100,
        ge=1,
        alias="maxHistorySize",
        description="Terminal transactions kept before pruning",
    )
    gas_multiplier: float = Field(
        default=1.1,
        ge=1.0,
        alias="gasMultiplier",
        description="Safety buffer applied to gas estimates",
    )

    @property
    def confirmation_timeout_seconds(self) -> float:
        return self.confirmation_timeout / 1000

    @property
    def polling_interval_seconds(self) -> float:
        return self.polling_interval / 1000

    def merged(
        self,
        options: Optional[Union["TransactionServiceConfig", Mapping[str, Any]]],
    ) -> "TransactionServiceConfig":
        """
        Return a copy with ``options`` applied on top.

        Raises:
            ConfigurationError: For unrecognized keys or invalid values.
        """
        if not options:
            return self
        if isinstance(options, TransactionServiceConfig):
            options = options.model_dump(exclude_unset=True)

        aliases = {f.alias: name for name, f in type(self).model_fields.items() if f.alias}
        updates: Dict[str, Any] = {}
        for key, value in options.items():
            name = aliases.get(key, key)
            if name not in type(self).model_fields:
                raise ConfigurationError(
                    f"Unrecognized configuration key: {key}",
                    details={"key": key},
                )
            if value is not None:
                updates[name] = value

        try:
            return TransactionServiceConfig(**{**self.model_dump(), **updates})
        except PydanticValidationError as e:
            raise ConfigurationError(
                "Invalid transaction service configuration",
                details={"errors": e.errors(include_url=False)},
            ) from e


class JsonRpcProviderConfig(BaseModel):
    """
    HTTP JSON-RPC provider configuration.
    """

    model_config = ConfigDict(frozen=True)

    url: str = Field(
        ...,
        min_length=1,
        description="JSON-RPC endpoint URL",
    )
    timeout: int = Field(
        default=30000,
        ge=100,
        description="Request timeout in ms",
    )
    headers: Dict[str, str] = Field(
        default_factory=dict,
        description="Extra HTTP headers sent with every request",
    )
    max_retries: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts for transport-level failures",
    )
    retry_delay: int = Field(
        default=500,
        ge=0,
        description="Base retry delay in ms",
    )
