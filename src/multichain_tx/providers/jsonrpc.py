"""
HTTP JSON-RPC 2.0 provider.

A BlockchainProvider backed by a node's HTTP endpoint, for scripts and
services that talk to a chain directly instead of through a wallet.
"""

from __future__ import annotations

import itertools
from typing import Any, Dict, Optional, Union

import httpx

from multichain_tx.config import JsonRpcProviderConfig
from multichain_tx.errors import ConnectionFailedError, ProviderError
from multichain_tx.providers.base import ProviderCall
from multichain_tx.utils.logging import get_logger
from multichain_tx.utils.retry import RetryConfig, TransientError, retry_async

_logger = get_logger(__name__)

# Node is busy or restarting; the same request may succeed later.
RETRYABLE_STATUS_CODES = frozenset({429, 502, 503, 504})


class JsonRpcProvider:
    """
    JSON-RPC 2.0 client over httpx.

    Transport failures (connection refused, read timeout, ...) and busy-node
    HTTP statuses (429, 502, 503, 504) are retried with exponential backoff. Errors returned by the node are raised
    immediately as ProviderError, or SessionError when they report a dead
    session.

    Example:
        ```python
        async with JsonRpcProvider(JsonRpcProviderConfig(url="http://localhost:8545")) as provider:
            block = await provider.request({"method": "eth_blockNumber", "params": []})
        ```
    """

    def __init__(
        self,
        config: Union[JsonRpcProviderConfig, str],
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Initialize the provider.

        Args:
            config: Provider configuration, or just the endpoint URL
            transport: Custom httpx transport (e.g., httpx.MockTransport in tests)
        """
        if isinstance(config, str):
            config = JsonRpcProviderConfig(url=config)
        self._config = config
        self._ids = itertools.count(1)
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(config.timeout / 1000),
            headers={"Content-Type": "application/json", **config.headers},
            transport=transport,
        )
        self._retry_config = RetryConfig(
            max_attempts=config.max_retries,
            base_delay_ms=config.retry_delay,
            retryable_errors=(httpx.TransportError, TransientError),
        )

    @property
    def url(self) -> str:
        """Endpoint URL."""
        return self._config.url

    async def request(self, call: ProviderCall) -> Any:
        """
        Send one JSON-RPC request.

        Args:
            call: ``{"method": ..., "params": ...}``

        Returns:
            The ``result`` member of the response

        Raises:
            ProviderError: If the node returned an error object or a bad response
            SessionError: If that error reports an expired session
            ConnectionFailedError: If the endpoint stayed unreachable after retries
        """
        payload: Dict[str, Any] = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": call["method"],
            "params": call.get("params", []),
        }

        async def do_post() -> httpx.Response:
            response = await self._client.post(self._config.url, json=payload)
            if response.status_code in RETRYABLE_STATUS_CODES:
                raise TransientError(f"HTTP {response.status_code}")
            return response

        try:
            response = await retry_async(
                do_post, self._retry_config, description=f"JSON-RPC {payload['method']}"
            )
        except httpx.TransportError as e:
            raise ConnectionFailedError(
                f"JSON-RPC endpoint unreachable: {e}",
                details={"url": self._config.url, "method": payload["method"]},
            ) from e
        except TransientError as e:
            raise ProviderError(
                f"JSON-RPC request failed: {e}",
                details={"method": payload["method"]},
            ) from e

        if response.status_code >= 400:
            raise ProviderError(
                f"JSON-RPC request failed: HTTP {response.status_code}",
                details={"status_code": response.status_code, "method": payload["method"]},
            )

        try:
            body = response.json()
        except ValueError as e:
            raise ProviderError(
                "JSON-RPC response is not valid JSON",
                details={"method": payload["method"]},
            ) from e

        if not isinstance(body, dict):
            raise ProviderError("JSON-RPC response must be an object")
        if body.get("error") is not None:
            error = body["error"]
            if not isinstance(error, dict):
                error = {"message": str(error)}
            _logger.debug("%s returned error %s", payload["method"], error)
            raise ProviderError.from_rpc_error(error)

        return body.get("result")

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> "JsonRpcProvider":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()


__all__ = ["JsonRpcProvider"]
