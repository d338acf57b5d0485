"""
Tests for JsonRpcProvider.

Uses httpx.MockTransport so no network access is needed.
"""

import json
from typing import Any, Callable, Dict, List

import httpx
import pytest

from multichain_tx.config import JsonRpcProviderConfig
from multichain_tx.errors import ConnectionFailedError, ProviderError, SessionError
from multichain_tx.providers import BlockchainProvider, JsonRpcProvider
from tests.conftest import TX_HASH

URL = "http://localhost:8545"


def make_provider(
    handler: Callable[[httpx.Request], httpx.Response], **config: Any
) -> "tuple[JsonRpcProvider, List[Dict[str, Any]]]":
    """Provider whose transport records each JSON body it receives."""
    bodies: List[Dict[str, Any]] = []

    def record(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return handler(request)

    provider = JsonRpcProvider(
        JsonRpcProviderConfig(url=URL, retry_delay=0, **config),
        transport=httpx.MockTransport(record),
    )
    return provider, bodies


def result(value: Any) -> Callable[[httpx.Request], httpx.Response]:
    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "result": value})

    return handler


class TestJsonRpcProvider:
    """Tests for request/response handling."""

    def test_satisfies_provider_protocol(self) -> None:
        provider = JsonRpcProvider(URL)

        assert isinstance(provider, BlockchainProvider)
        assert provider.url == URL

    @pytest.mark.asyncio
    async def test_returns_result(self) -> None:
        """Test the request envelope and the unwrapped result."""
        provider, bodies = make_provider(result(TX_HASH))

        async with provider:
            value = await provider.request(
                {"method": "eth_sendTransaction", "params": [{"to": "0x1"}]}
            )

        assert value == TX_HASH
        assert bodies == [
            {
                "jsonrpc": "2.0",
                "id": 1,
                "method": "eth_sendTransaction",
                "params": [{"to": "0x1"}],
            }
        ]

    @pytest.mark.asyncio
    async def test_ids_increase(self) -> None:
        provider, bodies = make_provider(result(None))

        await provider.request({"method": "eth_blockNumber", "params": []})
        await provider.request({"method": "eth_blockNumber", "params": []})
        await provider.aclose()

        assert [b["id"] for b in bodies] == [1, 2]

    @pytest.mark.asyncio
    async def test_object_params_pass_through(self) -> None:
        """Test Solana-style object params are sent unchanged."""
        provider, bodies = make_provider(result("sig"))
        params = {"transaction": "AAAA", "options": {"skipPreflight": True}}

        await provider.request({"method": "sendTransaction", "params": params})
        await provider.aclose()

        assert bodies[0]["params"] == params

    @pytest.mark.asyncio
    async def test_rpc_error_raises_provider_error(self) -> None:
        """Test node errors are not retried."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                json={"jsonrpc": "2.0", "id": 1, "error": {"code": -32000, "message": "nonce too low"}},
            )

        provider, bodies = make_provider(handler)

        with pytest.raises(ProviderError) as exc_info:
            await provider.request({"method": "eth_sendTransaction", "params": []})
        await provider.aclose()

        assert exc_info.value.message == "nonce too low"
        assert exc_info.value.rpc_code == -32000
        assert not isinstance(exc_info.value, SessionError)
        assert len(bodies) == 1

    @pytest.mark.asyncio
    async def test_session_error(self) -> None:
        """Test the session error code maps to SessionError."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                json={"jsonrpc": "2.0", "id": 1, "error": {"code": -32001, "message": "Gone"}},
            )

        provider, _ = make_provider(handler)

        with pytest.raises(SessionError) as exc_info:
            await provider.request({"method": "eth_getTransactionReceipt", "params": []})
        await provider.aclose()

        assert exc_info.value.code == "session_error"

    @pytest.mark.asyncio
    async def test_http_error_status(self) -> None:
        """Test busy-node statuses are retried before failing."""
        provider, bodies = make_provider(
            lambda request: httpx.Response(503, text="unavailable"), max_retries=2
        )

        with pytest.raises(ProviderError, match="HTTP 503"):
            await provider.request({"method": "eth_blockNumber", "params": []})
        await provider.aclose()

        assert len(bodies) == 2

    @pytest.mark.asyncio
    async def test_client_error_status_not_retried(self) -> None:
        provider, bodies = make_provider(
            lambda request: httpx.Response(404, text="not found"), max_retries=3
        )

        with pytest.raises(ProviderError, match="HTTP 404"):
            await provider.request({"method": "eth_blockNumber", "params": []})
        await provider.aclose()

        assert len(bodies) == 1

    @pytest.mark.asyncio
    async def test_rate_limit_then_success(self) -> None:
        statuses = [429]

        def handler(request: httpx.Request) -> httpx.Response:
            if statuses:
                return httpx.Response(statuses.pop(), text="slow down")
            return result("0x10")(request)

        provider, bodies = make_provider(handler, max_retries=3)

        assert await provider.request({"method": "eth_blockNumber", "params": []}) == "0x10"
        await provider.aclose()
        assert len(bodies) == 2

    @pytest.mark.asyncio
    async def test_invalid_json(self) -> None:
        provider, _ = make_provider(lambda request: httpx.Response(200, text="<html>"))

        with pytest.raises(ProviderError, match="not valid JSON"):
            await provider.request({"method": "eth_blockNumber", "params": []})
        await provider.aclose()

    @pytest.mark.asyncio
    async def test_transport_errors_are_retried(self) -> None:
        """Test transient connection failures are retried."""
        attempts = []

        def handler(request: httpx.Request) -> httpx.Response:
            attempts.append(1)
            if len(attempts) < 3:
                raise httpx.ConnectError("connection refused")
            return result("0x10")(request)

        provider, _ = make_provider(handler, max_retries=3)

        assert await provider.request({"method": "eth_blockNumber", "params": []}) == "0x10"
        await provider.aclose()
        assert len(attempts) == 3

    @pytest.mark.asyncio
    async def test_unreachable_after_retries(self) -> None:
        """Test exhausted retries raise ConnectionFailedError."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused")

        provider, bodies = make_provider(handler, max_retries=2)

        with pytest.raises(ConnectionFailedError) as exc_info:
            await provider.request({"method": "eth_blockNumber", "params": []})
        await provider.aclose()

        assert exc_info.value.code == "connection_failed"
        assert len(bodies) == 2
