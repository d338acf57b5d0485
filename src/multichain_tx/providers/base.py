"""
Provider contract consumed by the engine.

The engine only needs an object with an async ``request`` method; it
never knows how the provider was obtained (extension, popup, websocket
or plain HTTP).
"""

from __future__ import annotations

from typing import Any, List, Mapping, Protocol, TypedDict, Union, runtime_checkable


class ProviderCall(TypedDict):
    """Shape of a provider request."""

    method: str
    params: Union[List[Any], Mapping[str, Any]]


@runtime_checkable
class BlockchainProvider(Protocol):
    """Anything that can answer ``request({"method": ..., "params": ...})``."""

    async def request(self, call: ProviderCall) -> Any:
        ...
