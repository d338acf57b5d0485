"""
Provider and session errors.

A session error means the wallet session itself is gone, independent of
any particular transaction. Such errors are never retried: a dead session
cannot become alive again.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from multichain_tx.errors.base import TxEngineError

SESSION_ERROR_CODE = -32001

SESSION_ERROR_PATTERNS = (
    "expired session",
    "session expired",
    "session terminated",
    "session not found",
    "invalid session",
    "session disconnected",
)


class ProviderError(TxEngineError):
    """
    Raised when a provider request fails.

    Attributes:
        rpc_code: JSON-RPC error code reported by the provider, if any.
        data: Raw ``data`` member of the JSON-RPC error object, if any.
    """

    default_code = "provider_error"

    def __init__(
        self,
        message: str,
        *,
        rpc_code: Optional[int] = None,
        data: Any = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        details = dict(details or {})
        if rpc_code is not None:
            details["rpc_code"] = rpc_code
        super().__init__(message, details=details)
        self.rpc_code = rpc_code
        self.data = data

    @classmethod
    def from_rpc_error(cls, error: Mapping[str, Any]) -> "ProviderError":
        """Build the right error class from a JSON-RPC ``error`` object."""
        message = str(error.get("message") or "Provider request failed")
        rpc_code = error.get("code")
        klass = SessionError if _matches_session(rpc_code, message) else ProviderError
        return klass(message, rpc_code=rpc_code, data=error.get("data"))


class SessionError(ProviderError):
    """Raised when the wallet session has expired or been terminated."""

    default_code = "session_error"


def _matches_session(code: Any, message: str) -> bool:
    if code == SESSION_ERROR_CODE:
        return True
    lowered = message.lower()
    return any(pattern in lowered for pattern in SESSION_ERROR_PATTERNS)


def is_session_error(error: Any) -> bool:
    """
    Detect errors that indicate a dead wallet session.

    Recognizes SessionError instances, any error or mapping carrying the
    ``-32001`` code, and messages such as "expired session".
    """
    if isinstance(error, SessionError):
        return True
    if isinstance(error, Mapping):
        return _matches_session(error.get("code"), str(error.get("message") or ""))

    code = getattr(error, "rpc_code", None)
    if code is None:
        code = getattr(error, "code", None)
    message = getattr(error, "message", None) or str(error)
    return _matches_session(code, str(message))


def to_session_error(error: Any) -> SessionError:
    """Convert any session-flavoured error into a SessionError."""
    if isinstance(error, SessionError):
        return error
    if isinstance(error, Mapping):
        return SessionError(
            str(error.get("message") or "Wallet session is no longer valid"),
            rpc_code=error.get("code"),
            data=error.get("data"),
        )
    rpc_code = getattr(error, "rpc_code", None)
    if rpc_code is None and isinstance(getattr(error, "code", None), int):
        rpc_code = error.code
    message = getattr(error, "message", None) or str(error) or "Wallet session is no longer valid"
    converted = SessionError(str(message), rpc_code=rpc_code)
    converted.__cause__ = error if isinstance(error, BaseException) else None
    return converted
