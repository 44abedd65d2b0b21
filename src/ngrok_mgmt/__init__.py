"""ngrok management API Python client.

This module uses lazy exports so lightweight utilities (for example parameter
sets and config parsing) can be imported without immediately importing
transport dependencies.
"""

from __future__ import annotations

from importlib import import_module
from typing import TYPE_CHECKING, Any

__all__ = [
    "ABSENT",
    "ApiError",
    "ApiRequest",
    "AsyncHookMiddleware",
    "AsyncNgrok",
    "AsyncPage",
    "AsyncTransport",
    "AuthError",
    "CallInterruptedError",
    "ClientConfig",
    "ClientTimeoutError",
    "ConflictError",
    "DecodeError",
    "ExponentialBackoff",
    "HttpMethod",
    "InvalidStateError",
    "Maybe",
    "Ngrok",
    "NgrokError",
    "NotFoundError",
    "Page",
    "ParameterSet",
    "RateLimitError",
    "RequestEngine",
    "RetryPolicy",
    "ServerError",
    "SyncHookMiddleware",
    "TransportError",
    "ValidationError",
]

_EXPORTS: dict[str, tuple[str, str]] = {
    "AsyncNgrok": (".client", "AsyncNgrok"),
    "Ngrok": (".client", "Ngrok"),
    "ClientConfig": (".config", "ClientConfig"),
    "RequestEngine": (".engine", "RequestEngine"),
    "ApiError": (".errors", "ApiError"),
    "AuthError": (".errors", "AuthError"),
    "CallInterruptedError": (".errors", "CallInterruptedError"),
    "ClientTimeoutError": (".errors", "ClientTimeoutError"),
    "ConflictError": (".errors", "ConflictError"),
    "DecodeError": (".errors", "DecodeError"),
    "InvalidStateError": (".errors", "InvalidStateError"),
    "NgrokError": (".errors", "NgrokError"),
    "NotFoundError": (".errors", "NotFoundError"),
    "RateLimitError": (".errors", "RateLimitError"),
    "ServerError": (".errors", "ServerError"),
    "TransportError": (".errors", "TransportError"),
    "ValidationError": (".errors", "ValidationError"),
    "AsyncPage": (".pagination", "AsyncPage"),
    "Page": (".pagination", "Page"),
    "ABSENT": (".params", "ABSENT"),
    "ApiRequest": (".params", "ApiRequest"),
    "HttpMethod": (".params", "HttpMethod"),
    "Maybe": (".params", "Maybe"),
    "ParameterSet": (".params", "ParameterSet"),
    "AsyncHookMiddleware": (".protocols", "AsyncHookMiddleware"),
    "AsyncTransport": (".protocols", "AsyncTransport"),
    "SyncHookMiddleware": (".protocols", "SyncHookMiddleware"),
    "ExponentialBackoff": (".retry", "ExponentialBackoff"),
    "RetryPolicy": (".retry", "RetryPolicy"),
}

if TYPE_CHECKING:
    from .client import AsyncNgrok, Ngrok
    from .config import ClientConfig
    from .engine import RequestEngine
    from .errors import (
        ApiError,
        AuthError,
        CallInterruptedError,
        ClientTimeoutError,
        ConflictError,
        DecodeError,
        InvalidStateError,
        NgrokError,
        NotFoundError,
        RateLimitError,
        ServerError,
        TransportError,
        ValidationError,
    )
    from .pagination import AsyncPage, Page
    from .params import ABSENT, ApiRequest, HttpMethod, Maybe, ParameterSet
    from .protocols import AsyncHookMiddleware, AsyncTransport, SyncHookMiddleware
    from .retry import ExponentialBackoff, RetryPolicy


def __getattr__(name: str) -> Any:
    module_info = _EXPORTS.get(name)
    if module_info is None:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

    module_name, attribute = module_info
    module = import_module(module_name, __name__)
    value = getattr(module, attribute)
    globals()[name] = value
    return value
