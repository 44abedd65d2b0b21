"""Top-level ngrok management clients (blocking + asyncio)."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Mapping
from typing import Any

import httpx

from .api import EndpointSamlModuleApi, EventStreamsApi, IpPolicyRulesApi, RawApi, TlsEdgePolicyModuleApi
from .config import DEFAULT_API_VERSION, DEFAULT_BASE_URL, DEFAULT_TIMEOUT_SECONDS, ClientConfig
from .engine import RequestEngine
from .hooks import HookRegistry, RequestCall
from .pagination import AsyncPage, Page
from .params import ApiRequest
from .protocols import AsyncHookMiddleware, AsyncTransport, SyncHookMiddleware
from .retry import ExponentialBackoff, RetryPolicy
from .transport import HttpxTransport, auth_headers


def _build_engine(
    config: ClientConfig,
    *,
    retry_policy: RetryPolicy | None,
    http_client: httpx.AsyncClient | None,
    transport: AsyncTransport | None,
    hook_registry: HookRegistry | None,
    logger: logging.Logger | None,
) -> RequestEngine:
    if transport is not None and http_client is not None:
        raise ValueError("pass either transport or http_client, not both")
    if transport is None and http_client is not None:
        transport = HttpxTransport(http_client, headers=auth_headers(config))
    if transport is None:
        transport = HttpxTransport.from_config(config)

    return RequestEngine(
        base_url=config.base_url,
        transport=transport,
        retry_policy=retry_policy or config.retry,
        hooks=hook_registry,
        logger=logger,
    )


class BlockingDispatcher:
    """Runs each request to completion on the calling thread."""

    def __init__(self, engine: RequestEngine) -> None:
        self._engine = engine

    def request(self, request: ApiRequest) -> Any:
        return self._engine.call(request)

    def paginate(self, request: ApiRequest) -> Page[Any]:
        return Page(request, self._engine.call(request), fetch=self._engine.call)


class AsyncDispatcher:
    """Schedules each request immediately and returns an awaitable future."""

    def __init__(self, engine: RequestEngine) -> None:
        self._engine = engine

    def request(self, request: ApiRequest) -> asyncio.Future[Any]:
        return self._engine.invoke_async(request)

    def paginate(self, request: ApiRequest) -> asyncio.Future[AsyncPage[Any]]:
        return asyncio.ensure_future(self._first_page(request))

    async def _first_page(self, request: ApiRequest) -> AsyncPage[Any]:
        response = await self._engine.invoke_async(request)
        return AsyncPage(request, response, fetch=self._engine.invoke_async)


class _ClientBase:
    def __init__(
        self,
        *,
        base_url: str = DEFAULT_BASE_URL,
        api_key: str | None = None,
        api_version: str = DEFAULT_API_VERSION,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        headers: Mapping[str, str] | None = None,
        retry_policy: RetryPolicy | None = None,
        http_client: httpx.AsyncClient | None = None,
        transport: AsyncTransport | None = None,
        hook_registry: HookRegistry | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.client_config = ClientConfig(
            base_url=base_url,
            api_key=api_key,
            api_version=api_version,
            timeout_seconds=timeout_seconds,
            headers=dict(headers or {}),
            retry=retry_policy if isinstance(retry_policy, ExponentialBackoff) else ExponentialBackoff(),
        )
        self._hooks = hook_registry or HookRegistry()
        self._engine = _build_engine(
            self.client_config,
            retry_policy=retry_policy,
            http_client=http_client,
            transport=transport,
            hook_registry=self._hooks,
            logger=logger,
        )

    @classmethod
    def _config_kwargs(cls, cfg: ClientConfig) -> dict[str, Any]:
        return {
            "base_url": cfg.base_url,
            "api_key": cfg.api_key,
            "api_version": cfg.api_version,
            "timeout_seconds": cfg.timeout_seconds,
            "headers": cfg.headers,
            "retry_policy": cfg.retry,
        }

    @property
    def engine(self) -> RequestEngine:
        return self._engine

    def before(self, operation: str = "*") -> Callable[[Callable[[RequestCall], Any]], Callable[[RequestCall], Any]]:
        def decorator(func: Callable[[RequestCall], Any]) -> Callable[[RequestCall], Any]:
            self._hooks.add_before(operation, func)
            return func

        return decorator

    def after(self, operation: str = "*") -> Callable[[Callable[[RequestCall, Any], Any]], Callable[[RequestCall, Any], Any]]:
        def decorator(func: Callable[[RequestCall, Any], Any]) -> Callable[[RequestCall, Any], Any]:
            self._hooks.add_after(operation, func)
            return func

        return decorator

    def on_error(self, operation: str = "*") -> Callable[[Callable[[RequestCall, Exception], Any]], Callable[[RequestCall, Exception], Any]]:
        def decorator(func: Callable[[RequestCall, Exception], Any]) -> Callable[[RequestCall, Exception], Any]:
            self._hooks.add_error(operation, func)
            return func

        return decorator

    def use_middleware(self, middleware: SyncHookMiddleware | AsyncHookMiddleware, *, operation: str = "*") -> None:
        self._hooks.add_middleware(operation, middleware)

    def _bind(self, dispatcher: BlockingDispatcher | AsyncDispatcher) -> None:
        self.event_streams = EventStreamsApi(dispatcher)
        self.ip_policy_rules = IpPolicyRulesApi(dispatcher)
        self.endpoint_saml_module = EndpointSamlModuleApi(dispatcher)
        self.tls_edge_policy_module = TlsEdgePolicyModuleApi(dispatcher)
        self.raw = RawApi(dispatcher)


class Ngrok(_ClientBase):
    """Blocking ngrok management client.

    Every call waits for its result on the calling thread. For non-blocking
    use from threaded code, ``client.engine.submit(request)`` returns a
    ``concurrent.futures.Future`` for the same invocation.
    """

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._bind(BlockingDispatcher(self._engine))

    @classmethod
    def from_env(cls, **kwargs: Any) -> "Ngrok":
        return cls(**{**cls._config_kwargs(ClientConfig.from_env()), **kwargs})

    @classmethod
    def from_profile(cls, profile: str | None = None, **kwargs: Any) -> "Ngrok":
        return cls(**{**cls._config_kwargs(ClientConfig.from_profile(profile)), **kwargs})

    def close(self) -> None:
        self._engine.close()

    def __enter__(self) -> "Ngrok":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class AsyncNgrok(_ClientBase):
    """Asyncio ngrok management client.

    Calls return ``asyncio.Future`` objects that are already scheduled; await
    them for the decoded value or the raised failure.
    """

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._bind(AsyncDispatcher(self._engine))

    @classmethod
    def from_env(cls, **kwargs: Any) -> "AsyncNgrok":
        return cls(**{**cls._config_kwargs(ClientConfig.from_env()), **kwargs})

    @classmethod
    def from_profile(cls, profile: str | None = None, **kwargs: Any) -> "AsyncNgrok":
        return cls(**{**cls._config_kwargs(ClientConfig.from_profile(profile)), **kwargs})

    async def close(self) -> None:
        await self._engine.aclose()

    async def __aenter__(self) -> "AsyncNgrok":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
