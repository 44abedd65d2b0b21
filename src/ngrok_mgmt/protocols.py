"""Protocol contracts for ngrok management client extension points."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .hooks import RequestCall
    from .params import ApiRequest
    from .transport import RawRequest, RawResponse


@runtime_checkable
class AsyncTransport(Protocol):
    async def send(self, request: RawRequest) -> RawResponse: ...

    async def aclose(self) -> None: ...


@runtime_checkable
class SyncHookMiddleware(Protocol):
    def before(self, call: RequestCall) -> None: ...

    def after(self, call: RequestCall, response: Any) -> None: ...

    def on_error(self, call: RequestCall, error: Exception) -> None: ...


@runtime_checkable
class AsyncHookMiddleware(Protocol):
    async def before(self, call: RequestCall) -> None: ...

    async def after(self, call: RequestCall, response: Any) -> None: ...

    async def on_error(self, call: RequestCall, error: Exception) -> None: ...


@runtime_checkable
class Dispatcher(Protocol):
    """Turns an ``ApiRequest`` into the client's call style (value or awaitable)."""

    def request(self, request: ApiRequest) -> Any: ...

    def paginate(self, request: ApiRequest) -> Any: ...
