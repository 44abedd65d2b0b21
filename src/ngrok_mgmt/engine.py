"""Request engine shared by every resource binding.

One coroutine, :meth:`RequestEngine.invoke`, performs a logical API call:
encode, send, classify, retry. It always runs on the engine's own event loop
thread. :meth:`RequestEngine.submit` schedules it and hands back a
``concurrent.futures.Future`` immediately, :meth:`RequestEngine.invoke_async`
wraps that future for callers already inside an event loop, and
:meth:`RequestEngine.call` simply waits on it. Retry and error behaviour is
therefore identical in every call style.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import logging
import threading
import time
from collections.abc import Awaitable, Callable, Coroutine
from typing import Any, TypeVar

from .codec import JSON_CONTENT_TYPE, decode_error, decode_response, encode_body, encode_query
from .config import ClientConfig
from .errors import ApiError, CallInterruptedError, DecodeError, InvalidStateError, TransportError
from .hooks import HookRegistry, HookStage, RequestCall
from .params import ApiRequest
from .protocols import AsyncTransport
from .retry import RetryPolicy
from .transport import HttpxTransport, RawRequest, RawResponse

T = TypeVar("T")
SleepFn = Callable[[float], Awaitable[None]]


def _status_code(error: Exception) -> int | None:
    if isinstance(error, ApiError):
        return error.status_code
    return None


class LoopRunner:
    """Daemon thread running the event loop all invocations are scheduled on."""

    def __init__(self, *, name: str = "ngrok-mgmt-loop", logger: logging.Logger | None = None) -> None:
        self._name = name
        self._logger = logger or logging.getLogger(__name__)
        self._lock = threading.Lock()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._thread: threading.Thread | None = None
        self._closed = False

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def in_loop_thread(self) -> bool:
        return self._thread is not None and threading.current_thread() is self._thread

    def start(self) -> asyncio.AbstractEventLoop:
        with self._lock:
            if self._closed:
                raise InvalidStateError("request engine is closed")
            if self._loop is not None and self.running:
                return self._loop

            loop = asyncio.new_event_loop()
            ready = threading.Event()
            thread = threading.Thread(target=self._run, args=(loop, ready), name=self._name, daemon=True)
            thread.start()
            ready.wait()
            self._loop = loop
            self._thread = thread
            self._logger.debug("event loop thread %s started", self._name)
            return loop

    def submit(self, coro: Coroutine[Any, Any, T]) -> concurrent.futures.Future[T]:
        try:
            loop = self.start()
        except InvalidStateError:
            coro.close()
            raise
        return asyncio.run_coroutine_threadsafe(coro, loop)

    def stop(self, timeout: float | None = 5.0) -> None:
        with self._lock:
            self._closed = True
            loop, thread = self._loop, self._thread
            self._loop = None
            self._thread = None

        if loop is None or thread is None:
            return
        loop.call_soon_threadsafe(loop.stop)
        if thread is not threading.current_thread():
            thread.join(timeout=timeout)
            if thread.is_alive():
                self._logger.warning("event loop thread %s did not stop within %ss", self._name, timeout)

    @staticmethod
    def _run(loop: asyncio.AbstractEventLoop, ready: threading.Event) -> None:
        asyncio.set_event_loop(loop)
        loop.call_soon(ready.set)
        try:
            loop.run_forever()
        finally:
            pending = asyncio.all_tasks(loop)
            for task in pending:
                task.cancel()
            if pending:
                loop.run_until_complete(asyncio.gather(*pending, return_exceptions=True))
            loop.run_until_complete(loop.shutdown_asyncgens())
            loop.close()


class RequestEngine:
    """Typed invocation primitive: ``ApiRequest`` in, decoded value or failure out."""

    def __init__(
        self,
        *,
        base_url: str,
        transport: AsyncTransport,
        retry_policy: RetryPolicy,
        hooks: HookRegistry | None = None,
        logger: logging.Logger | None = None,
        sleep: SleepFn | None = None,
        runner: LoopRunner | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._transport = transport
        self._retry_policy = retry_policy
        self._hooks = hooks or HookRegistry()
        self._logger = logger or logging.getLogger(__name__)
        self._sleep = sleep or asyncio.sleep
        self._runner = runner or LoopRunner(logger=self._logger)
        self._closed = False

    @classmethod
    def from_config(
        cls,
        config: ClientConfig,
        *,
        transport: AsyncTransport | None = None,
        hooks: HookRegistry | None = None,
        logger: logging.Logger | None = None,
        sleep: SleepFn | None = None,
    ) -> RequestEngine:
        return cls(
            base_url=config.base_url,
            transport=transport or HttpxTransport.from_config(config),
            retry_policy=config.retry,
            hooks=hooks,
            logger=logger,
            sleep=sleep,
        )

    @property
    def hooks(self) -> HookRegistry:
        return self._hooks

    def build_url(self, request: ApiRequest) -> str:
        return self._base_url + request.path + encode_query(request.query)

    async def invoke(self, request: ApiRequest) -> Any:
        """Run one logical call, retrying transient failures per the policy.

        Returns the decoded ``request.response_type`` value, or ``None`` when
        no response type is declared. Raises the last observed failure once
        retries are exhausted; non-retryable failures are raised on first
        occurrence.
        """
        content = encode_body(request.body)
        call = RequestCall(request=request)
        if content is not None:
            call.headers["Content-Type"] = JSON_CONTENT_TYPE

        await self._hooks.run(HookStage.BEFORE, call)

        raw = RawRequest(
            method=request.method.value,
            url=self.build_url(request),
            headers=dict(call.headers),
            content=content,
        )

        attempt = 1
        while True:
            call.attempt = attempt
            try:
                result = await self._attempt(request, raw, attempt=attempt)
            except DecodeError as error:
                await self._hooks.run(HookStage.ERROR, call, error)
                raise
            except (TransportError, ApiError) as error:
                if not self._retry_policy.should_retry(
                    attempt=attempt,
                    error=error,
                    status_code=_status_code(error),
                ):
                    await self._hooks.run(HookStage.ERROR, call, error)
                    raise

                delay = self._retry_policy.next_delay_seconds(attempt=attempt)
                self._logger.warning(
                    "%s %s attempt %d failed (%s); retrying in %.3fs",
                    raw.method,
                    request.path,
                    attempt,
                    type(error).__name__,
                    delay,
                )
                await self._sleep(delay)
                attempt += 1
                continue

            await self._hooks.run(HookStage.AFTER, call, result)
            return result

    async def _attempt(self, request: ApiRequest, raw: RawRequest, *, attempt: int) -> Any:
        started = time.perf_counter()
        try:
            response = await self._transport.send(raw)
        except TransportError as error:
            self._logger.debug(
                "%s %s attempt=%d transport failure: %s",
                raw.method,
                request.path,
                attempt,
                error,
            )
            raise

        duration_ms = int((time.perf_counter() - started) * 1000)
        self._logger.debug(
            "%s %s attempt=%d status=%d duration_ms=%d",
            raw.method,
            request.path,
            attempt,
            response.status_code,
            duration_ms,
        )
        return self._classify(request, response)

    def _classify(self, request: ApiRequest, response: RawResponse) -> Any:
        if response.is_success:
            if request.response_type is None:
                return None
            return decode_response(
                response.content,
                request.response_type,
                operation=request.operation,
                status_code=response.status_code,
            )

        raise decode_error(
            response.content,
            operation=request.operation,
            method=request.method.value,
            path=request.path,
            status_code=response.status_code,
            retryable=self._retry_policy.is_retryable_status(response.status_code),
        )

    def submit(self, request: ApiRequest) -> concurrent.futures.Future[Any]:
        """Schedule :meth:`invoke` and return its future without waiting.

        Cancelling the future stops the retry loop and releases the connection
        unless decoding has already started.
        """
        return self._runner.submit(self.invoke(request))

    def invoke_async(self, request: ApiRequest) -> asyncio.Future[Any]:
        """Awaitable handle for :meth:`submit`, bound to the caller's running loop."""
        return asyncio.wrap_future(self.submit(request), loop=asyncio.get_running_loop())

    def call(self, request: ApiRequest) -> Any:
        """Block the calling thread until :meth:`submit`'s future resolves."""
        if self._runner.in_loop_thread():
            raise InvalidStateError(f"{request.operation}: blocking call issued from the engine event loop")

        future = self.submit(request)
        try:
            return future.result()
        except KeyboardInterrupt as interrupt:
            raise CallInterruptedError(
                f"{request.operation}: wait interrupted; the request keeps running"
            ) from interrupt

    def close(self, timeout: float | None = 5.0) -> None:
        """Close the transport on the engine loop, then stop the loop thread.

        Safe to call from any thread except the engine loop itself, including
        from code that has its own running event loop.
        """
        if self._closed:
            return
        if self._runner.in_loop_thread():
            raise InvalidStateError("request engine cannot be closed from its own event loop")
        self._closed = True
        try:
            self._runner.submit(self._transport.aclose()).result(timeout=timeout)
        finally:
            self._runner.stop(timeout=timeout)

    async def aclose(self, timeout: float | None = 5.0) -> None:
        if self._closed:
            return
        if self._runner.in_loop_thread():
            raise InvalidStateError("request engine cannot be closed from its own event loop")
        self._closed = True
        try:
            await asyncio.wrap_future(self._runner.submit(self._transport.aclose()))
        finally:
            await asyncio.to_thread(self._runner.stop, timeout)
