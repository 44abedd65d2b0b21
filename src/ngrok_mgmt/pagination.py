"""Cursor pagination over list endpoints."""

from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable, Iterator
from typing import Any, Generic, TypeVar

from .errors import InvalidStateError
from .models import CURSOR_PARAM, ListResponse
from .params import ApiRequest

T = TypeVar("T")


class _PageBase(Generic[T]):
    __slots__ = ("_request", "_response")

    def __init__(self, request: ApiRequest, response: ListResponse) -> None:
        if not isinstance(response, ListResponse):
            raise TypeError(f"{request.operation} did not decode into a list response")
        self._request = request
        self._response = response

    @property
    def request(self) -> ApiRequest:
        return self._request

    @property
    def response(self) -> ListResponse:
        return self._response

    @property
    def cursor(self) -> str | None:
        return self._response.cursor()

    def current(self) -> list[T]:
        """Items of this page; never touches the network."""
        return self._response.items()

    def has_next(self) -> bool:
        return self.cursor is not None

    def next_request(self) -> ApiRequest:
        """The original list request with the cursor parameter replaced."""
        cursor = self.cursor
        if cursor is None:
            raise InvalidStateError(f"{self._request.operation}: no further pages")
        return self._request.with_query(CURSOR_PARAM, cursor)

    def __len__(self) -> int:
        return len(self.current())

    def __repr__(self) -> str:
        return f"{type(self).__name__}(operation={self._request.operation!r}, items={len(self)}, cursor={self.cursor!r})"


class Page(_PageBase[T]):
    """One page of a list call for the blocking client."""

    __slots__ = ("_fetch",)

    def __init__(
        self,
        request: ApiRequest,
        response: ListResponse,
        *,
        fetch: Callable[[ApiRequest], Any],
    ) -> None:
        super().__init__(request, response)
        self._fetch = fetch

    def next(self) -> Page[T]:
        """Fetch the following page; raises :class:`InvalidStateError` on the last one."""
        request = self.next_request()
        return Page(request, self._fetch(request), fetch=self._fetch)

    def iter_pages(self) -> Iterator[Page[T]]:
        page: Page[T] = self
        yield page
        while page.has_next():
            page = page.next()
            yield page

    def iter_items(self) -> Iterator[T]:
        for page in self.iter_pages():
            yield from page.current()

    def __iter__(self) -> Iterator[T]:
        return iter(self.current())


class AsyncPage(_PageBase[T]):
    """One page of a list call for the asyncio client."""

    __slots__ = ("_fetch",)

    def __init__(
        self,
        request: ApiRequest,
        response: ListResponse,
        *,
        fetch: Callable[[ApiRequest], Awaitable[Any]],
    ) -> None:
        super().__init__(request, response)
        self._fetch = fetch

    async def next(self) -> AsyncPage[T]:
        request = self.next_request()
        return AsyncPage(request, await self._fetch(request), fetch=self._fetch)

    async def iter_pages(self) -> AsyncIterator[AsyncPage[T]]:
        page: AsyncPage[T] = self
        yield page
        while page.has_next():
            page = await page.next()
            yield page

    async def iter_items(self) -> AsyncIterator[T]:
        async for page in self.iter_pages():
            for item in page.current():
                yield item

    def __iter__(self) -> Iterator[T]:
        return iter(self.current())
