"""HTTP transport for the ngrok management client."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

import httpx

from .config import ClientConfig
from .errors import ClientTimeoutError, TransportError

USER_AGENT = "ngrok-mgmt-python"


@dataclass(frozen=True, slots=True)
class RawRequest:
    method: str
    url: str
    headers: dict[str, str] = field(default_factory=dict)
    content: bytes | None = None


@dataclass(frozen=True, slots=True)
class RawResponse:
    status_code: int
    headers: Mapping[str, str] = field(default_factory=dict)
    content: bytes = b""

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300


def auth_headers(config: ClientConfig) -> dict[str, str]:
    headers = {
        "Accept": "application/json",
        "User-Agent": USER_AGENT,
        "Ngrok-Version": config.api_version,
    }
    if config.api_key:
        headers["Authorization"] = f"Bearer {config.api_key}"
    # Explicit config headers win over the defaults above.
    headers.update(config.headers)
    return headers


class HttpxTransport:
    """Single-exchange transport over a shared ``httpx.AsyncClient`` pool."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        headers: Mapping[str, str] | None = None,
        owns_client: bool = False,
    ) -> None:
        self._client = client
        self._headers = dict(headers or {})
        self._owns_client = owns_client

    @classmethod
    def from_config(cls, config: ClientConfig) -> HttpxTransport:
        client = httpx.AsyncClient(timeout=config.timeout_seconds)
        return cls(client, headers=auth_headers(config), owns_client=True)

    async def send(self, request: RawRequest) -> RawResponse:
        try:
            response = await self._client.request(
                request.method,
                request.url,
                content=request.content,
                headers={**self._headers, **request.headers},
            )
        except httpx.TimeoutException as error:
            raise ClientTimeoutError(str(error) or type(error).__name__) from error
        except httpx.HTTPError as error:
            raise TransportError(str(error) or type(error).__name__) from error

        return RawResponse(
            status_code=response.status_code,
            headers=dict(response.headers),
            content=response.content,
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
