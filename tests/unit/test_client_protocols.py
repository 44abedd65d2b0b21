from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path

import pytest

from ngrok_mgmt import AsyncNgrok, Ngrok
from ngrok_mgmt.errors import InvalidStateError
from ngrok_mgmt.models import Ref
from ngrok_mgmt.params import ApiRequest, HttpMethod
from ngrok_mgmt.protocols import AsyncTransport
from ngrok_mgmt.retry import ExponentialBackoff
from ngrok_mgmt.transport import RawRequest, RawResponse

REF_BODY = json.dumps({"id": "ep_1", "uri": "https://api.ngrok.com/endpoints/ep_1"}).encode()


@dataclass
class _StubTransport:
    requests: list[RawRequest] = field(default_factory=list)
    closed: int = 0

    async def send(self, request: RawRequest) -> RawResponse:
        self.requests.append(request)
        return RawResponse(status_code=200, content=REF_BODY)

    async def aclose(self) -> None:
        self.closed += 1


def _get() -> ApiRequest:
    return ApiRequest(operation="endpoints.get", method=HttpMethod.GET, path="/endpoints/ep_1", response_type=Ref)


def test_stub_transport_satisfies_protocol() -> None:
    assert isinstance(_StubTransport(), AsyncTransport)


def test_sync_client_uses_injected_transport() -> None:
    transport = _StubTransport()
    with Ngrok(transport=transport, base_url="https://api.example.test/") as client:
        ref = client.raw.request("GET", "/endpoints/ep_1", response_type=Ref)

    assert ref.id == "ep_1"
    assert transport.requests[0].url == "https://api.example.test/endpoints/ep_1"
    assert transport.closed == 1


def test_engine_submit_returns_future_for_threaded_callers() -> None:
    transport = _StubTransport()
    client = Ngrok(transport=transport)
    try:
        futures = [client.engine.submit(_get()) for _ in range(3)]
        results = [future.result(timeout=5) for future in futures]
    finally:
        client.close()

    assert [result.id for result in results] == ["ep_1", "ep_1", "ep_1"]
    assert len(transport.requests) == 3


def test_client_rejects_calls_after_close() -> None:
    transport = _StubTransport()
    client = Ngrok(transport=transport)
    client.close()

    with pytest.raises(InvalidStateError):
        client.raw.request("GET", "/endpoints/ep_1")
    assert transport.requests == []


@pytest.mark.asyncio
async def test_async_client_context_manager() -> None:
    transport = _StubTransport()
    async with AsyncNgrok(transport=transport) as client:
        ref = await client.raw.request("GET", "/endpoints/ep_1", response_type=Ref)

    assert ref.id == "ep_1"
    assert transport.closed == 1


def test_from_env_builds_configured_client(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("NGROK_API_KEY", "env-key")
    monkeypatch.setenv("NGROK_API_BASE", "https://api.env.test")
    monkeypatch.setenv("NGROK_API_MAX_ATTEMPTS", "2")

    client = Ngrok.from_env(transport=_StubTransport())
    try:
        assert client.client_config.api_key == "env-key"
        assert client.client_config.base_url == "https://api.env.test"
        assert client.client_config.retry.max_attempts == 2
    finally:
        client.close()


def test_from_profile_builds_default_transport(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    config_dir = tmp_path / "ngrok-mgmt"
    config_dir.mkdir()
    (config_dir / "config.json").write_text(
        json.dumps({"profiles": {"default": {"apiKey": "profile-key", "timeoutMs": 2000}}}),
        encoding="utf-8",
    )
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))

    client = Ngrok.from_profile(retry_policy=ExponentialBackoff(max_attempts=1))
    try:
        assert client.client_config.api_key == "profile-key"
        assert client.client_config.timeout_seconds == 2.0
        assert client.client_config.retry.max_attempts == 1
    finally:
        client.close()
