"""Configuration helpers for the ngrok management client."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .retry import ExponentialBackoff

DEFAULT_BASE_URL = "https://api.ngrok.com"
DEFAULT_API_VERSION = "2"
DEFAULT_TIMEOUT_SECONDS = 30.0


@dataclass(slots=True)
class ClientConfig:
    base_url: str = DEFAULT_BASE_URL
    api_key: str | None = None
    api_version: str = DEFAULT_API_VERSION
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    headers: dict[str, str] = field(default_factory=dict)
    retry: ExponentialBackoff = field(default_factory=ExponentialBackoff)

    def __post_init__(self) -> None:
        self.base_url = normalize_base_url(self.base_url)

    @classmethod
    def from_env(cls) -> "ClientConfig":
        base_url = os.getenv("NGROK_API_BASE", DEFAULT_BASE_URL).strip() or DEFAULT_BASE_URL
        api_key = _trim_or_none(os.getenv("NGROK_API_KEY"))
        api_version = _trim_or_default(os.getenv("NGROK_API_VERSION"), DEFAULT_API_VERSION)
        timeout_ms = _parse_positive_int(os.getenv("NGROK_API_TIMEOUT_MS"))
        timeout_seconds = (timeout_ms / 1000.0) if timeout_ms else DEFAULT_TIMEOUT_SECONDS

        max_attempts = _parse_positive_int(os.getenv("NGROK_API_MAX_ATTEMPTS"))
        retry = ExponentialBackoff(max_attempts=max_attempts) if max_attempts else ExponentialBackoff()

        return cls(
            base_url=base_url,
            api_key=api_key,
            api_version=api_version,
            timeout_seconds=timeout_seconds,
            retry=retry,
        )

    @classmethod
    def from_profile(
        cls,
        profile: str | None = None,
        *,
        config_path: str | Path | None = None,
    ) -> "ClientConfig":
        payload = load_profile_config(config_path=config_path)
        profiles = payload.get("profiles") if isinstance(payload, dict) else None
        current_profile = payload.get("currentProfile") if isinstance(payload, dict) else None

        selected_name = (profile or current_profile or "default").strip() or "default"
        profile_entry: dict[str, Any] = {}
        if isinstance(profiles, dict) and isinstance(profiles.get(selected_name), dict):
            profile_entry = dict(profiles[selected_name])
        elif isinstance(profiles, dict) and isinstance(profiles.get("default"), dict):
            profile_entry = dict(profiles["default"])

        base_url = _trim_or_default(profile_entry.get("baseUrl"), DEFAULT_BASE_URL)
        api_key = _trim_or_none(profile_entry.get("apiKey"))
        api_version = _trim_or_default(profile_entry.get("apiVersion"), DEFAULT_API_VERSION)
        timeout_ms = _parse_positive_int(profile_entry.get("timeoutMs"))
        timeout_seconds = (timeout_ms / 1000.0) if timeout_ms else DEFAULT_TIMEOUT_SECONDS

        headers: dict[str, str] = {}
        raw_headers = profile_entry.get("headers")
        if isinstance(raw_headers, dict):
            for key, value in raw_headers.items():
                if isinstance(key, str) and isinstance(value, str) and key.strip() and value.strip():
                    headers[key] = value

        retry = ExponentialBackoff()
        raw_retry = profile_entry.get("retry")
        if isinstance(raw_retry, dict):
            retry = _retry_from_profile(raw_retry)

        return cls(
            base_url=base_url,
            api_key=api_key,
            api_version=api_version,
            timeout_seconds=timeout_seconds,
            headers=headers,
            retry=retry,
        )


def normalize_base_url(value: str | None) -> str:
    trimmed = (value or "").strip()
    if not trimmed:
        return DEFAULT_BASE_URL
    return trimmed.rstrip("/")


def default_profile_config_path() -> Path:
    xdg = os.getenv("XDG_CONFIG_HOME")
    root = Path(xdg) if xdg else Path.home() / ".config"
    return root / "ngrok-mgmt" / "config.json"


def load_profile_config(*, config_path: str | Path | None = None) -> dict[str, Any]:
    path = Path(config_path) if config_path else default_profile_config_path()
    if not path.exists():
        return {"currentProfile": "default", "profiles": {}}

    try:
        with path.open("r", encoding="utf-8") as handle:
            parsed = json.load(handle)
    except (OSError, json.JSONDecodeError):
        return {"currentProfile": "default", "profiles": {}}

    if not isinstance(parsed, dict):
        return {"currentProfile": "default", "profiles": {}}
    return parsed


def _retry_from_profile(raw: dict[str, Any]) -> ExponentialBackoff:
    kwargs: dict[str, Any] = {}
    max_attempts = _parse_positive_int(raw.get("maxAttempts"))
    if max_attempts:
        kwargs["max_attempts"] = max_attempts
    base_ms = _parse_positive_int(raw.get("backoffBaseMs"))
    if base_ms:
        kwargs["backoff_base_seconds"] = base_ms / 1000.0
    max_ms = _parse_positive_int(raw.get("maxBackoffMs"))
    if max_ms:
        kwargs["max_backoff_seconds"] = max_ms / 1000.0
    statuses = raw.get("retryStatuses")
    if isinstance(statuses, list):
        parsed = {status for status in (_parse_positive_int(item) for item in statuses) if status}
        kwargs["retry_statuses"] = frozenset(parsed)
    return ExponentialBackoff(**kwargs)


def _trim_or_none(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    trimmed = value.strip()
    return trimmed if trimmed else None


def _trim_or_default(value: Any, fallback: str) -> str:
    if not isinstance(value, str):
        return fallback
    trimmed = value.strip()
    return trimmed if trimmed else fallback


def _parse_positive_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    if isinstance(value, str):
        try:
            parsed = int(value)
        except ValueError:
            return None
        return parsed if parsed > 0 else None
    return None
