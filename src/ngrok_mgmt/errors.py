"""Error hierarchy for the ngrok management client."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(slots=True)
class RequestDetails:
    operation: str
    method: str
    path: str
    status_code: int | None = None
    error_code: str | None = None
    response_body: Any | None = None


class NgrokError(Exception):
    """Base class for all client errors."""


class TransportError(NgrokError):
    """Raised when no response was obtained (DNS, TLS, connection reset)."""


class ClientTimeoutError(TransportError):
    """Raised when request times out."""


class ApiError(NgrokError):
    """Raised when the API answers with a 4xx/5xx status."""

    def __init__(
        self,
        message: str,
        *,
        details: RequestDetails,
        retryable: bool = False,
        extra: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details
        self.retryable = retryable
        self.extra = extra or {}

    @property
    def status_code(self) -> int | None:
        return self.details.status_code

    @property
    def error_code(self) -> str | None:
        return self.details.error_code

    @property
    def operation_id(self) -> str | None:
        value = self.extra.get("operation_id")
        return value if isinstance(value, str) else None


class AuthError(ApiError):
    """Raised for authentication/authorization failures."""


class ValidationError(ApiError):
    """Raised for invalid request payloads."""


class NotFoundError(ApiError):
    """Raised when requested resource does not exist."""


class ConflictError(ApiError):
    """Raised when request conflicts with current state."""


class RateLimitError(ApiError):
    """Raised when the account is being rate limited."""


class ServerError(ApiError):
    """Raised for server-side failures."""


class DecodeError(NgrokError):
    """Raised when a response body does not match the declared type."""

    def __init__(
        self,
        *,
        operation: str,
        model_name: str,
        errors: Any,
        status_code: int | None = None,
        raw_sample: Any | None = None,
    ) -> None:
        super().__init__(f"{operation} response did not match {model_name}")
        self.operation = operation
        self.model_name = model_name
        self.errors = errors
        self.status_code = status_code
        self.raw_sample = raw_sample


class InvalidStateError(NgrokError):
    """Raised on caller misuse, for example paging past the last page."""


class CallInterruptedError(NgrokError):
    """Raised when a blocking wait is interrupted before the call completes."""


def classify_api_error(
    details: RequestDetails,
    *,
    message: str | None = None,
    retryable: bool = False,
    extra: dict[str, Any] | None = None,
) -> ApiError:
    status = details.status_code or 0
    text = message or f"{details.operation} failed with status {status}"
    kwargs: dict[str, Any] = {"details": details, "retryable": retryable, "extra": extra}

    if status in (401, 403):
        return AuthError(text, **kwargs)
    if status == 400:
        return ValidationError(text, **kwargs)
    if status == 404:
        return NotFoundError(text, **kwargs)
    if status == 409:
        return ConflictError(text, **kwargs)
    if status == 429:
        return RateLimitError(text, **kwargs)
    if status >= 500:
        return ServerError(text, **kwargs)

    return ApiError(text, **kwargs)
