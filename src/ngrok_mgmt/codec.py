"""Wire encoding for parameter sets and decoding of API responses."""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from typing import Any
from urllib.parse import urlencode

from pydantic import BaseModel, TypeAdapter, ValidationError

from .errors import ApiError, DecodeError, RequestDetails, classify_api_error
from .params import ABSENT, ParameterSet

JSON_CONTENT_TYPE = "application/json"

_adapter_cache: dict[Any, TypeAdapter[Any]] = {}
_MAX_SAMPLE_DEPTH = 2
_MAX_SAMPLE_ITEMS = 5
_MAX_SAMPLE_STRING = 200
_MAX_ERROR_TEXT = 500


def _model_name(model_type: Any) -> str:
    return getattr(model_type, "__name__", repr(model_type))


def _adapter_for(model_type: Any) -> TypeAdapter[Any]:
    try:
        adapter = _adapter_cache.get(model_type)
    except TypeError:
        return TypeAdapter(model_type)

    if adapter is None:
        adapter = TypeAdapter(model_type)
        _adapter_cache[model_type] = adapter
    return adapter


def _query_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, BaseModel):
        return value.model_dump_json(by_alias=True, exclude_unset=True)
    return str(value)


def encode_query(params: ParameterSet) -> str:
    """Render ``?name=value&...``; absent entries are skipped, nulls become ``name=``.

    Sequence items follow the same rule, each repeating the name.
    """
    pairs: list[tuple[str, str]] = []
    for name, value in params.effective().items():
        if value is ABSENT:
            continue
        if value is None:
            pairs.append((name, ""))
            continue
        if isinstance(value, Sequence) and not isinstance(value, (str, bytes)):
            pairs.extend((name, "" if item is None else _query_text(item)) for item in value if item is not ABSENT)
            continue
        pairs.append((name, _query_text(value)))

    if not pairs:
        return ""
    return "?" + urlencode(pairs)


def _jsonable(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True, exclude_unset=True)
    if isinstance(value, Mapping):
        return {str(key): _jsonable(nested) for key, nested in value.items() if nested is not ABSENT}
    if isinstance(value, (list, tuple)):
        return [_jsonable(item) for item in value]
    return _adapter_for(type(value)).dump_python(value, mode="json")


def body_document(params: ParameterSet) -> dict[str, Any]:
    """Structured body with explicit nulls kept and absent fields omitted."""
    return {name: None if value is None else _jsonable(value) for name, value in params.present().items()}


def encode_body(params: ParameterSet) -> bytes | None:
    if params.is_empty():
        return None
    return json.dumps(body_document(params), separators=(",", ":")).encode("utf-8")


def _sample_payload(value: Any, depth: int = 0) -> Any:
    if depth > _MAX_SAMPLE_DEPTH:
        return "<trimmed>"

    if isinstance(value, dict):
        sampled: dict[str, Any] = {}
        for index, (key, nested) in enumerate(value.items()):
            if index >= _MAX_SAMPLE_ITEMS:
                sampled["..."] = "<trimmed>"
                break
            sampled[str(key)] = _sample_payload(nested, depth + 1)
        return sampled

    if isinstance(value, list):
        sampled_items = [_sample_payload(item, depth + 1) for item in value[:_MAX_SAMPLE_ITEMS]]
        if len(value) > _MAX_SAMPLE_ITEMS:
            sampled_items.append("<trimmed>")
        return sampled_items

    if isinstance(value, str):
        return value if len(value) <= _MAX_SAMPLE_STRING else f"{value[:_MAX_SAMPLE_STRING]}..."

    if isinstance(value, (int, float, bool)) or value is None:
        return value

    return repr(value)


def _raw_sample(content: bytes) -> Any:
    text = content.decode("utf-8", errors="replace")
    try:
        return _sample_payload(json.loads(text))
    except json.JSONDecodeError:
        return _sample_payload(text)


def decode_response(
    content: bytes,
    response_type: Any,
    *,
    operation: str,
    status_code: int | None = None,
) -> Any:
    """Parse ``content`` into ``response_type``.

    Unknown fields are ignored. A missing required field or a value of the
    wrong wire type raises :class:`DecodeError` instead of defaulting.
    """
    adapter = _adapter_for(response_type)
    try:
        return adapter.validate_json(content)
    except ValidationError as error:
        raise DecodeError(
            operation=operation,
            model_name=_model_name(response_type),
            errors=error.errors(include_url=False),
            status_code=status_code,
            raw_sample=_raw_sample(content),
        ) from error


def decode_error(
    content: bytes,
    *,
    operation: str,
    method: str,
    path: str,
    status_code: int,
    retryable: bool,
) -> ApiError:
    """Build the :class:`ApiError` for a 4xx/5xx response.

    ngrok answers with ``{"error_code", "status_code", "msg", "details"}``;
    anything else is kept as text in the message.
    """
    error_code: str | None = None
    message: str | None = None
    extra: dict[str, Any] = {}
    body: Any = None

    if content:
        text = content.decode("utf-8", errors="replace")
        try:
            body = json.loads(text)
        except json.JSONDecodeError:
            body = text[:_MAX_ERROR_TEXT]
            message = body.strip() or None

    if isinstance(body, dict):
        if isinstance(body.get("error_code"), str):
            error_code = body["error_code"]
        msg = body.get("msg") or body.get("message")
        if isinstance(msg, str) and msg.strip():
            message = msg.strip()
        details = body.get("details")
        if isinstance(details, dict):
            extra = dict(details)

    request_details = RequestDetails(
        operation=operation,
        method=method,
        path=path,
        status_code=status_code,
        error_code=error_code,
        response_body=body,
    )
    return classify_api_error(request_details, message=message, retryable=retryable, extra=extra)
