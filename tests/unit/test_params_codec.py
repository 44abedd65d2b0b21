from __future__ import annotations

import json
import pickle

import pytest

from ngrok_mgmt.codec import body_document, decode_error, decode_response, encode_body, encode_query
from ngrok_mgmt.errors import DecodeError, NotFoundError, RateLimitError, ServerError
from ngrok_mgmt.models import EndpointSamlMutate, Ref
from ngrok_mgmt.params import ABSENT, EMPTY, ApiRequest, HttpMethod, ParameterSet


def test_absent_and_null_stay_distinct_in_body() -> None:
    params = ParameterSet.of(("description", ABSENT), ("metadata", None), ("cidr", "10.0.0.0/8"))

    assert body_document(params) == {"metadata": None, "cidr": "10.0.0.0/8"}
    assert json.loads(encode_body(params) or b"") == {"metadata": None, "cidr": "10.0.0.0/8"}


def test_absent_and_null_stay_distinct_in_query() -> None:
    params = ParameterSet.of(("before_id", ABSENT), ("limit", None), ("active", True), ("ids", ["a", "b"]))

    assert encode_query(params) == "?limit=&active=true&ids=a&ids=b"


def test_all_absent_parameters_produce_no_body_and_no_query() -> None:
    params = ParameterSet.of(("a", ABSENT), ("b", ABSENT))

    assert params.is_empty()
    assert encode_body(params) is None
    assert encode_query(params) == ""
    assert encode_body(EMPTY) is None


def test_nulls_inside_query_sequences_render_empty_values() -> None:
    params = ParameterSet.of(("ids", ["a", None, ABSENT, "b"]))

    assert encode_query(params) == "?ids=a&ids=&ids=b"


def test_query_values_are_escaped() -> None:
    assert encode_query(ParameterSet.of(("q", "a b&c"))) == "?q=a+b%26c"


def test_duplicate_names_resolve_to_last_value_in_first_position() -> None:
    params = ParameterSet.of(("a", 1), ("b", 2), ("a", 3))

    assert list(params.effective().items()) == [("a", 3), ("b", 2)]
    assert encode_query(params) == "?a=3&b=2"
    assert len(params) == 3


def test_replace_keeps_position_and_drops_duplicates() -> None:
    params = ParameterSet.of(("before_id", ABSENT), ("limit", "5"), ("before_id", "x"))

    replaced = params.replace("before_id", "cursor")

    assert replaced.pairs == (("before_id", "cursor"), ("limit", "5"))
    assert params.get("before_id") == "x"
    assert ParameterSet.of(("limit", "5")).replace("before_id", "c").pairs == (("limit", "5"), ("before_id", "c"))


def test_parameter_names_must_be_non_empty() -> None:
    with pytest.raises(ValueError):
        ParameterSet.of(("", 1))


def test_absent_is_a_falsy_singleton() -> None:
    assert not ABSENT
    assert repr(ABSENT) == "ABSENT"
    assert pickle.loads(pickle.dumps(ABSENT)) is ABSENT


def test_model_values_dump_only_set_fields() -> None:
    params = ParameterSet.of(("module", EndpointSamlMutate(enabled=True, authorized_groups=["eng"])))

    assert body_document(params) == {"module": {"enabled": True, "authorized_groups": ["eng"]}}


def test_api_request_normalizes_method_and_path() -> None:
    request = ApiRequest(operation="x", method="patch", path="event_streams")

    assert request.method is HttpMethod.PATCH
    assert request.path == "/event_streams"
    with pytest.raises(ValueError):
        ApiRequest(operation="x", method="TRACE", path="/")


def test_with_query_returns_new_request() -> None:
    request = ApiRequest(
        operation="event_streams.list",
        method=HttpMethod.GET,
        path="/event_streams",
        query=ParameterSet.of(("before_id", ABSENT), ("limit", "2")),
    )

    following = request.with_query("before_id", "es_2")

    assert following.query.present() == {"before_id": "es_2", "limit": "2"}
    assert request.query.present() == {"limit": "2"}


def test_decode_ignores_unknown_fields() -> None:
    value = decode_response(b'{"id":"ip_1","uri":"/ip_policies/ip_1","new_field":1}', Ref, operation="x")

    assert value == Ref(id="ip_1", uri="/ip_policies/ip_1")


def test_decode_missing_required_field_raises_decode_error() -> None:
    with pytest.raises(DecodeError) as excinfo:
        decode_response(b'{"id":"ip_1"}', Ref, operation="ip_policies.get", status_code=200)

    error = excinfo.value
    assert error.operation == "ip_policies.get"
    assert error.model_name == "Ref"
    assert error.status_code == 200
    assert error.raw_sample == {"id": "ip_1"}
    assert any(item["loc"] == ("uri",) for item in error.errors)


def test_decode_wrong_wire_type_raises_decode_error() -> None:
    with pytest.raises(DecodeError):
        decode_response(b'{"id":["not","a","string"],"uri":"/x"}', Ref, operation="x")


def test_decode_empty_body_with_declared_type_raises_decode_error() -> None:
    with pytest.raises(DecodeError):
        decode_response(b"", Ref, operation="x")


def test_error_document_is_decoded_into_api_error() -> None:
    content = json.dumps(
        {
            "error_code": "ERR_NGROK_404",
            "status_code": 404,
            "msg": "Resource not found",
            "details": {"operation_id": "op_123"},
        }
    ).encode()

    error = decode_error(
        content,
        operation="event_streams.get",
        method="GET",
        path="/event_streams/es_1",
        status_code=404,
        retryable=False,
    )

    assert isinstance(error, NotFoundError)
    assert error.message == "Resource not found"
    assert error.error_code == "ERR_NGROK_404"
    assert error.status_code == 404
    assert error.operation_id == "op_123"
    assert error.retryable is False


def test_non_json_error_body_keeps_text() -> None:
    error = decode_error(
        b"upstream unavailable",
        operation="x",
        method="GET",
        path="/x",
        status_code=503,
        retryable=True,
    )

    assert isinstance(error, ServerError)
    assert error.message == "upstream unavailable"
    assert error.error_code is None
    assert error.retryable is True


def test_empty_error_body_gets_generic_message() -> None:
    error = decode_error(b"", operation="x", method="GET", path="/x", status_code=429, retryable=True)

    assert isinstance(error, RateLimitError)
    assert error.message == "x failed with status 429"


def test_absent_and_null_survive_encode_and_decode() -> None:
    params = ParameterSet.of(
        ("enabled", None),
        ("force_authn", True),
        ("cookie_prefix", ABSENT),
        ("authorized_groups", ["eng", "ops"]),
    )

    echoed = encode_body(params)
    assert echoed is not None
    decoded = decode_response(echoed, EndpointSamlMutate, operation="endpoint_saml_module.replace")

    assert decoded.model_fields_set == {"enabled", "force_authn", "authorized_groups"}
    assert decoded.enabled is None
    assert decoded.force_authn is True
    assert "cookie_prefix" not in decoded.model_fields_set
    assert body_document(ParameterSet.of(("module", decoded))) == {
        "module": {"enabled": None, "force_authn": True, "authorized_groups": ["eng", "ops"]}
    }
