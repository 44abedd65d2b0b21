"""Resource bindings built on the request engine.

Each method builds an :class:`ApiRequest` and hands it to a dispatcher. The
blocking client's dispatcher returns decoded values (and :class:`Page`
objects for list calls); the asyncio client's returns awaitable futures.
Optional arguments default to ``ABSENT`` and are left off the wire; passing
``None`` sends an explicit null.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any
from urllib.parse import quote

from .models import (
    EndpointPolicy,
    EndpointSaml,
    EndpointSamlMutate,
    EventStream,
    EventStreamList,
    IpPolicyRule,
    IpPolicyRuleList,
    ListResponse,
)
from .params import ABSENT, EMPTY, ApiRequest, HttpMethod, Maybe, ParameterSet
from .protocols import Dispatcher


def _path_id(value: str, *, field_name: str = "id") -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{field_name} must be a non-empty string")
    return quote(value.strip(), safe="")


def _parameter_set(values: Mapping[str, Any] | ParameterSet | None) -> ParameterSet:
    if values is None:
        return EMPTY
    if isinstance(values, ParameterSet):
        return values
    return ParameterSet.from_mapping(values)


class RawApi:
    def __init__(self, dispatcher: Dispatcher) -> None:
        self._dispatcher = dispatcher

    def request(
        self,
        method: str | HttpMethod,
        path: str,
        *,
        operation: str = "raw.request",
        query: Mapping[str, Any] | ParameterSet | None = None,
        body: Mapping[str, Any] | ParameterSet | None = None,
        response_type: Any | None = None,
    ) -> Any:
        return self._dispatcher.request(
            ApiRequest(
                operation=operation,
                method=HttpMethod.parse(method),
                path=path,
                query=_parameter_set(query),
                body=_parameter_set(body),
                response_type=response_type,
            )
        )

    def list(
        self,
        path: str,
        *,
        response_type: type[ListResponse],
        operation: str = "raw.list",
        query: Mapping[str, Any] | ParameterSet | None = None,
    ) -> Any:
        if not (isinstance(response_type, type) and issubclass(response_type, ListResponse) and response_type.is_concrete()):
            raise TypeError("response_type must be a ListResponse subclass that sets items_field")
        return self._dispatcher.paginate(
            ApiRequest(
                operation=operation,
                method=HttpMethod.GET,
                path=path,
                query=_parameter_set(query),
                response_type=response_type,
            )
        )


class EventStreamsApi:
    """Event Streams: which traffic events are captured and where they are sent."""

    def __init__(self, dispatcher: Dispatcher) -> None:
        self._dispatcher = dispatcher

    def create(
        self,
        *,
        metadata: Maybe[str] = ABSENT,
        description: Maybe[str] = ABSENT,
        fields: Maybe[list[str]] = ABSENT,
        event_type: Maybe[str] = ABSENT,
        destination_ids: Maybe[list[str]] = ABSENT,
        sampling_rate: Maybe[float] = ABSENT,
    ) -> Any:
        return self._dispatcher.request(
            ApiRequest(
                operation="event_streams.create",
                method=HttpMethod.POST,
                path="/event_streams",
                body=ParameterSet.of(
                    ("metadata", metadata),
                    ("description", description),
                    ("fields", fields),
                    ("event_type", event_type),
                    ("destination_ids", destination_ids),
                    ("sampling_rate", sampling_rate),
                ),
                response_type=EventStream,
            )
        )

    def delete(self, id: str) -> Any:
        return self._dispatcher.request(
            ApiRequest(
                operation="event_streams.delete",
                method=HttpMethod.DELETE,
                path=f"/event_streams/{_path_id(id)}",
            )
        )

    def get(self, id: str) -> Any:
        return self._dispatcher.request(
            ApiRequest(
                operation="event_streams.get",
                method=HttpMethod.GET,
                path=f"/event_streams/{_path_id(id)}",
                response_type=EventStream,
            )
        )

    def list(self, *, before_id: Maybe[str] = ABSENT, limit: Maybe[str | int] = ABSENT) -> Any:
        return self._dispatcher.paginate(
            ApiRequest(
                operation="event_streams.list",
                method=HttpMethod.GET,
                path="/event_streams",
                query=ParameterSet.of(("before_id", before_id), ("limit", limit)),
                response_type=EventStreamList,
            )
        )

    def update(
        self,
        id: str,
        *,
        metadata: Maybe[str] = ABSENT,
        description: Maybe[str] = ABSENT,
        fields: Maybe[list[str]] = ABSENT,
        destination_ids: Maybe[list[str]] = ABSENT,
        sampling_rate: Maybe[float] = ABSENT,
    ) -> Any:
        return self._dispatcher.request(
            ApiRequest(
                operation="event_streams.update",
                method=HttpMethod.PATCH,
                path=f"/event_streams/{_path_id(id)}",
                body=ParameterSet.of(
                    ("metadata", metadata),
                    ("description", description),
                    ("fields", fields),
                    ("destination_ids", destination_ids),
                    ("sampling_rate", sampling_rate),
                ),
                response_type=EventStream,
            )
        )


class IpPolicyRulesApi:
    """IP Policy Rules: CIDR allow/deny entries attached to an IP policy."""

    def __init__(self, dispatcher: Dispatcher) -> None:
        self._dispatcher = dispatcher

    def create(
        self,
        *,
        cidr: str,
        ip_policy_id: str,
        description: Maybe[str] = ABSENT,
        metadata: Maybe[str] = ABSENT,
        action: Maybe[str] = ABSENT,
    ) -> Any:
        return self._dispatcher.request(
            ApiRequest(
                operation="ip_policy_rules.create",
                method=HttpMethod.POST,
                path="/ip_policy_rules",
                body=ParameterSet.of(
                    ("description", description),
                    ("metadata", metadata),
                    ("cidr", cidr),
                    ("ip_policy_id", ip_policy_id),
                    ("action", action),
                ),
                response_type=IpPolicyRule,
            )
        )

    def delete(self, id: str) -> Any:
        return self._dispatcher.request(
            ApiRequest(
                operation="ip_policy_rules.delete",
                method=HttpMethod.DELETE,
                path=f"/ip_policy_rules/{_path_id(id)}",
            )
        )

    def get(self, id: str) -> Any:
        return self._dispatcher.request(
            ApiRequest(
                operation="ip_policy_rules.get",
                method=HttpMethod.GET,
                path=f"/ip_policy_rules/{_path_id(id)}",
                response_type=IpPolicyRule,
            )
        )

    def list(self, *, before_id: Maybe[str] = ABSENT, limit: Maybe[str | int] = ABSENT) -> Any:
        return self._dispatcher.paginate(
            ApiRequest(
                operation="ip_policy_rules.list",
                method=HttpMethod.GET,
                path="/ip_policy_rules",
                query=ParameterSet.of(("before_id", before_id), ("limit", limit)),
                response_type=IpPolicyRuleList,
            )
        )

    def update(
        self,
        id: str,
        *,
        description: Maybe[str] = ABSENT,
        metadata: Maybe[str] = ABSENT,
        cidr: Maybe[str] = ABSENT,
    ) -> Any:
        return self._dispatcher.request(
            ApiRequest(
                operation="ip_policy_rules.update",
                method=HttpMethod.PATCH,
                path=f"/ip_policy_rules/{_path_id(id)}",
                body=ParameterSet.of(
                    ("description", description),
                    ("metadata", metadata),
                    ("cidr", cidr),
                ),
                response_type=IpPolicyRule,
            )
        )


class EndpointSamlModuleApi:
    """SAML module of an endpoint configuration."""

    def __init__(self, dispatcher: Dispatcher) -> None:
        self._dispatcher = dispatcher

    def replace(self, id: str, *, module: Maybe[EndpointSamlMutate] = ABSENT) -> Any:
        return self._dispatcher.request(
            ApiRequest(
                operation="endpoint_saml_module.replace",
                method=HttpMethod.PUT,
                path=f"/endpoint_configurations/{_path_id(id)}/saml",
                body=ParameterSet.of(("module", module)),
                response_type=EndpointSaml,
            )
        )

    def get(self, id: str) -> Any:
        return self._dispatcher.request(
            ApiRequest(
                operation="endpoint_saml_module.get",
                method=HttpMethod.GET,
                path=f"/endpoint_configurations/{_path_id(id)}/saml",
                response_type=EndpointSaml,
            )
        )

    def delete(self, id: str) -> Any:
        return self._dispatcher.request(
            ApiRequest(
                operation="endpoint_saml_module.delete",
                method=HttpMethod.DELETE,
                path=f"/endpoint_configurations/{_path_id(id)}/saml",
            )
        )


class TlsEdgePolicyModuleApi:
    """Traffic policy module of a TLS edge."""

    def __init__(self, dispatcher: Dispatcher) -> None:
        self._dispatcher = dispatcher

    def replace(self, id: str, *, module: Maybe[EndpointPolicy] = ABSENT) -> Any:
        return self._dispatcher.request(
            ApiRequest(
                operation="tls_edge_policy_module.replace",
                method=HttpMethod.PUT,
                path=f"/edges/tls/{_path_id(id)}/policy",
                body=ParameterSet.of(("module", module)),
                response_type=EndpointPolicy,
            )
        )

    def get(self, id: str) -> Any:
        return self._dispatcher.request(
            ApiRequest(
                operation="tls_edge_policy_module.get",
                method=HttpMethod.GET,
                path=f"/edges/tls/{_path_id(id)}/policy",
                response_type=EndpointPolicy,
            )
        )

    def delete(self, id: str) -> Any:
        return self._dispatcher.request(
            ApiRequest(
                operation="tls_edge_policy_module.delete",
                method=HttpMethod.DELETE,
                path=f"/edges/tls/{_path_id(id)}/policy",
            )
        )
