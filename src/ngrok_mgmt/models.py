"""Resource models for the ngrok management API.

Unknown response fields are ignored so newer API versions keep decoding;
fields without a default are required and fail decoding when missing.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, ClassVar
from urllib.parse import parse_qs, urlsplit

from pydantic import BaseModel, ConfigDict, Field

CURSOR_PARAM = "before_id"


class ApiModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class Ref(ApiModel):
    id: str
    uri: str


class ListResponse(ApiModel):
    """Common shape of list documents: an items array plus ``next_page_uri``."""

    items_field: ClassVar[str] = ""

    uri: str
    next_page_uri: str | None = None

    @classmethod
    def is_concrete(cls) -> bool:
        return bool(cls.items_field) and cls.items_field in cls.model_fields

    def items(self) -> list[Any]:
        if not self.is_concrete():
            raise TypeError(f"{type(self).__name__} does not declare its items field")
        return list(getattr(self, self.items_field))

    def cursor(self) -> str | None:
        """``before_id`` carried by ``next_page_uri``, if any."""
        if not self.next_page_uri:
            return None
        values = parse_qs(urlsplit(self.next_page_uri).query).get(CURSOR_PARAM)
        if not values or not values[0]:
            return None
        return values[0]


class EventStream(ApiModel):
    id: str
    uri: str
    created_at: datetime
    metadata: str = ""
    description: str = ""
    fields: list[str] = Field(default_factory=list)
    event_type: str
    destination_ids: list[str] = Field(default_factory=list)
    sampling_rate: float


class EventStreamList(ListResponse):
    items_field: ClassVar[str] = "event_streams"

    event_streams: list[EventStream]


class IpPolicyRule(ApiModel):
    id: str
    uri: str
    created_at: datetime
    description: str = ""
    metadata: str = ""
    cidr: str
    ip_policy: Ref
    action: str | None = None


class IpPolicyRuleList(ListResponse):
    items_field: ClassVar[str] = "ip_policy_rules"

    ip_policy_rules: list[IpPolicyRule]


class EndpointSaml(ApiModel):
    enabled: bool | None = None
    options_passthrough: bool = False
    cookie_prefix: str = ""
    inactivity_timeout: int = 0
    maximum_duration: int = 0
    idp_metadata: str = ""
    force_authn: bool = False
    allow_idp_initiated: bool | None = None
    authorized_groups: list[str] = Field(default_factory=list)
    entity_id: str
    assertion_consumer_service_url: str
    single_logout_url: str
    request_signing_certificate_pem: str = ""
    metadata_url: str
    nameid_format: str = ""


class EndpointSamlMutate(ApiModel):
    enabled: bool | None = None
    options_passthrough: bool | None = None
    cookie_prefix: str | None = None
    inactivity_timeout: int | None = None
    maximum_duration: int | None = None
    idp_metadata: str | None = None
    force_authn: bool | None = None
    allow_idp_initiated: bool | None = None
    authorized_groups: list[str] | None = None
    nameid_format: str | None = None


class EndpointAction(ApiModel):
    type: str
    config: Any = None


class EndpointRule(ApiModel):
    expressions: list[str] = Field(default_factory=list)
    actions: list[EndpointAction]
    name: str = ""


class EndpointPolicy(ApiModel):
    enabled: bool | None = None
    inbound: list[EndpointRule] = Field(default_factory=list)
    outbound: list[EndpointRule] = Field(default_factory=list)
