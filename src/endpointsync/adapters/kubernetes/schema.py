"""Pydantic models describing the custom resource payloads."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


def _none_to_empty_list(value: object) -> object:
    return [] if value is None else value


def _none_to_empty_dict(value: object) -> object:
    return {} if value is None else value


class KubernetesBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True, alias_generator=to_camel)


class ObjectMetaPayload(KubernetesBaseModel):
    name: str
    namespace: str = ""
    generation: int = 0
    resource_version: str | None = None
    uid: str | None = None
    deletion_timestamp: datetime | None = None
    finalizers: list[str] = Field(default_factory=list)

    _normalize_finalizers = field_validator("finalizers", mode="before")(_none_to_empty_list)


class ConditionPayload(KubernetesBaseModel):
    type: str
    status: str
    reason: str = ""
    severity: str = ""
    message: str = ""
    last_transition_time: datetime | None = None


class EndpointRecordPayload(KubernetesBaseModel):
    interface: str
    url: str
    id: str = ""


### KeystoneEndpoint ###


class KeystoneEndpointSpecPayload(KubernetesBaseModel):
    service_name: str
    endpoints: dict[str, str] = Field(default_factory=dict)

    _normalize_endpoints = field_validator("endpoints", mode="before")(_none_to_empty_dict)


class KeystoneEndpointStatusPayload(KubernetesBaseModel):
    service_id: str = Field(default="", alias="serviceID")
    endpoint_ids: dict[str, str] = Field(default_factory=dict, alias="endpointIDs")
    endpoints: list[EndpointRecordPayload] = Field(default_factory=list)
    observed_generation: int = 0
    conditions: list[ConditionPayload] = Field(default_factory=list)

    _normalize_lists = field_validator("endpoints", "conditions", mode="before")(
        _none_to_empty_list
    )
    _normalize_ids = field_validator("endpoint_ids", mode="before")(_none_to_empty_dict)


class KeystoneEndpointPayload(KubernetesBaseModel):
    metadata: ObjectMetaPayload
    spec: KeystoneEndpointSpecPayload
    status: KeystoneEndpointStatusPayload = Field(default_factory=KeystoneEndpointStatusPayload)

    @field_validator("status", mode="before")
    @classmethod
    def _default_status(cls, value: object) -> object:
        return {} if value is None else value


### KeystoneAPI ###


class PasswordSelectorsPayload(KubernetesBaseModel):
    admin: str = "AdminPassword"


class KeystoneAPISpecPayload(KubernetesBaseModel):
    admin_user: str = "admin"
    admin_project: str = "admin"
    secret: str = ""
    password_selectors: PasswordSelectorsPayload = Field(default_factory=PasswordSelectorsPayload)
    region: str = "regionOne"


class KeystoneAPIStatusPayload(KubernetesBaseModel):
    api_endpoints: dict[str, str] = Field(default_factory=dict)
    conditions: list[ConditionPayload] = Field(default_factory=list)

    _normalize_endpoints = field_validator("api_endpoints", mode="before")(_none_to_empty_dict)
    _normalize_conditions = field_validator("conditions", mode="before")(_none_to_empty_list)


class KeystoneAPIPayload(KubernetesBaseModel):
    metadata: ObjectMetaPayload
    spec: KeystoneAPISpecPayload = Field(default_factory=KeystoneAPISpecPayload)
    status: KeystoneAPIStatusPayload = Field(default_factory=KeystoneAPIStatusPayload)

    @field_validator("spec", "status", mode="before")
    @classmethod
    def _default_sections(cls, value: object) -> object:
        return {} if value is None else value


### KeystoneService ###


class KeystoneServiceSpecPayload(KubernetesBaseModel):
    service_name: str = ""


class KeystoneServiceStatusPayload(KubernetesBaseModel):
    service_id: str = Field(default="", alias="serviceID")
    conditions: list[ConditionPayload] = Field(default_factory=list)

    _normalize_conditions = field_validator("conditions", mode="before")(_none_to_empty_list)


class KeystoneServicePayload(KubernetesBaseModel):
    metadata: ObjectMetaPayload
    spec: KeystoneServiceSpecPayload = Field(default_factory=KeystoneServiceSpecPayload)
    status: KeystoneServiceStatusPayload = Field(default_factory=KeystoneServiceStatusPayload)

    @field_validator("spec", "status", mode="before")
    @classmethod
    def _default_sections(cls, value: object) -> object:
        return {} if value is None else value
