"""Custom resources observed and written by the endpoint controller."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, ClassVar

from endpointsync.domain.model.conditions import ConditionList
from endpointsync.domain.model.enums import ConditionType, Lifecycle
from endpointsync.domain.model.finalizers import FinalizerSet

if TYPE_CHECKING:
    from datetime import datetime

ENDPOINT_KIND = "KeystoneEndpoint"
KEYSTONE_API_KIND = "KeystoneAPI"
KEYSTONE_SERVICE_KIND = "KeystoneService"


@dataclass(slots=True)
class ObjectMeta:
    name: str
    namespace: str
    generation: int = 0
    resource_version: str | None = None
    uid: str | None = None
    deletion_timestamp: datetime | None = None
    finalizers: FinalizerSet = field(default_factory=FinalizerSet)

    @property
    def lifecycle(self) -> Lifecycle:
        if self.deletion_timestamp is None:
            return Lifecycle.ACTIVE
        return Lifecycle.TERMINATING

    @property
    def is_terminating(self) -> bool:
        return self.lifecycle is Lifecycle.TERMINATING


@dataclass(slots=True)
class EndpointRecord:
    """Mirror of a registered endpoint, listed in the status for visibility."""

    interface: str
    url: str
    id: str


@dataclass(slots=True)
class KeystoneEndpointSpec:
    service_name: str
    endpoints: dict[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class KeystoneEndpointStatus:
    service_id: str = ""
    endpoint_ids: dict[str, str] = field(default_factory=dict)
    endpoints: list[EndpointRecord] = field(default_factory=list)
    observed_generation: int = 0
    conditions: ConditionList = field(default_factory=ConditionList)

    def endpoint_index(self, interface: str) -> int:
        """Return the position of ``interface`` in ``endpoints`` or ``-1``."""

        for index, record in enumerate(self.endpoints):
            if record.interface == interface:
                return index
        return -1

    def upsert_endpoint(self, interface: str, url: str, endpoint_id: str) -> None:
        self.endpoint_ids[interface] = endpoint_id
        index = self.endpoint_index(interface)
        if index >= 0:
            self.endpoints[index].url = url
            self.endpoints[index].id = endpoint_id
        else:
            self.endpoints.append(EndpointRecord(interface=interface, url=url, id=endpoint_id))

    def forget_endpoint(self, interface: str) -> None:
        self.endpoint_ids.pop(interface, None)
        index = self.endpoint_index(interface)
        if index >= 0:
            del self.endpoints[index]


@dataclass(slots=True)
class KeystoneEndpoint:
    meta: ObjectMeta
    spec: KeystoneEndpointSpec
    status: KeystoneEndpointStatus = field(default_factory=KeystoneEndpointStatus)

    KIND: ClassVar[str] = ENDPOINT_KIND

    @property
    def name(self) -> str:
        return self.meta.name

    @property
    def namespace(self) -> str:
        return self.meta.namespace


@dataclass(slots=True)
class KeystoneAPISpec:
    admin_user: str = "admin"
    admin_project: str = "admin"
    secret: str = ""
    admin_password_key: str = "AdminPassword"
    region: str = "regionOne"


@dataclass(slots=True)
class KeystoneAPIStatus:
    api_endpoints: dict[str, str] = field(default_factory=dict)
    conditions: ConditionList = field(default_factory=ConditionList)


@dataclass(slots=True)
class KeystoneAPI:
    """Registration of the identity API a KeystoneEndpoint talks to."""

    meta: ObjectMeta
    spec: KeystoneAPISpec = field(default_factory=KeystoneAPISpec)
    status: KeystoneAPIStatus = field(default_factory=KeystoneAPIStatus)

    KIND: ClassVar[str] = KEYSTONE_API_KIND

    @property
    def name(self) -> str:
        return self.meta.name

    def is_ready(self) -> bool:
        return self.status.conditions.is_true(ConditionType.READY)

    def endpoint_url(self, *preferred: str) -> str | None:
        for interface in preferred:
            url = self.status.api_endpoints.get(interface)
            if url:
                return url
        return None


@dataclass(slots=True)
class KeystoneServiceStatus:
    service_id: str = ""
    conditions: ConditionList = field(default_factory=ConditionList)


@dataclass(slots=True)
class KeystoneService:
    """Service registration the endpoints are attached to."""

    meta: ObjectMeta
    service_name: str
    status: KeystoneServiceStatus = field(default_factory=KeystoneServiceStatus)

    KIND: ClassVar[str] = KEYSTONE_SERVICE_KIND

    @property
    def name(self) -> str:
        return self.meta.name

    def is_ready(self) -> bool:
        return self.status.conditions.is_true(ConditionType.READY)


type DependencyResource = KeystoneAPI | KeystoneService
