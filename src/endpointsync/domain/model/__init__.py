"""Public domain model surface."""

from __future__ import annotations

from endpointsync.domain.model.conditions import (
    READY_INIT_MESSAGE,
    READY_MESSAGE,
    Condition,
    ConditionList,
    false_condition,
    mirror,
    true_condition,
    unknown_condition,
)
from endpointsync.domain.model.enums import (
    Availability,
    ConditionReason,
    ConditionStatus,
    ConditionType,
    Lifecycle,
    Severity,
)
from endpointsync.domain.model.finalizers import (
    DEFAULT_FINALIZER_DOMAIN,
    FinalizerKey,
    FinalizerSet,
)
from endpointsync.domain.model.remote import EndpointRequest, RemoteEndpoint
from endpointsync.domain.model.resources import (
    ENDPOINT_KIND,
    KEYSTONE_API_KIND,
    KEYSTONE_SERVICE_KIND,
    DependencyResource,
    EndpointRecord,
    KeystoneAPI,
    KeystoneAPISpec,
    KeystoneAPIStatus,
    KeystoneEndpoint,
    KeystoneEndpointSpec,
    KeystoneEndpointStatus,
    KeystoneService,
    KeystoneServiceStatus,
    ObjectMeta,
)

__all__ = [
    "ENDPOINT_KIND",
    "KEYSTONE_API_KIND",
    "KEYSTONE_SERVICE_KIND",
    "DEFAULT_FINALIZER_DOMAIN",
    "READY_INIT_MESSAGE",
    "READY_MESSAGE",
    "Availability",
    "Condition",
    "ConditionList",
    "ConditionReason",
    "ConditionStatus",
    "ConditionType",
    "DependencyResource",
    "EndpointRecord",
    "EndpointRequest",
    "FinalizerKey",
    "FinalizerSet",
    "KeystoneAPI",
    "KeystoneAPISpec",
    "KeystoneAPIStatus",
    "KeystoneEndpoint",
    "KeystoneEndpointSpec",
    "KeystoneEndpointStatus",
    "KeystoneService",
    "KeystoneServiceStatus",
    "Lifecycle",
    "ObjectMeta",
    "RemoteEndpoint",
    "Severity",
    "false_condition",
    "mirror",
    "true_condition",
    "unknown_condition",
]
