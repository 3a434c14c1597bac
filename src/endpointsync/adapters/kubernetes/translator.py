"""Translate custom resource payloads into domain resources and back."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from endpointsync.domain.errors import ResourceStoreError
from endpointsync.domain.model import (
    Condition,
    ConditionList,
    ConditionStatus,
    EndpointRecord,
    FinalizerSet,
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

from .schema import (
    ConditionPayload,
    KeystoneAPIPayload,
    KeystoneEndpointPayload,
    KeystoneServicePayload,
    ObjectMetaPayload,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from pydantic import BaseModel

_TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def _validate[M: BaseModel](model: type[M], payload: Mapping[str, Any], kind: str) -> M:
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        metadata = payload.get("metadata") or {}
        target = f"{metadata.get('namespace', '?')}/{metadata.get('name', '?')}"
        raise ResourceStoreError(f"malformed {kind} {target}: {exc.error_count()} errors") from exc


def format_timestamp(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).strftime(_TIMESTAMP_FORMAT)


def parse_meta(payload: ObjectMetaPayload) -> ObjectMeta:
    return ObjectMeta(
        name=payload.name,
        namespace=payload.namespace,
        generation=payload.generation,
        resource_version=payload.resource_version,
        uid=payload.uid,
        deletion_timestamp=payload.deletion_timestamp,
        finalizers=FinalizerSet.from_strings(payload.finalizers),
    )


def parse_conditions(payloads: Iterable[ConditionPayload]) -> ConditionList:
    conditions: list[Condition] = []
    for payload in payloads:
        try:
            status = ConditionStatus(payload.status)
        except ValueError:
            status = ConditionStatus.UNKNOWN
        conditions.append(
            Condition(
                type=payload.type,
                status=status,
                reason=payload.reason,
                severity=payload.severity,
                message=payload.message,
                last_transition_time=payload.last_transition_time,
            )
        )
    return ConditionList(conditions)


def dump_conditions(conditions: ConditionList) -> list[dict[str, str]]:
    dumped: list[dict[str, str]] = []
    for condition in conditions:
        item = {
            "type": str(condition.type),
            "status": str(condition.status),
            "reason": str(condition.reason),
            "message": condition.message,
        }
        if condition.severity:
            item["severity"] = str(condition.severity)
        if condition.last_transition_time is not None:
            item["lastTransitionTime"] = format_timestamp(condition.last_transition_time)
        dumped.append(item)
    return dumped


def parse_keystone_endpoint(payload: Mapping[str, Any]) -> KeystoneEndpoint:
    model = _validate(KeystoneEndpointPayload, payload, KeystoneEndpoint.KIND)
    status = model.status
    return KeystoneEndpoint(
        meta=parse_meta(model.metadata),
        spec=KeystoneEndpointSpec(
            service_name=model.spec.service_name,
            endpoints=dict(model.spec.endpoints),
        ),
        status=KeystoneEndpointStatus(
            service_id=status.service_id,
            endpoint_ids=dict(status.endpoint_ids),
            endpoints=[
                EndpointRecord(interface=record.interface, url=record.url, id=record.id)
                for record in status.endpoints
            ],
            observed_generation=status.observed_generation,
            conditions=parse_conditions(status.conditions),
        ),
    )


def dump_endpoint_status(status: KeystoneEndpointStatus) -> dict[str, Any]:
    """Render the full status object with the resource's JSON keys."""

    return {
        "serviceID": status.service_id,
        "endpointIDs": dict(sorted(status.endpoint_ids.items())),
        "endpoints": [
            {"interface": record.interface, "url": record.url, "id": record.id}
            for record in status.endpoints
        ],
        "observedGeneration": status.observed_generation,
        "conditions": dump_conditions(status.conditions),
    }


def parse_keystone_api(payload: Mapping[str, Any]) -> KeystoneAPI:
    model = _validate(KeystoneAPIPayload, payload, KeystoneAPI.KIND)
    return KeystoneAPI(
        meta=parse_meta(model.metadata),
        spec=KeystoneAPISpec(
            admin_user=model.spec.admin_user,
            admin_project=model.spec.admin_project,
            secret=model.spec.secret,
            admin_password_key=model.spec.password_selectors.admin,
            region=model.spec.region,
        ),
        status=KeystoneAPIStatus(
            api_endpoints=dict(model.status.api_endpoints),
            conditions=parse_conditions(model.status.conditions),
        ),
    )


def parse_keystone_service(payload: Mapping[str, Any]) -> KeystoneService:
    model = _validate(KeystoneServicePayload, payload, KeystoneService.KIND)
    return KeystoneService(
        meta=parse_meta(model.metadata),
        service_name=model.spec.service_name,
        status=KeystoneServiceStatus(
            service_id=model.status.service_id,
            conditions=parse_conditions(model.status.conditions),
        ),
    )


def finalizers_patch(meta: ObjectMeta) -> dict[str, Any]:
    """Merge patch replacing the finalizer list, guarded by the resource version."""

    metadata: dict[str, Any] = {"finalizers": meta.finalizers.as_list()}
    if meta.resource_version:
        metadata["resourceVersion"] = meta.resource_version
    return {"metadata": metadata}


def status_patch(status: KeystoneEndpointStatus) -> list[dict[str, Any]]:
    """JSON patch replacing the whole status, dropping keys no longer present."""

    return [{"op": "add", "path": "/status", "value": dump_endpoint_status(status)}]


def resource_version_of(payload: Mapping[str, Any] | None) -> str | None:
    if not payload:
        return None
    metadata = payload.get("metadata") or {}
    version = metadata.get("resourceVersion")
    return str(version) if version else None
