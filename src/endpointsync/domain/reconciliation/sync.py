"""Convergence of declared endpoints onto the identity service registry.

A pass has two stages that always run in this order:

1) retire: endpoint types recorded in ``status.endpoint_ids`` that are no
   longer declared in the spec are deleted remotely and forgotten locally;
2) converge: every declared type is looked up remotely by
   ``(service_id, availability)`` and created, updated or left alone.

Types are processed in lexicographic order so that a pass is reproducible.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from endpointsync.domain.availability import resolve_availability
from endpointsync.domain.errors import AmbiguousEndpointsError
from endpointsync.domain.model import EndpointRequest

if TYPE_CHECKING:
    from endpointsync.domain.context import ReconcileContext
    from endpointsync.domain.model import KeystoneEndpoint
    from endpointsync.domain.ports import IdentityAdminClient


@dataclass(slots=True)
class SyncReport:
    """Per-type outcome of one synchronisation pass."""

    created: list[str] = field(default_factory=list)
    updated: list[str] = field(default_factory=list)
    unchanged: list[str] = field(default_factory=list)
    retired: list[str] = field(default_factory=list)
    ambiguous: list[str] = field(default_factory=list)

    @property
    def mutations(self) -> int:
        return len(self.created) + len(self.updated) + len(self.retired)


def retire_endpoints(
    endpoint: KeystoneEndpoint,
    client: IdentityAdminClient,
    *,
    context: ReconcileContext,
    report: SyncReport | None = None,
) -> SyncReport:
    """Delete recorded endpoints whose type was removed from the spec."""

    report = report if report is not None else SyncReport()
    status = endpoint.status
    stale = sorted(set(status.endpoint_ids) - set(endpoint.spec.endpoints))
    for endpoint_type in stale:
        availability = resolve_availability(endpoint_type)
        if status.service_id:
            context.check()
            client.delete_endpoint(
                EndpointRequest(
                    name=endpoint.spec.service_name,
                    service_id=status.service_id,
                    availability=availability,
                )
            )
        else:
            context.log.warning(
                "No service id recorded, forgetting %s endpoint without remote delete",
                endpoint_type,
            )
        status.forget_endpoint(endpoint_type)
        report.retired.append(endpoint_type)
        context.log.info("Retired %s endpoint", endpoint_type)
    return report


def converge_endpoints(
    endpoint: KeystoneEndpoint,
    client: IdentityAdminClient,
    *,
    context: ReconcileContext,
    report: SyncReport | None = None,
) -> SyncReport:
    """Create or update one remote endpoint per declared type.

    Types with more than one matching remote endpoint are collected in
    ``report.ambiguous`` and their status entries are left untouched.
    """

    report = report if report is not None else SyncReport()
    status = endpoint.status
    for endpoint_type in sorted(endpoint.spec.endpoints):
        desired_url = endpoint.spec.endpoints[endpoint_type]
        availability = resolve_availability(endpoint_type)

        context.check()
        matches = client.list_endpoints(status.service_id, availability)

        if len(matches) > 1:
            context.log.error(
                "Found %d %s endpoints for service %s, manual cleanup required",
                len(matches),
                endpoint_type,
                endpoint.spec.service_name,
            )
            report.ambiguous.append(endpoint_type)
            continue

        if not matches:
            context.check()
            endpoint_id = client.create_endpoint(
                EndpointRequest(
                    name=endpoint.spec.service_name,
                    service_id=status.service_id,
                    availability=availability,
                    url=desired_url,
                )
            )
            report.created.append(endpoint_type)
            context.log.info("Created %s endpoint %s -> %s", endpoint_type, endpoint_id, desired_url)
        else:
            remote = matches[0]
            endpoint_id = remote.id
            if remote.url != desired_url:
                context.check()
                endpoint_id = client.update_endpoint(
                    EndpointRequest(
                        name=remote.name or endpoint.spec.service_name,
                        service_id=remote.service_id,
                        availability=availability,
                        url=desired_url,
                    ),
                    remote.id,
                )
                report.updated.append(endpoint_type)
                context.log.info(
                    "Updated %s endpoint %s: %s -> %s",
                    endpoint_type,
                    endpoint_id,
                    remote.url,
                    desired_url,
                )
            else:
                report.unchanged.append(endpoint_type)

        if endpoint_id:
            status.upsert_endpoint(endpoint_type, desired_url, endpoint_id)

    return report


def sync_endpoints(
    endpoint: KeystoneEndpoint,
    client: IdentityAdminClient,
    *,
    context: ReconcileContext,
) -> SyncReport:
    """Run the retire stage followed by the converge stage.

    Raises ``AmbiguousEndpointsError`` after both stages when at least one type
    could not be converged because the remote registry holds duplicates.
    """

    context.log.info("Reconciling endpoints")
    report = retire_endpoints(endpoint, client, context=context)
    converge_endpoints(endpoint, client, context=context, report=report)
    if report.ambiguous:
        raise AmbiguousEndpointsError(endpoint.spec.service_name, report.ambiguous)
    context.log.info(
        "Reconciled endpoints: created=%s updated=%s retired=%s unchanged=%s",
        report.created,
        report.updated,
        report.retired,
        report.unchanged,
    )
    return report
