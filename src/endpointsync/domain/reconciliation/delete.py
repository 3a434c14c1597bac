"""Deletion paths of a terminating endpoint."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from endpointsync.domain.availability import resolve_availability
from endpointsync.domain.errors import ResourceNotFoundError
from endpointsync.domain.model import EndpointRequest

from .result import ReconcilePhase, ReconcileResult

if TYPE_CHECKING:
    from endpointsync.domain.context import ReconcileContext
    from endpointsync.domain.model import KeystoneAPI, KeystoneEndpoint
    from endpointsync.domain.ports import IdentityAdminClient, ResourceStore

    from .finalizers import FinalizerCoordinator


@dataclass(slots=True)
class EndpointDeletion:
    store: ResourceStore
    finalizers: FinalizerCoordinator

    def full(
        self,
        endpoint: KeystoneEndpoint,
        *,
        client: IdentityAdminClient | None,
        keystone_api: KeystoneAPI | None,
        context: ReconcileContext,
    ) -> ReconcileResult:
        """Retire every declared endpoint, then release all markers.

        Deletion is attempted for each declared type whether or not an id was
        recorded, since the registry may hold an entry the status never saw.
        Without a client there is nothing registered to clean up.
        """

        context.log.info("Reconciling Endpoint delete")

        if client is not None:
            service_id = endpoint.status.service_id
            for endpoint_type in sorted(endpoint.spec.endpoints):
                availability = resolve_availability(endpoint_type)
                if not service_id:
                    context.log.warning(
                        "No service id recorded, skipping remote delete of %s endpoint",
                        endpoint_type,
                    )
                    continue
                context.check()
                client.delete_endpoint(
                    EndpointRequest(
                        name=endpoint.spec.service_name,
                        service_id=service_id,
                        availability=availability,
                    )
                )

        endpoint.status.endpoint_ids.clear()
        endpoint.status.endpoints.clear()

        self._release_dependencies(endpoint, keystone_api, context=context)
        self.finalizers.release_own(endpoint)
        context.log.info("Reconciled Endpoint delete successfully")
        return ReconcileResult.done(ReconcilePhase.DELETED)

    def finalizers_only(
        self,
        endpoint: KeystoneEndpoint,
        *,
        keystone_api: KeystoneAPI,
        context: ReconcileContext,
    ) -> ReconcileResult:
        """Release markers without touching the identity service.

        Used while the KeystoneAPI itself is going away: its backing store is
        torn down with it and its REST API may already be unreachable.
        """

        context.log.info("Reconciling Endpoint delete while KeystoneAPI is being deleted")
        self._release_dependencies(endpoint, keystone_api, context=context)
        self.finalizers.release_own(endpoint)
        context.log.info("Reconciled Endpoint delete successfully")
        return ReconcileResult.done(ReconcilePhase.DELETED)

    def _release_dependencies(
        self,
        endpoint: KeystoneEndpoint,
        keystone_api: KeystoneAPI | None,
        *,
        context: ReconcileContext,
    ) -> None:
        namespace = endpoint.namespace
        service_name = endpoint.spec.service_name

        context.check()
        try:
            service = self.store.get_keystone_service(namespace, service_name)
        except ResourceNotFoundError:
            service = None
        if service is not None:
            self.finalizers.release(
                endpoint,
                service,
                reload=lambda: self.store.get_keystone_service(namespace, service_name),
                context=context,
            )

        if keystone_api is not None:
            self.finalizers.release(
                endpoint,
                keystone_api,
                reload=lambda: self.store.get_keystone_api(namespace),
                context=context,
            )
