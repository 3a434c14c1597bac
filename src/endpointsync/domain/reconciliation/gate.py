"""Readiness checks for the resources an endpoint depends on.

Each check records its outcome on the endpoint's conditions and either hands
back the usable dependency or a ``ReconcileResult`` asking for a retry.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING

from endpointsync.domain.errors import ReconcileError, ResourceNotFoundError
from endpointsync.domain.model import ConditionReason, ConditionType, Severity
from endpointsync.domain.ports import AdminClientPending

from . import messages
from .policy import ReconcilePolicy
from .result import ReconcilePhase, ReconcileResult

if TYPE_CHECKING:
    from endpointsync.domain.context import ReconcileContext
    from endpointsync.domain.model import KeystoneAPI, KeystoneEndpoint, KeystoneService
    from endpointsync.domain.ports import AdminClientProvider, IdentityAdminClient, ResourceStore


@dataclass(slots=True)
class DependencyGate:
    store: ResourceStore
    admin_client_provider: AdminClientProvider
    policy: ReconcilePolicy = field(default_factory=ReconcilePolicy)

    def fetch_keystone_api(
        self,
        endpoint: KeystoneEndpoint,
        *,
        context: ReconcileContext,
    ) -> KeystoneAPI | None:
        """Return the namespace's KeystoneAPI, or ``None`` when there is none."""

        context.check()
        try:
            return self.store.get_keystone_api(endpoint.namespace)
        except ResourceNotFoundError:
            return None
        except ReconcileError as exc:
            endpoint.status.conditions.mark_false(
                ConditionType.KEYSTONE_API_READY,
                ConditionReason.ERROR,
                Severity.WARNING,
                messages.KEYSTONE_API_ERROR.format(exc),
            )
            raise

    def keystone_api_missing(
        self,
        endpoint: KeystoneEndpoint,
        *,
        context: ReconcileContext,
    ) -> ReconcileResult:
        endpoint.status.conditions.mark_false(
            ConditionType.KEYSTONE_API_READY,
            ConditionReason.ERROR,
            Severity.WARNING,
            messages.KEYSTONE_API_NOT_FOUND,
        )
        context.log.info("KeystoneAPI not found!")
        return ReconcileResult.after(
            self.policy.api_retry_seconds, ReconcilePhase.AWAITING_DEPENDENCY
        )

    def check_keystone_api_ready(
        self,
        endpoint: KeystoneEndpoint,
        keystone_api: KeystoneAPI,
        *,
        context: ReconcileContext,
    ) -> ReconcileResult | None:
        """Return ``None`` when the API is ready, otherwise the retry to schedule."""

        if not keystone_api.is_ready():
            endpoint.status.conditions.mark_false(
                ConditionType.KEYSTONE_API_READY,
                ConditionReason.REQUESTED,
                Severity.INFO,
                messages.KEYSTONE_API_WAITING,
            )
            context.log.info("KeystoneAPI not yet ready!")
            return ReconcileResult.after(
                self.policy.api_retry_seconds, ReconcilePhase.AWAITING_DEPENDENCY
            )

        endpoint.status.conditions.mark_true(
            ConditionType.KEYSTONE_API_READY,
            messages.KEYSTONE_API_READY,
        )
        return None

    def admin_client(
        self,
        endpoint: KeystoneEndpoint,
        keystone_api: KeystoneAPI,
        *,
        context: ReconcileContext,
    ) -> IdentityAdminClient | ReconcileResult:
        """Obtain the admin client; a pending client is a retry, never an error."""

        context.check()
        try:
            client = self.admin_client_provider(keystone_api, context=context)
        except ReconcileError as exc:
            endpoint.status.conditions.mark_false(
                ConditionType.ADMIN_SERVICE_CLIENT_READY,
                ConditionReason.ERROR,
                Severity.WARNING,
                messages.ADMIN_CLIENT_ERROR.format(exc),
            )
            raise

        if isinstance(client, AdminClientPending):
            endpoint.status.conditions.mark_false(
                ConditionType.ADMIN_SERVICE_CLIENT_READY,
                ConditionReason.REQUESTED,
                Severity.INFO,
                messages.ADMIN_CLIENT_WAITING.format(client.reason),
            )
            context.log.info("Admin service client not yet available: %s", client.reason)
            return ReconcileResult.after(
                client.requeue_after, ReconcilePhase.AWAITING_CREDENTIALS
            )

        endpoint.status.conditions.mark_true(
            ConditionType.ADMIN_SERVICE_CLIENT_READY,
            messages.ADMIN_CLIENT_READY,
        )
        return client

    def keystone_service(
        self,
        endpoint: KeystoneEndpoint,
        *,
        context: ReconcileContext,
    ) -> KeystoneService | ReconcileResult:
        """Return the ready KeystoneService, mirroring its state into our conditions."""

        service_name = endpoint.spec.service_name
        context.check()
        try:
            service = self.store.get_keystone_service(endpoint.namespace, service_name)
        except ResourceNotFoundError:
            endpoint.status.conditions.mark_false(
                ConditionType.KEYSTONE_SERVICE_READY,
                ConditionReason.REQUESTED,
                Severity.INFO,
                messages.KEYSTONE_SERVICE_NOT_FOUND.format(service_name),
            )
            context.log.info("KeystoneService %s not found", service_name)
            return ReconcileResult.after(
                self.policy.api_retry_seconds, ReconcilePhase.AWAITING_DEPENDENCY
            )
        except ReconcileError as exc:
            endpoint.status.conditions.mark_false(
                ConditionType.KEYSTONE_SERVICE_READY,
                ConditionReason.ERROR,
                Severity.WARNING,
                messages.KEYSTONE_SERVICE_ERROR.format(exc),
            )
            raise

        mirrored = service.status.conditions.mirror(ConditionType.KEYSTONE_SERVICE_READY)
        if mirrored is None:
            # a service carrying only its Ready condition
            ready = service.status.conditions.get(ConditionType.READY)
            if ready is not None:
                mirrored = replace(ready, type=ConditionType.KEYSTONE_SERVICE_READY)
        if mirrored is not None:
            endpoint.status.conditions.set(mirrored)

        if not service.is_ready():
            context.log.info(
                "KeystoneService %s not ready, waiting to create endpoints", service_name
            )
            return ReconcileResult.after(
                self.policy.service_retry_seconds, ReconcilePhase.AWAITING_DEPENDENCY
            )

        if not service.status.service_id:
            # an empty id would match every service in the registry
            endpoint.status.conditions.mark_false(
                ConditionType.KEYSTONE_SERVICE_READY,
                ConditionReason.REQUESTED,
                Severity.INFO,
                messages.KEYSTONE_SERVICE_NO_ID.format(service_name),
            )
            context.log.info("KeystoneService %s has no service id yet", service_name)
            return ReconcileResult.after(
                self.policy.service_retry_seconds, ReconcilePhase.AWAITING_DEPENDENCY
            )

        return service
