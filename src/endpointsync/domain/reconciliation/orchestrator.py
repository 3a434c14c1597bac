"""Top-level reconcile state machine for a single KeystoneEndpoint.

A pass walks Initializing -> AwaitingDependency -> AwaitingCredentials ->
Syncing -> Ready and branches into the delete paths as soon as the endpoint
is terminating. Every exit persists the status, except for unexpected faults
which propagate untouched.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from endpointsync.domain.context import ReconcileContext
from endpointsync.domain.errors import (
    AmbiguousEndpointsError,
    ReconcileError,
    ResourceNotFoundError,
)
from endpointsync.domain.model import ConditionReason, ConditionType, Severity

from . import messages
from .delete import EndpointDeletion
from .finalizers import FinalizerCoordinator
from .gate import DependencyGate
from .policy import ReconcilePolicy
from .result import ReconcilePhase, ReconcileResult
from .status import StatusRecorder, initialize_conditions
from .sync import sync_endpoints

if TYPE_CHECKING:
    from endpointsync.domain.model import KeystoneAPI, KeystoneEndpoint
    from endpointsync.domain.ports import AdminClientProvider, IdentityAdminClient, ResourceStore

log = getLogger(__name__)


@dataclass(slots=True)
class EndpointReconciler:
    store: ResourceStore
    admin_client_provider: AdminClientProvider
    policy: ReconcilePolicy = field(default_factory=ReconcilePolicy)

    gate: DependencyGate = field(init=False)
    finalizers: FinalizerCoordinator = field(init=False)
    deletion: EndpointDeletion = field(init=False)
    recorder: StatusRecorder = field(init=False)

    def __post_init__(self) -> None:
        self.gate = DependencyGate(self.store, self.admin_client_provider, self.policy)
        self.finalizers = FinalizerCoordinator(self.store, self.policy)
        self.deletion = EndpointDeletion(self.store, self.finalizers)
        self.recorder = StatusRecorder(self.store)

    def reconcile(
        self,
        namespace: str,
        name: str,
        *,
        context: ReconcileContext | None = None,
    ) -> ReconcileResult:
        """Run one pass for ``namespace/name``.

        ``ReconcileError``s are raised after the status was persisted so the
        caller's backoff applies.
        """

        context = (context or ReconcileContext()).bind(
            log, namespace=namespace, keystoneendpoint=name
        )
        try:
            endpoint = self.store.get_endpoint(namespace, name)
        except ResourceNotFoundError:
            context.log.info("KeystoneEndpoint not found, nothing to do")
            return ReconcileResult.done(ReconcilePhase.ABSENT)

        try:
            result = self._reconcile(endpoint, context=context)
        except ReconcileError as exc:
            context.log.warning("Reconcile failed: %s", exc)
            try:
                self.recorder.persist(endpoint, context=context)
            except Exception:
                context.log.exception("Could not record the failure in the status")
            raise
        except Exception:
            context.log.exception("Unexpected fault during reconcile, status left unpersisted")
            raise

        self.recorder.persist(endpoint, context=context)
        return result

    def _reconcile(
        self,
        endpoint: KeystoneEndpoint,
        *,
        context: ReconcileContext,
    ) -> ReconcileResult:
        status = endpoint.status
        terminating = endpoint.meta.is_terminating

        # publish Unknown conditions before any remote call
        if initialize_conditions(endpoint):
            return ReconcileResult.immediately(ReconcilePhase.INITIALIZING)

        status.observed_generation = endpoint.meta.generation

        if not terminating and self.finalizers.ensure_own(endpoint):
            return ReconcileResult.immediately(ReconcilePhase.INITIALIZING)

        keystone_api = self.gate.fetch_keystone_api(endpoint, context=context)
        if keystone_api is None:
            if terminating and not status.endpoint_ids:
                # nothing was registered, so there is nothing to wait for
                return self.deletion.full(
                    endpoint, client=None, keystone_api=None, context=context
                )
            return self.gate.keystone_api_missing(endpoint, context=context)

        if terminating and keystone_api.meta.is_terminating:
            return self.deletion.finalizers_only(
                endpoint, keystone_api=keystone_api, context=context
            )

        if terminating and not status.endpoint_ids:
            return self.deletion.full(
                endpoint, client=None, keystone_api=keystone_api, context=context
            )

        waiting = self.gate.check_keystone_api_ready(endpoint, keystone_api, context=context)
        if waiting is not None:
            return waiting

        client = self.gate.admin_client(endpoint, keystone_api, context=context)
        if isinstance(client, ReconcileResult):
            return client

        try:
            if terminating:
                return self.deletion.full(
                    endpoint, client=client, keystone_api=keystone_api, context=context
                )
            return self._reconcile_normal(endpoint, client, keystone_api, context=context)
        finally:
            client.close()

    def _reconcile_normal(
        self,
        endpoint: KeystoneEndpoint,
        client: IdentityAdminClient,
        keystone_api: KeystoneAPI,
        *,
        context: ReconcileContext,
    ) -> ReconcileResult:
        context.log.info("Reconciling Endpoint normal")
        namespace = endpoint.namespace
        service_name = endpoint.spec.service_name

        service = self.gate.keystone_service(endpoint, context=context)
        if isinstance(service, ReconcileResult):
            return service

        endpoint.status.service_id = service.status.service_id

        self.finalizers.claim(
            endpoint,
            keystone_api,
            reload=lambda: self.store.get_keystone_api(namespace),
            context=context,
        )
        self.finalizers.claim(
            endpoint,
            service,
            reload=lambda: self.store.get_keystone_service(namespace, service_name),
            context=context,
        )

        conditions = endpoint.status.conditions
        try:
            sync_endpoints(endpoint, client, context=context)
        except AmbiguousEndpointsError as exc:
            conditions.mark_false(
                ConditionType.KEYSTONE_SERVICE_OS_ENDPOINTS_READY,
                ConditionReason.ERROR,
                Severity.ERROR,
                messages.ENDPOINTS_AMBIGUOUS.format(exc),
            )
            return ReconcileResult.after(
                self.policy.ambiguous_retry_seconds, ReconcilePhase.SYNCING
            )
        except ReconcileError as exc:
            conditions.mark_false(
                ConditionType.KEYSTONE_SERVICE_OS_ENDPOINTS_READY,
                ConditionReason.ERROR,
                Severity.WARNING,
                messages.ENDPOINTS_ERROR.format(exc),
            )
            raise

        conditions.mark_true(
            ConditionType.KEYSTONE_SERVICE_OS_ENDPOINTS_READY,
            messages.ENDPOINTS_READY.format(_describe(endpoint.spec.endpoints)),
        )
        context.log.info("Reconciled Endpoint normal successfully")
        return ReconcileResult.done(ReconcilePhase.READY)


def _describe(endpoints: dict[str, str]) -> str:
    return ", ".join(f"{kind}={url}" for kind, url in sorted(endpoints.items()))
