from __future__ import annotations

import pytest

from endpointsync.domain.errors import DependencyError, IdentityServiceError, ResourceStoreError
from endpointsync.domain.model import (
    Availability,
    ConditionReason,
    ConditionStatus,
    ConditionType,
    KeystoneEndpoint,
    KeystoneEndpointStatus,
    RemoteEndpoint,
    Severity,
)
from endpointsync.domain.ports import AdminClientPending
from endpointsync.domain.reconciliation import (
    EndpointReconciler,
    ReconcilePhase,
    initial_conditions,
)
from tests.support.fakes import (
    NAMESPACE,
    SERVICE_ID,
    SERVICE_NAME,
    FakeAdminClientProvider,
    FakeIdentityClient,
    FakeResourceStore,
    make_endpoint,
    make_keystone_api,
    make_keystone_service,
)

OWN_FINALIZER = "openstack.org/keystoneendpoint"
DEPENDENCY_FINALIZER = f"openstack.org/keystoneendpoint-{SERVICE_NAME}"


def _prepared_endpoint(
    *,
    terminating: bool = False,
    endpoints: dict[str, str] | None = None,
    endpoint_ids: dict[str, str] | None = None,
) -> KeystoneEndpoint:
    status = KeystoneEndpointStatus()
    status.conditions.init(initial_conditions())
    if endpoint_ids:
        status.service_id = SERVICE_ID
        for interface, endpoint_id in endpoint_ids.items():
            status.upsert_endpoint(interface, f"http://{interface}", endpoint_id)
    return make_endpoint(
        endpoints=endpoints,
        finalizers=[OWN_FINALIZER],
        terminating=terminating,
        status=status,
    )


def _remote(endpoint_id: str, availability: Availability, url: str) -> RemoteEndpoint:
    return RemoteEndpoint(
        id=endpoint_id, service_id=SERVICE_ID, availability=availability, url=url
    )


def _condition(store: FakeResourceStore, type_: str) -> tuple[str, str, str]:
    condition = store.stored_endpoint().status.conditions.get(type_)
    assert condition is not None
    return (condition.status, condition.reason, condition.severity)


def test_missing_endpoint_is_nothing_to_do(reconciler: EndpointReconciler) -> None:
    result = reconciler.reconcile(NAMESPACE, "absent")

    assert result.phase is ReconcilePhase.ABSENT
    assert not result.requeue


def test_first_pass_only_initialises_conditions(
    reconciler: EndpointReconciler,
    store: FakeResourceStore,
    provider: FakeAdminClientProvider,
) -> None:
    store.add(make_endpoint(), make_keystone_api(), make_keystone_service())

    result = reconciler.reconcile(NAMESPACE, SERVICE_NAME)

    assert result.phase is ReconcilePhase.INITIALIZING
    assert result.requeue_after == 0.0
    stored = store.stored_endpoint()
    assert {condition.type for condition in stored.status.conditions} == {
        ConditionType.READY,
        ConditionType.KEYSTONE_API_READY,
        ConditionType.ADMIN_SERVICE_CLIENT_READY,
        ConditionType.KEYSTONE_SERVICE_OS_ENDPOINTS_READY,
        ConditionType.KEYSTONE_SERVICE_READY,
    }
    assert all(c.status is ConditionStatus.UNKNOWN for c in stored.status.conditions)
    assert OWN_FINALIZER not in stored.meta.finalizers
    assert provider.calls == 0


def test_second_pass_registers_own_finalizer(
    reconciler: EndpointReconciler,
    store: FakeResourceStore,
    provider: FakeAdminClientProvider,
) -> None:
    store.add(make_endpoint(), make_keystone_api(), make_keystone_service())

    reconciler.reconcile(NAMESPACE, SERVICE_NAME)
    result = reconciler.reconcile(NAMESPACE, SERVICE_NAME)

    assert result.phase is ReconcilePhase.INITIALIZING
    assert result.requeue_after == 0.0
    assert list(store.stored_endpoint().meta.finalizers) == [OWN_FINALIZER]
    assert provider.calls == 0


def test_passes_converge_to_ready(
    reconciler: EndpointReconciler,
    store: FakeResourceStore,
    identity: FakeIdentityClient,
) -> None:
    store.add(make_endpoint(), make_keystone_api(), make_keystone_service())

    phases = [reconciler.reconcile(NAMESPACE, SERVICE_NAME).phase for _ in range(3)]

    assert phases == [
        ReconcilePhase.INITIALIZING,
        ReconcilePhase.INITIALIZING,
        ReconcilePhase.READY,
    ]
    stored = store.stored_endpoint()
    assert stored.status.service_id == SERVICE_ID
    assert set(stored.status.endpoint_ids) == {"internal", "public"}
    assert stored.status.observed_generation == 1
    assert stored.status.conditions.is_true(ConditionType.READY)
    assert len(identity.mutations) == 2


def test_normal_pass_claims_dependencies_and_marks_ready(
    reconciler: EndpointReconciler,
    store: FakeResourceStore,
) -> None:
    store.add(_prepared_endpoint(), make_keystone_api(), make_keystone_service())

    result = reconciler.reconcile(NAMESPACE, SERVICE_NAME)

    assert result.phase is ReconcilePhase.READY
    assert not result.requeue
    assert DEPENDENCY_FINALIZER in store.keystone_apis[(NAMESPACE, "keystone")].meta.finalizers
    assert (
        DEPENDENCY_FINALIZER
        in store.keystone_services[(NAMESPACE, SERVICE_NAME)].meta.finalizers
    )
    for type_ in (
        ConditionType.READY,
        ConditionType.KEYSTONE_API_READY,
        ConditionType.ADMIN_SERVICE_CLIENT_READY,
        ConditionType.KEYSTONE_SERVICE_OS_ENDPOINTS_READY,
        ConditionType.KEYSTONE_SERVICE_READY,
    ):
        assert store.stored_endpoint().status.conditions.is_true(type_), type_


def test_unchanged_spec_issues_no_mutations_on_next_pass(
    reconciler: EndpointReconciler,
    store: FakeResourceStore,
    identity: FakeIdentityClient,
) -> None:
    store.add(_prepared_endpoint(), make_keystone_api(), make_keystone_service())
    reconciler.reconcile(NAMESPACE, SERVICE_NAME)
    identity.calls.clear()
    writes_before = len(store.finalizer_writes)

    reconciler.reconcile(NAMESPACE, SERVICE_NAME)

    assert identity.mutations == []
    assert len(store.finalizer_writes) == writes_before


def test_missing_keystone_api_requeues(
    reconciler: EndpointReconciler,
    store: FakeResourceStore,
    provider: FakeAdminClientProvider,
) -> None:
    store.add(_prepared_endpoint())

    result = reconciler.reconcile(NAMESPACE, SERVICE_NAME)

    assert result.phase is ReconcilePhase.AWAITING_DEPENDENCY
    assert result.requeue_after == 5.0
    assert _condition(store, ConditionType.KEYSTONE_API_READY) == (
        ConditionStatus.FALSE,
        ConditionReason.ERROR,
        Severity.WARNING,
    )
    assert not store.stored_endpoint().status.conditions.is_true(ConditionType.READY)
    assert provider.calls == 0


def test_keystone_api_not_ready_requeues(
    reconciler: EndpointReconciler,
    store: FakeResourceStore,
    provider: FakeAdminClientProvider,
) -> None:
    store.add(_prepared_endpoint(), make_keystone_api(ready=False))

    result = reconciler.reconcile(NAMESPACE, SERVICE_NAME)

    assert result.requeue_after == 5.0
    assert _condition(store, ConditionType.KEYSTONE_API_READY) == (
        ConditionStatus.FALSE,
        ConditionReason.REQUESTED,
        Severity.INFO,
    )
    assert provider.calls == 0


def test_multiple_keystone_apis_fail_and_persist(
    reconciler: EndpointReconciler,
    store: FakeResourceStore,
) -> None:
    store.add(_prepared_endpoint(), make_keystone_api(), make_keystone_api("keystone-2"))

    with pytest.raises(DependencyError):
        reconciler.reconcile(NAMESPACE, SERVICE_NAME)

    assert _condition(store, ConditionType.KEYSTONE_API_READY) == (
        ConditionStatus.FALSE,
        ConditionReason.ERROR,
        Severity.WARNING,
    )


def test_pending_admin_client_is_not_an_error(
    reconciler: EndpointReconciler,
    store: FakeResourceStore,
    provider: FakeAdminClientProvider,
) -> None:
    provider.client = AdminClientPending(reason="secret osp-secret not found", requeue_after=10.0)
    store.add(_prepared_endpoint(), make_keystone_api(), make_keystone_service())

    result = reconciler.reconcile(NAMESPACE, SERVICE_NAME)

    assert result.phase is ReconcilePhase.AWAITING_CREDENTIALS
    assert result.requeue_after == 10.0
    assert _condition(store, ConditionType.ADMIN_SERVICE_CLIENT_READY) == (
        ConditionStatus.FALSE,
        ConditionReason.REQUESTED,
        Severity.INFO,
    )
    assert store.stored_endpoint().status.conditions.is_true(ConditionType.KEYSTONE_API_READY)


def test_missing_keystone_service_requeues(
    reconciler: EndpointReconciler,
    store: FakeResourceStore,
    identity: FakeIdentityClient,
) -> None:
    store.add(_prepared_endpoint(), make_keystone_api())

    result = reconciler.reconcile(NAMESPACE, SERVICE_NAME)

    assert result.requeue_after == 5.0
    assert _condition(store, ConditionType.KEYSTONE_SERVICE_READY)[0] == ConditionStatus.FALSE
    assert identity.calls == []


def test_keystone_service_not_ready_mirrors_its_condition(
    reconciler: EndpointReconciler,
    store: FakeResourceStore,
    identity: FakeIdentityClient,
) -> None:
    store.add(_prepared_endpoint(), make_keystone_api(), make_keystone_service(ready=False))

    result = reconciler.reconcile(NAMESPACE, SERVICE_NAME)

    assert result.phase is ReconcilePhase.AWAITING_DEPENDENCY
    assert result.requeue_after == 10.0
    assert _condition(store, ConditionType.KEYSTONE_SERVICE_READY) == (
        ConditionStatus.FALSE,
        ConditionReason.REQUESTED,
        Severity.INFO,
    )
    assert identity.calls == []
    service = store.keystone_services[(NAMESPACE, SERVICE_NAME)]
    assert DEPENDENCY_FINALIZER not in service.meta.finalizers


def test_ready_keystone_service_without_id_waits(
    reconciler: EndpointReconciler,
    store: FakeResourceStore,
    identity: FakeIdentityClient,
) -> None:
    store.add(_prepared_endpoint(), make_keystone_api(), make_keystone_service(service_id=""))

    result = reconciler.reconcile(NAMESPACE, SERVICE_NAME)

    assert result.phase is ReconcilePhase.AWAITING_DEPENDENCY
    assert result.requeue_after == 10.0
    assert _condition(store, ConditionType.KEYSTONE_SERVICE_READY) == (
        ConditionStatus.FALSE,
        ConditionReason.REQUESTED,
        Severity.INFO,
    )
    assert identity.calls == []
    assert store.stored_endpoint().status.service_id == ""


def test_admin_client_is_closed_after_the_pass(
    reconciler: EndpointReconciler,
    store: FakeResourceStore,
    identity: FakeIdentityClient,
) -> None:
    store.add(_prepared_endpoint(), make_keystone_api(), make_keystone_service())
    reconciler.reconcile(NAMESPACE, SERVICE_NAME)

    identity.failures["list"] = IdentityServiceError("unavailable", status_code=503)
    with pytest.raises(IdentityServiceError):
        reconciler.reconcile(NAMESPACE, SERVICE_NAME)

    assert identity.closed == 2


def test_failed_status_write_keeps_the_original_error(
    reconciler: EndpointReconciler,
    store: FakeResourceStore,
    identity: FakeIdentityClient,
    caplog: pytest.LogCaptureFixture,
) -> None:
    identity.failures["list"] = IdentityServiceError("unavailable", status_code=503)
    store.add(_prepared_endpoint(), make_keystone_api(), make_keystone_service())
    store.save_error = ResourceStoreError("Kubernetes API unreachable")

    with pytest.raises(IdentityServiceError, match="unavailable"):
        reconciler.reconcile(NAMESPACE, SERVICE_NAME)

    assert "Could not record the failure" in caplog.text


def test_identity_failure_is_persisted_and_raised(
    reconciler: EndpointReconciler,
    store: FakeResourceStore,
    identity: FakeIdentityClient,
) -> None:
    identity.failures["list"] = IdentityServiceError("unavailable", status_code=503)
    store.add(_prepared_endpoint(), make_keystone_api(), make_keystone_service())

    with pytest.raises(IdentityServiceError):
        reconciler.reconcile(NAMESPACE, SERVICE_NAME)

    assert _condition(store, ConditionType.KEYSTONE_SERVICE_OS_ENDPOINTS_READY) == (
        ConditionStatus.FALSE,
        ConditionReason.ERROR,
        Severity.WARNING,
    )
    ready = store.stored_endpoint().status.conditions.get(ConditionType.READY)
    assert ready is not None
    assert ready.status is ConditionStatus.FALSE


def test_internal_fault_is_not_persisted(
    reconciler: EndpointReconciler,
    store: FakeResourceStore,
    identity: FakeIdentityClient,
) -> None:
    identity.failures["create"] = RuntimeError("bug")
    store.add(_prepared_endpoint(), make_keystone_api(), make_keystone_service())

    with pytest.raises(RuntimeError, match="bug"):
        reconciler.reconcile(NAMESPACE, SERVICE_NAME)

    assert store.saved == []


def test_ambiguous_remote_endpoints_requeue_slowly(
    reconciler: EndpointReconciler,
    store: FakeResourceStore,
    identity: FakeIdentityClient,
) -> None:
    identity.registry.update(
        {
            "id-a": _remote("id-a", Availability.PUBLIC, "http://a"),
            "id-b": _remote("id-b", Availability.PUBLIC, "http://b"),
        }
    )
    store.add(_prepared_endpoint(), make_keystone_api(), make_keystone_service())

    result = reconciler.reconcile(NAMESPACE, SERVICE_NAME)

    assert result.phase is ReconcilePhase.SYNCING
    assert result.requeue_after == 300.0
    assert _condition(store, ConditionType.KEYSTONE_SERVICE_OS_ENDPOINTS_READY) == (
        ConditionStatus.FALSE,
        ConditionReason.ERROR,
        Severity.ERROR,
    )
    assert "public" not in store.stored_endpoint().status.endpoint_ids
    assert "internal" in store.stored_endpoint().status.endpoint_ids


def test_delete_removes_remote_endpoints_and_all_markers(
    reconciler: EndpointReconciler,
    store: FakeResourceStore,
    identity: FakeIdentityClient,
) -> None:
    identity.registry.update(
        {
            "id-int": _remote("id-int", Availability.INTERNAL, "http://internal"),
            "id-pub": _remote("id-pub", Availability.PUBLIC, "http://public"),
        }
    )
    store.add(
        _prepared_endpoint(terminating=True, endpoint_ids={"internal": "id-int"}),
        make_keystone_api(finalizers=[DEPENDENCY_FINALIZER]),
    )
    store.add(make_keystone_service(finalizers=[DEPENDENCY_FINALIZER]))

    result = reconciler.reconcile(NAMESPACE, SERVICE_NAME)

    assert result.phase is ReconcilePhase.DELETED
    assert identity.registry == {}
    assert [call[0] for call in identity.mutations] == ["delete", "delete"]
    assert (NAMESPACE, SERVICE_NAME) not in store.endpoints
    assert DEPENDENCY_FINALIZER not in store.keystone_apis[(NAMESPACE, "keystone")].meta.finalizers
    assert (
        DEPENDENCY_FINALIZER
        not in store.keystone_services[(NAMESPACE, SERVICE_NAME)].meta.finalizers
    )


def test_delete_without_records_or_keystone_api_makes_no_remote_calls(
    reconciler: EndpointReconciler,
    store: FakeResourceStore,
    identity: FakeIdentityClient,
    provider: FakeAdminClientProvider,
) -> None:
    store.add(_prepared_endpoint(terminating=True))

    result = reconciler.reconcile(NAMESPACE, SERVICE_NAME)

    assert result.phase is ReconcilePhase.DELETED
    assert identity.calls == []
    assert provider.calls == 0
    assert (NAMESPACE, SERVICE_NAME) not in store.endpoints


def test_delete_without_records_skips_admin_client(
    reconciler: EndpointReconciler,
    store: FakeResourceStore,
    identity: FakeIdentityClient,
    provider: FakeAdminClientProvider,
) -> None:
    store.add(
        _prepared_endpoint(terminating=True),
        make_keystone_api(ready=False, finalizers=[DEPENDENCY_FINALIZER]),
    )

    result = reconciler.reconcile(NAMESPACE, SERVICE_NAME)

    assert result.phase is ReconcilePhase.DELETED
    assert provider.calls == 0
    assert identity.calls == []
    assert DEPENDENCY_FINALIZER not in store.keystone_apis[(NAMESPACE, "keystone")].meta.finalizers


def test_delete_with_records_waits_for_keystone_api(
    reconciler: EndpointReconciler,
    store: FakeResourceStore,
) -> None:
    store.add(_prepared_endpoint(terminating=True, endpoint_ids={"internal": "id-int"}))

    result = reconciler.reconcile(NAMESPACE, SERVICE_NAME)

    assert result.phase is ReconcilePhase.AWAITING_DEPENDENCY
    assert OWN_FINALIZER in store.stored_endpoint().meta.finalizers


def test_delete_alongside_keystone_api_only_drops_markers(
    reconciler: EndpointReconciler,
    store: FakeResourceStore,
    identity: FakeIdentityClient,
    provider: FakeAdminClientProvider,
) -> None:
    store.add(
        _prepared_endpoint(terminating=True, endpoint_ids={"internal": "id-int"}),
        make_keystone_api(terminating=True, finalizers=[DEPENDENCY_FINALIZER]),
    )

    result = reconciler.reconcile(NAMESPACE, SERVICE_NAME)

    assert result.phase is ReconcilePhase.DELETED
    assert identity.calls == []
    assert provider.calls == 0
    assert (NAMESPACE, SERVICE_NAME) not in store.endpoints
    assert DEPENDENCY_FINALIZER not in store.keystone_apis[(NAMESPACE, "keystone")].meta.finalizers
