from __future__ import annotations

import pytest

from endpointsync.domain.context import ReconcileContext
from endpointsync.domain.reconciliation import EndpointReconciler, ReconcilePolicy
from tests.support.fakes import (
    FakeAdminClientProvider,
    FakeIdentityClient,
    FakeResourceStore,
    make_context,
)


@pytest.fixture
def store() -> FakeResourceStore:
    return FakeResourceStore()


@pytest.fixture
def identity() -> FakeIdentityClient:
    return FakeIdentityClient()


@pytest.fixture
def provider(identity: FakeIdentityClient) -> FakeAdminClientProvider:
    return FakeAdminClientProvider(client=identity)


@pytest.fixture
def policy() -> ReconcilePolicy:
    return ReconcilePolicy()


@pytest.fixture
def reconciler(
    store: FakeResourceStore,
    provider: FakeAdminClientProvider,
    policy: ReconcilePolicy,
) -> EndpointReconciler:
    return EndpointReconciler(store=store, admin_client_provider=provider, policy=policy)


@pytest.fixture
def context() -> ReconcileContext:
    return make_context()
