from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
import pytest

from endpointsync.adapters.http_resilience import ResilienceConfig
from endpointsync.adapters.keystone import KeystoneAdminClient, KeystoneAdminClientProvider
from endpointsync.config.identity import IdentityConfig
from endpointsync.domain.errors import IdentityServiceError
from endpointsync.domain.model import Availability
from endpointsync.domain.ports import AdminClientPending
from tests.support.fakes import make_keystone_api
from tests.support.keystone import TOKEN, FakeKeystone

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator, Mapping

    from endpointsync.adapters.http_resilience import ResilientClient
    from endpointsync.domain.context import ReconcileContext

SECRETS: dict[tuple[str, str], dict[str, str]] = {
    ("openstack", "osp-secret"): {"AdminPassword": "s3cret"},
}


def _read_secret(namespace: str, name: str) -> Mapping[str, str] | None:
    return SECRETS.get((namespace, name))


@pytest.fixture
def provider(
    client_factory: Callable[[ResilienceConfig], ResilientClient],
) -> KeystoneAdminClientProvider:
    return KeystoneAdminClientProvider(
        read_secret=_read_secret,
        config=IdentityConfig(
            resilience=ResilienceConfig(name="keystone-test"), pending_retry_seconds=7.0
        ),
        client_factory=client_factory,
    )


@pytest.fixture
def built() -> Iterator[list[KeystoneAdminClient]]:
    clients: list[KeystoneAdminClient] = []
    yield clients
    for client in clients:
        client.close()


def test_builds_authenticated_client_from_internal_url(
    provider: KeystoneAdminClientProvider,
    keystone: FakeKeystone,
    context: ReconcileContext,
    built: list[KeystoneAdminClient],
) -> None:
    api = make_keystone_api(
        api_endpoints={
            "public": "https://keystone.example.com/v3",
            "internal": "http://keystone-internal:5000/v3/",
        }
    )

    client = provider(api, context=context)

    assert isinstance(client, KeystoneAdminClient)
    built.append(client)
    assert client.resilience.base_url == "http://keystone-internal:5000"
    assert client.region == "regionOne"
    assert keystone.calls == [("POST", "/v3/auth/tokens")]
    assert "X-Auth-Token" not in keystone.requests[0].headers
    assert str(keystone.requests[0].url).startswith("http://keystone-internal:5000/")
    assert keystone.body()["auth"]["identity"]["password"]["user"]["password"] == "s3cret"

    client.list_endpoints("svc", Availability.PUBLIC)

    assert keystone.requests[-1].headers["X-Auth-Token"] == TOKEN


def test_falls_back_to_public_url(
    provider: KeystoneAdminClientProvider,
    keystone: FakeKeystone,
    context: ReconcileContext,
    built: list[KeystoneAdminClient],
) -> None:
    api = make_keystone_api(api_endpoints={"public": "https://keystone.example.com"})

    client = provider(api, context=context)

    assert isinstance(client, KeystoneAdminClient)
    built.append(client)
    assert client.resilience.base_url == "https://keystone.example.com"
    assert str(keystone.requests[0].url).startswith("https://keystone.example.com/")


def test_missing_endpoint_is_pending(
    provider: KeystoneAdminClientProvider,
    keystone: FakeKeystone,
    context: ReconcileContext,
) -> None:
    result = provider(make_keystone_api(api_endpoints={}), context=context)

    assert isinstance(result, AdminClientPending)
    assert result.requeue_after == 7.0
    assert keystone.requests == []


def test_missing_secret_is_pending(
    provider: KeystoneAdminClientProvider,
    keystone: FakeKeystone,
    context: ReconcileContext,
) -> None:
    api = make_keystone_api()
    api.spec.secret = "absent"

    result = provider(api, context=context)

    assert isinstance(result, AdminClientPending)
    assert "openstack/absent" in result.reason
    assert keystone.requests == []


def test_missing_password_key_is_pending(
    provider: KeystoneAdminClientProvider,
    context: ReconcileContext,
) -> None:
    api = make_keystone_api()
    api.spec.admin_password_key = "OtherPassword"

    result = provider(api, context=context)

    assert isinstance(result, AdminClientPending)
    assert "OtherPassword" in result.reason


def test_rejected_credentials_raise(
    provider: KeystoneAdminClientProvider,
    keystone: FakeKeystone,
    context: ReconcileContext,
) -> None:
    message = "The request you have made requires authentication."
    keystone.overrides[("POST", "/v3/auth/tokens")] = httpx.Response(
        401, json={"error": {"code": 401, "message": message}}
    )

    with pytest.raises(IdentityServiceError) as excinfo:
        provider(make_keystone_api(), context=context)

    assert excinfo.value.status_code == 401
