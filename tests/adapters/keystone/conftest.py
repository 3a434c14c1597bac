from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from endpointsync.adapters.http_resilience import ResilienceConfig
from tests.support.keystone import IDENTITY_URL, TOKEN, FakeKeystone, make_client_factory

if TYPE_CHECKING:
    from collections.abc import Callable

    from endpointsync.adapters.http_resilience import ResilientClient


@pytest.fixture
def keystone() -> FakeKeystone:
    return FakeKeystone()


@pytest.fixture
def client_factory(keystone: FakeKeystone) -> Callable[[ResilienceConfig], ResilientClient]:
    return make_client_factory(keystone)


@pytest.fixture
def resilience() -> ResilienceConfig:
    return ResilienceConfig(
        name="keystone-test",
        base_url=IDENTITY_URL,
        default_headers={"X-Auth-Token": TOKEN},
    )
