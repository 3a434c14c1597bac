"""Builds authenticated admin clients from a KeystoneAPI registration."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, replace
from logging import getLogger
from typing import TYPE_CHECKING

from endpointsync.adapters.http_resilience import ResilienceConfig, ResilientClient
from endpointsync.config.identity import IdentityConfig, get_identity_config
from endpointsync.domain.ports import AdminClientPending, AdminClientProvider

from .client import KeystoneAdminClient, identity_root

if TYPE_CHECKING:
    from endpointsync.domain.context import ReconcileContext
    from endpointsync.domain.model import KeystoneAPI

log = getLogger(__name__)

type SecretReader = Callable[[str, str], Mapping[str, str] | None]
"""Returns the decoded data of ``namespace/name`` or ``None`` when absent."""


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


@dataclass(slots=True)
class KeystoneAdminClientProvider:
    read_secret: SecretReader
    config: IdentityConfig = field(default_factory=get_identity_config)
    client_factory: Callable[[ResilienceConfig], ResilientClient] = field(
        default=_default_client_factory
    )

    def __call__(
        self,
        keystone_api: KeystoneAPI,
        *,
        context: ReconcileContext,
    ) -> KeystoneAdminClient | AdminClientPending:
        url = keystone_api.endpoint_url(*self.config.endpoint_interfaces)
        if not url:
            return self._pending(f"KeystoneAPI {keystone_api.name} has no endpoint published")

        namespace = keystone_api.meta.namespace
        secret_name = keystone_api.spec.secret
        if not secret_name:
            return self._pending(f"KeystoneAPI {keystone_api.name} references no secret")
        data = self.read_secret(namespace, secret_name)
        if data is None:
            return self._pending(f"secret {namespace}/{secret_name} not found")

        password_key = keystone_api.spec.admin_password_key
        password = data.get(password_key)
        if not password:
            return self._pending(f"secret {namespace}/{secret_name} has no {password_key} key")

        spec = keystone_api.spec
        admin = KeystoneAdminClient(
            resilience=replace(self.config.resilience, base_url=identity_root(url)),
            context=context,
            region=spec.region or None,
            client_factory=self.client_factory,
        )
        try:
            admin.authenticate(
                user=spec.admin_user,
                password=password,
                project=spec.admin_project,
                user_domain=self.config.user_domain,
                project_domain=self.config.project_domain,
            )
        except Exception:
            admin.close()
            raise
        context.log.debug(
            "Authenticated against %s as %s", admin.resilience.base_url, spec.admin_user
        )
        return admin

    def _pending(self, reason: str) -> AdminClientPending:
        log.debug("Admin client pending: %s", reason)
        return AdminClientPending(reason=reason, requeue_after=self.config.pending_retry_seconds)


if TYPE_CHECKING:
    _provider_check: AdminClientProvider = KeystoneAdminClientProvider(read_secret=lambda *_: None)
