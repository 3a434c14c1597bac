"""Ports for the identity service's endpoint registry."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from endpointsync.domain.context import ReconcileContext
    from endpointsync.domain.model import (
        Availability,
        EndpointRequest,
        KeystoneAPI,
        RemoteEndpoint,
    )


@runtime_checkable
class IdentityAdminClient(Protocol):
    """Admin-scoped CRUD access to registered endpoints."""

    def list_endpoints(self, service_id: str, availability: Availability) -> list[RemoteEndpoint]:
        ...

    def create_endpoint(self, request: EndpointRequest) -> str: ...

    def update_endpoint(self, request: EndpointRequest, endpoint_id: str) -> str: ...

    def delete_endpoint(self, request: EndpointRequest) -> None:
        """Delete every endpoint matching ``request``; absent endpoints are not an error."""
        ...

    def close(self) -> None:
        """Release connections held for the pass; called once the pass is done."""
        ...


@dataclass(frozen=True, slots=True)
class AdminClientPending:
    """The admin client cannot be built yet; try again after ``requeue_after`` seconds."""

    reason: str
    requeue_after: float


@runtime_checkable
class AdminClientProvider(Protocol):
    """Builds an authenticated admin client from the identity API registration."""

    def __call__(
        self,
        keystone_api: KeystoneAPI,
        *,
        context: ReconcileContext,
    ) -> IdentityAdminClient | AdminClientPending: ...


__all__ = ["AdminClientPending", "AdminClientProvider", "IdentityAdminClient"]
