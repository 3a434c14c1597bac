"""Ports for the custom-resource store."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from endpointsync.domain.model import (
        DependencyResource,
        KeystoneAPI,
        KeystoneEndpoint,
        KeystoneService,
    )


@runtime_checkable
class ResourceStore(Protocol):
    """Read and write access to the controller's custom resources.

    Lookups raise ``ResourceNotFoundError`` when nothing matches; writes raise
    ``ResourceConflictError`` when the stored resource version moved on.
    """

    def get_endpoint(self, namespace: str, name: str) -> KeystoneEndpoint: ...

    def save_endpoint(self, endpoint: KeystoneEndpoint) -> None:
        """Persist the status subresource and, if changed, the finalizers."""
        ...

    def get_keystone_api(self, namespace: str) -> KeystoneAPI:
        """Return the single identity API registration of ``namespace``."""
        ...

    def get_keystone_service(self, namespace: str, service_name: str) -> KeystoneService:
        """Return the service registration whose ``serviceName`` matches."""
        ...

    def update_finalizers(self, resource: DependencyResource) -> None:
        """Write ``resource``'s finalizers guarded by its resource version."""
        ...


__all__ = ["ResourceStore"]
