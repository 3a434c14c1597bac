"""Error taxonomy shared by the reconciliation core and its adapters."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence


class ReconcileError(RuntimeError):
    """Base for failures the reconcile loop records in status and retries."""


class UnknownAvailabilityError(ReconcileError, ValueError):
    """Raised when an endpoint type does not map to an availability."""

    def __init__(self, label: str) -> None:
        super().__init__(f"unknown endpoint type {label!r}")
        self.label = label


class AmbiguousEndpointsError(ReconcileError):
    """Raised when more than one remote endpoint matches a single endpoint type."""

    def __init__(self, service_name: str, endpoint_types: Sequence[str]) -> None:
        types = ", ".join(endpoint_types)
        super().__init__(
            f"multiple endpoints registered for service: {service_name} type: {types}"
        )
        self.service_name = service_name
        self.endpoint_types = tuple(endpoint_types)


class IdentityServiceError(ReconcileError):
    """Raised when a call to the identity service fails."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ResourceStoreError(ReconcileError):
    """Raised when reading or writing a custom resource fails."""


class ResourceNotFoundError(ResourceStoreError):
    def __init__(self, kind: str, namespace: str, name: str | None = None) -> None:
        target = f"{namespace}/{name}" if name else namespace
        super().__init__(f"{kind} not found in {target}")
        self.kind = kind
        self.namespace = namespace
        self.name = name


class ResourceConflictError(ResourceStoreError):
    """Raised when a write loses an optimistic-concurrency race."""


class DependencyError(ReconcileError):
    """Raised when a dependency exists but cannot be used as-is."""


class ReconcileCancelledError(ReconcileError):
    """Raised when a reconcile pass is cancelled or exceeds its deadline."""
