"""Cross-resource finalizer coordination.

An endpoint keeps its own finalizer until its remote cleanup is done, and
places a per-instance marker on the KeystoneAPI and KeystoneService it
depends on so neither disappears while the endpoint still needs them.
Marker writes on dependencies are read-modify-write operations guarded by
the dependency's resource version and retried on conflict.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from endpointsync.domain.errors import ResourceConflictError, ResourceNotFoundError
from endpointsync.domain.model import ENDPOINT_KIND, FinalizerKey

from .policy import ReconcilePolicy

if TYPE_CHECKING:
    from collections.abc import Callable

    from endpointsync.domain.context import ReconcileContext
    from endpointsync.domain.model import DependencyResource, FinalizerSet, KeystoneEndpoint
    from endpointsync.domain.ports import ResourceStore


@dataclass(slots=True)
class FinalizerCoordinator:
    store: ResourceStore
    policy: ReconcilePolicy = field(default_factory=ReconcilePolicy)

    def own_key(self) -> FinalizerKey:
        return FinalizerKey(ENDPOINT_KIND, domain=self.policy.finalizer_domain)

    def dependency_key(self, endpoint: KeystoneEndpoint) -> FinalizerKey:
        return FinalizerKey(ENDPOINT_KIND, endpoint.name, domain=self.policy.finalizer_domain)

    def ensure_own(self, endpoint: KeystoneEndpoint) -> bool:
        """Add the endpoint's own finalizer; persisted with the endpoint's status."""

        return endpoint.meta.finalizers.add(self.own_key())

    def release_own(self, endpoint: KeystoneEndpoint) -> bool:
        return endpoint.meta.finalizers.remove(self.own_key())

    def claim[T: DependencyResource](
        self,
        endpoint: KeystoneEndpoint,
        dependency: T,
        *,
        reload: Callable[[], T],
        context: ReconcileContext,
    ) -> T:
        """Place the endpoint's marker on ``dependency`` and return its latest copy."""

        key = self.dependency_key(endpoint)
        return self._write(
            dependency,
            lambda finalizers: finalizers.add(key),
            reload=reload,
            context=context,
        )

    def release[T: DependencyResource](
        self,
        endpoint: KeystoneEndpoint,
        dependency: T,
        *,
        reload: Callable[[], T],
        context: ReconcileContext,
    ) -> None:
        """Remove the endpoint's marker from ``dependency``; a vanished dependency is fine."""

        key = self.dependency_key(endpoint)
        try:
            self._write(
                dependency,
                lambda finalizers: finalizers.remove(key),
                reload=reload,
                context=context,
            )
        except ResourceNotFoundError:
            context.log.info("%s %s already gone", dependency.KIND, dependency.name)

    def _write[T: DependencyResource](
        self,
        dependency: T,
        mutate: Callable[[FinalizerSet], bool],
        *,
        reload: Callable[[], T],
        context: ReconcileContext,
    ) -> T:
        current = dependency
        attempts = max(1, self.policy.conflict_retries)
        for attempt in range(1, attempts + 1):
            if not mutate(current.meta.finalizers):
                return current
            context.check()
            try:
                self.store.update_finalizers(current)
            except ResourceConflictError:
                if attempt == attempts:
                    raise
                context.log.info(
                    "Conflict writing finalizers of %s %s, retrying (%d/%d)",
                    current.KIND,
                    current.name,
                    attempt,
                    attempts,
                )
                current = reload()
                continue
            context.log.debug("Updated finalizers of %s %s", current.KIND, current.name)
            return current
        return current
