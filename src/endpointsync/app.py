"""Application orchestration entry points."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Any

import kopf

from endpointsync.adapters.keystone import KeystoneAdminClientProvider
from endpointsync.adapters.kubernetes import GROUP, PLURALS, VERSION, KubernetesResourceStore
from endpointsync.config import ControllerConfig, get_controller_config, get_identity_config
from endpointsync.domain.context import ReconcileContext
from endpointsync.domain.errors import ReconcileError
from endpointsync.domain.model import ENDPOINT_KIND
from endpointsync.domain.reconciliation import EndpointReconciler, ReconcileResult

if TYPE_CHECKING:
    from endpointsync.config import IdentityConfig

log = getLogger(__name__)

type EndpointKey = tuple[str, str]

ANNOTATION_PREFIX = "endpointsync.openstack.org"
OPERATOR_FINALIZER = f"{ANNOTATION_PREFIX}/operator"
_MAX_BACKOFF_EXPONENT = 16


def build_reconciler(
    *,
    store: KubernetesResourceStore | None = None,
    config: ControllerConfig | None = None,
    identity: IdentityConfig | None = None,
) -> EndpointReconciler:
    """Wire the reconciler to the Kubernetes store and the Keystone adapter."""

    effective_store = store or KubernetesResourceStore.from_environment()
    effective_config = config or get_controller_config()
    provider = KeystoneAdminClientProvider(
        read_secret=effective_store.read_secret,
        config=identity or get_identity_config(),
    )
    return EndpointReconciler(
        store=effective_store,
        admin_client_provider=provider,
        policy=effective_config.policy,
    )


def reconcile_endpoint(
    namespace: str,
    name: str,
    *,
    reconciler: EndpointReconciler | None = None,
    config: ControllerConfig | None = None,
) -> ReconcileResult:
    """Run a single reconcile pass for ``namespace/name``."""

    effective_config = config or get_controller_config()
    effective_reconciler = reconciler or build_reconciler(config=effective_config)
    context = ReconcileContext.with_timeout(effective_config.reconcile_timeout_seconds)
    log.info("Reconciling KeystoneEndpoint %s/%s once", namespace, name)
    result = effective_reconciler.reconcile(namespace, name, context=context)
    log.info(
        f"Finished reconcile of {namespace}/{name}: phase={result.phase}, "
        f"requeue_after={result.requeue_after}"
    )
    return result


@dataclass(slots=True)
class EndpointOperator:
    """Runs reconcile passes on behalf of kopf handlers.

    kopf serialises handlers per object and calls a handler again once the
    delay of its ``kopf.TemporaryError`` has passed. A requested requeue
    becomes such an error with the requested delay; a failed pass becomes one
    whose delay grows exponentially with kopf's retry counter.
    """

    reconciler: EndpointReconciler
    config: ControllerConfig
    _in_flight: dict[EndpointKey, ReconcileContext] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock)

    def process(self, namespace: str, name: str, *, retry: int = 0) -> ReconcileResult:
        key = (namespace, name)
        context = ReconcileContext.with_timeout(self.config.reconcile_timeout_seconds)
        with self._lock:
            self._in_flight[key] = context
        try:
            result = self.reconciler.reconcile(namespace, name, context=context)
        except ReconcileError as exc:
            delay = self.backoff(retry)
            log.warning(
                "Reconcile of %s/%s failed, retrying in %.1fs: %s", namespace, name, delay, exc
            )
            raise kopf.TemporaryError(str(exc), delay=delay) from exc
        except Exception as exc:
            # already logged with its traceback by the reconciler
            delay = self.backoff(retry)
            log.error("Internal fault reconciling %s/%s, retrying in %.1fs", namespace, name, delay)
            raise kopf.TemporaryError(f"internal fault: {exc}", delay=delay) from exc
        finally:
            with self._lock:
                self._in_flight.pop(key, None)

        if result.requeue_after is not None:
            raise kopf.TemporaryError(
                f"{result.phase}, next pass in {result.requeue_after:g}s",
                delay=result.requeue_after,
            )
        return result

    def backoff(self, retry: int) -> float:
        exponent = min(retry, _MAX_BACKOFF_EXPONENT)
        return min(
            self.config.backoff_base_seconds * 2**exponent, self.config.backoff_max_seconds
        )

    def stop(self) -> None:
        """Cancel every pass still running."""

        with self._lock:
            in_flight = list(self._in_flight.values())
        for context in in_flight:
            context.cancel()
        if in_flight:
            log.info("Cancelled %d reconcile passes in flight", len(in_flight))


def configure_settings(settings: kopf.OperatorSettings, config: ControllerConfig) -> None:
    settings.posting.level = logging.WARNING
    settings.persistence.finalizer = OPERATOR_FINALIZER
    # the reconciler replaces the whole status, so kopf keeps its own state in annotations
    settings.persistence.progress_storage = kopf.AnnotationsProgressStorage(
        prefix=ANNOTATION_PREFIX
    )
    settings.persistence.diffbase_storage = kopf.AnnotationsDiffBaseStorage(
        prefix=ANNOTATION_PREFIX
    )
    settings.execution.max_workers = config.workers


def build_registry(operator: EndpointOperator) -> kopf.OperatorRegistry:
    """Register the KeystoneEndpoint handlers of ``operator`` with a fresh registry."""

    registry = kopf.OperatorRegistry()
    plural = PLURALS[ENDPOINT_KIND]

    @kopf.on.startup(registry=registry)
    def configure(settings: kopf.OperatorSettings, **_: Any) -> None:
        configure_settings(settings, operator.config)

    @kopf.on.login(registry=registry)
    def login(**kwargs: Any) -> kopf.ConnectionInfo | None:
        return kopf.login_via_client(**kwargs)

    @kopf.on.cleanup(registry=registry)
    def cleanup(**_: Any) -> None:
        operator.stop()

    @kopf.on.resume(GROUP, VERSION, plural, registry=registry)
    @kopf.on.create(GROUP, VERSION, plural, registry=registry)
    @kopf.on.update(GROUP, VERSION, plural, registry=registry)
    def reconcile(namespace: str, name: str, retry: int, **_: Any) -> None:
        operator.process(namespace, name, retry=retry)

    @kopf.on.delete(GROUP, VERSION, plural, registry=registry)
    def finalize(namespace: str, name: str, retry: int, **_: Any) -> None:
        operator.process(namespace, name, retry=retry)

    return registry


def run_controller(
    *,
    config: ControllerConfig | None = None,
    store: KubernetesResourceStore | None = None,
    stop_flag: threading.Event | None = None,
) -> None:
    """Watch KeystoneEndpoints and reconcile them until interrupted."""

    effective_config = config or get_controller_config()
    effective_store = store or KubernetesResourceStore.from_environment()
    operator = EndpointOperator(
        reconciler=build_reconciler(store=effective_store, config=effective_config),
        config=effective_config,
    )
    namespace = effective_config.namespace

    log.info(
        "Starting controller: namespace=%s, workers=%s, timeout=%ss",
        namespace or "*",
        effective_config.workers,
        effective_config.reconcile_timeout_seconds,
    )
    kopf.run(
        registry=build_registry(operator),
        standalone=True,
        clusterwide=namespace is None,
        namespaces=[namespace] if namespace else (),
        stop_flag=stop_flag,
    )
    log.info("Controller stopped")
