"""Controller runtime configuration values."""

from __future__ import annotations

from dataclasses import dataclass, field

from endpointsync.domain.model import DEFAULT_FINALIZER_DOMAIN
from endpointsync.domain.reconciliation import ReconcilePolicy
from endpointsync.domain.reconciliation.policy import (
    DEFAULT_AMBIGUOUS_RETRY_SECONDS,
    DEFAULT_API_RETRY_SECONDS,
    DEFAULT_CONFLICT_RETRIES,
    DEFAULT_SERVICE_RETRY_SECONDS,
)

from .env import env_float, env_int, optional_env

DEFAULT_WORKERS = 2
DEFAULT_RECONCILE_TIMEOUT_SECONDS = 120.0
DEFAULT_BACKOFF_BASE_SECONDS = 0.5
DEFAULT_BACKOFF_MAX_SECONDS = 300.0


@dataclass(frozen=True, slots=True)
class ControllerConfig:
    namespace: str | None = None
    workers: int = DEFAULT_WORKERS
    reconcile_timeout_seconds: float = DEFAULT_RECONCILE_TIMEOUT_SECONDS
    backoff_base_seconds: float = DEFAULT_BACKOFF_BASE_SECONDS
    backoff_max_seconds: float = DEFAULT_BACKOFF_MAX_SECONDS
    policy: ReconcilePolicy = field(default_factory=ReconcilePolicy)


def get_controller_config() -> ControllerConfig:
    namespace = optional_env("ENDPOINTSYNC_NAMESPACE", "")
    policy = ReconcilePolicy(
        api_retry_seconds=env_float("ENDPOINTSYNC_API_RETRY_SECONDS", DEFAULT_API_RETRY_SECONDS),
        service_retry_seconds=env_float(
            "ENDPOINTSYNC_SERVICE_RETRY_SECONDS", DEFAULT_SERVICE_RETRY_SECONDS
        ),
        ambiguous_retry_seconds=env_float(
            "ENDPOINTSYNC_AMBIGUOUS_RETRY_SECONDS", DEFAULT_AMBIGUOUS_RETRY_SECONDS
        ),
        conflict_retries=env_int(
            "ENDPOINTSYNC_CONFLICT_RETRIES", DEFAULT_CONFLICT_RETRIES, minimum=1
        ),
        finalizer_domain=optional_env("ENDPOINTSYNC_FINALIZER_DOMAIN", DEFAULT_FINALIZER_DOMAIN),
    )
    return ControllerConfig(
        namespace=namespace or None,
        workers=env_int("ENDPOINTSYNC_WORKERS", DEFAULT_WORKERS, minimum=1),
        reconcile_timeout_seconds=env_float(
            "ENDPOINTSYNC_RECONCILE_TIMEOUT", DEFAULT_RECONCILE_TIMEOUT_SECONDS
        ),
        policy=policy,
    )
