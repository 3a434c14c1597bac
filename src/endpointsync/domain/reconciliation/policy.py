"""Timing and retry policy of the reconcile loop."""

from __future__ import annotations

from dataclasses import dataclass

from endpointsync.domain.model import DEFAULT_FINALIZER_DOMAIN

DEFAULT_API_RETRY_SECONDS = 5.0
DEFAULT_SERVICE_RETRY_SECONDS = 10.0
DEFAULT_AMBIGUOUS_RETRY_SECONDS = 300.0
DEFAULT_CONFLICT_RETRIES = 5


@dataclass(frozen=True, slots=True)
class ReconcilePolicy:
    api_retry_seconds: float = DEFAULT_API_RETRY_SECONDS
    service_retry_seconds: float = DEFAULT_SERVICE_RETRY_SECONDS
    ambiguous_retry_seconds: float = DEFAULT_AMBIGUOUS_RETRY_SECONDS
    conflict_retries: int = DEFAULT_CONFLICT_RETRIES
    finalizer_domain: str = DEFAULT_FINALIZER_DOMAIN
