"""Public interface for the Kubernetes resource adapter."""

from __future__ import annotations

from .store import (
    GROUP,
    PLURALS,
    VERSION,
    KubernetesResourceStore,
    api_errors,
    load_kubernetes_config,
)
from .translator import (
    dump_endpoint_status,
    parse_keystone_api,
    parse_keystone_endpoint,
    parse_keystone_service,
)

__all__ = [
    "GROUP",
    "PLURALS",
    "VERSION",
    "KubernetesResourceStore",
    "api_errors",
    "dump_endpoint_status",
    "load_kubernetes_config",
    "parse_keystone_api",
    "parse_keystone_endpoint",
    "parse_keystone_service",
]
