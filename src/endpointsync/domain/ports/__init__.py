"""Domain port definitions for adapters."""

from __future__ import annotations

from .identity import AdminClientPending, AdminClientProvider, IdentityAdminClient
from .store import ResourceStore

__all__ = [
    "AdminClientPending",
    "AdminClientProvider",
    "IdentityAdminClient",
    "ResourceStore",
]
