"""Public interface for the Keystone identity adapter."""

from __future__ import annotations

from .client import KeystoneAdminClient, authenticate, identity_root, run_bounded
from .provider import KeystoneAdminClientProvider, SecretReader
from .schema import EndpointListResponse, EndpointPayload, ErrorResponse, TokenRequest

__all__ = [
    "EndpointListResponse",
    "EndpointPayload",
    "ErrorResponse",
    "KeystoneAdminClient",
    "KeystoneAdminClientProvider",
    "SecretReader",
    "TokenRequest",
    "authenticate",
    "identity_root",
    "run_bounded",
]
