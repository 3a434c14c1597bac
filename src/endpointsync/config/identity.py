"""Identity service (Keystone) client configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import env_float, env_int, optional_env
from .errors import MissingConfigurationError
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy

IDENTITY_TIMEOUT_SECONDS = 15.0
PENDING_RETRY_SECONDS = 10.0
DEFAULT_USER_DOMAIN = "Default"
DEFAULT_PROJECT_DOMAIN = "Default"
# the admin client talks to the internal API when one is published
DEFAULT_ENDPOINT_INTERFACES = ("internal", "public")


@dataclass(frozen=True, slots=True)
class IdentityConfig:
    """Holds identity service client configuration values."""

    resilience: ResilienceConfig
    user_domain: str = DEFAULT_USER_DOMAIN
    project_domain: str = DEFAULT_PROJECT_DOMAIN
    endpoint_interfaces: tuple[str, ...] = DEFAULT_ENDPOINT_INTERFACES
    pending_retry_seconds: float = PENDING_RETRY_SECONDS


def get_identity_config(*, resilience: ResilienceConfig | None = None) -> IdentityConfig:
    interfaces = optional_env(
        "ENDPOINTSYNC_IDENTITY_INTERFACES", ",".join(DEFAULT_ENDPOINT_INTERFACES)
    )
    ca_bundle = optional_env("ENDPOINTSYNC_IDENTITY_CA_BUNDLE", "")
    endpoint_interfaces = tuple(part.strip() for part in interfaces.split(",") if part.strip())
    if not endpoint_interfaces:
        raise MissingConfigurationError("ENDPOINTSYNC_IDENTITY_INTERFACES lists no interfaces")
    max_calls = env_int("ENDPOINTSYNC_IDENTITY_RATE_LIMIT", 0)
    return IdentityConfig(
        resilience=resilience
        or ResilienceConfig(
            name="keystone",
            timeout_seconds=env_float("ENDPOINTSYNC_IDENTITY_TIMEOUT", IDENTITY_TIMEOUT_SECONDS),
            verify=ca_bundle or True,
            retry=RetryPolicy(total=env_int("ENDPOINTSYNC_IDENTITY_RETRIES", 4)),
            ratelimit=RateLimit(max_calls=max_calls, per_seconds=1.0) if max_calls else None,
        ),
        user_domain=optional_env("ENDPOINTSYNC_IDENTITY_USER_DOMAIN", DEFAULT_USER_DOMAIN),
        project_domain=optional_env(
            "ENDPOINTSYNC_IDENTITY_PROJECT_DOMAIN", DEFAULT_PROJECT_DOMAIN
        ),
        endpoint_interfaces=endpoint_interfaces,
        pending_retry_seconds=env_float(
            "ENDPOINTSYNC_IDENTITY_PENDING_RETRY_SECONDS", PENDING_RETRY_SECONDS
        ),
    )
