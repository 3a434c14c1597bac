"""Application configuration helpers."""

from __future__ import annotations

from endpointsync.common.logging import configure_logging

from .controller import ControllerConfig, get_controller_config
from .env import env_float, env_int, optional_env
from .errors import (
    ConfigurationError,
    InvalidConfigurationError,
    MissingConfigurationError,
)
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy
from .identity import IdentityConfig, get_identity_config

__all__ = [
    "ConfigurationError",
    "ControllerConfig",
    "IdentityConfig",
    "InvalidConfigurationError",
    "MissingConfigurationError",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "configure_logging",
    "env_float",
    "env_int",
    "get_controller_config",
    "get_identity_config",
    "optional_env",
]
