"""Environment variable loaders for configuration."""

from __future__ import annotations

import os

from .errors import InvalidConfigurationError


def optional_env(name: str, default: str) -> str:
    """Return the variable's stripped value, or ``default`` when unset or blank."""

    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip()


def env_float(name: str, default: float, *, minimum: float = 0.0) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        raise InvalidConfigurationError(name, raw, "a number") from None
    if value < minimum:
        raise InvalidConfigurationError(name, raw, f"a number >= {minimum:g}")
    return value


def env_int(name: str, default: int, *, minimum: int = 0) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        raise InvalidConfigurationError(name, raw, "an integer") from None
    if value < minimum:
        raise InvalidConfigurationError(name, raw, f"an integer >= {minimum}")
    return value
