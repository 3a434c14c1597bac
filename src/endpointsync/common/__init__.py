from __future__ import annotations

from .logging import LOG_LEVEL_NAMES, configure_logging

__all__ = [
    "LOG_LEVEL_NAMES",
    "configure_logging",
]
