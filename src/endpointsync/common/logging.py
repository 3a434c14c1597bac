"""Shared logging helpers for endpointsync."""

from __future__ import annotations

import logging

LOG_LEVEL_NAMES = ("DEBUG", "INFO", "WARNING", "ERROR")


def configure_logging(*, level: int | str = logging.INFO, force: bool = False) -> None:
    """Initialise the root logger once with sensible defaults.

    Parameters mirror ``logging.basicConfig`` with a simplified contract: we default
    to INFO level and a format that keeps the thread name, since passes for
    different endpoints run on separate workers. Pass ``force=True`` to
    reconfigure during tests or specialised entry points.
    """

    if isinstance(level, str):
        level = logging.getLevelNamesMapping().get(level.upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(threadName)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
        force=force,
    )
    # the kubernetes client logs every request body at DEBUG
    logging.getLogger("kubernetes").setLevel(max(level, logging.INFO))
