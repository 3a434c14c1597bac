"""Per-pass execution context: deadline, cancellation and the log sink."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from logging import LoggerAdapter, getLogger
from typing import TYPE_CHECKING, Any

from endpointsync.domain.errors import ReconcileCancelledError

if TYPE_CHECKING:
    from collections.abc import Mapping
    from logging import Logger

type LogSink = LoggerAdapter[Logger]


def bind_log(logger: Logger, fields: Mapping[str, Any]) -> LogSink:
    """Return a logger adapter that prefixes messages with ``fields``."""

    return _FieldsAdapter(logger, dict(fields))


class _FieldsAdapter(LoggerAdapter["Logger"]):
    def process(self, msg: Any, kwargs: Any) -> tuple[Any, Any]:
        extra = self.extra or {}
        prefix = " ".join(f"{key}={value}" for key, value in extra.items())
        kwargs.setdefault("extra", {}).update(extra)
        return (f"[{prefix}] {msg}" if prefix else msg), kwargs


@dataclass(slots=True)
class ReconcileContext:
    """Bounds one reconcile pass.

    ``deadline`` is a ``time.monotonic()`` value; ``None`` means unbounded.
    Remote calls consult ``remaining()`` for their timeout and poll
    ``cancelled`` so they can be abandoned as soon as the pass is cancelled.
    """

    log: LogSink = field(default_factory=lambda: bind_log(getLogger("endpointsync"), {}))
    deadline: float | None = None
    _cancelled: threading.Event = field(default_factory=threading.Event)

    @classmethod
    def with_timeout(cls, timeout: float | None, *, log: LogSink | None = None) -> ReconcileContext:
        deadline = time.monotonic() + timeout if timeout is not None else None
        if log is None:
            return cls(deadline=deadline)
        return cls(log=log, deadline=deadline)

    def bind(self, logger: Logger, **fields: Any) -> ReconcileContext:
        """Return a context sharing this deadline and cancellation with a bound log."""

        return ReconcileContext(
            log=bind_log(logger, fields),
            deadline=self.deadline,
            _cancelled=self._cancelled,
        )

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def cancel(self) -> None:
        self._cancelled.set()

    def remaining(self) -> float | None:
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - time.monotonic())

    def expired(self) -> bool:
        remaining = self.remaining()
        return remaining is not None and remaining <= 0.0

    def check(self) -> None:
        """Raise ``ReconcileCancelledError`` if the pass must stop."""

        if self.cancelled:
            raise ReconcileCancelledError("reconcile pass cancelled")
        if self.expired():
            raise ReconcileCancelledError("reconcile pass exceeded its deadline")
