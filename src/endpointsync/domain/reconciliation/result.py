"""Outcome of a reconcile pass."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class ReconcilePhase(StrEnum):
    """Where a pass stopped; mirrors the states of the reconcile state machine."""

    ABSENT = "absent"
    INITIALIZING = "initializing"
    AWAITING_DEPENDENCY = "awaiting-dependency"
    AWAITING_CREDENTIALS = "awaiting-credentials"
    SYNCING = "syncing"
    READY = "ready"
    DELETED = "deleted"


@dataclass(frozen=True, slots=True)
class ReconcileResult:
    """``requeue_after`` asks the scheduler to run the pass again after that many seconds."""

    phase: ReconcilePhase = ReconcilePhase.READY
    requeue_after: float | None = None

    @property
    def requeue(self) -> bool:
        return self.requeue_after is not None

    @classmethod
    def done(cls, phase: ReconcilePhase = ReconcilePhase.READY) -> ReconcileResult:
        return cls(phase=phase)

    @classmethod
    def after(cls, seconds: float, phase: ReconcilePhase) -> ReconcileResult:
        return cls(phase=phase, requeue_after=seconds)

    @classmethod
    def immediately(cls, phase: ReconcilePhase) -> ReconcileResult:
        """Run again right away; our own writes do not trigger another pass."""

        return cls(phase=phase, requeue_after=0.0)
