"""Readiness conditions attached to a resource's status.

A ``ConditionList`` holds at most one ``Condition`` per ``ConditionType``.
Sub-logic only ever sets the individual sub-conditions; the aggregate
``Ready`` condition is derived from them (see ``ConditionList.aggregate_ready``).
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from endpointsync.domain.model.enums import (
    ConditionReason,
    ConditionStatus,
    ConditionType,
    Severity,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

READY_MESSAGE = "Setup complete"
READY_INIT_MESSAGE = "Setup started"

# Lower rank wins when mirroring: the most actionable condition first.
_GROUP_RANKS: dict[tuple[ConditionStatus, str], int] = {
    (ConditionStatus.FALSE, Severity.ERROR): 0,
    (ConditionStatus.FALSE, Severity.WARNING): 1,
    (ConditionStatus.FALSE, Severity.INFO): 2,
    (ConditionStatus.FALSE, Severity.NONE): 2,
}
_UNKNOWN_RANK = 3
_TRUE_RANK = 4


def utcnow() -> datetime:
    return datetime.now(tz=UTC).replace(microsecond=0)


@dataclass(frozen=True, slots=True)
class Condition:
    type: str
    status: ConditionStatus
    reason: str
    severity: str = Severity.NONE
    message: str = ""
    last_transition_time: datetime | None = None

    @property
    def is_true(self) -> bool:
        return self.status is ConditionStatus.TRUE


def true_condition(type_: str, message: str) -> Condition:
    return Condition(type_, ConditionStatus.TRUE, ConditionReason.READY, message=message)


def false_condition(
    type_: str,
    reason: str,
    severity: str,
    message: str,
) -> Condition:
    return Condition(type_, ConditionStatus.FALSE, reason, severity, message)


def unknown_condition(type_: str, reason: str, message: str) -> Condition:
    return Condition(type_, ConditionStatus.UNKNOWN, reason, message=message)


def _rank(condition: Condition) -> int:
    if condition.status is ConditionStatus.TRUE:
        return _TRUE_RANK
    if condition.status is ConditionStatus.UNKNOWN:
        return _UNKNOWN_RANK
    return _GROUP_RANKS.get((condition.status, condition.severity), 2)


def mirror(conditions: Iterable[Condition], target: str) -> Condition | None:
    """Copy the most relevant non-Ready condition into a condition of type ``target``.

    Conditions are grouped by (status, severity); the groups are ranked
    ``False/Error``, ``False/Warning``, ``False/Info``, ``Unknown``, ``True``
    and the most recently transitioned condition of the best group is copied.
    Returns ``None`` when there is nothing to mirror.
    """

    candidates = [c for c in conditions if c.type != ConditionType.READY]
    if not candidates:
        return None

    best_rank = min(_rank(c) for c in candidates)
    group = [c for c in candidates if _rank(c) == best_rank]
    epoch = datetime.min.replace(tzinfo=UTC)
    source = max(group, key=lambda c: c.last_transition_time or epoch)
    return Condition(
        type=target,
        status=source.status,
        reason=source.reason,
        severity=source.severity,
        message=source.message,
    )


class ConditionList:
    """Ordered condition collection, ``Ready`` first then by type name."""

    def __init__(self, conditions: Iterable[Condition] = ()) -> None:
        self._items: dict[str, Condition] = {}
        for condition in conditions:
            self._items[condition.type] = condition

    def __iter__(self) -> Iterator[Condition]:
        return iter(sorted(self._items.values(), key=_sort_key))

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)

    def __repr__(self) -> str:
        return f"ConditionList({list(self)!r})"

    def get(self, type_: str) -> Condition | None:
        return self._items.get(type_)

    def is_true(self, type_: str) -> bool:
        condition = self._items.get(type_)
        return condition is not None and condition.is_true

    def init(self, conditions: Iterable[Condition]) -> None:
        """Seed the list with ``conditions`` plus an ``Unknown`` Ready condition."""

        self.set(unknown_condition(ConditionType.READY, ConditionReason.INIT, READY_INIT_MESSAGE))
        for condition in conditions:
            self.set(condition)

    def set(self, condition: Condition) -> None:
        """Replace the condition of the same type.

        The transition time only moves when the status actually changes.
        """

        existing = self._items.get(condition.type)
        if existing is not None and existing.status is condition.status:
            stamp = existing.last_transition_time or condition.last_transition_time or utcnow()
        else:
            stamp = utcnow()
        self._items[condition.type] = replace(condition, last_transition_time=stamp)

    def mark_true(self, type_: str, message: str) -> None:
        self.set(true_condition(type_, message))

    def mark_false(
        self,
        type_: str,
        reason: str,
        severity: str,
        message: str,
    ) -> None:
        self.set(false_condition(type_, reason, severity, message))

    def mark_unknown(self, type_: str, reason: str, message: str) -> None:
        self.set(unknown_condition(type_, reason, message))

    def all_sub_conditions_true(self) -> bool:
        sub_conditions = [c for c in self._items.values() if c.type != ConditionType.READY]
        return all(c.is_true for c in sub_conditions)

    def mirror(self, target: str) -> Condition | None:
        return mirror(self._items.values(), target)

    def aggregate_ready(self) -> None:
        """Recompute the Ready condition from the sub-conditions."""

        if self.all_sub_conditions_true():
            self.mark_true(ConditionType.READY, READY_MESSAGE)
            return
        self.mark_unknown(ConditionType.READY, ConditionReason.INIT, READY_INIT_MESSAGE)
        mirrored = self.mirror(ConditionType.READY)
        if mirrored is not None:
            self.set(mirrored)


def _sort_key(condition: Condition) -> tuple[int, str]:
    return (0 if condition.type == ConditionType.READY else 1, str(condition.type))
