"""Condition initialisation, Ready aggregation and status persistence."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from endpointsync.domain.errors import ResourceNotFoundError
from endpointsync.domain.model import ConditionReason, ConditionType, unknown_condition

from . import messages

if TYPE_CHECKING:
    from endpointsync.domain.context import ReconcileContext
    from endpointsync.domain.model import Condition, KeystoneEndpoint
    from endpointsync.domain.ports import ResourceStore


def initial_conditions() -> tuple[Condition, ...]:
    return (
        unknown_condition(
            ConditionType.KEYSTONE_API_READY, ConditionReason.INIT, messages.KEYSTONE_API_INIT
        ),
        unknown_condition(
            ConditionType.ADMIN_SERVICE_CLIENT_READY,
            ConditionReason.INIT,
            messages.ADMIN_CLIENT_INIT,
        ),
        unknown_condition(
            ConditionType.KEYSTONE_SERVICE_OS_ENDPOINTS_READY,
            ConditionReason.INIT,
            messages.ENDPOINTS_INIT,
        ),
        unknown_condition(
            ConditionType.KEYSTONE_SERVICE_READY,
            ConditionReason.INIT,
            messages.KEYSTONE_SERVICE_INIT,
        ),
    )


def initialize_conditions(endpoint: KeystoneEndpoint) -> bool:
    """Seed all conditions as ``Unknown/Init`` on first observation.

    Returns ``True`` when the conditions were just created.
    """

    conditions = endpoint.status.conditions
    if conditions:
        return False
    conditions.init(initial_conditions())
    return True


@dataclass(slots=True)
class StatusRecorder:
    store: ResourceStore

    def persist(self, endpoint: KeystoneEndpoint, *, context: ReconcileContext) -> None:
        """Aggregate Ready and write status and finalizers back to the store.

        An endpoint that vanished meanwhile (its last finalizer was removed) is
        not an error.
        """

        endpoint.status.conditions.aggregate_ready()
        try:
            self.store.save_endpoint(endpoint)
        except ResourceNotFoundError:
            context.log.debug("Endpoint removed before its status could be saved")
