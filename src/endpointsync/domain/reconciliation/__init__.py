"""Reconciliation core for keeping identity-service endpoints in sync.

Layered flow of one pass:
1) initialise conditions and the endpoint's own finalizer
2) gate on the KeystoneAPI, the admin client and the KeystoneService
3) claim finalizers on the dependencies
4) retire and converge remote endpoints
5) aggregate Ready and persist the status

Terminating endpoints branch into the delete paths after step 2.
"""

from __future__ import annotations

from .delete import EndpointDeletion
from .finalizers import FinalizerCoordinator
from .gate import DependencyGate
from .orchestrator import EndpointReconciler
from .policy import ReconcilePolicy
from .result import ReconcilePhase, ReconcileResult
from .status import StatusRecorder, initial_conditions, initialize_conditions
from .sync import SyncReport, converge_endpoints, retire_endpoints, sync_endpoints

__all__ = [
    "DependencyGate",
    "EndpointDeletion",
    "EndpointReconciler",
    "FinalizerCoordinator",
    "ReconcilePhase",
    "ReconcilePolicy",
    "ReconcileResult",
    "StatusRecorder",
    "SyncReport",
    "converge_endpoints",
    "initial_conditions",
    "initialize_conditions",
    "retire_endpoints",
    "sync_endpoints",
]
