"""Sync engine: status, scheduling, retry, conflict handling and the controller."""

from .conflict_detector import Conflict, DetectionResult, detect_conflicts
from .conflict_resolver import ConflictResolution, ConflictResolver
from .controller import DEFAULT_DEBOUNCE_SECONDS, DEFAULT_SUCCESS_DECAY_SECONDS, SyncController
from .retry import DEFAULT_MAX_ATTEMPTS, RetryDecision, RetryScheduler, RetryState
from .scheduler import ManualScheduler, ScheduledTask, Scheduler, ThreadScheduler
from .status import SyncState, SyncStatus

__all__ = [
    # Status
    "SyncState",
    "SyncStatus",
    # Scheduling
    "Scheduler",
    "ScheduledTask",
    "ThreadScheduler",
    "ManualScheduler",
    # Retry
    "RetryScheduler",
    "RetryState",
    "RetryDecision",
    "DEFAULT_MAX_ATTEMPTS",
    # Conflicts
    "Conflict",
    "DetectionResult",
    "detect_conflicts",
    "ConflictResolution",
    "ConflictResolver",
    # Controller
    "SyncController",
    "DEFAULT_DEBOUNCE_SECONDS",
    "DEFAULT_SUCCESS_DECAY_SECONDS",
]
