"""Sync controller coordinating push and pull cycles.

The controller is the only component that mutates the sync status, the
retry state and the pending conflicts. Every mutation runs on the owner of
its ``Scheduler``; public methods only submit work there and return a
``Future``. This serializes push cycles, pull cycles and conflict
resolution, so the conflict detector's reads never interleave with a push.

Triggers:
1. Local change: restarts a quiet window; a push runs once it elapses
2. Remote change: pulls cloud state and scans for conflicts
3. Reachability edge: pushes when the network comes back
4. Explicit calls: sync_now, toggle_sync, update_synced_vendors, resolve_conflict

A trigger that arrives while a cycle of the same kind is already queued is
coalesced into that cycle.
"""

import logging
import threading
from concurrent.futures import Future
from typing import Any, Callable, Dict, Iterable, List, Optional

from ...models import SyncManifest, Vendor
from ..cloud.kv_store import KeyValueStore
from ..cloud.record_store import RecordStore
from ..errors import TransientNetworkFailure
from ..network.reachability import ReachabilityTracker
from ..store.events import ChangeNotificationBus
from ..store.repository import ConfigurationRepository, VendorAlreadyExistsError
from .conflict_detector import Conflict, detect_conflicts
from .conflict_resolver import ConflictResolution, ConflictResolver
from .retry import DEFAULT_MAX_ATTEMPTS, RetryScheduler, RetryState
from .scheduler import ScheduledTask, Scheduler
from .status import SyncState, SyncStatus

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_SECONDS = 2.0
DEFAULT_SUCCESS_DECAY_SECONDS = 2.0

StatusListener = Callable[[SyncStatus], None]


class SyncController:
    """Orchestrates pushes, pulls and conflict resolution for vendors."""

    def __init__(
        self,
        repository: ConfigurationRepository,
        kv_store: KeyValueStore,
        scheduler: Scheduler,
        reachability: Optional[ReachabilityTracker] = None,
        change_bus: Optional[ChangeNotificationBus] = None,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        success_decay_seconds: float = DEFAULT_SUCCESS_DECAY_SECONDS,
        max_retry_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ):
        """Initialize sync controller.

        Loads the local manifest, then adopts the cloud manifest's id list
        when one exists. The enabled flag stays device-local.

        Args:
            repository: Local configuration store
            kv_store: Cloud key-value store
            scheduler: Owner of all controller state
            reachability: Network reachability tracker (defaults to online)
            change_bus: Optional bus delivering local change events
            debounce_seconds: Quiet window after the last local change
            success_decay_seconds: Delay before Success falls back to Idle
            max_retry_attempts: Failed pushes before giving up
        """
        self.repository = repository
        self.kv_store = kv_store
        self.record_store = RecordStore(kv_store)
        self.scheduler = scheduler
        self.reachability = reachability or ReachabilityTracker()
        self.debounce_seconds = debounce_seconds
        self.success_decay_seconds = success_decay_seconds

        self.retry = RetryScheduler(max_retry_attempts)
        self.resolver = ConflictResolver(repository, self.record_store)

        self._status = SyncStatus.idle()
        self._listeners: List[StatusListener] = []
        self._conflicts: Dict[str, Conflict] = {}
        self._state_lock = threading.Lock()

        self._debounce_task: Optional[ScheduledTask] = None
        self._retry_task: Optional[ScheduledTask] = None
        self._decay_task: Optional[ScheduledTask] = None

        self._request_lock = threading.Lock()
        self._pending_push: Optional["Future[Any]"] = None
        self._pending_pull: Optional["Future[Any]"] = None

        self._manifest = self._load_manifest()

        self._unsubscribers: List[Callable[[], None]] = [
            self.reachability.add_back_online_listener(self.on_reachability_edge),
            kv_store.add_change_listener(self._on_cloud_keys_changed),
        ]
        if change_bus is not None:
            self._unsubscribers.append(change_bus.subscribe(self.on_local_change))

    # =========================================================================
    # Read-only accessors
    # =========================================================================

    @property
    def status(self) -> SyncStatus:
        return self._status

    @property
    def manifest(self) -> SyncManifest:
        return self._manifest

    @property
    def enabled(self) -> bool:
        return self._manifest.enabled

    @property
    def pending_conflicts(self) -> List[Conflict]:
        with self._state_lock:
            return list(self._conflicts.values())

    def get_conflict(self, vendor_id: str) -> Optional[Conflict]:
        with self._state_lock:
            return self._conflicts.get(vendor_id)

    @property
    def retry_pending(self) -> bool:
        """True while a backoff wait is scheduled."""
        return self._retry_task is not None and self._retry_task.pending

    def subscribe(self, listener: StatusListener) -> Callable[[], None]:
        """Register a status change listener.

        Listeners run on the scheduler's owner.

        Returns:
            Callable that removes the listener
        """
        with self._state_lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._state_lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    # =========================================================================
    # Triggers
    # =========================================================================

    def on_local_change(self) -> "Future[Any]":
        """Local configuration changed; (re)start the quiet window."""
        return self.scheduler.submit(self._restart_debounce)

    def on_remote_change(self) -> "Future[Any]":
        """Another device's writes became visible; pull if enabled."""
        return self.scheduler.submit(self._handle_remote_change)

    def on_reachability_edge(self) -> "Future[Any]":
        """Network came back; push if enabled."""
        return self.scheduler.submit(self._handle_back_online)

    def request_push(self) -> "Future[Any]":
        """Queue a push cycle, coalescing with one already queued."""
        with self._request_lock:
            if self._pending_push is None:
                self._pending_push = self.scheduler.submit(self._run_push)
            return self._pending_push

    def request_pull(self) -> "Future[Any]":
        """Queue a pull cycle, coalescing with one already queued."""
        with self._request_lock:
            if self._pending_pull is None:
                self._pending_pull = self.scheduler.submit(self._run_pull)
            return self._pending_pull

    def sync_now(self) -> "Future[Any]":
        """User-triggered push that starts from a fresh retry state."""
        return self.scheduler.submit(self._explicit_sync)

    def toggle_sync(self, enabled: bool) -> "Future[Any]":
        """Turn sync on (and push) or off (cancelling pending work)."""
        return self.scheduler.submit(self._set_enabled, enabled)

    def update_synced_vendors(self, vendor_ids: Iterable[str]) -> "Future[Any]":
        """Record a new synced id list, persist it and push."""
        return self.scheduler.submit(self._set_synced_ids, list(vendor_ids))

    def resolve_conflict(self, vendor_id: str, keep_local: bool) -> "Future[bool]":
        """Resolve one pending conflict.

        The future yields True if a conflict was resolved, False if none was
        pending or resolution failed (the status then carries the error).
        """
        resolution = ConflictResolution.from_keep_local(keep_local)
        return self.scheduler.submit(self._resolve, vendor_id, resolution)

    def close(self) -> None:
        """Detach from event sources and cancel delayed work."""
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()
        for task in (self._debounce_task, self._retry_task, self._decay_task):
            if task is not None:
                task.cancel()

    # =========================================================================
    # Owner-side handlers
    # =========================================================================

    def _on_cloud_keys_changed(self, keys: List[str]) -> None:
        logger.debug("Cloud keys changed externally: %s", keys)
        self.on_remote_change()

    def _restart_debounce(self) -> None:
        if self._debounce_task is not None:
            self._debounce_task.cancel()
        self._debounce_task = self.scheduler.call_later(
            self.debounce_seconds, self._debounce_elapsed
        )

    def _debounce_elapsed(self) -> None:
        self._debounce_task = None
        if not self.enabled:
            logger.debug("Sync disabled, ignoring local change")
            return
        self.request_push()

    def _handle_remote_change(self) -> None:
        if not self.enabled:
            logger.debug("Sync disabled, ignoring remote change")
            return
        self.request_pull()

    def _handle_back_online(self) -> None:
        if not self.enabled:
            return
        logger.info("Network is back, pushing local changes")
        self.request_push()

    def _run_push(self) -> None:
        with self._request_lock:
            self._pending_push = None
        self._push_cycle()

    def _run_pull(self) -> None:
        with self._request_lock:
            self._pending_pull = None
        self._pull_cycle()

    def _explicit_sync(self) -> None:
        self._cancel_retry()
        self.retry.reset()
        self._push_cycle()

    def _set_enabled(self, enabled: bool) -> None:
        self._manifest = self._manifest.with_enabled(enabled)
        self._persist_manifest()
        logger.info("Sync %s", "enabled" if enabled else "disabled")

        if enabled:
            self._push_cycle()
            return

        for task in (self._debounce_task, self._retry_task, self._decay_task):
            if task is not None:
                task.cancel()
        self._debounce_task = self._retry_task = self._decay_task = None
        self.retry.reset()
        self._set_status(SyncStatus.idle())

    def _set_synced_ids(self, vendor_ids: List[str]) -> None:
        self._manifest = self._manifest.with_ids(vendor_ids)
        self._persist_manifest()
        self._push_cycle()

    def _persist_manifest(self) -> None:
        self.repository.save_sync_manifest(self._manifest)
        try:
            self.record_store.put_manifest(self._manifest)
            self.record_store.flush()
        except TransientNetworkFailure as e:
            logger.error("Failed to save sync configuration to cloud: %s", e)

    # =========================================================================
    # Push cycle
    # =========================================================================

    def _push_cycle(self) -> None:
        if not self.enabled:
            logger.debug("Sync disabled, skipping push")
            return

        if not self.reachability.is_online:
            logger.info("Offline, push deferred until the network returns")
            self._set_status(SyncStatus.offline())
            return

        self._set_status(SyncStatus.syncing())

        try:
            # Every local vendor is pushed; the id list follows the local set
            vendors = self.repository.get_all_vendors()
            self._manifest = self._manifest.with_ids([v.id for v in vendors])
            self.repository.save_sync_manifest(self._manifest)

            self.record_store.put_manifest(self._manifest)
            for vendor in vendors:
                self.record_store.put_vendor(vendor)
            self.record_store.flush()
        except TransientNetworkFailure as e:
            self._handle_push_failure(e)
            return
        except Exception as e:
            logger.exception("Push failed unexpectedly")
            self._cancel_retry()
            self.retry.reset()
            self._set_status(SyncStatus.error(f"Sync failed: {e}"))
            return

        logger.info("Pushed %d vendor(s) to cloud", len(vendors))
        self._cancel_retry()
        self.retry.record_success()
        self._set_success()

    def _handle_push_failure(self, error: TransientNetworkFailure) -> None:
        self._cancel_retry()
        decision = self.retry.record_failure()

        if decision.gave_up:
            logger.error("Sync failed after %d attempts: %s", decision.attempt, error)
            self._set_status(SyncStatus.error(f"Sync failed: {error}"))
            return

        logger.warning(
            "Sync failed, retrying in %.0f seconds... (attempt %d): %s",
            decision.delay,
            decision.attempt,
            error,
        )
        self._retry_task = self.scheduler.call_later(decision.delay, self._retry_elapsed)

    def _retry_elapsed(self) -> None:
        self._retry_task = None
        self.retry.mark_ready()
        self.request_push()

    def _cancel_retry(self) -> None:
        if self._retry_task is not None:
            self._retry_task.cancel()
            self._retry_task = None
        if self.retry.state == RetryState.WAITING:
            self.retry.mark_ready()

    # =========================================================================
    # Pull cycle
    # =========================================================================

    def _pull_cycle(self) -> None:
        if not self.reachability.is_online:
            logger.info("Offline, skipping pull")
            return

        self._set_status(SyncStatus.syncing())

        try:
            remote_manifest = self.record_store.get_manifest()
            if remote_manifest is not None:
                ids = remote_manifest.synced_vendor_ids
                if ids != self._manifest.synced_vendor_ids:
                    self._manifest = self._manifest.with_ids(ids)
                    self.repository.save_sync_manifest(self._manifest)

            result = detect_conflicts(
                self.repository.get_all_vendors(),
                self._manifest.synced_vendor_ids,
                self.record_store,
            )
            self._import_vendors(result.imports)
        except Exception as e:
            logger.exception("Pull failed")
            self._set_status(SyncStatus.error(f"Sync failed: {e}"))
            return

        with self._state_lock:
            self._conflicts = {c.vendor_id: c for c in result.conflicts}

        if result.conflicts:
            logger.info("Pull found %d conflict(s)", len(result.conflicts))
            self._set_status(SyncStatus.idle())
        else:
            self._set_success()

    def _import_vendors(self, vendors: List[Vendor]) -> None:
        for vendor in vendors:
            try:
                self.repository.add_vendor(vendor)
                logger.info("Imported vendor %s from cloud", vendor.id)
            except VendorAlreadyExistsError:
                logger.warning("Vendor %s appeared locally during pull, skipping import", vendor.id)

    # =========================================================================
    # Conflict resolution
    # =========================================================================

    def _resolve(self, vendor_id: str, resolution: ConflictResolution) -> bool:
        conflict = self.get_conflict(vendor_id)
        if conflict is None:
            logger.debug("No pending conflict for %s", vendor_id)
            return False

        try:
            self.resolver.apply(conflict, resolution)
        except Exception as e:
            logger.error("Failed to resolve conflict for %s: %s", vendor_id, e)
            self._set_status(SyncStatus.error(f"Failed to resolve conflict: {e}"))
            return False

        with self._state_lock:
            self._conflicts.pop(vendor_id, None)
        return True

    # =========================================================================
    # Status
    # =========================================================================

    def _set_success(self) -> None:
        self._set_status(SyncStatus.success())
        if self._decay_task is not None:
            self._decay_task.cancel()
        self._decay_task = self.scheduler.call_later(
            self.success_decay_seconds, self._decay_elapsed
        )

    def _decay_elapsed(self) -> None:
        self._decay_task = None
        if self._status.state == SyncState.SUCCESS:
            self._set_status(SyncStatus.idle())

    def _set_status(self, status: SyncStatus) -> None:
        if status == self._status:
            return
        logger.debug("Sync status: %s -> %s", self._status, status)
        self._status = status
        with self._state_lock:
            listeners = list(self._listeners)
        for listener in listeners:
            listener(status)

    def _load_manifest(self) -> SyncManifest:
        manifest = self.repository.load_sync_manifest() or SyncManifest()
        remote = self.record_store.get_manifest()
        if remote is not None:
            manifest = manifest.with_ids(remote.synced_vendor_ids)
        return manifest
