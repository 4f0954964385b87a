"""Single-owner task scheduling for the sync controller.

All controller state is mutated by callables run on one owner. Two
schedulers provide that owner:

- ThreadScheduler: a dedicated worker thread draining a ready queue and a
  timer heap. Used by long-running hosts.
- ManualScheduler: runs nothing until told to. ``run_pending()`` drains the
  ready queue and ``advance(seconds)`` moves a virtual clock, firing due
  timers in order. Used by tests and one-shot commands.

Delayed work is represented by ``ScheduledTask`` handles that can be
cancelled; callers replace a pending task by cancelling it and scheduling a
new one.
"""

import heapq
import itertools
import logging
import threading
import time
from collections import deque
from concurrent.futures import Future
from typing import Any, Callable, Deque, List, Optional, Protocol, Tuple

logger = logging.getLogger(__name__)


class ScheduledTask:
    """Handle of a delayed callable."""

    def __init__(self, due: float, fn: Callable[..., Any], args: Tuple[Any, ...]):
        self.due = due
        self._fn = fn
        self._args = args
        self._cancelled = False
        self._fired = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def pending(self) -> bool:
        """True until the task fires or is cancelled."""
        return not (self._cancelled or self._fired)

    def cancel(self) -> bool:
        """Cancel the task if it has not fired yet.

        Returns:
            True if the task was pending and is now cancelled
        """
        if not self.pending:
            return False
        self._cancelled = True
        return True

    def _claim(self) -> bool:
        if not self.pending:
            return False
        self._fired = True
        return True

    def _run(self) -> None:
        self._fn(*self._args)


class Scheduler(Protocol):
    """Owner of the sync controller's state."""

    def submit(self, fn: Callable[..., Any], *args: Any) -> "Future[Any]":
        """Run ``fn`` on the owner as soon as possible."""
        ...

    def call_later(
        self, delay: float, fn: Callable[..., Any], *args: Any
    ) -> ScheduledTask:
        """Run ``fn`` on the owner after ``delay`` seconds."""
        ...


_Job = Tuple[Optional["Future[Any]"], Callable[..., Any], Tuple[Any, ...]]


def _run_job(job: _Job) -> None:
    future, fn, args = job
    if future is None:
        fn(*args)
        return
    if not future.set_running_or_notify_cancel():
        return
    try:
        result = fn(*args)
    except BaseException as e:
        future.set_exception(e)
    else:
        future.set_result(result)


class ThreadScheduler:
    """Scheduler backed by a single worker thread."""

    def __init__(self, name: str = "ccsync-sync"):
        self.name = name
        self._cond = threading.Condition()
        self._ready: Deque[_Job] = deque()
        self._timers: List[Tuple[float, int, ScheduledTask]] = []
        self._seq = itertools.count()
        self._running = False
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._running

    def start(self) -> None:
        """Start the worker thread."""
        with self._cond:
            if self._running:
                return
            self._running = True
        self._thread = threading.Thread(target=self._loop, name=self.name, daemon=True)
        self._thread.start()
        logger.debug("Scheduler thread %s started", self.name)

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        """Stop the worker after it drains already submitted work.

        Pending timers are dropped.
        """
        with self._cond:
            self._running = False
            self._cond.notify_all()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout)
        self._thread = None
        logger.debug("Scheduler thread %s stopped", self.name)

    def submit(self, fn: Callable[..., Any], *args: Any) -> "Future[Any]":
        future: "Future[Any]" = Future()
        with self._cond:
            self._ready.append((future, fn, args))
            self._cond.notify()
        return future

    def call_later(
        self, delay: float, fn: Callable[..., Any], *args: Any
    ) -> ScheduledTask:
        task = ScheduledTask(time.monotonic() + max(0.0, delay), fn, args)
        with self._cond:
            heapq.heappush(self._timers, (task.due, next(self._seq), task))
            self._cond.notify()
        return task

    def _next_job(self) -> Optional[_Job]:
        with self._cond:
            while True:
                now = time.monotonic()
                while self._timers and self._timers[0][0] <= now:
                    _, _, task = heapq.heappop(self._timers)
                    if task._claim():
                        self._ready.append((None, task._run, ()))
                if self._ready:
                    return self._ready.popleft()
                if not self._running:
                    return None
                timeout = self._timers[0][0] - now if self._timers else None
                self._cond.wait(timeout)

    def _loop(self) -> None:
        while True:
            job = self._next_job()
            if job is None:
                return
            try:
                _run_job(job)
            except Exception:
                logger.exception("Scheduled task failed on %s", self.name)


class ManualScheduler:
    """Deterministic scheduler with a virtual clock."""

    def __init__(self) -> None:
        self._now = 0.0
        self._ready: Deque[_Job] = deque()
        self._timers: List[Tuple[float, int, ScheduledTask]] = []
        self._seq = itertools.count()

    @property
    def now(self) -> float:
        """Current virtual time in seconds."""
        return self._now

    def submit(self, fn: Callable[..., Any], *args: Any) -> "Future[Any]":
        future: "Future[Any]" = Future()
        self._ready.append((future, fn, args))
        return future

    def call_later(
        self, delay: float, fn: Callable[..., Any], *args: Any
    ) -> ScheduledTask:
        task = ScheduledTask(self._now + max(0.0, delay), fn, args)
        heapq.heappush(self._timers, (task.due, next(self._seq), task))
        return task

    def run_pending(self) -> int:
        """Run submitted work, including work submitted while running.

        Returns:
            Number of jobs run
        """
        count = 0
        while self._ready:
            _run_job(self._ready.popleft())
            count += 1
        return count

    def advance(self, seconds: float) -> int:
        """Move the clock forward, firing due timers in order.

        Ready work is drained before the clock moves and after every timer.

        Returns:
            Number of timers fired
        """
        target = self._now + seconds
        fired = 0
        self.run_pending()
        while self._timers and self._timers[0][0] <= target:
            due, _, task = heapq.heappop(self._timers)
            if not task._claim():
                continue
            self._now = max(self._now, due)
            task._run()
            fired += 1
            self.run_pending()
        self._now = target
        return fired

    def pending_timers(self) -> List[ScheduledTask]:
        """Timers that have neither fired nor been cancelled, soonest first."""
        return [task for _, _, task in sorted(self._timers) if task.pending]
