"""Tests for the single-owner schedulers."""

import threading

import pytest

from ccsync.core.sync import ManualScheduler, ThreadScheduler


class TestManualScheduler:
    """Test the deterministic scheduler."""

    def test_submit_runs_on_run_pending(self):
        """Test submitted work waits for run_pending."""
        scheduler = ManualScheduler()
        calls = []
        future = scheduler.submit(calls.append, 1)
        assert calls == []

        assert scheduler.run_pending() == 1
        assert calls == [1]
        assert future.done()

    def test_future_carries_result_and_exception(self):
        """Test futures resolve with the callable's outcome."""
        scheduler = ManualScheduler()
        ok = scheduler.submit(lambda: 42)
        failed = scheduler.submit(lambda: 1 / 0)
        scheduler.run_pending()

        assert ok.result() == 42
        with pytest.raises(ZeroDivisionError):
            failed.result()

    def test_work_submitted_while_running_is_drained(self):
        """Test nested submissions run in the same drain."""
        scheduler = ManualScheduler()
        calls = []
        scheduler.submit(lambda: scheduler.submit(calls.append, "nested"))
        scheduler.run_pending()
        assert calls == ["nested"]

    def test_timers_fire_in_order(self):
        """Test timers fire by due time as the clock advances."""
        scheduler = ManualScheduler()
        calls = []
        scheduler.call_later(2.0, calls.append, "b")
        scheduler.call_later(1.0, calls.append, "a")

        assert scheduler.advance(0.5) == 0
        assert scheduler.advance(1.0) == 1
        assert calls == ["a"]
        assert scheduler.advance(10) == 1
        assert calls == ["a", "b"]
        assert scheduler.now == 11.5

    def test_cancelled_timer_does_not_fire(self):
        """Test cancel prevents a pending timer from running."""
        scheduler = ManualScheduler()
        calls = []
        task = scheduler.call_later(1.0, calls.append, "x")

        assert task.cancel() is True
        assert task.cancelled
        assert scheduler.pending_timers() == []
        scheduler.advance(5)
        assert calls == []

    def test_cancel_after_firing(self):
        """Test cancelling a fired task reports False."""
        scheduler = ManualScheduler()
        task = scheduler.call_later(1.0, lambda: None)
        scheduler.advance(1.0)
        assert not task.pending
        assert task.cancel() is False

    def test_timer_can_schedule_timer(self):
        """Test a timer scheduled from a timer fires within the same advance."""
        scheduler = ManualScheduler()
        calls = []
        scheduler.call_later(1.0, lambda: scheduler.call_later(1.0, calls.append, "later"))
        scheduler.advance(2.0)
        assert calls == ["later"]


class TestThreadScheduler:
    """Test the worker-thread scheduler."""

    @pytest.fixture
    def scheduler(self):
        """Create and start a thread scheduler."""
        sched = ThreadScheduler(name="test-sync")
        sched.start()
        yield sched
        sched.stop()

    def test_submit_runs_on_worker_thread(self, scheduler):
        """Test work runs on the scheduler's own thread."""
        future = scheduler.submit(lambda: threading.current_thread().name)
        assert future.result(timeout=2) == "test-sync"

    def test_jobs_run_in_submission_order(self, scheduler):
        """Test jobs are serialized in order."""
        calls = []
        for i in range(20):
            scheduler.submit(calls.append, i)
        scheduler.submit(lambda: None).result(timeout=2)
        assert calls == list(range(20))

    def test_call_later_fires(self, scheduler):
        """Test delayed work runs after the delay."""
        fired = threading.Event()
        scheduler.call_later(0.05, fired.set)
        assert fired.wait(timeout=2)

    def test_cancelled_call_later(self, scheduler):
        """Test a cancelled timer never runs."""
        fired = threading.Event()
        task = scheduler.call_later(0.2, fired.set)
        task.cancel()
        assert not fired.wait(timeout=0.4)

    def test_failing_job_does_not_stop_worker(self, scheduler):
        """Test an exception in one job does not kill the thread."""
        failed = scheduler.submit(lambda: 1 / 0)
        with pytest.raises(ZeroDivisionError):
            failed.result(timeout=2)
        assert scheduler.submit(lambda: "alive").result(timeout=2) == "alive"

    def test_stop(self):
        """Test stop ends the worker thread."""
        scheduler = ThreadScheduler()
        scheduler.start()
        assert scheduler.running
        scheduler.stop()
        assert not scheduler.running
