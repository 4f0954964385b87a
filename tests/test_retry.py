"""Tests for the retry scheduler."""

import pytest

from ccsync.core.sync import RetryScheduler, RetryState


class TestRetryScheduler:
    """Test quadratic backoff."""

    def test_initial_state(self):
        """Test a new scheduler is ready."""
        retry = RetryScheduler()
        assert retry.state == RetryState.READY
        assert retry.attempt == 0
        assert retry.delay is None

    def test_quadratic_delays(self):
        """Test attempt n waits n squared seconds."""
        retry = RetryScheduler(max_attempts=5)
        delays = []
        for _ in range(4):
            decision = retry.record_failure()
            delays.append(decision.delay)
            retry.mark_ready()
        assert delays == [1.0, 4.0, 9.0, 16.0]

    def test_gives_up_at_max_attempts(self):
        """Test the failure reaching the limit gives up and resets."""
        retry = RetryScheduler(max_attempts=3)
        assert not retry.record_failure().gave_up
        retry.mark_ready()
        assert not retry.record_failure().gave_up
        retry.mark_ready()

        decision = retry.record_failure()
        assert decision.gave_up
        assert decision.attempt == 3
        assert retry.state == RetryState.GAVE_UP
        assert retry.attempt == 0

    def test_next_trigger_after_giving_up_starts_fresh(self):
        """Test a failure after giving up is attempt one again."""
        retry = RetryScheduler(max_attempts=1)
        assert retry.record_failure().gave_up
        decision = retry.record_failure()
        assert decision.attempt == 1

    def test_waiting_then_ready(self):
        """Test the wait elapsing returns to ready."""
        retry = RetryScheduler()
        retry.record_failure()
        assert retry.state == RetryState.WAITING
        assert retry.delay == 1.0
        retry.mark_ready()
        assert retry.state == RetryState.READY
        assert retry.attempt == 1

    def test_success_resets(self):
        """Test a success clears the attempt count."""
        retry = RetryScheduler()
        retry.record_failure()
        retry.record_success()
        assert retry.attempt == 0
        assert retry.state == RetryState.READY

    def test_invalid_max_attempts(self):
        """Test max_attempts must be positive."""
        with pytest.raises(ValueError):
            RetryScheduler(max_attempts=0)
