"""Backoff state machine for failed pushes."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 3


class RetryState(str, Enum):
    """States of the retry scheduler."""

    READY = "ready"
    WAITING = "waiting"
    GAVE_UP = "gave_up"


@dataclass(frozen=True)
class RetryDecision:
    """What to do after a failed push."""

    attempt: int
    delay: Optional[float] = None

    @property
    def gave_up(self) -> bool:
        return self.delay is None


class RetryScheduler:
    """Quadratic backoff: attempt ``n`` waits ``n ** 2`` seconds.

    The attempt that reaches ``max_attempts`` gives up instead of waiting and
    resets the counter, so the next trigger starts fresh.
    """

    def __init__(self, max_attempts: int = DEFAULT_MAX_ATTEMPTS):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.attempt = 0
        self.state = RetryState.READY
        self.delay: Optional[float] = None

    def record_failure(self) -> RetryDecision:
        """Advance after a failed push.

        Returns:
            RetryDecision with the wait before the next attempt, or with no
            delay when giving up
        """
        self.attempt += 1
        attempt = self.attempt

        if attempt >= self.max_attempts:
            self.state = RetryState.GAVE_UP
            self.delay = None
            self.attempt = 0
            logger.debug("Giving up after %d attempts", attempt)
            return RetryDecision(attempt=attempt)

        self.state = RetryState.WAITING
        self.delay = float(attempt * attempt)
        return RetryDecision(attempt=attempt, delay=self.delay)

    def mark_ready(self) -> None:
        """The backoff wait elapsed; the next push may run."""
        if self.state == RetryState.WAITING:
            self.state = RetryState.READY
            self.delay = None

    def record_success(self) -> None:
        """A push succeeded; forget earlier failures."""
        self.reset()

    def reset(self) -> None:
        """Return to ``READY`` with no recorded attempts."""
        self.attempt = 0
        self.state = RetryState.READY
        self.delay = None
