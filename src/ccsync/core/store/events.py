"""Fan-out of "local configuration changed" events."""

import logging
import threading
from typing import Callable, List

logger = logging.getLogger(__name__)

ChangeObserver = Callable[[], None]


class ChangeNotificationBus:
    """Delivers a payload-less change event to every subscriber.

    Observers re-read the full configuration themselves.
    """

    def __init__(self) -> None:
        self._observers: List[ChangeObserver] = []
        self._lock = threading.Lock()

    def subscribe(self, observer: ChangeObserver) -> Callable[[], None]:
        """Register an observer.

        Returns:
            Callable that unsubscribes the observer
        """
        with self._lock:
            self._observers.append(observer)

        def unsubscribe() -> None:
            with self._lock:
                if observer in self._observers:
                    self._observers.remove(observer)

        return unsubscribe

    def publish(self) -> None:
        """Notify all observers of a local configuration change."""
        with self._lock:
            observers = list(self._observers)
        logger.debug("Publishing local change to %d observer(s)", len(observers))
        for observer in observers:
            observer()

    @property
    def observer_count(self) -> int:
        with self._lock:
            return len(self._observers)
