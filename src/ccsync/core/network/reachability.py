"""Network reachability tracking.

The tracker turns a level signal ("is the network reachable right now",
possibly repeated with the same value) into an edge event fired only when the
network comes back after being unreachable. The sync controller reads the
current level at its decision points and reacts to the edge by pushing.
"""

import logging
import socket
import threading
from enum import Enum
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)

BackOnlineListener = Callable[[], None]


class Reachability(str, Enum):
    """Network reachability states."""

    ONLINE = "online"
    OFFLINE = "offline"


class ReachabilityTracker:
    """Online/offline state machine with an ``Offline -> Online`` edge event.

    Starts ``ONLINE`` until the first update arrives.
    """

    def __init__(self, initial: Reachability = Reachability.ONLINE):
        self._state = initial
        self._lock = threading.Lock()
        self._listeners: List[BackOnlineListener] = []

    @property
    def state(self) -> Reachability:
        with self._lock:
            return self._state

    @property
    def is_online(self) -> bool:
        return self.state == Reachability.ONLINE

    def add_back_online_listener(
        self, listener: BackOnlineListener
    ) -> Callable[[], None]:
        """Register a callback for the ``Offline -> Online`` transition.

        Args:
            listener: Callback without arguments

        Returns:
            Callable that removes the listener
        """
        with self._lock:
            self._listeners.append(listener)

        def remove() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return remove

    def update(self, is_reachable: bool) -> bool:
        """Feed a reachability reading.

        Args:
            is_reachable: Whether the network is currently reachable

        Returns:
            True if this reading was an ``Offline -> Online`` edge
        """
        new_state = Reachability.ONLINE if is_reachable else Reachability.OFFLINE
        with self._lock:
            previous = self._state
            if previous == new_state:
                return False
            self._state = new_state
            listeners = list(self._listeners)

        logger.info("Network reachability changed: %s -> %s", previous.value, new_state.value)

        if new_state != Reachability.ONLINE:
            return False

        for listener in listeners:
            listener()
        return True


class SocketReachabilityMonitor:
    """Background thread probing a TCP endpoint and feeding a tracker."""

    def __init__(
        self,
        tracker: ReachabilityTracker,
        host: str,
        port: int = 443,
        interval: float = 30.0,
        timeout: float = 5.0,
    ):
        """Initialize monitor.

        Args:
            tracker: Tracker receiving readings
            host: Probe host name or address
            port: Probe TCP port
            interval: Seconds between probes
            timeout: TCP connect timeout in seconds
        """
        self.tracker = tracker
        self.host = host
        self.port = port
        self.interval = interval
        self.timeout = timeout
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def probe(self) -> bool:
        """Try a TCP connect to the probe endpoint."""
        try:
            with socket.create_connection((self.host, self.port), timeout=self.timeout):
                return True
        except OSError as e:
            logger.debug("Reachability probe to %s:%d failed: %s", self.host, self.port, e)
            return False

    def check_now(self) -> bool:
        """Probe once and feed the result to the tracker."""
        reachable = self.probe()
        self.tracker.update(reachable)
        return reachable

    def start(self) -> None:
        """Start probing in a daemon thread."""
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._run, name="ccsync-reachability", daemon=True
        )
        self._thread.start()
        logger.info(
            "Reachability monitor probing %s:%d every %.0fs",
            self.host,
            self.port,
            self.interval,
        )

    def stop(self, timeout: Optional[float] = None) -> None:
        """Stop the probe thread."""
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def _run(self) -> None:
        while not self._stop.is_set():
            self.check_now()
            self._stop.wait(self.interval)
