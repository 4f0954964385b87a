"""Network reachability tracking."""

from .reachability import Reachability, ReachabilityTracker, SocketReachabilityMonitor

__all__ = [
    "Reachability",
    "ReachabilityTracker",
    "SocketReachabilityMonitor",
]
