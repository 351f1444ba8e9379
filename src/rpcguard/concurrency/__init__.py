"""Thread-safe shared state for the dispatch path.

  - StripedMap: hash-partitioned locking to reduce contention
  - CooldownTracker: per-caller, per-endpoint last-call table
  - ViolationLog: bounded recent-violation buffer with counters
"""
from rpcguard.concurrency.cooldown import CooldownTracker, MIN_COOLDOWN_RESOLUTION
from rpcguard.concurrency.striped_map import StripedMap
from rpcguard.concurrency.violation_log import ViolationLog

__all__ = [
    "CooldownTracker",
    "MIN_COOLDOWN_RESOLUTION",
    "StripedMap",
    "ViolationLog",
]
