"""Per-caller, per-endpoint cooldown tracking.

Storage: a StripedMap keyed by caller. Each value is that caller's own
dict of endpoint -> last accepted timestamp. Grouping by caller keeps
check_and_record atomic per (caller, endpoint) under one stripe lock
and makes forgetting a departed caller a single delete.

Only accepted calls move the window. A throttled call leaves the stored
timestamp alone, otherwise a client spamming faster than the cooldown
would never get through at all.

Timestamps come from the caller of check_and_record (the dispatcher
uses time.monotonic), which keeps this class clock-agnostic and lets
tests drive it with a fake clock.
"""
from __future__ import annotations

from typing import Hashable

from rpcguard.concurrency.striped_map import StripedMap
from rpcguard.domain.types import EndpointKey, Timestamp

# Below roughly one 60 Hz frame, timer jitter makes a cooldown meaningless.
MIN_COOLDOWN_RESOLUTION = 1 / 60


class CooldownTracker:
    """Thread-safe last-call table for (caller, endpoint) pairs.

    Args:
        num_stripes: lock stripes for the caller map (power of 2).
    """

    def __init__(self, num_stripes: int = 16) -> None:
        self._entries: StripedMap[Hashable, dict[EndpointKey, Timestamp]] = (
            StripedMap(num_stripes)
        )

    def check_and_record(
        self,
        caller: Hashable,
        endpoint: EndpointKey,
        now: Timestamp,
        cooldown: float | None,
    ) -> bool:
        """Return True if the call is allowed, recording ``now`` if so.

        With no cooldown configured every call is allowed and nothing is
        stored.
        """
        if cooldown is None:
            return True
        window = max(cooldown, MIN_COOLDOWN_RESOLUTION)

        def _check(calls: dict[EndpointKey, Timestamp] | None):
            if calls is None:
                return {endpoint: now}, True
            last = calls.get(endpoint)
            if last is not None and now - last < window:
                return calls, False
            calls[endpoint] = now
            return calls, True

        return self._entries.compute(caller, _check)

    def last_call(self, caller: Hashable, endpoint: EndpointKey) -> Timestamp | None:
        def _peek(calls):
            return calls, (None if calls is None else calls.get(endpoint))

        return self._entries.compute(caller, _peek)

    def discard(self, caller: Hashable, endpoint: EndpointKey) -> bool:
        """Drop a single (caller, endpoint) entry. Returns True if it existed."""
        def _discard(calls):
            if calls is None:
                return None, False
            found = calls.pop(endpoint, None) is not None
            return (calls or None), found

        return self._entries.compute(caller, _discard)

    def forget_caller(self, caller: Hashable) -> bool:
        """Drop every entry for a caller whose session ended."""
        return self._entries.delete(caller)

    def forget_endpoint(self, endpoint: EndpointKey) -> int:
        """Drop one endpoint's entries for all callers. Returns entries removed."""
        removed = 0

        def _drop(_caller, calls):
            nonlocal removed
            if calls.pop(endpoint, None) is not None:
                removed += 1
            return calls or None

        self._entries.for_each(_drop)
        return removed

    def prune(self, older_than: Timestamp) -> int:
        """Drop entries last used before ``older_than``. Returns entries removed.

        Anything older than the longest configured cooldown can no longer
        throttle, so pruning with ``now - max_cooldown`` never changes a
        decision.
        """
        removed = 0

        def _prune(_caller, calls):
            nonlocal removed
            stale = [ep for ep, ts in calls.items() if ts < older_than]
            for ep in stale:
                del calls[ep]
            removed += len(stale)
            return calls or None

        self._entries.for_each(_prune)
        return removed

    def caller_count(self) -> int:
        return self._entries.size()

    def size(self) -> int:
        """Total (caller, endpoint) entries."""
        total = 0

        def _count(_caller, calls):
            nonlocal total
            total += len(calls)
            return calls

        self._entries.for_each(_count)
        return total
