"""Bounded in-memory record of recent violations.

Appends come from every thread that rejects a call, so the hot path is
a single deque.append() on a deque with maxlen: O(1), atomic under
CPython, and old entries fall off the left end on their own. Memory
stays flat however hostile the traffic gets.

Per-reason counters are totals since startup and are not bounded by
maxlen; they sit behind a small lock.
"""
from __future__ import annotations

import threading
from collections import Counter, deque

from rpcguard.domain.violations import RejectReason, Violation


class ViolationLog:
    """Recent violations plus running per-reason totals.

    Args:
        max_entries: how many recent violations to keep (default 1000).
    """

    def __init__(self, max_entries: int = 1_000) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be >= 1")
        self._recent: deque[Violation] = deque(maxlen=max_entries)
        self._counts: Counter[RejectReason] = Counter()
        self._lock = threading.Lock()  # protects _counts only

    def append(self, violation: Violation) -> None:
        self._recent.append(violation)
        with self._lock:
            self._counts[violation.reason] += 1

    def recent(self, limit: int | None = None) -> list[Violation]:
        """Newest last. ``limit`` keeps only the newest N."""
        snapshot = list(self._recent)
        if limit is not None:
            snapshot = snapshot[-limit:] if limit > 0 else []
        return snapshot

    def for_caller(self, caller: object) -> list[Violation]:
        return [v for v in list(self._recent) if v.caller is caller]

    def counts(self) -> dict[RejectReason, int]:
        with self._lock:
            return dict(self._counts)

    @property
    def total(self) -> int:
        with self._lock:
            return sum(self._counts.values())

    def __len__(self) -> int:
        return len(self._recent)
