"""Striped hash map: distribute lock contention across N stripes.

Instead of one lock for the entire dict, we use N locks. Each key maps
to a stripe via: stripe_index = hash(key) & (N - 1). Threads only block
each other when their keys land on the same stripe, so unrelated
callers proceed in parallel.

Plain mutexes rather than read-write locks: the main user, the
cooldown tracker, does a read-modify-write on every call, so there is
no read-mostly traffic for a shared read mode to help with.

The power-of-two requirement on num_stripes lets us use a bitmask
instead of modulo for stripe selection.
"""
from __future__ import annotations

import threading
from typing import Callable, Generic, Hashable, TypeVar

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")
R = TypeVar("R")


class StripedMap(Generic[K, V]):
    """Thread-safe hash map with striped locks.

    Args:
        num_stripes: Number of lock stripes (default 16, must be power of 2).
    """

    def __init__(self, num_stripes: int = 16) -> None:
        if num_stripes <= 0 or (num_stripes & (num_stripes - 1)) != 0:
            raise ValueError("num_stripes must be a positive power of 2")
        self._num_stripes = num_stripes
        self._stripes: list[dict[K, V]] = [{} for _ in range(num_stripes)]
        self._locks: list[threading.Lock] = [
            threading.Lock() for _ in range(num_stripes)
        ]
        self._mask = num_stripes - 1

    @property
    def num_stripes(self) -> int:
        return self._num_stripes

    def get(self, key: K) -> V | None:
        idx = self._stripe_index(key)
        with self._locks[idx]:
            return self._stripes[idx].get(key)

    def put(self, key: K, value: V) -> None:
        idx = self._stripe_index(key)
        with self._locks[idx]:
            self._stripes[idx][key] = value

    def delete(self, key: K) -> bool:
        """Returns True if key existed."""
        idx = self._stripe_index(key)
        with self._locks[idx]:
            return self._stripes[idx].pop(key, None) is not None

    def compute(self, key: K, func: Callable[[V | None], tuple[V | None, R]]) -> R:
        """Atomic read-modify-write on one key.

        func receives the current value (None if absent) and returns
        (new_value, result). A new_value of None removes the key. The
        stripe lock is held for the whole call, so no other thread can
        interleave between the read and the write. func must not touch
        this map.
        """
        idx = self._stripe_index(key)
        with self._locks[idx]:
            stripe = self._stripes[idx]
            new_val, result = func(stripe.get(key))
            if new_val is None:
                stripe.pop(key, None)
            else:
                stripe[key] = new_val
            return result

    def for_each(self, func: Callable[[K, V], V | None]) -> int:
        """Apply func to every entry, one stripe at a time.

        func returns the replacement value, or None to drop the entry.
        Returns the number of entries dropped. Like size(), this is not a
        point-in-time snapshot across stripes.
        """
        dropped = 0
        for i in range(self._num_stripes):
            with self._locks[i]:
                stripe = self._stripes[i]
                for key in list(stripe):
                    new_val = func(key, stripe[key])
                    if new_val is None:
                        del stripe[key]
                        dropped += 1
                    else:
                        stripe[key] = new_val
        return dropped

    def size(self) -> int:
        """Total entries across all stripes (approximate under writes)."""
        total = 0
        for i in range(self._num_stripes):
            with self._locks[i]:
                total += len(self._stripes[i])
        return total

    def keys(self) -> list[K]:
        """Snapshot of all keys. Same caveat as size(): not atomic."""
        result: list[K] = []
        for i in range(self._num_stripes):
            with self._locks[i]:
                result.extend(self._stripes[i].keys())
        return result

    def _stripe_index(self, key: K) -> int:
        return hash(key) & self._mask
