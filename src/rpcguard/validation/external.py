"""Bounded calls into external collaborators.

The text filter and the buffer-size lookup belong to the host and may
be slow or broken. ExternalLookup runs them on a shared thread pool
with a timeout and turns every kind of failure into LookupFailed, so
the validator can fail closed without caring what went wrong.

Only the calling thread waits on the timeout; other callers' calls run
on their own threads and are not held up.
"""
from __future__ import annotations

import logging
import zlib
from concurrent.futures import Executor, TimeoutError as FutureTimeout
from typing import Callable, Generic, TypeVar

log = logging.getLogger(__name__)

A = TypeVar("A")
R = TypeVar("R")

# Output cap for zlib_decompressed_size; anything bigger reports the cap + 1.
_ZLIB_SIZE_CAP = 64 * 1024 * 1024
_ZLIB_CHUNK = 64 * 1024


class LookupFailed(Exception):
    """The external collaborator raised, timed out, or returned garbage."""


class ExternalLookup(Generic[A, R]):
    """Wrap an external callable with an optional timeout.

    Args:
        func: the collaborator.
        name: label used in log lines.
        executor: pool to run on when a timeout is set.
        timeout: seconds to wait; None calls inline with no bound.
    """

    def __init__(
        self,
        func: Callable[[A], R],
        name: str,
        executor: Executor | None = None,
        timeout: float | None = None,
    ) -> None:
        if timeout is not None and timeout <= 0:
            raise ValueError("timeout must be positive")
        if timeout is not None and executor is None:
            raise ValueError("a timeout needs an executor to run on")
        self._func = func
        self._name = name
        self._executor = executor
        self._timeout = timeout

    @property
    def name(self) -> str:
        return self._name

    def __call__(self, arg: A) -> R:
        try:
            if self._timeout is None:
                return self._func(arg)
            future = self._executor.submit(self._func, arg)  # type: ignore[union-attr]
            try:
                return future.result(timeout=self._timeout)
            except FutureTimeout:
                future.cancel()
                raise LookupFailed(
                    f"{self._name} timed out after {self._timeout}s"
                ) from None
        except LookupFailed:
            raise
        except Exception as exc:
            raise LookupFailed(f"{self._name} failed: {exc!r}") from exc


def buffer_length(buffer: bytes | bytearray | memoryview) -> int:
    """Default size lookup: the raw byte length."""
    return memoryview(buffer).nbytes


def zlib_decompressed_size(buffer: bytes | bytearray | memoryview) -> int:
    """Size of ``buffer`` after zlib decompression.

    Decompresses in bounded chunks and stops past the cap, so a
    decompression bomb costs at most the cap in memory. Raises
    zlib.error for data that is not a zlib stream.
    """
    d = zlib.decompressobj()
    total = 0
    data = bytes(buffer)
    while data and total <= _ZLIB_SIZE_CAP:
        chunk = d.decompress(data, _ZLIB_CHUNK)
        total += len(chunk)
        data = d.unconsumed_tail
    if total <= _ZLIB_SIZE_CAP:
        total += len(d.flush())
    if not d.eof and total <= _ZLIB_SIZE_CAP:
        raise zlib.error("incomplete or truncated stream")
    return min(total, _ZLIB_SIZE_CAP + 1)
