"""Tests for the bounded violation log."""
from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

import pytest

from rpcguard.concurrency.violation_log import ViolationLog
from rpcguard.domain.violations import RejectReason, Violation


def _v(caller="p1", reason=RejectReason.OUT_OF_RANGE):
    return Violation(endpoint="ep", caller=caller, reason=reason)


def test_append_and_recent():
    log = ViolationLog(max_entries=10)
    log.append(_v())
    log.append(_v(reason=RejectReason.THROTTLED))
    assert len(log) == 2
    assert [v.reason for v in log.recent()] == [
        RejectReason.OUT_OF_RANGE,
        RejectReason.THROTTLED,
    ]
    assert log.recent(limit=1)[0].reason is RejectReason.THROTTLED
    assert log.recent(limit=0) == []


def test_bounded_but_counts_keep_totals():
    log = ViolationLog(max_entries=5)
    for _ in range(20):
        log.append(_v())
    assert len(log) == 5
    assert log.total == 20
    assert log.counts() == {RejectReason.OUT_OF_RANGE: 20}


def test_for_caller():
    a, b = object(), object()
    log = ViolationLog()
    log.append(_v(caller=a))
    log.append(_v(caller=b))
    log.append(_v(caller=a))
    assert len(log.for_caller(a)) == 2


def test_concurrent_appends_counted():
    log = ViolationLog(max_entries=100)

    def worker(_):
        for _ in range(500):
            log.append(_v())

    with ThreadPoolExecutor(max_workers=8) as pool:
        list(pool.map(worker, range(8)))

    assert log.total == 4000
    assert len(log) == 100


def test_invalid_size():
    with pytest.raises(ValueError):
        ViolationLog(max_entries=0)
