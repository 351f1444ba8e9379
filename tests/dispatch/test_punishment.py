"""Tests for the ViolationHandler: kick, custom callbacks, isolation."""
from __future__ import annotations

import logging
import threading
import time

import pytest

from rpcguard.concurrency.violation_log import ViolationLog
from rpcguard.dispatch.punishment import ViolationHandler
from rpcguard.domain.policy import PolicySet, ViolationMode
from rpcguard.domain.session import Session, SessionStatus
from rpcguard.domain.violations import RejectReason, Violation


def _violation(caller, arg_index=2):
    return Violation(
        endpoint="ep", caller=caller, reason=RejectReason.OUT_OF_RANGE, arg_index=arg_index
    )


def test_default_mode_only_records():
    handler = ViolationHandler()
    s = Session.create("p")
    try:
        handler.handle(_violation(s), PolicySet())
        assert s.status is SessionStatus.CONNECTED
        assert handler.violation_log.total == 1
    finally:
        handler.shutdown()


def test_kick_mode_kicks_with_message():
    handler = ViolationHandler()
    s = Session.create("p")
    try:
        handler.handle(_violation(s), PolicySet(violation_mode=ViolationMode.KICK, kick_message="out"))
        assert s.status is SessionStatus.KICKED
        assert s.kick_message == "out"
    finally:
        handler.shutdown()


def test_custom_punishment_gets_caller_and_index():
    got = []
    done = threading.Event()

    def punish(caller, index):
        got.append((caller, index))
        done.set()

    handler = ViolationHandler()
    s = Session.create("p")
    try:
        handler.handle(_violation(s, arg_index=3), PolicySet(custom_punishment=punish))
        assert done.wait(2.0)
        assert got == [(s, 3)]
    finally:
        handler.shutdown()


def test_custom_punishment_does_not_block_handle():
    release = threading.Event()

    def slow(caller, index):
        release.wait(2.0)

    handler = ViolationHandler()
    try:
        start = time.perf_counter()
        handler.handle(_violation(object()), PolicySet(custom_punishment=slow))
        assert time.perf_counter() - start < 0.5
    finally:
        release.set()
        handler.shutdown()


def test_failing_custom_punishment_is_logged(caplog):
    def broken(caller, index):
        raise ValueError("oops")

    handler = ViolationHandler()
    with caplog.at_level(logging.ERROR, logger="rpcguard.dispatch.punishment"):
        handler.handle(_violation(object()), PolicySet(custom_punishment=broken))
        handler.shutdown(wait=True)
    assert any("Custom punishment" in r.getMessage() for r in caplog.records)


def test_custom_and_kick_both_apply():
    done = threading.Event()
    handler = ViolationHandler()
    s = Session.create("p")
    policy = PolicySet(
        violation_mode=ViolationMode.KICK, custom_punishment=lambda c, i: done.set()
    )
    try:
        handler.handle(_violation(s), policy)
        assert done.wait(2.0)
        assert s.status is SessionStatus.KICKED
    finally:
        handler.shutdown()


def test_kick_failure_swallowed(caplog):
    class Unkickable:
        def kick(self, message):
            raise RuntimeError("transport gone")

    handler = ViolationHandler()
    try:
        with caplog.at_level(logging.ERROR, logger="rpcguard.dispatch.punishment"):
            handler.handle(_violation(Unkickable()), PolicySet(violation_mode="Kick"))
        assert any("Kicking" in r.getMessage() for r in caplog.records)
    finally:
        handler.shutdown()


def test_caller_without_kick_is_tolerated():
    handler = ViolationHandler()
    try:
        handler.handle(_violation("just-a-string"), PolicySet(violation_mode="Kick"))
    finally:
        handler.shutdown()


def test_after_shutdown_callbacks_dropped_not_raised():
    handler = ViolationHandler()
    handler.shutdown()
    handler.handle(_violation(object()), PolicySet(custom_punishment=lambda c, i: None))


def test_shared_violation_log():
    log = ViolationLog(max_entries=3)
    handler = ViolationHandler(violation_log=log)
    try:
        handler.handle(_violation(object()), PolicySet())
        assert log.total == 1
        assert handler.violation_log is log
    finally:
        handler.shutdown()


def test_backlog_is_capped():
    release = threading.Event()
    calls = []

    def blocking(caller, index):
        calls.append(index)
        release.wait(2.0)

    handler = ViolationHandler(max_workers=1, max_pending=2)
    policy = PolicySet(custom_punishment=blocking)
    try:
        for _ in range(500):
            handler.handle(_violation(object()), policy)
        assert handler.dropped == 498
        assert handler.violation_log.total == 500
    finally:
        release.set()
        handler.shutdown(wait=True)
    assert len(calls) == 2


def test_slots_freed_after_callbacks_finish():
    done = threading.Event()
    handler = ViolationHandler(max_workers=1, max_pending=1)
    policy = PolicySet(custom_punishment=lambda c, i: done.set())
    try:
        for _ in range(3):
            handler.handle(_violation(object()), policy)
            assert done.wait(2.0)
            done.clear()
            time.sleep(0.1)  # slot is released right after the callback returns
        assert handler.dropped == 0
    finally:
        handler.shutdown()


def test_max_pending_must_be_positive():
    with pytest.raises(ValueError):
        ViolationHandler(max_pending=0)
