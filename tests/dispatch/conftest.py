"""Shared fixtures for dispatch tests.

Cooldown tests drive a FakeClock instead of sleeping, so windows are
exact and the suite stays fast.
"""
from __future__ import annotations

import pytest

from rpcguard.dispatch.endpoint import EndpointKind, RemoteEndpoint
from rpcguard.dispatch.guard import Guard
from rpcguard.domain.session import Session
from rpcguard.strings.text_filter import BlocklistFilter


class FakeClock:
    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingHandler:
    """Handler that records every call and echoes its arguments back."""

    def __init__(self) -> None:
        self.calls: list[tuple] = []

    def __call__(self, caller, *args):
        self.calls.append((caller, *args))
        return ("ok", *args)


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def guard(clock):
    g = Guard(text_filter=BlocklistFilter(["badword"]), clock=clock)
    yield g
    g.shutdown()


@pytest.fixture()
def player() -> Session:
    return Session.create("player")


@pytest.fixture()
def handler() -> RecordingHandler:
    return RecordingHandler()


@pytest.fixture()
def function_endpoint() -> RemoteEndpoint:
    return RemoteEndpoint("BuyItem", EndpointKind.FUNCTION)


@pytest.fixture()
def event_endpoint() -> RemoteEndpoint:
    return RemoteEndpoint("Chat", EndpointKind.EVENT)
