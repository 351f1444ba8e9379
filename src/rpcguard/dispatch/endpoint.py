"""In-memory remote endpoints: the seam where a transport delivers calls.

A real transport decodes a call off the wire, works out which session
sent it, and hands (session, *args) to the endpoint. RemoteEndpoint is
that hand-off point without the wire, used by the CLI and tests and as
the shape a real transport adapter should follow.

Two kinds, as in most RPC layers:
  EVENT     fire-and-forget; any number of registrations, each
            dispatched independently
  FUNCTION  request/response; exactly one registration answers, and a
            later registration replaces the earlier one
"""
from __future__ import annotations

import logging
import threading
from enum import Enum, auto
from typing import Any

from rpcguard.dispatch.dispatcher import Dispatcher
from rpcguard.domain.types import EndpointName
from rpcguard.domain.violations import CallOutcome

log = logging.getLogger(__name__)


class EndpointKind(Enum):
    EVENT = auto()
    FUNCTION = auto()


class RemoteEndpoint:
    """A named endpoint that dispatchers attach to.

    Args:
        name: endpoint name, unique per application.
        kind: EVENT (default) or FUNCTION.
    """

    def __init__(self, name: EndpointName, kind: EndpointKind = EndpointKind.EVENT) -> None:
        if not name:
            raise ValueError("endpoint name must be non-empty")
        self._name = name
        self._kind = kind
        self._dispatchers: list[Dispatcher] = []
        self._lock = threading.Lock()

    @property
    def name(self) -> EndpointName:
        return self._name

    @property
    def kind(self) -> EndpointKind:
        return self._kind

    @property
    def expects_response(self) -> bool:
        return self._kind is EndpointKind.FUNCTION

    @property
    def listener_count(self) -> int:
        with self._lock:
            return len(self._dispatchers)

    def attach(self, dispatcher: Dispatcher) -> list[Dispatcher]:
        """Attach a dispatcher. Returns the dispatchers it replaced, already closed."""
        replaced: list[Dispatcher] = []
        with self._lock:
            if self._kind is EndpointKind.FUNCTION and self._dispatchers:
                log.warning("Replacing existing handler on function %s", self._name)
                replaced = self._dispatchers
                for old in replaced:
                    old.close()
                self._dispatchers = []
            # copy-on-write: fire() iterates a snapshot without the lock
            self._dispatchers = self._dispatchers + [dispatcher]
        return replaced

    def detach(self, dispatcher: Dispatcher) -> bool:
        """Returns True if the dispatcher was attached."""
        with self._lock:
            if dispatcher not in self._dispatchers:
                return False
            self._dispatchers = [d for d in self._dispatchers if d is not dispatcher]
            return True

    def fire(self, caller: Any, *args: Any) -> list[CallOutcome]:
        """Deliver an event to every attached dispatcher."""
        if self._kind is not EndpointKind.EVENT:
            raise TypeError(f"{self._name} is a function endpoint; use invoke()")
        with self._lock:
            dispatchers = self._dispatchers
        return [d.fire(caller, *args) for d in dispatchers]

    def invoke(self, caller: Any, *args: Any) -> Any:
        """Deliver a request and return the response value.

        With nothing attached the response is None; the caller still
        gets an answer.
        """
        return self.invoke_outcome(caller, *args).response

    def invoke_outcome(self, caller: Any, *args: Any) -> CallOutcome:
        if self._kind is not EndpointKind.FUNCTION:
            raise TypeError(f"{self._name} is an event endpoint; use fire()")
        with self._lock:
            dispatcher = self._dispatchers[0] if self._dispatchers else None
        if dispatcher is None:
            log.debug("Invoke on %s with no handler attached", self._name)
            return CallOutcome.unanswered()
        return dispatcher.invoke(caller, *args)

    def __repr__(self) -> str:
        return f"RemoteEndpoint({self._name!r}, {self._kind.name})"
