"""Guard: registration and the shared machinery behind every endpoint.

One Guard owns the pieces all endpoints share: the validator and
scanner, the cooldown table, the violation handler and its log, and
the thread pool external lookups run on. Registering an endpoint
builds a PolicySet from the options, wraps the handler in a
Dispatcher, attaches it, and returns a revocable Connection.

    guard = Guard(text_filter=BlocklistFilter(["badword"]))
    conn = guard.register(
        {"NumRange": {"min": 0, "max": 100}, "CoolDown": 0.25},
        buy_item,
        on_buy_item,
    )
    ...
    conn.disconnect()

Guard is also callable with register's signature, and the module-level
register() goes through a lazily created default Guard for code that
does not want to manage one.

The transport tells the guard when a session ends via
caller_disconnected(), which drops that caller's cooldown entries.
Without it the cooldown table would grow with every caller ever seen.
"""
from __future__ import annotations

import logging
import threading
import time
from collections.abc import Mapping
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable

from rpcguard.concurrency.cooldown import CooldownTracker
from rpcguard.concurrency.violation_log import ViolationLog
from rpcguard.dispatch.dispatcher import Dispatcher
from rpcguard.dispatch.endpoint import RemoteEndpoint
from rpcguard.dispatch.punishment import DEFAULT_MAX_PENDING, ViolationHandler
from rpcguard.domain.policy import ConfigError, PolicySet
from rpcguard.domain.types import Handler, Timestamp
from rpcguard.validation.external import ExternalLookup, buffer_length
from rpcguard.validation.scanner import MAX_SCAN_DEPTH, MAX_TABLE_KEYS, StructuralScanner
from rpcguard.validation.values import ValueValidator

log = logging.getLogger(__name__)

DEFAULT_LOOKUP_TIMEOUT = 2.0


class Connection:
    """Handle for one registration. disconnect() revokes it."""

    def __init__(self, guard: Guard, endpoint: RemoteEndpoint, dispatcher: Dispatcher) -> None:
        self._guard = guard
        self._endpoint = endpoint
        self._dispatcher = dispatcher

    @property
    def endpoint(self) -> RemoteEndpoint:
        return self._endpoint

    @property
    def dispatcher(self) -> Dispatcher:
        return self._dispatcher

    @property
    def policy(self) -> PolicySet:
        return self._dispatcher.policy

    @property
    def connected(self) -> bool:
        return self._dispatcher.connected

    def disconnect(self) -> None:
        """Detach from the endpoint and drop its cooldown entries. Idempotent.

        Runs in full even when the dispatcher was already closed by a
        replacing registration.
        """
        self._dispatcher.close()
        self._endpoint.detach(self._dispatcher)
        self._guard.cooldowns.forget_endpoint(self._dispatcher.key)

    def __repr__(self) -> str:
        state = "connected" if self.connected else "disconnected"
        return f"<Connection {self._endpoint.name} {state}>"


class Guard:
    """Registers endpoints and owns their shared validation state.

    Args:
        text_filter: returns the filtered form of a string; needed by
            policies with FilteringStrings.
        buffer_size_lookup: returns a buffer's (decompressed) size for
            BufferSizeLimit. Defaults to the raw byte length.
        lookup_timeout: seconds allowed for each external lookup before
            failing closed; None calls them inline without a bound.
        num_stripes: lock stripes for the cooldown table (power of 2).
        punish_workers: threads for custom punishment callbacks.
        punish_backlog: most custom punishments queued or running at once.
        violation_log_size: recent violations kept in memory.
        max_depth: deepest table nesting accepted when scanning.
        max_keys: most members accepted in one scanned table.
        clock: monotonic time source for cooldowns.
    """

    def __init__(
        self,
        *,
        text_filter: Callable[[str], str] | None = None,
        buffer_size_lookup: Callable[[Any], int] | None = buffer_length,
        lookup_timeout: float | None = DEFAULT_LOOKUP_TIMEOUT,
        num_stripes: int = 16,
        punish_workers: int = 4,
        punish_backlog: int = DEFAULT_MAX_PENDING,
        violation_log_size: int = 1_000,
        max_depth: int = MAX_SCAN_DEPTH,
        max_keys: int = MAX_TABLE_KEYS,
        clock: Callable[[], Timestamp] = time.monotonic,
    ) -> None:
        self._lookup_pool: ThreadPoolExecutor | None = None
        if lookup_timeout is not None and (text_filter or buffer_size_lookup):
            self._lookup_pool = ThreadPoolExecutor(thread_name_prefix="rpcguard-lookup")

        def _wrap(func, name):
            if func is None:
                return None
            return ExternalLookup(func, name, self._lookup_pool, lookup_timeout)

        self._validator = ValueValidator(
            text_filter=_wrap(text_filter, "text filter"),
            buffer_size=_wrap(buffer_size_lookup, "buffer size lookup"),
        )
        self._scanner = StructuralScanner(self._validator, max_depth, max_keys)
        self._cooldowns = CooldownTracker(num_stripes)
        self._violation_log = ViolationLog(violation_log_size)
        self._punisher = ViolationHandler(
            violation_log=self._violation_log,
            max_workers=punish_workers,
            max_pending=punish_backlog,
        )
        self._clock = clock
        self._connections: list[Connection] = []
        self._lock = threading.Lock()  # protects _connections only

    @property
    def cooldowns(self) -> CooldownTracker:
        return self._cooldowns

    @property
    def violation_log(self) -> ViolationLog:
        return self._violation_log

    @property
    def connections(self) -> list[Connection]:
        with self._lock:
            return [c for c in self._connections if c.connected]

    def register(
        self,
        options: Mapping[str, Any] | PolicySet | None,
        endpoint: RemoteEndpoint,
        handler: Handler,
    ) -> Connection:
        """Validate options, attach a dispatcher for handler, return its handle.

        Raises:
            ConfigError: the options are contradictory or malformed, or
                need a collaborator this guard was built without.
        """
        if not callable(handler):
            raise ConfigError(f"handler for {endpoint.name} is not callable")
        policy = options if isinstance(options, PolicySet) else PolicySet.from_options(options)
        if policy.filter_strings and not self._validator.has_text_filter:
            raise ConfigError(
                f"{endpoint.name}: FilteringStrings needs a Guard built with a text_filter"
            )

        dispatcher = Dispatcher(
            endpoint.name,
            policy,
            handler,
            validator=self._validator,
            scanner=self._scanner,
            cooldowns=self._cooldowns,
            punisher=self._punisher,
            clock=self._clock,
        )
        for replaced in endpoint.attach(dispatcher):
            self._cooldowns.forget_endpoint(replaced.key)
        connection = Connection(self, endpoint, dispatcher)
        with self._lock:
            self._connections = [c for c in self._connections if c.connected]
            self._connections.append(connection)
        log.debug("Registered %r with %s", endpoint, policy)
        return connection

    __call__ = register

    def caller_disconnected(self, caller: Any) -> None:
        """Forget a departed caller's cooldown entries."""
        self._cooldowns.forget_caller(caller)

    def prune_cooldowns(self, max_age: float) -> int:
        """Drop cooldown entries older than max_age seconds."""
        return self._cooldowns.prune(self._clock() - max_age)

    def shutdown(self, wait: bool = True) -> None:
        """Disconnect everything and stop the worker pools."""
        for connection in self.connections:
            connection.disconnect()
        self._punisher.shutdown(wait=wait)
        if self._lookup_pool is not None:
            self._lookup_pool.shutdown(wait=wait)

    def __enter__(self) -> Guard:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.shutdown()


_default_guard: Guard | None = None
_default_lock = threading.Lock()


def default_guard() -> Guard:
    """The process-wide Guard behind the module-level register()."""
    global _default_guard
    with _default_lock:
        if _default_guard is None:
            _default_guard = Guard()
        return _default_guard


def register(
    options: Mapping[str, Any] | PolicySet | None,
    endpoint: RemoteEndpoint,
    handler: Handler,
) -> Connection:
    """Register on the default Guard. See Guard.register."""
    return default_guard().register(options, endpoint, handler)
