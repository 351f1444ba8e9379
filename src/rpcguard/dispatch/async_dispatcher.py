"""Async front for a Dispatcher.

Validation is synchronous CPU work, but the external text filter and
buffer-size lookups it may call can block for up to their timeout.
Running each call in the loop's executor keeps one slow lookup from
stalling every other coroutine on the event loop.

The wrapped Dispatcher is already thread-safe, so concurrent awaits on
the same AsyncDispatcher need no extra locking. Cooldown atomicity
still holds: two racing calls from one caller resolve to one accepted
call inside the window.
"""
from __future__ import annotations

import asyncio
import functools
from concurrent.futures import Executor
from typing import Any

from rpcguard.dispatch.dispatcher import Dispatcher
from rpcguard.domain.violations import CallOutcome


class AsyncDispatcher:
    """Await-able fire()/invoke() over a Dispatcher.

    Args:
        dispatcher: the synchronous dispatcher to run.
        executor: where calls run (default: the loop's default executor).
    """

    def __init__(self, dispatcher: Dispatcher, executor: Executor | None = None) -> None:
        self._dispatcher = dispatcher
        self._executor = executor

    @property
    def dispatcher(self) -> Dispatcher:
        return self._dispatcher

    async def fire(self, caller: Any, *args: Any) -> CallOutcome:
        return await self._run(self._dispatcher.fire, caller, args)

    async def invoke(self, caller: Any, *args: Any) -> CallOutcome:
        return await self._run(self._dispatcher.invoke, caller, args)

    async def _run(self, method, caller: Any, args: tuple[Any, ...]) -> CallOutcome:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            self._executor, functools.partial(method, caller, *args)
        )
