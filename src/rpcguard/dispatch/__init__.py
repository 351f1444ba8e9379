"""Call dispatch: registration, per-endpoint dispatchers, punishment.

A Guard registers handlers on RemoteEndpoints. Each registration gets a
Dispatcher that checks cooldowns and arguments before the handler runs
and hands violations to the ViolationHandler.
"""
from rpcguard.dispatch.async_dispatcher import AsyncDispatcher
from rpcguard.dispatch.dispatcher import FIRST_ARG_INDEX, Dispatcher
from rpcguard.dispatch.endpoint import EndpointKind, RemoteEndpoint
from rpcguard.dispatch.guard import Connection, Guard, default_guard, register
from rpcguard.dispatch.punishment import ViolationHandler

__all__ = [
    "AsyncDispatcher",
    "FIRST_ARG_INDEX",
    "Dispatcher",
    "EndpointKind",
    "RemoteEndpoint",
    "Connection",
    "Guard",
    "default_guard",
    "register",
    "ViolationHandler",
]
