"""rpcguard-lite: argument validation and abuse mitigation for RPC endpoints.

    from rpcguard import Guard, RemoteEndpoint, EndpointKind

    guard = Guard()
    buy = RemoteEndpoint("BuyItem", EndpointKind.FUNCTION)
    guard.register({"NumRange": {"min": 0, "max": 100}}, buy, on_buy)
    buy.invoke(session, 50)
"""
from rpcguard.dispatch import (
    AsyncDispatcher,
    Connection,
    Dispatcher,
    EndpointKind,
    Guard,
    RemoteEndpoint,
    register,
)
from rpcguard.domain import (
    CallDecision,
    CallOutcome,
    ConfigError,
    PolicySet,
    RejectReason,
    Session,
    ViolationMode,
)
from rpcguard.strings import BlocklistFilter

__all__ = [
    "AsyncDispatcher",
    "Connection",
    "Dispatcher",
    "EndpointKind",
    "Guard",
    "RemoteEndpoint",
    "register",
    "CallDecision",
    "CallOutcome",
    "ConfigError",
    "PolicySet",
    "RejectReason",
    "Session",
    "ViolationMode",
    "BlocklistFilter",
]
