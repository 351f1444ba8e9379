"""Domain model for rpcguard-lite.

Re-exports the public types for convenient access:
    from rpcguard.domain import PolicySet, RejectReason, Session
"""
from rpcguard.domain.kinds import ValueKind, classify, classify_kind, host_tag
from rpcguard.domain.policy import (
    DEFAULT_KICK_MESSAGE,
    ConfigError,
    PolicySet,
    ValueRange,
    ViolationMode,
)
from rpcguard.domain.session import (
    InvalidTransition,
    Session,
    SessionStatus,
    VALID_TRANSITIONS,
)
from rpcguard.domain.types import ArgIndex, CallerId, EndpointKey, EndpointName, Timestamp
from rpcguard.domain.violations import (
    PASS,
    CallDecision,
    CallOutcome,
    RejectReason,
    ValidationResult,
    Violation,
)

__all__ = [
    "ValueKind",
    "classify",
    "classify_kind",
    "host_tag",
    "DEFAULT_KICK_MESSAGE",
    "ConfigError",
    "PolicySet",
    "ValueRange",
    "ViolationMode",
    "InvalidTransition",
    "Session",
    "SessionStatus",
    "VALID_TRANSITIONS",
    "ArgIndex",
    "CallerId",
    "EndpointKey",
    "EndpointName",
    "Timestamp",
    "PASS",
    "CallDecision",
    "CallOutcome",
    "RejectReason",
    "ValidationResult",
    "Violation",
]
