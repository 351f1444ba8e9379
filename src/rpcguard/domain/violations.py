"""Rejection reasons, validation results and violation records."""
from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any

from rpcguard.domain.types import ArgIndex, EndpointName, Timestamp


class RejectReason(Enum):
    INVALID_NUMBER = auto()
    OUT_OF_RANGE = auto()
    SIGN_NOT_ALLOWED = auto()
    TYPE_NOT_ALLOWED = auto()
    LENGTH_OUT_OF_RANGE = auto()
    CONTENT_REJECTED = auto()
    BUFFER_TOO_LARGE = auto()
    TOO_DEEP = auto()
    TOO_MANY_KEYS = auto()
    THROTTLED = auto()
    ENDPOINT_CLOSED = auto()
    INVALID_CALLER = auto()


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """Outcome of one validation step. ``reason is None`` means it passed."""
    reason: RejectReason | None = None
    detail: str = ""
    arg_index: ArgIndex | None = None

    @property
    def passed(self) -> bool:
        return self.reason is None

    @classmethod
    def fail(cls, reason: RejectReason, detail: str = "") -> ValidationResult:
        return cls(reason=reason, detail=detail)

    def at(self, arg_index: ArgIndex) -> ValidationResult:
        """Same failure, pinned to a top-level argument position."""
        if self.reason is None:
            return self
        return ValidationResult(self.reason, self.detail, arg_index)


PASS = ValidationResult()


@dataclass(frozen=True, slots=True)
class Violation:
    """A detected policy breach, handed to the ViolationHandler."""
    endpoint: EndpointName
    caller: Any
    reason: RejectReason
    arg_index: ArgIndex | None = None
    detail: str = ""
    timestamp: Timestamp = field(default_factory=time.time)


class CallDecision(Enum):
    FORWARDED = auto()
    REJECTED = auto()
    HANDLER_FAILED = auto()

    def is_forwarded(self) -> bool:
        """True when the handler ran, even if it then raised."""
        return self is not CallDecision.REJECTED


@dataclass(slots=True)
class CallOutcome:
    """What happened to one call.

    ``response`` is what a response-expecting call sends back: the
    handler's return value when forwarded, None otherwise.
    """
    decision: CallDecision
    reason: RejectReason | None = None
    arg_index: ArgIndex | None = None
    detail: str = ""
    response: Any = None

    @property
    def accepted(self) -> bool:
        return self.decision is CallDecision.FORWARDED

    @classmethod
    def rejected(cls, result: ValidationResult) -> CallOutcome:
        return cls(
            decision=CallDecision.REJECTED,
            reason=result.reason,
            arg_index=result.arg_index,
            detail=result.detail,
        )

    @classmethod
    def unanswered(cls) -> CallOutcome:
        """Response for a function endpoint with nothing registered."""
        return cls(
            decision=CallDecision.REJECTED,
            reason=RejectReason.ENDPOINT_CLOSED,
            detail="no handler attached",
        )
