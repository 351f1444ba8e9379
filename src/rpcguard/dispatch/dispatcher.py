"""Dispatcher: the long-lived, per-registration entry point for calls.

Per-call flow:
    Received -> CooldownChecked -> Validated -> Forwarded | Rejected

  1. Endpoint revoked?            -> Rejected (ENDPOINT_CLOSED, no punishment)
     Cooldown configured and the caller unhashable?
                                  -> Rejected (INVALID_CALLER, no punishment)
  2. Cooldown configured and the caller is inside the window?
                                  -> Rejected (THROTTLED)
  3. Every top-level argument: type check; scalars through the
     ValueValidator; tables through the StructuralScanner when the
     policy scans tables. First failure -> Rejected
  4. Handler runs with the original, unmodified arguments

A call that passes step 2 moves the cooldown window even if step 3 then
rejects it.

Every rejection goes to the ViolationHandler (except step 1) and comes
back as a CallOutcome, never as an exception. invoke() always produces
a response value, None when the call was rejected, so a
response-expecting caller is never left waiting.

A call still in flight when its endpoint is disconnected is rejected
with ENDPOINT_CLOSED and its cooldown entry dropped, so disconnect()
leaves nothing behind for that endpoint.

Thread safety: the dispatcher's only mutable shared state is the
cooldown table, which is striped and atomic per caller. Any number of
threads may call fire()/invoke() at once.
"""
from __future__ import annotations

import itertools
import logging
import time
from typing import Any, Callable, Sequence

from rpcguard.concurrency.cooldown import CooldownTracker
from rpcguard.dispatch.punishment import ViolationHandler
from rpcguard.domain.kinds import ValueKind, classify
from rpcguard.domain.policy import PolicySet
from rpcguard.domain.types import EndpointName, Handler, Timestamp
from rpcguard.domain.violations import (
    PASS,
    CallDecision,
    CallOutcome,
    RejectReason,
    ValidationResult,
    Violation,
)
from rpcguard.validation.scanner import ScanContext, StructuralScanner
from rpcguard.validation.values import ValueValidator

log = logging.getLogger(__name__)

# Position of the first remote argument in handler(caller, *args).
FIRST_ARG_INDEX = 2

_CLOSED = ValidationResult.fail(RejectReason.ENDPOINT_CLOSED, "endpoint disconnected")
_BAD_CALLER = ValidationResult.fail(
    RejectReason.INVALID_CALLER, "caller is not hashable; cooldowns need a hashable caller"
)
_registration_ids = itertools.count(1)


class Dispatcher:
    """Validates calls for one registered endpoint and forwards the good ones.

    Args:
        endpoint: name of the endpoint, used in logs and violations.
        policy: the endpoint's normalized policy.
        handler: business logic, called as handler(caller, *args).
        validator: leaf validator (shared across dispatchers).
        scanner: structural scanner (shared across dispatchers).
        cooldowns: cooldown table (shared across dispatchers).
        punisher: violation handler (shared across dispatchers).
        clock: monotonic time source.
    """

    def __init__(
        self,
        endpoint: EndpointName,
        policy: PolicySet,
        handler: Handler,
        *,
        validator: ValueValidator,
        scanner: StructuralScanner,
        cooldowns: CooldownTracker,
        punisher: ViolationHandler,
        clock: Callable[[], Timestamp] = time.monotonic,
    ) -> None:
        self._endpoint = endpoint
        self._policy = policy
        self._handler = handler
        self._validator = validator
        self._scanner = scanner
        self._cooldowns = cooldowns
        self._punisher = punisher
        self._clock = clock
        # Cooldown key: two registrations on one endpoint name keep
        # separate windows.
        self._key = (endpoint, next(_registration_ids))
        self._connected = True

    @property
    def endpoint(self) -> EndpointName:
        return self._endpoint

    @property
    def key(self) -> tuple[EndpointName, int]:
        return self._key

    @property
    def policy(self) -> PolicySet:
        return self._policy

    @property
    def connected(self) -> bool:
        return self._connected

    def close(self) -> None:
        """Stop forwarding. Later calls are rejected with ENDPOINT_CLOSED."""
        self._connected = False

    def fire(self, caller: Any, *args: Any) -> CallOutcome:
        """Event-style call: the handler's return value is discarded."""
        outcome = self._process(caller, args)
        outcome.response = None
        return outcome

    def invoke(self, caller: Any, *args: Any) -> CallOutcome:
        """Response-expecting call: outcome.response is what goes back."""
        return self._process(caller, args)

    def check(self, caller: Any, args: Sequence[Any]) -> ValidationResult:
        """Cooldown then argument validation, without running the handler."""
        if self._policy.has_cooldown and not self._cooldowns.check_and_record(
            caller, self._key, self._clock(), self._policy.cooldown
        ):
            return ValidationResult.fail(
                RejectReason.THROTTLED, f"cooldown {self._policy.cooldown}s"
            )
        return self.validate_args(args)

    def validate_args(self, args: Sequence[Any]) -> ValidationResult:
        """Validate top-level arguments against the policy. Pure."""
        policy = self._policy
        for index, arg in enumerate(args, start=FIRST_ARG_INDEX):
            kind, tag = classify(arg)
            if kind is ValueKind.TABLE:
                result = self._validator.check_type(kind, tag, policy)
                if result.passed and policy.scan_tables:
                    result = self._scanner.scan(arg, policy, ScanContext())
            else:
                result = self._validator.validate(arg, policy)
            if not result.passed:
                return result.at(index)
        return PASS

    def _process(self, caller: Any, args: tuple[Any, ...]) -> CallOutcome:
        if not self._connected:
            log.debug("Call to disconnected endpoint %s from %r", self._endpoint, caller)
            return CallOutcome.rejected(_CLOSED)
        if self._policy.has_cooldown and not _hashable(caller):
            log.warning("Unhashable caller %r on %s; rejecting", caller, self._endpoint)
            return CallOutcome.rejected(_BAD_CALLER)

        result = self.check(caller, args)
        if self._policy.has_cooldown and not self._connected:
            # closed while recording: disconnect() may already have
            # forgotten this endpoint's entries
            self._cooldowns.discard(caller, self._key)
            return CallOutcome.rejected(_CLOSED)
        if result.reason is not None:
            self._reject(caller, result.reason, result)
            return CallOutcome.rejected(result)

        try:
            response = self._handler(caller, *args)
        except Exception:
            log.exception("Handler for %s raised", self._endpoint)
            return CallOutcome(decision=CallDecision.HANDLER_FAILED)
        return CallOutcome(decision=CallDecision.FORWARDED, response=response)

    def _reject(self, caller: Any, reason: RejectReason, result: ValidationResult) -> None:
        log.debug(
            "Rejected call to %s from %r: %s at arg %s (%s)",
            self._endpoint, caller, reason.name, result.arg_index, result.detail,
        )
        violation = Violation(
            endpoint=self._endpoint,
            caller=caller,
            reason=reason,
            arg_index=result.arg_index,
            detail=result.detail,
        )
        self._punisher.handle(violation, self._policy)


def _hashable(caller: Any) -> bool:
    try:
        hash(caller)
    except TypeError:
        return False
    return True
