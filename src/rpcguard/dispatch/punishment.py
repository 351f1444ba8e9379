"""ViolationHandler: what happens to a caller after a rejected call.

Order of effects for every violation:
  1. record it in the ViolationLog
  2. custom punishment, if configured: submitted to a thread pool and
     not waited on; whatever it raises is logged and dropped
  3. KICK mode: caller.kick(kick_message)
  DEFAULT mode stops after 2: the call is simply dropped.

At most max_pending custom punishments are queued or running at once.
Past that, further callbacks are dropped with a warning until the pool
catches up, so a flood of bad calls cannot grow the work queue.

handle() never raises. A broken callback or a caller that cannot be
kicked must not take the dispatch path down with it.
"""
from __future__ import annotations

import logging
import threading
from concurrent.futures import Executor, ThreadPoolExecutor

from rpcguard.concurrency.violation_log import ViolationLog
from rpcguard.domain.policy import PolicySet, ViolationMode
from rpcguard.domain.types import PunishmentCallback
from rpcguard.domain.violations import Violation

log = logging.getLogger(__name__)

DEFAULT_MAX_PENDING = 256


class ViolationHandler:
    """Executes the configured response to a violation.

    Args:
        executor: pool for custom punishment callbacks. One is created
            (and owned) when omitted.
        violation_log: where violations are recorded.
        max_workers: size of the owned pool.
        max_pending: most custom punishments queued or running at once.
    """

    def __init__(
        self,
        executor: Executor | None = None,
        violation_log: ViolationLog | None = None,
        max_workers: int = 4,
        max_pending: int = DEFAULT_MAX_PENDING,
    ) -> None:
        if max_pending < 1:
            raise ValueError("max_pending must be >= 1")
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="rpcguard-punish"
        )
        self._log = violation_log if violation_log is not None else ViolationLog()
        self._slots = threading.BoundedSemaphore(max_pending)
        self._dropped = 0
        self._dropped_lock = threading.Lock()

    @property
    def violation_log(self) -> ViolationLog:
        return self._log

    @property
    def dropped(self) -> int:
        """Custom punishments skipped because the backlog was full."""
        with self._dropped_lock:
            return self._dropped

    def handle(self, violation: Violation, policy: PolicySet) -> None:
        self._log.append(violation)

        if policy.custom_punishment is not None:
            self._submit(policy.custom_punishment, violation)

        if policy.violation_mode is ViolationMode.KICK:
            self._kick(violation, policy.kick_message)

    def _submit(self, callback: PunishmentCallback, violation: Violation) -> None:
        if not self._slots.acquire(blocking=False):
            with self._dropped_lock:
                self._dropped += 1
            log.warning(
                "Dropped custom punishment for %s on %s: backlog full",
                violation.caller, violation.endpoint,
            )
            return
        try:
            self._executor.submit(_run_punishment, callback, violation, self._slots)
        except RuntimeError:
            # executor already shut down
            self._slots.release()
            log.warning(
                "Dropped custom punishment for %s on %s: executor is shut down",
                violation.caller, violation.endpoint,
            )

    @staticmethod
    def _kick(violation: Violation, message: str) -> None:
        kick = getattr(violation.caller, "kick", None)
        if kick is None:
            log.warning("Cannot kick %r: caller has no kick()", violation.caller)
            return
        try:
            kick(message)
        except Exception:
            log.exception("Kicking %r failed", violation.caller)
        else:
            log.info(
                "Kicked %r from %s for %s",
                violation.caller, violation.endpoint, violation.reason.name,
            )

    def shutdown(self, wait: bool = True) -> None:
        """Stop the owned pool. Pending callbacks still run if wait is True."""
        if self._owns_executor:
            self._executor.shutdown(wait=wait)


def _run_punishment(
    callback: PunishmentCallback, violation: Violation, slots: threading.BoundedSemaphore
) -> None:
    try:
        callback(violation.caller, violation.arg_index)
    except Exception:
        log.exception(
            "Custom punishment for %s on %s raised", violation.caller, violation.endpoint
        )
    finally:
        slots.release()
