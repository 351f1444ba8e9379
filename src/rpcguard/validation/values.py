"""Leaf-level validation of a single value against a PolicySet.

Thread safety: ValueValidator holds no per-call state. The external
lookups it wraps are expected to be safe to call from several threads
at once, which holds for the bundled BlocklistFilter and size lookups.
"""
from __future__ import annotations

import logging
import math

from rpcguard.domain.kinds import ValueKind, classify
from rpcguard.domain.policy import PolicySet
from rpcguard.domain.violations import PASS, RejectReason, ValidationResult
from rpcguard.validation.external import ExternalLookup, LookupFailed

log = logging.getLogger(__name__)


class ValueValidator:
    """Applies number, string, buffer and type rules to one value.

    Args:
        text_filter: wrapped text filter, required by policies that set
            filter_strings.
        buffer_size: wrapped decompressed-size lookup, used by policies
            that set buffer_size_limit.
    """

    def __init__(
        self,
        text_filter: ExternalLookup[str, str] | None = None,
        buffer_size: ExternalLookup[bytes, int] | None = None,
    ) -> None:
        self._text_filter = text_filter
        self._buffer_size = buffer_size

    @property
    def has_text_filter(self) -> bool:
        return self._text_filter is not None

    def validate(self, value: object, policy: PolicySet) -> ValidationResult:
        """Type check, then the kind-specific check. Tables are not walked here."""
        kind, tag = classify(value)
        result = self.check_type(kind, tag, policy)
        if not result.passed:
            return result
        if kind is ValueKind.NUMBER:
            return self.validate_number(value, policy)  # type: ignore[arg-type]
        if kind is ValueKind.STRING:
            return self.validate_string(value, policy)  # type: ignore[arg-type]
        if kind is ValueKind.BUFFER:
            return self.validate_buffer(value, policy)  # type: ignore[arg-type]
        return PASS

    @staticmethod
    def check_type(kind: ValueKind, tag: str, policy: PolicySet) -> ValidationResult:
        if policy.allowed_types is not None and kind.value not in policy.allowed_types:
            return ValidationResult.fail(
                RejectReason.TYPE_NOT_ALLOWED, f"kind {kind.value!r} not allowed"
            )
        if policy.allowed_host_types is not None and tag not in policy.allowed_host_types:
            return ValidationResult.fail(
                RejectReason.TYPE_NOT_ALLOWED, f"type {tag!r} not allowed"
            )
        return PASS

    @staticmethod
    def validate_number(n: float, policy: PolicySet) -> ValidationResult:
        # Non-float reals (Fraction, numpy scalars) compare fine but
        # math.isfinite needs a float.
        try:
            finite = math.isfinite(n)
        except (TypeError, OverflowError):
            finite = True  # huge ints overflow float() but are finite
        if not finite:
            if policy.block_invalid_numbers:
                return ValidationResult.fail(
                    RejectReason.INVALID_NUMBER, f"{n!r} is not a finite number"
                )
            if math.isnan(n):
                # NaN fails every comparison, so range and sign checks
                # cannot say anything about it.
                return PASS

        if policy.number_range is not None and not policy.number_range.contains(n):
            return ValidationResult.fail(
                RejectReason.OUT_OF_RANGE, f"{n!r} outside {policy.number_range}"
            )
        if n < 0 and not policy.allow_negatives:
            return ValidationResult.fail(
                RejectReason.SIGN_NOT_ALLOWED, f"negative {n!r} not allowed"
            )
        if n > 0 and not policy.allow_positives:
            return ValidationResult.fail(
                RejectReason.SIGN_NOT_ALLOWED, f"positive {n!r} not allowed"
            )
        return PASS

    def validate_string(self, s: str, policy: PolicySet) -> ValidationResult:
        rng = policy.string_length_range
        if rng is not None and not rng.contains(len(s)):
            return ValidationResult.fail(
                RejectReason.LENGTH_OUT_OF_RANGE, f"length {len(s)} outside {rng}"
            )
        if policy.filter_strings:
            return self._filter(s)
        return PASS

    def validate_buffer(self, buffer: bytes, policy: PolicySet) -> ValidationResult:
        limit = policy.buffer_size_limit
        if limit is None:
            return PASS
        if self._buffer_size is None:
            log.warning("BufferSizeLimit set but no size lookup configured; rejecting")
            return ValidationResult.fail(
                RejectReason.BUFFER_TOO_LARGE, "no buffer size lookup"
            )
        try:
            size = self._buffer_size(buffer)
        except LookupFailed as exc:
            log.warning("Buffer size lookup failed, rejecting: %s", exc)
            return ValidationResult.fail(RejectReason.BUFFER_TOO_LARGE, str(exc))
        if isinstance(size, bool) or not isinstance(size, (int, float)) or not size <= limit:
            return ValidationResult.fail(
                RejectReason.BUFFER_TOO_LARGE, f"size {size!r} exceeds {limit}"
            )
        return PASS

    def _filter(self, s: str) -> ValidationResult:
        if self._text_filter is None:
            log.warning("FilteringStrings set but no text filter configured; rejecting")
            return ValidationResult.fail(RejectReason.CONTENT_REJECTED, "no text filter")
        try:
            filtered = self._text_filter(s)
        except LookupFailed as exc:
            log.warning("Text filter failed, rejecting: %s", exc)
            return ValidationResult.fail(RejectReason.CONTENT_REJECTED, str(exc))
        if filtered != s:
            return ValidationResult.fail(RejectReason.CONTENT_REJECTED, "text was filtered")
        return PASS
