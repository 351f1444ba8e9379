"""Recursive, cycle-safe validation of structured (table) arguments.

The scanner walks a container depth-first and runs every member through
the ValueValidator. Attackers control the shape of what arrives, so the
walk is bounded three ways:

  - depth: entering a container deeper than max_depth fails TOO_DEEP,
    whatever it holds
  - width: a container with more than max_keys members fails
    TOO_MANY_KEYS before any member is looked at
  - cycles: every container's id() goes into the pass's visited set,
    and a container already in the set is not entered again

A revisited container is not a failure: it was (or is being) validated
on another path, so a shared sub-table or a table that contains itself
scans once and passes on its merits.

The visited set lives in a ScanContext created per pass and dropped
when the pass returns, so nothing is retained across calls.
"""
from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field

from rpcguard.domain.kinds import ValueKind, classify
from rpcguard.domain.policy import PolicySet
from rpcguard.domain.violations import PASS, RejectReason, ValidationResult
from rpcguard.validation.values import ValueValidator

MAX_SCAN_DEPTH = 32
MAX_TABLE_KEYS = 1024


@dataclass(slots=True)
class ScanContext:
    """Per-pass scan state: visited container ids and current depth."""
    visited: set[int] = field(default_factory=set)
    depth: int = 0


def _members(container: object) -> Iterator[object]:
    """Keys then values for mappings; just values for everything else."""
    if isinstance(container, dict):
        for key, value in list(container.items()):
            yield key
            yield value
    else:
        yield from list(container)  # type: ignore[call-overload]


class StructuralScanner:
    """Depth-first validator for nested containers.

    Args:
        validator: leaf validator applied to every scalar member.
        max_depth: deepest container nesting accepted (root is depth 1).
        max_keys: most members accepted in one container.
    """

    def __init__(
        self,
        validator: ValueValidator,
        max_depth: int = MAX_SCAN_DEPTH,
        max_keys: int = MAX_TABLE_KEYS,
    ) -> None:
        if max_depth < 1:
            raise ValueError("max_depth must be >= 1")
        if max_keys < 0:
            raise ValueError("max_keys must be >= 0")
        self._validator = validator
        self._max_depth = max_depth
        self._max_keys = max_keys

    @property
    def max_depth(self) -> int:
        return self._max_depth

    @property
    def max_keys(self) -> int:
        return self._max_keys

    def scan(
        self,
        root: object,
        policy: PolicySet,
        context: ScanContext | None = None,
    ) -> ValidationResult:
        """Validate every key and value reachable from ``root``.

        The root itself is not type-checked here; the dispatcher does
        that for top-level arguments. Returns the first failure found.
        """
        if context is None:
            context = ScanContext()
        context.visited.add(id(root))
        return self._scan_container(root, policy, context)

    def _scan_container(
        self, container: object, policy: PolicySet, ctx: ScanContext
    ) -> ValidationResult:
        ctx.depth += 1
        try:
            if ctx.depth > self._max_depth:
                return ValidationResult.fail(
                    RejectReason.TOO_DEEP, f"nesting deeper than {self._max_depth}"
                )
            size = len(container)  # type: ignore[arg-type]
            if size > self._max_keys:
                return ValidationResult.fail(
                    RejectReason.TOO_MANY_KEYS, f"{size} members > {self._max_keys}"
                )
            for member in _members(container):
                result = self._scan_member(member, policy, ctx)
                if not result.passed:
                    return result
            return PASS
        finally:
            ctx.depth -= 1

    def _scan_member(
        self, member: object, policy: PolicySet, ctx: ScanContext
    ) -> ValidationResult:
        kind, tag = classify(member)
        if kind is not ValueKind.TABLE:
            return self._validator.validate(member, policy)

        result = self._validator.check_type(kind, tag, policy)
        if not result.passed:
            return result
        ident = id(member)
        if ident in ctx.visited:
            return PASS
        ctx.visited.add(ident)
        return self._scan_container(member, policy, ctx)
