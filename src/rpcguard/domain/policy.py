"""PolicySet: the per-endpoint validation policy.

A policy is built once, when an endpoint is registered, from a loose
options mapping:

    PolicySet.from_options({
        "NumRange": {"min": 0, "max": 100},
        "StrRange": (1, 32),
        "CoolDown": 0.25,
        "Handling": "Kick",
    })

Normalization happens in __post_init__, so constructing the dataclass
directly with snake_case fields gets the same treatment. After that the
policy is frozen and shared read-only by every call to the endpoint.

Option reference (name -> field, default):
    BlockImpVal      -> block_invalid_numbers   False
    NumRange         -> number_range            None
    StrRange         -> string_length_range     None
    AllowNegatives   -> allow_negatives         True
    AllowPositives   -> allow_positives         True
    AllowedTypes     -> allowed_types           None
    AllowedTypesOf   -> allowed_host_types      None
    FilteringStrings -> filter_strings          False
    CoolDown         -> cooldown                None
    CheckInTables    -> scan_tables             False
    BufferSizeLimit  -> buffer_size_limit       None
    Handling         -> violation_mode          ViolationMode.DEFAULT
    KickMsg          -> kick_message            DEFAULT_KICK_MESSAGE
    CustomPunishment -> custom_punishment       None
"""
from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from rpcguard.domain.kinds import ValueKind
from rpcguard.domain.types import PunishmentCallback

log = logging.getLogger(__name__)

DEFAULT_KICK_MESSAGE = "You have been kicked for sending invalid data to the server."


class ConfigError(ValueError):
    """Raised at registration time for a contradictory or malformed policy."""


class ViolationMode(Enum):
    DEFAULT = "Default"
    KICK = "Kick"

    @classmethod
    def parse(cls, raw: Any) -> ViolationMode:
        if isinstance(raw, cls):
            return raw
        if isinstance(raw, str):
            for mode in cls:
                if mode.value.lower() == raw.strip().lower():
                    return mode
        raise ConfigError(f"Unknown Handling mode: {raw!r}")


@dataclass(frozen=True, slots=True)
class ValueRange:
    """Inclusive [minimum, maximum]. A None bound is open."""
    minimum: float | None = None
    maximum: float | None = None

    def __post_init__(self) -> None:
        for bound in (self.minimum, self.maximum):
            if bound is not None and (
                isinstance(bound, bool)
                or not isinstance(bound, (int, float))
                or math.isnan(bound)
            ):
                raise ConfigError(f"Range bound must be a number, got {bound!r}")
        if (
            self.minimum is not None
            and self.maximum is not None
            and self.minimum > self.maximum
        ):
            raise ConfigError(
                f"Inverted range: min {self.minimum} > max {self.maximum}"
            )

    def contains(self, value: float) -> bool:
        if self.minimum is not None and value < self.minimum:
            return False
        if self.maximum is not None and value > self.maximum:
            return False
        return True

    @classmethod
    def parse(cls, raw: Any) -> ValueRange | None:
        """Accept a ValueRange, {"min": .., "max": ..} or a (min, max) pair."""
        if raw is None or isinstance(raw, cls):
            return raw
        if isinstance(raw, Mapping):
            return cls(raw.get("min"), raw.get("max"))
        if isinstance(raw, (list, tuple)) and len(raw) == 2:
            return cls(raw[0], raw[1])
        raise ConfigError(f"Range must be {{min, max}} or (min, max), got {raw!r}")

    def __str__(self) -> str:
        lo = "-inf" if self.minimum is None else self.minimum
        hi = "inf" if self.maximum is None else self.maximum
        return f"[{lo}, {hi}]"


def _type_set(raw: Any, option: str) -> frozenset[str] | None:
    if raw is None:
        return None
    if isinstance(raw, str):
        return frozenset({raw})
    if not isinstance(raw, Iterable):
        raise ConfigError(f"{option} must be a collection of type names, got {raw!r}")
    names = frozenset(raw)
    bad = [n for n in names if not isinstance(n, str)]
    if bad:
        raise ConfigError(f"{option} entries must be strings, got {bad!r}")
    return names


def _non_negative(raw: Any, option: str) -> float | None:
    if raw is None:
        return None
    if isinstance(raw, bool) or not isinstance(raw, (int, float)) or math.isnan(raw):
        raise ConfigError(f"{option} must be a number, got {raw!r}")
    if raw < 0:
        raise ConfigError(f"{option} must be >= 0, got {raw}")
    return raw


@dataclass(frozen=True, slots=True)
class PolicySet:
    """Immutable, normalized validation policy for one endpoint."""
    block_invalid_numbers: bool = False
    number_range: ValueRange | None = None
    string_length_range: ValueRange | None = None
    allow_negatives: bool = True
    allow_positives: bool = True
    allowed_types: frozenset[str] | None = None
    allowed_host_types: frozenset[str] | None = None
    filter_strings: bool = False
    cooldown: float | None = None
    scan_tables: bool = False
    buffer_size_limit: float | None = None
    violation_mode: ViolationMode = ViolationMode.DEFAULT
    kick_message: str = DEFAULT_KICK_MESSAGE
    custom_punishment: PunishmentCallback | None = None

    def __post_init__(self) -> None:
        # frozen: normalization goes through object.__setattr__
        set_ = object.__setattr__
        set_(self, "number_range", ValueRange.parse(self.number_range))
        set_(self, "string_length_range", ValueRange.parse(self.string_length_range))
        set_(self, "allowed_types", _type_set(self.allowed_types, "AllowedTypes"))
        set_(self, "allowed_host_types", _type_set(self.allowed_host_types, "AllowedTypesOf"))
        set_(self, "cooldown", _non_negative(self.cooldown, "CoolDown"))
        set_(self, "buffer_size_limit", _non_negative(self.buffer_size_limit, "BufferSizeLimit"))
        set_(self, "violation_mode", ViolationMode.parse(self.violation_mode))

        if self.allowed_types is not None:
            unknown = self.allowed_types - ValueKind.names()
            if unknown:
                raise ConfigError(
                    f"AllowedTypes has unknown kinds {sorted(unknown)}; "
                    f"expected any of {sorted(ValueKind.names())}"
                )
        if self.custom_punishment is not None and not callable(self.custom_punishment):
            raise ConfigError("CustomPunishment must be callable")
        if not isinstance(self.kick_message, str):
            raise ConfigError("KickMsg must be a string")

        if not self.allow_negatives and not self.allow_positives:
            log.warning(
                "AllowNegatives and AllowPositives are both false; "
                "resetting both to true"
            )
            set_(self, "allow_negatives", True)
            set_(self, "allow_positives", True)

    @property
    def has_cooldown(self) -> bool:
        return self.cooldown is not None

    @property
    def restricts_types(self) -> bool:
        return self.allowed_types is not None or self.allowed_host_types is not None

    @classmethod
    def from_options(cls, options: Mapping[str, Any] | None = None) -> PolicySet:
        """Build a policy from the documented option names.

        Unknown keys are ignored so newer option sets still load.
        """
        options = dict(options or {})
        kwargs: dict[str, Any] = {}
        for key, value in options.items():
            field_name = OPTION_FIELDS.get(key)
            if field_name is None:
                log.debug("Ignoring unknown policy option %r", key)
                continue
            kwargs[field_name] = value
        for flag in _BOOL_FIELDS:
            if flag in kwargs:
                kwargs[flag] = bool(kwargs[flag])
        return cls(**kwargs)


OPTION_FIELDS: dict[str, str] = {
    "BlockImpVal": "block_invalid_numbers",
    "NumRange": "number_range",
    "StrRange": "string_length_range",
    "AllowNegatives": "allow_negatives",
    "AllowPositives": "allow_positives",
    "AllowedTypes": "allowed_types",
    "AllowedTypesOf": "allowed_host_types",
    "FilteringStrings": "filter_strings",
    "CoolDown": "cooldown",
    "CheckInTables": "scan_tables",
    "BufferSizeLimit": "buffer_size_limit",
    "Handling": "violation_mode",
    "KickMsg": "kick_message",
    "CustomPunishment": "custom_punishment",
}

_BOOL_FIELDS = (
    "block_invalid_numbers",
    "allow_negatives",
    "allow_positives",
    "filter_strings",
    "scan_tables",
)
