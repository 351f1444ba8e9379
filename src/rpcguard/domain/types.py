"""Shared type aliases and constants used across the domain."""
from __future__ import annotations

from typing import Any, Callable, Hashable, TypeAlias

CallerId: TypeAlias = Hashable
EndpointName: TypeAlias = str
EndpointKey: TypeAlias = Hashable  # one per registration, see Dispatcher.key
Timestamp: TypeAlias = float  # time.monotonic() seconds
ArgIndex: TypeAlias = int     # 1-based; the caller occupies position 1

Handler: TypeAlias = Callable[..., Any]
PunishmentCallback: TypeAlias = Callable[[Any, "int | None"], Any]
