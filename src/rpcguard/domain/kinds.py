"""Type classification for incoming argument values.

Every value gets a coarse kind (the closed set below) and a host tag.
The host tag is what an allow-list of host types is matched against:
builtins report their kind name, domain objects report the class
attribute ``__host_type__`` when they define one, else the class name.

    classify(3.5)            -> (ValueKind.NUMBER, "number")
    classify({"a": 1})       -> (ValueKind.TABLE, "table")
    classify(Vector3(0,0,0)) -> (ValueKind.USERDATA, "Vector3")
"""
from __future__ import annotations

import numbers
from enum import Enum

# Containers the structural scanner knows how to walk. Subclasses of
# these are still walked as plain containers.
TABLE_TYPES = (dict, list, tuple, set, frozenset)
BUFFER_TYPES = (bytes, bytearray, memoryview)


class ValueKind(Enum):
    NUMBER = "number"
    STRING = "string"
    BOOLEAN = "boolean"
    TABLE = "table"
    FUNCTION = "function"
    BUFFER = "buffer"
    NIL = "nil"
    USERDATA = "userdata"

    @classmethod
    def names(cls) -> frozenset[str]:
        return frozenset(k.value for k in cls)


def classify_kind(value: object) -> ValueKind:
    """Coarse kind only. bool is checked before numbers (bool is an int)."""
    if value is None:
        return ValueKind.NIL
    if isinstance(value, bool):
        return ValueKind.BOOLEAN
    if isinstance(value, numbers.Real):
        return ValueKind.NUMBER
    if isinstance(value, str):
        return ValueKind.STRING
    if isinstance(value, TABLE_TYPES):
        return ValueKind.TABLE
    if isinstance(value, BUFFER_TYPES):
        return ValueKind.BUFFER
    if hasattr(type(value), "__host_type__"):
        return ValueKind.USERDATA
    if callable(value):
        return ValueKind.FUNCTION
    return ValueKind.USERDATA


def host_tag(value: object, kind: ValueKind | None = None) -> str:
    """Richer tag for allow-lists of host types."""
    if kind is None:
        kind = classify_kind(value)
    if kind is not ValueKind.USERDATA:
        return kind.value
    cls = type(value)
    tag = getattr(cls, "__host_type__", None)
    return tag if isinstance(tag, str) else cls.__name__


def classify(value: object) -> tuple[ValueKind, str]:
    """Return (coarse kind, host tag). Pure, no side effects."""
    kind = classify_kind(value)
    return kind, host_tag(value, kind)
