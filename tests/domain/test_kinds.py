"""Tests for value classification."""
from fractions import Fraction

import pytest

from rpcguard.domain.kinds import ValueKind, classify, classify_kind, host_tag


class Vector3:
    __host_type__ = "Vector3"

    def __init__(self, x, y, z):
        self.x, self.y, self.z = x, y, z


class Opaque:
    pass


@pytest.mark.parametrize(
    "value, kind",
    [
        (1, ValueKind.NUMBER),
        (1.5, ValueKind.NUMBER),
        (float("nan"), ValueKind.NUMBER),
        (Fraction(1, 3), ValueKind.NUMBER),
        (True, ValueKind.BOOLEAN),
        ("x", ValueKind.STRING),
        ({"a": 1}, ValueKind.TABLE),
        ([1, 2], ValueKind.TABLE),
        ((1,), ValueKind.TABLE),
        ({1}, ValueKind.TABLE),
        (b"\x00", ValueKind.BUFFER),
        (bytearray(2), ValueKind.BUFFER),
        (None, ValueKind.NIL),
        (len, ValueKind.FUNCTION),
        (lambda: None, ValueKind.FUNCTION),
        (Opaque(), ValueKind.USERDATA),
        (Vector3(0, 0, 0), ValueKind.USERDATA),
    ],
)
def test_classify_kind(value, kind):
    assert classify_kind(value) is kind


def test_bool_is_not_a_number():
    assert classify(False) == (ValueKind.BOOLEAN, "boolean")


def test_builtin_tags_are_kind_names():
    assert classify(3) == (ValueKind.NUMBER, "number")
    assert classify("s") == (ValueKind.STRING, "string")
    assert classify([]) == (ValueKind.TABLE, "table")


def test_host_tag_prefers_declared_host_type():
    assert host_tag(Vector3(1, 2, 3)) == "Vector3"


def test_host_tag_falls_back_to_class_name():
    assert host_tag(Opaque()) == "Opaque"


def test_kind_names():
    assert "table" in ValueKind.names()
    assert "userdata" in ValueKind.names()
    assert len(ValueKind.names()) == len(ValueKind)
