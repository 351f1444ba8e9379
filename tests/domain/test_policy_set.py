"""Tests for PolicySet construction and normalization."""
import logging
import math

import pytest

from rpcguard.domain.policy import (
    DEFAULT_KICK_MESSAGE,
    ConfigError,
    PolicySet,
    ValueRange,
    ViolationMode,
)


def test_defaults():
    p = PolicySet.from_options({})
    assert p.block_invalid_numbers is False
    assert p.number_range is None
    assert p.string_length_range is None
    assert p.allow_negatives is True
    assert p.allow_positives is True
    assert p.allowed_types is None
    assert p.allowed_host_types is None
    assert p.filter_strings is False
    assert p.cooldown is None
    assert p.scan_tables is False
    assert p.buffer_size_limit is None
    assert p.violation_mode is ViolationMode.DEFAULT
    assert p.kick_message == DEFAULT_KICK_MESSAGE
    assert p.custom_punishment is None


def test_none_options_is_default_policy():
    assert PolicySet.from_options(None) == PolicySet()


def test_option_names_map_to_fields():
    cb = lambda caller, index: None  # noqa: E731
    p = PolicySet.from_options({
        "BlockImpVal": True,
        "NumRange": {"min": 0, "max": 100},
        "StrRange": (1, 32),
        "AllowNegatives": False,
        "AllowedTypes": ["number", "string"],
        "AllowedTypesOf": "Vector3",
        "FilteringStrings": True,
        "CoolDown": 0.25,
        "CheckInTables": True,
        "BufferSizeLimit": 4096,
        "Handling": "Kick",
        "KickMsg": "bye",
        "CustomPunishment": cb,
    })
    assert p.block_invalid_numbers is True
    assert p.number_range == ValueRange(0, 100)
    assert p.string_length_range == ValueRange(1, 32)
    assert p.allow_negatives is False
    assert p.allowed_types == frozenset({"number", "string"})
    assert p.allowed_host_types == frozenset({"Vector3"})
    assert p.filter_strings is True
    assert p.cooldown == 0.25
    assert p.scan_tables is True
    assert p.buffer_size_limit == 4096
    assert p.violation_mode is ViolationMode.KICK
    assert p.kick_message == "bye"
    assert p.custom_punishment is cb


def test_both_signs_disallowed_resets_with_warning(caplog):
    with caplog.at_level(logging.WARNING, logger="rpcguard.domain.policy"):
        p = PolicySet.from_options({"AllowNegatives": False, "AllowPositives": False})
    assert p.allow_negatives is True
    assert p.allow_positives is True
    assert any("both false" in r.getMessage() for r in caplog.records)


def test_one_sign_disallowed_is_kept():
    p = PolicySet(allow_positives=False)
    assert p.allow_positives is False
    assert p.allow_negatives is True


def test_unknown_options_ignored():
    p = PolicySet.from_options({"SomeFutureOption": 1, "CoolDown": 1})
    assert p.cooldown == 1


def test_inverted_range_is_config_error():
    with pytest.raises(ConfigError):
        PolicySet.from_options({"NumRange": {"min": 10, "max": 1}})
    with pytest.raises(ConfigError):
        PolicySet.from_options({"StrRange": (5, 2)})


def test_config_error_is_value_error():
    assert issubclass(ConfigError, ValueError)


@pytest.mark.parametrize(
    "options",
    [
        {"CoolDown": -1},
        {"CoolDown": "fast"},
        {"CoolDown": math.nan},
        {"BufferSizeLimit": -5},
        {"Handling": "Ban"},
        {"CustomPunishment": "not callable"},
        {"AllowedTypes": ["number", "vector"]},
        {"AllowedTypes": [1, 2]},
        {"NumRange": "0-100"},
        {"NumRange": {"min": "a", "max": 1}},
        {"KickMsg": 42},
    ],
)
def test_malformed_options_rejected(options):
    with pytest.raises(ConfigError):
        PolicySet.from_options(options)


def test_open_range_bounds():
    r = ValueRange.parse({"min": 0})
    assert r.contains(10 ** 9)
    assert not r.contains(-1)
    r = ValueRange.parse({"max": 5})
    assert r.contains(-(10 ** 9))
    assert not r.contains(6)


def test_range_is_inclusive():
    r = ValueRange(0, 100)
    assert r.contains(0)
    assert r.contains(100)
    assert not r.contains(-0.001)
    assert not r.contains(100.001)


def test_handling_is_case_insensitive():
    assert PolicySet.from_options({"Handling": "kick"}).violation_mode is ViolationMode.KICK
    assert PolicySet.from_options({"Handling": "DEFAULT"}).violation_mode is ViolationMode.DEFAULT
    assert PolicySet(violation_mode=ViolationMode.KICK).violation_mode is ViolationMode.KICK


def test_policy_is_frozen():
    p = PolicySet()
    with pytest.raises(Exception):
        p.cooldown = 5  # type: ignore[misc]


def test_zero_cooldown_is_a_cooldown():
    p = PolicySet(cooldown=0)
    assert p.has_cooldown is True
    assert PolicySet().has_cooldown is False


def test_restricts_types():
    assert PolicySet().restricts_types is False
    assert PolicySet(allowed_types={"number"}).restricts_types is True
    assert PolicySet(allowed_host_types={"Vector3"}).restricts_types is True
