"""Tests for the character-level Aho-Corasick automaton."""
import pytest

from rpcguard.strings.aho_corasick import AhoCorasick, Match


def _build(*patterns):
    ac = AhoCorasick()
    for p in patterns:
        ac.add_pattern(p)
    ac.build()
    return ac


def test_single_pattern():
    ac = _build("cat")
    assert ac.search("a cat sat") == [Match(2, 5, "cat")]


def test_case_insensitive():
    ac = _build("Cat")
    assert [m.pattern for m in ac.search("CAT")] == ["cat"]


def test_overlapping_patterns():
    ac = _build("he", "she", "his", "hers")
    found = {(m.start, m.end, m.pattern) for m in ac.search("ushers")}
    assert found == {(1, 4, "she"), (2, 4, "he"), (2, 6, "hers")}


def test_suffix_pattern_via_failure_link():
    ac = _build("abcd", "bc")
    assert [m.pattern for m in ac.search("xabcx")] == ["bc"]


def test_repeated_occurrences():
    ac = _build("aa")
    assert [m.start for m in ac.search("aaaa")] == [0, 1, 2]


def test_no_match():
    ac = _build("foo")
    assert ac.search("bar baz") == []
    assert ac.contains_any("bar") is False


def test_must_build_before_search():
    ac = AhoCorasick()
    ac.add_pattern("x")
    with pytest.raises(RuntimeError):
        ac.search("x")


def test_add_after_build_invalidates():
    ac = _build("a")
    ac.add_pattern("b")
    with pytest.raises(RuntimeError):
        ac.search("b")


def test_duplicates_and_empty_ignored():
    ac = _build("x", "X", "")
    assert ac.pattern_count == 1
