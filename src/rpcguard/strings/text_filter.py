"""Blocklist text filter: the bundled implementation of the text-filter seam.

A text filter takes a string and returns its filtered form. The
validator treats any difference between input and output as a flag.
BlocklistFilter masks every blocked substring with '#', one per
character, the way chat filters usually render it.
"""
from __future__ import annotations

from collections.abc import Iterable

from rpcguard.strings.aho_corasick import AhoCorasick

MASK_CHAR = "#"


class BlocklistFilter:
    """Case-insensitive substring blocklist.

    Args:
        words: blocked substrings.
    """

    def __init__(self, words: Iterable[str] = ()) -> None:
        self._automaton = AhoCorasick()
        for word in words:
            self._automaton.add_pattern(word)
        self._automaton.build()

    @property
    def word_count(self) -> int:
        return self._automaton.pattern_count

    def __call__(self, text: str) -> str:
        # casefold() can change length for a few characters (e.g. "ß"),
        # which would shift offsets; those strings are masked whole.
        matches = self._automaton.search(text)
        if not matches:
            return text
        if len(text.casefold()) != len(text):
            return MASK_CHAR * len(text)
        chars = list(text)
        for m in matches:
            for i in range(m.start, m.end):
                chars[i] = MASK_CHAR
        return "".join(chars)
