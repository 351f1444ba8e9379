"""Aho-Corasick automaton for multi-pattern substring matching.

The classic Aho-Corasick algorithm (1975) builds a finite automaton
from a set of patterns and then scans an input string in a single
pass, reporting every occurrence of every pattern. Three phases:

    1. Build the goto trie: insert each pattern character by character.
    2. Compute failure links (BFS from root): when a match fails at
       a node, the failure link points to the longest proper suffix
       of the current path that is also a prefix of some pattern.
    3. Propagate outputs: each node reports its own pattern plus the
       patterns reachable through its failure chain.

Matching is case-insensitive; patterns and input are casefolded.
Scanning cost is linear in the input length, independent of how many
patterns are loaded, which matters when the input is attacker text.
"""
from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field


@dataclass
class ACNode:
    """A node in the Aho-Corasick automaton."""
    children: dict[str, ACNode] = field(default_factory=dict)
    fail: ACNode | None = None
    output: list[str] = field(default_factory=list)
    depth: int = 0


@dataclass(frozen=True, slots=True)
class Match:
    """One pattern occurrence: text[start:end] matched ``pattern``."""
    start: int
    end: int
    pattern: str


class AhoCorasick:
    """Aho-Corasick automaton over characters.

    Usage:
        ac = AhoCorasick()
        ac.add_pattern("badword")
        ac.build()  # MUST call before searching
        ac.search("a BadWord here")
        # [Match(start=2, end=9, pattern="badword")]

    Calling add_pattern() after build() invalidates the automaton; you
    must call build() again.
    """

    def __init__(self) -> None:
        self._root = ACNode()
        self._built = False
        self._pattern_count = 0

    @property
    def pattern_count(self) -> int:
        return self._pattern_count

    def add_pattern(self, pattern: str) -> None:
        """Insert a pattern into the goto trie. Empty patterns are ignored."""
        pattern = pattern.casefold()
        if not pattern:
            return
        node = self._root
        for i, ch in enumerate(pattern):
            if ch not in node.children:
                node.children[ch] = ACNode(depth=i + 1)
            node = node.children[ch]
        if pattern not in node.output:
            node.output.append(pattern)
            self._pattern_count += 1
        self._built = False

    def build(self) -> None:
        """Compute failure links and propagate output lists."""
        root = self._root
        root.fail = root
        queue: deque[ACNode] = deque()

        for child in root.children.values():
            child.fail = root
            queue.append(child)

        while queue:
            current = queue.popleft()
            for ch, child in current.children.items():
                fallback = current.fail
                while fallback is not root and ch not in fallback.children:
                    fallback = fallback.fail  # type: ignore[assignment]
                child.fail = fallback.children.get(ch, root)
                if child.fail is child:
                    child.fail = root
                child.output = child.output + [
                    p for p in child.fail.output if p not in child.output
                ]
                queue.append(child)

        self._built = True

    def search(self, text: str) -> list[Match]:
        """Return every pattern occurrence in ``text``, in end order."""
        if not self._built:
            raise RuntimeError("Must call build() before search()")

        root = self._root
        node = root
        matches: list[Match] = []
        for i, ch in enumerate(text.casefold()):
            while node is not root and ch not in node.children:
                node = node.fail  # type: ignore[assignment]
            node = node.children.get(ch, root)
            for pat in node.output:
                matches.append(Match(start=i + 1 - len(pat), end=i + 1, pattern=pat))
        return matches

    def contains_any(self, text: str) -> bool:
        """True if at least one pattern occurs in ``text``."""
        return bool(self.search(text))
