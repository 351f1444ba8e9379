"""String filtering for the FilteringStrings policy option."""

from rpcguard.strings.aho_corasick import AhoCorasick, Match
from rpcguard.strings.text_filter import BlocklistFilter, MASK_CHAR

__all__ = [
    "AhoCorasick",
    "BlocklistFilter",
    "MASK_CHAR",
    "Match",
]
