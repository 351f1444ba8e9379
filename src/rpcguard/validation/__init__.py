"""Argument validation: leaf checks, structural scanning, external lookups.

Everything here is stateless per call and safe to share across threads.
"""
from rpcguard.validation.external import (
    ExternalLookup,
    LookupFailed,
    buffer_length,
    zlib_decompressed_size,
)
from rpcguard.validation.scanner import (
    MAX_SCAN_DEPTH,
    MAX_TABLE_KEYS,
    ScanContext,
    StructuralScanner,
)
from rpcguard.validation.values import ValueValidator

__all__ = [
    "ExternalLookup",
    "LookupFailed",
    "buffer_length",
    "zlib_decompressed_size",
    "MAX_SCAN_DEPTH",
    "MAX_TABLE_KEYS",
    "ScanContext",
    "StructuralScanner",
    "ValueValidator",
]
