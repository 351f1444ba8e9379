"""Shared fixtures for validation tests."""
from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

import pytest

from rpcguard.strings.text_filter import BlocklistFilter
from rpcguard.validation.external import ExternalLookup, buffer_length
from rpcguard.validation.scanner import StructuralScanner
from rpcguard.validation.values import ValueValidator


@pytest.fixture()
def lookup_pool():
    pool = ThreadPoolExecutor(max_workers=4)
    yield pool
    pool.shutdown(wait=False, cancel_futures=True)


@pytest.fixture()
def validator() -> ValueValidator:
    return ValueValidator(
        text_filter=ExternalLookup(BlocklistFilter(["badword"]), "text filter"),
        buffer_size=ExternalLookup(buffer_length, "buffer size"),
    )


@pytest.fixture()
def bare_validator() -> ValueValidator:
    """No external collaborators configured."""
    return ValueValidator()


@pytest.fixture()
def scanner(validator) -> StructuralScanner:
    return StructuralScanner(validator, max_depth=8, max_keys=16)

