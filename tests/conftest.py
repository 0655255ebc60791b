"""Pytest configuration and shared fixtures.

This module defines:
- Test markers (unit, property)
- A region fixture and a structural invariant checker shared by the tests
"""

from __future__ import annotations

import pytest

from memory.allocator import FREE, Region


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Fast tests of a single module")
    config.addinivalue_line("markers", "property: Hypothesis property-based tests")


def assert_invariants(region: Region) -> None:
    blocks = region.snapshot()
    assert blocks, "region must always hold at least one block"
    assert blocks[0].offset == 0
    assert blocks[-1].end == region.capacity
    for prev, cur in zip(blocks, blocks[1:]):
        assert cur.offset == prev.end
        assert not (prev.is_free and cur.is_free)
    assert all(b.length > 0 for b in blocks)
    owners = [b.owner for b in blocks if b.owner != FREE]
    assert len(owners) == len(set(owners))


def layout(region: Region) -> list[tuple[str, int, int]]:
    return [(b.owner, b.offset, b.length) for b in region.snapshot()]


@pytest.fixture
def region() -> Region:
    return Region(64)
