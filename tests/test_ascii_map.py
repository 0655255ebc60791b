"""Unit tests for the text renderers."""

from __future__ import annotations

import pytest

from memory.allocator import Region
from viz.ascii_map import render_map, render_region, render_strip, unit_chars

pytestmark = pytest.mark.unit


def test_unit_chars_uses_first_character_of_owner() -> None:
    region = Region(8)
    region.alloc("alpha", 3)
    region.alloc("Beta", 2)
    assert "".join(unit_chars(region.snapshot(), 8)) == "aaaBB..."


def test_strip_wraps_every_sixteen_units() -> None:
    region = Region(32)
    region.alloc("A", 20)
    lines = render_strip(region.snapshot(), 32).splitlines()
    assert lines == ["|A" * 16 + "|", "|A" * 4 + "|." * 12 + "|"]


def test_strip_last_line_can_be_short() -> None:
    region = Region(5)
    region.alloc("X", 2)
    assert render_strip(region.snapshot(), 5, per_line=4) == "|X|X|.|.|\n|.|"


def test_render_region_has_header() -> None:
    text = render_region(Region(16))
    head, strip = text.split("\n")
    assert head == "Memory state (16 units):"
    assert strip == "|." * 16 + "|"


def test_render_map_scales_large_regions() -> None:
    region = Region(800)
    region.alloc("A", 400)
    assert render_map(region, width=80) == "A" * 40 + "." * 40


def test_render_map_never_wider_than_capacity() -> None:
    region = Region(10)
    region.alloc("Q", 5)
    assert render_map(region, width=80) == "QQQQQ....."
