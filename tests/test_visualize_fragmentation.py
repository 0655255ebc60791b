"""Tests for the occupancy heatmap tool."""

from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest

from control.commands import Session
from memory.allocator import Region
from tools.visualize_fragmentation import collect_frames, main, render_state

pytestmark = pytest.mark.unit

TRACES = Path(__file__).resolve().parents[1] / "traces"


def test_render_state_one_bin_per_unit() -> None:
    region = Region(8)
    region.alloc("A", 2)
    region.alloc("B", 3)
    region.free("A")
    np.testing.assert_array_equal(render_state(region, 8), [0, 0, 1, 1, 1, 0, 0, 0])


def test_render_state_binned() -> None:
    region = Region(100)
    region.alloc("A", 50)
    bins = render_state(region, 10)
    assert bins.shape == (10,)
    np.testing.assert_array_equal(bins, [1] * 5 + [0] * 5)


def test_collect_frames_marks_compactions() -> None:
    session = Session(Region(64))
    events = [
        {"event": "alloc", "id": "A", "size": 10},
        {"event": "alloc", "id": "B", "size": 20},
        {"event": "free", "id": "A"},
        {"event": "compact"},
        {"event": "bogus"},
    ]
    frames, marks = collect_frames(session, events, width=64)
    assert len(frames) == 4
    assert marks == [3]
    assert frames[-1][:20].tolist() == [1.0] * 20


def test_main_writes_png(tmp_path: Path) -> None:
    out = tmp_path / "heat.png"
    main(["--trace", str(TRACES / "fragmentation_stressor.jsonl"), "--out", str(out)])
    assert out.exists() and out.stat().st_size > 0
