"""Tests for the trace-replay and interactive front ends."""

from __future__ import annotations

import io
import json
from pathlib import Path

import pytest

from conftest import layout
from control.commands import Session
from memory.allocator import FREE, Region
from run_sim import interact, load_trace, main, replay, summary

pytestmark = pytest.mark.unit

TRACES = Path(__file__).resolve().parents[1] / "traces"


def write_trace(path: Path, events) -> Path:
    path.write_text("\n".join(json.dumps(e) for e in events) + "\n", encoding="utf-8")
    return path


def test_load_trace_skips_blank_lines(tmp_path: Path) -> None:
    p = tmp_path / "t.jsonl"
    p.write_text('{"event": "compact"}\n\n{"event": "show"}\n', encoding="utf-8")
    assert list(load_trace(str(p))) == [{"event": "compact"}, {"event": "show"}]


def test_replay_classroom_demo() -> None:
    session = Session(Region(64))
    out = io.StringIO()
    n = replay(session, load_trace(str(TRACES / "classroom_demo.jsonl")), out)
    assert n == 7
    assert layout(session.region) == [("B", 0, 20), (FREE, 20, 44)]
    assert out.getvalue().count("Memory state (64 units):") == 3


def test_replay_reports_failures_and_skips_bad_events() -> None:
    session = Session(Region(8))
    out = io.StringIO()
    events = [
        {"event": "alloc", "id": "A", "size": 8},
        {"event": "alloc", "id": "B", "size": 1},
        {"event": "touch", "id": "A"},
    ]
    assert replay(session, events, out) == 2
    text = out.getvalue()
    assert "[insufficient_space]" in text
    assert "Skipping event" in text


def test_replay_stressor_with_auto_compact() -> None:
    session = Session(Region(64), auto_compact=True)
    replay(session, load_trace(str(TRACES / "fragmentation_stressor.jsonl")), io.StringIO())
    placed = session.region.find("M")
    assert (placed.offset, placed.length) == (40, 20)
    assert session.region.owners() == ["N", "G", "K", "L", "M"]
    assert session.stats["auto_compact"] == 3
    assert session.stats["alloc_fail"] == 1


def test_replay_stressor_without_auto_compact() -> None:
    session = Session(Region(64))
    replay(session, load_trace(str(TRACES / "fragmentation_stressor.jsonl")), io.StringIO())
    # K, L and the first M never find a hole large enough
    assert session.stats["alloc_fail"] == 3
    assert session.stats["auto_compact"] == 0
    assert session.region.owners() == ["N", "G", "M"]
    assert session.region.find("M").offset == 30
    assert session.region.free_extents() == [(6, 16), (50, 14)]


def test_interact_session() -> None:
    session = Session(Region(16))
    inp = io.StringIO("load A 4\nbogus\nfree Z\nexternal\nquit\nload B 2\n")
    out = io.StringIO()
    interact(session, inp, out)
    text = out.getvalue()
    assert "'A' (4 units) loaded at 0" in text
    assert "Error: unknown command 'bogus'" in text
    assert "Error: 'Z' not found" in text
    assert "12 free in 1 free block(s)" in text
    # nothing after quit is executed
    assert session.region.owners() == ["A"]


def test_interact_stops_at_eof() -> None:
    session = Session(Region(16))
    interact(session, io.StringIO("load A 4\n"), io.StringIO())
    assert session.region.owners() == ["A"]


def test_summary_lines() -> None:
    session = Session(Region(64))
    replay(session, load_trace(str(TRACES / "classroom_demo.jsonl")), io.StringIO())
    text = summary(session, show_map=True)
    assert "Capacity: 64  Used: 20  Free: 44  Processes: 1" in text
    assert "Compactions: 1" in text
    assert "LFE=44 holes=1" in text
    assert "entropy=0.000" in text
    assert "Memory map (ASCII):" in text


def test_main_replays_trace(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    trace = write_trace(tmp_path / "t.jsonl", [{"event": "alloc", "id": "A", "size": 5}])
    main(["--trace", str(trace), "--capacity", "10"])
    assert "Capacity: 10  Used: 5  Free: 5" in capsys.readouterr().out


def test_main_missing_trace(tmp_path: Path) -> None:
    with pytest.raises(SystemExit):
        main(["--trace", str(tmp_path / "missing.jsonl")])
