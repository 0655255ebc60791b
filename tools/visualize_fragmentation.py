"""
First-Fit Memory Simulator — Visualizer

Replays a JSONL trace on a first-fit Region and draws a Matplotlib heatmap of
occupancy over time. Each occupied unit is coloured by its owner's position in
the region; free units are 0. Compactions are marked as horizontal lines.

How to run (recommended, from repo root):
    python -m tools.visualize_fragmentation --trace traces/fragmentation_stressor.jsonl --out out_fragmentation.png
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

# Ensure repo root is on sys.path when running as a script:
# (python -m tools.visualize_fragmentation already works without this,
#  but this makes `python tools/visualize_fragmentation.py ...` work too.)
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import numpy as np

from control.commands import CommandError, Session, from_event
from control.logging_config import configure_logging
from memory.allocator import DEFAULT_CAPACITY, Region
from memory.fragmentation import compute_metrics
from run_sim import load_trace


def render_state(region: Region, width: int) -> np.ndarray:
    """
    Return a 1D occupancy array over the address space, binned to 'width'.
    Occupied bins hold 1..k for the k-th owned block (in offset order), free bins 0.
    """
    cap = region.capacity
    width = min(width, cap)
    bins = np.zeros(width, dtype=np.float32)
    scale = cap / width

    k = 0
    for blk in region.snapshot():
        if blk.is_free:
            continue
        k += 1
        a = int(blk.offset / scale)
        b = int((blk.end - 1) / scale)
        a = max(0, min(width - 1, a))
        b = max(0, min(width - 1, b))
        bins[a : b + 1] = k

    return bins


def collect_frames(session: Session, events, width: int, every: int = 1):
    """Execute events, returning (frames, compaction frame indices)."""
    frames: list[np.ndarray] = []
    compact_marks: list[int] = []
    i = 0
    for ev in events:
        i += 1
        try:
            cmd = from_event(ev)
        except CommandError:
            continue
        before = session.stats["compact"] + session.stats["auto_compact"]
        session.execute(cmd)
        if session.stats["compact"] + session.stats["auto_compact"] > before:
            compact_marks.append(len(frames))

        if every <= 1 or (i % every == 0):
            frames.append(render_state(session.region, width))

    return frames, compact_marks


def main(argv=None):
    ap = argparse.ArgumentParser()
    ap.add_argument("--trace", required=True, help="Path to JSONL trace")
    ap.add_argument("--out", default="out_fragmentation.png", help="Output image file")
    ap.add_argument("--capacity", type=int, default=DEFAULT_CAPACITY, help="Region capacity (units)")
    ap.add_argument("--width", type=int, default=140, help="Heatmap width (bins)")
    ap.add_argument("--every", type=int, default=1, help="Record every N events")
    ap.add_argument("--auto-compact", action="store_true")
    args = ap.parse_args(argv)
    configure_logging("WARNING")

    trace_path = Path(args.trace)
    if not trace_path.exists():
        raise SystemExit(f"Trace not found: {trace_path}")

    region = Region(args.capacity)
    session = Session(region, auto_compact=args.auto_compact)
    frames, compact_marks = collect_frames(session, load_trace(str(trace_path)), args.width, args.every)

    if not frames:
        raise SystemExit("No frames captured. Check trace path and --every.")

    H = np.stack(frames, axis=0)  # (time, width)

    fig = plt.figure(figsize=(10.5, 4.6))
    ax = fig.add_subplot(111)
    ax.imshow(H, aspect="auto", interpolation="nearest", cmap="tab20c")
    ax.set_title("First-Fit Occupancy Heatmap (Trace-driven)")
    ax.set_xlabel("address (binned)")
    ax.set_ylabel("time (frames)")

    for t in compact_marks:
        ax.axhline(t, linewidth=1, color="red")

    m = compute_metrics(region.free_extents())
    ext = region.external_fragmentation()
    caption = (
        f"Final: free={ext.total_free} in {ext.free_blocks} block(s), LFE={m.lfe}, "
        f"external_frag={m.external_frag:.3f}, entropy={m.entropy:.3f}"
    )
    fig.text(0.01, 0.01, caption, fontsize=9)

    fig.tight_layout()
    out_path = Path(args.out)
    fig.savefig(str(out_path), dpi=220)
    print(f"Wrote: {out_path.resolve()}")


if __name__ == "__main__":
    main()
