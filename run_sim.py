from __future__ import annotations
import argparse, json, sys
from pathlib import Path
from typing import IO, Iterable, Optional
from control.commands import CommandError, Session, from_event, parse_line
from control.logging_config import configure_logging
from memory.allocator import DEFAULT_CAPACITY, Region
from memory.fragmentation import compute_metrics
from viz.ascii_map import DISPLAY_UNITS_PER_LINE, render_map, render_region

def load_trace(path: str):
    with open(path,'r',encoding='utf-8') as f:
        for line in f:
            line=line.strip()
            if line:
                yield json.loads(line)

def replay(session: Session, events: Iterable[dict], out: IO[str]=sys.stdout) -> int:
    """Run trace events in order. Returns the number of events executed."""
    n=0
    for ev in events:
        try:
            cmd=from_event(ev)
        except CommandError as e:
            print(f"Skipping event {ev!r}: {e}", file=out)
            continue
        n += 1
        outcome=session.execute(cmd)
        if not outcome.ok:
            print(f"[{outcome.status}] {outcome.message}", file=out)
        elif cmd.verb=='show':
            print(outcome.message, file=out)
    return n

def interact(session: Session, inp: IO[str]=sys.stdin, out: IO[str]=sys.stdout, prompt: str='> ') -> None:
    print("--- FIRST-FIT MEMORY SIMULATOR --- (type 'help' for commands)", file=out)
    while True:
        print(prompt, end='', file=out, flush=True)
        line=inp.readline()
        if not line:
            break
        try:
            cmd=parse_line(line)
        except CommandError as e:
            print(f"Error: {e}", file=out)
            continue
        if cmd is None:
            continue
        outcome=session.execute(cmd)
        prefix='' if outcome.ok else 'Error: '
        print(prefix+outcome.message, file=out)
        if outcome.mutated:
            print(render_region(session.region, session.per_line), file=out)
        if cmd.verb=='quit':
            break

def summary(session: Session, show_map: bool=False) -> str:
    region=session.region
    stats=session.stats
    m=compute_metrics(region.free_extents())
    frag=region.internal_fragmentation()
    lines=[
        "="*72,
        "First-Fit Memory Simulator — Summary",
        "="*72,
        f"Capacity: {region.capacity}  Used: {region.total_used()}  Free: {region.total_free()}  "
        f"Processes: {len(region.owners())}",
        f"Load events: {stats['alloc_events']}  Free events: {stats['free_events']}",
        f"Load failures: {stats['alloc_fail']}  Free failures: {stats['free_fail']}",
        f"Compactions: {stats['compact']}  Auto-compactions: {stats['auto_compact']}  "
        f"Units moved: {stats['units_moved']}",
        "-"*72,
        f"Fragmentation: LFE={m.lfe} holes={m.hole_count} external_frag={m.external_frag:.3f} "
        f"entropy={m.entropy:.3f} large_blocks={frag.heuristic_large_blocks}",
    ]
    if show_map:
        lines.append("-"*72)
        lines.append("Memory map (ASCII):")
        if region.capacity <= 256:
            lines.append(render_region(region, session.per_line))
        else:
            lines.append(render_map(region))
    lines.append("="*72)
    return '\n'.join(lines)

def build_parser() -> argparse.ArgumentParser:
    ap=argparse.ArgumentParser(description="First-fit contiguous memory allocation simulator")
    ap.add_argument('--capacity', type=int, default=DEFAULT_CAPACITY,
                    help="Region size in units (non-positive values fall back to the default)")
    ap.add_argument('--trace', default=None,
                    help="JSONL trace to replay; without it the simulator reads commands from stdin")
    ap.add_argument('--auto-compact', action='store_true',
                    help="On a failed load with enough total free space, compact and retry once")
    ap.add_argument('--show-map', action='store_true')
    ap.add_argument('--per-line', type=int, default=DISPLAY_UNITS_PER_LINE,
                    help="Units per line in the memory strip")
    ap.add_argument('--log-level', default='WARNING')
    ap.add_argument('--json-logs', action='store_true')
    return ap

def main(argv: Optional[list]=None):
    args=build_parser().parse_args(argv)
    configure_logging(args.log_level, json_output=args.json_logs)

    region=Region(args.capacity)
    session=Session(region, auto_compact=args.auto_compact, per_line=args.per_line)

    if args.trace:
        if not Path(args.trace).exists():
            raise SystemExit(f"Trace not found: {args.trace}")
        replay(session, load_trace(args.trace))
    else:
        interact(session)

    print(summary(session, show_map=args.show_map))

if __name__=='__main__':
    main()
