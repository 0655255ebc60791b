from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Optional
import logging

import structlog

from memory.allocator import OK, INSUFFICIENT_SPACE, Region
from viz.ascii_map import DISPLAY_UNITS_PER_LINE, render_region

log = structlog.wrap_logger(logging.getLogger(__name__))

HELP = """\
Commands:
  load <name> <size>   load a process (first-fit)          [1]
  free <name>          release a process                   [2]
  compact              compact memory physically           [3]
  show                 show the memory state               [4]
  internal             internal fragmentation (simulated)  [5]
  external             external fragmentation              [6]
  help                 this text
  quit                 leave the simulator                 [0]"""

VERBS = ('load', 'free', 'compact', 'show', 'internal', 'external', 'help', 'quit')

ALIASES = {
    '1': 'load', 'alloc': 'load',
    '2': 'free', 'release': 'free',
    '3': 'compact',
    '4': 'show',
    '5': 'internal',
    '6': 'external',
    '0': 'quit', 'exit': 'quit', '?': 'help',
}

# trace event name -> verb
EVENTS = {'alloc': 'load', 'free': 'free', 'compact': 'compact', 'show': 'show'}

class CommandError(ValueError):
    pass

@dataclass
class Command:
    verb: str
    owner: Optional[str] = None
    size: Optional[int] = None

@dataclass
class Outcome:
    status: str
    message: str
    mutated: bool = False

    @property
    def ok(self) -> bool:
        return self.status == OK

def _parse_size(raw) -> int:
    # JSON true/false and fractional numbers are not sizes
    if isinstance(raw, bool) or (isinstance(raw, float) and not raw.is_integer()):
        raise CommandError(f"invalid size {raw!r}; expected an integer")
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise CommandError(f"invalid size {raw!r}; expected an integer") from None

def parse_line(line: str) -> Optional[Command]:
    """Parse one interactive line. Blank lines and '#' comments give None."""
    parts = line.split()
    if not parts or parts[0].startswith('#'):
        return None
    verb = parts[0].lower()
    verb = ALIASES.get(verb, verb)
    if verb not in VERBS:
        raise CommandError(f"unknown command {parts[0]!r}; type 'help'")
    args = parts[1:]
    if verb == 'load':
        if len(args) != 2:
            raise CommandError("usage: load <name> <size>")
        return Command('load', args[0], _parse_size(args[1]))
    if verb == 'free':
        if len(args) != 1:
            raise CommandError("usage: free <name>")
        return Command('free', args[0])
    if args:
        raise CommandError(f"'{verb}' takes no arguments")
    return Command(verb)

def from_event(ev: Dict) -> Command:
    """Build a command from a JSONL trace event."""
    et = ev.get('event')
    if et not in EVENTS:
        raise CommandError(f"unknown trace event {et!r}")
    verb = EVENTS[et]
    if verb == 'load':
        if 'id' not in ev or 'size' not in ev:
            raise CommandError("alloc event needs 'id' and 'size'")
        return Command('load', str(ev['id']), _parse_size(ev['size']))
    if verb == 'free':
        if 'id' not in ev:
            raise CommandError("free event needs 'id'")
        return Command('free', str(ev['id']))
    return Command(verb)

@dataclass
class Session:
    """Runs commands against one caller-owned Region and keeps counters."""
    region: Region
    auto_compact: bool = False
    per_line: int = DISPLAY_UNITS_PER_LINE
    stats: Dict[str, int] = field(default_factory=lambda: {
        'alloc_events': 0, 'free_events': 0,
        'alloc_fail': 0, 'free_fail': 0,
        'compact': 0, 'auto_compact': 0, 'units_moved': 0,
    })

    def execute(self, cmd: Command) -> Outcome:
        handler = getattr(self, '_do_' + cmd.verb)
        return handler(cmd)

    def _do_load(self, cmd: Command) -> Outcome:
        self.stats['alloc_events'] += 1
        res = self.region.alloc(cmd.owner, cmd.size)
        if res.status == INSUFFICIENT_SPACE and self.auto_compact \
                and self.region.total_free() >= cmd.size:
            moved = self.region.compact()
            self.stats['auto_compact'] += 1
            self.stats['units_moved'] += moved
            log.info("auto_compact", owner=cmd.owner, size=cmd.size, moved=moved)
            res = self.region.alloc(cmd.owner, cmd.size)
        if not res.ok:
            self.stats['alloc_fail'] += 1
            log.info("alloc_rejected", owner=cmd.owner, size=cmd.size, status=res.status)
        return Outcome(res.status, res.reason, mutated=res.ok)

    def _do_free(self, cmd: Command) -> Outcome:
        self.stats['free_events'] += 1
        res = self.region.free(cmd.owner)
        if not res.ok:
            self.stats['free_fail'] += 1
            log.info("free_rejected", owner=cmd.owner, status=res.status)
        return Outcome(res.status, res.reason, mutated=res.ok)

    def _do_compact(self, cmd: Command) -> Outcome:
        moved = self.region.compact()
        self.stats['compact'] += 1
        self.stats['units_moved'] += moved
        return Outcome(OK, f"Memory compacted ({moved} units moved).", mutated=True)

    def _do_show(self, cmd: Command) -> Outcome:
        return Outcome(OK, render_region(self.region, self.per_line))

    def _do_internal(self, cmd: Command) -> Outcome:
        return Outcome(OK, self.region.internal_fragmentation().describe())

    def _do_external(self, cmd: Command) -> Outcome:
        return Outcome(OK, self.region.external_fragmentation().describe())

    def _do_help(self, cmd: Command) -> Outcome:
        return Outcome(OK, HELP)

    def _do_quit(self, cmd: Command) -> Outcome:
        return Outcome(OK, "Leaving the simulator...")
