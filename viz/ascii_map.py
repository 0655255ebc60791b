from __future__ import annotations
from typing import Iterable, List
from memory.allocator import Region

FILLER = '.'
DISPLAY_UNITS_PER_LINE = 16

def unit_chars(blocks: Iterable, capacity: int) -> List[str]:
    """One character per unit: FILLER when free, else the owner's first character."""
    units = [FILLER]*capacity
    for b in blocks:
        if b.is_free:
            continue
        for i in range(b.offset, min(capacity, b.offset+b.length)):
            units[i] = b.owner[0]
    return units

def render_strip(blocks: Iterable, capacity: int, per_line: int=DISPLAY_UNITS_PER_LINE) -> str:
    units = unit_chars(blocks, capacity)
    per_line = max(1, per_line)
    lines = []
    for s in range(0, capacity, per_line):
        lines.append(''.join('|'+c for c in units[s:s+per_line]) + '|')
    return '\n'.join(lines)

def render_region(region: Region, per_line: int=DISPLAY_UNITS_PER_LINE) -> str:
    head = f"Memory state ({region.capacity} units):"
    return head + '\n' + render_strip(region.snapshot(), region.capacity, per_line)

def render_map(region: Region, width: int=80) -> str:
    """Scaled single-line map, for capacities too large for the strip."""
    cap=region.capacity
    width=min(width, cap)
    buf=[FILLER]*width
    for b in region.snapshot():
        if b.is_free:
            continue
        s=int((b.offset/cap)*width)
        e=int((b.end/cap)*width)
        ch=b.owner[0]
        for i in range(max(0,s), min(width, max(s+1,e))):
            buf[i]=ch
    return ''.join(buf)
