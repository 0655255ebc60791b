from __future__ import annotations
from dataclasses import dataclass, replace
from typing import List, Optional, Tuple
import logging
import warnings

import structlog

from memory.fragmentation import (ExternalFragmentation, InternalFragmentation,
                                  external_fragmentation, internal_fragmentation)

# routed through stdlib logging, silent until the application configures it
log = structlog.wrap_logger(logging.getLogger(__name__))

FREE = "FREE"
DEFAULT_CAPACITY = 64

# result statuses
OK = "ok"
INVALID_SIZE = "invalid_size"
RESERVED_NAME = "reserved_name"
DUPLICATE_OWNER = "duplicate_owner"
INSUFFICIENT_SPACE = "insufficient_space"
NOT_FOUND = "not_found"


class ConfigWarning(UserWarning):
    """Emitted when a construction parameter was replaced by a default."""


@dataclass
class Block:
    owner: str
    offset: int
    length: int

    @property
    def is_free(self) -> bool:
        return self.owner == FREE

    @property
    def end(self) -> int:
        return self.offset + self.length


@dataclass
class AllocResult:
    status: str
    reason: str
    offset: Optional[int] = None

    @property
    def ok(self) -> bool:
        return self.status == OK


@dataclass
class ReleaseResult:
    status: str
    reason: str
    offset: Optional[int] = None
    length: Optional[int] = None

    @property
    def ok(self) -> bool:
        return self.status == OK


class Region:
    """One linear address space, kept as an ordered list of free/owned blocks.

    Blocks always tile [0, capacity) in offset order, no two neighbouring
    blocks are both free and an owner holds at most one block. Allocation is
    first-fit. Every rejected request returns a result with a non-ok status
    and leaves the blocks untouched.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        self.config_warning: Optional[ConfigWarning] = None
        if capacity <= 0:
            self.config_warning = ConfigWarning(
                f"invalid capacity {capacity}, using {DEFAULT_CAPACITY} units instead")
            log.warning("capacity_substituted", requested=capacity, capacity=DEFAULT_CAPACITY)
            warnings.warn(self.config_warning, stacklevel=2)
            capacity = DEFAULT_CAPACITY
        self.capacity = capacity
        self.blocks: List[Block] = [Block(FREE, 0, capacity)]

    # ---------------- mutations ----------------

    def alloc(self, owner: str, length: int) -> AllocResult:
        if length <= 0:
            return AllocResult(INVALID_SIZE, f"invalid size {length}; must be positive")
        if owner == FREE or not owner:
            return AllocResult(RESERVED_NAME, f"owner name cannot be {owner!r}")
        if self._index_of(owner) is not None:
            return AllocResult(DUPLICATE_OWNER, f"'{owner}' already holds a block")

        i = self._first_fit(length)
        if i is None:
            return AllocResult(INSUFFICIENT_SPACE,
                               f"no contiguous free block of {length} units for '{owner}'; try compacting")

        b = self.blocks[i]
        offset = b.offset
        if b.length == length:
            b.owner = owner
        else:
            self.blocks.insert(i, Block(owner, offset, length))
            b.offset += length
            b.length -= length
            log.debug("split", owner=owner, offset=offset, length=length, remainder=b.length)
        return AllocResult(OK, f"'{owner}' ({length} units) loaded at {offset}", offset)

    def free(self, owner: str) -> ReleaseResult:
        if owner == FREE:
            return ReleaseResult(RESERVED_NAME, f"cannot release a '{FREE}' block")
        i = self._index_of(owner)
        if i is None:
            return ReleaseResult(NOT_FOUND, f"'{owner}' not found")
        b = self.blocks[i]
        b.owner = FREE
        offset, length = b.offset, b.length
        self._coalesce()
        return ReleaseResult(OK, f"'{owner}' released", offset, length)

    def compact(self) -> int:
        """Slide every owned block to the front, keeping their order.

        Leaves at most one free block, at the end. Returns the number of units
        whose position changed.
        """
        moved = 0
        packed: List[Block] = []
        cursor = 0
        for b in self.blocks:
            if b.is_free:
                continue
            if b.offset != cursor:
                moved += b.length
            packed.append(Block(b.owner, cursor, b.length))
            cursor += b.length
        if cursor < self.capacity:
            packed.append(Block(FREE, cursor, self.capacity - cursor))
        self.blocks = packed
        log.debug("compact", moved=moved, used=cursor, free=self.capacity - cursor)
        return moved

    def _coalesce(self):
        merged: List[Block] = []
        for b in self.blocks:
            if merged and merged[-1].is_free and b.is_free:
                merged[-1].length += b.length
            else:
                merged.append(b)
        if len(merged) != len(self.blocks):
            log.debug("coalesce", before=len(self.blocks), after=len(merged))
        self.blocks = merged

    # ---------------- queries ----------------

    def snapshot(self) -> Tuple[Block, ...]:
        return tuple(replace(b) for b in self.blocks)

    def find(self, owner: str) -> Optional[Block]:
        i = self._index_of(owner)
        return None if i is None else replace(self.blocks[i])

    def owners(self) -> List[str]:
        return [b.owner for b in self.blocks if not b.is_free]

    def total_free(self) -> int:
        return sum(b.length for b in self.blocks if b.is_free)

    def total_used(self) -> int:
        return self.capacity - self.total_free()

    def free_block_count(self) -> int:
        return sum(1 for b in self.blocks if b.is_free and b.length > 0)

    def free_extents(self) -> List[Tuple[int, int]]:
        return [(b.offset, b.length) for b in self.blocks if b.is_free]

    def largest_free_extent(self) -> int:
        return max((s for _, s in self.free_extents()), default=0)

    def internal_fragmentation(self) -> InternalFragmentation:
        return internal_fragmentation(self.snapshot())

    def external_fragmentation(self) -> ExternalFragmentation:
        return external_fragmentation(self.snapshot())

    def _first_fit(self, length: int) -> Optional[int]:
        for i, b in enumerate(self.blocks):
            if b.is_free and b.length >= length:
                return i
        return None

    def _index_of(self, owner: str) -> Optional[int]:
        for i, b in enumerate(self.blocks):
            if b.owner == owner:
                return i
        return None
