from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable, List, Tuple
import math

# Occupied blocks longer than this are counted by the illustrative
# "internal fragmentation" annotation. Not a measure of real waste.
LARGE_BLOCK_THRESHOLD = 5

@dataclass
class InternalFragmentation:
    true_units: int
    heuristic_large_blocks: int
    threshold: int = LARGE_BLOCK_THRESHOLD

    def describe(self) -> str:
        return (f"Internal fragmentation (illustrative: 1 unit per block > {self.threshold}): "
                f"{self.heuristic_large_blocks}\n"
                f"(exact-fit allocation: real internal fragmentation is {self.true_units})")

@dataclass
class ExternalFragmentation:
    total_free: int
    free_blocks: int

    def describe(self) -> str:
        s = f"External fragmentation: {self.total_free} free"
        if self.total_free > 0:
            s += f" in {self.free_blocks} free block(s)"
        return s

@dataclass
class FragMetrics:
    total_free: int
    lfe: int
    external_frag: float
    entropy: float
    hole_count: int

def internal_fragmentation(blocks: Iterable, threshold: int=LARGE_BLOCK_THRESHOLD) -> InternalFragmentation:
    # every allocation takes exactly what it asked for, so the true value is 0
    large = sum(1 for b in blocks if not b.is_free and b.length > threshold)
    return InternalFragmentation(0, large, threshold)

def external_fragmentation(blocks: Iterable) -> ExternalFragmentation:
    free = [b.length for b in blocks if b.is_free and b.length > 0]
    return ExternalFragmentation(sum(free), len(free))

def _entropy(ext_sizes: List[int]) -> float:
    total = sum(ext_sizes)
    if total <= 0:
        return 0.0
    ps = [s/total for s in ext_sizes if s>0]
    return max(0.0, -sum(p*math.log(p+1e-12, 2) for p in ps))

def compute_metrics(free_extents: List[Tuple[int,int]]) -> FragMetrics:
    sizes=[s for _,s in free_extents if s>0]
    total_free=sum(sizes)
    lfe=max(sizes, default=0)
    holes=len(sizes)
    external = 0.0 if total_free==0 else max(0.0, 1.0 - (lfe/total_free))
    ent=_entropy(sizes)
    return FragMetrics(total_free, lfe, external, ent, holes)
