"""Hash-based grid fingerprints for frontier deduplication.

A fingerprint stands in for a grid inside search frontiers. The 64-bit
``full`` hash covers the shape and every cell, so two different grids
sharing a fingerprint is vanishingly unlikely, but correctness-critical
code (the bidirectional meeting check) still compares grids exactly.
"""

import hashlib
import math
from dataclasses import dataclass
from typing import Set, Tuple

import numpy as np

from arc_cascade.core.data_models import Grid


def _digest(grid: Grid, origin: Tuple[int, int] = (0, 0)) -> int:
    h = hashlib.blake2b(digest_size=8)
    h.update(np.asarray(grid.shape + origin, dtype=np.int64).tobytes())
    h.update(np.ascontiguousarray(grid, dtype=np.int32).tobytes())
    return int.from_bytes(h.digest(), 'little')


def hash_grid(grid: Grid) -> int:
    """64-bit hash of shape and contents."""
    return _digest(grid)


def grid_shape(grid: Grid) -> int:
    rows, cols = grid.shape
    return (rows << 16) | cols


def color_signature(grid: Grid) -> int:
    """Color histogram compressed to 32 bits.

    Each of colors 0-9 gets 3 bits holding floor(log2(count)) capped at 7;
    the top 2 bits hold the number of distinct colors mod 4.
    """
    values = grid[(grid >= 0) & (grid < 10)]
    counts = np.bincount(values.ravel(), minlength=10)[:10]
    sig = 0
    for color, count in enumerate(counts):
        bucket = 0 if count == 0 else min(7, int(math.log2(count)))
        sig |= bucket << (color * 3)
    sig |= (int(np.count_nonzero(counts)) & 3) << 30
    return sig


@dataclass(frozen=True)
class GridFingerprint:
    """Fixed-size identity surrogate for a grid."""

    full: int
    shape: int
    color_sig: int

    @classmethod
    def compute(cls, grid: Grid) -> "GridFingerprint":
        return cls(full=hash_grid(grid), shape=grid_shape(grid), color_sig=color_signature(grid))

    def same_shape(self, other: "GridFingerprint") -> bool:
        return self.shape == other.shape

    def same_colors(self, other: "GridFingerprint") -> bool:
        return self.color_sig == other.color_sig

    def structurally_similar(self, other: "GridFingerprint") -> bool:
        """Same shape and same coarse color distribution."""
        return self.same_shape(other) and self.same_colors(other)


def quadrant_hashes(grid: Grid) -> Tuple[int, int, int, int]:
    """Hashes of the TL, TR, BL, BR quadrants (split at rows//2, cols//2)."""
    rows, cols = grid.shape
    mid_r, mid_c = rows // 2, cols // 2
    return (
        _digest(grid[:mid_r, :mid_c], (0, 0)),
        _digest(grid[:mid_r, mid_c:], (0, mid_c)),
        _digest(grid[mid_r:, :mid_c], (mid_r, 0)),
        _digest(grid[mid_r:, mid_c:], (mid_r, mid_c)),
    )


@dataclass(frozen=True)
class MultiResFingerprint:
    """Full fingerprint plus quadrant hashes for approximate similarity."""

    full: GridFingerprint
    quadrants: Tuple[int, int, int, int]

    @classmethod
    def compute(cls, grid: Grid) -> "MultiResFingerprint":
        return cls(full=GridFingerprint.compute(grid), quadrants=quadrant_hashes(grid))

    def similarity(self, other: "MultiResFingerprint") -> float:
        """1.0 for identical grids, 0.0 for different shapes, else matching quadrants / 4."""
        if self.full.full == other.full.full:
            return 1.0
        if not self.full.same_shape(other.full):
            return 0.0
        matching = sum(1 for a, b in zip(self.quadrants, other.quadrants) if a == b)
        return matching / 4.0


class FingerprintSet:
    """Set of seen grids keyed by their full hash."""

    def __init__(self):
        self._seen: Set[int] = set()

    def insert(self, grid: Grid) -> bool:
        """Add a grid; True if it had not been seen before."""
        fp = hash_grid(grid)
        if fp in self._seen:
            return False
        self._seen.add(fp)
        return True

    def contains(self, grid: Grid) -> bool:
        return hash_grid(grid) in self._seen

    def __len__(self) -> int:
        return len(self._seen)

    def clear(self) -> None:
        self._seen.clear()
