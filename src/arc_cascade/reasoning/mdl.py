"""Minimum description length scoring.

``mdl_score = description_length(program) + data_fit(program, pairs)``.
Lower is better. Scores rank exact solutions and are reported with results;
they never decide acceptance.
"""

import math
from typing import Dict, Iterable, List, Tuple

import numpy as np

from arc_cascade.core.data_models import ExamplePair, Grid, LearnedTransform
from .dsl_engine import Conditional, Prim, Sequence
from .primitives import PARAM_COUNTS, PrimKind
from .verification import Candidate, run_candidate

BASE_BITS = 4.0
PARAM_BITS = 3.3  # ~log2(10)
COMPOSITE_BITS = 1.0
DIMENSION_MISMATCH_BITS = 100.0
CELL_ERROR_BITS = 3.3

# Kinds whose parameters are not plain colors
_COST_OVERRIDES: Dict[PrimKind, float] = {
    PrimKind.IDENTITY: 0.0,
    PrimKind.CROP: BASE_BITS + 12.0,
    PrimKind.PAD: BASE_BITS + 6.0,
    PrimKind.SCALE: BASE_BITS + 2.0,
    PrimKind.DOWNSCALE: BASE_BITS + 2.0,
    PrimKind.REPEAT_H: BASE_BITS + 2.0,
    PrimKind.REPEAT_V: BASE_BITS + 2.0,
    PrimKind.EXTRACT_OBJECT: BASE_BITS + 3.0,
    PrimKind.TRANSLATE: BASE_BITS + 4.0,
}


def leaf_cost(prim: Prim) -> float:
    if prim.kind in _COST_OVERRIDES:
        return _COST_OVERRIDES[prim.kind]
    return BASE_BITS + PARAM_BITS * PARAM_COUNTS[prim.kind]


def description_length(candidate: Candidate) -> float:
    """Bits needed to describe a program.

    Identity is free, each leaf costs its kind's bits and each composite node
    adds one bit on top of its children.
    """
    if isinstance(candidate, LearnedTransform):
        return candidate.description_length()
    if isinstance(candidate, Prim):
        return leaf_cost(candidate)
    if isinstance(candidate, Sequence):
        return COMPOSITE_BITS + description_length(candidate.first) + description_length(candidate.second)
    if isinstance(candidate, Conditional):
        return (COMPOSITE_BITS + description_length(candidate.cond)
                + description_length(candidate.then) + description_length(candidate.else_))
    raise TypeError(f"Not a program: {candidate!r}")


def grid_error(actual: Grid, expected: Grid) -> float:
    """Error in bits between a produced grid and the expected one."""
    if actual.shape != expected.shape:
        return DIMENSION_MISMATCH_BITS
    return CELL_ERROR_BITS * int(np.count_nonzero(actual != expected))


def data_fit(candidate: Candidate, pairs: Iterable[ExamplePair]) -> float:
    return sum(grid_error(run_candidate(candidate, p.input), p.output) for p in pairs)


def mdl_score(candidate: Candidate, pairs: Iterable[ExamplePair]) -> float:
    return description_length(candidate) + data_fit(candidate, list(pairs))


# Grid compression utilities

def rle_encode(row: Iterable[int]) -> List[Tuple[int, int]]:
    """Run-length encode a row as (value, count) runs."""
    runs: List[Tuple[int, int]] = []
    for value in row:
        value = int(value)
        if runs and runs[-1][0] == value:
            runs[-1] = (value, runs[-1][1] + 1)
        else:
            runs.append((value, 1))
    return runs


def rle_decode(runs: Iterable[Tuple[int, int]]) -> List[int]:
    row: List[int] = []
    for value, count in runs:
        row.extend([value] * count)
    return row


def delta_encode(base: Grid, target: Grid) -> List[Tuple[int, int, int]]:
    """Cells where ``target`` differs from ``base``, over the shared extent."""
    rows = min(base.shape[0], target.shape[0])
    cols = min(base.shape[1], target.shape[1])
    diff = np.argwhere(base[:rows, :cols] != target[:rows, :cols])
    return [(int(r), int(c), int(target[r, c])) for r, c in diff]


def delta_apply(base: Grid, diffs: Iterable[Tuple[int, int, int]]) -> Grid:
    result = base.copy()
    rows, cols = result.shape
    for r, c, value in diffs:
        if 0 <= r < rows and 0 <= c < cols:
            result[r, c] = value
    return result


def compression_ratio(grid: Grid) -> float:
    """RLE size (3 bytes per run) over raw size; 1.0 for empty grids."""
    if grid.size == 0:
        return 1.0
    rle_size = sum(len(rle_encode(row)) * 3 for row in grid)
    return rle_size / grid.size


def grid_entropy(grid: Grid) -> float:
    """Shannon entropy of the cell colors in bits per cell."""
    if grid.size == 0:
        return 0.0
    _, counts = np.unique(grid, return_counts=True)
    probs = counts / grid.size
    return float(-sum(p * math.log2(p) for p in probs))
