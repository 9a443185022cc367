"""Smart transforms: closed-form relationships learned from examples.

Unlike static primitives, these analyze the first training pair to infer
parameters (a color table, a tiling factor, a crop window, a period) and
then apply the learned transformation to new inputs.

Templates are tried in order; the first one that reproduces every training
pair is returned:

- Color map: single-valued per-cell color table.
- Self tiling: each non-zero cell becomes a copy of the grid.
- Tiling: the grid repeated ``n_r`` x ``n_c`` times.
- Subgrid: a fixed-offset window.
- Row / column dedup: consecutive identical lines collapsed.
- Period repair: zero holes in a periodic pattern filled by majority vote.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np

from arc_cascade.core.data_models import ExamplePair, Grid, LearnedTransform, grids_equal

logger = logging.getLogger(__name__)


# Grid functions

def learn_color_map(source: Grid, target: Grid) -> Optional[Dict[int, int]]:
    """Learn a per-cell color mapping; None if shapes differ or it is not single-valued."""
    if source.shape != target.shape:
        return None
    mapping: Dict[int, int] = {}
    for ic, oc in zip(source.ravel().tolist(), target.ravel().tolist()):
        existing = mapping.setdefault(ic, oc)
        if existing != oc:
            return None
    return mapping


def apply_color_map(grid: Grid, mapping: Dict[int, int]) -> Grid:
    """Recolor through ``mapping``; unmapped colors are left unchanged."""
    result = grid.copy()
    for source, target in mapping.items():
        result[grid == source] = target
    return result


def verify_color_map(mapping: Dict[int, int], pairs: Sequence[ExamplePair]) -> bool:
    """Every cell of every pair must be mapped, and mapped correctly."""
    for pair in pairs:
        if pair.input.shape != pair.output.shape:
            return False
        for ic, oc in zip(pair.input.ravel().tolist(), pair.output.ravel().tolist()):
            if mapping.get(ic) != oc:
                return False
    return True


def tile_with_self(grid: Grid) -> Grid:
    """Replace each non-zero cell with a copy of the grid; zero cells become zero blocks."""
    if grid.size == 0:
        return grid.copy()
    mask = (grid != 0).astype(np.int32)
    return np.kron(mask, grid).astype(np.int32)


def tile_grid(grid: Grid, n_r: int, n_c: int) -> Grid:
    if grid.size == 0 or n_r <= 0 or n_c <= 0:
        return np.zeros((0, 0), dtype=np.int32)
    return np.tile(grid, (n_r, n_c))


def detect_tiling(source: Grid, target: Grid) -> Optional[Tuple[int, int]]:
    """(n_r, n_c) if ``target`` is ``source`` tiled n_r x n_c times."""
    if source.size == 0 or target.size == 0:
        return None
    (in_r, in_c), (out_r, out_c) = source.shape, target.shape
    if out_r % in_r or out_c % in_c:
        return None
    n_r, n_c = out_r // in_r, out_c // in_c
    if grids_equal(tile_grid(source, n_r, n_c), target):
        return n_r, n_c
    return None


def detect_self_tiling(source: Grid, target: Grid) -> bool:
    return grids_equal(tile_with_self(source), target)


def extract_subgrid(grid: Grid, r: int, c: int, h: int, w: int) -> Grid:
    return grid[r:r + h, c:c + w].copy()


def detect_subgrid(source: Grid, target: Grid) -> Optional[Tuple[int, int, int, int]]:
    """First (r, c, h, w) in row-major order where ``target`` appears inside ``source``."""
    if target.size == 0:
        return None
    h, w = target.shape
    rows, cols = source.shape
    for r in range(max(0, rows - h) + 1):
        for c in range(max(0, cols - w) + 1):
            if grids_equal(extract_subgrid(source, r, c, h, w), target):
                return r, c, h, w
    return None


def dedup_rows(grid: Grid) -> Grid:
    """Collapse runs of consecutive identical rows."""
    if grid.shape[0] == 0:
        return grid.copy()
    keep = [0] + [r for r in range(1, grid.shape[0]) if not np.array_equal(grid[r], grid[r - 1])]
    return grid[keep].copy()


def dedup_cols(grid: Grid) -> Grid:
    if grid.shape[1] == 0:
        return grid.copy()
    return dedup_rows(grid.T).T.copy()


def _majority(counts: np.ndarray) -> int:
    """Most frequent color; ties go to the higher color."""
    return int(len(counts) - 1 - np.argmax(counts[::-1]))


def majority_vote(grids: Sequence[Grid]) -> Grid:
    """Per-cell most common color across grids of the first grid's shape."""
    if not grids or grids[0].size == 0:
        return np.zeros((0, 0), dtype=np.int32)
    rows, cols = grids[0].shape
    result = np.zeros((rows, cols), dtype=np.int32)
    for r in range(rows):
        for c in range(cols):
            counts = np.zeros(10, dtype=int)
            for g in grids:
                if r < g.shape[0] and c < g.shape[1] and 0 <= g[r, c] < 10:
                    counts[g[r, c]] += 1
            result[r, c] = _majority(counts)
    return result


def detect_damaged_period(source: Grid, target: Grid) -> Optional[Tuple[int, int]]:
    """Find a period (pr, pc) for which ``source`` is ``target`` with zero holes.

    The target must be exactly periodic, the source must agree with it
    wherever the source is non-zero, and at least one hole must be filled.
    """
    if source.shape != target.shape or source.size == 0:
        return None
    rows, cols = source.shape
    consistent = bool(np.all((source == 0) | (source == target)))
    damaged = bool(np.any((source == 0) & (target != 0)))
    if not consistent or not damaged:
        return None
    for pr in range(1, rows // 2 + 1):
        if rows % pr:
            continue
        for pc in range(1, cols // 2 + 1):
            if cols % pc:
                continue
            if grids_equal(tile_grid(target[:pr, :pc], rows // pr, cols // pc), target):
                return pr, pc
    return None


def repair_period(grid: Grid, pr: int, pc: int) -> Grid:
    """Rebuild a periodic grid from the majority non-zero color per period residue."""
    if grid.size == 0 or pr <= 0 or pc <= 0:
        return grid.copy()
    rows, cols = grid.shape
    tile = np.zeros((pr, pc), dtype=np.int32)
    for tr in range(pr):
        for tc in range(pc):
            values = grid[tr::pr, tc::pc].ravel()
            values = values[(values > 0) & (values < 10)]
            if len(values):
                tile[tr, tc] = _majority(np.bincount(values, minlength=10))
    reps_r, reps_c = -(-rows // pr), -(-cols // pc)
    return np.tile(tile, (reps_r, reps_c))[:rows, :cols].copy()


# Learned transforms

class SmartTransform(LearnedTransform):
    """A named grid function with bound learned parameters."""

    def __init__(self, name: str, func: Callable[..., Grid], *params):
        self._name = name
        self._func = func
        self.params = params

    @property
    def name(self) -> str:
        return self._name

    def apply(self, grid: Grid) -> Grid:
        return self._func(grid, *self.params)

    def __repr__(self) -> str:
        return f"SmartTransform({self._name}, {self.params})"


def _template_color_map(pairs: List[ExamplePair]) -> Optional[SmartTransform]:
    mapping = learn_color_map(pairs[0].input, pairs[0].output)
    if mapping is not None and verify_color_map(mapping, pairs):
        return SmartTransform("color_map", apply_color_map, mapping)
    return None


def _template_self_tile(pairs: List[ExamplePair]) -> Optional[SmartTransform]:
    if all(detect_self_tiling(p.input, p.output) for p in pairs):
        return SmartTransform("self_tile", tile_with_self)
    return None


def _template_tile(pairs: List[ExamplePair]) -> Optional[SmartTransform]:
    factors = detect_tiling(pairs[0].input, pairs[0].output)
    if factors is None:
        return None
    if all(detect_tiling(p.input, p.output) == factors for p in pairs):
        return SmartTransform("tile", tile_grid, *factors)
    return None


def _template_subgrid(pairs: List[ExamplePair]) -> Optional[SmartTransform]:
    window = detect_subgrid(pairs[0].input, pairs[0].output)
    if window is None:
        return None
    if all(grids_equal(extract_subgrid(p.input, *window), p.output) for p in pairs):
        return SmartTransform("subgrid", extract_subgrid, *window)
    return None


def _template_dedup_rows(pairs: List[ExamplePair]) -> Optional[SmartTransform]:
    if all(grids_equal(dedup_rows(p.input), p.output) for p in pairs):
        return SmartTransform("dedup_rows", dedup_rows)
    return None


def _template_dedup_cols(pairs: List[ExamplePair]) -> Optional[SmartTransform]:
    if all(grids_equal(dedup_cols(p.input), p.output) for p in pairs):
        return SmartTransform("dedup_cols", dedup_cols)
    return None


def _template_repair_period(pairs: List[ExamplePair]) -> Optional[SmartTransform]:
    period = detect_damaged_period(pairs[0].input, pairs[0].output)
    if period is None:
        return None
    if all(grids_equal(repair_period(p.input, *period), p.output) for p in pairs):
        return SmartTransform("repair_period", repair_period, *period)
    return None


TEMPLATES = (
    _template_color_map,
    _template_self_tile,
    _template_tile,
    _template_subgrid,
    _template_dedup_rows,
    _template_dedup_cols,
    _template_repair_period,
)


def try_smart_transforms(pairs: List[ExamplePair]) -> Optional[SmartTransform]:
    """Try each template in order. Return the first that fits every pair, or None.

    Args:
        pairs: Training pairs

    Returns:
        SmartTransform reproducing every pair; otherwise None
    """
    if not pairs:
        return None
    for template in TEMPLATES:
        transform = template(pairs)
        if transform is not None:
            logger.debug(f"Smart transform matched: {transform.name}")
            return transform
    return None
