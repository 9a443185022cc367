"""Cellular-automaton rule learning.

A rule maps a cell's neighborhood signature to an output color. The
signature is the cell's own color, a histogram of colors 0-9 over its
8-cell Moore neighborhood (cells outside the grid read as 0), and whether
the cell lies on the grid border.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Tuple

import numpy as np

from arc_cascade.core.data_models import ExamplePair, Grid, LearnedTransform, grids_equal

logger = logging.getLogger(__name__)

NeighborSignature = Tuple[int, Tuple[int, ...], bool]
Rule = Dict[NeighborSignature, int]

_OFFSETS = [(-1, -1), (-1, 0), (-1, 1), (0, -1), (0, 1), (1, -1), (1, 0), (1, 1)]


def neighbor_signatures(grid: Grid) -> List[List[NeighborSignature]]:
    """Signature for every cell, row-major."""
    rows, cols = grid.shape
    padded = np.pad(grid, 1, mode='constant', constant_values=0)
    onehot = (padded[..., None] == np.arange(10)).astype(np.int32)
    counts = np.zeros((rows, cols, 10), dtype=np.int32)
    for dr, dc in _OFFSETS:
        counts += onehot[1 + dr:1 + dr + rows, 1 + dc:1 + dc + cols]

    counts_list = counts.tolist()
    cells = grid.tolist()
    signatures = []
    for r in range(rows):
        row = []
        for c in range(cols):
            border = r == 0 or c == 0 or r == rows - 1 or c == cols - 1
            row.append((cells[r][c], tuple(counts_list[r][c]), border))
        signatures.append(row)
    return signatures


def learn_ca_rule(source: Grid, target: Grid) -> Optional[Rule]:
    """Learn signature -> color from one pair; None if shapes differ or it is inconsistent."""
    if source.shape != target.shape:
        return None
    rule: Rule = {}
    targets = target.tolist()
    for r, row in enumerate(neighbor_signatures(source)):
        for c, sig in enumerate(row):
            existing = rule.setdefault(sig, targets[r][c])
            if existing != targets[r][c]:
                return None
    return rule


def apply_ca_rule(grid: Grid, rule: Rule) -> Grid:
    """One synchronous step; unseen signatures keep the cell's color."""
    if grid.size == 0:
        return grid.copy()
    out = [[rule.get(sig, sig[0]) for sig in row] for row in neighbor_signatures(grid)]
    return np.array(out, dtype=np.int32)


def apply_ca_steps(grid: Grid, rule: Rule, steps: int) -> Grid:
    """Apply up to ``steps`` steps, stopping early at a fixpoint."""
    current = grid
    for _ in range(steps):
        nxt = apply_ca_rule(current, rule)
        if grids_equal(nxt, current):
            break
        current = nxt
    return current


class CellularRule(LearnedTransform):
    """A learned rule iterated for a fixed number of steps."""

    def __init__(self, rule: Rule, steps: int):
        self.rule = rule
        self.steps = steps

    @property
    def name(self) -> str:
        return f"cellular_{self.steps}steps"

    def apply(self, grid: Grid) -> Grid:
        return apply_ca_steps(grid, self.rule, self.steps)

    def description_length(self) -> float:
        return 3.0

    def __repr__(self) -> str:
        return f"CellularRule({len(self.rule)} signatures, steps={self.steps})"


def try_ca_solve(pairs: List[ExamplePair], max_steps: int = 3) -> Optional[CellularRule]:
    """Find a rule that reproduces every pair at some step count.

    At one step the rule is learned from the first pair and must reproduce
    every pair directly. For 2..max_steps the same rule is iterated (to a
    fixpoint or the step cap) and must reproduce every pair.
    """
    if not pairs:
        return None
    rule = learn_ca_rule(pairs[0].input, pairs[0].output)
    if rule is None:
        return None

    for steps in range(1, max_steps + 1):
        candidate = CellularRule(rule, steps)
        if all(grids_equal(candidate.apply(p.input), p.output) for p in pairs):
            logger.debug(f"Cellular rule fits at {steps} steps ({len(rule)} signatures)")
            return candidate
    return None
