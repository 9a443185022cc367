"""Mirror symmetry and periodicity detection for grids."""

from typing import Optional

import numpy as np

from arc_cascade.core.data_models import Grid


def is_symmetric_h(grid: Grid) -> bool:
    """Left-right mirror symmetry."""
    return bool(np.array_equal(grid, np.fliplr(grid)))


def is_symmetric_v(grid: Grid) -> bool:
    """Top-bottom mirror symmetry."""
    return bool(np.array_equal(grid, np.flipud(grid)))


def detect_period_h(grid: Grid) -> Optional[int]:
    """Smallest horizontal period p <= cols/2 such that column c equals column c-p."""
    cols = grid.shape[1]
    for p in range(1, cols // 2 + 1):
        if np.array_equal(grid[:, p:], grid[:, :-p]):
            return p
    return None


def detect_period_v(grid: Grid) -> Optional[int]:
    """Smallest vertical period p <= rows/2 such that row r equals row r-p."""
    return detect_period_h(grid.T)
