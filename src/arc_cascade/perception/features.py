"""Structural feature profiling of a task's first training pair."""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence, Tuple

import numpy as np

from arc_cascade.core.data_models import ExamplePair, Grid, grids_equal
from .blob_labeling import find_objects
from .symmetry import detect_period_h, detect_period_v, is_symmetric_h, is_symmetric_v

logger = logging.getLogger(__name__)


class DimChange(Enum):
    """How output dimensions relate to input dimensions."""
    SAME = "same"
    TRANSPOSED = "transposed"
    SCALED = "scaled"
    CROPPED = "cropped"
    PADDED = "padded"
    ARBITRARY = "arbitrary"


class ColorChange(Enum):
    """How the output color set relates to the input color set."""
    SAME = "same"
    BIJECTION = "bijection"
    REDUCTION = "reduction"
    EXPANSION = "expansion"
    COMPLEX = "complex"


@dataclass(frozen=True)
class FeatureProfile:
    """Read-only facts about the first training pair."""

    dim_change: DimChange
    color_change: ColorChange
    object_delta: int = 0  # output objects - input objects
    scale_factors: Tuple[int, int] = (1, 1)  # (rows, cols), set when SCALED
    input_symmetric_h: bool = False
    input_symmetric_v: bool = False
    output_symmetric_h: bool = False
    output_symmetric_v: bool = False
    input_period_h: Optional[int] = None
    input_period_v: Optional[int] = None
    output_period_h: Optional[int] = None
    output_period_v: Optional[int] = None
    same_grid: bool = False
    input_colors: Tuple[int, ...] = field(default_factory=tuple)
    output_colors: Tuple[int, ...] = field(default_factory=tuple)
    input_dims: Tuple[int, int] = (0, 0)
    output_dims: Tuple[int, int] = (0, 0)


def unique_colors(grid: Grid) -> Tuple[int, ...]:
    """Sorted distinct colors present in the grid."""
    return tuple(int(c) for c in np.unique(grid))


def classify_dim_change(in_dims: Tuple[int, int],
                        out_dims: Tuple[int, int]) -> Tuple[DimChange, Tuple[int, int]]:
    """Classify a dimension change.

    Checked in order: equal, swapped, integer upscale, any shrink, any growth.

    Returns:
        (dimension change class, (row factor, col factor))
    """
    if in_dims == out_dims:
        return DimChange.SAME, (1, 1)
    if in_dims[0] == out_dims[1] and in_dims[1] == out_dims[0]:
        return DimChange.TRANSPOSED, (1, 1)

    if min(in_dims) > 0 and min(out_dims) > 0:
        if out_dims[0] % in_dims[0] == 0 and out_dims[1] % in_dims[1] == 0:
            rf, cf = out_dims[0] // in_dims[0], out_dims[1] // in_dims[1]
            if rf > 1 or cf > 1:
                return DimChange.SCALED, (rf, cf)

    if out_dims[0] < in_dims[0] or out_dims[1] < in_dims[1]:
        return DimChange.CROPPED, (1, 1)
    if out_dims[0] > in_dims[0] or out_dims[1] > in_dims[1]:
        return DimChange.PADDED, (1, 1)
    return DimChange.ARBITRARY, (1, 1)


def classify_color_change(in_colors: Sequence[int], out_colors: Sequence[int]) -> ColorChange:
    """Classify by comparing the sorted color sets and their cardinality."""
    if tuple(in_colors) == tuple(out_colors):
        return ColorChange.SAME
    n_in, n_out = len(set(in_colors)), len(set(out_colors))
    if n_in == n_out:
        return ColorChange.BIJECTION
    if n_out < n_in:
        return ColorChange.REDUCTION
    if n_out > n_in:
        return ColorChange.EXPANSION
    return ColorChange.COMPLEX


def analyze_features(pairs: List[ExamplePair]) -> FeatureProfile:
    """Profile the first training pair.

    Args:
        pairs: Training pairs (only the first is inspected)

    Returns:
        FeatureProfile; an ARBITRARY/COMPLEX profile when there are no pairs
    """
    if not pairs:
        return FeatureProfile(dim_change=DimChange.ARBITRARY, color_change=ColorChange.COMPLEX)

    source, target = pairs[0].input, pairs[0].output
    in_colors = unique_colors(source)
    out_colors = unique_colors(target)
    dim_change, factors = classify_dim_change(source.shape, target.shape)

    profile = FeatureProfile(
        dim_change=dim_change,
        color_change=classify_color_change(in_colors, out_colors),
        object_delta=len(find_objects(target)) - len(find_objects(source)),
        scale_factors=factors,
        input_symmetric_h=is_symmetric_h(source),
        input_symmetric_v=is_symmetric_v(source),
        output_symmetric_h=is_symmetric_h(target),
        output_symmetric_v=is_symmetric_v(target),
        input_period_h=detect_period_h(source),
        input_period_v=detect_period_v(source),
        output_period_h=detect_period_h(target),
        output_period_v=detect_period_v(target),
        same_grid=grids_equal(source, target),
        input_colors=in_colors,
        output_colors=out_colors,
        input_dims=tuple(source.shape),
        output_dims=tuple(target.shape),
    )
    logger.debug(f"Feature profile: {profile.dim_change.value}/{profile.color_change.value}, "
                 f"object delta {profile.object_delta}")
    return profile
