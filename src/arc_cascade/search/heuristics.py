"""Feature-driven primitive selection.

Maps a :class:`FeatureProfile` to a reduced, deduplicated subset of the
primitive catalog. This is a pruning heuristic, not a soundness-preserving
filter: a correct program may be excluded, leaving it to the exhaustive
strategies later in the cascade.
"""

import logging
from typing import Iterable, List

from arc_cascade.perception.features import ColorChange, DimChange, FeatureProfile
from arc_cascade.reasoning.dsl_engine import IDENTITY, Prim
from arc_cascade.reasoning.primitives import PrimKind as K

logger = logging.getLogger(__name__)

COLORS = range(10)


def _p(kind: K, *params: int) -> Prim:
    return Prim(kind, tuple(params))


def _color_ops(profile: FeatureProfile) -> List[Prim]:
    prims = []
    for ic in profile.input_colors:
        for oc in profile.output_colors:
            if ic != oc:
                prims.append(_p(K.REPLACE_COLOR, ic, oc))
        prims.append(_p(K.FILTER_COLOR, ic))
        prims.append(_p(K.FILL_COLOR, ic))
    return prims


def _dimension_prims(profile: FeatureProfile) -> List[Prim]:
    dim = profile.dim_change
    prims: List[Prim] = []

    if dim == DimChange.SAME:
        prims += [_p(k) for k in (
            K.ROTATE_CW, K.ROTATE_CCW, K.ROTATE_180, K.FLIP_H, K.FLIP_V,
            K.GRAVITY_DOWN, K.GRAVITY_UP, K.GRAVITY_LEFT, K.GRAVITY_RIGHT,
            K.INVERT, K.SORT_ROWS_BY_COLOR, K.SORT_COLS_BY_COLOR,
            K.KEEP_LARGEST, K.KEEP_SMALLEST,
            K.EXTEND_LINES_H, K.EXTEND_LINES_V, K.EXTEND_CROSS,
            K.DIAG_FILL_TL, K.DIAG_FILL_TR,
        )]
        for d in (-2, -1, 1, 2):
            prims.append(_p(K.TRANSLATE, d, 0))
            prims.append(_p(K.TRANSLATE, 0, d))
        prims += _color_ops(profile)

    elif dim == DimChange.TRANSPOSED:
        prims += [_p(K.TRANSPOSE), _p(K.ROTATE_CW), _p(K.ROTATE_CCW)]

    elif dim == DimChange.SCALED:
        for s in range(2, 5):
            prims += [_p(K.SCALE, s), _p(K.REPEAT_H, s), _p(K.REPEAT_V, s)]
        rf, cf = profile.scale_factors
        if rf == cf:
            prims.append(_p(K.SCALE, rf))
        prims += [_p(K.MIRROR_H), _p(K.MIRROR_V)]

    elif dim == DimChange.CROPPED:
        prims += [_p(K.KEEP_LARGEST), _p(K.KEEP_SMALLEST), _p(K.CROP_TO_BBOX)]
        prims += [_p(K.EXTRACT_OBJECT, i) for i in range(5)]

    elif dim == DimChange.PADDED:
        for c in COLORS:
            prims += [_p(K.PAD, 1, c), _p(K.BORDER_FILL, c)]
        prims += [_p(K.MIRROR_H), _p(K.MIRROR_V)]

    else:
        prims += [_p(K.KEEP_LARGEST), _p(K.KEEP_SMALLEST), _p(K.TRANSPOSE)]
        prims += [_p(K.EXTRACT_OBJECT, i) for i in range(3)]

    return prims


def _symmetry_prims(profile: FeatureProfile) -> List[Prim]:
    prims = []
    if profile.output_symmetric_h and not profile.input_symmetric_h:
        prims += [_p(K.MIRROR_H), _p(K.FLIP_H)]
    if profile.output_symmetric_v and not profile.input_symmetric_v:
        prims += [_p(K.MIRROR_V), _p(K.FLIP_V)]
    return prims


def _object_prims(profile: FeatureProfile) -> List[Prim]:
    prims = []
    if profile.object_delta < 0:
        prims += [_p(K.KEEP_LARGEST), _p(K.KEEP_SMALLEST)]
        prims += [_p(K.REMOVE_COLOR, c) for c in COLORS]
    if profile.object_delta > 0:
        for c in COLORS:
            prims += [_p(K.OUTLINE_OBJECTS, c), _p(K.FILL_INSIDE_OBJECTS, c)]
    return prims


def _color_change_prims(profile: FeatureProfile) -> List[Prim]:
    prims = []
    in_colors, out_colors = profile.input_colors, profile.output_colors

    if profile.color_change == ColorChange.BIJECTION:
        for ic in in_colors:
            for oc in out_colors:
                if ic != oc:
                    prims.append(_p(K.REPLACE_COLOR, ic, oc))

    elif profile.color_change == ColorChange.REDUCTION:
        for c in in_colors:
            if c not in out_colors:
                prims.append(_p(K.REMOVE_COLOR, c))
                prims += [_p(K.REPLACE_COLOR, c, oc) for oc in out_colors]

    elif profile.color_change == ColorChange.EXPANSION:
        for c in out_colors:
            if c not in in_colors:
                prims += [_p(K.FILL_COLOR, c), _p(K.BORDER_FILL, c),
                          _p(K.OUTLINE_OBJECTS, c), _p(K.FILL_INSIDE_OBJECTS, c)]
        prims += [_p(K.FILL_ENCLOSED, c) for c in in_colors]

    return prims


def dedup_prims(prims: Iterable[Prim]) -> List[Prim]:
    """Drop repeated primitives, keeping first occurrences in order."""
    seen = set()
    result = []
    for prim in prims:
        if prim not in seen:
            seen.add(prim)
            result.append(prim)
    return result


def select_primitives(profile: FeatureProfile) -> List[Prim]:
    """Select primitives likely to be useful for a profiled task.

    Identity is always first. Each profile field appends a fixed subset:
    dimension class, symmetry gain, object-count change and color change,
    in that order, followed by deduplication.

    Args:
        profile: Feature profile of the task's first training pair

    Returns:
        Ordered, duplicate-free list of primitives
    """
    prims = [IDENTITY]
    prims += _dimension_prims(profile)
    prims += _symmetry_prims(profile)
    prims += _object_prims(profile)
    prims += _color_change_prims(profile)
    selected = dedup_prims(prims)
    logger.debug(f"Selected {len(selected)} primitives for {profile.dim_change.value} task")
    return selected
