"""Core DSL primitives for grid transformations.

This module implements the fundamental operations that can be applied to grids
in the ARC domain. Every primitive is a pure function ``(grid, *params) -> grid``
registered against a :class:`PrimKind`. The registry is checked for
completeness at import time so that adding a kind without an implementation
fails immediately.

All primitives are total: out-of-range parameters return the input unchanged
(or an empty grid where the result has no cells), never raise.
"""

import logging
from enum import Enum
from typing import Callable, Dict

import numpy as np

from arc_cascade.core.data_models import Grid
from arc_cascade.perception.blob_labeling import enclosed_mask, find_objects

logger = logging.getLogger(__name__)

EMPTY = np.zeros((0, 0), dtype=np.int32)


class PrimKind(Enum):
    """Closed set of leaf primitive kinds."""

    IDENTITY = "Identity"
    # Geometric
    ROTATE_CW = "RotateCW"
    ROTATE_CCW = "RotateCCW"
    ROTATE_180 = "Rotate180"
    FLIP_H = "FlipH"
    FLIP_V = "FlipV"
    TRANSPOSE = "Transpose"
    TRANSLATE = "Translate"
    # Color
    FILL_COLOR = "FillColor"
    REPLACE_COLOR = "ReplaceColor"
    FILTER_COLOR = "FilterColor"
    REMOVE_COLOR = "RemoveColor"
    INVERT = "Invert"
    MOST_FREQUENT_COLOR = "MostFrequentColor"
    BORDER_FILL = "BorderFill"
    # Size changing
    CROP = "Crop"
    PAD = "Pad"
    SCALE = "Scale"
    DOWNSCALE = "Downscale"
    REPEAT_H = "RepeatH"
    REPEAT_V = "RepeatV"
    MIRROR_H = "MirrorH"
    MIRROR_V = "MirrorV"
    CROP_TO_BBOX = "CropToBBox"
    # Gravity
    GRAVITY_DOWN = "GravityDown"
    GRAVITY_UP = "GravityUp"
    GRAVITY_LEFT = "GravityLeft"
    GRAVITY_RIGHT = "GravityRight"
    # Ordering
    SORT_ROWS_BY_COLOR = "SortRowsByColor"
    SORT_COLS_BY_COLOR = "SortColsByColor"
    # Objects
    KEEP_LARGEST = "KeepLargestObject"
    KEEP_SMALLEST = "KeepSmallestObject"
    EXTRACT_OBJECT = "ExtractObject"
    OUTLINE_OBJECTS = "OutlineObjects"
    FILL_INSIDE_OBJECTS = "FillInsideObjects"
    FILL_ENCLOSED = "FillEnclosed"
    COMPLETE_BBOX = "CompleteBBox"
    DRAW_BBOXES = "DrawBBoxes"
    # Line and diagonal extension
    EXTEND_LINES_H = "ExtendLinesH"
    EXTEND_LINES_V = "ExtendLinesV"
    EXTEND_CROSS = "ExtendCross"
    DIAG_FILL_TL = "DiagFillTL"
    DIAG_FILL_TR = "DiagFillTR"

    def __str__(self) -> str:
        return self.value


# Number of integer parameters each kind takes
PARAM_COUNTS: Dict[PrimKind, int] = {kind: 0 for kind in PrimKind}
PARAM_COUNTS.update({
    PrimKind.TRANSLATE: 2,
    PrimKind.FILL_COLOR: 1,
    PrimKind.REPLACE_COLOR: 2,
    PrimKind.FILTER_COLOR: 1,
    PrimKind.REMOVE_COLOR: 1,
    PrimKind.BORDER_FILL: 1,
    PrimKind.CROP: 4,
    PrimKind.PAD: 2,
    PrimKind.SCALE: 1,
    PrimKind.DOWNSCALE: 1,
    PrimKind.REPEAT_H: 1,
    PrimKind.REPEAT_V: 1,
    PrimKind.EXTRACT_OBJECT: 1,
    PrimKind.OUTLINE_OBJECTS: 1,
    PrimKind.FILL_INSIDE_OBJECTS: 1,
    PrimKind.FILL_ENCLOSED: 1,
    PrimKind.DRAW_BBOXES: 1,
})


# Geometric Transform Primitives

def rotate_cw(grid: Grid) -> Grid:
    """Rotate grid 90 degrees clockwise."""
    return np.ascontiguousarray(np.rot90(grid, k=-1))


def rotate_ccw(grid: Grid) -> Grid:
    """Rotate grid 90 degrees counter-clockwise."""
    return np.ascontiguousarray(np.rot90(grid, k=1))


def rotate_180(grid: Grid) -> Grid:
    return np.ascontiguousarray(np.rot90(grid, k=2))


def flip_h(grid: Grid) -> Grid:
    """Reflect grid horizontally (flip left-right)."""
    return np.ascontiguousarray(np.fliplr(grid))


def flip_v(grid: Grid) -> Grid:
    """Reflect grid vertically (flip up-down)."""
    return np.ascontiguousarray(np.flipud(grid))


def transpose(grid: Grid) -> Grid:
    return np.ascontiguousarray(grid.T)


def translate(grid: Grid, dr: int, dc: int) -> Grid:
    """Shift grid contents by (dr, dc); vacated cells become 0."""
    rows, cols = grid.shape
    result = np.zeros_like(grid)
    if abs(dr) >= rows or abs(dc) >= cols:
        return result
    src_r = slice(max(0, -dr), rows - max(0, dr))
    src_c = slice(max(0, -dc), cols - max(0, dc))
    dst_r = slice(max(0, dr), rows - max(0, -dr))
    dst_c = slice(max(0, dc), cols - max(0, -dc))
    result[dst_r, dst_c] = grid[src_r, src_c]
    return result


# Color Primitives

def fill_color(grid: Grid, color: int) -> Grid:
    """Recolor every non-zero cell to ``color``."""
    return np.where(grid != 0, color, 0).astype(np.int32)


def replace_color(grid: Grid, source: int, target: int) -> Grid:
    return np.where(grid == source, target, grid).astype(np.int32)


def filter_color(grid: Grid, color: int) -> Grid:
    """Keep only cells of ``color``; everything else becomes 0."""
    return np.where(grid == color, grid, 0).astype(np.int32)


def remove_color(grid: Grid, color: int) -> Grid:
    return np.where(grid == color, 0, grid).astype(np.int32)


def invert(grid: Grid) -> Grid:
    """Map each color c in 1-9 to 10 - c. Other colors are left as they are."""
    palette = (grid > 0) & (grid < 10)
    return np.where(palette, 10 - grid, grid).astype(np.int32)


def most_frequent_fill(grid: Grid) -> Grid:
    """Recolor non-zero cells with the most frequent non-zero color."""
    values = grid[(grid > 0) & (grid < 10)]
    counts = np.bincount(values, minlength=10)
    return fill_color(grid, int(np.argmax(counts)))


def border_fill(grid: Grid, color: int) -> Grid:
    """Paint the outermost ring of cells with ``color``."""
    if grid.size == 0:
        return grid.copy()
    result = grid.copy()
    result[0, :] = color
    result[-1, :] = color
    result[:, 0] = color
    result[:, -1] = color
    return result


# Size-changing Primitives

def crop(grid: Grid, r: int, c: int, h: int, w: int) -> Grid:
    """Crop an ``h`` x ``w`` window at (r, c), clipped to the grid."""
    if r < 0 or c < 0 or h <= 0 or w <= 0:
        return EMPTY.copy()
    result = grid[r:r + h, c:c + w]
    if result.size == 0:
        return EMPTY.copy()
    return result.copy()


def pad(grid: Grid, n: int, color: int) -> Grid:
    if grid.size == 0 or n < 0:
        return grid.copy()
    return np.pad(grid, n, mode='constant', constant_values=color).astype(np.int32)


def scale(grid: Grid, factor: int) -> Grid:
    """Upscale each cell to a ``factor`` x ``factor`` block."""
    if factor <= 0:
        return EMPTY.copy()
    return np.kron(grid, np.ones((factor, factor), dtype=np.int32)).astype(np.int32)


def downscale(grid: Grid, factor: int) -> Grid:
    """Sample every ``factor``-th cell. Unchanged if the shape does not divide."""
    rows, cols = grid.shape
    if factor <= 0 or rows % factor or cols % factor:
        return grid.copy()
    return grid[::factor, ::factor].copy()


def repeat_h(grid: Grid, n: int) -> Grid:
    if n <= 0:
        return EMPTY.copy()
    return np.tile(grid, (1, n))


def repeat_v(grid: Grid, n: int) -> Grid:
    if n <= 0:
        return EMPTY.copy()
    return np.tile(grid, (n, 1))


def mirror_h(grid: Grid) -> Grid:
    """Append the left-right reflection to the right of the grid."""
    return np.hstack([grid, np.fliplr(grid)])


def mirror_v(grid: Grid) -> Grid:
    """Append the up-down reflection below the grid."""
    return np.vstack([grid, np.flipud(grid)])


def crop_to_bbox(grid: Grid) -> Grid:
    """Crop to the bounding box of all non-zero cells."""
    coords = np.argwhere(grid != 0)
    if len(coords) == 0:
        return grid.copy()
    (r0, c0), (r1, c1) = coords.min(axis=0), coords.max(axis=0)
    return grid[r0:r1 + 1, c0:c1 + 1].copy()


# Gravity Primitives

def gravity_down(grid: Grid) -> Grid:
    """Let non-zero cells fall to the bottom of each column, keeping order."""
    rows, cols = grid.shape
    result = np.zeros_like(grid)
    for c in range(cols):
        column = grid[:, c]
        stack = column[column != 0]
        if len(stack):
            result[rows - len(stack):, c] = stack
    return result


def gravity_up(grid: Grid) -> Grid:
    return flip_v(gravity_down(flip_v(grid)))


def gravity_left(grid: Grid) -> Grid:
    return transpose(gravity_up(transpose(grid)))


def gravity_right(grid: Grid) -> Grid:
    return transpose(gravity_down(transpose(grid)))


# Ordering Primitives

def sort_rows_by_color(grid: Grid) -> Grid:
    """Stable sort of rows by their count of non-zero cells (ascending)."""
    if grid.size == 0:
        return grid.copy()
    order = np.argsort((grid != 0).sum(axis=1), kind='stable')
    return grid[order].copy()


def sort_cols_by_color(grid: Grid) -> Grid:
    return transpose(sort_rows_by_color(transpose(grid)))


# Object Primitives

def _keep_object(grid: Grid, largest: bool) -> Grid:
    objects = find_objects(grid)
    if not objects:
        return grid.copy()
    if largest:
        chosen = max(objects, key=lambda blob: blob.area)
    else:
        chosen = min(objects, key=lambda blob: blob.area)
    result = np.zeros_like(grid)
    for r, c in chosen.pixels:
        result[r, c] = chosen.color
    return result


def keep_largest(grid: Grid) -> Grid:
    """Zero every object except the largest (first on ties)."""
    return _keep_object(grid, largest=True)


def keep_smallest(grid: Grid) -> Grid:
    return _keep_object(grid, largest=False)


def extract_object(grid: Grid, index: int) -> Grid:
    """Crop to the ``index``-th object. Unchanged if there is no such object."""
    objects = find_objects(grid)
    if index < 0 or index >= len(objects):
        return grid.copy()
    return objects[index].to_grid()


def outline_objects(grid: Grid, color: int) -> Grid:
    """Paint zero cells 8-adjacent to any non-zero cell with ``color``."""
    if grid.size == 0:
        return grid.copy()
    occupied = np.pad(grid != 0, 1)
    rows, cols = grid.shape
    near = np.zeros((rows, cols), dtype=bool)
    for dr in (-1, 0, 1):
        for dc in (-1, 0, 1):
            if dr or dc:
                near |= occupied[1 + dr:1 + dr + rows, 1 + dc:1 + dc + cols]
    return np.where((grid == 0) & near, color, grid).astype(np.int32)


def fill_inside_objects(grid: Grid, color: int) -> Grid:
    """Recolor object cells whose four neighbours belong to the same object."""
    result = grid.copy()
    for blob in find_objects(grid):
        members = set(blob.pixels)
        for r, c in blob.pixels:
            if all((r + dr, c + dc) in members
                   for dr, dc in ((-1, 0), (1, 0), (0, -1), (0, 1))):
                result[r, c] = color
    return result


def fill_enclosed(grid: Grid, color: int) -> Grid:
    """Fill zero regions not connected to the border with ``color``."""
    if grid.size == 0:
        return grid.copy()
    return np.where(enclosed_mask(grid), color, grid).astype(np.int32)


def complete_bbox(grid: Grid) -> Grid:
    """Fill zero cells inside each object's bounding box with its color."""
    result = grid.copy()
    for blob in find_objects(grid):
        r0, c0, r1, c1 = blob.bounding_box
        window = result[r0:r1 + 1, c0:c1 + 1]
        window[window == 0] = blob.color
    return result


def draw_bboxes(grid: Grid, color: int) -> Grid:
    """Outline the bounding box of each object at least 2x2 in size."""
    result = grid.copy()
    for blob in find_objects(grid):
        if blob.height < 2 or blob.width < 2:
            continue
        r0, c0, r1, c1 = blob.bounding_box
        result[r0, c0:c1 + 1] = color
        result[r1, c0:c1 + 1] = color
        result[r0:r1 + 1, c0] = color
        result[r0:r1 + 1, c1] = color
    return result


# Line and Diagonal Extension

def _single_pixels(grid: Grid):
    return [blob for blob in find_objects(grid) if blob.area == 1]


def _extend_lines(grid: Grid, horizontal: bool, vertical: bool) -> Grid:
    result = grid.copy()
    for blob in _single_pixels(grid):
        r, c = blob.pixels[0]
        if horizontal:
            row = result[r, :]
            row[row == 0] = blob.color
        if vertical:
            col = result[:, c]
            col[col == 0] = blob.color
    return result


def extend_lines_h(grid: Grid) -> Grid:
    """Extend single-pixel markers into full-width lines over zero cells."""
    return _extend_lines(grid, horizontal=True, vertical=False)


def extend_lines_v(grid: Grid) -> Grid:
    return _extend_lines(grid, horizontal=False, vertical=True)


def extend_cross(grid: Grid) -> Grid:
    return _extend_lines(grid, horizontal=True, vertical=True)


def _diag_fill(grid: Grid, anti: bool) -> Grid:
    rows, cols = grid.shape
    result = grid.copy()
    step = -1 if anti else 1
    for blob in _single_pixels(grid):
        r0, c0 = blob.pixels[0]
        for direction in (1, -1):
            r, c = r0 + direction, c0 + direction * step
            while 0 <= r < rows and 0 <= c < cols:
                if result[r, c] == 0:
                    result[r, c] = blob.color
                r += direction
                c += direction * step
    return result


def diag_fill_tl(grid: Grid) -> Grid:
    """Extend single-pixel markers along the top-left to bottom-right diagonal."""
    return _diag_fill(grid, anti=False)


def diag_fill_tr(grid: Grid) -> Grid:
    """Extend single-pixel markers along the top-right to bottom-left diagonal."""
    return _diag_fill(grid, anti=True)


def identity(grid: Grid) -> Grid:
    return grid.copy()


PRIMITIVE_FUNCTIONS: Dict[PrimKind, Callable[..., Grid]] = {
    PrimKind.IDENTITY: identity,
    PrimKind.ROTATE_CW: rotate_cw,
    PrimKind.ROTATE_CCW: rotate_ccw,
    PrimKind.ROTATE_180: rotate_180,
    PrimKind.FLIP_H: flip_h,
    PrimKind.FLIP_V: flip_v,
    PrimKind.TRANSPOSE: transpose,
    PrimKind.TRANSLATE: translate,
    PrimKind.FILL_COLOR: fill_color,
    PrimKind.REPLACE_COLOR: replace_color,
    PrimKind.FILTER_COLOR: filter_color,
    PrimKind.REMOVE_COLOR: remove_color,
    PrimKind.INVERT: invert,
    PrimKind.MOST_FREQUENT_COLOR: most_frequent_fill,
    PrimKind.BORDER_FILL: border_fill,
    PrimKind.CROP: crop,
    PrimKind.PAD: pad,
    PrimKind.SCALE: scale,
    PrimKind.DOWNSCALE: downscale,
    PrimKind.REPEAT_H: repeat_h,
    PrimKind.REPEAT_V: repeat_v,
    PrimKind.MIRROR_H: mirror_h,
    PrimKind.MIRROR_V: mirror_v,
    PrimKind.CROP_TO_BBOX: crop_to_bbox,
    PrimKind.GRAVITY_DOWN: gravity_down,
    PrimKind.GRAVITY_UP: gravity_up,
    PrimKind.GRAVITY_LEFT: gravity_left,
    PrimKind.GRAVITY_RIGHT: gravity_right,
    PrimKind.SORT_ROWS_BY_COLOR: sort_rows_by_color,
    PrimKind.SORT_COLS_BY_COLOR: sort_cols_by_color,
    PrimKind.KEEP_LARGEST: keep_largest,
    PrimKind.KEEP_SMALLEST: keep_smallest,
    PrimKind.EXTRACT_OBJECT: extract_object,
    PrimKind.OUTLINE_OBJECTS: outline_objects,
    PrimKind.FILL_INSIDE_OBJECTS: fill_inside_objects,
    PrimKind.FILL_ENCLOSED: fill_enclosed,
    PrimKind.COMPLETE_BBOX: complete_bbox,
    PrimKind.DRAW_BBOXES: draw_bboxes,
    PrimKind.EXTEND_LINES_H: extend_lines_h,
    PrimKind.EXTEND_LINES_V: extend_lines_v,
    PrimKind.EXTEND_CROSS: extend_cross,
    PrimKind.DIAG_FILL_TL: diag_fill_tl,
    PrimKind.DIAG_FILL_TR: diag_fill_tr,
}

_missing = set(PrimKind) - set(PRIMITIVE_FUNCTIONS)
if _missing:
    raise RuntimeError(f"Primitive kinds without implementation: {sorted(str(k) for k in _missing)}")
