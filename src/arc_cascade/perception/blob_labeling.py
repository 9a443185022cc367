"""Connected component labeling for grid objects."""

import logging
from typing import List

import numpy as np
from scipy import ndimage as sp_ndimage

from arc_cascade.core.data_models import Blob, Grid

logger = logging.getLogger(__name__)

FOUR_CONNECTED = np.array([[0, 1, 0], [1, 1, 1], [0, 1, 0]], dtype=bool)
EIGHT_CONNECTED = np.ones((3, 3), dtype=bool)


class BlobLabeler:
    """Labels single-color connected components of non-zero cells."""

    def __init__(self, connectivity: int = 4):
        """Initialize the blob labeler.

        Args:
            connectivity: 4 or 8 connectivity for blob detection
        """
        if connectivity not in (4, 8):
            raise ValueError(f"connectivity must be 4 or 8, got {connectivity}")
        self.connectivity = connectivity
        self.structure = FOUR_CONNECTED if connectivity == 4 else EIGHT_CONNECTED

    def label_blobs(self, grid: Grid) -> List[Blob]:
        """Label connected components (blobs) in the grid.

        Blobs are returned in row-major order of their first pixel, so the
        index of a blob is stable for a given grid.

        Args:
            grid: 2D numpy array with integer color values

        Returns:
            List of Blob objects
        """
        if grid.size == 0:
            return []

        found = []
        for color in np.unique(grid):
            if color == 0:
                continue
            labeled, num = sp_ndimage.label(grid == color, structure=self.structure)
            for comp_id in range(1, num + 1):
                coords = np.argwhere(labeled == comp_id)
                pixels = [(int(r), int(c)) for r, c in coords]
                rows, cols = coords[:, 0], coords[:, 1]
                bbox = (int(rows.min()), int(cols.min()), int(rows.max()), int(cols.max()))
                found.append((pixels[0], int(color), pixels, bbox))

        found.sort(key=lambda item: item[0])
        return [
            Blob(id=i, color=color, pixels=pixels, bounding_box=bbox)
            for i, (_, color, pixels, bbox) in enumerate(found)
        ]


_default_labeler = BlobLabeler()


def find_objects(grid: Grid) -> List[Blob]:
    """Label 4-connected objects with the shared default labeler."""
    return _default_labeler.label_blobs(grid)


def enclosed_mask(grid: Grid) -> np.ndarray:
    """Boolean mask of zero cells not 4-connected to the grid border."""
    bg = grid == 0
    if not bg.any():
        return np.zeros_like(bg)
    labeled, _ = sp_ndimage.label(bg, structure=FOUR_CONNECTED)
    border_labels = set(np.unique(np.concatenate([
        labeled[0, :], labeled[-1, :], labeled[:, 0], labeled[:, -1]
    ])))
    border_labels.discard(0)
    return bg & ~np.isin(labeled, list(border_labels))


def create_blob_labeler(connectivity: int = 4) -> BlobLabeler:
    """Factory function to create a blob labeler.

    Args:
        connectivity: 4 or 8 connectivity

    Returns:
        Configured BlobLabeler instance
    """
    return BlobLabeler(connectivity=connectivity)
