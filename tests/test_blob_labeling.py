"""Tests for connected component labeling."""

import pytest
import numpy as np

from arc_cascade.perception.blob_labeling import (
    BlobLabeler, create_blob_labeler, enclosed_mask, find_objects
)


def g(rows):
    return np.array(rows, dtype=np.int32)


class TestBlobLabeler:
    """Test the blob labeler."""

    def test_single_color_components(self):
        """Test labeling single-color components with ids and boxes."""
        grid = g([
            [1, 1, 0, 2],
            [0, 1, 0, 2],
            [3, 0, 0, 0],
        ])
        blobs = find_objects(grid)
        assert [b.color for b in blobs] == [1, 2, 3]
        assert [b.area for b in blobs] == [3, 2, 1]
        assert blobs[0].bounding_box == (0, 0, 1, 1)
        assert [b.id for b in blobs] == [0, 1, 2]

    def test_adjacent_colors_are_separate(self):
        """Test touching cells of different colors form separate blobs."""
        blobs = find_objects(g([[1, 2]]))
        assert len(blobs) == 2

    def test_row_major_order(self):
        """Test blobs are ordered by their first cell."""
        # The color-5 blob starts before the color-1 blob
        blobs = find_objects(g([[0, 5], [1, 0]]))
        assert [b.color for b in blobs] == [5, 1]

    def test_connectivity(self):
        """Test 4- versus 8-connectivity on a diagonal."""
        grid = g([[1, 0], [0, 1]])
        assert len(create_blob_labeler(4).label_blobs(grid)) == 2
        assert len(create_blob_labeler(8).label_blobs(grid)) == 1

    def test_invalid_connectivity(self):
        """Test unsupported connectivity raises error."""
        with pytest.raises(ValueError):
            BlobLabeler(connectivity=6)

    def test_empty_grid(self):
        """Test empty and all-background grids have no blobs."""
        assert find_objects(np.zeros((0, 0), dtype=np.int32)) == []
        assert find_objects(np.zeros((3, 3), dtype=np.int32)) == []

    def test_blob_to_grid(self):
        """Test cropping a blob to its bounding box."""
        blob = find_objects(g([[0, 0, 0], [0, 4, 4], [0, 4, 0]]))[0]
        assert (blob.height, blob.width) == (2, 2)
        np.testing.assert_array_equal(blob.to_grid(), g([[4, 4], [4, 0]]))


class TestEnclosedMask:

    def test_hole_inside_ring(self):
        """Test a background cell inside a ring is enclosed."""
        grid = g([
            [1, 1, 1, 0],
            [1, 0, 1, 0],
            [1, 1, 1, 0],
        ])
        mask = enclosed_mask(grid)
        assert mask[1, 1]
        assert not mask[0, 3]
        assert mask.sum() == 1

    def test_full_grid(self):
        """Test a grid without background has nothing enclosed."""
        assert not enclosed_mask(g([[1, 2], [3, 4]])).any()
