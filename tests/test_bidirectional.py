"""Tests for bidirectional search."""

import pytest
import numpy as np

from arc_cascade.core.data_models import ExamplePair
from arc_cascade.reasoning.dsl_engine import IDENTITY, Prim, Sequence, apply
from arc_cascade.reasoning.primitives import PrimKind
from arc_cascade.search.bidirectional import (
    BidirectionalSearcher, create_bidirectional_searcher, invertible_subset
)
from arc_cascade.search.budget import Deadline

FLIP_H = Prim(PrimKind.FLIP_H)
FLIP_V = Prim(PrimKind.FLIP_V)


def g(rows):
    return np.array(rows, dtype=np.int32)


@pytest.fixture
def flip_flip():
    source = g([[1, 2, 3], [4, 5, 6]])
    return source, g([[6, 5, 4], [3, 2, 1]])


class TestInvertibleSubset:

    def test_lossy_primitives_dropped(self):
        """Test only primitives with declared inverses are kept."""
        prims = [FLIP_H, Prim(PrimKind.CROP_TO_BBOX), Prim(PrimKind.ROTATE_CW)]
        pairs = invertible_subset(prims)
        assert pairs == [(FLIP_H, FLIP_H), (Prim(PrimKind.ROTATE_CW), Prim(PrimKind.ROTATE_CCW))]


class TestBidirectionalSearch:

    def test_identity(self):
        """Test identical source and target short-circuit to identity."""
        grid = g([[1, 2]])
        result = BidirectionalSearcher().search(grid, grid.copy(), [FLIP_H])
        assert result.program == IDENTITY
        assert result.method == "identity"

    def test_meets_in_the_middle(self, flip_flip):
        """Test joining one forward and one backward step."""
        source, target = flip_flip
        result = BidirectionalSearcher().search(source, target, [FLIP_H, FLIP_V])
        assert result is not None
        assert result.program == Sequence(FLIP_V, FLIP_H)
        assert (result.forward_depth, result.backward_depth) == (1, 1)
        np.testing.assert_array_equal(apply(result.program, source), target)

    def test_forward_hit_on_target(self):
        """Test a forward step landing directly on the target."""
        source = g([[1, 2], [3, 4]])
        rot = Prim(PrimKind.ROTATE_CW)
        result = BidirectionalSearcher().search(source, apply(rot, source), [rot])
        assert result.program == rot
        assert (result.forward_depth, result.backward_depth) == (1, 0)

    def test_node_budget(self, flip_flip):
        """Test the search stops at the node budget."""
        source, target = flip_flip
        searcher = BidirectionalSearcher(max_nodes=3)
        assert searcher.search(source, target, [FLIP_H, FLIP_V]) is None
        assert searcher.nodes_explored == 3

    def test_expired_deadline(self, flip_flip):
        """Test an expired deadline ends the search."""
        source, target = flip_flip
        deadline = Deadline(1.0)
        deadline.start -= 10.0
        assert BidirectionalSearcher().search(source, target, [FLIP_H, FLIP_V],
                                              deadline=deadline) is None

    def test_unreachable(self):
        """Test no program is returned for an unreachable target."""
        result = BidirectionalSearcher().search(g([[1, 2]]), g([[3, 4]]), [FLIP_H])
        assert result is None


class TestSearchAll:

    def test_program_must_fit_every_pair(self, flip_flip):
        """Test programs found on one pair are checked against the rest."""
        source, target = flip_flip
        searcher = BidirectionalSearcher()
        fits = [ExamplePair(source, target), ExamplePair(g([[7, 8]]), g([[8, 7]]))]
        assert searcher.search_all(fits, [FLIP_H, FLIP_V]) is not None

        misfit = [ExamplePair(source, target), ExamplePair(g([[7, 8]]), g([[7, 8]]))]
        assert searcher.search_all(misfit, [FLIP_H, FLIP_V]) is None

    def test_no_pairs(self):
        """Test searching without pairs."""
        assert BidirectionalSearcher().search_all([], [FLIP_H]) is None


class TestFactory:

    def test_explicit_budget(self):
        """Test factory with an explicit node budget."""
        assert create_bidirectional_searcher(42).max_nodes == 42

    def test_default_without_config(self):
        """Test factory default budget without loaded config."""
        assert create_bidirectional_searcher().max_nodes == 5000
