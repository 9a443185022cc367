"""Tests for forward DAG search."""

import numpy as np

from arc_cascade.reasoning.dsl_engine import IDENTITY, Prim, Sequence
from arc_cascade.reasoning.primitives import PrimKind
from arc_cascade.search.dag import DagSearcher, create_dag_searcher

FLIP_H = Prim(PrimKind.FLIP_H)
FLIP_V = Prim(PrimKind.FLIP_V)


def g(rows):
    return np.array(rows, dtype=np.int32)


class TestDagSearch:

    def test_two_step_program(self):
        """Test finding a two-step program."""
        source = g([[1, 2, 3], [4, 5, 6]])
        target = g([[6, 5, 4], [3, 2, 1]])
        searcher = DagSearcher()
        assert searcher.search(source, target, [FLIP_H, FLIP_V]) == Sequence(FLIP_H, FLIP_V)
        assert searcher.nodes_explored >= 3

    def test_source_equals_target(self):
        """Test identical grids give the identity program."""
        grid = g([[1]])
        assert DagSearcher().search(grid, grid.copy(), [FLIP_H]) == IDENTITY

    def test_node_budget(self):
        """Test the search stops at the node budget."""
        searcher = DagSearcher(max_nodes=2)
        result = searcher.search(g([[1, 2, 3], [4, 5, 6]]), g([[6, 5, 4], [3, 2, 1]]),
                                 [FLIP_H, FLIP_V])
        assert result is None
        assert searcher.nodes_explored == 2

    def test_depth_limit(self):
        """Test the depth limit prunes deeper programs."""
        source = g([[1, 2, 3], [4, 5, 6]])
        target = g([[6, 5, 4], [3, 2, 1]])
        assert DagSearcher().search(source, target, [FLIP_H, FLIP_V], max_depth=1) is None


class TestScoredSearch:

    def test_exact_hit(self):
        """Test scored search reports an exact match."""
        result = DagSearcher().search_scored(g([[1, 2]]), g([[2, 1]]), [FLIP_H])
        assert result == [(FLIP_H, 1.0)]

    def test_partial_matches_ranked(self):
        """Test partial matches are ranked by similarity."""
        result = DagSearcher().search_scored(g([[1, 2]]), g([[2, 9]]), [FLIP_H, FLIP_V])
        assert result[0] == (FLIP_H, 0.5)
        scores = [score for _, score in result]
        assert scores == sorted(scores, reverse=True)


class TestFactory:

    def test_budget(self):
        """Test factory node budgets."""
        assert create_dag_searcher(7).max_nodes == 7
        assert create_dag_searcher().max_nodes == 20000
