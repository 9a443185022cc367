"""Tests for the cellular-automaton learner."""

import numpy as np

from arc_cascade.core.data_models import ExamplePair
from arc_cascade.solver.cellular import (
    apply_ca_rule, apply_ca_steps, learn_ca_rule, neighbor_signatures, try_ca_solve
)


def g(rows):
    return np.array(rows, dtype=np.int32)


def grow(grid):
    """Every zero cell touching a 1 becomes 1."""
    padded = np.pad(grid, 1)
    rows, cols = grid.shape
    result = grid.copy()
    for r in range(rows):
        for c in range(cols):
            if grid[r, c] == 0 and padded[r:r + 3, c:c + 3].max() == 1:
                result[r, c] = 1
    return result


class TestSignatures:

    def test_signature_fields(self):
        """Test own color, neighbor histogram and border flag."""
        sigs = neighbor_signatures(g([[1, 0], [0, 0]]))
        center, counts, border = sigs[1][1]
        assert center == 0
        assert counts[1] == 1
        # Three in-grid neighbours plus five padded cells read as color 0
        assert counts[0] == 7
        assert border


class TestRuleLearning:

    def test_learn_and_apply_one_step(self):
        """Test learning a growth rule and applying it once."""
        source = np.zeros((5, 5), dtype=np.int32)
        source[2, 2] = 1
        target = grow(source)
        rule = learn_ca_rule(source, target)
        assert rule is not None
        np.testing.assert_array_equal(apply_ca_rule(source, rule), target)

    def test_inconsistent_rule_rejected(self):
        """Test conflicting targets for one signature reject the rule."""
        # Identical isolated-zero neighbourhoods map to different colors
        assert learn_ca_rule(g([[0, 0]]), g([[1, 2]])) is None

    def test_shape_mismatch(self):
        """Test pairs of different shapes have no rule."""
        assert learn_ca_rule(g([[0]]), g([[0, 0]])) is None

    def test_fixpoint_stops_iteration(self):
        """Test iteration stops when the grid no longer changes."""
        grid = g([[3]])
        rule = {}
        np.testing.assert_array_equal(apply_ca_steps(grid, rule, 5), grid)


class TestTryCaSolve:

    def test_single_step_solution(self):
        """Test solving a task with a one-step rule."""
        source = np.zeros((5, 5), dtype=np.int32)
        source[2, 2] = 1
        rule = try_ca_solve([ExamplePair(source, grow(source))])
        assert rule is not None
        assert rule.name == "cellular_1steps"

    def test_no_solution_when_inconsistent(self):
        """Test no solution for an inconsistent pair."""
        assert try_ca_solve([ExamplePair(g([[0, 0]]), g([[1, 2]]))]) is None

    def test_multi_step_rule_across_pairs(self):
        """Test a growth rule iterated for two and three steps across pairs."""
        # The first output is a fixpoint, so extra steps leave that pair unchanged
        pairs = [
            ExamplePair(g([[0, 1, 0]]), g([[1, 1, 1]])),
            ExamplePair(g([[0, 0, 1, 0, 0]]), g([[1, 1, 1, 1, 1]])),
        ]
        rule = try_ca_solve(pairs)
        assert rule is not None
        assert rule.name == "cellular_2steps"
        np.testing.assert_array_equal(rule.apply(g([[0, 0, 1, 0]])), g([[1, 1, 1, 1]]))

        pairs.append(ExamplePair(g([[0, 0, 0, 1, 0, 0, 0]]), g([[1] * 7])))
        assert try_ca_solve(pairs).name == "cellular_3steps"
        assert try_ca_solve(pairs, max_steps=2) is None

    def test_empty_pairs(self):
        """Test solving without pairs."""
        assert try_ca_solve([]) is None
