"""Tests for the DSL program model."""

import pytest
import numpy as np

from arc_cascade.reasoning.dsl_engine import (
    IDENTITY, Conditional, Prim, Sequence, all_primitives, apply, compose, from_dict,
    from_steps, inverse, invert_program, is_invertible, leaves, size, step_count, to_dict
)
from arc_cascade.reasoning.primitives import PrimKind


def p(kind, *params):
    return Prim(kind, tuple(params))


class TestProgramModel:
    """Construction, sizing and rendering of programs."""

    @pytest.fixture
    def sample_grid(self):
        return np.array([
            [1, 2, 3],
            [4, 5, 6]
        ], dtype=np.int32)

    def test_identity_returns_equal_grid(self, sample_grid):
        """Test identity returns an equal grid."""
        result = apply(IDENTITY, sample_grid)
        np.testing.assert_array_equal(result, sample_grid)
        assert result is not sample_grid

    def test_apply_does_not_mutate_input(self, sample_grid):
        """Test applying a program leaves the input unchanged."""
        original = sample_grid.copy()
        apply(compose(p(PrimKind.FLIP_H), p(PrimKind.FILL_COLOR, 7)), sample_grid)
        np.testing.assert_array_equal(sample_grid, original)

    def test_apply_is_deterministic(self, sample_grid):
        """Test repeated application gives the same grid."""
        program = compose(p(PrimKind.ROTATE_CW), p(PrimKind.GRAVITY_DOWN))
        np.testing.assert_array_equal(apply(program, sample_grid), apply(program, sample_grid))

    def test_sequence_applies_first_then_second(self, sample_grid):
        """Test sequence application order."""
        program = Sequence(p(PrimKind.FLIP_H), p(PrimKind.FLIP_V))
        expected = np.array([[6, 5, 4], [3, 2, 1]], dtype=np.int32)
        np.testing.assert_array_equal(apply(program, sample_grid), expected)

    def test_conditional_branches_on_change(self, sample_grid):
        """Test conditional branching on whether the grid changed."""
        # FilterColor(9) changes the grid (no 9 present), so "then" runs on the input
        program = Conditional(p(PrimKind.FILTER_COLOR, 9), p(PrimKind.FLIP_H), IDENTITY)
        np.testing.assert_array_equal(apply(program, sample_grid), np.fliplr(sample_grid))

        unchanged = Conditional(IDENTITY, p(PrimKind.FLIP_H), p(PrimKind.FLIP_V))
        np.testing.assert_array_equal(apply(unchanged, sample_grid), np.flipud(sample_grid))

    def test_size_counts_composite_nodes(self):
        """Test program size counts composite nodes."""
        a, b, c = p(PrimKind.FLIP_H), p(PrimKind.FLIP_V), p(PrimKind.TRANSPOSE)
        assert size(a) == 1
        assert size(Sequence(a, b)) == 3
        assert size(Sequence(a, Sequence(b, c))) == 5
        assert size(Conditional(a, b, c)) == 4

    def test_step_count_and_leaves(self):
        """Test step counting and leaf iteration."""
        a, b, c = p(PrimKind.FLIP_H), p(PrimKind.FLIP_V), p(PrimKind.TRANSPOSE)
        program = compose(a, b, c)
        assert step_count(program) == 3
        assert list(leaves(program)) == [a, b, c]

    def test_compose_and_from_steps_agree_on_behavior(self, sample_grid):
        """Test compose and from_steps build equivalent programs."""
        steps = [p(PrimKind.ROTATE_CW), p(PrimKind.FLIP_H), p(PrimKind.REPLACE_COLOR, 1, 9)]
        np.testing.assert_array_equal(
            apply(compose(*steps), sample_grid), apply(from_steps(steps), sample_grid)
        )
        assert compose() == IDENTITY
        assert from_steps([]) == IDENTITY

    def test_wrong_param_count_rejected(self):
        """Test parameter count validation."""
        with pytest.raises(ValueError):
            Prim(PrimKind.REPLACE_COLOR, (1,))
        with pytest.raises(ValueError):
            Prim(PrimKind.FLIP_H, (1,))

    def test_string_rendering(self):
        """Test string representation of programs."""
        assert str(p(PrimKind.REPLACE_COLOR, 1, 2)) == "ReplaceColor(1,2)"
        assert str(Sequence(p(PrimKind.FLIP_H), p(PrimKind.FLIP_V))) == "FlipH -> FlipV"

    def test_programs_are_hashable(self):
        """Test program hashing for deduplication."""
        a = Sequence(p(PrimKind.FLIP_H), p(PrimKind.FLIP_V))
        b = Sequence(p(PrimKind.FLIP_H), p(PrimKind.FLIP_V))
        assert a == b
        assert len({a, b}) == 1

    def test_dict_serialization(self):
        """Test program serialization to/from dict."""
        program = Conditional(p(PrimKind.FILTER_COLOR, 2),
                              compose(p(PrimKind.SCALE, 2), p(PrimKind.INVERT)),
                              IDENTITY)
        data = to_dict(program)
        assert data['if'][0] == {'prim': 'FilterColor', 'params': [2]}
        assert from_dict(data) == program

    def test_from_dict_rejects_unknown_node(self):
        """Test deserializing an unknown node raises error."""
        with pytest.raises(ValueError):
            from_dict({'loop': []})


class TestInverses:
    """Declared inverses and program inversion."""

    @pytest.fixture
    def grid(self):
        return np.array([
            [1, 2, 0],
            [3, 4, 5]
        ], dtype=np.int32)

    @pytest.mark.parametrize("kind", [
        PrimKind.IDENTITY, PrimKind.ROTATE_CW, PrimKind.ROTATE_CCW, PrimKind.ROTATE_180,
        PrimKind.FLIP_H, PrimKind.FLIP_V, PrimKind.TRANSPOSE, PrimKind.INVERT,
    ])
    def test_inverse_undoes_primitive(self, grid, kind):
        """Test declared inverses undo their primitive."""
        prim = Prim(kind)
        inv = inverse(prim)
        assert inv is not None
        np.testing.assert_array_equal(apply(inv, apply(prim, grid)), grid)

    def test_rotations_pair_up(self):
        """Test clockwise and counter-clockwise rotations invert each other."""
        assert inverse(Prim(PrimKind.ROTATE_CW)) == Prim(PrimKind.ROTATE_CCW)
        assert inverse(Prim(PrimKind.ROTATE_CCW)) == Prim(PrimKind.ROTATE_CW)

    def test_color_swap_inverse(self, grid):
        """Test the inverse of a color replacement."""
        prim = p(PrimKind.REPLACE_COLOR, 1, 7)
        assert inverse(prim) == p(PrimKind.REPLACE_COLOR, 7, 1)
        # Exact when the target color is absent from the input
        np.testing.assert_array_equal(apply(inverse(prim), apply(prim, grid)), grid)

    def test_lossy_primitives_have_no_inverse(self):
        """Test lossy primitives have no inverse."""
        assert inverse(Prim(PrimKind.GRAVITY_DOWN)) is None
        assert inverse(p(PrimKind.FILL_COLOR, 3)) is None
        assert not is_invertible(Prim(PrimKind.KEEP_LARGEST))

    def test_invert_program_reverses_order(self, grid):
        """Test inverting a program reverses its steps."""
        program = compose(Prim(PrimKind.ROTATE_CW), Prim(PrimKind.FLIP_H))
        inverted = invert_program(program)
        assert inverted == Sequence(Prim(PrimKind.FLIP_H), Prim(PrimKind.ROTATE_CCW))
        np.testing.assert_array_equal(apply(inverted, apply(program, grid)), grid)

    def test_invert_program_fails_on_lossy_step(self):
        """Test programs with a lossy step cannot be inverted."""
        program = Sequence(Prim(PrimKind.FLIP_H), Prim(PrimKind.GRAVITY_DOWN))
        assert invert_program(program) is None
        assert invert_program(Conditional(IDENTITY, IDENTITY, IDENTITY)) is None


class TestCatalog:
    """The full primitive catalog."""

    def test_catalog_is_cached_and_immutable(self):
        """Test the primitive catalog is cached and immutable."""
        assert all_primitives() is all_primitives()
        assert isinstance(all_primitives(), tuple)

    def test_catalog_starts_with_identity_and_has_no_duplicates(self):
        """Test catalog order and uniqueness."""
        catalog = all_primitives()
        assert catalog[0] == IDENTITY
        assert len(set(catalog)) == len(catalog)

    def test_catalog_covers_color_swaps(self):
        """Test the catalog holds every color replacement."""
        catalog = set(all_primitives())
        assert p(PrimKind.REPLACE_COLOR, 3, 8) in catalog
        assert p(PrimKind.REPLACE_COLOR, 3, 3) not in catalog
        assert p(PrimKind.SCALE, 3) in catalog
