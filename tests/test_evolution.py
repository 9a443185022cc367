"""Tests for genetic program evolution."""

import pytest
import numpy as np

from arc_cascade.core.data_models import ExamplePair
from arc_cascade.reasoning.dsl_engine import Prim, Sequence
from arc_cascade.reasoning.primitives import PrimKind
from arc_cascade.reasoning.verification import matches_all
from arc_cascade.search import evolution
from arc_cascade.search.evolution import (
    EvolutionConfig, GeneticSearcher, create_genetic_searcher, fitness
)

FLIP_H = Prim(PrimKind.FLIP_H)
FLIP_V = Prim(PrimKind.FLIP_V)


def g(rows):
    return np.array(rows, dtype=np.int32)


@pytest.fixture
def flip_pairs():
    return [ExamplePair(g([[1, 2], [3, 4]]), g([[2, 1], [4, 3]]))]


class TestFitness:

    def test_formula(self):
        """Test the fitness formula."""
        assert fitness(1.0, 1) == pytest.approx(0.95 + 0.05 / 1.01)
        assert fitness(0.0, 0) == pytest.approx(0.05)

    def test_smaller_programs_preferred(self):
        """Test smaller programs score higher at equal accuracy."""
        assert fitness(0.5, 1) > fitness(0.5, 3)

    def test_accuracy_dominates(self):
        """Test accuracy outweighs size."""
        assert fitness(0.6, 100) > fitness(0.5, 1)


class TestMutation:

    def test_size_mode_is_deterministic(self):
        """Test size-derived mutation indices."""
        searcher = GeneticSearcher()
        n = len(searcher.prims)
        assert searcher.mutate(FLIP_H) == Sequence(FLIP_H, searcher.prims[20 % n])
        assert searcher.mutate(Sequence(FLIP_H, FLIP_V)) == Sequence(FLIP_H, searcher.prims[34 % n])

    def test_leaf_gets_step_appended(self):
        """Test mutating a leaf appends a step."""
        searcher = GeneticSearcher(prims=[FLIP_H, FLIP_V])
        # Size 1: (7 + 13) % 2 == 0
        assert searcher.mutate(FLIP_V) == Sequence(FLIP_V, FLIP_H)

    def test_seeded_mode_repeats_per_seed(self):
        """Test seeded mutation is reproducible."""
        config = EvolutionConfig(mutation='seeded', seed=3)
        a = GeneticSearcher(config)
        b = GeneticSearcher(config)
        assert [a.mutate(FLIP_H) for _ in range(5)] == [b.mutate(FLIP_H) for _ in range(5)]

    def test_unknown_mode(self):
        """Test an unknown mutation mode raises error."""
        with pytest.raises(ValueError):
            GeneticSearcher(EvolutionConfig(mutation='random'))

    def test_crossover_composes(self):
        """Test crossover composes both parents."""
        assert GeneticSearcher.crossover(FLIP_H, FLIP_V) == Sequence(FLIP_H, FLIP_V)


class TestEvolve:

    def test_finds_exact_program(self, flip_pairs):
        """Test evolution finds an exact program."""
        searcher = GeneticSearcher(EvolutionConfig(population=10, generations=5))
        program, evaluations = searcher.evolve(flip_pairs)
        assert matches_all(program, flip_pairs)
        assert evaluations == 10

    def test_population_padded(self, flip_pairs):
        """Test the seed population is padded to size."""
        searcher = GeneticSearcher(EvolutionConfig(population=12))
        assert len(searcher.seed_population(flip_pairs)) == 12

    def test_returns_best_even_without_exact_match(self):
        """Test the fittest program is returned without an exact match."""
        pairs = [ExamplePair(g([[1, 2]]), g([[9, 8]]))]
        searcher = GeneticSearcher(EvolutionConfig(population=4, generations=3), prims=[FLIP_H, FLIP_V])
        program, evaluations = searcher.evolve(pairs)
        assert program is not None
        assert not matches_all(program, pairs)
        assert evaluations == 4 + 3 * 3

    def test_exact_program_beats_smaller_inexact_one(self, flip_pairs, monkeypatch):
        """Test an exact program beats a smaller inexact one."""
        small = Prim(PrimKind.ROTATE_CW)
        large = Sequence(Sequence(FLIP_H, FLIP_V), Sequence(FLIP_V, FLIP_H))
        assert fitness(1.0, 7) < fitness(0.999, 1)
        scores = {small: 0.999, large: 1.0}
        monkeypatch.setattr(evolution, "partial_match_score",
                            lambda program, pairs: scores.get(program, 0.0))

        searcher = GeneticSearcher(EvolutionConfig(population=2, generations=3), prims=[FLIP_H])
        monkeypatch.setattr(searcher, "seed_population", lambda pairs: [small, large])
        program, evaluations = searcher.evolve(flip_pairs)
        assert program == large
        assert evaluations == 2

    def test_smallest_exact_program_wins(self, flip_pairs, monkeypatch):
        """Test the smallest exact program is returned."""
        small = Prim(PrimKind.ROTATE_180)
        large = Sequence(FLIP_H, FLIP_V)
        monkeypatch.setattr(evolution, "partial_match_score", lambda program, pairs: 1.0)

        searcher = GeneticSearcher(EvolutionConfig(population=2, generations=1), prims=[FLIP_H])
        monkeypatch.setattr(searcher, "seed_population", lambda pairs: [large, small])
        program, _ = searcher.evolve(flip_pairs)
        assert program == small

    def test_reproducible(self, flip_pairs):
        """Test evolution is reproducible."""
        config = EvolutionConfig(population=6, generations=4, mutation='seeded', seed=11)
        assert GeneticSearcher(config).evolve(flip_pairs) == GeneticSearcher(config).evolve(flip_pairs)

    def test_no_pairs(self):
        """Test evolution without pairs."""
        assert GeneticSearcher().evolve([]) == (None, 0)


class TestFactory:

    def test_defaults(self):
        """Test factory defaults without loaded config."""
        assert create_genetic_searcher().config == EvolutionConfig()
