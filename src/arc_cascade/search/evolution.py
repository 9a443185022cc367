"""Genetic program evolution.

A fixed-size population of programs is bred for a fixed number of
generations. Individuals are ranked by

    fitness = 0.95 * accuracy + 0.05 / (1 + 0.01 * size)

where accuracy is the mean per-cell match fraction over the training pairs.
An individual matching every pair outranks any inexact one regardless of
size. The top quarter survives; every other slot is filled by composing two
elites and mutating the child.

Mutation is deterministic. In ``size`` mode the replacement primitive index
is ``(size * 7 + 13) mod n``; in ``seeded`` mode it is drawn from a
``random.Random`` seeded once per run.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from arc_cascade.core.data_models import ExamplePair
from arc_cascade.reasoning.dsl_engine import Prim, Program, Sequence as Seq, all_primitives, size
from arc_cascade.reasoning.verification import partial_match_score
from .budget import Deadline, expired
from .enumeration import bottom_up_enumerate

logger = logging.getLogger(__name__)

ACCURACY_WEIGHT = 0.95
SIZE_WEIGHT = 0.05
MUTATION_MODES = ('size', 'seeded')


@dataclass
class EvolutionConfig:
    """Genetic search parameters."""
    population: int = 30
    generations: int = 50
    mutation: str = 'size'
    seed: int = 0


@dataclass
class Individual:
    program: Program
    accuracy: float
    fitness: float


def fitness(accuracy: float, program_size: int) -> float:
    return ACCURACY_WEIGHT * accuracy + SIZE_WEIGHT / (1.0 + 0.01 * program_size)


def _rank(individual: Individual) -> Tuple[bool, float]:
    """Exact individuals first, smallest among them, then by fitness."""
    return individual.accuracy >= 1.0, individual.fitness


class GeneticSearcher:
    """Evolves programs toward the training pairs."""

    def __init__(self, config: Optional[EvolutionConfig] = None,
                 prims: Optional[Sequence[Prim]] = None):
        self.config = config or EvolutionConfig()
        if self.config.mutation not in MUTATION_MODES:
            raise ValueError(f"Unknown mutation mode: {self.config.mutation}")
        self.prims = tuple(prims) if prims is not None else all_primitives()
        self.evaluations = 0
        self._rng = random.Random(self.config.seed)

    def evaluate(self, program: Program, pairs: Sequence[ExamplePair]) -> Individual:
        self.evaluations += 1
        accuracy = partial_match_score(program, pairs)
        return Individual(program, accuracy, fitness(accuracy, size(program)))

    def _mutation_index(self, program: Program) -> int:
        if self.config.mutation == 'seeded':
            return self._rng.randrange(len(self.prims))
        return (size(program) * 7 + 13) % len(self.prims)

    def mutate(self, program: Program) -> Program:
        """Replace the last step of a composition, else append or replace a step."""
        replacement = self.prims[self._mutation_index(program)]
        if isinstance(program, Seq):
            return Seq(program.first, replacement)
        if size(program) < 3:
            return Seq(program, replacement)
        return replacement

    @staticmethod
    def crossover(a: Program, b: Program) -> Program:
        return Seq(a, b)

    def seed_population(self, pairs: Sequence[ExamplePair]) -> List[Program]:
        """Bottom-up ranked primitives, padded round-robin over the catalog."""
        target = self.config.population
        programs: List[Program] = [prim for prim, _ in
                                   bottom_up_enumerate(pairs, target // 2, self.prims)]
        while len(programs) < target:
            programs.append(self.prims[len(programs) % len(self.prims)])
        return programs

    def evolve(self, pairs: Sequence[ExamplePair],
               deadline: Optional[Deadline] = None) -> Tuple[Optional[Program], int]:
        """Run the generational loop.

        Args:
            pairs: Training pairs
            deadline: Optional cooperative deadline, polled once per generation

        Returns:
            (best program, evaluations). The smallest exact program when one
            was seen, else the fittest; callers must still verify exactly.
        """
        self.evaluations = 0
        self._rng = random.Random(self.config.seed)
        pairs = list(pairs)
        if not pairs or not self.prims or self.config.population <= 0:
            return None, 0

        population = [self.evaluate(p, pairs) for p in self.seed_population(pairs)]
        n_elite = max(1, self.config.population // 4)
        best = max(population, key=_rank)

        for generation in range(self.config.generations):
            population.sort(key=_rank, reverse=True)
            if _rank(population[0]) > _rank(best):
                best = population[0]
            if population[0].accuracy >= 1.0:
                logger.debug(f"Perfect individual at generation {generation}")
                return population[0].program, self.evaluations
            if expired(deadline):
                break

            elites = population[:n_elite]
            next_gen = list(elites)
            while len(next_gen) < self.config.population:
                i = len(next_gen)
                parent_a = elites[i % n_elite].program
                parent_b = elites[(i + 1) % n_elite].program
                child = self.mutate(self.crossover(parent_a, parent_b))
                next_gen.append(self.evaluate(child, pairs))
            population = next_gen

        population.sort(key=_rank, reverse=True)
        if _rank(population[0]) > _rank(best):
            best = population[0]
        logger.debug(f"Evolution finished: best accuracy {best.accuracy:.3f} "
                     f"after {self.evaluations} evaluations")
        return best.program, self.evaluations


def create_genetic_searcher(config: Optional[EvolutionConfig] = None) -> GeneticSearcher:
    """Factory function reading the ``search.evolution`` section when no config is given."""
    if config is None:
        from arc_cascade.config import get_parameter
        config = EvolutionConfig(
            population=int(get_parameter('search.evolution.population', 30)),
            generations=int(get_parameter('search.evolution.generations', 50)),
            mutation=str(get_parameter('search.evolution.mutation', 'size')),
            seed=int(get_parameter('search.evolution.seed', 0)),
        )
    return GeneticSearcher(config)
