"""Exact-match verification and continuous similarity proxies.

Acceptance is always exact equality. The similarity scores here only rank
candidates inside enumeration and evolution.
"""

from typing import Iterable, Union

import numpy as np

from arc_cascade.core.data_models import ExamplePair, Grid, LearnedTransform, grids_equal
from .dsl_engine import Program, apply

Candidate = Union[Program, LearnedTransform]


def run_candidate(candidate: Candidate, grid: Grid) -> Grid:
    """Apply a DSL program or a learned transform to a grid."""
    if isinstance(candidate, LearnedTransform):
        return candidate.apply(grid)
    return apply(candidate, grid)


def matches_pair(candidate: Candidate, pair: ExamplePair) -> bool:
    return grids_equal(run_candidate(candidate, pair.input), pair.output)


def matches_all(candidate: Candidate, pairs: Iterable[ExamplePair]) -> bool:
    """True iff the candidate reproduces every output exactly."""
    return all(matches_pair(candidate, pair) for pair in pairs)


def grid_similarity(actual: Grid, expected: Grid) -> float:
    """Fraction of matching cells; 0.0 when shapes differ."""
    if actual.shape != expected.shape:
        return 0.0
    if expected.size == 0:
        return 1.0
    return float(np.mean(actual == expected))


def partial_match_score(candidate: Candidate, pairs: Iterable[ExamplePair]) -> float:
    """Mean per-cell match fraction across pairs."""
    pairs = list(pairs)
    if not pairs:
        return 0.0
    total = sum(grid_similarity(run_candidate(candidate, p.input), p.output) for p in pairs)
    return total / len(pairs)
