"""Reasoning layer for the ARC cascade solver.

This module holds the domain-specific language (DSL) of grid primitives,
program composition and execution, exact verification and MDL scoring.
"""

from .primitives import PrimKind, PRIMITIVE_FUNCTIONS
from .dsl_engine import (
    Prim, Sequence, Conditional, Program, IDENTITY, apply, size, step_count,
    leaves, compose, from_steps, inverse, invert_program, all_primitives
)
from .verification import matches_all, grid_similarity, partial_match_score, run_candidate
from .mdl import description_length, data_fit, mdl_score

__all__ = [
    'PrimKind',
    'PRIMITIVE_FUNCTIONS',
    'Prim',
    'Sequence',
    'Conditional',
    'Program',
    'IDENTITY',
    'apply',
    'size',
    'step_count',
    'leaves',
    'compose',
    'from_steps',
    'inverse',
    'invert_program',
    'all_primitives',
    'matches_all',
    'grid_similarity',
    'partial_match_score',
    'run_candidate',
    'description_length',
    'data_fit',
    'mdl_score'
]
