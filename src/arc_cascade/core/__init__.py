"""Core grid, task and result types."""

from .data_models import (
    Grid, Blob, ExamplePair, Task, SolveResult, SearchNode, LearnedTransform,
    to_grid, grids_equal
)

__all__ = [
    'Grid',
    'Blob',
    'ExamplePair',
    'Task',
    'SolveResult',
    'SearchNode',
    'LearnedTransform',
    'to_grid',
    'grids_equal'
]
