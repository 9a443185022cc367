"""Search strategies and the cascade controller.

Strategies share a contract: they take training pairs (or a single pair)
plus a cooperative :class:`Deadline`, and return a program or ``None``
together with a count of candidates or nodes examined.
"""

from .budget import Deadline
from .fingerprint import GridFingerprint, MultiResFingerprint, FingerprintSet, hash_grid
from .heuristics import select_primitives
from .enumeration import heuristic_single, heuristic_compose2, synthesize, bottom_up_enumerate
from .bidirectional import BidirectionalSearcher, BidirResult, create_bidirectional_searcher
from .dag import DagSearcher, create_dag_searcher
from .evolution import GeneticSearcher, EvolutionConfig, create_genetic_searcher
from .cascade import (
    CascadeRunner, CascadeConfig, Stage, StageOutcome, create_cascade_runner, solve_task,
    get_stage_stats
)

__all__ = [
    'Deadline',
    'GridFingerprint',
    'MultiResFingerprint',
    'FingerprintSet',
    'hash_grid',
    'select_primitives',
    'heuristic_single',
    'heuristic_compose2',
    'synthesize',
    'bottom_up_enumerate',
    'BidirectionalSearcher',
    'BidirResult',
    'create_bidirectional_searcher',
    'DagSearcher',
    'create_dag_searcher',
    'GeneticSearcher',
    'EvolutionConfig',
    'create_genetic_searcher',
    'CascadeRunner',
    'CascadeConfig',
    'Stage',
    'StageOutcome',
    'create_cascade_runner',
    'solve_task',
    'get_stage_stats'
]
