"""Task loading, binary grid encoding and benchmarking."""

from .io import ARCDataLoader, TaskFormatError, load_task, parse_task, save_results
from .grid_codec import GridFormatError, encode_grids, decode_grids
from .benchmark import BenchmarkReport, TaskReport, run_benchmark

__all__ = [
    'ARCDataLoader',
    'TaskFormatError',
    'load_task',
    'parse_task',
    'save_results',
    'GridFormatError',
    'encode_grids',
    'decode_grids',
    'BenchmarkReport',
    'TaskReport',
    'run_benchmark'
]
