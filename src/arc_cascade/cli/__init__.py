"""Command-line interface for the ARC cascade solver.

This module provides CLI commands for solving individual puzzles and
benchmarking a directory of puzzles.
"""

from .main import main_cli
from .commands import solve_command, benchmark_command, config_command
from .utils import setup_logging

__all__ = [
    'main_cli',
    'solve_command',
    'benchmark_command',
    'config_command',
    'setup_logging'
]
