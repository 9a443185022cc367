"""Main CLI entry point for the ARC cascade solver."""

import sys
import argparse
import logging
from typing import List, Optional

from . import commands
from .utils import setup_logging, verbosity_to_level


def create_parser() -> argparse.ArgumentParser:
    """Create the main argument parser."""
    parser = argparse.ArgumentParser(
        prog='arc-cascade',
        description='ARC-AGI cascade solver - program synthesis over a grid DSL',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  arc-cascade solve task.json                   # Solve single puzzle
  arc-cascade benchmark data/training -w 4      # Benchmark a folder
  arc-cascade config show                       # Show current configuration
        """
    )

    # Global options
    parser.add_argument(
        '--config-dir',
        type=str,
        default=None,
        help='Directory containing config.yaml (default: project conf/)'
    )

    parser.add_argument(
        '--verbose', '-v',
        action='count',
        default=0,
        help='Increase verbosity (use -v or -vv)'
    )

    parser.add_argument(
        '--quiet', '-q',
        action='store_true',
        help='Suppress all output except results'
    )

    parser.add_argument(
        '--output', '-o',
        type=str,
        help='Output file for results (JSON format)'
    )

    subparsers = parser.add_subparsers(
        dest='command',
        help='Available commands',
        metavar='COMMAND'
    )

    # Solve command
    solve_parser = subparsers.add_parser(
        'solve',
        help='Solve a single ARC puzzle',
        description='Solve a single ARC puzzle from JSON file'
    )
    solve_parser.add_argument('task_file', type=str, help='Path to ARC task JSON file')
    solve_parser.add_argument(
        '--timeout', '-t',
        type=float,
        default=None,
        help='Wall-clock budget in seconds (default: from config, 10.0)'
    )
    solve_parser.add_argument(
        '--max-size',
        type=int,
        default=None,
        help='Maximum composite program size (default: from config, 2)'
    )

    # Benchmark command
    bench_parser = subparsers.add_parser(
        'benchmark',
        help='Solve every task in a directory',
        description='Run the cascade over a directory of ARC task files and report the score'
    )
    bench_parser.add_argument('data_dir', type=str, help='Directory of ARC task JSON files')
    bench_parser.add_argument('--max-tasks', type=int, default=None, help='Only the first N tasks')
    bench_parser.add_argument(
        '--workers', '-w',
        type=int,
        default=None,
        help='Worker threads (default: from config, 1)'
    )
    bench_parser.add_argument('--timeout', '-t', type=float, default=None,
                              help='Per-task budget in seconds')
    bench_parser.add_argument('--max-size', type=int, default=None,
                              help='Maximum composite program size')
    bench_parser.add_argument('--detail', action='store_true', help='Print per-task rows')

    # Config command
    config_parser = subparsers.add_parser(
        'config',
        help='Configuration management',
        description='Show or validate the configuration'
    )
    config_parser.add_argument(
        'config_action',
        choices=['show', 'validate'],
        help='Configuration action'
    )

    return parser


def main_cli(args: Optional[List[str]] = None) -> int:
    """Main CLI entry point.

    Args:
        args: Command line arguments (uses sys.argv if None)

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    parser = create_parser()
    parsed_args = parser.parse_args(args)

    setup_logging(verbosity_to_level(parsed_args.verbose, parsed_args.quiet))
    logger = logging.getLogger(__name__)

    try:
        if not parsed_args.command:
            parser.print_help()
            return 1

        if parsed_args.command == 'solve':
            return commands.solve_command(parsed_args)
        if parsed_args.command == 'benchmark':
            return commands.benchmark_command(parsed_args)
        if parsed_args.command == 'config':
            return commands.config_command(parsed_args)

        logger.error(f"Unknown command: {parsed_args.command}")
        return 1

    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130  # Standard exit code for SIGINT
    except Exception as e:
        logger.error(f"Unexpected error: {e}")
        return 1


def main() -> None:
    """Entry point for console script."""
    sys.exit(main_cli())


if __name__ == '__main__':
    main()
