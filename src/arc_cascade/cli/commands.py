"""CLI command implementations."""

import json
import logging
from typing import List

from omegaconf import OmegaConf

from arc_cascade.config import ConfigValidationError, get_config, get_parameter, validate_config
from arc_cascade.integration.benchmark import run_benchmark
from arc_cascade.integration.io import TaskFormatError, load_task, save_results
from arc_cascade.search.cascade import create_cascade_runner

from .utils import configure, describe_result

logger = logging.getLogger(__name__)


def _overrides(args) -> List[str]:
    overrides = []
    if getattr(args, 'timeout', None) is not None:
        overrides.append(f"solver.timeout_seconds={args.timeout}")
    if getattr(args, 'max_size', None) is not None:
        overrides.append(f"solver.max_composite_size={args.max_size}")
    if getattr(args, 'workers', None) is not None:
        overrides.append(f"system.workers={args.workers}")
    return overrides


def solve_command(args) -> int:
    """Handle solve command.

    Args:
        args: Parsed command line arguments

    Returns:
        Exit code: 0 if solved, 1 if unsolved or on error
    """
    try:
        configure(args.config_dir, _overrides(args))
        logger.info(f"Loading task from {args.task_file}")
        task = load_task(args.task_file)

        runner = create_cascade_runner()
        result = runner.solve(task, runner.config.max_composite_size)
        data = result.to_dict()
        data['task_file'] = str(args.task_file)

        if args.output:
            save_results(data, args.output)
        else:
            print(json.dumps(data, indent=2))

        if not args.quiet:
            print(describe_result(data))
        return 0 if result.solved else 1

    except (FileNotFoundError, TaskFormatError, ConfigValidationError) as e:
        logger.error(f"Solve command failed: {e}")
        return 1


def benchmark_command(args) -> int:
    """Handle benchmark command.

    Args:
        args: Parsed command line arguments

    Returns:
        Exit code
    """
    try:
        configure(args.config_dir, _overrides(args))
        runner = create_cascade_runner()
        report = run_benchmark(
            args.data_dir,
            max_tasks=args.max_tasks,
            max_composite_size=runner.config.max_composite_size,
            workers=int(get_parameter('system.workers', 1)),
            runner=runner,
        )

        if args.output:
            save_results(report.to_dict(), args.output)

        if not args.quiet:
            print(report.detail() if args.detail else report.summary())
        return 0

    except (FileNotFoundError, ConfigValidationError) as e:
        logger.error(f"Benchmark command failed: {e}")
        return 1


def config_command(args) -> int:
    """Handle config command.

    Args:
        args: Parsed command line arguments

    Returns:
        Exit code
    """
    try:
        configure(args.config_dir)
    except ConfigValidationError as e:
        print(f"Configuration validation failed: {e}")
        return 1
    except FileNotFoundError as e:
        logger.error(f"Config command failed: {e}")
        return 1

    config = get_config()
    if args.config_action == 'show':
        if config is None:
            print("No configuration file found; built-in defaults are in use.")
        else:
            print(OmegaConf.to_yaml(config, resolve=True))
        return 0

    if args.config_action == 'validate':
        if config is None:
            print("No configuration file found; nothing to validate.")
            return 0
        try:
            validate_config(config)
        except ConfigValidationError as e:
            print(f"Configuration validation failed: {e}")
            return 1
        print("Configuration is valid")
        return 0

    logger.error(f"Unknown config action: {args.config_action}")
    return 1
