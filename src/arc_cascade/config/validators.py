"""Configuration validation for the ARC cascade solver."""

import logging
from typing import Any

from omegaconf import DictConfig

logger = logging.getLogger(__name__)


class ConfigValidationError(Exception):
    """Exception raised when configuration validation fails."""
    pass


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _require_positive_int(section: str, key: str, value: Any) -> None:
    if not isinstance(value, int) or isinstance(value, bool) or value < 1:
        raise ConfigValidationError(
            f"{section}.{key} must be a positive integer, got {value}"
        )


def validate_config(config: DictConfig) -> None:
    """Validate the complete configuration.

    Args:
        config: Configuration to validate

    Raises:
        ConfigValidationError: If validation fails
    """
    try:
        validate_solver_config(config.get('solver', {}))
        validate_search_config(config.get('search', {}))
        validate_system_config(config.get('system', {}))
    except ConfigValidationError:
        raise
    except Exception as e:
        raise ConfigValidationError(f"Configuration validation failed: {e}") from e

    logger.debug("Configuration validation passed")


def validate_solver_config(solver_config: DictConfig) -> None:
    """Validate solver configuration section.

    Args:
        solver_config: Solver configuration section
    """
    if not solver_config:
        return

    timeout = solver_config.get('timeout_seconds', 10.0)
    if not _is_number(timeout) or timeout <= 0:
        raise ConfigValidationError(
            f"solver.timeout_seconds must be positive number, got {timeout}"
        )

    max_size = solver_config.get('max_composite_size', 2)
    if not isinstance(max_size, int) or isinstance(max_size, bool) or not 1 <= max_size <= 3:
        raise ConfigValidationError(
            f"solver.max_composite_size must be integer between 1 and 3, got {max_size}"
        )


def validate_search_config(search_config: DictConfig) -> None:
    """Validate search configuration section.

    Args:
        search_config: Search configuration section
    """
    if not search_config:
        return

    for name in ('bidirectional', 'dag'):
        section = search_config.get(name, {})
        if not section:
            continue
        _require_positive_int(f"search.{name}", 'max_nodes', section.get('max_nodes', 1))
        depth = section.get('max_depth', 3)
        if not isinstance(depth, int) or isinstance(depth, bool) or not 1 <= depth <= 6:
            raise ConfigValidationError(
                f"search.{name}.max_depth must be integer between 1 and 6, got {depth}"
            )

    enum_config = search_config.get('enumeration', {})
    if enum_config:
        for key in ('pair_cap', 'triple_cap', 'top_k'):
            _require_positive_int('search.enumeration', key, enum_config.get(key, 1))
        score = enum_config.get('min_partial_score', 0.3)
        if not _is_number(score) or not 0 <= score <= 1:
            raise ConfigValidationError(
                f"search.enumeration.min_partial_score must be between 0 and 1, got {score}"
            )

    evo_config = search_config.get('evolution', {})
    if evo_config:
        _require_positive_int('search.evolution', 'population', evo_config.get('population', 30))
        generations = evo_config.get('generations', 50)
        if not isinstance(generations, int) or isinstance(generations, bool) or generations < 0:
            raise ConfigValidationError(
                f"search.evolution.generations must be non-negative integer, got {generations}"
            )
        mutation = evo_config.get('mutation', 'size')
        if mutation not in ('size', 'seeded'):
            raise ConfigValidationError(
                f"search.evolution.mutation must be 'size' or 'seeded', got {mutation}"
            )
        if not isinstance(evo_config.get('seed', 0), int):
            raise ConfigValidationError("search.evolution.seed must be an integer")

    ca_config = search_config.get('cellular', {})
    if ca_config:
        _require_positive_int('search.cellular', 'max_steps', ca_config.get('max_steps', 3))


def validate_system_config(system_config: DictConfig) -> None:
    """Validate system configuration section.

    Args:
        system_config: System configuration section
    """
    if not system_config:
        return

    workers = system_config.get('workers', 1)
    _require_positive_int('system', 'workers', workers)
    if workers > 64:
        logger.warning(f"system.workers={workers} is unusually high")
