"""CLI utility functions."""

import logging
from typing import Any, Dict, List, Optional, Union
from pathlib import Path

from omegaconf import OmegaConf

from arc_cascade.config import default_config_dir, load_config, set_global_config

logger = logging.getLogger(__name__)


def setup_logging(level: int = logging.INFO,
                  format_string: Optional[str] = None) -> None:
    """Setup logging configuration.

    Args:
        level: Logging level
        format_string: Custom format string
    """
    if format_string is None:
        if level <= logging.DEBUG:
            format_string = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        else:
            format_string = "%(levelname)s: %(message)s"

    logging.basicConfig(
        level=level,
        format=format_string,
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True
    )

    # Hydra is chatty at INFO
    logging.getLogger('hydra').setLevel(logging.WARNING)


def verbosity_to_level(verbose: int, quiet: bool) -> int:
    """-q wins; otherwise 0 -> WARNING, 1 -> INFO, 2+ -> DEBUG."""
    if quiet:
        return logging.ERROR
    if verbose == 0:
        return logging.WARNING
    if verbose == 1:
        return logging.INFO
    return logging.DEBUG


def configure(config_dir: Optional[Union[str, Path]] = None,
              overrides: Optional[List[str]] = None) -> None:
    """Load the solver configuration for a CLI run.

    An explicit ``config_dir`` must exist. Without one, the project ``conf``
    directory is used when present; otherwise only the overrides are
    installed and every other parameter keeps its built-in default.

    Args:
        config_dir: Directory holding ``config.yaml``
        overrides: Dotted ``key=value`` overrides
    """
    overrides = overrides or []
    if config_dir is None and not default_config_dir().exists():
        logger.debug("No configuration directory; using built-in defaults")
        set_global_config(OmegaConf.from_dotlist(overrides) if overrides else None)
        return
    # ++ adds the key when the config file does not define it
    load_config(config_dir=config_dir, overrides=[f"++{o}" for o in overrides])


def format_duration(seconds: float) -> str:
    """Format duration in human-readable format.

    Args:
        seconds: Duration in seconds

    Returns:
        Formatted duration string
    """
    if seconds < 0.001:
        return f"{seconds*1000000:.1f}µs"
    elif seconds < 1:
        return f"{seconds*1000:.1f}ms"
    elif seconds < 60:
        return f"{seconds:.2f}s"
    else:
        minutes = int(seconds // 60)
        secs = seconds % 60
        return f"{minutes}m {secs:.1f}s"


def describe_result(result: Dict[str, Any]) -> str:
    """One-line human summary of a ``SolveResult.to_dict()``."""
    if not result['solved']:
        return (f"Task {result['task_id']}: unsolved "
                f"(checked={result['checked']}, time={format_duration(result['elapsed'])})")
    return (f"Task {result['task_id']}: solved by {result['method']} | "
            f"program={result['program']} size={result['program_size']} "
            f"checked={result['checked']} mdl={result['mdl']} "
            f"time={format_duration(result['elapsed'])}")
