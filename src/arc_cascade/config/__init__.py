"""Configuration management for the ARC cascade solver.

This module provides Hydra-based configuration management with hierarchical
parameter groups and runtime override capabilities. Every component reads
its tunables through :func:`get_parameter` and falls back to built-in
defaults when no configuration has been loaded.
"""

from .config_manager import (
    ConfigManager, load_config, get_config, get_parameter, set_global_config,
    default_config_dir
)
from .validators import validate_config, ConfigValidationError

__all__ = [
    'ConfigManager',
    'load_config',
    'get_config',
    'get_parameter',
    'set_global_config',
    'default_config_dir',
    'validate_config',
    'ConfigValidationError'
]
