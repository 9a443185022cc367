"""Configuration manager using Hydra for hierarchical configuration."""

import logging
from typing import Any, Dict, Optional, Union
from pathlib import Path
from omegaconf import DictConfig, OmegaConf, open_dict
from hydra import compose, initialize_config_dir
from hydra.core.global_hydra import GlobalHydra

from .validators import validate_config

logger = logging.getLogger(__name__)

# Global configuration instance
_global_config: Optional[DictConfig] = None


def default_config_dir() -> Path:
    """The ``conf`` directory at the project root."""
    return Path(__file__).parent.parent.parent.parent / "conf"


class ConfigManager:
    """Manages configuration loading and validation using Hydra."""

    def __init__(self, config_dir: Optional[Union[str, Path]] = None):
        """Initialize configuration manager.

        Args:
            config_dir: Path to configuration directory. If None, uses default.
        """
        if config_dir is None:
            config_dir = default_config_dir()

        self.config_dir = Path(config_dir).resolve()
        self.config: Optional[DictConfig] = None

        if not self.config_dir.exists():
            raise FileNotFoundError(f"Configuration directory not found: {self.config_dir}")

        logger.debug(f"Configuration manager initialized with config_dir: {self.config_dir}")

    def load_config(self,
                    config_name: str = "config",
                    overrides: Optional[list] = None,
                    validate: bool = True) -> DictConfig:
        """Load configuration with optional overrides.

        Args:
            config_name: Name of the main config file (without .yaml)
            overrides: List of configuration overrides, e.g. ``solver.timeout_seconds=5``
            validate: Whether to validate the configuration

        Returns:
            Loaded and validated configuration
        """
        GlobalHydra.instance().clear()

        try:
            with initialize_config_dir(config_dir=str(self.config_dir), version_base=None):
                cfg = compose(config_name=config_name, overrides=overrides or [])

                if validate:
                    validate_config(cfg)

                self.config = cfg
                set_global_config(cfg)

                logger.info(f"Configuration loaded successfully: {config_name}")
                if overrides:
                    logger.info(f"Applied overrides: {overrides}")

                return cfg

        except Exception as e:
            logger.error(f"Failed to load configuration: {e}")
            raise

    def get_config(self) -> Optional[DictConfig]:
        return self.config

    def update_config(self, updates: Dict[str, Any]) -> None:
        """Update configuration with new values.

        Args:
            updates: Mapping of dotted keys to values
        """
        if self.config is None:
            raise RuntimeError("No configuration loaded. Call load_config() first.")

        with open_dict(self.config):
            for key, value in updates.items():
                OmegaConf.update(self.config, key, value)

        validate_config(self.config)
        logger.info(f"Configuration updated with: {updates}")

    def get_parameter(self, key: str, default: Any = None) -> Any:
        """Get a specific parameter from configuration.

        Args:
            key: Parameter key (supports dot notation, e.g., 'search.dag.max_nodes')
            default: Default value if key not found

        Returns:
            Parameter value or default
        """
        if self.config is None:
            raise RuntimeError("No configuration loaded. Call load_config() first.")
        return OmegaConf.select(self.config, key, default=default)

    def to_yaml(self, resolve: bool = True) -> str:
        """Render the current configuration as YAML."""
        if self.config is None:
            raise RuntimeError("No configuration loaded. Call load_config() first.")
        return OmegaConf.to_yaml(self.config, resolve=resolve)


# Global configuration functions
def load_config(config_name: str = "config",
                overrides: Optional[list] = None,
                config_dir: Optional[Union[str, Path]] = None,
                validate: bool = True) -> DictConfig:
    """Load configuration using a fresh config manager.

    Args:
        config_name: Name of the main config file
        overrides: List of configuration overrides
        config_dir: Path to configuration directory
        validate: Whether to validate the configuration

    Returns:
        Loaded configuration
    """
    manager = ConfigManager(config_dir)
    return manager.load_config(config_name, overrides, validate)


def get_config() -> Optional[DictConfig]:
    """Get the global configuration, or None if not loaded."""
    return _global_config


def set_global_config(config: Optional[DictConfig]) -> None:
    """Install ``config`` as the global configuration; None clears it."""
    global _global_config
    _global_config = config


def get_parameter(key: str, default: Any = None) -> Any:
    """Get a parameter from global configuration.

    Components call this for every tunable, so a missing configuration is
    normal and falls back to ``default``.

    Args:
        key: Parameter key (supports dot notation)
        default: Default value if key not found

    Returns:
        Parameter value or default
    """
    config = get_config()
    if config is None:
        logger.debug(f"No global configuration loaded; using default for '{key}'")
        return default
    return OmegaConf.select(config, key, default=default)
