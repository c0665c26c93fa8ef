"""Two-tier configuration manager (user + project override)."""

import yaml
from pathlib import Path
from typing import Dict, Any
from .paths import get_user_config_path, get_project_config_path
from ..utils.errors import ConfigError
from ..utils.logging import get_logger

logger = get_logger("config.manager")


def read_yaml_config(path: Path) -> Dict[str, Any]:
    """
    Read one YAML config file.

    Raises:
        ConfigError: If the file is missing, unreadable, or not a mapping
    """
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")

    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in config file {path}: {e}")
    except OSError as e:
        raise ConfigError(f"Error reading config file {path}: {e}")

    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a dictionary")
    return data


def load_config() -> Dict[str, Any]:
    """
    Load user config with project override.

    Unreadable user or project files are logged and skipped.

    Returns:
        Configuration dictionary (project config overrides user config)
    """
    user_config_path = get_user_config_path()
    project_config_path = get_project_config_path()

    config: Dict[str, Any] = {}
    if user_config_path.exists():
        try:
            config = read_yaml_config(user_config_path)
            logger.debug(f"Loaded user config from {user_config_path}")
        except ConfigError as e:
            logger.warning(f"Could not load user config: {e}")

    if project_config_path:
        try:
            deep_merge(config, read_yaml_config(project_config_path))
            logger.info(f"Loaded project config from {project_config_path}")
        except ConfigError as e:
            logger.warning(f"Could not load project config: {e}")

    return config


def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Deep merge override into base (mutates and returns base)."""
    for key, value in override.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            deep_merge(base[key], value)
        else:
            base[key] = value
    return base
