"""Configuration module: engine settings and provider schema."""

import logging
import os
from typing import Any, Dict, Optional
from pathlib import Path
from pydantic import BaseModel, Field, ValidationError, field_validator
from ..providers.schema import KindSchema, ProviderSchema
from ..utils.errors import ConfigError
from ..utils.logging import get_logger, apply_config_level
from .manager import load_config, read_yaml_config, deep_merge
from .paths import DEFAULTS_PATH, get_user_config_path, get_project_config_path

logger = get_logger("config")

ENV_PARALLELISM = "INFRAPLAN_PARALLELISM"
ENV_STATE_PATH = "INFRAPLAN_STATE_PATH"
ENV_LOG_LEVEL = "INFRAPLAN_LOG_LEVEL"


class EngineConfig(BaseModel):
    """Validated engine configuration."""
    parallelism: int = Field(default=10, ge=1, description="Maximum concurrent provider calls")
    state_path: str = Field(default="infraplan.state.json", description="State file location")
    log_level: str = Field(default="INFO", description="Level of the infraplan loggers")
    provider_schema: Dict[str, KindSchema] = Field(default_factory=dict)

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"unknown log level '{value}'")
        return level

    @property
    def schema(self) -> ProviderSchema:
        return ProviderSchema(kinds=self.provider_schema)


def load_engine_config(config_path: Optional[str] = None) -> EngineConfig:
    """
    Load configuration: defaults, then user/project files, then an explicit file,
    then environment variables.

    The configured log_level is applied to the infraplan loggers unless a
    command-line flag already chose one.

    Args:
        config_path: Optional extra config file merged last

    Returns:
        EngineConfig

    Raises:
        ConfigError: If any layer is invalid
    """
    config = read_yaml_config(DEFAULTS_PATH)
    deep_merge(config, load_config())

    if config_path is not None:
        deep_merge(config, read_yaml_config(Path(config_path)))
        logger.info(f"Loaded configuration from {config_path}")

    _apply_environment(config)

    try:
        engine_config = EngineConfig(**config)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}")

    apply_config_level(engine_config.log_level)
    return engine_config


def _apply_environment(config: Dict[str, Any]) -> None:
    parallelism = os.getenv(ENV_PARALLELISM)
    if parallelism:
        try:
            config["parallelism"] = int(parallelism)
        except ValueError:
            raise ConfigError(f"{ENV_PARALLELISM} must be an integer, got '{parallelism}'")
        logger.debug(f"Parallelism overridden by {ENV_PARALLELISM}: {parallelism}")

    state_path = os.getenv(ENV_STATE_PATH)
    if state_path:
        config["state_path"] = state_path

    log_level = os.getenv(ENV_LOG_LEVEL)
    if log_level:
        config["log_level"] = log_level


__all__ = [
    "EngineConfig",
    "load_engine_config",
    "load_config",
    "get_user_config_path",
    "get_project_config_path",
]
