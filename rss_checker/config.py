"""
Configuration management for RSS Checker.

Handles loading and validation of the optional YAML configuration file
with support for environment variable substitution.
"""

import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)


class DefaultsConfig(BaseModel):
    """
    Polling settings shared by every feed.

    Attributes
    ----------
    request_timeout : int
        HTTP request timeout in seconds.
    max_workers : int
        Maximum number of feeds fetched at the same time.
    """

    request_timeout: int = 30
    max_workers: int = 50

    @field_validator("request_timeout", "max_workers")
    @classmethod
    def check_positive(cls, v: int) -> int:
        """Validate that limits are strictly positive."""
        if v <= 0:
            raise ValueError("Value must be greater than zero")
        return v


class StorageConfig(BaseModel):
    """
    Storage configuration for the site registry.

    Attributes
    ----------
    database_path : str
        Path to the JSON site registry file.
    """

    database_path: str = "sites.json"

    @field_validator("database_path")
    @classmethod
    def check_not_empty(cls, v: str) -> str:
        """Validate that the registry path is not empty."""
        if not v or not v.strip():
            raise ValueError("Field cannot be empty")
        return v


class AppConfig(BaseModel):
    """
    Root application configuration.

    Attributes
    ----------
    defaults : DefaultsConfig
        Polling settings.
    storage : StorageConfig
        Registry storage settings.
    """

    defaults: DefaultsConfig = Field(default_factory=DefaultsConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)


def _substitute_env_vars(value: Any) -> Any:
    """
    Recursively substitute environment variables in configuration values.

    Supports ${VAR_NAME} and ${VAR_NAME:-default} syntax.

    Parameters
    ----------
    value : Any
        The value to process.

    Returns
    -------
    Any
        The value with environment variables substituted.
    """
    if isinstance(value, str):
        # Pattern matches ${VAR} or ${VAR:-default}
        pattern = r"\$\{([A-Za-z_][A-Za-z0-9_]*)(?::-([^}]*))?\}"

        def replacer(match: re.Match) -> str:
            var_name = match.group(1)
            default = match.group(2)
            env_value = os.environ.get(var_name)
            if env_value is not None:
                return env_value
            if default is not None:
                return default
            logger.warning(
                "Environment variable '%s' not set and no default provided",
                var_name,
            )
            return match.group(0)

        return re.sub(pattern, replacer, value)
    elif isinstance(value, dict):
        return {k: _substitute_env_vars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [_substitute_env_vars(item) for item in value]
    return value


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """
    Load and validate configuration from a YAML file.

    The file is optional: when it does not exist, or is empty, the built-in
    defaults are used.

    Parameters
    ----------
    config_path : str | Path | None
        Path to the YAML configuration file.

    Returns
    -------
    AppConfig
        Validated application configuration.

    Raises
    ------
    yaml.YAMLError
        If the YAML is invalid.
    pydantic.ValidationError
        If the configuration is invalid.
    """
    if config_path is None:
        return AppConfig()

    config_path = Path(config_path)

    if not config_path.exists():
        logger.debug("No configuration file at %s, using defaults", config_path)
        return AppConfig()

    logger.info("Loading configuration from %s", config_path)

    with open(config_path, encoding="utf-8") as f:
        raw_config = yaml.safe_load(f)

    if raw_config is None:
        logger.debug("Configuration file %s is empty, using defaults", config_path)
        return AppConfig()

    processed_config = _substitute_env_vars(raw_config)
    config = AppConfig.model_validate(processed_config)

    logger.debug(
        "Configuration loaded: timeout=%ds, max_workers=%d, database=%s",
        config.defaults.request_timeout,
        config.defaults.max_workers,
        config.storage.database_path,
    )

    return config
