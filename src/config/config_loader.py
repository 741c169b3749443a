"""
Configuration loader for the nest refresher.

This module provides the ConfigLoader class that handles loading and validating
JSON configuration files for multi-environment deployments.
"""

import json
import os
from pathlib import Path
from typing import Dict, Any, Optional
from functools import lru_cache

from pydantic import ValidationError

from .database_config import DatabaseConfig
from ..exceptions import NestConfigurationError, NestValidationError
from ..utils import get_logger


REQUIRED_ENVIRONMENT_KEYS = ["nests_db", "logging", "refresh"]
DATABASE_KEYS = ["nests_db", "golbat_db"]


class ConfigLoader:
    """
    Configuration loader and validator for the nest refresher.

    This class handles loading environment-specific configuration from JSON files,
    validating required fields, and providing type-safe access to configuration values.
    """

    def __init__(self, config_dir: Optional[str] = None):
        """
        Initialize the configuration loader.

        Args:
            config_dir: Directory containing configuration files (defaults to 'config/')
        """
        self.logger = get_logger(__name__)
        self.config_dir = Path(config_dir) if config_dir else Path("config")

    @lru_cache(maxsize=2)
    def load_environment_config(self, environment: str) -> Dict[str, Any]:
        """
        Load configuration for a specific environment.

        Args:
            environment: Environment name (development/production)

        Returns:
            Dictionary containing environment-specific configuration merged with shared config

        Raises:
            NestConfigurationError: If configuration cannot be loaded
            NestValidationError: If the configuration structure is invalid
        """
        env_config_path = self.config_dir / "environment_config.json"

        if not env_config_path.exists():
            raise NestConfigurationError(
                f"Environment configuration file not found: {env_config_path}"
            )

        try:
            with open(env_config_path, 'r') as f:
                config_data = json.load(f)
        except json.JSONDecodeError as e:
            raise NestConfigurationError(
                f"Invalid JSON in environment configuration: {str(e)}"
            )
        except OSError as e:
            raise NestConfigurationError(
                f"Failed to load environment configuration: {str(e)}"
            )

        env_config = self._merge_shared(config_data, environment)
        self._validate_environment_config(env_config, environment)

        env_config["_validation"] = config_data.get("validation", {})

        self.logger.info(f"Loaded configuration for environment: {environment}")
        return env_config

    def get_refresh_settings(self, environment: str) -> Dict[str, Any]:
        """
        Get the raw refresh/filter settings for an environment.

        Args:
            environment: Environment name

        Returns:
            Dictionary of refresh settings (concurrency, thresholds, ...)
        """
        return dict(self.load_environment_config(environment)["refresh"])

    def get_logging_config(self, environment: str) -> Dict[str, Any]:
        """Get the logging section for an environment."""
        return dict(self.load_environment_config(environment)["logging"])

    def get_database_config(self, environment: str, key: str) -> Optional[DatabaseConfig]:
        """
        Get the connection settings for one of the configured databases.

        Args:
            environment: Environment name
            key: Database key ('nests_db' or 'golbat_db')

        Returns:
            DatabaseConfig, or None when the database is not configured

        Raises:
            NestConfigurationError: If the database section is invalid
        """
        if key not in DATABASE_KEYS:
            raise NestConfigurationError(
                f"Unknown database key '{key}'", {"available": DATABASE_KEYS}
            )

        section = self.load_environment_config(environment).get(key)
        if section is None:
            return None

        try:
            return DatabaseConfig.model_validate(section)
        except ValidationError as e:
            raise NestConfigurationError(
                f"Invalid '{key}' configuration for {environment}: {e.error_count()} error(s)",
                {"errors": "; ".join(err["msg"] for err in e.errors())}
            )

    def validate_environment_variables(self, environment: str) -> None:
        """
        Validate that required environment variables are set.

        Args:
            environment: Environment name to validate

        Raises:
            NestValidationError: If required environment variables are missing
        """
        env_config = self.load_environment_config(environment)
        required_vars = list(env_config.get("_validation", {}).get("required_environment_variables", []))

        for key in DATABASE_KEYS:
            password_env = (env_config.get(key) or {}).get("password_env")
            if password_env and password_env not in required_vars:
                required_vars.append(password_env)

        missing_vars = [var for var in required_vars if not os.getenv(var)]

        if missing_vars:
            raise NestValidationError(
                f"Missing required environment variables: {', '.join(missing_vars)}"
            )

        self.logger.info(f"Environment variables validated for: {environment}")

    def _merge_shared(self, config_data: Dict[str, Any], environment: str) -> Dict[str, Any]:
        """
        Extract one environment and fill it in from the shared section.

        Shared keys only fill in what the environment leaves out, except for the
        ``refresh`` and ``logging`` sections which merge key by key.

        Raises:
            NestValidationError: If the environment is missing
        """
        if "environments" not in config_data:
            raise NestValidationError("Missing 'environments' key in configuration")

        if environment not in config_data["environments"]:
            available_envs = list(config_data["environments"].keys())
            raise NestValidationError(
                f"Environment '{environment}' not found. Available: {available_envs}"
            )

        env_config = dict(config_data["environments"][environment])
        shared_config = config_data.get("shared", {})

        for key, value in shared_config.items():
            if key in ("refresh", "logging") and isinstance(value, dict):
                merged = dict(value)
                merged.update(env_config.get(key, {}))
                env_config[key] = merged
            elif key not in env_config:
                env_config[key] = value

        return env_config

    def _validate_environment_config(self, env_config: Dict[str, Any], environment: str) -> None:
        """
        Validate environment configuration structure.

        Args:
            env_config: Merged environment configuration to validate
            environment: Environment name to validate

        Raises:
            NestValidationError: If configuration is invalid
        """
        for key in REQUIRED_ENVIRONMENT_KEYS:
            if key not in env_config:
                raise NestValidationError(
                    f"Missing required key '{key}' in {environment} configuration"
                )

        for key in DATABASE_KEYS:
            section = env_config.get(key)
            if section is not None and not isinstance(section, dict):
                raise NestValidationError(
                    f"'{key}' must be an object in {environment} configuration"
                )

        if not isinstance(env_config["refresh"], dict):
            raise NestValidationError(
                f"'refresh' must be an object in {environment} configuration"
            )

    def clear_cache(self) -> None:
        """Clear the configuration cache."""
        self.load_environment_config.cache_clear()
        self.logger.info("Configuration cache cleared")
