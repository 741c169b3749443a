"""
Unit tests for ConfigLoader class.

This module contains tests for environment configuration loading, shared
section merging, database settings and environment variable validation.
"""

import json
import os
import pytest
import tempfile
from pathlib import Path
from unittest.mock import patch

from src.config import ConfigLoader, DatabaseConfig
from src.exceptions import NestConfigurationError, NestValidationError


class TestConfigLoader:
    """Test suite for ConfigLoader class."""

    @pytest.fixture
    def temp_config_dir(self):
        """Create a temporary directory for configuration files."""
        with tempfile.TemporaryDirectory() as temp_dir:
            yield Path(temp_dir)

    @pytest.fixture
    def valid_environment_config(self):
        """Valid environment configuration with a shared refresh section."""
        return {
            "shared": {
                "refresh": {
                    "concurrency": 4,
                    "min_area_m2": 100,
                    "max_overlap_percent": 60
                },
                "logging": {"level": "INFO"}
            },
            "environments": {
                "development": {
                    "nests_db": {"driver": "sqlite", "database": "nests.sqlite"},
                    "logging": {"level": "DEBUG"},
                    "refresh": {"concurrency": 1}
                },
                "production": {
                    "nests_db": {
                        "host": "db.example.org",
                        "port": 3306,
                        "database": "fletchling",
                        "username": "fletchling",
                        "password_env": "NESTS_DB_PASSWORD"
                    },
                    "golbat_db": {
                        "host": "db.example.org",
                        "database": "golbat",
                        "username": "golbat",
                        "password_env": "GOLBAT_DB_PASSWORD"
                    },
                    "logging": {"level": "INFO", "log_dir": "logs"},
                    "refresh": {"min_spawnpoints": 20}
                }
            },
            "validation": {
                "required_environment_variables": []
            }
        }

    @pytest.fixture
    def config_loader(self, temp_config_dir, valid_environment_config):
        """Create ConfigLoader over a written configuration file."""
        with open(temp_config_dir / "environment_config.json", 'w') as f:
            json.dump(valid_environment_config, f)
        return ConfigLoader(config_dir=str(temp_config_dir))

    def test_init_default_config_dir(self):
        """Test ConfigLoader initialization with default config directory."""
        loader = ConfigLoader()
        assert loader.config_dir == Path("config")

    def test_init_custom_config_dir(self, temp_config_dir):
        """Test ConfigLoader initialization with custom config directory."""
        loader = ConfigLoader(config_dir=str(temp_config_dir))
        assert loader.config_dir == temp_config_dir

    def test_load_environment_config_success(self, config_loader):
        """Test successful loading of environment configuration."""
        config = config_loader.load_environment_config("development")

        assert config["nests_db"]["database"] == "nests.sqlite"
        assert config["logging"]["level"] == "DEBUG"
        assert "_validation" in config

    def test_refresh_settings_merge_shared_key_by_key(self, config_loader):
        """Environment refresh keys override shared ones, the rest are inherited."""
        settings = config_loader.get_refresh_settings("development")

        assert settings["concurrency"] == 1
        assert settings["min_area_m2"] == 100
        assert settings["max_overlap_percent"] == 60

    def test_get_refresh_settings_returns_copy(self, config_loader):
        """Mutating returned settings does not leak into the cache."""
        settings = config_loader.get_refresh_settings("production")
        settings["concurrency"] = 99

        assert config_loader.get_refresh_settings("production")["concurrency"] == 4

    def test_get_logging_config(self, config_loader):
        logging_config = config_loader.get_logging_config("production")

        assert logging_config == {"level": "INFO", "log_dir": "logs"}

    def test_load_environment_config_file_not_found(self, temp_config_dir):
        """Test loading environment configuration when file doesn't exist."""
        loader = ConfigLoader(config_dir=str(temp_config_dir))

        with pytest.raises(NestConfigurationError) as exc_info:
            loader.load_environment_config("development")

        assert "Environment configuration file not found" in str(exc_info.value)

    def test_load_environment_config_invalid_json(self, temp_config_dir):
        """Test loading environment configuration with invalid JSON."""
        with open(temp_config_dir / "environment_config.json", 'w') as f:
            f.write("{ invalid json }")
        loader = ConfigLoader(config_dir=str(temp_config_dir))

        with pytest.raises(NestConfigurationError) as exc_info:
            loader.load_environment_config("development")

        assert "Invalid JSON in environment configuration" in str(exc_info.value)

    def test_load_environment_config_missing_environment(self, config_loader):
        """Test loading non-existent environment configuration."""
        with pytest.raises(NestValidationError) as exc_info:
            config_loader.load_environment_config("staging")

        assert "Environment 'staging' not found" in str(exc_info.value)

    def test_get_database_config(self, config_loader):
        db_config = config_loader.get_database_config("production", "golbat_db")

        assert isinstance(db_config, DatabaseConfig)
        assert db_config.driver == "mysql+pymysql"
        assert db_config.database == "golbat"
        assert db_config.max_pool == 10

    def test_get_database_config_absent_golbat(self, config_loader):
        """An environment without golbat_db yields None."""
        assert config_loader.get_database_config("development", "golbat_db") is None

    def test_get_database_config_unknown_key(self, config_loader):
        with pytest.raises(NestConfigurationError) as exc_info:
            config_loader.get_database_config("development", "other_db")

        assert "Unknown database key" in str(exc_info.value)

    def test_get_database_config_invalid_section(self, temp_config_dir, valid_environment_config):
        valid_environment_config["environments"]["development"]["nests_db"] = {"port": 0}
        with open(temp_config_dir / "environment_config.json", 'w') as f:
            json.dump(valid_environment_config, f)
        loader = ConfigLoader(config_dir=str(temp_config_dir))

        with pytest.raises(NestConfigurationError) as exc_info:
            loader.get_database_config("development", "nests_db")

        assert "Invalid 'nests_db' configuration" in str(exc_info.value)

    @patch.dict(os.environ, {"NESTS_DB_PASSWORD": "secret", "GOLBAT_DB_PASSWORD": "secret"})
    def test_validate_environment_variables_success(self, config_loader):
        """Test successful validation of environment variables."""
        config_loader.validate_environment_variables("production")

    @patch.dict(os.environ, {}, clear=True)
    def test_validate_environment_variables_missing_password(self, config_loader):
        """Password variables named by database sections are required."""
        with pytest.raises(NestValidationError) as exc_info:
            config_loader.validate_environment_variables("production")

        assert "NESTS_DB_PASSWORD" in str(exc_info.value)
        assert "GOLBAT_DB_PASSWORD" in str(exc_info.value)

    @patch.dict(os.environ, {}, clear=True)
    def test_validate_environment_variables_without_passwords(self, config_loader):
        """SQLite environments need no variables."""
        config_loader.validate_environment_variables("development")

    def test_validate_environment_config_missing_keys(self, config_loader):
        """Test validation with missing required keys."""
        with pytest.raises(NestValidationError) as exc_info:
            config_loader._validate_environment_config({"logging": {}}, "development")

        assert "Missing required key 'nests_db'" in str(exc_info.value)

    def test_validate_environment_config_refresh_not_object(self, config_loader):
        invalid_config = {"nests_db": {"database": "x"}, "logging": {}, "refresh": []}

        with pytest.raises(NestValidationError) as exc_info:
            config_loader._validate_environment_config(invalid_config, "development")

        assert "'refresh' must be an object" in str(exc_info.value)

    def test_merge_shared_missing_environments(self, config_loader):
        """Test validation with missing environments key."""
        with pytest.raises(NestValidationError) as exc_info:
            config_loader._merge_shared({"invalid": "config"}, "development")

        assert "Missing 'environments' key" in str(exc_info.value)

    def test_clear_cache(self, config_loader, temp_config_dir, valid_environment_config):
        """Test cache clearing functionality."""
        first = config_loader.load_environment_config("development")
        assert config_loader.load_environment_config("development") is first

        valid_environment_config["environments"]["development"]["logging"]["level"] = "WARNING"
        with open(temp_config_dir / "environment_config.json", 'w') as f:
            json.dump(valid_environment_config, f)

        config_loader.clear_cache()

        assert config_loader.load_environment_config("development")["logging"]["level"] == "WARNING"
