"""
Configuration management module for the nest refresher.

This module provides configuration loading and validation capabilities for
multi-environment deployments (development and production).
"""

from .config_loader import ConfigLoader
from .database_config import DatabaseConfig

__all__ = ["ConfigLoader", "DatabaseConfig"]
