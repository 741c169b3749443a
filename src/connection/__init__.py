"""
Connection module for the nest refresher.

This module provides database connectivity and credential handling for the
nests database and the golbat spawnpoint database.
"""

from .credentials_handler import CredentialsHandler
from .database_connector import DatabaseConnector

__all__ = [
    'CredentialsHandler',
    'DatabaseConnector',
]
