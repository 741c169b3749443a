"""
Credentials handler for database connections.

This module resolves database passwords from environment variables so that no
secret ever lives in the configuration files or the logs.
"""

import os
from typing import Optional

from ..config import DatabaseConfig
from ..exceptions import NestAuthenticationError
from ..utils import get_logger

logger = get_logger(__name__)


class CredentialsHandler:
    """
    Resolves database credentials from environment variables.

    The environment variable holding a password is named by the database's
    ``password_env`` setting. Databases without one (e.g. SQLite) connect
    without a password.
    """

    def get_password(self, db_config: DatabaseConfig) -> Optional[str]:
        """
        Get the password for a database.

        Args:
            db_config: Database connection settings

        Returns:
            Password string, or None when the database needs no password

        Raises:
            NestAuthenticationError: If the configured variable is unset or empty
        """
        if not db_config.password_env:
            logger.debug(f"No password configured for {db_config.describe()}")
            return None

        password = os.getenv(db_config.password_env)
        if password is None or len(password.strip()) == 0:
            raise NestAuthenticationError(
                f"{db_config.password_env} environment variable not set",
                {"database": db_config.database}
            )

        # Log without exposing values
        logger.debug(f"Loaded password for {db_config.describe()} from {db_config.password_env}")
        return password
