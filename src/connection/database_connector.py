"""
Database connector for the nest refresher.

This module provides SQLAlchemy engine creation with retry logic and timeout
handling for the nests database and the golbat spawnpoint database.
"""

from typing import Optional

from func_timeout import func_timeout, FunctionTimedOut
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type

from .credentials_handler import CredentialsHandler
from ..config import DatabaseConfig
from ..exceptions import NestConnectionError, NestAuthenticationError
from ..utils import get_logger

logger = get_logger(__name__)


class DatabaseConnector:
    """
    Database connection manager with retry logic and timeout handling.

    Creates one SQLAlchemy engine per database and verifies it can be reached
    before handing it to stores and gateways.
    """

    def __init__(self, db_config: DatabaseConfig,
                 credentials_handler: Optional[CredentialsHandler] = None):
        """
        Initialize the database connector.

        Args:
            db_config: Connection settings for the database
            credentials_handler: Resolves the password (defaults to environment lookup)
        """
        self.db_config = db_config
        self.credentials_handler = credentials_handler or CredentialsHandler()
        self._engine: Optional[Engine] = None
        logger.debug(f"DatabaseConnector initialized for {db_config.describe()}")

    def connect(self) -> Engine:
        """
        Create the engine and verify the database is reachable.

        Returns:
            Engine: Connected SQLAlchemy engine

        Raises:
            NestConnectionError: If the database cannot be reached after retries
            NestAuthenticationError: If credentials cannot be resolved
        """
        if self._engine is not None:
            return self._engine

        password = self.credentials_handler.get_password(self.db_config)
        description = self.db_config.describe()
        engine = None

        try:
            logger.info(f"Attempting connection to {description}")
            engine = self._create_engine(password)

            func_timeout(
                self.db_config.connect_timeout_seconds,
                self._verify_connection,
                args=(engine,)
            )

            self._engine = engine
            logger.info(f"Successfully connected to {description}")
            return engine

        except FunctionTimedOut:
            self._dispose_failed(engine)
            raise NestConnectionError(
                "Connection timeout - database may be unavailable",
                {"database": description}
            )
        except NestAuthenticationError:
            raise
        except SQLAlchemyError as e:
            error_msg = f"Failed to connect to database: {str(e)}"
            logger.error(error_msg)
            self._dispose_failed(engine)
            raise NestConnectionError(error_msg, {"database": description}) from e

    @staticmethod
    def _dispose_failed(engine: Optional[Engine]) -> None:
        """Release the pool of an engine that never passed verification."""
        if engine is not None:
            engine.dispose()

    def _create_engine(self, password: Optional[str]) -> Engine:
        url = self.db_config.as_url(password)
        if self.db_config.is_sqlite():
            return create_engine(url)
        return create_engine(
            url,
            pool_size=self.db_config.max_pool,
            pool_pre_ping=True,
            pool_recycle=3600,
        )

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=4, max=10),
        retry=retry_if_exception_type(OperationalError),
        reraise=True
    )
    def _verify_connection(self, engine: Engine) -> None:
        """
        Verify the engine can run a trivial statement.

        Raises:
            OperationalError: If the database is unreachable (retried)
        """
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        logger.debug(f"Connection validation passed for {self.db_config.describe()}")

    def get_engine(self) -> Optional[Engine]:
        """
        Get the current engine.

        Returns:
            Engine if connected, None otherwise
        """
        return self._engine

    def is_connected(self) -> bool:
        return self._engine is not None

    def disconnect(self) -> None:
        """Dispose of the engine's connection pool."""
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            logger.info(f"Disconnected from {self.db_config.describe()}")
