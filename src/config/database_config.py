"""
Database connection settings for the nest refresher.

Both the nests database and the golbat spawnpoint database are described by
the same model; the password itself is never stored in configuration files.
"""

from typing import Optional

from pydantic import BaseModel, Field, field_validator
from sqlalchemy.engine import URL

DEFAULT_MAX_POOL = 10


class DatabaseConfig(BaseModel):
    """Connection settings for a single database."""

    driver: str = Field("mysql+pymysql", description="SQLAlchemy dialect+driver name")
    host: Optional[str] = Field(None, description="Database host")
    port: Optional[int] = Field(None, ge=1, le=65535, description="Database port")
    database: str = Field(..., min_length=1, description="Database (schema) name or SQLite file path")
    username: Optional[str] = Field(None, description="Database user")
    password_env: Optional[str] = Field(
        None, description="Name of the environment variable holding the password"
    )
    max_pool: int = Field(DEFAULT_MAX_POOL, description="Maximum pooled connections (<= 0 uses the default)")
    connect_timeout_seconds: float = Field(30.0, gt=0, description="Timeout for the initial connection check")

    @field_validator('max_pool')
    @classmethod
    def default_max_pool(cls, v: int) -> int:
        """Non-positive pool sizes fall back to the default."""
        return v if v > 0 else DEFAULT_MAX_POOL

    def is_sqlite(self) -> bool:
        return self.driver.startswith("sqlite")

    def as_url(self, password: Optional[str] = None) -> URL:
        """Build the SQLAlchemy URL for this database."""
        return URL.create(
            drivername=self.driver,
            username=self.username,
            password=password,
            host=self.host,
            port=self.port,
            database=self.database,
        )

    def describe(self) -> str:
        """Connection description safe for logging (no password)."""
        if self.is_sqlite():
            return f"{self.driver}:///{self.database}"
        return f"{self.driver}://{self.username or ''}@{self.host or 'localhost'}:{self.port or ''}/{self.database}"
