"""Wiring of database-backed nest refreshers."""

import logging
from typing import Optional

from src.config.config_loader import ConfigLoader
from src.connection import CredentialsHandler, DatabaseConnector
from ..spatial_query import GolbatSpawnpointGateway
from ..storage import NestsDBStore
from .nest_refresher import NestRefresher

logger = logging.getLogger(__name__)


def build_nest_refresher(config_loader: ConfigLoader, environment: str,
                         credentials_handler: Optional[CredentialsHandler] = None) -> NestRefresher:
    """Connect to the environment's databases and build a refresher over them.

    The golbat database is optional; without it the refresher runs with no
    spawnpoint source. Call ``close()`` on the refresher to release the
    connections.

    Args:
        config_loader: Provides the environment's database and refresh settings
        environment: Environment to connect to
        credentials_handler: Resolves database passwords

    Returns:
        NestRefresher with connected store and gateway

    Raises:
        NestConfigurationError: If a database section is missing or invalid
        NestAuthenticationError: If a required password is not set
        NestConnectionError: If a database cannot be reached
    """
    credentials_handler = credentials_handler or CredentialsHandler()
    config_loader.validate_environment_variables(environment)

    nests_connector = DatabaseConnector(
        config_loader.get_database_config(environment, "nests_db"), credentials_handler
    )
    nests_store = NestsDBStore(nests_connector.connect())
    connectors = [nests_connector]

    gateway = None
    golbat_config = config_loader.get_database_config(environment, "golbat_db")
    if golbat_config is None:
        logger.warning(f"No golbat_db configured for {environment}, spawnpoint counts will not be queried")
    else:
        golbat_connector = DatabaseConnector(golbat_config, credentials_handler)
        try:
            gateway = GolbatSpawnpointGateway(golbat_connector.connect())
        except Exception:
            nests_connector.disconnect()
            raise
        connectors.append(golbat_connector)

    return NestRefresher(
        nests_store,
        spawnpoint_source=gateway,
        config_loader=config_loader,
        environment=environment,
        connectors=connectors,
    )
