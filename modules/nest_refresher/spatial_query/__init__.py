"""Spatial Query Gateway for the Nest Refresher

Bounding-box prefiltered, geometry-exact containment queries against the golbat
spawnpoint database.
"""

from .spawnpoint_gateway import (
    GolbatSpawnpointGateway,
    COUNT_CONTAINED_QUERY,
    LIST_CONTAINED_QUERY,
)

__all__ = ['GolbatSpawnpointGateway', 'COUNT_CONTAINED_QUERY', 'LIST_CONTAINED_QUERY']
