"""Golbat Spawnpoint Gateway

Containment queries against the golbat ``spawnpoint`` table. Each query first
narrows candidates with the polygon's bounding box on the indexed ``lat``/``lon``
columns, then runs the exact ``ST_CONTAINS`` test on those rows; the recency
filter is part of the same statement.
"""

import logging
import time
from datetime import timedelta
from typing import Any, Callable, Dict, List

from shapely.geometry.base import BaseGeometry
from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from ..exceptions import QueryFailureError
from ..geometry import bounding_box, serialize_geometry
from ..interfaces import COUNT_RECENCY_WINDOW, LIST_RECENCY_WINDOW, SpawnpointSource

logger = logging.getLogger(__name__)

_CONTAINED_FILTER = """
    WHERE lat > :min_lat AND lon > :min_lon
        AND lat < :max_lat AND lon < :max_lon
        AND last_seen > :last_seen_after
        AND ST_CONTAINS(ST_GeomFromGeoJSON(:geojson, 2, 0), POINT(lon, lat))"""

COUNT_CONTAINED_QUERY = text("SELECT COUNT(*) FROM spawnpoint" + _CONTAINED_FILTER)

LIST_CONTAINED_QUERY = text("SELECT id FROM spawnpoint" + _CONTAINED_FILTER + "\nORDER BY id")


class GolbatSpawnpointGateway(SpawnpointSource):
    """Spawnpoint containment queries against a golbat database."""

    def __init__(self, engine: Engine, clock: Callable[[], float] = time.time):
        """Initialize the gateway.

        Args:
            engine: SQLAlchemy engine connected to the golbat database
            clock: Source of the current epoch time, used for recency cutoffs
        """
        self.engine = engine
        self.clock = clock

    def count_contained(self, geometry: BaseGeometry,
                        recency_window: timedelta = COUNT_RECENCY_WINDOW) -> int:
        params = self._query_params(geometry, recency_window)
        try:
            with self.engine.connect() as conn:
                count = conn.execute(COUNT_CONTAINED_QUERY, params).scalar_one()
        except SQLAlchemyError as e:
            raise QueryFailureError(
                f"Spawnpoint count query failed: {e}",
                {"recency_days": recency_window.days}
            ) from e

        logger.debug(f"Spawnpoint count query returned {count}")
        return int(count)

    def list_contained_ids(self, geometry: BaseGeometry,
                           recency_window: timedelta = LIST_RECENCY_WINDOW) -> List[int]:
        params = self._query_params(geometry, recency_window)
        try:
            with self.engine.connect() as conn:
                spawnpoint_ids = conn.execute(LIST_CONTAINED_QUERY, params).scalars().all()
        except SQLAlchemyError as e:
            raise QueryFailureError(
                f"Contained spawnpoints query failed: {e}",
                {"recency_days": recency_window.days}
            ) from e

        return [int(spawnpoint_id) for spawnpoint_id in spawnpoint_ids]

    def _query_params(self, geometry: BaseGeometry, recency_window: timedelta) -> Dict[str, Any]:
        """Bind parameters shared by both containment queries.

        Raises:
            GeometryInvalidError: If the geometry cannot be serialized
        """
        geojson = serialize_geometry(geometry)
        bbox = bounding_box(geometry)
        return {
            "min_lat": bbox.min_lat,
            "min_lon": bbox.min_lon,
            "max_lat": bbox.max_lat,
            "max_lon": bbox.max_lon,
            "last_seen_after": int(self.clock() - recency_window.total_seconds()),
            "geojson": geojson,
        }
