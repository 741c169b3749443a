"""Collaborator Interfaces for the Nest Refresher

Abstract contracts for nest storage and the spawnpoint source. The refresher,
differ and overlap resolver receive implementations through their constructors.
"""

from abc import ABC, abstractmethod
from datetime import timedelta
from typing import Iterator, List

from shapely.geometry.base import BaseGeometry

from .models import Nest, NestPartialUpdate

COUNT_RECENCY_WINDOW = timedelta(days=7)
LIST_RECENCY_WINDOW = timedelta(days=2)


class NestStore(ABC):
    """Durable storage of nests."""

    @abstractmethod
    def get_nest(self, nest_id: int, include_polygon: bool = True) -> Nest:
        """Load one nest.

        Raises:
            NestNotFoundError: If no such nest exists
            QueryFailureError: If the storage query fails
        """

    @abstractmethod
    def iterate_nests(self, include_polygon: bool = False) -> Iterator[Nest]:
        """Iterate every stored nest, ordered by identifier.

        Polygon payloads are large and only loaded when requested.
        """

    @abstractmethod
    def update_nest_partial(self, nest_id: int, partial_update: NestPartialUpdate) -> None:
        """Write the explicitly set fields of ``partial_update`` to a single nest.

        Raises:
            PersistenceError: If the write fails or the nest does not exist
        """

    @abstractmethod
    def list_active_with_geometry(self) -> List[Nest]:
        """All currently active nests, polygons included."""


class SpawnpointSource(ABC):
    """Spatial source of spawnpoint observations."""

    @abstractmethod
    def count_contained(self, geometry: BaseGeometry,
                        recency_window: timedelta = COUNT_RECENCY_WINDOW) -> int:
        """Count spawnpoints seen within ``recency_window`` inside ``geometry``.

        Raises:
            GeometryInvalidError: If the geometry cannot be serialized for the query
            QueryFailureError: If the backend query fails
        """

    @abstractmethod
    def list_contained_ids(self, geometry: BaseGeometry,
                           recency_window: timedelta = LIST_RECENCY_WINDOW) -> List[int]:
        """Identifiers of spawnpoints seen within ``recency_window`` inside ``geometry``.

        Raises:
            GeometryInvalidError: If the geometry cannot be serialized for the query
            QueryFailureError: If the backend query fails
        """
