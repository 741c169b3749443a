"""Shared fixtures for the nest refresher tests.

Provides an in-memory nest store, a scriptable spawnpoint source and GeoJSON
polygon factories. Squares are built near the equator, where a metre of
longitude and a metre of latitude are known to good precision.
"""

import json
import threading
from datetime import timedelta
from typing import Dict, Iterator, List, Optional

import pytest

from modules.nest_refresher.exceptions import NestNotFoundError, PersistenceError
from modules.nest_refresher.interfaces import (
    COUNT_RECENCY_WINDOW,
    LIST_RECENCY_WINDOW,
    NestStore,
    SpawnpointSource,
)
from modules.nest_refresher.models import Nest, NestPartialUpdate, RefreshNestConfig

METRES_PER_DEGREE_LON = 111319.49
METRES_PER_DEGREE_LAT = 110574.27

FIXED_NOW = 1_700_000_000


class InMemoryNestStore(NestStore):
    """Thread-safe NestStore keeping nests in a dict and recording every write."""

    def __init__(self, nests: Optional[List[Nest]] = None):
        self._lock = threading.Lock()
        self.nests: Dict[int, Nest] = {nest.nest_id: nest for nest in nests or []}
        self.updates: List[tuple] = []
        self.fail_updates_for: set = set()

    def get_nest(self, nest_id: int, include_polygon: bool = True) -> Nest:
        with self._lock:
            if nest_id not in self.nests:
                raise NestNotFoundError(nest_id)
            return self._view(self.nests[nest_id], include_polygon)

    def iterate_nests(self, include_polygon: bool = False) -> Iterator[Nest]:
        with self._lock:
            snapshot = [self.nests[nest_id] for nest_id in sorted(self.nests)]
        for nest in snapshot:
            yield self._view(nest, include_polygon)

    def update_nest_partial(self, nest_id: int, partial_update: NestPartialUpdate) -> None:
        with self._lock:
            if nest_id in self.fail_updates_for:
                raise PersistenceError("Failed to update nest", {"nest_id": nest_id})
            if nest_id not in self.nests:
                raise PersistenceError("Nest to update does not exist", {"nest_id": nest_id})
            self.updates.append((nest_id, partial_update))
            self.nests[nest_id] = self.nests[nest_id].model_copy(
                update=partial_update.model_dump(exclude_unset=True)
            )

    def list_active_with_geometry(self) -> List[Nest]:
        with self._lock:
            return [nest for _, nest in sorted(self.nests.items()) if nest.active is True]

    def updated_ids(self) -> List[int]:
        return [nest_id for nest_id, _ in self.updates]

    @staticmethod
    def _view(nest: Nest, include_polygon: bool) -> Nest:
        if include_polygon:
            return nest
        return nest.model_copy(update={"polygon": None})


class FakeSpawnpointSource(SpawnpointSource):
    """SpawnpointSource returning a fixed count, or raising a configured error."""

    def __init__(self, count: int = 0, error: Optional[Exception] = None,
                 ids: Optional[List[int]] = None):
        self.count = count
        self.error = error
        self.ids = ids or []
        self.calls: List[tuple] = []
        self._lock = threading.Lock()

    def count_contained(self, geometry, recency_window: timedelta = COUNT_RECENCY_WINDOW) -> int:
        with self._lock:
            self.calls.append(("count", geometry, recency_window))
        if self.error is not None:
            raise self.error
        return self.count

    def list_contained_ids(self, geometry, recency_window: timedelta = LIST_RECENCY_WINDOW) -> List[int]:
        with self._lock:
            self.calls.append(("list", geometry, recency_window))
        if self.error is not None:
            raise self.error
        return list(self.ids)


def _square_geojson(side_m: float, lon: float = 0.0, lat: float = 0.0,
                    width_m: Optional[float] = None) -> str:
    width = (width_m if width_m is not None else side_m) / METRES_PER_DEGREE_LON
    height = side_m / METRES_PER_DEGREE_LAT
    ring = [
        [lon, lat],
        [lon + width, lat],
        [lon + width, lat + height],
        [lon, lat + height],
        [lon, lat],
    ]
    return json.dumps({"type": "Polygon", "coordinates": [ring]})


def metres_to_lon(metres: float) -> float:
    return metres / METRES_PER_DEGREE_LON


@pytest.fixture
def square_polygon():
    """Factory for GeoJSON squares/rectangles with sides given in metres."""
    return _square_geojson


@pytest.fixture
def offset_lon():
    """Converts metres east into degrees of longitude at the equator."""
    return metres_to_lon


@pytest.fixture
def bowtie_polygon():
    """Self-intersecting polygon."""
    return json.dumps({
        "type": "Polygon",
        "coordinates": [[[0, 0], [0.001, 0.001], [0.001, 0], [0, 0.001], [0, 0]]],
    })


@pytest.fixture
def make_nest(square_polygon):
    """Factory for nests with a 1000 m² polygon unless told otherwise."""
    def _make(nest_id: int, **fields) -> Nest:
        values = {
            "name": f"Nest {nest_id}",
            "area_name": "Park",
            "polygon": square_polygon(31.6227766),
        }
        values.update(fields)
        return Nest(nest_id=nest_id, **values)
    return _make


@pytest.fixture
def refresh_config():
    """Factory for refresh settings."""
    def _config(**overrides) -> RefreshNestConfig:
        values = {
            "concurrency": 0,
            "min_area_m2": 100,
            "max_area_m2": 10_000_000,
            "min_spawnpoints": 10,
            "max_overlap_percent": 60,
        }
        values.update(overrides)
        return RefreshNestConfig(**values)
    return _config


@pytest.fixture
def clock():
    return lambda: FIXED_NOW


@pytest.fixture
def nest_store():
    return InMemoryNestStore()


@pytest.fixture
def spawnpoint_source():
    return FakeSpawnpointSource(count=25)


@pytest.fixture
def fake_source():
    """Factory for spawnpoint sources with a given count or error."""
    return FakeSpawnpointSource


@pytest.fixture
def store_factory():
    """Factory for in-memory stores preloaded with nests."""
    return InMemoryNestStore
