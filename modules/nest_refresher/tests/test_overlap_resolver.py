"""
Unit tests for OverlapResolver, run against the in-memory nest store.
"""

import pytest

from src.exceptions import NestConfigurationError
from modules.nest_refresher.models import DiscardReason
from modules.nest_refresher.overlap import OverlapResolver
from modules.nest_refresher.partial_update import NestDiffer


@pytest.fixture
def build_resolver(clock, store_factory):
    def _build(nests):
        store = store_factory(nests)
        return OverlapResolver(store, NestDiffer(store, clock)), store
    return _build


class TestDisableOverlapping:
    """Test the overlap pass."""

    def test_identical_nests_one_deactivated(self, build_resolver, make_nest):
        resolver, store = build_resolver([
            make_nest(1, active=True, pokemon_id=10, m2=1000.0, spawnpoints=20),
            make_nest(2, active=True, pokemon_id=20, m2=1000.0, spawnpoints=30),
        ])

        disabled = resolver.disable_overlapping(50)

        assert disabled == 1
        assert store.nests[1].active is True
        assert store.nests[1].pokemon_id == 10
        assert store.nests[2].active is False
        assert store.nests[2].discarded is DiscardReason.OVERLAP
        assert store.nests[2].pokemon_id is None
        assert store.nests[2].updated is not None
        assert store.nests[2].m2 == 1000.0
        assert store.nests[2].spawnpoints == 30
        assert store.updates[0][1].changed_fields() == ["active", "discarded", "pokemon_id"]

    def test_second_run_disables_nothing(self, build_resolver, make_nest):
        resolver, store = build_resolver([make_nest(1, active=True), make_nest(2, active=True)])

        resolver.disable_overlapping(50)
        writes = len(store.updates)

        assert resolver.disable_overlapping(50) == 0
        assert len(store.updates) == writes

    def test_smaller_nest_deactivated(self, build_resolver, make_nest, square_polygon):
        resolver, store = build_resolver([
            make_nest(1, active=True, polygon=square_polygon(30)),
            make_nest(2, active=True, polygon=square_polygon(100)),
        ])

        assert resolver.disable_overlapping(60) == 1
        assert store.nests[1].discarded is DiscardReason.OVERLAP
        assert store.nests[2].active is True

    def test_near_equal_areas_tie_on_id(self, build_resolver, make_nest, square_polygon):
        """A rounding-level difference in area does not pick the nest to deactivate."""
        resolver, store = build_resolver([
            make_nest(1, active=True, polygon=square_polygon(100, width_m=100 * (1 - 1e-12))),
            make_nest(2, active=True, polygon=square_polygon(100)),
        ])

        assert resolver.disable_overlapping(50) == 1
        assert store.nests[1].active is True
        assert store.updated_ids() == [2]

    def test_overlap_measured_against_smaller_nest(self, build_resolver, make_nest, square_polygon):
        """A small nest fully inside a large one is 100% covered."""
        resolver, store = build_resolver([
            make_nest(1, active=True, polygon=square_polygon(100)),
            make_nest(2, active=True, polygon=square_polygon(20)),
        ])

        assert resolver.disable_overlapping(99) == 1
        assert store.nests[2].active is False

    def test_overlap_below_threshold(self, build_resolver, make_nest, square_polygon, offset_lon):
        """Two squares sharing a quarter of their width overlap by 25%."""
        resolver, store = build_resolver([
            make_nest(1, active=True, polygon=square_polygon(100)),
            make_nest(2, active=True, polygon=square_polygon(100, lon=offset_lon(75))),
        ])

        assert resolver.disable_overlapping(40) == 0
        assert store.updates == []

    def test_overlap_above_threshold(self, build_resolver, make_nest, square_polygon, offset_lon):
        resolver, store = build_resolver([
            make_nest(1, active=True, polygon=square_polygon(100)),
            make_nest(2, active=True, polygon=square_polygon(100, lon=offset_lon(25))),
        ])

        assert resolver.disable_overlapping(60) == 1

    def test_disjoint_nests_untouched(self, build_resolver, make_nest, square_polygon, offset_lon):
        resolver, store = build_resolver([
            make_nest(1, active=True, polygon=square_polygon(50)),
            make_nest(2, active=True, polygon=square_polygon(50, lon=offset_lon(500))),
        ])

        assert resolver.disable_overlapping(10) == 0

    def test_deactivated_nest_not_reconsidered(self, build_resolver, make_nest):
        """Three identical nests: the lowest id survives, the others go."""
        resolver, store = build_resolver([
            make_nest(1, active=True), make_nest(2, active=True), make_nest(3, active=True),
        ])

        assert resolver.disable_overlapping(50) == 2
        assert store.nests[1].active is True
        assert store.updated_ids() == [2, 3]

    def test_inactive_nests_ignored(self, build_resolver, make_nest):
        resolver, store = build_resolver([
            make_nest(1, active=False, discarded=DiscardReason.SPAWNPOINTS),
            make_nest(2, active=True),
        ])

        assert resolver.disable_overlapping(50) == 0

    def test_invalid_geometry_skipped(self, build_resolver, make_nest, caplog):
        resolver, store = build_resolver([
            make_nest(1, active=True, polygon="{broken"),
            make_nest(2, active=True),
        ])

        assert resolver.disable_overlapping(50) == 0
        assert "skipped in overlap check" in caplog.text

    def test_dry_run_counts_without_writing(self, build_resolver, make_nest):
        resolver, store = build_resolver([make_nest(1, active=True), make_nest(2, active=True)])

        assert resolver.disable_overlapping(50, dry_run=True) == 1
        assert store.updates == []
        assert store.nests[2].active is True

    @pytest.mark.parametrize("threshold", [0, -5, 100, 150])
    def test_threshold_out_of_range(self, build_resolver, make_nest, threshold):
        resolver, _ = build_resolver([make_nest(1, active=True)])

        with pytest.raises(NestConfigurationError):
            resolver.disable_overlapping(threshold)
