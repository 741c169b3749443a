"""Overlap Resolver

Deactivates active nests that are mostly covered by another active nest.

For each pair of intersecting active nests the overlap is measured against the
smaller nest's area: ``area(A ∩ B) / min(area(A), area(B)) * 100``. When that
exceeds the threshold the smaller nest is deactivated with reason ``overlap``.
On equal areas (within a relative tolerance of 1e-9) the nest with the lower
id stays active. A nest deactivated earlier in the pass takes no further part
in it.
"""

import logging
import math
from typing import List, NamedTuple

from shapely import STRtree
from shapely.geometry.base import BaseGeometry

from src.exceptions import NestConfigurationError
from ..exceptions import GeometryInvalidError
from ..geometry import geodesic_area_m2, intersection_area_m2, parse_geometry
from ..interfaces import NestStore
from ..models import DiscardReason, Nest
from ..partial_update import NestDiffer

logger = logging.getLogger(__name__)

AREA_TIE_REL_TOL = 1e-9


class _Candidate(NamedTuple):
    nest: Nest
    geometry: BaseGeometry
    area_m2: float


class OverlapResolver:
    """Global pass that disables redundant overlapping nests."""

    def __init__(self, nests_store: NestStore, differ: NestDiffer):
        """Initialize the resolver.

        Args:
            nests_store: Storage the active nests are read from
            differ: Writes the deactivations
        """
        self.nests_store = nests_store
        self.differ = differ

    def disable_overlapping(self, threshold_percent: float, dry_run: bool = False) -> int:
        """Deactivate nests overlapping another active nest above a threshold.

        Args:
            threshold_percent: Overlap percentage, exclusive, within (0, 100)
            dry_run: Compute deactivations without writing them

        Returns:
            Number of nests deactivated

        Raises:
            NestConfigurationError: If the threshold is outside (0, 100)
            PersistenceError: If a deactivation cannot be written
        """
        if not 0 < threshold_percent < 100:
            raise NestConfigurationError(
                "Overlap threshold must be within (0, 100)",
                {"threshold_percent": threshold_percent}
            )

        candidates = self._load_candidates()
        if len(candidates) < 2:
            return 0

        tree = STRtree([candidate.geometry for candidate in candidates])
        input_idx, tree_idx = tree.query(
            [candidate.geometry for candidate in candidates], predicate="intersects"
        )
        pairs = sorted({(int(i), int(j)) for i, j in zip(input_idx, tree_idx) if i < j})

        logger.debug(f"Checking {len(pairs)} intersecting pair(s) among {len(candidates)} active nest(s)")

        disabled = set()
        for i, j in pairs:
            if i in disabled or j in disabled:
                continue

            first, second = candidates[i], candidates[j]
            percent = self._overlap_percent(first, second)
            if percent <= threshold_percent:
                continue

            loser_idx = self._pick_deactivated(i, j, candidates)
            loser = candidates[loser_idx]
            keeper = candidates[j if loser_idx == i else i]

            logger.info(
                f"Nest {loser.nest.label()}: deactivating, {percent:.1f}% covered by "
                f"{keeper.nest.label()} (threshold {threshold_percent:.1f}%)"
            )
            self.differ.apply(
                loser.nest,
                loser.nest.attributes().model_copy(
                    update={"active": False, "discarded": DiscardReason.OVERLAP}
                ),
                dry_run=dry_run,
            )
            disabled.add(loser_idx)

        return len(disabled)

    def _load_candidates(self) -> List[_Candidate]:
        candidates = []
        for nest in sorted(self.nests_store.list_active_with_geometry(), key=lambda n: n.nest_id):
            try:
                geometry = parse_geometry(nest.polygon)
            except GeometryInvalidError as e:
                logger.warning(f"Nest {nest.label()}: skipped in overlap check, invalid geometry: {e}")
                continue
            candidates.append(_Candidate(nest, geometry, geodesic_area_m2(geometry)))
        return candidates

    @staticmethod
    def _overlap_percent(first: _Candidate, second: _Candidate) -> float:
        smaller_area = min(first.area_m2, second.area_m2)
        if smaller_area <= 0:
            return 0.0
        return intersection_area_m2(first.geometry, second.geometry) / smaller_area * 100

    @staticmethod
    def _pick_deactivated(i: int, j: int, candidates: List[_Candidate]) -> int:
        """Index of the nest to deactivate: the smaller one, else the higher id.

        Areas within ``AREA_TIE_REL_TOL`` of each other count as equal, so
        copies of a polygon differing only by coordinate rounding tie.
        """
        first, second = candidates[i], candidates[j]
        if math.isclose(first.area_m2, second.area_m2, rel_tol=AREA_TIE_REL_TOL):
            return i if first.nest.nest_id > second.nest.nest_id else j
        if first.area_m2 < second.area_m2:
            return i
        return j
