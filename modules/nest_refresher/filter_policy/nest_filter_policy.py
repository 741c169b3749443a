"""Nest Filter Policy

Decides what a nest's derived attributes should be and whether it is active.
The checks run in a fixed order and the first failing check decides:

1. geometry and area (the polygon is always parsed, a stored area is kept
   and an unknown one computed; invalid geometry discards whatever was stored)
2. spawnpoint count (queried when unknown or forced, and the area is in range)
3. minimum area, maximum area, minimum spawnpoints

Failures to compute an attribute never raise out of ``evaluate``; they become
part of the classification and its explanations.
"""

import logging
from typing import List, Optional

from ..exceptions import GeometryInvalidError, QueryFailureError
from ..geometry import geodesic_area_m2, parse_geometry
from ..interfaces import SpawnpointSource
from ..models import DiscardReason, Nest, RefreshNestConfig
from .filter_models import FilterEvaluation

logger = logging.getLogger(__name__)


class NestFilterPolicy:
    """Classifies nests as active or discarded.

    The spawnpoint source is optional; without one, spawnpoint counts are never
    queried and unknown counts do not block activation.
    """

    def __init__(self, spawnpoint_source: Optional[SpawnpointSource] = None):
        self.spawnpoint_source = spawnpoint_source

    def evaluate(self, nest: Nest, config: RefreshNestConfig) -> FilterEvaluation:
        """Compute the attributes and classification a nest should have.

        Args:
            nest: Stored nest, polygon included
            config: Validated refresh settings

        Returns:
            FilterEvaluation with the recomputed attributes and explanations
        """
        label = nest.label()
        explanations: List[str] = []
        geometry = None
        m2 = nest.m2
        spawnpoints = nest.spawnpoints

        if m2 is None:
            try:
                geometry = parse_geometry(nest.polygon)
                m2 = geodesic_area_m2(geometry)
                self._explain(explanations, logging.INFO, label,
                              f"area was computed to be {m2:.3f} m²")
            except GeometryInvalidError as e:
                self._explain(explanations, logging.WARNING, label,
                              f"found invalid geometry when computing area: {e}")
        else:
            try:
                geometry = parse_geometry(nest.polygon)
            except GeometryInvalidError as e:
                self._explain(explanations, logging.WARNING, label,
                              f"found invalid geometry, dropping stored area and spawnpoints: {e}")
                m2 = None
                spawnpoints = None

        # an unknown area here means the geometry is already known to be bad
        if (m2 is not None
                and (config.max_area_m2 <= 0 or m2 <= config.max_area_m2)
                and (spawnpoints is None or config.force_spawnpoints_refresh)
                and self.spawnpoint_source is not None):
            try:
                if spawnpoints is None:
                    self._explain(explanations, logging.INFO, label,
                                  "number of spawnpoints is unknown, querying spawnpoint source")
                spawnpoints = self.spawnpoint_source.count_contained(geometry)
                self._explain(explanations, logging.INFO, label,
                              f"spawnpoint count query returned {spawnpoints}")
            except GeometryInvalidError as e:
                self._explain(explanations, logging.WARNING, label,
                              f"found invalid geometry when computing spawnpoints: {e}")
                m2 = None
                spawnpoints = None
            except QueryFailureError as e:
                if spawnpoints is not None:
                    self._explain(explanations, logging.WARNING, label,
                                  f"couldn't query spawnpoints (using current value {spawnpoints}): {e}")
                else:
                    self._explain(explanations, logging.WARNING, label,
                                  f"couldn't query spawnpoints (skipping spawnpoint filter): {e}")

        discarded = self._classify(m2, spawnpoints, config)
        active = discarded is None

        if discarded != nest.discarded or active != nest.active:
            level = logging.INFO if active else logging.WARNING
        else:
            level = logging.DEBUG
        self._explain(explanations, level, label,
                      self._reason(discarded, m2, spawnpoints, config))

        return FilterEvaluation(
            m2=m2,
            spawnpoints=spawnpoints,
            active=active,
            discarded=discarded,
            explanations=explanations,
        )

    @staticmethod
    def _classify(m2: Optional[float], spawnpoints: Optional[int],
                  config: RefreshNestConfig) -> Optional[DiscardReason]:
        if m2 is None:
            return DiscardReason.INVALID
        if m2 < config.min_area_m2:
            return DiscardReason.AREA
        if config.max_area_m2 > 0 and m2 > config.max_area_m2:
            return DiscardReason.AREA
        if spawnpoints is not None and spawnpoints < config.min_spawnpoints:
            return DiscardReason.SPAWNPOINTS
        return None

    @staticmethod
    def _reason(discarded: Optional[DiscardReason], m2: Optional[float],
                spawnpoints: Optional[int], config: RefreshNestConfig) -> str:
        if discarded is DiscardReason.INVALID:
            return "deactivating due to invalid geometry"
        if discarded is DiscardReason.AREA:
            if m2 < config.min_area_m2:
                return f"deactivating due to min area filter ({m2:.3f} < {config.min_area_m2:.3f})"
            return f"deactivating due to max area filter ({m2:.3f} > {config.max_area_m2:.3f})"
        if discarded is DiscardReason.SPAWNPOINTS:
            return (f"deactivating due to spawnpoints filter "
                    f"({spawnpoints} < {config.min_spawnpoints})")
        return "activating nest (might still be disabled by overlap filter later)"

    @staticmethod
    def _explain(explanations: List[str], level: int, label: str, message: str) -> None:
        explanations.append(message)
        logger.log(level, f"Nest {label}: {message}")
