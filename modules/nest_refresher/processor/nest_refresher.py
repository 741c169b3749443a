"""NestRefresher Implementation

This module implements the NestRefresher class, which keeps every stored nest's
derived attributes (area, spawnpoint count) and active status current by
implementing the ModuleProcessor interface.

A bulk refresh evaluates each nest with the filter policy, writes only what
changed through the differ, and finishes with the overlap pass once every nest
has been refreshed.
"""

import logging
import threading
import time
from datetime import datetime
from typing import Callable, List, Optional

from src.config.config_loader import ConfigLoader
from src.connection.database_connector import DatabaseConnector
from src.exceptions import NestBaseException
from src.interfaces.module_processor import ModuleProcessor, ProcessingResult, ModuleStatus
from src.utils.logging_setup import log_performance
from ..filter_policy import NestFilterPolicy
from ..interfaces import NestStore, SpawnpointSource
from ..models import Nest, RefreshNestConfig
from ..overlap import OverlapResolver
from ..partial_update import NestDiffer
from .bounded_iteration import iterate_concurrently
from .refresh_models import NestRefreshOutcome, OverlapPassOutcome, RefreshAllResult, RefreshTally

logger = logging.getLogger(__name__)


class NestRefresher(ModuleProcessor):
    """Nest refresher implementing the ModuleProcessor interface.

    Collaborators are injected; ``build_nest_refresher`` wires the database
    backed ones for an environment. Without a spawnpoint source, counts are
    never queried and only the area filters apply to nests with unknown counts.
    """

    def __init__(self, nests_store: NestStore,
                 spawnpoint_source: Optional[SpawnpointSource] = None,
                 config_loader: Optional[ConfigLoader] = None,
                 environment: str = "development",
                 overlap_resolver: Optional[OverlapResolver] = None,
                 clock: Callable[[], float] = time.time,
                 connectors: Optional[List[DatabaseConnector]] = None):
        """Initialize the refresher.

        Args:
            nests_store: Storage of the nests to refresh
            spawnpoint_source: Optional source of spawnpoint counts
            config_loader: Provides the environment's refresh settings
            environment: Environment whose settings are used by ``process``
            overlap_resolver: Overlap pass; built over ``nests_store`` when omitted
            clock: Epoch time source for ``updated`` stamps
            connectors: Database connectors released by ``close``
        """
        self.nests_store = nests_store
        self.spawnpoint_source = spawnpoint_source
        self.config_loader = config_loader
        self.environment = environment
        self.policy = NestFilterPolicy(spawnpoint_source)
        self.differ = NestDiffer(nests_store, clock)
        self.overlap_resolver = overlap_resolver or OverlapResolver(nests_store, self.differ)
        self.connectors = connectors or []

        self._last_run: Optional[datetime] = None
        self._last_error: Optional[str] = None
        self._running = False

        logger.info(
            f"NestRefresher initialized for {environment} "
            f"(spawnpoint source {'configured' if spawnpoint_source else 'not configured'})"
        )

    def load_refresh_config(self) -> RefreshNestConfig:
        """Build the refresh settings of the configured environment.

        Raises:
            NestConfigurationError: If the settings are missing or invalid
        """
        if self.config_loader is None:
            logger.debug("No config loader, using default refresh settings")
            return RefreshNestConfig()
        return RefreshNestConfig.from_settings(
            self.config_loader.get_refresh_settings(self.environment)
        )

    def refresh_nest(self, config: RefreshNestConfig, nest: Nest,
                     dry_run: bool = False) -> NestRefreshOutcome:
        """Re-evaluate one nest and write whatever changed.

        Args:
            config: Validated refresh settings
            nest: Stored nest, polygon included
            dry_run: Evaluate without writing

        Returns:
            NestRefreshOutcome describing the decision

        Raises:
            PersistenceError: If the update cannot be written
        """
        evaluation = self.policy.evaluate(nest, config)
        diff_result = self.differ.apply(nest, evaluation, dry_run=dry_run)

        return NestRefreshOutcome(
            nest_id=nest.nest_id,
            full_name=nest.full_name(),
            active=evaluation.active,
            discarded=evaluation.discarded,
            changed_fields=diff_result.changed_fields(),
            explanations=evaluation.explanations,
            written=diff_result.written,
            nest=diff_result.nest,
        )

    def refresh_nest_by_id(self, config: RefreshNestConfig, nest_id: int,
                           dry_run: bool = False) -> NestRefreshOutcome:
        """Load a nest with its polygon and refresh it.

        Raises:
            NestNotFoundError: If no such nest exists
            QueryFailureError: If the nest cannot be loaded
            PersistenceError: If the update cannot be written
        """
        nest = self.nests_store.get_nest(nest_id, include_polygon=True)
        return self.refresh_nest(config, nest, dry_run=dry_run)

    @log_performance
    def refresh_all_nests(self, config: RefreshNestConfig,
                          cancel_event: Optional[threading.Event] = None,
                          dry_run: bool = False) -> RefreshAllResult:
        """Refresh every stored nest, then run the overlap pass.

        Args:
            config: Validated refresh settings
            cancel_event: Once set, no further nests are refreshed
            dry_run: Evaluate everything without writing

        Returns:
            RefreshAllResult with counters and the overlap outcome

        Raises:
            RefreshCancelledError: If ``cancel_event`` was set during the run
            PersistenceError: If any update cannot be written; aborts the run
        """
        start_time = time.monotonic()
        tally = RefreshTally()

        def handle(nest: Nest) -> None:
            tally.add(self.refresh_nest(config, nest, dry_run=dry_run))

        mode = "sequentially" if config.is_sequential() else f"with concurrency={config.concurrency}"
        logger.info(
            f"Refreshing nests {mode} "
            f"(force_spawnpoints_refresh={config.force_spawnpoints_refresh}, dry_run={dry_run})"
        )
        iterate_concurrently(
            self.nests_store.iterate_nests(include_polygon=True),
            handle,
            config.concurrency,
            cancel_event=cancel_event,
        )

        overlap = self._run_overlap_pass(config, dry_run)

        result = tally.to_result(time.monotonic() - start_time, dry_run, overlap)
        logger.info(f"Nest refresh finished: {result.get_summary()}")
        return result

    def _run_overlap_pass(self, config: RefreshNestConfig, dry_run: bool) -> OverlapPassOutcome:
        threshold = config.max_overlap_percent
        if not config.overlap_pass_enabled():
            reason = f"max_overlap_percent={threshold} is outside (0, 100)"
            logger.info(f"Skipping overlap disablement due to max_overlap_percent={threshold}")
            return OverlapPassOutcome(skipped=True, reason=reason, threshold_percent=threshold)

        disabled = self.overlap_resolver.disable_overlapping(threshold, dry_run=dry_run)
        logger.info(f"Overlap pass deactivated {disabled} nest(s)")
        return OverlapPassOutcome(skipped=False, threshold_percent=threshold, disabled_count=disabled)

    def validate_configuration(self) -> bool:
        """Check that the environment's refresh settings are usable.

        Returns:
            bool: True if the settings load and validate, False otherwise
        """
        try:
            config = self.load_refresh_config()
        except NestBaseException as e:
            logger.error(f"Refresh configuration validation failed: {e}")
            return False

        if config.max_area_m2 <= 0:
            logger.warning("max_area_m2 is 0, maximum area filter disabled")
        if not config.overlap_pass_enabled():
            logger.warning(f"max_overlap_percent={config.max_overlap_percent}, overlap pass disabled")

        logger.info("Refresh configuration validation successful")
        return True

    def process(self, dry_run: bool = False) -> ProcessingResult:
        """Run a full refresh with the environment's settings.

        Framework errors are reported in the result instead of raised.

        Args:
            dry_run: Evaluate everything without writing

        Returns:
            ProcessingResult with refresh counters in ``metadata``
        """
        start_time = time.monotonic()
        self._running = True
        try:
            config = self.load_refresh_config()
            result = self.refresh_all_nests(config, dry_run=dry_run)
        except NestBaseException as e:
            self._last_error = str(e)
            logger.error(f"Nest refresh failed: {e}", exc_info=True)
            return ProcessingResult(
                success=False,
                records_processed=0,
                dry_run=dry_run,
                errors=[str(e)],
                metadata={"environment": self.environment, **e.log_fields()},
                execution_time=time.monotonic() - start_time,
            )
        finally:
            self._running = False

        self._last_run = datetime.now()
        self._last_error = None
        return ProcessingResult(
            success=True,
            records_processed=result.processed_count,
            records_updated=result.updated_count,
            dry_run=dry_run,
            metadata={"environment": self.environment, **result.model_dump(mode="json")},
            execution_time=time.monotonic() - start_time,
        )

    def get_status(self) -> ModuleStatus:
        """Report the refresher's configuration and run state."""
        is_configured = self.validate_configuration()
        if self._running:
            status = "running"
        elif not is_configured or self._last_error is not None:
            status = "error"
        else:
            status = "ready"

        return ModuleStatus(
            module_name="nest_refresher",
            is_configured=is_configured,
            last_run=self._last_run,
            status=status,
            health_check=is_configured and all(c.is_connected() for c in self.connectors),
            last_error=self._last_error,
        )

    def close(self) -> None:
        """Release the database connections handed over at construction."""
        for connector in self.connectors:
            connector.disconnect()
