#!/usr/bin/env python3
"""
Refresh nests - recompute nest areas and spawnpoint counts, re-apply the
activation filters and disable overlapping nests.
"""

import argparse
import signal
import sys
import threading
from typing import List, Optional

from src.config import ConfigLoader
from src.exceptions import NestBaseException
from src.utils import get_logger, setup_logging_from_config
from modules.nest_refresher.geometry import parse_geometry
from modules.nest_refresher.interfaces import LIST_RECENCY_WINDOW
from modules.nest_refresher.processor import build_nest_refresher

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Refresh nest attributes and activation status")
    parser.add_argument(
        '--env',
        '--environment',
        dest='environment',
        required=True,
        help='Environment to use (e.g., development, production)'
    )
    parser.add_argument(
        '--mode',
        choices=['refresh', 'nest', 'spawnpoints'],
        default='refresh',
        help='Refresh all nests, refresh one nest, or list the spawnpoints of one nest (default: refresh)'
    )
    parser.add_argument('--nest-id', type=int, help='Nest to refresh or inspect (nest/spawnpoints modes)')
    parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Evaluate nests without writing any updates'
    )
    parser.add_argument(
        '--force-spawnpoints',
        action='store_true',
        help='Re-query spawnpoint counts even when already known'
    )
    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        help='Override the configured log level'
    )
    parser.add_argument('--config-dir', default='config', help='Directory holding environment_config.json')
    return parser


def run_refresh(refresher, config, dry_run: bool) -> None:
    cancel_event = threading.Event()

    def request_stop(signum, frame):
        logger.warning(f"Received signal {signum}, stopping after in-flight nests")
        cancel_event.set()

    previous = signal.signal(signal.SIGTERM, request_stop)
    try:
        result = refresher.refresh_all_nests(config, cancel_event=cancel_event, dry_run=dry_run)
    finally:
        signal.signal(signal.SIGTERM, previous)

    print(f"Completed: {result.get_summary()} in {result.duration_seconds:.1f}s")


def run_single(refresher, config, nest_id: int, dry_run: bool) -> None:
    outcome = refresher.refresh_nest_by_id(config, nest_id, dry_run=dry_run)
    print(f"Nest {outcome.full_name} ({outcome.nest_id}): {outcome.get_classification()}")
    for explanation in outcome.explanations:
        print(f"  - {explanation}")
    if outcome.changed_fields:
        verb = "would update" if dry_run else "updated"
        print(f"  {verb}: {', '.join(outcome.changed_fields)}")
    else:
        print("  no changes")


def run_spawnpoints(refresher, nest_id: int) -> None:
    if refresher.spawnpoint_source is None:
        print("No spawnpoint database configured for this environment")
        return
    nest = refresher.nests_store.get_nest(nest_id, include_polygon=True)
    spawnpoint_ids = refresher.spawnpoint_source.list_contained_ids(
        parse_geometry(nest.polygon), LIST_RECENCY_WINDOW
    )
    print(f"Nest {nest.full_name()} ({nest.nest_id}): {len(spawnpoint_ids)} spawnpoint(s)")
    for spawnpoint_id in spawnpoint_ids:
        print(spawnpoint_id)


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.mode in ('nest', 'spawnpoints') and args.nest_id is None:
        parser.error(f"--nest-id is required with --mode {args.mode}")

    config_loader = ConfigLoader(args.config_dir)
    refresher = None
    try:
        logging_config = config_loader.get_logging_config(args.environment)
        if args.log_level:
            logging_config["level"] = args.log_level
        setup_logging_from_config(args.environment, logging_config)

        refresher = build_nest_refresher(config_loader, args.environment)
        config = refresher.load_refresh_config()
        if args.force_spawnpoints:
            config = config.model_copy(update={"force_spawnpoints_refresh": True})

        if args.mode == 'refresh':
            run_refresh(refresher, config, args.dry_run)
        elif args.mode == 'nest':
            run_single(refresher, config, args.nest_id, args.dry_run)
        else:
            run_spawnpoints(refresher, args.nest_id)

    except NestBaseException as e:
        logger.error(f"Nest refresh failed: {e}", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        if refresher is not None:
            refresher.close()

    return 0


if __name__ == "__main__":
    sys.exit(main())
