"""Nest Refresh Processing Logic

This package contains the main processing implementation for the nest refresher
module, including the NestRefresher class that implements the ModuleProcessor
interface and the bounded concurrent iteration it uses for bulk refreshes.
"""

from .bounded_iteration import iterate_concurrently
from .factory import build_nest_refresher
from .nest_refresher import NestRefresher
from .refresh_models import NestRefreshOutcome, OverlapPassOutcome, RefreshAllResult

__all__ = [
    'NestRefresher',
    'build_nest_refresher',
    'iterate_concurrently',
    'NestRefreshOutcome',
    'OverlapPassOutcome',
    'RefreshAllResult',
]
