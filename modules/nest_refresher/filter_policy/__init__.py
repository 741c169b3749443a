"""Nest Filter Policy

Multi-criterion classification of nests as active or discarded (invalid
geometry, area, spawnpoints).
"""

from .filter_models import FilterEvaluation
from .nest_filter_policy import NestFilterPolicy

__all__ = ['FilterEvaluation', 'NestFilterPolicy']
