"""Nest Refresher Module

Keeps stored nests' derived attributes (area in m², spawnpoint count) and
active status current: each nest is evaluated against area and spawnpoint
filters, only changed attributes are written back, and nests that are mostly
covered by another active nest are deactivated afterwards.
"""

from .processor import NestRefresher, build_nest_refresher

__all__ = ['NestRefresher', 'build_nest_refresher']
