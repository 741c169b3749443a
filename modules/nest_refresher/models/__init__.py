"""Nest Refresher Data Models

This package contains Pydantic data models for the nest refresher module,
providing validation and type safety for nests, partial updates and refresh
settings.
"""

from .nest import Nest, NestAttributes, NestPartialUpdate, DiscardReason
from .refresh_config import RefreshNestConfig

__all__ = ['Nest', 'NestAttributes', 'NestPartialUpdate', 'DiscardReason', 'RefreshNestConfig']
