"""Partial-Update Differ

Minimal field-level nest updates with cascading resets and ``updated`` stamps.
"""

from .nest_differ import NestDiffer, NestDiffResult, DIFFED_FIELDS

__all__ = ['NestDiffer', 'NestDiffResult', 'DIFFED_FIELDS']
