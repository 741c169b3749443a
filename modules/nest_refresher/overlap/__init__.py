"""Overlap Resolver: disables active nests mostly covered by another active nest."""

from .overlap_resolver import OverlapResolver

__all__ = ['OverlapResolver']
