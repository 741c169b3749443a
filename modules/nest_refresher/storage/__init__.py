"""Nest storage on a relational database (SQLAlchemy)."""

from .nest_record import Base, NestRecord
from .nests_store import NestsDBStore

__all__ = ['Base', 'NestRecord', 'NestsDBStore']
