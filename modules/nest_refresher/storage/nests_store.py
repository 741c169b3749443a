"""Nests Database Store

SQLAlchemy-backed implementation of the nest storage contract. Bulk iteration
is keyset-paged and every page uses its own short-lived session, so no cursor
stays open while refresh workers write.
"""

import logging
from typing import Iterator, List, Optional

from sqlalchemy import select, update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from ..exceptions import NestNotFoundError, PersistenceError, QueryFailureError
from ..interfaces import NestStore
from ..models import Nest, NestPartialUpdate
from .nest_record import Base, NestRecord

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 500

_SUMMARY_COLUMNS = (
    NestRecord.nest_id,
    NestRecord.lat,
    NestRecord.lon,
    NestRecord.name,
    NestRecord.area_name,
    NestRecord.spawnpoints,
    NestRecord.m2,
    NestRecord.active,
    NestRecord.pokemon_id,
    NestRecord.discarded,
    NestRecord.updated,
)


def _columns(include_polygon: bool):
    if include_polygon:
        return _SUMMARY_COLUMNS + (NestRecord.polygon,)
    return _SUMMARY_COLUMNS


class NestsDBStore(NestStore):
    """Nest storage on a relational database."""

    def __init__(self, engine: Engine, page_size: int = DEFAULT_PAGE_SIZE):
        """Initialize the store.

        Args:
            engine: SQLAlchemy engine connected to the nests database
            page_size: Number of nests loaded per page during bulk iteration
        """
        self.engine = engine
        self.page_size = page_size if page_size > 0 else DEFAULT_PAGE_SIZE
        self._session_factory = sessionmaker(bind=engine, autocommit=False, autoflush=False)

    def create_schema(self) -> None:
        """Create the ``nests`` table if it does not exist."""
        Base.metadata.create_all(self.engine)

    def get_nest(self, nest_id: int, include_polygon: bool = True) -> Nest:
        stmt = select(*_columns(include_polygon)).where(NestRecord.nest_id == nest_id)
        try:
            with self._session_factory() as session:
                row = session.execute(stmt).first()
        except SQLAlchemyError as e:
            raise QueryFailureError(f"Failed to load nest: {e}", {"nest_id": nest_id}) from e

        if row is None:
            raise NestNotFoundError(nest_id)
        return Nest.model_validate(dict(row._mapping))

    def iterate_nests(self, include_polygon: bool = False) -> Iterator[Nest]:
        last_nest_id: Optional[int] = None
        while True:
            page = self._load_page(last_nest_id, include_polygon)
            for nest in page:
                yield nest
            if len(page) < self.page_size:
                return
            last_nest_id = page[-1].nest_id

    def _load_page(self, after_nest_id: Optional[int], include_polygon: bool) -> List[Nest]:
        stmt = select(*_columns(include_polygon)).order_by(NestRecord.nest_id).limit(self.page_size)
        if after_nest_id is not None:
            stmt = stmt.where(NestRecord.nest_id > after_nest_id)
        try:
            with self._session_factory() as session:
                rows = session.execute(stmt).all()
        except SQLAlchemyError as e:
            raise QueryFailureError(
                f"Failed to load nests page: {e}", {"after_nest_id": after_nest_id}
            ) from e

        return [Nest.model_validate(dict(row._mapping)) for row in rows]

    def update_nest_partial(self, nest_id: int, partial_update: NestPartialUpdate) -> None:
        fields = partial_update.to_fields()
        if not fields:
            return

        stmt = update(NestRecord).where(NestRecord.nest_id == nest_id).values(**fields)
        try:
            with self._session_factory.begin() as session:
                result = session.execute(stmt)
                matched = result.rowcount
        except SQLAlchemyError as e:
            raise PersistenceError(
                f"Failed to update nest: {e}",
                {"nest_id": nest_id, "fields": ",".join(sorted(fields))}
            ) from e

        if matched == 0:
            raise PersistenceError("Nest to update does not exist", {"nest_id": nest_id})

        logger.debug(f"Updated nest {nest_id}: {sorted(fields)}")

    def list_active_with_geometry(self) -> List[Nest]:
        stmt = (
            select(*_columns(True))
            .where(NestRecord.active.is_(True))
            .order_by(NestRecord.nest_id)
        )
        try:
            with self._session_factory() as session:
                rows = session.execute(stmt).all()
        except SQLAlchemyError as e:
            raise QueryFailureError(f"Failed to load active nests: {e}") from e

        return [Nest.model_validate(dict(row._mapping)) for row in rows]
