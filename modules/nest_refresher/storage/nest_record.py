"""SQLAlchemy mapping of the ``nests`` table.

The polygon is stored as GeoJSON text so the table can be read without a
spatial extension.
"""

from sqlalchemy import BigInteger, Boolean, Column, Float, Integer, String, Text
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class NestRecord(Base):
    """Row of the ``nests`` table."""

    __tablename__ = "nests"

    nest_id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=False)
    lat = Column(Float, nullable=True)
    lon = Column(Float, nullable=True)
    name = Column(String(250), nullable=False, default="")
    area_name = Column(String(250), nullable=True)
    polygon = Column(Text, nullable=True)
    spawnpoints = Column(BigInteger().with_variant(Integer, "sqlite"), nullable=True)
    m2 = Column(Float, nullable=True)
    active = Column(Boolean, nullable=True, index=True)
    pokemon_id = Column(Integer, nullable=True)
    discarded = Column(String(40), nullable=True)
    updated = Column(BigInteger().with_variant(Integer, "sqlite"), nullable=True)

    def __repr__(self):
        return f"<NestRecord(nest_id={self.nest_id!r}, name={self.name!r})>"
