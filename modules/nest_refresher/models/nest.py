"""Nest Data Models

This module defines the Pydantic models for stored nests, the attributes the
filter policy derives for them, and the sparse updates written back to storage.
Unknown values are always ``None``; zero is a known value.
"""

from enum import Enum
from typing import Optional, Dict, Any, List

from pydantic import BaseModel, Field


class DiscardReason(str, Enum):
    """Why a nest is inactive."""
    INVALID = "invalid"
    AREA = "area"
    SPAWNPOINTS = "spawnpoints"
    OVERLAP = "overlap"


class Nest(BaseModel):
    """Data model for a stored nest.

    Attributes:
        nest_id: Stable numeric identifier
        name: Display name (non-authoritative)
        area_name: Optional name of the area the nest belongs to
        polygon: GeoJSON geometry text; None when loaded without the polygon payload
        m2: Computed geodesic area in square metres
        spawnpoints: Observed spawnpoint count inside the polygon
        pokemon_id: Dominant identifier assigned to the nest
        active: Whether the nest is active (None when undetermined)
        discarded: Reason the nest is inactive
        updated: Epoch seconds of the last mutation
    """

    nest_id: int = Field(..., description="Stable numeric nest identifier")
    name: Optional[str] = Field(None, description="Display name")
    area_name: Optional[str] = Field(None, description="Area the nest belongs to")
    lat: Optional[float] = Field(None, description="Centre latitude")
    lon: Optional[float] = Field(None, description="Centre longitude")
    polygon: Optional[str] = Field(None, description="GeoJSON Polygon/MultiPolygon text")
    m2: Optional[float] = Field(None, description="Geodesic area in m²")
    spawnpoints: Optional[int] = Field(None, description="Spawnpoint count")
    pokemon_id: Optional[int] = Field(None, description="Dominant identifier")
    active: Optional[bool] = Field(None, description="Active flag (None = undetermined)")
    discarded: Optional[DiscardReason] = Field(None, description="Discard reason")
    updated: Optional[int] = Field(None, description="Last mutation, epoch seconds")

    def full_name(self) -> str:
        if self.area_name:
            return f"{self.area_name}/{self.name or ''}"
        return self.name or ""

    def label(self) -> str:
        """Name used in log lines, e.g. ``Park/Lake(42)``."""
        return f"{self.full_name()}({self.nest_id})"

    def attributes(self) -> "NestAttributes":
        """Current derived/status attributes of this nest."""
        return NestAttributes(
            m2=self.m2,
            spawnpoints=self.spawnpoints,
            active=self.active,
            discarded=self.discarded,
        )


class NestAttributes(BaseModel):
    """Derived and status attributes a nest should end up with."""

    m2: Optional[float] = None
    spawnpoints: Optional[int] = None
    active: Optional[bool] = None
    discarded: Optional[DiscardReason] = None

    def is_active(self) -> bool:
        return self.active is True

    def describe(self) -> str:
        if self.is_active():
            return "active"
        if self.discarded is not None:
            return f"discarded:{self.discarded.value}"
        return "undetermined"


class NestPartialUpdate(BaseModel):
    """Sparse update for a single nest.

    Only explicitly set fields are part of the update, so ``None`` can be written
    to clear a value. Build it with just the changed fields.
    """

    m2: Optional[float] = None
    spawnpoints: Optional[int] = None
    pokemon_id: Optional[int] = None
    active: Optional[bool] = None
    discarded: Optional[DiscardReason] = None
    updated: Optional[int] = None

    def to_fields(self) -> Dict[str, Any]:
        """Column values to write, with enums rendered as plain strings."""
        return self.model_dump(exclude_unset=True, mode="json")

    def changed_fields(self) -> List[str]:
        """Names of the changed attributes, excluding the ``updated`` stamp."""
        return sorted(name for name in self.model_fields_set if name != "updated")

    def is_empty(self) -> bool:
        return not self.changed_fields()
