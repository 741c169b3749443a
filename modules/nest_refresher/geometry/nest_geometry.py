"""Nest Geometry Primitives

GeoJSON parsing and serialization, bounding boxes and geodesic areas for nest
polygons. Coordinates follow GeoJSON order (longitude, latitude) on WGS84.
"""

import json
import logging
from typing import Any, Dict, List, NamedTuple, Optional, Union

from pyproj import Geod
from shapely.errors import GEOSException
from shapely.geometry import mapping, shape
from shapely.geometry.base import BaseGeometry
from shapely.geometry.polygon import Polygon, orient
from shapely.validation import explain_validity

from ..exceptions import GeometryInvalidError

logger = logging.getLogger(__name__)

POLYGONAL_TYPES = ("Polygon", "MultiPolygon")

_GEOD = Geod(ellps="WGS84")


class BoundingBox(NamedTuple):
    """Axis-aligned bounding box in degrees."""
    min_lon: float
    min_lat: float
    max_lon: float
    max_lat: float


def parse_geometry(polygon: Optional[Union[str, Dict[str, Any]]]) -> BaseGeometry:
    """Parse a nest polygon from GeoJSON.

    Accepts a bare geometry or a Feature wrapping one.

    Args:
        polygon: GeoJSON text or an already-decoded GeoJSON mapping

    Returns:
        Valid, non-empty shapely Polygon or MultiPolygon

    Raises:
        GeometryInvalidError: If the polygon is missing, unparsable, not polygonal,
            empty, self-intersecting or has no area
    """
    if polygon is None or (isinstance(polygon, str) and not polygon.strip()):
        raise GeometryInvalidError("Nest has no polygon")

    if isinstance(polygon, str):
        try:
            data = json.loads(polygon)
        except ValueError as e:
            raise GeometryInvalidError(f"Polygon is not valid JSON: {e}")
    else:
        data = polygon

    if not isinstance(data, dict):
        raise GeometryInvalidError("Polygon is not a GeoJSON object")

    if data.get("type") == "Feature":
        data = data.get("geometry") or {}

    geom_type = data.get("type")
    if geom_type not in POLYGONAL_TYPES:
        raise GeometryInvalidError(
            f"Unsupported geometry type: {geom_type}", {"expected": "/".join(POLYGONAL_TYPES)}
        )

    try:
        geometry = shape(data)
    except (GEOSException, KeyError, TypeError, ValueError, IndexError, AttributeError) as e:
        raise GeometryInvalidError(f"Unparsable {geom_type} coordinates: {e}")

    if geometry.is_empty:
        raise GeometryInvalidError(f"{geom_type} is empty")

    if not geometry.is_valid:
        raise GeometryInvalidError(f"{geom_type} is invalid: {explain_validity(geometry)}")

    if geometry.area <= 0:
        raise GeometryInvalidError(f"{geom_type} has no area")

    return geometry


def serialize_geometry(geometry: BaseGeometry) -> str:
    """Serialize a geometry to GeoJSON text.

    Raises:
        GeometryInvalidError: If the geometry cannot be represented as GeoJSON
    """
    try:
        return json.dumps(mapping(geometry), allow_nan=False)
    except (TypeError, ValueError, AttributeError) as e:
        raise GeometryInvalidError(f"Cannot serialize geometry to GeoJSON: {e}")


def bounding_box(geometry: BaseGeometry) -> BoundingBox:
    min_lon, min_lat, max_lon, max_lat = geometry.bounds
    return BoundingBox(min_lon=min_lon, min_lat=min_lat, max_lon=max_lon, max_lat=max_lat)


def _polygons(geometry: BaseGeometry) -> List[Polygon]:
    if geometry.geom_type == "Polygon":
        return [geometry]
    parts = getattr(geometry, "geoms", [])
    polygons = []
    for part in parts:
        polygons.extend(_polygons(part))
    return polygons


def geodesic_area_m2(geometry: BaseGeometry) -> float:
    """Area of the polygonal parts of a geometry on the WGS84 ellipsoid, in m²."""
    total = 0.0
    for polygon in _polygons(geometry):
        # exterior counter-clockwise, holes clockwise, so holes subtract
        area, _ = _GEOD.geometry_area_perimeter(orient(polygon, sign=1.0))
        total += abs(area)
    return total


def intersection_area_m2(first: BaseGeometry, second: BaseGeometry) -> float:
    """Geodesic area of the overlap between two polygons, in m²."""
    try:
        overlap = first.intersection(second)
    except GEOSException as e:
        logger.warning(f"Intersection failed, treating as no overlap: {e}")
        return 0.0
    if overlap.is_empty:
        return 0.0
    return geodesic_area_m2(overlap)
