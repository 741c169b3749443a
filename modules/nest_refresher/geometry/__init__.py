"""Geometry primitives for nest polygons (parsing, bounding boxes, geodesic areas)."""

from .nest_geometry import (
    BoundingBox,
    POLYGONAL_TYPES,
    parse_geometry,
    serialize_geometry,
    bounding_box,
    geodesic_area_m2,
    intersection_area_m2,
)

__all__ = [
    'BoundingBox',
    'POLYGONAL_TYPES',
    'parse_geometry',
    'serialize_geometry',
    'bounding_box',
    'geodesic_area_m2',
    'intersection_area_m2',
]
