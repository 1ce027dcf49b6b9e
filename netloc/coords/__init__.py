"""Coordinate systems and transformations for network positioning.

This module provides:
- GeoPoint: latitude/longitude/altitude values
- LocalPoint: East-North-Up offsets relative to a reference point
- Equirectangular transforms between the two
- The per-axis median reference point
"""

from netloc.coords.points import GeoPoint, LocalPoint
from netloc.coords.transforms import (
    EARTH_RADIUS,
    WGS84_A,
    geo_to_local,
    local_to_geo,
    median,
    normalize_longitude,
    reference_point,
    unwrap_longitude,
)

__all__ = [
    # Points
    "GeoPoint",
    "LocalPoint",
    # Constants
    "WGS84_A",
    "EARTH_RADIUS",
    # Transforms
    "geo_to_local",
    "local_to_geo",
    "reference_point",
    "median",
    "normalize_longitude",
    "unwrap_longitude",
]
