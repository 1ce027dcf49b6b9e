"""Conversions between geographic points and a local East-North-Up frame.

The local frame uses an equirectangular (flat-Earth) approximation centred on
a reference point:

    x = R * dlon * cos(lat_ref)
    y = R * dlat

with R the WGS84 semi-major axis and angles in radians. The approximation is
good for separations up to a few kilometers; accuracy degrades further away
due to Earth's curvature. Forward and inverse use the same scale factors so a
local -> geo -> local round trip is exact up to floating point for points
that do not cross a pole.

Longitude differences are not wrapped: a point at +179.9 seen from a
reference at -179.9 maps to x ~ R * 359.8 deg * cos(lat), not to a 0.2 deg
offset. References near the antimeridian should be paired with emitters whose
longitudes were unwrapped to the reference side, see ``normalize_longitude``
and ``unwrap_longitude``.
"""

import math
from typing import Iterable, List, Optional, Sequence

import numpy as np

from netloc.coords.points import GeoPoint, LocalPoint

# WGS84 semi-major axis (m), used as the Earth radius of the flat-Earth model
WGS84_A = 6378137.0
EARTH_RADIUS = WGS84_A


def _check_reference(reference: GeoPoint) -> float:
    if abs(reference.latitude) >= 90.0:
        raise ValueError(
            f"Reference latitude must be strictly inside (-90, 90), got "
            f"{reference.latitude}"
        )
    return math.cos(math.radians(reference.latitude))


def geo_to_local(point: GeoPoint, reference: GeoPoint) -> LocalPoint:
    """Convert a geographic point to local ENU coordinates.

    Args:
        point: Point to convert.
        reference: Origin of the local frame.

    Returns:
        LocalPoint in meters. ``z`` is the altitude difference when both the
        point and the reference carry an altitude, otherwise None.

    Raises:
        ValueError: If the reference lies on a pole.

    Example:
        >>> ref = GeoPoint(0.0, 0.0)
        >>> p = geo_to_local(GeoPoint(0.0, 0.001), ref)
        >>> round(p.x, 3)
        111.319
    """
    cos_lat = _check_reference(reference)
    d_lat = math.radians(point.latitude - reference.latitude)
    d_lon = math.radians(point.longitude - reference.longitude)

    x = EARTH_RADIUS * d_lon * cos_lat
    y = EARTH_RADIUS * d_lat
    z = None
    if point.altitude is not None and reference.altitude is not None:
        z = point.altitude - reference.altitude

    return LocalPoint(x=x, y=y, z=z)


def local_to_geo(point: LocalPoint, reference: GeoPoint) -> GeoPoint:
    """Convert local ENU coordinates back to a geographic point.

    Inverse of ``geo_to_local``. The resulting longitude is
    ``reference.longitude + dlon`` and is not normalized, except when the
    point lies beyond a pole: the latitude is then folded back over the pole
    and the longitude moves to the opposite meridian, wrapped into
    [-180, 180).

    Args:
        point: Local point in meters.
        reference: Origin of the local frame.

    Returns:
        GeoPoint. Altitude is ``reference.altitude + z`` when both exist.

    Raises:
        ValueError: If the reference lies on a pole.
    """
    cos_lat = _check_reference(reference)
    d_lat = point.y / EARTH_RADIUS
    d_lon = point.x / (EARTH_RADIUS * cos_lat)

    lat = reference.latitude + math.degrees(d_lat)
    lon = reference.longitude + math.degrees(d_lon)
    if lat > 90.0:
        lat = 180.0 - lat
        lon = normalize_longitude(lon + 180.0)
    elif lat < -90.0:
        lat = -180.0 - lat
        lon = normalize_longitude(lon + 180.0)
    alt = None
    if point.z is not None and reference.altitude is not None:
        alt = reference.altitude + point.z

    return GeoPoint(latitude=lat, longitude=lon, altitude=alt)


def median(values: Sequence[float]) -> float:
    """Median of a non-empty sequence (mean of the two middle values if even)."""
    if len(values) == 0:
        raise ValueError("Cannot take the median of an empty sequence")
    return float(np.median(np.asarray(values, dtype=np.float64)))


def reference_point(points: Iterable[GeoPoint]) -> GeoPoint:
    """Per-axis median of a set of geographic points.

    The median keeps the reference near the bulk of the emitters when up to
    about half of them are geocoded to a wildly wrong location. Longitudes are
    unwrapped to the side of the first point before taking the median, so
    points straddling the antimeridian keep their reference next to them.

    Args:
        points: Non-empty iterable of GeoPoints.

    Returns:
        GeoPoint with the median latitude and the median longitude wrapped
        into [-180, 180). The altitude is the median over the points that
        carry one, or None if none do.
    """
    points = list(points)
    if not points:
        raise ValueError("At least one point is required")

    altitudes: List[float] = [p.altitude for p in points if p.altitude is not None]
    altitude: Optional[float] = median(altitudes) if altitudes else None

    seed = points[0].longitude
    longitudes = [unwrap_longitude(p.longitude, seed) for p in points]

    return GeoPoint(
        latitude=median([p.latitude for p in points]),
        longitude=normalize_longitude(median(longitudes)),
        altitude=altitude,
    )


def normalize_longitude(longitude: float) -> float:
    """Wrap a longitude in degrees into [-180, 180)."""
    return (longitude + 180.0) % 360.0 - 180.0


def unwrap_longitude(longitude: float, reference_longitude: float) -> float:
    """Shift a longitude by multiples of 360 deg to lie within 180 deg of a reference.

    Example:
        >>> unwrap_longitude(-179.9, 179.9)
        180.1
    """
    return reference_longitude + normalize_longitude(longitude - reference_longitude)
