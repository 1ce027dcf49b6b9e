"""Point types for geographic and local coordinates.

GeoPoint holds WGS84 latitude/longitude in degrees with an optional altitude.
LocalPoint holds East-North-Up offsets in meters relative to an implicit
reference GeoPoint.
"""

import math
from dataclasses import dataclass
from typing import Optional

import numpy as np


@dataclass(frozen=True)
class GeoPoint:
    """Geographic point.

    Attributes:
        latitude: Latitude in degrees (positive north), in [-90, 90].
        longitude: Longitude in degrees (positive east).
        altitude: Optional altitude in meters.

    Example:
        >>> p = GeoPoint(latitude=51.4769, longitude=0.0, altitude=45.0)
        >>> p.has_altitude
        True
    """

    latitude: float
    longitude: float
    altitude: Optional[float] = None

    def __post_init__(self) -> None:
        if not math.isfinite(self.latitude) or not math.isfinite(self.longitude):
            raise ValueError(
                f"Latitude and longitude must be finite, got "
                f"({self.latitude}, {self.longitude})"
            )
        if not -90.0 <= self.latitude <= 90.0:
            raise ValueError(f"Latitude must be in [-90, 90], got {self.latitude}")
        if self.altitude is not None and not math.isfinite(self.altitude):
            raise ValueError(f"Altitude must be finite, got {self.altitude}")

    @property
    def has_altitude(self) -> bool:
        return self.altitude is not None


@dataclass(frozen=True)
class LocalPoint:
    """Point in a local East-North-Up frame.

    Attributes:
        x: East offset in meters.
        y: North offset in meters.
        z: Optional up offset in meters.
    """

    x: float
    y: float
    z: Optional[float] = None

    @property
    def has_z(self) -> bool:
        return self.z is not None

    def to_array(self, with_z: bool = False) -> np.ndarray:
        """Convert to a numpy array [x, y] or [x, y, z].

        Args:
            with_z: Include the up component. Requires ``z`` to be set.

        Returns:
            Array of shape (2,) or (3,).

        Raises:
            ValueError: If ``with_z`` is requested for a point without z.
        """
        if with_z:
            if self.z is None:
                raise ValueError("Point has no z component")
            return np.array([self.x, self.y, self.z], dtype=np.float64)
        return np.array([self.x, self.y], dtype=np.float64)

    @classmethod
    def from_array(cls, arr: np.ndarray) -> "LocalPoint":
        """Create a LocalPoint from an array of length 2 or 3."""
        arr = np.asarray(arr, dtype=np.float64)
        if arr.shape == (2,):
            return cls(x=float(arr[0]), y=float(arr[1]))
        if arr.shape == (3,):
            return cls(x=float(arr[0]), y=float(arr[1]), z=float(arr[2]))
        raise ValueError(f"Array must have shape (2,) or (3,), got {arr.shape}")

    def distance_to(self, other: "LocalPoint", with_z: bool = False) -> float:
        """Euclidean distance, including the up axis only when both have z."""
        dx = self.x - other.x
        dy = self.y - other.y
        dz = 0.0
        if with_z and self.z is not None and other.z is not None:
            dz = self.z - other.z
        return math.sqrt(dx * dx + dy * dy + dz * dz)
