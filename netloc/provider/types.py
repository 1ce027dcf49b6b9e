"""Data exchanged with the positioning-data service, the radio scanner and the host."""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from netloc.coords.points import GeoPoint


@dataclass(frozen=True)
class PositioningData:
    """Geocoded position of an emitter as reported by the positioning service.

    Attributes:
        latitude: Latitude in degrees.
        longitude: Longitude in degrees.
        accuracy_m: 1-sigma horizontal accuracy in meters.
        altitude_m: Altitude in meters, or None.
        vertical_accuracy_m: 1-sigma vertical accuracy in meters, or None.
    """

    latitude: float
    longitude: float
    accuracy_m: float
    altitude_m: Optional[float] = None
    vertical_accuracy_m: Optional[float] = None

    def __post_init__(self) -> None:
        if not (self.accuracy_m > 0 and math.isfinite(self.accuracy_m)):
            raise ValueError(f"accuracy_m must be positive, got {self.accuracy_m}")

    def to_geo_point(self) -> GeoPoint:
        return GeoPoint(self.latitude, self.longitude, self.altitude_m)

    def __str__(self) -> str:
        text = f"{{{self.latitude},{self.longitude}±{self.accuracy_m}m"
        if self.altitude_m is not None:
            text += f" altitude:{self.altitude_m}"
            if self.vertical_accuracy_m is not None:
                text += f"±{self.vertical_accuracy_m}"
            text += "m"
        return text + "}"


@dataclass(frozen=True)
class EmitterPositioningData:
    """Service answer for one emitter.

    ``positioning_data`` is None when the service knows the emitter but has
    no position for it (e.g. a mobile hotspot).
    """

    emitter_id: str
    positioning_data: Optional[PositioningData]


@dataclass(frozen=True)
class ScanResult:
    """One emitter heard during a radio scan.

    Attributes:
        emitter_id: Identifier of the emitter (e.g. BSSID).
        rssi: Received signal strength in dBm.
        timestamp_us: Monotonic time of the reading in microseconds.
    """

    emitter_id: str
    rssi: float
    timestamp_us: int


@dataclass(frozen=True)
class Location:
    """Location fix reported to the host.

    Attributes:
        latitude: Latitude in degrees, in [-90, 90].
        longitude: Longitude in degrees, in [-180, 180).
        horizontal_accuracy_m: Horizontal accuracy radius in meters.
        timestamp_us: Monotonic time of the oldest contributing reading (us).
        time_ms: Wall-clock time of the fix in milliseconds since the epoch.
        altitude_m: Altitude in meters, or None.
        vertical_accuracy_m: Vertical accuracy radius in meters, or None.
    """

    latitude: float
    longitude: float
    horizontal_accuracy_m: float
    timestamp_us: int
    time_ms: int
    altitude_m: Optional[float] = None
    vertical_accuracy_m: Optional[float] = None


class FetchError(Enum):
    """Failure to obtain positioning data from the service."""

    FAILURE = "failure"
    UNAVAILABLE = "unavailable"


class ScanError(Enum):
    """Failure to obtain scan results from the radio."""

    FAILURE = "failure"
    UNAVAILABLE = "unavailable"
