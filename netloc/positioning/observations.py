"""Conversion of geographic emitter observations into estimator input."""

import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from netloc.coords.points import GeoPoint
from netloc.coords.transforms import geo_to_local, reference_point, unwrap_longitude
from netloc.positioning.types import Measurement


@dataclass(frozen=True)
class EmitterObservation:
    """RSSI reading of an emitter whose position is known from geocoding.

    Attributes:
        emitter_id: Identifier of the emitter (e.g. BSSID).
        position: Geocoded emitter position.
        accuracy_m: 1-sigma horizontal accuracy of the position (m).
        vertical_accuracy_m: 1-sigma vertical accuracy (m), or None.
        rssi: Received signal strength in dBm.
        timestamp_us: Time of the reading in microseconds.
    """

    emitter_id: str
    position: GeoPoint
    accuracy_m: float
    rssi: float
    vertical_accuracy_m: Optional[float] = None
    timestamp_us: int = 0

    def __post_init__(self) -> None:
        if not (self.accuracy_m > 0 and math.isfinite(self.accuracy_m)):
            raise ValueError(f"accuracy_m must be positive, got {self.accuracy_m}")
        if self.vertical_accuracy_m is not None and not (
            self.vertical_accuracy_m > 0 and math.isfinite(self.vertical_accuracy_m)
        ):
            raise ValueError(
                f"vertical_accuracy_m must be positive, got {self.vertical_accuracy_m}"
            )


def build_measurements(
    observations: Sequence[EmitterObservation],
) -> Tuple[GeoPoint, List[Measurement]]:
    """
    Project observations into a local frame around their median position.

    Emitter longitudes are unwrapped to the reference side of the
    antimeridian before the projection. Accuracies are squared into
    variances; the vertical variance is kept only for emitters that have an
    altitude.

    Args:
        observations: Non-empty sequence of observations.

    Returns:
        ``(reference, measurements)`` with measurements in input order.

    Raises:
        ValueError: If ``observations`` is empty.

    Example:
        >>> reference, measurements = build_measurements(observations)
        >>> estimate = PositionEstimator().estimate(measurements, 0.68, reference)
    """
    if len(observations) == 0:
        raise ValueError("At least one observation is required")

    reference = reference_point(o.position for o in observations)
    measurements = []
    for o in observations:
        position = GeoPoint(
            latitude=o.position.latitude,
            longitude=unwrap_longitude(o.position.longitude, reference.longitude),
            altitude=o.position.altitude,
        )
        local = geo_to_local(position, reference)

        vertical_variance = None
        if local.z is not None and o.vertical_accuracy_m is not None:
            vertical_variance = o.vertical_accuracy_m ** 2

        measurements.append(
            Measurement(
                position=local,
                horizontal_variance=o.accuracy_m ** 2,
                rssi=o.rssi,
                vertical_variance=vertical_variance,
            )
        )
    return reference, measurements
