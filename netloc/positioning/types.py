"""Data types for position estimation.

This module defines the observation and result structures shared by the
trilateration solver, the RANSAC driver and the multi-exponent estimator.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from netloc.coords.points import GeoPoint, LocalPoint


@dataclass(frozen=True)
class Measurement:
    """One RSSI observation of an emitter with a known position.

    Attributes:
        position: Emitter position in local ENU coordinates (meters).
        horizontal_variance: Variance of the emitter's horizontal position
            (m²), e.g. the squared accuracy reported by the geocoding service.
        vertical_variance: Variance of the emitter's altitude (m²), or None.
        rssi: Received signal strength in dBm.

    Example:
        >>> m = Measurement(LocalPoint(12.0, -3.5), horizontal_variance=25.0, rssi=-67.0)
    """

    position: LocalPoint
    horizontal_variance: float
    rssi: float
    vertical_variance: Optional[float] = None

    def __post_init__(self) -> None:
        if not (self.horizontal_variance > 0 and math.isfinite(self.horizontal_variance)):
            raise ValueError(
                f"horizontal_variance must be positive and finite, got "
                f"{self.horizontal_variance}"
            )
        if self.vertical_variance is not None and not (
            self.vertical_variance > 0 and math.isfinite(self.vertical_variance)
        ):
            raise ValueError(
                f"vertical_variance must be positive and finite, got "
                f"{self.vertical_variance}"
            )
        if not math.isfinite(self.rssi):
            raise ValueError(f"rssi must be finite, got {self.rssi}")

    @property
    def has_altitude(self) -> bool:
        """True when both the emitter altitude and its variance are known."""
        return self.position.z is not None and self.vertical_variance is not None


@dataclass(frozen=True)
class TrilaterationResult:
    """Position fit in local coordinates.

    Attributes:
        position: Estimated position (z set only when altitude was solved).
        horizontal_accuracy: Horizontal accuracy radius in meters at the
            requested confidence level.
        vertical_accuracy: Vertical accuracy radius in meters, or None.
    """

    position: LocalPoint
    horizontal_accuracy: float
    vertical_accuracy: Optional[float] = None


@dataclass(frozen=True)
class RansacResult:
    """Refined RANSAC fit for one path-loss exponent.

    Attributes:
        trilateration: Fit computed from all inliers of the best sample.
        inlier_count: Number of measurements classified as inliers.
        path_loss_exponent: Exponent the measurements were interpreted with.
    """

    trilateration: TrilaterationResult
    inlier_count: int
    path_loss_exponent: float


@dataclass(frozen=True)
class EstimatedPosition:
    """Final geographic position estimate.

    Attributes:
        position: Estimated geographic position.
        horizontal_accuracy: Horizontal accuracy radius in meters.
        vertical_accuracy: Vertical accuracy radius in meters, or None.
    """

    position: GeoPoint
    horizontal_accuracy: float
    vertical_accuracy: Optional[float] = None


class TrilaterationError(Enum):
    """Reasons a single trilateration attempt produced no fit."""

    INSUFFICIENT_MEASUREMENTS = "insufficient_measurements"
    NON_CONVERGENCE = "non_convergence"
    SINGULAR_GEOMETRY = "singular_geometry"


class RansacError(Enum):
    """Reasons a RANSAC run for one exponent produced no candidate."""

    INSUFFICIENT_MEASUREMENTS = "insufficient_measurements"
    NO_CONSENSUS = "no_consensus"
    REFINEMENT_FAILED = "refinement_failed"
    CANCELLED = "cancelled"
