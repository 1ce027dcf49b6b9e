"""Robust position estimation from RSSI observations of geocoded emitters.

This package provides:
- Measurement and result types
- EstimatorConfig with the tunable constants of the engine
- Chi-square confidence radii
- Weighted Levenberg-Marquardt trilateration
- RANSAC trilateration for one path-loss exponent
- PositionEstimator: parallel search over candidate path-loss exponents
- Conversion of geographic observations into local measurements
"""

from netloc.positioning.confidence import (
    chi_square_value,
    check_confidence_level,
    horizontal_accuracy_radius,
    vertical_accuracy_radius,
)
from netloc.positioning.config import (
    DEFAULT_CONFIG,
    DEFAULT_PATH_LOSS_EXPONENTS,
    MAX_EXHAUSTIVE_MEASUREMENTS,
    EstimatorConfig,
)
from netloc.positioning.estimation import (
    PositionEstimator,
    estimate_position,
    is_preferred,
    select_best,
    single_measurement_estimate,
)
from netloc.positioning.observations import EmitterObservation, build_measurements
from netloc.positioning.ransac import (
    ransac_trilateration,
    sample_indices,
    standardized_residuals,
)
from netloc.positioning.trilateration import solves_altitude, trilaterate
from netloc.positioning.types import (
    EstimatedPosition,
    Measurement,
    RansacError,
    RansacResult,
    TrilaterationError,
    TrilaterationResult,
)

__all__ = [
    # Types
    "Measurement",
    "TrilaterationResult",
    "RansacResult",
    "EstimatedPosition",
    "TrilaterationError",
    "RansacError",
    # Configuration
    "EstimatorConfig",
    "DEFAULT_CONFIG",
    "DEFAULT_PATH_LOSS_EXPONENTS",
    "MAX_EXHAUSTIVE_MEASUREMENTS",
    # Confidence
    "check_confidence_level",
    "chi_square_value",
    "horizontal_accuracy_radius",
    "vertical_accuracy_radius",
    # Solvers
    "trilaterate",
    "solves_altitude",
    "ransac_trilateration",
    "sample_indices",
    "standardized_residuals",
    # Estimator
    "PositionEstimator",
    "estimate_position",
    "single_measurement_estimate",
    "is_preferred",
    "select_best",
    # Observations
    "EmitterObservation",
    "build_measurements",
]
