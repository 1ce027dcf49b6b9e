"""
Weighted nonlinear least-squares trilateration from RSSI pseudo-distances.

Every measurement yields an observed pseudo-distance from its RSSI through
the path-loss model. The unknown position p minimizes

    Σ w_i (d_i - ‖p - e_i‖)²,    w_i = 1 / var_i

where e_i is the emitter position and var_i the total observation variance.
The model distance carries a tiny epsilon so its derivative stays defined
when p coincides with an emitter. The Jacobian row of observation i is the
unit vector (p - e_i) / ‖p - e_i‖.

The altitude is solved as a third unknown only when every measurement
carries an altitude and a vertical variance and there are at least three
measurements. Otherwise the fit is horizontal.
"""

import math
from typing import Sequence

import numpy as np

from netloc.coords.points import LocalPoint
from netloc.estimators.nonlinear_least_squares import levenberg_marquardt
from netloc.positioning.confidence import (
    check_confidence_level,
    horizontal_accuracy_radius,
    vertical_accuracy_radius,
)
from netloc.positioning.config import DEFAULT_CONFIG, EstimatorConfig
from netloc.positioning.types import (
    Measurement,
    TrilaterationError,
    TrilaterationResult,
)
from netloc.rf.pathloss import rssi_to_distance, total_measurement_variance
from netloc.utils.result import Err, Ok, Result

MIN_MEASUREMENTS = 2


def solves_altitude(measurements: Sequence[Measurement]) -> bool:
    """Whether a fit over ``measurements`` includes the altitude.

    Needs at least three measurements: two ranges cannot pin down three
    unknowns, so a two-point fit would have a singular covariance.
    """
    return len(measurements) >= 3 and all(m.has_altitude for m in measurements)


def observed_distances(
    measurements: Sequence[Measurement],
    path_loss_exponent: float,
    config: EstimatorConfig = DEFAULT_CONFIG,
) -> np.ndarray:
    """RSSI-derived pseudo-distances, shape (N,)."""
    rssi = np.array([m.rssi for m in measurements], dtype=float)
    return np.atleast_1d(
        rssi_to_distance(rssi, path_loss_exponent, config.path_loss_model)
    )


def measurement_variances(
    measurements: Sequence[Measurement],
    path_loss_exponent: float,
    solve_altitude: bool,
    config: EstimatorConfig = DEFAULT_CONFIG,
) -> np.ndarray:
    """Total per-observation variances, shape (N,)."""
    return np.array(
        [
            total_measurement_variance(
                m.rssi,
                m.horizontal_variance,
                path_loss_exponent,
                vertical_variance=m.vertical_variance,
                solve_altitude=solve_altitude and m.vertical_variance is not None,
                model=config.path_loss_model,
            )
            for m in measurements
        ],
        dtype=float,
    )


def _emitter_positions(measurements: Sequence[Measurement], solve_altitude: bool) -> np.ndarray:
    return np.array(
        [m.position.to_array(with_z=solve_altitude) for m in measurements],
        dtype=float,
    )


def _initial_state(
    initial_guess: LocalPoint, positions: np.ndarray, solve_altitude: bool
) -> np.ndarray:
    if not solve_altitude:
        return initial_guess.to_array(with_z=False)
    z0 = initial_guess.z
    if z0 is None:
        z0 = float(np.mean(positions[:, 2]))
    return np.array([initial_guess.x, initial_guess.y, z0], dtype=float)


def trilaterate(
    measurements: Sequence[Measurement],
    path_loss_exponent: float,
    initial_guess: LocalPoint,
    confidence_level: float = 0.95,
    config: EstimatorConfig = DEFAULT_CONFIG,
) -> Result[TrilaterationResult, TrilaterationError]:
    """
    Fit a position to RSSI measurements for one path-loss exponent.

    Args:
        measurements: At least two measurements.
        path_loss_exponent: Exponent used to turn RSSI into distances.
        initial_guess: Starting point of the optimizer. A missing z is
            replaced by the mean emitter altitude when altitude is solved.
        confidence_level: Confidence level of the accuracy radii, in (0, 1).
        config: Estimator configuration.

    Returns:
        ``Ok(TrilaterationResult)`` on success, otherwise ``Err`` with:
            - INSUFFICIENT_MEASUREMENTS: fewer than two measurements
            - NON_CONVERGENCE: the solver hit its iteration cap
            - SINGULAR_GEOMETRY: the covariance could not be computed
              (e.g. collinear emitters) or gave a degenerate radius

    Raises:
        ValueError: If ``confidence_level`` is outside (0, 1).

    Example:
        >>> ms = [
        ...     Measurement(LocalPoint(0.0, 0.0), 25.0, -60.0),
        ...     Measurement(LocalPoint(100.0, 0.0), 25.0, -60.0),
        ...     Measurement(LocalPoint(0.0, 100.0), 25.0, -60.0),
        ... ]
        >>> result = trilaterate(ms, 2.0, LocalPoint(30.0, 30.0))
        >>> result.is_ok()
        True
    """
    check_confidence_level(confidence_level)
    if len(measurements) < MIN_MEASUREMENTS:
        return Err(TrilaterationError.INSUFFICIENT_MEASUREMENTS)

    solve_z = solves_altitude(measurements)
    positions = _emitter_positions(measurements, solve_z)
    y = observed_distances(measurements, path_loss_exponent, config)
    weights = 1.0 / measurement_variances(measurements, path_loss_exponent, solve_z, config)
    x0 = _initial_state(initial_guess, positions, solve_z)
    eps = config.distance_epsilon

    def h(p: np.ndarray) -> np.ndarray:
        return np.linalg.norm(p - positions, axis=1) + eps

    def jacobian(p: np.ndarray) -> np.ndarray:
        diff = p - positions
        distances = np.linalg.norm(diff, axis=1, keepdims=True) + eps
        return diff / distances

    fit = levenberg_marquardt(
        h,
        jacobian,
        y,
        x0,
        weights=weights,
        max_iter=config.max_iterations,
        singular_threshold=config.singular_threshold,
    )

    if not fit.converged:
        return Err(TrilaterationError.NON_CONVERGENCE)
    if fit.singular or fit.covariance is None:
        return Err(TrilaterationError.SINGULAR_GEOMETRY)

    P = fit.covariance
    horizontal_variance = P[0, 0] + P[1, 1]
    if not (horizontal_variance > 0 and math.isfinite(horizontal_variance)):
        return Err(TrilaterationError.SINGULAR_GEOMETRY)
    horizontal_accuracy = horizontal_accuracy_radius(horizontal_variance, confidence_level)

    vertical_accuracy = None
    z = None
    if solve_z:
        if not (P[2, 2] > 0 and math.isfinite(P[2, 2])):
            return Err(TrilaterationError.SINGULAR_GEOMETRY)
        vertical_accuracy = vertical_accuracy_radius(P[2, 2], confidence_level)
        z = float(fit.x[2])

    return Ok(
        TrilaterationResult(
            position=LocalPoint(x=float(fit.x[0]), y=float(fit.x[1]), z=z),
            horizontal_accuracy=horizontal_accuracy,
            vertical_accuracy=vertical_accuracy,
        )
    )
