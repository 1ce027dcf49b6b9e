"""
RANSAC (Random Sample Consensus) wrapper around the trilateration solver.

Individual observations can be grossly wrong: an access point that moved,
a stale geocoding entry, strong multipath. RANSAC fits minimal samples,
counts how many observations agree with each fit and refines the best fit
using only the agreeing observations (inliers).

Algorithm:
    1. Draw samples of three measurements (two if fewer are available),
       exhaustively when the set is small, at random otherwise.
    2. Fit each sample, starting at the geometric median of its emitters.
    3. Classify every measurement by its standardized residual
           |‖p̂ - e_i‖ - d_i| / sqrt(var_i) <= threshold
    4. Keep the sample with the most inliers (ties: smaller horizontal
       accuracy radius); stop early once the inliers exceed a fraction of
       the set.
    5. Refit on all inliers of the best sample, starting at its estimate.
"""

import itertools
import threading
from typing import Iterator, Optional, Sequence, Tuple

import numpy as np

from netloc.coords.points import LocalPoint
from netloc.estimators.geometric_median import geometric_median
from netloc.positioning.confidence import check_confidence_level
from netloc.positioning.config import DEFAULT_CONFIG, EstimatorConfig
from netloc.positioning.trilateration import (
    measurement_variances,
    observed_distances,
    solves_altitude,
    trilaterate,
)
from netloc.positioning.types import (
    Measurement,
    RansacError,
    RansacResult,
    TrilaterationResult,
)
from netloc.utils.result import Err, Ok, Result


def standardized_residuals(
    measurements: Sequence[Measurement],
    path_loss_exponent: float,
    estimate: LocalPoint,
    solve_altitude: bool,
    config: EstimatorConfig = DEFAULT_CONFIG,
) -> np.ndarray:
    """
    Distance residuals of each measurement in units of its standard deviation.

    The up axis contributes to the distance only when ``solve_altitude`` is
    set and both the estimate and the emitter carry a z value.

    Returns:
        Array of standardized residuals, shape (N,).
    """
    estimated = np.array(
        [estimate.distance_to(m.position, with_z=solve_altitude) for m in measurements],
        dtype=float,
    )
    observed = observed_distances(measurements, path_loss_exponent, config)
    variances = measurement_variances(measurements, path_loss_exponent, solve_altitude, config)
    return np.abs(estimated - observed) / np.sqrt(variances)


def sample_indices(
    n_measurements: int,
    sample_size: int,
    config: EstimatorConfig = DEFAULT_CONFIG,
    rng: Optional[np.random.Generator] = None,
) -> Iterator[Tuple[int, ...]]:
    """
    Generate RANSAC samples as sorted index tuples.

    All combinations are enumerated in lexicographic order when
    ``n_measurements <= config.max_exhaustive_measurements``. Otherwise
    ``config.random_sample_iterations`` samples are drawn from ``rng``
    (default: seeded with ``config.random_seed``).
    """
    if n_measurements <= config.max_exhaustive_measurements:
        yield from itertools.combinations(range(n_measurements), sample_size)
        return

    if rng is None:
        rng = np.random.default_rng(config.random_seed)
    for _ in range(config.random_sample_iterations):
        chosen = rng.choice(n_measurements, size=sample_size, replace=False)
        yield tuple(sorted(int(i) for i in chosen))


def _initial_guess(
    sample: Sequence[Measurement], solve_altitude: bool, config: EstimatorConfig
) -> LocalPoint:
    points = np.array([m.position.to_array(with_z=solve_altitude) for m in sample])
    median = geometric_median(
        points,
        max_iterations=config.median_max_iterations,
        tolerance=config.median_tolerance,
    )
    return LocalPoint.from_array(median)


def _is_better(
    inlier_count: int,
    fit: TrilaterationResult,
    best_count: int,
    best_fit: Optional[TrilaterationResult],
) -> bool:
    if best_fit is None or inlier_count > best_count:
        return True
    return inlier_count == best_count and fit.horizontal_accuracy < best_fit.horizontal_accuracy


def ransac_trilateration(
    measurements: Sequence[Measurement],
    path_loss_exponent: float,
    min_inliers: int = 3,
    confidence_level: float = 0.95,
    config: EstimatorConfig = DEFAULT_CONFIG,
    rng: Optional[np.random.Generator] = None,
    cancel_event: Optional[threading.Event] = None,
) -> Result[RansacResult, RansacError]:
    """
    Robust trilateration for one path-loss exponent.

    Args:
        measurements: Measurements to fit (not modified).
        path_loss_exponent: Exponent used to turn RSSI into distances.
        min_inliers: Minimum inlier count for a consensus (>= 2).
        confidence_level: Confidence level of the accuracy radii, in (0, 1).
        config: Estimator configuration.
        rng: Random generator used when the set is too large for exhaustive
            sampling. Defaults to a generator seeded with
            ``config.random_seed``.
        cancel_event: When set, sampling stops and ``Err(CANCELLED)`` is
            returned.

    Returns:
        ``Ok(RansacResult)`` with the refined fit and inlier count, or
        ``Err`` with:
            - INSUFFICIENT_MEASUREMENTS: fewer measurements than min_inliers
            - NO_CONSENSUS: no sample reached min_inliers
            - REFINEMENT_FAILED: the refit on the inliers failed
            - CANCELLED: ``cancel_event`` was set

    Example:
        >>> result = ransac_trilateration(measurements, 3.0, confidence_level=0.68)
        >>> if result.is_ok():
        ...     print(result.value.inlier_count)
    """
    check_confidence_level(confidence_level)
    if min_inliers < 2:
        raise ValueError(f"min_inliers must be >= 2, got {min_inliers}")

    measurements = tuple(measurements)
    n = len(measurements)
    if n < min_inliers:
        return Err(RansacError.INSUFFICIENT_MEASUREMENTS)

    sample_size = min(n, config.sample_size)
    best_inliers: Tuple[Measurement, ...] = ()
    best_fit: Optional[TrilaterationResult] = None

    for indices in sample_indices(n, sample_size, config, rng):
        if cancel_event is not None and cancel_event.is_set():
            return Err(RansacError.CANCELLED)

        sample = [measurements[i] for i in indices]
        solve_z = solves_altitude(sample)

        fit = trilaterate(
            sample,
            path_loss_exponent,
            _initial_guess(sample, solve_z, config),
            confidence_level=confidence_level,
            config=config,
        )
        if fit.is_err():
            continue

        residuals = standardized_residuals(
            measurements, path_loss_exponent, fit.value.position, solve_z, config
        )
        inliers = tuple(
            m for m, r in zip(measurements, residuals) if r <= config.inlier_threshold
        )

        if len(inliers) >= min_inliers and _is_better(
            len(inliers), fit.value, len(best_inliers), best_fit
        ):
            best_inliers = inliers
            best_fit = fit.value

        if len(best_inliers) > n * config.early_exit_inlier_fraction:
            break

    if best_fit is None:
        return Err(RansacError.NO_CONSENSUS)

    refined = trilaterate(
        best_inliers,
        path_loss_exponent,
        best_fit.position,
        confidence_level=confidence_level,
        config=config,
    )
    if refined.is_err():
        return Err(RansacError.REFINEMENT_FAILED)

    return Ok(
        RansacResult(
            trilateration=refined.value,
            inlier_count=len(best_inliers),
            path_loss_exponent=path_loss_exponent,
        )
    )
