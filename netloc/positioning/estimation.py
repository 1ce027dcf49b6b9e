"""
Position estimation with graceful degradation and path-loss exponent search.

The path-loss exponent of the environment is unknown, so the RANSAC
trilateration is run once per candidate exponent and the best outcome is
kept:

    0 measurements  -> no estimate
    1 measurement   -> the emitter position with a radius from its variance
    >= 2            -> RANSAC per exponent (in parallel), reduced by
                       1. more inliers
                       2. strictly smaller horizontal accuracy radius whose
                          vertical radius is not worse
                       3. otherwise the earlier exponent in canonical order

The exponent tasks share no mutable state. Results are collected in the
canonical exponent order before the reduction, so completion order never
affects the outcome.
"""

import logging
import os
import threading
from concurrent.futures import Executor, ThreadPoolExecutor
from typing import List, Optional, Sequence, Tuple

import numpy as np

from netloc.coords.points import GeoPoint, LocalPoint
from netloc.coords.transforms import local_to_geo
from netloc.positioning.confidence import (
    check_confidence_level,
    horizontal_accuracy_radius,
    vertical_accuracy_radius,
)
from netloc.positioning.config import DEFAULT_CONFIG, EstimatorConfig
from netloc.positioning.ransac import ransac_trilateration
from netloc.positioning.types import (
    EstimatedPosition,
    Measurement,
    RansacError,
    RansacResult,
    TrilaterationResult,
)
from netloc.rf.pathloss import total_measurement_variance
from netloc.utils.result import Result

logger = logging.getLogger(__name__)


def _vertical_not_worse(candidate: Optional[float], best: Optional[float]) -> bool:
    if best is None:
        return True
    if candidate is None:
        return False
    return candidate <= best


def is_preferred(candidate: RansacResult, best: Optional[RansacResult]) -> bool:
    """Whether ``candidate`` replaces ``best`` in the exponent reduction."""
    if best is None:
        return True
    if candidate.inlier_count != best.inlier_count:
        return candidate.inlier_count > best.inlier_count
    c = candidate.trilateration
    b = best.trilateration
    return c.horizontal_accuracy < b.horizontal_accuracy and _vertical_not_worse(
        c.vertical_accuracy, b.vertical_accuracy
    )


def select_best(results: Sequence[Result[RansacResult, RansacError]]) -> Optional[RansacResult]:
    """Reduce per-exponent results (in canonical order) to the preferred one."""
    best: Optional[RansacResult] = None
    for result in results:
        if result.is_err():
            continue
        if is_preferred(result.value, best):
            best = result.value
    return best


def single_measurement_estimate(
    measurement: Measurement,
    confidence_level: float,
    config: EstimatorConfig = DEFAULT_CONFIG,
) -> TrilaterationResult:
    """
    Estimate from a single measurement.

    One signal cannot corroborate a path-loss exponent, so a fixed exponent
    is assumed and the emitter position itself is returned. The horizontal
    radius comes from the total variance of the observation; the vertical
    radius from the emitter's vertical variance when it has an altitude.
    """
    variance = total_measurement_variance(
        measurement.rssi,
        measurement.horizontal_variance,
        config.single_measurement_exponent,
        model=config.path_loss_model,
    )
    horizontal_accuracy = horizontal_accuracy_radius(variance, confidence_level)

    position = measurement.position
    vertical_accuracy = None
    if measurement.has_altitude:
        vertical_accuracy = vertical_accuracy_radius(
            measurement.vertical_variance, confidence_level
        )
    elif position.z is not None:
        position = LocalPoint(position.x, position.y)

    return TrilaterationResult(
        position=position,
        horizontal_accuracy=horizontal_accuracy,
        vertical_accuracy=vertical_accuracy,
    )


class PositionEstimator:
    """
    Robust position estimator over a set of candidate path-loss exponents.

    Attributes:
        config: Estimator configuration.
        max_workers: Thread count for the exponent search. Defaults to
            ``min(len(config.path_loss_exponents), os.cpu_count())``.

    Example:
        >>> estimator = PositionEstimator()
        >>> result = estimator.estimate_local(measurements, confidence_level=0.68)
        >>> if result is not None:
        ...     print(result.position, result.horizontal_accuracy)
    """

    def __init__(
        self,
        config: Optional[EstimatorConfig] = None,
        max_workers: Optional[int] = None,
        executor: Optional[Executor] = None,
    ):
        """
        Initialize the estimator.

        Args:
            config: Estimator configuration. Defaults to ``EstimatorConfig()``.
            max_workers: Thread count of the per-call thread pool.
            executor: Externally owned executor to run exponent tasks on.
                When given, ``max_workers`` is ignored and the executor is
                not shut down by the estimator.
        """
        self.config = config if config is not None else DEFAULT_CONFIG
        if max_workers is None:
            max_workers = min(len(self.config.path_loss_exponents), os.cpu_count() or 1)
        if max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {max_workers}")
        self.max_workers = max_workers
        self._executor = executor

    def evaluate_exponents(
        self,
        measurements: Sequence[Measurement],
        confidence_level: float,
        cancel_event: Optional[threading.Event] = None,
    ) -> List[Tuple[float, Result[RansacResult, RansacError]]]:
        """
        Run RANSAC trilateration for every candidate exponent.

        Args:
            measurements: At least two measurements.
            confidence_level: Confidence level in (0, 1).
            cancel_event: Optional event that aborts all exponent tasks.

        Returns:
            ``(exponent, result)`` pairs in canonical exponent order.
        """
        check_confidence_level(confidence_level)
        measurements = tuple(measurements)
        exponents = self.config.path_loss_exponents
        min_inliers = min(len(measurements), self.config.sample_size)
        seeds = np.random.SeedSequence(self.config.random_seed).spawn(len(exponents))

        def run(index: int) -> Result[RansacResult, RansacError]:
            return ransac_trilateration(
                measurements,
                exponents[index],
                min_inliers=min_inliers,
                confidence_level=confidence_level,
                config=self.config,
                rng=np.random.default_rng(seeds[index]),
                cancel_event=cancel_event,
            )

        if self._executor is not None:
            results = list(self._executor.map(run, range(len(exponents))))
        else:
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                results = list(executor.map(run, range(len(exponents))))

        for exponent, result in zip(exponents, results):
            if result.is_ok():
                logger.debug(
                    "exponent %.1f: %d inliers, accuracy %.1f m",
                    exponent,
                    result.value.inlier_count,
                    result.value.trilateration.horizontal_accuracy,
                )
            else:
                logger.debug("exponent %.1f: %s", exponent, result.error.value)

        return list(zip(exponents, results))

    def estimate_local(
        self,
        measurements: Sequence[Measurement],
        confidence_level: float,
        cancel_event: Optional[threading.Event] = None,
    ) -> Optional[TrilaterationResult]:
        """
        Estimate a position in local coordinates.

        Args:
            measurements: Measurements in the local frame (any count).
            confidence_level: Confidence level of the accuracy radii, in (0, 1).
            cancel_event: Optional event that aborts the search.

        Returns:
            TrilaterationResult, or None when no estimate is possible (no
            measurements, no viable exponent, or cancelled).

        Raises:
            ValueError: If ``confidence_level`` is outside (0, 1).
        """
        check_confidence_level(confidence_level)

        if len(measurements) == 0:
            return None
        if len(measurements) == 1:
            return single_measurement_estimate(measurements[0], confidence_level, self.config)

        results = self.evaluate_exponents(measurements, confidence_level, cancel_event)
        if cancel_event is not None and cancel_event.is_set():
            return None

        best = select_best([result for _, result in results])
        if best is None:
            logger.debug("no viable path-loss exponent for %d measurements", len(measurements))
            return None
        return best.trilateration

    def estimate(
        self,
        measurements: Sequence[Measurement],
        confidence_level: float,
        reference: GeoPoint,
        cancel_event: Optional[threading.Event] = None,
    ) -> Optional[EstimatedPosition]:
        """
        Estimate a geographic position.

        Args:
            measurements: Measurements in the local frame of ``reference``.
            confidence_level: Confidence level of the accuracy radii, in (0, 1).
            reference: Origin of the local frame.
            cancel_event: Optional event that aborts the search.

        Returns:
            EstimatedPosition, or None when no estimate is possible.
        """
        local = self.estimate_local(measurements, confidence_level, cancel_event)
        if local is None:
            return None
        return EstimatedPosition(
            position=local_to_geo(local.position, reference),
            horizontal_accuracy=local.horizontal_accuracy,
            vertical_accuracy=local.vertical_accuracy,
        )


def estimate_position(
    measurements: Sequence[Measurement],
    confidence_level: float,
    reference: GeoPoint,
    config: Optional[EstimatorConfig] = None,
) -> Optional[EstimatedPosition]:
    """
    Estimate a geographic position with a default ``PositionEstimator``.

    Example:
        >>> from netloc.positioning.observations import build_measurements
        >>> reference, measurements = build_measurements(observations)
        >>> result = estimate_position(measurements, 0.68, reference)
    """
    return PositionEstimator(config).estimate(measurements, confidence_level, reference)
