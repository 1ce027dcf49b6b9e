"""
Periodic scan -> fetch -> estimate -> report loop.

Each step scans the radio, looks up the positioning data of the strongest
emitters, estimates a position and hands a ``Location`` to the sink:

    1. Sort scan results by RSSI, strongest first.
    2. Look up emitters through the cache. Once enough emitters are located,
       only cached data is used so no further requests are made.
    3. Stop after ``max_measurements`` located emitters.
    4. Estimate at the configured confidence level (68% by default, the
       usual convention for reported location accuracy).
"""

import logging
import threading
import time
from typing import Any, Callable, List, Optional, Sequence

from netloc.coords.transforms import normalize_longitude
from netloc.positioning.config import MAX_EXHAUSTIVE_MEASUREMENTS
from netloc.positioning.confidence import check_confidence_level
from netloc.positioning.estimation import PositionEstimator
from netloc.positioning.observations import EmitterObservation, build_measurements
from netloc.provider.backoff import ExponentialBackOff
from netloc.provider.cache import PositioningDataCache
from netloc.provider.sources import LocationSink, RadioScanner
from netloc.provider.types import Location, ScanResult

logger = logging.getLogger(__name__)

MIN_INTERVAL_S = 1.0
REPORTING_CONFIDENCE_LEVEL = 0.68
MIN_FETCHED_BEFORE_CACHE_ONLY = 5


class LocationReportingTask:
    """
    Location reporting loop for one client request.

    Attributes:
        interval_s: Target time between steps (at least one second).
        confidence_level: Confidence level of the reported accuracy radii.
        max_measurements: Maximum number of located emitters per estimate.
        min_fetched_before_cache_only: Number of located emitters after which
            lookups are served from the cache only.
    """

    def __init__(
        self,
        scanner: RadioScanner,
        cache: PositioningDataCache,
        sink: LocationSink,
        interval_s: float = MIN_INTERVAL_S,
        confidence_level: float = REPORTING_CONFIDENCE_LEVEL,
        max_measurements: int = MAX_EXHAUSTIVE_MEASUREMENTS,
        min_fetched_before_cache_only: int = MIN_FETCHED_BEFORE_CACHE_ONLY,
        estimator: Optional[PositionEstimator] = None,
        backoff: Optional[ExponentialBackOff] = None,
        scope: Optional[Any] = None,
        monotonic_clock: Callable[[], float] = time.monotonic,
        wall_clock: Callable[[], float] = time.time,
    ):
        check_confidence_level(confidence_level)
        if max_measurements < 1:
            raise ValueError(f"max_measurements must be >= 1, got {max_measurements}")

        self.interval_s = max(MIN_INTERVAL_S, interval_s)
        self.confidence_level = confidence_level
        self.max_measurements = max_measurements
        self.min_fetched_before_cache_only = min_fetched_before_cache_only
        self._scanner = scanner
        self._cache = cache
        self._sink = sink
        self._estimator = estimator if estimator is not None else PositionEstimator()
        self._backoff = backoff if backoff is not None else ExponentialBackOff()
        self._scope = scope
        self._monotonic = monotonic_clock
        self._wall_clock = wall_clock

    def collect_observations(self, scan_results: Sequence[ScanResult]) -> List[EmitterObservation]:
        """Pair the strongest scan results with their positioning data."""
        observations: List[EmitterObservation] = []
        for scan in sorted(scan_results, key=lambda s: s.rssi, reverse=True):
            only_cached = len(observations) >= self.min_fetched_before_cache_only
            result = self._cache.get_positioning_data(scan.emitter_id, only_cached)
            if result.is_err():
                logger.debug(
                    "unable to obtain positioning data for %s: %s",
                    scan.emitter_id,
                    result.error.value,
                )
                continue

            data = result.value
            if data is None:
                continue
            observations.append(
                EmitterObservation(
                    emitter_id=scan.emitter_id,
                    position=data.to_geo_point(),
                    accuracy_m=data.accuracy_m,
                    rssi=scan.rssi,
                    vertical_accuracy_m=data.vertical_accuracy_m,
                    timestamp_us=scan.timestamp_us,
                )
            )
            if len(observations) == self.max_measurements:
                break
        return observations

    def estimate_location(
        self,
        scan_results: Sequence[ScanResult],
        cancel_event: Optional[threading.Event] = None,
    ) -> Optional[Location]:
        """Estimate a location fix from scan results, or None."""
        observations = self.collect_observations(scan_results)
        if not observations:
            return None

        reference, measurements = build_measurements(observations)
        start = self._monotonic()
        estimate = self._estimator.estimate(
            measurements, self.confidence_level, reference, cancel_event
        )
        logger.debug(
            "estimate from %d emitters took %.1f ms",
            len(measurements),
            (self._monotonic() - start) * 1e3,
        )
        if estimate is None:
            return None

        # the fix is as old as the oldest reading it uses
        timestamp_us = min(o.timestamp_us for o in observations)
        age_ms = self._monotonic() * 1e3 - timestamp_us / 1e3
        time_ms = max(0, int(self._wall_clock() * 1e3 - age_ms))

        return Location(
            latitude=estimate.position.latitude,
            longitude=normalize_longitude(estimate.position.longitude),
            horizontal_accuracy_m=estimate.horizontal_accuracy,
            timestamp_us=timestamp_us,
            time_ms=time_ms,
            altitude_m=estimate.position.altitude,
            vertical_accuracy_m=estimate.vertical_accuracy,
        )

    def step(self, cancel_event: Optional[threading.Event] = None) -> bool:
        """
        Run one scan -> estimate -> report cycle.

        Returns:
            False if the scan failed, True otherwise (even when no location
            could be estimated).
        """
        scan = self._scanner.scan(self._scope)
        if scan.is_err():
            logger.debug("scan failed: %s", scan.error.value)
            return False

        location = self.estimate_location(scan.value, cancel_event)
        logger.debug("estimated location: %s", location)
        if location is not None:
            self._sink.report_location(location)
        return True

    def run(self, stop_event: threading.Event) -> None:
        """
        Run steps until ``stop_event`` is set.

        Successful steps are spaced ``interval_s`` apart. After a failed
        scan the task waits for the current back-off delay, which grows with
        every consecutive failure and is reset by the next successful scan.
        """
        logger.debug("started, interval: %.1f s", self.interval_s)
        while not stop_event.is_set():
            start = self._monotonic()
            if self.step(stop_event):
                self._backoff.reset()
                wait_s = self.interval_s - (self._monotonic() - start)
                if wait_s <= 0:
                    logger.debug("step took longer than the interval (%.1f s)", self.interval_s)
                    continue
            else:
                wait_s = self._backoff.current
                self._backoff.advance()
            stop_event.wait(wait_s)
