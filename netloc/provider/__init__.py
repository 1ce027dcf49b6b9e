"""Collaborators of the position estimator.

This package provides:
- Data types shared with the positioning service, the scanner and the host
- Abstract contracts of those collaborators
- PositioningDataCache: bounded LRU cache in front of the positioning service
- ExponentialBackOff: retry delays after failed scans
- LocationReportingTask: periodic scan -> estimate -> report loop
"""

from netloc.provider.backoff import ExponentialBackOff
from netloc.provider.cache import (
    CACHE_CAPACITY,
    MAX_RESPONSE_SIZE,
    SWEEP_INTERVAL_S,
    PositioningDataCache,
)
from netloc.provider.reporting import LocationReportingTask
from netloc.provider.sources import LocationSink, PositioningDataSource, RadioScanner
from netloc.provider.types import (
    EmitterPositioningData,
    FetchError,
    Location,
    PositioningData,
    ScanError,
    ScanResult,
)

__all__ = [
    # Types
    "PositioningData",
    "EmitterPositioningData",
    "ScanResult",
    "Location",
    "FetchError",
    "ScanError",
    # Contracts
    "PositioningDataSource",
    "RadioScanner",
    "LocationSink",
    # Plumbing
    "PositioningDataCache",
    "CACHE_CAPACITY",
    "MAX_RESPONSE_SIZE",
    "SWEEP_INTERVAL_S",
    "ExponentialBackOff",
    "LocationReportingTask",
]
