"""
Contracts of the collaborators around the position estimator.

Implementations wrap a remote geocoding service, the platform's radio
scanner and the host that consumes location fixes. Expected failures are
returned as ``Err`` values instead of being raised.
"""

from abc import ABC, abstractmethod
from typing import Any, List, Optional

from netloc.provider.types import (
    EmitterPositioningData,
    FetchError,
    Location,
    ScanError,
    ScanResult,
)
from netloc.utils.result import Result


class PositioningDataSource(ABC):
    """Service that geocodes emitters."""

    @abstractmethod
    def fetch(
        self, emitter_id: str, max_results: int
    ) -> Result[List[EmitterPositioningData], FetchError]:
        """
        Fetch positioning data for an emitter and its neighbourhood.

        Args:
            emitter_id: Emitter to look up.
            max_results: Hint for the maximum number of entries to return.

        Returns:
            ``Ok`` with entries for the requested emitter and for nearby
            emitters the service chooses to include, or ``Err(FetchError)``.
        """
        pass


class RadioScanner(ABC):
    """Source of radio scan results."""

    @abstractmethod
    def scan(self, scope: Optional[Any] = None) -> Result[List[ScanResult], ScanError]:
        """
        Perform a scan.

        Args:
            scope: Opaque attribution of the request (e.g. the client the
                scan is performed for), passed through unchanged.

        Returns:
            ``Ok`` with the emitters heard, or ``Err(ScanError)``.
        """
        pass


class LocationSink(ABC):
    """Consumer of location fixes."""

    @abstractmethod
    def report_location(self, location: Location) -> None:
        """Deliver a location fix."""
        pass
