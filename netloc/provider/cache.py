"""
Bounded LRU cache in front of a positioning-data source.

A single service request usually returns positioning data for a whole
neighbourhood of emitters, so later lookups of nearby emitters are served
from memory. Answers without a position are cached as well, otherwise an
emitter the service cannot locate would trigger a request on every scan.

Entries that have not been accessed for one sweep interval are evicted by
``sweep()``, which ``start()`` runs periodically on a timer thread.
"""

import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from netloc.provider.sources import PositioningDataSource
from netloc.provider.types import EmitterPositioningData, FetchError, PositioningData
from netloc.utils.result import Ok, Result

logger = logging.getLogger(__name__)

CACHE_CAPACITY = 1000
MAX_RESPONSE_SIZE = 100
SWEEP_INTERVAL_S = 15 * 60.0


@dataclass
class _Entry:
    data: EmitterPositioningData
    last_access: float


class PositioningDataCache:
    """
    Thread-safe LRU cache of emitter positioning data.

    Attributes:
        capacity: Maximum number of cached emitters.
        max_response_size: Maximum number of entries requested from (and
            accepted from) the source per fetch.
        sweep_interval_s: Idle time after which an entry is evicted.

    Example:
        >>> cache = PositioningDataCache(source)
        >>> cache.start()
        >>> result = cache.get_positioning_data("aa:bb:cc:dd:ee:ff")
        >>> cache.stop()
    """

    def __init__(
        self,
        source: PositioningDataSource,
        capacity: int = CACHE_CAPACITY,
        max_response_size: int = MAX_RESPONSE_SIZE,
        sweep_interval_s: float = SWEEP_INTERVAL_S,
        clock: Callable[[], float] = time.monotonic,
    ):
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        if max_response_size < 1:
            raise ValueError(f"max_response_size must be >= 1, got {max_response_size}")
        if not sweep_interval_s > 0:
            raise ValueError(f"sweep_interval_s must be positive, got {sweep_interval_s}")

        self.capacity = capacity
        self.max_response_size = max_response_size
        self.sweep_interval_s = sweep_interval_s
        self._source = source
        self._clock = clock
        self._entries: "OrderedDict[str, _Entry]" = OrderedDict()
        self._lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._running = False

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, emitter_id: str) -> bool:
        with self._lock:
            return emitter_id in self._entries

    def _lookup_locked(self, emitter_id: str) -> Tuple[bool, Optional[PositioningData]]:
        entry = self._entries.get(emitter_id)
        if entry is None:
            return False, None
        self._entries.move_to_end(emitter_id)
        entry.last_access = self._clock()
        return True, entry.data.positioning_data

    def _put_locked(self, data: EmitterPositioningData) -> None:
        self._entries[data.emitter_id] = _Entry(data, self._clock())
        self._entries.move_to_end(data.emitter_id)
        while len(self._entries) > self.capacity:
            self._entries.popitem(last=False)

    def put(self, data: EmitterPositioningData) -> None:
        """Insert or replace the entry of ``data.emitter_id``."""
        with self._lock:
            self._put_locked(data)

    def get_positioning_data(
        self, emitter_id: str, only_cached: bool = False
    ) -> Result[Optional[PositioningData], FetchError]:
        """
        Look up the positioning data of an emitter.

        Args:
            emitter_id: Emitter to look up.
            only_cached: Do not query the source on a cache miss.

        Returns:
            ``Ok(PositioningData)`` when the position is known, ``Ok(None)``
            when it is not (unknown to the service, not cached with
            ``only_cached``), or the source's ``Err(FetchError)``.
        """
        with self._lock:
            hit, data = self._lookup_locked(emitter_id)
        if hit:
            logger.debug("cache hit for %s: %s", emitter_id, data)
            return Ok(data)
        if only_cached:
            return Ok(None)

        logger.debug("querying positioning data for %s", emitter_id)
        response = self._source.fetch(emitter_id, self.max_response_size)
        if response.is_err():
            return response

        entries = response.value
        if len(entries) > self.max_response_size:
            logger.warning(
                "service response size (%d) is greater than %d, truncating",
                len(entries),
                self.max_response_size,
            )
            entries = entries[: self.max_response_size]

        with self._lock:
            for entry in entries:
                self._put_locked(entry)
            hit, data = self._lookup_locked(emitter_id)
        if hit:
            return Ok(data)

        logger.warning("no entry for %s in the service response", emitter_id)
        return Ok(None)

    def sweep(self) -> int:
        """Evict entries not accessed within the sweep interval.

        Returns:
            Number of evicted entries.
        """
        min_time = self._clock() - self.sweep_interval_s
        with self._lock:
            stale = [k for k, e in self._entries.items() if e.last_access < min_time]
            for key in stale:
                del self._entries[key]
        logger.debug("sweep removed %d entries", len(stale))
        return len(stale)

    def _schedule_locked(self) -> None:
        self._timer = threading.Timer(self.sweep_interval_s, self._on_timer)
        self._timer.daemon = True
        self._timer.start()

    def _on_timer(self) -> None:
        self.sweep()
        with self._lock:
            if self._running:
                self._schedule_locked()

    def start(self) -> None:
        """Start the periodic sweep. Calling it twice has no effect."""
        with self._lock:
            if self._running:
                return
            self._running = True
            self._schedule_locked()

    def stop(self) -> None:
        """Stop the periodic sweep."""
        with self._lock:
            self._running = False
            timer, self._timer = self._timer, None
        if timer is not None:
            timer.cancel()

    def __enter__(self) -> "PositioningDataCache":
        self.start()
        return self

    def __exit__(self, *exc) -> None:
        self.stop()
