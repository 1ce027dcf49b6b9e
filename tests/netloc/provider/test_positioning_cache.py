"""Unit tests for PositioningDataCache."""

import pytest

from netloc.provider import (
    EmitterPositioningData,
    FetchError,
    PositioningData,
    PositioningDataCache,
    PositioningDataSource,
)
from netloc.utils import Err, Ok


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


class FakeSource(PositioningDataSource):
    """Answers with the requested emitter plus a fixed neighbourhood."""

    def __init__(self, neighbourhood=(), fail=False):
        self.neighbourhood = list(neighbourhood)
        self.fail = fail
        self.requests = []

    def fetch(self, emitter_id, max_results):
        self.requests.append((emitter_id, max_results))
        if self.fail:
            return Err(FetchError.UNAVAILABLE)
        return Ok([entry(emitter_id)] + self.neighbourhood)


def entry(emitter_id, located=True):
    data = PositioningData(47.0, 8.0, 10.0) if located else None
    return EmitterPositioningData(emitter_id, data)


@pytest.fixture
def clock():
    return FakeClock()


class TestLookup:
    def test_miss_fetches_and_caches_neighbourhood(self, clock):
        source = FakeSource([entry("b"), entry("c")])
        cache = PositioningDataCache(source, clock=clock)

        result = cache.get_positioning_data("a")

        assert result == Ok(PositioningData(47.0, 8.0, 10.0))
        assert source.requests == [("a", 100)]
        assert len(cache) == 3
        assert cache.get_positioning_data("c").is_ok()
        assert len(source.requests) == 1

    def test_only_cached_miss_does_not_fetch(self, clock):
        source = FakeSource()
        cache = PositioningDataCache(source, clock=clock)
        assert cache.get_positioning_data("a", only_cached=True) == Ok(None)
        assert source.requests == []

    def test_negative_answer_is_cached(self, clock):
        class UnlocatedSource(FakeSource):
            def fetch(self, emitter_id, max_results):
                self.requests.append((emitter_id, max_results))
                return Ok([entry(emitter_id, located=False)])

        source = UnlocatedSource()
        cache = PositioningDataCache(source, clock=clock)
        assert cache.get_positioning_data("hotspot") == Ok(None)
        assert cache.get_positioning_data("hotspot") == Ok(None)
        assert "hotspot" in cache
        assert len(source.requests) == 1

    def test_missing_from_response_is_not_cached(self, clock):
        class OtherSource(FakeSource):
            def fetch(self, emitter_id, max_results):
                return Ok([entry("other")])

        cache = PositioningDataCache(OtherSource(), clock=clock)
        assert cache.get_positioning_data("a") == Ok(None)
        assert "a" not in cache
        assert "other" in cache

    def test_fetch_error_is_propagated(self, clock):
        cache = PositioningDataCache(FakeSource(fail=True), clock=clock)
        assert cache.get_positioning_data("a") == Err(FetchError.UNAVAILABLE)
        assert len(cache) == 0

    def test_oversized_response_is_truncated(self, clock):
        source = FakeSource([entry(f"n{i}") for i in range(10)])
        cache = PositioningDataCache(source, max_response_size=4, clock=clock)
        cache.get_positioning_data("a")
        assert len(cache) == 4
        assert source.requests == [("a", 4)]


class TestEviction:
    def test_lru_capacity(self, clock):
        cache = PositioningDataCache(FakeSource(), capacity=2, clock=clock)
        cache.put(entry("a"))
        cache.put(entry("b"))
        cache.get_positioning_data("a", only_cached=True)
        cache.put(entry("c"))
        assert "a" in cache
        assert "b" not in cache
        assert "c" in cache

    def test_sweep_removes_idle_entries(self, clock):
        cache = PositioningDataCache(FakeSource(), sweep_interval_s=900.0, clock=clock)
        cache.put(entry("a"))
        cache.put(entry("b"))
        clock.now = 600.0
        cache.get_positioning_data("a", only_cached=True)
        clock.now = 1000.0

        assert cache.sweep() == 1
        assert "a" in cache
        assert "b" not in cache

    def test_start_stop(self, clock):
        cache = PositioningDataCache(FakeSource(), sweep_interval_s=3600.0, clock=clock)
        with cache:
            cache.start()
        cache.stop()

    @pytest.mark.parametrize(
        "kwargs", [{"capacity": 0}, {"max_response_size": 0}, {"sweep_interval_s": 0.0}]
    )
    def test_invalid_arguments_raise(self, kwargs):
        with pytest.raises(ValueError):
            PositioningDataCache(FakeSource(), **kwargs)
