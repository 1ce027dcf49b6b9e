"""Unit tests for building local measurements from geographic observations."""

import math

import pytest

from netloc.coords import EARTH_RADIUS, GeoPoint
from netloc.positioning import EmitterObservation, PositionEstimator, build_measurements


def observation(lat, lon, alt=None, accuracy=5.0, vertical=None, rssi=-60.0, emitter_id="ap"):
    return EmitterObservation(
        emitter_id=emitter_id,
        position=GeoPoint(lat, lon, alt),
        accuracy_m=accuracy,
        rssi=rssi,
        vertical_accuracy_m=vertical,
    )


class TestBuildMeasurements:
    def test_reference_is_median(self):
        obs = [observation(47.0, 8.0), observation(47.001, 8.002), observation(47.002, 8.001)]
        reference, measurements = build_measurements(obs)
        assert reference == GeoPoint(47.001, 8.001)
        assert len(measurements) == 3
        assert measurements[1].position.y == pytest.approx(0.0, abs=1e-9)

    def test_accuracy_is_squared(self):
        _, measurements = build_measurements(
            [observation(0.0, 0.0, alt=10.0, accuracy=4.0, vertical=3.0)]
        )
        assert measurements[0].horizontal_variance == pytest.approx(16.0)
        assert measurements[0].vertical_variance == pytest.approx(9.0)
        assert measurements[0].rssi == -60.0

    def test_vertical_variance_requires_altitude(self):
        _, measurements = build_measurements(
            [observation(0.0, 0.0, vertical=3.0), observation(0.0, 0.001, alt=5.0, vertical=3.0)]
        )
        assert measurements[0].vertical_variance is None
        assert measurements[0].position.z is None
        assert measurements[1].vertical_variance == pytest.approx(9.0)
        assert measurements[1].position.z == pytest.approx(0.0)

    def test_antimeridian_emitters_stay_close(self):
        obs = [observation(0.0, 179.9995), observation(0.0, -179.9995), observation(0.0, 179.9999)]
        reference, measurements = build_measurements(obs)
        for m in measurements:
            assert abs(m.position.x) < 200.0
        # -179.9995 lies 0.0006 deg east of the 179.9999 reference
        assert reference.longitude == pytest.approx(179.9999)
        assert measurements[1].position.x == pytest.approx(
            EARTH_RADIUS * math.radians(0.0006), rel=1e-6
        )

    def test_even_count_straddling_antimeridian(self):
        obs = [
            observation(0.0, 179.9995),
            observation(0.0, 179.9990),
            observation(0.0, -179.9995),
            observation(0.0, -179.9990),
        ]
        reference, measurements = build_measurements(obs)

        assert abs(reference.longitude) == pytest.approx(180.0, abs=1e-9)
        offset = EARTH_RADIUS * math.radians(0.0005)
        assert [m.position.x for m in measurements] == pytest.approx(
            [-offset, -2.0 * offset, offset, 2.0 * offset], rel=1e-6
        )

    def test_empty_raises(self):
        with pytest.raises(ValueError):
            build_measurements([])

    def test_invalid_accuracy_raises(self):
        with pytest.raises(ValueError):
            observation(0.0, 0.0, accuracy=0.0)
        with pytest.raises(ValueError):
            observation(0.0, 0.0, vertical=-1.0)

    def test_end_to_end_single_observation(self):
        reference, measurements = build_measurements([observation(51.5, -0.12, accuracy=10.0)])
        result = PositionEstimator().estimate(measurements, 0.68, reference)
        assert result.position.latitude == pytest.approx(51.5)
        assert result.position.longitude == pytest.approx(-0.12)
        assert result.horizontal_accuracy > 10.0
