"""Unit tests for netloc.rf.pathloss."""

import math
import unittest
import warnings

import numpy as np
from numpy.testing import assert_allclose

from netloc.rf import (
    DEFAULT_PATH_LOSS_MODEL,
    PathLossModel,
    measurement_weights,
    rssi_from_distance,
    rssi_to_distance,
    rssi_variance_to_distance_variance,
    simulate_rssi,
    total_measurement_variance,
)


class TestPathLossModel(unittest.TestCase):
    def test_defaults(self):
        self.assertEqual(DEFAULT_PATH_LOSS_MODEL.rssi_at_one_meter, -40.0)
        self.assertEqual(DEFAULT_PATH_LOSS_MODEL.rssi_variance, 4.0)

    def test_invalid_variance_raises(self):
        with self.assertRaises(ValueError):
            PathLossModel(rssi_variance=0.0)
        with self.assertRaises(ValueError):
            PathLossModel(rssi_variance=-1.0)

    def test_positive_reference_rssi_warns(self):
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            PathLossModel(rssi_at_one_meter=5.0)
        self.assertTrue(any(issubclass(w.category, UserWarning) for w in caught))

    def test_from_dict(self):
        model = PathLossModel.from_dict({"rssi_at_one_meter": -45})
        self.assertEqual(model.rssi_at_one_meter, -45.0)
        self.assertEqual(model.rssi_variance, 4.0)


class TestRssiToDistance(unittest.TestCase):
    def test_known_values(self):
        self.assertAlmostEqual(rssi_to_distance(-60.0, 2.0), 10.0)
        self.assertAlmostEqual(rssi_to_distance(-40.0, 3.0), 1.0)
        self.assertAlmostEqual(rssi_to_distance(-70.0, 3.0), 10.0)

    def test_array_input(self):
        d = rssi_to_distance(np.array([-40.0, -60.0, -80.0]), 2.0)
        assert_allclose(d, [1.0, 10.0, 100.0])

    def test_inverse_of_forward_model(self):
        distances = np.array([0.5, 3.0, 42.0, 250.0])
        for n in (2.0, 3.5, 5.9):
            assert_allclose(rssi_to_distance(rssi_from_distance(distances, n), n), distances)

    def test_custom_model(self):
        model = PathLossModel(rssi_at_one_meter=-50.0)
        self.assertAlmostEqual(rssi_to_distance(-70.0, 2.0, model), 10.0)

    def test_non_positive_exponent_raises(self):
        with self.assertRaises(ValueError):
            rssi_to_distance(-60.0, 0.0)
        with self.assertRaises(ValueError):
            rssi_from_distance(10.0, -2.0)

    def test_non_positive_distance_raises(self):
        with self.assertRaises(ValueError):
            rssi_from_distance(0.0, 2.0)


class TestVariancePropagation(unittest.TestCase):
    def test_distance_variance_formula(self):
        # d = 10 m at n = 2: (ln10 / 20 * 10)^2 * 4
        expected = (math.log(10.0) / 20.0 * 10.0) ** 2 * 4.0
        self.assertAlmostEqual(rssi_variance_to_distance_variance(-60.0, 2.0), expected)

    def test_variance_grows_with_distance(self):
        v = rssi_variance_to_distance_variance(np.array([-50.0, -60.0, -70.0]), 3.0)
        self.assertTrue(np.all(np.diff(v) > 0))

    def test_variance_scales_with_rssi_variance(self):
        low = rssi_variance_to_distance_variance(-60.0, 2.0, PathLossModel(rssi_variance=1.0))
        high = rssi_variance_to_distance_variance(-60.0, 2.0, PathLossModel(rssi_variance=4.0))
        self.assertAlmostEqual(high, 4.0 * low)

    def test_total_variance_horizontal(self):
        base = rssi_variance_to_distance_variance(-60.0, 2.0)
        self.assertAlmostEqual(total_measurement_variance(-60.0, 25.0, 2.0), base + 25.0)

    def test_total_variance_vertical_only_when_solving_altitude(self):
        base = rssi_variance_to_distance_variance(-60.0, 2.0)
        self.assertAlmostEqual(
            total_measurement_variance(-60.0, 25.0, 2.0, vertical_variance=9.0),
            base + 25.0,
        )
        self.assertAlmostEqual(
            total_measurement_variance(
                -60.0, 25.0, 2.0, vertical_variance=9.0, solve_altitude=True
            ),
            base + 34.0,
        )

    def test_weights_are_inverse_variances(self):
        rssi = np.array([-55.0, -65.0])
        hv = np.array([4.0, 16.0])
        w = measurement_weights(rssi, hv, 3.0)
        assert_allclose(w, 1.0 / total_measurement_variance(rssi, hv, 3.0))
        self.assertEqual(w.shape, (2,))


class TestSimulateRssi(unittest.TestCase):
    def test_noise_free(self):
        self.assertAlmostEqual(simulate_rssi(10.0, 2.0), -60.0)

    def test_seeded_noise_is_reproducible(self):
        a = simulate_rssi(np.array([5.0, 20.0]), 3.0, noise_std_db=2.0,
                          rng=np.random.default_rng(7))
        b = simulate_rssi(np.array([5.0, 20.0]), 3.0, noise_std_db=2.0,
                          rng=np.random.default_rng(7))
        assert_allclose(a, b)
        self.assertFalse(np.allclose(a, simulate_rssi(np.array([5.0, 20.0]), 3.0)))
