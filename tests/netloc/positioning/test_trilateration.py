"""
Unit tests for weighted trilateration.

Measurements are generated noise-free from a known position so the solver
must recover it exactly (up to solver tolerance).
"""

import unittest

import numpy as np
from numpy.testing import assert_allclose

from netloc.coords import LocalPoint
from netloc.positioning import (
    EstimatorConfig,
    Measurement,
    TrilaterationError,
    solves_altitude,
    trilaterate,
)
from netloc.rf import PathLossModel, rssi_from_distance


def make_measurements(truth, emitters, exponent, horizontal_variance=25.0,
                      vertical_variance=None, model=PathLossModel()):
    truth = np.asarray(truth, dtype=float)
    measurements = []
    for e in emitters:
        e = np.asarray(e, dtype=float)
        distance = np.linalg.norm(e[: len(truth)] - truth)
        measurements.append(
            Measurement(
                position=LocalPoint.from_array(e),
                horizontal_variance=horizontal_variance,
                rssi=rssi_from_distance(distance, exponent, model),
                vertical_variance=vertical_variance,
            )
        )
    return measurements


class TestTrilaterate2D(unittest.TestCase):
    def setUp(self):
        self.truth = np.array([30.0, 40.0])
        self.emitters = [(0.0, 0.0), (100.0, 0.0), (0.0, 100.0), (100.0, 100.0)]
        self.measurements = make_measurements(self.truth, self.emitters, 3.2)

    def test_recovers_truth(self):
        result = trilaterate(self.measurements, 3.2, LocalPoint(50.0, 50.0))

        self.assertTrue(result.is_ok())
        fit = result.value
        assert_allclose([fit.position.x, fit.position.y], self.truth, atol=1e-4)
        self.assertIsNone(fit.position.z)
        self.assertIsNone(fit.vertical_accuracy)
        self.assertGreater(fit.horizontal_accuracy, 0.0)

    def test_radius_shrinks_with_rssi_variance(self):
        radii = []
        for rssi_variance in (16.0, 4.0, 1.0):
            model = PathLossModel(rssi_variance=rssi_variance)
            ms = make_measurements(self.truth, self.emitters, 3.2, model=model)
            result = trilaterate(
                ms, 3.2, LocalPoint(50.0, 50.0), config=EstimatorConfig(path_loss_model=model)
            )
            radii.append(result.value.horizontal_accuracy)
        self.assertGreater(radii[0], radii[1])
        self.assertGreater(radii[1], radii[2])

    def test_radius_grows_with_confidence(self):
        low = trilaterate(self.measurements, 3.2, LocalPoint(50.0, 50.0), 0.68).value
        high = trilaterate(self.measurements, 3.2, LocalPoint(50.0, 50.0), 0.95).value
        self.assertLess(low.horizontal_accuracy, high.horizontal_accuracy)
        assert_allclose(
            [low.position.x, low.position.y], [high.position.x, high.position.y]
        )

    def test_two_measurements(self):
        ms = make_measurements(self.truth, self.emitters[:2], 3.2)
        result = trilaterate(ms, 3.2, LocalPoint(40.0, 30.0))
        self.assertTrue(result.is_ok())
        assert_allclose(
            [result.value.position.x, result.value.position.y], self.truth, atol=1e-3
        )

    def test_insufficient_measurements(self):
        result = trilaterate(self.measurements[:1], 3.2, LocalPoint(0.0, 0.0))
        self.assertEqual(result.error, TrilaterationError.INSUFFICIENT_MEASUREMENTS)

    def test_collinear_emitters_are_singular(self):
        ms = make_measurements(
            np.array([5.0, 0.0]), [(0.0, 0.0), (10.0, 0.0), (20.0, 0.0)], 3.2
        )
        result = trilaterate(ms, 3.2, LocalPoint(4.0, 0.0))
        self.assertTrue(result.is_err())
        self.assertEqual(result.error, TrilaterationError.SINGULAR_GEOMETRY)

    def test_iteration_cap_is_non_convergence(self):
        config = EstimatorConfig(max_iterations=1)
        result = trilaterate(self.measurements, 3.2, LocalPoint(500.0, -400.0), config=config)
        self.assertEqual(result.error, TrilaterationError.NON_CONVERGENCE)

    def test_invalid_confidence_raises(self):
        with self.assertRaises(ValueError):
            trilaterate(self.measurements, 3.2, LocalPoint(0.0, 0.0), confidence_level=1.0)

    def test_does_not_modify_input(self):
        before = list(self.measurements)
        trilaterate(self.measurements, 3.2, LocalPoint(50.0, 50.0))
        self.assertEqual(self.measurements, before)


class TestTrilaterate3D(unittest.TestCase):
    def setUp(self):
        self.truth = np.array([30.0, 40.0, 5.0])
        self.emitters = [
            (0.0, 0.0, 0.0),
            (100.0, 0.0, 10.0),
            (0.0, 100.0, 20.0),
            (100.0, 100.0, 0.0),
        ]

    def test_recovers_altitude(self):
        ms = make_measurements(self.truth, self.emitters, 3.2, vertical_variance=9.0)
        self.assertTrue(solves_altitude(ms))

        result = trilaterate(ms, 3.2, LocalPoint(50.0, 50.0))

        self.assertTrue(result.is_ok())
        p = result.value.position
        assert_allclose([p.x, p.y, p.z], self.truth, atol=1e-3)
        self.assertIsNotNone(result.value.vertical_accuracy)
        self.assertGreater(result.value.vertical_accuracy, 0.0)

    def test_missing_vertical_variance_falls_back_to_2d(self):
        ms = make_measurements(self.truth[:2], self.emitters, 3.2)
        self.assertFalse(solves_altitude(ms))
        result = trilaterate(ms, 3.2, LocalPoint(50.0, 50.0))
        self.assertIsNone(result.value.position.z)
        self.assertIsNone(result.value.vertical_accuracy)

    def test_two_measurements_never_solve_altitude(self):
        ms = make_measurements(self.truth, self.emitters[:2], 3.2, vertical_variance=9.0)
        self.assertFalse(solves_altitude(ms))


if __name__ == "__main__":
    unittest.main()
