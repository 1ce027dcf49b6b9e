"""Unit tests for netloc.eval.metrics."""

import unittest

import numpy as np
from numpy.testing import assert_allclose

from netloc.eval import (
    compute_error_stats,
    compute_position_errors,
    compute_rmse,
    horizontal_error_magnitudes,
    radius_coverage,
)


class TestPositionErrors(unittest.TestCase):
    def test_errors(self):
        truth = np.array([[0.0, 0.0], [1.0, 1.0]])
        est = np.array([[3.0, 4.0], [1.0, 2.0]])
        assert_allclose(compute_position_errors(truth, est), [[3.0, 4.0], [0.0, 1.0]])

    def test_shape_mismatch_raises(self):
        with self.assertRaises(ValueError):
            compute_position_errors(np.zeros((2, 2)), np.zeros((3, 2)))

    def test_horizontal_magnitudes_ignore_z(self):
        errors = np.array([[3.0, 4.0, 100.0], [0.0, 1.0, -5.0]])
        assert_allclose(horizontal_error_magnitudes(errors), [5.0, 1.0])


class TestRmse(unittest.TestCase):
    def test_scalar(self):
        self.assertAlmostEqual(compute_rmse(np.array([3.0, 4.0])), np.sqrt(12.5))

    def test_per_axis(self):
        errors = np.array([[1.0, 2.0], [1.0, 2.0]])
        assert_allclose(compute_rmse(errors, axis=0), [1.0, 2.0])


class TestErrorStats(unittest.TestCase):
    def test_stats(self):
        errors = np.column_stack([np.arange(1.0, 101.0), np.zeros(100)])
        stats = compute_error_stats(errors)

        self.assertAlmostEqual(stats["mean"], 50.5)
        self.assertAlmostEqual(stats["median"], 50.5)
        self.assertAlmostEqual(stats["cep50"], 50.5)
        self.assertAlmostEqual(stats["cep95"], np.percentile(np.arange(1.0, 101.0), 95))
        self.assertEqual(stats["max"], 100.0)
        self.assertLess(stats["cep50"], stats["cep68"])
        self.assertLess(stats["cep68"], stats["cep95"])

    def test_magnitudes_input(self):
        stats = compute_error_stats(np.array([-2.0, 2.0]))
        self.assertEqual(stats["mean"], 2.0)
        self.assertEqual(stats["std"], 0.0)

    def test_empty_raises(self):
        with self.assertRaises(ValueError):
            compute_error_stats(np.array([]))


class TestRadiusCoverage(unittest.TestCase):
    def test_coverage(self):
        errors = np.array([[1.0, 0.0], [0.0, 3.0], [2.0, 0.0], [0.0, 0.5]])
        self.assertAlmostEqual(radius_coverage(errors, [2.0, 2.0, 2.0, 2.0]), 0.75)

    def test_gaussian_coverage_matches_confidence(self):
        # 2D Gaussian errors with sigma=1: the 68% radius is sqrt(chi2(0.68, 2))
        rng = np.random.default_rng(0)
        errors = rng.normal(size=(20000, 2))
        radius = np.sqrt(-2.0 * np.log(1.0 - 0.68))
        coverage = radius_coverage(errors, np.full(20000, radius))
        self.assertAlmostEqual(coverage, 0.68, delta=0.02)

    def test_shape_mismatch_raises(self):
        with self.assertRaises(ValueError):
            radius_coverage(np.zeros((3, 2)), [1.0, 1.0])
