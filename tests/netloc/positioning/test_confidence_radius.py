"""Unit tests for chi-square confidence radii."""

import math
import unittest

from scipy import stats

from netloc.positioning.confidence import (
    HORIZONTAL_DOF,
    VERTICAL_DOF,
    check_confidence_level,
    chi_square_value,
    horizontal_accuracy_radius,
    vertical_accuracy_radius,
)


class TestChiSquareValue(unittest.TestCase):
    def test_known_quantiles(self):
        self.assertAlmostEqual(chi_square_value(0.95, 2), 5.991, places=3)
        self.assertAlmostEqual(chi_square_value(0.95, 1), 3.841, places=3)
        self.assertAlmostEqual(chi_square_value(0.99, 3), 11.345, places=3)

    def test_two_dof_matches_closed_form(self):
        # only for two degrees of freedom: -2 ln(1 - c)
        for c in (0.39, 0.68, 0.95):
            self.assertAlmostEqual(chi_square_value(c, 2), -2.0 * math.log(1.0 - c), places=10)

    def test_one_dof_differs_from_closed_form(self):
        self.assertNotAlmostEqual(chi_square_value(0.68, 1), -2.0 * math.log(0.32), places=2)

    def test_matches_scipy(self):
        self.assertEqual(chi_square_value(0.68, 1), float(stats.chi2.ppf(0.68, 1)))

    def test_invalid_arguments_raise(self):
        for c in (0.0, 1.0, -0.1, 1.5, float("nan")):
            with self.assertRaises(ValueError):
                chi_square_value(c, 2)
        with self.assertRaises(ValueError):
            chi_square_value(0.5, 0)


class TestAccuracyRadius(unittest.TestCase):
    def test_horizontal_radius(self):
        r = horizontal_accuracy_radius(8.0, 0.95)
        self.assertAlmostEqual(r, math.sqrt(8.0 * stats.chi2.ppf(0.95, HORIZONTAL_DOF)))

    def test_vertical_radius(self):
        r = vertical_accuracy_radius(9.0, 0.68)
        self.assertAlmostEqual(r, 3.0 * math.sqrt(stats.chi2.ppf(0.68, VERTICAL_DOF)))

    def test_radius_grows_with_confidence(self):
        radii = [horizontal_accuracy_radius(10.0, c) for c in (0.5, 0.68, 0.9, 0.95, 0.99)]
        self.assertEqual(radii, sorted(radii))
        self.assertEqual(len(set(radii)), len(radii))

    def test_check_confidence_level(self):
        check_confidence_level(0.5)
        with self.assertRaises(ValueError):
            check_confidence_level(1.0)
