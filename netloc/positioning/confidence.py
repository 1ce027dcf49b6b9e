"""Confidence radii from position covariances.

A position error e with covariance P is turned into an accuracy radius at
confidence level c through the chi-square quantile with the matching
degrees of freedom:

    horizontal: r = sqrt((σx² + σy²) · χ²(c, 2))
    vertical:   r = sqrt(σz² · χ²(c, 1))

The quantile is always the exact inverse CDF. The shortcut -2·ln(1 - c) is
only exact for two degrees of freedom and is not used.
"""

import math

from scipy import stats

HORIZONTAL_DOF = 2
VERTICAL_DOF = 1


def check_confidence_level(confidence: float) -> None:
    """Raise ``ValueError`` unless ``confidence`` lies strictly inside (0, 1)."""
    if not (0.0 < confidence < 1.0):
        raise ValueError(f"Confidence level must be in (0, 1), got {confidence}")


def chi_square_value(confidence: float, dof: int) -> float:
    """Chi-square quantile χ²(c, dof).

    Args:
        confidence: Confidence level c in (0, 1).
        dof: Degrees of freedom (>= 1).

    Returns:
        Value x with P(χ²_dof <= x) = c.

    Example:
        >>> round(chi_square_value(0.95, 2), 3)
        5.991
        >>> round(chi_square_value(0.95, 1), 3)
        3.841
    """
    check_confidence_level(confidence)
    if dof < 1:
        raise ValueError(f"Degrees of freedom must be positive, got {dof}")
    return float(stats.chi2.ppf(confidence, dof))


def horizontal_accuracy_radius(horizontal_variance: float, confidence: float) -> float:
    """Horizontal accuracy radius from the summed x/y variance (m²)."""
    return math.sqrt(horizontal_variance * chi_square_value(confidence, HORIZONTAL_DOF))


def vertical_accuracy_radius(vertical_variance: float, confidence: float) -> float:
    """Vertical accuracy radius from the z variance (m²)."""
    return math.sqrt(vertical_variance * chi_square_value(confidence, VERTICAL_DOF))
