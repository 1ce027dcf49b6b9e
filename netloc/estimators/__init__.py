"""
Estimation algorithms used by the position estimator.

Available estimators:
    - Geometric median (Weiszfeld)
    - Weighted nonlinear least squares (Levenberg-Marquardt)
"""

from netloc.estimators.geometric_median import geometric_median
from netloc.estimators.nonlinear_least_squares import (
    NonlinearLSResult,
    levenberg_marquardt,
)

__all__ = [
    "geometric_median",
    "levenberg_marquardt",
    "NonlinearLSResult",
]
