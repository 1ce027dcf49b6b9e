"""Evaluation metrics for position estimates."""

from netloc.eval.metrics import (
    compute_error_stats,
    compute_position_errors,
    compute_rmse,
    horizontal_error_magnitudes,
    radius_coverage,
)

__all__ = [
    "compute_position_errors",
    "horizontal_error_magnitudes",
    "compute_rmse",
    "compute_error_stats",
    "radius_coverage",
]
