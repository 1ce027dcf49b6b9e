"""
Evaluation metrics for position estimates.

Errors are evaluated on the horizontal plane. Besides the usual RMSE and
CEP percentiles, ``radius_coverage`` checks whether reported accuracy
radii are consistent: at confidence level c, about a fraction c of the
true positions should fall inside the reported radius.
"""

from typing import Dict, Optional, Sequence, Union

import numpy as np


def compute_position_errors(truth: np.ndarray, estimated: np.ndarray) -> np.ndarray:
    """
    Compute position error vectors.

    Args:
        truth: True positions, shape (N, 2) or (N, 3)
        estimated: Estimated positions, same shape as ``truth``

    Returns:
        errors: Error vectors ``estimated - truth``

    Raises:
        ValueError: If the shapes differ
    """
    truth = np.asarray(truth, dtype=float)
    estimated = np.asarray(estimated, dtype=float)
    if truth.shape != estimated.shape:
        raise ValueError(
            f"Shape mismatch: truth {truth.shape} vs estimated {estimated.shape}"
        )
    return estimated - truth


def horizontal_error_magnitudes(errors: np.ndarray) -> np.ndarray:
    """Horizontal error norms from error vectors of shape (N, 2) or (N, 3)."""
    errors = np.atleast_2d(np.asarray(errors, dtype=float))
    if errors.shape[1] < 2:
        raise ValueError(f"errors must have at least 2 columns, got {errors.shape}")
    return np.linalg.norm(errors[:, :2], axis=1)


def compute_rmse(errors: np.ndarray, axis: Optional[int] = None) -> Union[float, np.ndarray]:
    """
    Root mean square error.

    Args:
        errors: Error vectors, shape (N, d) or (N,)
        axis: None for a scalar over all entries, 0 per dimension, 1 per sample
    """
    errors = np.asarray(errors, dtype=float)
    if axis is None:
        return float(np.sqrt(np.mean(errors**2)))
    return np.sqrt(np.mean(errors**2, axis=axis))


def compute_error_stats(errors: np.ndarray) -> Dict[str, float]:
    """
    Horizontal error statistics.

    Args:
        errors: Error vectors (N, 2|3) or error magnitudes (N,)

    Returns:
        Dictionary with 'mean', 'median', 'std', 'rmse', 'cep50', 'cep68',
        'cep95' (circular error probable percentiles) and 'max', all in meters.
    """
    errors = np.asarray(errors, dtype=float)
    if errors.size == 0:
        raise ValueError("errors must not be empty")
    if errors.ndim > 1:
        magnitudes = horizontal_error_magnitudes(errors)
    else:
        magnitudes = np.abs(errors)

    return {
        "mean": float(np.mean(magnitudes)),
        "median": float(np.median(magnitudes)),
        "std": float(np.std(magnitudes)),
        "rmse": float(np.sqrt(np.mean(magnitudes**2))),
        "cep50": float(np.percentile(magnitudes, 50)),
        "cep68": float(np.percentile(magnitudes, 68)),
        "cep95": float(np.percentile(magnitudes, 95)),
        "max": float(np.max(magnitudes)),
    }


def radius_coverage(errors: np.ndarray, radii: Sequence[float]) -> float:
    """
    Fraction of estimates whose horizontal error lies within the reported radius.

    Example:
        >>> radius_coverage(np.array([1.0, 3.0]), [2.0, 2.0])
        0.5
    """
    errors = np.asarray(errors, dtype=float)
    magnitudes = horizontal_error_magnitudes(errors) if errors.ndim > 1 else np.abs(errors)
    radii = np.asarray(radii, dtype=float)
    if radii.shape != magnitudes.shape:
        raise ValueError(
            f"Shape mismatch: {magnitudes.shape[0]} errors vs {radii.shape} radii"
        )
    if magnitudes.size == 0:
        raise ValueError("errors must not be empty")
    return float(np.mean(magnitudes <= radii))
