"""
Geometric median via the Weiszfeld algorithm.

The geometric median minimizes the sum of Euclidean distances to a point
set. Unlike the centroid, a minority of far-away points barely moves it,
which makes it a cheap and outlier-resistant starting point for the
nonlinear trilateration solver.

Weiszfeld iteration:
    w_i = 1 / max(||x - p_i||, eps)
    x <- sum(w_i * p_i) / sum(w_i)
"""

import numpy as np


def geometric_median(
    points: np.ndarray,
    max_iterations: int = 100,
    tolerance: float = 1e-6,
) -> np.ndarray:
    """
    Compute the geometric median of a set of points.

    The iteration starts at the first point, so the result is deterministic
    for a given input order.

    Args:
        points: Point set, shape (N, d) with N >= 1.
        max_iterations: Maximum number of Weiszfeld iterations.
        tolerance: Stop once the per-iteration shift falls below this value
            (meters). Also used as the distance floor in the weights.

    Returns:
        Geometric median, shape (d,).

    Raises:
        ValueError: If ``points`` is empty or not 2D.

    Example:
        >>> pts = np.array([[0.0, 0.0], [10.0, 0.0], [0.0, 10.0], [500.0, 500.0]])
        >>> m = geometric_median(pts)  # stays near the three clustered points
    """
    points = np.asarray(points, dtype=float)
    if points.ndim != 2 or points.shape[0] == 0:
        raise ValueError(f"points must have shape (N, d) with N >= 1, got {points.shape}")
    if max_iterations < 1:
        raise ValueError(f"max_iterations must be >= 1, got {max_iterations}")

    x = points[0].copy()

    for _ in range(max_iterations):
        distances = np.linalg.norm(points - x, axis=1)
        weights = 1.0 / np.maximum(distances, tolerance)

        x_new = weights @ points / np.sum(weights)
        shift = np.linalg.norm(x_new - x)
        x = x_new

        if shift < tolerance:
            break

    return x
