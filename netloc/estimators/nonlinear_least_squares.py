"""
Weighted nonlinear least squares using Levenberg-Marquardt.

Mathematical Formulation:
    Given observations y and measurement model h(x), we seek:
        x̂ = argmin ½‖r(x)‖²_W
    where r(x) = y - h(x) is the residual vector and W = diag(w).

    Levenberg-Marquardt update:
        (J'WJ + μI) Δx = J'W r
    where μ is an adaptive damping parameter driven by the gain ratio
    between the actual and the predicted cost decrease.

    Parameter covariance at the optimum:
        P = (J'WJ)⁻¹
    With W holding inverse measurement variances, P is the first-order
    covariance of the estimate. It is not rescaled by the residual variance,
    so consistent (noise-free) data still yields a non-zero uncertainty.
"""

from dataclasses import dataclass
from typing import Callable, Optional

import numpy as np


@dataclass
class NonlinearLSResult:
    """Result container for nonlinear least squares optimization.

    Attributes:
        x: Estimated state vector.
        covariance: Covariance matrix (n × n), or None if not requested or
            singular.
        iterations: Number of iterations performed.
        residuals: Final residuals r = y - h(x̂).
        cost: Final cost value ½‖r‖²_W.
        converged: Whether the solver converged within the iteration cap.
        singular: Whether J'WJ at the optimum was numerically singular.
    """

    x: np.ndarray
    covariance: Optional[np.ndarray]
    iterations: int
    residuals: np.ndarray
    cost: float
    converged: bool
    singular: bool = False


def levenberg_marquardt(
    h: Callable[[np.ndarray], np.ndarray],
    jacobian: Callable[[np.ndarray], np.ndarray],
    y: np.ndarray,
    x0: np.ndarray,
    weights: Optional[np.ndarray] = None,
    max_iter: int = 1000,
    tol: float = 1e-8,
    gtol: float = 1e-10,
    ftol: float = 1e-12,
    mu0: float = 1e-3,
    singular_threshold: float = 1e-12,
    return_covariance: bool = True,
) -> NonlinearLSResult:
    """
    Levenberg-Marquardt solver for weighted nonlinear least squares.

    Solves: x̂ = argmin ½‖y - h(x)‖²_W

    Convergence is declared when any of the following holds:
        - the gradient J'Wr is below ``gtol`` (max-norm)
        - the step norm is below ``tol``
        - an accepted step reduces the cost by less than ``ftol`` relative
        - no damped step is accepted and the Gauss-Newton step predicts no
          decrease beyond ``ftol`` relative

    Args:
        h: Measurement model function h: R^n → R^m.
        jacobian: Function returning Jacobian matrix J = ∂h/∂x (m × n).
        y: Observation vector (m,).
        x0: Initial state estimate (n,).
        weights: Optional measurement weights (m,). If None, uses unit weights.
        max_iter: Maximum number of outer iterations.
        tol: Convergence tolerance on ‖Δx‖.
        gtol: Convergence tolerance on the gradient max-norm.
        ftol: Relative cost-decrease tolerance.
        mu0: Initial damping parameter.
        singular_threshold: Relative singular value threshold below which
            J'WJ is treated as singular.
        return_covariance: If True, compute covariance at final estimate.

    Returns:
        NonlinearLSResult containing estimate, covariance, and diagnostics.

    Example:
        >>> anchors = np.array([[0, 0], [10, 0], [0, 10], [10, 10]], dtype=float)
        >>> def h(x):
        ...     return np.linalg.norm(anchors - x, axis=1)
        >>> def jac(x):
        ...     diff = x - anchors
        ...     ranges = np.linalg.norm(diff, axis=1, keepdims=True)
        ...     return diff / np.maximum(ranges, 1e-10)
        >>> y = h(np.array([3.0, 4.0]))
        >>> result = levenberg_marquardt(h, jac, y, x0=np.array([5.0, 5.0]))
        >>> result.converged
        True
    """
    y = np.asarray(y, dtype=float)
    x0 = np.asarray(x0, dtype=float)

    if y.ndim != 1:
        raise ValueError(f"y must be 1D array, got shape {y.shape}")
    if x0.ndim != 1:
        raise ValueError(f"x0 must be 1D array, got shape {x0.shape}")
    if max_iter < 1:
        raise ValueError(f"max_iter must be >= 1, got {max_iter}")

    m = len(y)
    n = len(x0)
    x = x0.copy()

    if weights is None:
        w = np.ones(m)
    else:
        w = np.asarray(weights, dtype=float)
        if w.ndim != 1 or len(w) != m:
            raise ValueError(f"weights must be 1D array of length {m}")
        if np.any(w < 0):
            raise ValueError("weights must be non-negative")

    mu = mu0
    nu = 2.0

    converged = False
    iteration = 0

    with np.errstate(over="ignore", invalid="ignore", divide="ignore"):
        r = y - h(x)
        cost = 0.5 * np.sum(w * r * r)

        for iteration in range(max_iter):
            J = jacobian(x)
            if J.shape != (m, n):
                raise ValueError(f"Jacobian shape {J.shape}, expected ({m}, {n})")

            # Weighted normal equations: (J'WJ) Δx = J'Wr
            JtW = J.T * w
            JtWJ = JtW @ J
            JtWr = JtW @ r

            if not (np.all(np.isfinite(JtWJ)) and np.all(np.isfinite(JtWr))):
                break

            if np.max(np.abs(JtWr)) < gtol:
                converged = True
                break

            small_decrease = False
            accepted = False
            while True:
                JtWJ_damped = JtWJ + mu * np.eye(n)

                try:
                    delta_x = np.linalg.solve(JtWJ_damped, JtWr)
                except np.linalg.LinAlgError:
                    delta_x = np.linalg.lstsq(JtWJ_damped, JtWr, rcond=None)[0]

                x_new = x + delta_x
                r_new = y - h(x_new)
                cost_new = 0.5 * np.sum(w * r_new * r_new)

                # Predicted decrease: ½ Δx'(μΔx + J'Wr)
                predicted_decrease = 0.5 * delta_x @ (mu * delta_x + JtWr)
                actual_decrease = cost - cost_new

                if predicted_decrease > 1e-15 and np.isfinite(cost_new):
                    gain_ratio = actual_decrease / predicted_decrease
                else:
                    gain_ratio = 0.0

                if gain_ratio > 0:
                    x = x_new
                    r = r_new
                    small_decrease = actual_decrease <= ftol * cost
                    cost = cost_new
                    mu = mu * max(1.0 / 3.0, 1.0 - (2.0 * gain_ratio - 1.0) ** 3)
                    nu = 2.0
                    accepted = True
                    break

                mu = mu * nu
                nu = 2.0 * nu
                if mu > 1e10:
                    break

            if not accepted:
                # Damping exhausted: stationary only if a full Gauss-Newton
                # step cannot lower the cost either
                gn_step = np.linalg.lstsq(JtWJ, JtWr, rcond=None)[0]
                converged = bool(0.5 * (gn_step @ JtWr) <= max(ftol * cost, 1e-15))
                break

            if not np.all(np.isfinite(x)):
                break

            if np.linalg.norm(delta_x) < tol or small_decrease:
                converged = True
                break

    iterations = iteration + 1

    P = None
    singular = False
    if return_covariance and np.all(np.isfinite(x)):
        J = jacobian(x)
        JtWJ = (J.T * w) @ J
        if not np.all(np.isfinite(JtWJ)):
            singular = True
        else:
            s = np.linalg.svd(JtWJ, compute_uv=False)
            if s[0] <= 0.0 or s[-1] <= singular_threshold * s[0]:
                singular = True
            else:
                P = np.linalg.inv(JtWJ)

    return NonlinearLSResult(
        x=x,
        covariance=P,
        iterations=iterations,
        residuals=r,
        cost=float(cost),
        converged=converged and bool(np.all(np.isfinite(x))),
        singular=singular,
    )
