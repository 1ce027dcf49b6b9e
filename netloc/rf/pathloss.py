"""
Log-distance path-loss model and measurement variance propagation.

The received signal strength of an emitter at distance d follows

    rssi = rssi_1m - 10 * n * log10(d)

with rssi_1m the calibrated signal strength at one meter and n the
path-loss exponent. Inverting the model gives a pseudo-distance for every
RSSI reading. The RSSI noise (in dBm^2) is propagated to a distance variance
with a first-order (delta-method) approximation:

    var_d = (ln(10) / (10 * n) * d)^2 * var_rssi

The total per-observation variance adds the uncertainty of the emitter's own
geocoded position. Its inverse is the observation weight used by the
trilateration solver.

Both calibration constants are rough, environment-independent defaults and
are configurable through ``PathLossModel``.
"""

import math
import warnings
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

import numpy as np

ArrayLike = Union[float, np.ndarray]

DEFAULT_RSSI_AT_ONE_METER = -40.0  # dBm
DEFAULT_RSSI_VARIANCE = 4.0  # dBm^2


@dataclass(frozen=True)
class PathLossModel:
    """Calibration constants of the log-distance path-loss model.

    Attributes:
        rssi_at_one_meter: Expected RSSI one meter away from an emitter (dBm).
        rssi_variance: Assumed variance of an RSSI reading (dBm^2).

    Example:
        >>> model = PathLossModel(rssi_at_one_meter=-45.0, rssi_variance=9.0)
    """

    rssi_at_one_meter: float = DEFAULT_RSSI_AT_ONE_METER
    rssi_variance: float = DEFAULT_RSSI_VARIANCE

    def __post_init__(self) -> None:
        if not math.isfinite(self.rssi_at_one_meter):
            raise ValueError(
                f"rssi_at_one_meter must be finite, got {self.rssi_at_one_meter}"
            )
        if not (self.rssi_variance > 0 and math.isfinite(self.rssi_variance)):
            raise ValueError(
                f"rssi_variance must be positive and finite, got {self.rssi_variance}"
            )
        if self.rssi_at_one_meter > 0:
            warnings.warn(
                f"rssi_at_one_meter of {self.rssi_at_one_meter} dBm is unusually "
                f"high. Typical values are between -30 and -50 dBm.",
                UserWarning,
            )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PathLossModel":
        """Create a model from a (JSON-loaded) dictionary."""
        return cls(
            rssi_at_one_meter=float(
                data.get("rssi_at_one_meter", DEFAULT_RSSI_AT_ONE_METER)
            ),
            rssi_variance=float(data.get("rssi_variance", DEFAULT_RSSI_VARIANCE)),
        )


DEFAULT_PATH_LOSS_MODEL = PathLossModel()


def _check_exponent(path_loss_exponent: float) -> None:
    if not path_loss_exponent > 0:
        raise ValueError(
            f"Path-loss exponent must be positive, got {path_loss_exponent}"
        )


def rssi_to_distance(
    rssi: ArrayLike,
    path_loss_exponent: float,
    model: PathLossModel = DEFAULT_PATH_LOSS_MODEL,
) -> ArrayLike:
    """
    Estimate the distance to an emitter from its RSSI.

        d = 10^((rssi_1m - rssi) / (10 * n))

    Args:
        rssi: Received signal strength in dBm (scalar or array).
        path_loss_exponent: Path-loss exponent n (> 0).
        model: Path-loss calibration constants.

    Returns:
        Estimated distance in meters, same shape as ``rssi``.

    Example:
        >>> d = rssi_to_distance(-60.0, path_loss_exponent=2.0)
        >>> print(f"{d:.1f} m")
        10.0 m
    """
    _check_exponent(path_loss_exponent)
    exponent = (model.rssi_at_one_meter - np.asarray(rssi, dtype=float)) / (
        10.0 * path_loss_exponent
    )
    distance = 10.0**exponent
    if np.ndim(distance) == 0:
        return float(distance)
    return distance


def rssi_from_distance(
    distance: ArrayLike,
    path_loss_exponent: float,
    model: PathLossModel = DEFAULT_PATH_LOSS_MODEL,
) -> ArrayLike:
    """
    Expected RSSI at a given distance (forward path-loss model).

        rssi = rssi_1m - 10 * n * log10(d)

    Args:
        distance: Distance to the emitter in meters (> 0).
        path_loss_exponent: Path-loss exponent n.
        model: Path-loss calibration constants.

    Returns:
        RSSI in dBm, same shape as ``distance``.
    """
    _check_exponent(path_loss_exponent)
    distance = np.asarray(distance, dtype=float)
    if np.any(distance <= 0):
        raise ValueError("Distance must be positive")

    rssi = model.rssi_at_one_meter - 10.0 * path_loss_exponent * np.log10(distance)
    if np.ndim(rssi) == 0:
        return float(rssi)
    return rssi


def rssi_variance_to_distance_variance(
    rssi: ArrayLike,
    path_loss_exponent: float,
    model: PathLossModel = DEFAULT_PATH_LOSS_MODEL,
) -> ArrayLike:
    """
    Propagate the assumed RSSI variance to a distance variance.

    First-order approximation around the RSSI-derived distance d:

        var_d = (ln(10) / (10 * n) * d)^2 * var_rssi

    Args:
        rssi: Received signal strength in dBm.
        path_loss_exponent: Path-loss exponent n.
        model: Path-loss calibration constants (provides var_rssi).

    Returns:
        Distance variance in m^2.
    """
    d = np.asarray(rssi_to_distance(rssi, path_loss_exponent, model), dtype=float)
    factor = (math.log(10.0) / (10.0 * path_loss_exponent)) * d
    variance = factor * factor * model.rssi_variance
    if np.ndim(variance) == 0:
        return float(variance)
    return variance


def total_measurement_variance(
    rssi: ArrayLike,
    horizontal_variance: ArrayLike,
    path_loss_exponent: float,
    vertical_variance: Optional[ArrayLike] = None,
    solve_altitude: bool = False,
    model: PathLossModel = DEFAULT_PATH_LOSS_MODEL,
) -> ArrayLike:
    """
    Total variance of one pseudo-distance observation.

    Sum of the RSSI-derived distance variance and the emitter's horizontal
    position variance, plus its vertical position variance when solving in
    three dimensions.

    Args:
        rssi: Received signal strength in dBm.
        horizontal_variance: Emitter horizontal position variance (m^2).
        path_loss_exponent: Path-loss exponent n.
        vertical_variance: Emitter vertical position variance (m^2), or None.
        solve_altitude: Whether the altitude is part of the solved state.
        model: Path-loss calibration constants.

    Returns:
        Total variance in m^2 (always > 0).
    """
    variance = rssi_variance_to_distance_variance(rssi, path_loss_exponent, model)
    variance = variance + np.asarray(horizontal_variance, dtype=float)
    if solve_altitude and vertical_variance is not None:
        variance = variance + np.asarray(vertical_variance, dtype=float)
    if np.ndim(variance) == 0:
        return float(variance)
    return variance


def measurement_weights(
    rssi: np.ndarray,
    horizontal_variance: np.ndarray,
    path_loss_exponent: float,
    vertical_variance: Optional[np.ndarray] = None,
    solve_altitude: bool = False,
    model: PathLossModel = DEFAULT_PATH_LOSS_MODEL,
) -> np.ndarray:
    """
    Inverse-variance weights for a batch of observations.

    Returns:
        Array of weights 1 / total variance, shape (N,).
    """
    variance = total_measurement_variance(
        np.asarray(rssi, dtype=float),
        np.asarray(horizontal_variance, dtype=float),
        path_loss_exponent,
        vertical_variance=vertical_variance,
        solve_altitude=solve_altitude,
        model=model,
    )
    return 1.0 / np.atleast_1d(np.asarray(variance, dtype=float))


def simulate_rssi(
    distance: ArrayLike,
    path_loss_exponent: float,
    model: PathLossModel = DEFAULT_PATH_LOSS_MODEL,
    noise_std_db: float = 0.0,
    rng: Optional[np.random.Generator] = None,
) -> ArrayLike:
    """
    Simulate RSSI readings with optional Gaussian shadowing in dB.

    Args:
        distance: True distance(s) to the emitter in meters.
        path_loss_exponent: True path-loss exponent of the environment.
        model: Path-loss calibration constants.
        noise_std_db: Standard deviation of the log-normal shadowing (dB).
        rng: Random generator. If None, uses np.random.default_rng().

    Returns:
        Simulated RSSI in dBm.

    Example:
        >>> rng = np.random.default_rng(42)
        >>> rssi = simulate_rssi(np.array([5.0, 20.0]), 3.0, noise_std_db=2.0, rng=rng)
    """
    rssi = rssi_from_distance(distance, path_loss_exponent, model)
    if noise_std_db <= 0:
        return rssi

    if rng is None:
        rng = np.random.default_rng()
    noisy = np.asarray(rssi, dtype=float) + rng.normal(
        0.0, noise_std_db, size=np.shape(rssi)
    )
    if np.ndim(noisy) == 0:
        return float(noisy)
    return noisy
