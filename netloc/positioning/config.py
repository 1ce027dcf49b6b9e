"""Tunable parameters of the position estimator.

All algorithm constants live in ``EstimatorConfig`` so they can be adjusted
(or loaded from JSON) without touching the solver code. The defaults match
typical Wi-Fi positioning conditions.
"""

import math
import warnings
from dataclasses import dataclass, field, fields
from typing import Any, Dict, Tuple

from netloc.rf.pathloss import PathLossModel

# 2.0, 2.3, ..., 5.9: free space through dense urban attenuation
DEFAULT_PATH_LOSS_EXPONENTS: Tuple[float, ...] = tuple(
    k / 10.0 for k in range(20, 60, 3)
)

# 84 distinct 3-element samples at 9 measurements
MAX_EXHAUSTIVE_MEASUREMENTS = 9


@dataclass(frozen=True)
class EstimatorConfig:
    """Configuration of the trilateration, RANSAC and exponent search.

    Attributes:
        path_loss_model: RSSI calibration constants.
        path_loss_exponents: Candidate exponents, in canonical evaluation
            order. Ties in the final reduction go to the earlier entry.
        single_measurement_exponent: Exponent assumed when only one
            measurement is available.
        sample_size: Measurements per RANSAC sample (fewer if not available).
        max_exhaustive_measurements: Largest measurement count for which all
            sample combinations are evaluated; above it samples are drawn
            at random.
        random_sample_iterations: Number of random samples drawn when
            exhaustive search is not used.
        random_seed: Seed of the default random generator for sampling.
        inlier_threshold: Maximum standardized residual (in standard
            deviations) for an inlier.
        early_exit_inlier_fraction: Stop sampling once the inlier count of
            the best sample exceeds this fraction of all measurements.
        max_iterations: Iteration cap of the Levenberg-Marquardt solver.
        singular_threshold: Relative singular value threshold for the
            covariance inversion.
        distance_epsilon: Added to modeled distances to avoid a zero
            derivative when the estimate sits on an emitter.
        median_max_iterations: Iteration cap of the geometric median.
        median_tolerance: Convergence tolerance of the geometric median (m).
    """

    path_loss_model: PathLossModel = field(default_factory=PathLossModel)
    path_loss_exponents: Tuple[float, ...] = DEFAULT_PATH_LOSS_EXPONENTS
    single_measurement_exponent: float = 3.0
    sample_size: int = 3
    max_exhaustive_measurements: int = MAX_EXHAUSTIVE_MEASUREMENTS
    random_sample_iterations: int = 100
    random_seed: int = 0
    inlier_threshold: float = 2.0
    early_exit_inlier_fraction: float = 0.8
    max_iterations: int = 1000
    singular_threshold: float = 1e-12
    distance_epsilon: float = 1e-12
    median_max_iterations: int = 100
    median_tolerance: float = 1e-6

    def __post_init__(self) -> None:
        """Validate the configuration."""
        if not isinstance(self.path_loss_model, PathLossModel):
            raise TypeError(
                f"path_loss_model must be a PathLossModel, got {type(self.path_loss_model)}"
            )

        exponents = tuple(float(n) for n in self.path_loss_exponents)
        object.__setattr__(self, "path_loss_exponents", exponents)
        if not exponents:
            raise ValueError("path_loss_exponents must not be empty")
        if any(not (n > 0 and math.isfinite(n)) for n in exponents):
            raise ValueError(f"path_loss_exponents must be positive, got {exponents}")
        if len(set(exponents)) != len(exponents):
            raise ValueError(f"path_loss_exponents must be unique, got {exponents}")
        if not self.single_measurement_exponent > 0:
            raise ValueError(
                f"single_measurement_exponent must be positive, got "
                f"{self.single_measurement_exponent}"
            )

        if self.sample_size < 2:
            raise ValueError(f"sample_size must be >= 2, got {self.sample_size}")
        if self.max_exhaustive_measurements < self.sample_size:
            raise ValueError(
                f"max_exhaustive_measurements ({self.max_exhaustive_measurements}) "
                f"must be >= sample_size ({self.sample_size})"
            )
        if self.random_sample_iterations < 1:
            raise ValueError(
                f"random_sample_iterations must be >= 1, got {self.random_sample_iterations}"
            )
        if not self.inlier_threshold > 0:
            raise ValueError(
                f"inlier_threshold must be positive, got {self.inlier_threshold}"
            )
        if not 0.0 < self.early_exit_inlier_fraction <= 1.0:
            raise ValueError(
                f"early_exit_inlier_fraction must be in (0, 1], got "
                f"{self.early_exit_inlier_fraction}"
            )
        if self.max_iterations < 1 or self.median_max_iterations < 1:
            raise ValueError("Iteration caps must be >= 1")
        if not (self.singular_threshold > 0 and self.distance_epsilon > 0
                and self.median_tolerance > 0):
            raise ValueError("Tolerances must be positive")

        if any(n < 1.5 or n > 8.0 for n in exponents):
            warnings.warn(
                f"Path-loss exponents {exponents} include values outside the "
                f"typical range [1.5, 8.0].",
                UserWarning,
            )
        if self.max_exhaustive_measurements > 15:
            warnings.warn(
                f"max_exhaustive_measurements of {self.max_exhaustive_measurements} "
                f"makes exhaustive sampling expensive "
                f"({math.comb(self.max_exhaustive_measurements, self.sample_size)} "
                f"samples per exponent).",
                UserWarning,
            )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EstimatorConfig":
        """Create a configuration from a (JSON-loaded) dictionary.

        Unknown keys raise ``ValueError``. ``path_loss_model`` may be given
        as a nested dictionary.

        Example:
            >>> cfg = EstimatorConfig.from_dict({
            ...     "path_loss_exponents": [2.0, 3.0, 4.0],
            ...     "path_loss_model": {"rssi_at_one_meter": -45.0},
            ... })
        """
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown configuration keys: {sorted(unknown)}")

        kwargs = dict(data)
        model = kwargs.get("path_loss_model")
        if isinstance(model, dict):
            kwargs["path_loss_model"] = PathLossModel.from_dict(model)
        if "path_loss_exponents" in kwargs:
            kwargs["path_loss_exponents"] = tuple(kwargs["path_loss_exponents"])
        return cls(**kwargs)


DEFAULT_CONFIG = EstimatorConfig()
