"""
Outlier Robustness of RANSAC Trilateration.

Monte-Carlo comparison of the robust estimator (RANSAC over candidate
path-loss exponents) with a plain weighted least-squares fit over all
measurements at the true path-loss exponent. A growing share of emitters is
geocoded to a wrong location (displaced by a few hundred meters) to mimic
moved access points.

Can run with:
    - Default: python demos/example_outlier_robustness.py
    - More trials: python demos/example_outlier_robustness.py --trials 500
    - Headless: python demos/example_outlier_robustness.py --no-show

Reports RMSE, CEP50/CEP95 and the coverage of the reported 68% radii.
"""

import argparse
import logging
import time
from pathlib import Path
from typing import Dict, List, Tuple

import matplotlib.pyplot as plt
import numpy as np
from tqdm import tqdm

from netloc.coords import LocalPoint
from netloc.estimators import geometric_median
from netloc.eval import compute_error_stats, radius_coverage
from netloc.positioning import EstimatorConfig, Measurement, PositionEstimator, trilaterate
from netloc.rf import simulate_rssi

CONFIDENCE_LEVEL = 0.68


def make_scenario(
    rng: np.random.Generator,
    n_emitters: int,
    outlier_fraction: float,
    true_exponent: float,
    noise_std_db: float,
    area_m: float = 100.0,
    emitter_accuracy_m: float = 5.0,
    displacement_m: float = 300.0,
) -> Tuple[np.ndarray, List[Measurement]]:
    """Draw a true position and measurements of randomly placed emitters.

    Returns:
        (true_position, measurements). Outlier emitters are reported at a
        position displaced by ``displacement_m`` in a random direction.
    """
    truth = rng.uniform(0.25 * area_m, 0.75 * area_m, size=2)
    emitters = rng.uniform(0.0, area_m, size=(n_emitters, 2))
    distances = np.maximum(np.linalg.norm(emitters - truth, axis=1), 1.0)
    rssi = simulate_rssi(distances, true_exponent, noise_std_db=noise_std_db, rng=rng)

    n_outliers = int(round(outlier_fraction * n_emitters))
    reported = emitters.copy()
    for i in rng.choice(n_emitters, size=n_outliers, replace=False):
        angle = rng.uniform(0.0, 2 * np.pi)
        reported[i] += displacement_m * np.array([np.cos(angle), np.sin(angle)])

    measurements = [
        Measurement(
            position=LocalPoint(float(p[0]), float(p[1])),
            horizontal_variance=emitter_accuracy_m**2,
            rssi=float(r),
        )
        for p, r in zip(reported, rssi)
    ]
    return truth, measurements


def plain_least_squares(
    measurements: List[Measurement], exponent: float
) -> Tuple[np.ndarray, float]:
    """Weighted least squares over all measurements, or NaNs on failure."""
    positions = np.array([m.position.to_array() for m in measurements])
    guess = LocalPoint.from_array(geometric_median(positions))
    result = trilaterate(measurements, exponent, guess, confidence_level=CONFIDENCE_LEVEL)
    if result.is_err():
        return np.full(2, np.nan), np.nan
    fit = result.value
    return fit.position.to_array(), fit.horizontal_accuracy


def run_comparison(
    outlier_fractions: List[float],
    n_trials: int,
    n_emitters: int,
    true_exponent: float,
    noise_std_db: float,
    seed: int,
) -> Dict[str, Dict[float, Dict[str, np.ndarray]]]:
    """Run the Monte-Carlo trials for every outlier fraction."""
    rng = np.random.default_rng(seed)
    estimator = PositionEstimator(EstimatorConfig(random_seed=seed))
    results: Dict[str, Dict[float, Dict[str, np.ndarray]]] = {"RANSAC": {}, "LS": {}}

    for fraction in tqdm(outlier_fractions, desc="Overall progress", unit="level"):
        errors = {"RANSAC": [], "LS": []}
        radii = {"RANSAC": [], "LS": []}
        for _ in tqdm(range(n_trials), desc=f"  {fraction:.0%} outliers", leave=False):
            truth, measurements = make_scenario(
                rng, n_emitters, fraction, true_exponent, noise_std_db
            )

            robust = estimator.estimate_local(measurements, CONFIDENCE_LEVEL)
            if robust is not None:
                errors["RANSAC"].append(robust.position.to_array() - truth)
                radii["RANSAC"].append(robust.horizontal_accuracy)

            position, radius = plain_least_squares(measurements, true_exponent)
            if np.all(np.isfinite(position)):
                errors["LS"].append(position - truth)
                radii["LS"].append(radius)

        for method in results:
            results[method][fraction] = {
                "errors": np.array(errors[method]).reshape(-1, 2),
                "radii": np.array(radii[method]),
            }
    return results


def print_summary(results: Dict[str, Dict[float, Dict[str, np.ndarray]]]) -> None:
    print("\n" + "=" * 70)
    print(f"Results Summary (meters, radius coverage at {CONFIDENCE_LEVEL:.0%})")
    print("=" * 70)
    print(f"{'Outliers':<10} {'Method':<8} {'RMSE':<10} {'CEP50':<10} {'CEP95':<10} {'Coverage':<10}")
    print("-" * 70)
    for fraction in results["RANSAC"]:
        for method in results:
            data = results[method][fraction]
            if len(data["errors"]) == 0:
                print(f"{fraction:<10.0%} {method:<8} no estimates")
                continue
            stats = compute_error_stats(data["errors"])
            coverage = radius_coverage(data["errors"], data["radii"])
            print(
                f"{fraction:<10.0%} {method:<8} {stats['rmse']:<10.2f} "
                f"{stats['cep50']:<10.2f} {stats['cep95']:<10.2f} {coverage:<10.2f}"
            )


def plot_comparison(results: Dict[str, Dict[float, Dict[str, np.ndarray]]]):
    """Plot error CDFs and CEP bars per outlier fraction."""
    fig, axes = plt.subplots(1, 2, figsize=(14, 5))
    fig.suptitle("Outlier Robustness: RANSAC vs Least Squares", fontsize=14, fontweight="bold")

    fractions = list(results["RANSAC"])
    colors = plt.cm.viridis(np.linspace(0, 0.9, len(fractions)))

    ax = axes[0]
    for color, fraction in zip(colors, fractions):
        for method, style in (("RANSAC", "-"), ("LS", "--")):
            errors = results[method][fraction]["errors"]
            if len(errors) == 0:
                continue
            magnitudes = np.sort(np.linalg.norm(errors, axis=1))
            cdf = np.arange(1, len(magnitudes) + 1) / len(magnitudes)
            ax.plot(magnitudes, cdf, style, color=color, label=f"{method} {fraction:.0%}")
    ax.set_xscale("log")
    ax.set_xlabel("Horizontal error (m)")
    ax.set_ylabel("CDF")
    ax.set_title("Error CDF (solid: RANSAC, dashed: LS)")
    ax.grid(True, alpha=0.3)
    ax.legend(fontsize=8, ncol=2)

    ax = axes[1]
    x = np.arange(len(fractions))
    width = 0.35
    for i, method in enumerate(results):
        cep50 = [
            compute_error_stats(results[method][f]["errors"])["cep50"]
            if len(results[method][f]["errors"]) > 0 else np.nan
            for f in fractions
        ]
        ax.bar(x + i * width, cep50, width, label=method)
    ax.set_xticks(x + width / 2)
    ax.set_xticklabels([f"{f:.0%}" for f in fractions])
    ax.set_xlabel("Outlier fraction")
    ax.set_ylabel("CEP50 (m)")
    ax.set_title("Median Horizontal Error")
    ax.grid(True, alpha=0.3, axis="y")
    ax.legend()

    plt.tight_layout()
    return fig


def main():
    """Run the outlier robustness comparison."""
    parser = argparse.ArgumentParser(
        description="Outlier robustness of RANSAC trilateration",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python demos/example_outlier_robustness.py
  python demos/example_outlier_robustness.py --trials 500 --emitters 9
  python demos/example_outlier_robustness.py --no-show --output out.png
        """,
    )
    parser.add_argument("--trials", type=int, default=100, help="Trials per outlier fraction")
    parser.add_argument("--emitters", type=int, default=8, help="Emitters per trial")
    parser.add_argument(
        "--exponent", type=float, default=3.2, help="True path-loss exponent"
    )
    parser.add_argument(
        "--noise", type=float, default=2.0, help="RSSI shadowing std (dB)"
    )
    parser.add_argument("--seed", type=int, default=42, help="Random seed")
    parser.add_argument(
        "--output", type=str, default=None,
        help="Output file for figure (default: demos/figs/outlier_robustness.png)",
    )
    parser.add_argument("--no-show", action="store_true", help="Do not open a window")
    parser.add_argument("--verbose", action="store_true", help="Log per-exponent outcomes")
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    print("\n" + "=" * 70)
    print("Outlier Robustness: RANSAC Trilateration")
    print("=" * 70)
    print(f"  Emitters: {args.emitters}, trials: {args.trials}")
    print(f"  True exponent: {args.exponent}, shadowing: {args.noise} dB")

    start = time.time()
    results = run_comparison(
        [0.0, 0.1, 0.2, 0.3],
        n_trials=args.trials,
        n_emitters=args.emitters,
        true_exponent=args.exponent,
        noise_std_db=args.noise,
        seed=args.seed,
    )
    print(f"\nAll trials completed in {time.time() - start:.2f}s")
    print_summary(results)

    plot_comparison(results)
    output_file = args.output or "demos/figs/outlier_robustness.png"
    Path(output_file).parent.mkdir(parents=True, exist_ok=True)
    plt.savefig(output_file, dpi=150, bbox_inches="tight")
    print(f"\nFigure saved: {output_file}")
    if not args.no_show:
        plt.show()


if __name__ == "__main__":
    main()
