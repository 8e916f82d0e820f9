from __future__ import annotations

from typing import Protocol, Sequence

import logging

import numpy as np

from wpisysid.config import AnalysisConfig, DEFAULT_CONFIG
from wpisysid.core import AlignedSample, BucketResult, SingularDesignMatrix


logger = logging.getLogger(__name__)


class LeastSquaresSolver(Protocol):
    """Ordinary least squares: return x minimizing ||a @ x - b||.

    Implementations raise SingularDesignMatrix when there is no unique
    solution.
    """

    def __call__(self, a: np.ndarray, b: np.ndarray) -> np.ndarray:
        ...


def numpy_lstsq(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """SVD-based solver from numpy.linalg."""
    try:
        x, _, rank, _ = np.linalg.lstsq(a, b, rcond=None)
    except np.linalg.LinAlgError as e:
        raise SingularDesignMatrix(str(e)) from e
    if rank < a.shape[1]:
        raise SingularDesignMatrix(f"design matrix has rank {rank} < {a.shape[1]}")
    if not np.all(np.isfinite(x)):
        raise SingularDesignMatrix("least-squares solution is not finite")
    return x


def design_matrix(samples: Sequence[AlignedSample]) -> tuple[np.ndarray, np.ndarray]:
    """Columns sign(v), v, filtered acceleration; response is voltage."""
    velocity = np.array([s.velocity for s in samples], dtype=np.float64)
    accel = np.array([s.acceleration_filtered for s in samples], dtype=np.float64)
    voltage = np.array([s.voltage for s in samples], dtype=np.float64)
    a = np.column_stack([np.sign(velocity), velocity, accel])
    return a, voltage


def feedback_gain(kv: float, ka: float, ka_floor: float = 1e-10) -> float:
    """Critically damped proportional gain of a first-order velocity plant."""
    if abs(ka) < ka_floor:
        return 0.0
    return 2.0 * kv / ka


def relative_errors(residuals: np.ndarray, voltage: np.ndarray, floor: float) -> tuple[float, float]:
    """Mean and max of |r / V| over samples with |V| > floor (0.0 if none)."""
    mask = np.abs(voltage) > floor
    if not mask.any():
        return 0.0, 0.0
    rel = np.abs(residuals[mask] / voltage[mask])
    return float(rel.mean()), float(rel.max())


def solve_bucket(
    samples: Sequence[AlignedSample],
    ks: float,
    config: AnalysisConfig = DEFAULT_CONFIG,
    solver: LeastSquaresSolver = numpy_lstsq,
) -> BucketResult | None:
    """Fit voltage = ks*sign(v) + kv*v + ka*a over one bucket.

    Returns None for buckets with too few samples or an unsolvable fit.
    The fitted sign coefficient is not reported; `ks` is passed in.
    """
    if len(samples) <= config.min_bucket_samples:
        return None

    a, voltage = design_matrix(samples)
    try:
        coeff = solver(a, voltage)
    except SingularDesignMatrix as e:
        logger.warning("Error solving bucket of %d samples: %s", len(samples), e)
        return None

    kv = float(coeff[1])
    ka = float(coeff[2])
    residuals = voltage - a @ coeff
    avg_err, max_err = relative_errors(residuals, voltage, config.error_voltage_floor)

    return BucketResult(
        ks=float(ks),
        kv=kv,
        ka=ka,
        kp=feedback_gain(kv, ka, config.ka_floor),
        avg_rel_error=avg_err,
        max_rel_error=max_err,
        sample_count=len(samples),
    )
