"""Dense linear algebra helpers used by the solvers and diagnostics.

``numpy.ndarray`` is the matrix type throughout; these helpers wrap the
``scipy.linalg`` calls so that singular or ill-posed systems come back as
``None`` instead of raising.
"""

from __future__ import annotations

import math
import warnings
from typing import Optional, Sequence, Tuple

import numpy as np
import scipy.linalg as sla

# Lengths and denominators below this floor are treated as degenerate.
_DENOM_EPS = 1e-10
_RANK_THRESHOLD = 1e-10

Vec2 = Tuple[float, float]


def _cross_2d(a: Sequence[float], b: Sequence[float]) -> float:
    return float(a[0] * b[1] - a[1] * b[0])


def _dot_2d(a: Sequence[float], b: Sequence[float]) -> float:
    return float(a[0] * b[0] + a[1] * b[1])


def _norm_2d(v: Sequence[float]) -> float:
    return math.hypot(v[0], v[1])


def _perp(v: Sequence[float]) -> np.ndarray:
    """Rotate ``v`` by +90 degrees."""

    return np.array([-v[1], v[0]], dtype=float)


def _unit_or_zero(v: np.ndarray) -> Tuple[np.ndarray, float]:
    length = _norm_2d(v)
    if length < _DENOM_EPS:
        return np.zeros(2, dtype=float), length
    return v / length, length


def identity(size: int) -> np.ndarray:
    return np.eye(size, dtype=float)


def norm(values: np.ndarray) -> float:
    if values.size == 0:
        return 0.0
    return float(np.linalg.norm(values))


def max_abs(values: np.ndarray) -> float:
    if values.size == 0:
        return 0.0
    return float(np.max(np.abs(values)))


def is_finite(values: np.ndarray) -> bool:
    return bool(np.all(np.isfinite(values)))


def solve_linear(a: np.ndarray, b: np.ndarray) -> Optional[np.ndarray]:
    """Solve the square system ``a @ x = b``; ``None`` when it is singular."""

    if a.ndim != 2 or a.shape[0] != a.shape[1] or a.shape[0] != b.shape[0]:
        return None
    if a.shape[0] == 0:
        return np.zeros(0, dtype=float)
    if not (is_finite(a) and is_finite(b)):
        return None
    with warnings.catch_warnings():
        warnings.simplefilter("error", sla.LinAlgWarning)
        try:
            x = sla.solve(a, b, check_finite=False)
        except (np.linalg.LinAlgError, sla.LinAlgWarning, ValueError):
            return None
    if not is_finite(x):
        return None
    return x


def least_squares_solve(a: np.ndarray, b: np.ndarray) -> Optional[np.ndarray]:
    """Minimum-norm least-squares solution of ``a @ x ≈ b``."""

    if a.shape[1] == 0:
        return np.zeros(0, dtype=float)
    if not (is_finite(a) and is_finite(b)):
        return None
    try:
        x, _, _, _ = sla.lstsq(a, b, check_finite=False)
    except (np.linalg.LinAlgError, ValueError):
        return None
    if not is_finite(x):
        return None
    return x


def qr_diagonal(a: np.ndarray) -> np.ndarray:
    """Return the diagonal of ``R`` from a column-pivoted QR of ``a``."""

    rows, cols = a.shape
    if rows == 0 or cols == 0:
        return np.zeros(0, dtype=float)
    r, _ = sla.qr(a, mode="r", pivoting=True, check_finite=False)
    k = min(rows, cols)
    return np.abs(np.diag(r[:k, :k]))


def numerical_rank(a: np.ndarray, threshold: float = _RANK_THRESHOLD) -> int:
    diag = qr_diagonal(a)
    if diag.size == 0:
        return 0
    cutoff = threshold * max(1.0, float(diag[0]))
    return int(np.count_nonzero(diag > cutoff))


def rank_deficiency(a: np.ndarray, threshold: float = _RANK_THRESHOLD) -> int:
    """Expected rank ``min(rows, cols)`` minus the numerical rank of ``a``."""

    expected = min(a.shape) if a.ndim == 2 else 0
    return expected - numerical_rank(a, threshold)


__all__ = [
    "Vec2",
    "_DENOM_EPS",
    "_RANK_THRESHOLD",
    "_cross_2d",
    "_dot_2d",
    "_norm_2d",
    "_perp",
    "_unit_or_zero",
    "identity",
    "is_finite",
    "least_squares_solve",
    "max_abs",
    "norm",
    "numerical_rank",
    "qr_diagonal",
    "rank_deficiency",
    "solve_linear",
]
