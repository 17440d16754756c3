"""Quasi-Newton minimization of the squared residual norm."""

from __future__ import annotations

import logging
from typing import Callable, Optional, Tuple

import numpy as np

from ..linalg import identity, is_finite, norm
from ..model import BFGSOptions, SolverResult

logger = logging.getLogger(__name__)

_Evaluation = Tuple[float, np.ndarray]


def _make_objective(
    residuals: Callable[[np.ndarray], np.ndarray],
    jacobian: Callable[[np.ndarray], np.ndarray],
) -> Callable[[np.ndarray], Optional[_Evaluation]]:
    def objective(x: np.ndarray) -> Optional[_Evaluation]:
        r = residuals(x)
        jac = jacobian(x)
        if not (is_finite(r) and is_finite(jac)):
            return None
        return float(r @ r), 2.0 * (jac.T @ r)

    return objective


def _zoom(
    objective: Callable[[np.ndarray], Optional[_Evaluation]],
    x: np.ndarray,
    p: np.ndarray,
    f0: float,
    dphi0: float,
    lo: Tuple[float, float, Optional[np.ndarray]],
    hi: float,
    options: BFGSOptions,
) -> Optional[Tuple[float, float, np.ndarray]]:
    alpha_lo, f_lo, g_lo = lo
    alpha_hi = hi
    for _ in range(options.line_search_max_iterations):
        if abs(alpha_hi - alpha_lo) < options.min_step:
            break
        alpha = 0.5 * (alpha_lo + alpha_hi)
        evaluation = objective(x + alpha * p)
        if evaluation is None:
            alpha_hi = alpha
            continue
        f_a, g_a = evaluation
        if f_a > f0 + options.c1 * alpha * dphi0 or f_a >= f_lo:
            alpha_hi = alpha
            continue
        dphi_a = float(g_a @ p)
        if abs(dphi_a) <= -options.c2 * dphi0:
            return alpha, f_a, g_a
        if dphi_a * (alpha_hi - alpha_lo) >= 0.0:
            alpha_hi = alpha_lo
        alpha_lo, f_lo, g_lo = alpha, f_a, g_a
    if alpha_lo > 0.0 and g_lo is not None:
        # Sufficient decrease holds at alpha_lo even without the curvature condition.
        return alpha_lo, f_lo, g_lo
    return None


def line_search(
    objective: Callable[[np.ndarray], Optional[_Evaluation]],
    x: np.ndarray,
    p: np.ndarray,
    f0: float,
    g0: np.ndarray,
    options: BFGSOptions,
) -> Optional[Tuple[float, float, np.ndarray]]:
    """Strong-Wolfe line search along ``p``; ``None`` when no acceptable step exists."""

    dphi0 = float(g0 @ p)
    if dphi0 >= 0.0:
        return None
    alpha_prev, f_prev, g_prev = 0.0, f0, g0
    alpha = min(1.0, options.max_step)
    for i in range(options.line_search_max_iterations):
        evaluation = objective(x + alpha * p)
        if evaluation is None:
            alpha = 0.5 * (alpha_prev + alpha)
            if alpha - alpha_prev < options.min_step:
                return None
            continue
        f_a, g_a = evaluation
        if f_a > f0 + options.c1 * alpha * dphi0 or (i > 0 and f_a >= f_prev):
            return _zoom(objective, x, p, f0, dphi0, (alpha_prev, f_prev, g_prev if alpha_prev > 0 else None), alpha, options)
        dphi_a = float(g_a @ p)
        if abs(dphi_a) <= -options.c2 * dphi0:
            return alpha, f_a, g_a
        if dphi_a >= 0.0:
            return _zoom(objective, x, p, f0, dphi0, (alpha, f_a, g_a), alpha_prev, options)
        alpha_prev, f_prev, g_prev = alpha, f_a, g_a
        alpha = min(2.0 * alpha, options.max_step)
        if alpha <= alpha_prev:
            return alpha_prev, f_prev, g_prev
    if alpha_prev > 0.0:
        return alpha_prev, f_prev, g_prev
    return None


def solve_bfgs(
    x0: np.ndarray,
    residuals: Callable[[np.ndarray], np.ndarray],
    jacobian: Callable[[np.ndarray], np.ndarray],
    *,
    max_iterations: int,
    tolerance: float,
    options: Optional[BFGSOptions] = None,
    log_level: int = logging.DEBUG,
) -> SolverResult:
    options = options or BFGSOptions()
    objective = _make_objective(residuals, jacobian)
    x = np.array(x0, dtype=float)
    evaluation = objective(x)
    if evaluation is None:
        logger.warning("bfgs: non-finite residuals at the initial guess")
        return SolverResult(x, converged=False, iterations=0, failed=True)
    f, g = evaluation
    n = x.size
    h_inv = identity(n)
    scaled = False
    iterations = 0

    while iterations < max_iterations:
        if f <= tolerance * tolerance or norm(g) < options.gradient_tolerance:
            break
        p = -(h_inv @ g)
        if float(g @ p) >= 0.0:
            h_inv = identity(n)
            p = -g
        step = line_search(objective, x, p, f, g, options)
        if step is None:
            if scaled or not np.allclose(h_inv, identity(n)):
                logger.log(log_level, "bfgs: line search failed, resetting inverse Hessian")
                h_inv = identity(n)
                scaled = False
                iterations += 1
                continue
            logger.log(log_level, "bfgs: line search failed along steepest descent")
            break
        alpha, f_new, g_new = step
        s = alpha * p
        y = g_new - g
        x = x + s
        iterations += 1
        sy = float(s @ y)
        if sy > 0.0:
            if not scaled:
                h_inv = (sy / float(y @ y)) * identity(n)
                scaled = True
            rho = 1.0 / sy
            left = identity(n) - rho * np.outer(s, y)
            h_inv = left @ h_inv @ left.T + rho * np.outer(s, s)
        else:
            h_inv = identity(n)
            scaled = False
        logger.log(log_level, "bfgs: iter=%d f=%.6e step=%.3e", iterations, f_new, norm(s))
        f, g = f_new, g_new
        if norm(s) < options.step_tolerance:
            break

    residuals(x)
    converged = f <= tolerance * tolerance
    return SolverResult(x, converged=converged, iterations=iterations)


__all__ = ["line_search", "solve_bfgs"]
