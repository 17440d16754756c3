from __future__ import annotations

import logging
from typing import Callable, Optional

import numpy as np

from ..linalg import identity, is_finite, max_abs, solve_linear
from ..model import LevenbergMarquardtOptions, SolverResult

logger = logging.getLogger(__name__)


def solve_levenberg_marquardt(
    x0: np.ndarray,
    residuals: Callable[[np.ndarray], np.ndarray],
    jacobian: Callable[[np.ndarray], np.ndarray],
    *,
    max_iterations: int,
    tolerance: float,
    options: Optional[LevenbergMarquardtOptions] = None,
    log_level: int = logging.DEBUG,
) -> SolverResult:
    """Damped Gauss-Newton: solve ``(J^T J + lambda I) delta = -J^T r`` per step.

    ``lambda`` shrinks after a step that reduces the error and grows after a
    rejected or singular step, always within ``[lambda_min, lambda_max]``.
    """

    options = options or LevenbergMarquardtOptions()
    x = np.array(x0, dtype=float)
    r = residuals(x)
    jac = jacobian(x)
    if not (is_finite(r) and is_finite(jac)):
        logger.warning("lm: non-finite residuals at the initial guess")
        return SolverResult(x, converged=False, iterations=0, failed=True)

    lam = options.initial_lambda
    f = float(r @ r)
    iterations = 0

    while iterations < max_iterations:
        if max_abs(r) <= tolerance:
            break
        g = jac.T @ r
        if max_abs(g) < options.gradient_tolerance:
            logger.log(log_level, "lm: gradient vanished at iter=%d err=%.3e", iterations, max_abs(r))
            break
        normal = jac.T @ jac
        eye = identity(x.size)
        accepted = False
        for _ in range(options.max_inner_iterations):
            delta = solve_linear(normal + lam * eye, -g)
            if delta is None:
                lam = min(lam * options.lambda_up, options.lambda_max)
                continue
            x_new = x + delta
            r_new = residuals(x_new)
            if not is_finite(r_new):
                lam = min(lam * options.lambda_up, options.lambda_max)
                continue
            f_new = float(r_new @ r_new)
            model = r + jac @ delta
            predicted = f - float(model @ model)
            actual = f - f_new
            if predicted > options.eps1 and actual > 0.0:
                x, r, f = x_new, r_new, f_new
                jac = jacobian(x)
                lam = max(lam * options.lambda_down, options.lambda_min)
                accepted = True
                logger.log(
                    log_level,
                    "lm: iter=%d err=%.6e lambda=%.3e gain=%.3f",
                    iterations + 1,
                    max_abs(r),
                    lam,
                    actual / predicted,
                )
                break
            lam = min(lam * options.lambda_up, options.lambda_max)
        iterations += 1
        if not accepted:
            logger.log(log_level, "lm: no acceptable step at iter=%d lambda=%.3e", iterations, lam)
            break
        if not is_finite(jac):
            residuals(x)
            return SolverResult(x, converged=False, iterations=iterations, failed=True)

    residuals(x)
    return SolverResult(x, converged=max_abs(r) <= tolerance, iterations=iterations)


__all__ = ["solve_levenberg_marquardt"]
