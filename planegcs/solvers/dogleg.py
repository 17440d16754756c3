"""Powell's dog-leg trust-region method."""

from __future__ import annotations

import logging
import math
from typing import Callable, Optional

import numpy as np

from ..linalg import is_finite, least_squares_solve, max_abs, norm
from ..model import DogLegOptions, SolverResult

logger = logging.getLogger(__name__)


def dogleg_step(
    gauss_newton: Optional[np.ndarray], steepest: np.ndarray, radius: float
) -> np.ndarray:
    """Point on the dog-leg path ``0 -> steepest -> gauss_newton`` clipped to ``radius``."""

    if gauss_newton is not None and norm(gauss_newton) <= radius:
        return gauss_newton
    sd_norm = norm(steepest)
    if gauss_newton is None or sd_norm >= radius:
        if sd_norm == 0.0:
            return steepest
        return (radius / sd_norm) * steepest
    # Solve |sd + beta (gn - sd)| = radius for beta in [0, 1].
    diff = gauss_newton - steepest
    a = float(diff @ diff)
    b = 2.0 * float(steepest @ diff)
    c = sd_norm * sd_norm - radius * radius
    if a <= 0.0:
        return steepest
    beta = (-b + math.sqrt(max(b * b - 4.0 * a * c, 0.0))) / (2.0 * a)
    return steepest + min(max(beta, 0.0), 1.0) * diff


def solve_dogleg(
    x0: np.ndarray,
    residuals: Callable[[np.ndarray], np.ndarray],
    jacobian: Callable[[np.ndarray], np.ndarray],
    *,
    max_iterations: int,
    tolerance: float,
    options: Optional[DogLegOptions] = None,
    log_level: int = logging.DEBUG,
) -> SolverResult:
    options = options or DogLegOptions()
    x = np.array(x0, dtype=float)
    r = residuals(x)
    jac = jacobian(x)
    if not (is_finite(r) and is_finite(jac)):
        logger.warning("dogleg: non-finite residuals at the initial guess")
        return SolverResult(x, converged=False, iterations=0, failed=True)

    radius = min(max(options.trust_region_radius, options.min_trust_region_radius), options.max_trust_region_radius)
    iterations = 0

    while iterations < max_iterations:
        if max_abs(r) <= tolerance:
            break
        g = jac.T @ r
        if max_abs(g) < options.gradient_tolerance:
            logger.log(log_level, "dogleg: gradient vanished at iter=%d err=%.3e", iterations, max_abs(r))
            break

        jg = jac @ g
        jg_sq = float(jg @ jg)
        if jg_sq > 0.0:
            steepest = -(float(g @ g) / jg_sq) * g
        else:
            steepest = -g
        gauss_newton = least_squares_solve(jac, -r)
        h = dogleg_step(gauss_newton, steepest, radius)
        h_norm = norm(h)
        if h_norm <= options.step_tolerance * (norm(x) + options.step_tolerance):
            logger.log(log_level, "dogleg: step below tolerance at iter=%d", iterations)
            break

        x_new = x + h
        r_new = residuals(x_new)
        jh = jac @ h
        predicted = -float(g @ h) - 0.5 * float(jh @ jh)
        if is_finite(r_new) and predicted > 0.0:
            actual = 0.5 * (float(r @ r) - float(r_new @ r_new))
            rho = actual / predicted
        else:
            rho = -1.0

        iterations += 1
        if rho > options.eta:
            x, r = x_new, r_new
            jac = jacobian(x)
            if not is_finite(jac):
                residuals(x)
                return SolverResult(x, converged=False, iterations=iterations, failed=True)

        if rho > 0.75:
            radius = max(radius, 3.0 * h_norm)
        elif rho < 0.25:
            radius = 0.5 * radius
        radius = min(max(radius, options.min_trust_region_radius), options.max_trust_region_radius)
        logger.log(
            log_level, "dogleg: iter=%d err=%.6e radius=%.3e rho=%.3f", iterations, max_abs(r), radius, rho
        )
        if rho <= options.eta and radius <= options.min_trust_region_radius:
            logger.log(log_level, "dogleg: trust region collapsed at iter=%d", iterations)
            break

    residuals(x)
    return SolverResult(x, converged=max_abs(r) <= tolerance, iterations=iterations)


__all__ = ["dogleg_step", "solve_dogleg"]
