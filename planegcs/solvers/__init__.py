from __future__ import annotations

import logging
from typing import Callable

import numpy as np

from ..model import Algorithm, SolverParameters, SolverResult
from .bfgs import line_search, solve_bfgs
from .dogleg import dogleg_step, solve_dogleg
from .levenberg_marquardt import solve_levenberg_marquardt

ResidualFn = Callable[[np.ndarray], np.ndarray]


def run_solver(
    params: SolverParameters,
    x0: np.ndarray,
    residuals: ResidualFn,
    jacobian: ResidualFn,
) -> SolverResult:
    """Dispatch to the solver selected by ``params.algorithm``."""

    log_level = logging.INFO if params.debug_mode else logging.DEBUG
    common = dict(
        max_iterations=params.max_iterations,
        tolerance=params.convergence_tolerance,
        log_level=log_level,
    )
    algorithm = Algorithm(params.algorithm)
    if algorithm is Algorithm.BFGS:
        return solve_bfgs(x0, residuals, jacobian, options=params.bfgs_options, **common)
    if algorithm is Algorithm.LEVENBERG_MARQUARDT:
        return solve_levenberg_marquardt(x0, residuals, jacobian, options=params.lm_options, **common)
    return solve_dogleg(x0, residuals, jacobian, options=params.dogleg_options, **common)


__all__ = [
    "ResidualFn",
    "dogleg_step",
    "line_search",
    "run_solver",
    "solve_bfgs",
    "solve_dogleg",
    "solve_levenberg_marquardt",
]
