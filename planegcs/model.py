"""Configuration bundles, status enums and result records."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

import numpy as np


class Algorithm(str, Enum):
    BFGS = "bfgs"
    LEVENBERG_MARQUARDT = "lm"
    DOG_LEG = "dogleg"


class SolveStatus(str, Enum):
    SUCCESS = "success"
    CONVERGED_TO_LOCAL_MINIMUM = "converged_to_local_minimum"
    NOT_CONVERGED = "not_converged"
    FAILED = "failed"

    @property
    def ok(self) -> bool:
        """Success or soft success."""

        return self in (SolveStatus.SUCCESS, SolveStatus.CONVERGED_TO_LOCAL_MINIMUM)


class SystemState(str, Enum):
    EMPTY = "empty"
    CONFIGURED = "configured"
    PARTITIONED = "partitioned"
    SOLVED = "solved"


@dataclass
class BFGSOptions:
    """Line-search and stopping knobs for the quasi-Newton solver."""

    line_search_max_iterations: int = 50
    # Wolfe sufficient-decrease and curvature constants.
    c1: float = 1e-4
    c2: float = 0.9
    max_step: float = 10.0
    min_step: float = 1e-16
    gradient_tolerance: float = 1e-14
    step_tolerance: float = 1e-14


@dataclass
class LevenbergMarquardtOptions:
    """Damping schedule for Levenberg-Marquardt."""

    initial_lambda: float = 1e-3
    lambda_up: float = 10.0
    lambda_down: float = 0.1
    lambda_min: float = 1e-7
    lambda_max: float = 1e7
    max_inner_iterations: int = 10
    gradient_tolerance: float = 1e-14
    # Predicted reductions smaller than this are treated as zero.
    eps1: float = 1e-80


@dataclass
class DogLegOptions:
    """Trust-region radii and acceptance threshold for the dog-leg solver."""

    trust_region_radius: float = 1.0
    min_trust_region_radius: float = 1e-10
    max_trust_region_radius: float = 1e10
    eta: float = 0.125
    gradient_tolerance: float = 1e-14
    step_tolerance: float = 1e-14


@dataclass
class SolverParameters:
    """Per-solve configuration consumed by :class:`planegcs.system.System`."""

    algorithm: Algorithm = Algorithm.DOG_LEG
    max_iterations: int = 100
    convergence_tolerance: float = 1e-10
    rescale_constraints: bool = True
    debug_mode: bool = False
    bfgs_options: BFGSOptions = field(default_factory=BFGSOptions)
    lm_options: LevenbergMarquardtOptions = field(default_factory=LevenbergMarquardtOptions)
    dogleg_options: DogLegOptions = field(default_factory=DogLegOptions)


@dataclass
class SolverResult:
    """Outcome of one solver run over one subsystem."""

    params: np.ndarray
    converged: bool
    iterations: int
    failed: bool = False


__all__ = [
    "Algorithm",
    "BFGSOptions",
    "DogLegOptions",
    "LevenbergMarquardtOptions",
    "SolveStatus",
    "SolverParameters",
    "SolverResult",
    "SystemState",
]
