"""Process-wide default solver configuration."""

from __future__ import annotations

import copy

from .model import SolverParameters

_DEFAULT_SOLVER_PARAMETERS = SolverParameters()


def get_default_solver_parameters() -> SolverParameters:
    return copy.deepcopy(_DEFAULT_SOLVER_PARAMETERS)


def set_default_solver_parameters(parameters: SolverParameters) -> None:
    global _DEFAULT_SOLVER_PARAMETERS
    _DEFAULT_SOLVER_PARAMETERS = copy.deepcopy(parameters)


def reset_default_solver_parameters() -> None:
    set_default_solver_parameters(SolverParameters())


__all__ = [
    "get_default_solver_parameters",
    "reset_default_solver_parameters",
    "set_default_solver_parameters",
]
