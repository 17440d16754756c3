"""Stacked residual/Jacobian view over a connected group of constraints."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional

import numpy as np

from .constraints import Constraint
from .linalg import max_abs
from .parameter import Parameter

logger = logging.getLogger(__name__)


class SubSystem:
    """Constraints plus the free parameters they touch.

    Rows of the Jacobian follow constraint order; columns follow the order in
    which non-fixed parameters are first seen. Fixed parameters are read but
    never become unknowns.
    """

    def __init__(self, constraints: Optional[Iterable[Constraint]] = None) -> None:
        self.constraints: List[Constraint] = []
        self._params: List[Parameter] = []
        self._index: Dict[int, int] = {}
        for constraint in constraints or []:
            self.add_constraint(constraint)

    @property
    def params(self) -> List[Parameter]:
        return list(self._params)

    def _register(self, constraint: Constraint) -> None:
        for param in constraint.parameters():
            if param.fixed or id(param) in self._index:
                continue
            self._index[id(param)] = len(self._params)
            self._params.append(param)

    def _reindex(self) -> None:
        self._params = []
        self._index = {}
        for constraint in self.constraints:
            self._register(constraint)

    def add_constraint(self, constraint: Constraint) -> None:
        self.constraints.append(constraint)
        self._register(constraint)

    def remove_constraint(self, constraint: Constraint) -> bool:
        for idx, existing in enumerate(self.constraints):
            if existing is constraint:
                del self.constraints[idx]
                self._reindex()
                return True
        return False

    def clear(self) -> None:
        self.constraints = []
        self._params = []
        self._index = {}

    def is_empty(self) -> bool:
        return not self.constraints

    def column_of(self, param: Parameter) -> Optional[int]:
        return self._index.get(id(param))

    def get_parameter_count(self) -> int:
        return len(self._params)

    def get_constraint_count(self) -> int:
        return len(self.constraints)

    def get_parameter_values(self) -> np.ndarray:
        return np.array([p.value for p in self._params], dtype=float)

    def set_parameter_values(self, values: np.ndarray) -> None:
        if len(values) != len(self._params):
            raise ValueError(f"expected {len(self._params)} parameter values, got {len(values)}")
        for param, value in zip(self._params, values):
            param.value = float(value)

    def compute_residuals(self) -> np.ndarray:
        return np.array([c.error() for c in self.constraints], dtype=float)

    def compute_jacobian(self) -> np.ndarray:
        jac = np.zeros((len(self.constraints), len(self._params)), dtype=float)
        for row, constraint in enumerate(self.constraints):
            for param, partial in zip(constraint.parameters(), constraint.gradient()):
                col = self._index.get(id(param))
                if col is not None:
                    jac[row, col] += partial
        return jac

    def get_max_error(self) -> float:
        return max_abs(self.compute_residuals())

    def get_total_error(self) -> float:
        residuals = self.compute_residuals()
        return float(residuals @ residuals)

    def get_dof(self) -> int:
        return len(self._params) - len(self.constraints)

    def rescale_constraints(self) -> None:
        for constraint in self.constraints:
            constraint.rescale()

    def has_stuck_violation(self, tolerance: float) -> bool:
        """True when some violated constraint touches no unknown of this subsystem."""

        for constraint in self.constraints:
            if abs(constraint.error()) <= tolerance:
                continue
            if not any(id(p) in self._index for p in constraint.parameters()):
                return True
        return False

    def __repr__(self) -> str:
        return f"SubSystem(constraints={len(self.constraints)}, params={len(self._params)})"


__all__ = ["SubSystem"]
