"""Top-level constraint system: partitioning, dispatch and status aggregation."""

from __future__ import annotations

import copy
import logging
from collections import deque
from typing import TYPE_CHECKING, Dict, Iterable, List, Optional, Tuple

import numpy as np

from .config import get_default_solver_parameters
from .constraints import Constraint
from .linalg import is_finite, max_abs
from .logging_utils import apply_debug_logging
from .model import Algorithm, SolverParameters, SolveStatus, SystemState
from .solvers import run_solver
from .subsystem import SubSystem

if TYPE_CHECKING:
    from .diagnostics import DiagnosticResult

logger = logging.getLogger(__name__)

# Aggregate error below this multiple of the tolerance counts as a local minimum.
_LOCAL_MINIMUM_FACTOR = 10.0


class System:
    """Owns the constraints and solves them, one independent subsystem at a time.

    Until :meth:`partition_constraints` runs, every constraint lives in a
    single default subsystem. Adding or removing a constraint drops the
    partition and the last solve status.
    """

    def __init__(
        self,
        constraints: Optional[Iterable[Constraint]] = None,
        parameters: Optional[SolverParameters] = None,
    ) -> None:
        self._constraints: List[Constraint] = []
        self._subsystems: List[SubSystem] = [SubSystem()]
        self._params = copy.deepcopy(parameters) if parameters is not None else get_default_solver_parameters()
        self._state = SystemState.EMPTY
        self._last_status: Optional[SolveStatus] = None
        self._last_iterations = 0
        for constraint in constraints or []:
            self.add_constraint(constraint)

    @property
    def state(self) -> SystemState:
        return self._state

    @property
    def constraints(self) -> List[Constraint]:
        return list(self._constraints)

    @property
    def subsystems(self) -> List[SubSystem]:
        return list(self._subsystems)

    def _invalidate(self) -> None:
        self._subsystems = [SubSystem(self._constraints)]
        self._state = SystemState.CONFIGURED if self._constraints else SystemState.EMPTY
        self._last_status = None
        self._last_iterations = 0

    def add_constraint(self, constraint: Constraint) -> None:
        self._constraints.append(constraint)
        self._invalidate()

    def remove_constraint(self, constraint: Constraint) -> bool:
        for idx, existing in enumerate(self._constraints):
            if existing is constraint:
                del self._constraints[idx]
                self._invalidate()
                return True
        return False

    def clear_constraints(self) -> None:
        self._constraints = []
        self._invalidate()

    def set_parameters(self, parameters: SolverParameters) -> None:
        self._params = copy.deepcopy(parameters)

    def get_parameters(self) -> SolverParameters:
        return copy.deepcopy(self._params)

    def partition_constraints(self) -> int:
        """Split the constraints into connected components over shared free parameters.

        Components are discovered breadth-first in insertion order, and each
        keeps its constraints in insertion order. Returns the component count.
        """

        incidence: Dict[int, List[int]] = {}
        for idx, constraint in enumerate(self._constraints):
            for param in constraint.parameters():
                if param.fixed:
                    continue
                owners = incidence.setdefault(id(param), [])
                if not owners or owners[-1] != idx:
                    owners.append(idx)

        visited = [False] * len(self._constraints)
        components: List[List[int]] = []
        for start in range(len(self._constraints)):
            if visited[start]:
                continue
            visited[start] = True
            queue = deque([start])
            members: List[int] = []
            while queue:
                idx = queue.popleft()
                members.append(idx)
                for param in self._constraints[idx].parameters():
                    if param.fixed:
                        continue
                    for neighbour in incidence.get(id(param), ()):
                        if not visited[neighbour]:
                            visited[neighbour] = True
                            queue.append(neighbour)
            components.append(sorted(members))

        self._subsystems = [SubSystem(self._constraints[i] for i in members) for members in components]
        if not self._subsystems:
            self._subsystems = [SubSystem()]
        self._state = SystemState.PARTITIONED if self._constraints else SystemState.EMPTY
        self._last_status = None
        logger.debug(
            "partition_constraints: %d constraint(s) -> %d subsystem(s)",
            len(self._constraints),
            len(components),
        )
        return len(components)

    def _solve_subsystem(self, subsystem: SubSystem) -> Tuple[SolveStatus, int]:
        tolerance = self._params.convergence_tolerance
        residuals = subsystem.compute_residuals()
        if not is_finite(residuals) or not is_finite(subsystem.compute_jacobian()):
            return SolveStatus.FAILED, 0
        if max_abs(residuals) <= tolerance:
            return SolveStatus.SUCCESS, 0
        if subsystem.has_stuck_violation(tolerance):
            logger.warning("solve: violated constraint has no free parameters to move")
            return SolveStatus.FAILED, 0

        x0 = subsystem.get_parameter_values()

        def _residuals(x: np.ndarray) -> np.ndarray:
            subsystem.set_parameter_values(x)
            return subsystem.compute_residuals()

        def _jacobian(x: np.ndarray) -> np.ndarray:
            subsystem.set_parameter_values(x)
            return subsystem.compute_jacobian()

        result = run_solver(self._params, x0, _residuals, _jacobian)
        if result.failed or not is_finite(result.params):
            subsystem.set_parameter_values(x0)
            return SolveStatus.FAILED, result.iterations
        subsystem.set_parameter_values(result.params)
        error = subsystem.get_max_error()
        if not np.isfinite(error):
            subsystem.set_parameter_values(x0)
            return SolveStatus.FAILED, result.iterations
        if error <= tolerance:
            return SolveStatus.SUCCESS, result.iterations
        if error < _LOCAL_MINIMUM_FACTOR * tolerance:
            return SolveStatus.CONVERGED_TO_LOCAL_MINIMUM, result.iterations
        return SolveStatus.NOT_CONVERGED, result.iterations

    def solve(self) -> SolveStatus:
        if not self._constraints:
            self._finish(SolveStatus.SUCCESS, 0)
            return SolveStatus.SUCCESS

        if self._params.rescale_constraints:
            for constraint in self._constraints:
                constraint.rescale()

        iterations = 0
        all_success = True
        for index, subsystem in enumerate(self._subsystems):
            if subsystem.is_empty():
                continue
            status, used = self._solve_subsystem(subsystem)
            iterations += used
            logger.debug(
                "solve: subsystem %d/%d status=%s iterations=%d",
                index + 1,
                len(self._subsystems),
                status.value,
                used,
            )
            if status is SolveStatus.FAILED:
                self._finish(status, iterations)
                return status
            if status is not SolveStatus.SUCCESS:
                all_success = False

        if all_success:
            status = SolveStatus.SUCCESS
        elif self.get_max_error() < _LOCAL_MINIMUM_FACTOR * self._params.convergence_tolerance:
            status = SolveStatus.CONVERGED_TO_LOCAL_MINIMUM
        else:
            status = SolveStatus.NOT_CONVERGED
        self._finish(status, iterations)
        return status

    def _finish(self, status: SolveStatus, iterations: int) -> None:
        self._last_status = status
        self._last_iterations = iterations
        self._state = SystemState.SOLVED
        logger.info(
            "solve: algorithm=%s subsystems=%d status=%s iterations=%d max_error=%.3e",
            Algorithm(self._params.algorithm).value,
            len(self._subsystems),
            status.value,
            iterations,
            self.get_max_error(),
        )

    def get_dof(self) -> int:
        return sum(sub.get_dof() for sub in self._subsystems)

    def get_max_error(self) -> float:
        errors = [sub.get_max_error() for sub in self._subsystems if not sub.is_empty()]
        return max(errors) if errors else 0.0

    def get_total_error(self) -> float:
        return float(sum(sub.get_total_error() for sub in self._subsystems))

    def get_last_iterations(self) -> int:
        return self._last_iterations

    def get_last_status(self) -> Optional[SolveStatus]:
        return self._last_status

    def get_subsystem_count(self) -> int:
        return sum(1 for sub in self._subsystems if not sub.is_empty())

    def get_parameter_count(self) -> int:
        return sum(sub.get_parameter_count() for sub in self._subsystems)

    def get_constraint_count(self) -> int:
        return len(self._constraints)

    def diagnose(self) -> "DiagnosticResult":
        from .diagnostics import Diagnostics

        return Diagnostics(self).analyze()

    def __repr__(self) -> str:
        return (
            f"System(state={self._state.value}, constraints={len(self._constraints)}, "
            f"subsystems={len(self._subsystems)})"
        )


apply_debug_logging(globals(), logger=logger)

__all__ = ["System"]
