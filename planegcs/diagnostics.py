"""Offline analysis of a constraint system: DOF, conflicts, redundancy, sensitivity.

Every trial solve runs on a deep copy of the constraint graph, so the caller's
System and Parameters are never modified. Results refer to the caller's own
constraint and parameter objects.

Conflict detection removes one constraint, solves, re-adds it and solves
again. It can miss a conflict when removing one constraint only moves the
inconsistency onto another one.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Dict, List, Optional, Tuple, cast

from .constraints import Constraint
from .linalg import rank_deficiency
from .logging_utils import apply_debug_logging
from .model import SolveStatus
from .parameter import Parameter

if TYPE_CHECKING:
    from .system import System

logger = logging.getLogger(__name__)

_CONSTRAINT_PERTURBATION = 0.1
_PARAMETER_PERTURBATION = 0.01
_REDUNDANCY_FLOOR = 1e-10


class DiagnosticKind(str, Enum):
    WELL_CONSTRAINED = "well_constrained"
    UNDER_CONSTRAINED = "under_constrained"
    OVER_CONSTRAINED = "over_constrained"
    REDUNDANT = "redundant"


@dataclass
class DiagnosticResult:
    kind: DiagnosticKind
    dof: int = 0
    conflicting: List[Constraint] = field(default_factory=list)
    redundant: List[Constraint] = field(default_factory=list)


class Diagnostics:
    def __init__(self, system: "System") -> None:
        self.system = system

    def _clone(
        self, skip: Optional[int] = None, rescale: bool = True
    ) -> Tuple["System", List[Constraint], Dict[int, object]]:
        """Copy the live constraints into a fresh System; ``skip`` leaves one out.

        Returns the trial system, the cloned constraints aligned with the live
        ones, and the deepcopy memo (``id(original) -> clone``).
        """

        from .system import System

        memo: Dict[int, object] = {}
        clones = copy.deepcopy(self.system.constraints, memo)
        included = [c for idx, c in enumerate(clones) if idx != skip]
        parameters = self.system.get_parameters()
        parameters.rescale_constraints = parameters.rescale_constraints and rescale
        trial = System(included, parameters)
        trial.partition_constraints()
        return trial, clones, memo

    def analyze(self) -> DiagnosticResult:
        dof = self.system.get_dof()
        if dof > 0:
            result = DiagnosticResult(DiagnosticKind.UNDER_CONSTRAINED, dof=dof)
        elif dof < 0:
            conflicting = self.find_conflicting_constraints()
            if conflicting:
                result = DiagnosticResult(DiagnosticKind.OVER_CONSTRAINED, dof=dof, conflicting=conflicting)
            else:
                redundant = self.find_redundant_constraints()
                if redundant:
                    result = DiagnosticResult(DiagnosticKind.REDUNDANT, dof=dof, redundant=redundant)
                else:
                    result = DiagnosticResult(DiagnosticKind.WELL_CONSTRAINED, dof=dof)
        else:
            result = DiagnosticResult(DiagnosticKind.WELL_CONSTRAINED, dof=dof)
        logger.info(
            "analyze: kind=%s dof=%d conflicting=%d redundant=%d",
            result.kind.value,
            result.dof,
            len(result.conflicting),
            len(result.redundant),
        )
        return result

    def find_conflicting_constraints(self) -> List[Constraint]:
        conflicting: List[Constraint] = []
        for idx, constraint in enumerate(self.system.constraints):
            trial, clones, _ = self._clone(skip=idx)
            before = trial.solve()
            if before is not SolveStatus.SUCCESS:
                continue
            trial.add_constraint(clones[idx])
            trial.partition_constraints()
            after = trial.solve()
            if after is not SolveStatus.SUCCESS:
                logger.debug("find_conflicting_constraints: constraint %d conflicts (%s)", idx, after.value)
                conflicting.append(constraint)
        return conflicting

    def find_redundant_constraints(self) -> List[Constraint]:
        threshold = max(self.system.get_parameters().convergence_tolerance, _REDUNDANCY_FLOOR)
        redundant: List[Constraint] = []
        for idx, constraint in enumerate(self.system.constraints):
            trial, clones, _ = self._clone(skip=idx)
            if trial.solve() is not SolveStatus.SUCCESS:
                continue
            if abs(clones[idx].error()) < threshold:
                logger.debug("find_redundant_constraints: constraint %d is implied by the rest", idx)
                redundant.append(constraint)
        return redundant

    def _baseline_error(self) -> float:
        trial, _, _ = self._clone(rescale=False)
        trial.solve()
        return trial.get_total_error()

    def compute_constraint_sensitivity(self) -> Dict[Constraint, float]:
        """``|d total error| / d scale`` per constraint, by a 10% scale perturbation."""

        baseline = self._baseline_error()
        sensitivities: Dict[Constraint, float] = {}
        for idx, constraint in enumerate(self.system.constraints):
            trial, clones, _ = self._clone(rescale=False)
            original_scale = clones[idx].scale
            clones[idx].scale = original_scale * (1.0 + _CONSTRAINT_PERTURBATION)
            trial.solve()
            delta = abs(trial.get_total_error() - baseline)
            sensitivities[constraint] = delta / (_CONSTRAINT_PERTURBATION * abs(original_scale) or 1.0)
        return sensitivities

    def _free_parameters(self) -> List[Parameter]:
        seen = set()
        params: List[Parameter] = []
        for constraint in self.system.constraints:
            for param in constraint.parameters():
                if param.fixed or id(param) in seen:
                    continue
                seen.add(id(param))
                params.append(param)
        return params

    def compute_parameter_sensitivity(self) -> Dict[Parameter, float]:
        """``|d total error| / d value`` per free parameter, by a 1% value perturbation."""

        baseline = self._baseline_error()
        sensitivities: Dict[Parameter, float] = {}
        for param in self._free_parameters():
            trial, _, memo = self._clone(rescale=False)
            clone = cast(Parameter, memo[id(param)])
            clone.value = param.value * (1.0 + _PARAMETER_PERTURBATION)
            trial.solve()
            delta = abs(trial.get_total_error() - baseline)
            step = _PARAMETER_PERTURBATION * max(abs(param.value), _REDUNDANCY_FLOOR)
            sensitivities[param] = delta / step
        return sensitivities

    def rank_deficiency_analysis(self) -> int:
        total = 0
        for subsystem in self.system.subsystems:
            if subsystem.is_empty():
                continue
            total += rank_deficiency(subsystem.compute_jacobian())
        return total


apply_debug_logging(globals(), logger=logger)

__all__ = ["DiagnosticKind", "DiagnosticResult", "Diagnostics"]
