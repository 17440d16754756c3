"""Floor-plan adapter: a closed polygon of corners with drawn relationships.

Edge ``i`` runs from corner ``i`` to corner ``i + 1`` (wrapping around), so a
rectangle drawn clockwise has edges top, right, bottom and left.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .constraints import (
    Constraint,
    ConstraintL2LAngle,
    ConstraintP2LDistance,
    ConstraintP2PDistance,
    ConstraintParallel,
    ConstraintPerpendicular,
    ConstraintPointOnLine,
    coincident,
    horizontal,
    vertical,
)
from .diagnostics import DiagnosticResult
from .geometry import Line, Point
from .model import Algorithm, DogLegOptions, SolverParameters, SolveStatus
from .system import System

logger = logging.getLogger(__name__)

Corner = Tuple[float, float]

_STATUS_MESSAGES = {
    SolveStatus.SUCCESS: None,
    SolveStatus.CONVERGED_TO_LOCAL_MINIMUM: "Converged to local minimum",
    SolveStatus.NOT_CONVERGED: "Failed to converge",
    SolveStatus.FAILED: "Solver failed",
}


def room_solver_parameters() -> SolverParameters:
    """Settings tuned for floor plans measured in screen units."""

    return SolverParameters(
        algorithm=Algorithm.DOG_LEG,
        max_iterations=1000,
        convergence_tolerance=1e-6,
        dogleg_options=DogLegOptions(
            trust_region_radius=10.0,
            min_trust_region_radius=1e-6,
            max_trust_region_radius=1000.0,
        ),
    )


@dataclass
class RoomSolveResult:
    corners: List[Corner]
    status: SolveStatus
    max_error: float
    iterations: int
    dof: int

    @property
    def ok(self) -> bool:
        return self.status.ok

    @property
    def message(self) -> Optional[str]:
        return _STATUS_MESSAGES[self.status]


class RoomSketch:
    def __init__(self, corners: Sequence[Corner], parameters: Optional[SolverParameters] = None) -> None:
        if len(corners) < 2:
            raise ValueError(f"a room needs at least 2 corners, got {len(corners)}")
        self._points = [Point(x, y, name=f"c{idx}") for idx, (x, y) in enumerate(corners)]
        n = len(self._points)
        self._edges = [Line(self._points[i], self._points[(i + 1) % n]) for i in range(n)]
        self.system = System(parameters=parameters or room_solver_parameters())

    def corner(self, index: int) -> Point:
        if not 0 <= index < len(self._points):
            raise IndexError(f"corner index {index} out of range for {len(self._points)} corners")
        return self._points[index]

    def edge(self, index: int) -> Line:
        if not 0 <= index < len(self._edges):
            raise IndexError(f"edge index {index} out of range for {len(self._edges)} edges")
        return self._edges[index]

    def corners(self) -> List[Corner]:
        return [(p.x.value, p.y.value) for p in self._points]

    def _add(self, *constraints: Constraint) -> None:
        for constraint in constraints:
            constraint.tag = self.system.get_constraint_count() + 1
            self.system.add_constraint(constraint)

    def add_length(self, edge: int, length: float) -> None:
        line = self.edge(edge)
        self._add(ConstraintP2PDistance(line.p1, line.p2, length))

    def add_horizontal(self, edge: int) -> None:
        self._add(horizontal(self.edge(edge)))

    def add_vertical(self, edge: int) -> None:
        self._add(vertical(self.edge(edge)))

    def add_perpendicular(self, edge1: int, edge2: int) -> None:
        self._add(ConstraintPerpendicular(self.edge(edge1), self.edge(edge2)))

    def add_parallel(self, edge1: int, edge2: int) -> None:
        self._add(ConstraintParallel(self.edge(edge1), self.edge(edge2)))

    def add_angle(self, edge1: int, edge2: int, angle: float) -> None:
        """Signed angle in radians from ``edge1`` to ``edge2``."""

        self._add(ConstraintL2LAngle(self.edge(edge1), self.edge(edge2), angle))

    def add_point_on_line(self, corner: int, edge: int) -> None:
        self._add(ConstraintPointOnLine(self.corner(corner), self.edge(edge)))

    def add_point_distance(self, corner1: int, corner2: int, distance: float) -> None:
        self._add(ConstraintP2PDistance(self.corner(corner1), self.corner(corner2), distance))

    def add_point_line_distance(self, corner: int, edge: int, distance: float) -> None:
        self._add(ConstraintP2LDistance(self.corner(corner), self.edge(edge), distance))

    def add_coincident(self, corner1: int, corner2: int) -> None:
        self._add(*coincident(self.corner(corner1), self.corner(corner2)))

    def solve(self) -> RoomSolveResult:
        if self.system.get_constraint_count() == 0:
            logger.info("No constraints to solve, returning original geometry")
            return RoomSolveResult(self.corners(), SolveStatus.SUCCESS, 0.0, 0, 2 * len(self._points))

        self.system.partition_constraints()
        logger.info(
            "Solving room: corners=%d constraints=%d parameters=%d dof=%d",
            len(self._points),
            self.system.get_constraint_count(),
            self.system.get_parameter_count(),
            self.system.get_dof(),
        )
        before = self.corners()
        status = self.system.solve()
        after = self.corners()
        for idx, ((x0, y0), (x1, y1)) in enumerate(zip(before, after)):
            if abs(x1 - x0) > 0.1 or abs(y1 - y0) > 0.1:
                logger.debug("Corner %d moved: (%.3f, %.3f) -> (%.3f, %.3f)", idx, x0, y0, x1, y1)
        # Corners not touched by any constraint keep both coordinates free.
        touched = self.system.get_parameter_count()
        free = 2 * len(self._points) - touched
        return RoomSolveResult(
            corners=after,
            status=status,
            max_error=self.system.get_max_error(),
            iterations=self.system.get_last_iterations(),
            dof=self.system.get_dof() + free,
        )

    def diagnose(self) -> DiagnosticResult:
        self.system.partition_constraints()
        return self.system.diagnose()


__all__ = ["RoomSketch", "RoomSolveResult", "room_solver_parameters"]
