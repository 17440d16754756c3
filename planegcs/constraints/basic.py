"""Scalar relations, distances and line incidence."""

from __future__ import annotations

from typing import List, Tuple

import numpy as np

from ..geometry import Line, Point
from ..linalg import _DENOM_EPS, _cross_2d, _norm_2d
from ..parameter import Parameter, ParameterLike, as_parameter
from .base import Constraint, ConstraintType


def _cross_partials(d: np.ndarray, r: np.ndarray) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Partials of ``cross(p2 - p1, p - p1)`` w.r.t. ``p``, ``p1`` and ``p2``."""

    d_point = np.array([-d[1], d[0]])
    d_p2 = np.array([r[1], -r[0]])
    d_p1 = -d_point - d_p2
    return d_point, d_p1, d_p2


class ConstraintEqual(Constraint):
    type = ConstraintType.EQUAL

    def __init__(self, param1: Parameter, param2: ParameterLike) -> None:
        super().__init__()
        self.param1 = param1
        self.param2 = as_parameter(param2)

    def parameters(self) -> List[Parameter]:
        return [self.param1, self.param2]

    def _residual(self) -> float:
        return self.param1.value - self.param2.value

    def _raw_gradient(self) -> List[float]:
        return [1.0, -1.0]


class ConstraintDifference(Constraint):
    """``param1 - param2 == difference``."""

    type = ConstraintType.DIFFERENCE

    def __init__(self, param1: Parameter, param2: Parameter, difference: ParameterLike) -> None:
        super().__init__()
        self.param1 = param1
        self.param2 = param2
        self.difference = as_parameter(difference)

    def parameters(self) -> List[Parameter]:
        return [self.param1, self.param2, self.difference]

    def _residual(self) -> float:
        return self.param1.value - self.param2.value - self.difference.value

    def _raw_gradient(self) -> List[float]:
        return [1.0, -1.0, -1.0]


class ConstraintP2PDistance(Constraint):
    type = ConstraintType.DISTANCE

    def __init__(self, p1: Point, p2: Point, distance: ParameterLike) -> None:
        super().__init__()
        self.p1 = p1
        self.p2 = p2
        self.distance = as_parameter(distance)

    def parameters(self) -> List[Parameter]:
        return [self.p1.x, self.p1.y, self.p2.x, self.p2.y, self.distance]

    def _residual(self) -> float:
        return self.p1.distance_to(self.p2) - self.distance.value

    def _raw_gradient(self) -> List[float]:
        delta = self.p2.vector - self.p1.vector
        length = _norm_2d(delta)
        if length < _DENOM_EPS:
            return [0.0, 0.0, 0.0, 0.0, -1.0]
        ux, uy = delta / length
        return [-ux, -uy, ux, uy, -1.0]


class ConstraintP2LDistance(Constraint):
    """Unsigned distance from ``point`` to the infinite ``line``."""

    type = ConstraintType.DISTANCE

    def __init__(self, point: Point, line: Line, distance: ParameterLike) -> None:
        super().__init__()
        self.point = point
        self.line = line
        self.distance = as_parameter(distance)

    def parameters(self) -> List[Parameter]:
        return [self.point.x, self.point.y, *self.line.parameters(), self.distance]

    def _signed_distance(self) -> float:
        d = self.line.delta
        length = _norm_2d(d)
        r = self.point.vector - self.line.p1.vector
        if length < _DENOM_EPS:
            return _norm_2d(r)
        return _cross_2d(d, r) / length

    def _residual(self) -> float:
        return abs(self._signed_distance()) - self.distance.value

    def _raw_gradient(self) -> List[float]:
        d = self.line.delta
        length = _norm_2d(d)
        r = self.point.vector - self.line.p1.vector
        if length < _DENOM_EPS:
            # Collapsed line: distance to p1.
            r_len = _norm_2d(r)
            if r_len < _DENOM_EPS:
                return [0.0] * 6 + [-1.0]
            u = r / r_len
            return [u[0], u[1], -u[0], -u[1], 0.0, 0.0, -1.0]
        cross = _cross_2d(d, r)
        signed = cross / length
        sign = 1.0 if signed >= 0.0 else -1.0
        d_point, d_p1, d_p2 = _cross_partials(d, r)
        dlen_p2 = d / length
        g_point = d_point / length
        g_p1 = d_p1 / length + cross * dlen_p2 / (length * length)
        g_p2 = d_p2 / length - cross * dlen_p2 / (length * length)
        grad = np.concatenate([g_point, g_p1, g_p2]) * sign
        return [float(v) for v in grad] + [-1.0]


class ConstraintPointOnLine(Constraint):
    """``cross(p2 - p1, point - p1) == 0``; rescaled by the line length."""

    type = ConstraintType.POINT_ON_LINE

    def __init__(self, point: Point, line: Line) -> None:
        super().__init__()
        self.point = point
        self.line = line

    def parameters(self) -> List[Parameter]:
        return [self.point.x, self.point.y, *self.line.parameters()]

    def _residual(self) -> float:
        return _cross_2d(self.line.delta, self.point.vector - self.line.p1.vector)

    def _raw_gradient(self) -> List[float]:
        d_point, d_p1, d_p2 = _cross_partials(self.line.delta, self.point.vector - self.line.p1.vector)
        return [float(v) for v in np.concatenate([d_point, d_p1, d_p2])]

    def _magnitude(self) -> float:
        return self.line.length


class ConstraintParallel(Constraint):
    type = ConstraintType.PARALLEL

    def __init__(self, line1: Line, line2: Line) -> None:
        super().__init__()
        self.line1 = line1
        self.line2 = line2

    def parameters(self) -> List[Parameter]:
        return [*self.line1.parameters(), *self.line2.parameters()]

    def _residual(self) -> float:
        return _cross_2d(self.line1.delta, self.line2.delta)

    def _raw_gradient(self) -> List[float]:
        d1, d2 = self.line1.delta, self.line2.delta
        g1 = np.array([d2[1], -d2[0]])
        g2 = np.array([-d1[1], d1[0]])
        return [float(v) for v in np.concatenate([-g1, g1, -g2, g2])]

    def _magnitude(self) -> float:
        return self.line1.length * self.line2.length


class ConstraintPerpendicular(Constraint):
    type = ConstraintType.PERPENDICULAR

    def __init__(self, line1: Line, line2: Line) -> None:
        super().__init__()
        self.line1 = line1
        self.line2 = line2

    def parameters(self) -> List[Parameter]:
        return [*self.line1.parameters(), *self.line2.parameters()]

    def _residual(self) -> float:
        return float(self.line1.delta @ self.line2.delta)

    def _raw_gradient(self) -> List[float]:
        d1, d2 = self.line1.delta, self.line2.delta
        return [float(v) for v in np.concatenate([-d2, d2, -d1, d1])]

    def _magnitude(self) -> float:
        return self.line1.length * self.line2.length


def horizontal(line: Line) -> ConstraintEqual:
    return ConstraintEqual(line.p1.y, line.p2.y)


def vertical(line: Line) -> ConstraintEqual:
    return ConstraintEqual(line.p1.x, line.p2.x)


def coincident(p: Point, q: Point) -> List[ConstraintEqual]:
    return [ConstraintEqual(p.x, q.x), ConstraintEqual(p.y, q.y)]


__all__ = [
    "ConstraintDifference",
    "ConstraintEqual",
    "ConstraintP2LDistance",
    "ConstraintP2PDistance",
    "ConstraintParallel",
    "ConstraintPerpendicular",
    "ConstraintPointOnLine",
    "coincident",
    "horizontal",
    "vertical",
]
