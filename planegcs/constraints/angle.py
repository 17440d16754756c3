"""Angle constraints. Residuals are wrapped into ``(-pi, pi]``."""

from __future__ import annotations

import math
from typing import List

import numpy as np

from ..geometry import Line, Point
from ..linalg import _DENOM_EPS
from ..parameter import Parameter, ParameterLike, as_parameter
from .base import Constraint, ConstraintType


def wrap_angle(angle: float) -> float:
    wrapped = math.fmod(angle + math.pi, 2.0 * math.pi)
    if wrapped <= 0.0:
        wrapped += 2.0 * math.pi
    return wrapped - math.pi


def _direction_angle_gradient(v: np.ndarray) -> np.ndarray:
    """Gradient of ``atan2(v.y, v.x)`` w.r.t. ``v``; zero for a collapsed vector."""

    length_sq = float(v @ v)
    if length_sq < _DENOM_EPS * _DENOM_EPS:
        return np.zeros(2)
    return np.array([-v[1], v[0]]) / length_sq


class ConstraintL2LAngle(Constraint):
    """Signed angle from ``line1`` to ``line2`` equals ``angle``."""

    type = ConstraintType.ANGLE

    def __init__(self, line1: Line, line2: Line, angle: ParameterLike) -> None:
        super().__init__()
        self.line1 = line1
        self.line2 = line2
        self.angle = as_parameter(angle)

    def parameters(self) -> List[Parameter]:
        return [*self.line1.parameters(), *self.line2.parameters(), self.angle]

    def _residual(self) -> float:
        d1, d2 = self.line1.delta, self.line2.delta
        actual = math.atan2(d1[0] * d2[1] - d1[1] * d2[0], float(d1 @ d2))
        return wrap_angle(actual - self.angle.value)

    def _raw_gradient(self) -> List[float]:
        g1 = -_direction_angle_gradient(self.line1.delta)
        g2 = _direction_angle_gradient(self.line2.delta)
        grad = np.concatenate([-g1, g1, -g2, g2])
        return [float(v) for v in grad] + [-1.0]


class ConstraintP2PAngle(Constraint):
    """Direction of ``p2 - p1`` measured from the x axis equals ``angle``."""

    type = ConstraintType.ANGLE

    def __init__(self, p1: Point, p2: Point, angle: ParameterLike) -> None:
        super().__init__()
        self.p1 = p1
        self.p2 = p2
        self.angle = as_parameter(angle)

    def parameters(self) -> List[Parameter]:
        return [self.p1.x, self.p1.y, self.p2.x, self.p2.y, self.angle]

    def _residual(self) -> float:
        delta = self.p2.vector - self.p1.vector
        return wrap_angle(math.atan2(delta[1], delta[0]) - self.angle.value)

    def _raw_gradient(self) -> List[float]:
        g = _direction_angle_gradient(self.p2.vector - self.p1.vector)
        return [float(-g[0]), float(-g[1]), float(g[0]), float(g[1]), -1.0]


class ConstraintAngleViaPoint(Constraint):
    """Angle at ``center`` swept from ``p1`` to ``p2`` equals ``angle``."""

    type = ConstraintType.ANGLE

    def __init__(self, center: Point, p1: Point, p2: Point, angle: ParameterLike) -> None:
        super().__init__()
        self.center = center
        self.p1 = p1
        self.p2 = p2
        self.angle = as_parameter(angle)

    def parameters(self) -> List[Parameter]:
        return [self.center.x, self.center.y, self.p1.x, self.p1.y, self.p2.x, self.p2.y, self.angle]

    def _residual(self) -> float:
        v1 = self.p1.vector - self.center.vector
        v2 = self.p2.vector - self.center.vector
        theta1 = math.atan2(v1[1], v1[0])
        theta2 = math.atan2(v2[1], v2[0])
        return wrap_angle(theta2 - theta1 - self.angle.value)

    def _raw_gradient(self) -> List[float]:
        g1 = _direction_angle_gradient(self.p1.vector - self.center.vector)
        g2 = _direction_angle_gradient(self.p2.vector - self.center.vector)
        g_center = g1 - g2
        grad = np.concatenate([g_center, -g1, g2])
        return [float(v) for v in grad] + [-1.0]


__all__ = ["ConstraintAngleViaPoint", "ConstraintL2LAngle", "ConstraintP2PAngle", "wrap_angle"]
