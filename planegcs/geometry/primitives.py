from __future__ import annotations

import math
from typing import List, Optional

import numpy as np

from ..linalg import _DENOM_EPS, _norm_2d
from ..parameter import Parameter, ParameterLike
from .curve import Curve, DeriVector2, PositionPartial


def _free_parameter(value: ParameterLike, name: Optional[str]) -> Parameter:
    # Geometry coordinates are unknowns unless the caller hands over a Parameter.
    if isinstance(value, Parameter):
        return value
    return Parameter(float(value), name=name)


class Point:
    """Pair of parameters ``(x, y)``; plain numbers become free parameters."""

    def __init__(self, x: ParameterLike = 0.0, y: ParameterLike = 0.0, name: Optional[str] = None) -> None:
        self.name = name
        self.x = _free_parameter(x, f"{name}.x" if name else None)
        self.y = _free_parameter(y, f"{name}.y" if name else None)

    @property
    def vector(self) -> np.ndarray:
        return np.array([self.x.value, self.y.value], dtype=float)

    def parameters(self) -> List[Parameter]:
        return [self.x, self.y]

    def distance_to(self, other: "Point") -> float:
        return math.hypot(self.x.value - other.x.value, self.y.value - other.y.value)

    def __repr__(self) -> str:
        label = f"{self.name}, " if self.name else ""
        return f"Point({label}{self.x.value!r}, {self.y.value!r})"


class Line(Curve):
    """Line through ``p1`` and ``p2``; ``value(0) == p1`` and ``value(1) == p2``."""

    def __init__(self, p1: Point, p2: Point) -> None:
        self.p1 = p1
        self.p2 = p2

    @property
    def delta(self) -> np.ndarray:
        return self.p2.vector - self.p1.vector

    @property
    def length(self) -> float:
        return _norm_2d(self.delta)

    @property
    def direction(self) -> np.ndarray:
        d = self.delta
        length = _norm_2d(d)
        if length > _DENOM_EPS:
            return d / length
        return np.zeros(2, dtype=float)

    def value(self, u: float) -> DeriVector2:
        d = self.delta
        base = self.p1.vector + u * d
        return DeriVector2(float(base[0]), float(base[1]), float(d[0]), float(d[1]))

    def parameters(self) -> List[Parameter]:
        return [self.p1.x, self.p1.y, self.p2.x, self.p2.y]

    def position_gradient(self, u: float) -> List[PositionPartial]:
        return [
            (self.p1.x, 1.0 - u, 0.0),
            (self.p1.y, 0.0, 1.0 - u),
            (self.p2.x, u, 0.0),
            (self.p2.y, 0.0, u),
        ]

    def distance_to_point(self, point: Point) -> float:
        d = self.delta
        length = _norm_2d(d)
        if length < _DENOM_EPS:
            return point.distance_to(self.p1)
        rel = point.vector - self.p1.vector
        return abs(d[0] * rel[1] - d[1] * rel[0]) / length

    def closest_parameter(self, point: Point) -> float:
        """Parameter of the closest point on the segment, clamped to ``[0, 1]``."""

        d = self.delta
        length_sq = float(d @ d)
        if length_sq < _DENOM_EPS:
            return 0.0
        t = float((point.vector - self.p1.vector) @ d) / length_sq
        return max(0.0, min(1.0, t))

    def __repr__(self) -> str:
        return f"Line({self.p1!r}, {self.p2!r})"


__all__ = ["Line", "Point"]
