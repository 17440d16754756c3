from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import List

from ..linalg import _DENOM_EPS
from ..parameter import Parameter


class ConstraintType(str, Enum):
    EQUAL = "equal"
    DIFFERENCE = "difference"
    DISTANCE = "distance"
    ANGLE = "angle"
    PARALLEL = "parallel"
    PERPENDICULAR = "perpendicular"
    TANGENT = "tangent"
    POINT_ON_LINE = "point_on_line"
    POINT_ON_CIRCLE = "point_on_circle"
    POINT_ON_CURVE = "point_on_curve"
    CURVE_VALUE = "curve_value"
    SNELL = "snell"


class Constraint(ABC):
    """One scalar residual over an ordered list of parameters.

    Subclasses implement the unscaled ``_residual``/``_raw_gradient`` pair;
    ``error`` and ``gradient`` apply ``scale``. ``_magnitude`` returns the
    geometric size that carries the residual's units and drives ``rescale``.
    """

    type: ConstraintType

    def __init__(self) -> None:
        self.scale = 1.0
        self.tag = 0

    @abstractmethod
    def parameters(self) -> List[Parameter]:
        ...

    @abstractmethod
    def _residual(self) -> float:
        ...

    @abstractmethod
    def _raw_gradient(self) -> List[float]:
        ...

    def _magnitude(self) -> float:
        return 1.0

    def error(self) -> float:
        return self.scale * self._residual()

    def gradient(self) -> List[float]:
        return [self.scale * g for g in self._raw_gradient()]

    def rescale(self) -> None:
        magnitude = abs(self._magnitude())
        self.scale = 1.0 / magnitude if magnitude > _DENOM_EPS else 1.0

    def __repr__(self) -> str:
        return f"{type(self).__name__}(tag={self.tag}, error={self.error():.6g})"


__all__ = ["Constraint", "ConstraintType"]
