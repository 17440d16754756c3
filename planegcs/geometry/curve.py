"""Base types shared by every curve."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Tuple

import numpy as np

from ..linalg import _DENOM_EPS, _norm_2d
from ..parameter import Parameter

# (parameter, d position.x / d parameter, d position.y / d parameter)
PositionPartial = Tuple[Parameter, float, float]


@dataclass(frozen=True)
class DeriVector2:
    """Position on a curve together with its first derivative along the curve parameter."""

    x: float
    y: float
    dx: float = 0.0
    dy: float = 0.0

    @property
    def point(self) -> np.ndarray:
        return np.array([self.x, self.y], dtype=float)

    @property
    def derivative(self) -> np.ndarray:
        return np.array([self.dx, self.dy], dtype=float)


class Curve(ABC):
    """Parametric planar curve defined through shared :class:`Parameter` objects."""

    @abstractmethod
    def value(self, u: float) -> DeriVector2:
        """Evaluate position and first derivative at curve parameter ``u``."""

    @abstractmethod
    def parameters(self) -> List[Parameter]:
        """Defining parameters, in a fixed order."""

    @abstractmethod
    def position_gradient(self, u: float) -> List[PositionPartial]:
        """Partial derivatives of ``value(u)``'s position w.r.t. each defining parameter."""

    def tangent(self, u: float) -> np.ndarray:
        d = self.value(u).derivative
        length = _norm_2d(d)
        if length > _DENOM_EPS:
            return d / length
        return np.zeros(2, dtype=float)

    def normal(self, u: float) -> np.ndarray:
        t = self.tangent(u)
        return np.array([-t[1], t[0]], dtype=float)


def _expand_partials(
    params: List[Parameter], jac: np.ndarray
) -> List[PositionPartial]:
    """Pair each parameter with the matching column of a 2xN position Jacobian."""

    return [(param, float(jac[0, idx]), float(jac[1, idx])) for idx, param in enumerate(params)]


__all__ = ["Curve", "DeriVector2", "PositionPartial", "_expand_partials"]
