"""Rational B-spline (NURBS) curve over shared pole and weight parameters."""

from __future__ import annotations

from typing import List, Optional, Sequence

import numpy as np

from ..linalg import _DENOM_EPS
from ..parameter import Parameter, ParameterLike
from .curve import Curve, DeriVector2, PositionPartial
from .primitives import Point, _free_parameter


class BSpline(Curve):
    """Rational B-spline of ``degree`` with ``len(poles) + degree + 1`` knots.

    Knots are plain floats. Weights default to fixed ``1.0`` parameters, which
    makes the curve polynomial. Only open (clamped or unclamped) knot vectors
    are evaluated; ``periodic=True`` is rejected. ``start_point`` and
    ``end_point`` default to free points at the ends of :attr:`domain`.
    """

    def __init__(
        self,
        poles: Sequence[Point],
        knots: Sequence[float],
        degree: int,
        weights: Optional[Sequence[ParameterLike]] = None,
        periodic: bool = False,
        start_point: Optional[Point] = None,
        end_point: Optional[Point] = None,
    ) -> None:
        if periodic:
            raise ValueError("periodic B-splines are not supported")
        if degree < 1:
            raise ValueError(f"B-spline degree must be at least 1, got {degree}")
        if len(poles) < degree + 1:
            raise ValueError(f"degree {degree} B-spline needs at least {degree + 1} poles, got {len(poles)}")
        expected = len(poles) + degree + 1
        if len(knots) != expected:
            raise ValueError(f"expected {expected} knots for {len(poles)} poles of degree {degree}, got {len(knots)}")
        if any(b < a for a, b in zip(knots, knots[1:])):
            raise ValueError("knot vector must be non-decreasing")
        if weights is None:
            weight_params = [Parameter(1.0, fixed=True) for _ in poles]
        else:
            if len(weights) != len(poles):
                raise ValueError(f"expected {len(poles)} weights, got {len(weights)}")
            weight_params = [_free_parameter(w, None) for w in weights]

        self.poles: List[Point] = list(poles)
        self.weights: List[Parameter] = weight_params
        self.knots: List[float] = [float(k) for k in knots]
        self.degree = degree
        u_start, u_end = self.domain
        self.start_point = start_point if start_point is not None else self._point_at(u_start)
        self.end_point = end_point if end_point is not None else self._point_at(u_end)

    @property
    def domain(self) -> tuple:
        return self.knots[self.degree], self.knots[len(self.poles)]

    def _point_at(self, u: float) -> Point:
        pos = self.value(u)
        return Point(pos.x, pos.y)

    def find_span(self, u: float) -> int:
        n = len(self.poles) - 1
        p = self.degree
        knots = self.knots
        if u >= knots[n + 1]:
            return n
        if u <= knots[p]:
            return p
        low, high = p, n + 1
        mid = (low + high) // 2
        while u < knots[mid] or u >= knots[mid + 1]:
            if u < knots[mid]:
                high = mid
            else:
                low = mid
            mid = (low + high) // 2
        return mid

    def basis_derivatives(self, span: int, u: float, order: int = 1) -> np.ndarray:
        """Nonzero basis functions and their derivatives up to ``order``.

        Row ``k`` holds the ``k``-th derivatives of ``N[span - degree .. span]``
        (The NURBS Book, algorithm A2.3).
        """

        p = self.degree
        knots = self.knots
        order = min(order, p)
        ndu = np.zeros((p + 1, p + 1))
        left = np.zeros(p + 1)
        right = np.zeros(p + 1)
        ndu[0, 0] = 1.0
        for j in range(1, p + 1):
            left[j] = u - knots[span + 1 - j]
            right[j] = knots[span + j] - u
            saved = 0.0
            for r in range(j):
                ndu[j, r] = right[r + 1] + left[j - r]
                temp = ndu[r, j - 1] / ndu[j, r] if ndu[j, r] != 0.0 else 0.0
                ndu[r, j] = saved + right[r + 1] * temp
                saved = left[j - r] * temp
            ndu[j, j] = saved

        ders = np.zeros((order + 1, p + 1))
        ders[0, :] = ndu[:, p]
        for r in range(p + 1):
            s1, s2 = 0, 1
            a = np.zeros((2, p + 1))
            a[0, 0] = 1.0
            for k in range(1, order + 1):
                d = 0.0
                rk = r - k
                pk = p - k
                if r >= k:
                    a[s2, 0] = a[s1, 0] / ndu[pk + 1, rk]
                    d = a[s2, 0] * ndu[rk, pk]
                j1 = 1 if rk >= -1 else -rk
                j2 = k - 1 if r - 1 <= pk else p - r
                for j in range(j1, j2 + 1):
                    a[s2, j] = (a[s1, j] - a[s1, j - 1]) / ndu[pk + 1, rk + j]
                    d += a[s2, j] * ndu[rk + j, pk]
                if r <= pk:
                    a[s2, k] = -a[s1, k - 1] / ndu[pk + 1, r]
                    d += a[s2, k] * ndu[r, pk]
                ders[k, r] = d
                s1, s2 = s2, s1

        factor = float(p)
        for k in range(1, order + 1):
            ders[k, :] *= factor
            factor *= p - k
        return ders

    def _evaluate(self, u: float):
        span = self.find_span(u)
        ders = self.basis_derivatives(span, u, 1)
        first = span - self.degree
        poles = np.array([self.poles[first + i].vector for i in range(self.degree + 1)])
        weights = np.array([self.weights[first + i].value for i in range(self.degree + 1)])
        nw = ders[0] * weights
        dnw = ders[1] * weights
        w = float(nw.sum())
        dw = float(dnw.sum())
        numerator = nw @ poles
        d_numerator = dnw @ poles
        return span, ders[0], weights, poles, w, dw, numerator, d_numerator

    def value(self, u: float) -> DeriVector2:
        _, _, _, _, w, dw, numerator, d_numerator = self._evaluate(u)
        if abs(w) < _DENOM_EPS:
            return DeriVector2(float(numerator[0]), float(numerator[1]), float(d_numerator[0]), float(d_numerator[1]))
        pos = numerator / w
        d = (d_numerator - pos * dw) / w
        return DeriVector2(float(pos[0]), float(pos[1]), float(d[0]), float(d[1]))

    def parameters(self) -> List[Parameter]:
        params: List[Parameter] = []
        for pole in self.poles:
            params.extend(pole.parameters())
        params.extend(self.weights)
        return params

    def position_gradient(self, u: float) -> List[PositionPartial]:
        span, basis, weights, poles, w, _, numerator, _ = self._evaluate(u)
        first = span - self.degree
        partials: List[PositionPartial] = []
        if abs(w) < _DENOM_EPS:
            return partials
        pos = numerator / w
        for i in range(self.degree + 1):
            pole = self.poles[first + i]
            coeff = basis[i] * weights[i] / w
            partials.append((pole.x, float(coeff), 0.0))
            partials.append((pole.y, 0.0, float(coeff)))
            shift = basis[i] * (poles[i] - pos) / w
            partials.append((self.weights[first + i], float(shift[0]), float(shift[1])))
        return partials


__all__ = ["BSpline"]
