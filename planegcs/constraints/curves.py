"""Incidence and tangency against curves, curve values and refraction."""

from __future__ import annotations

from typing import Dict, List, Tuple, Union

import numpy as np

from ..geometry import (
    Arc,
    ArcOfEllipse,
    ArcOfHyperbola,
    ArcOfParabola,
    BSpline,
    Circle,
    Curve,
    Ellipse,
    Hyperbola,
    Line,
    Parabola,
    Point,
)
from ..linalg import _DENOM_EPS, _norm_2d, _unit_or_zero
from ..parameter import Parameter, ParameterLike, as_parameter
from .base import Constraint, ConstraintType
from .basic import ConstraintP2LDistance

BoundedCurve = Union[Arc, ArcOfEllipse, ArcOfHyperbola, ArcOfParabola, BSpline]


def _focal_axis(center: Point, focus: Point) -> Tuple[np.ndarray, float]:
    c_vec = focus.vector - center.vector
    return c_vec, _norm_2d(c_vec)


def _flatten(*vectors: np.ndarray) -> List[float]:
    return [float(v) for v in np.concatenate(vectors)]


class ConstraintPointOnCircle(Constraint):
    type = ConstraintType.POINT_ON_CIRCLE

    def __init__(self, point: Point, circle: Circle) -> None:
        super().__init__()
        self.point = point
        self.circle = circle

    def parameters(self) -> List[Parameter]:
        return [self.point.x, self.point.y, *self.circle.parameters()]

    def _residual(self) -> float:
        return self.point.distance_to(self.circle.center) - self.circle.radius.value

    def _raw_gradient(self) -> List[float]:
        u, _ = _unit_or_zero(self.point.vector - self.circle.center.vector)
        return _flatten(u, -u, np.array([-1.0]))


class ConstraintPointOnEllipse(Constraint):
    """Focal-sum form: ``|P - F1| + |P - F2| - 2a``."""

    type = ConstraintType.POINT_ON_CURVE

    def __init__(self, point: Point, ellipse: Ellipse) -> None:
        super().__init__()
        self.point = point
        self.ellipse = ellipse

    def parameters(self) -> List[Parameter]:
        return [self.point.x, self.point.y, *self.ellipse.parameters()]

    def _residual(self) -> float:
        p = self.point.vector
        e = self.ellipse
        return _norm_2d(p - e.focus1.vector) + _norm_2d(p - e.focus2) - 2.0 * e.major_radius

    def _raw_gradient(self) -> List[float]:
        e = self.ellipse
        p = self.point.vector
        u1, _ = _unit_or_zero(p - e.focus1.vector)
        u2, _ = _unit_or_zero(p - e.focus2)
        c_vec, _ = _focal_axis(e.center, e.focus1)
        a = e.major_radius
        b = e.minor_radius
        if a > _DENOM_EPS:
            da_dc, da_db = c_vec / a, b / a
        else:
            da_dc, da_db = np.zeros(2), 0.0
        g_point = u1 + u2
        g_center = -2.0 * u2 + 2.0 * da_dc
        g_focus = -u1 + u2 - 2.0 * da_dc
        return _flatten(g_point, g_center, g_focus, np.array([-2.0 * da_db]))


class ConstraintPointOnHyperbola(Constraint):
    """Focal-difference form: ``| |P - F1| - |P - F2| | - 2a``."""

    type = ConstraintType.POINT_ON_CURVE

    def __init__(self, point: Point, hyperbola: Hyperbola) -> None:
        super().__init__()
        self.point = point
        self.hyperbola = hyperbola

    def parameters(self) -> List[Parameter]:
        return [self.point.x, self.point.y, *self.hyperbola.parameters()]

    def _residual(self) -> float:
        p = self.point.vector
        h = self.hyperbola
        return abs(_norm_2d(p - h.focus1.vector) - _norm_2d(p - h.focus2)) - 2.0 * h.major_radius

    def _raw_gradient(self) -> List[float]:
        h = self.hyperbola
        p = self.point.vector
        u1, d1 = _unit_or_zero(p - h.focus1.vector)
        u2, d2 = _unit_or_zero(p - h.focus2)
        sigma = 1.0 if d1 >= d2 else -1.0
        c_vec, c = _focal_axis(h.center, h.focus1)
        a = h.major_radius
        b = h.minor_radius
        tau = 1.0 if c * c >= b * b else -1.0
        if a > _DENOM_EPS:
            da_dc, da_db = tau * c_vec / a, -tau * b / a
        else:
            da_dc, da_db = np.zeros(2), 0.0
        g_point = sigma * (u1 - u2)
        g_center = sigma * 2.0 * u2 + 2.0 * da_dc
        g_focus = sigma * (-u1 - u2) - 2.0 * da_dc
        return _flatten(g_point, g_center, g_focus, np.array([-2.0 * da_db]))


class ConstraintPointOnParabola(Constraint):
    """Focus distance equals directrix distance."""

    type = ConstraintType.POINT_ON_CURVE

    def __init__(self, point: Point, parabola: Parabola) -> None:
        super().__init__()
        self.point = point
        self.parabola = parabola

    def parameters(self) -> List[Parameter]:
        return [self.point.x, self.point.y, *self.parabola.parameters()]

    def _residual(self) -> float:
        par = self.parabola
        p = self.point.vector
        rel = p - par.vertex.vector
        return _norm_2d(p - par.focus.vector) - (float(rel @ par.axis) + par.focal_length)

    def _raw_gradient(self) -> List[float]:
        par = self.parabola
        p = self.point.vector
        rel = p - par.vertex.vector
        u_focus, _ = _unit_or_zero(p - par.focus.vector)
        _, focal = _focal_axis(par.vertex, par.focus)
        e = par.axis
        # g = (P - V).e + |F - V|; dg/d(F - V)
        if focal > _DENOM_EPS:
            dg_df = (rel - float(rel @ e) * e) / focal + e
        else:
            dg_df = e
        g_point = u_focus - e
        g_vertex = e + dg_df
        g_focus = -u_focus - dg_df
        return _flatten(g_point, g_vertex, g_focus)


class ConstraintTangentCircumf(Constraint):
    """Two circles touch externally, or internally when ``internal`` is set."""

    type = ConstraintType.TANGENT

    def __init__(self, circle1: Circle, circle2: Circle, internal: bool = False) -> None:
        super().__init__()
        self.circle1 = circle1
        self.circle2 = circle2
        self.internal = internal

    def parameters(self) -> List[Parameter]:
        return [*self.circle1.parameters(), *self.circle2.parameters()]

    def _residual(self) -> float:
        dist = self.circle1.center.distance_to(self.circle2.center)
        r1, r2 = self.circle1.radius.value, self.circle2.radius.value
        if self.internal:
            return dist - abs(r1 - r2)
        return dist - (r1 + r2)

    def _raw_gradient(self) -> List[float]:
        u, _ = _unit_or_zero(self.circle2.center.vector - self.circle1.center.vector)
        if self.internal:
            s = 1.0 if self.circle1.radius.value >= self.circle2.radius.value else -1.0
            dr1, dr2 = -s, s
        else:
            dr1, dr2 = -1.0, -1.0
        return _flatten(-u, np.array([dr1]), u, np.array([dr2]))


class ConstraintTangentLineCircle(ConstraintP2LDistance):
    """Line touches the circle: center-to-line distance equals the radius."""

    type = ConstraintType.TANGENT

    def __init__(self, line: Line, circle: Circle) -> None:
        super().__init__(circle.center, line, circle.radius)
        self.circle = circle


class ConstraintCurveValue(Constraint):
    """One coordinate of ``point`` matches the same coordinate of ``curve(u)``.

    ``axis`` is 0 for x and 1 for y; :func:`curve_value` builds the pair.
    ``u`` may itself be an unknown.
    """

    type = ConstraintType.CURVE_VALUE

    def __init__(self, curve: Curve, u: ParameterLike, point: Point, axis: int = 0) -> None:
        if axis not in (0, 1):
            raise ValueError(f"axis must be 0 (x) or 1 (y), got {axis!r}")
        super().__init__()
        self.curve = curve
        self.u = as_parameter(u)
        self.point = point
        self.axis = axis

    def parameters(self) -> List[Parameter]:
        return [self.u, self.point.x, self.point.y, *self.curve.parameters()]

    def _residual(self) -> float:
        pos = self.curve.value(self.u.value)
        return float(pos.point[self.axis] - self.point.vector[self.axis])

    def _raw_gradient(self) -> List[float]:
        curve_params = self.curve.parameters()
        grad = [0.0] * (3 + len(curve_params))
        pos = self.curve.value(self.u.value)
        grad[0] = float(pos.derivative[self.axis])
        grad[1 + self.axis] = -1.0
        slots: Dict[int, int] = {}
        for idx, param in enumerate(curve_params):
            slots.setdefault(id(param), 3 + idx)
        for param, gx, gy in self.curve.position_gradient(self.u.value):
            slot = slots.get(id(param))
            if slot is not None:
                grad[slot] += gy if self.axis else gx
        return grad


def curve_value(curve: Curve, u: ParameterLike, point: Point) -> List[ConstraintCurveValue]:
    """Pin ``point`` to ``curve(u)`` with one constraint per coordinate."""

    u_param = as_parameter(u)
    return [ConstraintCurveValue(curve, u_param, point, 0), ConstraintCurveValue(curve, u_param, point, 1)]


class ConstraintSnell(Constraint):
    """Refraction law ``n1 sin(theta1) == n2 sin(theta2)`` across ``boundary``.

    ``sin(theta)`` of a ray against the boundary normal is the absolute
    cosine between the ray and the boundary tangent.
    """

    type = ConstraintType.SNELL

    def __init__(
        self, ray1: Line, ray2: Line, boundary: Line, n1: ParameterLike, n2: ParameterLike
    ) -> None:
        super().__init__()
        self.ray1 = ray1
        self.ray2 = ray2
        self.boundary = boundary
        self.n1 = as_parameter(n1)
        self.n2 = as_parameter(n2)

    def parameters(self) -> List[Parameter]:
        return [
            *self.ray1.parameters(),
            *self.ray2.parameters(),
            *self.boundary.parameters(),
            self.n1,
            self.n2,
        ]

    def _sines(self) -> Tuple[float, float]:
        t, _ = _unit_or_zero(self.boundary.delta)
        d1, _ = _unit_or_zero(self.ray1.delta)
        d2, _ = _unit_or_zero(self.ray2.delta)
        return abs(float(d1 @ t)), abs(float(d2 @ t))

    def _residual(self) -> float:
        sin1, sin2 = self._sines()
        return self.n1.value * sin1 - self.n2.value * sin2

    @staticmethod
    def _cosine_partials(d: np.ndarray, t: np.ndarray) -> Tuple[float, np.ndarray, np.ndarray]:
        """``|cos|`` between ``d`` and ``t`` and its partials w.r.t. both vectors."""

        d_hat, d_len = _unit_or_zero(d)
        t_hat, t_len = _unit_or_zero(t)
        if d_len < _DENOM_EPS or t_len < _DENOM_EPS:
            return 0.0, np.zeros(2), np.zeros(2)
        cos = float(d_hat @ t_hat)
        sign = 1.0 if cos >= 0.0 else -1.0
        g_d = sign * (t_hat - cos * d_hat) / d_len
        g_t = sign * (d_hat - cos * t_hat) / t_len
        return abs(cos), g_d, g_t

    def _raw_gradient(self) -> List[float]:
        t = self.boundary.delta
        n1, n2 = self.n1.value, self.n2.value
        sin1, g_d1, g_t1 = self._cosine_partials(self.ray1.delta, t)
        sin2, g_d2, g_t2 = self._cosine_partials(self.ray2.delta, t)
        g_ray1 = n1 * g_d1
        g_ray2 = -n2 * g_d2
        g_boundary = n1 * g_t1 - n2 * g_t2
        return _flatten(-g_ray1, g_ray1, -g_ray2, g_ray2, -g_boundary, g_boundary, np.array([sin1, -sin2]))


def arc_endpoint_constraints(arc: BoundedCurve) -> List[ConstraintCurveValue]:
    """Tie a bounded curve's start and end points to its parameter range.

    Each endpoint gets an x and a y constraint. B-spline endpoints sit at the
    fixed ends of the knot domain.
    """

    if isinstance(arc, (Arc, ArcOfEllipse)):
        start, end = arc.start_angle, arc.end_angle
    elif isinstance(arc, BSpline):
        start, end = arc.domain
    else:
        start, end = arc.start_param, arc.end_param
    return [*curve_value(arc, start, arc.start_point), *curve_value(arc, end, arc.end_point)]


__all__ = [
    "ConstraintCurveValue",
    "ConstraintPointOnCircle",
    "ConstraintPointOnEllipse",
    "ConstraintPointOnHyperbola",
    "ConstraintPointOnParabola",
    "ConstraintSnell",
    "ConstraintTangentCircumf",
    "ConstraintTangentLineCircle",
    "arc_endpoint_constraints",
    "curve_value",
]
