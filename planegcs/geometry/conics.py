"""Circles, ellipses, hyperbolas and parabolas, with their bounded arcs.

Ellipses and hyperbolas are defined by ``center``, one focus ``focus1`` and
the minor radius ``radmin``; the major radius is derived from the focal
distance ``c`` (``a = sqrt(c**2 + b**2)`` for an ellipse,
``a = sqrt(|c**2 - b**2|)`` for a hyperbola). A parabola is defined by its
vertex and focus.
"""

from __future__ import annotations

import math
from typing import List, Optional, Tuple

import numpy as np

from ..linalg import _DENOM_EPS, _norm_2d
from ..parameter import Parameter, ParameterLike
from .curve import Curve, DeriVector2, PositionPartial, _expand_partials
from .primitives import Point, _free_parameter

_TWO_PI = 2.0 * math.pi
_ROT90 = np.array([[0.0, -1.0], [1.0, 0.0]])


def _normalize_angle(angle: float) -> float:
    wrapped = math.fmod(angle, _TWO_PI)
    if wrapped < 0.0:
        wrapped += _TWO_PI
    return wrapped


def _angle_in_range(angle: float, start: float, end: float) -> bool:
    angle = _normalize_angle(angle)
    start = _normalize_angle(start)
    end = _normalize_angle(end)
    if start <= end:
        return start <= angle <= end
    return angle >= start or angle <= end


def _focal_frame(center: Point, focus: Point) -> Tuple[np.ndarray, float, np.ndarray, np.ndarray]:
    """Return ``(c_vec, c, e, de_dc)`` for the axis from ``center`` to ``focus``.

    ``e`` is the unit axis and ``de_dc`` its Jacobian w.r.t. ``c_vec``; a
    collapsed axis falls back to ``e = (1, 0)`` and a zero Jacobian.
    """

    c_vec = focus.vector - center.vector
    c = _norm_2d(c_vec)
    if c < _DENOM_EPS:
        return c_vec, c, np.array([1.0, 0.0]), np.zeros((2, 2))
    e = c_vec / c
    return c_vec, c, e, (np.eye(2) - np.outer(e, e)) / c


def _endpoint(point: Optional[Point], curve: Curve, u: float) -> Point:
    if point is not None:
        return point
    pos = curve.value(u)
    return Point(pos.x, pos.y)


class Circle(Curve):
    def __init__(self, center: Point, radius: ParameterLike) -> None:
        self.center = center
        self.radius = _free_parameter(radius, None)

    def value(self, u: float) -> DeriVector2:
        r = self.radius.value
        cos_u, sin_u = math.cos(u), math.sin(u)
        return DeriVector2(
            self.center.x.value + r * cos_u,
            self.center.y.value + r * sin_u,
            -r * sin_u,
            r * cos_u,
        )

    def parameters(self) -> List[Parameter]:
        return [self.center.x, self.center.y, self.radius]

    def position_gradient(self, u: float) -> List[PositionPartial]:
        return [
            (self.center.x, 1.0, 0.0),
            (self.center.y, 0.0, 1.0),
            (self.radius, math.cos(u), math.sin(u)),
        ]

    def contains_point(self, point: Point, tolerance: float = 1e-10) -> bool:
        return self.distance_to_point(point) < tolerance

    def distance_to_point(self, point: Point) -> float:
        return abs(point.distance_to(self.center) - self.radius.value)


class Arc(Circle):
    """Circular arc from ``start_angle`` to ``end_angle`` (counter-clockwise)."""

    def __init__(
        self,
        center: Point,
        radius: ParameterLike,
        start_angle: ParameterLike,
        end_angle: ParameterLike,
        start_point: Optional[Point] = None,
        end_point: Optional[Point] = None,
    ) -> None:
        super().__init__(center, radius)
        self.start_angle = _free_parameter(start_angle, None)
        self.end_angle = _free_parameter(end_angle, None)
        self.start_point = _endpoint(start_point, self, self.start_angle.value)
        self.end_point = _endpoint(end_point, self, self.end_angle.value)

    def angle_in_range(self, angle: float) -> bool:
        return _angle_in_range(angle, self.start_angle.value, self.end_angle.value)


class Ellipse(Curve):
    def __init__(self, center: Point, focus1: Point, radmin: ParameterLike) -> None:
        self.center = center
        self.focus1 = focus1
        self.radmin = _free_parameter(radmin, None)

    @property
    def focal_distance(self) -> float:
        return self.center.distance_to(self.focus1)

    @property
    def major_radius(self) -> float:
        c = self.focal_distance
        b = self.radmin.value
        return math.sqrt(c * c + b * b)

    @property
    def minor_radius(self) -> float:
        return self.radmin.value

    @property
    def eccentricity(self) -> float:
        a = self.major_radius
        return self.focal_distance / a if a > _DENOM_EPS else 0.0

    @property
    def rotation(self) -> float:
        return math.atan2(
            self.focus1.y.value - self.center.y.value, self.focus1.x.value - self.center.x.value
        )

    @property
    def focus2(self) -> np.ndarray:
        """Second focus, the reflection of ``focus1`` through the center."""

        return 2.0 * self.center.vector - self.focus1.vector

    def value(self, u: float) -> DeriVector2:
        _, _, e, _ = _focal_frame(self.center, self.focus1)
        n = _ROT90 @ e
        a, b = self.major_radius, self.minor_radius
        cos_u, sin_u = math.cos(u), math.sin(u)
        pos = self.center.vector + a * cos_u * e + b * sin_u * n
        d = -a * sin_u * e + b * cos_u * n
        return DeriVector2(float(pos[0]), float(pos[1]), float(d[0]), float(d[1]))

    def parameters(self) -> List[Parameter]:
        return [self.center.x, self.center.y, self.focus1.x, self.focus1.y, self.radmin]

    def position_gradient(self, u: float) -> List[PositionPartial]:
        c_vec, _, e, de_dc = _focal_frame(self.center, self.focus1)
        n = _ROT90 @ e
        a, b = self.major_radius, self.minor_radius
        cos_u, sin_u = math.cos(u), math.sin(u)
        # a = sqrt(c^2 + b^2): da/dc_vec = c_vec / a, da/db = b / a
        da_dc = c_vec / a if a > _DENOM_EPS else np.zeros(2)
        da_db = b / a if a > _DENOM_EPS else 0.0
        d_dc = cos_u * np.outer(e, da_dc) + a * cos_u * de_dc + b * sin_u * (_ROT90 @ de_dc)
        d_db = cos_u * da_db * e + sin_u * n
        jac = np.column_stack([np.eye(2) - d_dc, d_dc, d_db])
        return _expand_partials(self.parameters(), jac)

    def contains_point(self, point: Point, tolerance: float = 1e-10) -> bool:
        p = point.vector
        focal_sum = _norm_2d(p - self.focus1.vector) + _norm_2d(p - self.focus2)
        return abs(focal_sum - 2.0 * self.major_radius) < tolerance


class ArcOfEllipse(Ellipse):
    def __init__(
        self,
        center: Point,
        focus1: Point,
        radmin: ParameterLike,
        start_angle: ParameterLike,
        end_angle: ParameterLike,
        start_point: Optional[Point] = None,
        end_point: Optional[Point] = None,
    ) -> None:
        super().__init__(center, focus1, radmin)
        self.start_angle = _free_parameter(start_angle, None)
        self.end_angle = _free_parameter(end_angle, None)
        self.start_point = _endpoint(start_point, self, self.start_angle.value)
        self.end_point = _endpoint(end_point, self, self.end_angle.value)

    def angle_in_range(self, angle: float) -> bool:
        return _angle_in_range(angle, self.start_angle.value, self.end_angle.value)


class Hyperbola(Curve):
    """Right branch ``center + a cosh(u) e + b sinh(u) e_perp``."""

    def __init__(self, center: Point, focus1: Point, radmin: ParameterLike) -> None:
        self.center = center
        self.focus1 = focus1
        self.radmin = _free_parameter(radmin, None)

    @property
    def focal_distance(self) -> float:
        return self.center.distance_to(self.focus1)

    @property
    def major_radius(self) -> float:
        c = self.focal_distance
        b = self.radmin.value
        return math.sqrt(abs(c * c - b * b))

    @property
    def minor_radius(self) -> float:
        return self.radmin.value

    @property
    def eccentricity(self) -> float:
        a = self.major_radius
        return self.focal_distance / a if a > _DENOM_EPS else math.inf

    @property
    def rotation(self) -> float:
        return math.atan2(
            self.focus1.y.value - self.center.y.value, self.focus1.x.value - self.center.x.value
        )

    @property
    def focus2(self) -> np.ndarray:
        return 2.0 * self.center.vector - self.focus1.vector

    def value(self, u: float) -> DeriVector2:
        _, _, e, _ = _focal_frame(self.center, self.focus1)
        n = _ROT90 @ e
        a, b = self.major_radius, self.minor_radius
        cosh_u, sinh_u = math.cosh(u), math.sinh(u)
        pos = self.center.vector + a * cosh_u * e + b * sinh_u * n
        d = a * sinh_u * e + b * cosh_u * n
        return DeriVector2(float(pos[0]), float(pos[1]), float(d[0]), float(d[1]))

    def parameters(self) -> List[Parameter]:
        return [self.center.x, self.center.y, self.focus1.x, self.focus1.y, self.radmin]

    def position_gradient(self, u: float) -> List[PositionPartial]:
        c_vec, c, e, de_dc = _focal_frame(self.center, self.focus1)
        n = _ROT90 @ e
        a, b = self.major_radius, self.minor_radius
        cosh_u, sinh_u = math.cosh(u), math.sinh(u)
        sigma = 1.0 if c * c >= b * b else -1.0
        da_dc = sigma * c_vec / a if a > _DENOM_EPS else np.zeros(2)
        da_db = -sigma * b / a if a > _DENOM_EPS else 0.0
        d_dc = cosh_u * np.outer(e, da_dc) + a * cosh_u * de_dc + b * sinh_u * (_ROT90 @ de_dc)
        d_db = cosh_u * da_db * e + sinh_u * n
        jac = np.column_stack([np.eye(2) - d_dc, d_dc, d_db])
        return _expand_partials(self.parameters(), jac)

    def contains_point(self, point: Point, tolerance: float = 1e-10) -> bool:
        p = point.vector
        focal_diff = abs(_norm_2d(p - self.focus1.vector) - _norm_2d(p - self.focus2))
        return abs(focal_diff - 2.0 * self.major_radius) < tolerance


class ArcOfHyperbola(Hyperbola):
    def __init__(
        self,
        center: Point,
        focus1: Point,
        radmin: ParameterLike,
        start_param: ParameterLike,
        end_param: ParameterLike,
        start_point: Optional[Point] = None,
        end_point: Optional[Point] = None,
    ) -> None:
        super().__init__(center, focus1, radmin)
        self.start_param = _free_parameter(start_param, None)
        self.end_param = _free_parameter(end_param, None)
        self.start_point = _endpoint(start_point, self, self.start_param.value)
        self.end_point = _endpoint(end_point, self, self.end_param.value)

    def param_in_range(self, param: float) -> bool:
        # Hyperbola parameters do not wrap around.
        start, end = self.start_param.value, self.end_param.value
        return start <= param <= end


class Parabola(Curve):
    """Parabola ``vertex + t**2 / (4 p) axis + t axis_perp`` with focal length ``p``."""

    def __init__(self, vertex: Point, focus: Point) -> None:
        self.vertex = vertex
        self.focus = focus

    @property
    def focal_length(self) -> float:
        return self.vertex.distance_to(self.focus)

    @property
    def axis(self) -> np.ndarray:
        _, _, e, _ = _focal_frame(self.vertex, self.focus)
        return e

    @property
    def rotation(self) -> float:
        return math.atan2(
            self.focus.y.value - self.vertex.y.value, self.focus.x.value - self.vertex.x.value
        )

    def value(self, u: float) -> DeriVector2:
        p = max(self.focal_length, _DENOM_EPS)
        e = self.axis
        n = _ROT90 @ e
        pos = self.vertex.vector + (u * u / (4.0 * p)) * e + u * n
        d = (u / (2.0 * p)) * e + n
        return DeriVector2(float(pos[0]), float(pos[1]), float(d[0]), float(d[1]))

    def parameters(self) -> List[Parameter]:
        return [self.vertex.x, self.vertex.y, self.focus.x, self.focus.y]

    def position_gradient(self, u: float) -> List[PositionPartial]:
        _, p, e, de_dc = _focal_frame(self.vertex, self.focus)
        if p < _DENOM_EPS:
            d_dc = np.zeros((2, 2))
        else:
            # d/df [u^2/(4p) e] = u^2/(4p^2) (I - 2 e e^T)
            d_dc = (u * u / (4.0 * p * p)) * (np.eye(2) - 2.0 * np.outer(e, e)) + u * (_ROT90 @ de_dc)
        jac = np.column_stack([np.eye(2) - d_dc, d_dc])
        return _expand_partials(self.parameters(), jac)

    def contains_point(self, point: Point, tolerance: float = 1e-10) -> bool:
        rel = point.vector - self.vertex.vector
        e = self.axis
        directrix_distance = float(rel @ e) + self.focal_length
        return abs(_norm_2d(point.vector - self.focus.vector) - directrix_distance) < tolerance


class ArcOfParabola(Parabola):
    def __init__(
        self,
        vertex: Point,
        focus: Point,
        start_param: ParameterLike,
        end_param: ParameterLike,
        start_point: Optional[Point] = None,
        end_point: Optional[Point] = None,
    ) -> None:
        super().__init__(vertex, focus)
        self.start_param = _free_parameter(start_param, None)
        self.end_param = _free_parameter(end_param, None)
        self.start_point = _endpoint(start_point, self, self.start_param.value)
        self.end_point = _endpoint(end_point, self, self.end_param.value)

    def param_in_range(self, param: float) -> bool:
        # Parabola parameters do not wrap around.
        start, end = self.start_param.value, self.end_param.value
        return start <= param <= end


__all__ = [
    "Arc",
    "ArcOfEllipse",
    "ArcOfHyperbola",
    "ArcOfParabola",
    "Circle",
    "Ellipse",
    "Hyperbola",
    "Parabola",
]
