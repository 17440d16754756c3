import math

import pytest

from planegcs import (
    Arc,
    BSpline,
    Circle,
    ConstraintAngleViaPoint,
    ConstraintCurveValue,
    ConstraintDifference,
    ConstraintEqual,
    ConstraintL2LAngle,
    ConstraintP2LDistance,
    ConstraintP2PAngle,
    ConstraintP2PDistance,
    ConstraintParallel,
    ConstraintPerpendicular,
    ConstraintPointOnCircle,
    ConstraintPointOnEllipse,
    ConstraintPointOnHyperbola,
    ConstraintPointOnLine,
    ConstraintPointOnParabola,
    ConstraintSnell,
    ConstraintTangentCircumf,
    ConstraintTangentLineCircle,
    Ellipse,
    Hyperbola,
    Line,
    Parabola,
    Parameter,
    Point,
    arc_endpoint_constraints,
    coincident,
    curve_value,
    horizontal,
    vertical,
)
from planegcs.constraints import wrap_angle


def _numeric_gradient(constraint, h=1e-6):
    grads = []
    for param in constraint.parameters():
        original = param.value
        param.value = original + h
        plus = constraint.error()
        param.value = original - h
        minus = constraint.error()
        param.value = original
        grads.append((plus - minus) / (2 * h))
    return grads


def _line(x1, y1, x2, y2):
    return Line(Point(x1, y1), Point(x2, y2))


def _bezier():
    poles = [Point(0.0, 0.0), Point(1.0, 2.0), Point(2.0, 0.0)]
    return BSpline(poles, [0.0, 0.0, 0.0, 1.0, 1.0, 1.0], degree=2, weights=[1.0, 2.0, 1.0])


CONSTRAINT_FACTORIES = {
    "equal": lambda: ConstraintEqual(Parameter(1.5), Parameter(-0.5)),
    "difference": lambda: ConstraintDifference(Parameter(4.0), Parameter(1.0), Parameter(2.0)),
    "p2p-distance": lambda: ConstraintP2PDistance(Point(0.0, 0.0), Point(3.5, 4.2), Parameter(5.0)),
    "p2l-distance": lambda: ConstraintP2LDistance(Point(1.0, 3.0), _line(0.0, 0.0, 4.0, 1.0), Parameter(0.5)),
    "p2l-distance-below": lambda: ConstraintP2LDistance(Point(2.0, -1.5), _line(0.0, 0.0, 4.0, 1.0), Parameter(0.5)),
    "point-on-line": lambda: ConstraintPointOnLine(Point(1.0, 3.0), _line(0.0, 0.0, 4.0, 1.0)),
    "parallel": lambda: ConstraintParallel(_line(0.0, 0.0, 2.0, 1.0), _line(1.0, 1.0, 3.0, 4.0)),
    "perpendicular": lambda: ConstraintPerpendicular(_line(0.0, 0.0, 2.0, 1.0), _line(1.0, 1.0, 3.0, 4.0)),
    "l2l-angle": lambda: ConstraintL2LAngle(_line(0.0, 0.0, 2.0, 1.0), _line(1.0, 1.0, 0.0, 3.0), Parameter(1.0)),
    "p2p-angle": lambda: ConstraintP2PAngle(Point(0.0, 0.0), Point(1.0, 2.0), Parameter(0.3)),
    "angle-via-point": lambda: ConstraintAngleViaPoint(
        Point(0.5, 0.5), Point(2.0, 1.0), Point(-1.0, 2.0), Parameter(0.5)
    ),
    "point-on-circle": lambda: ConstraintPointOnCircle(Point(2.0, 3.0), Circle(Point(0.5, 0.5), 1.2)),
    "point-on-ellipse": lambda: ConstraintPointOnEllipse(
        Point(5.0, 4.0), Ellipse(Point(1.0, 1.0), Point(4.0, 2.0), 2.0)
    ),
    "point-on-hyperbola": lambda: ConstraintPointOnHyperbola(
        Point(6.0, 2.0), Hyperbola(Point(0.0, 0.0), Point(5.0, 0.5), 3.0)
    ),
    "point-on-parabola": lambda: ConstraintPointOnParabola(
        Point(3.0, 2.0), Parabola(Point(0.0, 0.0), Point(1.0, 0.5))
    ),
    "tangent-external": lambda: ConstraintTangentCircumf(
        Circle(Point(0.0, 0.0), 1.0), Circle(Point(3.0, 1.0), 2.0)
    ),
    "tangent-internal": lambda: ConstraintTangentCircumf(
        Circle(Point(0.0, 0.0), 1.0), Circle(Point(3.0, 1.0), 2.5), internal=True
    ),
    "tangent-line-circle": lambda: ConstraintTangentLineCircle(
        _line(0.0, 0.0, 4.0, 1.0), Circle(Point(1.0, 3.0), 1.0)
    ),
    "curve-value-circle": lambda: ConstraintCurveValue(
        Circle(Point(1.0, 2.0), 1.5), Parameter(0.7), Point(0.3, 0.4)
    ),
    "curve-value-ellipse": lambda: ConstraintCurveValue(
        Ellipse(Point(1.0, 1.0), Point(4.0, 2.0), 2.0), Parameter(1.1), Point(0.3, 0.4)
    ),
    "curve-value-parabola": lambda: ConstraintCurveValue(
        Parabola(Point(0.0, 0.0), Point(1.0, 0.5)), Parameter(1.3), Point(0.3, 0.4)
    ),
    "curve-value-circle-y": lambda: ConstraintCurveValue(
        Circle(Point(1.0, 2.0), 1.5), Parameter(0.7), Point(0.3, 0.4), axis=1
    ),
    "curve-value-bspline": lambda: ConstraintCurveValue(_bezier(), Parameter(0.35), Point(0.3, 0.4)),
    "curve-value-bspline-y": lambda: ConstraintCurveValue(_bezier(), Parameter(0.35), Point(0.3, 0.4), axis=1),
    "snell": lambda: ConstraintSnell(
        _line(-1.0, 1.0, 0.0, 0.0),
        _line(0.0, 0.0, 0.5, -1.0),
        _line(-2.0, 0.1, 2.0, -0.1),
        Parameter(1.0),
        Parameter(1.33),
    ),
}


@pytest.mark.parametrize("name", sorted(CONSTRAINT_FACTORIES))
def test_gradient_matches_finite_differences(name):
    constraint = CONSTRAINT_FACTORIES[name]()
    constraint.rescale()

    analytic = constraint.gradient()
    numeric = _numeric_gradient(constraint)

    assert len(analytic) == len(constraint.parameters())
    assert analytic == pytest.approx(numeric, rel=1e-5, abs=1e-6)


@pytest.mark.parametrize("name", sorted(CONSTRAINT_FACTORIES))
def test_rescale_is_idempotent(name):
    constraint = CONSTRAINT_FACTORIES[name]()

    constraint.rescale()
    first = constraint.scale
    constraint.rescale()

    assert constraint.scale == first


def test_error_is_zero_when_relationship_holds():
    line = _line(0.0, 0.0, 4.0, 0.0)
    assert ConstraintP2PDistance(Point(0.0, 0.0), Point(3.0, 4.0), 5.0).error() == pytest.approx(0.0)
    assert ConstraintPointOnLine(Point(2.5, 0.0), line).error() == 0.0
    assert ConstraintParallel(line, _line(1.0, 1.0, 3.0, 1.0)).error() == 0.0
    assert ConstraintPerpendicular(line, _line(1.0, 1.0, 1.0, 5.0)).error() == 0.0
    assert ConstraintP2LDistance(Point(1.0, -2.0), line, 2.0).error() == pytest.approx(0.0)
    assert ConstraintPointOnCircle(Point(0.0, 2.0), Circle(Point(0.0, 0.0), 2.0)).error() == pytest.approx(0.0)
    assert ConstraintTangentCircumf(
        Circle(Point(0.0, 0.0), 1.0), Circle(Point(3.0, 0.0), 2.0)
    ).error() == pytest.approx(0.0)


def test_point_on_conics_vanish_on_curve_points():
    ellipse = Ellipse(Point(1.0, 1.0), Point(4.0, 2.0), 2.0)
    hyperbola = Hyperbola(Point(0.0, 0.0), Point(5.0, 0.5), 3.0)
    parabola = Parabola(Point(0.0, 0.0), Point(1.0, 0.5))

    for curve, cls in (
        (ellipse, ConstraintPointOnEllipse),
        (hyperbola, ConstraintPointOnHyperbola),
        (parabola, ConstraintPointOnParabola),
    ):
        pos = curve.value(0.9)
        assert cls(Point(pos.x, pos.y), curve).error() == pytest.approx(0.0, abs=1e-9)


def test_error_applies_scale():
    constraint = ConstraintPointOnLine(Point(1.0, 3.0), _line(0.0, 0.0, 4.0, 0.0))

    raw = constraint.error()
    constraint.rescale()

    assert constraint.scale == pytest.approx(0.25)
    assert constraint.error() == pytest.approx(raw / 4.0)


def test_plain_numbers_become_fixed_targets():
    constraint = ConstraintP2PDistance(Point(0.0, 0.0), Point(1.0, 0.0), 5.0)

    assert constraint.distance.fixed
    assert not constraint.p1.x.fixed


def test_coincident_points_use_deterministic_gradient():
    constraint = ConstraintP2PDistance(Point(1.0, 1.0), Point(1.0, 1.0), 2.0)

    assert constraint.gradient() == [0.0, 0.0, 0.0, 0.0, -1.0]
    assert all(math.isfinite(g) for g in ConstraintParallel(
        _line(0.0, 0.0, 0.0, 0.0), _line(1.0, 1.0, 1.0, 1.0)
    ).gradient())


def test_angle_residual_wraps_into_half_open_interval():
    assert wrap_angle(math.pi) == pytest.approx(math.pi)
    assert wrap_angle(-math.pi) == pytest.approx(math.pi)
    assert wrap_angle(3 * math.pi / 2) == pytest.approx(-math.pi / 2)

    constraint = ConstraintP2PAngle(Point(0.0, 0.0), Point(-1.0, -0.001), math.pi)
    assert abs(constraint.error()) < 0.01


def test_helpers_build_equal_constraints():
    line = _line(0.0, 0.0, 3.0, 1.0)
    p, q = Point(0.0, 0.0), Point(1.0, 1.0)

    h = horizontal(line)
    v = vertical(line)
    pair = coincident(p, q)

    assert h.parameters() == [line.p1.y, line.p2.y]
    assert v.parameters() == [line.p1.x, line.p2.x]
    assert [c.parameters() for c in pair] == [[p.x, q.x], [p.y, q.y]]


def test_arc_endpoint_constraints_hold_for_default_endpoints():
    arc = Arc(Point(0.0, 0.0), 2.0, 0.25, 1.5)

    rules = arc_endpoint_constraints(arc)

    assert len(rules) == 4
    assert [rule.axis for rule in rules] == [0, 1, 0, 1]
    assert all(rule.error() == pytest.approx(0.0, abs=1e-12) for rule in rules)
    assert rules[0].u is arc.start_angle and rules[1].u is arc.start_angle
    assert rules[2].u is arc.end_angle and rules[3].u is arc.end_angle
    assert rules[0].point is arc.start_point


def test_bspline_endpoint_constraints_use_domain_ends():
    curve = _bezier()

    rules = arc_endpoint_constraints(curve)

    assert [rule.u.value for rule in rules] == [0.0, 0.0, 1.0, 1.0]
    assert all(rule.u.fixed for rule in rules)
    assert all(rule.error() == pytest.approx(0.0, abs=1e-12) for rule in rules)


def test_curve_value_measures_each_coordinate_separately():
    circle = Circle(Point(0.0, 0.0), 1.0)
    point = Point(0.5, 3.0)

    x_rule, y_rule = curve_value(circle, 0.0, point)

    assert x_rule.u is y_rule.u
    assert x_rule.error() == pytest.approx(0.5)
    assert y_rule.error() == pytest.approx(-3.0)
    with pytest.raises(ValueError):
        ConstraintCurveValue(circle, 0.0, point, axis=2)
