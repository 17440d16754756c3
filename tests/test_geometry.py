import math
from typing import Dict

import pytest

from planegcs import (
    Arc,
    ArcOfHyperbola,
    ArcOfParabola,
    BSpline,
    Circle,
    Ellipse,
    Hyperbola,
    Line,
    Parabola,
    Parameter,
    Point,
)


def test_point_coordinates_are_free_parameters():
    p = Point(1.0, 2.0, name="A")

    assert not p.x.fixed and not p.y.fixed
    assert p.x.name == "A.x"
    assert p.distance_to(Point(4.0, 6.0)) == pytest.approx(5.0)


def test_point_keeps_given_parameter_objects():
    x = Parameter(3.0)
    p = Point(x, 0.0)

    assert p.x is x


def test_line_value_direction_and_distances():
    line = Line(Point(0.0, 0.0), Point(4.0, 0.0))

    mid = line.value(0.5)
    assert (mid.x, mid.y) == (2.0, 0.0)
    assert (mid.dx, mid.dy) == (4.0, 0.0)
    assert line.direction == pytest.approx([1.0, 0.0])
    assert line.distance_to_point(Point(1.0, 3.0)) == pytest.approx(3.0)
    assert line.closest_parameter(Point(1.0, 3.0)) == pytest.approx(0.25)
    assert line.closest_parameter(Point(9.0, 1.0)) == 1.0


def test_collapsed_line_falls_back_to_point_distance():
    line = Line(Point(1.0, 1.0), Point(1.0, 1.0))

    assert line.direction == pytest.approx([0.0, 0.0])
    assert line.distance_to_point(Point(4.0, 5.0)) == pytest.approx(5.0)
    assert line.closest_parameter(Point(4.0, 5.0)) == 0.0


def test_circle_tangent_and_normal():
    circle = Circle(Point(1.0, 1.0), 2.0)

    start = circle.value(0.0)
    assert (start.x, start.y) == pytest.approx((3.0, 1.0))
    assert circle.tangent(0.0) == pytest.approx([0.0, 1.0])
    assert circle.normal(0.0) == pytest.approx([-1.0, 0.0])
    assert circle.contains_point(Point(1.0, 3.0))


def test_ellipse_radii_and_points():
    ellipse = Ellipse(Point(0.0, 0.0), Point(3.0, 0.0), 4.0)

    assert ellipse.major_radius == pytest.approx(5.0)
    assert ellipse.eccentricity == pytest.approx(0.6)
    right = ellipse.value(0.0)
    top = ellipse.value(math.pi / 2)
    assert (right.x, right.y) == pytest.approx((5.0, 0.0))
    assert (top.x, top.y) == pytest.approx((0.0, 4.0))
    for u in (0.3, 1.7, 4.0):
        pos = ellipse.value(u)
        assert ellipse.contains_point(Point(pos.x, pos.y), tolerance=1e-9)


def test_rotated_ellipse_follows_focus_direction():
    ellipse = Ellipse(Point(1.0, 1.0), Point(1.0, 4.0), 4.0)

    vertex = ellipse.value(0.0)
    assert ellipse.rotation == pytest.approx(math.pi / 2)
    assert (vertex.x, vertex.y) == pytest.approx((1.0, 6.0))


def test_hyperbola_vertex_and_branch():
    hyperbola = Hyperbola(Point(0.0, 0.0), Point(5.0, 0.0), 3.0)

    assert hyperbola.major_radius == pytest.approx(4.0)
    vertex = hyperbola.value(0.0)
    assert (vertex.x, vertex.y) == pytest.approx((4.0, 0.0))
    pos = hyperbola.value(0.7)
    assert hyperbola.contains_point(Point(pos.x, pos.y), tolerance=1e-9)


def test_parabola_points_are_equidistant_from_focus_and_directrix():
    parabola = Parabola(Point(0.0, 0.0), Point(1.0, 0.0))

    pos = parabola.value(2.0)
    assert (pos.x, pos.y) == pytest.approx((1.0, 2.0))
    for t in (-3.0, 0.5, 4.0):
        pos = parabola.value(t)
        assert parabola.contains_point(Point(pos.x, pos.y), tolerance=1e-9)


def test_arc_angle_range_wraps_through_zero():
    arc = Arc(Point(0.0, 0.0), 1.0, 3 * math.pi / 2, math.pi / 2)

    assert arc.angle_in_range(0.0)
    assert arc.angle_in_range(-0.2)
    assert not arc.angle_in_range(math.pi)


def test_arc_endpoints_default_to_curve_positions():
    arc = Arc(Point(0.0, 0.0), 2.0, 0.0, math.pi / 2)

    assert arc.start_point.vector == pytest.approx([2.0, 0.0])
    assert arc.end_point.vector == pytest.approx([0.0, 2.0])


def test_open_arc_parameter_ranges():
    hyperbola_arc = ArcOfHyperbola(Point(0.0, 0.0), Point(5.0, 0.0), 3.0, -1.0, 1.0)
    parabola_arc = ArcOfParabola(Point(0.0, 0.0), Point(1.0, 0.0), 2.0, -2.0)

    assert hyperbola_arc.param_in_range(0.5)
    assert not hyperbola_arc.param_in_range(1.5)
    assert not parabola_arc.param_in_range(0.0)


def test_hyperbola_arc_range_does_not_wrap():
    hyperbola_arc = ArcOfHyperbola(Point(0.0, 0.0), Point(5.0, 0.0), 3.0, 1.0, -1.0)

    assert not hyperbola_arc.param_in_range(0.0)
    assert not hyperbola_arc.param_in_range(2.0)
    assert not hyperbola_arc.param_in_range(-2.0)


def _bezier(weights=None) -> BSpline:
    poles = [Point(0.0, 0.0), Point(1.0, 2.0), Point(2.0, 0.0)]
    return BSpline(poles, [0.0, 0.0, 0.0, 1.0, 1.0, 1.0], degree=2, weights=weights)


def test_bspline_matches_bezier_formula():
    curve = _bezier()

    start, mid, end = curve.value(0.0), curve.value(0.5), curve.value(1.0)
    assert (start.x, start.y) == pytest.approx((0.0, 0.0))
    assert (mid.x, mid.y) == pytest.approx((1.0, 1.0))
    assert (end.x, end.y) == pytest.approx((2.0, 0.0))
    assert (start.dx, start.dy) == pytest.approx((2.0, 4.0))


def test_rational_bspline_pulls_toward_heavy_pole():
    plain = _bezier().value(0.5)
    heavy = _bezier(weights=[1.0, 3.0, 1.0]).value(0.5)

    assert heavy.y > plain.y


def test_bspline_rejects_bad_knot_vector():
    poles = [Point(0.0, 0.0), Point(1.0, 2.0), Point(2.0, 0.0)]

    with pytest.raises(ValueError):
        BSpline(poles, [0.0, 0.0, 1.0, 1.0], degree=2)


def test_bspline_rejects_periodic_knots():
    poles = [Point(0.0, 0.0), Point(1.0, 2.0), Point(2.0, 0.0)]

    with pytest.raises(ValueError, match="periodic"):
        BSpline(poles, [0.0, 0.0, 0.0, 1.0, 1.0, 1.0], degree=2, periodic=True)


def test_bspline_endpoints_default_to_domain_ends():
    curve = _bezier()

    assert curve.domain == (0.0, 1.0)
    assert curve.start_point.vector == pytest.approx([0.0, 0.0])
    assert curve.end_point.vector == pytest.approx([2.0, 0.0])
    assert not curve.start_point.x.fixed


def _accumulated(partials) -> Dict[int, tuple]:
    out: Dict[int, tuple] = {}
    for param, gx, gy in partials:
        ox, oy = out.get(id(param), (0.0, 0.0))
        out[id(param)] = (ox + gx, oy + gy)
    return out


@pytest.mark.parametrize(
    "factory, u",
    [
        (lambda: Line(Point(0.5, 1.0), Point(3.0, -2.0)), 0.3),
        (lambda: Circle(Point(1.0, 2.0), 1.5), 0.8),
        (lambda: Ellipse(Point(1.0, 1.0), Point(4.0, 2.0), 2.0), 1.1),
        (lambda: Hyperbola(Point(0.5, 0.0), Point(5.0, 1.0), 3.0), 0.6),
        (lambda: Hyperbola(Point(0.0, 0.0), Point(2.0, 0.0), 3.0), -0.4),
        (lambda: Parabola(Point(0.0, 0.0), Point(1.0, 0.5)), 1.3),
        (lambda: _bezier(weights=[1.0, 2.0, 0.5]), 0.35),
    ],
    ids=["line", "circle", "ellipse", "hyperbola", "hyperbola-b-gt-c", "parabola", "rational-bspline"],
)
def test_position_gradient_matches_finite_differences(factory, u):
    curve = factory()
    analytic = _accumulated(curve.position_gradient(u))
    h = 1e-6
    for param in curve.parameters():
        original = param.value
        param.value = original + h
        plus = curve.value(u)
        param.value = original - h
        minus = curve.value(u)
        param.value = original
        expected = ((plus.x - minus.x) / (2 * h), (plus.y - minus.y) / (2 * h))
        got = analytic.get(id(param), (0.0, 0.0))
        assert got == pytest.approx(expected, rel=1e-5, abs=1e-6)
