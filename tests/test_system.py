import math

import pytest

from planegcs import (
    Algorithm,
    Arc,
    BSpline,
    ConstraintEqual,
    ConstraintP2PDistance,
    ConstraintParallel,
    ConstraintPerpendicular,
    Line,
    Parameter,
    Point,
    SolverParameters,
    SolveStatus,
    System,
    SystemState,
    arc_endpoint_constraints,
    curve_value,
    get_default_solver_parameters,
    horizontal,
    reset_default_solver_parameters,
    set_default_solver_parameters,
    vertical,
)


def _fixed_point(x, y):
    return Point(Parameter(x, fixed=True), Parameter(y, fixed=True))


@pytest.mark.parametrize("algorithm", list(Algorithm))
def test_satisfied_distance_solves_without_iterations(algorithm):
    p1, p2 = Point(0.0, 0.0), Point(3.0, 4.0)
    system = System([ConstraintP2PDistance(p1, p2, 5.0)], SolverParameters(algorithm=algorithm))

    assert system.solve() is SolveStatus.SUCCESS
    assert system.get_last_iterations() == 0
    assert p1.distance_to(p2) == pytest.approx(5.0, abs=1e-9)


@pytest.mark.parametrize("algorithm", list(Algorithm))
def test_perturbed_distance_converges_for_every_algorithm(algorithm):
    p1, p2 = Point(0.0, 0.0), Point(3.5, 4.2)
    system = System([ConstraintP2PDistance(p1, p2, 5.0)], SolverParameters(algorithm=algorithm))

    assert system.solve() is SolveStatus.SUCCESS
    assert p1.distance_to(p2) == pytest.approx(5.0, abs=1e-9)
    assert system.get_last_iterations() > 0


def _near_rectangle(algorithm):
    corners = [Point(100.0, 102.0), Point(298.0, 98.0), Point(302.0, 197.0), Point(99.0, 203.0)]
    top = Line(corners[0], corners[1])
    right = Line(corners[1], corners[2])
    bottom = Line(corners[2], corners[3])
    left = Line(corners[3], corners[0])
    rules = [horizontal(top), horizontal(bottom), vertical(left), vertical(right)]
    return corners, System(rules, SolverParameters(algorithm=algorithm))


@pytest.mark.parametrize("algorithm", list(Algorithm))
def test_near_rectangle_becomes_axis_aligned(algorithm):
    corners, system = _near_rectangle(algorithm)

    assert system.get_dof() == 4
    assert system.solve() is SolveStatus.SUCCESS

    tol = system.get_parameters().convergence_tolerance
    assert abs(corners[0].y.value - corners[1].y.value) <= tol
    assert abs(corners[2].y.value - corners[3].y.value) <= tol
    assert abs(corners[0].x.value - corners[3].x.value) <= tol
    assert abs(corners[1].x.value - corners[2].x.value) <= tol


@pytest.mark.parametrize("algorithm", list(Algorithm))
def test_second_solve_leaves_converged_values_in_place(algorithm):
    corners, system = _near_rectangle(algorithm)
    assert system.solve() is SolveStatus.SUCCESS
    before = [(p.x.value, p.y.value) for p in corners]

    assert system.solve() is SolveStatus.SUCCESS

    tol = system.get_parameters().convergence_tolerance
    assert system.get_last_iterations() == 0
    for (x0, y0), p in zip(before, corners):
        assert abs(p.x.value - x0) <= tol
        assert abs(p.y.value - y0) <= tol


def test_equal_parameters_already_equal_take_zero_iterations():
    a, b = Parameter(2.5), Parameter(2.5)
    system = System([ConstraintEqual(a, b)])

    assert system.solve() is SolveStatus.SUCCESS
    assert system.get_last_iterations() == 0
    assert (a.value, b.value) == (2.5, 2.5)


@pytest.mark.parametrize("algorithm", [Algorithm.LEVENBERG_MARQUARDT, Algorithm.DOG_LEG])
def test_right_triangle_from_legs(algorithm):
    a = _fixed_point(0.0, 0.0)
    b = Point(3.5, 0.3)
    c = Point(0.2, 2.5)
    ab, ac = Line(a, b), Line(a, c)
    system = System(
        [
            ConstraintP2PDistance(a, b, 4.0),
            ConstraintP2PDistance(a, c, 3.0),
            ConstraintPerpendicular(ab, ac),
            ConstraintEqual(b.y, 0.0),
        ],
        SolverParameters(algorithm=algorithm),
    )

    assert system.get_dof() == 0
    assert system.solve() is SolveStatus.SUCCESS
    assert b.distance_to(c) == pytest.approx(5.0, abs=1e-8)


def test_parallel_and_perpendicular_move_only_free_endpoint():
    base = Line(_fixed_point(0.0, 0.0), _fixed_point(4.0, 0.0))
    upper = Line(_fixed_point(0.0, 1.0), Point(4.0, 1.5))
    side = Line(_fixed_point(0.0, 0.0), Point(0.3, 3.0))
    system = System([ConstraintParallel(base, upper), ConstraintPerpendicular(base, side)])

    assert system.partition_constraints() == 2
    assert system.solve() is SolveStatus.SUCCESS
    assert upper.p2.y.value == pytest.approx(1.0, abs=1e-9)
    assert side.p2.x.value == pytest.approx(0.0, abs=1e-9)


def test_state_follows_configuration_and_solving():
    p1, p2 = Point(0.0, 0.0), Point(1.0, 0.0)
    constraint = ConstraintP2PDistance(p1, p2, 2.0)
    system = System()

    assert system.state is SystemState.EMPTY
    system.add_constraint(constraint)
    assert system.state is SystemState.CONFIGURED
    system.partition_constraints()
    assert system.state is SystemState.PARTITIONED
    system.solve()
    assert system.state is SystemState.SOLVED
    assert system.get_last_status() is SolveStatus.SUCCESS

    assert system.remove_constraint(constraint)
    assert system.state is SystemState.EMPTY
    assert system.get_last_status() is None
    assert not system.remove_constraint(constraint)


def test_empty_system_solves_trivially():
    system = System()

    assert system.solve() is SolveStatus.SUCCESS
    assert system.get_dof() == 0
    assert system.get_max_error() == 0.0


def test_partition_groups_by_shared_free_parameters():
    origin = _fixed_point(0.0, 0.0)
    a, b, c = Point(1.0, 0.0), Point(0.0, 1.0), Point(2.0, 2.0)
    d_a = ConstraintP2PDistance(origin, a, 1.0)
    d_b = ConstraintP2PDistance(origin, b, 1.0)
    d_bc = ConstraintP2PDistance(b, c, 2.0)
    system = System([d_a, d_b, d_bc])

    dof_before = system.get_dof()
    assert system.partition_constraints() == 2
    assert system.get_dof() == dof_before
    assert [sub.constraints for sub in system.subsystems] == [[d_a], [d_b, d_bc]]
    assert system.partition_constraints() == 2
    assert system.get_subsystem_count() == 2


def test_fully_fixed_violation_fails_and_aborts():
    stuck = ConstraintEqual(Parameter(1.0, fixed=True), 2.0)
    p = Point(0.0, 0.5)
    other = ConstraintEqual(p.y, 0.0)
    system = System([stuck, other])
    system.partition_constraints()

    assert system.solve() is SolveStatus.FAILED
    assert system.get_last_status() is SolveStatus.FAILED
    assert p.y.value == 0.5


def test_inconsistent_distances_do_not_converge():
    anchor = _fixed_point(0.0, 0.0)
    p = Point(3.0, 1.0)
    system = System([ConstraintP2PDistance(anchor, p, 1.0), ConstraintP2PDistance(anchor, p, 2.0)])

    assert system.solve() is SolveStatus.NOT_CONVERGED
    assert system.get_max_error() > 0.1


def test_iteration_budget_is_respected():
    p1, p2 = Point(0.0, 0.0), Point(300.0, 400.0)
    params = SolverParameters(algorithm=Algorithm.LEVENBERG_MARQUARDT, max_iterations=1)
    system = System([ConstraintP2PDistance(p1, p2, 1.0)], params)

    system.solve()

    assert system.get_last_iterations() <= 1


def test_parameters_are_copied_in_and_out():
    params = SolverParameters(max_iterations=7)
    system = System(parameters=params)
    params.max_iterations = 99

    assert system.get_parameters().max_iterations == 7
    system.get_parameters().max_iterations = 50
    assert system.get_parameters().max_iterations == 7

    system.set_parameters(params)
    assert system.get_parameters().max_iterations == 99


def test_new_systems_pick_up_process_defaults():
    set_default_solver_parameters(SolverParameters(algorithm=Algorithm.BFGS, max_iterations=42))
    try:
        system = System()
        assert system.get_parameters().algorithm is Algorithm.BFGS
        assert system.get_parameters().max_iterations == 42
    finally:
        reset_default_solver_parameters()

    assert get_default_solver_parameters().algorithm is Algorithm.DOG_LEG


@pytest.mark.parametrize("algorithm", list(Algorithm))
def test_point_slides_along_line_to_curve_value(algorithm):
    line = Line(_fixed_point(0.0, 0.0), _fixed_point(4.0, 0.0))
    u = Parameter(0.1)
    p = Point(1.0, 0.7)
    system = System([*curve_value(line, u, p), ConstraintEqual(p.x, 2.0)], SolverParameters(algorithm=algorithm))

    assert system.solve() is SolveStatus.SUCCESS
    assert u.value == pytest.approx(0.5, abs=1e-8)
    assert (p.x.value, p.y.value) == pytest.approx((2.0, 0.0), abs=1e-8)


@pytest.mark.parametrize("algorithm", list(Algorithm))
def test_point_finds_its_parameter_on_bezier(algorithm):
    poles = [_fixed_point(0.0, 0.0), _fixed_point(1.0, 2.0), _fixed_point(2.0, 0.0)]
    curve = BSpline(poles, [0.0, 0.0, 0.0, 1.0, 1.0, 1.0], degree=2)
    u = Parameter(0.5)
    p = Point(0.3, 0.4)
    system = System([*curve_value(curve, u, p), ConstraintEqual(p.x, 0.5)], SolverParameters(algorithm=algorithm))

    assert system.solve() is SolveStatus.SUCCESS
    # x = 2u, y = 4u(1 - u)
    assert u.value == pytest.approx(0.25, abs=1e-6)
    assert p.y.value == pytest.approx(0.75, abs=1e-6)


@pytest.mark.parametrize("algorithm", list(Algorithm))
def test_arc_start_follows_pinned_endpoint(algorithm):
    arc = Arc(_fixed_point(0.0, 0.0), Parameter(2.0, fixed=True), 0.25, 1.5)
    rules = arc_endpoint_constraints(arc)
    system = System([*rules, ConstraintEqual(arc.start_point.x, 1.0)], SolverParameters(algorithm=algorithm))

    assert system.solve() is SolveStatus.SUCCESS
    assert arc.start_angle.value == pytest.approx(math.pi / 3, abs=1e-6)
    assert arc.start_point.y.value == pytest.approx(math.sqrt(3.0), abs=1e-6)
    assert arc.end_angle.value == pytest.approx(1.5)
    assert all(abs(rule.error()) <= system.get_parameters().convergence_tolerance for rule in rules)
