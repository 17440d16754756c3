"""Example: pin one vertex and solve a 3-4-5 right triangle from rough guesses."""

from planegcs import (
    Algorithm,
    ConstraintEqual,
    ConstraintP2PDistance,
    ConstraintPerpendicular,
    Line,
    Parameter,
    Point,
    SolverParameters,
    System,
)


def main() -> None:
    a = Point(Parameter(0.0, fixed=True), Parameter(0.0, fixed=True), name="A")
    b = Point(3.5, 0.3, name="B")
    c = Point(0.2, 2.5, name="C")

    system = System(
        [
            ConstraintP2PDistance(a, b, 4.0),
            ConstraintP2PDistance(a, c, 3.0),
            ConstraintPerpendicular(Line(a, b), Line(a, c)),
            ConstraintEqual(b.y, 0.0),
        ],
        SolverParameters(algorithm=Algorithm.LEVENBERG_MARQUARDT),
    )
    status = system.solve()
    print("Status:", status.value)
    print("Iterations:", system.get_last_iterations())
    print("Max error:", system.get_max_error())
    for point in (a, b, c):
        print(f"{point.name}: ({point.x.value:.6f}, {point.y.value:.6f})")
    print(f"|BC| = {b.distance_to(c):.6f}")


if __name__ == "__main__":
    main()
