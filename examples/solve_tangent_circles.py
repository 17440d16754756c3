"""Example: slide a circle until it touches a fixed one and a line."""

from planegcs import (
    Circle,
    ConstraintTangentCircumf,
    ConstraintTangentLineCircle,
    Line,
    Parameter,
    Point,
    System,
)


def _fixed(x: float, y: float) -> Point:
    return Point(Parameter(x, fixed=True), Parameter(y, fixed=True))


def main() -> None:
    anchor = Circle(_fixed(0.0, 0.0), Parameter(1.0, fixed=True))
    ground = Line(_fixed(-10.0, -1.0), _fixed(10.0, -1.0))
    moving = Circle(Point(3.0, 1.5), Parameter(2.0, fixed=True))

    system = System(
        [
            ConstraintTangentCircumf(anchor, moving),
            ConstraintTangentLineCircle(ground, moving),
        ]
    )
    status = system.solve()
    center = moving.center
    print("Status:", status.value)
    print(f"Center: ({center.x.value:.6f}, {center.y.value:.6f})")
    print(f"Gap to anchor: {center.distance_to(anchor.center) - 3.0:.3e}")


if __name__ == "__main__":
    main()
