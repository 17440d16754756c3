import argparse
import logging
from typing import List, Optional, Sequence, Tuple

from planegcs import Algorithm, RoomSketch, SolveStatus
from planegcs.room import room_solver_parameters

logger = logging.getLogger(__name__)


def _configure_logging(level: str) -> None:
    log_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=log_level,
        format="%(levelname)s:%(name)s:%(message)s",
    )


def _parse_corner(value: str) -> Tuple[float, float]:
    parts = [part.strip() for part in value.split(",")]
    if len(parts) != 2:
        raise argparse.ArgumentTypeError(f"corner must be X,Y, got {value!r}")
    try:
        return float(parts[0]), float(parts[1])
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"corner must be numeric, got {value!r}") from exc


def _parse_length(value: str) -> Tuple[int, float]:
    edge, sep, length = value.partition("=")
    if not sep:
        raise argparse.ArgumentTypeError(f"length must be EDGE=LENGTH, got {value!r}")
    try:
        return int(edge), float(length)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid length {value!r}") from exc


def _parse_pair(value: str) -> Tuple[int, int]:
    parts = [part.strip() for part in value.split(",")]
    if len(parts) != 2:
        raise argparse.ArgumentTypeError(f"expected I,J, got {value!r}")
    try:
        return int(parts[0]), int(parts[1])
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"edge indices must be integers, got {value!r}") from exc


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Solve a floor-plan polygon under geometric constraints")
    parser.add_argument(
        "--corner",
        dest="corners",
        action="append",
        type=_parse_corner,
        default=[],
        metavar="X,Y",
        help="Polygon corner, repeat in drawing order",
    )
    parser.add_argument(
        "--length",
        dest="lengths",
        action="append",
        type=_parse_length,
        default=[],
        metavar="EDGE=LENGTH",
        help="Fix the length of an edge",
    )
    parser.add_argument("--horizontal", action="append", type=int, default=[], metavar="EDGE")
    parser.add_argument("--vertical", action="append", type=int, default=[], metavar="EDGE")
    parser.add_argument("--perpendicular", action="append", type=_parse_pair, default=[], metavar="I,J")
    parser.add_argument("--parallel", action="append", type=_parse_pair, default=[], metavar="I,J")
    parser.add_argument(
        "--algorithm",
        choices=[algorithm.value for algorithm in Algorithm],
        default=Algorithm.DOG_LEG.value,
        help="Solver algorithm (default: dogleg)",
    )
    parser.add_argument("--max-iterations", type=int, default=None, help="Iteration budget per subsystem")
    parser.add_argument("--tolerance", type=float, default=None, help="Convergence tolerance on the max residual")
    parser.add_argument("--no-rescale", action="store_true", help="Disable constraint rescaling")
    parser.add_argument("--diagnose", action="store_true", help="Print a constraint diagnosis before solving")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        help="Logging level (default: WARNING)",
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)

    _configure_logging(args.log_level)

    if len(args.corners) < 2:
        parser.error("at least two --corner values are required")

    params = room_solver_parameters()
    params.algorithm = Algorithm(args.algorithm)
    if args.max_iterations is not None:
        params.max_iterations = args.max_iterations
    if args.tolerance is not None:
        params.convergence_tolerance = args.tolerance
    params.rescale_constraints = not args.no_rescale

    sketch = RoomSketch(args.corners, params)
    try:
        for edge, length in args.lengths:
            sketch.add_length(edge, length)
        for edge in args.horizontal:
            sketch.add_horizontal(edge)
        for edge in args.vertical:
            sketch.add_vertical(edge)
        for first, second in args.perpendicular:
            sketch.add_perpendicular(first, second)
        for first, second in args.parallel:
            sketch.add_parallel(first, second)
    except IndexError as exc:
        parser.error(str(exc))

    logger.info(
        "Built sketch with %d corner(s) and %d constraint(s)",
        len(args.corners),
        sketch.system.get_constraint_count(),
    )

    if args.diagnose:
        diagnosis = sketch.diagnose()
        print("Diagnosis:")
        print(f"  kind: {diagnosis.kind.value}")
        print(f"  dof: {diagnosis.dof}")
        conflicting: List[int] = [c.tag for c in diagnosis.conflicting]
        redundant: List[int] = [c.tag for c in diagnosis.redundant]
        if conflicting:
            print(f"  conflicting: {conflicting}")
        if redundant:
            print(f"  redundant: {redundant}")

    result = sketch.solve()
    print(f"Status: {result.status.value}")
    print(f"Iterations: {result.iterations}")
    print(f"Max error: {result.max_error:.3e}")
    print(f"DOF: {result.dof}")
    print("Corners:")
    for idx, (x, y) in enumerate(result.corners):
        print(f"  {idx}: ({x:.6f}, {y:.6f})")

    if result.status not in (SolveStatus.SUCCESS, SolveStatus.CONVERGED_TO_LOCAL_MINIMUM):
        logger.error("Solve did not converge: %s", result.message)
        raise SystemExit(1)


if __name__ == "__main__":
    main()
