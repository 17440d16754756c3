"""Example: snap a hand-drawn room outline to a 200 x 100 rectangle."""

from planegcs import RoomSketch

CORNERS = [(100.0, 102.0), (298.0, 98.0), (302.0, 197.0), (99.0, 203.0)]


def main() -> None:
    sketch = RoomSketch(CORNERS)
    sketch.add_horizontal(0)
    sketch.add_horizontal(2)
    sketch.add_vertical(1)
    sketch.add_vertical(3)
    sketch.add_length(0, 200.0)
    sketch.add_length(1, 100.0)

    diagnosis = sketch.diagnose()
    print("Diagnosis:", diagnosis.kind.value, "dof =", diagnosis.dof)

    result = sketch.solve()
    print("Status:", result.status.value)
    print("Max error:", result.max_error)
    for idx, (x, y) in enumerate(result.corners):
        print(f"corner {idx}: ({x:.3f}, {y:.3f})")


if __name__ == "__main__":
    main()
