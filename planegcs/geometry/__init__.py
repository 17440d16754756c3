from .bspline import BSpline
from .conics import Arc, ArcOfEllipse, ArcOfHyperbola, ArcOfParabola, Circle, Ellipse, Hyperbola, Parabola
from .curve import Curve, DeriVector2, PositionPartial
from .primitives import Line, Point

__all__ = [
    "Arc",
    "ArcOfEllipse",
    "ArcOfHyperbola",
    "ArcOfParabola",
    "BSpline",
    "Circle",
    "Curve",
    "DeriVector2",
    "Ellipse",
    "Hyperbola",
    "Line",
    "Parabola",
    "Point",
    "PositionPartial",
]
