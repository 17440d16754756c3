from .angle import ConstraintAngleViaPoint, ConstraintL2LAngle, ConstraintP2PAngle, wrap_angle
from .base import Constraint, ConstraintType
from .basic import (
    ConstraintDifference,
    ConstraintEqual,
    ConstraintP2LDistance,
    ConstraintP2PDistance,
    ConstraintParallel,
    ConstraintPerpendicular,
    ConstraintPointOnLine,
    coincident,
    horizontal,
    vertical,
)
from .curves import (
    ConstraintCurveValue,
    ConstraintPointOnCircle,
    ConstraintPointOnEllipse,
    ConstraintPointOnHyperbola,
    ConstraintPointOnParabola,
    ConstraintSnell,
    ConstraintTangentCircumf,
    ConstraintTangentLineCircle,
    arc_endpoint_constraints,
    curve_value,
)

__all__ = [
    "Constraint",
    "ConstraintAngleViaPoint",
    "ConstraintCurveValue",
    "ConstraintDifference",
    "ConstraintEqual",
    "ConstraintL2LAngle",
    "ConstraintP2LDistance",
    "ConstraintP2PAngle",
    "ConstraintP2PDistance",
    "ConstraintParallel",
    "ConstraintPerpendicular",
    "ConstraintPointOnCircle",
    "ConstraintPointOnEllipse",
    "ConstraintPointOnHyperbola",
    "ConstraintPointOnLine",
    "ConstraintPointOnParabola",
    "ConstraintSnell",
    "ConstraintTangentCircumf",
    "ConstraintTangentLineCircle",
    "ConstraintType",
    "arc_endpoint_constraints",
    "coincident",
    "curve_value",
    "horizontal",
    "vertical",
    "wrap_angle",
]
