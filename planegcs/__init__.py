from .parameter import Parameter, ParameterLike, as_parameter
from .model import (
    Algorithm,
    BFGSOptions,
    DogLegOptions,
    LevenbergMarquardtOptions,
    SolveStatus,
    SolverParameters,
    SolverResult,
    SystemState,
)
from .config import get_default_solver_parameters, reset_default_solver_parameters, set_default_solver_parameters
from .geometry import (
    Arc,
    ArcOfEllipse,
    ArcOfHyperbola,
    ArcOfParabola,
    BSpline,
    Circle,
    Curve,
    DeriVector2,
    Ellipse,
    Hyperbola,
    Line,
    Parabola,
    Point,
)
from .constraints import (
    Constraint,
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
    ConstraintType,
    arc_endpoint_constraints,
    curve_value,
    coincident,
    horizontal,
    vertical,
)
from .subsystem import SubSystem
from .system import System
from .diagnostics import DiagnosticKind, DiagnosticResult, Diagnostics
from .room import RoomSketch, RoomSolveResult, room_solver_parameters

__all__ = [
    'Parameter',
    'ParameterLike',
    'as_parameter',
    'Algorithm',
    'BFGSOptions',
    'DogLegOptions',
    'LevenbergMarquardtOptions',
    'SolveStatus',
    'SolverParameters',
    'SolverResult',
    'SystemState',
    'get_default_solver_parameters',
    'reset_default_solver_parameters',
    'set_default_solver_parameters',
    'Arc',
    'ArcOfEllipse',
    'ArcOfHyperbola',
    'ArcOfParabola',
    'BSpline',
    'Circle',
    'Curve',
    'DeriVector2',
    'Ellipse',
    'Hyperbola',
    'Line',
    'Parabola',
    'Point',
    'Constraint',
    'ConstraintAngleViaPoint',
    'ConstraintCurveValue',
    'ConstraintDifference',
    'ConstraintEqual',
    'ConstraintL2LAngle',
    'ConstraintP2LDistance',
    'ConstraintP2PAngle',
    'ConstraintP2PDistance',
    'ConstraintParallel',
    'ConstraintPerpendicular',
    'ConstraintPointOnCircle',
    'ConstraintPointOnEllipse',
    'ConstraintPointOnHyperbola',
    'ConstraintPointOnLine',
    'ConstraintPointOnParabola',
    'ConstraintSnell',
    'ConstraintTangentCircumf',
    'ConstraintTangentLineCircle',
    'ConstraintType',
    'arc_endpoint_constraints',
    'coincident',
    'curve_value',
    'horizontal',
    'vertical',
    'SubSystem',
    'System',
    'DiagnosticKind',
    'DiagnosticResult',
    'Diagnostics',
    'RoomSketch',
    'RoomSolveResult',
    'room_solver_parameters',
]
