"""DEBUG call tracing for the façade modules.

``apply_debug_logging(globals(), logger=logger)`` at the foot of a module wraps
its public functions and methods so that, with DEBUG enabled, every call logs
its arguments and result. Solver objects are rendered compactly: parameters as
``name=value``, constraints by kind, tag and current error, arrays by shape and
range.
"""

from __future__ import annotations

import inspect
import logging
import reprlib
from functools import wraps
from typing import Any, Callable, Iterable, List, MutableMapping, Optional, Set, TypeVar, cast

import numpy as np

from .constraints.base import Constraint
from .parameter import Parameter

F = TypeVar("F", bound=Callable[..., Any])

_MAX_ITEMS = 6
_MAX_LENGTH = 300

_repr = reprlib.Repr()
_repr.maxother = 120
_repr.maxstring = 80


def _describe_array(value: np.ndarray) -> str:
    shape = "x".join(str(dim) for dim in value.shape) or "scalar"
    if value.size == 0:
        return f"array[{shape}]"
    if value.size <= _MAX_ITEMS:
        return f"array[{shape}] {np.array2string(value, precision=6, separator=', ')}"
    if not np.all(np.isfinite(value)):
        return f"array[{shape}] non-finite"
    return f"array[{shape}] in [{float(value.min()):.6g}, {float(value.max()):.6g}]"


def _describe_parameter(param: Parameter) -> str:
    label = param.name or f"p@{id(param):x}"
    marker = "!" if param.fixed else ""
    return f"{label}={param.value:.6g}{marker}"


def _describe_constraint(constraint: Constraint) -> str:
    kind = getattr(constraint, "type", None)
    kind_name = kind.value if kind is not None else type(constraint).__name__
    try:
        error = f"{constraint.error():.3e}"
    except (ArithmeticError, ValueError):
        error = "?"
    return f"<{kind_name}#{constraint.tag} err={error}>"


def _describe(value: Any) -> str:
    if isinstance(value, np.ndarray):
        return _describe_array(value)
    if isinstance(value, Parameter):
        return _describe_parameter(value)
    if isinstance(value, Constraint):
        return _describe_constraint(value)
    if isinstance(value, (list, tuple)):
        shown: List[str] = [_describe(item) for item in list(value)[:_MAX_ITEMS]]
        if len(value) > _MAX_ITEMS:
            shown.append(f"... {len(value) - _MAX_ITEMS} more")
        return "[" + ", ".join(shown) + "]"
    rendered = _repr.repr(value)
    if len(rendered) > _MAX_LENGTH:
        return rendered[:_MAX_LENGTH] + "..."
    return rendered


def _describe_call(args: Iterable[Any], kwargs: MutableMapping[str, Any]) -> str:
    rendered = [_describe(arg) for arg in args]
    rendered.extend(f"{key}={_describe(value)}" for key, value in kwargs.items())
    return ", ".join(rendered)


def debug_log_call(
    logger: logging.Logger, *, name: Optional[str] = None, log_result: bool = True
) -> Callable[[F], F]:
    """Decorator logging entry, exit and exceptions of ``func`` at DEBUG."""

    def decorator(func: F) -> F:
        if getattr(func, "_debug_logging_wrapped", False):
            return func
        label = name or getattr(func, "__qualname__", func.__name__)

        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any):
            if not logger.isEnabledFor(logging.DEBUG):
                return func(*args, **kwargs)
            logger.debug("Entering %s(%s)", label, _describe_call(args, kwargs))
            try:
                result = func(*args, **kwargs)
            except Exception:
                logger.exception("Exception in %s", label)
                raise
            if log_result:
                logger.debug("Exiting %s -> %s", label, _describe(result))
            else:
                logger.debug("Exiting %s", label)
            return result

        setattr(wrapper, "_debug_logging_wrapped", True)
        return cast(F, wrapper)

    return decorator


def _public_methods(cls: type, skip: Set[str]):
    for attr, value in list(vars(cls).items()):
        if attr.startswith("_") or attr in skip or f"{cls.__name__}.{attr}" in skip:
            continue
        if inspect.isfunction(value) and value.__module__ == cls.__module__:
            yield attr, value


def apply_debug_logging(
    namespace: MutableMapping[str, Any],
    *,
    logger: Optional[logging.Logger] = None,
    skip: Optional[Iterable[str]] = None,
) -> None:
    """Wrap the public functions and methods defined in ``namespace``.

    Underscore-prefixed helpers stay unwrapped; they sit on the
    residual/Jacobian hot path.
    """

    module_name = namespace.get("__name__")
    if logger is None:
        logger = logging.getLogger(module_name if isinstance(module_name, str) else __name__)
    skip_set: Set[str] = set(skip or ())

    for name, value in list(namespace.items()):
        if name.startswith("_") or name in skip_set:
            continue
        if inspect.isfunction(value) and value.__module__ == module_name:
            namespace[name] = debug_log_call(logger, name=name)(value)
        elif inspect.isclass(value) and value.__module__ == module_name:
            for attr, method in _public_methods(value, skip_set):
                setattr(value, attr, debug_log_call(logger, name=f"{name}.{attr}")(method))


__all__ = ["apply_debug_logging", "debug_log_call"]
