"""Scalar parameters shared between curves and constraints."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union


@dataclass(eq=False)
class Parameter:
    """Mutable scalar degree of freedom.

    Equality and hashing are by identity: two parameters holding the same value
    are still distinct unknowns. ``fixed`` parameters are read by constraints but
    never written by a solver.
    """

    value: float = 0.0
    name: Optional[str] = None
    fixed: bool = False

    def __post_init__(self) -> None:
        self.value = float(self.value)

    def __float__(self) -> float:
        return self.value

    def __repr__(self) -> str:
        label = f"{self.name}=" if self.name else ""
        suffix = ", fixed" if self.fixed else ""
        return f"Parameter({label}{self.value!r}{suffix})"


ParameterLike = Union[Parameter, float, int]


def as_parameter(value: ParameterLike, name: Optional[str] = None) -> Parameter:
    """Return ``value`` unchanged if it is a Parameter, else a fixed one holding it."""

    if isinstance(value, Parameter):
        return value
    return Parameter(float(value), name=name, fixed=True)


__all__ = ["Parameter", "ParameterLike", "as_parameter"]
