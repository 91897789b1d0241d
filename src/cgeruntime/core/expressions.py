"""Symbolic equation expressions for CGE blocks.

Blocks describe each equation instance as a small expression tree that the
Pyomo compiler lowers into constraints. Nodes are immutable dataclasses:

- ``EVar`` / ``EParam``: variable and parameter references. ``idxs=None``
  inherits the indices of the equation instance, an empty tuple denotes a
  scalar symbol, otherwise each entry is an ``EIndex`` (resolved through the
  index environment) or a literal set element.
- ``EConst``: numeric literal.
- ``ERaw``: text kept for documentation only; never compiled.
- ``EIndex``: free index reference.
- ``EAdd`` / ``EMul``: n-ary sum and product of explicit terms.
- ``EPow`` / ``EDiv`` / ``ENeg``: power, division, negation.
- ``ESum`` / ``EProd``: sum and product of ``expr`` over a set domain with
  ``index`` bound to each element in turn.
- ``EEq``: the equation ``lhs == rhs``.

Example:
    >>> # sum_i p[i] * x[i] == 0
    >>> term = mul(param("p", idx("i")), var("x", idx("i")))
    >>> eq(sum_over("i", ("a", "b"), term), const(0.0))
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union

IndexEntry = Union["EIndex", str]


class EquationExpr:
    """Base class of all expression tree nodes."""

    __slots__ = ()


@dataclass(frozen=True)
class EVar(EquationExpr):
    name: str
    idxs: tuple[IndexEntry, ...] | None = None


@dataclass(frozen=True)
class EParam(EquationExpr):
    name: str
    idxs: tuple[IndexEntry, ...] | None = None


@dataclass(frozen=True)
class EConst(EquationExpr):
    value: float


@dataclass(frozen=True)
class ERaw(EquationExpr):
    text: str


@dataclass(frozen=True)
class EIndex(EquationExpr):
    name: str


@dataclass(frozen=True)
class EAdd(EquationExpr):
    terms: tuple[EquationExpr, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class EMul(EquationExpr):
    factors: tuple[EquationExpr, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class EPow(EquationExpr):
    base: EquationExpr
    exponent: EquationExpr


@dataclass(frozen=True)
class EDiv(EquationExpr):
    numerator: EquationExpr
    denominator: EquationExpr


@dataclass(frozen=True)
class ENeg(EquationExpr):
    expr: EquationExpr


@dataclass(frozen=True)
class ESum(EquationExpr):
    index: str
    domain: tuple[str, ...]
    expr: EquationExpr


@dataclass(frozen=True)
class EProd(EquationExpr):
    index: str
    domain: tuple[str, ...]
    expr: EquationExpr


@dataclass(frozen=True)
class EEq(EquationExpr):
    lhs: EquationExpr
    rhs: EquationExpr


# Helper functions for building expressions


def _as_expr(value: EquationExpr | float | int) -> EquationExpr:
    if isinstance(value, EquationExpr):
        return value
    return EConst(float(value))


def _as_idxs(indices: tuple[IndexEntry, ...]) -> tuple[IndexEntry, ...] | None:
    return tuple(indices) if indices else None


def var(name: str, *indices: IndexEntry) -> EVar:
    """Variable reference; without indices it inherits the equation indices."""
    return EVar(name, _as_idxs(indices))


def scalar_var(name: str) -> EVar:
    """Scalar variable reference that never inherits equation indices."""
    return EVar(name, ())


def param(name: str, *indices: IndexEntry) -> EParam:
    """Parameter reference; without indices it inherits the equation indices."""
    return EParam(name, _as_idxs(indices))


def scalar_param(name: str) -> EParam:
    return EParam(name, ())


def const(value: float) -> EConst:
    return EConst(float(value))


def idx(name: str) -> EIndex:
    return EIndex(name)


def add(*terms: EquationExpr | float) -> EAdd:
    return EAdd(tuple(_as_expr(t) for t in terms))


def mul(*factors: EquationExpr | float) -> EMul:
    return EMul(tuple(_as_expr(f) for f in factors))


def power(base: EquationExpr | float, exponent: EquationExpr | float) -> EPow:
    return EPow(_as_expr(base), _as_expr(exponent))


def div(numerator: EquationExpr | float, denominator: EquationExpr | float) -> EDiv:
    return EDiv(_as_expr(numerator), _as_expr(denominator))


def neg(expr: EquationExpr | float) -> ENeg:
    return ENeg(_as_expr(expr))


def sum_over(
    index: str, domain: tuple[str, ...] | list[str], expr: EquationExpr
) -> ESum:
    """Sum ``expr`` over ``domain`` with ``index`` bound to each element."""
    return ESum(index, tuple(domain), expr)


def prod_over(
    index: str, domain: tuple[str, ...] | list[str], expr: EquationExpr
) -> EProd:
    """Product of ``expr`` over ``domain`` with ``index`` bound to each element."""
    return EProd(index, tuple(domain), expr)


def eq(lhs: EquationExpr | float, rhs: EquationExpr | float) -> EEq:
    return EEq(_as_expr(lhs), _as_expr(rhs))


def is_compilable_equation(expr: object) -> bool:
    """True for equation ASTs the compiler lowers (anything but ``ERaw``)."""
    return isinstance(expr, EquationExpr) and not isinstance(expr, ERaw)


__all__ = [
    "EquationExpr",
    "EVar",
    "EParam",
    "EConst",
    "ERaw",
    "EIndex",
    "EAdd",
    "EMul",
    "EPow",
    "EDiv",
    "ENeg",
    "ESum",
    "EProd",
    "EEq",
    "var",
    "scalar_var",
    "param",
    "scalar_param",
    "const",
    "idx",
    "add",
    "mul",
    "power",
    "div",
    "neg",
    "sum_over",
    "prod_over",
    "eq",
    "is_compilable_equation",
]
