"""Exception hierarchy for the cgeruntime compilation kernel.

Three families of fatal conditions are distinguished:

- configuration errors: the caller supplied incomplete or invalid inputs
  (no solver model attached, no parameter source, unknown enum value);
- unbound-reference errors: the equation AST names an index, variable or
  parameter that the registry or index environment cannot resolve;
- structural errors: the registered equation system violates an invariant
  of the compiler (several objectives, empty iteration domain, an AST
  variant the compiler does not support).

Data-quality problems (large residuals, missing complementarity pairings,
badly scaled values) are never raised; they are recorded in the
validation report instead.
"""

from __future__ import annotations


class CGERuntimeError(Exception):
    """Base class for all cgeruntime errors."""


class ConfigurationError(CGERuntimeError, ValueError):
    """Invalid or missing configuration supplied by the caller."""


class UnboundReferenceError(CGERuntimeError, LookupError):
    """A symbolic reference could not be resolved."""


class UnboundIndexError(UnboundReferenceError):
    """An index name is not bound in the index environment."""


class MissingVariableError(UnboundReferenceError):
    """A fully-qualified variable name is not registered in the context."""


class MissingParameterError(UnboundReferenceError):
    """A parameter could not be read from the parameter source."""


class StructuralError(CGERuntimeError, ValueError):
    """The equation system violates a compile-time invariant."""


class MultipleObjectivesError(StructuralError):
    """More than one equation record carries an objective expression."""


class EmptyDomainError(StructuralError):
    """A summation or product operator iterates over an empty domain."""


class UnsupportedEquationError(StructuralError):
    """An equation AST is not an equality."""


class UnsupportedExpressionError(StructuralError):
    """An expression node has no compilation rule."""


class UncompilableExpressionError(StructuralError):
    """A raw expression node reached the numeric compiler."""


__all__ = [
    "CGERuntimeError",
    "ConfigurationError",
    "UnboundReferenceError",
    "UnboundIndexError",
    "MissingVariableError",
    "MissingParameterError",
    "StructuralError",
    "MultipleObjectivesError",
    "EmptyDomainError",
    "UnsupportedEquationError",
    "UnsupportedExpressionError",
    "UncompilableExpressionError",
]
