"""Core data structures of the runtime.

- Expressions: symbolic equation trees produced by blocks
- IndexEnvironment: index bindings of one equation instance
- Context: variable and equation registries plus the Pyomo model handle
- Parameter sources: ``get_param`` adapter used by the compiler
"""

from cgeruntime.core.context import (
    Context,
    EquationPayload,
    EquationRecord,
    is_variable_handle,
    with_constraint,
    with_residual,
)
from cgeruntime.core.index_env import IndexEnvironment
from cgeruntime.core.params import ParameterSource, get_param

__all__ = [
    "Context",
    "EquationPayload",
    "EquationRecord",
    "is_variable_handle",
    "with_constraint",
    "with_residual",
    "IndexEnvironment",
    "ParameterSource",
    "get_param",
]
