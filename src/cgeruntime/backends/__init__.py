"""Backends module for cgeruntime.

Translates registered equation records into Pyomo constraints and objective.
"""

from cgeruntime.backends.pyomo_compiler import (
    CompiledConstraint,
    ObjectiveSpec,
    compile_equation,
    compile_equations,
    compile_expr,
    compile_objective,
    global_var_name,
)

__all__ = [
    "CompiledConstraint",
    "ObjectiveSpec",
    "compile_equation",
    "compile_equations",
    "compile_expr",
    "compile_objective",
    "global_var_name",
]
