"""A block assembled from variable and equation specifications.

Useful for small models and tests: variables are created as scalar Pyomo
variables named ``base_i1_i2`` and every equation specification registers
one record per index instance.

Example:
    >>> block = DeclarativeBlock(
    ...     name="goods",
    ...     variables=[VariableSpec(name="x", instances=[("a",), ("b",)], lower=0.0)],
    ...     equations=[
    ...         EquationSpec(
    ...             tag="market_clearing",
    ...             expr=eq(var("x"), param("demand")),
    ...             index_names=("i",),
    ...             instances=[("a",), ("b",)],
    ...         )
    ...     ],
    ... )
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field, field_validator

from cgeruntime.backends.pyomo_compiler import global_var_name
from cgeruntime.blocks.base import Block, register_block

if TYPE_CHECKING:
    from cgeruntime.core.context import Context


def _normalize_instances(v: Any) -> list[tuple[str, ...]]:
    return [tuple(str(i) for i in instance) for instance in v]


class VariableSpec(BaseModel):
    """Specification of a (possibly indexed) block variable.

    Attributes:
        name: Base variable name
        instances: Index tuples to create (``[()]`` for a scalar)
        lower: Lower bound (None for unbounded)
        upper: Upper bound (None for unbounded)
        start: Initial value
        fixed: Fix every instance to this value
    """

    name: str = Field(..., min_length=1, description="Base variable name")
    instances: list[tuple[str, ...]] = Field(default_factory=lambda: [()])
    lower: float | None = Field(default=None, description="Lower bound")
    upper: float | None = Field(default=None, description="Upper bound")
    start: float | None = Field(default=None, description="Initial value")
    fixed: float | None = Field(default=None, description="Fixed value")

    model_config = {"frozen": True}

    @field_validator("instances", mode="before")
    @classmethod
    def _instances_to_tuples(cls, v: Any) -> list[tuple[str, ...]]:  # noqa: N805
        return _normalize_instances(v)


class EquationSpec(BaseModel):
    """Specification of an equation registered once per index instance."""

    tag: str = Field(..., min_length=1, description="Equation role")
    expr: Any = Field(default=None, description="Equation AST")
    objective_expr: Any = Field(default=None, description="Objective AST")
    objective_sense: str | None = Field(default=None, description="Objective sense")
    index_names: tuple[str, ...] | None = Field(default=None, description="Index names")
    instances: list[tuple[str, ...]] = Field(default_factory=lambda: [()])
    mcp_var: Any = Field(default=None, description="Complementary variable")
    params: Any = Field(default=None, description="Parameter source override")

    model_config = {"frozen": True, "arbitrary_types_allowed": True}

    @field_validator("instances", mode="before")
    @classmethod
    def _instances_to_tuples(cls, v: Any) -> list[tuple[str, ...]]:  # noqa: N805
        return _normalize_instances(v)


@register_block
class DeclarativeBlock(Block):
    """Block whose variables and equations are given as specifications."""

    variables: list[VariableSpec] = Field(default_factory=list)
    equations: list[EquationSpec] = Field(default_factory=list)

    def build(self, context: Context, spec: Any) -> None:
        shared_params = getattr(spec, "params", None)
        for var_spec in self.variables:
            for instance in var_spec.instances:
                context.add_variable(
                    global_var_name(var_spec.name, instance),
                    lower=var_spec.lower,
                    upper=var_spec.upper,
                    start=var_spec.start,
                    fixed=var_spec.fixed,
                )
        for eq_spec in self.equations:
            for instance in eq_spec.instances:
                payload: dict[str, Any] = {
                    "expr": eq_spec.expr,
                    "index_names": eq_spec.index_names,
                    "indices": instance,
                    "params": (
                        eq_spec.params if eq_spec.params is not None else shared_params
                    ),
                }
                if eq_spec.objective_expr is not None:
                    payload["objective_expr"] = eq_spec.objective_expr
                    payload["objective_sense"] = eq_spec.objective_sense
                if eq_spec.mcp_var is not None:
                    payload["mcp_var"] = eq_spec.mcp_var
                context.register_equation(eq_spec.tag, self.name, payload)
