"""Compile symbolic equation records into Pyomo constraints and objective.

Each registered equation instance carries an expression tree plus the index
tuple of the instance. The compiler resolves variable references against the
context registry (``base`` or ``base_i1_i2``), parameter references against
the parameter source and free indices against an ``IndexEnvironment``, then
adds either a Pyomo ``Constraint`` (``lhs == rhs``) or, when the record names
a complementary variable, a ``pyomo.mpec.Complementarity`` pairing the
residual ``lhs - rhs`` with that bounded variable.
"""

from __future__ import annotations

import functools
import logging
import operator
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from pyomo.core.expr.numvalue import is_constant
from pyomo.environ import (
    Constraint,
    Objective,
    inequality,
    maximize,
    minimize,
    value,
)
from pyomo.mpec import Complementarity, complements

from cgeruntime.core.context import Context, with_constraint
from cgeruntime.core.expressions import (
    EAdd,
    EConst,
    EDiv,
    EEq,
    EIndex,
    EMul,
    ENeg,
    EParam,
    EPow,
    EProd,
    ERaw,
    ESum,
    EquationExpr,
    EVar,
    is_compilable_equation,
)
from cgeruntime.core.index_env import IndexEnvironment
from cgeruntime.core.params import get_param
from cgeruntime.enums import ConstraintKindName, ObjectiveSense
from cgeruntime.errors import (
    ConfigurationError,
    EmptyDomainError,
    MissingVariableError,
    MultipleObjectivesError,
    StructuralError,
    UncompilableExpressionError,
    UnsupportedEquationError,
    UnsupportedExpressionError,
)

logger = logging.getLogger(__name__)

VAR_NAME_SEPARATOR = "_"
OBJECTIVE_COMPONENT = "cge_objective"
NO_MODEL_MESSAGE = "Context.model is not set; attach a Pyomo ConcreteModel"


@dataclass(frozen=True)
class CompiledConstraint:
    """Handle of a compiled equation instance.

    Attributes:
        name: Component name on the Pyomo model
        component: Pyomo ``Constraint`` or ``Complementarity``
        residual_expr: Expression ``lhs - rhs`` (a number for constant equations)
        kind: Equality or complementarity
    """

    name: str
    component: Any
    residual_expr: Any
    kind: ConstraintKindName

    def residual_value(self) -> float | None:
        """Evaluate ``lhs - rhs`` at the current values, None if unavailable."""
        try:
            result = value(self.residual_expr, exception=False)
        except (ArithmeticError, ValueError):
            return None
        if result is None:
            return None
        return float(result)


@dataclass(frozen=True)
class ObjectiveSpec:
    """Objective stashed during ``compile_equations``."""

    expr: EquationExpr
    index_names: tuple[str, ...] | None = None
    indices: tuple[str, ...] = ()
    params: Any = None
    sense: ObjectiveSense = ObjectiveSense.MAXIMIZE


def global_var_name(base: str, indices: Sequence[str] = ()) -> str:
    """Build the fully-qualified variable name ``base_i1_i2``."""
    if not indices:
        return base
    return VAR_NAME_SEPARATOR.join([base, *(str(i) for i in indices)])


def resolve_indices(
    idxs: Sequence[Any] | None,
    default_indices: Sequence[Any] | None,
    env: IndexEnvironment,
) -> tuple[str, ...]:
    """Resolve explicit indices, or fall back to the instance indices."""
    if idxs is None:
        return tuple(str(i) for i in default_indices) if default_indices else ()
    resolved = []
    for entry in idxs:
        if isinstance(entry, EIndex):
            resolved.append(env.resolve(entry.name))
        else:
            resolved.append(str(entry))
    return tuple(resolved)


def resolve_var(context: Context, name: str, indices: Sequence[str] = ()) -> Any:
    """Look up ``name`` at ``indices`` in the context registry."""
    var_name = global_var_name(name, indices)
    if var_name not in context.variables:
        msg = f"Missing variable: {var_name}"
        raise MissingVariableError(msg)
    return context.variables[var_name]


def _fold_sum(parts: list[Any]) -> Any:
    if not parts:
        return 0.0
    return functools.reduce(operator.add, parts[1:], parts[0])


def _fold_product(parts: list[Any]) -> Any:
    # no identity element: callers guarantee at least one factor
    return functools.reduce(operator.mul, parts[1:], parts[0])


def _compile_over_domain(
    node: ESum | EProd,
    context: Context,
    params: Any,
    default_indices: Sequence[str],
    env: IndexEnvironment,
) -> list[Any]:
    if not node.domain:
        label = "ESum" if isinstance(node, ESum) else "EProd"
        msg = f"{label} domain is empty for index {node.index}"
        raise EmptyDomainError(msg)
    parts = []
    for element in node.domain:
        with env.scoped(node.index, str(element)):
            parts.append(compile_expr(node.expr, context, params, default_indices, env))
    return parts


def compile_expr(
    node: EquationExpr,
    context: Context,
    params: Any,
    default_indices: Sequence[str],
    env: IndexEnvironment,
) -> Any:
    """Lower one expression node into a Pyomo expression or a number.

    Args:
        node: Expression tree node
        context: Registry used to resolve variables
        params: Parameter source (may be None if no parameter is referenced)
        default_indices: Index tuple of the enclosing equation instance
        env: Index environment of the instance

    Returns:
        Pyomo expression, variable, or plain number
    """

    def lower(child: EquationExpr) -> Any:
        return compile_expr(child, context, params, default_indices, env)

    if isinstance(node, EVar):
        indices = resolve_indices(node.idxs, default_indices, env)
        return resolve_var(context, node.name, indices)
    if isinstance(node, EParam):
        indices = resolve_indices(node.idxs, default_indices, env)
        return get_param(params, node.name, *indices)
    if isinstance(node, EConst):
        return node.value
    if isinstance(node, ERaw):
        msg = f"Cannot compile ERaw expression: {node.text}"
        raise UncompilableExpressionError(msg)
    if isinstance(node, EIndex):
        return env.resolve(node.name)
    if isinstance(node, EAdd):
        return _fold_sum([lower(term) for term in node.terms])
    if isinstance(node, EMul):
        if not node.factors:
            raise StructuralError("EMul requires at least one factor")
        return _fold_product([lower(factor) for factor in node.factors])
    if isinstance(node, EPow):
        return lower(node.base) ** lower(node.exponent)
    if isinstance(node, EDiv):
        return lower(node.numerator) / lower(node.denominator)
    if isinstance(node, ENeg):
        return -lower(node.expr)
    if isinstance(node, ESum):
        parts = _compile_over_domain(node, context, params, default_indices, env)
        return _fold_sum(parts)
    if isinstance(node, EProd):
        parts = _compile_over_domain(node, context, params, default_indices, env)
        return _fold_product(parts)
    msg = f"Unsupported expression type: {type(node).__name__}"
    raise UnsupportedExpressionError(msg)


def compile_mcp_var(
    mcp_var: Any,
    context: Context,
    default_indices: Sequence[str],
    env: IndexEnvironment,
) -> Any:
    """Resolve the complementary variable of an equation."""
    if isinstance(mcp_var, EVar):
        indices = resolve_indices(mcp_var.idxs, default_indices, env)
        return resolve_var(context, mcp_var.name, indices)
    if isinstance(mcp_var, str):
        return resolve_var(context, mcp_var)
    msg = f"Unsupported MCP variable expression: {mcp_var!r}"
    raise UnsupportedExpressionError(msg)


def _complementarity_expr(residual: Any, var: Any) -> Any:
    """Pair ``residual`` with ``var`` according to the bounds of ``var``.

    At a solution the residual is non-negative at the lower bound,
    non-positive at the upper bound and zero in between.
    """
    lower, upper = var.lb, var.ub
    if lower is not None and upper is not None:
        return complements(inequality(lower, var, upper), residual)
    if lower is not None:
        return complements(var >= lower, residual >= 0)
    if upper is not None:
        return complements(var <= upper, residual <= 0)
    return complements(residual == 0, var)


def _equality_expr(lhs: Any, rhs: Any, residual: Any) -> Any:
    # lhs == rhs between two numbers is a plain bool, which Pyomo rejects
    if is_constant(residual):
        return Constraint.Feasible if value(residual) == 0 else Constraint.Infeasible
    return lhs == rhs


def _unique_component_name(model: Any, base: str) -> str:
    name = base
    suffix = 2
    while model.component(name) is not None:
        name = f"{base}_{suffix}"
        suffix += 1
    return name


def compile_equation(
    expr: EquationExpr,
    context: Context,
    params: Any,
    indices: Sequence[str],
    env: IndexEnvironment,
    mcp_var: Any = None,
    name: str = "eq",
) -> CompiledConstraint:
    """Compile an ``EEq`` into an equality or complementarity constraint.

    An equation whose sides are both constant becomes a trivially feasible
    (or infeasible) constraint; its residual is still recorded.

    Raises:
        UnsupportedEquationError: If ``expr`` is not an ``EEq``
    """
    if not isinstance(expr, EEq):
        msg = (
            f"Unsupported equation expression: expected EEq, "
            f"got {type(expr).__name__}"
        )
        raise UnsupportedEquationError(msg)
    model = context.model
    if model is None:
        raise ConfigurationError(NO_MODEL_MESSAGE)

    lhs = compile_expr(expr.lhs, context, params, indices, env)
    rhs = compile_expr(expr.rhs, context, params, indices, env)
    residual = lhs - rhs
    component_name = _unique_component_name(model, name)

    if mcp_var is not None:
        var = compile_mcp_var(mcp_var, context, indices, env)
        component = Complementarity(expr=_complementarity_expr(residual, var))
        kind = ConstraintKindName.COMPLEMENTARITY
    else:
        component = Constraint(expr=_equality_expr(lhs, rhs, residual))
        kind = ConstraintKindName.EQUALITY
    model.add_component(component_name, component)
    return CompiledConstraint(
        name=component_name, component=component, residual_expr=residual, kind=kind
    )


def _install_objective(
    objective: ObjectiveSpec,
    context: Context,
    params: Any,
    sense: ObjectiveSense | str | None,
) -> Any:
    model = context.model
    if model is None:
        raise ConfigurationError(NO_MODEL_MESSAGE)
    if sense is None:
        resolved_sense = objective.sense
    else:
        resolved_sense = ObjectiveSense.from_alias(sense)
    env = IndexEnvironment.from_indices(objective.index_names, objective.indices)
    local_params = params if params is not None else objective.params
    expression = compile_expr(
        objective.expr, context, local_params, objective.indices, env
    )

    existing = model.component(OBJECTIVE_COMPONENT)
    if existing is not None:
        model.del_component(existing)
    pyomo_sense = maximize if resolved_sense is ObjectiveSense.MAXIMIZE else minimize
    component = Objective(expr=expression, sense=pyomo_sense)
    model.add_component(OBJECTIVE_COMPONENT, component)
    logger.info(f"Compiled objective ({resolved_sense.value})")
    return component


def compile_objective(
    objective: ObjectiveSpec,
    context: Context,
    params: Any = None,
    sense: ObjectiveSense | str | None = None,
) -> Any:
    """Install ``objective`` as the single objective of the model.

    A previously compiled objective is replaced. ``sense`` overrides the
    sense stored on ``objective``.

    Raises:
        ConfigurationError: If the sense is not maximize/minimize
    """
    return _install_objective(objective, context, params, sense)


def _component_base_name(position: int, block: str, tag: str) -> str:
    return f"{block}_{tag}_{position}"


def compile_equations(
    context: Context,
    params: Any = None,
    compile_objective: bool = True,
) -> Context:
    """Compile every registered equation record, in registration order.

    Records that already carry a constraint are skipped. ``params``
    overrides the parameter source stored on each record.

    Raises:
        ConfigurationError: If the context has no model
        MultipleObjectivesError: If more than one record carries an objective
    """
    if context.model is None:
        raise ConfigurationError(NO_MODEL_MESSAGE)

    objective: ObjectiveSpec | None = None
    compiled = 0
    for position, record in enumerate(context.equations):
        payload = record.structured
        if payload is None:
            continue
        if payload.objective_expr is not None:
            if objective is not None:
                msg = "Multiple objectives registered; only one objective is supported."
                raise MultipleObjectivesError(msg)
            objective = ObjectiveSpec(
                expr=payload.objective_expr,
                index_names=payload.index_names,
                indices=payload.indices,
                params=payload.params,
                sense=ObjectiveSense.from_alias(payload.objective_sense),
            )
        if payload.constraint is not None:
            continue
        if not is_compilable_equation(payload.expr):
            continue
        env = IndexEnvironment.from_indices(payload.index_names, payload.indices)
        local_params = params if params is not None else payload.params
        handle = compile_equation(
            payload.expr,
            context,
            local_params,
            payload.indices,
            env,
            mcp_var=payload.mcp_var,
            name=_component_base_name(position, record.block, record.tag),
        )
        context.replace_equation(position, with_constraint(record, handle))
        compiled += 1
        logger.debug(
            f"Compiled {record.label()} as {handle.name} ({handle.kind.value})"
        )

    logger.info(f"Compiled {compiled} equations")
    if objective is not None and compile_objective:
        _install_objective(objective, context, params, None)
    return context
