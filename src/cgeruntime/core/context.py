"""Kernel context: variable registry, equation registry and Pyomo model handle.

Blocks register Pyomo variables by fully-qualified name (``base`` or
``base_i1_i2``) and append equation records. The compiler later writes a
compiled-constraint handle back into each record, and ``Context.solve``
stores the residual of every compiled record after the solver returns.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pyomo.environ import ConcreteModel, Var

from cgeruntime.config import OptimizerConfig
from cgeruntime.errors import ConfigurationError, MissingVariableError

logger = logging.getLogger(__name__)


class EquationPayload(BaseModel):
    """Structured payload of an equation record.

    Reserved keys:
        expr: Equation AST (``EEq``) or ``ERaw`` for documentation-only equations
        objective_expr: Objective AST, at most one per context
        objective_sense: 'maximize' (default) or 'minimize'
        index_names: Names of the equation indices (e.g. ``("i", "j")``)
        indices: Index tuple of this instance (e.g. ``("agr", "mfg")``)
        params: Parameter source for this instance
        mcp_var: Complementary variable (``EVar`` or bare variable name)
        constraint: Compiled-constraint handle, set by the compiler
        residual: Residual value, set after solving

    Any other key is kept as an extra field.
    """

    expr: Any = None
    objective_expr: Any = None
    objective_sense: Any = None
    index_names: tuple[str, ...] | None = None
    indices: tuple[str, ...] = ()
    params: Any = None
    mcp_var: Any = None
    constraint: Any = None
    residual: float | None = None

    model_config = ConfigDict(extra="allow", arbitrary_types_allowed=True, frozen=True)

    @field_validator("index_names", mode="before")
    @classmethod
    def _names_to_str(cls, v: Any) -> tuple[str, ...] | None:  # noqa: N805
        if v is None:
            return None
        return tuple(str(name) for name in v)

    @field_validator("indices", mode="before")
    @classmethod
    def _indices_to_str(cls, v: Any) -> tuple[str, ...]:  # noqa: N805
        if v is None:
            return ()
        if isinstance(v, str):
            return (v,)
        return tuple(str(i) for i in v)

    @property
    def has_objective(self) -> bool:
        return self.objective_expr is not None


class EquationRecord(BaseModel):
    """One registered equation instance.

    Attributes:
        tag: Equation role (e.g. 'zero_profit', 'market_clearing')
        block: Owning block name
        payload: ``EquationPayload`` or an opaque object ignored by the compiler
    """

    tag: str = Field(..., description="Equation role")
    block: str = Field(..., description="Owning block name")
    payload: Any = Field(default=None, description="Equation payload")

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    @property
    def structured(self) -> EquationPayload | None:
        """The payload if it is structured, else None."""
        return self.payload if isinstance(self.payload, EquationPayload) else None

    @property
    def indices(self) -> tuple[str, ...]:
        payload = self.structured
        return payload.indices if payload is not None else ()

    def label(self) -> str:
        return f"{self.block}.{self.tag} {self.indices}"


def is_variable_handle(handle: Any) -> bool:
    """True for Pyomo variable data (scalar variables and indexed entries)."""
    checker = getattr(handle, "is_variable_type", None)
    return callable(checker) and bool(checker())


def with_constraint(record: EquationRecord, handle: Any) -> EquationRecord:
    """Return ``record`` with ``handle`` stored as its compiled constraint."""
    payload = record.structured
    if payload is None:
        msg = f"Cannot attach a constraint to unstructured payload {record.label()}"
        raise ConfigurationError(msg)
    updated = payload.model_copy(update={"constraint": handle})
    return record.model_copy(update={"payload": updated})


def with_residual(record: EquationRecord, residual: float | None) -> EquationRecord:
    """Return ``record`` with its residual set (cleared when ``residual`` is None)."""
    payload = record.structured
    if payload is None:
        msg = f"Cannot attach a residual to unstructured payload {record.label()}"
        raise ConfigurationError(msg)
    value = float(residual) if residual is not None else None
    updated = payload.model_copy(update={"residual": value})
    return record.model_copy(update={"payload": updated})


class Context:
    """Registry shared by blocks, the compiler and the residual tools.

    Attributes:
        variables: Fully-qualified variable name -> Pyomo variable handle
        equations: Equation records in registration order
        model: Attached Pyomo ``ConcreteModel`` (optional until compile/solve)
        optimizer: Solver used by ``solve``
        results: Results object returned by the last solve

    Example:
        >>> ctx = Context(model=ConcreteModel())
        >>> ctx.add_variable("x", lower=0.0, start=1.0)
        >>> payload = {"expr": eq(var("x"), const(1.0))}
        >>> ctx.register_equation("market_clearing", "goods", payload)
    """

    def __init__(self, model: ConcreteModel | None = None) -> None:
        self.variables: dict[str, Any] = {}
        self.equations: list[EquationRecord] = []
        self.model = model
        self.optimizer: Any = None
        self.results: Any = None
        self._solve_kwargs: dict[str, Any] = {}

    # Registration

    def register_variable(self, name: str, handle: Any) -> Any:
        """Register a variable handle; an existing name is overwritten."""
        self.variables[str(name)] = handle
        return handle

    def register_equation(
        self, tag: str, block: str, payload: Any = None
    ) -> EquationRecord:
        """Append an equation record.

        Mappings are validated into ``EquationPayload``; other payloads are
        stored as they are. No deduplication is performed.
        """
        if isinstance(payload, Mapping):
            payload = EquationPayload.model_validate(dict(payload))
        record = EquationRecord(tag=str(tag), block=str(block), payload=payload)
        self.equations.append(record)
        return record

    def list_equations(self) -> tuple[EquationRecord, ...]:
        """Registered equations in registration order."""
        return tuple(self.equations)

    def replace_equation(self, position: int, record: EquationRecord) -> None:
        self.equations[position] = record

    def add_variable(
        self,
        name: str,
        lower: float | None = None,
        upper: float | None = None,
        start: float | None = None,
        fixed: float | None = None,
    ) -> Any:
        """Create a scalar Pyomo variable on the attached model and register it.

        Args:
            name: Fully-qualified variable name
            lower: Lower bound (None for unbounded)
            upper: Upper bound (None for unbounded)
            start: Initial value
            fixed: Fix the variable to this value
        """
        model = self._require_model()
        handle = Var(bounds=(lower, upper), initialize=start)
        model.add_component(str(name), handle)
        if fixed is not None:
            handle.fix(fixed)
        return self.register_variable(name, handle)

    def get_variable(self, name: str) -> Any:
        """Look up a registered variable.

        Raises:
            MissingVariableError: If ``name`` is not registered
        """
        if name not in self.variables:
            msg = f"Missing variable: {name}"
            raise MissingVariableError(msg)
        return self.variables[name]

    # Solving

    def set_optimizer(self, optimizer: Any) -> None:
        """Install a solver name, an ``OptimizerConfig`` or a solver object."""
        if isinstance(optimizer, str):
            optimizer = OptimizerConfig(solver=optimizer)
        if isinstance(optimizer, OptimizerConfig):
            self.optimizer = optimizer.create()
            self._solve_kwargs = optimizer.solve_kwargs()
            return
        if not callable(getattr(optimizer, "solve", None)):
            msg = f"Unsupported optimizer: {optimizer!r}"
            raise ConfigurationError(msg)
        self.optimizer = optimizer
        self._solve_kwargs = {}

    def solve(self, optimizer: Any = None) -> ConcreteModel:
        """Solve the attached model and record residuals.

        If ``optimizer`` is given it is installed before solving. The solve is
        attempted once; solver failures propagate.

        Raises:
            ConfigurationError: If no model is attached or no optimizer is set
        """
        model = self._require_model()
        if optimizer is not None:
            self.set_optimizer(optimizer)
        if self.optimizer is None:
            msg = "No optimizer configured; pass one to solve() or call set_optimizer()"
            raise ConfigurationError(msg)
        logger.info(f"Solving model '{model.name}' with {self.optimizer!r}")
        self.results = self.optimizer.solve(model, **self._solve_kwargs)
        recorded = self.update_residuals()
        logger.info(f"Recorded {recorded} residuals")
        return model

    def update_residuals(self) -> int:
        """Evaluate the residual of every compiled record.

        Records whose residual cannot be evaluated have their residual
        cleared, so no value from an earlier solve survives.

        Returns:
            Number of residuals recorded
        """
        recorded = 0
        for position, record in enumerate(self.equations):
            payload = record.structured
            if payload is None or payload.constraint is None:
                continue
            residual = payload.constraint.residual_value()
            self.equations[position] = with_residual(record, residual)
            if residual is None:
                logger.warning(f"Residual unavailable for {record.label()}")
                continue
            recorded += 1
        return recorded

    def _require_model(self) -> ConcreteModel:
        if self.model is None:
            msg = "Context.model is not set; attach a Pyomo ConcreteModel"
            raise ConfigurationError(msg)
        return self.model

    def __repr__(self) -> str:
        return (
            f"Context: {len(self.variables)} vars, "
            f"{len(self.equations)} eqs, "
            f"model={'set' if self.model is not None else 'none'}"
        )
