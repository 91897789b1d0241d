"""Run orchestrator: build, compile, solve and summarize a run spec."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pyomo.environ import ConcreteModel

from cgeruntime.backends.pyomo_compiler import compile_equations
from cgeruntime.blocks.base import build_block
from cgeruntime.core.context import Context, is_variable_handle
from cgeruntime.errors import ConfigurationError
from cgeruntime.qa.residuals import ResidualSummary, summarize_residuals
from cgeruntime.signals import DualSignalsDataset, to_dualsignals

logger = logging.getLogger(__name__)


class RunSpec(BaseModel):
    """Ordered blocks and shared data of one model run.

    Attributes:
        name: Model name, also used for the Pyomo model
        blocks: Block instances or registered block class names, in build order
        params: Parameter source shared by the blocks
        metadata: Free-form run metadata
    """

    name: str = Field(default="cge", min_length=1, description="Model name")
    blocks: list[Any] = Field(default_factory=list, description="Blocks in build order")
    params: Any = Field(default=None, description="Shared parameter source")
    metadata: dict[str, Any] = Field(default_factory=dict, description="Run metadata")

    model_config = ConfigDict(arbitrary_types_allowed=True)


class RunResult(BaseModel):
    """Context, residual summary and exported dataset of a run."""

    context: Context
    summary: ResidualSummary
    signals: DualSignalsDataset

    model_config = ConfigDict(arbitrary_types_allowed=True)


def apply_mcp_fix(context: Context, mcp_fix: Mapping[str, float]) -> None:
    """Fix the named registered variables to the given values.

    Raises:
        ConfigurationError: If a name is not a registered variable
    """
    for name, fixed_value in mcp_fix.items():
        handle = context.variables.get(name)
        if not is_variable_handle(handle):
            msg = f"mcp_fix expects a variable registered in context: {name}"
            raise ConfigurationError(msg)
        handle.fix(fixed_value)


def run(
    spec: RunSpec,
    optimizer: Any = None,
    dataset_id: str = "cgeruntime",
    tol: float = 1e-6,
    description: str | None = None,
    compile_ast: bool = True,
    params: Any = None,
    compile_objective: bool = True,
    mcp_fix: Mapping[str, float] | None = None,
) -> RunResult:
    """Build, compile, solve and summarize ``spec``.

    Args:
        spec: Run spec with the ordered block list
        optimizer: Solver name, ``OptimizerConfig`` or solver object
        dataset_id: Identifier of the exported dataset
        tol: Residual tolerance for the summary and binding flags
        description: Dataset description
        compile_ast: Compile the registered equation ASTs
        params: Parameter source overriding the record params
        compile_objective: Compile the objective if one is registered
        mcp_fix: Variable name -> value to fix before compiling

    Returns:
        RunResult with the context, residual summary and DualSignals dataset
    """
    model = ConcreteModel(name=spec.name)
    ctx = Context(model=model)
    logger.info(f"Building {len(spec.blocks)} blocks for '{spec.name}'")
    for block in spec.blocks:
        build_block(block, ctx, spec)
    if mcp_fix is not None:
        apply_mcp_fix(ctx, mcp_fix)
    if compile_ast:
        compile_equations(ctx, params=params, compile_objective=compile_objective)
    ctx.solve(optimizer=optimizer)
    summary = summarize_residuals(ctx, tol=tol)
    logger.info(
        f"Residuals: count={summary.count}, max_abs={summary.max_abs}, "
        f"above_tol={summary.above_tol}"
    )
    signals = to_dualsignals(
        ctx, dataset_id=dataset_id, tol=tol, description=description
    )
    return RunResult(context=ctx, summary=summary, signals=signals)
