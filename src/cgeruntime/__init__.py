"""cgeruntime - Pyomo runtime for compiling, solving and inspecting CGE models."""

from cgeruntime.backends import compile_equations, compile_objective
from cgeruntime.blocks import Block, DeclarativeBlock, register_block
from cgeruntime.config import KernelSettings, OptimizerConfig, load_settings
from cgeruntime.core import Context, EquationPayload, EquationRecord, IndexEnvironment
from cgeruntime.qa import (
    equation_residuals,
    summarize_residuals,
    validate_model,
)
from cgeruntime.runner import RunResult, RunSpec, run
from cgeruntime.signals import to_dualsignals
from cgeruntime.snapshot import snapshot, snapshot_state, warm_start
from cgeruntime.version import __version__

__all__ = [
    "__version__",
    "Context",
    "EquationPayload",
    "EquationRecord",
    "IndexEnvironment",
    "compile_equations",
    "compile_objective",
    "Block",
    "DeclarativeBlock",
    "register_block",
    "KernelSettings",
    "OptimizerConfig",
    "load_settings",
    "equation_residuals",
    "summarize_residuals",
    "validate_model",
    "to_dualsignals",
    "snapshot",
    "snapshot_state",
    "warm_start",
    "RunSpec",
    "RunResult",
    "run",
]
