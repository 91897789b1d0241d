"""Snapshots of solved variable values and states for warm starts."""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field
from pyomo.environ import value

from cgeruntime.core.context import is_variable_handle

if TYPE_CHECKING:
    from cgeruntime.core.context import Context

logger = logging.getLogger(__name__)


class VariableState(BaseModel):
    """Start values, finite bounds and fixed values by variable name."""

    start: dict[str, float] = Field(
        default_factory=dict, description="Finite current values"
    )
    lower: dict[str, float] = Field(
        default_factory=dict, description="Finite lower bounds"
    )
    upper: dict[str, float] = Field(
        default_factory=dict, description="Finite upper bounds"
    )
    fixed: dict[str, float] = Field(default_factory=dict, description="Fixed values")


def _as_context(source: Any) -> Context:
    return getattr(source, "context", source)


def _current_value(handle: Any) -> float | None:
    try:
        result = value(handle, exception=False)
    except (ArithmeticError, ValueError):
        return None
    if result is None:
        return None
    return float(result)


def snapshot(source: Any) -> dict[str, float]:
    """Current finite values of registered variables.

    Args:
        source: A Context or a run result exposing ``context``
    """
    ctx = _as_context(source)
    out: dict[str, float] = {}
    for name, handle in ctx.variables.items():
        if not is_variable_handle(handle):
            continue
        current = _current_value(handle)
        if current is not None and math.isfinite(current):
            out[name] = current
    return out


def snapshot_state(source: Any) -> VariableState:
    """Start values, finite bounds and fixed values of registered variables."""
    ctx = _as_context(source)
    state = VariableState()
    for name, handle in ctx.variables.items():
        if not is_variable_handle(handle):
            continue
        current = _current_value(handle)
        if current is None:
            continue
        if math.isfinite(current):
            state.start[name] = current
        if handle.has_lb() and math.isfinite(value(handle.lb)):
            state.lower[name] = float(value(handle.lb))
        if handle.has_ub() and math.isfinite(value(handle.ub)):
            state.upper[name] = float(value(handle.ub))
        if handle.fixed:
            state.fixed[name] = current
    return state


def warm_start(context: Context, state: VariableState) -> int:
    """Apply a snapshot state to the variables registered in ``context``.

    Names missing from the context are skipped.

    Returns:
        Number of variables touched
    """
    touched: set[str] = set()
    for name, start in state.start.items():
        handle = context.variables.get(name)
        if not is_variable_handle(handle):
            continue
        handle.set_value(start, skip_validation=True)
        touched.add(name)
    for name, lower in state.lower.items():
        handle = context.variables.get(name)
        if is_variable_handle(handle):
            handle.setlb(lower)
            touched.add(name)
    for name, upper in state.upper.items():
        handle = context.variables.get(name)
        if is_variable_handle(handle):
            handle.setub(upper)
            touched.add(name)
    for name, fixed in state.fixed.items():
        handle = context.variables.get(name)
        if is_variable_handle(handle):
            handle.fix(fixed)
            touched.add(name)
    logger.debug(f"Warm start applied to {len(touched)} variables")
    return len(touched)
