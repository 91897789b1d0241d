"""Model validation: structural, residual, complementarity and scaling checks.

``validate_model`` never raises on problems it discovers; they are recorded
as warnings or notes so the caller decides whether they matter.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import numpy as np

from cgeruntime.config import DEFAULT_SETTINGS, KernelSettings
from cgeruntime.core.expressions import is_compilable_equation
from cgeruntime.enums import ReportCategory, ValidationLevel
from cgeruntime.qa.reporting import ValidationCategory, ValidationReport
from cgeruntime.qa.residuals import (
    equation_residuals,
    summarize_residuals,
    worst_residuals,
)
from cgeruntime.snapshot import snapshot

if TYPE_CHECKING:
    from cgeruntime.core.context import Context

logger = logging.getLogger(__name__)

# Tags of closure/bound equations that need no complementary variable
MCP_EXEMPT_TAGS = frozenset(
    {"objective", "numeraire", "start", "lower", "upper", "fixed"}
)


def _check_structure(context: Context, data: Any, cat: ValidationCategory) -> None:
    if not context.equations:
        cat.warnings.append("No equations registered in context")
    if not context.variables:
        cat.warnings.append("No variables registered in context")
    if data is not None:
        cat.notes.append("data provided but not used by validate_model yet")


def _check_residuals(
    context: Context,
    level: ValidationLevel,
    tol: float,
    settings: KernelSettings,
    cat: ValidationCategory,
) -> None:
    if not equation_residuals(context):
        cat.warnings.append(
            "No residuals recorded; call compile_equations and solve before validation"
        )
        return
    summary = summarize_residuals(context, tol=tol)
    cat.notes.append(f"max_abs={summary.max_abs}, above_tol={summary.above_tol}")
    if summary.above_tol > 0:
        cat.warnings.append(f"Residuals above tolerance: {summary.above_tol}")
    if level is ValidationLevel.FULL:
        ranked = worst_residuals(context, n=settings.top_residuals)
        for rank, row in enumerate(ranked.itertuples(index=False), start=1):
            cat.notes.append(
                f"worst {rank}: {row.block}.{row.tag} {row.indices} "
                f"residual={row.residual}"
            )


def _check_mcp(context: Context, cat: ValidationCategory) -> None:
    candidates = [
        record
        for record in context.equations
        if record.structured is not None and record.tag not in MCP_EXEMPT_TAGS
    ]
    if not any(record.structured.mcp_var is not None for record in candidates):
        cat.notes.append("No MCP equations detected")
        return
    for record in candidates:
        payload = record.structured
        if is_compilable_equation(payload.expr) and payload.mcp_var is None:
            cat.warnings.append(
                f"Missing mcp_var for {record.block}.{record.tag} {payload.indices}"
            )


def _check_scaling(
    context: Context, settings: KernelSettings, cat: ValidationCategory
) -> None:
    values = np.array(list(snapshot(context).values()), dtype=float)
    if values.size == 0:
        return
    magnitudes = np.abs(values)
    maxval = float(magnitudes.max())
    minval = float(magnitudes.min())
    if maxval > settings.scaling_max:
        cat.warnings.append(f"Large variable magnitude detected: max={maxval}")
    if minval < settings.scaling_min:
        cat.warnings.append(f"Very small variable magnitude detected: min={minval}")


def validate_model(
    context: Context,
    data: Any = None,
    level: ValidationLevel | str = ValidationLevel.BASIC,
    tol: float = 1e-6,
    settings: KernelSettings | None = None,
) -> ValidationReport:
    """Validate a built context and return a finalized report.

    Args:
        context: Context to inspect (compiled and solved for residual checks)
        data: Optional calibration data (recorded, not consumed yet)
        level: 'basic', or 'full' to add the worst residuals and scaling checks
        tol: Residual tolerance
        settings: Thresholds for the full-level checks

    Returns:
        ValidationReport with structural, residuals, mcp and scaling categories

    Raises:
        ConfigurationError: If ``level`` is unknown
    """
    resolved_level = ValidationLevel.from_alias(level)
    settings = settings or DEFAULT_SETTINGS
    report = ValidationReport()
    structural = report.category(ReportCategory.STRUCTURAL)
    residuals = report.category(ReportCategory.RESIDUALS)
    mcp = report.category(ReportCategory.MCP)
    scaling = report.category(ReportCategory.SCALING)

    _check_structure(context, data, structural)
    _check_residuals(context, resolved_level, tol, settings, residuals)
    _check_mcp(context, mcp)
    if resolved_level is ValidationLevel.FULL:
        _check_scaling(context, settings, scaling)

    report.finalize()
    logger.info(
        f"Validation ({resolved_level.value}): "
        f"ok={report.ok}, warnings={report.warnings}"
    )
    return report
