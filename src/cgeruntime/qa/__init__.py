"""Residual extraction and model validation."""

from cgeruntime.qa.reporting import (
    ValidationCategory,
    ValidationReport,
    format_report_summary,
)
from cgeruntime.qa.residuals import (
    ResidualEntry,
    ResidualSummary,
    equation_residuals,
    residual_frame,
    summarize_residuals,
    worst_residuals,
)
from cgeruntime.qa.validation import MCP_EXEMPT_TAGS, validate_model

__all__ = [
    "ValidationCategory",
    "ValidationReport",
    "format_report_summary",
    "ResidualEntry",
    "ResidualSummary",
    "equation_residuals",
    "residual_frame",
    "summarize_residuals",
    "worst_residuals",
    "MCP_EXEMPT_TAGS",
    "validate_model",
]
